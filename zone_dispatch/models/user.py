"""User model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin


class User(BaseModel, TenantMixin):
    """
    User model - owners, managers, and drivers
    """
    __tablename__ = 'users'

    email = db.Column(db.String(255), nullable=False, index=True)

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(50))

    role = db.Column(db.String(50), nullable=False)  # owner, manager, driver
    status = db.Column(db.String(50), nullable=False, default='active')  # active, inactive, suspended

    # Unique constraint
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'email', name='unique_email_per_tenant'),
        db.Index('idx_users_role', 'tenant_id', 'role'),
        db.Index('idx_users_status', 'tenant_id', 'status'),
    )

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    @classmethod
    def find_active_driver(cls, tenant_id, driver_id):
        """
        Look up a driver that may receive order assignments

        Returns:
            User: The driver, or None when missing, inactive, soft-deleted
                or belonging to another tenant
        """
        if not driver_id:
            return None

        return cls.for_tenant(tenant_id).filter(
            cls.id == driver_id,
            cls.role == 'driver',
            cls.status == 'active',
        ).first()
