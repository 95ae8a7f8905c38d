"""
Base model with common fields and methods
"""
from zone_dispatch import db
from datetime import date, datetime, timezone
import uuid


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class BaseModel(db.Model):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self, exclude=None):
        """
        Convert model to dictionary

        Args:
            exclude (list): List of fields to exclude

        Returns:
            dict: Model as dictionary
        """
        exclude = exclude or []
        data = {}

        for column in self.__table__.columns:
            if column.name not in exclude:
                value = getattr(self, column.name)

                # Handle date and datetime
                if isinstance(value, date):
                    value = value.isoformat()

                data[column.name] = value

        return data

    def soft_delete(self):
        """Soft delete by setting deleted_at timestamp"""
        self.deleted_at = utcnow()


class TenantMixin:
    """Mixin for multi-tenant models"""
    tenant_id = db.Column(db.String(36), db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)

    @classmethod
    def for_tenant(cls, tenant_id):
        """
        Query records for specific tenant

        Args:
            tenant_id: id of tenant

        Returns:
            Query: Filtered query for tenant
        """
        return cls.query.filter(
            cls.tenant_id == tenant_id,
            cls.deleted_at.is_(None)
        )
