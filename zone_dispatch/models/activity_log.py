"""Activity Log model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin


class ActivityLog(BaseModel, TenantMixin):
    """
    Activity Log model - audit trail of service area edits,
    override changes and driver reassignments
    """
    __tablename__ = 'activity_log'

    user_id = db.Column(db.String(36), db.ForeignKey('users.id'))

    entity_type = db.Column(db.String(100), nullable=False)
    entity_id = db.Column(db.String(36), nullable=False)

    action = db.Column(db.String(100), nullable=False)

    # Change tracking
    old_values = db.Column(db.JSON)
    new_values = db.Column(db.JSON)

    # Indexes
    __table_args__ = (
        db.Index('idx_activity_log_entity', 'tenant_id', 'entity_type', 'entity_id'),
        db.Index('idx_activity_log_created_at', 'tenant_id', 'created_at'),
    )

    def __repr__(self):
        return f'<ActivityLog {self.entity_type}.{self.action}>'

    @classmethod
    def log_action(cls, tenant_id, entity_type, entity_id, action, user_id=None,
                   old_values=None, new_values=None):
        """
        Log an action to the activity log

        Args:
            tenant_id: id of tenant
            entity_type: Type of entity (e.g., 'orders', 'locations')
            entity_id: id of entity
            action: Action performed (e.g., 'driver_reassigned')
            user_id: id of user who performed action
            old_values: Previous state (dict)
            new_values: New state (dict)

        Returns:
            ActivityLog: Created log entry
        """
        log_entry = cls(
            tenant_id=tenant_id,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_values=old_values,
            new_values=new_values
        )
        db.session.add(log_entry)
        return log_entry
