"""Notification model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin, utcnow


class Notification(BaseModel, TenantMixin):
    """
    Notification model - in-app notifications for users
    """
    __tablename__ = 'notifications'

    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    type = db.Column(db.String(100), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    # Related entities
    related_entity_type = db.Column(db.String(100))
    related_entity_id = db.Column(db.String(255))

    # Delivery
    read_at = db.Column(db.DateTime(timezone=True))
    delivered_at = db.Column(db.DateTime(timezone=True))

    # Indexes
    __table_args__ = (
        db.Index('idx_notifications_user_id', 'user_id', 'created_at'),
        db.Index('idx_notifications_unread', 'user_id', 'read_at'),
    )

    def __repr__(self):
        return f'<Notification {self.type} - user={self.user_id}>'

    @classmethod
    def create_notification(cls, tenant_id, user_id, notification_type, title, message,
                            related_entity_type=None, related_entity_id=None):
        """
        Create a new notification

        Args:
            tenant_id: id of tenant
            user_id: id of user to notify
            notification_type: Type of notification
            title: Notification title
            message: Notification message
            related_entity_type: Type of related entity (optional)
            related_entity_id: id of related entity (optional)

        Returns:
            Notification: Created notification
        """
        notification = cls(
            tenant_id=tenant_id,
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            related_entity_type=related_entity_type,
            related_entity_id=related_entity_id,
            delivered_at=utcnow()
        )
        db.session.add(notification)
        return notification
