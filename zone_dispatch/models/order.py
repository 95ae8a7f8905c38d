"""Order model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin

# Orders in these states may still change hands between drivers
ELIGIBLE_STATUSES = ('confirmed', 'ready', 'out_for_delivery')


class Order(BaseModel, TenantMixin):
    """
    Order model - the slice of a laundry order the zone engine reads and writes
    """
    __tablename__ = 'orders'

    location_id = db.Column(db.String(36), db.ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    order_number = db.Column(db.String(50), nullable=False)

    # pending, confirmed, picked_up, processing, ready, out_for_delivery, delivered, cancelled
    status = db.Column(db.String(50), nullable=False, default='pending')
    driver_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    pickup_date = db.Column(db.Date)
    pickup_lat = db.Column(db.Float)
    pickup_lng = db.Column(db.Float)

    # Unique constraint
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'order_number', name='unique_order_number_per_tenant'),
        db.Index('idx_orders_location_status', 'location_id', 'status'),
        db.Index('idx_orders_driver_id', 'tenant_id', 'driver_id'),
    )

    def __repr__(self):
        return f'<Order {self.order_number} - {self.status}>'

    @property
    def has_pickup_point(self):
        """Check if the pickup address was geocoded"""
        return self.pickup_lat is not None and self.pickup_lng is not None
