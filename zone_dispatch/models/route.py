"""Driver route and route stop models"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin


class DriverRoute(BaseModel, TenantMixin):
    """
    Driver route model - one driver's manifest of stops for one day
    """
    __tablename__ = 'driver_routes'

    location_id = db.Column(db.String(36), db.ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    driver_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    route_date = db.Column(db.Date, nullable=False)
    route_type = db.Column(db.String(50), default='mixed')  # pickup, delivery, mixed

    status = db.Column(db.String(50), nullable=False, default='planned')  # planned, in_progress, completed

    optimized_order = db.Column(db.JSON)  # Array of stop ids in optimized order

    started_at = db.Column(db.DateTime(timezone=True))
    completed_at = db.Column(db.DateTime(timezone=True))

    # Indexes
    __table_args__ = (
        db.Index('idx_driver_routes_driver_id', 'tenant_id', 'driver_id'),
        db.Index('idx_driver_routes_date', 'tenant_id', 'route_date'),
    )

    stops = db.relationship('RouteStop', backref='route', order_by='RouteStop.sequence',
                            cascade='all, delete-orphan')

    def __repr__(self):
        return f'<DriverRoute driver={self.driver_id} {self.route_date} {self.status}>'


class RouteStop(BaseModel):
    """
    Route stop model - one pickup or delivery leg of an order
    """
    __tablename__ = 'route_stops'

    route_id = db.Column(db.String(36), db.ForeignKey('driver_routes.id', ondelete='CASCADE'), nullable=False)
    order_id = db.Column(db.String(36), db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)

    stop_type = db.Column(db.String(50), nullable=False, default='pickup')  # pickup, delivery
    sequence = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(db.String(50), nullable=False, default='pending')  # pending, completed, skipped

    address = db.Column(db.String(500))
    lat = db.Column(db.Float)
    lng = db.Column(db.Float)

    __table_args__ = (
        db.Index('idx_route_stops_route_id', 'route_id', 'sequence'),
        db.Index('idx_route_stops_order_id', 'order_id'),
    )

    def __repr__(self):
        return f'<RouteStop {self.stop_type} order={self.order_id} #{self.sequence}>'
