"""SQLAlchemy models package"""
from .tenant import Tenant
from .user import User
from .location import Location
from .zone_override import ZoneDriverOverride
from .order import Order, ELIGIBLE_STATUSES
from .route import DriverRoute, RouteStop
from .notification import Notification
from .activity_log import ActivityLog

__all__ = [
    'Tenant',
    'User',
    'Location',
    'ZoneDriverOverride',
    'Order',
    'ELIGIBLE_STATUSES',
    'DriverRoute',
    'RouteStop',
    'Notification',
    'ActivityLog',
]
