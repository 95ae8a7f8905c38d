"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when blueprints and
services need access to extensions that are initialised in create_app().
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from zone_dispatch.services.notifications import NotificationDispatcher

# Storage and on/off switch come from RATELIMIT_STORAGE_URI / RATELIMIT_ENABLED.
limiter = Limiter(key_func=get_remote_address)

notification_dispatcher = NotificationDispatcher()
