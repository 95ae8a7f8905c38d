"""
Driver zone notifications.

IMPORTANT: Nothing in this module should ever raise to its caller.
All errors are caught and logged so that a notification failure never
makes a service area save or override change look failed.

Events are handed to a background worker thread through a queue so that
reconciliation is never blocked by, or rolled back because of, delivery.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import queue
import threading

logger = logging.getLogger(__name__)

EVENT_ZONE_ASSIGNED = 'driver_zone_assigned'
EVENT_ZONE_UNASSIGNED = 'driver_zone_unassigned'

_TITLES = {
    EVENT_ZONE_ASSIGNED: "You've been assigned to a zone",
    EVENT_ZONE_UNASSIGNED: "You've been unassigned from a zone",
}


@dataclass(frozen=True)
class ZoneNotification:
    tenant_id: str
    driver_id: str
    zone_name: str
    assigned: bool
    zone_feature_id: Optional[str] = None

    @property
    def event(self):
        return EVENT_ZONE_ASSIGNED if self.assigned else EVENT_ZONE_UNASSIGNED

    @property
    def title(self):
        return _TITLES[self.event]

    @property
    def message(self):
        if self.assigned:
            return 'You\'ve been assigned to zone "{}".'.format(self.zone_name)
        return 'You\'ve been unassigned from zone "{}".'.format(self.zone_name)


class NotificationDispatcher:
    """Queue hand-off for zone gained/lost events

    With NOTIFICATIONS_ASYNC off (tests), events are delivered inline but
    failures are still swallowed.
    """

    def __init__(self, app=None):
        self.app = None
        self._queue = queue.Queue()
        self._worker = None
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions['zone_notifications'] = self

    def notify(self, tenant_id, driver_id, zone_name, assigned, zone_feature_id=None):
        """Queue a zone change for a driver. Never raises."""
        try:
            event = ZoneNotification(tenant_id, driver_id, zone_name, bool(assigned), zone_feature_id)

            if not self.app.config.get('NOTIFICATIONS_ASYNC', True):
                self._deliver(event)
                return

            self._ensure_worker()
            self._queue.put(event)
            logger.debug("Zone notification queued for driver %s: %s", driver_id, event.event)
        except Exception:
            logger.exception("Failed to queue zone notification for driver %s", driver_id)

    def join(self):
        """Block until every queued event has been handled"""
        self._queue.join()

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run,
                    name='zone-notifications',
                    daemon=True,
                )
                self._worker.start()

    def _run(self):
        while True:
            event = self._queue.get()
            try:
                with self.app.app_context():
                    self._deliver(event)
            except Exception:
                logger.exception("Zone notification worker failed on %s", event)
            finally:
                self._queue.task_done()

    def _deliver(self, event):
        """Write the in-app notification. Never raises."""
        from zone_dispatch import db
        from zone_dispatch.models import Notification

        try:
            Notification.create_notification(
                tenant_id=event.tenant_id,
                user_id=event.driver_id,
                notification_type=event.event,
                title=event.title,
                message=event.message,
                related_entity_type='zones',
                related_entity_id=event.zone_feature_id,
            )
            db.session.commit()
            logger.info("Zone notification sent to driver %s: %s (%s)",
                        event.driver_id, event.event, event.zone_name)
        except Exception:
            db.session.rollback()
            logger.exception("Failed to deliver zone notification to driver %s", event.driver_id)


def dispatch_zone_changes(dispatcher, tenant_id, changes):
    """Fan a list of ZoneChange deltas out to the dispatcher. Never raises."""
    for change in changes:
        dispatcher.notify(tenant_id, change.driver_id, change.zone_name, change.assigned,
                          zone_feature_id=change.zone_feature_id)
