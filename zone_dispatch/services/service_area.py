"""
Service area and zone override operations.

These are the tenant-scoped entry points the API and CLI call. Each one
validates its input before touching anything, commits its own write, then
runs a reconciliation sweep over the affected orders.
"""
from dataclasses import dataclass, field
from datetime import date
import logging

from zone_dispatch import db
from zone_dispatch.errors import NotFoundError, OverrideValidationError
from zone_dispatch.extensions import notification_dispatcher
from zone_dispatch.models import ActivityLog, Location, User, ZoneDriverOverride
from zone_dispatch.services.geofencing import ServiceAreaSnapshot
from zone_dispatch.services.notifications import dispatch_zone_changes
from zone_dispatch.services.overrides import select_override
from zone_dispatch.services.reconciler import ReconcileScope, reconcile_location
from zone_dispatch.services.zone_diff import diff_zone_maps
from zone_dispatch.utils.helpers import parse_date

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500


@dataclass
class ServiceAreaUpdateResult:
    version: int
    reconcile: object
    changes: list = field(default_factory=list)

    @property
    def reassigned_count(self):
        return self.reconcile.reassigned_count


def get_location(tenant_id, location_id):
    """Active location of a tenant, or NotFoundError"""
    location = Location.for_tenant(tenant_id).filter(
        Location.id == location_id,
        Location.is_active.is_(True),
    ).first()

    if location is None:
        raise NotFoundError('Location not found')
    return location


def update_service_area(tenant_id, location_id, feature_collection, actor_id=None):
    """
    Replace a location's zones, reassign its orders and notify drivers

    Args:
        tenant_id: Caller's tenant
        location_id: Location being edited
        feature_collection (dict): The complete new zone set as GeoJSON
        actor_id: User making the change

    Returns:
        ServiceAreaUpdateResult

    Raises:
        ServiceAreaValidationError: Malformed collection, nothing saved
        NotFoundError: Unknown location for this tenant
    """
    location = get_location(tenant_id, location_id)
    new_snapshot = ServiceAreaSnapshot.from_feature_collection(feature_collection)

    old_snapshot = location.snapshot()
    new_snapshot = location.replace_service_area(new_snapshot)

    ActivityLog.log_action(
        tenant_id=tenant_id,
        entity_type='locations',
        entity_id=location.id,
        action='service_area_updated',
        user_id=actor_id,
        old_values={'version': old_snapshot.version, 'zones': len(old_snapshot)},
        new_values={'version': new_snapshot.version, 'zones': len(new_snapshot)},
    )
    db.session.commit()

    logger.info("Location %s service area saved as v%s (%d zones)",
                location.id, new_snapshot.version, len(new_snapshot))

    # The diff does not depend on the sweep, so drivers hear about it first
    changes = diff_zone_maps(old_snapshot, new_snapshot)
    dispatch_zone_changes(notification_dispatcher, tenant_id, changes)

    result = reconcile_location(location, new_snapshot, actor_id=actor_id)

    return ServiceAreaUpdateResult(
        version=new_snapshot.version,
        reconcile=result,
        changes=changes,
    )


def reconcile(tenant_id, location_id, actor_id=None):
    """Full sweep against the stored service area"""
    location = get_location(tenant_id, location_id)
    return reconcile_location(location, location.snapshot(), actor_id=actor_id)


def list_zone_overrides(tenant_id, location_id, active_on=None):
    """
    Overrides of a location, newest first

    With ``active_on``, only overrides covering that date are returned and
    each is paired with whether it is the one in force for its zone.

    Returns:
        list[tuple[ZoneDriverOverride, bool]]
    """
    location = get_location(tenant_id, location_id)

    query = ZoneDriverOverride.for_tenant(tenant_id).filter(
        ZoneDriverOverride.location_id == location.id,
    )
    if active_on is None:
        overrides = query.order_by(
            ZoneDriverOverride.created_at.desc(),
            ZoneDriverOverride.sequence.desc(),
        ).all()
        return [(override, False) for override in overrides]

    overrides = query.filter(
        ZoneDriverOverride.start_date <= active_on,
        ZoneDriverOverride.end_date >= active_on,
    ).order_by(
        ZoneDriverOverride.created_at.asc(),
        ZoneDriverOverride.sequence.asc(),
    ).all()

    by_zone = {}
    for override in overrides:
        by_zone.setdefault(override.zone_feature_id, []).append(override)
    in_force = {select_override(group, active_on) for group in by_zone.values()}

    overrides.reverse()
    return [(override, override in in_force) for override in overrides]


def _require_date(value, field_name):
    if isinstance(value, date):
        return value
    parsed = parse_date(value) if isinstance(value, str) else None
    if parsed is None:
        raise OverrideValidationError(f'{field_name} must be a date (YYYY-MM-DD)')
    return parsed


def create_zone_override(tenant_id, location_id, zone_feature_id, driver_id,
                         start_date, end_date, reason=None, actor_id=None):
    """
    Put a substitute driver on a zone for a date window

    Returns:
        tuple[ZoneDriverOverride, ReconcileResult]

    Raises:
        OverrideValidationError: Missing or inconsistent fields, nothing saved
        NotFoundError: Unknown location for this tenant
    """
    location = get_location(tenant_id, location_id)

    if not zone_feature_id or not isinstance(zone_feature_id, str):
        raise OverrideValidationError('zone_feature_id is required')
    if not driver_id or not isinstance(driver_id, str):
        raise OverrideValidationError('driver_id is required')

    start_date = _require_date(start_date, 'start_date')
    end_date = _require_date(end_date, 'end_date')
    if start_date > end_date:
        raise OverrideValidationError('start_date must be on or before end_date')

    if reason is not None:
        if not isinstance(reason, str):
            raise OverrideValidationError('reason must be a string')
        reason = reason.strip()[:MAX_REASON_LENGTH] or None

    if location.snapshot().zone_by_feature_id(zone_feature_id) is None:
        raise OverrideValidationError('Zone not found in service area')

    if User.find_active_driver(tenant_id, driver_id) is None:
        raise OverrideValidationError('Driver not found or inactive')

    override = ZoneDriverOverride(
        tenant_id=tenant_id,
        location_id=location.id,
        zone_feature_id=zone_feature_id,
        driver_id=driver_id,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        created_by=actor_id,
    )
    db.session.add(override)
    db.session.flush()

    ActivityLog.log_action(
        tenant_id=tenant_id,
        entity_type='zone_driver_overrides',
        entity_id=override.id,
        action='created',
        user_id=actor_id,
        new_values={
            'zone_feature_id': zone_feature_id,
            'driver_id': driver_id,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
        },
    )
    db.session.commit()

    logger.info("Override %s: driver %s covers zone %s from %s to %s",
                override.id, driver_id, zone_feature_id, start_date, end_date)

    scope = ReconcileScope(zone_feature_id, start_date, end_date)
    result = reconcile_location(location, location.snapshot(), scope=scope, actor_id=actor_id)
    return override, result


def delete_zone_override(tenant_id, location_id, override_id, actor_id=None):
    """
    Remove an override and re-resolve the orders it covered

    Returns:
        ReconcileResult

    Raises:
        NotFoundError: Unknown location or override for this tenant
    """
    location = get_location(tenant_id, location_id)

    override = ZoneDriverOverride.for_tenant(tenant_id).filter(
        ZoneDriverOverride.id == override_id,
        ZoneDriverOverride.location_id == location.id,
    ).first()
    if override is None:
        raise NotFoundError('Override not found')

    scope = ReconcileScope(override.zone_feature_id, override.start_date, override.end_date)

    ActivityLog.log_action(
        tenant_id=tenant_id,
        entity_type='zone_driver_overrides',
        entity_id=override.id,
        action='deleted',
        user_id=actor_id,
        old_values={
            'zone_feature_id': override.zone_feature_id,
            'driver_id': override.driver_id,
            'start_date': override.start_date.isoformat(),
            'end_date': override.end_date.isoformat(),
        },
    )
    override.soft_delete()
    db.session.commit()

    logger.info("Override %s deleted; re-resolving zone %s", override_id, scope.zone_feature_id)

    return reconcile_location(location, location.snapshot(), scope=scope, actor_id=actor_id)
