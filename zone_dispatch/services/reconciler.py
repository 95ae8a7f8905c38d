"""
Reassignment reconciler.

Walks a location's in-flight orders and puts each one on the driver its
pickup zone calls for: the zone's date override when one covers the pickup
date, otherwise the zone's default driver.

The sweep is sequential and eventually consistent. Every changed order is
committed together with its route repair before the next order is looked
at, so a crash mid-sweep leaves finished orders fully consistent and the
rest untouched. Re-running the sweep is always safe: an order already on
its correct driver is a no-op.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Optional
import logging

from flask import current_app

from zone_dispatch import db
from zone_dispatch.models import ActivityLog, ELIGIBLE_STATUSES, Order, User
from zone_dispatch.services.overrides import find_override_driver_id
from zone_dispatch.services.route_repair import repair_routes_for_order

logger = logging.getLogger(__name__)

# Skip reasons
SKIP_NO_PICKUP_POINT = 'no_pickup_point'
SKIP_NO_ZONE = 'no_zone'
SKIP_OUT_OF_SCOPE = 'out_of_scope'
SKIP_UNCHANGED = 'unchanged'
SKIP_INVALID_DRIVER = 'invalid_driver'


@dataclass(frozen=True)
class ReconcileScope:
    """Narrows a sweep to one zone and an inclusive pickup date window"""

    zone_feature_id: str
    start_date: date
    end_date: date


@dataclass(frozen=True)
class Reassignment:
    order_id: str
    old_driver_id: Optional[str]
    new_driver_id: Optional[str]
    stops_removed: int = 0
    routes_deleted: int = 0

    def to_dict(self):
        return {
            'order_id': self.order_id,
            'old_driver_id': self.old_driver_id,
            'new_driver_id': self.new_driver_id,
            'stops_removed': self.stops_removed,
            'routes_deleted': self.routes_deleted,
        }


@dataclass
class ReconcileResult:
    reassignments: list = field(default_factory=list)
    skipped: Counter = field(default_factory=Counter)

    @property
    def reassigned_count(self):
        return len(self.reassignments)


def eligible_orders(location, scope=None):
    """Orders of a location whose driver may still change"""
    statuses = current_app.config.get('ELIGIBLE_ORDER_STATUSES', ELIGIBLE_STATUSES)

    query = Order.for_tenant(location.tenant_id).filter(
        Order.location_id == location.id,
        Order.status.in_(statuses),
    )

    if scope is not None:
        query = query.filter(
            Order.pickup_date >= scope.start_date,
            Order.pickup_date <= scope.end_date,
        )

    return query.order_by(Order.created_at.asc(), Order.id.asc()).all()


def resolve_candidate_driver(location, zone, pickup_date):
    """Override driver for the pickup date if any, else the zone default"""
    override_driver_id = find_override_driver_id(location.id, zone.feature_id, pickup_date)
    if override_driver_id is not None:
        return override_driver_id
    return zone.default_driver_id


def resolve_driver_for_pickup(location, lat, lng, pickup_date, snapshot=None):
    """
    Driver a new order at this pickup point should start with

    Args:
        location (Location): Location taking the order
        lat, lng: Geocoded pickup point
        pickup_date: Requested pickup date, matched against overrides
        snapshot (ServiceAreaSnapshot): Zones to use; defaults to the stored ones

    Returns:
        str: Driver id, or None when no zone covers the point, the zone has
            no driver, or the chosen driver is not an active driver of the tenant
    """
    if snapshot is None:
        snapshot = location.snapshot()

    zone = snapshot.find_zone(lat, lng)
    if zone is None:
        return None

    candidate = resolve_candidate_driver(location, zone, pickup_date)
    if User.find_active_driver(location.tenant_id, candidate) is None:
        return None
    return candidate


def reconcile_location(location, snapshot, scope=None, actor_id=None):
    """
    Bring every eligible order of a location onto its zone's driver

    Args:
        location (Location): Location whose orders are swept
        snapshot (ServiceAreaSnapshot): Zones to resolve pickups against
        scope (ReconcileScope): Optional zone/date window restriction
        actor_id: User recorded in the audit trail

    Returns:
        ReconcileResult: Reassignments made and skip counts by reason
    """
    result = ReconcileResult()
    valid_drivers = {}

    for order in eligible_orders(location, scope):
        if not order.has_pickup_point:
            result.skipped[SKIP_NO_PICKUP_POINT] += 1
            continue

        zone = snapshot.find_zone(order.pickup_lat, order.pickup_lng)
        if zone is None:
            # Outside every zone keeps the current driver; it is not an unassignment.
            result.skipped[SKIP_NO_ZONE] += 1
            continue

        if scope is not None and zone.feature_id != scope.zone_feature_id:
            result.skipped[SKIP_OUT_OF_SCOPE] += 1
            continue

        candidate = resolve_candidate_driver(location, zone, order.pickup_date)
        if candidate == order.driver_id:
            result.skipped[SKIP_UNCHANGED] += 1
            continue

        if candidate is not None:
            if candidate not in valid_drivers:
                valid_drivers[candidate] = User.find_active_driver(location.tenant_id, candidate) is not None
            if not valid_drivers[candidate]:
                logger.debug(
                    "Order %s: candidate driver %s is not an active driver of tenant %s",
                    order.id, candidate, location.tenant_id,
                )
                result.skipped[SKIP_INVALID_DRIVER] += 1
                continue

        result.reassignments.append(_reassign(order, candidate, zone, actor_id))

    logger.info(
        "Reconciled location %s (service area v%s%s): %d reassigned, skipped %s",
        location.id, snapshot.version,
        ', zone {}'.format(scope.zone_feature_id) if scope else '',
        result.reassigned_count, dict(result.skipped),
    )
    return result


def _reassign(order, driver_id, zone, actor_id):
    """Move one order to a new driver and repair its routes in one commit"""
    order_id = order.id
    old_driver_id = order.driver_id

    try:
        order.driver_id = driver_id
        repair = repair_routes_for_order(order)

        ActivityLog.log_action(
            tenant_id=order.tenant_id,
            entity_type='orders',
            entity_id=order.id,
            action='driver_reassigned',
            user_id=actor_id,
            old_values={'driver_id': old_driver_id},
            new_values={
                'driver_id': driver_id,
                'zone_feature_id': zone.feature_id,
                'stops_removed': len(repair.stops_removed),
                'routes_deleted': len(repair.routes_deleted),
            },
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Reassignment of order %s failed; sweep stopped", order_id)
        raise

    logger.info("Order %s reassigned from %s to %s (zone %s)",
                order_id, old_driver_id, driver_id, zone.feature_id)

    return Reassignment(
        order_id=order_id,
        old_driver_id=old_driver_id,
        new_driver_id=driver_id,
        stops_removed=len(repair.stops_removed),
        routes_deleted=len(repair.routes_deleted),
    )
