"""
Route consistency repair after an order changes driver.

Planned routes lose the order's stops and are dropped once empty.
Routes already in progress or completed are left exactly as they are:
a driver on the road keeps the manifest they started with.
"""
from dataclasses import dataclass, field
import logging

from zone_dispatch import db
from zone_dispatch.models import DriverRoute, RouteStop

logger = logging.getLogger(__name__)


@dataclass
class RouteRepairResult:
    stops_removed: list = field(default_factory=list)
    routes_deleted: list = field(default_factory=list)


def repair_routes_for_order(order):
    """
    Remove an order's stops from planned routes

    Does not commit; the caller owns the transaction so the driver change
    and the route repair land together.

    Returns:
        RouteRepairResult: ids of deleted stops and routes
    """
    result = RouteRepairResult()

    stale_stops = RouteStop.query.join(RouteStop.route).filter(
        RouteStop.order_id == order.id,
        DriverRoute.status == 'planned',
    ).all()

    touched = []
    for stop in stale_stops:
        route = stop.route
        result.stops_removed.append(stop.id)

        if route.optimized_order:
            route.optimized_order = [sid for sid in route.optimized_order if sid != stop.id]

        # delete-orphan cascade removes the stop row on flush
        route.stops.remove(stop)
        if route not in touched:
            touched.append(route)

    for route in touched:
        if not route.stops:
            result.routes_deleted.append(route.id)
            db.session.delete(route)

    if result.stops_removed:
        logger.debug(
            "Order %s: removed %d planned stop(s), deleted %d empty route(s)",
            order.id, len(result.stops_removed), len(result.routes_deleted),
        )

    return result
