"""
Tests for the reassignment reconciler
"""
from datetime import timedelta

import pytest

from zone_dispatch import db
from zone_dispatch.models import ActivityLog, DriverRoute, Location, Order
from zone_dispatch.services import reconciler
from zone_dispatch.services.reconciler import (
    ReconcileScope,
    eligible_orders,
    reconcile_location,
    resolve_driver_for_pickup,
)

from conftest import PICKUP_DATE


def redraw(location, geo, north_driver, south_driver=None):
    """Store new zones without running the sweep"""
    location.service_area = geo.collection(
        geo.feature('north', 'North', north_driver, geo.NORTH),
        geo.feature('south', 'South', south_driver, geo.SOUTH),
    )
    db.session.commit()
    return location.snapshot()


def driver_of(order_id):
    return db.session.get(Order, order_id).driver_id


class TestReconcileLocation:
    """Full sweeps over a location"""

    def test_moves_order_to_zone_default(self, location, geo, driver_a, driver_b, order_factory):
        order = order_factory(geo.NORTH_POINT, driver_b)

        result = reconcile_location(location, location.snapshot())

        assert result.reassigned_count == 1
        assert result.reassignments[0].order_id == order.id
        assert result.reassignments[0].old_driver_id == driver_b.id
        assert result.reassignments[0].new_driver_id == driver_a.id
        assert driver_of(order.id) == driver_a.id

    def test_second_run_is_a_no_op(self, location, geo, driver_a, driver_b, order_factory):
        order_factory(geo.NORTH_POINT, driver_b)
        order_factory(geo.SOUTH_POINT, driver_a)
        order_factory(geo.NORTH_POINT)

        first = reconcile_location(location, location.snapshot())
        second = reconcile_location(location, location.snapshot())

        assert first.reassigned_count == 3
        assert second.reassigned_count == 0
        assert second.skipped['unchanged'] == 3

    def test_override_takes_precedence_over_default(self, location, geo, driver_a, driver_c,
                                                    order_factory, override_factory):
        covered = order_factory(geo.NORTH_POINT, driver_a)
        later = order_factory(geo.NORTH_POINT, driver_a, pickup_date=PICKUP_DATE + timedelta(days=1))
        override_factory(driver_c)

        result = reconcile_location(location, location.snapshot())

        assert result.reassigned_count == 1
        assert driver_of(covered.id) == driver_c.id
        assert driver_of(later.id) == driver_a.id

    def test_override_on_other_zone_does_not_apply(self, location, geo, driver_b, driver_c,
                                                   order_factory, override_factory):
        order = order_factory(geo.SOUTH_POINT, driver_b)
        override_factory(driver_c, zone_feature_id='north')

        result = reconcile_location(location, location.snapshot())

        assert result.reassigned_count == 0
        assert driver_of(order.id) == driver_b.id

    def test_order_without_pickup_date_uses_default(self, location, geo, driver_a, driver_b,
                                                    driver_c, order_factory, override_factory):
        order = order_factory(geo.NORTH_POINT, driver_b, pickup_date=None)
        override_factory(driver_c)

        reconcile_location(location, location.snapshot())

        assert driver_of(order.id) == driver_a.id

    def test_outside_every_zone_keeps_driver(self, location, geo, driver_b, order_factory):
        order = order_factory(geo.OUTSIDE_POINT, driver_b)

        result = reconcile_location(location, location.snapshot())

        assert result.reassigned_count == 0
        assert result.skipped['no_zone'] == 1
        assert driver_of(order.id) == driver_b.id

    def test_order_without_pickup_point_is_skipped(self, location, driver_b, order_factory):
        order = order_factory(None, driver_b)

        result = reconcile_location(location, location.snapshot())

        assert result.skipped['no_pickup_point'] == 1
        assert driver_of(order.id) == driver_b.id

    def test_empty_default_unassigns(self, location, geo, driver_a, order_factory):
        order = order_factory(geo.NORTH_POINT, driver_a)
        snapshot = redraw(location, geo, north_driver=None)

        result = reconcile_location(location, snapshot)

        assert result.reassigned_count == 1
        assert result.reassignments[0].new_driver_id is None
        assert driver_of(order.id) is None

    @pytest.mark.parametrize('status', ['pending', 'picked_up', 'processing', 'delivered', 'cancelled'])
    def test_frozen_statuses_are_not_touched(self, location, geo, driver_b, order_factory, status):
        order = order_factory(geo.NORTH_POINT, driver_b, status=status)

        result = reconcile_location(location, location.snapshot())

        assert result.reassigned_count == 0
        assert driver_of(order.id) == driver_b.id

    @pytest.mark.parametrize('status', ['confirmed', 'ready', 'out_for_delivery'])
    def test_eligible_statuses_are_swept(self, location, geo, driver_a, driver_b, order_factory, status):
        order = order_factory(geo.NORTH_POINT, driver_b, status=status)

        reconcile_location(location, location.snapshot())

        assert driver_of(order.id) == driver_a.id

    def test_other_locations_are_not_swept(self, location, geo, driver_b, order_factory):
        other_location = Location(tenant_id=location.tenant_id, name='Uptown')
        db.session.add(other_location)
        db.session.commit()
        elsewhere = order_factory(geo.NORTH_POINT, driver_b, location_id=other_location.id)

        reconcile_location(location, location.snapshot())

        assert driver_of(elsewhere.id) == driver_b.id


class TestInvalidDriverSafety:
    """A bad candidate driver never replaces a valid assignment"""

    def test_inactive_driver_is_skipped(self, location, geo, driver_b, user_factory, order_factory):
        inactive = user_factory(status='inactive')
        order = order_factory(geo.NORTH_POINT, driver_b)
        snapshot = redraw(location, geo, north_driver=inactive.id)

        result = reconcile_location(location, snapshot)

        assert result.reassigned_count == 0
        assert result.skipped['invalid_driver'] == 1
        assert driver_of(order.id) == driver_b.id

    def test_driver_from_other_tenant_is_skipped(self, location, geo, driver_b, tenant_factory,
                                                 user_factory, order_factory):
        outsider = user_factory(tenant_id=tenant_factory().id)
        order = order_factory(geo.NORTH_POINT, driver_b)
        snapshot = redraw(location, geo, north_driver=outsider.id)

        reconcile_location(location, snapshot)

        assert driver_of(order.id) == driver_b.id

    def test_non_driver_role_is_skipped(self, location, geo, driver_b, manager, order_factory):
        order = order_factory(geo.NORTH_POINT, driver_b)
        snapshot = redraw(location, geo, north_driver=manager.id)

        reconcile_location(location, snapshot)

        assert driver_of(order.id) == driver_b.id

    def test_unknown_driver_id_is_skipped(self, location, geo, driver_b, order_factory):
        order = order_factory(geo.NORTH_POINT, driver_b)
        snapshot = redraw(location, geo, north_driver='no-such-driver')

        reconcile_location(location, snapshot)

        assert driver_of(order.id) == driver_b.id

    def test_soft_deleted_driver_is_skipped(self, location, geo, driver_b, user_factory, order_factory):
        gone = user_factory()
        gone.soft_delete()
        db.session.commit()
        order = order_factory(geo.NORTH_POINT, driver_b)
        snapshot = redraw(location, geo, north_driver=gone.id)

        reconcile_location(location, snapshot)

        assert driver_of(order.id) == driver_b.id


class TestScopedSweep:
    """Sweeps narrowed to one zone and date window"""

    def test_only_orders_in_zone_and_window(self, location, geo, driver_a, driver_b, order_factory):
        in_scope = order_factory(geo.NORTH_POINT, driver_b)
        other_zone = order_factory(geo.SOUTH_POINT, driver_a)
        other_day = order_factory(geo.NORTH_POINT, driver_b, pickup_date=PICKUP_DATE + timedelta(days=3))
        scope = ReconcileScope('north', PICKUP_DATE, PICKUP_DATE + timedelta(days=1))

        result = reconcile_location(location, location.snapshot(), scope=scope)

        assert [r.order_id for r in result.reassignments] == [in_scope.id]
        assert result.skipped['out_of_scope'] == 1
        assert driver_of(other_zone.id) == driver_a.id
        assert driver_of(other_day.id) == driver_b.id

    def test_eligible_orders_respects_window(self, location, geo, order_factory):
        inside = order_factory(geo.NORTH_POINT)
        order_factory(geo.NORTH_POINT, pickup_date=PICKUP_DATE - timedelta(days=1))
        order_factory(geo.NORTH_POINT, pickup_date=None)
        scope = ReconcileScope('north', PICKUP_DATE, PICKUP_DATE)

        assert [o.id for o in eligible_orders(location, scope)] == [inside.id]
        assert len(eligible_orders(location)) == 3


class TestResolveDriverForPickup:
    """Driver a new order starts with"""

    def test_zone_default_driver(self, location, geo, driver_a, driver_b):
        assert resolve_driver_for_pickup(location, *geo.NORTH_POINT, PICKUP_DATE) == driver_a.id
        assert resolve_driver_for_pickup(location, *geo.SOUTH_POINT, PICKUP_DATE) == driver_b.id

    def test_override_driver_on_covered_date(self, location, geo, driver_a, driver_c, override_factory):
        override_factory(driver_c)

        assert resolve_driver_for_pickup(location, *geo.NORTH_POINT, PICKUP_DATE) == driver_c.id
        next_day = PICKUP_DATE + timedelta(days=1)
        assert resolve_driver_for_pickup(location, *geo.NORTH_POINT, next_day) == driver_a.id

    def test_outside_every_zone(self, location, geo):
        assert resolve_driver_for_pickup(location, *geo.OUTSIDE_POINT, PICKUP_DATE) is None

    def test_zone_without_driver(self, location, geo, driver_b):
        snapshot = redraw(location, geo, north_driver=None, south_driver=driver_b.id)

        assert resolve_driver_for_pickup(location, *geo.NORTH_POINT, PICKUP_DATE, snapshot=snapshot) is None

    def test_inactive_driver(self, location, geo, driver_b, user_factory):
        inactive = user_factory(status='inactive')
        redraw(location, geo, north_driver=inactive.id, south_driver=driver_b.id)

        assert resolve_driver_for_pickup(location, *geo.NORTH_POINT, PICKUP_DATE) is None
        assert resolve_driver_for_pickup(location, *geo.SOUTH_POINT, PICKUP_DATE) == driver_b.id


class TestReassignmentSideEffects:

    def test_reassignment_repairs_old_drivers_route(self, location, geo, driver_a, driver_b,
                                                    order_factory, route_factory):
        order = order_factory(geo.NORTH_POINT, driver_b)
        route = route_factory(driver_b, [order])
        route_id = route.id

        result = reconcile_location(location, location.snapshot())

        assert result.reassignments[0].stops_removed == 1
        assert result.reassignments[0].routes_deleted == 1
        assert db.session.get(DriverRoute, route_id) is None

    def test_reassignment_is_audited(self, location, geo, driver_a, driver_b, owner, order_factory):
        order = order_factory(geo.NORTH_POINT, driver_b)

        reconcile_location(location, location.snapshot(), actor_id=owner.id)

        entry = ActivityLog.query.filter_by(entity_id=order.id, action='driver_reassigned').one()
        assert entry.user_id == owner.id
        assert entry.old_values == {'driver_id': driver_b.id}
        assert entry.new_values['driver_id'] == driver_a.id
        assert entry.new_values['zone_feature_id'] == 'north'

    def test_failure_keeps_earlier_orders_and_rerun_finishes(self, location, geo, driver_a, driver_b,
                                                             order_factory, monkeypatch):
        first = order_factory(geo.NORTH_POINT, driver_b)
        second = order_factory(geo.NORTH_POINT, driver_b)
        real_repair = reconciler.repair_routes_for_order

        def flaky_repair(order):
            if order.id == second.id:
                raise RuntimeError('database went away')
            return real_repair(order)

        monkeypatch.setattr(reconciler, 'repair_routes_for_order', flaky_repair)

        with pytest.raises(RuntimeError):
            reconcile_location(location, location.snapshot())

        assert driver_of(first.id) == driver_a.id
        assert driver_of(second.id) == driver_b.id

        monkeypatch.setattr(reconciler, 'repair_routes_for_order', real_repair)
        rerun = reconcile_location(location, location.snapshot())

        assert [r.order_id for r in rerun.reassignments] == [second.id]
        assert driver_of(second.id) == driver_a.id
