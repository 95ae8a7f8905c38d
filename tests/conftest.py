"""
Pytest configuration and fixtures for the zone dispatch tests
"""
import itertools
from datetime import date
from types import SimpleNamespace

import pytest

from zone_dispatch import create_app, db
from zone_dispatch.models import (
    DriverRoute,
    Location,
    Order,
    RouteStop,
    Tenant,
    User,
    ZoneDriverOverride,
)
from zone_dispatch.utils import generate_token

PICKUP_DATE = date(2026, 11, 2)


def square(west, south, east, north):
    """Polygon coordinates for an axis-aligned box, GeoJSON [lng, lat] order"""
    return [[[west, south], [east, south], [east, north], [west, north], [west, south]]]


def zone_feature(feature_id, name, driver_id=None, coordinates=None, geometry_type='Polygon'):
    return {
        'type': 'Feature',
        'id': feature_id,
        'properties': {'name': name, 'driverId': driver_id},
        'geometry': {'type': geometry_type, 'coordinates': coordinates},
    }


def feature_collection(*features):
    return {'type': 'FeatureCollection', 'features': list(features)}


@pytest.fixture
def geo():
    """Two stacked zones over South Florida and points inside and outside them"""
    return SimpleNamespace(
        NORTH=square(-80.30, 26.00, -80.10, 26.20),
        SOUTH=square(-80.30, 25.80, -80.10, 26.00),
        NORTH_POINT=(26.10, -80.20),
        SOUTH_POINT=(25.90, -80.20),
        OUTSIDE_POINT=(27.50, -81.50),
        square=square,
        feature=zone_feature,
        collection=feature_collection,
    )


@pytest.fixture
def app():
    """Create application instance with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def tenant_factory(app):
    counter = itertools.count(1)

    def _create_tenant(**kwargs):
        n = next(counter)
        defaults = {
            'name': f'Fresh Fold {n}',
            'slug': f'fresh-fold-{n}',
            'status': 'active',
        }
        defaults.update(kwargs)

        tenant = Tenant(**defaults)
        db.session.add(tenant)
        db.session.commit()
        return tenant

    return _create_tenant


@pytest.fixture
def tenant(tenant_factory):
    return tenant_factory()


@pytest.fixture
def user_factory(app, tenant):
    """Factory for creating staff users"""
    counter = itertools.count(1)

    def _create_user(**kwargs):
        n = next(counter)
        defaults = {
            'email': f'staff{n}@example.com',
            'first_name': 'Test',
            'last_name': f'Staff{n}',
            'tenant_id': tenant.id,
            'role': 'driver',
            'status': 'active',
        }
        defaults.update(kwargs)

        user = User(**defaults)
        db.session.add(user)
        db.session.commit()
        return user

    return _create_user


@pytest.fixture
def owner(user_factory):
    return user_factory(role='owner', first_name='Olive')


@pytest.fixture
def manager(user_factory):
    return user_factory(role='manager', first_name='Morgan')


@pytest.fixture
def driver_a(user_factory):
    return user_factory(first_name='Avery')


@pytest.fixture
def driver_b(user_factory):
    return user_factory(first_name='Blake')


@pytest.fixture
def driver_c(user_factory):
    return user_factory(first_name='Casey')


@pytest.fixture
def location(app, tenant, geo, driver_a, driver_b):
    """Location with zones North (driver A) and South (driver B)"""
    location = Location(
        tenant_id=tenant.id,
        name='Downtown',
        lat=26.0,
        lng=-80.2,
        service_area=feature_collection(
            zone_feature('north', 'North', driver_a.id, geo.NORTH),
            zone_feature('south', 'South', driver_b.id, geo.SOUTH),
        ),
        service_area_version=1,
    )
    db.session.add(location)
    db.session.commit()
    return location


@pytest.fixture
def order_factory(app, location):
    """Factory for creating orders at the test location"""
    counter = itertools.count(1)

    def _create_order(point=None, driver=None, **kwargs):
        lat, lng = point if point is not None else (None, None)
        defaults = {
            'tenant_id': location.tenant_id,
            'location_id': location.id,
            'order_number': f'ORD-{next(counter):04d}',
            'status': 'confirmed',
            'pickup_date': PICKUP_DATE,
            'pickup_lat': lat,
            'pickup_lng': lng,
            'driver_id': driver.id if driver is not None else None,
        }
        defaults.update(kwargs)

        order = Order(**defaults)
        db.session.add(order)
        db.session.commit()
        return order

    return _create_order


@pytest.fixture
def route_factory(app, location):
    """Factory for creating a driver route with one stop per order"""

    def _create_route(driver, orders, status='planned', route_date=PICKUP_DATE):
        route = DriverRoute(
            tenant_id=location.tenant_id,
            location_id=location.id,
            driver_id=driver.id,
            route_date=route_date,
            status=status,
        )
        for sequence, order in enumerate(orders, start=1):
            route.stops.append(RouteStop(
                order_id=order.id,
                stop_type='pickup',
                sequence=sequence,
                lat=order.pickup_lat,
                lng=order.pickup_lng,
            ))
        db.session.add(route)
        db.session.flush()
        route.optimized_order = [stop.id for stop in route.stops]
        db.session.commit()
        return route

    return _create_route


@pytest.fixture
def override_factory(app, location, owner):
    """Factory for inserting zone driver overrides directly"""

    def _create_override(driver, zone_feature_id='north', start_date=PICKUP_DATE,
                         end_date=PICKUP_DATE, **kwargs):
        override = ZoneDriverOverride(
            tenant_id=location.tenant_id,
            location_id=location.id,
            zone_feature_id=zone_feature_id,
            driver_id=driver.id,
            start_date=start_date,
            end_date=end_date,
            created_by=owner.id,
            **kwargs
        )
        db.session.add(override)
        db.session.commit()
        return override

    return _create_override


@pytest.fixture
def auth_headers(app):
    """Build JSON request headers with a JWT for a user"""

    def _headers(user):
        token = generate_token(user.id, user.tenant_id, user.role)
        return {
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json'
        }

    return _headers
