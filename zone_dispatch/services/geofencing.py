"""
Geofencing utilities for driver zones.

A location's service area is a GeoJSON FeatureCollection of hand-drawn
Polygon / MultiPolygon zones, each optionally owned by a default driver.
This module validates that collection into an immutable snapshot and
answers "which zone contains this pickup point?".

Positions follow GeoJSON order: ``[lng, lat]``.
"""

from dataclasses import dataclass, field, replace
import copy
from typing import Optional, Tuple

from zone_dispatch.errors import ServiceAreaValidationError

# A ring is a sequence of (lng, lat) vertices, implicitly closed.
Ring = Tuple[Tuple[float, float], ...]
# A polygon is an exterior ring followed by zero or more hole rings.
PolygonRings = Tuple[Ring, ...]

GEOMETRY_TYPES = ('Polygon', 'MultiPolygon')

# Tolerance (in degrees) for treating a point as lying on a ring edge.
EDGE_EPSILON = 1e-12


# ---------------------------------------------------------------------------
# Zone and snapshot value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Zone:
    """One named delivery zone with an optional default driver."""

    feature_id: str
    name: str
    default_driver_id: Optional[str]
    geometry_type: str
    polygons: Tuple[PolygonRings, ...]
    bounds: Tuple[float, float, float, float]  # west, south, east, north
    # The feature as submitted, stored back verbatim (closing vertices, extra properties)
    source: Optional[dict] = field(default=None, compare=False, repr=False)

    @property
    def geometry(self):
        """GeoJSON geometry dict for this zone, rings closed."""
        rings = [[[[lng, lat] for lng, lat in ring + ring[:1]] for ring in polygon]
                 for polygon in self.polygons]
        if self.geometry_type == 'Polygon':
            return {'type': 'Polygon', 'coordinates': rings[0]}
        return {'type': 'MultiPolygon', 'coordinates': rings}

    def contains(self, lat, lng):
        """Return True if (lat, lng) is inside or on the edge of the zone.

        A MultiPolygon contains the point if any member polygon does.
        """
        west, south, east, north = self.bounds
        if lat < south or lat > north or lng < west or lng > east:
            return False

        return any(_polygon_contains(lng, lat, polygon) for polygon in self.polygons)

    def to_feature(self):
        if self.source is not None:
            return copy.deepcopy(self.source)

        return {
            'type': 'Feature',
            'id': self.feature_id,
            'properties': {
                'featureId': self.feature_id,
                'name': self.name,
                'driverId': self.default_driver_id,
            },
            'geometry': self.geometry,
        }


@dataclass(frozen=True)
class ServiceAreaSnapshot:
    """The complete, versioned zone set of a location.

    Always replaced as a whole; there is no per-zone patch.
    """

    zones: Tuple[Zone, ...] = ()
    version: int = 0

    def __iter__(self):
        return iter(self.zones)

    def __len__(self):
        return len(self.zones)

    @property
    def is_empty(self):
        return not self.zones

    @classmethod
    def from_feature_collection(cls, data, version=0):
        """Validate a GeoJSON FeatureCollection into a snapshot.

        ``None`` means no service area has been drawn yet.

        Raises:
            ServiceAreaValidationError: if the collection or any zone is malformed
        """
        if data is None:
            return cls(zones=(), version=version)

        if not isinstance(data, dict) or data.get('type') != 'FeatureCollection':
            raise ServiceAreaValidationError('Service area must be a GeoJSON FeatureCollection')

        features = data.get('features')
        if not isinstance(features, list):
            raise ServiceAreaValidationError('FeatureCollection.features must be a list')

        zones = tuple(_parse_feature(feature, index) for index, feature in enumerate(features))
        return cls(zones=zones, version=version)

    def to_feature_collection(self):
        return {
            'type': 'FeatureCollection',
            'features': [zone.to_feature() for zone in self.zones],
        }

    def with_version(self, version):
        return replace(self, version=version)

    def find_zone(self, lat, lng):
        return find_zone_for_point(lat, lng, self.zones)

    def zone_by_feature_id(self, feature_id):
        """First zone carrying ``feature_id``, or None."""
        for zone in self.zones:
            if zone.feature_id == feature_id:
                return zone
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_zone_for_point(lat, lng, zones):
    """Return the first zone (in list order) containing the point, or None.

    Overlapping zones are allowed; list order decides. Missing coordinates
    and points outside every zone both yield None, never an error.
    """
    if lat is None or lng is None:
        return None

    lat = float(lat)
    lng = float(lng)

    for zone in zones:
        if zone.contains(lat, lng):
            return zone

    return None


def is_point_in_service_area(lat, lng, snapshot):
    """Return True if the point is served by the location.

    A location that has not drawn any zones serves everywhere.
    """
    if snapshot is None or snapshot.is_empty:
        return True
    return find_zone_for_point(lat, lng, snapshot.zones) is not None


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------

def _parse_feature(feature, index):
    label = 'Feature {}'.format(index)

    if not isinstance(feature, dict) or feature.get('type') != 'Feature':
        raise ServiceAreaValidationError('{} is not a GeoJSON Feature'.format(label))

    properties = feature.get('properties') or {}
    if not isinstance(properties, dict):
        raise ServiceAreaValidationError('{} properties must be an object'.format(label))

    feature_id = feature.get('id')
    if feature_id is None or feature_id == '':
        feature_id = properties.get('featureId')
    if feature_id is None or feature_id == '':
        raise ServiceAreaValidationError('{} has no id'.format(label))
    feature_id = str(feature_id)

    name = properties.get('name')
    if name is not None and not isinstance(name, str):
        raise ServiceAreaValidationError('{} name must be a string'.format(label))
    name = (name or '').strip() or feature_id

    driver_id = properties.get('driverId')
    if driver_id is not None and not isinstance(driver_id, str):
        raise ServiceAreaValidationError('{} driverId must be a string'.format(label))
    driver_id = driver_id or None

    geometry = feature.get('geometry')
    if not isinstance(geometry, dict) or geometry.get('type') not in GEOMETRY_TYPES:
        raise ServiceAreaValidationError(
            '{} geometry must be a Polygon or MultiPolygon'.format(label)
        )

    geometry_type = geometry['type']
    coordinates = geometry.get('coordinates')
    if geometry_type == 'Polygon':
        polygons = (_parse_polygon(coordinates, label),)
    else:
        if not isinstance(coordinates, list) or not coordinates:
            raise ServiceAreaValidationError('{} MultiPolygon has no polygons'.format(label))
        polygons = tuple(_parse_polygon(polygon, label) for polygon in coordinates)

    return Zone(
        feature_id=feature_id,
        name=name,
        default_driver_id=driver_id,
        geometry_type=geometry_type,
        polygons=polygons,
        bounds=_bounds(polygons),
        source=copy.deepcopy(feature),
    )


def _parse_polygon(rings, label):
    if not isinstance(rings, list) or not rings:
        raise ServiceAreaValidationError('{} polygon has no rings'.format(label))
    return tuple(_parse_ring(ring, label) for ring in rings)


def _parse_ring(ring, label):
    if not isinstance(ring, list):
        raise ServiceAreaValidationError('{} ring must be a list of positions'.format(label))

    vertices = [_parse_position(position, label) for position in ring]

    # GeoJSON rings repeat the first vertex at the end; keep them implicitly closed.
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]

    if len(vertices) < 3:
        raise ServiceAreaValidationError('{} ring needs at least 3 distinct vertices'.format(label))

    return tuple(vertices)


def _parse_position(position, label):
    if not isinstance(position, (list, tuple)) or len(position) < 2:
        raise ServiceAreaValidationError('{} has a malformed position'.format(label))

    lng, lat = position[0], position[1]
    for value in (lng, lat):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ServiceAreaValidationError('{} has a non-numeric coordinate'.format(label))

    if not -180.0 <= lng <= 180.0 or not -90.0 <= lat <= 90.0:
        raise ServiceAreaValidationError('{} has a coordinate out of range'.format(label))

    return (float(lng), float(lat))


def _bounds(polygons):
    # Holes sit inside their exterior ring, so exterior rings bound the zone.
    exteriors = [vertex for polygon in polygons for vertex in polygon[0]]
    lngs = [v[0] for v in exteriors]
    lats = [v[1] for v in exteriors]
    return (min(lngs), min(lats), max(lngs), max(lats))


# ---------------------------------------------------------------------------
# Internal geometry helpers
# ---------------------------------------------------------------------------

def _polygon_contains(x, y, polygon):
    """Inside the exterior ring and not strictly inside any hole."""
    exterior, holes = polygon[0], polygon[1:]

    if not _on_ring_edge(x, y, exterior) and not _point_in_ring(x, y, exterior):
        return False

    for hole in holes:
        if _point_in_ring(x, y, hole) and not _on_ring_edge(x, y, hole):
            return False

    return True


def _point_in_ring(x, y, ring):
    """Ray-casting algorithm to test if a point is inside a ring.

    ``ring`` is a sequence of (x, y) tuples.  The ring is implicitly
    closed (last vertex connects back to first).
    """
    n = len(ring)
    inside = False

    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]

        # Check if the ray from (x, y) going in +x direction crosses this edge
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i

    return inside


def _on_ring_edge(x, y, ring):
    n = len(ring)
    for i in range(n):
        ax, ay = ring[i]
        bx, by = ring[(i + 1) % n]

        cross = (bx - ax) * (y - ay) - (by - ay) * (x - ax)
        if abs(cross) > EDGE_EPSILON:
            continue
        if min(ax, bx) <= x <= max(ax, bx) and min(ay, by) <= y <= max(ay, by):
            return True

    return False
