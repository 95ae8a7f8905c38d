"""
Service area blueprint
Driver zones, zone driver overrides and reassignment sweeps for a location
"""
from flask import Blueprint, request, jsonify

from zone_dispatch.errors import NotFoundError, ValidationError
from zone_dispatch.extensions import limiter
from zone_dispatch.services import service_area as service
from zone_dispatch.services.geofencing import find_zone_for_point, is_point_in_service_area
from zone_dispatch.utils import parse_date, require_auth, require_role, safe_float

service_area_bp = Blueprint('service_area', __name__)

MANAGE_ROLES = ('owner', 'manager')
READ_ROLES = ('owner', 'manager', 'driver')


@service_area_bp.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e)}), 400


@service_area_bp.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


def _reconcile_payload(result):
    return {
        'reassigned_count': result.reassigned_count,
        'reassignments': [r.to_dict() for r in result.reassignments],
        'skipped': dict(result.skipped),
    }


# ---------------------------------------------------------------------------
# Service area
# ---------------------------------------------------------------------------
@service_area_bp.route('/<location_id>/service-area', methods=['GET'])
@require_auth
@require_role(*READ_ROLES)
def get_service_area(location_id):
    """
    Get the location's zones

    GET /api/locations/<location_id>/service-area
    """
    location = service.get_location(request.tenant_id, location_id)
    snapshot = location.snapshot()

    return jsonify({
        'location_id': location.id,
        'version': snapshot.version,
        'service_area': snapshot.to_feature_collection(),
    }), 200


@service_area_bp.route('/<location_id>/service-area', methods=['PUT'])
@limiter.limit('30 per minute')
@require_auth
@require_role(*MANAGE_ROLES)
def update_service_area(location_id):
    """
    Replace the location's zones and reassign in-flight orders

    PUT /api/locations/<location_id>/service-area
    Body: GeoJSON FeatureCollection; each feature carries
        id, properties.name, properties.driverId (optional)
        and a Polygon or MultiPolygon geometry
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Request body must be a GeoJSON FeatureCollection'}), 400

    result = service.update_service_area(
        request.tenant_id,
        location_id,
        data,
        actor_id=request.user_id,
    )

    payload = _reconcile_payload(result.reconcile)
    payload.update({
        'message': 'Service area updated',
        'version': result.version,
        'changes': [change.to_dict() for change in result.changes],
    })
    return jsonify(payload), 200


@service_area_bp.route('/<location_id>/service-area/check', methods=['POST'])
@require_auth
@require_role(*READ_ROLES)
def check_point(location_id):
    """
    Check which zone, if any, covers a coordinate

    POST /api/locations/<location_id>/service-area/check
    Body: { "lat": float, "lng": float }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    if data.get('lat') is None or data.get('lng') is None:
        return jsonify({'error': 'lat and lng are required'}), 400

    lat = safe_float(data.get('lat'))
    lng = safe_float(data.get('lng'))
    if lat is None or lng is None:
        return jsonify({'error': 'lat and lng must be valid numbers'}), 400

    snapshot = service.get_location(request.tenant_id, location_id).snapshot()
    zone = find_zone_for_point(lat, lng, snapshot.zones)

    return jsonify({
        'in_service_area': is_point_in_service_area(lat, lng, snapshot),
        'zone': {
            'feature_id': zone.feature_id,
            'name': zone.name,
            'default_driver_id': zone.default_driver_id,
        } if zone else None,
    }), 200


@service_area_bp.route('/<location_id>/reconcile', methods=['POST'])
@limiter.limit('10 per minute')
@require_auth
@require_role(*MANAGE_ROLES)
def reconcile(location_id):
    """
    Re-run the reassignment sweep against the stored zones

    POST /api/locations/<location_id>/reconcile
    """
    result = service.reconcile(request.tenant_id, location_id, actor_id=request.user_id)
    return jsonify(_reconcile_payload(result)), 200


# ---------------------------------------------------------------------------
# Zone driver overrides
# ---------------------------------------------------------------------------
@service_area_bp.route('/<location_id>/zone-overrides', methods=['GET'])
@require_auth
@require_role(*READ_ROLES)
def list_overrides(location_id):
    """
    List zone driver overrides

    GET /api/locations/<location_id>/zone-overrides?active_on=2024-03-15
    """
    active_on = request.args.get('active_on')
    if active_on:
        active_on = parse_date(active_on)
        if active_on is None:
            return jsonify({'error': 'Invalid date format. Use YYYY-MM-DD'}), 400

    overrides = service.list_zone_overrides(request.tenant_id, location_id, active_on=active_on or None)

    items = []
    for override, in_force in overrides:
        data = override.to_dict()
        if active_on:
            data['in_force'] = in_force
        items.append(data)

    return jsonify({
        'overrides': items,
        'total': len(items)
    }), 200


@service_area_bp.route('/<location_id>/zone-overrides', methods=['POST'])
@limiter.limit('30 per minute')
@require_auth
@require_role(*MANAGE_ROLES)
def create_override(location_id):
    """
    Put a substitute driver on a zone for a date window

    POST /api/locations/<location_id>/zone-overrides
    Body: {
        "zone_feature_id": "north",
        "driver_id": "uuid",
        "start_date": "2024-03-15",
        "end_date": "2024-03-17",
        "reason": "Vacation cover"  (optional)
    }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    override, result = service.create_zone_override(
        request.tenant_id,
        location_id,
        zone_feature_id=data.get('zone_feature_id'),
        driver_id=data.get('driver_id'),
        start_date=data.get('start_date'),
        end_date=data.get('end_date'),
        reason=data.get('reason'),
        actor_id=request.user_id,
    )

    payload = _reconcile_payload(result)
    payload.update({
        'message': 'Override created',
        'override': override.to_dict(),
    })
    return jsonify(payload), 201


@service_area_bp.route('/<location_id>/zone-overrides/<override_id>', methods=['DELETE'])
@limiter.limit('30 per minute')
@require_auth
@require_role(*MANAGE_ROLES)
def delete_override(location_id, override_id):
    """
    Remove a zone driver override

    DELETE /api/locations/<location_id>/zone-overrides/<override_id>
    """
    result = service.delete_zone_override(
        request.tenant_id,
        location_id,
        override_id,
        actor_id=request.user_id,
    )

    payload = _reconcile_payload(result)
    payload['message'] = 'Override deleted'
    return jsonify(payload), 200
