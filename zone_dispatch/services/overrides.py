"""
Zone driver override lookup.

An override puts a substitute driver on one zone of a location for an
inclusive date window. When several overrides cover the same day, the most
recently created one wins ("last configured wins"), regardless of how
their windows nest. Equal timestamps fall back to the insertion sequence.
"""
from datetime import datetime

from zone_dispatch.models import ZoneDriverOverride


def _recency(override):
    return (override.created_at, override.sequence)


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def select_override(overrides, on_date):
    """
    Pick the override in force on a date

    Args:
        overrides: Overrides for a single zone, in creation order
        on_date: Target date; None never matches

    Returns:
        The most recently created covering override, or None
    """
    on_date = _as_date(on_date)
    if on_date is None:
        return None

    selected = None
    for override in overrides:
        if not override.start_date <= on_date <= override.end_date:
            continue
        if selected is None or _recency(override) > _recency(selected):
            selected = override

    return selected


def find_override(location_id, zone_feature_id, on_date):
    """Query the override in force for a zone on a date, or None"""
    on_date = _as_date(on_date)
    if on_date is None or not zone_feature_id:
        return None

    return ZoneDriverOverride.query.filter(
        ZoneDriverOverride.location_id == location_id,
        ZoneDriverOverride.zone_feature_id == zone_feature_id,
        ZoneDriverOverride.deleted_at.is_(None),
        ZoneDriverOverride.start_date <= on_date,
        ZoneDriverOverride.end_date >= on_date,
    ).order_by(
        ZoneDriverOverride.created_at.desc(),
        ZoneDriverOverride.sequence.desc(),
    ).first()


def find_override_driver_id(location_id, zone_feature_id, on_date):
    """Substitute driver id for a zone on a date, or None"""
    override = find_override(location_id, zone_feature_id, on_date)
    return override.driver_id if override else None
