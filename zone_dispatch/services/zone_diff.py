"""
Zone map diffing: which drivers gained or lost which zones between two
service area snapshots.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ZoneChange:
    driver_id: str
    zone_feature_id: str
    zone_name: str
    assigned: bool

    def to_dict(self):
        return {
            'driver_id': self.driver_id,
            'zone_feature_id': self.zone_feature_id,
            'zone_name': self.zone_name,
            'assigned': self.assigned,
        }


def _zone_map(zones):
    # First occurrence of a feature id wins, matching point resolution.
    mapped = {}
    for zone in zones or ():
        mapped.setdefault(zone.feature_id, zone)
    return mapped


def _driver(zone) -> Optional[str]:
    return zone.default_driver_id if zone is not None else None


def diff_zone_maps(old_zones, new_zones):
    """
    Minimal driver-zone deltas between two snapshots

    Zones are matched by feature id. A zone whose default driver did not
    change yields nothing, even if its geometry or name changed. Otherwise
    the previous driver (if any) loses the zone, then the new driver
    (if any) gains it.

    Returns:
        list[ZoneChange]: New-snapshot zone order first, then removed zones
    """
    old_map = _zone_map(old_zones)
    new_map = _zone_map(new_zones)

    feature_ids = list(new_map)
    feature_ids.extend(fid for fid in old_map if fid not in new_map)

    changes = []
    for feature_id in feature_ids:
        old_zone = old_map.get(feature_id)
        new_zone = new_map.get(feature_id)
        old_driver = _driver(old_zone)
        new_driver = _driver(new_zone)

        if old_driver == new_driver:
            continue

        zone_name = (new_zone or old_zone).name

        if old_driver:
            changes.append(ZoneChange(old_driver, feature_id, zone_name, assigned=False))
        if new_driver:
            changes.append(ZoneChange(new_driver, feature_id, zone_name, assigned=True))

    return changes
