"""Location model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin


class Location(BaseModel, TenantMixin):
    """
    Location model - a store that runs pickups and deliveries
    Owns the service area: a GeoJSON FeatureCollection of driver zones
    that is always read and written as one snapshot
    """
    __tablename__ = 'locations'

    name = db.Column(db.String(255), nullable=False)
    lat = db.Column(db.Float)
    lng = db.Column(db.Float)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    service_area = db.Column(db.JSON)
    service_area_version = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<Location {self.name} v{self.service_area_version}>'

    def snapshot(self):
        """Current service area as a validated, immutable snapshot"""
        from zone_dispatch.services.geofencing import ServiceAreaSnapshot

        return ServiceAreaSnapshot.from_feature_collection(
            self.service_area,
            version=self.service_area_version or 0,
        )

    def replace_service_area(self, snapshot):
        """
        Store a new snapshot in place of the old one

        Args:
            snapshot (ServiceAreaSnapshot): Validated replacement zones

        Returns:
            ServiceAreaSnapshot: The stored snapshot, stamped with the new version
        """
        version = (self.service_area_version or 0) + 1
        stored = snapshot.with_version(version)
        self.service_area = stored.to_feature_collection()
        self.service_area_version = version
        return stored
