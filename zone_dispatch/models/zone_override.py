"""Zone Driver Override model"""
from zone_dispatch import db
from .base import BaseModel, TenantMixin


def _next_sequence(context):
    """Insertion counter that breaks created_at ties between overrides"""
    column = ZoneDriverOverride.__table__.c.sequence
    current = context.connection.execute(db.select(db.func.max(column))).scalar()
    return (current or 0) + 1


class ZoneDriverOverride(BaseModel, TenantMixin):
    """
    Zone Driver Override model - a substitute driver for one zone
    of a location over an inclusive date window

    Expired rows are kept; expiry is a date comparison at lookup time.
    Deleting an override soft-deletes the row.
    """
    __tablename__ = 'zone_driver_overrides'

    location_id = db.Column(db.String(36), db.ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    zone_feature_id = db.Column(db.String(255), nullable=False)
    driver_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    reason = db.Column(db.Text)

    # Monotonic across inserts; one override per flush keeps it unique
    sequence = db.Column(db.Integer, nullable=False, default=_next_sequence)

    created_by = db.Column(db.String(36), db.ForeignKey('users.id'))

    # Indexes
    __table_args__ = (
        db.CheckConstraint('start_date <= end_date', name='check_override_window'),
        db.Index('idx_zone_overrides_zone', 'location_id', 'zone_feature_id', 'start_date', 'end_date'),
    )

    def __repr__(self):
        return f'<ZoneDriverOverride zone={self.zone_feature_id} driver={self.driver_id} {self.start_date}..{self.end_date}>'

    def to_dict(self):
        return super().to_dict(exclude=['deleted_at'])
