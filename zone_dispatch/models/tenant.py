"""Tenant model"""
from zone_dispatch import db
from .base import BaseModel


class Tenant(BaseModel):
    """
    Tenant model - a laundry business using the platform
    Each tenant has isolated locations, staff, orders and routes
    """
    __tablename__ = 'tenants'

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    status = db.Column(db.String(50), nullable=False, default='active')

    def __repr__(self):
        return f'<Tenant {self.name} ({self.slug})>'
