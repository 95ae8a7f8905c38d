"""Exceptions raised by the zone assignment services"""


class ZoneDispatchError(Exception):
    """Base class for service errors surfaced to API callers"""


class ValidationError(ZoneDispatchError, ValueError):
    """Input rejected before any mutation took place"""


class ServiceAreaValidationError(ValidationError):
    """Malformed service area FeatureCollection or zone geometry"""


class OverrideValidationError(ValidationError):
    """Missing or inconsistent zone driver override fields"""


class NotFoundError(ZoneDispatchError):
    """Location or override does not exist for the caller's tenant"""
