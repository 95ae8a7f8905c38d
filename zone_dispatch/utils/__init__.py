"""Utilities package"""
from .auth import generate_token, decode_token, require_auth, require_role
from .helpers import parse_date, safe_float

__all__ = [
    'generate_token',
    'decode_token',
    'require_auth',
    'require_role',
    'parse_date',
    'safe_float',
]
