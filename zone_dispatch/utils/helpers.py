"""
Helper utilities
"""
from datetime import datetime


def parse_date(date_string, format='%Y-%m-%d'):
    """
    Parse date string to date object

    Args:
        date_string (str): Date string
        format (str): strptime format string

    Returns:
        date: Date object or None if invalid
    """
    try:
        return datetime.strptime(date_string, format).date()
    except (ValueError, TypeError):
        return None


def safe_float(value, default=None):
    """
    Safely convert value to float

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        float: Converted value or default
    """
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default
