"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All stored timestamps in the application are timezone-naive
    and assumed to be UTC.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now(tz_name: str | None = None) -> datetime:
    """
    Return the current wall-clock time in the application timezone.

    Reminder dates and times carry no timezone; they are compared against
    this value. The result is timezone-naive.

    Args:
        tz_name: IANA zone name. Defaults to application.yaml ``timezone``.

    Returns:
        Current local time with tzinfo stripped
    """
    if tz_name is None:
        from minicrm.backend.core.config import get_app_config

        tz_name = get_app_config().application.timezone
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
