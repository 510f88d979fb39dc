"""
Date and Time utilities

Everything inside the updater compares timezone-aware UTC datetimes.
"""
from datetime import datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """
    Return dt as an aware UTC datetime

    Args:
        dt: Aware datetime in any zone, or a naive datetime taken as UTC

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
