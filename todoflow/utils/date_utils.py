"""
Centralized date/time utilities
All timestamps are timezone-aware UTC
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current datetime in UTC"""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """
    Get a mutation timestamp strictly later than the previous one
    
    Two mutations inside the same clock tick would otherwise share a stamp.
    
    Args:
        previous: Last stamp of the record (optional)
        
    Returns:
        Current UTC datetime, bumped past previous if needed
    """
    now = utc_now()
    if previous is not None:
        previous = ensure_aware(previous)
        if now <= previous:
            return previous + _TICK
    return now


def sort_timestamp(value: Optional[datetime]) -> float:
    """Numeric sort key; a missing timestamp counts as the epoch"""
    if value is None:
        return EPOCH.timestamp()
    return ensure_aware(value).timestamp()


def is_past(value: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Check whether a timestamp is present and earlier than now"""
    if value is None:
        return False
    return ensure_aware(value) < (now or utc_now())
