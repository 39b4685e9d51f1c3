"""
Timezone-aware datetime helpers and injectable clocks.
"""
from datetime import datetime, timezone
from typing import Callable, Optional

# A clock is any zero-argument callable returning an aware datetime
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC time with timezone awareness."""
    return datetime.now(timezone.utc)


def fixed_clock(dt: datetime) -> Clock:
    """
    Build a clock that always returns ``dt``.

    Used to make fallback generation byte-for-byte reproducible.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return lambda: dt


def to_iso_string(dt: Optional[datetime] = None) -> str:
    """
    Convert datetime to ISO 8601 string with Z suffix.

    Example:
        >>> to_iso_string(datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2025-01-15T10:30:00.000Z'
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    iso_str = dt.isoformat(timespec='milliseconds')
    if iso_str.endswith('+00:00'):
        return iso_str[:-6] + 'Z'
    return iso_str


def timestamp_ms(clock: Clock = utc_now) -> int:
    """Current timestamp in milliseconds."""
    return int(clock().timestamp() * 1000)
