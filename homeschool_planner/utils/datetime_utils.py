"""
Timezone-aware datetime utilities.

This module provides utilities for working with timezone-aware datetimes,
ensuring consistent handling across the application.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from homeschool_planner.core.logger import setup_logger

logger = setup_logger(__name__)

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Replaces datetime.utcnow() which is deprecated in Python 3.12+.

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def resolve_timezone(name: Optional[str]) -> tuple[ZoneInfo, bool]:
    """
    Resolve an IANA time zone name.

    Unknown or empty names fall back to UTC and log a warning.

    Returns:
        tuple: (zone, fell_back)
    """
    if name:
        try:
            return ZoneInfo(name), False
        except (ZoneInfoNotFoundError, ValueError):
            pass
    logger.warning(f"Unknown time zone {name!r}, falling back to UTC")
    return ZoneInfo("UTC"), True


def is_known_timezone(name: Optional[str]) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def localize(dt: datetime, tz: ZoneInfo) -> datetime:
    """
    Attach ``tz`` to a naive datetime, or convert an aware one into ``tz``.

    Example:
        >>> localize(datetime(2024, 9, 2, 15, 0), ZoneInfo("America/New_York"))
        datetime(2024, 9, 2, 15, 0, tzinfo=ZoneInfo("America/New_York"))
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    # Already timezone-aware - convert to UTC
    return dt.astimezone(UTC)


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.isoweekday() - 1)


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(value: int) -> time:
    """Convert minutes from midnight to a time; 24:00 is clamped to 23:59."""
    value = max(0, min(value, 24 * 60 - 1))
    return time(value // 60, value % 60)
