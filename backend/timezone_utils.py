"""
Timezone utilities for the event calendar.

Wire instants are ISO-8601 strings. Naive values are local wall-clock times
(the server stores them as-is), so everything is localized to the configured
timezone before it reaches the expander or the widget.
"""

from datetime import datetime, date, time as dt_time
import time as _time
from typing import Optional, Union
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "Europe/Amsterdam"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback: try system timezone name
        try:
            return pytz.timezone(_time.tzname[0])
        except pytz.UnknownTimeZoneError:
            # Last resort: fixed offset of the running system
            is_dst = _time.localtime().tm_isdst
            if is_dst:
                offset_seconds = -_time.altzone
            else:
                offset_seconds = -_time.timezone
            return pytz.FixedOffset(offset_seconds // 60)


def localize(dt: datetime) -> datetime:
    """Attach the local timezone to a naive datetime; convert aware ones."""
    tz = get_local_timezone()
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt.astimezone(tz)


def to_local_naive(dt: datetime) -> datetime:
    """Local wall-clock time without tzinfo (naive input is taken as local)."""
    if dt.tzinfo is None:
        return dt
    return localize(dt).replace(tzinfo=None)


def is_date_only(value: str) -> bool:
    """True for ISO strings carrying no time part ("2024-01-22")."""
    return 'T' not in value and ' ' not in value.strip()


def parse_instant(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Parse a wire instant into a timezone-aware local datetime.

    Accepts ISO strings (with or without offset, with or without a time
    part), datetimes and dates. Returns None for None/empty input and
    raises ValueError for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return localize(value)
    if isinstance(value, date):
        return localize(datetime.combine(value, dt_time.min))
    text = str(value).strip()
    if not text:
        return None
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return localize(datetime.fromisoformat(text))


def end_of_day(dt: datetime) -> datetime:
    """Last representable instant of dt's local calendar day."""
    local = to_local_naive(dt)
    return localize(datetime.combine(local.date(), dt_time.max))


def format_instant(dt: Union[datetime, date]) -> str:
    """ISO string for outbound pushes (dates stay date-only)."""
    if isinstance(dt, datetime):
        return localize(dt).isoformat()
    return dt.isoformat()
