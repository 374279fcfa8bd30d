"""Time and timezone utilities for rollups.

Provides consistent timezone handling across the engine with:
- UTC discipline: all instants handled as aware UTC datetimes
- ISO-8601 format enforcement
- Timezone resolution with a hard error for unknown names
- Local midnight to UTC conversion with DST awareness
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo

import pytz

from .errors import TimezoneError

__all__ = [
    "DEFAULT_TIMEZONE",
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "local_midnight_utc",
    "parse_utc_iso8601",
    "resolve_timezone",
    "span_has_dst_transition",
    "to_local_date",
]

DEFAULT_TIMEZONE = "UTC"


def resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    """Resolve an IANA timezone identifier.

    Parameters
    ----------
    tz
        Timezone name (e.g., "America/Toronto") or an already resolved
        pytz timezone

    Returns
    -------
    tzinfo
        pytz timezone object

    Raises
    ------
    TimezoneError
        If the name is empty or unknown
    """
    if isinstance(tz, tzinfo):
        return tz

    if not isinstance(tz, str) or not tz.strip():
        raise TimezoneError(tz, "Timezone is not set")

    try:
        return pytz.timezone(tz.strip())
    except pytz.UnknownTimeZoneError as exc:
        raise TimezoneError(tz) from exc


def get_current_utc() -> datetime:
    """Get current time in UTC.

    Returns
    -------
    datetime
        Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime.

    Naive datetimes are taken to already be in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Parameters
    ----------
    dt
        Datetime to format (with or without timezone)

    Returns
    -------
    str
        ISO-8601 UTC string (e.g., "2025-10-08T12:30:00+00:00")

    Example
    -------
    >>> from datetime import datetime, timezone
    >>> dt = datetime(2025, 10, 8, 12, 30, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2025-10-08T12:30:00+00:00'
    """
    return ensure_utc(dt).isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Parameters
    ----------
    iso_string
        ISO-8601 formatted string

    Returns
    -------
    datetime
        Datetime in UTC

    Raises
    ------
    ValueError
        If string is not valid ISO-8601

    Example
    -------
    >>> dt = parse_utc_iso8601("2025-10-08T14:30:00+02:00")
    >>> dt.hour  # Converted to UTC
    12
    """
    # Handle 'Z' suffix (Zulu time = UTC)
    iso_string = iso_string.strip().replace("Z", "+00:00")

    return ensure_utc(datetime.fromisoformat(iso_string))


def local_midnight_utc(day: date, tz: tzinfo) -> datetime:
    """Convert local midnight of ``day`` in ``tz`` to a UTC instant.

    A day may be 23 or 25 hours long in UTC terms across a DST transition.
    Where local midnight does not exist (clocks jump forward at 00:00) the
    standard-time reading is used, which lands on the first instant after
    the gap.

    Parameters
    ----------
    day
        Local calendar day
    tz
        pytz timezone

    Returns
    -------
    datetime
        Aware UTC datetime
    """
    naive = datetime(day.year, day.month, day.day)
    localize = getattr(tz, "localize", None)
    if localize is not None:
        local = localize(naive, is_dst=False)
    else:
        local = naive.replace(tzinfo=tz)

    return local.astimezone(timezone.utc)


def to_local_date(instant: datetime, tz: tzinfo) -> date:
    """Get the local calendar day an instant falls on in ``tz``."""
    return ensure_utc(instant).astimezone(tz).date()


def span_has_dst_transition(local_start: date, local_end: date, tz: tzinfo) -> bool:
    """Check whether a local span is not a whole number of 24-hour days in UTC.

    Parameters
    ----------
    local_start
        First local day of the span (inclusive)
    local_end
        Local day the span ends on (exclusive)
    tz
        pytz timezone

    Returns
    -------
    bool
        True if the UTC length differs from the nominal local length
    """
    elapsed = local_midnight_utc(local_end, tz) - local_midnight_utc(local_start, tz)
    return elapsed != timedelta(days=(local_end - local_start).days)

