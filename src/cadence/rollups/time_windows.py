"""Period bucket calculations with DST awareness.

Compute UTC boundaries from local periods (day, week, month, rolling cycle)
in a habit's timezone. Boundaries are local wall-clock midnights converted to
UTC, so a "day" may be 23 or 25 hours long across a DST transition.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo

from ..core.errors import ConfigurationError, InvalidRangeError
from ..core.models import BucketWindow, HabitConfig, PeriodKind
from ..core.time import (
    ensure_utc,
    local_midnight_utc,
    resolve_timezone,
    span_has_dst_transition,
    to_local_date,
)

__all__ = [
    "compute_boundaries_utc",
    "compute_day_boundaries_utc",
    "compute_month_boundaries_utc",
    "compute_rolling_boundaries_utc",
    "compute_week_boundaries_utc",
    "generate_buckets",
    "get_rolling_cycle_start",
    "get_week_start",
    "next_period_start",
    "period_start_for",
    "validate_period_config",
]


def validate_period_config(config: HabitConfig) -> tzinfo:
    """Check a habit's period parameters and resolve its timezone.

    Parameters
    ----------
    config
        Habit configuration; ``config.timezone`` must already hold the
        effective timezone

    Returns
    -------
    tzinfo
        Resolved timezone

    Raises
    ------
    ConfigurationError
        If period parameters are invalid
    TimezoneError
        If the timezone is unset or unknown
    """
    if config.target_per_period < 0:
        raise ConfigurationError(f"Habit {config.id}: target_per_period must be >= 0")

    if config.period_kind is PeriodKind.WEEKLY and not (
        _is_int(config.week_start_day) and 0 <= config.week_start_day <= 6
    ):
        raise ConfigurationError(
            f"Habit {config.id}: week_start_day must be an integer 0-6 (0 = Sunday), got {config.week_start_day!r}"
        )

    if not (_is_int(config.month_anchor_day) and 1 <= config.month_anchor_day <= 28):
        raise ConfigurationError(
            f"Habit {config.id}: month_anchor_day must be an integer 1-28, got {config.month_anchor_day!r}"
        )

    if config.period_kind is PeriodKind.ROLLING:
        length = config.rolling_length_days
        if not (_is_int(length) and length >= 1):
            raise ConfigurationError(
                f"Habit {config.id}: rolling period requires rolling_length_days >= 1, got {length!r}"
            )
        if config.anchor_date is None:
            raise ConfigurationError(f"Habit {config.id}: rolling period requires anchor_date")

    return resolve_timezone(config.timezone)


def _is_int(value: object) -> bool:
    # YAML booleans are ints to Python
    return isinstance(value, int) and not isinstance(value, bool)


def get_week_start(day: date, week_start_day: int = 1) -> date:
    """Get start of the week containing ``day``.

    Parameters
    ----------
    day
        Local calendar day
    week_start_day
        Day the week starts on (0=Sunday, 1=Monday, ..., 6=Saturday)

    Returns
    -------
    date
        Most recent day matching ``week_start_day`` at or before ``day``
    """
    # date.weekday() counts from Monday = 0
    start_weekday = (week_start_day - 1) % 7
    days_since_start = (day.weekday() - start_weekday) % 7
    return day - timedelta(days=days_since_start)


def get_rolling_cycle_start(day: date, anchor_date: date, length_days: int) -> date:
    """Get the first day of the rolling cycle containing ``day``.

    Cycle ``k = floor((day - anchor) / length)`` starts on
    ``anchor + k * length``; days before the anchor fall in negative cycles.
    """
    cycle = (day - anchor_date).days // length_days
    return anchor_date + timedelta(days=cycle * length_days)


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def period_start_for(day: date, config: HabitConfig) -> date:
    """Get the first local day of the period containing ``day``."""
    kind = config.period_kind
    if kind is PeriodKind.DAILY:
        return day
    if kind is PeriodKind.WEEKLY:
        return get_week_start(day, config.week_start_day)
    if kind is PeriodKind.MONTHLY:
        return day.replace(day=1)
    if kind is PeriodKind.ROLLING:
        return get_rolling_cycle_start(day, config.anchor_date, config.rolling_length_days)
    raise ConfigurationError(f"Unknown period kind: {kind}")


def next_period_start(start: date, config: HabitConfig) -> date:
    """Get the first local day of the period following the one at ``start``."""
    kind = config.period_kind
    if kind is PeriodKind.DAILY:
        return start + timedelta(days=1)
    if kind is PeriodKind.WEEKLY:
        return start + timedelta(days=7)
    if kind is PeriodKind.MONTHLY:
        return _first_of_next_month(start)
    if kind is PeriodKind.ROLLING:
        return start + timedelta(days=config.rolling_length_days)
    raise ConfigurationError(f"Unknown period kind: {kind}")


def _window(local_start: date, local_end: date, tz: tzinfo) -> BucketWindow:
    return BucketWindow(
        start=local_midnight_utc(local_start, tz),
        end=local_midnight_utc(local_end, tz),
        local_start=local_start,
        local_end=local_end,
        has_dst_transition=span_has_dst_transition(local_start, local_end, tz),
    )


def compute_day_boundaries_utc(local_date: date, tz: tzinfo | str = "UTC") -> BucketWindow:
    """Compute UTC boundaries for a local day.

    Handles DST transitions: a "day" in local time may be 23, 24, or 25 hours in UTC.

    Parameters
    ----------
    local_date
        Date in local timezone (time component ignored)
    tz
        Timezone or timezone name (e.g., "America/New_York")

    Returns
    -------
    BucketWindow
        ``[midnight, next midnight)`` in UTC

    Examples
    --------
    >>> # DST transition day (spring forward: 23 hours)
    >>> window = compute_day_boundaries_utc(date(2025, 3, 9), "America/New_York")
    >>> window.end - window.start
    datetime.timedelta(seconds=82800)
    """
    if isinstance(local_date, datetime):
        local_date = local_date.date()
    return _window(local_date, local_date + timedelta(days=1), resolve_timezone(tz))


def compute_week_boundaries_utc(
    local_date: date,
    tz: tzinfo | str = "UTC",
    week_start_day: int = 1,
) -> BucketWindow:
    """Compute UTC boundaries for the local week containing ``local_date``.

    Parameters
    ----------
    local_date
        Any date in the week
    tz
        Timezone or timezone name
    week_start_day
        Day of week to start on (0=Sunday, 1=Monday, ..., 6=Saturday)

    Returns
    -------
    BucketWindow
        Week window; may span 167 or 169 hours across DST
    """
    if isinstance(local_date, datetime):
        local_date = local_date.date()
    week_start = get_week_start(local_date, week_start_day)
    return _window(week_start, week_start + timedelta(days=7), resolve_timezone(tz))


def compute_month_boundaries_utc(local_date: date, tz: tzinfo | str = "UTC") -> BucketWindow:
    """Compute UTC boundaries for the local calendar month containing ``local_date``.

    Bucket length varies between 28 and 31 days.
    """
    if isinstance(local_date, datetime):
        local_date = local_date.date()
    month_start = local_date.replace(day=1)
    return _window(month_start, _first_of_next_month(month_start), resolve_timezone(tz))


def compute_rolling_boundaries_utc(
    local_date: date,
    anchor_date: date,
    length_days: int,
    tz: tzinfo | str = "UTC",
) -> BucketWindow:
    """Compute UTC boundaries for the rolling cycle containing ``local_date``."""
    if isinstance(local_date, datetime):
        local_date = local_date.date()
    cycle_start = get_rolling_cycle_start(local_date, anchor_date, length_days)
    return _window(cycle_start, cycle_start + timedelta(days=length_days), resolve_timezone(tz))


def compute_boundaries_utc(local_date: date, config: HabitConfig) -> BucketWindow:
    """Compute UTC boundaries of the habit period containing a local day.

    Convenience function that validates the configuration and dispatches on
    its period kind.
    """
    tz = validate_period_config(config)
    if isinstance(local_date, datetime):
        local_date = local_date.date()
    start = period_start_for(local_date, config)
    return _window(start, next_period_start(start, config), tz)


def generate_buckets(
    config: HabitConfig,
    range_start: datetime,
    range_end: datetime,
    *,
    max_buckets: int | None = None,
) -> list[BucketWindow]:
    """Generate the contiguous period windows covering ``[range_start, range_end]``.

    The first window starts at or before ``range_start``; windows are added
    until one ends after ``range_end``, so the window containing
    ``range_end`` is included even when ``range_end`` is exactly its start.
    Windows are never truncated to the range.

    Parameters
    ----------
    config
        Habit configuration with its effective timezone set
    range_start
        Requested range start (naive values are UTC)
    range_end
        Requested range end, inclusive
    max_buckets
        Optional cap on the number of windows

    Returns
    -------
    list[BucketWindow]
        Windows in chronological order, ``windows[i].end == windows[i + 1].start``

    Raises
    ------
    ConfigurationError
        If period parameters are invalid
    TimezoneError
        If the timezone does not resolve
    InvalidRangeError
        If ``range_end < range_start`` or more than ``max_buckets`` windows are needed
    """
    tz = validate_period_config(config)

    start_utc = ensure_utc(range_start)
    end_utc = ensure_utc(range_end)
    if end_utc < start_utc:
        raise InvalidRangeError(f"Range end {end_utc.isoformat()} is before start {start_utc.isoformat()}")

    cursor = period_start_for(to_local_date(start_utc, tz), config)
    # An ambiguous local midnight may map after the requested start
    while local_midnight_utc(cursor, tz) > start_utc:
        cursor = period_start_for(cursor - timedelta(days=1), config)

    windows: list[BucketWindow] = []
    while True:
        following = next_period_start(cursor, config)
        window = _window(cursor, following, tz)
        windows.append(window)

        if max_buckets is not None and len(windows) > max_buckets:
            raise InvalidRangeError(
                f"Range {start_utc.isoformat()} .. {end_utc.isoformat()} needs more than {max_buckets} buckets"
            )

        if window.end > end_utc:
            break
        cursor = following

    return windows
