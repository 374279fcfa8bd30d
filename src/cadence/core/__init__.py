"""Core types of the rollup engine: models, errors and time utilities."""

from .errors import CadenceError, ConfigurationError, InvalidRangeError, NotFoundError, TimezoneError
from .models import AggregationKind, Bucket, BucketWindow, HabitConfig, LogEntry, PeriodKind, to_decimal
from .time import (
    ensure_utc,
    format_utc_iso8601,
    local_midnight_utc,
    parse_utc_iso8601,
    resolve_timezone,
    to_local_date,
)

__all__ = [
    # Errors
    "CadenceError",
    "ConfigurationError",
    "InvalidRangeError",
    "NotFoundError",
    "TimezoneError",
    # Models
    "AggregationKind",
    "Bucket",
    "BucketWindow",
    "HabitConfig",
    "LogEntry",
    "PeriodKind",
    "to_decimal",
    # Time
    "ensure_utc",
    "format_utc_iso8601",
    "local_midnight_utc",
    "parse_utc_iso8601",
    "resolve_timezone",
    "to_local_date",
]
