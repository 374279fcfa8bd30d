"""Habit, log and bucket models.

Quantities, targets and values are fixed-point decimals with two fractional
digits, mirroring the ``NUMERIC(12,2)`` columns they are stored in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .errors import ConfigurationError
from .time import ensure_utc, format_utc_iso8601, parse_utc_iso8601

__all__ = [
    "AggregationKind",
    "Bucket",
    "BucketWindow",
    "HabitConfig",
    "LogEntry",
    "PeriodKind",
    "QUANTITY_QUANTUM",
    "SUNDAY",
    "MONDAY",
    "to_decimal",
]

QUANTITY_QUANTUM = Decimal("0.01")

# week_start_day numbering (0 = Sunday)
SUNDAY = 0
MONDAY = 1


class AggregationKind(str, Enum):
    """Reduction applied to the logs of one bucket."""

    SUM = "sum"
    COUNT = "count"
    BOOLEAN = "boolean"

    @classmethod
    def parse(cls, value: AggregationKind | str) -> AggregationKind:
        try:
            return cls(str(value).strip().lower()) if not isinstance(value, cls) else value
        except ValueError as exc:
            raise ConfigurationError(f"Unrecognized aggregation kind {value!r}") from exc


class PeriodKind(str, Enum):
    """Recurrence pattern governing bucket boundaries."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ROLLING = "rolling"

    @classmethod
    def parse(cls, value: PeriodKind | str) -> PeriodKind:
        try:
            return cls(str(value).strip().lower()) if not isinstance(value, cls) else value
        except ValueError as exc:
            raise ConfigurationError(f"Unrecognized period kind {value!r}") from exc


def to_decimal(value: Any) -> Decimal:
    """Convert ``value`` to a two-digit fixed-point decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.10")``
    rather than its binary expansion.

    Raises
    ------
    ValueError
        If the value is not a finite number
    """
    if isinstance(value, float):
        value = str(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"Not a decimal number: {value!r}") from exc

    if not number.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")

    return number.quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)


def _to_date(value: date | str | None) -> date | None:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value).strip())


@dataclass(frozen=True)
class HabitConfig:
    """Immutable snapshot of a habit used for one rollup call.

    Period parameters are not validated here: an invalid rolling length or
    timezone is representable and fails when the calendar is asked for
    boundaries.

    Attributes
    ----------
    id
        Opaque habit identifier
    aggregation_kind
        Sum, Count or Boolean
    target_per_period
        Target per bucket (two fractional digits, >= 0)
    period_kind
        Daily, Weekly, Monthly or Rolling
    week_start_day
        First day of a weekly bucket, 0 = Sunday .. 6 = Saturday
    month_anchor_day
        Reserved for anchored months; monthly buckets are calendar months
    rolling_length_days
        Cycle length, required for Rolling
    anchor_date
        Origin of rolling cycles
    timezone
        IANA timezone override; the owner's timezone applies when unset
    """

    id: Any
    aggregation_kind: AggregationKind
    target_per_period: Decimal
    period_kind: PeriodKind
    week_start_day: int = MONDAY
    month_anchor_day: int = 1
    rolling_length_days: int | None = None
    anchor_date: date | None = None
    timezone: str | None = None
    name: str = ""
    unit_label: str | None = None
    owner_id: Any = None
    per_log_default_quantity: Decimal = Decimal("1.00")
    is_active: bool = True

    def __post_init__(self) -> None:
        # Frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, "aggregation_kind", AggregationKind.parse(self.aggregation_kind))
        object.__setattr__(self, "period_kind", PeriodKind.parse(self.period_kind))

        try:
            object.__setattr__(self, "target_per_period", to_decimal(self.target_per_period))
            object.__setattr__(
                self, "per_log_default_quantity", to_decimal(self.per_log_default_quantity)
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        try:
            object.__setattr__(self, "anchor_date", _to_date(self.anchor_date))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid anchor date: {self.anchor_date!r}") from exc

        if self.timezone is not None and not str(self.timezone).strip():
            object.__setattr__(self, "timezone", None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HabitConfig:
        """Build a config from a plain mapping (YAML document, DB row).

        Accepts the short keys ``aggregation``/``period``/``tz`` as aliases.
        """
        values = dict(data)
        aliases = {
            "aggregation": "aggregation_kind",
            "agg": "aggregation_kind",
            "period": "period_kind",
            "target": "target_per_period",
            "tz": "timezone",
            "rolling_len_days": "rolling_length_days",
            "week_start_dow": "week_start_day",
            "per_log_default_qty": "per_log_default_quantity",
            "owner": "owner_id",
        }
        for alias, name in aliases.items():
            if alias in values:
                values.setdefault(name, values.pop(alias))

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown habit fields: {', '.join(unknown)}")

        missing = [name for name in ("id", "aggregation_kind", "target_per_period", "period_kind") if name not in values]
        if missing:
            raise ConfigurationError(f"Missing habit fields: {', '.join(missing)}")

        return cls(**values)

    def new_log(self, occurred_at: datetime, quantity: Any = None, note: str | None = None) -> LogEntry:
        """Create a log entry, using the habit's default quantity when none is given."""
        if quantity is None or (isinstance(quantity, str) and not quantity.strip()):
            quantity = self.per_log_default_quantity
        return LogEntry(occurred_at_utc=occurred_at, quantity=quantity, note=note)


@dataclass(frozen=True)
class LogEntry:
    """One immutable logged event of a habit."""

    occurred_at_utc: datetime
    quantity: Decimal
    id: Any = None
    note: str | None = None

    def __post_init__(self) -> None:
        occurred = self.occurred_at_utc
        if isinstance(occurred, str):
            occurred = parse_utc_iso8601(occurred)
        object.__setattr__(self, "occurred_at_utc", ensure_utc(occurred))

        quantity = to_decimal(self.quantity)
        if quantity < 0:
            raise ValueError(f"Log quantity must be >= 0, got {quantity}")
        object.__setattr__(self, "quantity", quantity)


@dataclass(frozen=True)
class BucketWindow:
    """Boundaries of one period instance.

    ``[start, end)`` in UTC; ``local_start``/``local_end`` are the local
    calendar days the boundaries were computed from.
    """

    start: datetime
    end: datetime
    local_start: date
    local_end: date
    has_dst_transition: bool = False

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class Bucket:
    """Aggregated value and progress of one period instance."""

    start: datetime
    end: datetime
    value: Decimal
    target: Decimal
    progress_ratio: Decimal | None
    local_start: date | None = None
    local_end: date | None = None
    log_count: int = 0
    has_dst_transition: bool = False

    @property
    def target_met(self) -> bool:
        return self.progress_ratio is not None and self.progress_ratio >= 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "start": format_utc_iso8601(self.start),
            "end": format_utc_iso8601(self.end),
            "local_start": self.local_start.isoformat() if self.local_start else None,
            "local_end": self.local_end.isoformat() if self.local_end else None,
            "value": str(self.value),
            "target": str(self.target),
            "progress_ratio": None if self.progress_ratio is None else str(self.progress_ratio),
            "log_count": self.log_count,
            "has_dst_transition": self.has_dst_transition,
        }
