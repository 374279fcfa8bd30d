"""Rollup engine: buckets, aggregated values and progress for one habit.

Orchestrates the calendar, the aggregator and the progress calculator. The
engine is a pure function of its inputs: it holds no state between calls,
performs no I/O and returns exactly what the supplied log snapshot implies.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..core.models import QUANTITY_QUANTUM, Bucket, BucketWindow, HabitConfig, LogEntry
from ..observability.loguru_config import get_logger
from .aggregator import aggregate, partition_logs
from .progress import compute_progress_ratio
from .time_windows import generate_buckets

__all__ = [
    "RollupSummary",
    "build_buckets",
    "rollup",
    "summarize",
]

logger = get_logger("rollup")


def rollup(
    config: HabitConfig,
    logs: Sequence[LogEntry],
    range_start: datetime,
    range_end: datetime,
    *,
    max_buckets: int | None = None,
) -> list[Bucket]:
    """Compute the bucket sequence of a habit over a time range.

    Parameters
    ----------
    config
        Habit configuration with its effective timezone set
    logs
        Log snapshot sorted by ``occurred_at_utc`` ascending; not re-sorted
    range_start
        Requested range start
    range_end
        Requested range end (inclusive)
    max_buckets
        Optional cap on the number of buckets

    Returns
    -------
    list[Bucket]
        Contiguous buckets covering the range, in chronological order.
        Buckets without logs have value 0.

    Raises
    ------
    ConfigurationError
        If the period parameters are invalid (raised before logs are read)
    TimezoneError
        If the timezone does not resolve
    InvalidRangeError
        If the range is inverted or needs more than ``max_buckets`` buckets
    ValueError
        If the logs are not sorted
    """
    windows = generate_buckets(config, range_start, range_end, max_buckets=max_buckets)
    return build_buckets(config, logs, windows)


def build_buckets(config: HabitConfig, logs: Sequence[LogEntry], windows: Sequence[BucketWindow]) -> list[Bucket]:
    """Aggregate logs into already generated bucket windows.

    ``windows`` must come from ``generate_buckets`` for the same config.

    Raises
    ------
    ValueError
        If the logs are not sorted
    """
    slices = partition_logs(logs, windows)

    target = config.target_per_period
    buckets = []
    for window, bucket_logs in zip(windows, slices):
        value = aggregate(config.aggregation_kind, bucket_logs)
        buckets.append(
            Bucket(
                start=window.start,
                end=window.end,
                value=value,
                target=target,
                progress_ratio=compute_progress_ratio(value, target),
                local_start=window.local_start,
                local_end=window.local_end,
                log_count=len(bucket_logs),
                has_dst_transition=window.has_dst_transition,
            )
        )

    logger.debug(
        "Rollup computed",
        habit_id=config.id,
        period=config.period_kind.value,
        aggregation=config.aggregation_kind.value,
        timezone=config.timezone,
        buckets=len(buckets),
        logs=sum(bucket.log_count for bucket in buckets),
    )

    return buckets


@dataclass(frozen=True)
class RollupSummary:
    """Totals across the buckets of one rollup."""

    bucket_count: int
    buckets_met: int
    total_value: Decimal
    total_target: Decimal
    overall_ratio: Decimal | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "bucket_count": self.bucket_count,
            "buckets_met": self.buckets_met,
            "total_value": str(self.total_value),
            "total_target": str(self.total_target),
            "overall_ratio": None if self.overall_ratio is None else str(self.overall_ratio),
        }


def summarize(buckets: Sequence[Bucket]) -> RollupSummary:
    """Summarize a bucket sequence.

    ``overall_ratio`` is total value over total target, None when the
    target is zero.
    """
    total_value = sum((bucket.value for bucket in buckets), Decimal("0")).quantize(QUANTITY_QUANTUM)
    total_target = sum((bucket.target for bucket in buckets), Decimal("0")).quantize(QUANTITY_QUANTUM)

    return RollupSummary(
        bucket_count=len(buckets),
        buckets_met=sum(1 for bucket in buckets if bucket.target_met),
        total_value=total_value,
        total_target=total_target,
        overall_ratio=compute_progress_ratio(total_value, total_target),
    )
