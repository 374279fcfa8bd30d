"""Period bucketing and progress rollups."""

from .aggregator import aggregate, is_log_in_window, partition_logs
from .engine import RollupSummary, build_buckets, rollup, summarize
from .progress import compute_progress_ratio
from .time_windows import (
    compute_boundaries_utc,
    compute_day_boundaries_utc,
    compute_month_boundaries_utc,
    compute_rolling_boundaries_utc,
    compute_week_boundaries_utc,
    generate_buckets,
    get_rolling_cycle_start,
    get_week_start,
    validate_period_config,
)

__all__ = [
    # Calendar
    "compute_boundaries_utc",
    "compute_day_boundaries_utc",
    "compute_week_boundaries_utc",
    "compute_month_boundaries_utc",
    "compute_rolling_boundaries_utc",
    "generate_buckets",
    "get_rolling_cycle_start",
    "get_week_start",
    "validate_period_config",
    # Aggregation
    "aggregate",
    "is_log_in_window",
    "partition_logs",
    # Progress
    "compute_progress_ratio",
    # Engine
    "RollupSummary",
    "build_buckets",
    "rollup",
    "summarize",
]
