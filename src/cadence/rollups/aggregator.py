"""Log aggregation per bucket.

Reduce the log entries of one bucket to a single value, and partition a
sorted log snapshot across bucket windows in one forward scan.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from ..core.models import QUANTITY_QUANTUM, AggregationKind, BucketWindow, LogEntry

__all__ = [
    "aggregate",
    "is_log_in_window",
    "partition_logs",
]

_ZERO = Decimal("0")
_ONE = Decimal("1")


def is_log_in_window(log: LogEntry, window: BucketWindow) -> bool:
    """Check if a log falls within ``[window.start, window.end)``.

    A log at exactly ``window.start`` belongs to the window; one at exactly
    ``window.end`` belongs to the next.
    """
    return window.contains(log.occurred_at_utc)


def aggregate(kind: AggregationKind | str, logs_in_bucket: Iterable[LogEntry]) -> Decimal:
    """Reduce the logs of one bucket to a value.

    Parameters
    ----------
    kind
        ``sum`` adds quantities, ``count`` counts entries, ``boolean`` is 1
        when any entry exists
    logs_in_bucket
        Entries already filtered to the bucket

    Returns
    -------
    Decimal
        Aggregated value with two fractional digits; 0 for an empty bucket
    """
    kind = AggregationKind.parse(kind)

    if kind is AggregationKind.SUM:
        value = sum((log.quantity for log in logs_in_bucket), _ZERO)
    elif kind is AggregationKind.COUNT:
        value = Decimal(sum(1 for _ in logs_in_bucket))
    else:
        value = _ONE if any(True for _ in logs_in_bucket) else _ZERO

    return value.quantize(QUANTITY_QUANTUM)


def partition_logs(
    logs: Iterable[LogEntry],
    windows: Sequence[BucketWindow],
) -> list[list[LogEntry]]:
    """Split logs sorted by ``occurred_at_utc`` across contiguous windows.

    Single forward scan, O(windows + logs). Logs before the first window or
    at/after the last window's end are dropped.

    Parameters
    ----------
    logs
        Entries in ascending ``occurred_at_utc`` order
    windows
        Contiguous windows in chronological order

    Returns
    -------
    list[list[LogEntry]]
        One slice per window, in window order

    Raises
    ------
    ValueError
        If the logs are not sorted
    """
    slices: list[list[LogEntry]] = [[] for _ in windows]
    if not windows:
        return slices

    index = 0
    previous = None
    for log in logs:
        occurred = log.occurred_at_utc
        if previous is not None and occurred < previous:
            raise ValueError(
                f"Logs must be sorted by occurred_at_utc: {occurred.isoformat()} after {previous.isoformat()}"
            )
        previous = occurred

        if occurred < windows[0].start:
            continue

        while index < len(windows) and occurred >= windows[index].end:
            index += 1
        if index == len(windows):
            break

        slices[index].append(log)

    return slices
