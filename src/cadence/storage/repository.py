"""Habit repository contract and in-memory store.

The rollup pipeline reads habits, logs and owner timezones through the
:class:`HabitRepository` protocol. Logs are append-only facts returned in
ascending ``occurred_at_utc`` order; the engine relies on that order and
never re-sorts.
"""

from __future__ import annotations

import bisect
import threading
from collections.abc import Iterator
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ..core.errors import NotFoundError
from ..core.models import HabitConfig, LogEntry
from ..core.time import ensure_utc
from ..observability.loguru_config import get_logger

__all__ = [
    "HabitRepository",
    "InMemoryHabitStore",
]

logger = get_logger("storage")


@runtime_checkable
class HabitRepository(Protocol):
    """Storage collaborator consumed by the rollup pipeline."""

    def get_habit_config(self, habit_id: Any) -> HabitConfig:
        """Return the habit's configuration or raise NotFoundError."""
        ...

    def list_logs_within(self, habit_id: Any, start: datetime, end: datetime) -> list[LogEntry]:
        """Return logs with ``start <= occurred_at_utc < end``, ascending."""
        ...

    def get_owner_timezone(self, habit_id: Any) -> str | None:
        """Return the timezone of the habit's owner, None when unknown."""
        ...


def _occurred_at(log: LogEntry) -> datetime:
    return log.occurred_at_utc


class InMemoryHabitStore:
    """Dictionary-backed repository.

    Logs are kept sorted on insert so ``list_logs_within`` is a bisect slice.
    A snapshot returned by ``list_logs_within`` is a copy and is not affected
    by later appends.

    Example:
        >>> store = InMemoryHabitStore()
        >>> store.add_habit(HabitConfig(id=1, aggregation_kind="sum", target_per_period=60, period_kind="daily"))
        >>> store.record_log(1, datetime(2025, 10, 6, 14, tzinfo=timezone.utc), quantity=45)
    """

    def __init__(self) -> None:
        self._habits: dict[Any, HabitConfig] = {}
        self._logs: dict[Any, list[LogEntry]] = {}
        self._owner_timezones: dict[Any, str] = {}
        self._lock = threading.RLock()

    def add_habit(self, config: HabitConfig) -> HabitConfig:
        """Add or replace a habit, keeping its existing logs."""
        with self._lock:
            self._habits[config.id] = config
            self._logs.setdefault(config.id, [])
        return config

    def add_log(self, habit_id: Any, log: LogEntry) -> LogEntry:
        """Append a log entry to a habit.

        Raises
        ------
        NotFoundError
            If the habit does not exist
        """
        with self._lock:
            if habit_id not in self._habits:
                raise NotFoundError(habit_id)
            bisect.insort_right(self._logs[habit_id], log, key=_occurred_at)
        return log

    def record_log(
        self,
        habit_id: Any,
        occurred_at: datetime,
        quantity: Any = None,
        note: str | None = None,
    ) -> LogEntry:
        """Create and append a log, applying the habit's default quantity when none is given."""
        config = self.get_habit_config(habit_id)
        log = config.new_log(occurred_at, quantity=quantity, note=note)
        self.add_log(habit_id, log)
        logger.debug("Log recorded", habit_id=habit_id, quantity=str(log.quantity))
        return log

    def set_owner_timezone(self, owner_id: Any, timezone_name: str | None) -> None:
        """Set or clear the timezone of an owner."""
        with self._lock:
            if timezone_name:
                self._owner_timezones[owner_id] = timezone_name
            else:
                self._owner_timezones.pop(owner_id, None)

    def get_habit_config(self, habit_id: Any) -> HabitConfig:
        with self._lock:
            try:
                return self._habits[habit_id]
            except KeyError:
                raise NotFoundError(habit_id) from None

    def list_logs_within(self, habit_id: Any, start: datetime, end: datetime) -> list[LogEntry]:
        start = ensure_utc(start)
        end = ensure_utc(end)
        with self._lock:
            if habit_id not in self._habits:
                raise NotFoundError(habit_id)
            logs = self._logs[habit_id]
            low = bisect.bisect_left(logs, start, key=_occurred_at)
            high = bisect.bisect_left(logs, end, key=_occurred_at)
            return logs[low:high]

    def get_owner_timezone(self, habit_id: Any) -> str | None:
        config = self.get_habit_config(habit_id)
        with self._lock:
            return self._owner_timezones.get(config.owner_id)

    def list_logs(self, habit_id: Any) -> list[LogEntry]:
        """Return every log of a habit, ascending."""
        with self._lock:
            if habit_id not in self._habits:
                raise NotFoundError(habit_id)
            return list(self._logs[habit_id])

    def iter_habits(self) -> Iterator[HabitConfig]:
        with self._lock:
            habits = list(self._habits.values())
        yield from habits

    def owner_timezones(self) -> dict[Any, str]:
        with self._lock:
            return dict(self._owner_timezones)
