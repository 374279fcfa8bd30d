"""Rollup Pipeline - fetch a habit and its logs, then run the rollup engine.

Implements ``Rollup(habit_id, range_start, range_end)`` on top of a
:class:`~cadence.storage.repository.HabitRepository`. The pipeline resolves
the effective timezone (habit, then owner, then the configured default),
fetches exactly the logs the buckets span and hands the snapshot to the
engine. Every error reaches the caller; the pipeline only logs it.
"""

from __future__ import annotations

import dataclasses
import json
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from ..core.errors import CadenceError
from ..core.models import Bucket, HabitConfig
from ..core.time import DEFAULT_TIMEZONE, local_midnight_utc
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.engine import build_buckets
from ..rollups.time_windows import generate_buckets, validate_period_config
from ..storage.repository import HabitRepository

__all__ = [
    "RollupPipeline",
    "RollupPipelineConfig",
    "create_rollup_pipeline",
]


@dataclass
class RollupPipelineConfig:
    """Configuration for rollup pipeline."""

    default_timezone: str = DEFAULT_TIMEZONE
    max_buckets: int | None = 10_000
    log_path: Path | None = None


class RollupPipeline:
    """Orchestration of one rollup call.

    Responsibilities:
    - Fetch the habit configuration (NotFoundError when missing)
    - Resolve the effective timezone: habit, owner, then default
    - Fetch the log snapshot covering the generated buckets
    - Run the engine and emit structured JSONL events with trace IDs

    The pipeline keeps no per-call state and can be shared between threads.

    Example:
        >>> from cadence.storage import YamlHabitStore
        >>> pipeline = create_rollup_pipeline(YamlHabitStore.load("habits.yaml"))
        >>> buckets = pipeline.rollup_local_dates("reading", date(2025, 10, 6), date(2025, 10, 12))
    """

    def __init__(
        self,
        repository: HabitRepository,
        config: RollupPipelineConfig | None = None,
        *,
        logger: Any = None,
    ) -> None:
        """Initialize rollup pipeline.

        Parameters
        ----------
        repository
            Storage collaborator providing habits, logs and owner timezones
        config
            Pipeline configuration
        logger
            Optional loguru logger (default: bound to the "pipeline" component)
        """
        self.repository = repository
        self.config = config or RollupPipelineConfig()
        self.logger = logger or get_logger("pipeline")

    def resolve_effective_timezone(self, config: HabitConfig) -> str:
        """Pick the timezone a habit's buckets are computed in.

        The habit's own timezone wins; otherwise the owner's; otherwise the
        configured default. A timezone that is set but unknown is not
        replaced here: it fails later with TimezoneError.
        """
        if config.timezone:
            return config.timezone

        owner_timezone = self.repository.get_owner_timezone(config.id)
        if owner_timezone:
            return owner_timezone

        self.logger.debug(
            "No habit or owner timezone, using default",
            habit_id=config.id,
            default_timezone=self.config.default_timezone,
        )
        return self.config.default_timezone

    def rollup(self, habit_id: Any, range_start: datetime, range_end: datetime) -> list[Bucket]:
        """Compute the buckets of a habit over ``[range_start, range_end]``.

        Parameters
        ----------
        habit_id
            Habit identifier
        range_start
            Requested range start
        range_end
            Requested range end (inclusive)

        Returns
        -------
        list[Bucket]
            Contiguous buckets in chronological order

        Raises
        ------
        NotFoundError
            If the habit does not exist
        ConfigurationError
            If the habit's period parameters are invalid
        TimezoneError
            If the effective timezone does not resolve
        InvalidRangeError
            If the range is inverted or too large
        """
        return self._run(
            habit_id,
            {"range_start": range_start.isoformat(), "range_end": range_end.isoformat()},
            lambda habit: (range_start, range_end),
        )

    def rollup_local_dates(self, habit_id: Any, first_day: date, last_day: date) -> list[Bucket]:
        """Roll up the periods touching local days ``first_day`` .. ``last_day``.

        Dates are read as local midnights in the habit's effective timezone.
        Raises the same errors as :meth:`rollup`.
        """

        def local_range(habit: HabitConfig) -> tuple[datetime, datetime]:
            tz = validate_period_config(habit)
            return local_midnight_utc(first_day, tz), local_midnight_utc(last_day, tz)

        return self._run(
            habit_id,
            {"first_day": first_day.isoformat(), "last_day": last_day.isoformat()},
            local_range,
        )

    def _run(
        self,
        habit_id: Any,
        request: dict[str, Any],
        resolve_range: Callable[[HabitConfig], tuple[datetime, datetime]],
    ) -> list[Bucket]:
        """Fetch the habit once, then build buckets over ``resolve_range(habit)``.

        ``resolve_range`` receives the habit with its effective timezone set.
        """
        trace_id = str(uuid.uuid4())
        start_time = time.time()

        self._log_event("pipeline_started", {"trace_id": trace_id, "habit_id": habit_id, **request})

        try:
            with timing_context("rollup", component="pipeline", trace_id=trace_id, habit_id=habit_id) as ctx:
                habit = self.repository.get_habit_config(habit_id)
                habit = dataclasses.replace(habit, timezone=self.resolve_effective_timezone(habit))
                range_start, range_end = resolve_range(habit)

                # Validates the configuration before any log is fetched
                windows = generate_buckets(habit, range_start, range_end, max_buckets=self.config.max_buckets)
                logs = self.repository.list_logs_within(habit_id, windows[0].start, windows[-1].end)

                buckets = build_buckets(habit, logs, windows)
                ctx["buckets"] = len(buckets)
                ctx["logs"] = len(logs)
        except CadenceError as exc:
            self._log_event(
                "pipeline_failed",
                {
                    "trace_id": trace_id,
                    "habit_id": habit_id,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "outcome": "failure",
                },
            )
            raise

        self._log_event(
            "pipeline_completed",
            {
                "trace_id": trace_id,
                "habit_id": habit_id,
                "timezone": habit.timezone,
                "buckets_count": len(buckets),
                "logs_count": len(logs),
                "duration_ms": (time.time() - start_time) * 1000,
                "outcome": "success",
            },
        )

        return buckets

    def _log_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Emit structured JSONL log entry.

        Parameters
        ----------
        event_type
            Type of log event
        data
            Event data (must be JSON-serializable)
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": "pipeline",
            "pipeline": "rollup",
            "event_type": event_type,
            **data,
        }

        if self.config.log_path:
            self.config.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")

        if data.get("outcome") == "failure":
            self.logger.bind(**data).warning(event_type)
        else:
            self.logger.bind(**data).info(event_type)


def create_rollup_pipeline(
    repository: HabitRepository,
    *,
    default_timezone: str | None = None,
    max_buckets: int | None = None,
    log_path: Path | str | None = None,
    logger: Any = None,
) -> RollupPipeline:
    """Factory function to create rollup pipeline.

    Unset arguments fall back to the process settings.

    Parameters
    ----------
    repository
        Storage collaborator
    default_timezone
        Last step of the timezone fallback chain
    max_buckets
        Upper bound on buckets per call
    log_path
        Optional path for JSONL events
    logger
        Optional logger instance

    Returns
    -------
    RollupPipeline
        Configured pipeline instance
    """
    from ..config.settings import get_settings

    settings = get_settings()

    if log_path is None:
        log_path = settings.event_log
    elif isinstance(log_path, str):
        log_path = Path(log_path)

    config = RollupPipelineConfig(
        default_timezone=default_timezone or settings.default_timezone,
        max_buckets=max_buckets if max_buckets is not None else settings.max_buckets,
        log_path=log_path,
    )

    return RollupPipeline(repository, config, logger=logger)
