"""YAML file store for habits, logs and owner timezones.

Document layout::

    owners:
      alice:
        timezone: America/Toronto
    habits:
      - id: reading
        owner: alice
        aggregation: sum
        target: 60
        period: daily
        logs:
          - occurred_at: "2025-10-06T14:00:00Z"
            quantity: 45
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from ..core.errors import CadenceError
from ..core.models import HabitConfig, LogEntry
from ..core.time import format_utc_iso8601
from ..observability.loguru_config import get_logger
from .repository import InMemoryHabitStore

__all__ = [
    "StoreFormatError",
    "YamlHabitStore",
]

logger = get_logger("storage")


class StoreFormatError(CadenceError, ValueError):
    """Raised when a YAML store document is malformed."""


class YamlHabitStore(InMemoryHabitStore):
    """In-memory store loaded from and saved to a YAML document."""

    def __init__(self, path: Path | str | None = None) -> None:
        super().__init__()
        self.path = Path(path) if path is not None else None

    @classmethod
    def load(cls, path: Path | str) -> YamlHabitStore:
        """Load a store from a YAML file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        StoreFormatError
            If the document is malformed
        ConfigurationError
            If a habit has an unknown aggregation or period kind
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            try:
                document = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise StoreFormatError(f"Invalid YAML in {path}: {exc}") from exc

        store = cls.from_document(document)
        store.path = path
        logger.debug("Store loaded", path=str(path), habits=len(store._habits))
        return store

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> YamlHabitStore:
        """Build a store from an already parsed document."""
        if not isinstance(document, dict):
            raise StoreFormatError("Store document must be a mapping")

        store = cls()

        owners = document.get("owners") or {}
        if not isinstance(owners, dict):
            raise StoreFormatError("'owners' must be a mapping of owner id to settings")
        for owner_id, owner in owners.items():
            timezone_name = owner.get("timezone") if isinstance(owner, dict) else owner
            store.set_owner_timezone(owner_id, timezone_name)

        habits = document.get("habits") or []
        if not isinstance(habits, list):
            raise StoreFormatError("'habits' must be a list")

        for entry in habits:
            if not isinstance(entry, dict):
                raise StoreFormatError(f"Habit entry must be a mapping, got {entry!r}")
            data = dict(entry)
            logs = data.pop("logs", None) or []
            config = store.add_habit(HabitConfig.from_dict(data))

            for raw in logs:
                store.add_log(config.id, _parse_log(config, raw))

        return store

    def save(self, path: Path | str | None = None) -> Path:
        """Write the store back to YAML.

        Parameters
        ----------
        path
            Target file (default: the file the store was loaded from)

        Returns
        -------
        Path
            File written
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No path given and store was not loaded from a file")

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix(target.suffix + ".tmp")
        tmp.write_text(
            yaml.safe_dump(self.to_document(), sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        tmp.replace(target)
        logger.debug("Store saved", path=str(target))
        return target

    def to_document(self) -> dict[str, Any]:
        """Serialize the store to a YAML-safe document."""
        return {
            "owners": {owner_id: {"timezone": tz} for owner_id, tz in self.owner_timezones().items()},
            "habits": [
                {**_habit_to_dict(config), "logs": [_log_to_dict(log) for log in self.list_logs(config.id)]}
                for config in self.iter_habits()
            ],
        }


def _parse_log(config: HabitConfig, raw: Any) -> LogEntry:
    if not isinstance(raw, dict) or "occurred_at" not in raw:
        raise StoreFormatError(f"Habit {config.id}: log entries need an 'occurred_at' field, got {raw!r}")

    occurred_at = raw["occurred_at"]
    if isinstance(occurred_at, date) and not isinstance(occurred_at, datetime):
        raise StoreFormatError(f"Habit {config.id}: occurred_at must be a timestamp, got date {occurred_at}")

    try:
        log = config.new_log(occurred_at, quantity=raw.get("quantity"), note=raw.get("note"))
    except ValueError as exc:
        raise StoreFormatError(f"Habit {config.id}: invalid log {raw!r}: {exc}") from exc

    if raw.get("id") is not None:
        log = LogEntry(occurred_at_utc=log.occurred_at_utc, quantity=log.quantity, id=raw["id"], note=log.note)
    return log


def _habit_to_dict(config: HabitConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": config.id,
        "name": config.name,
        "owner": config.owner_id,
        "aggregation": config.aggregation_kind.value,
        "target": str(config.target_per_period),
        "period": config.period_kind.value,
        "week_start_day": config.week_start_day,
        "month_anchor_day": config.month_anchor_day,
        "rolling_length_days": config.rolling_length_days,
        "anchor_date": config.anchor_date.isoformat() if config.anchor_date else None,
        "timezone": config.timezone,
        "unit_label": config.unit_label,
        "per_log_default_quantity": str(config.per_log_default_quantity),
        "is_active": config.is_active,
    }
    return {key: value for key, value in data.items() if value is not None}


def _log_to_dict(log: LogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "occurred_at": format_utc_iso8601(log.occurred_at_utc),
        "quantity": str(log.quantity),
    }
    if log.id is not None:
        data["id"] = log.id
    if log.note:
        data["note"] = log.note
    return data
