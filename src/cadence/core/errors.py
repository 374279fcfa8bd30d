"""Error taxonomy for rollups.

All errors raised by the engine and its collaborators derive from
:class:`CadenceError`. The engine performs no I/O and never retries, so every
error reaches the caller unchanged.
"""

from __future__ import annotations

__all__ = [
    "CadenceError",
    "ConfigurationError",
    "InvalidRangeError",
    "NotFoundError",
    "TimezoneError",
]


class CadenceError(Exception):
    """Base class for rollup errors."""


class NotFoundError(CadenceError):
    """Raised when a habit does not exist in the repository."""

    def __init__(self, habit_id: object) -> None:
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class ConfigurationError(CadenceError):
    """Raised when a habit's period parameters are invalid.

    Must be fixed by correcting the habit configuration; never defaulted.
    """


class TimezoneError(CadenceError):
    """Raised when a timezone identifier does not resolve."""

    def __init__(self, timezone_name: object, message: str | None = None) -> None:
        super().__init__(message or f"Unknown timezone: {timezone_name!r}")
        self.timezone_name = timezone_name


class InvalidRangeError(CadenceError, ValueError):
    """Raised for an inverted range or one that needs too many buckets."""
