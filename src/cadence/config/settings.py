"""Centralized configuration for rollups.

Loads configuration from a .env file and the environment and provides typed
access to settings. Missing or invalid values produce clear errors.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..core.errors import CadenceError, TimezoneError
from ..core.time import DEFAULT_TIMEZONE, resolve_timezone

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class ConfigError(CadenceError):
    """Raised when process settings are missing or invalid."""


@dataclass
class Settings:
    """Process-wide settings.

    Attributes
    ----------
    store_path : Path | None
        YAML habit store used by the CLI
    default_timezone : str
        Last step of the timezone fallback chain (habit, owner, default)
    max_buckets : int
        Upper bound on buckets per rollup call
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSONL log files; console only when unset
    event_log : Path | None
        JSONL file receiving pipeline events
    """

    store_path: Path | None = None
    default_timezone: str = DEFAULT_TIMEZONE
    max_buckets: int = 10_000
    log_level: str = "INFO"
    log_dir: Path | None = None
    event_log: Path | None = None

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.store_path and isinstance(self.store_path, str):
            self.store_path = Path(self.store_path)
        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)
        if self.event_log and isinstance(self.event_log, str):
            self.event_log = Path(self.event_log)

        try:
            resolve_timezone(self.default_timezone)
        except TimezoneError as exc:
            raise ConfigError(
                f"CADENCE_DEFAULT_TZ must be an IANA timezone name (e.g., America/Toronto), "
                f"got {self.default_timezone!r}"
            ) from exc

        if self.max_buckets < 1:
            raise ConfigError(f"CADENCE_MAX_BUCKETS must be >= 1, got {self.max_buckets}")

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"CADENCE_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, otherwise from os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        try:
            return cls(
                store_path=Path(os.environ["CADENCE_STORE_PATH"]) if os.environ.get("CADENCE_STORE_PATH") else None,
                default_timezone=os.environ.get("CADENCE_DEFAULT_TZ", DEFAULT_TIMEZONE),
                max_buckets=int(os.environ.get("CADENCE_MAX_BUCKETS", "10000")),
                log_level=os.environ.get("CADENCE_LOG_LEVEL", "INFO"),
                log_dir=Path(os.environ["CADENCE_LOG_DIR"]) if os.environ.get("CADENCE_LOG_DIR") else None,
                event_log=Path(os.environ["CADENCE_EVENT_LOG"]) if os.environ.get("CADENCE_EVENT_LOG") else None,
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file, encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            # Parse KEY=VALUE
            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes
                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ[key] = value


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and keep them as the current settings.

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write .env file

    Returns
    -------
    str
        Example .env contents
    """
    example = """# Cadence configuration
# Copy this to .env and adjust values

# YAML habit store used by the CLI (optional, can be passed with --store)
# CADENCE_STORE_PATH=habits.yaml

# Timezone used when neither the habit nor its owner has one (default: UTC)
# Examples: UTC, America/Toronto, Europe/Brussels
CADENCE_DEFAULT_TZ=UTC

# Maximum number of buckets per rollup (default: 10000)
CADENCE_MAX_BUCKETS=10000

# Log level (default: INFO)
# Options: TRACE, DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
CADENCE_LOG_LEVEL=INFO

# Directory for JSONL logs (optional, console only if not set)
# CADENCE_LOG_DIR=logs

# JSONL file receiving pipeline events (optional)
# CADENCE_EVENT_LOG=logs/pipelines/rollup.jsonl
"""

    if output_path:
        output_path.write_text(example, encoding="utf-8")

    return example
