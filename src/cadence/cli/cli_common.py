"""Common CLI utilities: JSON output, trace IDs and stable exit codes."""

from __future__ import annotations

import functools
import json
import traceback
import uuid
from enum import IntEnum
from pathlib import Path
from typing import Any

import click

from ..config.settings import ConfigError, Settings, get_settings
from ..core.errors import ConfigurationError, InvalidRangeError, NotFoundError, TimezoneError
from ..observability.loguru_config import configure_loguru, get_logger
from ..storage.yaml_store import StoreFormatError, YamlHabitStore

__all__ = [
    "CLIContext",
    "ExitCode",
    "cli_command",
    "exit_code_for",
    "handle_cli_error",
    "handle_cli_success",
    "open_store",
]

logger = get_logger("cli")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    INVALID_INPUT = 2  # Bad arguments, range or store document
    NOT_FOUND = 3  # Habit does not exist
    HABIT_CONFIG_ERROR = 4  # Invalid period parameters
    TIMEZONE_ERROR = 5  # Timezone does not resolve
    SETTINGS_ERROR = 6  # Process settings missing or invalid
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


class CLIContext:
    """Context for CLI execution with JSON output and trace ID."""

    def __init__(
        self,
        json_output: bool = False,
        trace_id: str | None = None,
        verbose: bool = False,
    ):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            trace_id: Trace ID for correlation
            verbose: Verbose output
        """
        self.json_output = json_output
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self.verbose = verbose
        self._settings: Settings | None = None

    @property
    def settings(self) -> Settings:
        """Process settings, loaded on first access.

        Loading configures loguru from the settings, so a command's first
        log line already goes to the configured sinks.
        """
        if self._settings is None:
            self._settings = get_settings()
            configure_loguru(
                log_dir=self._settings.log_dir,
                level="DEBUG" if self.verbose else self._settings.log_level,
            )
        return self._settings

    def output(
        self, data: Any, status: str = "success", error: str | None = None, meta: dict[str, Any] | None = None
    ) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data (in human mode a string or list of lines)
            status: Status ("success" or "error")
            error: Error message if status is error
            meta: Additional metadata
        """
        if self.json_output:
            # JSON mode: stdout carries only the JSON document
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2, default=str))
        elif status == "error":
            click.echo(f"❌ {error}", err=True)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        elif isinstance(data, list):
            for item in data:
                click.echo(item)
        else:
            click.echo(data)


def cli_command(func):
    """Decorator to add common CLI options to commands.

    Adds:
    - --json: JSON output mode
    - --trace-id: Trace ID for correlation
    - --verbose: Verbose output (DEBUG logging, tracebacks on errors)
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @functools.wraps(func)
    def wrapper(json_output: bool, trace_id: str | None, verbose: bool, *args: Any, **kwargs: Any) -> Any:
        ctx = CLIContext(json_output=json_output, trace_id=trace_id, verbose=verbose)
        return func(ctx, *args, **kwargs)

    return wrapper


def open_store(ctx: CLIContext, store: Path | None) -> YamlHabitStore:
    """Load the YAML habit store from ``--store`` or ``CADENCE_STORE_PATH``.

    Raises
    ------
    ConfigError
        If neither the option nor the setting names a store
    """
    settings = ctx.settings
    path = store or settings.store_path
    if path is None:
        raise ConfigError("No habit store given: pass --store or set CADENCE_STORE_PATH")
    return YamlHabitStore.load(path)


def exit_code_for(exc: BaseException) -> ExitCode:
    """Map an exception to its stable exit code."""
    if isinstance(exc, NotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(exc, ConfigurationError):
        return ExitCode.HABIT_CONFIG_ERROR
    if isinstance(exc, TimezoneError):
        return ExitCode.TIMEZONE_ERROR
    if isinstance(exc, ConfigError):
        return ExitCode.SETTINGS_ERROR
    if isinstance(exc, InvalidRangeError | StoreFormatError | FileNotFoundError | click.BadParameter):
        return ExitCode.INVALID_INPUT
    return ExitCode.UNKNOWN_ERROR


def handle_cli_error(ctx: CLIContext, exc: Exception, cmd: str, args: dict[str, Any]) -> int:
    """Handle CLI error and return appropriate exit code.

    Args:
        ctx: CLI context
        exc: Exception to handle
        cmd: Command name
        args: Command arguments

    Returns:
        Appropriate exit code
    """
    exit_code = exit_code_for(exc)
    error_msg = str(exc)

    log = logger.bind(trace_id=ctx.trace_id, command=cmd, args=args, exit_code=int(exit_code))
    if exit_code == ExitCode.UNKNOWN_ERROR:
        log.opt(exception=exc).error("Command failed: {}", type(exc).__name__)
    else:
        log.warning("Command failed: {}", type(exc).__name__)

    meta: dict[str, Any] = {"exit_code": int(exit_code), "error_type": type(exc).__name__}
    if ctx.verbose:
        meta["traceback"] = "".join(traceback.format_exception(exc))

    ctx.output(None, status="error", error=error_msg, meta=meta)

    if ctx.verbose and not ctx.json_output:
        click.echo("\nTraceback:", err=True)
        click.echo(meta["traceback"], err=True)

    return int(exit_code)


def handle_cli_success(
    ctx: CLIContext, data: Any, cmd: str, human: Any = None, meta: dict[str, Any] | None = None
) -> int:
    """Output a successful result and return the success code.

    Args:
        ctx: CLI context
        data: Result data for JSON mode
        cmd: Command name
        human: Human-readable rendering (default: ``data``)
        meta: Additional metadata

    Returns:
        Success exit code (0)
    """
    logger.bind(trace_id=ctx.trace_id, command=cmd).debug("Command succeeded")

    if ctx.json_output:
        ctx.output(data, status="success", meta=meta)
    else:
        ctx.output(human if human is not None else data, status="success")

    return int(ExitCode.SUCCESS)
