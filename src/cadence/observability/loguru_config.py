"""Loguru configuration with timing for rollup operations.

This module provides centralized loguru configuration with:
- Console output for interactive use
- Structured JSON log files with rotation and retention
- Component-bound loggers (rollup, pipeline, storage, cli)
- A context manager for timing operations
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "timing_context",
]

COMPONENTS = ("rollup", "pipeline", "storage", "cli")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "10 days",
    compression: str = "zip",
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSONL log files; no files are written when None
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "50 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days", "1 week")
    compression
        Compression for rotated logs (zip, gz, bz2, xz)
    enable_console
        Enable console output on stderr

    Example
    -------
    >>> from cadence.observability.loguru_config import configure_loguru
    >>> configure_loguru(log_dir=Path("logs"), level="DEBUG")
    """
    # Remove default handler
    logger.remove()
    logger.configure(extra={"component": "cadence"})

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)

    # Main application log (structured JSON)
    logger.add(
        log_dir / "cadence.jsonl",
        format="{message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True,
        backtrace=True,
        diagnose=False,
    )

    # Timing records only
    logger.add(
        log_dir / "timing.jsonl",
        format="{message}",
        level="DEBUG",
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True,
        filter=lambda record: record["extra"].get("timing", False),
    )

    # Component-specific log files
    for component in COMPONENTS:
        logger.add(
            log_dir / f"{component}.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=True,
            filter=lambda record, comp=component: record["extra"].get("component") == comp,
        )

    logger.bind(component="cadence").info("Loguru configured", log_dir=str(log_dir), level=level)


def get_logger(component: str = "cadence") -> Any:
    """Get logger instance bound to a component.

    Parameters
    ----------
    component
        Component name (rollup, pipeline, storage, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "cadence",
    trace_id: str | None = None,
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Context manager for timing operations.

    Parameters
    ----------
    operation
        Name of the operation being timed
    component
        Component name for filtering logs
    trace_id
        Trace ID for correlation
    **metadata
        Additional metadata to log

    Yields
    ------
    dict
        Context dictionary that can be updated with additional data

    Example
    -------
    >>> with timing_context("rollup", component="pipeline", habit_id=42) as ctx:
    ...     buckets = pipeline.rollup(42, start, end)
    ...     ctx["buckets"] = len(buckets)
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = dict(metadata)
    bound = logger.bind(component=component, timing=True, operation=operation, trace_id=trace_id)

    bound.debug("START: " + operation, phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ns = time.perf_counter_ns() - start_ns
        bound.debug(
            "END: " + operation,
            phase="end",
            duration_ms=duration_ns / 1_000_000,
            duration_ns=duration_ns,
            **context,
        )
