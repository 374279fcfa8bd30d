"""CLI command printing the period buckets of a habit."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

import click

from ..core.models import Bucket, HabitConfig
from ..core.time import get_current_utc, resolve_timezone, to_local_date
from ..pipelines.rollup_pipeline import create_rollup_pipeline
from ..rollups.engine import RollupSummary, summarize
from ..storage.repository import InMemoryHabitStore
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, open_store

DEFAULT_DAYS = 7


def find_habit_id(store: InMemoryHabitStore, raw_id: str) -> Any:
    """Map a habit id typed on the command line to the stored id.

    YAML ids may be integers; the lookup compares their string form. An
    unknown id is returned unchanged so the pipeline reports it.
    """
    for config in store.iter_habits():
        if str(config.id) == raw_id:
            return config.id
    return raw_id


def _format_ratio(ratio) -> str:
    return "-" if ratio is None else f"{ratio * 100:.1f}%"


def _format_period(bucket: Bucket) -> str:
    last_day = bucket.local_end - timedelta(days=1)
    if last_day == bucket.local_start:
        return bucket.local_start.isoformat()
    return f"{bucket.local_start.isoformat()} .. {last_day.isoformat()}"


def render_table(habit: HabitConfig, timezone_name: str, buckets: list[Bucket], summary: RollupSummary) -> list[str]:
    """Render buckets as human-readable lines."""
    unit = f" {habit.unit_label}" if habit.unit_label else ""
    title = habit.name or str(habit.id)
    lines = [
        f"📊 {title} ({habit.aggregation_kind.value}, {habit.period_kind.value}, {timezone_name})",
    ]

    for bucket in buckets:
        mark = "✅" if bucket.target_met else "  "
        dst = "  (DST)" if bucket.has_dst_transition else ""
        lines.append(
            f"{mark} {_format_period(bucket):<24} {bucket.value:>10}{unit} / {bucket.target}{unit}"
            f"  {_format_ratio(bucket.progress_ratio):>7}{dst}"
        )

    lines.append(
        f"Buckets: {summary.bucket_count}, met: {summary.buckets_met}, "
        f"total: {summary.total_value}{unit} / {summary.total_target}{unit} ({_format_ratio(summary.overall_ratio)})"
    )
    return lines


@click.command("rollup")
@click.argument("habit_id")
@click.option(
    "--from",
    "first_day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help=f"First local day (YYYY-MM-DD, default: {DEFAULT_DAYS - 1} days before --to)",
)
@click.option(
    "--to",
    "last_day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Last local day (YYYY-MM-DD, default: today in the habit's timezone)",
)
@click.option("--store", type=click.Path(path_type=Path), help="YAML habit store (default: CADENCE_STORE_PATH)")
@cli_command
def rollup_command(
    ctx: CLIContext,
    habit_id: str,
    first_day: datetime | None,
    last_day: datetime | None,
    store: Path | None,
) -> int:
    """Show the period buckets of HABIT_ID with progress against its target."""
    cmd = "rollup"
    args = {
        "habit_id": habit_id,
        "from": first_day.date().isoformat() if first_day else None,
        "to": last_day.date().isoformat() if last_day else None,
        "store": str(store) if store else None,
    }

    try:
        settings = ctx.settings
        habit_store = open_store(ctx, store)
        pipeline = create_rollup_pipeline(habit_store)

        resolved_id = find_habit_id(habit_store, habit_id)
        habit = habit_store.get_habit_config(resolved_id)
        timezone_name = pipeline.resolve_effective_timezone(habit)

        end_day: date = last_day.date() if last_day else to_local_date(get_current_utc(), resolve_timezone(timezone_name))
        start_day: date = first_day.date() if first_day else end_day - timedelta(days=DEFAULT_DAYS - 1)

        buckets = pipeline.rollup_local_dates(resolved_id, start_day, end_day)
        summary = summarize(buckets)

        data = {
            "habit_id": habit.id,
            "name": habit.name,
            "aggregation": habit.aggregation_kind.value,
            "period": habit.period_kind.value,
            "timezone": timezone_name,
            "unit_label": habit.unit_label,
            "from": start_day.isoformat(),
            "to": end_day.isoformat(),
            "buckets": [bucket.to_dict() for bucket in buckets],
            "summary": summary.to_dict(),
        }
        human = render_table(habit, timezone_name, buckets, summary)

        return handle_cli_success(ctx, data, cmd, human=human, meta={"max_buckets": settings.max_buckets})

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)
