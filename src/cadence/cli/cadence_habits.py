"""CLI command listing the habits of a store."""

from __future__ import annotations

from pathlib import Path

import click

from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success, open_store


@click.command("habits")
@click.option("--store", type=click.Path(path_type=Path), help="YAML habit store (default: CADENCE_STORE_PATH)")
@click.option("--all", "show_all", is_flag=True, help="Include inactive habits")
@cli_command
def habits_command(ctx: CLIContext, store: Path | None, show_all: bool) -> int:
    """List habits with their period and target."""
    cmd = "habits"
    args = {"store": str(store) if store else None, "all": show_all}

    try:
        habit_store = open_store(ctx, store)

        habits = [config for config in habit_store.iter_habits() if show_all or config.is_active]
        data = []
        human = []
        for config in habits:
            owner_timezone = habit_store.get_owner_timezone(config.id)
            data.append(
                {
                    "id": config.id,
                    "name": config.name,
                    "aggregation": config.aggregation_kind.value,
                    "period": config.period_kind.value,
                    "target": str(config.target_per_period),
                    "unit_label": config.unit_label,
                    "timezone": config.timezone,
                    "owner_timezone": owner_timezone,
                    "is_active": config.is_active,
                }
            )
            unit = f" {config.unit_label}" if config.unit_label else ""
            status = "" if config.is_active else " [inactive]"
            human.append(
                f"  - {config.id}: {config.name or config.id} "
                f"({config.aggregation_kind.value}, {config.period_kind.value}, "
                f"target {config.target_per_period}{unit}){status}"
            )

        if not human:
            human = ["No habits found"]

        return handle_cli_success(ctx, data, cmd, human=human, meta={"count": len(data)})

    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd, args)
