#!/usr/bin/env python3
"""Main CLI module for Cadence."""

import sys
from pathlib import Path

import click

from ..config.settings import generate_example_env
from .cadence_habits import habits_command
from .cadence_rollup import rollup_command
from .cli_common import ExitCode

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  cadence habits --store habits.yaml                  # List habits
  cadence rollup reading --store habits.yaml          # Last 7 local days
  cadence rollup reading --from 2025-10-01 --to 2025-10-31 --json
  cadence example-env --output .env                   # Write a sample .env
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="Cadence - habit period buckets and progress rollups",
    epilog=EPILOG,
)
def cli() -> None:
    """Root command of the CLI."""


@cli.command("example-env")
@click.option("--output", type=click.Path(path_type=Path), help="Write the example to this file")
def example_env_command(output: Path | None) -> int:
    """Print an example .env with every CADENCE_* setting."""
    example = generate_example_env(output)
    if output:
        click.echo(f"✅ Example configuration written to {output}")
    else:
        click.echo(example, nl=False)
    return int(ExitCode.SUCCESS)


cli.add_command(rollup_command, "rollup")
cli.add_command(habits_command, "habits")


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    if args is None:
        args = sys.argv[1:]

    try:
        return cli.main(args=list(args), prog_name="cadence", standalone_mode=False) or 0
    except click.ClickException as exc:
        # Usage errors are raised, not printed, outside standalone mode
        exc.show()
        return int(ExitCode.INVALID_INPUT)
    except click.Abort:
        click.echo("Aborted!", err=True)
        return int(ExitCode.UNKNOWN_ERROR)
    except SystemExit as exc:
        return int(exc.code) if exc.code is not None else 0


if __name__ == "__main__":
    sys.exit(main())
