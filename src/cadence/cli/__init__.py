"""Command line interface.

Entry point: ``cadence`` (``cadence.cli.__main__:main``).
"""

from .cli_common import CLIContext, ExitCode

__all__ = [
    "CLIContext",
    "ExitCode",
]
