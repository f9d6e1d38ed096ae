"""CLI commands for reclaim.

This package contains all subcommand implementations.
"""

from reclaim.cli.commands import config, detect, estimate, run

__all__ = ["config", "detect", "estimate", "run"]
