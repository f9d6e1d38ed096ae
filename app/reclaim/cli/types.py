"""Shared types and utilities for CLI commands.

This module provides common option types and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from reclaim.core.config import CleanupConfig, load_config
from reclaim.core.errors import ConfigError
from reclaim.utils.formatting import print_error


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


ConfigPathOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to config file (default: ~/.config/reclaim/config.toml).",
    ),
]

CategoryOption = Annotated[
    list[str] | None,
    typer.Option(
        "--category",
        help="Restrict to a category or step (repeatable).",
    ),
]


def load_config_or_exit(path: Path | None) -> CleanupConfig:
    """Load configuration, exiting with code 1 on any config error.

    Args:
        path: Explicit config path, or None for the default.

    Returns:
        Validated CleanupConfig.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    try:
        return load_config(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def get_flag(ctx: typer.Context, name: str) -> bool:
    """Read a global flag stored by the main callback."""
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return bool(obj.get(name, False))
