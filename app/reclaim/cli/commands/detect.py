"""Detect command implementation.

Detection half of a remediation pair: exits 0 when the system drive has
enough free space (compliant) and 1 when remediation should run.
"""

import os
import shutil
from pathlib import Path
from typing import Annotated

import typer

from reclaim.cli.types import ConfigPathOption, load_config_or_exit
from reclaim.utils.formatting import print_error, print_success, print_warning

app = typer.Typer(
    help="Check free space on the system drive.",
    invoke_without_command=True,
)

_GB = 1024**3


def get_system_drive() -> Path:
    """Get the root of the system drive."""
    if os.name == "nt":
        return Path(os.environ.get("SystemDrive", "C:") + "\\")
    return Path("/")


@app.callback(invoke_without_command=True)
def detect(
    min_free_gb: Annotated[
        float | None,
        typer.Option("--min-free-gb", help="Required free space in GB (default from config)."),
    ] = None,
    path: Annotated[
        Path | None,
        typer.Option("--path", help="Drive or directory to check (default: system drive)."),
    ] = None,
    config_path: ConfigPathOption = None,
) -> None:
    """Exit 0 if free space meets the threshold, 1 otherwise."""
    config = load_config_or_exit(config_path)
    threshold = min_free_gb if min_free_gb is not None else config.min_free_gb
    target = path or get_system_drive()

    try:
        usage = shutil.disk_usage(target)
    except OSError as e:
        print_error(f"Cannot read disk usage for {target}: {e}")
        raise typer.Exit(code=1) from e

    free_gb = usage.free / _GB
    if free_gb >= threshold:
        print_success(f"Compliant: {free_gb:.1f} GB free on {target} (threshold {threshold:g} GB)")
        return

    print_warning(f"Low disk space: {free_gb:.1f} GB free on {target} (threshold {threshold:g} GB)")
    raise typer.Exit(code=1)
