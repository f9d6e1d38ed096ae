"""Estimate command implementation.

Probes the category roots and reports how much space a sweep would
reclaim, without deleting anything.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from reclaim.cli.types import CategoryOption, ConfigPathOption, OutputFormat, load_config_or_exit
from reclaim.core.runner import CleanupRunner
from reclaim.filesystem.models import ProbeSnapshot
from reclaim.utils.formatting import console, format_size, print_success

app = typer.Typer(
    help="Estimate reclaimable space without deleting.",
    invoke_without_command=True,
)

ESTIMATE_NOTE = (
    "Estimates honor skip and protected rules but not file age or locks; "
    "the space a real run frees can legitimately differ."
)


@app.callback(invoke_without_command=True)
def estimate(
    category: CategoryOption = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    config_path: ConfigPathOption = None,
) -> None:
    """Estimate reclaimable space per category."""
    config = load_config_or_exit(config_path)
    estimates = CleanupRunner(config).estimate(only=category)

    if output_format == OutputFormat.JSON:
        _print_json(estimates)
        return

    total = sum(size.bytes for snapshot in estimates.values() for size in snapshot.values())
    if total == 0:
        print_success("Nothing to reclaim.")
        return

    _print_table(estimates)
    console.print(f"\n[dim]Estimated total: {format_size(total)}[/dim]")
    console.print(f"[dim]{ESTIMATE_NOTE}[/dim]")


def _print_table(estimates: dict[str, ProbeSnapshot]) -> None:
    """Display estimates as a Rich table."""
    table = Table(title="Reclaimable Space (estimate)", show_lines=False)
    table.add_column("Category", style="bold")
    table.add_column("Root")
    table.add_column("Size", justify="right", style="info")

    for name, snapshot in estimates.items():
        for root, size in snapshot.items():
            if size.bytes == 0:
                continue
            table.add_row(name, root, format_size(size.bytes))

    console.print(table)


def _print_json(estimates: dict[str, ProbeSnapshot]) -> None:
    """Display estimates as JSON."""
    data = {
        "note": ESTIMATE_NOTE,
        "categories": {
            name: {
                root: {
                    "bytes": size.bytes,
                    "megabytes": size.megabytes,
                    "gigabytes": size.gigabytes,
                }
                for root, size in snapshot.items()
            }
            for name, snapshot in estimates.items()
        },
    }
    console.print_json(json.dumps(data))
