"""Run command implementation.

Performs one complete remediation pass: sweeps every enabled category,
runs the external cleanup tools, and consolidates the run log.
"""

from typing import Annotated

import typer
from rich.table import Table

from reclaim.cli.types import CategoryOption, ConfigPathOption, get_flag, load_config_or_exit
from reclaim.core.errors import LogIOError
from reclaim.core.runner import CleanupRunner, RunReport
from reclaim.logs.consolidation import ConsolidationState
from reclaim.utils.formatting import console, format_size, print_error, print_info, print_success

app = typer.Typer(
    help="Run a remediation pass.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def run_cleanup(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Log what would be removed without removing it."),
    ] = False,
    fast_io: Annotated[
        bool,
        typer.Option("--fast-io", help="Use a single attempt and no backoff (testing)."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Run DISM even when a reboot is pending."),
    ] = False,
    category: CategoryOption = None,
    config_path: ConfigPathOption = None,
) -> None:
    """Sweep caches and temp folders within the configured time budget.

    Examples:
        reclaim run                          # Full remediation pass
        reclaim run --dry-run                # Show what would be removed
        reclaim run --category user_temp     # Sweep a single category
        reclaim run --force                  # Ignore pending-reboot guard for DISM
    """
    config = load_config_or_exit(config_path)
    if fast_io:
        config = config.model_copy(update={"fast_io": True})

    runner = CleanupRunner(config)
    try:
        report = runner.run(
            dry_run=dry_run,
            force=force,
            only=category,
            verbose=get_flag(ctx, "verbose"),
            console=console,
            echo=not get_flag(ctx, "quiet"),
        )
    except LogIOError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not get_flag(ctx, "quiet"):
        _print_report(report)

    raise typer.Exit(code=report.exit_code)


def _print_report(report: RunReport) -> None:
    """Display the run summary."""
    title = "Run Summary (dry-run)" if report.dry_run else "Run Summary"
    table = Table(title=title, show_lines=False)
    table.add_column("Category", style="bold")
    table.add_column("Deleted", justify="right", style="deleted")
    table.add_column("Skipped", justify="right", style="skipped")
    table.add_column("Failed", justify="right", style="failed")
    table.add_column("Swept", justify="right")
    table.add_column("Freed", justify="right", style="info")
    table.add_column("Stop", style="dim")

    for cat in report.categories:
        stops = sorted({r.stop_reason.value for r in cat.results}) or ["-"]
        freed = format_size(cat.freed_bytes) if cat.freed_bytes is not None else "-"
        table.add_row(
            cat.name,
            str(cat.deleted),
            str(cat.skipped),
            str(cat.failed),
            format_size(cat.swept_bytes),
            freed,
            ", ".join(stops),
        )

    console.print(table)

    for tool in report.tools:
        if tool.skipped:
            print_info(f"{tool.tool}: skipped ({tool.output})")
        elif tool.success:
            print_success(f"{tool.tool}: completed")
        else:
            code = tool.returncode if tool.returncode is not None else "n/a"
            console.print(f"[warning]{tool.tool}: failed (exit code {code})[/]")

    if report.merge_state == ConsolidationState.MERGE_FAILED:
        console.print("[warning]Run log could not be merged; temp log kept for the next run[/]")
    console.print(f"\n[dim]Run log state: {report.log_state.value}[/dim]")
