"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from reclaim import __version__
from reclaim.cli.commands import config, detect, estimate, run

EXIT_CODES_EPILOG = (
    "Exit codes: 0 = success or compliant, "
    "1 = setup failure (config, temp log) or low free space (detect)."
)

# Tracebacks land in scheduler logs: no local variables
app = typer.Typer(
    name="reclaim",
    help="Bounded, policy-driven disk space reclamation.",
    epilog=EXIT_CODES_EPILOG,
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"reclaim version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Write debug records to the run log.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="No console echo or summary; the run log is still written.",
        ),
    ] = False,
) -> None:
    """reclaim - Bounded, policy-driven disk space reclamation.

    Sweeps temp folders and caches under a strict time and safety
    budget, never touching protected paths or fragile areas.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(run.app, name="run")
app.add_typer(estimate.app, name="estimate")
app.add_typer(detect.app, name="detect")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
