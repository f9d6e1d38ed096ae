"""Configuration commands.

Shows the effective configuration and classification rules, and writes
a default configuration file.
"""

from typing import Annotated

import tomli_w
import typer
from rich.table import Table

from reclaim.cli.types import ConfigPathOption, load_config_or_exit
from reclaim.core.config import CleanupConfig, config_to_dict, save_config
from reclaim.core.errors import ConfigError
from reclaim.core.paths import ensure_dir, get_config_path
from reclaim.filesystem.protected import PathClassifier
from reclaim.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(
    rules: Annotated[
        bool,
        typer.Option("--rules", help="List protected paths and skip patterns."),
    ] = False,
    config_path: ConfigPathOption = None,
) -> None:
    """Print the effective configuration as TOML."""
    config = load_config_or_exit(config_path)
    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)

    if rules:
        _print_rules(PathClassifier.from_config(config))


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
    config_path: ConfigPathOption = None,
) -> None:
    """Write a default configuration file."""
    target = config_path or get_config_path()
    if target.exists() and not force:
        print_info(f"Config already exists: {target} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        ensure_dir(target.parent, "config")
        saved = save_config(CleanupConfig(), target)
    except (ConfigError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")


def _print_rules(classifier: PathClassifier) -> None:
    """Display classification rules."""
    table = Table(title="Classification Rules", show_lines=False)
    table.add_column("Category", width=10)
    table.add_column("Pattern / Path", style="bold")

    for rule in classifier.rules:
        table.add_row(rule.category.value, rule.pattern)

    console.print(table)
