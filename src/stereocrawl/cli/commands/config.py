"""
Config Command

Helpers for working with configuration files.
"""

from pathlib import Path
from typing import Annotated

import typer

from stereocrawl.cli.error_handling import handle_error
from stereocrawl.cli.utils import console
from stereocrawl.core.config import ConfigManager
from stereocrawl.core.exceptions import ConfigurationError, ErrorCode

app = typer.Typer(
    name="config",
    help="Manage configuration files",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("init")
def init_config(
    path: Annotated[Path, typer.Argument(help="Where to write the example configuration")] = Path("stereocrawl.yaml"),
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file")] = False,
):
    """Write an example YAML configuration with every default filled in."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists; use --force to overwrite it[/red]")
        raise typer.Exit(1)

    try:
        ConfigManager().create_example_config(path)
    except OSError as e:
        handle_error(ConfigurationError(
            f"Could not write {path}: {e}",
            error_code=ErrorCode.CONFIG_INVALID_VALUE,
            config_key="path",
            config_value=str(path),
            cause=e
        ))

    console.print(f"[green]Wrote example configuration to {path}[/green]")
    console.print("[dim]Put Reddit credentials in STEREOCRAWL_* environment variables or a .env file.[/dim]")
