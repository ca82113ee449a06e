#!/usr/bin/env python3
"""
stereocrawl CLI Main Application

Typer application wiring the crawl, show and config commands.
"""

from typing import Optional

import typer
from rich.console import Console

from stereocrawl.cli import __version__
from stereocrawl.cli.commands import config, crawl, show

console = Console()

app = typer.Typer(
    name="stereocrawl",
    help="Crawl Reddit for cross-view stereo images",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.command("crawl")(crawl.crawl)
app.command("show")(show.show)
app.add_typer(config.app, name="config", help="Manage configuration files")


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]stereocrawl[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    ),
):
    """
    stereocrawl - cross-view stereo image crawler

    [bold]Quick Start:[/bold]

    • Fresh crawl: [cyan]stereocrawl crawl --fresh --process[/cyan]
    • Reuse the last discovery: [cyan]stereocrawl crawl --resume[/cyan]
    • Inspect results: [cyan]stereocrawl show out/posts.json[/cyan]
    """
    pass


def main():
    """Entry point for the stereocrawl console script."""
    app()


if __name__ == "__main__":
    main()
