"""
Configuration Utilities for CLI Commands

Loading the layered configuration for a command and showing what a run is
about to do.
"""

from typing import Dict, Any, Optional

from rich.panel import Panel

from stereocrawl.cli.utils import console, load_credentials_from_dotenv
from stereocrawl.core.config import ConfigManager, AppConfig


def load_config_from_cli(
    config_file: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    dotenv_path: str = ".env"
) -> AppConfig:
    """
    Load configuration for a CLI command.

    The .env file is read first so its variables take part in the
    environment layer. Configuration warnings are printed, not raised.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    load_credentials_from_dotenv(dotenv_path)

    config_manager = ConfigManager(config_file=config_file)
    app_config = config_manager.load_config(cli_args=cli_args or {})

    warnings = config_manager.validate_config(app_config)
    if warnings:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  • {warning}", markup=False)
        console.print()

    return app_config


def print_config_summary(config: AppConfig) -> None:
    """Print a summary of the run configuration."""
    discovery = config.discovery
    pipeline = config.pipeline

    config_lines = []
    if pipeline.mode == "resume":
        config_lines.append(f"Mode: [yellow]resume[/yellow] from [cyan]{config.discovered_snapshot_path()}[/cyan]")
    else:
        listing = discovery.listing
        if listing in ('top', 'controversial'):
            listing += f"/{discovery.time_filter}"
        config_lines.append(f"Mode: [green]fresh[/green] r/{discovery.subreddit} ({listing}, limit {discovery.limit})")
        if discovery.year is not None:
            config_lines.append(f"Year filter: [cyan]{discovery.year}[/cyan]")
    config_lines.append(f"Download cache: [cyan]{config.download.directory}[/cyan]")
    if pipeline.run_processing:
        config_lines.append(f"Accepted snapshot: [cyan]{config.accepted_snapshot_path()}[/cyan]")
    else:
        config_lines.append("Processing: [yellow]disabled[/yellow]")
    config_lines.append(f"Gallery fan-out: [cyan]{pipeline.fan_out}[/cyan]")
    if pipeline.max_workers > 1:
        config_lines.append(f"Workers: [cyan]{pipeline.max_workers}[/cyan]")

    console.print(Panel(
        "\n".join(config_lines),
        title="[bold]Configuration[/bold]",
        border_style="green"
    ))
