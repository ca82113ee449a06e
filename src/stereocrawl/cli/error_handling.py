from stereocrawl.core.exceptions import StereoCrawlError
import logging
import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.padding import Padding

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def handle_error(err: StereoCrawlError):
    """Print a StereoCrawlError as a panel with its recovery suggestions and exit with code 1."""
    logger.debug(f"Fatal error details: {err.get_debug_info()}")

    description = err.message
    if err.cause is not None:
        description += f"\nCause: {type(err.cause).__name__}: {err.cause}"

    console.print()
    error_panel = Panel(
        Text(description, justify="full"),
        title=f"[bold red]Error: {err.error_code.name.replace('_', ' ').title()}[/bold red]",
        border_style="red",
        expand=False
    )
    console.print(error_panel)

    if err.suggestions:
        console.print("\n[bold green]Suggested solutions:[/bold green]")
        for i, suggestion in enumerate(err.suggestions, 1):
            suggestion_text = Text(f"{i}. {suggestion.action}: {suggestion.description}\n")
            if suggestion.command:
                suggestion_text.append("   Run: ", style="bold")
                suggestion_text.append(f"{suggestion.command}", style="cyan")
            console.print(Padding(suggestion_text, (0, 1)))

    if err.context.correlation_id:
        console.print(Padding(f"Trace ID: [yellow]{err.context.correlation_id}[/yellow]", (1, 0, 0, 0)))

    raise typer.Exit(code=1)
