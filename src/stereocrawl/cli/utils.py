"""
CLI Utilities

Shared helpers for CLI commands: logging setup, .env loading and rich
rendering of run reports and snapshots.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stereocrawl.models import Post, ProcessedPost, SkipRecord

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False) -> None:
    """
    Configure the root logger once for the whole run.

    INFO by default, DEBUG with ``debug``, WARNING with ``quiet``. ``verbose``
    adds timestamps and logger names to each line.
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose or debug,
        show_path=debug,
        rich_tracebacks=debug,
        markup=False
    )
    logging.basicConfig(
        level=level,
        format='%(name)s: %(message)s' if (verbose or debug) else '%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[handler],
        force=True
    )

    # Third-party transports are chatty at DEBUG
    for name in ('urllib3', 'prawcore', 'PIL'):
        logging.getLogger(name).setLevel(logging.DEBUG if debug and verbose else logging.WARNING)


def load_credentials_from_dotenv(dotenv_path_str: str = ".env") -> Dict[str, str]:
    """
    Load key-value pairs from a .env file into the environment.

    Existing environment variables are never overridden.

    Args:
        dotenv_path_str: Path to the .env file

    Returns:
        Dictionary of variables that were loaded
    """
    dotenv_path = Path(dotenv_path_str)
    loaded_vars: Dict[str, str] = {}

    if not dotenv_path.is_file():
        logger.debug(f"{dotenv_path.resolve()} not found, relying on the existing environment")
        return loaded_vars

    try:
        with open(dotenv_path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#') or '=' not in line:
                    continue

                key, value = line.split('=', 1)
                key = key.strip()
                if key.startswith('export '):
                    key = key[len('export '):].strip()
                value = value.strip().strip("'\"")

                if not key:
                    logger.warning(f"Skipping line {line_number} in {dotenv_path.name}: empty key")
                    continue

                if key in os.environ:
                    logger.debug(f"'{key}' already set in environment, not overridden")
                    continue

                os.environ[key] = value
                loaded_vars[key] = value
    except IOError as e:
        logger.warning(f"Could not read {dotenv_path.name}: {e}")
        return loaded_vars

    logger.debug(f"Loaded {len(loaded_vars)} variable(s) from {dotenv_path.name}")
    return loaded_vars


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header for CLI output."""
    if subtitle:
        header_text = f"[bold cyan]{title}[/bold cyan]\n[dim]{subtitle}[/dim]"
    else:
        header_text = f"[bold cyan]{title}[/bold cyan]"

    console.print(Panel(header_text, border_style="cyan"))


def posts_table(posts: Iterable[Post], title: str) -> Table:
    """Build a table with one row per post; dimensions are shown when known."""
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Created", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Image URL", style="blue", overflow="fold")

    for index, post in enumerate(posts, 1):
        size = f"{post.width}x{post.height}" if isinstance(post, ProcessedPost) else ""
        image_url = getattr(post, 'image_url', '') or post.url
        table.add_row(str(index), str(post.score), Text(post.title), post.created_iso[:10], size, Text(image_url))

    return table


def print_skips(skipped: Iterable[SkipRecord]) -> None:
    """One line per dropped post; unsupported sources are dimmed."""
    for record in skipped:
        style = "dim" if record.unsupported else "yellow"
        console.print(record.describe(), style=style, markup=False, highlight=False)
