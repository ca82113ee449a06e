"""
Show Command

Prints a snapshot file as a table.
"""

from pathlib import Path
from typing import Annotated

import typer

from stereocrawl.cli.error_handling import handle_error
from stereocrawl.cli.utils import console, posts_table
from stereocrawl.core.exceptions import StereoCrawlError
from stereocrawl.core.state import PostStore
from stereocrawl.models import accepted_only


def show(
    snapshot: Annotated[Path, typer.Argument(help="Snapshot file, e.g. out/posts.json")],
    accepted: Annotated[bool, typer.Option("--accepted", help="Only list processed posts")] = False,
):
    """Print the posts stored in a snapshot."""
    try:
        collection = PostStore().load(snapshot)
    except StereoCrawlError as e:
        handle_error(e)

    posts = accepted_only(collection) if accepted else list(collection)
    if not posts:
        console.print(f"[yellow]{snapshot} contains no posts[/yellow]")
        return

    console.print(posts_table(posts, f"{snapshot} ({len(posts)} post(s))"))
