"""
Crawl Command

Runs discovery, resolution, download and processing for one subreddit and
reports the accepted posts and every skipped post.
"""

import asyncio
import sys
from typing import Optional, Annotated

import typer

from stereocrawl.cli.config_utils import load_config_from_cli, print_config_summary
from stereocrawl.cli.error_handling import handle_error
from stereocrawl.cli.utils import console, setup_logging, print_header, posts_table, print_skips
from stereocrawl.core.exceptions import StereoCrawlError
from stereocrawl.pipeline import RunReport, run_pipeline


def _ask_run_mode(fresh: Optional[bool], process: Optional[bool]):
    """Ask the two run-mode questions for flags that were not given, on a terminal only."""
    if not sys.stdin.isatty():
        return fresh, process
    if fresh is None:
        fresh = typer.confirm("Do you want to download new posts?", default=False)
    if process is None:
        process = typer.confirm("Do you want to process images?", default=False)
    return fresh, process


def print_report(report: RunReport) -> None:
    """Print accepted posts as a table followed by one line per skipped post."""
    if report.processing_ran:
        if report.accepted:
            console.print(posts_table(report.accepted, f"Accepted posts ({len(report.accepted)})"))
        else:
            console.print("[yellow]No posts were accepted[/yellow]")

    if report.skipped:
        console.print(f"\n[bold]Skipped {len(report.skipped)} post(s):[/bold]")
        print_skips(report.skipped)

    summary = (
        f"{report.discovered} discovered, {report.resolved} resolved, "
        f"{report.downloaded} downloaded ({report.cache_hits} cached)"
    )
    if report.processing_ran:
        summary += f", {len(report.accepted)} accepted"
    console.print(f"\n[green]Done:[/green] {summary}")
    if report.snapshot_path:
        console.print(f"Accepted snapshot: [cyan]{report.snapshot_path}[/cyan]")


def crawl(
    # Run mode
    fresh: Annotated[Optional[bool], typer.Option("--fresh/--resume", help="Query Reddit, or reuse the discovered snapshot")] = None,
    process: Annotated[Optional[bool], typer.Option("--process/--no-process", help="Validate images and write the accepted snapshot")] = None,

    # Discovery
    subreddit: Annotated[Optional[str], typer.Option("--subreddit", "-r", help="Subreddit to crawl")] = None,
    listing: Annotated[Optional[str], typer.Option("--listing", help="Listing: top, hot, new, controversial, rising")] = None,
    time_filter: Annotated[Optional[str], typer.Option("--time-filter", "-t", help="Time window for top/controversial")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", "-l", min=1, help="Maximum posts to request")] = None,
    year: Annotated[Optional[int], typer.Option("--year", help="Keep only posts created in this year")] = None,

    # Pipeline
    fan_out: Annotated[Optional[str], typer.Option("--fan-out", help="Gallery policy: all or first")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", "-w", min=1, help="Concurrent per-post workers")] = None,
    download_dir: Annotated[Optional[str], typer.Option("--download-dir", help="Download cache directory")] = None,
    output_dir: Annotated[Optional[str], typer.Option("--output", "-o", help="Accepted snapshot directory")] = None,

    # General
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,
    verbose: Annotated[Optional[bool], typer.Option("--verbose", "-v", help="Enable verbose output")] = None,
    debug: Annotated[Optional[bool], typer.Option("--debug", help="Enable debug logging")] = None,
    quiet: Annotated[Optional[bool], typer.Option("--quiet", "-q", help="Only log warnings and errors")] = None,
):
    """
    Crawl a subreddit for cross-view stereo images.

    Without --fresh/--resume and --process/--no-process the command asks on an
    interactive terminal, and otherwise falls back to the configuration.
    """
    setup_logging(bool(verbose), bool(debug), bool(quiet))
    fresh, process = _ask_run_mode(fresh, process)

    cli_args = {
        'mode': None if fresh is None else ("fresh" if fresh else "resume"),
        'run_processing': process,
        'subreddit': subreddit,
        'listing': listing,
        'time_filter': time_filter,
        'limit': limit,
        'year': year,
        'fan_out': fan_out,
        'workers': workers,
        'download_dir': download_dir,
        'output_dir': output_dir,
        'verbose': verbose,
        'debug': debug,
        'quiet': quiet,
    }

    try:
        app_config = load_config_from_cli(config_file=config, cli_args=cli_args)
        setup_logging(app_config.verbose, app_config.debug, app_config.quiet)

        if not app_config.quiet:
            print_header("stereocrawl", "Cross-view stereo image crawler")
            print_config_summary(app_config)

        report = asyncio.run(run_pipeline(app_config))
    except StereoCrawlError as e:
        handle_error(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(1)

    print_report(report)
