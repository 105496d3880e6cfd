"""CLI entry point: serve the API, follow a scrape run, browse the directory."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table

from startup_scraper.client.consumer import BatchRunState, ProgressConsumer
from startup_scraper.config import load_config
from startup_scraper.models import InitEvent, ProgressEvent, ScrapeEvent
from startup_scraper.output.export import (
    directory_filename,
    export_directory,
    export_results,
    results_filename,
)
from startup_scraper.source.directory import ALL_SECTORS, filter_startups
from startup_scraper.source.supabase_client import SourceError, SupabaseClient

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
def main(verbose: bool) -> None:
    """Startup directory and Firecrawl website scraper."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
    )


@main.command()
@click.option("--host", default=None, help="Bind address (default: WEB_HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port (default: WEB_PORT or 8000)")
def serve(host: str | None, port: int | None) -> None:
    """Run the web API."""
    import uvicorn

    config = load_config()
    missing = config.missing_settings()
    if missing:
        console.print(f"[yellow]Note: {', '.join(missing)} not set, scrape runs will fail[/yellow]")
    uvicorn.run(
        "startup_scraper.web.app:app",
        host=host or config.web_host,
        port=port or config.web_port,
    )


def _render(progress: Progress, task: TaskID) -> Callable[[ScrapeEvent, BatchRunState], None]:
    def on_event(event: ScrapeEvent, state: BatchRunState) -> None:
        if isinstance(event, InitEvent):
            progress.update(task, total=event.total or None)
            if event.skipped:
                progress.console.print(f"[dim]{event.skipped} skipped (no website)[/dim]")
        elif isinstance(event, ProgressEvent):
            progress.update(task, completed=event.index)
            if event.success:
                kb = (event.content_length or 0) / 1024
                progress.console.print(f"  [green]✓[/green] {event.name} [dim]{kb:.1f} KB[/dim]")
            else:
                progress.console.print(f"  [red]✗[/red] {event.name} [red]{event.error or 'empty'}[/red]")
    return on_event


@main.command()
@click.option("--server", "-s", default=None, help="API base URL (default: SCRAPER_SERVER_URL)")
@click.option(
    "--format", "-f", "formats",
    multiple=True,
    type=click.Choice(["csv", "xlsx", "json"]),
    help="Export format(s) to write when the run completes, repeatable (default: all)",
)
@click.option(
    "--output-dir", "-o",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory for exported files",
)
@click.option(
    "--max-seconds",
    default=None,
    type=float,
    help="Stop following the run after this many seconds",
)
def scrape(server: str | None, formats: tuple[str, ...], output_dir: str, max_seconds: float | None) -> None:
    """Start a scrape run on the server and follow its progress.

    Example: startup-scraper scrape -f csv -f json -o exports/
    """
    config = load_config()
    formats = formats or ("csv", "xlsx", "json")

    with Progress(
        TextColumn("[bold blue]Scraping"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("scrape", total=None)
        consumer = ProgressConsumer(server or config.server_url, on_event=_render(progress, task))

        async def follow() -> BatchRunState:
            if max_seconds:
                asyncio.get_running_loop().call_later(max_seconds, consumer.cancel)
            return await consumer.run()

        state = asyncio.run(follow())

    if state.fatal_error:
        console.print("\n[bold red]Scraping failed[/bold red]")
        console.print(f"[red]{state.fatal_error}[/red]")
        console.print(
            "Check that FIRECRAWL_API_KEY, SUPABASE_URL and SUPABASE_ANON_KEY "
            "are set correctly in the server's .env"
        )
        sys.exit(1)

    if consumer.cancelled:
        console.print(f"\n[yellow]Stopped after {state.current}/{state.total}[/yellow]")
        sys.exit(1)

    console.print(
        f"\n[bold]Complete[/bold] {state.current}/{state.total}: "
        f"[green]{state.success_count} scraped[/green], [red]{state.failure_count} failed[/red]"
        + (f", {state.skipped} skipped (no website)" if state.skipped else "")
    )

    if state.results is None:
        console.print("[red]Stream ended without results[/red]")
        sys.exit(1)

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        path = out / results_filename(fmt)
        path.write_bytes(export_results(state.results, fmt, config.content_excerpt_chars))
        console.print(f"  Wrote {path}")


@main.command()
@click.option("--search", default="", help="Match name, description or location")
@click.option("--sector", default=ALL_SECTORS, help="Exact sector (default: All)")
@click.option("--export", "export_format", type=click.Choice(["csv", "xlsx"]), default=None)
@click.option("--output-dir", "-o", default=".", type=click.Path(file_okay=False))
def directory(search: str, sector: str, export_format: str | None, output_dir: str) -> None:
    """List startups from the directory."""
    config = load_config()
    try:
        startups = asyncio.run(SupabaseClient(config).fetch_startups())
    except SourceError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    startups = filter_startups(startups, search, sector)

    table = Table(title=f"Startups ({len(startups)})")
    for col in ("Name", "Sector", "Location", "Funding", "Website"):
        table.add_column(col)
    for s in startups:
        funding = " ".join(p for p in (s.funding_round, s.funding_amount) if p)
        table.add_row(s.name, s.sector or "", s.location or "", funding, s.website or "")
    console.print(table)

    if export_format:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        path = out / directory_filename(export_format)
        path.write_bytes(export_directory(startups, export_format))
        console.print(f"Wrote {path}")


if __name__ == "__main__":
    main()
