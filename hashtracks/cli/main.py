"""Unified CLI for the HashTracks source adapters.

Usage:
    hashtracks scrape --source london-hash
    hashtracks scrape --type GOOGLE_CALENDAR --days 30
    hashtracks scrape --source sfh3-ical --json
    hashtracks sources --type HTML_SCRAPER -v
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hashtracks import __version__
from hashtracks.adapters import create_adapter, list_adapters
from hashtracks.config.settings import get_settings
from hashtracks.config.sources import SourceRegistry
from hashtracks.core.deadline import Deadline
from hashtracks.core.event_model import Source, SourceType
from hashtracks.core.exceptions import ConfigurationError, SourceNotFoundError
from hashtracks.core.scrape_result import ScrapeResult
from hashtracks.logging import setup_logging

app = typer.Typer(
    name="hashtracks",
    help="Fetch hash run events from kennel websites, calendars and feeds",
    add_completion=False,
)
console = Console()


@app.callback()
def configure() -> None:
    """Configure logging from settings before any command runs."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.log_file)


def type_callback(value: str | None) -> SourceType | None:
    """Convert a type string to SourceType."""
    if value is None:
        return None
    try:
        return SourceType(value.upper())
    except ValueError:
        valid = ", ".join(t.value for t in SourceType)
        raise typer.BadParameter(f"Invalid type. Must be one of: {valid}")


async def run_source(
    source: Source,
    days: int | None,
    deadline: Deadline | None,
) -> ScrapeResult | ConfigurationError:
    """Fetch one source; configuration errors are returned, not raised."""
    try:
        async with create_adapter(source) as adapter:
            return await adapter.fetch(source, days=days, deadline=deadline)
    except ConfigurationError as e:
        return e


async def run_sources(
    sources: list[Source],
    days: int | None,
    deadline: Deadline | None,
) -> list[ScrapeResult | ConfigurationError]:
    return await asyncio.gather(*(run_source(s, days, deadline) for s in sources))


def result_status(result: ScrapeResult) -> str:
    if result.fetch_errors and not result.events:
        return "[red]FAILED[/red]"
    if result.fetch_errors or result.parse_errors:
        return "[yellow]PARTIAL[/yellow]"
    return "[green]OK[/green]"


@app.command()
def scrape(
    source: Optional[str] = typer.Option(
        None,
        "--source", "-s",
        help="Fetch only this source slug",
    ),
    source_type: Optional[str] = typer.Option(
        None,
        "--type", "-t",
        help="Fetch all sources of this type (e.g. HTML_SCRAPER)",
    ),
    days: Optional[int] = typer.Option(
        None,
        "--days", "-d",
        min=0,
        help="Window half-width in days (default from SCRAPER_DEFAULT_DAYS)",
    ),
    deadline_seconds: Optional[float] = typer.Option(
        None,
        "--deadline",
        min=0,
        help="Overall deadline in seconds for all requests",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON keyed by source slug",
    ),
):
    """Fetch events from one source or every source of a type.

    Examples:
        hashtracks scrape --source london-hash
        hashtracks scrape --type ICAL_FEED --days 30 --json
    """
    if not source and not source_type:
        console.print("[red]Error:[/red] Must specify --source or --type")
        raise typer.Exit(1)

    if source:
        try:
            sources_to_run = [SourceRegistry.get(source)]
        except SourceNotFoundError as e:
            console.print(f"[red]Error:[/red] Unknown source: {escape(e.slug)}")
            console.print(f"Available: {', '.join(e.available or [])}")
            raise typer.Exit(1)
    else:
        sources_to_run = SourceRegistry.by_type(type_callback(source_type))

    if not sources_to_run:
        console.print("[yellow]Warning:[/yellow] No sources match the criteria")
        raise typer.Exit(0)

    settings = get_settings()
    deadline_seconds = deadline_seconds if deadline_seconds is not None else settings.scraper_deadline_seconds
    deadline = Deadline.after(deadline_seconds) if deadline_seconds is not None else None

    outcomes = asyncio.run(run_sources(sources_to_run, days, deadline))

    failures = [
        (s, outcome) for s, outcome in zip(sources_to_run, outcomes)
        if isinstance(outcome, ConfigurationError)
    ]
    results = [
        (s, outcome) for s, outcome in zip(sources_to_run, outcomes)
        if isinstance(outcome, ScrapeResult)
    ]

    if as_json:
        typer.echo(json.dumps({s.id: r.to_wire() for s, r in results}, indent=2, ensure_ascii=False))
    else:
        print_summary(results)

    for s, error in failures:
        console.print(f"[red]Error:[/red] {s.id}: {escape(str(error))}")
    if failures:
        raise typer.Exit(1)


def print_summary(results: list[tuple[Source, ScrapeResult]]) -> None:
    """Print the per-source result table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Source")
    table.add_column("Type")
    table.add_column("Events", justify="right")
    table.add_column("Fetch errors", justify="right")
    table.add_column("Parse errors", justify="right")
    table.add_column("Status")

    total_events = 0
    for s, r in results:
        total_events += len(r.events)
        table.add_row(
            s.id,
            s.type.value,
            str(len(r.events)),
            str(len(r.fetch_errors)),
            str(len(r.parse_errors)),
            result_status(r),
        )

    console.print(table)
    console.print(f"[bold]TOTAL:[/bold] {total_events} events from {len(results)} sources")


@app.command()
def sources(
    source_type: Optional[str] = typer.Option(
        None,
        "--type", "-t",
        help="Filter by source type",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show URL and config keys",
    ),
):
    """List configured sources.

    Examples:
        hashtracks sources
        hashtracks sources --type GOOGLE_SHEETS -v
    """
    found = SourceRegistry.all()
    type_enum = type_callback(source_type)
    if type_enum:
        found = [s for s in found if s.type == type_enum]

    if not found:
        console.print("[yellow]No sources match the criteria[/yellow]")
        raise typer.Exit(0)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Slug")
    table.add_column("Name")
    table.add_column("Type")
    if verbose:
        table.add_column("URL")
        table.add_column("Config")

    for s in sorted(found, key=lambda x: (x.type.value, x.id)):
        if verbose:
            table.add_row(s.id, s.name, s.type.value, s.url, ", ".join(s.config) or "-")
        else:
            table.add_row(s.id, s.name, s.type.value)

    console.print(table)

    console.print()
    console.print(f"[bold]Total:[/bold] {len(found)} sources")
    for t, c in SourceRegistry.count_by_type().items():
        if c > 0:
            console.print(f"  {t.value}: {c}")


@app.command()
def version():
    """Show version information."""
    console.print("[bold]HashTracks source adapters[/bold]")
    console.print(f"Version: {__version__}")
    console.print(f"Adapters: {', '.join(list_adapters())}")
    console.print(f"Sources: {len(SourceRegistry.all())}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
