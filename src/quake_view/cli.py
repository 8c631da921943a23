"""CLI interface using Typer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from quake_view import __version__
from quake_view.config import FeedWindow, OutputFormat, QuakeViewConfig
from quake_view.exporters import (
    export_csv,
    export_geojson,
    export_html,
    export_json,
    export_markdown,
)
from quake_view.fetchers.usgs import FeedError
from quake_view.models import ViewSnapshot
from quake_view.pipeline import run_pipeline

Exporter = Callable[[ViewSnapshot, Path], Path]

EXPORTERS: dict[str, Exporter] = {
    "json": export_json,
    "geojson": export_geojson,
    "html": export_html,
    "csv": export_csv,
    "markdown": export_markdown,
}

_COLOR_STYLE = {
    "green": "[green]{}[/green]",
    "yellow": "[yellow]{}[/yellow]",
    "orange": "[dark_orange]{}[/dark_orange]",
    "red": "[red]{}[/red]",
    "gray": "[dim]{}[/dim]",
}

app = typer.Typer(
    name="quake-view",
    help="Recent earthquakes from USGS feeds: filter, summarize and map.",
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"quake-view {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Quake View — USGS earthquake feeds, filtered and framed for a map."""


@app.command()
def run(
    window: Annotated[
        FeedWindow,
        typer.Option("--window", "-w", help="Feed window: hour, day, week, month."),
    ] = "day",
    min_magnitude: Annotated[
        float,
        typer.Option("--min-magnitude", "-m", min=0.0, help="Minimum earthquake magnitude."),
    ] = 0.0,
    zoom: Annotated[
        int | None,
        typer.Option("--zoom", "-z", min=0, help="Map zoom for clustering (default: fit)."),
    ] = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path."),
    ] = Path("quake_view.json"),
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: json, geojson, html, csv, markdown."),
    ] = "json",
    unknown_as_zero: Annotated[
        bool,
        typer.Option(
            "--average-unknown-as-zero",
            help="Count events without magnitude as M0 in the average.",
        ),
    ] = False,
    top: Annotated[
        int,
        typer.Option("--top", help="Number of strongest events to list."),
    ] = 10,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Fetch a feed, filter it and export the map view."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )

    config = QuakeViewConfig(
        feed_window=window,
        min_magnitude=min_magnitude,
        average_unknown_as_zero=unknown_as_zero,
        output_file=output,
        output_format=output_format,
    )

    try:
        snapshot = run_pipeline(config, zoom=zoom)
    except FeedError as exc:
        console.print(f"[red]Fetch failed:[/red] {exc}")
        raise typer.Exit(code=1) from None

    exporter = EXPORTERS[config.output_format]
    exporter(snapshot, config.output_file)

    stats = snapshot.stats
    if not snapshot.events:
        console.print("[yellow]No earthquakes match the current filters.[/yellow]")

    console.print()
    table = Table(title=f"Earthquakes — past {window}, M{min_magnitude:.1f}+")
    table.add_column("Mag", justify="right")
    table.add_column("Place")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Depth", justify="right")
    table.add_column("Tsunami")

    ranked = sorted(
        snapshot.events,
        key=lambda e: -1.0 if e.magnitude is None else e.magnitude,
        reverse=True,
    )
    for event in ranked[:top]:
        visual = snapshot.icons[event.id]
        mag = "-" if event.magnitude is None else f"{event.magnitude:.1f}"
        table.add_row(
            _COLOR_STYLE[visual.color].format(mag),
            event.place or "Unknown location",
            event.occurred_at.strftime("%Y-%m-%d %H:%M") if event.occurred_at else "-",
            "-" if event.depth_km is None else f"{event.depth_km:.1f} km",
            "Yes" if event.tsunami else "No",
        )

    console.print(table)
    console.print(f"\nEvents: {stats.count}")
    console.print(f"Average magnitude: {stats.average_magnitude:.2f}")
    if stats.strongest is not None:
        console.print(
            f"Strongest: M{stats.strongest.magnitude:.1f} – "
            f"{stats.strongest.place or 'Unknown location'}"
        )
    if snapshot.bounds is not None:
        b = snapshot.bounds
        console.print(
            f"Bounds: ({b.min_latitude:.2f}, {b.min_longitude:.2f}) – "
            f"({b.max_latitude:.2f}, {b.max_longitude:.2f})"
        )
    else:
        console.print("Bounds: none (world view)")
    console.print(f"Clusters at zoom {snapshot.zoom}: {len(snapshot.clusters)}")
    console.print(
        f"\n{config.output_format.upper()} written to [bold]{config.output_file}[/bold]"
    )


@app.command()
def windows() -> None:
    """List the configured feed windows and their URLs."""
    config = QuakeViewConfig()
    table = Table(title="Feed windows")
    table.add_column("Window", style="bold")
    table.add_column("URL")
    for name, url in config.feed_urls.items():
        table.add_row(name, url)
    console.print(table)
