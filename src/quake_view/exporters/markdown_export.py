"""Markdown exporter for quake view snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from quake_view.icons import LEGEND
from quake_view.models import EarthquakeEvent, ViewSnapshot

_MAX_ROWS = 50


def _magnitude(event: EarthquakeEvent) -> str:
    return "-" if event.magnitude is None else f"{event.magnitude:.1f}"


def _escape(text: str | None) -> str:
    return (text or "Unknown location").replace("|", "\\|")


def export_markdown(
    snapshot: ViewSnapshot,
    output_path: Path,
) -> Path:
    """Export a snapshot as Markdown: summary, legend and an events table."""
    timestamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    stats = snapshot.stats
    lines: list[str] = [
        "# Earthquake Report",
        f"Generated: {timestamp}",
        "",
        "## Summary",
        "",
        f"- **Window**: {snapshot.window or '-'}",
        f"- **Minimum magnitude**: {snapshot.min_magnitude:.1f}",
        f"- **Events**: {stats.count}",
        f"- **Average magnitude**: {stats.average_magnitude:.2f}",
    ]
    if stats.strongest is not None:
        lines.append(
            f"- **Strongest**: M{_magnitude(stats.strongest)}"
            f" – {_escape(stats.strongest.place)}"
        )
    else:
        lines.append("- **Strongest**: -")
    if snapshot.updated_at is not None:
        lines.append(f"- **Updated**: {snapshot.updated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
    if snapshot.bounds is not None:
        b = snapshot.bounds
        lines.append(
            f"- **Bounds**: {b.min_latitude:.2f}, {b.min_longitude:.2f}"
            f" to {b.max_latitude:.2f}, {b.max_longitude:.2f}"
        )
    lines.append("")

    # -- Legend --
    lines.extend(["## Magnitude", ""])
    for label, desc, color in LEGEND:
        lines.append(f"- {color}: {label} ({desc})")
    lines.append("")

    # -- Events table, strongest first --
    lines.extend([
        "## Events",
        "",
        "| Magnitude | Place | Time (UTC) | Depth (km) | Felt | Tsunami |",
        "|----------:|-------|------------|-----------:|-----:|---------|",
    ])
    ranked = sorted(
        snapshot.events,
        key=lambda e: -1.0 if e.magnitude is None else e.magnitude,
        reverse=True,
    )
    for event in ranked[:_MAX_ROWS]:
        when = event.occurred_at.strftime("%Y-%m-%d %H:%M") if event.occurred_at else "-"
        depth = "-" if event.depth_km is None else f"{event.depth_km:.1f}"
        lines.append(
            f"| {_magnitude(event)} | {_escape(event.place)} | {when} | {depth}"
            f" | {event.felt if event.felt is not None else '-'}"
            f" | {'Yes' if event.tsunami else 'No'} |"
        )
    if len(ranked) > _MAX_ROWS:
        lines.extend(["", f"_{len(ranked) - _MAX_ROWS} more events not shown._"])
    if not ranked:
        lines.extend(["", "No earthquakes match the current filters."])
    lines.append("")

    output_path.write_text("\n".join(lines), encoding="utf-8")
    return output_path
