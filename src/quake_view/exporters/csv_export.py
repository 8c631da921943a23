"""CSV exporter for quake view snapshots."""

from __future__ import annotations

import csv
from pathlib import Path

from quake_view.models import ViewSnapshot

FIELDNAMES = [
    "id",
    "time",
    "magnitude",
    "place",
    "latitude",
    "longitude",
    "depth_km",
    "felt",
    "tsunami",
    "alert",
    "marker_color",
    "url",
]


def export_csv(
    snapshot: ViewSnapshot,
    output_path: Path,
) -> Path:
    """Export the filtered events as a flat CSV, one row per event in feed order."""
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()

        for event in snapshot.events:
            visual = snapshot.icons.get(event.id)
            writer.writerow({
                "id": event.id,
                "time": event.occurred_at.isoformat() if event.occurred_at else "",
                "magnitude": "" if event.magnitude is None else event.magnitude,
                "place": event.place or "",
                "latitude": event.latitude,
                "longitude": event.longitude,
                "depth_km": "" if event.depth_km is None else event.depth_km,
                "felt": "" if event.felt is None else event.felt,
                "tsunami": int(event.tsunami),
                "alert": event.alert or "",
                "marker_color": visual.color if visual else "",
                "url": event.url or "",
            })

    return output_path
