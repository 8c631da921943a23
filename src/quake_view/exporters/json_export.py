"""JSON exporter for quake view snapshots."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from quake_view.models import ViewSnapshot


def snapshot_to_dict(snapshot: ViewSnapshot) -> dict[str, Any]:
    """Plain JSON-ready dict of a snapshot; clusters list member ids only."""
    data = asdict(snapshot)
    data["state"] = snapshot.state.value
    data["clusters"] = [
        {
            "zoom": c.zoom,
            "cell": list(c.cell),
            "latitude": c.latitude,
            "longitude": c.longitude,
            "count": c.count,
            "max_magnitude": c.max_magnitude,
            "event_ids": [e.id for e in c.events],
        }
        for c in snapshot.clusters
    ]
    return data


def export_json(
    snapshot: ViewSnapshot,
    output_path: Path,
    indent: int = 2,
) -> Path:
    """Export a view snapshot to a JSON file."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=indent, ensure_ascii=False, default=str)
    return output_path
