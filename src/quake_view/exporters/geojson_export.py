"""GeoJSON exporter for quake view snapshots."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quake_view.icons import marker_label
from quake_view.models import Cluster, EarthquakeEvent, MarkerVisual, ViewSnapshot


def make_event_feature(
    event: EarthquakeEvent,
    visual: MarkerVisual | None,
) -> dict[str, Any]:
    """Create a GeoJSON Feature for an earthquake with its marker style."""
    return {
        "type": "Feature",
        "id": event.id,
        "geometry": {
            "type": "Point",
            "coordinates": [event.longitude, event.latitude],
        },
        "properties": {
            "feature_type": "earthquake",
            "earthquake_id": event.id,
            "magnitude": event.magnitude,
            "depth_km": event.depth_km,
            "place": event.place,
            "time": event.occurred_at.isoformat() if event.occurred_at else None,
            "url": event.url,
            "tsunami": event.tsunami,
            "felt": event.felt,
            "alert": event.alert,
            "marker_size_px": visual.size_px if visual else None,
            "marker_color": visual.hex_color if visual else None,
            "marker_label": marker_label(event.magnitude),
        },
    }


def _make_cluster_feature(cluster: Cluster) -> dict[str, Any]:
    """Create a GeoJSON Feature for a multi-event cluster at its centroid."""
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [cluster.longitude, cluster.latitude],
        },
        "properties": {
            "feature_type": "cluster",
            "zoom": cluster.zoom,
            "count": cluster.count,
            "max_magnitude": cluster.max_magnitude,
            "earthquake_ids": [e.id for e in cluster.events],
        },
    }


def export_geojson(
    snapshot: ViewSnapshot,
    output_path: Path,
) -> Path:
    """Export a snapshot as a GeoJSON FeatureCollection.

    Creates a FeatureCollection with two feature types:
    - "earthquake": every filtered event, with its marker style
    - "cluster": groups of two or more events at the snapshot zoom

    GeoJSON coordinates are [longitude, latitude] per RFC 7946. The bounding box
    is written as the standard ``bbox`` member when there is one.
    """
    features: list[dict[str, Any]] = [
        make_event_feature(e, snapshot.icons.get(e.id)) for e in snapshot.events
    ]
    clusters = [c for c in snapshot.clusters if not c.is_singleton]
    features.extend(_make_cluster_feature(c) for c in clusters)

    stats = snapshot.stats
    geojson: dict[str, Any] = {
        "type": "FeatureCollection",
        "metadata": {
            "generated": datetime.now(tz=timezone.utc).isoformat(),
            "source": "quake-view",
            "window": snapshot.window,
            "min_magnitude": snapshot.min_magnitude,
            "earthquake_count": stats.count,
            "average_magnitude": round(stats.average_magnitude, 2),
            "strongest_id": stats.strongest.id if stats.strongest else None,
            "zoom": snapshot.zoom,
            "cluster_count": len(clusters),
        },
        "features": features,
    }
    if snapshot.bounds is not None:
        b = snapshot.bounds
        geojson["bbox"] = [b.min_longitude, b.min_latitude, b.max_longitude, b.max_latitude]

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(geojson, f, indent=2, ensure_ascii=False)

    return output_path
