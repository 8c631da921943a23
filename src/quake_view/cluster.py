"""Screen-space marker clustering.

Events are grouped by the Web Mercator pixel grid cell they fall into at the
current zoom. Cells are ``radius_px`` squares and world pixel coordinates
double with every zoom level, so each cell at zoom z+1 lies inside exactly
one cell at zoom z: zooming in splits clusters, it never moves an event into
a different parent.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from quake_view.geo import project
from quake_view.models import Cluster, EarthquakeEvent

DEFAULT_RADIUS_PX = 80
MAX_ZOOM = 18


def _make_cluster(zoom: int, cell: tuple[int, int], members: list[EarthquakeEvent]) -> Cluster:
    lat = sum(e.latitude for e in members) / len(members)
    lon = sum(e.longitude for e in members) / len(members)
    return Cluster(
        zoom=zoom,
        cell=cell,
        events=tuple(members),
        latitude=lat,
        longitude=lon,
    )


def cluster_events(
    events: Sequence[EarthquakeEvent],
    zoom: int,
    radius_px: int = DEFAULT_RADIUS_PX,
    disable_at_zoom: int | None = MAX_ZOOM,
) -> list[Cluster]:
    """Group *events* into grid clusters for *zoom*.

    Every event lands in exactly one cluster (a singleton when alone in its
    cell). Clusters are ordered by their first member and members keep the
    input order, so the result is deterministic for a fixed input and zoom.
    At or above *disable_at_zoom* every event is returned as a singleton.
    """
    if zoom < 0:
        raise ValueError(f"zoom must be >= 0, got {zoom}")
    if radius_px < 1:
        raise ValueError(f"radius_px must be >= 1, got {radius_px}")
    if not events:
        return []

    xs, ys = project(
        [e.latitude for e in events],
        [e.longitude for e in events],
        zoom,
    )
    cells_x = np.floor(xs / radius_px).astype(np.int64)
    cells_y = np.floor(ys / radius_px).astype(np.int64)
    cells = list(zip(cells_x.tolist(), cells_y.tolist(), strict=True))

    if disable_at_zoom is not None and zoom >= disable_at_zoom:
        return [
            _make_cluster(zoom, cell, [event])
            for event, cell in zip(events, cells, strict=True)
        ]

    groups: dict[tuple[int, int], list[EarthquakeEvent]] = {}
    for event, cell in zip(events, cells, strict=True):
        groups.setdefault(cell, []).append(event)

    # dicts keep insertion order: clusters come out by first member
    return [_make_cluster(zoom, cell, members) for cell, members in groups.items()]


def expand_cluster(
    cluster: Cluster,
    radius_px: int = DEFAULT_RADIUS_PX,
    disable_at_zoom: int | None = MAX_ZOOM,
) -> list[Cluster]:
    """Re-cluster a cluster's members one zoom level deeper."""
    return cluster_events(
        cluster.events,
        cluster.zoom + 1,
        radius_px=radius_px,
        disable_at_zoom=disable_at_zoom,
    )


def expansion_zoom(
    cluster: Cluster,
    radius_px: int = DEFAULT_RADIUS_PX,
    max_zoom: int = MAX_ZOOM,
) -> int:
    """First zoom level at which *cluster* splits into several clusters.

    Members sharing the exact same position never split; *max_zoom* is
    returned for them, where clustering is switched off.
    """
    if cluster.is_singleton:
        return cluster.zoom
    for zoom in range(cluster.zoom + 1, max_zoom):
        if len(cluster_events(cluster.events, zoom, radius_px, disable_at_zoom=None)) > 1:
            return zoom
    return max(max_zoom, cluster.zoom)
