"""Geographic utilities: Web Mercator projection and zoom fitting."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from quake_view.models import BoundingBox

TILE_SIZE_PX = 256
MAX_MERCATOR_LAT = 85.0511287798


def project(
    latitudes: Sequence[float] | np.ndarray,
    longitudes: Sequence[float] | np.ndarray,
    zoom: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Project lat/lon to Web Mercator world pixels at *zoom*.

    The world is ``256 * 2**zoom`` pixels wide; x grows eastwards from
    longitude -180 and y grows southwards from the northern Mercator limit.
    """
    lat = np.clip(np.asarray(latitudes, dtype=np.float64), -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    lon = np.asarray(longitudes, dtype=np.float64)

    # Normalized [0, 1] coordinates first, then an exact power-of-two scale,
    # so pixel positions at zoom z+1 are exactly twice those at zoom z.
    x_norm = (lon + 180.0) / 360.0
    sin_lat = np.sin(np.radians(lat))
    y_norm = 0.5 - np.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)

    scale = float(TILE_SIZE_PX * 2 ** zoom)
    return x_norm * scale, y_norm * scale


def fit_zoom(
    bounds: BoundingBox,
    width_px: int,
    height_px: int,
    padding_px: int = 20,
    max_zoom: int = 6,
    min_zoom: int = 0,
) -> int:
    """Largest integer zoom at which *bounds* fits the padded viewport.

    Capped at *max_zoom*; a degenerate (single point) box gets *max_zoom*.
    """
    avail_w = max(width_px - 2 * padding_px, 1)
    avail_h = max(height_px - 2 * padding_px, 1)

    xs, ys = project(
        [bounds.min_latitude, bounds.max_latitude],
        [bounds.min_longitude, bounds.max_longitude],
        0,
    )
    span_x = abs(float(xs[1] - xs[0]))
    span_y = abs(float(ys[1] - ys[0]))

    zoom = min_zoom
    for candidate in range(min_zoom, max_zoom + 1):
        scale = 2 ** candidate
        if span_x * scale <= avail_w and span_y * scale <= avail_h:
            zoom = candidate
        else:
            break
    return zoom
