"""Bounding box calculation and map framing - Pure functions.

The bounding box is a plain min/max over latitude and longitude. Sets that
straddle the anti-meridian produce a box spanning the whole globe in
longitude rather than a wrapped one.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from quake_view.models import BoundingBox, ViewFrame


def _lat_lon(point: Any) -> tuple[float, float]:
    if isinstance(point, (tuple, list)):
        return float(point[0]), float(point[1])
    return point.latitude, point.longitude


def compute_bounds(points: Iterable[Any]) -> BoundingBox | None:
    """Compute the minimal box enclosing *points*.

    Args:
        points: Objects with ``latitude``/``longitude`` attributes, or
            ``(lat, lon)`` pairs

    Returns:
        BoundingBox, or None for an empty input (no frame to fit)
    """
    min_lat = max_lat = min_lon = max_lon = None
    for point in points:
        lat, lon = _lat_lon(point)
        if min_lat is None:
            min_lat = max_lat = lat
            min_lon = max_lon = lon
            continue
        min_lat = min(min_lat, lat)
        max_lat = max(max_lat, lat)
        min_lon = min(min_lon, lon)
        max_lon = max(max_lon, lon)

    if min_lat is None:
        return None
    return BoundingBox(
        min_latitude=min_lat,
        min_longitude=min_lon,
        max_latitude=max_lat,
        max_longitude=max_lon,
    )


def frame_for(
    bounds: BoundingBox | None,
    *,
    padding_px: int = 20,
    max_zoom: int = 6,
    world_center: tuple[float, float] = (20.0, 0.0),
    world_zoom: int = 2,
) -> ViewFrame:
    """Fit to *bounds* when there are any, else fall back to the world view."""
    if bounds is None:
        return ViewFrame(
            bounds=None,
            center=world_center,
            zoom=world_zoom,
            padding_px=padding_px,
            max_zoom=max_zoom,
        )
    return ViewFrame(bounds=bounds, padding_px=padding_px, max_zoom=max_zoom)


class ViewFitter:
    """Decides when the map view should be re-framed.

    The map is re-fitted when the bounds change or when the reset token
    advances; otherwise the user's own pan and zoom are left alone.
    """

    def __init__(
        self,
        *,
        padding_px: int = 20,
        max_zoom: int = 6,
        world_center: tuple[float, float] = (20.0, 0.0),
        world_zoom: int = 2,
    ) -> None:
        self._options = {
            "padding_px": padding_px,
            "max_zoom": max_zoom,
            "world_center": world_center,
            "world_zoom": world_zoom,
        }
        self._bounds: BoundingBox | None = None
        self._reset_token: int | None = None

    def update(self, bounds: BoundingBox | None, reset_token: int) -> ViewFrame | None:
        """Return a new frame if the view must be re-fitted, else None."""
        first = self._reset_token is None
        if not first and bounds == self._bounds and reset_token == self._reset_token:
            return None
        self._bounds = bounds
        self._reset_token = reset_token
        return frame_for(bounds, **self._options)
