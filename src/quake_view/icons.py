"""Marker visuals keyed by magnitude bucket.

Magnitudes are quantized to 0.5-wide buckets and each bucket maps to one
cached MarkerVisual, so a large event list shares a handful of icon objects.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from collections.abc import Callable, Hashable

from quake_view.models import ColorToken, MarkerVisual

logger = logging.getLogger(__name__)

MIN_SIZE_PX = 14.0
MAX_SIZE_PX = 42.0
FALLBACK_SIZE_PX = 18.0
UNKNOWN_LABEL = "?"

COLOR_HEX: dict[str, str] = {
    "green": "#22c55e",
    "yellow": "#eab308",
    "orange": "#f97316",
    "red": "#ef4444",
    "gray": "#9CA3AF",
}

# (label, description, color) per magnitude class, lowest first
LEGEND: list[tuple[str, str, ColorToken]] = [
    ("< 2.5", "Minor", "green"),
    ("2.5 – 4.4", "Light", "yellow"),
    ("4.5 – 5.9", "Moderate", "orange"),
    ("6.0+", "Strong", "red"),
]

_UNKNOWN_KEY = "unknown"


def _is_unknown(magnitude: float | None) -> bool:
    # NaN and magnitudes too large to bucket (m * 2 overflows) count as unknown
    return magnitude is None or not math.isfinite(magnitude * 2)


def bucket_key(magnitude: float | None) -> int:
    """Quantize a magnitude to steps of 0.5 (half-up rounding of m * 2)."""
    value = 0.0 if _is_unknown(magnitude) else magnitude
    return math.floor(value * 2 + 0.5)


def magnitude_color(magnitude: float | None) -> ColorToken:
    if _is_unknown(magnitude):
        return "gray"
    if magnitude < 2.5:
        return "green"
    if magnitude < 4.5:
        return "yellow"
    if magnitude < 6.0:
        return "orange"
    return "red"


def magnitude_size(magnitude: float | None) -> float:
    if _is_unknown(magnitude):
        return FALLBACK_SIZE_PX
    return max(MIN_SIZE_PX, min(MAX_SIZE_PX, 12 + magnitude * 4))


def marker_label(magnitude: float | None) -> str:
    """Text shown on a single marker: the event's own magnitude to one decimal."""
    if _is_unknown(magnitude):
        return UNKNOWN_LABEL
    return f"{magnitude:.1f}"


class IconCache:
    """Read-through cache of marker visuals.

    One instance is owned by the rendering context for the lifetime of the
    application. Entries are never invalidated; with ``max_size`` set the
    least recently used entry is evicted once the bound is reached.
    """

    def __init__(self, max_size: int | None = None) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._entries: OrderedDict[Hashable, MarkerVisual] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get_or_create(
        self,
        key: Hashable,
        factory: Callable[[], MarkerVisual],
    ) -> MarkerVisual:
        visual = self._entries.get(key)
        if visual is not None:
            self.hits += 1
            if self.max_size is not None:
                self._entries.move_to_end(key)
            return visual

        self.misses += 1
        visual = factory()
        self._entries[key] = visual
        if self.max_size is not None and len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Icon cache full, evicted bucket %s", evicted)
        return visual


def _build_visual(key: int | None) -> MarkerVisual:
    if key is None:
        return MarkerVisual(
            bucket_key=0,
            size_px=FALLBACK_SIZE_PX,
            color="gray",
            hex_color=COLOR_HEX["gray"],
            label=UNKNOWN_LABEL,
        )
    representative = key / 2
    color = magnitude_color(representative)
    return MarkerVisual(
        bucket_key=key,
        size_px=magnitude_size(representative),
        color=color,
        hex_color=COLOR_HEX[color],
        label=f"{representative:.1f}",
    )


def resolve_icon(magnitude: float | None, cache: IconCache) -> MarkerVisual:
    """Return the cached visual for *magnitude*'s bucket, creating it on a miss.

    The visual depends only on the bucket (it is built from the bucket's
    representative magnitude), so resolving a bucket twice always yields
    equal results. Unknown magnitudes get their own gray entry.

    A 0.5-wide bucket can straddle a colour threshold: 5.8 shares bucket 12
    with 6.0 and so gets the red visual labelled "6.0". Renderers that show
    a number should take it from the event (see
    ``geojson_export.make_event_feature``), not from the bucket label.
    """
    if _is_unknown(magnitude):
        return cache.get_or_create(_UNKNOWN_KEY, lambda: _build_visual(None))
    key = bucket_key(magnitude)
    return cache.get_or_create(key, lambda: _build_visual(key))
