"""Data models for the quake view pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

ColorToken = Literal["green", "yellow", "orange", "red", "gray"]


class FetchState(str, enum.Enum):
    """Lifecycle of a feed request."""

    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class EarthquakeEvent:
    """A validated earthquake record from a USGS feed."""

    id: str
    latitude: float
    longitude: float
    depth_km: float | None = None
    magnitude: float | None = None
    place: str | None = None
    occurred_at: datetime | None = None
    url: str | None = None
    tsunami: bool = False
    felt: int | None = None
    alert: str | None = None


@dataclass(frozen=True)
class SummaryStats:
    """Aggregate figures over the filtered collection."""

    count: int = 0
    average_magnitude: float = 0.0
    strongest: EarthquakeEvent | None = None


@dataclass(frozen=True)
class BoundingBox:
    """Minimal axis-aligned lat/lon rectangle around a set of points."""

    min_latitude: float
    min_longitude: float
    max_latitude: float
    max_longitude: float

    def corners(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """South-west and north-east corners as (lat, lon) pairs."""
        return (
            (self.min_latitude, self.min_longitude),
            (self.max_latitude, self.max_longitude),
        )

    @property
    def center(self) -> tuple[float, float]:
        return (
            (self.min_latitude + self.max_latitude) / 2,
            (self.min_longitude + self.max_longitude) / 2,
        )


@dataclass(frozen=True)
class MarkerVisual:
    """Cached marker descriptor for one magnitude bucket."""

    bucket_key: int
    size_px: float
    color: ColorToken
    hex_color: str
    label: str


@dataclass(frozen=True)
class Cluster:
    """A group of events sharing one screen-space grid cell at a zoom level."""

    zoom: int
    cell: tuple[int, int]
    events: tuple[EarthquakeEvent, ...]
    latitude: float
    longitude: float

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def is_singleton(self) -> bool:
        return len(self.events) == 1

    @property
    def max_magnitude(self) -> float | None:
        mags = [e.magnitude for e in self.events if e.magnitude is not None]
        return max(mags) if mags else None


@dataclass(frozen=True)
class ViewFrame:
    """How the map should be framed.

    Either ``bounds`` is set (fit the map to it with padding and a zoom cap)
    or ``bounds`` is None and ``center``/``zoom`` describe the world view.
    """

    bounds: BoundingBox | None
    center: tuple[float, float] | None = None
    zoom: int | None = None
    padding_px: int = 20
    max_zoom: int = 6

    @property
    def is_world_view(self) -> bool:
        return self.bounds is None


@dataclass(frozen=True)
class ViewSnapshot:
    """Everything a renderer needs for one render of the map view."""

    window: str | None
    state: FetchState
    error: str | None
    updated_at: datetime | None
    min_magnitude: float
    events: list[EarthquakeEvent] = field(default_factory=list)
    stats: SummaryStats = field(default_factory=SummaryStats)
    bounds: BoundingBox | None = None
    frame: ViewFrame | None = None
    zoom: int = 2
    clusters: list[Cluster] = field(default_factory=list)
    icons: dict[str, MarkerVisual] = field(default_factory=dict)
    reset_token: int = 0
