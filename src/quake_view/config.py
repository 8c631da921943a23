"""Configuration model for the quake view pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

FeedWindow = Literal["hour", "day", "week", "month"]
OutputFormat = Literal["json", "geojson", "html", "csv", "markdown"]

_FEED_BASE = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary"

DEFAULT_FEEDS: dict[str, str] = {
    "hour": f"{_FEED_BASE}/all_hour.geojson",
    "day": f"{_FEED_BASE}/all_day.geojson",
    "week": f"{_FEED_BASE}/all_week.geojson",
    "month": f"{_FEED_BASE}/all_month.geojson",
}


class QuakeViewConfig(BaseSettings):
    """All configurable parameters for fetching and framing the quake view.

    Values can be set via constructor arguments, environment variables
    prefixed with QUAKE_VIEW_, or defaults.
    """

    model_config = {"env_prefix": "QUAKE_VIEW_"}

    feed_window: FeedWindow = Field(
        default="day", description="Feed time window: hour, day, week or month."
    )
    feed_urls: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FEEDS),
        description="Feed URL for each time window.",
    )
    min_magnitude: float = Field(
        default=0.0, ge=0.0, le=10.0, description="Minimum earthquake magnitude."
    )
    request_timeout: int = Field(
        default=30, ge=1, le=300, description="HTTP request timeout in seconds."
    )
    http_retries: int = Field(
        default=0, ge=0, le=10, description="Transport-level retries per request."
    )
    average_unknown_as_zero: bool = Field(
        default=False,
        description="Count events without magnitude as 0 in the average magnitude.",
    )
    cluster_radius_px: int = Field(
        default=80, ge=1, description="Cluster grid cell size in screen pixels."
    )
    disable_clustering_at_zoom: int | None = Field(
        default=18, ge=0, description="Zoom level from which every event is a single marker."
    )
    fit_padding_px: int = Field(
        default=20, ge=0, description="Padding around the fitted bounds in pixels."
    )
    fit_max_zoom: int = Field(
        default=6, ge=0, le=22, description="Maximum zoom used when fitting to bounds."
    )
    world_center: tuple[float, float] = Field(
        default=(20.0, 0.0), description="(lat, lon) of the fallback world view."
    )
    world_zoom: int = Field(
        default=2, ge=0, le=22, description="Zoom of the fallback world view."
    )
    viewport_width_px: int = Field(
        default=1280, ge=1, description="Assumed map viewport width for zoom fitting."
    )
    viewport_height_px: int = Field(
        default=720, ge=1, description="Assumed map viewport height for zoom fitting."
    )
    icon_cache_size: int | None = Field(
        default=None, ge=1, description="LRU bound for the marker icon cache; None = unbounded."
    )
    output_file: Path = Field(
        default=Path("quake_view.json"), description="Output file path."
    )
    output_format: OutputFormat = Field(
        default="json", description="Output format: json, geojson, html, csv, or markdown."
    )

    def feed_url(self, window: str | None = None) -> str:
        """Return the feed URL for *window* (defaults to the configured window)."""
        key = window or self.feed_window
        try:
            return self.feed_urls[key]
        except KeyError:
            raise ValueError(f"Unknown feed window: {key!r}") from None
