"""Shared fixtures for quake_view tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from quake_view.config import QuakeViewConfig
from quake_view.icons import IconCache
from quake_view.models import EarthquakeEvent, ViewSnapshot
from quake_view.normalize import extract_features, normalize
from quake_view.pipeline import build_view

FIXTURES_DIR = Path(__file__).parent / "fixtures"

DAY_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_day.geojson"
HOUR_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_hour.geojson"
WEEK_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_week.geojson"


def make_event(
    event_id: str = "ev1",
    magnitude: float | None = 3.0,
    latitude: float = 0.0,
    longitude: float = 0.0,
    **kwargs,
) -> EarthquakeEvent:
    """Build an EarthquakeEvent with sensible defaults."""
    return EarthquakeEvent(
        id=event_id,
        latitude=latitude,
        longitude=longitude,
        magnitude=magnitude,
        **kwargs,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_feed() -> dict:
    return json.loads((FIXTURES_DIR / "feed_sample.json").read_text())


@pytest.fixture
def sample_events(sample_feed: dict) -> list[EarthquakeEvent]:
    """The five valid events of the sample feed, in feed order."""
    return normalize(extract_features(sample_feed))


@pytest.fixture
def default_config(tmp_path: Path) -> QuakeViewConfig:
    """Config with defaults, writing to tmp_path."""
    return QuakeViewConfig(output_file=tmp_path / "output.json")


@pytest.fixture
def sample_snapshot(
    sample_events: list[EarthquakeEvent],
    default_config: QuakeViewConfig,
) -> ViewSnapshot:
    """Snapshot of the sample feed at M0+ for exporter tests."""
    return build_view(
        sample_events,
        min_magnitude=0.0,
        icon_cache=IconCache(),
        config=default_config,
        zoom=2,
        window="day",
    )
