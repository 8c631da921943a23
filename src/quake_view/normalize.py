"""Feed record normalization - Pure functions.

Turns raw GeoJSON features into validated EarthquakeEvent objects. Malformed
records are dropped silently; a noisy feed never fails the whole batch.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from quake_view.models import EarthquakeEvent

logger = logging.getLogger(__name__)


def _as_number(value: Any) -> float | None:
    """Return *value* as a finite float, or None for anything else."""
    # bool is an int subclass; a JSON true is not a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_time(value: Any) -> datetime | None:
    ms = _as_number(value)
    if ms is None:
        return None
    try:
        # USGS uses milliseconds since epoch
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def extract_features(payload: Any) -> list[dict[str, Any]]:
    """Return the feature list of a feed document.

    A missing or non-list ``features`` member yields an empty list.
    """
    if not isinstance(payload, dict):
        return []
    features = payload.get("features")
    if not isinstance(features, list):
        return []
    return features


def normalize_feature(feature: Any) -> EarthquakeEvent | None:
    """Validate one GeoJSON feature.

    Args:
        feature: Raw feature dict from the feed

    Returns:
        EarthquakeEvent, or None when the record must be dropped
    """
    if not isinstance(feature, dict):
        return None

    geometry = feature.get("geometry") or {}
    coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coords, (list, tuple)):
        coords = []
    lon_raw, lat_raw, depth_raw = (list(coords[:3]) + [None, None, None])[:3]

    latitude = _as_number(lat_raw)
    longitude = _as_number(lon_raw)
    if latitude is None or longitude is None:
        return None
    if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
        return None

    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        props = {}

    mag_raw = props.get("mag")
    magnitude = None
    if mag_raw is not None:
        magnitude = _as_number(mag_raw)
        if magnitude is None:
            return None

    felt = _as_number(props.get("felt"))

    event_id = feature.get("id")
    if event_id is None or event_id == "":
        # stable stand-in built from position and origin time
        event_id = f"{longitude},{latitude},{props.get('time')}"

    return EarthquakeEvent(
        id=str(event_id),
        latitude=latitude,
        longitude=longitude,
        depth_km=_as_number(depth_raw),
        magnitude=magnitude,
        place=_as_text(props.get("place")),
        occurred_at=_as_time(props.get("time")),
        url=_as_text(props.get("url")),
        tsunami=props.get("tsunami") == 1,
        felt=int(felt) if felt is not None else None,
        alert=_as_text(props.get("alert")),
    )


def normalize(raw_records: Iterable[Any]) -> list[EarthquakeEvent]:
    """Normalize a batch of raw features, keeping feed order.

    Invalid records and repeated ids are dropped; the first occurrence of an
    id wins.
    """
    events: list[EarthquakeEvent] = []
    seen: set[str] = set()
    dropped = 0
    for feature in raw_records:
        event = normalize_feature(feature)
        if event is None or event.id in seen:
            dropped += 1
            continue
        seen.add(event.id)
        events.append(event)

    if dropped:
        logger.debug("Dropped %d malformed feed records", dropped)
    return events
