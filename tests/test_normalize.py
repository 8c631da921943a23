"""Tests for feed record normalization."""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone

from quake_view.normalize import extract_features, normalize, normalize_feature


def _feature(event_id="ev1", coords=(10.0, 20.0, 5.0), **props):
    base = {"mag": 3.0, "place": "Somewhere", "time": 1700000000000}
    base.update(props)
    return {
        "type": "Feature",
        "id": event_id,
        "properties": base,
        "geometry": {"type": "Point", "coordinates": list(coords)},
    }


class TestExtractFeatures:
    def test_missing_features_is_empty(self):
        assert extract_features({"type": "FeatureCollection"}) == []

    def test_non_list_features_is_empty(self):
        assert extract_features({"features": {"a": 1}}) == []

    def test_non_dict_payload_is_empty(self):
        assert extract_features([1, 2, 3]) == []

    def test_returns_feature_list(self, sample_feed):
        assert len(extract_features(sample_feed)) == 6


class TestNormalizeFeature:
    def test_maps_all_fields(self):
        event = normalize_feature(
            _feature(
                "us1",
                coords=(141.5, 38.3, 30.0),
                mag=4.7,
                url="https://example.org/us1",
                felt=120,
                alert="green",
                tsunami=1,
            )
        )
        assert event is not None
        assert event.id == "us1"
        assert event.longitude == 141.5
        assert event.latitude == 38.3
        assert event.depth_km == 30.0
        assert event.magnitude == 4.7
        assert event.place == "Somewhere"
        assert event.occurred_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert event.url == "https://example.org/us1"
        assert event.felt == 120
        assert event.alert == "green"
        assert event.tsunami is True

    def test_missing_latitude_dropped(self):
        assert normalize_feature(_feature(coords=(10.0,))) is None

    def test_null_longitude_dropped(self):
        assert normalize_feature(_feature(coords=(None, 10.0, 5.0))) is None

    def test_nan_longitude_dropped(self):
        assert normalize_feature(_feature(coords=(math.nan, 10.0, 5.0))) is None

    def test_infinite_latitude_dropped(self):
        assert normalize_feature(_feature(coords=(10.0, math.inf, 5.0))) is None

    def test_string_coordinate_dropped(self):
        assert normalize_feature(_feature(coords=("10", 20.0, 5.0))) is None

    def test_boolean_coordinate_dropped(self):
        assert normalize_feature(_feature(coords=(True, 20.0, 5.0))) is None

    def test_out_of_range_latitude_dropped(self):
        assert normalize_feature(_feature(coords=(10.0, 91.0, 5.0))) is None

    def test_missing_geometry_dropped(self):
        feature = _feature()
        del feature["geometry"]
        assert normalize_feature(feature) is None

    def test_null_magnitude_kept(self):
        event = normalize_feature(_feature(mag=None))
        assert event is not None
        assert event.magnitude is None

    def test_nan_magnitude_dropped(self):
        assert normalize_feature(_feature(mag=math.nan)) is None

    def test_non_numeric_magnitude_dropped(self):
        assert normalize_feature(_feature(mag="strong")) is None

    def test_missing_id_gets_stable_id(self):
        feature = _feature()
        del feature["id"]
        event = normalize_feature(feature)
        assert event is not None
        assert event.id == "10.0,20.0,1700000000000"
        assert normalize_feature(feature) == event

    def test_huge_magnitude_kept(self):
        event = normalize_feature(_feature(mag=1e308))
        assert event is not None
        assert event.magnitude == 1e308

    def test_optional_fields_default_to_none(self):
        feature = {
            "id": "x1",
            "geometry": {"coordinates": [10.0, 20.0]},
        }
        event = normalize_feature(feature)
        assert event is not None
        assert event.depth_km is None
        assert event.magnitude is None
        assert event.place is None
        assert event.occurred_at is None
        assert event.felt is None
        assert event.tsunami is False

    def test_bad_time_becomes_none(self):
        event = normalize_feature(_feature(time="yesterday"))
        assert event is not None
        assert event.occurred_at is None


class TestNormalize:
    def test_nan_coordinate_scenario(self):
        """Three features, one with a NaN longitude, leave two events."""
        raw = json.loads(
            '{"features": ['
            '{"id": "a", "properties": {"mag": 2.0}, "geometry": {"coordinates": [NaN, 10, 5]}},'
            '{"id": "b", "properties": {"mag": 3.0}, "geometry": {"coordinates": [20, 10, 5]}},'
            '{"id": "c", "properties": {"mag": null}, "geometry": {"coordinates": [30, -5, 5]}}'
            "]}"
        )
        events = normalize(extract_features(raw))
        assert [e.id for e in events] == ["b", "c"]

    def test_nan_coordinate_scenario_without_ids(self):
        raw = json.loads(
            '{"features": ['
            '{"properties": {"mag": 2.0}, "geometry": {"coordinates": [10, 20, 5]}},'
            '{"properties": {"mag": 3.0}, "geometry": {"coordinates": [NaN, 10, 5]}},'
            '{"properties": {"mag": 4.0}, "geometry": {"coordinates": [30, 40, 5]}}'
            "]}"
        )
        events = normalize(extract_features(raw))
        assert [e.magnitude for e in events] == [2.0, 4.0]
        assert len({e.id for e in events}) == 2

    def test_preserves_feed_order(self, sample_feed):
        events = normalize(extract_features(sample_feed))
        assert [e.id for e in events] == [
            "ci40000001",
            "us7000abcd",
            "ak0230001",
            "us7000efgh",
            "hv74000001",
        ]

    def test_never_grows(self, sample_feed):
        features = extract_features(sample_feed)
        assert len(normalize(features)) <= len(features)

    def test_duplicate_ids_keep_first(self):
        events = normalize([
            _feature("dup", mag=1.0),
            _feature("dup", mag=5.0),
        ])
        assert len(events) == 1
        assert events[0].magnitude == 1.0

    def test_non_dict_records_dropped(self):
        assert normalize([None, "junk", 42, _feature("ok")])[0].id == "ok"

    def test_empty_input(self):
        assert normalize([]) == []
