"""Magnitude filtering and summary statistics."""

from __future__ import annotations

from collections.abc import Sequence

from quake_view.models import EarthquakeEvent, SummaryStats


def apply_filter(
    events: Sequence[EarthquakeEvent],
    min_magnitude: float,
) -> list[EarthquakeEvent]:
    """Keep events at or above *min_magnitude*, in feed order.

    Events without a magnitude are always kept: an unknown magnitude is not a
    low one.
    """
    if min_magnitude < 0:
        raise ValueError(f"min_magnitude must be >= 0, got {min_magnitude}")
    return [
        e for e in events
        if e.magnitude is None or e.magnitude >= min_magnitude
    ]


def compute_stats(
    collection: Sequence[EarthquakeEvent],
    *,
    unknown_as_zero: bool = False,
) -> SummaryStats:
    """Compute count, average magnitude and strongest event.

    By default events without a magnitude are left out of the average. With
    ``unknown_as_zero`` they count as magnitude 0, which pulls the average
    down but matches the historical figures.

    The strongest event is the first one carrying the highest magnitude.
    """
    if not collection:
        return SummaryStats(count=0, average_magnitude=0.0, strongest=None)

    strongest: EarthquakeEvent | None = None
    total = 0.0
    known = 0
    for event in collection:
        if event.magnitude is None:
            continue
        total += event.magnitude
        known += 1
        if strongest is None or event.magnitude > strongest.magnitude:
            strongest = event

    denominator = len(collection) if unknown_as_zero else known
    average = total / denominator if denominator else 0.0
    return SummaryStats(
        count=len(collection),
        average_magnitude=average,
        strongest=strongest,
    )


class DerivedView:
    """Memoized filter + stats over the latest event list.

    The cache key is the identity of the event list plus the filter inputs,
    so a new fetch (a new list) or a threshold change recomputes and anything
    else reuses the previous result.
    """

    def __init__(self) -> None:
        self._events: Sequence[EarthquakeEvent] | None = None
        self._key: tuple[float, bool] | None = None
        self._result: tuple[list[EarthquakeEvent], SummaryStats] | None = None
        self.computations = 0

    def get(
        self,
        events: Sequence[EarthquakeEvent],
        min_magnitude: float,
        *,
        unknown_as_zero: bool = False,
    ) -> tuple[list[EarthquakeEvent], SummaryStats]:
        key = (min_magnitude, unknown_as_zero)
        if self._result is not None and self._events is events and self._key == key:
            return self._result

        collection = apply_filter(events, min_magnitude)
        stats = compute_stats(collection, unknown_as_zero=unknown_as_zero)
        self._events = events
        self._key = key
        self._result = (collection, stats)
        self.computations += 1
        return self._result
