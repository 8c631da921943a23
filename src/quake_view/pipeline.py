"""Pipeline orchestrator: fetch -> normalize -> filter -> stats -> frame -> cluster."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime

from requests import Session

from quake_view.bounds import compute_bounds, frame_for
from quake_view.cluster import cluster_events
from quake_view.config import QuakeViewConfig
from quake_view.feed import FeedFetcher, Transport
from quake_view.fetchers.usgs import CancellationToken, FeedError, fetch_feed
from quake_view.geo import fit_zoom
from quake_view.http import create_session
from quake_view.icons import IconCache, resolve_icon
from quake_view.models import EarthquakeEvent, FetchState, ViewSnapshot
from quake_view.stats import DerivedView

logger = logging.getLogger(__name__)


def make_transport(config: QuakeViewConfig, session: Session | None = None) -> Transport:
    """Bind the HTTP transport to a shared session and the configured timeout."""
    if session is None:
        session = create_session(retries=config.http_retries)

    def transport(url: str, token: CancellationToken) -> dict:
        return fetch_feed(url, token=token, session=session, timeout=config.request_timeout)

    return transport


def build_view(
    events: Sequence[EarthquakeEvent],
    *,
    min_magnitude: float,
    icon_cache: IconCache,
    config: QuakeViewConfig,
    zoom: int | None = None,
    derived: DerivedView | None = None,
    window: str | None = None,
    state: FetchState = FetchState.SUCCESS,
    error: str | None = None,
    updated_at: datetime | None = None,
    reset_token: int = 0,
) -> ViewSnapshot:
    """Derive everything a renderer needs from an already-fetched event list.

    Steps:
    1. Filter by minimum magnitude and compute summary stats
    2. Compute bounds and the map frame (fit or world view)
    3. Pick the zoom: explicit, fitted to the bounds, or the world zoom
    4. Cluster for that zoom and resolve one marker visual per event
    """
    if derived is None:
        derived = DerivedView()
    collection, stats = derived.get(
        events, min_magnitude, unknown_as_zero=config.average_unknown_as_zero
    )

    bounds = compute_bounds(collection)
    frame = frame_for(
        bounds,
        padding_px=config.fit_padding_px,
        max_zoom=config.fit_max_zoom,
        world_center=config.world_center,
        world_zoom=config.world_zoom,
    )

    if zoom is None:
        if bounds is None:
            zoom = config.world_zoom
        else:
            zoom = fit_zoom(
                bounds,
                config.viewport_width_px,
                config.viewport_height_px,
                padding_px=config.fit_padding_px,
                max_zoom=config.fit_max_zoom,
            )

    clusters = cluster_events(
        collection,
        zoom,
        radius_px=config.cluster_radius_px,
        disable_at_zoom=config.disable_clustering_at_zoom,
    )
    icons = {e.id: resolve_icon(e.magnitude, icon_cache) for e in collection}

    return ViewSnapshot(
        window=window,
        state=state,
        error=error,
        updated_at=updated_at,
        min_magnitude=min_magnitude,
        events=collection,
        stats=stats,
        bounds=bounds,
        frame=frame,
        zoom=zoom,
        clusters=clusters,
        icons=icons,
        reset_token=reset_token,
    )


async def _fetch_once(config: QuakeViewConfig, transport: Transport) -> FeedFetcher:
    fetcher = FeedFetcher(config.feed_urls, transport)
    try:
        await fetcher.select(config.feed_window)
    finally:
        fetcher.close()
    return fetcher


def run_pipeline(
    config: QuakeViewConfig,
    session: Session | None = None,
    icon_cache: IconCache | None = None,
    zoom: int | None = None,
) -> ViewSnapshot:
    """Fetch the configured feed once and build the view.

    Raises:
        FeedError: the feed could not be fetched or parsed
    """
    if icon_cache is None:
        icon_cache = IconCache(max_size=config.icon_cache_size)
    transport = make_transport(config, session)

    logger.info("Fetching USGS %s feed...", config.feed_window)
    fetcher = asyncio.run(_fetch_once(config, transport))
    if fetcher.state is FetchState.FAILED:
        raise FeedError(fetcher.error or "Feed fetch failed")
    logger.info("Retrieved %d events", len(fetcher.events))

    snapshot = build_view(
        fetcher.events,
        min_magnitude=config.min_magnitude,
        icon_cache=icon_cache,
        config=config,
        zoom=zoom,
        window=fetcher.window,
        state=fetcher.state,
        updated_at=fetcher.updated_at,
    )
    logger.info(
        "%d events at M%.1f+, %d clusters at zoom %d",
        snapshot.stats.count,
        config.min_magnitude,
        len(snapshot.clusters),
        snapshot.zoom,
    )
    return snapshot
