"""Long-lived view state: selected window, threshold, reset trigger."""

from __future__ import annotations

import logging

from quake_view.bounds import ViewFitter, compute_bounds
from quake_view.config import QuakeViewConfig
from quake_view.feed import FeedFetcher, Transport
from quake_view.icons import IconCache
from quake_view.models import FetchState, ViewFrame, ViewSnapshot
from quake_view.pipeline import build_view, make_transport
from quake_view.stats import DerivedView

logger = logging.getLogger(__name__)


class QuakeView:
    """Connects the feed fetcher to the derived map view.

    Only a window change (or an explicit refresh) touches the network.
    Changing the magnitude threshold recomputes the view from the events
    already held.
    """

    def __init__(
        self,
        config: QuakeViewConfig,
        transport: Transport | None = None,
        icon_cache: IconCache | None = None,
    ) -> None:
        self.config = config
        self.icon_cache = icon_cache or IconCache(max_size=config.icon_cache_size)
        self.fetcher = FeedFetcher(
            config.feed_urls,
            transport or make_transport(config),
        )
        self.min_magnitude = config.min_magnitude
        self._reset_token = 0
        self._derived = DerivedView()
        self._fitter = ViewFitter(
            padding_px=config.fit_padding_px,
            max_zoom=config.fit_max_zoom,
            world_center=config.world_center,
            world_zoom=config.world_zoom,
        )

    @property
    def reset_token(self) -> int:
        return self._reset_token

    async def select_window(self, window: str) -> None:
        """Fetch *window* unless it is already the loaded or loading window."""
        fetcher = self.fetcher
        if window == fetcher.window and fetcher.state is not FetchState.IDLE:
            await fetcher.wait()
            return
        await fetcher.select(window)

    async def refresh(self) -> None:
        await self.fetcher.refresh()

    def set_min_magnitude(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"min_magnitude must be >= 0, got {value}")
        self.min_magnitude = value

    def reset_view(self) -> int:
        """Ask the map to re-fit to the current bounds."""
        self._reset_token += 1
        logger.debug("View reset requested (token %d)", self._reset_token)
        return self._reset_token

    def frame_update(self) -> ViewFrame | None:
        """New frame when bounds changed or a reset was requested, else None."""
        collection, _ = self._derived.get(
            self.fetcher.events,
            self.min_magnitude,
            unknown_as_zero=self.config.average_unknown_as_zero,
        )
        return self._fitter.update(compute_bounds(collection), self._reset_token)

    def snapshot(self, zoom: int | None = None) -> ViewSnapshot:
        fetcher = self.fetcher
        return build_view(
            fetcher.events,
            min_magnitude=self.min_magnitude,
            icon_cache=self.icon_cache,
            config=self.config,
            zoom=zoom,
            derived=self._derived,
            window=fetcher.window,
            state=fetcher.state,
            error=fetcher.error,
            updated_at=fetcher.updated_at,
            reset_token=self._reset_token,
        )

    def close(self) -> None:
        self.fetcher.close()
