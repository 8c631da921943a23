"""Feed request lifecycle: issue, supersede, cancel.

All state lives on the asyncio event loop. The blocking transport call runs
in a worker thread and its result is handed back to the loop, where it is
committed only if it belongs to the latest request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from quake_view.fetchers.usgs import CancellationToken, FeedCancelled, FeedError
from quake_view.models import EarthquakeEvent, FetchState
from quake_view.normalize import extract_features, normalize

logger = logging.getLogger(__name__)

Transport = Callable[[str, CancellationToken], dict[str, Any]]


class FeedFetcher:
    """Owns the fetch state for one feed selector.

    State machine: idle -> fetching -> success | failed. Selecting a window
    (or refreshing) while a request is in flight supersedes it: the old token
    is cancelled and its late result, if any, is dropped.
    """

    def __init__(
        self,
        feeds: Mapping[str, str],
        transport: Transport,
        on_change: Callable[[FeedFetcher], None] | None = None,
    ) -> None:
        self._feeds = dict(feeds)
        self._transport = transport
        self._on_change = on_change

        self.state = FetchState.IDLE
        self.window: str | None = None
        self.events: list[EarthquakeEvent] = []
        self.error: str | None = None
        self.updated_at: datetime | None = None

        self._data_window: str | None = None
        self._serial = 0
        self._token: CancellationToken | None = None
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def select(self, window: str) -> asyncio.Task[None]:
        """Start fetching *window*, superseding any in-flight request."""
        if window not in self._feeds:
            raise ValueError(f"Unknown feed window: {window!r}")
        self.window = window
        return self._issue()

    def refresh(self) -> asyncio.Task[None]:
        """Re-fetch the current window."""
        if self.window is None:
            raise RuntimeError("No feed window selected")
        return self._issue()

    async def wait(self) -> None:
        """Wait for the latest request, if any, to settle."""
        if self._task is not None:
            await self._task

    def close(self) -> None:
        """Tear down: cancel the active request and stop publishing state."""
        if self._closed:
            return
        self._closed = True
        self._cancel_active()
        logger.debug("Feed fetcher closed")

    def _cancel_active(self) -> None:
        if self._token is not None and not self._token.cancelled:
            logger.debug("Cancelling feed request %d", self._token.serial)
            self._token.cancel()

    def _issue(self) -> asyncio.Task[None]:
        if self._closed:
            raise RuntimeError("Feed fetcher is closed")
        loop = asyncio.get_running_loop()

        self._cancel_active()
        self._serial += 1
        token = CancellationToken(self._serial)
        self._token = token

        self.state = FetchState.FETCHING
        self.error = None
        self._notify()

        window = self.window
        self._task = loop.create_task(self._run(window, token))
        return self._task

    def _is_current(self, token: CancellationToken) -> bool:
        return not self._closed and token is self._token and not token.cancelled

    async def _run(self, window: str, token: CancellationToken) -> None:
        url = self._feeds[window]
        logger.info("Fetching %s feed (request %d)", window, token.serial)
        try:
            payload = await asyncio.to_thread(self._transport, url, token)
            events = normalize(extract_features(payload))
        except FeedCancelled:
            logger.debug("Request %d cancelled", token.serial)
            return
        except FeedError as exc:
            if not self._is_current(token):
                logger.debug("Ignoring failure of stale request %d", token.serial)
                return
            logger.warning("Failed to fetch %s feed: %s", window, exc)
            self._fail(window, str(exc))
            return
        except Exception as exc:
            if not self._is_current(token):
                logger.debug("Ignoring error of stale request %d", token.serial)
                return
            logger.exception("Unexpected error fetching %s feed", window)
            self._fail(window, str(exc) or type(exc).__name__)
            return

        if not self._is_current(token):
            logger.debug("Discarding stale response for request %d", token.serial)
            return

        self.events = events
        self._data_window = window
        self.error = None
        self.updated_at = datetime.now(tz=timezone.utc)
        self.state = FetchState.SUCCESS
        logger.info("Loaded %d events from %s feed", len(events), window)
        self._notify()

    def _fail(self, window: str, message: str) -> None:
        # keep last good data for the same window so the view does not blank
        if self._data_window != window:
            self.events = []
            self._data_window = None
        self.error = message
        self.state = FetchState.FAILED
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None and not self._closed:
            self._on_change(self)
