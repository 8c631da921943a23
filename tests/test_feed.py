"""Tests for the feed fetcher state machine."""

from __future__ import annotations

import asyncio
import threading

import pytest

from quake_view.config import DEFAULT_FEEDS
from quake_view.feed import FeedFetcher
from quake_view.fetchers.usgs import CancellationToken, FeedCancelled, FeedError
from quake_view.models import FetchState

from conftest import DAY_URL, HOUR_URL


def _payload(*ids_and_mags):
    return {
        "features": [
            {
                "id": event_id,
                "properties": {"mag": mag},
                "geometry": {"coordinates": [10.0, 20.0, 5.0]},
            }
            for event_id, mag in ids_and_mags
        ]
    }


class StubTransport:
    """Transport returning canned payloads per URL, optionally held back."""

    def __init__(self, payloads, gates=None):
        self.payloads = payloads
        self.gates = gates or {}
        self.calls: list[str] = []

    def __call__(self, url: str, token: CancellationToken) -> dict:
        self.calls.append(url)
        gate = self.gates.get(url)
        if gate is not None:
            gate.wait(5)
        result = self.payloads[url]
        if isinstance(result, Exception):
            raise result
        return result


class TestFeedFetcher:
    def test_starts_idle(self):
        fetcher = FeedFetcher(DEFAULT_FEEDS, StubTransport({}))
        assert fetcher.state is FetchState.IDLE
        assert fetcher.events == []
        assert fetcher.error is None

    def test_success_normalizes_events(self):
        transport = StubTransport({DAY_URL: _payload(("a", 1.0), ("b", None))})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")

        asyncio.run(scenario())
        assert fetcher.state is FetchState.SUCCESS
        assert [e.id for e in fetcher.events] == ["a", "b"]
        assert fetcher.updated_at is not None
        assert fetcher.window == "day"
        assert transport.calls == [DAY_URL]

    def test_state_is_fetching_while_in_flight(self):
        gate = threading.Event()
        transport = StubTransport({DAY_URL: _payload(("a", 1.0))}, gates={DAY_URL: gate})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)
        seen = []

        async def scenario():
            task = fetcher.select("day")
            seen.append((fetcher.state, fetcher.in_flight))
            gate.set()
            await task

        asyncio.run(scenario())
        assert seen == [(FetchState.FETCHING, True)]
        assert fetcher.state is FetchState.SUCCESS

    def test_superseded_response_is_discarded(self):
        """Request A issued, then B; A arrives late and is ignored."""
        gate_a = threading.Event()
        transport = StubTransport(
            {
                HOUR_URL: _payload(("from-a", 1.0)),
                DAY_URL: _payload(("from-b", 2.0)),
            },
            gates={HOUR_URL: gate_a},
        )
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            task_a = fetcher.select("hour")
            await asyncio.sleep(0.05)
            task_b = fetcher.select("day")
            await task_b
            gate_a.set()
            await task_a

        asyncio.run(scenario())
        assert fetcher.state is FetchState.SUCCESS
        assert fetcher.window == "day"
        assert [e.id for e in fetcher.events] == ["from-b"]

    def test_superseded_failure_is_not_reported(self):
        gate_a = threading.Event()
        transport = StubTransport(
            {
                HOUR_URL: FeedError("HTTP 503", status_code=503),
                DAY_URL: _payload(("b", 2.0)),
            },
            gates={HOUR_URL: gate_a},
        )
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            task_a = fetcher.select("hour")
            task_b = fetcher.select("day")
            await task_b
            gate_a.set()
            await task_a

        asyncio.run(scenario())
        assert fetcher.state is FetchState.SUCCESS
        assert fetcher.error is None

    def test_supersession_cancels_previous_token(self):
        tokens = []

        def transport(url, token):
            tokens.append(token)
            return _payload(("a", 1.0))

        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            task_a = fetcher.select("hour")
            await fetcher.select("day")
            await task_a

        asyncio.run(scenario())
        assert len(tokens) == 2
        first, second = sorted(tokens, key=lambda t: t.serial)
        assert first.cancelled
        assert not second.cancelled

    def test_failure_surfaces_message_verbatim(self):
        transport = StubTransport({DAY_URL: FeedError("HTTP 500", status_code=500)})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")

        asyncio.run(scenario())
        assert fetcher.state is FetchState.FAILED
        assert fetcher.error == "HTTP 500"

    def test_failure_keeps_last_good_data_for_same_window(self):
        transport = StubTransport({DAY_URL: _payload(("a", 1.0))})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")
            transport.payloads[DAY_URL] = FeedError("HTTP 502", status_code=502)
            await fetcher.refresh()

        asyncio.run(scenario())
        assert fetcher.state is FetchState.FAILED
        assert fetcher.error == "HTTP 502"
        assert [e.id for e in fetcher.events] == ["a"]

    def test_failure_after_window_change_clears_data(self):
        transport = StubTransport({
            DAY_URL: _payload(("a", 1.0)),
            HOUR_URL: FeedError("HTTP 500", status_code=500),
        })
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")
            await fetcher.select("hour")

        asyncio.run(scenario())
        assert fetcher.state is FetchState.FAILED
        assert fetcher.events == []

    def test_cancellation_is_not_a_failure(self):
        def transport(url, token):
            raise FeedCancelled("cancelled")

        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")

        asyncio.run(scenario())
        assert fetcher.state is FetchState.FETCHING
        assert fetcher.error is None

    def test_unexpected_transport_error_fails(self):
        def transport(url, token):
            raise KeyError("features")

        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")

        asyncio.run(scenario())
        assert fetcher.state is FetchState.FAILED
        assert fetcher.error == "'features'"
        assert not fetcher.in_flight

    def test_success_clears_previous_error(self):
        transport = StubTransport({DAY_URL: FeedError("HTTP 500", status_code=500)})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            await fetcher.select("day")
            transport.payloads[DAY_URL] = _payload(("a", 1.0))
            await fetcher.refresh()

        asyncio.run(scenario())
        assert fetcher.state is FetchState.SUCCESS
        assert fetcher.error is None

    def test_on_change_reports_transitions(self):
        states = []
        transport = StubTransport({DAY_URL: _payload(("a", 1.0))})
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport, on_change=lambda f: states.append(f.state))

        async def scenario():
            await fetcher.select("day")

        asyncio.run(scenario())
        assert states == [FetchState.FETCHING, FetchState.SUCCESS]


class TestTeardown:
    def test_close_cancels_and_ignores_late_result(self):
        gate = threading.Event()
        transport = StubTransport({DAY_URL: _payload(("late", 1.0))}, gates={DAY_URL: gate})
        calls = []
        fetcher = FeedFetcher(DEFAULT_FEEDS, transport, on_change=lambda f: calls.append(f.state))

        async def scenario():
            task = fetcher.select("day")
            await asyncio.sleep(0.05)
            fetcher.close()
            gate.set()
            await task

        asyncio.run(scenario())
        assert fetcher.closed
        assert fetcher.events == []
        assert fetcher.state is FetchState.FETCHING
        assert calls == [FetchState.FETCHING]

    def test_transport_sees_cancellation_on_close(self):
        observed = []

        def transport(url, token):
            observed.append(token.wait(5))
            token.raise_if_cancelled()
            return _payload(("a", 1.0))

        fetcher = FeedFetcher(DEFAULT_FEEDS, transport)

        async def scenario():
            task = fetcher.select("day")
            await asyncio.sleep(0.05)
            fetcher.close()
            await task

        asyncio.run(scenario())
        assert observed == [True]
        assert fetcher.events == []

    def test_select_after_close_raises(self):
        fetcher = FeedFetcher(DEFAULT_FEEDS, StubTransport({}))
        fetcher.close()

        async def scenario():
            fetcher.select("day")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())


class TestValidation:
    def test_unknown_window(self):
        fetcher = FeedFetcher(DEFAULT_FEEDS, StubTransport({}))
        with pytest.raises(ValueError):
            fetcher.select("decade")

    def test_refresh_without_window(self):
        fetcher = FeedFetcher(DEFAULT_FEEDS, StubTransport({}))
        with pytest.raises(RuntimeError):
            fetcher.refresh()
