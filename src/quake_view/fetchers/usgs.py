"""USGS summary feed transport."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from requests import RequestException, Session

from quake_view.http import create_session

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class FeedError(Exception):
    """A feed could not be retrieved or parsed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FeedCancelled(Exception):
    """The request was cancelled before it completed. Not a failure."""


class CancellationToken:
    """Cancellation flag for one feed request.

    ``serial`` orders tokens: the fetcher only commits the result of the
    latest one it issued. The flag is safe to set from the event loop while
    the transport polls it from a worker thread.
    """

    def __init__(self, serial: int = 0) -> None:
        self.serial = serial
        self._event = threading.Event()

    def __repr__(self) -> str:
        return f"CancellationToken(serial={self.serial}, cancelled={self.cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses; return the flag."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise FeedCancelled(f"request {self.serial} cancelled")


def fetch_feed(
    url: str,
    token: CancellationToken | None = None,
    session: Session | None = None,
    timeout: int = 30,
) -> dict[str, Any]:
    """Download and parse one GeoJSON feed document.

    The body is streamed so a cancelled request stops reading promptly.

    Raises:
        FeedError: non-2xx status, network failure or a body that is not a
            JSON object. The message is suitable for showing to the user.
        FeedCancelled: *token* was cancelled before the body was parsed.
    """
    if token is None:
        token = CancellationToken()
    if session is None:
        session = create_session()

    token.raise_if_cancelled()
    try:
        resp = session.get(url, timeout=timeout, stream=True)
    except RequestException as exc:
        token.raise_if_cancelled()
        raise FeedError(str(exc)) from exc

    with resp:
        if not resp.ok:
            raise FeedError(f"HTTP {resp.status_code}", status_code=resp.status_code)
        chunks: list[bytes] = []
        try:
            for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                token.raise_if_cancelled()
                chunks.append(chunk)
        except RequestException as exc:
            token.raise_if_cancelled()
            raise FeedError(str(exc)) from exc

    token.raise_if_cancelled()
    body = b"".join(chunks)
    logger.debug("Fetched %s (%d bytes)", url, len(body))

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise FeedError(f"Invalid feed JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise FeedError("Invalid feed JSON: expected an object")
    return payload
