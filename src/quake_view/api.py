"""FastAPI wrapper around the quake view state."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, Response

from quake_view import __version__
from quake_view.config import FeedWindow, OutputFormat, QuakeViewConfig
from quake_view.exporters import (
    export_csv,
    export_geojson,
    export_html,
    export_markdown,
)
from quake_view.exporters.json_export import snapshot_to_dict
from quake_view.icons import IconCache
from quake_view.models import FetchState, ViewSnapshot
from quake_view.view import QuakeView

logger = logging.getLogger(__name__)

_CONTENT_TYPES: dict[str, str] = {
    "json": "application/json",
    "geojson": "application/geo+json",
    "html": "text/html; charset=utf-8",
    "csv": "text/csv; charset=utf-8",
    "markdown": "text/markdown; charset=utf-8",
}

_SUFFIX: dict[str, str] = {
    "geojson": ".geojson",
    "html": ".html",
    "csv": ".csv",
    "markdown": ".md",
}

_EXPORTERS: dict[str, Any] = {
    "geojson": export_geojson,
    "html": export_html,
    "csv": export_csv,
    "markdown": export_markdown,
}


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Own the icon cache and view state for the lifetime of the app."""
    config = QuakeViewConfig()
    application.state.start_time = datetime.now(tz=timezone.utc)
    application.state.icon_cache = IconCache(max_size=config.icon_cache_size)
    application.state.view = QuakeView(config, icon_cache=application.state.icon_cache)
    try:
        yield
    finally:
        application.state.view.close()


app = FastAPI(
    title="Quake View API",
    description="Recent earthquakes from USGS feeds, filtered and framed for a map.",
    version=__version__,
    lifespan=lifespan,
)


def _export(snapshot: ViewSnapshot, fmt: OutputFormat) -> Response:
    """Serialize a snapshot into the requested format."""
    if fmt == "json":
        return JSONResponse(content=_jsonable(snapshot_to_dict(snapshot)))

    exporter = _EXPORTERS[fmt]
    suffix = _SUFFIX[fmt]

    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp_path = Path(tmp.name)
    try:
        exporter(snapshot, tmp_path)
        content = tmp_path.read_text(encoding="utf-8")
    finally:
        tmp_path.unlink(missing_ok=True)

    return Response(content=content, media_type=_CONTENT_TYPES[fmt])


def _jsonable(data: Any) -> Any:
    """Turn datetimes into ISO strings for JSONResponse."""
    if isinstance(data, dict):
        return {k: _jsonable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_jsonable(v) for v in data]
    if isinstance(data, datetime):
        return data.isoformat()
    return data


async def _load(window: FeedWindow | None, min_magnitude: float | None) -> QuakeView:
    view: QuakeView = app.state.view
    await view.select_window(window or view.fetcher.window or view.config.feed_window)
    if min_magnitude is not None:
        view.set_min_magnitude(min_magnitude)
    return view


@app.get("/health")
def health() -> dict[str, Any]:
    """Server health check with uptime, version, fetch state and cache size."""
    now = datetime.now(tz=timezone.utc)
    view: QuakeView = app.state.view
    fetcher = view.fetcher
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round((now - app.state.start_time).total_seconds(), 1),
        "window": fetcher.window,
        "fetch_state": fetcher.state.value,
        "updated_at": fetcher.updated_at.isoformat() if fetcher.updated_at else None,
        "icon_cache_size": len(app.state.icon_cache),
    }


@app.get("/view")
async def get_view(
    window: Annotated[
        FeedWindow | None, Query(description="Feed window; defaults to the current one."),
    ] = None,
    min_magnitude: Annotated[
        float | None, Query(ge=0.0, le=10.0, description="Minimum earthquake magnitude."),
    ] = None,
    zoom: Annotated[
        int | None, Query(ge=0, le=22, description="Map zoom for clustering."),
    ] = None,
) -> JSONResponse:
    """Current view: events, stats, bounds, frame, clusters and marker visuals.

    Only a window change triggers a fetch; a failed fetch is reported in
    ``state``/``error`` while the last good events stay in place.
    """
    view = await _load(window, min_magnitude)
    refit = view.frame_update() is not None
    data = snapshot_to_dict(view.snapshot(zoom=zoom))
    data["refit"] = refit
    return JSONResponse(content=_jsonable(data))


@app.post("/refresh")
async def refresh() -> JSONResponse:
    """Re-fetch the current window."""
    view: QuakeView = app.state.view
    if view.fetcher.window is None:
        return JSONResponse(status_code=409, content={"detail": "No feed window selected"})
    await view.refresh()
    fetcher = view.fetcher
    return JSONResponse(content={
        "window": fetcher.window,
        "state": fetcher.state.value,
        "error": fetcher.error,
        "event_count": len(fetcher.events),
    })


@app.post("/reset")
def reset() -> dict[str, int]:
    """Ask the map to re-fit to the current bounds on its next render."""
    view: QuakeView = app.state.view
    return {"reset_token": view.reset_view()}


@app.get("/export")
async def export(
    format: Annotated[
        OutputFormat, Query(description="Output format."),
    ] = "json",
    window: Annotated[
        FeedWindow | None, Query(description="Feed window; defaults to the current one."),
    ] = None,
    min_magnitude: Annotated[
        float | None, Query(ge=0.0, le=10.0, description="Minimum earthquake magnitude."),
    ] = None,
) -> Response:
    """Export the current view in the requested format."""
    view = await _load(window, min_magnitude)
    if view.fetcher.state is FetchState.FAILED:
        return JSONResponse(
            status_code=502,
            content={"detail": f"Upstream feed error: {view.fetcher.error}"},
        )
    return _export(view.snapshot(), format)
