"""HTML/Leaflet.js exporter for quake view snapshots."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quake_view.exporters.geojson_export import make_event_feature
from quake_view.icons import COLOR_HEX, LEGEND
from quake_view.models import ViewSnapshot


def _build_view_data(snapshot: ViewSnapshot) -> dict[str, Any]:
    """Build the data object embedded in the page."""
    stats = snapshot.stats
    strongest = stats.strongest
    frame = snapshot.frame
    fit = None
    if frame is not None and frame.bounds is not None:
        fit = {
            "corners": [list(c) for c in frame.bounds.corners()],
            "padding": frame.padding_px,
            "max_zoom": frame.max_zoom,
        }
    world = {"center": [20.0, 0.0], "zoom": 2}
    if frame is not None and frame.is_world_view:
        world = {"center": list(frame.center), "zoom": frame.zoom}

    return {
        "features": [
            make_event_feature(e, snapshot.icons.get(e.id)) for e in snapshot.events
        ],
        "stats": {
            "count": stats.count,
            "average_magnitude": round(stats.average_magnitude, 2),
            "strongest": (
                {"magnitude": strongest.magnitude, "place": strongest.place}
                if strongest is not None else None
            ),
        },
        "fit": fit,
        "world": world,
        "legend": [
            {"label": label, "desc": desc, "color": COLOR_HEX[color]}
            for label, desc, color in LEGEND
        ],
        "error": snapshot.error,
    }


# HTML template with placeholders that won't conflict with CSS/JS braces
_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Earthquake Map</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css"
          integrity="sha256-p4NxAoJBhIIN+hmNHrzRCf9tD/miZyoHS5obTRR9BMY="
          crossorigin=""/>
    <link rel="stylesheet"
          href="https://unpkg.com/leaflet.markercluster@1.5.3/dist/MarkerCluster.css"/>
    <link rel="stylesheet"
          href="https://unpkg.com/leaflet.markercluster@1.5.3/dist/MarkerCluster.Default.css"/>
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"
            integrity="sha256-20nQCchB9co0qIjJZRGuk2/Z9VM+kNiyxNV1lvTlZBo="
            crossorigin=""></script>
    <script src="https://unpkg.com/leaflet.markercluster@1.5.3/dist/leaflet.markercluster.js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont,
                'Segoe UI', Roboto, sans-serif;
        }
        #map { height: 100vh; width: 100%; }
        .quake-icon { background: none !important; border: none !important; }
        .quake-marker {
            display: flex;
            align-items: center;
            justify-content: center;
            border-radius: 50%;
            border: 2px solid rgba(0,0,0,0.25);
            font-size: 10px;
            font-weight: 600;
            color: #111;
        }
        .panel {
            position: absolute;
            z-index: 1000;
            background: white;
            padding: 12px 15px;
            border-radius: 8px;
            box-shadow: 0 2px 10px rgba(0,0,0,0.2);
        }
        .stats { top: 10px; left: 50px; display: flex; gap: 18px; }
        .stats span { display: block; font-size: 12px; color: #666; }
        .stats strong { font-size: 16px; color: #222; }
        .legend { bottom: 24px; left: 10px; font-size: 13px; }
        .legend-row { display: flex; align-items: center; gap: 8px; margin-top: 4px; }
        .legend-dot {
            width: 14px; height: 14px; border-radius: 50%;
            border: 1px solid #ccc;
        }
        .error { top: 10px; right: 10px; background: #fef2f2; color: #b91c1c; }
        .footer { bottom: 4px; right: 10px; font-size: 11px; color: #666; padding: 4px 8px; }
        .popup-title { font-weight: bold; margin-bottom: 4px; }
        .popup-row { font-size: 13px; }
    </style>
</head>
<body>
    <div id="map"></div>
    <div class="panel stats">
        <div><span>Events</span><strong id="stat-count"></strong></div>
        <div><span>Average Magnitude</span><strong id="stat-avg"></strong></div>
        <div><span>Strongest</span><strong id="stat-max"></strong></div>
    </div>
    <div class="panel legend" id="legend"><strong>Magnitude</strong></div>
    <div class="panel footer">Generated __GENERATED_TIME__ · Data: USGS GeoJSON feeds</div>
    <script>
        var view = __VIEW_DATA__;

        var map = L.map('map', { zoomControl: false });
        L.control.zoom({ position: 'topright' }).addTo(map);
        L.tileLayer('https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png', {
            attribution: '&copy; OpenStreetMap contributors',
        }).addTo(map);

        function fitView() {
            if (view.fit) {
                map.fitBounds(view.fit.corners, {
                    padding: [view.fit.padding, view.fit.padding],
                    maxZoom: view.fit.max_zoom,
                });
            } else {
                map.setView(view.world.center, view.world.zoom);
            }
        }
        fitView();

        function quakeIcon(p) {
            var size = p.marker_size_px;
            return L.divIcon({
                className: 'quake-icon',
                html: '<div class="quake-marker" style="width:' + size + 'px;height:'
                    + size + 'px;background:radial-gradient(circle at 40% 40%, #ffffff, '
                    + p.marker_color + ');">' + p.marker_label + '</div>',
                iconSize: [size, size],
                iconAnchor: [size / 2, size / 2],
                popupAnchor: [0, -size / 2],
            });
        }

        function quakePopup(p) {
            return '<div class="popup-title">M'
                + (p.magnitude === null ? '-' : p.magnitude) + ' - '
                + (p.place || 'Unknown location') + '</div>'
                + '<div class="popup-row">Time: '
                + (p.time ? new Date(p.time).toLocaleString() : '-') + '</div>'
                + '<div class="popup-row">Depth: '
                + (p.depth_km === null ? '-' : p.depth_km + ' km') + '</div>'
                + '<div class="popup-row">Tsunami: ' + (p.tsunami ? 'Yes' : 'No') + '</div>'
                + '<div class="popup-row">Felt: ' + (p.felt || '-') + '</div>'
                + (p.url ? '<a href="' + p.url + '" target="_blank" rel="noreferrer">'
                    + 'View details on USGS</a>' : '');
        }

        var clusters = L.markerClusterGroup();
        view.features.forEach(function(f) {
            var c = f.geometry.coordinates;
            var marker = L.marker([c[1], c[0]], { icon: quakeIcon(f.properties) });
            marker.bindPopup(quakePopup(f.properties));
            clusters.addLayer(marker);
        });
        map.addLayer(clusters);

        document.getElementById('stat-count').textContent = view.stats.count;
        document.getElementById('stat-avg').textContent =
            view.stats.average_magnitude.toFixed(2);
        var s = view.stats.strongest;
        document.getElementById('stat-max').textContent = s
            ? 'M' + (s.magnitude === null ? '-' : s.magnitude.toFixed(1)) + ' - ' + s.place
            : '-';

        var legend = document.getElementById('legend');
        view.legend.forEach(function(item) {
            var row = document.createElement('div');
            row.className = 'legend-row';
            row.innerHTML = '<span class="legend-dot" style="background:' + item.color
                + '"></span>' + item.label + ' (' + item.desc + ')';
            legend.appendChild(row);
        });

        if (view.error) {
            var err = document.createElement('div');
            err.className = 'panel error';
            err.textContent = 'Failed to load data: ' + view.error;
            document.body.appendChild(err);
        }
    </script>
</body>
</html>"""


def export_html(
    snapshot: ViewSnapshot,
    output_path: Path,
) -> Path:
    """Export a snapshot as a standalone HTML file with a clustered Leaflet map."""
    view_data = _build_view_data(snapshot)
    generated_time = datetime.now(tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M UTC"
    )

    html_content = _HTML_TEMPLATE.replace(
        "__VIEW_DATA__", json.dumps(view_data).replace("</", "<\\/")
    ).replace(
        "__GENERATED_TIME__", generated_time
    )

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html_content)

    return output_path
