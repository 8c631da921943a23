"""Exporters for quake view snapshots."""

from quake_view.exporters.csv_export import export_csv
from quake_view.exporters.geojson_export import export_geojson
from quake_view.exporters.html_export import export_html
from quake_view.exporters.json_export import export_json
from quake_view.exporters.markdown_export import export_markdown

__all__ = ["export_csv", "export_geojson", "export_html", "export_json", "export_markdown"]
