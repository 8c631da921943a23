"""Quake View — USGS earthquake feed pipeline and map view-state manager."""

__version__ = "0.1.0"
