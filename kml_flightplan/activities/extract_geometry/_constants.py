"""Shared constants for geometry extraction."""

from __future__ import annotations

# WGS 84 coordinate bounds
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

# Capture scopes, highest priority first
SCOPE_POLYGON = "Polygon"
SCOPE_LINEAR_RING = "LinearRing"
SCOPE_LINE_STRING = "LineString"
SCOPE_PRIORITY: tuple[str, ...] = (SCOPE_POLYGON, SCOPE_LINEAR_RING, SCOPE_LINE_STRING)

COORDINATES_TAG = "coordinates"

# Decimal places written for every coordinate value
COORDINATE_DECIMALS = 7
