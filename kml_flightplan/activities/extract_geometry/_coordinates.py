"""KML coordinate text parsing and formatting.

Responsibilities:
- Parse a ``<coordinates>`` text blob into GeoPoints, leniently
- Format a ring back into ``<coordinates>`` text
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from kml_flightplan.activities.extract_geometry._constants import COORDINATE_DECIMALS
from kml_flightplan.models.geometry import GeoPoint

if TYPE_CHECKING:
    from collections.abc import Iterable


def parse_coordinates_text(text: str) -> list[GeoPoint]:
    """Parse KML coordinate text (``lon,lat[,alt]`` tuples separated by whitespace).

    Tokens with fewer than two fields, or whose longitude/latitude are
    not finite numbers, are dropped instead of failing the document.
    Altitude is discarded.
    """
    points: list[GeoPoint] = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lon = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            continue
        if not (math.isfinite(lon) and math.isfinite(lat)):
            continue
        points.append(GeoPoint(latitude=lat, longitude=lon))
    return points


def format_ring_coordinates(points: Iterable[GeoPoint]) -> str:
    """Format points as KML coordinate text, one ``lon,lat,0`` line per vertex.

    No closing duplicate is appended.
    """
    return "\n".join(
        f"  {p.longitude:.{COORDINATE_DECIMALS}f},{p.latitude:.{COORDINATE_DECIMALS}f},0"
        for p in points
    )


def format_waypoint_coordinates(point: GeoPoint) -> str:
    """Format a single waypoint position as ``lon,lat``."""
    return f"{point.longitude:.{COORDINATE_DECIMALS}f},{point.latitude:.{COORDINATE_DECIMALS}f}"
