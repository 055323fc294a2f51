"""Validation helpers for geometry extraction.

Responsibilities:
- Geometry extraction exceptions (public API, re-exported from __init__)
- Coordinate bounds checking (WGS 84)
- Ring closure stripping and vertex-count check
- Shapely validity diagnostics (reported, never repaired)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_flightplan.activities.extract_geometry._constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from kml_flightplan.core.exceptions import ValidationError

if TYPE_CHECKING:
    from kml_flightplan.models.geometry import GeoPoint

logger = logging.getLogger("kml_flightplan.activities.extract_geometry")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GeometryExtractionError(ValidationError):
    """Base class for every geometry extraction failure."""

    default_stage = "extract_geometry"
    default_code = "GEOMETRY_EXTRACTION_FAILED"


class KmlParseError(GeometryExtractionError):
    """Raised when the input is not a readable XML document."""

    default_code = "KML_PARSE_FAILED"


class NoGeometryFound(GeometryExtractionError):
    """Raised when no Polygon, LinearRing or LineString coordinates exist."""

    default_code = "NO_GEOMETRY_FOUND"


class AreaGeometryRequired(GeometryExtractionError):
    """Raised when the document only holds a path (LineString), not an area."""

    default_code = "AREA_GEOMETRY_REQUIRED"


class InsufficientVertices(GeometryExtractionError):
    """Raised when fewer than 3 points remain after closure stripping."""

    default_code = "INSUFFICIENT_VERTICES"


class InvalidCoordinateError(GeometryExtractionError):
    """Raised when a coordinate is outside valid WGS 84 bounds."""

    default_code = "COORDINATE_INVALID"


# ---------------------------------------------------------------------------
# Coordinate validation
# ---------------------------------------------------------------------------


def validate_bounds(points: list[GeoPoint]) -> None:
    """Validate that every point is within WGS 84 bounds.

    Raises:
        InvalidCoordinateError: If any coordinate is out of bounds.
    """
    for idx, point in enumerate(points):
        if not (MIN_LONGITUDE <= point.longitude <= MAX_LONGITUDE):
            msg = (
                f"Longitude {point.longitude} of vertex {idx + 1} is outside "
                f"[{MIN_LONGITUDE}, {MAX_LONGITUDE}]."
            )
            raise InvalidCoordinateError(msg)
        if not (MIN_LATITUDE <= point.latitude <= MAX_LATITUDE):
            msg = (
                f"Latitude {point.latitude} of vertex {idx + 1} is outside "
                f"[{MIN_LATITUDE}, {MAX_LATITUDE}]."
            )
            raise InvalidCoordinateError(msg)


# ---------------------------------------------------------------------------
# Ring closure
# ---------------------------------------------------------------------------


def strip_closure(points: list[GeoPoint]) -> list[GeoPoint]:
    """Drop the closing duplicate of an explicitly closed KML ring.

    The mission format is an open ring; KML repeats the first vertex
    at the end.
    """
    if len(points) >= 2 and points[0].almost_equals(points[-1]):
        logger.debug("Stripping closing vertex of a closed ring (%d points)", len(points))
        return points[:-1]
    return points


# ---------------------------------------------------------------------------
# Geometry validity (shapely)
# ---------------------------------------------------------------------------


def describe_ring_validity(points: list[GeoPoint]) -> str:
    """Return shapely's explanation of why *points* is not a valid polygon.

    Returns an empty string for a valid ring.  Invalid rings (bow-ties,
    zero-area slivers) are still compiled; waypoints follow the vertices
    in order regardless of the polygon's topology.
    """
    from shapely.geometry import Polygon
    from shapely.validation import explain_validity

    polygon = Polygon([(p.longitude, p.latitude) for p in points])
    if polygon.is_valid:
        return ""
    return explain_validity(polygon)
