"""Geometry extraction activity: KML bytes to a single polygon ring.

The extraction pipeline is split into focused stages:
- **_scanner**: single streaming pass capturing Polygon / LinearRing /
  LineString coordinate text (first occurrence per scope)
- **_coordinates**: lenient coordinate text parsing and formatting
- **_validation**: exceptions, WGS 84 bounds, closure stripping
- **_writer**: minimal polygon KML output (inverse of extraction)

Selection policy:
- Polygon coordinates win over LinearRing coordinates
- A document holding only a LineString is a path, not an area, and is
  rejected with ``AreaGeometryRequired``
- Nothing captured -> ``NoGeometryFound``
"""

from __future__ import annotations

import logging

from kml_flightplan.activities.extract_geometry._coordinates import (
    format_ring_coordinates,
    format_waypoint_coordinates,
    parse_coordinates_text,
)
from kml_flightplan.activities.extract_geometry._scanner import ScanResult, scan_geometry
from kml_flightplan.activities.extract_geometry._validation import (
    AreaGeometryRequired,
    GeometryExtractionError,
    InsufficientVertices,
    InvalidCoordinateError,
    KmlParseError,
    NoGeometryFound,
    describe_ring_validity,
    strip_closure,
    validate_bounds,
)
from kml_flightplan.activities.extract_geometry._writer import build_polygon_kml
from kml_flightplan.models.geometry import MIN_RING_VERTICES, PolygonRing

logger = logging.getLogger("kml_flightplan.activities.extract_geometry")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "AreaGeometryRequired",
    "GeometryExtractionError",
    "InsufficientVertices",
    "InvalidCoordinateError",
    "KmlParseError",
    "NoGeometryFound",
    "ScanResult",
    "build_polygon_kml",
    "describe_ring_validity",
    "extract_polygon",
    "format_ring_coordinates",
    "format_waypoint_coordinates",
    "parse_coordinates_text",
    "scan_geometry",
    "select_coordinates_text",
]


def extract_polygon(kml_bytes: bytes) -> PolygonRing:
    """Extract the single polygon ring of a KML document.

    Args:
        kml_bytes: Raw KML document (UTF-8 or UTF-16 per its declaration).

    Returns:
        An open ``PolygonRing`` (closing duplicate removed) in document order.

    Raises:
        KmlParseError: If the document is empty or not well-formed XML.
        NoGeometryFound: If no Polygon, LinearRing or LineString coordinates exist.
        AreaGeometryRequired: If only LineString coordinates exist.
        InsufficientVertices: If fewer than 3 points remain.
        InvalidCoordinateError: If any point lies outside WGS 84 bounds.
    """
    scan = scan_geometry(kml_bytes)
    text = select_coordinates_text(scan)

    points = strip_closure(parse_coordinates_text(text))
    if len(points) < MIN_RING_VERTICES:
        msg = (
            f"Polygon must have at least {MIN_RING_VERTICES} unique points, "
            f"found {len(points)}."
        )
        raise InsufficientVertices(msg)
    validate_bounds(points)

    problem = describe_ring_validity(points)
    if problem:
        logger.warning("Polygon is not a simple ring, compiling as drawn | reason=%s", problem)

    ring = PolygonRing(tuple(points))
    logger.info("Extracted polygon | vertices=%d", len(ring))
    return ring


def select_coordinates_text(scan: ScanResult) -> str:
    """Apply the Polygon > LinearRing > LineString priority to a scan.

    Raises:
        AreaGeometryRequired: If only a LineString was captured.
        NoGeometryFound: If nothing was captured.
    """
    if scan.polygon is not None:
        return scan.polygon
    if scan.linear_ring is not None:
        return scan.linear_ring
    if scan.line_string is not None:
        msg = (
            "KML contains a LineString but no Polygon or LinearRing. "
            "Draw a polygon: a path cannot define a coverage area."
        )
        raise AreaGeometryRequired(msg)
    msg = "No usable geometry found in KML (no Polygon, LinearRing or LineString coordinates)."
    raise NoGeometryFound(msg)
