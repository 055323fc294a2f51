"""Minimal polygon KML writer.

Builds a single-Placemark KML document for a ring.  Used to export the
extracted polygon alongside a compiled package, and as the inverse of
``extract_polygon`` (extract -> write -> extract yields the same ring).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kml_flightplan.activities.extract_geometry._coordinates import format_ring_coordinates
from kml_flightplan.core.constants import KML_NAMESPACE

if TYPE_CHECKING:
    from kml_flightplan.models.geometry import PolygonRing


def build_polygon_kml(ring: PolygonRing, name: str, description: str | None = None) -> bytes:
    """Return UTF-8 KML bytes holding *ring* as ``Placemark > Polygon``.

    Element text is escaped by lxml; *name* and *description* may hold
    any characters.
    """
    from lxml import etree  # type: ignore[attr-defined]

    def kml(tag: str) -> str:
        return f"{{{KML_NAMESPACE}}}{tag}"

    root = etree.Element(kml("kml"), nsmap={None: KML_NAMESPACE})
    document = etree.SubElement(root, kml("Document"))
    etree.SubElement(document, kml("name")).text = name
    if description:
        etree.SubElement(document, kml("description")).text = description

    placemark = etree.SubElement(document, kml("Placemark"))
    etree.SubElement(placemark, kml("name")).text = name
    polygon = etree.SubElement(placemark, kml("Polygon"))
    boundary = etree.SubElement(polygon, kml("outerBoundaryIs"))
    linear_ring = etree.SubElement(boundary, kml("LinearRing"))
    coordinates = etree.SubElement(linear_ring, kml("coordinates"))
    coordinates.text = f"\n{format_ring_coordinates(ring)}\n"

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)
