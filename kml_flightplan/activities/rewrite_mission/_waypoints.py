"""Waypoint reconstruction by prototype cloning.

Downstream consumers reject structurally incomplete waypoints, so each
generated waypoint is a deep copy of a complete template waypoint (the
prototype).  Only the name, the point coordinates and the sequence
index of a clone change; action groups, gimbal settings and speed
overrides are inherited unchanged.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kml_flightplan.activities.extract_geometry import format_waypoint_coordinates
from kml_flightplan.core.constants import WAYPOINT_INDEX_FIELD

if TYPE_CHECKING:
    from lxml.etree import _Element

    from kml_flightplan.models.geometry import GeoPoint, PolygonRing
    from kml_flightplan.models.mission import RewriteSettings

logger = logging.getLogger("kml_flightplan.activities.rewrite_mission")


@dataclass(frozen=True, slots=True)
class WaypointOutcome:
    """What the waypoint pass did to the descriptor."""

    folder_found: bool
    used_prototype: bool
    count: int


def waypoint_name(index: int) -> str:
    """Human-readable waypoint name for a zero-based *index*."""
    return f"WP {index + 1}"


def find_prototype(placemarks: list[_Element], kml_ns: str) -> _Element | None:
    """Return the first placemark holding a ``Point/coordinates`` structure."""
    path = f".//{{{kml_ns}}}Point/{{{kml_ns}}}coordinates"
    for placemark in placemarks:
        if placemark.find(path) is not None:
            return placemark
    return None


def rebuild_waypoints(
    root: _Element,
    ring: PolygonRing,
    settings: RewriteSettings,
) -> WaypointOutcome:
    """Replace the waypoints of the first folder with one entry per ring vertex.

    Entries are appended in ring order, which is the flight order.
    """
    kml_ns = settings.geometry_namespace
    folder = next(root.iter(f"{{{kml_ns}}}Folder"), None)
    if folder is None:
        logger.warning("Mission descriptor has no waypoint folder; waypoints left unchanged")
        return WaypointOutcome(folder_found=False, used_prototype=False, count=0)

    placemark_tag = f"{{{kml_ns}}}Placemark"
    placemarks = [child for child in folder if child.tag == placemark_tag]
    prototype = find_prototype(placemarks, kml_ns)

    for placemark in placemarks:
        folder.remove(placemark)

    if prototype is None:
        logger.warning(
            "No prototype waypoint in template (%d placemark(s)); "
            "emitting minimal waypoints without action metadata",
            len(placemarks),
        )
        for index, point in enumerate(ring):
            _append_minimal_waypoint(folder, index, point, kml_ns)
        return WaypointOutcome(folder_found=True, used_prototype=False, count=len(ring))

    for index, point in enumerate(ring):
        clone = copy.deepcopy(prototype)
        _set_name(clone, index, kml_ns)
        coordinates = clone.find(f".//{{{kml_ns}}}Point/{{{kml_ns}}}coordinates")
        coordinates.text = format_waypoint_coordinates(point)
        sequence = clone.find(f"{{{settings.mission_namespace}}}{WAYPOINT_INDEX_FIELD}")
        if sequence is not None:
            sequence.text = str(index)
        folder.append(clone)

    logger.debug(
        "Waypoints rebuilt from prototype | replaced=%d | generated=%d",
        len(placemarks),
        len(ring),
    )
    return WaypointOutcome(folder_found=True, used_prototype=True, count=len(ring))


def _set_name(placemark: _Element, index: int, kml_ns: str) -> None:
    from lxml import etree  # type: ignore[attr-defined]

    name = placemark.find(f"{{{kml_ns}}}name")
    if name is None:
        name = etree.SubElement(placemark, f"{{{kml_ns}}}name")
        placemark.insert(0, name)
    name.text = waypoint_name(index)


def _append_minimal_waypoint(folder: _Element, index: int, point: GeoPoint, kml_ns: str) -> None:
    from lxml import etree  # type: ignore[attr-defined]

    placemark = etree.SubElement(folder, f"{{{kml_ns}}}Placemark")
    etree.SubElement(placemark, f"{{{kml_ns}}}name").text = waypoint_name(index)
    geometry = etree.SubElement(placemark, f"{{{kml_ns}}}Point")
    etree.SubElement(geometry, f"{{{kml_ns}}}coordinates").text = format_waypoint_coordinates(
        point
    )
