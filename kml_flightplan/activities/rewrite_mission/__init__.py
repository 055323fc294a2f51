"""Mission rewrite activity: point a staged template at a new polygon.

Given a staged template tree and a polygon ring, rewrites in place:
1. **Scalar fields** of the waylines descriptor (aircraft/payload ids,
   altitude fields), every occurrence
2. **Height sweep** catches any other ``*Height`` element or attribute in the
   mission namespace (must follow step 1)
3. **Waypoints**: the first folder's placemarks are replaced by clones
   of a prototype waypoint, one per ring vertex, in ring order
4. **Auxiliary geometry**: every ``*.kml`` / ``*.kmz`` in the tree gets
   the same ring; per-file failures are reported, never raised

No member is added to or removed from the tree; only element and
attribute text changes.

The pipeline is split into focused stages:
- **_descriptor**: locate / parse / serialise the descriptor, exceptions
- **_fields**: named scalar pass and generic height sweep
- **_waypoints**: prototype-clone waypoint reconstruction
- **_auxiliary**: secondary KML/KMZ synchronisation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_flightplan.activities.rewrite_mission._auxiliary import (
    replace_first_ring,
    rewrite_kml_bytes,
    rewrite_kmz_bytes,
    sync_auxiliary_geometry,
)
from kml_flightplan.activities.rewrite_mission._descriptor import (
    MissionDescriptorMissing,
    RewriteFailed,
    locate_descriptor,
    parse_xml,
    serialize_xml,
)
from kml_flightplan.activities.rewrite_mission._fields import (
    apply_scalar_fields,
    format_altitude,
    scalar_field_values,
    sweep_heights,
)
from kml_flightplan.activities.rewrite_mission._waypoints import (
    WaypointOutcome,
    rebuild_waypoints,
    waypoint_name,
)
from kml_flightplan.core.exceptions import FlightPlanError
from kml_flightplan.models.mission import RewriteSettings
from kml_flightplan.models.reports import RewriteReport

if TYPE_CHECKING:
    from kml_flightplan.core.package import StagedTree
    from kml_flightplan.models.geometry import PolygonRing
    from kml_flightplan.models.mission import CameraMode

logger = logging.getLogger("kml_flightplan.activities.rewrite_mission")

__all__ = [
    "MissionDescriptorMissing",
    "RewriteFailed",
    "WaypointOutcome",
    "apply_scalar_fields",
    "format_altitude",
    "locate_descriptor",
    "parse_xml",
    "rebuild_waypoints",
    "replace_first_ring",
    "rewrite_descriptor",
    "rewrite_kml_bytes",
    "rewrite_kmz_bytes",
    "rewrite_mission",
    "scalar_field_values",
    "serialize_xml",
    "sweep_heights",
    "sync_auxiliary_geometry",
    "waypoint_name",
]


def rewrite_descriptor(
    content: bytes,
    ring: PolygonRing,
    altitude_m: float,
    camera_mode: CameraMode,
    settings: RewriteSettings,
) -> tuple[bytes, RewriteReport]:
    """Apply the scalar, height and waypoint passes to descriptor bytes.

    Returns the new descriptor bytes and a partial report (without
    ``descriptor_path`` / ``auxiliary``).
    """
    root = parse_xml(content)
    ns = settings.mission_namespace

    updated = apply_scalar_fields(root, scalar_field_values(altitude_m, camera_mode, settings), ns)
    swept = sweep_heights(root, format_altitude(altitude_m), ns)
    waypoints = rebuild_waypoints(root, ring, settings)

    report = RewriteReport(
        descriptor_path="",
        waypoint_count=waypoints.count,
        used_prototype=waypoints.used_prototype,
        folder_found=waypoints.folder_found,
        scalar_fields_updated=updated,
        heights_swept=swept,
    )
    return serialize_xml(root), report


def rewrite_mission(
    tree: StagedTree,
    ring: PolygonRing,
    altitude_m: float,
    camera_mode: CameraMode,
    *,
    settings: RewriteSettings | None = None,
) -> RewriteReport:
    """Rewrite a staged template tree in place for *ring* at *altitude_m*.

    Args:
        tree: Staged template (mutated in place).
        ring: Polygon ring; its order becomes the waypoint order.
        altitude_m: Flight altitude in metres.
        camera_mode: Camera mode selecting the payload sub-identifier.
        settings: Namespaces, descriptor candidates and identifiers.

    Returns:
        A ``RewriteReport`` including per-file auxiliary results.

    Raises:
        MissionDescriptorMissing: If no descriptor exists at a known path.
        RewriteFailed: If the descriptor cannot be parsed, mutated or written.
    """
    settings = settings or RewriteSettings()
    descriptor_path = locate_descriptor(tree, settings.descriptor_candidates)
    path = tree.path_of(descriptor_path)

    try:
        content, report = rewrite_descriptor(
            path.read_bytes(), ring, altitude_m, camera_mode, settings
        )
        path.write_bytes(content)
    except FlightPlanError:
        raise
    except Exception as exc:
        msg = f"Mission descriptor could not be rewritten: {exc}"
        raise RewriteFailed(msg) from exc

    report.descriptor_path = descriptor_path
    report.auxiliary = sync_auxiliary_geometry(tree, ring, settings.geometry_namespace)

    logger.info(
        "Mission rewritten | descriptor=%s | waypoints=%d | prototype=%s | "
        "fields=%d | heights=%d | auxiliary_skipped=%d",
        descriptor_path,
        report.waypoint_count,
        report.used_prototype,
        report.scalar_fields_updated,
        report.heights_swept,
        len(report.skipped_auxiliary),
    )
    return report
