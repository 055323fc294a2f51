"""Shared compile constants.

Centralises XML namespaces, the template lookup table, the descriptor
candidate paths and the mission-descriptor field contract.  Everything
here is immutable; components receive these values through
``RewriteSettings`` / ``CompilerConfig`` rather than reading them as
ambient state.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# XML namespaces
# ---------------------------------------------------------------------------

KML_NAMESPACE: str = "http://www.opengis.net/kml/2.2"
"""Visual-geometry namespace used by KML documents and waypoint folders."""

WPML_NAMESPACE: str = "http://www.dji.com/wpmz/1.0.6"
"""Mission-markup namespace of the waylines descriptor."""

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

METERS_PER_FOOT: float = 0.3048

ALTITUDE_BUCKET_THRESHOLD_FT: float = 300.0
"""Altitudes strictly below this (in feet) select the LOW template bucket."""

# ---------------------------------------------------------------------------
# Template table (2 buckets x 3 camera modes)
# ---------------------------------------------------------------------------

TEMPLATE_BUCKET_DIRS: dict[str, str] = {
    "LOW": "templates/200ft",
    "HIGH": "templates/400ft",
}

TEMPLATE_CAMERA_FILES: dict[str, str] = {
    "EO": "Test3correct.kmz",
    "IR": "Test3correctIR.kmz",
    "BOTH": "Test3correctBoth.kmz",
}

# ---------------------------------------------------------------------------
# Mission descriptor
# ---------------------------------------------------------------------------

DESCRIPTOR_CANDIDATES: tuple[str, ...] = (
    "wpmz/waylines.wpml",
    "wpmz/mission/waylines.wpml",
    "waylines.wpml",
)
"""Relative paths probed, in order, for the waylines descriptor."""

DRONE_ENUM_VALUE: str = "77"
"""Aircraft identifier of the supported drone family."""

PAYLOAD_ENUM_VALUE: str = "67"
"""Payload identifier of the supported camera payload."""

EXECUTE_HEIGHT_MODE: str = "relativeToStartPoint"
USE_ABSOLUTE_ALTITUDE: str = "false"

HEIGHT_FIELDS: tuple[str, ...] = (
    "executeHeight",
    "takeOffAlt",
    "takeOffSecurityHeight",
    "globalHeight",
    "height",
    "uavHeight",
    "goHomeHeight",
)
"""Named mission fields that receive the formatted altitude in metres."""

WAYPOINT_INDEX_FIELD: str = "index"

# ---------------------------------------------------------------------------
# Auxiliary geometry documents
# ---------------------------------------------------------------------------

KML_EXTENSION: str = ".kml"
KMZ_EXTENSION: str = ".kmz"
KMZ_PREFERRED_MEMBER: str = "doc.kml"

PACKAGE_EXTENSION: str = ".kmz"
"""Extension of the compiled flight-plan package."""
