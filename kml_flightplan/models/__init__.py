"""Data models and schemas.

Defines the data structures used throughout the compiler:
- GeoPoint / PolygonRing: Extracted polygon geometry
- CameraMode / AltitudeBucket: Mission parameters driving template choice
- RewriteSettings: Namespaces and identifiers injected into the rewriter
- RewriteReport / CompileResult: Audit trail of a compile
"""

from kml_flightplan.models.geometry import GeoPoint, PolygonRing
from kml_flightplan.models.mission import AltitudeBucket, CameraMode, RewriteSettings
from kml_flightplan.models.reports import (
    AuxiliaryRewriteResult,
    AuxiliaryStatus,
    CompileResult,
    RewriteReport,
)

__all__ = [
    "AltitudeBucket",
    "AuxiliaryRewriteResult",
    "AuxiliaryStatus",
    "CameraMode",
    "CompileResult",
    "GeoPoint",
    "PolygonRing",
    "RewriteReport",
    "RewriteSettings",
]
