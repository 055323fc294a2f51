"""Pydantic report models for rewrites and compiles.

These are the audit trail of one compile: which descriptor was
rewritten, how many waypoints were generated, what happened to every
auxiliary geometry document, and where the package ended up.
Auxiliary skips are first-class entries here instead of log-only
events, so callers and tests can inspect them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class AuxiliaryStatus(str, Enum):
    """Outcome of synchronising one auxiliary geometry document."""

    REWRITTEN = "rewritten"
    SKIPPED = "skipped"


class AuxiliaryRewriteResult(BaseModel):
    """Per-file outcome of the auxiliary geometry pass.

    Attributes:
        path: Member path relative to the staged tree root (POSIX separators).
        kind: ``"kml"`` or ``"kmz"``.
        status: What happened to the file.
        reason: Why the file was skipped (empty on success).
        inner_member: For KMZ files, the inner KML member that was targeted.
    """

    path: str
    kind: str
    status: AuxiliaryStatus
    reason: str = ""
    inner_member: str = ""


class RewriteReport(BaseModel):
    """Summary of one mission descriptor rewrite.

    Attributes:
        descriptor_path: Descriptor location relative to the staged tree root.
        waypoint_count: Number of waypoint entries now in the waypoint folder.
        used_prototype: Whether waypoints were cloned from a template waypoint
            (``False`` means the degraded synthetic path or no folder).
        folder_found: Whether a waypoint folder existed in the descriptor.
        scalar_fields_updated: Number of elements touched by the named-field pass.
        heights_swept: Number of elements/attributes touched by the height sweep.
        auxiliary: Per-file results of the auxiliary geometry pass.
    """

    descriptor_path: str
    waypoint_count: int = 0
    used_prototype: bool = False
    folder_found: bool = False
    scalar_fields_updated: int = 0
    heights_swept: int = 0
    auxiliary: list[AuxiliaryRewriteResult] = Field(default_factory=list)

    @property
    def skipped_auxiliary(self) -> list[AuxiliaryRewriteResult]:
        """Auxiliary documents that could not be synchronised."""
        return [r for r in self.auxiliary if r.status is AuxiliaryStatus.SKIPPED]


class CompileResult(BaseModel):
    """Outcome of a successful compile.

    Attributes:
        compile_id: Unique identifier of this compile (also tags staging paths).
        mission_name: Mission name the package was named after.
        package_path: Absolute path of the promoted package.
        size_bytes: Size of the package in bytes.
        template_id: Template package the mission was compiled from.
        altitude_bucket: ``"LOW"`` or ``"HIGH"``.
        altitude_m: Altitude written into the descriptor, in metres.
        camera_mode: ``"EO"``, ``"IR"`` or ``"BOTH"``.
        vertex_count: Number of polygon vertices (= waypoints).
        rewrite: Rewrite report of the descriptor and auxiliary documents.
    """

    compile_id: str
    mission_name: str
    package_path: str
    size_bytes: int
    template_id: str
    altitude_bucket: str
    altitude_m: float
    camera_mode: str
    vertex_count: int
    rewrite: RewriteReport
