"""Mission parameter types: camera mode, altitude bucket, rewrite settings."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from kml_flightplan.core.constants import (
    ALTITUDE_BUCKET_THRESHOLD_FT,
    DESCRIPTOR_CANDIDATES,
    DRONE_ENUM_VALUE,
    KML_NAMESPACE,
    PAYLOAD_ENUM_VALUE,
    WPML_NAMESPACE,
)


class CameraMode(enum.Enum):
    """Camera capture mode selected for the mission."""

    EO = "EO"
    IR = "IR"
    BOTH = "BOTH"

    @property
    def payload_sub_enum_value(self) -> str:
        """Payload sub-identifier written to ``payloadSubEnumValue``.

        BOTH shares IR's sub-mode: the dual-sensor payload exposes the
        same sub-mode as IR-only capture.
        """
        return "0" if self is CameraMode.EO else "2"

    @classmethod
    def parse(cls, value: str | CameraMode) -> CameraMode:
        """Parse a case-insensitive mode name (``"eo"``, ``"IR"``, ``"both"``).

        Raises:
            ValueError: If *value* names no camera mode.
        """
        if isinstance(value, CameraMode):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            choices = ", ".join(m.value for m in cls)
            msg = f"Unknown camera mode {value!r} (expected one of: {choices})"
            raise ValueError(msg) from None


class AltitudeBucket(enum.Enum):
    """Coarse altitude class used only to pick a template."""

    LOW = "LOW"
    HIGH = "HIGH"

    @classmethod
    def from_feet(cls, altitude_ft: float) -> AltitudeBucket:
        """LOW below 300 ft, HIGH at or above."""
        return cls.LOW if altitude_ft < ALTITUDE_BUCKET_THRESHOLD_FT else cls.HIGH


@dataclass(frozen=True, slots=True)
class RewriteSettings:
    """Immutable settings injected into the mission descriptor rewriter.

    Attributes:
        mission_namespace: Namespace URI of mission-markup elements.
        geometry_namespace: Namespace URI of folders, placemarks and coordinates.
        descriptor_candidates: Relative descriptor paths probed in order.
        drone_enum_value: Aircraft identifier.
        payload_enum_value: Payload identifier.
    """

    mission_namespace: str = WPML_NAMESPACE
    geometry_namespace: str = KML_NAMESPACE
    descriptor_candidates: tuple[str, ...] = DESCRIPTOR_CANDIDATES
    drone_enum_value: str = DRONE_ENUM_VALUE
    payload_enum_value: str = PAYLOAD_ENUM_VALUE
