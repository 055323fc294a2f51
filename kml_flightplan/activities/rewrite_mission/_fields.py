"""Scalar field propagation and the generic height sweep.

Both passes are blanket rewrites: every matching element anywhere in the
descriptor receives the same value.  The named pass must run before the
sweep.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kml_flightplan.core.constants import (
    EXECUTE_HEIGHT_MODE,
    HEIGHT_FIELDS,
    USE_ABSOLUTE_ALTITUDE,
)

if TYPE_CHECKING:
    from lxml.etree import _Element

    from kml_flightplan.models.mission import CameraMode, RewriteSettings


def format_altitude(altitude_m: float) -> str:
    """Format an altitude in metres with three decimals (``60.960``)."""
    return f"{altitude_m:.3f}"


def scalar_field_values(
    altitude_m: float,
    camera_mode: CameraMode,
    settings: RewriteSettings,
) -> list[tuple[str, str]]:
    """Return the ``(local name, value)`` pairs of the named-field pass, in order."""
    height = format_altitude(altitude_m)
    values = [
        ("droneEnumValue", settings.drone_enum_value),
        ("payloadEnumValue", settings.payload_enum_value),
        ("payloadSubEnumValue", camera_mode.payload_sub_enum_value),
        ("executeHeightMode", EXECUTE_HEIGHT_MODE),
        ("isUseAbsoluteAltitude", USE_ABSOLUTE_ALTITUDE),
    ]
    values.extend((name, height) for name in HEIGHT_FIELDS)
    return values


def apply_scalar_fields(root: _Element, values: list[tuple[str, str]], namespace: str) -> int:
    """Overwrite the text of every ``{namespace}name`` element; return the count."""
    updated = 0
    for local_name, value in values:
        for elem in root.iter(f"{{{namespace}}}{local_name}"):
            elem.text = value
            updated += 1
    return updated


def is_height_name(local_name: str) -> bool:
    """``height`` or any name ending in ``Height``, case-insensitive."""
    return local_name.lower().endswith("height")


def sweep_heights(root: _Element, height: str, namespace: str) -> int:
    """Set every height-named element and attribute in *namespace* to *height*.

    Catches template variants using height fields outside the named set.
    Returns the number of elements and attributes written.
    """
    from lxml import etree  # type: ignore[attr-defined]

    swept = 0
    for elem in root.iter():
        if not isinstance(elem.tag, str):
            continue
        qname = etree.QName(elem)
        if qname.namespace != namespace:
            continue
        if is_height_name(qname.localname):
            elem.text = height
            swept += 1
        for attr in list(elem.attrib):
            if is_height_name(etree.QName(attr).localname):
                elem.set(attr, height)
                swept += 1
    return swept
