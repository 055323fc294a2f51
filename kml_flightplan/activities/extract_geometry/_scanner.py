"""Single-pass streaming geometry scanner.

Walks the document once with ``lxml.etree.iterparse`` and captures the
first non-empty ``<coordinates>`` text inside each of three scopes:
Polygon, LinearRing and LineString.  Scopes are matched by local name
in any namespace, so partially-specified KML (missing namespace, bare
LinearRing without a Polygon wrapper, deep Folder nesting) still yields
geometry.

A ``<coordinates>`` element belongs to exactly one scope: the highest
priority scope currently open.  Coordinates of a LinearRing nested in
a Polygon therefore count as Polygon coordinates.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from kml_flightplan.activities.extract_geometry._constants import (
    COORDINATES_TAG,
    SCOPE_LINE_STRING,
    SCOPE_LINEAR_RING,
    SCOPE_POLYGON,
    SCOPE_PRIORITY,
)
from kml_flightplan.activities.extract_geometry._validation import KmlParseError

logger = logging.getLogger("kml_flightplan.activities.extract_geometry")


@dataclass(slots=True)
class ScanResult:
    """First captured coordinate text per scope (``None`` when absent)."""

    captures: dict[str, str | None] = field(
        default_factory=lambda: dict.fromkeys(SCOPE_PRIORITY)
    )

    @property
    def polygon(self) -> str | None:
        return self.captures[SCOPE_POLYGON]

    @property
    def linear_ring(self) -> str | None:
        return self.captures[SCOPE_LINEAR_RING]

    @property
    def line_string(self) -> str | None:
        return self.captures[SCOPE_LINE_STRING]


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def scan_geometry(kml_bytes: bytes) -> ScanResult:
    """Scan *kml_bytes* once and return the captured coordinate texts.

    The document encoding (UTF-8, UTF-16, ...) is taken from the XML
    declaration / byte-order mark.

    Raises:
        KmlParseError: If the input is empty or not well-formed XML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    if not kml_bytes or not kml_bytes.strip():
        msg = "KML document is empty."
        raise KmlParseError(msg)

    result = ScanResult()
    depth = dict.fromkeys(SCOPE_PRIORITY, 0)

    events = etree.iterparse(
        io.BytesIO(kml_bytes),
        events=("start", "end"),
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
    )
    try:
        for event, elem in events:
            name = _local_name(elem.tag)
            if event == "start":
                if name in depth:
                    depth[name] += 1
                continue

            if name == COORDINATES_TAG:
                _capture(result, depth, elem)
            elif name in depth:
                depth[name] -= 1

            # Release parsed content; captured text is already copied out.
            elem.clear(keep_tail=True)
            # The root has no parent; its siblings are prolog comments or PIs.
            parent = elem.getparent()
            if parent is not None:
                while elem.getprevious() is not None:
                    del parent[0]
    except etree.XMLSyntaxError as exc:
        msg = f"KML document is not valid XML: {exc}"
        raise KmlParseError(msg) from exc

    logger.debug(
        "Geometry scan complete | polygon=%s | linear_ring=%s | line_string=%s",
        result.polygon is not None,
        result.linear_ring is not None,
        result.line_string is not None,
    )
    return result


def _capture(result: ScanResult, depth: dict[str, int], elem: object) -> None:
    """Assign a ``<coordinates>`` element's text to the highest open scope."""
    for scope in SCOPE_PRIORITY:
        if depth[scope] <= 0:
            continue
        if result.captures[scope] is None:
            text = "".join(elem.itertext()).strip()  # type: ignore[attr-defined]
            if text:
                result.captures[scope] = text
        return
