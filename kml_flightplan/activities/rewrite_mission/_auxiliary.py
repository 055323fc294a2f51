"""Auxiliary geometry synchronisation.

Templates carry secondary geometry documents (``template.kml``, nested
``*.kmz`` previews) that should show the same ring as the mission
descriptor.  These assets are cosmetic, so each file is handled in
isolation: a malformed or geometry-less file becomes a ``skipped``
report entry and the compile carries on.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from kml_flightplan.activities.extract_geometry import format_ring_coordinates
from kml_flightplan.activities.rewrite_mission._descriptor import parse_xml, serialize_xml
from kml_flightplan.core.constants import KML_EXTENSION, KMZ_EXTENSION, KMZ_PREFERRED_MEMBER
from kml_flightplan.core.package import read_members, write_members
from kml_flightplan.models.reports import AuxiliaryRewriteResult, AuxiliaryStatus

if TYPE_CHECKING:
    from lxml.etree import _Element

    from kml_flightplan.core.package import StagedTree
    from kml_flightplan.models.geometry import PolygonRing

logger = logging.getLogger("kml_flightplan.activities.rewrite_mission")

NO_COORDINATES = "no coordinates element"


# ---------------------------------------------------------------------------
# Single-document replacement
# ---------------------------------------------------------------------------


def replace_first_ring(root: _Element, coordinates_text: str, kml_ns: str) -> bool:
    """Replace the first polygon ring's coordinates in a KML tree.

    Preference: a LinearRing inside a Polygon, then any LinearRing, then
    the first ``coordinates`` element anywhere.  Returns ``False`` when
    the document has no coordinates at all.
    """
    coordinates_tag = f"{{{kml_ns}}}coordinates"
    candidates = (
        f".//{{{kml_ns}}}Polygon//{{{kml_ns}}}LinearRing//{coordinates_tag}",
        f".//{{{kml_ns}}}LinearRing//{coordinates_tag}",
    )
    target = None
    for path in candidates:
        target = root.find(path)
        if target is not None:
            break
    if target is None:
        target = next(root.iter(coordinates_tag), None)
    if target is None:
        return False

    target.text = f"\n{coordinates_text}\n"
    return True


def rewrite_kml_bytes(content: bytes, ring: PolygonRing, kml_ns: str) -> bytes | None:
    """Return *content* with its first ring replaced, or ``None`` if it has none.

    Raises:
        lxml.etree.XMLSyntaxError: If *content* is not well-formed XML.
    """
    root = parse_xml(content)
    if not replace_first_ring(root, format_ring_coordinates(ring), kml_ns):
        return None
    return serialize_xml(root)


def rewrite_kmz_bytes(
    content: bytes, ring: PolygonRing, kml_ns: str
) -> tuple[bytes | None, str]:
    """Rewrite the main KML member of a nested KMZ.

    The target member is ``doc.kml`` when present, else the first
    ``*.kml`` member.  Other members are re-encoded with identical
    content.

    Returns:
        ``(new_bytes, member_name)``; ``new_bytes`` is ``None`` when no
        replacement happened (no KML member, or no coordinates in it).
    """
    members = read_members(content)
    target = _pick_kmz_member([info.filename for info, _ in members])
    if target is None:
        return (None, "")

    info, data = members[target]
    replaced = rewrite_kml_bytes(data, ring, kml_ns)
    if replaced is None:
        return (None, info.filename)

    members[target] = (info, replaced)
    return (write_members(members), info.filename)


def _pick_kmz_member(names: list[str]) -> int | None:
    for idx, name in enumerate(names):
        if name.lower() == KMZ_PREFERRED_MEMBER:
            return idx
    for idx, name in enumerate(names):
        if name.lower().endswith(KML_EXTENSION):
            return idx
    return None


# ---------------------------------------------------------------------------
# Staged-tree walk
# ---------------------------------------------------------------------------


def sync_auxiliary_geometry(
    tree: StagedTree, ring: PolygonRing, kml_ns: str
) -> list[AuxiliaryRewriteResult]:
    """Synchronise every ``*.kml`` and then every ``*.kmz`` file in *tree*.

    Never raises for a single bad file; see the returned results.
    """
    files = tree.files()
    kml_files = [f for f in files if f.suffix.lower() == KML_EXTENSION]
    kmz_files = [f for f in files if f.suffix.lower() == KMZ_EXTENSION]

    results = [_sync_one(tree, path, "kml", ring, kml_ns) for path in kml_files]
    results.extend(_sync_one(tree, path, "kmz", ring, kml_ns) for path in kmz_files)

    logger.info(
        "Auxiliary geometry synchronised | files=%d | rewritten=%d | skipped=%d",
        len(results),
        sum(r.status is AuxiliaryStatus.REWRITTEN for r in results),
        sum(r.status is AuxiliaryStatus.SKIPPED for r in results),
    )
    return results


def _sync_one(
    tree: StagedTree,
    relative: PurePosixPath,
    kind: str,
    ring: PolygonRing,
    kml_ns: str,
) -> AuxiliaryRewriteResult:
    path = tree.path_of(relative)
    name = relative.as_posix()
    inner = ""
    try:
        content = path.read_bytes()
        if kind == "kmz":
            updated, inner = rewrite_kmz_bytes(content, ring, kml_ns)
            reason = f"no KML member with {NO_COORDINATES}" if inner else "no KML member"
        else:
            updated = rewrite_kml_bytes(content, ring, kml_ns)
            reason = NO_COORDINATES
        if updated is None:
            logger.warning("Skipping %s rewrite for %s: %s", kind.upper(), name, reason)
            return AuxiliaryRewriteResult(
                path=name,
                kind=kind,
                status=AuxiliaryStatus.SKIPPED,
                reason=reason,
                inner_member=inner,
            )
        path.write_bytes(updated)
    except Exception as exc:
        logger.warning("Skipping %s rewrite for %s: %s", kind.upper(), name, exc)
        return AuxiliaryRewriteResult(
            path=name,
            kind=kind,
            status=AuxiliaryStatus.SKIPPED,
            reason=str(exc) or type(exc).__name__,
            inner_member=inner,
        )

    return AuxiliaryRewriteResult(
        path=name,
        kind=kind,
        status=AuxiliaryStatus.REWRITTEN,
        inner_member=inner,
    )
