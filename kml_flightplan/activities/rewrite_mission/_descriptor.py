"""Mission descriptor location, parsing and serialisation.

The descriptor is found by probing a short fixed list of relative paths;
template layout is a contract with the template author, so there is no
recursive search.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kml_flightplan.core.exceptions import PermanentError

if TYPE_CHECKING:
    from lxml.etree import _Element

    from kml_flightplan.core.package import StagedTree

logger = logging.getLogger("kml_flightplan.activities.rewrite_mission")


# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class MissionDescriptorMissing(PermanentError):
    """Raised when the template has no descriptor at any known path."""

    default_stage = "rewrite_mission"
    default_code = "DESCRIPTOR_MISSING"


class RewriteFailed(PermanentError):
    """Raised when mutating or re-serialising the descriptor fails."""

    default_stage = "rewrite_mission"
    default_code = "REWRITE_FAILED"


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


def locate_descriptor(tree: StagedTree, candidates: tuple[str, ...]) -> str:
    """Return the first candidate path that exists as a file in *tree*.

    Raises:
        MissionDescriptorMissing: If no candidate exists.
    """
    for candidate in candidates:
        if tree.has_file(candidate):
            logger.debug("Mission descriptor located | path=%s", candidate)
            return candidate
    msg = (
        "The selected mission template has no waylines descriptor "
        f"(looked for: {', '.join(candidates)})."
    )
    raise MissionDescriptorMissing(msg)


# ---------------------------------------------------------------------------
# XML I/O
# ---------------------------------------------------------------------------


def parse_xml(content: bytes) -> _Element:
    """Parse XML bytes into a root element without resolving entities."""
    from lxml import etree  # type: ignore[attr-defined]

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    return etree.fromstring(content, parser=parser)


def serialize_xml(root: _Element) -> bytes:
    """Serialise the whole document of *root* (prolog comments included) as UTF-8."""
    from lxml import etree  # type: ignore[attr-defined]

    return etree.tostring(root.getroottree(), xml_declaration=True, encoding="UTF-8")
