"""Shared pytest fixtures for the KML Flight Plan test suite."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from kml_flightplan.activities.select_template import template_table
from kml_flightplan.core.config import CompilerConfig
from kml_flightplan.core.templates import MappingTemplateStore

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"
TEMPLATE_SOURCE_DIR = DATA_DIR / "templates"

WPML_NS = "http://www.dji.com/wpmz/1.0.6"
KML_NS = "http://www.opengis.net/kml/2.2"

PREVIEW_DOC_KML = b"""<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark>
      <Polygon>
        <outerBoundaryIs>
          <LinearRing>
            <coordinates>0,0,0 1,0,0 1,1,0</coordinates>
          </LinearRing>
        </outerBoundaryIs>
      </Polygon>
    </Placemark>
  </Document>
</kml>
"""

PREVIEW_ICON = b"\x89PNG\r\n\x1a\n-not-really-an-image-"


def build_zip(members: list[tuple[str, bytes | None]]) -> bytes:
    """Build a ZIP container; a ``None`` payload makes a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in members:
            if data is None:
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, data)
    return buffer.getvalue()


def read_zip(package: bytes) -> dict[str, bytes]:
    """Return ``{member name: content}`` of a ZIP container."""
    with zipfile.ZipFile(io.BytesIO(package)) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def preview_kmz() -> bytes:
    """A nested KMZ as found in templates: doc.kml plus a non-KML asset."""
    return build_zip([("doc.kml", PREVIEW_DOC_KML), ("images/icon.png", PREVIEW_ICON)])


def build_template(
    *,
    waylines: bytes | None = None,
    waylines_path: str = "wpmz/waylines.wpml",
    extra: list[tuple[str, bytes | None]] | None = None,
) -> bytes:
    """Build a template package from the text fixtures in ``tests/data/templates``."""
    if waylines is None:
        waylines = (TEMPLATE_SOURCE_DIR / "wpmz" / "waylines.wpml").read_bytes()
    members: list[tuple[str, bytes | None]] = [
        ("wpmz/", None),
        ("wpmz/template.kml", (TEMPLATE_SOURCE_DIR / "wpmz" / "template.kml").read_bytes()),
        (waylines_path, waylines),
        ("wpmz/res/", None),
        ("wpmz/res/preview.kmz", preview_kmz()),
    ]
    members.extend(extra or [])
    return build_zip(members)


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


@pytest.fixture()
def waylines_bytes() -> bytes:
    """Raw bytes of the template waylines descriptor fixture."""
    return (TEMPLATE_SOURCE_DIR / "wpmz" / "waylines.wpml").read_bytes()


@pytest.fixture()
def template_bytes() -> bytes:
    """A complete template package (descriptor, template.kml, nested KMZ)."""
    return build_template()


@pytest.fixture()
def template_store(template_bytes: bytes) -> MappingTemplateStore:
    """A store holding the same template under all six template ids."""
    return MappingTemplateStore(dict.fromkeys(template_table(), template_bytes))


@pytest.fixture()
def compiler_config(tmp_path: Path) -> CompilerConfig:
    """Config writing packages and staging trees under ``tmp_path``."""
    return CompilerConfig(
        template_dir=str(tmp_path / "assets"),
        output_dir=str(tmp_path / "output"),
        staging_dir=str(tmp_path / "staging"),
    )


# ---------------------------------------------------------------------------
# Sample KML fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def closed_polygon_kml(data_dir: Path) -> bytes:
    """Closed Polygon ring: 4 raw points, 3 after closure stripping."""
    return (data_dir / "polygon_closed.kml").read_bytes()


@pytest.fixture()
def polygon_and_linestring_kml(data_dir: Path) -> bytes:
    """A LineString placemark followed by a Polygon placemark."""
    return (data_dir / "polygon_and_linestring.kml").read_bytes()


@pytest.fixture()
def linestring_only_kml(data_dir: Path) -> bytes:
    """A single LineString path and nothing else."""
    return (data_dir / "linestring_only.kml").read_bytes()


@pytest.fixture()
def bare_linear_ring_kml(data_dir: Path) -> bytes:
    """A namespace-less LinearRing nested in folders, no Polygon wrapper."""
    return (data_dir / "bare_linear_ring.kml").read_bytes()
