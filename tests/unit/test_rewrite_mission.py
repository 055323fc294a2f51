"""Tests for the rewrite_mission activity.

Covers:
- Named scalar fields and the generic height sweep
- Prototype-cloned waypoints (names, coordinates, index, inherited actions)
- Synthetic waypoint fallback and missing waypoint folder
- Descriptor location (alternate paths, missing descriptor, malformed XML)
- Auxiliary KML / KMZ synchronisation and per-file skips
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from lxml import etree

from kml_flightplan.activities.extract_geometry import extract_polygon
from kml_flightplan.activities.rewrite_mission import (
    MissionDescriptorMissing,
    RewriteFailed,
    parse_xml,
    replace_first_ring,
    rewrite_descriptor,
    rewrite_kmz_bytes,
    rewrite_mission,
)
from kml_flightplan.core.constants import METERS_PER_FOOT
from kml_flightplan.core.package import repack, staged
from kml_flightplan.models.geometry import GeoPoint, PolygonRing
from kml_flightplan.models.mission import CameraMode, RewriteSettings
from kml_flightplan.models.reports import AuxiliaryStatus, RewriteReport
from tests.conftest import (
    KML_NS,
    PREVIEW_ICON,
    WPML_NS,
    build_template,
    build_zip,
    read_zip,
)

if TYPE_CHECKING:
    from pathlib import Path

ALTITUDE_200FT = 200 * METERS_PER_FOOT

RING = PolygonRing(
    (
        GeoPoint(latitude=37.7, longitude=-122.1),
        GeoPoint(latitude=37.7, longitude=-122.0),
        GeoPoint(latitude=37.8, longitude=-122.0),
    )
)


def _texts(root: etree._Element, ns: str, name: str) -> list[str]:
    return [elem.text for elem in root.iter(f"{{{ns}}}{name}")]


def _waypoints(root: etree._Element) -> list[etree._Element]:
    folder = next(root.iter(f"{{{KML_NS}}}Folder"))
    return [child for child in folder if child.tag == f"{{{KML_NS}}}Placemark"]


def _rewrite(
    waylines: bytes,
    camera_mode: CameraMode = CameraMode.EO,
    settings: RewriteSettings | None = None,
) -> tuple[etree._Element, RewriteReport]:
    content, report = rewrite_descriptor(
        waylines, RING, ALTITUDE_200FT, camera_mode, settings or RewriteSettings()
    )
    return etree.fromstring(content), report


# ---------------------------------------------------------------------------
# Descriptor fields
# ---------------------------------------------------------------------------


class TestScalarFields:
    """Named-field pass and height sweep."""

    def test_aircraft_and_payload_identifiers(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        assert _texts(root, WPML_NS, "droneEnumValue") == ["77"]
        assert _texts(root, WPML_NS, "payloadEnumValue") == ["67"]

    @pytest.mark.parametrize(
        ("mode", "sub"),
        [(CameraMode.EO, "0"), (CameraMode.IR, "2"), (CameraMode.BOTH, "2")],
    )
    def test_payload_sub_identifier_per_mode(
        self, waylines_bytes: bytes, mode: CameraMode, sub: str
    ) -> None:
        root, _ = _rewrite(waylines_bytes, mode)
        assert _texts(root, WPML_NS, "payloadSubEnumValue") == [sub]

    def test_execute_height_mode_relative(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        assert _texts(root, WPML_NS, "executeHeightMode") == ["relativeToStartPoint"]

    def test_altitude_written_with_three_decimals(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        assert _texts(root, WPML_NS, "executeHeight") == ["60.960"] * 3
        assert _texts(root, WPML_NS, "takeOffSecurityHeight") == ["60.960"]

    def test_sweep_catches_unnamed_height_fields(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        assert _texts(root, WPML_NS, "globalRTHHeight") == ["60.960"]
        custom = next(root.iter(f"{{{WPML_NS}}}customParam"))
        assert custom.get(f"{{{WPML_NS}}}minHeight") == "60.960"
        assert custom.text == "keep"

    def test_non_height_fields_untouched(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        assert _texts(root, WPML_NS, "waypointSpeed") == ["5"] * 3
        assert _texts(root, WPML_NS, "globalTransitionalSpeed") == ["10"]
        assert _texts(root, WPML_NS, "gimbalPitchRotateAngle") == ["-90"] * 3

    def test_report_counts(self, waylines_bytes: bytes) -> None:
        _, report = _rewrite(waylines_bytes)
        # drone, payload, sub, heightMode, 2x executeHeight, takeOffSecurityHeight
        assert report.scalar_fields_updated == 7
        # takeOffSecurityHeight, globalRTHHeight, 2x executeHeight, minHeight attribute
        assert report.heights_swept == 5

    def test_other_namespace_ignored(self, waylines_bytes: bytes) -> None:
        legacy = waylines_bytes.replace(WPML_NS.encode(), b"http://www.dji.com/wpmz/1.0.2")
        root, _ = _rewrite(legacy)
        assert _texts(root, "http://www.dji.com/wpmz/1.0.2", "droneEnumValue") == ["67"]

    def test_configured_namespace_applies(self, waylines_bytes: bytes) -> None:
        legacy_ns = "http://www.dji.com/wpmz/1.0.2"
        legacy = waylines_bytes.replace(WPML_NS.encode(), legacy_ns.encode())
        root, _ = _rewrite(legacy, settings=RewriteSettings(mission_namespace=legacy_ns))
        assert _texts(root, legacy_ns, "droneEnumValue") == ["77"]
        assert _texts(root, legacy_ns, "index") == ["0", "1", "2"]


# ---------------------------------------------------------------------------
# Waypoints
# ---------------------------------------------------------------------------


class TestWaypoints:
    """Prototype cloning."""

    def test_one_waypoint_per_vertex_in_ring_order(self, waylines_bytes: bytes) -> None:
        root, report = _rewrite(waylines_bytes)
        waypoints = _waypoints(root)

        assert len(waypoints) == 3
        assert report.waypoint_count == 3
        assert report.used_prototype is True
        assert report.folder_found is True
        coords = [wp.findtext(f".//{{{KML_NS}}}Point/{{{KML_NS}}}coordinates") for wp in waypoints]
        assert coords == [
            "-122.1000000,37.7000000",
            "-122.0000000,37.7000000",
            "-122.0000000,37.8000000",
        ]

    def test_names_and_indices(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        waypoints = _waypoints(root)

        assert [wp.findtext(f"{{{KML_NS}}}name") for wp in waypoints] == ["WP 1", "WP 2", "WP 3"]
        assert [wp.findtext(f"{{{WPML_NS}}}index") for wp in waypoints] == ["0", "1", "2"]

    def test_created_name_is_first_child(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        for wp in _waypoints(root):
            assert wp[0].tag == f"{{{KML_NS}}}name"

    def test_clones_inherit_action_group(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        for wp in _waypoints(root):
            funcs = [e.text for e in wp.iter(f"{{{WPML_NS}}}actionActuatorFunc")]
            assert funcs == ["gimbalRotate", "takePhoto"]

    def test_folder_settings_survive(self, waylines_bytes: bytes) -> None:
        root, _ = _rewrite(waylines_bytes)
        folder = next(root.iter(f"{{{KML_NS}}}Folder"))
        assert folder.findtext(f"{{{WPML_NS}}}autoFlightSpeed") == "7"
        assert folder[0].tag == f"{{{WPML_NS}}}templateId"

    def test_more_vertices_than_template_waypoints(self, waylines_bytes: bytes) -> None:
        ring = PolygonRing(tuple(GeoPoint(latitude=10.0 + i, longitude=20.0) for i in range(7)))
        content, report = rewrite_descriptor(
            waylines_bytes, ring, 30.0, CameraMode.IR, RewriteSettings()
        )
        waypoints = _waypoints(etree.fromstring(content))
        assert report.waypoint_count == 7
        assert waypoints[-1].findtext(f"{{{KML_NS}}}name") == "WP 7"
        assert waypoints[-1].findtext(f"{{{WPML_NS}}}index") == "6"

    def test_existing_name_is_renamed(self) -> None:
        descriptor = f"""<kml xmlns="{KML_NS}" xmlns:wpml="{WPML_NS}"><Document><Folder>
          <Placemark><name>Old</name><Point><coordinates>0,0</coordinates></Point>
          <wpml:index>4</wpml:index></Placemark>
        </Folder></Document></kml>""".encode()
        root, _ = _rewrite(descriptor)
        waypoints = _waypoints(root)
        assert [wp.findtext(f"{{{KML_NS}}}name") for wp in waypoints] == ["WP 1", "WP 2", "WP 3"]
        assert all(len(wp.findall(f"{{{KML_NS}}}name")) == 1 for wp in waypoints)

    def test_no_prototype_emits_minimal_waypoints(self) -> None:
        descriptor = f"""<kml xmlns="{KML_NS}" xmlns:wpml="{WPML_NS}"><Document><Folder>
          <wpml:executeHeightMode>WGS84</wpml:executeHeightMode>
          <Placemark><name>no point here</name></Placemark>
        </Folder></Document></kml>""".encode()
        root, report = _rewrite(descriptor)
        waypoints = _waypoints(root)

        assert report.used_prototype is False
        assert report.waypoint_count == 3
        assert [wp.findtext(f"{{{KML_NS}}}name") for wp in waypoints] == ["WP 1", "WP 2", "WP 3"]
        assert waypoints[0].findtext(f"{{{KML_NS}}}Point/{{{KML_NS}}}coordinates") == (
            "-122.1000000,37.7000000"
        )

    def test_no_folder_leaves_waypoints_unchanged(self) -> None:
        descriptor = f"""<kml xmlns="{KML_NS}" xmlns:wpml="{WPML_NS}"><Document>
          <wpml:missionConfig><wpml:droneInfo><wpml:droneEnumValue>1</wpml:droneEnumValue>
          </wpml:droneInfo></wpml:missionConfig>
        </Document></kml>""".encode()
        root, report = _rewrite(descriptor)

        assert report.folder_found is False
        assert report.waypoint_count == 0
        assert _texts(root, WPML_NS, "droneEnumValue") == ["77"]
        assert list(root.iter(f"{{{KML_NS}}}Placemark")) == []


# ---------------------------------------------------------------------------
# Staged tree rewrite
# ---------------------------------------------------------------------------


class TestRewriteMission:
    """rewrite_mission on a staged template."""

    def test_descriptor_rewritten_in_place(self, tmp_path: Path) -> None:
        with staged(build_template(), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            root = etree.fromstring(tree.path_of("wpmz/waylines.wpml").read_bytes())

        assert report.descriptor_path == "wpmz/waylines.wpml"
        assert len(_waypoints(root)) == 3

    @pytest.mark.parametrize("path", ["wpmz/mission/waylines.wpml", "waylines.wpml"])
    def test_alternate_descriptor_locations(self, tmp_path: Path, path: str) -> None:
        with staged(build_template(waylines_path=path), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
        assert report.descriptor_path == path
        assert report.waypoint_count == 3

    def test_missing_descriptor(self, tmp_path: Path) -> None:
        package = build_zip([("wpmz/template.kml", b"<kml/>")])
        with staged(package, parent=tmp_path) as tree, pytest.raises(MissionDescriptorMissing):
            rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)

    def test_malformed_descriptor(self, tmp_path: Path) -> None:
        with staged(build_template(waylines=b"<kml><broken"), parent=tmp_path) as tree:
            with pytest.raises(RewriteFailed, match="could not be rewritten"):
                rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            assert tree.path_of("wpmz/waylines.wpml").read_bytes() == b"<kml><broken"

    def test_member_set_unchanged(self, tmp_path: Path) -> None:
        template = build_template()
        with staged(template, parent=tmp_path) as tree:
            rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.BOTH)
            package = repack(tree)
        assert list(read_zip(package)) == list(read_zip(template))


class TestAuxiliaryGeometry:
    """Secondary KML / KMZ synchronisation."""

    def test_template_kml_and_preview_kmz_rewritten(self, tmp_path: Path) -> None:
        with staged(build_template(), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            template_kml = tree.path_of("wpmz/template.kml").read_bytes()
            preview = tree.path_of("wpmz/res/preview.kmz").read_bytes()

        assert [(r.path, r.kind, r.status) for r in report.auxiliary] == [
            ("wpmz/template.kml", "kml", AuxiliaryStatus.REWRITTEN),
            ("wpmz/res/preview.kmz", "kmz", AuxiliaryStatus.REWRITTEN),
        ]
        assert report.auxiliary[1].inner_member == "doc.kml"
        assert extract_polygon(template_kml).as_lon_lat() == RING.as_lon_lat()

        inner = read_zip(preview)
        assert extract_polygon(inner["doc.kml"]).as_lon_lat() == RING.as_lon_lat()
        assert inner["images/icon.png"] == PREVIEW_ICON

    def test_template_kml_keeps_other_content(self, tmp_path: Path) -> None:
        with staged(build_template(), parent=tmp_path) as tree:
            rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            root = etree.fromstring(tree.path_of("wpmz/template.kml").read_bytes())
        assert _texts(root, WPML_NS, "ellipsoidHeight") == ["30"]
        assert _texts(root, WPML_NS, "templateType") == ["mapping2d"]

    def test_malformed_kml_skipped_and_unchanged(self, tmp_path: Path) -> None:
        template = build_template(extra=[("aux.kml", b"<kml><broken")])
        with staged(template, parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            aux = tree.path_of("aux.kml").read_bytes()

        assert aux == b"<kml><broken"
        skipped = report.skipped_auxiliary
        assert [r.path for r in skipped] == ["aux.kml"]
        assert skipped[0].reason
        assert report.waypoint_count == 3

    def test_kml_without_coordinates_skipped(self, tmp_path: Path) -> None:
        empty = f'<kml xmlns="{KML_NS}"><Document><name>x</name></Document></kml>'.encode()
        with staged(build_template(extra=[("notes.kml", empty)]), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            assert tree.path_of("notes.kml").read_bytes() == empty

        [result] = report.skipped_auxiliary
        assert result.path == "notes.kml"
        assert result.reason == "no coordinates element"

    def test_kmz_without_kml_member_skipped(self, tmp_path: Path) -> None:
        images = build_zip([("a.png", b"png")])
        with staged(build_template(extra=[("images.kmz", images)]), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)

        [result] = report.skipped_auxiliary
        assert result.kind == "kmz"
        assert result.reason == "no KML member"

    def test_corrupt_kmz_skipped(self, tmp_path: Path) -> None:
        with staged(build_template(extra=[("bad.kmz", b"not a zip")]), parent=tmp_path) as tree:
            report = rewrite_mission(tree, RING, ALTITUDE_200FT, CameraMode.EO)
            assert tree.path_of("bad.kmz").read_bytes() == b"not a zip"

        assert [r.path for r in report.skipped_auxiliary] == ["bad.kmz"]


class TestRingReplacement:
    """replace_first_ring / rewrite_kmz_bytes."""

    def test_polygon_ring_preferred_over_earlier_coordinates(self) -> None:
        root = parse_xml(
            f"""<kml xmlns="{KML_NS}"><Document>
            <Placemark><LineString><coordinates>1,1 2,2</coordinates></LineString></Placemark>
            <Placemark><Polygon><outerBoundaryIs><LinearRing>
            <coordinates>0,0 1,0 1,1</coordinates>
            </LinearRing></outerBoundaryIs></Polygon></Placemark>
            </Document></kml>""".encode()
        )
        assert replace_first_ring(root, "NEW", KML_NS)
        assert _texts(root, KML_NS, "coordinates") == ["1,1 2,2", "\nNEW\n"]

    def test_falls_back_to_first_coordinates(self) -> None:
        root = parse_xml(
            f'<kml xmlns="{KML_NS}"><Point><coordinates>1,1</coordinates></Point></kml>'.encode()
        )
        assert replace_first_ring(root, "NEW", KML_NS)
        assert _texts(root, KML_NS, "coordinates") == ["\nNEW\n"]

    def test_kmz_prefers_doc_kml(self) -> None:
        other = f'<kml xmlns="{KML_NS}"><LinearRing><coordinates>9,9</coordinates></LinearRing></kml>'
        doc = f'<kml xmlns="{KML_NS}"><LinearRing><coordinates>8,8</coordinates></LinearRing></kml>'
        kmz = build_zip([("a.kml", other.encode()), ("doc.kml", doc.encode())])

        updated, member = rewrite_kmz_bytes(kmz, RING, KML_NS)

        assert member == "doc.kml"
        assert updated is not None
        members = read_zip(updated)
        assert list(members) == ["a.kml", "doc.kml"]
        assert members["a.kml"] == other.encode()
        assert b"-122.1000000,37.7000000,0" in members["doc.kml"]

    def test_kmz_falls_back_to_first_kml_member(self) -> None:
        kml = f'<kml xmlns="{KML_NS}"><LinearRing><coordinates>9,9</coordinates></LinearRing></kml>'
        kmz = build_zip([("readme.txt", b"hi"), ("files/Area.KML", kml.encode())])

        updated, member = rewrite_kmz_bytes(kmz, RING, KML_NS)
        assert member == "files/Area.KML"
        assert updated is not None
