"""Command-line entry point: compile a KML polygon into a flight-plan package."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from kml_flightplan.activities.extract_geometry import build_polygon_kml, extract_polygon
from kml_flightplan.core.config import CompilerConfig
from kml_flightplan.core.exceptions import FlightPlanError
from kml_flightplan.core.templates import DirectoryTemplateStore
from kml_flightplan.models.mission import CameraMode
from kml_flightplan.orchestrators.compile_mission import MissionCompiler

logger = logging.getLogger("kml_flightplan.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kml-flightplan",
        description="Compile a KML polygon into a waypoint flight-plan package.",
    )
    parser.add_argument("kml", type=Path, help="Input KML file holding one polygon")
    parser.add_argument(
        "--name",
        "-n",
        required=True,
        help="Mission name (the package is written as <name>.kmz)",
    )
    parser.add_argument(
        "--altitude-ft",
        type=float,
        default=200.0,
        help="Flight altitude in feet (default: 200)",
    )
    parser.add_argument(
        "--camera",
        choices=[m.value.lower() for m in CameraMode],
        default="eo",
        help="Camera mode (default: eo)",
    )
    parser.add_argument(
        "--templates",
        type=Path,
        default=None,
        help="Template directory (default: $FLIGHTPLAN_TEMPLATE_DIR or ./assets)",
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=None,
        help="Output directory (default: $FLIGHTPLAN_OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--export-kml",
        type=Path,
        default=None,
        help="Also write the extracted polygon as a minimal KML file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the compile result (or error) as JSON",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = CompilerConfig.from_env()
        if args.output_dir is not None:
            config = replace(config, output_dir=str(args.output_dir))
        if args.templates is not None:
            config = replace(config, template_dir=str(args.templates))

        try:
            kml_bytes = args.kml.read_bytes()
        except OSError as exc:
            print(f"error: cannot read {args.kml}: {exc.strerror}", file=sys.stderr)
            return 2

        compiler = MissionCompiler(config, DirectoryTemplateStore(config.template_dir))
        result = compiler.compile_with_report(kml_bytes, args.name, args.altitude_ft, args.camera)

        if args.export_kml is not None:
            ring = extract_polygon(kml_bytes)
            args.export_kml.write_bytes(build_polygon_kml(ring, args.name))
            logger.info("Exported polygon KML | path=%s", args.export_kml)
    except FlightPlanError as exc:
        if args.json:
            print(json.dumps(exc.to_error_dict()), file=sys.stderr)
        else:
            print(f"error: {exc.message}", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(result.package_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
