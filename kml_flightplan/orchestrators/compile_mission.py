"""Mission compiler: KML in, flight-plan package out.

Sequence:
1. Validate mission parameters, convert feet to metres
2. Extract the polygon (fails before anything touches the filesystem)
3. Select and load the template package
4. Stage it in a uniquely named directory
5. Rewrite the staged tree
6. Repack into a partial file next to the destination
7. Check the package is non-empty, then atomically promote it

The staging directory and any partial file are removed on every exit
path.  A failed compile never leaves a package at the destination.
Concurrent compiles are safe: every compile gets its own ``uuid4``
compile id, which tags both its staging directory and its partial file.
"""

from __future__ import annotations

import logging
import math
import os
import time
import uuid
from pathlib import Path

from kml_flightplan.activities.extract_geometry import extract_polygon
from kml_flightplan.activities.rewrite_mission import rewrite_mission
from kml_flightplan.activities.select_template import altitude_bucket, select_template
from kml_flightplan.core.config import CompilerConfig
from kml_flightplan.core.constants import METERS_PER_FOOT, PACKAGE_EXTENSION
from kml_flightplan.core.exceptions import FlightPlanError, PermanentError, ValidationError
from kml_flightplan.core.package import repack, staged
from kml_flightplan.core.templates import DirectoryTemplateStore, TemplateStore
from kml_flightplan.models.mission import CameraMode
from kml_flightplan.models.reports import CompileResult

logger = logging.getLogger("kml_flightplan.orchestrators.compile_mission")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InvalidMissionParameters(ValidationError):
    """Raised when the mission name or altitude cannot be compiled."""

    default_stage = "compile_mission"
    default_code = "INVALID_PARAMETERS"


class EmptyPackageError(PermanentError):
    """Raised when repacking produced an empty package."""

    default_stage = "compile_mission"
    default_code = "EMPTY_PACKAGE"


class CompileFailed(PermanentError):
    """Raised for unexpected failures outside the domain taxonomy."""

    default_stage = "compile_mission"
    default_code = "COMPILE_FAILED"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def feet_to_meters(altitude_ft: float) -> float:
    """Convert feet to metres."""
    return altitude_ft * METERS_PER_FOOT


def validate_parameters(mission_name: str, altitude_ft: float) -> None:
    """Check the mission name is a plain file stem and the altitude is positive.

    Raises:
        InvalidMissionParameters: On an unusable name or altitude.
    """
    name = mission_name.strip()
    if not name or name in {".", ".."} or "/" in name or "\\" in name or "\x00" in name:
        msg = f"Mission name {mission_name!r} cannot be used as a file name."
        raise InvalidMissionParameters(msg)
    if not math.isfinite(altitude_ft) or altitude_ft <= 0:
        msg = f"Altitude must be a positive number of feet, got {altitude_ft!r}."
        raise InvalidMissionParameters(msg)


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class MissionCompiler:
    """Compiles KML polygons into flight-plan packages.

    Example usage::

        compiler = MissionCompiler(CompilerConfig.from_env())
        path = compiler.compile(kml_bytes, "survey_01", 200.0, CameraMode.EO)
    """

    def __init__(
        self,
        config: CompilerConfig | None = None,
        store: TemplateStore | None = None,
    ) -> None:
        self._config = config or CompilerConfig()
        self._store = store or DirectoryTemplateStore(self._config.template_dir)

    @property
    def config(self) -> CompilerConfig:
        """Return the compiler configuration (read-only)."""
        return self._config

    def compile(
        self,
        kml_bytes: bytes,
        mission_name: str,
        altitude_ft: float,
        camera_mode: CameraMode | str,
    ) -> Path:
        """Compile a mission and return the path of the promoted package."""
        result = self.compile_with_report(kml_bytes, mission_name, altitude_ft, camera_mode)
        return Path(result.package_path)

    def compile_with_report(
        self,
        kml_bytes: bytes,
        mission_name: str,
        altitude_ft: float,
        camera_mode: CameraMode | str,
    ) -> CompileResult:
        """Compile a mission and return the full ``CompileResult``.

        Raises:
            FlightPlanError: A taxonomy error tagged with this compile's id.
        """
        compile_id = uuid.uuid4().hex
        start = time.monotonic()
        logger.info(
            "compile started | mission=%s | altitude_ft=%s | camera=%s | compile_id=%s",
            mission_name,
            altitude_ft,
            camera_mode,
            compile_id,
        )
        try:
            result = self._compile(compile_id, kml_bytes, mission_name, altitude_ft, camera_mode)
        except FlightPlanError as exc:
            exc.compile_id = compile_id
            logger.error(
                "compile failed | code=%s | stage=%s | error=%s | compile_id=%s",
                exc.code,
                exc.stage,
                exc.message,
                compile_id,
            )
            raise
        except Exception as exc:
            logger.exception("compile failed unexpectedly | compile_id=%s", compile_id)
            msg = f"Mission compile failed unexpectedly: {exc}"
            raise CompileFailed(msg, compile_id=compile_id) from exc

        logger.info(
            "compile completed | package=%s | size=%d | waypoints=%d | duration=%.3fs | "
            "compile_id=%s",
            result.package_path,
            result.size_bytes,
            result.rewrite.waypoint_count,
            time.monotonic() - start,
            compile_id,
        )
        return result

    def _compile(
        self,
        compile_id: str,
        kml_bytes: bytes,
        mission_name: str,
        altitude_ft: float,
        camera_mode: CameraMode | str,
    ) -> CompileResult:
        try:
            mode = CameraMode.parse(camera_mode)
        except ValueError as exc:
            raise InvalidMissionParameters(str(exc)) from exc
        validate_parameters(mission_name, altitude_ft)
        mission_name = mission_name.strip()

        altitude_m = feet_to_meters(altitude_ft)
        ring = extract_polygon(kml_bytes)

        template_id = select_template(mode, altitude_m)
        template_bytes = self._store.load(template_id)

        output_dir = Path(self._config.output_dir)
        destination = output_dir / f"{mission_name}{PACKAGE_EXTENSION}"
        partial = output_dir / f".{mission_name}.{compile_id}{PACKAGE_EXTENSION}.partial"
        staging_parent = Path(self._config.staging_dir) if self._config.staging_dir else None

        try:
            with staged(
                template_bytes, parent=staging_parent, prefix=f"flightplan_{compile_id}_"
            ) as tree:
                report = rewrite_mission(
                    tree,
                    ring,
                    altitude_m,
                    mode,
                    settings=self._config.rewrite_settings(),
                )
                package = repack(tree)

            if not package:
                msg = "The compiled flight-plan package is empty."
                raise EmptyPackageError(msg)

            output_dir.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(package)
            if partial.stat().st_size == 0:
                msg = "The compiled flight-plan package is empty."
                raise EmptyPackageError(msg)
            os.replace(partial, destination)
        finally:
            partial.unlink(missing_ok=True)

        return CompileResult(
            compile_id=compile_id,
            mission_name=mission_name,
            package_path=str(destination.resolve()),
            size_bytes=len(package),
            template_id=template_id,
            altitude_bucket=altitude_bucket(altitude_m).value,
            altitude_m=altitude_m,
            camera_mode=mode.value,
            vertex_count=len(ring),
            rewrite=report,
        )


def compile_mission(
    kml_bytes: bytes,
    mission_name: str,
    altitude_ft: float,
    camera_mode: CameraMode | str,
    *,
    config: CompilerConfig | None = None,
    store: TemplateStore | None = None,
) -> Path:
    """Compile a mission with a one-off ``MissionCompiler``; return the package path."""
    return MissionCompiler(config, store).compile(kml_bytes, mission_name, altitude_ft, camera_mode)
