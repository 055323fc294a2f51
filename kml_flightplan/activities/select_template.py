"""Template selection activity: (camera mode, altitude) to template id.

The template id is the bucket directory joined with the camera-specific
file name from the fixed 2 x 3 table in ``core.constants``.  Selection
is total: every camera mode and every altitude maps to exactly one of
six template identities.
"""

from __future__ import annotations

import logging

from kml_flightplan.core.constants import (
    METERS_PER_FOOT,
    TEMPLATE_BUCKET_DIRS,
    TEMPLATE_CAMERA_FILES,
)
from kml_flightplan.models.mission import AltitudeBucket, CameraMode

logger = logging.getLogger("kml_flightplan.activities.select_template")


def altitude_bucket(altitude_m: float) -> AltitudeBucket:
    """Classify an altitude in metres into its template bucket (LOW below 300 ft)."""
    return AltitudeBucket.from_feet(altitude_m / METERS_PER_FOOT)


def template_id_for(camera_mode: CameraMode, bucket: AltitudeBucket) -> str:
    """Return the template id of a (bucket, camera) pair."""
    return f"{TEMPLATE_BUCKET_DIRS[bucket.value]}/{TEMPLATE_CAMERA_FILES[camera_mode.value]}"


def select_template(camera_mode: CameraMode, altitude_m: float) -> str:
    """Select the template package for a camera mode and altitude in metres."""
    bucket = altitude_bucket(altitude_m)
    template_id = template_id_for(camera_mode, bucket)
    logger.debug(
        "Template selected | camera=%s | bucket=%s | template=%s",
        camera_mode.value,
        bucket.value,
        template_id,
    )
    return template_id


def template_table() -> list[str]:
    """List all six template ids (bucket-major, camera-minor)."""
    return [template_id_for(camera, bucket) for bucket in AltitudeBucket for camera in CameraMode]
