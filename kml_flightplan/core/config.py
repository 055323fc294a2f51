"""Compiler configuration loaded from environment variables.

All configuration values have sensible defaults so the compiler runs
out of the box against an ``assets/`` template directory.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if a value is out of
    its valid range.  This catches bad configuration at startup rather
    than halfway through a compile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from kml_flightplan.core.constants import (
    DRONE_ENUM_VALUE,
    PAYLOAD_ENUM_VALUE,
    WPML_NAMESPACE,
)
from kml_flightplan.core.exceptions import PermanentError
from kml_flightplan.models.mission import RewriteSettings


class ConfigValidationError(PermanentError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    """Immutable compiler configuration.

    Attributes:
        template_dir: Root of the template store (holds ``templates/200ft/...``).
        output_dir: Directory compiled packages are promoted into.
        staging_dir: Parent directory for per-compile staging trees
            (empty string means the system temp directory).
        mission_namespace: Namespace URI of the waylines descriptor.
        drone_enum_value: Aircraft identifier written into the descriptor.
        payload_enum_value: Payload identifier written into the descriptor.
    """

    template_dir: str = "assets"
    output_dir: str = "output"
    staging_dir: str = ""
    mission_namespace: str = WPML_NAMESPACE
    drone_enum_value: str = DRONE_ENUM_VALUE
    payload_enum_value: str = PAYLOAD_ENUM_VALUE

    @classmethod
    def from_env(cls) -> CompilerConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is empty or out of range.
        """
        config = cls(
            template_dir=os.getenv("FLIGHTPLAN_TEMPLATE_DIR", "assets"),
            output_dir=os.getenv("FLIGHTPLAN_OUTPUT_DIR", "output"),
            staging_dir=os.getenv("FLIGHTPLAN_STAGING_DIR", ""),
            mission_namespace=os.getenv("FLIGHTPLAN_MISSION_NAMESPACE", WPML_NAMESPACE),
            drone_enum_value=os.getenv("FLIGHTPLAN_DRONE_ENUM", DRONE_ENUM_VALUE),
            payload_enum_value=os.getenv("FLIGHTPLAN_PAYLOAD_ENUM", PAYLOAD_ENUM_VALUE),
        )
        _validate(config)
        return config

    def rewrite_settings(self) -> RewriteSettings:
        """Return the descriptor rewrite settings derived from this config."""
        return RewriteSettings(
            mission_namespace=self.mission_namespace,
            drone_enum_value=self.drone_enum_value,
            payload_enum_value=self.payload_enum_value,
        )


def _validate(config: CompilerConfig) -> None:
    """Validate configuration values.  Raises ``ConfigValidationError``."""
    if not config.template_dir:
        raise ConfigValidationError(
            "FLIGHTPLAN_TEMPLATE_DIR",
            config.template_dir,
            "must not be empty",
        )

    if not config.output_dir:
        raise ConfigValidationError(
            "FLIGHTPLAN_OUTPUT_DIR",
            config.output_dir,
            "must not be empty",
        )

    if not config.mission_namespace:
        raise ConfigValidationError(
            "FLIGHTPLAN_MISSION_NAMESPACE",
            config.mission_namespace,
            "must not be empty",
        )

    for key, value in (
        ("FLIGHTPLAN_DRONE_ENUM", config.drone_enum_value),
        ("FLIGHTPLAN_PAYLOAD_ENUM", config.payload_enum_value),
    ):
        if not value.isdigit():
            raise ConfigValidationError(key, value, "must be a non-negative integer")
