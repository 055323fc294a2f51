"""Unified compile exception taxonomy.

Provides a shared base exception hierarchy for every compile stage.
Every domain exception inherits from ``FlightPlanError`` and carries
structured context fields so callers can display a message, decide
whether the failure came from user input or from a bad template asset,
and log a stable payload.

Taxonomy categories
-------------------
- ``ValidationError``: user input (KML, mission parameters) rejected, never retryable.
- ``PermanentError``: template, packaging or environment failure, not retryable.

Auxiliary geometry failures have no exception class: they are recorded
as per-file report entries and never raised.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and CLI output.
"""

from __future__ import annotations


class FlightPlanError(Exception):
    """Base exception for all compile-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Compile stage where the error occurred
            (e.g. ``"extract_geometry"``, ``"rewrite_mission"``).
        code: Machine-readable error code (e.g. ``"NO_GEOMETRY_FOUND"``).
        retryable: Whether retrying the same call could succeed. Reported
            in the payload only; it does not change the category.
        compile_id: Identifier of the compile that raised the error.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        compile_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.compile_id = compile_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        return "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "compile_id": self.compile_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(FlightPlanError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(FlightPlanError):
    """Unrecoverable template, packaging or environment failure."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
