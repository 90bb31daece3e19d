"""Unified pipeline exception taxonomy.

Provides a shared base exception hierarchy for every pipeline stage and
data source. Every domain exception inherits from ``PipelineError`` and
carries structured context fields so the CLI can report which stage
failed and whether re-running is worthwhile.

Taxonomy categories
-------------------
- ``ValidationError``:   invalid parameters or configuration, never retryable.
- ``TransientError``:    temporary failures (network, throttle), retryable.
- ``PermanentError``:    unrecoverable resource failures, not retryable.
- ``ContractError``:     an existing artifact does not match its schema.

Per-record data anomalies (bad numbers, stale dates, malformed lines) are
never raised: they are counted and reported at the end of a run.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging.
"""

from __future__ import annotations

from typing import ClassVar


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"read_records"``, ``"process_boundaries"``).
        code: Machine-readable error code (e.g. ``"RECORD_SOURCE_UNREADABLE"``).
        retryable: Whether re-running the stage may succeed.
        correlation_id: Run identifier, if the caller assigned one.

    Subclasses set ``default_stage``, ``default_code`` and
    ``default_retryable``; each can still be overridden per instance.
    """

    default_stage: ClassVar[str] = ""
    default_code: ClassVar[str] = ""
    default_retryable: ClassVar[bool] = False
    #: Fixed category of a taxonomy branch; ``None`` derives it from ``retryable``.
    category_name: ClassVar[str | None] = None

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool | None = None,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        if self.category_name is not None:
            return self.category_name
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Invalid parameter or configuration value."""

    category_name = "validation"


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    default_retryable = True
    category_name = "transient"


class PermanentError(PipelineError):
    """Unrecoverable resource failure."""

    category_name = "permanent"


class ContractError(PipelineError):
    """An existing artifact does not match the expected schema."""

    category_name = "contract"


# ---------------------------------------------------------------------------
# Shared concrete errors
# ---------------------------------------------------------------------------


class StageInputError(PermanentError):
    """Raised when a stage's required input artifact is missing or unreadable."""

    default_code = "STAGE_INPUT_MISSING"
