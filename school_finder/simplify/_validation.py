"""Parameter validation for the simplification engine."""

from __future__ import annotations

import math

from school_finder.core.exceptions import ValidationError


class SimplifyParameterError(ValidationError):
    """Raised when a tolerance or precision is outside its valid range."""

    default_stage = "simplify"
    default_code = "SIMPLIFY_PARAMETER_INVALID"


def validate_tolerance(tolerance: float) -> None:
    """Reject negative, NaN or infinite tolerances.

    Raises:
        SimplifyParameterError: If *tolerance* is not a finite number >= 0.
    """
    if isinstance(tolerance, bool) or not isinstance(tolerance, int | float):
        msg = f"Tolerance must be a number, got {type(tolerance).__name__}"
        raise SimplifyParameterError(msg)
    if not math.isfinite(tolerance) or tolerance < 0:
        msg = f"Tolerance must be a finite number >= 0, got {tolerance!r}"
        raise SimplifyParameterError(msg)


def validate_precision(precision: int) -> None:
    """Reject negative or non-integer decimal precisions.

    Raises:
        SimplifyParameterError: If *precision* is not an int >= 0.
    """
    if isinstance(precision, bool) or not isinstance(precision, int):
        msg = f"Precision must be an integer, got {type(precision).__name__}"
        raise SimplifyParameterError(msg)
    if precision < 0:
        msg = f"Precision must be >= 0 decimal places, got {precision}"
        raise SimplifyParameterError(msg)
