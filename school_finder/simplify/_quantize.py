"""Coordinate quantization to a fixed number of decimal places.

Rounding is half away from zero (``0.00005 -> 0.0001`` and
``-0.00005 -> -0.0001`` at 4 dp), unlike the built-in ``round`` which
rounds half to even.  NaN and infinities pass through untouched, as do
values already too coarse to carry *precision* decimal places.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from school_finder.simplify._validation import validate_precision

if TYPE_CHECKING:
    from collections.abc import Sequence

#: Scaled magnitudes at or above 2**52 have no fractional bits left to round.
EXACT_INTEGER_LIMIT = 2.0**52


def quantize_value(value: float, precision: int) -> float:
    """Round *value* to *precision* decimal places, half away from zero.

    Raises:
        SimplifyParameterError: If *precision* is negative.
    """
    validate_precision(precision)
    return _quantize(value, 10**precision)


def quantize_point(point: Sequence[float], precision: int) -> tuple[float, float]:
    """Round both coordinates of a ``(lon, lat)`` point.

    Any third (altitude) element is dropped.

    Raises:
        SimplifyParameterError: If *precision* is negative.
    """
    validate_precision(precision)
    factor = 10**precision
    return (_quantize(point[0], factor), _quantize(point[1], factor))


def _quantize(value: float, factor: int) -> float:
    if not math.isfinite(value):
        return value
    try:
        scale = float(factor)
    except OverflowError:
        # finer than any float can resolve
        return value
    scaled = abs(value) * scale
    if not math.isfinite(scaled) or scaled >= EXACT_INTEGER_LIMIT:
        return value
    return math.copysign(math.floor(scaled + 0.5) / scale, value)
