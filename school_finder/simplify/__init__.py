"""Polygon simplification engine.

Reduces district boundary size while keeping the shape recognisable:

- **_distance**: perpendicular distance from a point to a chord's line
- **_ring**: Douglas-Peucker point selection on a single ring
- **_quantize**: round-half-away-from-zero coordinate quantization
- **_walker**: applies both across Polygon / MultiPolygon features
- **_validation**: tolerance / precision checks at the call boundary

Simplified polygons are not checked or repaired for self-intersection.
"""

from __future__ import annotations

from school_finder.simplify._distance import perpendicular_distance
from school_finder.simplify._quantize import quantize_point, quantize_value
from school_finder.simplify._ring import MIN_SIMPLIFIABLE_POINTS, simplify_ring
from school_finder.simplify._validation import (
    SimplifyParameterError,
    validate_precision,
    validate_tolerance,
)
from school_finder.simplify._walker import (
    MULTI_POLYGON,
    POLYGON,
    count_vertices,
    simplify_feature,
    simplify_feature_collection,
    simplify_geometry,
)

__all__ = [
    "MIN_SIMPLIFIABLE_POINTS",
    "MULTI_POLYGON",
    "POLYGON",
    "SimplifyParameterError",
    "count_vertices",
    "perpendicular_distance",
    "quantize_point",
    "quantize_value",
    "simplify_feature",
    "simplify_feature_collection",
    "simplify_geometry",
    "simplify_ring",
    "validate_precision",
    "validate_tolerance",
]
