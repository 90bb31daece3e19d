"""Apply ring simplification and quantization across GeoJSON geometries.

Only ``Polygon`` and ``MultiPolygon`` geometries are rewritten; any other
geometry type passes through unmodified so new geometry kinds in the
source data never break the build.  Inputs are never mutated: new
feature/geometry dicts are returned with every non-geometry key copied
across as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from school_finder.simplify._quantize import _quantize
from school_finder.simplify._ring import _simplify_ring
from school_finder.simplify._validation import validate_precision, validate_tolerance

if TYPE_CHECKING:
    from collections.abc import Sequence

POLYGON = "Polygon"
MULTI_POLYGON = "MultiPolygon"


def simplify_feature_collection(
    collection: dict[str, Any],
    *,
    tolerance: float,
    precision: int,
) -> dict[str, Any]:
    """Simplify every feature of a GeoJSON FeatureCollection.

    Raises:
        SimplifyParameterError: If *tolerance* or *precision* is invalid.
    """
    validate_tolerance(tolerance)
    validate_precision(precision)
    factor = 10**precision
    features = collection.get("features", [])
    return {
        **collection,
        "features": [_simplify_feature(f, tolerance, factor) for f in features],
    }


def simplify_feature(
    feature: dict[str, Any],
    *,
    tolerance: float,
    precision: int,
) -> dict[str, Any]:
    """Return a copy of *feature* with its geometry simplified then quantized.

    Raises:
        SimplifyParameterError: If *tolerance* or *precision* is invalid.
    """
    validate_tolerance(tolerance)
    validate_precision(precision)
    return _simplify_feature(feature, tolerance, 10**precision)


def simplify_geometry(
    geometry: dict[str, Any] | None,
    *,
    tolerance: float,
    precision: int,
) -> dict[str, Any] | None:
    """Return a simplified copy of a Polygon/MultiPolygon geometry.

    Simplification runs at full precision before quantization.  Unknown
    geometry types (and ``None``) are returned as-is.

    Raises:
        SimplifyParameterError: If *tolerance* or *precision* is invalid.
    """
    validate_tolerance(tolerance)
    validate_precision(precision)
    return _simplify_geometry(geometry, tolerance, 10**precision)


def count_vertices(geometry: dict[str, Any] | None) -> int:
    """Total number of stored points across all rings of a geometry."""
    if not geometry:
        return 0
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if geom_type == POLYGON:
        return sum(len(ring) for ring in coords)
    if geom_type == MULTI_POLYGON:
        return sum(len(ring) for polygon in coords for ring in polygon)
    return 0


# ---------------------------------------------------------------------------
# Internal helpers (parameters already validated)
# ---------------------------------------------------------------------------


def _simplify_feature(feature: dict[str, Any], tolerance: float, factor: int) -> dict[str, Any]:
    geometry = feature.get("geometry")
    simplified = _simplify_geometry(geometry, tolerance, factor)
    if simplified is geometry:
        return feature
    return {**feature, "geometry": simplified}


def _simplify_geometry(
    geometry: dict[str, Any] | None, tolerance: float, factor: int
) -> dict[str, Any] | None:
    if not geometry:
        return geometry

    geom_type = geometry.get("type")
    coords = geometry.get("coordinates", [])

    if geom_type == POLYGON:
        return {**geometry, "coordinates": _simplify_polygon(coords, tolerance, factor)}
    if geom_type == MULTI_POLYGON:
        return {
            **geometry,
            "coordinates": [_simplify_polygon(p, tolerance, factor) for p in coords],
        }
    return geometry


def _simplify_polygon(
    polygon: Sequence[Sequence[Sequence[float]]], tolerance: float, factor: int
) -> list[list[list[float]]]:
    return [_simplify_and_round_ring(ring, tolerance, factor) for ring in polygon]


def _simplify_and_round_ring(
    ring: Sequence[Sequence[float]], tolerance: float, factor: int
) -> list[list[float]]:
    kept = _simplify_ring(ring, tolerance)
    return [[_quantize(pt[0], factor), _quantize(pt[1], factor)] for pt in kept]
