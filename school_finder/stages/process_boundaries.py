"""Boundaries stage: download and simplify postcode district polygons.

Fetches every postcode area file, merges their district features into
one FeatureCollection with properties normalised to ``{"district": ...}``,
simplifies each ring with Douglas-Peucker (0.0005° ≈ 50 m by default) and
rounds coordinates to 4 decimal places (≈ 11 m), then writes the result
to ``postcode-districts.json``.

Engineering notes:
- One failing area is logged and skipped; the rest of the build goes on.
- Simplified polygons are checked with shapely and invalid ones are
  counted in the report.  They are not repaired.
- The output file is written atomically.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from school_finder.models.reports import BoundaryReport
from school_finder.simplify import (
    MULTI_POLYGON,
    POLYGON,
    count_vertices,
    simplify_feature_collection,
    validate_precision,
    validate_tolerance,
)
from school_finder.sources.postcode_polygons import BoundarySourceError, PostcodePolygonSource
from school_finder.utils.helpers import write_text_atomic

if TYPE_CHECKING:
    from collections.abc import Iterable

    from school_finder.core.config import PipelineConfig
    from school_finder.models.contracts import FeatureCollectionDict, FeatureDict

logger = logging.getLogger("school_finder.stages.process_boundaries")

UNKNOWN_DISTRICT = "Unknown"
PROGRESS_EVERY_AREAS = 20


def process_boundaries(
    config: PipelineConfig,
    *,
    source: PostcodePolygonSource | None = None,
) -> BoundaryReport:
    """Run the boundaries stage using settings and paths from *config*.

    Args:
        config: Pipeline configuration.
        source: Optional boundary source (one is created from *config*
            and closed afterwards when omitted).

    Raises:
        SimplifyParameterError: If the configured tolerance/precision is invalid.
        BoundarySourceError: If the area listing cannot be fetched.
    """
    validate_tolerance(config.simplify_tolerance_deg)
    validate_precision(config.boundary_precision)

    owns_source = source is None
    src = source or PostcodePolygonSource(timeout_s=config.http_timeout_s)
    try:
        areas = src.list_areas()
        features, failed = fetch_district_features(src, areas)
    finally:
        if owns_source:
            src.close()

    report = build_boundaries(
        features,
        output_path=config.boundaries_path,
        tolerance=config.simplify_tolerance_deg,
        precision=config.boundary_precision,
    )
    return BoundaryReport(
        areas_listed=len(areas),
        areas_fetched=len(areas) - len(failed),
        areas_failed=failed,
        districts=report.districts,
        vertices_before=report.vertices_before,
        vertices_after=report.vertices_after,
        invalid_after=report.invalid_after,
        output_bytes=report.output_bytes,
        output_path=report.output_path,
    )


def fetch_district_features(
    source: PostcodePolygonSource,
    areas: list[str],
) -> tuple[list[FeatureDict], list[str]]:
    """Fetch every area and return (normalised features, failed area codes)."""
    features: list[FeatureDict] = []
    failed: list[str] = []

    for fetched, area in enumerate(areas, start=1):
        try:
            collection = source.fetch_area(area)
        except BoundarySourceError as exc:
            logger.warning("Skipping postcode area | area=%s | error=%s", area, exc)
            failed.append(area)
            continue

        features.extend(normalise_feature(f) for f in collection["features"])

        if fetched % PROGRESS_EVERY_AREAS == 0:
            logger.info(
                "Fetch progress | areas=%d/%d | districts=%d",
                fetched,
                len(areas),
                len(features),
            )

    logger.info(
        "Areas fetched | ok=%d | failed=%d | districts=%d",
        len(areas) - len(failed),
        len(failed),
        len(features),
    )
    return features, failed


def normalise_feature(feature: dict[str, Any]) -> FeatureDict:
    """Replace a feature's properties with ``{"district": <name>}``."""
    return {
        "type": "Feature",
        "properties": {"district": extract_district_name(feature)},
        "geometry": feature.get("geometry"),
    }


def extract_district_name(feature: dict[str, Any]) -> str:
    """District code from ``properties.name``, then ``properties.district``."""
    props = feature.get("properties") or {}
    return str(props.get("name") or props.get("district") or UNKNOWN_DISTRICT)


def build_boundaries(
    features: Iterable[FeatureDict],
    *,
    output_path: Any,
    tolerance: float,
    precision: int,
) -> BoundaryReport:
    """Simplify *features*, write them to *output_path*, and report sizes.

    Raises:
        SimplifyParameterError: If *tolerance* or *precision* is invalid.
    """
    collection: FeatureCollectionDict = {"type": "FeatureCollection", "features": list(features)}
    vertices_before = sum(count_vertices(f.get("geometry")) for f in collection["features"])

    logger.info(
        "Simplifying geometry | districts=%d | tolerance=%s | precision=%d",
        len(collection["features"]),
        tolerance,
        precision,
    )
    simplified = simplify_feature_collection(
        collection,  # type: ignore[arg-type]
        tolerance=tolerance,
        precision=precision,
    )
    simplified_features = simplified["features"]
    vertices_after = sum(count_vertices(f.get("geometry")) for f in simplified_features)
    invalid_after = sum(1 for f in simplified_features if not is_valid_polygonal(f.get("geometry")))

    if invalid_after:
        logger.warning(
            "Simplified geometry not valid for %d district(s); written unrepaired",
            invalid_after,
        )

    output_bytes = write_text_atomic(output_path, json.dumps(simplified, separators=(",", ":")))
    logger.info(
        "Boundaries written | path=%s | size=%.2f MB | vertices=%d -> %d",
        output_path,
        output_bytes / 1024 / 1024,
        vertices_before,
        vertices_after,
    )

    return BoundaryReport(
        districts=len(simplified_features),
        vertices_before=vertices_before,
        vertices_after=vertices_after,
        invalid_after=invalid_after,
        output_bytes=output_bytes,
        output_path=str(output_path),
    )


def is_valid_polygonal(geometry: dict[str, Any] | None) -> bool:
    """Whether a Polygon/MultiPolygon is valid per shapely.

    Rings too short to form a polygon count as invalid.  Other geometry
    types are not judged and count as valid.
    """
    if not geometry or geometry.get("type") not in (POLYGON, MULTI_POLYGON):
        return True

    from shapely.errors import ShapelyError
    from shapely.geometry import shape

    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError) as exc:
        logger.debug("Cannot build polygon from simplified rings: %s", exc)
        return False
    return bool(geom.is_valid)
