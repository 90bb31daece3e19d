"""Commute-times stage: estimated commute to central London per district.

Reads the simplified district boundaries, takes a rough centroid of each
district (the mean of its first outer ring's vertices), and turns the
great-circle distance to central London into a commute estimate:

- under 30 km: underground/overground at 30 km/h
- beyond: a rail/road mix whose rail share grows with distance
  (capped at 80 %), at 80 km/h rail and 40 km/h road

Every estimate includes a fixed 20 minutes for getting to the station
and waiting.  Results are upserted as ``commuteMinutes`` into
``district-metrics.json``.
"""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Any

from school_finder.core.constants import COMMUTE_MINUTES_KEY
from school_finder.core.exceptions import StageInputError
from school_finder.models.metrics import load_metrics, merge_metric, write_metrics
from school_finder.models.reports import CommuteReport
from school_finder.simplify import MULTI_POLYGON, POLYGON

if TYPE_CHECKING:
    from pathlib import Path

    from school_finder.core.config import PipelineConfig

logger = logging.getLogger("school_finder.stages.process_commute_times")

LONDON_LAT = 51.5074
LONDON_LNG = -0.1278
EARTH_RADIUS_KM = 6371.0

RAIL_SPEED_KMH = 80.0
ROAD_SPEED_KMH = 40.0
FIXED_OVERHEAD_MIN = 20.0
INNER_LONDON_RADIUS_KM = 30.0
INNER_LONDON_SPEED_KMH = 30.0
MAX_RAIL_FRACTION = 0.8
RAIL_FRACTION_SCALE_KM = 200.0

STAGE = "process_commute_times"


def process_commute_times(config: PipelineConfig) -> CommuteReport:
    """Run the commute-times stage using paths from *config*."""
    return estimate_district_commutes(config.boundaries_path, config.metrics_path)


def estimate_district_commutes(boundaries_path: Path, metrics_path: Path) -> CommuteReport:
    """Upsert a commute estimate for every district in *boundaries_path*.

    Districts without a name or without a usable outer ring are skipped.

    Raises:
        StageInputError: If the boundaries file is missing or not JSON.
        MetricsFileError: If the existing metrics file is malformed.
    """
    collection = _load_boundaries(boundaries_path)
    features = collection.get("features") or []
    metrics = load_metrics(metrics_path)

    logger.info("Estimating commute times | districts=%d", len(features))
    estimates: dict[str, int] = {}
    skipped = 0
    for feature in features:
        district = (feature.get("properties") or {}).get("district")
        centroid = ring_centroid(feature.get("geometry"))
        if not district or centroid is None:
            skipped += 1
            continue

        lng, lat = centroid
        distance_km = haversine_km(lat, lng, LONDON_LAT, LONDON_LNG)
        estimates[str(district)] = estimate_commute_minutes(distance_km)

    merge_metric(metrics, estimates, COMMUTE_MINUTES_KEY)
    write_metrics(metrics_path, metrics)
    logger.info("Commute times estimated | processed=%d | skipped=%d", len(estimates), skipped)

    all_minutes = [m.commute_minutes for m in metrics.values() if m.commute_minutes is not None]
    report = CommuteReport(
        processed=len(estimates),
        skipped=skipped,
        min_minutes=min(all_minutes) if all_minutes else None,
        max_minutes=max(all_minutes) if all_minutes else None,
        mean_minutes=_round_half_up(sum(all_minutes) / len(all_minutes)) if all_minutes else None,
        output_path=str(metrics_path),
    )
    if all_minutes:
        logger.info(
            "Commute statistics | min=%d min | max=%d min | mean=%d min",
            report.min_minutes,
            report.max_minutes,
            report.mean_minutes,
        )
    return report


def ring_centroid(geometry: dict[str, Any] | None) -> tuple[float, float] | None:
    """Mean ``(lng, lat)`` of the first outer ring's vertices.

    Polygon uses its first ring, MultiPolygon the first ring of its first
    polygon.  Returns ``None`` for other types and empty rings.
    """
    if not geometry:
        return None

    coords = geometry.get("coordinates") or []
    gtype = geometry.get("type")
    if gtype == POLYGON:
        ring = coords[0] if coords else []
    elif gtype == MULTI_POLYGON:
        ring = coords[0][0] if coords and coords[0] else []
    else:
        return None

    if not ring:
        return None
    return (
        sum(p[0] for p in ring) / len(ring),
        sum(p[1] for p in ring) / len(ring),
    )


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two WGS 84 points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_commute_minutes(distance_km: float) -> int:
    """Estimated door-to-desk minutes for a district *distance_km* from London."""
    if distance_km < INNER_LONDON_RADIUS_KM:
        travel = distance_km / INNER_LONDON_SPEED_KMH * 60
        return _round_half_up(FIXED_OVERHEAD_MIN + travel)

    rail_fraction = min(MAX_RAIL_FRACTION, distance_km / RAIL_FRACTION_SCALE_KM)
    speed = rail_fraction * RAIL_SPEED_KMH + (1 - rail_fraction) * ROAD_SPEED_KMH
    return _round_half_up(FIXED_OVERHEAD_MIN + distance_km / speed * 60)


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; estimates round .5 up
    return math.floor(value + 0.5)


def _load_boundaries(path: Path) -> dict[str, Any]:
    if not path.exists():
        msg = f"Boundaries file not found: {path} (run the boundaries stage first)"
        raise StageInputError(msg, stage=STAGE)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read boundaries file {path}: {exc}"
        raise StageInputError(msg, stage=STAGE) from exc
    if not isinstance(payload, dict):
        msg = f"Boundaries file {path} is not a GeoJSON FeatureCollection"
        raise StageInputError(msg, stage=STAGE)
    return payload
