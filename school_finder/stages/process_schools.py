"""Schools stage: open primary and secondary schools with map positions.

Reads the GIAS establishment export and the Ofsted school-level outcomes,
keeps open schools that are Primary or Secondary (independent schools
without a recorded phase are placed by their statutory age range), and
normalises each one into the categories the map filters on.

Positions are published as British National Grid easting/northing and
reprojected to WGS 84 with pyproj.  Schools with no grid reference are
counted as ``skipped_no_coords``; those with an out-of-range grid
reference, a position outside England, or no derivable phase are
counted as ``skipped_invalid_coords``.

Outputs:
- ``schools.json``: every school, compact JSON
- ``schools-sample.json``: the first 1,000 schools, indented
"""

from __future__ import annotations

import csv
import json
import logging
import math
import re
from typing import TYPE_CHECKING

from school_finder.core.constants import (
    BRITISH_NATIONAL_GRID,
    ENGLAND_MAX_LAT,
    ENGLAND_MAX_LNG,
    ENGLAND_MIN_LAT,
    ENGLAND_MIN_LNG,
    MAX_EASTING_M,
    MAX_NORTHING_M,
    SCHOOLS_SAMPLE_SIZE,
    WGS84,
)
from school_finder.core.exceptions import StageInputError
from school_finder.models.reports import SchoolsReport
from school_finder.models.school import School
from school_finder.simplify import quantize_point, validate_precision
from school_finder.utils.helpers import write_text_atomic

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from pyproj import Transformer

    from school_finder.core.config import PipelineConfig

logger = logging.getLogger("school_finder.stages.process_schools")

STAGE = "process_schools"

# ---------------------------------------------------------------------------
# GIAS / Ofsted columns
# ---------------------------------------------------------------------------

COL_URN = "URN"
COL_NAME = "EstablishmentName"
COL_TYPE = "TypeOfEstablishment (name)"
COL_TYPE_GROUP = "EstablishmentTypeGroup (name)"
COL_STATUS = "EstablishmentStatus (name)"
COL_PHASE = "PhaseOfEducation (name)"
COL_ADMISSIONS = "AdmissionsPolicy (name)"
COL_LOW_AGE = "StatutoryLowAge"
COL_HIGH_AGE = "StatutoryHighAge"
COL_EASTING = "Easting"
COL_NORTHING = "Northing"
COL_POSTCODE = "Postcode"
ADDRESS_COLUMNS = ("Street", "Locality", "Address3", "Town", "County (name)")

OFSTED_URN = "school_urn"
OFSTED_RATING = "ofsted_overall_effectiveness"

# ---------------------------------------------------------------------------
# Category vocabularies
# ---------------------------------------------------------------------------

OPEN_STATUSES = frozenset({"Open", "Open, but proposed to close"})
PRIMARY = "Primary"
SECONDARY = "Secondary"
INDEPENDENT_GROUP = "Independent schools"
NOT_INSPECTED = "Not yet inspected"

SCHOOL_TYPES: dict[str, str] = {
    "Academy converter": "Academy",
    "Academy sponsor led": "Academy",
    "Academy special converter": "Academy",
    "Academy special sponsor led": "Academy",
    "Academy alternative provision converter": "Academy",
    "Academy alternative provision sponsor led": "Academy",
    "Community school": "Community School",
    "Foundation school": "Foundation School",
    "Voluntary aided school": "Voluntary Aided",
    "Voluntary controlled school": "Voluntary Controlled",
    "Free schools": "Free School",
    "Free schools alternative provision": "Free School",
    "Free schools special": "Free School",
    "Studio schools": "Free School",
    "University technical college": "Free School",
}

OFSTED_RATINGS: dict[str, str] = {
    "Outstanding": "Outstanding",
    "Good": "Good",
    "Requires improvement": "Requires Improvement",
    "Requires Improvement": "Requires Improvement",
    "Inadequate": "Inadequate",
    "Serious Weaknesses": "Inadequate",
    "Special Measures": "Inadequate",
}

STATISTIC_FIELDS = ("type", "phase", "funding", "admissions", "ofsted")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


# ---------------------------------------------------------------------------
# Stage entry point
# ---------------------------------------------------------------------------


def process_schools(config: PipelineConfig) -> SchoolsReport:
    """Run the schools stage using paths from *config*.

    Raises:
        StageInputError: If the GIAS export is missing or unreadable.
        SimplifyParameterError: If the configured school precision is invalid.
    """
    validate_precision(config.school_precision)

    rows = list(_read_csv(config.gias_path, encoding="utf-8", required=True))
    logger.info("GIAS records read | path=%s | count=%d", config.gias_path, len(rows))

    candidates = [row for row in rows if is_candidate(row)]
    logger.info("Open primary/secondary schools | count=%d", len(candidates))

    ratings = load_ofsted_ratings(config.ofsted_path)

    schools, skipped_no_coords, skipped_invalid = build_schools(
        candidates,
        ratings,
        precision=config.school_precision,
    )
    logger.info(
        "Schools processed | processed=%d | skipped_no_coords=%d | skipped_invalid_coords=%d",
        len(schools),
        skipped_no_coords,
        skipped_invalid,
    )

    statistics = school_statistics(schools)
    for field, counts in statistics.items():
        logger.info(
            "School %s breakdown | %s",
            field,
            " | ".join(f"{k}={v}" for k, v in counts.items()),
        )

    payload = [s.to_dict() for s in schools]
    write_text_atomic(
        config.schools_path,
        json.dumps(payload, separators=(",", ":"), ensure_ascii=False),
    )
    write_text_atomic(
        config.schools_sample_path,
        json.dumps(payload[:SCHOOLS_SAMPLE_SIZE], indent=2, ensure_ascii=False),
    )
    logger.info(
        "Schools written | path=%s | sample=%s | sample_size=%d",
        config.schools_path,
        config.schools_sample_path,
        min(len(payload), SCHOOLS_SAMPLE_SIZE),
    )

    return SchoolsReport(
        total_records=len(rows),
        filtered=len(candidates),
        ofsted_records=len(ratings),
        processed=len(schools),
        skipped_no_coords=skipped_no_coords,
        skipped_invalid_coords=skipped_invalid,
        statistics=statistics,
        output_path=str(config.schools_path),
    )


def build_schools(
    rows: Iterable[dict[str, str]],
    ratings: dict[str, str],
    *,
    precision: int = 6,
    transformer: Transformer | None = None,
) -> tuple[list[School], int, int]:
    """Geocode and normalise candidate rows.

    Returns:
        ``(schools, skipped_no_coords, skipped_invalid_coords)``.
    """
    to_wgs = transformer or grid_to_wgs84()
    schools: list[School] = []
    skipped_no_coords = 0
    skipped_invalid = 0

    for row in rows:
        easting = _parse_float(row.get(COL_EASTING))
        northing = _parse_float(row.get(COL_NORTHING))
        if easting is None or northing is None:
            skipped_no_coords += 1
            continue

        position = reproject(easting, northing, to_wgs)
        phase = derive_phase(row.get(COL_LOW_AGE), row.get(COL_HIGH_AGE), row.get(COL_PHASE, ""))
        if position is None or phase is None:
            skipped_invalid += 1
            continue

        lng, lat = quantize_point(position, precision)
        type_group = row.get(COL_TYPE_GROUP, "")
        urn = row.get(COL_URN, "")
        schools.append(
            School(
                urn=urn,
                name=row.get(COL_NAME, ""),
                type=normalise_school_type(row.get(COL_TYPE, ""), type_group),
                phase=phase,
                funding=funding_type(type_group),
                admissions=normalise_admissions(row.get(COL_ADMISSIONS, "")),
                status=row.get(COL_STATUS, ""),
                lat=lat,
                lng=lng,
                address=build_address(row),
                postcode=row.get(COL_POSTCODE, ""),
                ofsted=normalise_ofsted(ratings.get(urn, "")),
            )
        )

    return schools, skipped_no_coords, skipped_invalid


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def load_ofsted_ratings(path: Path) -> dict[str, str]:
    """URN → raw overall effectiveness text.  A missing file yields ``{}``."""
    if not path.exists():
        logger.warning("Ofsted outcomes not found; every school is 'Not yet inspected' | path=%s", path)
        return {}

    ratings = {
        row.get(OFSTED_URN, ""): row.get(OFSTED_RATING, "")
        for row in _read_csv(path, encoding="utf-8-sig", required=False)
    }
    logger.info("Ofsted records loaded | count=%d", len(ratings))
    return ratings


def _read_csv(path: Path, *, encoding: str, required: bool) -> Iterator[dict[str, str]]:
    if required and not path.exists():
        msg = f"Schools input not found: {path} (run with --download)"
        raise StageInputError(msg, stage=STAGE)
    try:
        with path.open(encoding=encoding, errors="replace", newline="") as handle:
            for row in csv.DictReader(handle):
                if any(row.values()):
                    yield {k: (v or "") for k, v in row.items() if k is not None}
    except (OSError, csv.Error) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise StageInputError(msg, stage=STAGE) from exc


# ---------------------------------------------------------------------------
# Filtering and normalisation
# ---------------------------------------------------------------------------


def is_candidate(row: dict[str, str]) -> bool:
    """Open, and Primary/Secondary or an independent school with a derivable phase."""
    if row.get(COL_STATUS, "") not in OPEN_STATUSES:
        return False
    phase = row.get(COL_PHASE, "")
    if phase in (PRIMARY, SECONDARY):
        return True
    if row.get(COL_TYPE_GROUP, "") == INDEPENDENT_GROUP:
        return derive_phase(row.get(COL_LOW_AGE), row.get(COL_HIGH_AGE), phase) is not None
    return False


def derive_phase(low_age: str | None, high_age: str | None, explicit_phase: str) -> str | None:
    """Primary/Secondary from the recorded phase, else from the age range.

    Schools entirely at or below 11 are Primary and those starting at 11
    or later are Secondary.  All-through schools starting at 7 or younger
    count as Primary.  Returns ``None`` when either age is missing.
    """
    if explicit_phase in (PRIMARY, SECONDARY):
        return explicit_phase

    low = _parse_leading_int(low_age)
    high = _parse_leading_int(high_age)
    if low is None or high is None:
        return None

    if high <= 11:
        return PRIMARY
    if low >= 11:
        return SECONDARY
    return PRIMARY if low <= 7 else SECONDARY


def normalise_school_type(establishment_type: str, type_group: str) -> str:
    if type_group == INDEPENDENT_GROUP:
        return "Independent"
    return SCHOOL_TYPES.get(establishment_type, "Other")


def funding_type(type_group: str) -> str:
    return "Independent" if type_group == INDEPENDENT_GROUP else "State"


def normalise_admissions(policy: str) -> str:
    return policy if policy in ("Selective", "Non-selective") else "Not applicable"


def normalise_ofsted(rating: str) -> str:
    return OFSTED_RATINGS.get(rating, NOT_INSPECTED)


def build_address(row: dict[str, str]) -> str:
    """Non-blank address lines joined with ``", "``."""
    parts = (row.get(col) or "" for col in ADDRESS_COLUMNS)
    return ", ".join(p for p in parts if p.strip())


def school_statistics(schools: Iterable[School]) -> dict[str, dict[str, int]]:
    """Per-category counts, in first-seen order."""
    stats: dict[str, dict[str, int]] = {f: {} for f in STATISTIC_FIELDS}
    for school in schools:
        for field in STATISTIC_FIELDS:
            value = getattr(school, field)
            stats[field][value] = stats[field].get(value, 0) + 1
    return stats


# ---------------------------------------------------------------------------
# Reprojection
# ---------------------------------------------------------------------------


def grid_to_wgs84() -> Transformer:
    """British National Grid → WGS 84 transformer, ``(x, y)`` axis order."""
    from pyproj import Transformer

    return Transformer.from_crs(BRITISH_NATIONAL_GRID, WGS84, always_xy=True)


def reproject(easting: float, northing: float, transformer: Transformer) -> tuple[float, float] | None:
    """``(lng, lat)`` for a grid reference, or ``None`` if it is not a usable English position."""
    if not (0 <= easting <= MAX_EASTING_M and 0 <= northing <= MAX_NORTHING_M):
        return None

    from pyproj.exceptions import ProjError

    try:
        lng, lat = transformer.transform(easting, northing)
    except ProjError as exc:
        logger.debug("Reprojection failed | easting=%s | northing=%s | error=%s", easting, northing, exc)
        return None

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    if not (ENGLAND_MIN_LAT <= lat <= ENGLAND_MAX_LAT and ENGLAND_MIN_LNG <= lng <= ENGLAND_MAX_LNG):
        return None
    return lng, lat


def _parse_float(value: str | None) -> float | None:
    try:
        number = float(value or "")
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _parse_leading_int(value: str | None) -> int | None:
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else None
