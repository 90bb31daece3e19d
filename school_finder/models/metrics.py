"""Pydantic model and store for ``district-metrics.json``.

The metrics file maps a postcode district (``"SW1A"``) to the summary
values shown on the map's heat layers.  Each value is produced by a
different stage, so every write is an upsert: a stage sets its own field
and leaves the others, including fields this code does not know about,
exactly as they were.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from school_finder.core.exceptions import ContractError
from school_finder.utils.helpers import write_text_atomic

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger("school_finder.models.metrics")


class MetricsFileError(ContractError):
    """Raised when an existing metrics file is not a district → metrics mapping."""

    default_stage = "metrics_store"
    default_code = "METRICS_FILE_MALFORMED"


class DistrictMetrics(BaseModel):
    """Summary values for one postcode district.

    Attributes:
        median_price: Median sale price in pounds over the recency window.
        commute_minutes: Estimated commute to central London in minutes.
    """

    median_price: int | None = Field(default=None, alias="medianPrice")
    commute_minutes: int | None = Field(default=None, alias="commuteMinutes")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


MetricsMap = dict[str, DistrictMetrics]


def load_metrics(path: Path) -> MetricsMap:
    """Load an existing metrics file, or return ``{}`` if there is none.

    Raises:
        MetricsFileError: If the file exists but is not valid JSON or not
            a mapping of district → metrics object.
    """
    if not path.exists():
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read metrics file {path}: {exc}"
        raise MetricsFileError(msg) from exc

    if not isinstance(raw, dict):
        msg = f"Metrics file {path} must contain a JSON object, got {type(raw).__name__}"
        raise MetricsFileError(msg)

    try:
        return {str(k): DistrictMetrics.model_validate(v) for k, v in raw.items()}
    except PydanticValidationError as exc:
        msg = f"Metrics file {path} has an invalid district entry: {exc}"
        raise MetricsFileError(msg) from exc


def merge_metric(metrics: MetricsMap, values: Mapping[str, int], field: str) -> MetricsMap:
    """Upsert *values* into *field* of each district in *metrics*.

    Districts missing from *metrics* are created with every other field
    left at ``None``.  Existing districts keep all of their other fields.
    *metrics* is updated in place and returned.

    Args:
        metrics: Existing district → metrics mapping.
        values: District → new value for *field*.
        field: Model field name (``"median_price"``) or its JSON alias
            (``"medianPrice"``).

    Raises:
        KeyError: If *field* is not a known metrics field.
    """
    attr = _resolve_field(field)
    for district, value in values.items():
        entry = metrics.get(district)
        if entry is None:
            entry = DistrictMetrics()
            metrics[district] = entry
        setattr(entry, attr, value)
    return metrics


def dump_metrics(metrics: MetricsMap) -> dict[str, dict[str, object]]:
    """Serialise to the JSON shape the map front end reads."""
    return {district: m.model_dump(by_alias=True) for district, m in metrics.items()}


def write_metrics(path: Path, metrics: MetricsMap) -> None:
    """Write *metrics* to *path* atomically (2-space indented JSON)."""
    write_text_atomic(path, json.dumps(dump_metrics(metrics), indent=2))
    logger.info("Metrics written | path=%s | districts=%d", path, len(metrics))


def _resolve_field(field: str) -> str:
    for name, info in DistrictMetrics.model_fields.items():
        if field in (name, info.alias):
            return name
    msg = f"Unknown district metrics field: {field!r}"
    raise KeyError(msg)
