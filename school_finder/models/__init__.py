"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- DistrictMetrics: Per-district summary values (pydantic)
- School: Geocoded school record
- AggregationCounters / *Report: Per-stage run summaries
- contracts: TypedDict shapes of the JSON artifacts
"""

from school_finder.models.metrics import (
    DistrictMetrics,
    MetricsFileError,
    load_metrics,
    merge_metric,
    write_metrics,
)
from school_finder.models.reports import (
    AggregationCounters,
    BoundaryReport,
    CommuteReport,
    HousePriceReport,
    SchoolsReport,
)
from school_finder.models.school import School

__all__ = [
    "AggregationCounters",
    "BoundaryReport",
    "CommuteReport",
    "DistrictMetrics",
    "HousePriceReport",
    "MetricsFileError",
    "School",
    "SchoolsReport",
    "load_metrics",
    "merge_metric",
    "write_metrics",
]
