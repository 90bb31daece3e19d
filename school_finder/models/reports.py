"""Per-run counters and stage reports.

Every stage returns one of these so the orchestrator and CLI can print a
summary of what was accepted and what was skipped, even on partial
success.  ``AggregationCounters`` is the only mutable one: it is updated
record by record during a streaming pass.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

SKIP_REASONS: tuple[str, ...] = (
    "too_few_fields",
    "bad_value",
    "bad_date",
    "stale_date",
    "bad_key",
)
"""Skip reasons tracked by ``AggregationCounters``, in evaluation order."""


@dataclass(slots=True)
class AggregationCounters:
    """Running totals for one grouped-aggregation pass.

    Attributes:
        lines: Records seen (blank lines are not records).
        accepted: Records whose value was added to a group.
        too_few_fields: Records with fewer fields than the layout needs.
        bad_value: Value missing, non-integer, or not positive.
        bad_date: Date field without a parseable ``YYYY-MM-DD`` prefix.
        stale_date: Date before the recency cutoff.
        bad_key: Key field from which no group key could be derived.
    """

    lines: int = 0
    accepted: int = 0
    too_few_fields: int = 0
    bad_value: int = 0
    bad_date: int = 0
    stale_date: int = 0
    bad_key: int = 0

    @property
    def skipped(self) -> int:
        """Total records rejected for any reason."""
        return sum(getattr(self, reason) for reason in SKIP_REASONS)

    def skip(self, reason: str) -> None:
        """Increment the counter for *reason*."""
        if reason not in SKIP_REASONS:
            msg = f"Unknown skip reason: {reason!r}"
            raise ValueError(msg)
        setattr(self, reason, getattr(self, reason) + 1)

    def to_dict(self) -> dict[str, int]:
        return {**asdict(self), "skipped": self.skipped}


@dataclass(frozen=True, slots=True)
class HousePriceReport:
    """Outcome of the house-prices stage."""

    input_found: bool
    cutoff: str = ""
    districts: int = 0
    counters: AggregationCounters = field(default_factory=AggregationCounters)
    min_median: int | None = None
    max_median: int | None = None
    overall_median: int | None = None
    output_path: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "input_found": self.input_found,
            "cutoff": self.cutoff,
            "districts": self.districts,
            "counters": self.counters.to_dict(),
            "min_median": self.min_median,
            "max_median": self.max_median,
            "overall_median": self.overall_median,
            "output_path": self.output_path,
        }


@dataclass(frozen=True, slots=True)
class BoundaryReport:
    """Outcome of the boundaries stage."""

    areas_listed: int = 0
    areas_fetched: int = 0
    areas_failed: list[str] = field(default_factory=list)
    districts: int = 0
    vertices_before: int = 0
    vertices_after: int = 0
    invalid_after: int = 0
    output_bytes: int = 0
    output_path: str = ""

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CommuteReport:
    """Outcome of the commute-times stage."""

    processed: int = 0
    skipped: int = 0
    min_minutes: int | None = None
    max_minutes: int | None = None
    mean_minutes: int | None = None
    output_path: str = ""

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SchoolsReport:
    """Outcome of the schools stage."""

    total_records: int = 0
    filtered: int = 0
    ofsted_records: int = 0
    processed: int = 0
    skipped_no_coords: int = 0
    skipped_invalid_coords: int = 0
    statistics: dict[str, dict[str, int]] = field(default_factory=dict)
    output_path: str = ""

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
