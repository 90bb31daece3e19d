"""Streaming grouped-median aggregation engine.

Turns an arbitrarily large unheadered CSV into one median per group:

- **_reader**: quote-aware line splitter and lazy record streams
- **_keys**: group key derivation (postcode district)
- **_median**: exact median with round-half-up for even counts
- **_aggregator**: recency filter, skip accounting, per-group values

Each run recomputes from scratch; there is no resumable state.
"""

from __future__ import annotations

from school_finder.aggregate._aggregator import (
    PROGRESS_EVERY_LINES,
    GroupedMedianAggregator,
    RecordLayout,
)
from school_finder.aggregate._keys import postcode_district
from school_finder.aggregate._median import median
from school_finder.aggregate._reader import (
    RecordSourceError,
    ends_inside_quotes,
    iter_records,
    read_records,
    split_record,
)

__all__ = [
    "PROGRESS_EVERY_LINES",
    "GroupedMedianAggregator",
    "RecordLayout",
    "RecordSourceError",
    "ends_inside_quotes",
    "iter_records",
    "median",
    "postcode_district",
    "read_records",
    "split_record",
]
