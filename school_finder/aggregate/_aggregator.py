"""Streaming grouped-median aggregation.

Records are judged one at a time; only the integer value of an accepted
record is retained, so memory grows with the number of accepted records
and never with file size.  The group mapping is owned by a single
aggregator instance and is released once ``medians()`` has been read.

Rejection checks run in a fixed order and the first failure decides the
skip reason: field count, value, date, recency, key.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from school_finder.aggregate._keys import postcode_district
from school_finder.aggregate._median import median
from school_finder.models.reports import AggregationCounters
from school_finder.utils.helpers import parse_date_prefix

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import date

logger = logging.getLogger("school_finder.aggregate.aggregator")

PROGRESS_EVERY_LINES = 1_000_000


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """Fixed field positions of an unheadered record.

    Defaults match HM Land Registry Price Paid data: transaction id,
    price, date of transfer, postcode, ...
    """

    value_index: int = 1
    date_index: int = 2
    key_index: int = 3
    min_fields: int = 4

    def __post_init__(self) -> None:
        needed = max(self.value_index, self.date_index, self.key_index) + 1
        if min(self.value_index, self.date_index, self.key_index) < 0:
            msg = "Field indices must be >= 0"
            raise ValueError(msg)
        if self.min_fields < needed:
            msg = f"min_fields={self.min_fields} is too small for the field indices (need {needed})"
            raise ValueError(msg)


class GroupedMedianAggregator:
    """Group recent records by a derived key and compute per-group medians.

    Example::

        aggregator = GroupedMedianAggregator(cutoff=date(2024, 1, 1))
        counters = aggregator.consume(read_records(path))
        medians = aggregator.medians()

    Args:
        cutoff: Records dated before this day are skipped as stale.
        layout: Field positions within a record.
        key_func: Derives the group key from the key field; returns
            ``None`` to reject the record.
    """

    def __init__(
        self,
        cutoff: date,
        *,
        layout: RecordLayout | None = None,
        key_func: Callable[[str], str | None] = postcode_district,
    ) -> None:
        self._cutoff = cutoff
        self._layout = layout or RecordLayout()
        self._key_func = key_func
        self._groups: defaultdict[str, list[int]] = defaultdict(list)
        self._counters = AggregationCounters()
        self._finalised = False

    @property
    def counters(self) -> AggregationCounters:
        return self._counters

    @property
    def group_count(self) -> int:
        return len(self._groups)

    def add(self, record: Sequence[str]) -> bool:
        """Judge one record; return ``True`` if its value joined a group.

        Raises:
            RuntimeError: If ``medians()`` has already been called.
        """
        if self._finalised:
            msg = "Aggregator already finalised; create a new one per run"
            raise RuntimeError(msg)

        counters = self._counters
        layout = self._layout
        counters.lines += 1

        if len(record) < layout.min_fields:
            counters.skip("too_few_fields")
            return False

        value = _parse_positive_int(record[layout.value_index])
        if value is None:
            counters.skip("bad_value")
            return False

        day = parse_date_prefix(record[layout.date_index])
        if day is None:
            counters.skip("bad_date")
            return False
        if day < self._cutoff:
            counters.skip("stale_date")
            return False

        key = self._key_func(record[layout.key_index])
        if not key:
            counters.skip("bad_key")
            return False

        self._groups[key].append(value)
        counters.accepted += 1
        return True

    def consume(self, records: Iterable[Sequence[str]]) -> AggregationCounters:
        """Drain *records*, logging progress every million lines."""
        for record in records:
            self.add(record)
            if self._counters.lines % PROGRESS_EVERY_LINES == 0:
                logger.info(
                    "Aggregation progress | lines=%dM | accepted=%d | groups=%d",
                    self._counters.lines // PROGRESS_EVERY_LINES,
                    self._counters.accepted,
                    len(self._groups),
                )
        return self._counters

    def medians(self) -> dict[str, int]:
        """Finalise every non-empty group and release the grouping state.

        Returns:
            Group key → median value.  Groups appear in first-seen order.
        """
        result = {key: median(values) for key, values in self._groups.items() if values}
        self._groups = defaultdict(list)
        self._finalised = True
        return result


def _parse_positive_int(raw: str) -> int | None:
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value > 0 else None
