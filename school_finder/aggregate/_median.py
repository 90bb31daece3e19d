"""Exact median of an integer collection."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def median(values: Iterable[int]) -> int:
    """Return the median of *values*.

    For an even count the two middle values are averaged and rounded half
    up, so ``[1, 2]`` gives ``2`` and ``[-2, -1]`` gives ``-1``.  Integer
    arithmetic keeps the result exact for arbitrarily large prices.

    Raises:
        ValueError: If *values* is empty.
    """
    ordered = sorted(values)
    if not ordered:
        msg = "median of an empty collection is undefined"
        raise ValueError(msg)

    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid] + 1) // 2
