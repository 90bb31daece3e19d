"""Douglas-Peucker ring simplification.

Selects a subset of a ring's points such that every dropped point lies
within ``tolerance`` of the chord between its nearest kept neighbours.
The first and last points are always kept.

The index-range partitioning runs on an explicit work stack rather than
the call stack so very long coastline rings cannot hit the recursion
limit.  Ranges are popped left-before-right, the same order a recursive
implementation visits them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from school_finder.simplify._distance import perpendicular_distance
from school_finder.simplify._validation import validate_tolerance

if TYPE_CHECKING:
    from collections.abc import Sequence

P = TypeVar("P", bound="Sequence[float]")

# Rings shorter than this are already minimal (3 distinct + closure)
MIN_SIMPLIFIABLE_POINTS = 4


def simplify_ring(ring: Sequence[P], tolerance: float) -> list[P]:
    """Return the points of *ring* kept at *tolerance*, in original order.

    Args:
        ring: Ordered ring coordinates (``(lon, lat)`` pairs).
        tolerance: Maximum perpendicular deviation of a dropped point,
            in coordinate units. Must be a finite number >= 0.

    Returns:
        A new list holding a subset of the original point objects.
        Rings with fewer than 4 points are returned unchanged.

    Raises:
        SimplifyParameterError: If *tolerance* is negative or not finite.
    """
    validate_tolerance(tolerance)
    return _simplify_ring(ring, tolerance)


def _simplify_ring(ring: Sequence[P], tolerance: float) -> list[P]:
    """``simplify_ring`` without parameter validation (caller has checked)."""
    if len(ring) < MIN_SIMPLIFIABLE_POINTS:
        return list(ring)

    last = len(ring) - 1
    keep = {0, last}
    stack = [(0, last)]

    while stack:
        start, end = stack.pop()
        if end <= start + 1:
            continue

        start_pt = ring[start]
        end_pt = ring[end]
        max_dist = 0.0
        max_index = start

        for i in range(start + 1, end):
            dist = perpendicular_distance(ring[i], start_pt, end_pt)
            if dist > max_dist:
                max_dist = dist
                max_index = i

        if max_dist > tolerance:
            keep.add(max_index)
            stack.append((max_index, end))
            stack.append((start, max_index))

    return [ring[i] for i in sorted(keep)]
