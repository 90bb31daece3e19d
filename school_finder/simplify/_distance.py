"""Perpendicular distance from a point to the line through two points."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


def perpendicular_distance(
    point: Sequence[float],
    line_start: Sequence[float],
    line_end: Sequence[float],
) -> float:
    """Return the distance from *point* to the line through *line_start*/*line_end*.

    The point is projected onto the infinite line, not clamped to the
    segment: the simplifier measures deviation from the chord direction.
    A zero-length segment degenerates to plain Euclidean distance to
    *line_start*.
    """
    dx = line_end[0] - line_start[0]
    dy = line_end[1] - line_start[1]

    if dx == 0 and dy == 0:
        return math.hypot(point[0] - line_start[0], point[1] - line_start[1])

    t = ((point[0] - line_start[0]) * dx + (point[1] - line_start[1]) * dy) / (dx * dx + dy * dy)
    nearest_x = line_start[0] + t * dx
    nearest_y = line_start[1] + t * dy

    return math.hypot(point[0] - nearest_x, point[1] - nearest_y)
