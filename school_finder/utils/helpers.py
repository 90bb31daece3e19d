"""Shared helper functions used across multiple stages.

Centralises date handling and atomic artifact writes so every stage
leaves either a complete output file or none at all.
"""

from __future__ import annotations

import os
import tempfile
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def years_before(day: date, years: int) -> date:
    """Return *day* moved back by whole calendar *years*.

    29 February maps to 28 February in a non-leap target year.
    """
    target_year = day.year - years
    try:
        return day.replace(year=target_year)
    except ValueError:
        return day.replace(year=target_year, day=28)


def parse_date_prefix(value: str) -> date | None:
    """Parse the ``YYYY-MM-DD`` prefix of a date/datetime string.

    Returns ``None`` if the prefix is missing or not a real calendar date.
    ``"2024-03-01 00:00"`` and ``"2024-03-01T12:00:00Z"`` both give
    ``date(2024, 3, 1)``.
    """
    prefix = value.strip()[:10]
    if len(prefix) != 10:
        return None
    try:
        return date.fromisoformat(prefix)
    except ValueError:
        return None


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> int:
    """Write *text* to *path* via a temp file in the same directory.

    The destination only ever holds a complete file: on any failure the
    temp file is removed and the previous contents (if any) are untouched.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = text.encode(encoding)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return len(data)
