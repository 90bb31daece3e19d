"""Quote-aware streaming reader for unheadered delimited text.

``split_record`` turns one line into its fields with a single scan;
``iter_records`` / ``read_records`` lazily map it over a line source so
a multi-gigabyte file is never held in memory.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from school_finder.core.exceptions import PermanentError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger("school_finder.aggregate.reader")

DEFAULT_DELIMITER = ","
DEFAULT_QUOTE = '"'


class RecordSourceError(PermanentError):
    """Raised when the delimited input cannot be opened or read."""

    default_stage = "read_records"
    default_code = "RECORD_SOURCE_UNREADABLE"


def split_record(
    line: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    quote: str = DEFAULT_QUOTE,
) -> list[str]:
    """Split one line of delimited text into its fields.

    Quoted fields may contain the delimiter, and a doubled quote inside a
    quoted field stands for one literal quote.  A trailing newline is
    ignored.  Unbalanced quotes never raise: the open field simply runs
    to the end of the line.
    """
    line = line.rstrip("\r\n")
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == quote:
            if in_quotes and i + 1 < length and line[i + 1] == quote:
                current.append(quote)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def iter_records(
    lines: Iterable[str],
    *,
    delimiter: str = DEFAULT_DELIMITER,
    quote: str = DEFAULT_QUOTE,
) -> Iterator[list[str]]:
    """Lazily split each non-blank line of *lines* into a record."""
    for line in lines:
        if not line.strip():
            continue
        yield split_record(line, delimiter=delimiter, quote=quote)


def read_records(
    path: Path,
    *,
    encoding: str = "utf-8",
    delimiter: str = DEFAULT_DELIMITER,
    quote: str = DEFAULT_QUOTE,
) -> Iterator[list[str]]:
    """Stream records from a delimited file on disk.

    Undecodable bytes are replaced rather than aborting the run; the
    affected record is then judged by the aggregator like any other.
    Records are yielded one line behind the read position so a file
    cut off inside a quoted field is caught before its last record is
    handed out.

    Raises:
        RecordSourceError: If the file cannot be opened, a read fails
            part-way through, or the last record ends inside quotes.
    """
    try:
        handle = open(path, encoding=encoding, errors="replace", newline="")  # noqa: SIM115
    except OSError as exc:
        msg = f"Cannot open delimited input {path}: {exc}"
        raise RecordSourceError(msg) from exc

    logger.debug("Streaming records | path=%s | encoding=%s", path, encoding)
    with handle:
        pending: str | None = None
        try:
            for line in handle:
                if not line.strip():
                    continue
                if pending is not None:
                    yield split_record(pending, delimiter=delimiter, quote=quote)
                pending = line
        except OSError as exc:
            msg = f"Read failed part-way through {path}: {exc}"
            raise RecordSourceError(msg) from exc

    if pending is None:
        return
    if ends_inside_quotes(pending, quote=quote):
        msg = f"Delimited input {path} ends inside a quoted field (truncated?)"
        raise RecordSourceError(msg, code="RECORD_SOURCE_TRUNCATED")
    yield split_record(pending, delimiter=delimiter, quote=quote)


def ends_inside_quotes(line: str, *, quote: str = DEFAULT_QUOTE) -> bool:
    """Whether *line* leaves a quoted field open.

    Every quote either toggles the quoted state or pairs with its
    neighbour as an escaped literal, so an odd count means still open.
    """
    return line.count(quote) % 2 == 1
