"""Streaming downloads of the raw input data sets.

Downloads are streamed chunk by chunk (the Price Paid file is ~4.5 GB)
into a temp file beside the destination and renamed into place only when
the transfer completes, so an interrupted download never leaves a
truncated input behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date, timedelta
from typing import TYPE_CHECKING

import httpx

from school_finder.core.constants import GIAS_URL_TEMPLATE, HTTP_USER_AGENT
from school_finder.core.exceptions import TransientError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("school_finder.sources.downloads")

DOWNLOAD_TIMEOUT_S = 60.0


class DownloadError(TransientError):
    """Raised when a source file cannot be downloaded."""

    default_stage = "download"
    default_code = "DOWNLOAD_FAILED"


def gias_url(day: date) -> str:
    """Return the dated GIAS establishment export URL for *day*."""
    return GIAS_URL_TEMPLATE.format(date=day.strftime("%Y%m%d"))


def gias_candidate_urls(today: date) -> list[str]:
    """Today's GIAS export, then yesterday's (today's may not be published yet)."""
    return [gias_url(today), gias_url(today - timedelta(days=1))]


def download_file(
    url: str,
    dest: Path,
    *,
    client: httpx.Client | None = None,
    timeout_s: float = DOWNLOAD_TIMEOUT_S,
) -> int:
    """Stream *url* to *dest* and return the number of bytes written.

    Raises:
        DownloadError: On any HTTP or filesystem failure.  *dest* is left
            untouched in that case.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    owns_client = client is None
    http = client or httpx.Client(
        timeout=timeout_s,
        follow_redirects=True,
        headers={"User-Agent": HTTP_USER_AGENT},
    )

    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".part", dir=dest.parent)
    size = 0
    try:
        with os.fdopen(fd, "wb") as handle, http.stream("GET", url) as response:
            response.raise_for_status()
            for chunk in response.iter_bytes():
                handle.write(chunk)
                size += len(chunk)
        os.replace(tmp_name, dest)
    except (httpx.HTTPError, OSError) as exc:
        msg = f"Failed to download {url}: {exc}"
        raise DownloadError(msg) from exc
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        if owns_client:
            http.close()

    logger.info("Downloaded | url=%s | dest=%s | bytes=%d", url, dest, size)
    return size


def download_first(
    urls: list[str],
    dest: Path,
    *,
    client: httpx.Client | None = None,
    timeout_s: float = DOWNLOAD_TIMEOUT_S,
) -> str:
    """Download the first of *urls* that succeeds; return the URL used.

    Raises:
        DownloadError: If every URL fails (the last failure is chained).
    """
    last_error: DownloadError | None = None
    for url in urls:
        try:
            download_file(url, dest, client=client, timeout_s=timeout_s)
        except DownloadError as exc:
            logger.warning("Download failed, trying next source | url=%s | error=%s", url, exc)
            last_error = exc
            continue
        return url

    msg = f"All {len(urls)} download source(s) failed for {dest.name}"
    raise DownloadError(msg) from last_error


def transcode_to_utf8(src: Path, dest: Path, *, source_encoding: str) -> int:
    """Re-encode *src* from *source_encoding* into UTF-8 at *dest*.

    Returns the number of characters written.

    Raises:
        DownloadError: If *src* cannot be read or *dest* cannot be written.
            *dest* is left untouched in that case.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".part", dir=dest.parent)
    written = 0
    try:
        with (
            os.fdopen(fd, "w", encoding="utf-8", newline="") as writer,
            src.open(encoding=source_encoding, newline="") as reader,
        ):
            for line in reader:
                written += writer.write(line)
        os.replace(tmp_name, dest)
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot re-encode {src} as UTF-8: {exc}"
        raise DownloadError(msg, stage="transcode") from exc
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)

    logger.info("Re-encoded | src=%s | dest=%s | encoding=%s", src, dest, source_encoding)
    return written
