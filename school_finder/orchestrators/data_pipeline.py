"""End-to-end data build for the School Finder map.

Phases
------
1. **Download** (optional): GIAS export (today's, else yesterday's),
   Ofsted outcomes, and unless skipped the ~4.5 GB Price Paid file.
2. **Schools**: GIAS + Ofsted → ``schools.json``.
3. **Boundaries**: postcode polygons → ``postcode-districts.json``.
4. **Commute times**: boundaries → ``commuteMinutes``.
5. **House prices**: Price Paid → ``medianPrice`` (only when not skipped
   and the input file exists).

Stages run sequentially; the first ``PipelineError`` stops the build.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import TYPE_CHECKING, Any, TypedDict

from school_finder.core.constants import GIAS_SOURCE_ENCODING, OFSTED_URL, PRICE_PAID_URL
from school_finder.sources.downloads import (
    download_file,
    download_first,
    gias_candidate_urls,
    transcode_to_utf8,
)
from school_finder.stages.process_boundaries import process_boundaries
from school_finder.stages.process_commute_times import process_commute_times
from school_finder.stages.process_house_prices import process_house_prices
from school_finder.stages.process_schools import process_schools

if TYPE_CHECKING:
    import httpx

    from school_finder.core.config import PipelineConfig
    from school_finder.sources.postcode_polygons import PostcodePolygonSource

logger = logging.getLogger("school_finder.orchestrators.data_pipeline")


class PipelineSummary(TypedDict):
    """Result contract for a full run."""

    downloads: dict[str, str]
    schools: dict[str, Any]
    boundaries: dict[str, Any]
    commute_times: dict[str, Any]
    house_prices: dict[str, Any] | None
    elapsed_s: float


def run_pipeline(
    config: PipelineConfig,
    *,
    download: bool = False,
    skip_house_prices: bool = False,
    today: date | None = None,
    http_client: httpx.Client | None = None,
    boundary_source: PostcodePolygonSource | None = None,
) -> PipelineSummary:
    """Build every artifact the map needs.

    Args:
        config: Pipeline configuration.
        download: Fetch the raw inputs before processing.
        skip_house_prices: Neither download nor process the Price Paid file.
        today: Reference day for GIAS URLs and the recency cutoff.
        http_client: Optional client for the downloads.
        boundary_source: Optional boundary source for the boundaries stage.

    Raises:
        PipelineError: Any stage failure (subclass identifies the stage).
    """
    started = time.monotonic()
    day = today or date.today()
    logger.info(
        "Pipeline started | download=%s | skip_house_prices=%s | data_dir=%s | output_dir=%s",
        download,
        skip_house_prices,
        config.data_dir,
        config.output_dir,
    )

    downloads: dict[str, str] = {}
    if download:
        downloads = download_inputs(
            config,
            today=day,
            include_house_prices=not skip_house_prices,
            client=http_client,
        )

    schools = process_schools(config)
    boundaries = process_boundaries(config, source=boundary_source)
    commute = process_commute_times(config)

    house_prices = None
    if skip_house_prices:
        logger.info("House prices skipped | reason=--skip-house-prices")
    elif not config.price_paid_path.exists():
        logger.info("House prices skipped | reason=input not found | path=%s", config.price_paid_path)
    else:
        house_prices = process_house_prices(config, today=day).to_dict()

    summary: PipelineSummary = {
        "downloads": downloads,
        "schools": schools.to_dict(),
        "boundaries": boundaries.to_dict(),
        "commute_times": commute.to_dict(),
        "house_prices": house_prices,
        "elapsed_s": round(time.monotonic() - started, 1),
    }
    logger.info("Pipeline complete | elapsed=%.1fs", summary["elapsed_s"])
    return summary


def download_inputs(
    config: PipelineConfig,
    *,
    today: date,
    include_house_prices: bool,
    client: httpx.Client | None = None,
) -> dict[str, str]:
    """Download the raw inputs into ``config.data_dir``; return name → URL used.

    Raises:
        DownloadError: If a required download fails.
    """
    timeout_s = config.http_timeout_s
    used: dict[str, str] = {}

    logger.info("Downloading GIAS school data")
    used["gias"] = download_first(
        gias_candidate_urls(today),
        config.gias_raw_path,
        client=client,
        timeout_s=timeout_s,
    )
    transcode_to_utf8(config.gias_raw_path, config.gias_path, source_encoding=GIAS_SOURCE_ENCODING)

    logger.info("Downloading Ofsted ratings")
    download_file(OFSTED_URL, config.ofsted_path, client=client, timeout_s=timeout_s)
    used["ofsted"] = OFSTED_URL

    if include_house_prices:
        logger.info("Downloading house price data (~4.5 GB)")
        download_file(PRICE_PAID_URL, config.price_paid_path, client=client, timeout_s=timeout_s)
        used["price_paid"] = PRICE_PAID_URL

    return used
