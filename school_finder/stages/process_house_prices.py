"""House-prices stage: median sale price per postcode district.

Streams the HM Land Registry Price Paid CSV (no header; price, date of
transfer and postcode at positions 1, 2 and 3), keeps sales from the last
``recency_years`` years, and upserts each district's median price into
``district-metrics.json`` without touching its other metrics.

Malformed or stale lines are counted and skipped; only an unreadable
input file or metrics file aborts the stage.

Data source: HM Land Registry Price Paid Data
(https://www.gov.uk/government/statistical-data-sets/price-paid-data-downloads).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from school_finder.aggregate import GroupedMedianAggregator, RecordLayout, median, read_records
from school_finder.core.constants import MEDIAN_PRICE_KEY, PRICE_PAID_INFO_URL
from school_finder.models.metrics import load_metrics, merge_metric, write_metrics
from school_finder.models.reports import HousePriceReport
from school_finder.utils.helpers import years_before

if TYPE_CHECKING:
    from pathlib import Path

    from school_finder.core.config import PipelineConfig

logger = logging.getLogger("school_finder.stages.process_house_prices")

PRICE_PAID_LAYOUT = RecordLayout(value_index=1, date_index=2, key_index=3, min_fields=4)


def process_house_prices(
    config: PipelineConfig,
    *,
    today: date | None = None,
) -> HousePriceReport:
    """Run the house-prices stage using paths from *config*.

    Args:
        config: Pipeline configuration.
        today: Reference day for the recency cutoff (defaults to today).
    """
    return aggregate_house_prices(
        config.price_paid_path,
        config.metrics_path,
        cutoff=years_before(today or date.today(), config.recency_years),
    )


def aggregate_house_prices(
    input_path: Path,
    metrics_path: Path,
    *,
    cutoff: date,
) -> HousePriceReport:
    """Aggregate *input_path* and upsert median prices into *metrics_path*.

    If the input file is missing, download instructions are logged, an
    empty metrics file is created when none exists, and the report has
    ``input_found=False``.

    Raises:
        RecordSourceError: If the input exists but cannot be read.
        MetricsFileError: If the existing metrics file is malformed.
    """
    if not input_path.exists():
        _log_missing_input(input_path)
        if not metrics_path.exists():
            write_metrics(metrics_path, {})
            logger.info("Created empty metrics file | path=%s", metrics_path)
        return HousePriceReport(input_found=False, output_path=str(metrics_path))

    # Fail before the long pass if the existing metrics file is unusable
    metrics = load_metrics(metrics_path)

    logger.info(
        "Aggregating house prices | input=%s | cutoff=%s",
        input_path,
        cutoff.isoformat(),
    )
    aggregator = GroupedMedianAggregator(cutoff, layout=PRICE_PAID_LAYOUT)
    counters = aggregator.consume(read_records(input_path))
    district_count = aggregator.group_count
    medians = aggregator.medians()

    logger.info(
        "House prices aggregated | accepted=%d | skipped=%d | districts=%d",
        counters.accepted,
        counters.skipped,
        district_count,
    )
    logger.info(
        "Skip summary | too_few_fields=%d | bad_value=%d | bad_date=%d | stale_date=%d | bad_key=%d",
        counters.too_few_fields,
        counters.bad_value,
        counters.bad_date,
        counters.stale_date,
        counters.bad_key,
    )

    merge_metric(metrics, medians, MEDIAN_PRICE_KEY)
    write_metrics(metrics_path, metrics)

    all_medians = [m.median_price for m in metrics.values() if m.median_price is not None]
    report = HousePriceReport(
        input_found=True,
        cutoff=cutoff.isoformat(),
        districts=district_count,
        counters=counters,
        min_median=min(all_medians) if all_medians else None,
        max_median=max(all_medians) if all_medians else None,
        overall_median=median(all_medians) if all_medians else None,
        output_path=str(metrics_path),
    )
    if all_medians:
        logger.info(
            "Median price statistics | min=£%s | max=£%s | overall=£%s",
            f"{report.min_median:,}",
            f"{report.max_median:,}",
            f"{report.overall_median:,}",
        )
    return report


def _log_missing_input(input_path: Path) -> None:
    logger.warning("Price paid input not found | path=%s", input_path)
    logger.warning(
        "To build median prices, download the complete Price Paid CSV from %s "
        "and save it as %s (or run with --download)",
        PRICE_PAID_INFO_URL,
        input_path,
    )
