"""Tests for the house-prices stage.

Covers:
- Median price per district merged into the metrics file
- Existing metrics (commute minutes, unknown fields) untouched
- Missing input: instructions logged, empty metrics file created
- Recency cutoff derived from ``today``
- Unreadable inputs raise before writing
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

import pytest

from school_finder.core.config import PipelineConfig
from school_finder.models.metrics import MetricsFileError
from school_finder.stages.process_house_prices import aggregate_house_prices, process_house_prices

TODAY = date(2026, 10, 18)


def price_paid_line(price: int | str, day: str, postcode: str) -> str:
    return f'"{{GUID}}","{price}","{day} 00:00","{postcode}","T","N","F","1","","HIGH ST","","TOWN","DIST","COUNTY","A","A"\n'


@pytest.fixture()
def price_paid(config: PipelineConfig) -> Path:
    path = config.price_paid_path
    path.parent.mkdir(parents=True)
    path.write_text(
        "".join(
            [
                price_paid_line(100_000, "2025-01-01", "AB1 1AA"),
                price_paid_line(200_000, "2025-06-01", "AB1 2BB"),
                price_paid_line(300_000, "2026-01-01", "ab1 3cc"),
                price_paid_line(999_999, "2020-01-01", "AB1 4DD"),
                price_paid_line(500_000, "2025-03-03", "SW1A 1AA"),
                price_paid_line("bad", "2025-03-03", "SW1A 1AA"),
                '"{GUID}","1"\n',
                "\n",
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestProcessHousePrices:
    """Full stage runs."""

    def test_writes_medians(self, config: PipelineConfig, price_paid: Path) -> None:
        report = process_house_prices(config, today=TODAY)
        metrics = json.loads(config.metrics_path.read_text())
        assert metrics == {
            "AB1": {"medianPrice": 200_000, "commuteMinutes": None},
            "SW1A": {"medianPrice": 500_000, "commuteMinutes": None},
        }
        assert report.input_found is True
        assert report.cutoff == "2024-10-18"
        assert report.districts == 2

    def test_report_counters(self, config: PipelineConfig, price_paid: Path) -> None:
        counters = process_house_prices(config, today=TODAY).counters
        assert counters.lines == 7
        assert counters.accepted == 4
        assert counters.stale_date == 1
        assert counters.bad_value == 1
        assert counters.too_few_fields == 1

    def test_report_statistics(self, config: PipelineConfig, price_paid: Path) -> None:
        report = process_house_prices(config, today=TODAY)
        assert report.min_median == 200_000
        assert report.max_median == 500_000
        assert report.overall_median == 350_000

    def test_preserves_existing_metrics(
        self, config: PipelineConfig, price_paid: Path, write_metrics_file
    ) -> None:
        write_metrics_file(
            {
                "AB1": {"medianPrice": 1, "commuteMinutes": 55},
                "ZZ9": {"medianPrice": None, "commuteMinutes": 300, "note": "keep"},
            }
        )
        process_house_prices(config, today=TODAY)
        metrics = json.loads(config.metrics_path.read_text())
        assert metrics["AB1"] == {"medianPrice": 200_000, "commuteMinutes": 55}
        assert metrics["ZZ9"] == {"medianPrice": None, "commuteMinutes": 300, "note": "keep"}

    def test_recency_years_respected(self, tmp_path: Path, price_paid: Path) -> None:
        cfg = PipelineConfig(data_dir=str(price_paid.parent), output_dir=str(tmp_path / "out"), recency_years=10)
        report = process_house_prices(cfg, today=TODAY)
        assert report.counters.stale_date == 0
        assert json.loads(cfg.metrics_path.read_text())["AB1"]["medianPrice"] == 250_000


class TestMissingInput:
    """No Price Paid file."""

    def test_creates_empty_metrics(self, config: PipelineConfig, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            report = process_house_prices(config, today=TODAY)
        assert report.input_found is False
        assert json.loads(config.metrics_path.read_text()) == {}
        assert "price-paid-data-downloads" in caplog.text

    def test_existing_metrics_left_alone(self, config: PipelineConfig, write_metrics_file) -> None:
        path = write_metrics_file({"AB1": {"commuteMinutes": 40}})
        before = path.read_text()
        process_house_prices(config, today=TODAY)
        assert path.read_text() == before


class TestFailures:
    """Hard failures abort before anything is written."""

    def test_malformed_metrics_file(
        self, config: PipelineConfig, price_paid: Path, write_metrics_file
    ) -> None:
        path = write_metrics_file(["not", "a", "mapping"])
        with pytest.raises(MetricsFileError):
            process_house_prices(config, today=TODAY)
        assert json.loads(path.read_text()) == ["not", "a", "mapping"]

    def test_input_is_directory(self, tmp_path: Path) -> None:
        from school_finder.aggregate import RecordSourceError

        input_dir = tmp_path / "pp.csv"
        input_dir.mkdir()
        metrics_path = tmp_path / "m.json"
        with pytest.raises(RecordSourceError):
            aggregate_house_prices(input_dir, metrics_path, cutoff=TODAY)
        assert not metrics_path.exists()
