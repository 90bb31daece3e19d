"""Tests for pipeline configuration.

Covers:
- Default values match the published data set settings
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
- Derived input/output paths
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from school_finder.core.config import ConfigValidationError, PipelineConfig


class TestPipelineConfigDefaults:
    """Verify default configuration values."""

    def test_default_directories(self) -> None:
        cfg = PipelineConfig()
        assert cfg.data_dir == "data"
        assert cfg.output_dir == "src/data"

    def test_default_simplification(self) -> None:
        cfg = PipelineConfig()
        assert cfg.simplify_tolerance_deg == 0.0005
        assert cfg.boundary_precision == 4

    def test_default_school_precision(self) -> None:
        cfg = PipelineConfig()
        assert cfg.school_precision == 6

    def test_default_recency(self) -> None:
        cfg = PipelineConfig()
        assert cfg.recency_years == 2

    def test_default_log_level(self) -> None:
        cfg = PipelineConfig()
        assert cfg.log_level == "INFO"
        assert cfg.log_level_value == logging.INFO


class TestPipelineConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "SCHOOL_FINDER_DATA_DIR": "/tmp/raw",
            "SCHOOL_FINDER_OUTPUT_DIR": "/tmp/out",
            "SIMPLIFY_TOLERANCE_DEG": "0.001",
            "BOUNDARY_PRECISION": "5",
            "SCHOOL_PRECISION": "5",
            "HOUSE_PRICE_RECENCY_YEARS": "3",
            "HTTP_TIMEOUT_S": "12.5",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = PipelineConfig.from_env()

        assert cfg.data_dir == "/tmp/raw"
        assert cfg.output_dir == "/tmp/out"
        assert cfg.simplify_tolerance_deg == 0.001
        assert cfg.boundary_precision == 5
        assert cfg.school_precision == 5
        assert cfg.recency_years == 3
        assert cfg.http_timeout_s == 12.5
        assert cfg.log_level == "DEBUG"

    def test_defaults_when_env_missing(self) -> None:
        """Missing environment variables fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = PipelineConfig.from_env()
        assert cfg == PipelineConfig()

    def test_unparseable_number(self) -> None:
        with (
            patch.dict(os.environ, {"BOUNDARY_PRECISION": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            PipelineConfig.from_env()

    def test_frozen_immutability(self) -> None:
        """PipelineConfig is frozen (immutable)."""
        cfg = PipelineConfig()
        with pytest.raises(AttributeError):
            cfg.recency_years = 5  # type: ignore[misc]


class TestPipelineConfigValidation:
    """Fail-fast range validation in from_env."""

    @pytest.mark.parametrize(
        ("key", "value", "match"),
        [
            ("SIMPLIFY_TOLERANCE_DEG", "-0.1", "finite number >= 0"),
            ("SIMPLIFY_TOLERANCE_DEG", "nan", "SIMPLIFY_TOLERANCE_DEG"),
            ("SIMPLIFY_TOLERANCE_DEG", "inf", "SIMPLIFY_TOLERANCE_DEG"),
            ("BOUNDARY_PRECISION", "-1", "BOUNDARY_PRECISION"),
            ("SCHOOL_PRECISION", "-2", "SCHOOL_PRECISION"),
            ("HOUSE_PRICE_RECENCY_YEARS", "-1", "HOUSE_PRICE_RECENCY_YEARS"),
            ("HTTP_TIMEOUT_S", "0", "must be > 0"),
            ("SCHOOL_FINDER_DATA_DIR", "", "must not be empty"),
            ("SCHOOL_FINDER_OUTPUT_DIR", "", "SCHOOL_FINDER_OUTPUT_DIR"),
            ("LOG_LEVEL", "verbose", "LOG_LEVEL"),
        ],
    )
    def test_out_of_range_rejected(self, key: str, value: str, match: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=True),
            pytest.raises(ConfigValidationError, match=match),
        ):
            PipelineConfig.from_env()

    def test_zero_tolerance_accepted(self) -> None:
        with patch.dict(os.environ, {"SIMPLIFY_TOLERANCE_DEG": "0"}, clear=True):
            cfg = PipelineConfig.from_env()
        assert cfg.simplify_tolerance_deg == 0.0

    def test_zero_recency_accepted(self) -> None:
        with patch.dict(os.environ, {"HOUSE_PRICE_RECENCY_YEARS": "0"}, clear=True):
            cfg = PipelineConfig.from_env()
        assert cfg.recency_years == 0

    def test_error_carries_key_and_value(self) -> None:
        with (
            patch.dict(os.environ, {"BOUNDARY_PRECISION": "-3"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            PipelineConfig.from_env()
        assert exc_info.value.key == "BOUNDARY_PRECISION"
        assert exc_info.value.value == -3


class TestDerivedPaths:
    """Input and output file locations."""

    def test_input_paths(self) -> None:
        cfg = PipelineConfig(data_dir="raw")
        assert cfg.price_paid_path == Path("raw/price-paid-data.csv")
        assert cfg.gias_raw_path == Path("raw/edubase_raw.csv")
        assert cfg.gias_path == Path("raw/edubase_utf8.csv")
        assert cfg.ofsted_path == Path("raw/ofsted_school_level.csv")

    def test_output_paths(self) -> None:
        cfg = PipelineConfig(output_dir="out")
        assert cfg.boundaries_path == Path("out/postcode-districts.json")
        assert cfg.metrics_path == Path("out/district-metrics.json")
        assert cfg.schools_path == Path("out/schools.json")
        assert cfg.schools_sample_path == Path("out/schools-sample.json")
