"""Pipeline configuration loaded from environment variables.

All configuration values have sensible defaults matching the published
School Finder data set (0.0005° simplification tolerance, 4 decimal places
for boundaries, 6 for school locations, two years of house sales).

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range, before any stage touches its input.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path

from school_finder.core.constants import (
    BOUNDARIES_FILENAME,
    GIAS_FILENAME,
    GIAS_RAW_FILENAME,
    METRICS_FILENAME,
    OFSTED_FILENAME,
    PRICE_PAID_FILENAME,
    SCHOOLS_FILENAME,
    SCHOOLS_SAMPLE_FILENAME,
)
from school_finder.core.exceptions import ValidationError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable pipeline configuration.

    Loaded once by the CLI and threaded through every stage.

    Attributes:
        data_dir: Directory holding raw downloaded inputs.
        output_dir: Directory receiving derived artifacts.
        simplify_tolerance_deg: Boundary simplification tolerance in degrees
            (0.0005° is roughly 50 m).
        boundary_precision: Decimal places kept in boundary coordinates.
        school_precision: Decimal places kept in school lat/lng.
        recency_years: Only house sales newer than this many years count.
        http_timeout_s: Timeout for remote source requests in seconds.
        log_level: Root logging level name.
    """

    data_dir: str = "data"
    output_dir: str = "src/data"
    simplify_tolerance_deg: float = 0.0005
    boundary_precision: int = 4
    school_precision: int = 6
    recency_years: int = 2
    http_timeout_s: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``BOUNDARY_PRECISION=abc``).
        """
        config = cls(
            data_dir=os.getenv("SCHOOL_FINDER_DATA_DIR", "data"),
            output_dir=os.getenv("SCHOOL_FINDER_OUTPUT_DIR", "src/data"),
            simplify_tolerance_deg=float(os.getenv("SIMPLIFY_TOLERANCE_DEG", "0.0005")),
            boundary_precision=int(os.getenv("BOUNDARY_PRECISION", "4")),
            school_precision=int(os.getenv("SCHOOL_PRECISION", "6")),
            recency_years=int(os.getenv("HOUSE_PRICE_RECENCY_YEARS", "2")),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
        _validate(config)
        return config

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def price_paid_path(self) -> Path:
        return Path(self.data_dir) / PRICE_PAID_FILENAME

    @property
    def gias_raw_path(self) -> Path:
        return Path(self.data_dir) / GIAS_RAW_FILENAME

    @property
    def gias_path(self) -> Path:
        return Path(self.data_dir) / GIAS_FILENAME

    @property
    def ofsted_path(self) -> Path:
        return Path(self.data_dir) / OFSTED_FILENAME

    @property
    def boundaries_path(self) -> Path:
        return Path(self.output_dir) / BOUNDARIES_FILENAME

    @property
    def metrics_path(self) -> Path:
        return Path(self.output_dir) / METRICS_FILENAME

    @property
    def schools_path(self) -> Path:
        return Path(self.output_dir) / SCHOOLS_FILENAME

    @property
    def schools_sample_path(self) -> Path:
        return Path(self.output_dir) / SCHOOLS_SAMPLE_FILENAME

    @property
    def log_level_value(self) -> int:
        """Numeric ``logging`` level for ``log_level``."""
        return logging.getLevelName(self.log_level)  # type: ignore[no-any-return]


def _validate(config: PipelineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not math.isfinite(config.simplify_tolerance_deg) or config.simplify_tolerance_deg < 0:
        raise ConfigValidationError(
            "SIMPLIFY_TOLERANCE_DEG",
            config.simplify_tolerance_deg,
            "must be a finite number >= 0 (degrees)",
        )

    if config.boundary_precision < 0:
        raise ConfigValidationError(
            "BOUNDARY_PRECISION",
            config.boundary_precision,
            "must be >= 0 (decimal places)",
        )

    if config.school_precision < 0:
        raise ConfigValidationError(
            "SCHOOL_PRECISION",
            config.school_precision,
            "must be >= 0 (decimal places)",
        )

    if config.recency_years < 0:
        raise ConfigValidationError(
            "HOUSE_PRICE_RECENCY_YEARS",
            config.recency_years,
            "must be >= 0 (years)",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.data_dir:
        raise ConfigValidationError(
            "SCHOOL_FINDER_DATA_DIR",
            config.data_dir,
            "must not be empty",
        )

    if not config.output_dir:
        raise ConfigValidationError(
            "SCHOOL_FINDER_OUTPUT_DIR",
            config.output_dir,
            "must not be empty",
        )

    if config.log_level not in _LOG_LEVELS:
        raise ConfigValidationError(
            "LOG_LEVEL",
            config.log_level,
            f"must be one of {', '.join(sorted(_LOG_LEVELS))}",
        )
