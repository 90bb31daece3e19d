"""Shared pytest fixtures for the School Finder data pipeline test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from school_finder.core.config import PipelineConfig

# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config(tmp_path: Path) -> PipelineConfig:
    """Config rooted in a per-test temp directory."""
    return PipelineConfig(
        data_dir=str(tmp_path / "data"),
        output_dir=str(tmp_path / "out"),
    )


# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def square_ring() -> list[list[float]]:
    """Closed unit-ish square with a redundant mid-edge point."""
    return [[0.0, 0.0], [0.5, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.0, 0.0]]


@pytest.fixture()
def district_feature(square_ring: list[list[float]]) -> dict:
    """One source-shaped district feature (``name`` property)."""
    return {
        "type": "Feature",
        "properties": {"name": "AB1", "description": "from source"},
        "geometry": {"type": "Polygon", "coordinates": [square_ring]},
    }


@pytest.fixture()
def write_boundaries(config: PipelineConfig):
    """Write a boundaries FeatureCollection to the config's output path."""

    def _write(features: list[dict]) -> Path:
        path = config.boundaries_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
        return path

    return _write


@pytest.fixture()
def write_metrics_file(config: PipelineConfig):
    """Write a raw metrics JSON object to the config's metrics path."""

    def _write(payload: object) -> Path:
        path = config.metrics_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload))
        return path

    return _write
