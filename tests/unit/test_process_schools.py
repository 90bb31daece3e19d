"""Tests for the schools stage.

Covers:
- Candidate filtering (status, phase, independent schools by age)
- Category normalisation (type, funding, admissions, Ofsted)
- British National Grid → WGS 84 reprojection and England bounds
- schools.json / schools-sample.json outputs and skip counters
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from school_finder.core.config import PipelineConfig
from school_finder.core.exceptions import StageInputError
from school_finder.stages.process_schools import (
    build_address,
    derive_phase,
    funding_type,
    grid_to_wgs84,
    is_candidate,
    normalise_admissions,
    normalise_ofsted,
    normalise_school_type,
    process_schools,
    reproject,
)

GIAS_COLUMNS = [
    "URN",
    "EstablishmentName",
    "TypeOfEstablishment (name)",
    "EstablishmentTypeGroup (name)",
    "EstablishmentStatus (name)",
    "PhaseOfEducation (name)",
    "AdmissionsPolicy (name)",
    "StatutoryLowAge",
    "StatutoryHighAge",
    "Easting",
    "Northing",
    "Street",
    "Locality",
    "Address3",
    "Town",
    "County (name)",
    "Postcode",
]


def gias_row(**overrides: str) -> dict[str, str]:
    row = {
        "URN": "100000",
        "EstablishmentName": "Sir John Cass's Foundation Primary School",
        "TypeOfEstablishment (name)": "Voluntary aided school",
        "EstablishmentTypeGroup (name)": "Local authority maintained schools",
        "EstablishmentStatus (name)": "Open",
        "PhaseOfEducation (name)": "Primary",
        "AdmissionsPolicy (name)": "Not applicable",
        "StatutoryLowAge": "3",
        "StatutoryHighAge": "11",
        "Easting": "533498",
        "Northing": "181201",
        "Street": "St James's Passage",
        "Locality": "Duke's Place",
        "Address3": "",
        "Town": "London",
        "County (name)": "",
        "Postcode": "EC3A 5DE",
    }
    row.update(overrides)
    return row


def write_gias(config: PipelineConfig, rows: list[dict[str, str]]) -> Path:
    path = config.gias_path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=GIAS_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
    return path


def write_ofsted(config: PipelineConfig, ratings: dict[str, str]) -> Path:
    path = config.ofsted_path
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["school_urn,school_name,ofsted_overall_effectiveness"]
    lines += [f"{urn},Some School,{rating}" for urn, rating in ratings.items()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8-sig")
    return path


class TestDerivePhase:
    """Primary/Secondary from phase or age range."""

    @pytest.mark.parametrize(
        ("low", "high", "phase", "expected"),
        [
            ("4", "18", "Primary", "Primary"),
            ("4", "11", "Secondary", "Secondary"),
            ("3", "11", "Not applicable", "Primary"),
            ("11", "18", "Not applicable", "Secondary"),
            ("4", "18", "All-through", "Primary"),
            ("7", "16", "", "Primary"),
            ("8", "16", "", "Secondary"),
            ("", "16", "", None),
            ("4", "n/a", "", None),
            ("4.5", "10", "", "Primary"),
        ],
    )
    def test_derive(self, low: str, high: str, phase: str, expected: str | None) -> None:
        assert derive_phase(low, high, phase) == expected


class TestIsCandidate:
    """Open schools with a usable phase."""

    def test_open_primary(self) -> None:
        assert is_candidate(gias_row()) is True

    def test_proposed_to_close_still_open(self) -> None:
        assert is_candidate(gias_row(**{"EstablishmentStatus (name)": "Open, but proposed to close"})) is True

    def test_closed(self) -> None:
        assert is_candidate(gias_row(**{"EstablishmentStatus (name)": "Closed"})) is False

    def test_nursery_phase(self) -> None:
        assert is_candidate(gias_row(**{"PhaseOfEducation (name)": "Nursery"})) is False

    def test_independent_with_ages(self) -> None:
        row = gias_row(
            **{
                "PhaseOfEducation (name)": "Not applicable",
                "EstablishmentTypeGroup (name)": "Independent schools",
                "StatutoryLowAge": "11",
                "StatutoryHighAge": "18",
            }
        )
        assert is_candidate(row) is True

    def test_independent_without_ages(self) -> None:
        row = gias_row(
            **{
                "PhaseOfEducation (name)": "Not applicable",
                "EstablishmentTypeGroup (name)": "Independent schools",
                "StatutoryLowAge": "",
            }
        )
        assert is_candidate(row) is False


class TestNormalisation:
    """Category vocabularies."""

    @pytest.mark.parametrize(
        ("establishment_type", "group", "expected"),
        [
            ("Academy converter", "Academies", "Academy"),
            ("Academy alternative provision sponsor led", "Academies", "Academy"),
            ("Community school", "Local authority maintained schools", "Community School"),
            ("Foundation school", "", "Foundation School"),
            ("Voluntary controlled school", "", "Voluntary Controlled"),
            ("Studio schools", "Free Schools", "Free School"),
            ("University technical college", "Free Schools", "Free School"),
            ("Other independent school", "Independent schools", "Independent"),
            ("Pupil referral unit", "", "Other"),
        ],
    )
    def test_school_type(self, establishment_type: str, group: str, expected: str) -> None:
        assert normalise_school_type(establishment_type, group) == expected

    def test_funding(self) -> None:
        assert funding_type("Independent schools") == "Independent"
        assert funding_type("Academies") == "State"

    @pytest.mark.parametrize(
        ("policy", "expected"),
        [("Selective", "Selective"), ("Non-selective", "Non-selective"), ("Not collected", "Not applicable"), ("", "Not applicable")],
    )
    def test_admissions(self, policy: str, expected: str) -> None:
        assert normalise_admissions(policy) == expected

    @pytest.mark.parametrize(
        ("rating", "expected"),
        [
            ("Outstanding", "Outstanding"),
            ("Good", "Good"),
            ("Requires improvement", "Requires Improvement"),
            ("Requires Improvement", "Requires Improvement"),
            ("Serious Weaknesses", "Inadequate"),
            ("Special Measures", "Inadequate"),
            ("Inadequate", "Inadequate"),
            ("", "Not yet inspected"),
            ("NULL", "Not yet inspected"),
        ],
    )
    def test_ofsted(self, rating: str, expected: str) -> None:
        assert normalise_ofsted(rating) == expected

    def test_address_skips_blank_lines(self) -> None:
        row = gias_row(Locality="  ", Address3="", Town="London", **{"County (name)": "Greater London"})
        assert build_address(row) == "St James's Passage, London, Greater London"


class TestReproject:
    """Grid references to WGS 84."""

    def test_central_london(self) -> None:
        position = reproject(533498.0, 181201.0, grid_to_wgs84())
        assert position is not None
        lng, lat = position
        assert lat == pytest.approx(51.514, abs=0.01)
        assert lng == pytest.approx(-0.077, abs=0.01)

    @pytest.mark.parametrize(
        ("easting", "northing"),
        [(-1.0, 181201.0), (700001.0, 181201.0), (533498.0, 1300001.0)],
    )
    def test_grid_out_of_range(self, easting: float, northing: float) -> None:
        assert reproject(easting, northing, grid_to_wgs84()) is None

    def test_outside_england_bounds(self) -> None:
        # Edinburgh is north of 55.9°
        assert reproject(325000.0, 673500.0, grid_to_wgs84()) is None


class TestProcessSchools:
    """Full stage runs."""

    def test_writes_schools(self, config: PipelineConfig) -> None:
        write_gias(config, [gias_row()])
        write_ofsted(config, {"100000": "Good"})

        report = process_schools(config)

        schools = json.loads(config.schools_path.read_text(encoding="utf-8"))
        assert len(schools) == 1
        school = schools[0]
        assert school["urn"] == "100000"
        assert school["type"] == "Voluntary Aided"
        assert school["phase"] == "Primary"
        assert school["funding"] == "State"
        assert school["ofsted"] == "Good"
        assert school["address"] == "St James's Passage, Duke's Place, London"
        assert school["lat"] == round(school["lat"], 6)
        assert report.processed == 1
        assert report.ofsted_records == 1

    def test_skip_counters(self, config: PipelineConfig) -> None:
        write_gias(
            config,
            [
                gias_row(URN="1"),
                gias_row(URN="2", Easting="", Northing=""),
                gias_row(URN="3", Easting="800000"),
                gias_row(URN="4", Easting="325000", Northing="673500"),
                gias_row(URN="5", **{"EstablishmentStatus (name)": "Closed"}),
            ],
        )
        report = process_schools(config)
        assert report.total_records == 5
        assert report.filtered == 4
        assert report.processed == 1
        assert report.skipped_no_coords == 1
        assert report.skipped_invalid_coords == 2

    def test_missing_ofsted_means_not_inspected(self, config: PipelineConfig) -> None:
        write_gias(config, [gias_row()])
        report = process_schools(config)
        schools = json.loads(config.schools_path.read_text())
        assert schools[0]["ofsted"] == "Not yet inspected"
        assert report.ofsted_records == 0

    def test_sample_is_first_thousand(self, config: PipelineConfig) -> None:
        write_gias(config, [gias_row(URN=str(i)) for i in range(3)])
        with patch("school_finder.stages.process_schools.SCHOOLS_SAMPLE_SIZE", 2):
            process_schools(config)
        sample_text = config.schools_sample_path.read_text()
        assert [s["urn"] for s in json.loads(sample_text)] == ["0", "1"]
        assert "\n  " in sample_text

    def test_statistics(self, config: PipelineConfig) -> None:
        write_gias(
            config,
            [
                gias_row(URN="1"),
                gias_row(URN="2", **{"PhaseOfEducation (name)": "Secondary", "AdmissionsPolicy (name)": "Selective"}),
            ],
        )
        report = process_schools(config)
        assert report.statistics["phase"] == {"Primary": 1, "Secondary": 1}
        assert report.statistics["admissions"] == {"Not applicable": 1, "Selective": 1}
        assert report.statistics["ofsted"] == {"Not yet inspected": 2}

    def test_missing_gias(self, config: PipelineConfig) -> None:
        with pytest.raises(StageInputError, match="Schools input not found") as exc_info:
            process_schools(config)
        assert exc_info.value.stage == "process_schools"
        assert not config.schools_path.exists()
