"""Shared pipeline constants.

Centralises file names, source URLs, metric keys and geographic bounds
that are shared between stages, sources and the CLI.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input files (under ``PipelineConfig.data_dir``)
# ---------------------------------------------------------------------------

PRICE_PAID_FILENAME: str = "price-paid-data.csv"
"""HM Land Registry Price Paid data, complete single-file CSV (no header)."""

GIAS_RAW_FILENAME: str = "edubase_raw.csv"
"""Get Information About Schools establishment export, as published (ISO-8859-1)."""

GIAS_FILENAME: str = "edubase_utf8.csv"
"""The GIAS export re-encoded as UTF-8."""

GIAS_SOURCE_ENCODING: str = "iso-8859-1"

OFSTED_FILENAME: str = "ofsted_school_level.csv"
"""Ofsted school-level inspection outcomes."""

# ---------------------------------------------------------------------------
# Output artifacts (under ``PipelineConfig.output_dir``)
# ---------------------------------------------------------------------------

BOUNDARIES_FILENAME: str = "postcode-districts.json"
METRICS_FILENAME: str = "district-metrics.json"
SCHOOLS_FILENAME: str = "schools.json"
SCHOOLS_SAMPLE_FILENAME: str = "schools-sample.json"

SCHOOLS_SAMPLE_SIZE: int = 1000

# ---------------------------------------------------------------------------
# Metric keys in ``district-metrics.json``
# ---------------------------------------------------------------------------

MEDIAN_PRICE_KEY: str = "medianPrice"
COMMUTE_MINUTES_KEY: str = "commuteMinutes"

# ---------------------------------------------------------------------------
# Remote sources
# ---------------------------------------------------------------------------

POSTCODE_POLYGONS_API_URL: str = (
    "https://api.github.com/repos/missinglink/uk-postcode-polygons/contents/geojson"
)
POSTCODE_POLYGONS_RAW_URL: str = (
    "https://raw.githubusercontent.com/missinglink/uk-postcode-polygons/master/geojson"
)
HTTP_USER_AGENT: str = "school-finder-uk"

GIAS_URL_TEMPLATE: str = (
    "http://ea-edubase-api-prod.azurewebsites.net/edubase/edubasealldata{date}.csv"
)
OFSTED_URL: str = (
    "https://explore-education-statistics.service.gov.uk/data-catalogue/data-set/"
    "c0c08e6d-c3ef-4408-8193-dcc493b7fa59/csv"
)
PRICE_PAID_URL: str = (
    "http://prod.publicdata.landregistry.gov.uk.s3-website-eu-west-1.amazonaws.com/"
    "pp-complete.csv"
)
PRICE_PAID_INFO_URL: str = (
    "https://www.gov.uk/government/statistical-data-sets/price-paid-data-downloads"
)

# ---------------------------------------------------------------------------
# Coordinate reference systems and bounds
# ---------------------------------------------------------------------------

BRITISH_NATIONAL_GRID: str = "EPSG:27700"
WGS84: str = "EPSG:4326"

MAX_EASTING_M: float = 700_000.0
MAX_NORTHING_M: float = 1_300_000.0

ENGLAND_MIN_LAT: float = 49.8
ENGLAND_MAX_LAT: float = 55.9
ENGLAND_MIN_LNG: float = -6.5
ENGLAND_MAX_LNG: float = 2.0
