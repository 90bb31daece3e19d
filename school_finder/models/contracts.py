"""Canonical shapes of the JSON artifacts exchanged between stages.

Every artifact the pipeline reads or writes is defined here as a
``TypedDict`` so field names have a single source of truth.  The boundary
and schools files are consumed by the map front end, so these names are
also its contract.
"""

from __future__ import annotations

from typing import Any, TypedDict

# ---------------------------------------------------------------------------
# GeoJSON (postcode-districts.json)
# ---------------------------------------------------------------------------


class GeometryDict(TypedDict):
    """A GeoJSON geometry; ``coordinates`` nest 3 deep (Polygon) or 4 (MultiPolygon)."""

    type: str
    coordinates: list[Any]


class DistrictProperties(TypedDict):
    """Normalised properties of a district feature."""

    district: str


class FeatureDict(TypedDict):
    """A GeoJSON Feature."""

    type: str
    properties: dict[str, Any]
    geometry: GeometryDict | None


class FeatureCollectionDict(TypedDict):
    """A GeoJSON FeatureCollection."""

    type: str
    features: list[FeatureDict]


# ---------------------------------------------------------------------------
# schools.json
# ---------------------------------------------------------------------------


class SchoolPayload(TypedDict):
    """Serialised ``School`` as read by the map front end."""

    urn: str
    name: str
    type: str
    phase: str
    funding: str
    admissions: str
    status: str
    lat: float
    lng: float
    address: str
    postcode: str
    ofsted: str
