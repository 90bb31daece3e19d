"""Data model for a geocoded school.

A School is one open primary or secondary establishment from the GIAS
export, with normalised categories for the map filters and a WGS 84
position reprojected from its British National Grid easting/northing.
"""

from __future__ import annotations

from dataclasses import dataclass

from school_finder.models.contracts import SchoolPayload


@dataclass(frozen=True, slots=True)
class School:
    """A single school as shown on the map.

    Attributes:
        urn: Unique Reference Number from GIAS.
        name: Establishment name.
        type: Normalised establishment type (e.g. ``"Academy"``).
        phase: ``"Primary"`` or ``"Secondary"``.
        funding: ``"State"`` or ``"Independent"``.
        admissions: ``"Selective"``, ``"Non-selective"`` or ``"Not applicable"``.
        status: GIAS establishment status text.
        lat: WGS 84 latitude in degrees.
        lng: WGS 84 longitude in degrees.
        address: Comma-joined non-empty address lines.
        postcode: Postcode as published.
        ofsted: Normalised overall effectiveness rating.
    """

    urn: str
    name: str
    type: str
    phase: str
    funding: str
    admissions: str
    status: str
    lat: float
    lng: float
    address: str = ""
    postcode: str = ""
    ofsted: str = "Not yet inspected"

    def to_dict(self) -> SchoolPayload:
        """Serialise to the ``schools.json`` record shape."""
        return {
            "urn": self.urn,
            "name": self.name,
            "type": self.type,
            "phase": self.phase,
            "funding": self.funding,
            "admissions": self.admissions,
            "status": self.status,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
            "postcode": self.postcode,
            "ofsted": self.ofsted,
        }
