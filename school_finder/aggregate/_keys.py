"""Group key derivation for aggregated records."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s")


def postcode_district(raw: str) -> str | None:
    """Return the outward code of a UK postcode, or ``None`` if malformed.

    ``"SW1A 1AA" -> "SW1A"``, ``"b1 1aa" -> "B1"``.  A postcode with no
    whitespace separating outward and inward codes cannot be split and is
    rejected.
    """
    normalised = raw.strip().upper()
    match = _WHITESPACE_RE.search(normalised)
    if match is None:
        return None
    district = normalised[: match.start()]
    return district or None
