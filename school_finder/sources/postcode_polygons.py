"""UK postcode district polygons from the ``missinglink/uk-postcode-polygons`` repository.

The repository holds one GeoJSON FeatureCollection per postcode area
(``SW.geojson``, ``B.geojson``, ...), each containing one feature per
district.  The file listing comes from the GitHub contents API and the
files themselves from ``raw.githubusercontent.com``.

Data licence: CC BY-SA 3.0 (Wikipedia contributors).

Usage::

    with PostcodePolygonSource() as source:
        for area in source.list_areas():
            collection = source.fetch_area(area)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from school_finder.core.constants import (
    HTTP_USER_AGENT,
    POSTCODE_POLYGONS_API_URL,
    POSTCODE_POLYGONS_RAW_URL,
)
from school_finder.core.exceptions import TransientError

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger("school_finder.sources.postcode_polygons")

GEOJSON_SUFFIX = ".geojson"
DEFAULT_TIMEOUT_S = 30.0


class BoundarySourceError(TransientError):
    """Raised when the boundary listing or an area file cannot be fetched.

    Attributes:
        area: Postcode area being fetched (empty for the listing itself).
    """

    default_stage = "fetch_boundaries"
    default_code = "BOUNDARY_SOURCE_FAILED"

    def __init__(self, message: str, *, area: str = "") -> None:
        self.area = area
        super().__init__(message)


class PostcodePolygonSource:
    """HTTP client for the postcode polygon repository.

    Args:
        client: Optional pre-configured ``httpx.Client`` (e.g. with a mock
            transport).  When omitted, one is created and closed by
            ``close()`` / the context manager.
        api_url: GitHub contents API URL of the ``geojson`` directory.
        raw_base_url: Base URL the area files are downloaded from.
        timeout_s: Request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        api_url: str = POSTCODE_POLYGONS_API_URL,
        raw_base_url: str = POSTCODE_POLYGONS_RAW_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": HTTP_USER_AGENT},
        )
        self._api_url = api_url
        self._raw_base_url = raw_base_url.rstrip("/")

    def __enter__(self) -> PostcodePolygonSource:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this source created it."""
        if self._owns_client:
            self._client.close()

    def list_areas(self) -> list[str]:
        """Return the postcode area codes available, in listing order.

        Raises:
            BoundarySourceError: If the listing request fails or is not a
                JSON array of file entries.
        """
        logger.info("Fetching postcode area listing | url=%s", self._api_url)
        payload = self._get_json(self._api_url, area="")

        if not isinstance(payload, list):
            msg = f"Area listing must be a JSON array, got {type(payload).__name__}"
            raise BoundarySourceError(msg)

        areas = [
            str(entry["name"]).removesuffix(GEOJSON_SUFFIX)
            for entry in payload
            if isinstance(entry, dict) and str(entry.get("name", "")).endswith(GEOJSON_SUFFIX)
        ]
        logger.info("Postcode areas listed | count=%d", len(areas))
        return areas

    def fetch_area(self, area: str) -> dict[str, Any]:
        """Download the FeatureCollection for one postcode area.

        Raises:
            BoundarySourceError: If the request fails or the body is not a
                GeoJSON FeatureCollection.
        """
        url = f"{self._raw_base_url}/{area}{GEOJSON_SUFFIX}"
        payload = self._get_json(url, area=area)

        if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
            msg = f"Area {area} is not a GeoJSON FeatureCollection"
            raise BoundarySourceError(msg, area=area)
        return payload

    def _get_json(self, url: str, *, area: str) -> Any:
        try:
            response = self._client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            msg = f"HTTP {exc.response.status_code} fetching {url}"
            raise BoundarySourceError(msg, area=area) from exc
        except httpx.HTTPError as exc:
            msg = f"Request to {url} failed: {exc}"
            raise BoundarySourceError(msg, area=area) from exc
        except ValueError as exc:
            msg = f"Response from {url} is not valid JSON: {exc}"
            raise BoundarySourceError(msg, area=area) from exc
