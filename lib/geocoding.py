# =============================================================================
# lib/geocoding.py - Mapbox Geocoding Client
# =============================================================================
# Thin client for the Mapbox Geocoding v5 API.
#
# Normalizes Mapbox "features" into a flat address record:
#   {address, city, zip_code, lat, lng}
#
# Usage:
#   client = MapboxGeocoder(token=settings.MAPBOX_TOKEN)
#   result = client.reverse(12.93, 100.88)
#   matches = client.search("Jomtien Beach Road")
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

MAPBOX_BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"


class GeocodingError(Exception):
    """Raised when the geocoding provider cannot be reached or answers badly."""


@dataclass(frozen=True)
class GeocodingResult:
    """A normalized geocoding match."""
    address: str
    city: str
    zip_code: str
    lat: float
    lng: float


def _context_text(context: list[dict[str, Any]], *prefixes: str) -> str:
    """Return the text of the first context entry whose id starts with a prefix."""
    for prefix in prefixes:
        for entry in context:
            if str(entry.get("id", "")).startswith(prefix):
                return entry.get("text", "")
    return ""


def parse_feature(feature: dict[str, Any]) -> GeocodingResult:
    """Convert one Mapbox feature into a GeocodingResult."""
    context = feature.get("context") or []
    lng, lat = feature.get("center", [0.0, 0.0])
    return GeocodingResult(
        address=feature.get("place_name", ""),
        city=_context_text(context, "place", "district"),
        zip_code=_context_text(context, "postcode"),
        lat=float(lat),
        lng=float(lng),
    )


class MapboxGeocoder:
    """
    Forward and reverse geocoding against Mapbox.

    Args:
        token: Mapbox access token
        country: ISO country filter for forward search
        http_client: Optional httpx.Client (injected in tests)
    """

    def __init__(
        self,
        token: str,
        country: str = "th",
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self.country = country
        self._http = http_client or httpx.Client(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    def _get(self, query: str, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{MAPBOX_BASE_URL}/{quote(query)}.json"
        try:
            response = self._http.get(url, params={"access_token": self.token, **params})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Mapbox request failed: {type(e).__name__}")
            raise GeocodingError("Geocoding provider unavailable") from e

        return response.json().get("features") or []

    def reverse(self, lat: float, lng: float) -> GeocodingResult | None:
        """Resolve coordinates to the nearest address, or None if nothing matches."""
        if not self.enabled:
            return None

        features = self._get(f"{lng},{lat}", {"types": "address,poi"})
        if not features:
            return None

        result = parse_feature(features[0])
        # Keep the caller's coordinates rather than the feature centre
        return GeocodingResult(
            address=result.address,
            city=result.city,
            zip_code=result.zip_code,
            lat=lat,
            lng=lng,
        )

    def search(self, query: str) -> list[GeocodingResult]:
        """Free-text address search."""
        if not self.enabled or not query:
            return []

        return [parse_feature(f) for f in self._get(query, {"country": self.country})]
