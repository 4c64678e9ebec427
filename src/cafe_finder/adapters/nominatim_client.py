"""OpenStreetMap Nominatim geocoding client."""

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from cafe_finder.domain.location import GEOCODE_HITS, Coordinate
from cafe_finder.services.location import Geocoder


@dataclass
class NominatimGeocoder(Geocoder):
    """HTTPX-backed geocoder using the Nominatim search endpoint."""

    base_url: str
    user_agent: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, user_agent: str) -> "NominatimGeocoder":
        """Create a geocoder with a managed httpx session."""
        return cls(
            base_url=base_url,
            user_agent=user_agent,
            http_client=httpx.AsyncClient(),
        )

    async def search(self, query: str, limit: int = 1) -> list[Coordinate]:
        """Return coordinates for a free-text query, best match first.

        Malformed payloads raise ``httpx.DecodingError`` so callers treat them
        like any other transport failure.
        """
        response = await self.http_client.get(
            f"{self.base_url}/search",
            params={"q": query, "format": "json", "limit": limit},
            headers={"User-Agent": self.user_agent},
            timeout=10,
        )
        response.raise_for_status()
        try:
            hits = GEOCODE_HITS.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise httpx.DecodingError(
                f"Geocoder returned an unexpected payload: {exc}",
                request=response.request,
            ) from exc
        return [
            Coordinate(
                latitude=hit.lat,
                longitude=hit.lon,
                label=hit.display_name,
                source="geocoder",
            )
            for hit in hits
        ]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
