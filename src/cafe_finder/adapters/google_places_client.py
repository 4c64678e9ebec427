"""Google Places nearby-search client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class PlacesClient(Protocol):
    """Interface for the external places provider."""

    async def nearby_search(
        self, latitude: float, longitude: float, radius_m: int, place_type: str
    ) -> dict[str, object]:
        """Return the raw nearby search payload."""

    def photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        """Return a URL that serves a place photo."""


@dataclass
class HttpxGooglePlacesClient(PlacesClient):
    """HTTPX-backed Google Places client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxGooglePlacesClient":
        """Create a places client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def nearby_search(
        self, latitude: float, longitude: float, radius_m: int, place_type: str
    ) -> dict[str, object]:
        """Search venues of a type around a coordinate."""
        response = await self.http_client.get(
            f"{self.base_url}/nearbysearch/json",
            params={
                "location": f"{latitude},{longitude}",
                "radius": radius_m,
                "type": place_type,
                "key": self.api_key,
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    def photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        """Build a photo URL for a photo reference."""
        params = httpx.QueryParams(
            maxwidth=max_width, photoreference=photo_reference, key=self.api_key
        )
        return f"{self.base_url}/photo?{params}"

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
