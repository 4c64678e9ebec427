"""Nearby venue search through the external places provider."""

import logging
import math
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from cafe_finder.adapters.google_places_client import PlacesClient
from cafe_finder.domain.cafes import SOURCE_GOOGLE_PLACES, Cafe, CrowdLevel, PriceTier
from cafe_finder.domain.location import Coordinate
from cafe_finder.domain.places import (
    NearbySearchResponse,
    NoPlacesNearby,
    PlaceResult,
    PlacesFound,
    PlacesOutcome,
)
from cafe_finder.errors import PlacesProviderError, PlacesTransportError
from cafe_finder.services.geo import distance_to_cafe

PLACEHOLDER_IMAGE_URL = "/api/placeholder/400/300"

_logger = logging.getLogger(__name__)


@dataclass
class NearbyPlacesService:
    """Fetches nearby cafes from the places provider as cafe records.

    Provider ids are not stable between calls, so results are returned as
    their own list and never merged with database cafes.
    """

    client: PlacesClient
    default_radius_m: int = 5000
    place_type: str = "cafe"

    async def search_nearby(
        self, origin: Coordinate | None, radius_m: int | None = None
    ) -> PlacesOutcome:
        """Search around the origin; zero results is a successful outcome."""
        if origin is None or not origin.is_finite():
            raise ValueError("Latitude and longitude are required")
        radius = radius_m if radius_m is not None else self.default_radius_m
        if radius <= 0:
            raise ValueError("Search radius must be positive")

        try:
            raw = await self.client.nearby_search(
                origin.latitude, origin.longitude, radius, self.place_type
            )
        except httpx.HTTPError as exc:
            _logger.warning("Places search failed: %s", exc)
            raise PlacesTransportError from exc

        try:
            payload = NearbySearchResponse.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Places payload failed validation: %s", exc)
            raise PlacesProviderError("INVALID_PAYLOAD") from exc

        if payload.status == "ZERO_RESULTS":
            return NoPlacesNearby()
        if payload.status != "OK":
            raise PlacesProviderError(payload.status, payload.error_message)

        cafes = []
        for place in payload.results:
            cafe = self._to_cafe(place)
            if cafe is not None:
                cafes.append(cafe.with_distance(distance_to_cafe(origin, cafe)))
        if not cafes:
            return NoPlacesNearby()
        cafes.sort(
            key=lambda cafe: (
                math.inf if cafe.distance_km is None else cafe.distance_km
            )
        )
        return PlacesFound(cafes=cafes)

    def _to_cafe(self, place: PlaceResult) -> Cafe | None:
        """Map a provider venue into a cafe record with explicit defaults."""
        location = place.geometry.location if place.geometry else None
        if location is None:
            _logger.debug("Skipping place without geometry: %s", place.place_id)
            return None
        image_url = (
            self.client.photo_url(place.photos[0].photo_reference)
            if place.photos
            else PLACEHOLDER_IMAGE_URL
        )
        is_open = True
        if place.opening_hours and place.opening_hours.open_now is not None:
            is_open = place.opening_hours.open_now
        return Cafe(
            id=place.place_id,
            name=place.name,
            description=f"{', '.join(place.types)} in {place.vicinity}",
            address=place.vicinity,
            latitude=location.lat,
            longitude=location.lng,
            rating=place.rating,
            review_count=place.user_ratings_total or 0,
            price_range=PriceTier.from_level(place.price_level),
            is_open=is_open,
            image_url=image_url,
            atmosphere=("Google Places",),
            amenities=("WiFi",),
            specialties=("Coffee",),
            wifi_speed="Good WiFi",
            crowd_level=CrowdLevel.MEDIUM,
            source=SOURCE_GOOGLE_PLACES,
        )
