"""Models for the external places provider payloads and outcomes."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from cafe_finder.domain.cafes import Cafe


class PlaceLatLng(BaseModel):
    """Provider lat/lng pair."""

    lat: float
    lng: float


class PlaceGeometry(BaseModel):
    """Provider geometry block."""

    location: PlaceLatLng | None = None


class PlaceOpeningHours(BaseModel):
    """Provider opening hours block."""

    open_now: bool | None = None


class PlacePhoto(BaseModel):
    """Provider photo reference."""

    photo_reference: str


class PlaceResult(BaseModel):
    """A single venue from a nearby search."""

    place_id: str
    name: str
    vicinity: str = ""
    types: list[str] = Field(default_factory=list)
    geometry: PlaceGeometry | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    price_level: int | None = Field(default=None, ge=0, le=4)
    opening_hours: PlaceOpeningHours | None = None
    photos: list[PlacePhoto] = Field(default_factory=list)


class NearbySearchResponse(BaseModel):
    """Top-level nearby search response."""

    status: str
    results: list[PlaceResult] = Field(default_factory=list)
    error_message: str | None = None
    next_page_token: str | None = None


@dataclass(frozen=True)
class PlacesFound:
    """Nearby search returned venues."""

    cafes: list[Cafe]


@dataclass(frozen=True)
class NoPlacesNearby:
    """Nearby search succeeded with zero venues."""

    message: str = "No cafes found nearby. Try a larger search radius."
    cafes: tuple[Cafe, ...] = ()


PlacesOutcome = PlacesFound | NoPlacesNearby
