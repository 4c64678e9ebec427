"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cafe_finder.domain.cafes import CafeFilters, CrowdLevel, PriceTier
from cafe_finder.domain.location import LocationFailure

BudgetName = Literal["low", "medium", "high", "premium"]


class CafeOut(BaseModel):
    """Cafe as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: str
    description: str
    latitude: float | None
    longitude: float | None
    price_range: PriceTier
    rating: float | None
    review_count: int
    crowd_level: CrowdLevel | None
    is_open: bool
    atmosphere: list[str]
    specialties: list[str]
    amenities: list[str]
    image_url: str | None
    phone: str | None
    website: str | None
    wifi_speed: str | None
    mood_classification: str | None
    source: str
    distance_km: float | None


class MenuItemOut(BaseModel):
    """Menu item as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    price: float | None
    description: str | None


class ReviewIn(BaseModel):
    """New review payload."""

    rating: int = Field(ge=1, le=5)
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=5000)


class ReviewOut(BaseModel):
    """Review as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    cafe_id: str
    rating: int
    title: str | None
    content: str | None
    created_at: datetime


class FiltersIn(BaseModel):
    """Filter set sent by the client."""

    search_query: str | None = None
    location: str | None = None
    moods: list[str] = Field(default_factory=list)
    budget: BudgetName | None = None
    max_distance_km: float | None = Field(default=None, ge=0)
    require_distance: bool = False

    def to_filters(self) -> CafeFilters:
        """Convert into the domain filter set."""
        return CafeFilters(
            search_query=self.search_query or None,
            location=self.location or None,
            moods=frozenset(mood for mood in self.moods if mood),
            budget=self.budget,
            max_distance_km=self.max_distance_km,
            require_distance=self.require_distance,
        )


class PresetIn(BaseModel):
    """Preset location selection."""

    name: str


class GeocodeIn(BaseModel):
    """Free-text location to geocode."""

    query: str = Field(min_length=1, max_length=300)


class PositionReadingIn(BaseModel):
    """A geolocation callback result forwarded by the client."""

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    error: (
        Literal["permission_denied", "position_unavailable", "timeout"] | None
    ) = None


class TrackingIn(BaseModel):
    """Start or stop continuous tracking."""

    enabled: bool


class NearbyIn(BaseModel):
    """Nearby places search around a coordinate."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_m: int | None = Field(default=None, gt=0, le=50000)


class NearbyRefreshIn(BaseModel):
    """Nearby places search around the session location."""

    radius_m: int | None = Field(default=None, gt=0, le=50000)


class CoordinateOut(BaseModel):
    """Resolved coordinate."""

    model_config = ConfigDict(from_attributes=True)

    latitude: float
    longitude: float
    label: str | None
    source: str


class LocationOut(BaseModel):
    """Location state of a session."""

    status: str
    coordinate: CoordinateOut | None
    tracking: bool
    failure: LocationFailure | None = None
    message: str | None = None
    offers_manual_fallback: bool = False
    presets: list[str] = Field(default_factory=list)


class ResultsOut(BaseModel):
    """Session result list with loading and error flags."""

    cafes: list[CafeOut]
    loading: bool
    error: str | None
    message: str | None = None
