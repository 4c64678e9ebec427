"""Domain models for resolved user locations."""

import math
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, TypeAdapter


class LocationStatus(str, Enum):
    """Lifecycle of a location resolution."""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class LocationFailure(str, Enum):
    """Reasons a location could not be resolved."""

    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    LOOKUP_TRANSPORT_ERROR = "lookup_transport_error"
    LOOKUP_ZERO_RESULTS = "lookup_zero_results"

    @property
    def message(self) -> str:
        """User-facing description of the failure."""
        return _FAILURE_MESSAGES[self]

    @property
    def offers_manual_fallback(self) -> bool:
        """Whether the user should be steered to manual or preset entry."""
        return self in {LocationFailure.PERMISSION_DENIED, LocationFailure.UNSUPPORTED}


_FAILURE_MESSAGES = {
    LocationFailure.UNSUPPORTED: "Geolocation is not supported by this browser.",
    LocationFailure.PERMISSION_DENIED: (
        "Location access denied. Please enable location permissions "
        "or pick a location manually."
    ),
    LocationFailure.POSITION_UNAVAILABLE: "Location information is unavailable.",
    LocationFailure.TIMEOUT: "Location request timed out.",
    LocationFailure.LOOKUP_TRANSPORT_ERROR: (
        "Failed to search for location. Please try again."
    ),
    LocationFailure.LOOKUP_ZERO_RESULTS: (
        "Location not found. Please try a different search term."
    ),
}


@dataclass(frozen=True)
class Coordinate:
    """A resolved latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float
    label: str | None = None
    source: str = "sensor"

    def is_finite(self) -> bool:
        """Return True when both components are finite numbers."""
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)


@dataclass(frozen=True)
class SensorOptions:
    """Options for a device position request."""

    high_accuracy: bool
    timeout_seconds: float
    max_age_seconds: float


HIGH_ACCURACY = SensorOptions(
    high_accuracy=True, timeout_seconds=10.0, max_age_seconds=60.0
)
RELAXED_ACCURACY = SensorOptions(
    high_accuracy=False, timeout_seconds=20.0, max_age_seconds=300.0
)

PRESET_LOCATIONS: dict[str, Coordinate] = {
    "San Francisco": Coordinate(37.7749, -122.4194, "San Francisco", "preset"),
    "New York": Coordinate(40.7128, -74.0060, "New York", "preset"),
    "Los Angeles": Coordinate(34.0522, -118.2437, "Los Angeles", "preset"),
    "Chicago": Coordinate(41.8781, -87.6298, "Chicago", "preset"),
}


class GeocodeHit(BaseModel):
    """One geocoder search result; coordinates arrive as decimal strings."""

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    display_name: str | None = None


GEOCODE_HITS = TypeAdapter(list[GeocodeHit])
