"""Domain models for cafes and search filters."""

from dataclasses import dataclass, field, replace
from enum import Enum


class PriceTier(str, Enum):
    """Ordinal price levels shown as dollar symbols."""

    LOW = "$"
    MEDIUM = "$$"
    HIGH = "$$$"
    PREMIUM = "$$$$"

    @classmethod
    def from_level(cls, level: int | None) -> "PriceTier":
        """Map a provider price level (0-4) onto a tier, defaulting to `$$`."""
        if not level or level <= 0:
            return cls.MEDIUM
        return cls("$" * min(level, 4))


class CrowdLevel(str, Enum):
    """Occupancy estimate for a venue."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


BUDGET_TIERS: dict[str, PriceTier] = {
    "low": PriceTier.LOW,
    "medium": PriceTier.MEDIUM,
    "high": PriceTier.HIGH,
    "premium": PriceTier.PREMIUM,
}

SOURCE_INTERNAL = "internal"
SOURCE_GOOGLE_PLACES = "google_places"


@dataclass(frozen=True)
class Cafe:
    """A single venue, either from the database or a places provider."""

    id: str
    name: str
    address: str
    latitude: float | None
    longitude: float | None
    price_range: PriceTier
    description: str = ""
    rating: float | None = None
    review_count: int = 0
    crowd_level: CrowdLevel | None = None
    is_open: bool = True
    atmosphere: tuple[str, ...] = ()
    specialties: tuple[str, ...] = ()
    amenities: tuple[str, ...] = ()
    image_url: str | None = None
    phone: str | None = None
    website: str | None = None
    wifi_speed: str | None = None
    mood_classification: str | None = None
    source: str = SOURCE_INTERNAL
    distance_km: float | None = None

    def with_distance(self, distance_km: float | None) -> "Cafe":
        """Return a copy annotated with a distance from the user."""
        return replace(self, distance_km=distance_km)


@dataclass(frozen=True)
class CafeFilters:
    """Client-held filter set; empty by default."""

    search_query: str | None = None
    location: str | None = None
    moods: frozenset[str] = field(default_factory=frozenset)
    budget: str | None = None
    max_distance_km: float | None = None
    require_distance: bool = False

    def __post_init__(self) -> None:
        if self.budget is not None and self.budget not in BUDGET_TIERS:
            raise ValueError(f"Unknown budget tier: {self.budget}")
        if self.max_distance_km is not None and self.max_distance_km < 0:
            raise ValueError("max_distance_km must be non-negative")

    @property
    def price_tier(self) -> PriceTier | None:
        """Return the price tier selected by the budget filter."""
        if self.budget is None:
            return None
        return BUDGET_TIERS[self.budget]

    def is_empty(self) -> bool:
        """Return True when no predicate is active."""
        return not (
            self.search_query
            or self.location
            or self.moods
            or self.budget
            or self.max_distance_km is not None
        )

    def to_event_data(self) -> dict[str, object]:
        """Serialize active filters for analytics payloads."""
        return {
            "search_query": self.search_query,
            "location": self.location,
            "moods": sorted(self.moods),
            "budget": self.budget,
            "max_distance_km": self.max_distance_km,
        }


@dataclass(frozen=True)
class MenuItem:
    """An item on a cafe's menu."""

    id: str
    cafe_id: str
    name: str
    category: str
    price: float | None
    description: str | None
    is_available: bool
