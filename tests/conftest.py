"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import httpx
import pytest

from cafe_finder.adapters.google_places_client import PlacesClient
from cafe_finder.adapters.supabase_auth import IdentityProvider
from cafe_finder.config import Settings
from cafe_finder.containers import AppContainer, session_factory
from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.domain.cafes import Cafe, MenuItem, PriceTier
from cafe_finder.domain.location import Coordinate
from cafe_finder.domain.mood import MoodAnalysis
from cafe_finder.domain.reviews import Review
from cafe_finder.services.analytics import AnalyticsRepository, AnalyticsService
from cafe_finder.services.cache import InMemoryCache
from cafe_finder.services.cafes import CafeQuery, CafeRepository, CafeSearchService
from cafe_finder.services.favorites import FavoriteRepository, FavoritesService
from cafe_finder.services.location import Geocoder
from cafe_finder.services.mood import ChatClient, MoodAnalysisService, MoodRepository
from cafe_finder.services.places import NearbyPlacesService
from cafe_finder.services.recommendations import (
    RecommendationService,
    UserActivityRepository,
)
from cafe_finder.services.reviews import ReviewRepository, ReviewService
from cafe_finder.services.sessions import SessionRegistry

USER_TOKEN = "user-token"
USER_ID = UUID("11111111-2222-3333-4444-555555555555")


def make_cafe(  # noqa: PLR0913
    cafe_id: str,
    name: str = "Cafe",
    *,
    address: str = "1 Main St, San Francisco",
    latitude: float | None = 37.7749,
    longitude: float | None = -122.4194,
    price_range: PriceTier = PriceTier.MEDIUM,
    rating: float | None = 4.0,
    atmosphere: tuple[str, ...] = (),
    description: str = "",
    mood_classification: str | None = None,
) -> Cafe:
    return Cafe(
        id=cafe_id,
        name=name,
        address=address,
        latitude=latitude,
        longitude=longitude,
        price_range=price_range,
        rating=rating,
        atmosphere=atmosphere,
        description=description,
        mood_classification=mood_classification,
    )


def sample_cafes() -> list[Cafe]:
    return [
        make_cafe(
            "c1",
            "Quiet Corner",
            address="10 Market St, San Francisco",
            latitude=37.7750,
            longitude=-122.4195,
            rating=4.2,
            atmosphere=("Quiet", "Study"),
            description="Calm spot with fast WiFi",
        ),
        make_cafe(
            "c2",
            "Buzz Bar",
            address="200 Broadway, New York",
            latitude=40.7128,
            longitude=-74.0060,
            price_range=PriceTier.HIGH,
            rating=4.8,
            atmosphere=("Lively",),
            description="Espresso and music",
        ),
        make_cafe(
            "c3",
            "Mystery Beans",
            address="Unknown Alley, San Francisco",
            latitude=None,
            longitude=None,
            price_range=PriceTier.LOW,
            rating=3.5,
            atmosphere=("Cozy",),
        ),
    ]


@dataclass
class InMemoryCafeRepository(CafeRepository):
    """In-memory cafe repository for tests."""

    cafes: list[Cafe] = field(default_factory=sample_cafes)
    menu_items: list[MenuItem] = field(default_factory=list)
    queries: list[CafeQuery] = field(default_factory=list)
    error: Exception | None = None

    def list_cafes(self, query: CafeQuery) -> list[Cafe]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        results = list(self.cafes)
        if query.mood_classification:
            results = [
                cafe
                for cafe in results
                if cafe.mood_classification == query.mood_classification
            ]
        if query.atmosphere_overlaps:
            wanted = set(query.atmosphere_overlaps)
            results = [cafe for cafe in results if wanted & set(cafe.atmosphere)]
        return results[: query.limit] if query.limit else results

    def get_cafe(self, cafe_id: str) -> Cafe | None:
        return next((cafe for cafe in self.cafes if cafe.id == cafe_id), None)

    def get_cafes(self, cafe_ids: list[str]) -> list[Cafe]:
        return [cafe for cafe in self.cafes if cafe.id in cafe_ids]

    def list_menu_items(self, cafe_id: str) -> list[MenuItem]:
        return sorted(
            (
                item
                for item in self.menu_items
                if item.cafe_id == cafe_id and item.is_available
            ),
            key=lambda item: (item.category, item.name),
        )


@dataclass
class InMemoryReviewRepository(ReviewRepository):
    """In-memory review repository for tests."""

    reviews: list[Review] = field(default_factory=list)

    def list_reviews(self, cafe_id: str) -> list[Review]:
        return sorted(
            (review for review in self.reviews if review.cafe_id == cafe_id),
            key=lambda review: review.created_at,
            reverse=True,
        )

    def create_review(
        self,
        user_id: UUID,
        cafe_id: str,
        rating: int,
        title: str | None,
        content: str | None,
    ) -> Review:
        review = Review(
            id=uuid4(),
            user_id=user_id,
            cafe_id=cafe_id,
            rating=rating,
            title=title,
            content=content,
            created_at=datetime.now(tz=UTC),
        )
        self.reviews.append(review)
        return review


@dataclass
class InMemoryFavoriteRepository(FavoriteRepository):
    """In-memory favorites repository for tests."""

    favorites: dict[UUID, set[str]] = field(default_factory=dict)
    error: Exception | None = None
    reads: int = 0

    def list_favorite_ids(self, user_id: UUID) -> set[str]:
        self.reads += 1
        return set(self.favorites.get(user_id, set()))

    def add_favorite(self, user_id: UUID, cafe_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.favorites.setdefault(user_id, set()).add(cafe_id)

    def remove_favorite(self, user_id: UUID, cafe_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.favorites.setdefault(user_id, set()).discard(cafe_id)


@dataclass
class InMemoryAnalyticsRepository(AnalyticsRepository):
    """In-memory analytics repository for tests."""

    events: list[AnalyticsEvent] = field(default_factory=list)
    error: Exception | None = None

    def create_event(self, event: AnalyticsEvent) -> None:
        if self.error is not None:
            raise self.error
        self.events.append(event)

    def count_events(self, event_type: EventType) -> int:
        return sum(1 for event in self.events if event.event_type is event_type)

    def list_event_data(
        self, event_type: EventType, limit: int
    ) -> list[dict[str, object]]:
        matching = [
            event.event_data for event in self.events if event.event_type is event_type
        ]
        return list(reversed(matching))[:limit]

    def list_event_types(self, limit: int) -> list[str]:
        return [event.event_type.value for event in reversed(self.events)][:limit]


@dataclass
class InMemoryMoodRepository(MoodRepository):
    """In-memory mood analysis repository for tests."""

    analyses: dict[str, MoodAnalysis] = field(default_factory=dict)
    cafe_moods: dict[str, str] = field(default_factory=dict)

    def get_analysis(self, cafe_id: str) -> MoodAnalysis | None:
        return self.analyses.get(cafe_id)

    def save_analysis(self, cafe_id: str, analysis: MoodAnalysis) -> None:
        self.analyses[cafe_id] = analysis

    def set_cafe_mood(self, cafe_id: str, mood: str) -> None:
        self.cafe_moods[cafe_id] = mood


@dataclass
class InMemoryActivityRepository(UserActivityRepository):
    """In-memory user activity repository for tests."""

    favorite_cafes: list[Cafe] = field(default_factory=list)
    views: list[dict[str, object]] = field(default_factory=list)
    preferences: dict[str, object] | None = None

    def list_favorite_cafes(self, user_id: UUID, limit: int) -> list[Cafe]:
        return self.favorite_cafes[:limit]

    def list_recent_views(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        return self.views[:limit]

    def get_preferences(self, user_id: UUID) -> dict[str, object] | None:
        return self.preferences


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client returning a fixed completion."""

    text: str = '{"calm": 70, "lively": 10, "romantic": 10, "studyFriendly": 60}'
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text


def place_payload(status: str = "OK", **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "status": status,
        "results": [
            {
                "place_id": "p-far",
                "name": "Far Roasters",
                "vicinity": "500 Far Ave",
                "types": ["cafe", "food"],
                "geometry": {"location": {"lat": 37.80, "lng": -122.45}},
                "rating": 4.1,
                "user_ratings_total": 12,
                "price_level": 3,
                "opening_hours": {"open_now": False},
                "photos": [{"photo_reference": "photo-1"}],
            },
            {
                "place_id": "p-near",
                "name": "Near Brew",
                "vicinity": "1 Close St",
                "types": ["cafe"],
                "geometry": {"location": {"lat": 37.7750, "lng": -122.4195}},
            },
        ],
    }
    payload.update(overrides)
    return payload


@dataclass
class FakePlacesClient(PlacesClient):
    """Fake places client with a canned payload."""

    payload: dict[str, object] = field(default_factory=place_payload)
    error: Exception | None = None
    calls: list[tuple[float, float, int, str]] = field(default_factory=list)

    async def nearby_search(
        self, latitude: float, longitude: float, radius_m: int, place_type: str
    ) -> dict[str, object]:
        self.calls.append((latitude, longitude, radius_m, place_type))
        if self.error is not None:
            raise self.error
        return self.payload

    def photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        return f"https://photos.test/{photo_reference}?w={max_width}"


@dataclass
class FakeGeocoder(Geocoder):
    """Fake geocoder with per-query results and optional delays."""

    results: dict[str, list[Coordinate]] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def search(self, query: str, limit: int = 1) -> list[Coordinate]:
        self.calls.append(query)
        if query in self.delays:
            await asyncio.sleep(self.delays[query])
        if self.error is not None:
            raise self.error
        return self.results.get(query, [])[:limit]


def transport_error() -> httpx.HTTPError:
    return httpx.ConnectError("connection refused")


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Maps known tokens to user ids."""

    tokens: dict[str, UUID] = field(default_factory=lambda: {USER_TOKEN: USER_ID})

    def get_user_id(self, access_token: str | None) -> UUID | None:
        if not access_token:
            return None
        return self.tokens.get(access_token)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        openai_api_key="openai-key",
        google_places_api_key="places-key",
    )


@pytest.fixture
def cafe_repository() -> InMemoryCafeRepository:
    return InMemoryCafeRepository()


@pytest.fixture
def analytics_repository() -> InMemoryAnalyticsRepository:
    return InMemoryAnalyticsRepository()


@pytest.fixture
def places_client() -> FakePlacesClient:
    return FakePlacesClient()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(
        results={
            "Portland": [Coordinate(45.5152, -122.6784, "Portland, OR", "geocoder")]
        }
    )


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    cafe_repository: InMemoryCafeRepository,
    analytics_repository: InMemoryAnalyticsRepository,
    places_client: FakePlacesClient,
    geocoder: FakeGeocoder,
    chat_client: FakeChatClient,
) -> AppContainer:
    analytics_service = AnalyticsService(analytics_repository)
    review_repository = InMemoryReviewRepository()
    cafe_search_service = CafeSearchService(cafe_repository)
    places_service = NearbyPlacesService(client=places_client)
    sessions = SessionRegistry(
        factory=session_factory(
            geocoder=geocoder,
            cache=InMemoryCache(),
            geocode_ttl_seconds=settings.geocode_cache_ttl_seconds,
            search_service=cafe_search_service,
            places_service=places_service,
        ),
        max_sessions=settings.max_sessions,
        idle_timeout_seconds=settings.session_idle_timeout_seconds,
    )

    async def close_resources() -> None:
        await sessions.close_all()

    return AppContainer(
        settings=settings,
        identity_provider=FakeIdentityProvider(),
        cafe_search_service=cafe_search_service,
        places_service=places_service,
        review_service=ReviewService(review_repository, analytics_service),
        favorites_service=FavoritesService(
            InMemoryFavoriteRepository(), analytics_service
        ),
        analytics_service=analytics_service,
        mood_service=MoodAnalysisService(
            client=chat_client,
            repository=InMemoryMoodRepository(),
            review_repository=review_repository,
            model=settings.openai_model,
        ),
        recommendation_service=RecommendationService(
            client=chat_client,
            activity_repository=InMemoryActivityRepository(),
            cafe_repository=cafe_repository,
            model=settings.openai_model,
        ),
        sessions=sessions,
        close_resources=close_resources,
    )
