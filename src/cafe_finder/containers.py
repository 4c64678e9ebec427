"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from cafe_finder.adapters.google_places_client import HttpxGooglePlacesClient
from cafe_finder.adapters.nominatim_client import NominatimGeocoder
from cafe_finder.adapters.openai_chat_client import OpenAIChatClient
from cafe_finder.adapters.reported_position_sensor import ReportedPositionSensor
from cafe_finder.adapters.supabase_activity_repository import (
    SupabaseActivityRepository,
)
from cafe_finder.adapters.supabase_analytics_repository import (
    SupabaseAnalyticsRepository,
)
from cafe_finder.adapters.supabase_auth import IdentityProvider, SupabaseIdentityProvider
from cafe_finder.adapters.supabase_cafe_repository import SupabaseCafeRepository
from cafe_finder.adapters.supabase_favorite_repository import (
    SupabaseFavoriteRepository,
)
from cafe_finder.adapters.supabase_mood_repository import SupabaseMoodRepository
from cafe_finder.adapters.supabase_review_repository import SupabaseReviewRepository
from cafe_finder.config import Settings
from cafe_finder.services.analytics import AnalyticsService
from cafe_finder.services.cache import Cache, InMemoryCache
from cafe_finder.services.cafes import CafeSearchService
from cafe_finder.services.favorites import FavoritesService
from cafe_finder.services.location import Geocoder, LocationService
from cafe_finder.services.mood import MoodAnalysisService
from cafe_finder.services.places import NearbyPlacesService
from cafe_finder.services.recommendations import RecommendationService
from cafe_finder.services.reviews import ReviewService
from cafe_finder.services.sessions import DiscoverySession, SessionRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_provider: IdentityProvider
    cafe_search_service: CafeSearchService
    places_service: NearbyPlacesService
    review_service: ReviewService
    favorites_service: FavoritesService
    analytics_service: AnalyticsService
    mood_service: MoodAnalysisService
    recommendation_service: RecommendationService
    sessions: SessionRegistry
    close_resources: Callable[[], Awaitable[None]]


def session_factory(  # noqa: PLR0913
    *,
    geocoder: Geocoder,
    cache: Cache,
    geocode_ttl_seconds: int,
    search_service: CafeSearchService,
    places_service: NearbyPlacesService,
) -> Callable[[str], DiscoverySession]:
    """Return a factory that builds a fresh discovery session per client."""

    def create(session_id: str) -> DiscoverySession:
        sensor = ReportedPositionSensor()
        location = LocationService(
            sensor=sensor,
            geocoder=geocoder,
            cache=cache,
            geocode_ttl_seconds=geocode_ttl_seconds,
        )
        return DiscoverySession(
            id=session_id,
            location=location,
            sensor=sensor,
            search_service=search_service,
            places_service=places_service,
        )

    return create


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    cafe_repository = SupabaseCafeRepository(supabase_client)
    review_repository = SupabaseReviewRepository(supabase_client)
    analytics_service = AnalyticsService(SupabaseAnalyticsRepository(supabase_client))
    cafe_search_service = CafeSearchService(
        cafe_repository, result_limit=resolved_settings.search_result_limit
    )
    places_client = HttpxGooglePlacesClient.create(
        api_key=resolved_settings.google_places_api_key,
        base_url=resolved_settings.google_places_base_url,
    )
    places_service = NearbyPlacesService(
        client=places_client,
        default_radius_m=resolved_settings.default_search_radius_m,
    )
    geocoder = NominatimGeocoder.create(
        base_url=resolved_settings.nominatim_base_url,
        user_agent=resolved_settings.nominatim_user_agent,
    )
    chat_client = OpenAIChatClient.create(
        api_key=resolved_settings.openai_api_key,
        base_url=resolved_settings.openai_base_url,
    )
    mood_service = MoodAnalysisService(
        client=chat_client,
        repository=SupabaseMoodRepository(supabase_client),
        review_repository=review_repository,
        model=resolved_settings.openai_model,
        cache_days=resolved_settings.mood_cache_days,
    )
    recommendation_service = RecommendationService(
        client=chat_client,
        activity_repository=SupabaseActivityRepository(supabase_client),
        cafe_repository=cafe_repository,
        model=resolved_settings.openai_model,
    )
    sessions = SessionRegistry(
        factory=session_factory(
            geocoder=geocoder,
            cache=InMemoryCache(),
            geocode_ttl_seconds=resolved_settings.geocode_cache_ttl_seconds,
            search_service=cafe_search_service,
            places_service=places_service,
        ),
        max_sessions=resolved_settings.max_sessions,
        idle_timeout_seconds=resolved_settings.session_idle_timeout_seconds,
    )

    async def close_resources() -> None:
        await sessions.close_all()
        await places_client.close()
        await geocoder.close()
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        identity_provider=SupabaseIdentityProvider(supabase_client),
        cafe_search_service=cafe_search_service,
        places_service=places_service,
        review_service=ReviewService(review_repository, analytics_service),
        favorites_service=FavoritesService(
            SupabaseFavoriteRepository(supabase_client), analytics_service
        ),
        analytics_service=analytics_service,
        mood_service=mood_service,
        recommendation_service=recommendation_service,
        sessions=sessions,
        close_resources=close_resources,
    )
