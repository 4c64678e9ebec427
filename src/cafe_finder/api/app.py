"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cafe_finder.api.admin import router as admin_router
from cafe_finder.api.schemas import (
    CafeOut,
    CoordinateOut,
    FiltersIn,
    GeocodeIn,
    LocationOut,
    MenuItemOut,
    NearbyIn,
    NearbyRefreshIn,
    PositionReadingIn,
    PresetIn,
    ResultsOut,
    ReviewIn,
    ReviewOut,
    TrackingIn,
)
from cafe_finder.app_logging import configure_logging
from cafe_finder.config import parse_allowed_origins
from cafe_finder.containers import AppContainer
from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.domain.cafes import Cafe, CafeFilters
from cafe_finder.domain.location import PRESET_LOCATIONS, Coordinate, LocationFailure
from cafe_finder.domain.places import NoPlacesNearby
from cafe_finder.errors import (
    AuthenticationRequired,
    CafeFinderError,
    CafeNotFoundError,
    CreditsExhaustedError,
    LocationError,
    PlacesTransportError,
    ProviderError,
    RateLimitedError,
)
from cafe_finder.services.sessions import DiscoverySession, ResultsState

SESSION_HEADER = "X-Session-Id"

_ERROR_STATUS: list[tuple[type[CafeFinderError], int]] = [
    (AuthenticationRequired, 401),
    (CafeNotFoundError, 404),
    (LocationError, 422),
    (RateLimitedError, 429),
    (CreditsExhaustedError, 402),
    (ProviderError, 502),
    (PlacesTransportError, 502),
]


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_user_id(
    request: Request, authorization: str | None = Header(default=None)
) -> UUID | None:
    """Resolve the signed-in user from a bearer token, if present."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return _get_container(request).identity_provider.get_user_id(token.strip())


async def open_session(
    request: Request, response: Response, session_id: str | None
) -> DiscoverySession:
    """Return the discovery session for an id, creating one if needed."""
    session = await _get_container(request).sessions.acquire(session_id)
    response.headers[SESSION_HEADER] = session.id
    return session


async def get_session(
    request: Request,
    response: Response,
    x_session_id: str | None = Header(default=None),
) -> DiscoverySession:
    """Return the caller's discovery session, creating one if needed."""
    return await open_session(request, response, x_session_id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    origins = parse_allowed_origins(container.settings.cors_allowed_origins)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[SESSION_HEADER],
        )

    app.include_router(admin_router)

    @app.exception_handler(CafeFinderError)
    async def handle_cafe_finder_error(
        request: Request, exc: CafeFinderError
    ) -> JSONResponse:
        status_code = next(
            (code for kind, code in _ERROR_STATUS if isinstance(exc, kind)), 500
        )
        if status_code >= 500:
            logger.warning("Provider failure on %s: %s", request.url.path, exc)
        content: dict[str, object] = {"error": exc.message}
        if isinstance(exc, LocationError):
            content.update(
                failure=exc.failure.value,
                offers_manual_fallback=exc.failure.offers_manual_fallback,
                presets=list(PRESET_LOCATIONS),
            )
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/cafes")
    async def list_cafes(  # noqa: PLR0913
        request: Request,
        q: str | None = None,
        location: str | None = None,
        mood: list[str] = Query(default=[]),
        budget: str | None = None,
        max_distance_km: float | None = None,
        require_distance: bool = False,
        lat: float | None = Query(default=None, ge=-90, le=90),
        lon: float | None = Query(default=None, ge=-180, le=180),
        user_id: UUID | None = Depends(get_user_id),
    ) -> dict[str, object]:
        """Search cafes with the given filters, ranked for the origin."""
        state_container = _get_container(request)
        filters = CafeFilters(
            search_query=q or None,
            location=location or None,
            moods=frozenset(value for value in mood if value),
            budget=budget or None,
            max_distance_km=max_distance_km,
            require_distance=require_distance,
        )
        origin = _origin(lat, lon)
        try:
            cafes = state_container.cafe_search_service.search(filters, origin)
        except Exception as exc:
            logger.exception("Cafe search failed")
            raise HTTPException(status_code=502, detail="Failed to fetch cafes") from exc
        _track_search(state_container, filters, user_id, len(cafes))
        return {"cafes": [_cafe_out(cafe) for cafe in cafes]}

    @app.get("/cafes/{cafe_id}")
    async def cafe_detail(
        cafe_id: str,
        request: Request,
        lat: float | None = Query(default=None, ge=-90, le=90),
        lon: float | None = Query(default=None, ge=-180, le=180),
        user_id: UUID | None = Depends(get_user_id),
    ) -> dict[str, object]:
        """Return a single cafe and record the view."""
        state_container = _get_container(request)
        cafe = state_container.cafe_search_service.get_cafe(cafe_id, _origin(lat, lon))
        state_container.analytics_service.track(
            AnalyticsEvent(
                event_type=EventType.CAFE_VIEW,
                event_data={"cafeId": cafe.id, "cafeName": cafe.name},
                user_id=user_id,
                cafe_id=cafe.id,
            )
        )
        return {"cafe": _cafe_out(cafe)}

    @app.get("/cafes/{cafe_id}/menu")
    async def cafe_menu(cafe_id: str, request: Request) -> dict[str, object]:
        """Return available menu items grouped by category."""
        menu = _get_container(request).cafe_search_service.get_menu(cafe_id)
        return {
            "menu": {
                category: [
                    MenuItemOut.model_validate(item).model_dump() for item in items
                ]
                for category, items in menu.items()
            }
        }

    @app.get("/cafes/{cafe_id}/reviews")
    async def list_reviews(cafe_id: str, request: Request) -> dict[str, object]:
        """Return reviews for a cafe, newest first."""
        reviews = _get_container(request).review_service.list_reviews(cafe_id)
        return {
            "reviews": [
                ReviewOut.model_validate(review).model_dump(mode="json")
                for review in reviews
            ]
        }

    @app.post("/cafes/{cafe_id}/reviews", status_code=201)
    async def create_review(
        cafe_id: str,
        payload: ReviewIn,
        request: Request,
        user_id: UUID | None = Depends(get_user_id),
    ) -> dict[str, object]:
        """Store a review written by the signed-in user."""
        review = _get_container(request).review_service.create_review(
            user_id=user_id,
            cafe_id=cafe_id,
            rating=payload.rating,
            title=payload.title,
            content=payload.content,
        )
        return {"review": ReviewOut.model_validate(review).model_dump(mode="json")}

    @app.get("/cafes/{cafe_id}/mood")
    async def cached_mood(cafe_id: str, request: Request) -> dict[str, object]:
        """Return the stored mood analysis for a cafe."""
        analysis = _get_container(request).mood_service.get_cached(cafe_id)
        if analysis is None:
            raise HTTPException(status_code=404, detail="No mood analysis yet")
        return {"analysis": analysis.model_dump(mode="json", by_alias=True)}

    @app.post("/cafes/{cafe_id}/mood")
    async def analyze_mood(
        cafe_id: str, request: Request, force: bool = False
    ) -> dict[str, object]:
        """Classify the cafe's recent reviews into mood scores."""
        analysis = await _get_container(request).mood_service.analyze(
            cafe_id, force=force
        )
        return {"analysis": analysis.model_dump(mode="json", by_alias=True)}

    @app.get("/favorites")
    async def list_favorites(
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
        user_id: UUID | None = Depends(get_user_id),
    ) -> dict[str, object]:
        """Return the signed-in user's favorite cafes."""
        if user_id is None:
            raise AuthenticationRequired("Please sign in to see favorites")
        session = await open_session(request, response, x_session_id)
        state_container = _get_container(request)
        favorite_ids = session.favorites_for(
            user_id, state_container.favorites_service
        )
        cafes = state_container.cafe_search_service.list_by_ids(favorite_ids)
        return {
            "favorite_ids": sorted(favorite_ids),
            "cafes": [_cafe_out(cafe) for cafe in cafes],
        }

    @app.post("/favorites/{cafe_id}/toggle")
    async def toggle_favorite(
        cafe_id: str,
        request: Request,
        response: Response,
        x_session_id: str | None = Header(default=None),
        user_id: UUID | None = Depends(get_user_id),
    ) -> dict[str, object]:
        """Flip the favorite state of a cafe for the signed-in user."""
        favorites_service = _get_container(request).favorites_service
        if user_id is None:
            raise AuthenticationRequired("Please sign in to save favorites")
        session = await open_session(request, response, x_session_id)
        favorite_ids = session.favorites_for(user_id, favorites_service)
        favorited = favorites_service.toggle(user_id, cafe_id, favorite_ids)
        return {"cafe_id": cafe_id, "favorited": favorited}

    @app.get("/recommendations")
    async def recommendations(
        request: Request, user_id: UUID | None = Depends(get_user_id)
    ) -> dict[str, object]:
        """Return AI-suggested filters and matching cafes."""
        result = await _get_container(request).recommendation_service.recommend(
            user_id
        )
        return {
            "recommendations": [item.model_dump() for item in result.filters],
            "cafes": [_cafe_out(cafe) for cafe in result.cafes],
        }

    @app.post("/places/nearby")
    async def nearby_places(payload: NearbyIn, request: Request) -> dict[str, object]:
        """Search the places provider around a coordinate."""
        outcome = await _get_container(request).places_service.search_nearby(
            Coordinate(payload.latitude, payload.longitude, source="request"),
            payload.radius_m,
        )
        if isinstance(outcome, NoPlacesNearby):
            return {"cafes": [], "message": outcome.message}
        return {"cafes": [_cafe_out(cafe) for cafe in outcome.cafes]}

    @app.get("/session/location")
    async def session_location(
        session: DiscoverySession = Depends(get_session),
    ) -> LocationOut:
        """Return the session's location state."""
        return _location_out(session)

    @app.post("/session/location/preset")
    async def use_preset(
        payload: PresetIn, session: DiscoverySession = Depends(get_session)
    ) -> LocationOut:
        """Set the session location to a named preset city."""
        session.location.use_preset(payload.name)
        return _location_out(session)

    @app.post("/session/location/geocode")
    async def geocode(
        payload: GeocodeIn, session: DiscoverySession = Depends(get_session)
    ) -> LocationOut:
        """Resolve a free-text place name for the session."""
        await session.location.resolve_address(payload.query)
        return _location_out(session)

    @app.post("/session/location/device")
    async def locate_device(
        session: DiscoverySession = Depends(get_session),
    ) -> LocationOut:
        """Resolve the session location from reported device readings."""
        await session.location.locate_device()
        return _location_out(session)

    @app.post("/session/location/reading", status_code=202)
    async def report_reading(
        payload: PositionReadingIn, session: DiscoverySession = Depends(get_session)
    ) -> dict[str, str]:
        """Accept a geolocation callback result from the client."""
        if payload.error is not None:
            session.sensor.report_error(LocationFailure(payload.error))
        elif payload.latitude is None or payload.longitude is None:
            raise ValueError("Latitude and longitude are required")
        else:
            session.sensor.report(Coordinate(payload.latitude, payload.longitude))
        return {"status": "accepted"}

    @app.post("/session/location/tracking")
    async def set_tracking(
        payload: TrackingIn, session: DiscoverySession = Depends(get_session)
    ) -> LocationOut:
        """Start or stop continuous location tracking."""
        if payload.enabled:
            session.location.start_tracking()
        else:
            await session.location.stop_tracking()
        return _location_out(session)

    @app.put("/session/filters")
    async def update_filters(
        payload: FiltersIn, session: DiscoverySession = Depends(get_session)
    ) -> dict[str, object]:
        """Replace the session's filter set."""
        session.update_filters(payload.to_filters())
        return {"filters": session.filters.to_event_data()}

    @app.post("/session/cafes/refresh")
    async def refresh_cafes(
        request: Request,
        session: DiscoverySession = Depends(get_session),
        user_id: UUID | None = Depends(get_user_id),
    ) -> ResultsOut:
        """Re-run the session's cafe search."""
        results = await session.refresh_cafes()
        if results.error is None:
            _track_search(
                _get_container(request), session.filters, user_id, len(results.cafes)
            )
        return _results_out(results)

    @app.get("/session/cafes")
    async def session_cafes(
        session: DiscoverySession = Depends(get_session),
    ) -> ResultsOut:
        """Return the session's latest cafe results."""
        return _results_out(session.results)

    @app.post("/session/nearby/refresh")
    async def refresh_nearby(
        payload: NearbyRefreshIn, session: DiscoverySession = Depends(get_session)
    ) -> ResultsOut:
        """Search the places provider around the session location."""
        return _results_out(await session.refresh_nearby(payload.radius_m))

    @app.get("/session/nearby")
    async def session_nearby(
        session: DiscoverySession = Depends(get_session),
    ) -> ResultsOut:
        """Return the session's latest nearby results."""
        return _results_out(session.nearby)

    @app.delete("/session")
    async def end_session(
        request: Request, x_session_id: str | None = Header(default=None)
    ) -> dict[str, bool]:
        """Tear down the caller's session and any tracking it holds."""
        if not x_session_id:
            return {"closed": False}
        closed = await _get_container(request).sessions.close(x_session_id)
        return {"closed": closed}

    return app


def _origin(lat: float | None, lon: float | None) -> Coordinate | None:
    if lat is None or lon is None:
        return None
    return Coordinate(lat, lon, source="request")


def _cafe_out(cafe: Cafe) -> dict[str, object]:
    return CafeOut.model_validate(cafe).model_dump(mode="json")


def _results_out(results: ResultsState) -> ResultsOut:
    return ResultsOut(
        cafes=[CafeOut.model_validate(cafe) for cafe in results.cafes],
        loading=results.loading,
        error=results.error,
        message=results.message,
    )


def _location_out(session: DiscoverySession) -> LocationOut:
    location = session.location
    failure = location.failure
    coordinate = location.coordinate
    return LocationOut(
        status=location.status.value,
        coordinate=CoordinateOut.model_validate(coordinate) if coordinate else None,
        tracking=location.tracking,
        failure=failure,
        message=failure.message if failure else None,
        offers_manual_fallback=bool(failure and failure.offers_manual_fallback),
        presets=list(PRESET_LOCATIONS),
    )


def _track_search(
    container: AppContainer,
    filters: CafeFilters,
    user_id: UUID | None,
    result_count: int,
) -> None:
    if filters.search_query:
        container.analytics_service.track(
            AnalyticsEvent(
                event_type=EventType.CAFE_SEARCH,
                event_data={
                    "searchQuery": filters.search_query,
                    "resultCount": result_count,
                },
                user_id=user_id,
            )
        )
    if not filters.is_empty():
        container.analytics_service.track(
            AnalyticsEvent(
                event_type=EventType.FILTER_APPLIED,
                event_data=filters.to_event_data(),
                user_id=user_id,
            )
        )
