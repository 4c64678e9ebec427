"""Per-client discovery session state."""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID

from cafe_finder.adapters.reported_position_sensor import ReportedPositionSensor
from cafe_finder.domain.cafes import Cafe, CafeFilters
from cafe_finder.domain.places import NoPlacesNearby
from cafe_finder.errors import CafeFinderError
from cafe_finder.services.cafes import CafeSearchService
from cafe_finder.services.favorites import FavoritesService
from cafe_finder.services.location import LocationService
from cafe_finder.services.places import NearbyPlacesService

_logger = logging.getLogger(__name__)

REFRESH_FAILED_MESSAGE = "Failed to fetch cafes"


@dataclass
class ResultsState:
    """Latest result list plus loading and error flags.

    A failed refresh sets ``error`` and leaves ``cafes`` as they were.
    """

    cafes: list[Cafe] = field(default_factory=list)
    loading: bool = False
    error: str | None = None
    message: str | None = None
    generation: int = 0

    def begin(self) -> int:
        """Start a new request and return its generation token."""
        self.generation += 1
        self.loading = True
        self.error = None
        return self.generation

    def is_current(self, token: int) -> bool:
        """Return True if no newer request has been issued."""
        return token == self.generation

    def succeed(self, token: int, cafes: list[Cafe], message: str | None = None) -> bool:
        """Store results for a request unless it has been superseded."""
        if not self.is_current(token):
            _logger.debug("Discarding stale results (token=%s)", token)
            return False
        self.cafes = cafes
        self.message = message
        self.loading = False
        self.error = None
        return True

    def fail(self, token: int, error: str) -> bool:
        """Record an error for a request unless it has been superseded."""
        if not self.is_current(token):
            return False
        self.loading = False
        self.error = error
        return True


@dataclass
class DiscoverySession:
    """State owned by one client: filters, location, results and favorites."""

    id: str
    location: LocationService
    sensor: ReportedPositionSensor
    search_service: CafeSearchService
    places_service: NearbyPlacesService
    filters: CafeFilters = field(default_factory=CafeFilters)
    results: ResultsState = field(default_factory=ResultsState)
    nearby: ResultsState = field(default_factory=ResultsState)
    favorite_ids: set[str] = field(default_factory=set)
    favorites_owner: UUID | None = None

    def update_filters(self, filters: CafeFilters) -> None:
        """Replace the active filter set."""
        self.filters = filters

    async def refresh_cafes(self) -> ResultsState:
        """Re-run the cafe search with the current filters and location."""
        token = self.results.begin()
        filters = self.filters
        origin = self.location.coordinate
        try:
            cafes = await asyncio.to_thread(self.search_service.search, filters, origin)
        except Exception:
            _logger.exception("Cafe refresh failed")
            self.results.fail(token, REFRESH_FAILED_MESSAGE)
            return self.results
        self.results.succeed(token, cafes)
        return self.results

    async def refresh_nearby(self, radius_m: int | None = None) -> ResultsState:
        """Search the places provider around the current location."""
        origin = self.location.coordinate
        if origin is None:
            raise ValueError("Latitude and longitude are required")
        token = self.nearby.begin()
        try:
            outcome = await self.places_service.search_nearby(origin, radius_m)
        except CafeFinderError as exc:
            self.nearby.fail(token, exc.message)
            return self.nearby
        if isinstance(outcome, NoPlacesNearby):
            self.nearby.succeed(token, [], message=outcome.message)
        else:
            self.nearby.succeed(token, outcome.cafes)
        return self.nearby

    def favorites_for(self, user_id: UUID, service: FavoritesService) -> set[str]:
        """Return the favorite-id set, loading it when the user changes."""
        if self.favorites_owner != user_id:
            self.favorite_ids = service.list_favorite_ids(user_id)
            self.favorites_owner = user_id
        return self.favorite_ids

    async def close(self) -> None:
        """Release location tracking."""
        await self.location.close()


SessionFactory = Callable[[str], DiscoverySession]


@dataclass
class SessionRegistry:
    """Keeps discovery sessions keyed by client session id.

    Sessions idle for longer than ``idle_timeout_seconds`` are closed, and
    the least recently used session is closed when ``max_sessions`` would
    be exceeded. Both checks run in ``acquire``.
    """

    factory: SessionFactory
    max_sessions: int | None = None
    idle_timeout_seconds: float | None = None
    clock: Callable[[], float] = time.monotonic
    sessions: dict[str, DiscoverySession] = field(default_factory=dict)
    _last_seen: dict[str, float] = field(default_factory=dict, repr=False)

    def get_or_create(self, session_id: str | None) -> DiscoverySession:
        """Return the session for an id, creating one when unknown."""
        key = session_id or uuid.uuid4().hex
        session = self.sessions.get(key)
        if session is None:
            session = self.factory(key)
            self.sessions[key] = session
        self._last_seen[key] = self.clock()
        return session

    async def acquire(self, session_id: str | None) -> DiscoverySession:
        """Return the session for an id after evicting idle and excess ones."""
        await self.evict_idle()
        if self.max_sessions is not None and session_id not in self.sessions:
            while self.sessions and len(self.sessions) >= self.max_sessions:
                oldest = min(self._last_seen, key=self._last_seen.__getitem__)
                _logger.info("Session limit reached, closing %s", oldest)
                await self.close(oldest)
        return self.get_or_create(session_id)

    async def evict_idle(self) -> int:
        """Close sessions not used within the idle timeout."""
        if self.idle_timeout_seconds is None:
            return 0
        cutoff = self.clock() - self.idle_timeout_seconds
        stale = [key for key, seen in self._last_seen.items() if seen < cutoff]
        for key in stale:
            await self.close(key)
        if stale:
            _logger.info("Evicted %s idle sessions", len(stale))
        return len(stale)

    async def close(self, session_id: str) -> bool:
        """Tear down a session; returns False if it did not exist."""
        self._last_seen.pop(session_id, None)
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        """Tear down every session."""
        for session_id in list(self.sessions):
            await self.close(session_id)
