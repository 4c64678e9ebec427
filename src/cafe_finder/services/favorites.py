"""Favorite cafes for signed-in users."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.errors import AuthenticationRequired
from cafe_finder.services.analytics import AnalyticsService


class FavoriteRepository(Protocol):
    """Persistence interface for favorites."""

    def list_favorite_ids(self, user_id: UUID) -> set[str]:
        """Return the cafe ids a user has favorited."""

    def add_favorite(self, user_id: UUID, cafe_id: str) -> None:
        """Insert a favorite row."""

    def remove_favorite(self, user_id: UUID, cafe_id: str) -> None:
        """Delete a favorite row."""


@dataclass
class FavoritesService:
    """Application service for toggling favorites."""

    repository: FavoriteRepository
    analytics: AnalyticsService

    def list_favorite_ids(self, user_id: UUID | None) -> set[str]:
        """Return favorite cafe ids, empty when signed out."""
        if user_id is None:
            return set()
        return self.repository.list_favorite_ids(user_id)

    def toggle(
        self, user_id: UUID | None, cafe_id: str, favorite_ids: set[str]
    ) -> bool:
        """Flip the favorite state of a cafe and return the new state.

        ``favorite_ids`` is the caller's current view and is updated only
        after the store write succeeds.
        """
        if user_id is None:
            raise AuthenticationRequired("Please sign in to save favorites")
        if cafe_id in favorite_ids:
            self.repository.remove_favorite(user_id, cafe_id)
            favorite_ids.discard(cafe_id)
            event_type = EventType.FAVORITE_REMOVED
        else:
            self.repository.add_favorite(user_id, cafe_id)
            favorite_ids.add(cafe_id)
            event_type = EventType.FAVORITE_ADDED
        self.analytics.track(
            AnalyticsEvent(
                event_type=event_type,
                event_data={"cafeId": cafe_id},
                user_id=user_id,
                cafe_id=cafe_id,
            )
        )
        return cafe_id in favorite_ids
