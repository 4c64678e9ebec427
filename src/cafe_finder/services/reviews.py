"""Review listing and submission."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.domain.reviews import Review
from cafe_finder.errors import AuthenticationRequired
from cafe_finder.services.analytics import AnalyticsService

MIN_RATING = 1
MAX_RATING = 5


class ReviewRepository(Protocol):
    """Persistence interface for reviews."""

    def list_reviews(self, cafe_id: str) -> list[Review]:
        """Return reviews for a cafe, newest first."""

    def create_review(
        self,
        user_id: UUID,
        cafe_id: str,
        rating: int,
        title: str | None,
        content: str | None,
    ) -> Review:
        """Insert a review and return it."""


@dataclass
class ReviewService:
    """Application service for cafe reviews."""

    repository: ReviewRepository
    analytics: AnalyticsService

    def list_reviews(self, cafe_id: str) -> list[Review]:
        """Return reviews for a cafe, newest first."""
        return self.repository.list_reviews(cafe_id)

    def create_review(  # noqa: PLR0913
        self,
        user_id: UUID | None,
        cafe_id: str,
        rating: int,
        title: str | None = None,
        content: str | None = None,
    ) -> Review:
        """Validate and store a review for the signed-in user."""
        if user_id is None:
            raise AuthenticationRequired("Please sign in to write a review")
        if isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError("Rating must be an integer between 1 and 5")
        review = self.repository.create_review(
            user_id=user_id,
            cafe_id=cafe_id,
            rating=rating,
            title=title or None,
            content=content or None,
        )
        self.analytics.track(
            AnalyticsEvent(
                event_type=EventType.REVIEW_SUBMITTED,
                event_data={"cafeId": cafe_id, "rating": rating},
                user_id=user_id,
                cafe_id=cafe_id,
            )
        )
        return review
