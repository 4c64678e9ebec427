"""Tests for favorites and reviews."""

from dataclasses import dataclass

import pytest

from cafe_finder.domain.analytics import EventType
from cafe_finder.errors import AuthenticationRequired
from cafe_finder.services.analytics import AnalyticsService
from cafe_finder.services.favorites import FavoritesService
from cafe_finder.services.reviews import ReviewService
from tests.conftest import (
    USER_ID,
    InMemoryAnalyticsRepository,
    InMemoryFavoriteRepository,
    InMemoryReviewRepository,
)


@dataclass
class CountingFavoriteRepository(InMemoryFavoriteRepository):
    inserts: int = 0
    deletes: int = 0

    def add_favorite(self, user_id, cafe_id) -> None:  # type: ignore[no-untyped-def]
        self.inserts += 1
        super().add_favorite(user_id, cafe_id)

    def remove_favorite(self, user_id, cafe_id) -> None:  # type: ignore[no-untyped-def]
        self.deletes += 1
        super().remove_favorite(user_id, cafe_id)


def test_toggle_twice_restores_initial_state() -> None:
    repository = CountingFavoriteRepository()
    analytics = InMemoryAnalyticsRepository()
    service = FavoritesService(repository, AnalyticsService(analytics))
    favorite_ids = service.list_favorite_ids(USER_ID)

    assert service.toggle(USER_ID, "c1", favorite_ids) is True
    assert service.toggle(USER_ID, "c1", favorite_ids) is False

    assert favorite_ids == set()
    assert repository.favorites[USER_ID] == set()
    assert repository.inserts == 1
    assert repository.deletes == 1
    assert [event.event_type for event in analytics.events] == [
        EventType.FAVORITE_ADDED,
        EventType.FAVORITE_REMOVED,
    ]


def test_toggle_requires_sign_in_before_store_write() -> None:
    repository = CountingFavoriteRepository()
    service = FavoritesService(
        repository, AnalyticsService(InMemoryAnalyticsRepository())
    )

    with pytest.raises(AuthenticationRequired):
        service.toggle(None, "c1", set())

    assert repository.inserts == 0
    assert service.list_favorite_ids(None) == set()
    assert repository.reads == 0


def test_failed_write_leaves_favorites_unchanged() -> None:
    repository = InMemoryFavoriteRepository(error=RuntimeError("store down"))
    analytics = InMemoryAnalyticsRepository()
    service = FavoritesService(repository, AnalyticsService(analytics))
    favorite_ids = {"c2"}

    with pytest.raises(RuntimeError):
        service.toggle(USER_ID, "c1", favorite_ids)

    assert favorite_ids == {"c2"}
    assert analytics.events == []


def test_review_is_stored_and_tracked() -> None:
    repository = InMemoryReviewRepository()
    analytics = InMemoryAnalyticsRepository()
    service = ReviewService(repository, AnalyticsService(analytics))

    review = service.create_review(USER_ID, "c1", 4, title="", content="Nice")

    assert review.title is None
    assert service.list_reviews("c1") == [review]
    assert analytics.events[0].event_type is EventType.REVIEW_SUBMITTED
    assert analytics.events[0].event_data == {"cafeId": "c1", "rating": 4}


@pytest.mark.parametrize("rating", [0, 6, True])
def test_review_rating_is_validated(rating) -> None:  # type: ignore[no-untyped-def]
    repository = InMemoryReviewRepository()
    service = ReviewService(repository, AnalyticsService(InMemoryAnalyticsRepository()))

    with pytest.raises(ValueError):
        service.create_review(USER_ID, "c1", rating)
    assert repository.reviews == []


def test_review_requires_sign_in() -> None:
    repository = InMemoryReviewRepository()
    service = ReviewService(repository, AnalyticsService(InMemoryAnalyticsRepository()))

    with pytest.raises(AuthenticationRequired):
        service.create_review(None, "c1", 5)
    assert repository.reviews == []
