"""Tests for analytics tracking and the admin summary."""

import logging

from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.services.analytics import AnalyticsService
from tests.conftest import InMemoryAnalyticsRepository


def _view(name: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        event_type=EventType.CAFE_VIEW, event_data={"cafeName": name}, cafe_id=name
    )


def _search(query: str) -> AnalyticsEvent:
    return AnalyticsEvent(
        event_type=EventType.CAFE_SEARCH, event_data={"searchQuery": query}
    )


def test_tracking_failure_is_logged_not_raised(caplog, monkeypatch) -> None:  # type: ignore[no-untyped-def]
    repository = InMemoryAnalyticsRepository(error=RuntimeError("insert failed"))
    service = AnalyticsService(repository)
    monkeypatch.setattr(logging.getLogger("cafe_finder"), "propagate", True)

    with caplog.at_level(logging.ERROR, logger="cafe_finder.services.analytics"):
        service.track(_view("Blue Door"))

    assert "Failed to track analytics event" in caplog.text


def test_summary_counts_popular_cafes_and_searches() -> None:
    repository = InMemoryAnalyticsRepository()
    service = AnalyticsService(repository)
    for event in [
        _view("Blue Door"),
        _view("Blue Door"),
        _view("Quiet Corner"),
        _search("Latte"),
        _search(" latte "),
        _search("matcha"),
    ]:
        service.track(event)

    summary = service.summary(top=1)

    assert summary["total_views"] == 3
    assert summary["total_searches"] == 3
    assert summary["popular_cafes"] == [{"cafe_name": "Blue Door", "view_count": 2}]
    assert summary["popular_searches"] == [
        {"search_query": "latte", "search_count": 2}
    ]
    assert {
        item["event_type"]: item["count"] for item in summary["recent_activity"]
    } == {"cafe_view": 3, "cafe_search": 3}
