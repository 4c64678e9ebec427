"""Analytics event recording and admin reporting."""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Protocol

from cafe_finder.domain.analytics import AnalyticsEvent, EventType

_logger = logging.getLogger(__name__)


class AnalyticsRepository(Protocol):
    """Persistence interface for analytics events."""

    def create_event(self, event: AnalyticsEvent) -> None:
        """Insert an analytics event row."""

    def count_events(self, event_type: EventType) -> int:
        """Return the number of events of a type."""

    def list_event_data(
        self, event_type: EventType, limit: int
    ) -> list[dict[str, object]]:
        """Return the payloads of recent events of a type."""

    def list_event_types(self, limit: int) -> list[str]:
        """Return the types of the most recent events."""


@dataclass
class AnalyticsService:
    """Records interaction events without interrupting the caller."""

    repository: AnalyticsRepository

    def track(self, event: AnalyticsEvent) -> None:
        """Persist an event; failures are logged and dropped."""
        try:
            self.repository.create_event(event)
        except Exception:
            _logger.exception("Failed to track analytics event %s", event.event_type)

    def summary(self, limit: int = 1000, top: int = 5) -> dict[str, object]:
        """Aggregate counts for the admin dashboard."""
        views = self.repository.list_event_data(EventType.CAFE_VIEW, limit)
        searches = self.repository.list_event_data(EventType.CAFE_SEARCH, limit)
        cafe_counts = Counter(
            str(data["cafeName"]) for data in views if data.get("cafeName")
        )
        search_counts = Counter(
            str(data["searchQuery"]).strip().lower()
            for data in searches
            if data.get("searchQuery")
        )
        activity = Counter(self.repository.list_event_types(limit))
        return {
            "total_views": self.repository.count_events(EventType.CAFE_VIEW),
            "total_searches": self.repository.count_events(EventType.CAFE_SEARCH),
            "popular_cafes": [
                {"cafe_name": name, "view_count": count}
                for name, count in cafe_counts.most_common(top)
            ],
            "popular_searches": [
                {"search_query": query, "search_count": count}
                for query, count in search_counts.most_common(top)
            ],
            "recent_activity": [
                {"event_type": event_type, "count": count}
                for event_type, count in activity.most_common()
            ],
        }
