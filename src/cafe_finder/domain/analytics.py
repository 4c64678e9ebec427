"""Domain models for analytics events."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class EventType(str, Enum):
    """Tracked user interaction types."""

    CAFE_VIEW = "cafe_view"
    CAFE_SEARCH = "cafe_search"
    FILTER_APPLIED = "filter_applied"
    FAVORITE_ADDED = "favorite_added"
    FAVORITE_REMOVED = "favorite_removed"
    REVIEW_SUBMITTED = "review_submitted"


@dataclass(frozen=True)
class AnalyticsEvent:
    """A single analytics event row."""

    event_type: EventType
    event_data: dict[str, object] = field(default_factory=dict)
    user_id: UUID | None = None
    cafe_id: str | None = None
