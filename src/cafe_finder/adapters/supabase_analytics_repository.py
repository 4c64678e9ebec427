"""Supabase repository for analytics events."""

from dataclasses import dataclass

from supabase import Client

from cafe_finder.domain.analytics import AnalyticsEvent, EventType
from cafe_finder.services.analytics import AnalyticsRepository


@dataclass
class SupabaseAnalyticsRepository(AnalyticsRepository):
    """Supabase-backed analytics repository."""

    client: Client

    def create_event(self, event: AnalyticsEvent) -> None:
        """Insert an analytics event row."""
        self.client.table("user_analytics").insert(
            {
                "user_id": str(event.user_id) if event.user_id else None,
                "event_type": event.event_type.value,
                "event_data": event.event_data,
                "cafe_id": event.cafe_id,
            }
        ).execute()

    def count_events(self, event_type: EventType) -> int:
        """Return the number of events of a type."""
        response = (
            self.client.table("user_analytics")
            .select("*", count="exact", head=True)
            .eq("event_type", event_type.value)
            .execute()
        )
        return response.count or 0

    def list_event_data(
        self, event_type: EventType, limit: int
    ) -> list[dict[str, object]]:
        """Return payloads of recent events of a type."""
        response = (
            self.client.table("user_analytics")
            .select("event_data")
            .eq("event_type", event_type.value)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [row.get("event_data") or {} for row in response.data or []]

    def list_event_types(self, limit: int) -> list[str]:
        """Return the types of the most recent events."""
        response = (
            self.client.table("user_analytics")
            .select("event_type")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [str(row["event_type"]) for row in response.data or []]
