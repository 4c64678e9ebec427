"""Supabase reads of user activity for recommendations."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cafe_finder.adapters.supabase_cafe_repository import parse_cafe
from cafe_finder.domain.analytics import EventType
from cafe_finder.domain.cafes import Cafe
from cafe_finder.services.recommendations import UserActivityRepository


@dataclass
class SupabaseActivityRepository(UserActivityRepository):
    """Supabase implementation of the personalization signals."""

    client: Client

    def list_favorite_cafes(self, user_id: UUID, limit: int) -> list[Cafe]:
        """Return favorite cafes joined from the cafes table."""
        response = (
            self.client.table("user_favorites")
            .select("cafe_id, cafes(*)")
            .eq("user_id", str(user_id))
            .limit(limit)
            .execute()
        )
        return [
            parse_cafe(row["cafes"])
            for row in response.data or []
            if isinstance(row.get("cafes"), dict)
        ]

    def list_recent_views(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return payloads of recent cafe_view events."""
        response = (
            self.client.table("user_analytics")
            .select("event_data")
            .eq("user_id", str(user_id))
            .eq("event_type", EventType.CAFE_VIEW.value)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [row.get("event_data") or {} for row in response.data or []]

    def get_preferences(self, user_id: UUID) -> dict[str, object] | None:
        """Return the user's preference row, if any."""
        response = (
            self.client.table("user_preferences")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]
