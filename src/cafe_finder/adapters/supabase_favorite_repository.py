"""Supabase-backed favorites repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cafe_finder.services.favorites import FavoriteRepository


@dataclass
class SupabaseFavoriteRepository(FavoriteRepository):
    """Supabase implementation for user favorites."""

    client: Client

    def list_favorite_ids(self, user_id: UUID) -> set[str]:
        """Return favorited cafe ids for a user."""
        response = (
            self.client.table("user_favorites")
            .select("cafe_id")
            .eq("user_id", str(user_id))
            .execute()
        )
        return {str(row["cafe_id"]) for row in response.data or []}

    def add_favorite(self, user_id: UUID, cafe_id: str) -> None:
        """Insert a favorite row."""
        self.client.table("user_favorites").insert(
            {"user_id": str(user_id), "cafe_id": cafe_id}
        ).execute()

    def remove_favorite(self, user_id: UUID, cafe_id: str) -> None:
        """Delete a favorite row."""
        self.client.table("user_favorites").delete().eq("user_id", str(user_id)).eq(
            "cafe_id", cafe_id
        ).execute()
