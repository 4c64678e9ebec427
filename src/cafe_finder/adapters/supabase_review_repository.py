"""Supabase-backed review repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from cafe_finder.domain.reviews import Review
from cafe_finder.services.reviews import ReviewRepository


@dataclass
class SupabaseReviewRepository(ReviewRepository):
    """Supabase implementation for reviews."""

    client: Client

    def list_reviews(self, cafe_id: str) -> list[Review]:
        """Return reviews for a cafe, newest first."""
        response = (
            self.client.table("reviews")
            .select("*")
            .eq("cafe_id", cafe_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_review(row) for row in response.data or []]

    def create_review(
        self,
        user_id: UUID,
        cafe_id: str,
        rating: int,
        title: str | None,
        content: str | None,
    ) -> Review:
        """Insert a review row and return it."""
        response = (
            self.client.table("reviews")
            .insert(
                {
                    "user_id": str(user_id),
                    "cafe_id": cafe_id,
                    "rating": rating,
                    "title": title,
                    "content": content,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create review")
        return _parse_review(response.data[0])


def _parse_review(row: dict[str, object]) -> Review:
    return Review(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        cafe_id=str(row["cafe_id"]),
        rating=int(row["rating"]),
        title=row.get("title"),
        content=row.get("content"),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
