"""Supabase repository for cached mood analyses."""

from dataclasses import dataclass

from supabase import Client

from cafe_finder.domain.mood import MoodAnalysis, MoodScore
from cafe_finder.services.mood import MoodRepository


@dataclass
class SupabaseMoodRepository(MoodRepository):
    """Supabase implementation backed by the cafe_mood_analysis table."""

    client: Client

    def get_analysis(self, cafe_id: str) -> MoodAnalysis | None:
        """Return the stored analysis for a cafe, if any."""
        response = (
            self.client.table("cafe_mood_analysis")
            .select("*")
            .eq("cafe_id", cafe_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return MoodAnalysis(
            mood_score=MoodScore.model_validate(row.get("mood_score") or {}),
            dominant_mood=str(row.get("dominant_mood") or "neutral"),
            review_count=int(row.get("review_count") or 0),
            analyzed_at=row.get("analyzed_at"),
        )

    def save_analysis(self, cafe_id: str, analysis: MoodAnalysis) -> None:
        """Upsert the analysis keyed by cafe id."""
        self.client.table("cafe_mood_analysis").upsert(
            {
                "cafe_id": cafe_id,
                "mood_score": analysis.mood_score.model_dump(by_alias=True),
                "dominant_mood": analysis.dominant_mood,
                "review_count": analysis.review_count,
                "analyzed_at": analysis.analyzed_at.isoformat()
                if analysis.analyzed_at
                else None,
            },
            on_conflict="cafe_id",
        ).execute()

    def set_cafe_mood(self, cafe_id: str, mood: str) -> None:
        """Store the dominant mood on the cafe row."""
        self.client.table("cafes").update({"mood_classification": mood}).eq(
            "id", cafe_id
        ).execute()
