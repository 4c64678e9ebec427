"""Models for AI mood analysis and recommendations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

NEUTRAL_MOOD = "neutral"


class MoodScore(BaseModel):
    """Mood distribution for a cafe, each score in 0-100."""

    model_config = ConfigDict(populate_by_name=True)

    calm: float = Field(default=25.0, ge=0.0, le=100.0)
    lively: float = Field(default=25.0, ge=0.0, le=100.0)
    romantic: float = Field(default=25.0, ge=0.0, le=100.0)
    study_friendly: float = Field(
        default=25.0, ge=0.0, le=100.0, alias="studyFriendly"
    )

    def dominant(self) -> str:
        """Return the highest scoring mood, or neutral when all are equal."""
        scores = self.model_dump(by_alias=True)
        values = set(scores.values())
        if len(values) == 1:
            return NEUTRAL_MOOD
        return max(scores, key=scores.__getitem__)


class MoodAnalysis(BaseModel):
    """Result of classifying a cafe's reviews into moods."""

    mood_score: MoodScore
    dominant_mood: str
    review_count: int = 0
    analyzed_at: datetime | None = None
    message: str | None = None


class RecommendedFilter(BaseModel):
    """A filter suggestion returned by the recommendation model."""

    atmosphere: str | None = None
    price_range: str | None = None
    mood: str | None = None


class RecommendationPayload(BaseModel):
    """Structured part of the recommendation model response."""

    recommended_filters: list[RecommendedFilter] = Field(default_factory=list)
