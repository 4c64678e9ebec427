"""Review mood classification using an LLM."""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from pydantic import ValidationError

from cafe_finder.domain.mood import NEUTRAL_MOOD, MoodAnalysis, MoodScore
from cafe_finder.services.reviews import ReviewRepository

MOOD_SYSTEM_PROMPT = (
    "You are a sentiment analyzer for cafe reviews. Analyze the mood and "
    "atmosphere described in reviews and classify them into 4 categories: "
    "Calm (peaceful, quiet, relaxed), Lively (energetic, social, bustling), "
    "Romantic (intimate, cozy, date-worthy), and Study-Friendly (quiet, wifi, "
    "productive). Return ONLY a JSON object with scores for each mood (0-100) "
    'using the keys "calm", "lively", "romantic" and "studyFriendly".'
)

_logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """Interface for chat-style LLM completions."""

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        """Return the raw completion text."""


class MoodRepository(Protocol):
    """Persistence interface for cached mood analyses."""

    def get_analysis(self, cafe_id: str) -> MoodAnalysis | None:
        """Return the stored analysis for a cafe, if any."""

    def save_analysis(self, cafe_id: str, analysis: MoodAnalysis) -> None:
        """Insert or replace the analysis for a cafe."""

    def set_cafe_mood(self, cafe_id: str, mood: str) -> None:
        """Record the dominant mood on the cafe row."""


def extract_json_object(text: str) -> dict[str, object] | None:
    """Return the first balanced JSON object embedded in text, if any."""
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is None:
            start = text.find("{", start + 1)
            continue
        try:
            value = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        # Nested objects belong to the rejected span.
        start = text.find("{", end + 1)
    return None


def _balanced_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def parse_mood_score(text: str) -> MoodScore:
    """Parse a mood distribution, falling back to an equal split."""
    payload = extract_json_object(text)
    if payload is None:
        _logger.warning("Mood response had no JSON object; using neutral scores")
        return MoodScore()
    nested = payload.get("mood_score") or payload.get("scores")
    if isinstance(nested, dict):
        payload = nested
    try:
        return MoodScore.model_validate(payload)
    except ValidationError as exc:
        _logger.warning("Mood response failed validation: %s", exc)
        return MoodScore()


@dataclass
class MoodAnalysisService:
    """Classifies cafe reviews into moods, caching results per cafe."""

    client: ChatClient
    repository: MoodRepository
    review_repository: ReviewRepository
    model: str
    cache_days: int = 7
    temperature: float = 0.3

    def get_cached(self, cafe_id: str) -> MoodAnalysis | None:
        """Return the stored analysis without calling the model."""
        return self.repository.get_analysis(cafe_id)

    async def analyze(self, cafe_id: str, *, force: bool = False) -> MoodAnalysis:
        """Return a fresh-enough analysis, calling the model when stale."""
        existing = await asyncio.to_thread(self.repository.get_analysis, cafe_id)
        if existing is not None and not force and self._is_fresh(existing):
            return existing

        reviews = await asyncio.to_thread(self.review_repository.list_reviews, cafe_id)
        if not reviews:
            return MoodAnalysis(
                mood_score=MoodScore(),
                dominant_mood=NEUTRAL_MOOD,
                review_count=0,
                message="No reviews available for analysis",
            )

        review_text = "\n".join(review.content for review in reviews if review.content)
        raw = await self.client.complete(
            model=self.model,
            system_prompt=MOOD_SYSTEM_PROMPT,
            user_prompt=(
                "Analyze these cafe reviews and return mood scores as JSON: "
                f"{review_text}"
            ),
            temperature=self.temperature,
        )
        score = parse_mood_score(raw)
        analysis = MoodAnalysis(
            mood_score=score,
            dominant_mood=score.dominant(),
            review_count=len(reviews),
            analyzed_at=datetime.now(tz=UTC),
        )
        await asyncio.to_thread(self.repository.save_analysis, cafe_id, analysis)
        await asyncio.to_thread(
            self.repository.set_cafe_mood, cafe_id, analysis.dominant_mood
        )
        _logger.info(
            "Mood analysis stored: cafe=%s dominant=%s reviews=%s",
            cafe_id,
            analysis.dominant_mood,
            analysis.review_count,
        )
        return analysis

    def _is_fresh(self, analysis: MoodAnalysis) -> bool:
        if analysis.analyzed_at is None:
            return False
        analyzed_at = analysis.analyzed_at
        if analyzed_at.tzinfo is None:
            analyzed_at = analyzed_at.replace(tzinfo=UTC)
        return datetime.now(tz=UTC) - analyzed_at < timedelta(days=self.cache_days)
