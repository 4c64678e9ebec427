"""Personalized cafe recommendations."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError

from cafe_finder.domain.cafes import Cafe
from cafe_finder.domain.mood import RecommendationPayload, RecommendedFilter
from cafe_finder.errors import AuthenticationRequired
from cafe_finder.services.cafes import CafeQuery, CafeRepository
from cafe_finder.services.mood import ChatClient, extract_json_object

RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a personalized cafe recommendation system. Based on user "
    "preferences, favorites, and browsing history, provide intelligent cafe "
    "recommendations. Return ONLY a JSON object with a recommended_filters "
    "array whose entries contain suggested atmosphere, price_range, and mood "
    "preferences."
)

_logger = logging.getLogger(__name__)


class UserActivityRepository(Protocol):
    """Read access to the signals used for personalization."""

    def list_favorite_cafes(self, user_id: UUID, limit: int) -> list[Cafe]:
        """Return the user's favorite cafes."""

    def list_recent_views(self, user_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return payloads of the user's recent cafe views."""

    def get_preferences(self, user_id: UUID) -> dict[str, object] | None:
        """Return stored user preferences, if any."""


@dataclass(frozen=True)
class Recommendations:
    """Suggested filters and the cafes that match the first one."""

    filters: list[RecommendedFilter]
    cafes: list[Cafe]


def parse_recommendations(text: str) -> list[RecommendedFilter]:
    """Parse recommended filters, returning none when the text is unusable."""
    payload = extract_json_object(text)
    if payload is None:
        _logger.warning("Recommendation response had no JSON object")
        return []
    try:
        return RecommendationPayload.model_validate(payload).recommended_filters
    except ValidationError as exc:
        _logger.warning("Recommendation response failed validation: %s", exc)
        return []


@dataclass
class RecommendationService:
    """Builds a profile from user activity and asks the model for filters."""

    client: ChatClient
    activity_repository: UserActivityRepository
    cafe_repository: CafeRepository
    model: str
    temperature: float = 0.5
    result_limit: int = 10

    async def recommend(self, user_id: UUID | None) -> Recommendations:
        """Return recommended filters and matching cafes for a user."""
        if user_id is None:
            raise AuthenticationRequired("Please sign in to get recommendations")

        activity = self.activity_repository
        favorites = await asyncio.to_thread(activity.list_favorite_cafes, user_id, 10)
        views = await asyncio.to_thread(activity.list_recent_views, user_id, 20)
        preferences = await asyncio.to_thread(activity.get_preferences, user_id)
        favorite_profile = [
            {
                "name": cafe.name,
                "atmosphere": list(cafe.atmosphere),
                "specialties": list(cafe.specialties),
                "price_range": cafe.price_range.value,
                "mood": cafe.mood_classification,
            }
            for cafe in favorites
        ]
        raw = await self.client.complete(
            model=self.model,
            system_prompt=RECOMMENDATION_SYSTEM_PROMPT,
            user_prompt=(
                "User data:\n"
                f"Favorite cafes: {json.dumps(favorite_profile)}\n"
                f"Preferences: {json.dumps(preferences, default=str)}\n"
                f"Recent views: {json.dumps(views, default=str)}\n\n"
                "Recommend what types of cafes this user would enjoy."
            ),
            temperature=self.temperature,
        )
        filters = parse_recommendations(raw)
        query = CafeQuery(limit=self.result_limit)
        if filters:
            first = filters[0]
            query = CafeQuery(
                atmosphere_overlaps=(first.atmosphere,) if first.atmosphere else (),
                mood_classification=first.mood,
                limit=self.result_limit,
            )
        cafes = await asyncio.to_thread(self.cafe_repository.list_cafes, query)
        return Recommendations(filters=filters, cafes=cafes)
