"""Tests for personalized recommendations."""

import asyncio
import json

import pytest

from cafe_finder.errors import AuthenticationRequired
from cafe_finder.services.recommendations import (
    RecommendationService,
    parse_recommendations,
)
from tests.conftest import (
    USER_ID,
    FakeChatClient,
    InMemoryActivityRepository,
    InMemoryCafeRepository,
    make_cafe,
)


def _service(client: FakeChatClient, repository: InMemoryCafeRepository):  # type: ignore[no-untyped-def]
    return RecommendationService(
        client=client,
        activity_repository=InMemoryActivityRepository(
            favorite_cafes=[make_cafe("fav", "Old Favorite", atmosphere=("Quiet",))],
            views=[{"cafeId": "c1", "cafeName": "Quiet Corner"}],
            preferences={"preferred_moods": ["calm"]},
        ),
        cafe_repository=repository,
        model="test-model",
    )


def test_parse_recommendations_tolerates_garbage() -> None:
    assert parse_recommendations("nothing useful") == []
    assert parse_recommendations('{"recommended_filters": "bad"}') == []


def test_recommend_queries_with_first_filter() -> None:
    client = FakeChatClient(
        text=json.dumps(
            {
                "recommended_filters": [
                    {"atmosphere": "Quiet", "price_range": "$$", "mood": "calm"},
                    {"atmosphere": "Lively"},
                ]
            }
        )
    )
    repository = InMemoryCafeRepository(
        cafes=[
            make_cafe("calm", atmosphere=("Quiet",), mood_classification="calm"),
            make_cafe("busy", atmosphere=("Lively",), mood_classification="lively"),
        ]
    )

    result = asyncio.run(_service(client, repository).recommend(USER_ID))

    assert [item.atmosphere for item in result.filters] == ["Quiet", "Lively"]
    assert [cafe.id for cafe in result.cafes] == ["calm"]
    query = repository.queries[-1]
    assert query.atmosphere_overlaps == ("Quiet",)
    assert query.mood_classification == "calm"
    assert query.limit == 10
    prompt = str(client.calls[0]["user_prompt"])
    assert "Old Favorite" in prompt
    assert "preferred_moods" in prompt


def test_recommend_without_filters_returns_top_cafes() -> None:
    repository = InMemoryCafeRepository()

    result = asyncio.run(
        _service(FakeChatClient(text="sorry"), repository).recommend(USER_ID)
    )

    assert result.filters == []
    assert len(result.cafes) == 3


def test_recommend_requires_sign_in() -> None:
    client = FakeChatClient()

    with pytest.raises(AuthenticationRequired):
        asyncio.run(_service(client, InMemoryCafeRepository()).recommend(None))
    assert client.calls == []
