"""Domain models for reviews and favorites."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Review:
    """A user review of a cafe."""

    id: UUID
    user_id: UUID
    cafe_id: str
    rating: int
    title: str | None
    content: str | None
    created_at: datetime


@dataclass(frozen=True)
class Favorite:
    """A saved cafe for a user."""

    user_id: UUID
    cafe_id: str
