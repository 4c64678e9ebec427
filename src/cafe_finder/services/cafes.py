"""Cafe search: store query composition, distance annotation and ranking."""

import logging
import math
from dataclasses import dataclass
from typing import Protocol

from cafe_finder.domain.cafes import Cafe, CafeFilters, MenuItem, PriceTier
from cafe_finder.domain.location import Coordinate
from cafe_finder.errors import CafeNotFoundError
from cafe_finder.services.filters import apply_filters
from cafe_finder.services.geo import distance_to_cafe

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CafeQuery:
    """Conditions the backing store can evaluate itself."""

    search_text: str | None = None
    address_contains: str | None = None
    atmosphere_overlaps: tuple[str, ...] = ()
    price_range: PriceTier | None = None
    mood_classification: str | None = None
    order_by: str = "rating"
    descending: bool = True
    limit: int | None = None


class CafeRepository(Protocol):
    """Persistence interface for cafes."""

    def list_cafes(self, query: CafeQuery) -> list[Cafe]:
        """Return cafes matching the pushed-down query."""

    def get_cafe(self, cafe_id: str) -> Cafe | None:
        """Return a cafe by id, if present."""

    def get_cafes(self, cafe_ids: list[str]) -> list[Cafe]:
        """Return the cafes with the given ids."""

    def list_menu_items(self, cafe_id: str) -> list[MenuItem]:
        """Return available menu items ordered by category then name."""


def compose_query(filters: CafeFilters, limit: int | None = None) -> CafeQuery:
    """Translate a filter set into a store query."""
    return CafeQuery(
        search_text=(filters.search_query or "").strip() or None,
        address_contains=(filters.location or "").strip() or None,
        atmosphere_overlaps=tuple(sorted(filters.moods)),
        price_range=filters.price_tier,
        limit=limit,
    )


def rank_cafes(cafes: list[Cafe], *, by_distance: bool) -> list[Cafe]:
    """Order cafes by distance when known, otherwise by rating."""
    if by_distance:
        return sorted(cafes, key=_distance_key)
    return sorted(cafes, key=_rating_key)


def _rating_key(cafe: Cafe) -> tuple[bool, float]:
    return (cafe.rating is None, -(cafe.rating or 0.0))


def _distance_key(cafe: Cafe) -> tuple[bool, float, bool, float]:
    distance = cafe.distance_km if cafe.distance_km is not None else math.inf
    return (cafe.distance_km is None, distance, *_rating_key(cafe))


@dataclass
class CafeSearchService:
    """Runs cafe searches against the store and ranks the results."""

    repository: CafeRepository
    result_limit: int | None = None

    def search(
        self, filters: CafeFilters, origin: Coordinate | None = None
    ) -> list[Cafe]:
        """Return cafes matching the filters, nearest first when located."""
        query = compose_query(filters, limit=self.result_limit)
        candidates = self.repository.list_cafes(query)
        if origin is not None:
            candidates = [
                cafe.with_distance(distance_to_cafe(origin, cafe))
                for cafe in candidates
            ]
        results = apply_filters(filters, candidates)
        _logger.debug(
            "Cafe search: candidates=%s results=%s located=%s",
            len(candidates),
            len(results),
            origin is not None,
        )
        return rank_cafes(results, by_distance=origin is not None)

    def get_cafe(self, cafe_id: str, origin: Coordinate | None = None) -> Cafe:
        """Return a single cafe, annotated with distance when located."""
        cafe = self.repository.get_cafe(cafe_id)
        if cafe is None:
            raise CafeNotFoundError
        if origin is not None:
            return cafe.with_distance(distance_to_cafe(origin, cafe))
        return cafe

    def list_by_ids(self, cafe_ids: set[str]) -> list[Cafe]:
        """Return the given cafes ordered by rating."""
        if not cafe_ids:
            return []
        return rank_cafes(
            self.repository.get_cafes(sorted(cafe_ids)), by_distance=False
        )

    def get_menu(self, cafe_id: str) -> dict[str, list[MenuItem]]:
        """Return available menu items grouped by category."""
        grouped: dict[str, list[MenuItem]] = {}
        for item in self.repository.list_menu_items(cafe_id):
            grouped.setdefault(item.category, []).append(item)
        return grouped
