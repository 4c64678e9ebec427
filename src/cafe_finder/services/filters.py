"""Predicates that decide whether a cafe matches the active filters."""

from collections.abc import Iterable

from cafe_finder.domain.cafes import Cafe, CafeFilters


def matches_text(query: str | None, cafe: Cafe) -> bool:
    """Match the query against name, description or address."""
    if not query:
        return True
    needle = query.casefold()
    return any(
        needle in (value or "").casefold()
        for value in (cafe.name, cafe.description, cafe.address)
    )


def matches_location(location: str | None, cafe: Cafe) -> bool:
    """Match a free-text location against the address only."""
    if not location:
        return True
    return location.casefold() in (cafe.address or "").casefold()


def matches_moods(moods: Iterable[str], cafe: Cafe) -> bool:
    """Match when the cafe carries any of the selected mood tags."""
    selected = {mood.casefold() for mood in moods}
    if not selected:
        return True
    return not selected.isdisjoint(tag.casefold() for tag in cafe.atmosphere)


def matches_budget(filters: CafeFilters, cafe: Cafe) -> bool:
    """Match the selected budget tier exactly."""
    tier = filters.price_tier
    if tier is None:
        return True
    return cafe.price_range == tier


def within_distance(
    max_distance_km: float | None, cafe: Cafe, *, require_distance: bool = False
) -> bool:
    """Match cafes inside the radius; unknown distance passes unless required."""
    if max_distance_km is None:
        return True
    if cafe.distance_km is None:
        return not require_distance
    return cafe.distance_km <= max_distance_km


def matches(filters: CafeFilters, cafe: Cafe) -> bool:
    """Return True when the cafe satisfies every active predicate."""
    return (
        matches_text(filters.search_query, cafe)
        and matches_location(filters.location, cafe)
        and matches_moods(filters.moods, cafe)
        and matches_budget(filters, cafe)
        and within_distance(
            filters.max_distance_km, cafe, require_distance=filters.require_distance
        )
    )


def apply_filters(filters: CafeFilters, cafes: Iterable[Cafe]) -> list[Cafe]:
    """Return the cafes that match the filters, preserving order."""
    if filters.is_empty():
        return list(cafes)
    return [cafe for cafe in cafes if matches(filters, cafe)]
