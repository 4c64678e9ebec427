"""Supabase-backed cafe repository."""

import re
from dataclasses import dataclass

from supabase import Client

from cafe_finder.domain.cafes import Cafe, CrowdLevel, MenuItem, PriceTier
from cafe_finder.services.cafes import CafeQuery, CafeRepository

# Characters with meaning inside a PostgREST or=(...) expression.
_OR_RESERVED = re.compile(r'[,()"\\]')


@dataclass
class SupabaseCafeRepository(CafeRepository):
    """Supabase implementation for cafe reads."""

    client: Client

    def list_cafes(self, query: CafeQuery) -> list[Cafe]:
        """Run a pushed-down cafe query."""
        request = self.client.table("cafes").select("*")
        if query.search_text:
            pattern = _or_pattern(query.search_text)
            request = request.or_(
                f"name.ilike.{pattern},"
                f"description.ilike.{pattern},"
                f"address.ilike.{pattern}"
            )
        if query.address_contains:
            request = request.ilike("address", f"%{query.address_contains}%")
        if query.atmosphere_overlaps:
            request = request.ov("atmosphere", list(query.atmosphere_overlaps))
        if query.price_range is not None:
            request = request.eq("price_range", query.price_range.value)
        if query.mood_classification:
            request = request.eq("mood_classification", query.mood_classification)
        request = request.order(query.order_by, desc=query.descending)
        if query.limit is not None:
            request = request.limit(query.limit)
        response = request.execute()
        return [parse_cafe(row) for row in response.data or []]

    def get_cafe(self, cafe_id: str) -> Cafe | None:
        """Return a cafe by id, if present."""
        response = (
            self.client.table("cafes").select("*").eq("id", cafe_id).limit(1).execute()
        )
        if not response.data:
            return None
        return parse_cafe(response.data[0])

    def get_cafes(self, cafe_ids: list[str]) -> list[Cafe]:
        """Return the cafes with the given ids."""
        if not cafe_ids:
            return []
        response = self.client.table("cafes").select("*").in_("id", cafe_ids).execute()
        return [parse_cafe(row) for row in response.data or []]

    def list_menu_items(self, cafe_id: str) -> list[MenuItem]:
        """Return available menu items ordered by category and name."""
        response = (
            self.client.table("menu_items")
            .select("*")
            .eq("cafe_id", cafe_id)
            .eq("is_available", True)
            .order("category")
            .order("name")
            .execute()
        )
        return [_parse_menu_item(row) for row in response.data or []]


def _or_pattern(text: str) -> str:
    cleaned = _OR_RESERVED.sub(" ", text).strip()
    return f'"%{cleaned}%"'


def parse_cafe(row: dict[str, object]) -> Cafe:
    """Parse a cafes row into a domain model."""
    rating = row.get("rating")
    return Cafe(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        address=str(row.get("address") or ""),
        description=str(row.get("description") or ""),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        price_range=_parse_price(row.get("price_range")),
        rating=float(rating) if rating is not None else None,
        review_count=int(row.get("review_count") or 0),
        crowd_level=_parse_crowd(row.get("crowd_level")),
        is_open=row.get("is_open") is not False,
        atmosphere=tuple(row.get("atmosphere") or ()),
        specialties=tuple(row.get("specialties") or ()),
        amenities=tuple(row.get("amenities") or ()),
        image_url=row.get("image_url"),
        phone=row.get("phone"),
        website=row.get("website"),
        wifi_speed=row.get("wifi_speed"),
        mood_classification=row.get("mood_classification"),
    )


def _parse_price(value: object) -> PriceTier:
    try:
        return PriceTier(value)
    except ValueError:
        return PriceTier.MEDIUM


def _parse_crowd(value: object) -> CrowdLevel | None:
    try:
        return CrowdLevel(value)
    except ValueError:
        return None


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)


def _parse_menu_item(row: dict[str, object]) -> MenuItem:
    price = row.get("price")
    return MenuItem(
        id=str(row["id"]),
        cafe_id=str(row["cafe_id"]),
        name=str(row.get("name", "")),
        category=str(row.get("category") or "Other"),
        price=float(price) if price is not None else None,
        description=row.get("description"),
        is_available=bool(row.get("is_available", True)),
    )
