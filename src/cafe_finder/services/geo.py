"""Great-circle distance helpers."""

import math

from cafe_finder.domain.cafes import Cafe
from cafe_finder.domain.location import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the Haversine distance in kilometers between two points.

    Inputs are decimal degrees. Range checking is the caller's job; values
    outside the valid range still produce a number.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push a a hair past 1 for antipodal points.
    a = min(max(a, 0.0), 1.0)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(origin: Coordinate, target: Coordinate) -> float:
    """Return the distance in kilometers between two coordinates."""
    return haversine_km(
        origin.latitude, origin.longitude, target.latitude, target.longitude
    )


def distance_to_cafe(origin: Coordinate | None, cafe: Cafe) -> float | None:
    """Return the distance to a cafe, or None if it cannot be computed."""
    if origin is None or not origin.is_finite():
        return None
    if cafe.latitude is None or cafe.longitude is None:
        return None
    if not (math.isfinite(cafe.latitude) and math.isfinite(cafe.longitude)):
        return None
    return haversine_km(
        origin.latitude, origin.longitude, cafe.latitude, cafe.longitude
    )
