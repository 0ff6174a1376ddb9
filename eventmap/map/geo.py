"""Great-circle distance helpers.

Points may be ``(lat, lng)`` tuples or any object exposing a ``position``
tuple (``Location``, ``MapMarker``).
"""

from __future__ import annotations

import math
from typing import Any, Tuple, Union

from .constants import EARTH_RADIUS_KM
from .models import LatLng, Location, MapMarker

PointLike = Union[LatLng, Location, MapMarker]


def as_latlng(point: Any) -> Tuple[float, float]:
    position = getattr(point, "position", point)
    lat, lng = position
    return float(lat), float(lng)


def distance(p1: PointLike, p2: PointLike) -> float:
    """Haversine distance in kilometres on a sphere of radius 6371 km.

    Longitude differences are used as-is; ``sin(dlng / 2) ** 2`` is already
    periodic so points either side of the antimeridian come out correct.
    """
    lat1, lng1 = as_latlng(p1)
    lat2, lng2 = as_latlng(p2)

    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push ``a`` a hair past 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_radius(p1: PointLike, p2: PointLike, radius_km: float) -> bool:
    return distance(p1, p2) <= radius_km


def format_distance(distance_km: float) -> str:
    """Human-readable distance: metres below 1 km, one decimal below 10 km."""
    if distance_km < 1:
        return f"{round(distance_km * 1000)}m"
    if distance_km < 10:
        return f"{distance_km:.1f}km"
    return f"{round(distance_km)}km"


__all__ = ["PointLike", "as_latlng", "distance", "format_distance", "is_within_radius"]
