"""Stateless marker filters: bounds, text search and proximity."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .geo import PointLike, distance
from .models import MapBounds, MapMarker


def filter_by_bounds(markers: Iterable[MapMarker], bounds: Optional[MapBounds]) -> List[MapMarker]:
    """Markers inside ``bounds`` (edges inclusive); all markers when bounds is None."""
    if bounds is None:
        return list(markers)
    return [m for m in markers if bounds.contains(m.position)]


def search(markers: Iterable[MapMarker], query: Optional[str]) -> List[MapMarker]:
    """Case-insensitive substring match over each payload's searchable text."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(markers)
    return [m for m in markers if needle in m.data.search_text().lower()]


def bounds_of(markers: Sequence[MapMarker]) -> Optional[MapBounds]:
    if not markers:
        return None
    lats = [m.latitude for m in markers]
    lngs = [m.longitude for m in markers]
    return MapBounds(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs))


def filter_by_proximity(
    markers: Iterable[MapMarker],
    origin: PointLike,
    radius_km: float,
) -> List[Tuple[MapMarker, float]]:
    """``(marker, distance_km)`` pairs within ``radius_km``, nearest first."""
    hits = []
    for marker in markers:
        km = distance(origin, marker)
        if km <= radius_km:
            hits.append((marker, km))
    hits.sort(key=lambda pair: pair[1])
    return hits


__all__ = ["bounds_of", "filter_by_bounds", "filter_by_proximity", "search"]
