"""Map data types: locations, viewport snapshots, markers and clusters."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Type, Union

LatLng = Tuple[float, float]


def coerce_latlng(value: Any) -> LatLng:
    """Convert a ``[lat, lng]`` pair (list/tuple) into a float tuple."""
    if isinstance(value, Mapping):
        lat, lng = value["latitude"], value["longitude"]
    else:
        lat, lng = value
    point = (float(lat), float(lng))
    if not all(math.isfinite(v) for v in point):
        raise ValueError(f"Coordinates must be finite: {value!r}")
    return point


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Location:
    """A single position fix. ``timestamp`` is epoch milliseconds."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    timestamp: Optional[int] = None

    @property
    def position(self) -> LatLng:
        return (self.latitude, self.longitude)

    def age_ms(self, now_ms: int) -> Optional[int]:
        """Milliseconds since the fix was taken, or None without a timestamp."""
        if self.timestamp is None:
            return None
        return max(0, now_ms - self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Location":
        if not isinstance(data, Mapping):
            raise TypeError(f"Location payload must be an object, got {type(data).__name__}")
        latitude, longitude = coerce_latlng(data)
        accuracy = data.get("accuracy")
        timestamp = data.get("timestamp")
        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy=float(accuracy) if accuracy is not None else None,
            timestamp=int(timestamp) if timestamp is not None else None,
        )


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MapBounds:
    """North/south/east/west rectangle in degrees."""

    north: float
    south: float
    east: float
    west: float

    def contains(self, position: LatLng) -> bool:
        """Inclusive membership test. ``west > east`` is not treated as wrapping."""
        lat, lng = position
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def to_dict(self) -> Dict[str, float]:
        return {"north": self.north, "south": self.south, "east": self.east, "west": self.west}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapBounds":
        return cls(
            north=float(data["north"]),
            south=float(data["south"]),
            east=float(data["east"]),
            west=float(data["west"]),
        )


@dataclass(frozen=True, slots=True)
class MapViewport:
    """Immutable camera snapshot; replaced as a whole on every change."""

    center: LatLng
    zoom: int
    bounds: Optional[MapBounds] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "bounds": self.bounds.to_dict() if self.bounds else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapViewport":
        bounds = data.get("bounds")
        return cls(
            center=coerce_latlng(data["center"]),
            zoom=int(round(float(data["zoom"]))),
            bounds=MapBounds.from_dict(bounds) if bounds else None,
        )


# ---------------------------------------------------------------------------
# Marker payloads (tagged by MarkerType)
# ---------------------------------------------------------------------------


class MarkerType(str, Enum):
    EVENT = "event"
    TRIBE = "tribe"
    USER = "user"
    VENUE = "venue"


def _join_search_fields(*values: Any) -> str:
    parts = []
    for value in values:
        if value is None:
            parts.append("")
        elif isinstance(value, (list, tuple)):
            parts.append(" ".join(str(v) for v in value))
        else:
            parts.append(str(value))
    return " ".join(parts)


@dataclass(frozen=True, slots=True)
class EventPayload:
    title: str = ""
    description: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    starts_at: Optional[str] = None
    venue_name: Optional[str] = None

    def search_text(self) -> str:
        return _join_search_fields(self.title, self.description, self.category, self.tags)


@dataclass(frozen=True, slots=True)
class TribePayload:
    name: str = ""
    description: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    member_count: int = 0

    def search_text(self) -> str:
        return _join_search_fields(self.name, self.description, self.category, self.tags)


@dataclass(frozen=True, slots=True)
class UserPayload:
    name: str = ""
    username: Optional[str] = None
    avatar_url: Optional[str] = None

    def search_text(self) -> str:
        return _join_search_fields(self.name)


@dataclass(frozen=True, slots=True)
class VenuePayload:
    name: str = ""
    description: str = ""
    category: str = ""
    tags: Tuple[str, ...] = ()
    address: Optional[str] = None

    def search_text(self) -> str:
        return _join_search_fields(self.name, self.description, self.category, self.tags)


MarkerPayload = Union[EventPayload, TribePayload, UserPayload, VenuePayload]

PAYLOAD_TYPES: Dict[MarkerType, Type[Any]] = {
    MarkerType.EVENT: EventPayload,
    MarkerType.TRIBE: TribePayload,
    MarkerType.USER: UserPayload,
    MarkerType.VENUE: VenuePayload,
}


def payload_from_dict(marker_type: MarkerType, data: Optional[Mapping[str, Any]]) -> MarkerPayload:
    """Build the payload variant for ``marker_type``; unknown keys are ignored."""
    payload_cls = PAYLOAD_TYPES[marker_type]
    data = data or {}
    kwargs: Dict[str, Any] = {}
    for f in fields(payload_cls):
        if f.name not in data or data[f.name] is None:
            continue
        value = data[f.name]
        if f.name == "tags":
            value = tuple(str(tag) for tag in value)
        elif f.name == "member_count":
            value = int(value)
        kwargs[f.name] = value
    return payload_cls(**kwargs)


def payload_to_dict(payload: MarkerPayload) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for f in fields(payload):
        value = getattr(payload, f.name)
        result[f.name] = list(value) if isinstance(value, tuple) else value
    return result


# ---------------------------------------------------------------------------
# Markers and clusters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarkerPopup:
    title: str
    content: str
    image: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MapMarker:
    """A geo-tagged entity placed on the map.

    The payload variant must match ``type``; mismatches raise ``ValueError``.
    """

    id: str
    position: LatLng
    type: MarkerType
    data: MarkerPayload
    popup: Optional[MarkerPopup] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("Marker id must be a non-empty string")
        marker_type = MarkerType(self.type)
        object.__setattr__(self, "type", marker_type)
        object.__setattr__(self, "position", coerce_latlng(self.position))
        expected = PAYLOAD_TYPES[marker_type]
        if not isinstance(self.data, expected):
            raise ValueError(
                f"Marker {self.id!r} of type {marker_type.value!r} requires "
                f"{expected.__name__}, got {type(self.data).__name__}"
            )

    @property
    def latitude(self) -> float:
        return self.position[0]

    @property
    def longitude(self) -> float:
        return self.position[1]

    def to_dict(self) -> Dict[str, Any]:
        popup = None
        if self.popup is not None:
            popup = {"title": self.popup.title, "content": self.popup.content, "image": self.popup.image}
        return {
            "id": self.id,
            "position": list(self.position),
            "type": self.type.value,
            "data": payload_to_dict(self.data),
            "popup": popup,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapMarker":
        marker_type = MarkerType(data["type"])
        popup_data = data.get("popup")
        popup = None
        if popup_data:
            popup = MarkerPopup(
                title=str(popup_data["title"]),
                content=str(popup_data.get("content", "")),
                image=popup_data.get("image"),
            )
        return cls(
            id=str(data["id"]),
            position=coerce_latlng(data["position"]),
            type=marker_type,
            data=payload_from_dict(marker_type, data.get("data")),
            popup=popup,
        )


@dataclass(frozen=True, slots=True)
class MarkerCluster:
    """Ordered group of one or more markers; the first marker is the seed."""

    markers: Tuple[MapMarker, ...]

    def __post_init__(self) -> None:
        if not self.markers:
            raise ValueError("A cluster holds at least one marker")

    def __len__(self) -> int:
        return len(self.markers)

    def __iter__(self) -> Iterator[MapMarker]:
        return iter(self.markers)

    @property
    def size(self) -> int:
        return len(self.markers)

    @property
    def seed(self) -> MapMarker:
        return self.markers[0]

    @property
    def center(self) -> LatLng:
        """Arithmetic mean of member positions."""
        count = len(self.markers)
        lat = sum(m.latitude for m in self.markers) / count
        lng = sum(m.longitude for m in self.markers) / count
        return (lat, lng)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "center": list(self.center),
            "markers": [m.to_dict() for m in self.markers],
        }


__all__ = [
    "LatLng",
    "coerce_latlng",
    "Location",
    "MapBounds",
    "MapViewport",
    "MarkerType",
    "EventPayload",
    "TribePayload",
    "UserPayload",
    "VenuePayload",
    "MarkerPayload",
    "PAYLOAD_TYPES",
    "payload_from_dict",
    "payload_to_dict",
    "MarkerPopup",
    "MapMarker",
    "MarkerCluster",
]
