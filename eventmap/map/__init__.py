"""Geospatial map engine: distance math, markers, camera, clustering and location."""

from .clustering import ClusterEngine, get_clustered_markers
from .config import MapConfig
from .controller import MapController
from .geo import distance, format_distance, is_within_radius
from .markers import MarkerStore
from .models import (
    EventPayload,
    Location,
    MapBounds,
    MapMarker,
    MapViewport,
    MarkerCluster,
    MarkerPopup,
    MarkerType,
    TribePayload,
    UserPayload,
    VenuePayload,
)
from .spatial_filter import bounds_of, filter_by_bounds, filter_by_proximity, search
from .viewport import ViewportManager

__all__ = [
    "ClusterEngine",
    "EventPayload",
    "Location",
    "MapBounds",
    "MapConfig",
    "MapController",
    "MapMarker",
    "MapViewport",
    "MarkerCluster",
    "MarkerPopup",
    "MarkerStore",
    "MarkerType",
    "TribePayload",
    "UserPayload",
    "VenuePayload",
    "ViewportManager",
    "bounds_of",
    "distance",
    "filter_by_bounds",
    "filter_by_proximity",
    "format_distance",
    "get_clustered_markers",
    "is_within_radius",
    "search",
]
