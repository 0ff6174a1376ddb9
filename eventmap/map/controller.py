"""Map controller: one object per map view wiring camera, markers and location.

The controller is always an explicit instance; several can coexist in one
process (each with its own storage and host) and tests build isolated ones.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from eventmap.core.logging_utils import get_module_logger
from eventmap.core.storage import BaseKeyValueStorage, JsonFileStorage, MemoryStorage
from .clustering import ClusterEngine
from .config import MapConfig
from .location.hosts import BaseLocationHost, ErrorCallback, UpdateCallback
from .location.provider import LocationProvider, Unsubscribe
from .location.types import LocationErrorCode
from .markers import MarkerStore
from .models import LatLng, Location, MapBounds, MapMarker, MapViewport, MarkerCluster, MarkerType
from .spatial_filter import bounds_of, filter_by_bounds, filter_by_proximity, search
from .viewport import ViewportManager

logger = get_module_logger("MapController")

ControllerListener = Callable[["MapController"], None]


class MapController:
    """Facade over ``ViewportManager``, ``MarkerStore``, ``LocationProvider``
    and ``ClusterEngine``.

    Selecting a marker flies the camera to it; with ``follow_location``
    enabled every new user location recenters the camera.
    """

    def __init__(
        self,
        config: Optional[MapConfig] = None,
        *,
        host: Optional[BaseLocationHost] = None,
        storage: Optional[BaseKeyValueStorage] = None,
    ) -> None:
        self.config = config or MapConfig()
        self.follow_location = self.config.follow_location
        self._listeners: List[ControllerListener] = []

        self.viewport_manager = ViewportManager(
            initial_center=self.config.initial_center,
            initial_zoom=self.config.initial_zoom,
            min_zoom=self.config.min_zoom,
            max_zoom=self.config.max_zoom,
        )
        self.marker_store = MarkerStore(
            fly_to=self.viewport_manager.fly_to,
            current_zoom=lambda: self.viewport_manager.zoom,
            select_zoom=self.config.select_zoom,
        )
        self.location_provider = LocationProvider(
            host,
            storage if storage is not None else MemoryStorage(),
            self.config.position_options(),
            storage_key=self.config.storage_key,
        )
        self.cluster_engine = ClusterEngine(
            self.config.cluster_radius_km,
            self.config.enable_clustering,
        )

        self._last_location: Optional[Location] = None
        self.viewport_manager.add_listener(lambda _viewport: self._notify())
        self.marker_store.add_listener(lambda _store: self._notify())
        self.location_provider.add_listener(self._on_location_state)

    @classmethod
    def from_config(
        cls,
        config: MapConfig,
        *,
        host: Optional[BaseLocationHost] = None,
        storage: Optional[BaseKeyValueStorage] = None,
    ) -> "MapController":
        """Build a controller; storage defaults to ``config.storage_path``."""
        if storage is None:
            storage = JsonFileStorage(config.storage_path)
        return cls(config, host=host, storage=storage)

    # ------------------------------------------------------------------
    # State

    @property
    def viewport(self) -> MapViewport:
        return self.viewport_manager.viewport

    @property
    def markers(self) -> Tuple[MapMarker, ...]:
        return self.marker_store.markers

    @property
    def selected_marker(self) -> Optional[MapMarker]:
        return self.marker_store.selected_marker

    @property
    def location(self) -> Optional[Location]:
        return self.location_provider.location

    @property
    def is_loading(self) -> bool:
        return self.location_provider.is_loading

    @property
    def error(self) -> Optional[LocationErrorCode]:
        return self.location_provider.error

    @property
    def error_message(self) -> Optional[str]:
        return self.location_provider.error_message

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> Optional[Location]:
        return await self.location_provider.start()

    async def close(self) -> None:
        await self.location_provider.close()

    # ------------------------------------------------------------------
    # Camera

    def set_center(self, center: LatLng) -> MapViewport:
        return self.viewport_manager.set_center(center)

    def set_zoom(self, zoom: float) -> MapViewport:
        return self.viewport_manager.set_zoom(zoom)

    def adjust_zoom(self, delta: float) -> int:
        return self.viewport_manager.adjust_zoom(delta)

    def fit_bounds(self, bounds: MapBounds) -> MapViewport:
        return self.viewport_manager.fit_bounds(bounds)

    def fly_to(self, center: LatLng, zoom: Optional[float] = None) -> MapViewport:
        return self.viewport_manager.fly_to(center, zoom)

    def set_viewport(self, viewport: MapViewport) -> MapViewport:
        return self.viewport_manager.set_viewport(viewport)

    # ------------------------------------------------------------------
    # Markers

    def add_marker(self, marker: MapMarker) -> None:
        self.marker_store.add_marker(marker)

    def add_markers(self, markers: Iterable[MapMarker]) -> int:
        return self.marker_store.add_markers(markers)

    def remove_marker(self, marker_id: str) -> bool:
        return self.marker_store.remove_marker(marker_id)

    def select_marker(self, marker_id: Optional[str]) -> Optional[MapMarker]:
        return self.marker_store.select_marker(marker_id)

    def clear_markers(self) -> None:
        self.marker_store.clear_markers()

    def get_marker(self, marker_id: str) -> Optional[MapMarker]:
        return self.marker_store.get(marker_id)

    def get_markers_by_type(self, marker_type: Union[MarkerType, str]) -> List[MapMarker]:
        return self.marker_store.get_markers_by_type(marker_type)

    def get_markers_in_viewport(self) -> List[MapMarker]:
        return filter_by_bounds(self.markers, self.viewport.bounds)

    def search_markers(self, query: Optional[str]) -> List[MapMarker]:
        return search(self.markers, query)

    def get_clustered_markers(self, cluster_radius_km: Optional[float] = None) -> List[MarkerCluster]:
        return self.cluster_engine.cluster(self.markers, cluster_radius_km)

    def get_map_bounds(self) -> Optional[MapBounds]:
        return bounds_of(self.markers)

    def get_nearby_markers(self, radius_km: Optional[float] = None) -> List[Tuple[MapMarker, float]]:
        """Markers near the current location, nearest first; empty without a location."""
        location = self.location
        if location is None:
            return []
        radius = self.config.nearby_radius_km if radius_km is None else radius_km
        return filter_by_proximity(self.markers, location, radius)

    # ------------------------------------------------------------------
    # Location

    async def get_current_position(self) -> Optional[Location]:
        return await self.location_provider.get_current_position()

    def watch_position(self) -> Unsubscribe:
        return self.location_provider.watch_position()

    def clear_watch(self) -> None:
        self.location_provider.clear_watch()

    def subscribe(
        self,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        return self.location_provider.subscribe(on_update, on_error)

    def update_location(self, location: Location) -> None:
        self.location_provider.update_location(location)

    def clear_location(self) -> None:
        self.location_provider.clear_location()

    # ------------------------------------------------------------------
    # Observation

    def add_listener(self, callback: ControllerListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def snapshot(self) -> Dict[str, Any]:
        selected = self.selected_marker
        return {
            "viewport": self.viewport.to_dict(),
            "markers": [m.to_dict() for m in self.markers],
            "selected_marker_id": selected.id if selected else None,
            "location": self.location_provider.to_dict(),
            "clustering": {
                "enabled": self.cluster_engine.enabled,
                "cluster_radius_km": self.cluster_engine.cluster_radius_km,
            },
            "follow_location": self.follow_location,
        }

    def _on_location_state(self, provider: LocationProvider) -> None:
        location = provider.location
        if location is not None and location != self._last_location and self.follow_location:
            self._last_location = location
            # set_center publishes and notifies listeners
            self.viewport_manager.set_center(location.position)
            return
        self._last_location = location
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.error("Controller listener failed", exc_info=True)


__all__ = ["ControllerListener", "MapController"]
