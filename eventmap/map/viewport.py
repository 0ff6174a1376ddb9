"""Camera state: center, zoom and the optional visible bounds.

Every mutation replaces the current ``MapViewport`` with a new frozen
snapshot and publishes it once to listeners. Zoom values are clamped into
``[min_zoom, max_zoom]`` and rounded, never rejected.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from eventmap.core.logging_utils import get_module_logger
from .constants import DEFAULT_CENTER, DEFAULT_ZOOM, MAX_ZOOM_LEVEL, MIN_ZOOM_LEVEL
from .models import LatLng, MapBounds, MapViewport, coerce_latlng

logger = get_module_logger("Viewport")

ViewportListener = Callable[[MapViewport], None]


class ViewportManager:
    """Owns the map camera.

    Example:
        viewport = ViewportManager((40.4168, -3.7038), 12)
        viewport.set_zoom(25)   # clamped to 18
        viewport.adjust_zoom(-2)
    """

    def __init__(
        self,
        initial_center: LatLng = DEFAULT_CENTER,
        initial_zoom: float = DEFAULT_ZOOM,
        min_zoom: int = MIN_ZOOM_LEVEL,
        max_zoom: int = MAX_ZOOM_LEVEL,
    ) -> None:
        if min_zoom > max_zoom:
            raise ValueError(f"min_zoom ({min_zoom}) must not exceed max_zoom ({max_zoom})")
        self.min_zoom = int(min_zoom)
        self.max_zoom = int(max_zoom)
        self._listeners: List[ViewportListener] = []
        self._viewport = MapViewport(
            center=coerce_latlng(initial_center),
            zoom=self.clamp_zoom(initial_zoom),
        )

    @property
    def viewport(self) -> MapViewport:
        return self._viewport

    @property
    def center(self) -> LatLng:
        return self._viewport.center

    @property
    def zoom(self) -> int:
        return self._viewport.zoom

    @property
    def bounds(self) -> Optional[MapBounds]:
        return self._viewport.bounds

    def clamp_zoom(self, zoom: float) -> int:
        return int(round(max(self.min_zoom, min(self.max_zoom, float(zoom)))))

    # ------------------------------------------------------------------
    # Mutations

    def set_center(self, center: LatLng) -> MapViewport:
        return self._publish(MapViewport(coerce_latlng(center), self.zoom, self.bounds))

    def set_zoom(self, zoom: float) -> MapViewport:
        return self._publish(MapViewport(self.center, self.clamp_zoom(zoom), self.bounds))

    def adjust_zoom(self, delta: float) -> int:
        """Change zoom by ``delta`` (positive zooms in); returns the new level."""
        self.set_zoom(self.zoom + delta)
        return self.zoom

    def can_zoom_in(self) -> bool:
        return self.zoom < self.max_zoom

    def can_zoom_out(self) -> bool:
        return self.zoom > self.min_zoom

    def fit_bounds(self, bounds: MapBounds) -> MapViewport:
        return self._publish(MapViewport(self.center, self.zoom, bounds))

    def fly_to(self, center: LatLng, zoom: Optional[float] = None) -> MapViewport:
        """Move center and (optionally) zoom as one transition."""
        target_zoom = self.zoom if zoom is None else self.clamp_zoom(zoom)
        return self._publish(MapViewport(coerce_latlng(center), target_zoom, self.bounds))

    def set_viewport(self, viewport: MapViewport) -> MapViewport:
        return self._publish(
            MapViewport(coerce_latlng(viewport.center), self.clamp_zoom(viewport.zoom), viewport.bounds)
        )

    # ------------------------------------------------------------------
    # Listeners

    def add_listener(self, callback: ViewportListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _publish(self, viewport: MapViewport) -> MapViewport:
        self._viewport = viewport
        logger.debug("Viewport center=%s zoom=%d", viewport.center, viewport.zoom)
        for listener in list(self._listeners):
            try:
                listener(viewport)
            except Exception:
                logger.error("Viewport listener failed", exc_info=True)
        return viewport


__all__ = ["ViewportListener", "ViewportManager"]
