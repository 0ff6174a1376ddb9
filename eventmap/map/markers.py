"""Ordered marker collection with single selection."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from eventmap.core.logging_utils import get_module_logger
from .constants import SELECT_ZOOM_LEVEL
from .models import LatLng, MapMarker, MarkerType

logger = get_module_logger("MarkerStore")

FlyTo = Callable[[LatLng, int], None]
ZoomGetter = Callable[[], int]
StoreListener = Callable[["MarkerStore"], None]


class MarkerStore:
    """Markers keyed by id, kept in insertion order.

    Re-adding an existing id replaces the marker in place. Selecting a
    marker asks the camera to fly to it at ``max(current_zoom, select_zoom)``
    when ``fly_to`` / ``current_zoom`` are wired.
    """

    def __init__(
        self,
        *,
        fly_to: Optional[FlyTo] = None,
        current_zoom: Optional[ZoomGetter] = None,
        select_zoom: int = SELECT_ZOOM_LEVEL,
    ) -> None:
        self._markers: List[MapMarker] = []
        self._index: Dict[str, int] = {}
        self._selected_id: Optional[str] = None
        self._fly_to = fly_to
        self._current_zoom = current_zoom
        self.select_zoom = select_zoom
        self._listeners: List[StoreListener] = []

    def __len__(self) -> int:
        return len(self._markers)

    def __contains__(self, marker_id: object) -> bool:
        return marker_id in self._index

    @property
    def markers(self) -> Tuple[MapMarker, ...]:
        return tuple(self._markers)

    @property
    def selected_marker(self) -> Optional[MapMarker]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, marker_id: str) -> Optional[MapMarker]:
        index = self._index.get(marker_id)
        return self._markers[index] if index is not None else None

    def get_markers_by_type(self, marker_type: Union[MarkerType, str]) -> List[MapMarker]:
        wanted = MarkerType(marker_type)
        return [m for m in self._markers if m.type is wanted]

    # ------------------------------------------------------------------
    # Mutations

    def add_marker(self, marker: MapMarker) -> None:
        self._upsert(marker)
        self._notify()

    def add_markers(self, markers: Iterable[MapMarker]) -> int:
        count = 0
        for marker in markers:
            self._upsert(marker)
            count += 1
        if count:
            self._notify()
        return count

    def remove_marker(self, marker_id: str) -> bool:
        index = self._index.pop(marker_id, None)
        if index is None:
            return False
        del self._markers[index]
        self._reindex()
        if self._selected_id == marker_id:
            self._selected_id = None
        logger.debug("Removed marker %s", marker_id)
        self._notify()
        return True

    def select_marker(self, marker_id: Optional[str]) -> Optional[MapMarker]:
        """Select by id; ``None`` clears, unknown ids leave the selection alone."""
        if marker_id is None:
            self._selected_id = None
            self._notify()
            return None

        marker = self.get(marker_id)
        if marker is None:
            logger.debug("Ignoring selection of unknown marker %s", marker_id)
            return None

        self._selected_id = marker_id
        if self._fly_to is not None:
            zoom = self._current_zoom() if self._current_zoom is not None else self.select_zoom
            self._fly_to(marker.position, max(zoom, self.select_zoom))
        self._notify()
        return marker

    def clear_markers(self) -> None:
        self._markers.clear()
        self._index.clear()
        self._selected_id = None
        logger.debug("Cleared all markers")
        self._notify()

    def add_listener(self, callback: StoreListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # ------------------------------------------------------------------
    # Internals

    def _upsert(self, marker: MapMarker) -> None:
        index = self._index.get(marker.id)
        if index is None:
            self._index[marker.id] = len(self._markers)
            self._markers.append(marker)
        else:
            # selection is by id, so a selected marker now resolves to the new instance
            self._markers[index] = marker

    def _reindex(self) -> None:
        self._index = {marker.id: i for i, marker in enumerate(self._markers)}

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.error("Marker store listener failed", exc_info=True)


__all__ = ["FlyTo", "MarkerStore", "StoreListener"]
