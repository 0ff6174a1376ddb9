"""User location state: acquisition, watching and persistence.

``LocationProvider`` owns the single current ``Location`` of a session. It
fetches through a ``BaseLocationHost``, persists every accepted fix under a
fixed storage key and classifies failures into ``LocationErrorCode`` values.
Host exceptions never escape: callers read ``error`` / ``error_message``.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

from eventmap.core.logging_utils import get_module_logger
from eventmap.core.storage import BaseKeyValueStorage
from ..constants import LOCATION_STORAGE_KEY
from ..models import Location
from .hosts import BaseLocationHost, ErrorCallback, UpdateCallback
from .types import DEFAULT_ERROR_MESSAGES, LocationError, LocationErrorCode, PositionOptions

logger = get_module_logger("LocationProvider")

ProviderListener = Callable[["LocationProvider"], None]
Unsubscribe = Callable[[], None]


def _noop() -> None:
    return None


class LocationProvider:
    """Acquire, watch and persist the user's location."""

    def __init__(
        self,
        host: Optional[BaseLocationHost],
        storage: BaseKeyValueStorage,
        options: Optional[PositionOptions] = None,
        *,
        storage_key: str = LOCATION_STORAGE_KEY,
    ) -> None:
        self.host = host
        self.storage = storage
        self.options = options or PositionOptions()
        self.storage_key = storage_key

        self.location: Optional[Location] = None
        self.error: Optional[LocationErrorCode] = None
        self.error_message: Optional[str] = None
        self.is_loading = False

        self._listeners: List[ProviderListener] = []
        self._subscribers: Dict[int, Tuple[Optional[UpdateCallback], Optional[ErrorCallback]]] = {}
        self._subscriber_ids = itertools.count(1)
        self._host_watch_id: Optional[int] = None
        self._watch_unsubscribe: Optional[Unsubscribe] = None

    # ------------------------------------------------------------------
    # Properties

    @property
    def is_supported(self) -> bool:
        return self.host is not None and self.host.supported

    @property
    def is_watching(self) -> bool:
        return self._host_watch_id is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Lifecycle

    async def start(self) -> Optional[Location]:
        """Load the persisted location; fetch a fresh one when none was stored."""
        loaded = self.load_cached_location()
        if loaded is None and not self.is_loading:
            return await self.get_current_position()
        return loaded

    async def close(self) -> None:
        for subscriber_id in list(self._subscribers):
            self._unsubscribe(subscriber_id)
        self._watch_unsubscribe = None
        await self.storage.flush()

    def load_cached_location(self) -> Optional[Location]:
        raw = self.storage.get(self.storage_key)
        if raw is None:
            return None

        try:
            location = Location.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding stored location under %r: %s", self.storage_key, exc)
            self.storage.remove(self.storage_key)
            self._set_error(LocationErrorCode.STORAGE_PARSE_ERROR)
            return None

        self.location = location
        logger.info("Restored stored location (%.5f, %.5f)", location.latitude, location.longitude)
        self._notify()
        return location

    # ------------------------------------------------------------------
    # One-shot acquisition

    async def get_current_position(self) -> Optional[Location]:
        """Fetch a fix through the host; returns ``None`` on any failure.

        A failure keeps a previously loaded location in memory.
        """
        if not self.is_supported:
            self._set_error(LocationErrorCode.UNSUPPORTED)
            return None

        self.is_loading = True
        self.error = None
        self.error_message = None
        self._notify()

        try:
            location = await asyncio.wait_for(
                self.host.get_current_position(self.options),
                timeout=self.options.timeout_s,
            )
        except (asyncio.TimeoutError, TimeoutError):
            self.is_loading = False
            self._set_error(LocationErrorCode.TIMEOUT)
            return None
        except LocationError as exc:
            self.is_loading = False
            self._set_error(exc.code, exc.message)
            return None
        except asyncio.CancelledError:
            self.is_loading = False
            raise
        except Exception as exc:
            logger.error("Location host failed: %s", exc, exc_info=True)
            self.is_loading = False
            self._set_error(LocationErrorCode.POSITION_UNAVAILABLE, str(exc) or None)
            return None

        self.is_loading = False
        self._apply_location(location)
        return location

    # ------------------------------------------------------------------
    # Continuous updates

    def subscribe(
        self,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Receive every host update; the first subscriber starts the host watch.

        The returned callable is idempotent. Once the last subscriber is gone
        the host watch is cleared.
        """
        if not self.is_supported:
            self._set_error(LocationErrorCode.UNSUPPORTED)
            return _noop

        subscriber_id = next(self._subscriber_ids)
        self._subscribers[subscriber_id] = (on_update, on_error)

        if self._host_watch_id is None:
            self._host_watch_id = self.host.watch_position(
                self._handle_host_update,
                self._handle_host_error,
                self.options,
            )
            logger.info("Started watching location")
            self._notify()

        def unsubscribe() -> None:
            self._unsubscribe(subscriber_id)

        return unsubscribe

    def watch_position(self) -> Unsubscribe:
        """Keep the provider's own state updated until ``clear_watch``."""
        if self._watch_unsubscribe is None:
            unsubscribe = self.subscribe()
            if unsubscribe is _noop:
                return _noop
            self._watch_unsubscribe = unsubscribe
        return self.clear_watch

    def clear_watch(self) -> None:
        unsubscribe, self._watch_unsubscribe = self._watch_unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _unsubscribe(self, subscriber_id: int) -> None:
        if self._subscribers.pop(subscriber_id, None) is None:
            return
        if self._subscribers or self._host_watch_id is None:
            return
        watch_id, self._host_watch_id = self._host_watch_id, None
        self.host.clear_watch(watch_id)
        logger.info("Stopped watching location")
        self._notify()

    def _handle_host_update(self, location: Location) -> None:
        self._apply_location(location)
        for subscriber_id, (on_update, _on_error) in list(self._subscribers.items()):
            if on_update is None or subscriber_id not in self._subscribers:
                continue
            try:
                on_update(location)
            except Exception:
                logger.error("Location subscriber %d failed", subscriber_id, exc_info=True)

    def _handle_host_error(self, error: LocationError) -> None:
        self._set_error(error.code, error.message)
        for subscriber_id, (_on_update, on_error) in list(self._subscribers.items()):
            if on_error is None or subscriber_id not in self._subscribers:
                continue
            try:
                on_error(error)
            except Exception:
                logger.error("Location subscriber %d error handler failed", subscriber_id, exc_info=True)

    # ------------------------------------------------------------------
    # Manual overrides

    def update_location(self, location: Location) -> None:
        self._apply_location(location)

    def clear_location(self) -> None:
        self.location = None
        self.error = None
        self.error_message = None
        self.storage.remove(self.storage_key)
        logger.info("Cleared stored location")
        self._notify()

    # ------------------------------------------------------------------
    # Listeners

    def add_listener(self, callback: ProviderListener) -> Unsubscribe:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict() if self.location else None,
            "error": self.error.value if self.error else None,
            "error_message": self.error_message,
            "is_loading": self.is_loading,
            "is_watching": self.is_watching,
            "supported": self.is_supported,
        }

    # ------------------------------------------------------------------
    # Internals

    def _apply_location(self, location: Location) -> None:
        self.location = location
        self.error = None
        self.error_message = None
        self.storage.set(self.storage_key, json.dumps(location.to_dict()))
        self._notify()

    def _set_error(self, code: LocationErrorCode, message: Optional[str] = None) -> None:
        self.error = code
        self.error_message = message or DEFAULT_ERROR_MESSAGES[code]
        logger.warning("Location error %s: %s", code.value, self.error_message)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.error("Location listener failed", exc_info=True)


__all__ = ["LocationProvider", "ProviderListener", "Unsubscribe"]
