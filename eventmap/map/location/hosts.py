"""Host location capabilities.

A host is whatever can actually produce position fixes: a GNSS receiver, a
platform location API, or a scripted source. The provider only talks to the
``BaseLocationHost`` interface: a one-shot coroutine plus callback watches
identified by integer ids.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from eventmap.core.logging_utils import get_module_logger
from ..models import Location
from .types import LocationError, LocationErrorCode, PositionOptions

logger = get_module_logger(__name__)

UpdateCallback = Callable[[Location], None]
ErrorCallback = Callable[[LocationError], None]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class _Watch:
    on_update: UpdateCallback
    on_error: ErrorCallback
    options: PositionOptions


class BaseLocationHost(ABC):
    """Abstract host location capability.

    Subclasses implement ``get_current_position`` and push continuous updates
    through ``_deliver`` / ``_deliver_error``. Watches are notified in
    registration order; updates are never reordered or coalesced.
    """

    def __init__(self) -> None:
        self._watches: Dict[int, _Watch] = {}
        self._next_watch_id = 1

    @property
    def supported(self) -> bool:
        """False when the host has no location capability at all."""
        return True

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    @abstractmethod
    async def get_current_position(self, options: PositionOptions) -> Location:
        """Return a fresh fix or raise ``LocationError``."""
        ...

    def watch_position(
        self,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> int:
        watch_id = self._next_watch_id
        self._next_watch_id += 1
        first = not self._watches
        self._watches[watch_id] = _Watch(on_update, on_error, options)
        logger.debug("Registered watch %d (%d active)", watch_id, len(self._watches))
        if first:
            self._on_first_watch()
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        if self._watches.pop(watch_id, None) is None:
            return
        logger.debug("Cleared watch %d (%d active)", watch_id, len(self._watches))
        if not self._watches:
            self._on_last_watch_cleared()

    # ------------------------------------------------------------------
    # Subclass hooks

    def _on_first_watch(self) -> None:
        """Called when the first watch is registered."""

    def _on_last_watch_cleared(self) -> None:
        """Called when the last watch is removed."""

    def _deliver(self, location: Location) -> None:
        for watch_id in list(self._watches):
            watch = self._watches.get(watch_id)
            if watch is None:
                continue
            try:
                watch.on_update(location)
            except Exception:
                logger.error("Watch %d update callback failed", watch_id, exc_info=True)

    def _deliver_error(self, error: LocationError) -> None:
        for watch_id in list(self._watches):
            watch = self._watches.get(watch_id)
            if watch is None:
                continue
            try:
                watch.on_error(error)
            except Exception:
                logger.error("Watch %d error callback failed", watch_id, exc_info=True)


class StaticLocationHost(BaseLocationHost):
    """Scripted host returning a fixed position or a fixed error.

    ``push`` / ``push_error`` feed active watches, in call order.
    """

    def __init__(
        self,
        location: Optional[Location] = None,
        *,
        error: Optional[LocationErrorCode] = None,
        delay_s: float = 0.0,
    ) -> None:
        super().__init__()
        self.location = location
        self.error = error
        self.delay_s = delay_s
        self.request_count = 0

    async def get_current_position(self, options: PositionOptions) -> Location:
        self.request_count += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise LocationError(self.error)
        if self.location is None:
            raise LocationError(LocationErrorCode.POSITION_UNAVAILABLE)
        if self.location.timestamp is None:
            return Location(
                latitude=self.location.latitude,
                longitude=self.location.longitude,
                accuracy=self.location.accuracy,
                timestamp=now_ms(),
            )
        return self.location

    def push(self, location: Location) -> None:
        self.location = location
        self._deliver(location)

    def push_error(self, code: LocationErrorCode, message: Optional[str] = None) -> None:
        self._deliver_error(LocationError(code, message))


class UnsupportedLocationHost(BaseLocationHost):
    """Host without any location capability."""

    @property
    def supported(self) -> bool:
        return False

    async def get_current_position(self, options: PositionOptions) -> Location:
        raise LocationError(LocationErrorCode.UNSUPPORTED)


__all__ = [
    "BaseLocationHost",
    "ErrorCallback",
    "StaticLocationHost",
    "UnsupportedLocationHost",
    "UpdateCallback",
    "now_ms",
]
