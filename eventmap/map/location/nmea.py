"""NMEA-0183 receiver host.

Reads sentences from a line transport, keeps the most recent valid fix and
fans new fixes out to one-shot requests and watches. Only position-bearing
sentences are interpreted: ``$..GGA`` (fix quality, HDOP) and ``$..RMC``
(status flag).
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, List, Optional, Protocol, Set

from eventmap.core.logging_utils import get_module_logger
from ..constants import NMEA_HDOP_METERS
from ..models import Location
from .hosts import BaseLocationHost, now_ms
from .types import LocationError, LocationErrorCode, PositionOptions

logger = get_module_logger(__name__)


class LineTransport(Protocol):
    """What the host needs from a transport (see ``SerialLineTransport``)."""

    @property
    def available(self) -> bool: ...

    @property
    def is_connected(self) -> bool: ...

    async def connect(self) -> bool: ...

    async def disconnect(self) -> None: ...

    async def read_line(self, timeout: float = 1.0) -> Optional[str]: ...


def _parse_float(value: str | None) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_int(value: str | None) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_latlon(value: str | None, direction: str | None, *, is_lat: bool) -> Optional[float]:
    """Convert DDMM.MMMM / DDDMM.MMMM plus hemisphere to signed decimal degrees."""
    if not value or not direction:
        return None
    deg_len = 2 if is_lat else 3
    if len(value) < deg_len:
        return None
    try:
        degrees = int(value[:deg_len])
        minutes = float(value[deg_len:])
    except ValueError:
        return None
    decimal = degrees + minutes / 60.0
    if direction.upper() in {"S", "W"}:
        decimal *= -1.0
    return decimal


def validate_checksum(sentence: str) -> bool:
    if not sentence.startswith("$") or "*" not in sentence:
        return False
    try:
        payload, checksum_str = sentence[1:].split("*", 1)
        expected = int(checksum_str[:2], 16)
    except (ValueError, IndexError):
        return False
    calculated = 0
    for char in payload:
        calculated ^= ord(char)
    return calculated == expected


class NMEALocationHost(BaseLocationHost):
    """Location host backed by an NMEA sentence stream.

    The reader task runs while a one-shot request or at least one watch is
    active. Watches registered after the task started simply receive the next
    fix; cleared watches are skipped by ``_deliver``.
    """

    def __init__(
        self,
        transport: LineTransport,
        *,
        read_timeout: float = 1.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__()
        self.transport = transport
        self.read_timeout = read_timeout
        self._clock = clock
        self._last_fix: Optional[Location] = None
        self._last_hdop: Optional[float] = None
        self._waiters: List[asyncio.Future] = []
        self._reader_task: Optional[asyncio.Task] = None
        self._start_task: Optional[asyncio.Task] = None
        self._connecting: Optional[asyncio.Task] = None
        self._stopping: Set[asyncio.Task] = set()

    @property
    def supported(self) -> bool:
        return bool(self.transport.available)

    @property
    def last_fix(self) -> Optional[Location]:
        return self._last_fix

    @property
    def is_reading(self) -> bool:
        return self._reader_task is not None and not self._reader_task.done()

    # ------------------------------------------------------------------
    # Sentence handling

    def parse_sentence(self, sentence: str) -> Optional[Location]:
        """Return a Location for a valid GGA/RMC fix, otherwise ``None``."""
        if not sentence or not validate_checksum(sentence):
            return None

        fields = sentence[1:].split("*", 1)[0].split(",")
        message_type = fields[0][-3:].upper()
        fields = fields[1:]

        if message_type == "GGA":
            if len(fields) < 8:
                return None
            if (_parse_int(fields[5]) or 0) <= 0:
                return None
            lat = _parse_latlon(fields[1], fields[2], is_lat=True)
            lng = _parse_latlon(fields[3], fields[4], is_lat=False)
            hdop = _parse_float(fields[7])
            if hdop is not None:
                self._last_hdop = hdop
        elif message_type == "RMC":
            if len(fields) < 6:
                return None
            if (fields[1] or "").upper() != "A":
                return None
            lat = _parse_latlon(fields[2], fields[3], is_lat=True)
            lng = _parse_latlon(fields[4], fields[5], is_lat=False)
        else:
            return None

        if lat is None or lng is None:
            return None

        accuracy = self._last_hdop * NMEA_HDOP_METERS if self._last_hdop is not None else None
        return Location(latitude=lat, longitude=lng, accuracy=accuracy, timestamp=self._clock())

    def handle_sentence(self, sentence: str) -> Optional[Location]:
        location = self.parse_sentence(sentence)
        if location is None:
            return None

        self._last_fix = location
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(location)
        self._deliver(location)
        return location

    # ------------------------------------------------------------------
    # BaseLocationHost

    async def get_current_position(self, options: PositionOptions) -> Location:
        if not self.supported:
            raise LocationError(LocationErrorCode.UNSUPPORTED)

        cached = self._last_fix
        if cached is not None:
            age = cached.age_ms(self._clock())
            if age is not None and age <= options.maximum_age_ms:
                return cached

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            if not await self._ensure_reader():
                raise LocationError(
                    LocationErrorCode.POSITION_UNAVAILABLE,
                    self.transport_error() or None,
                )
            return await asyncio.wait_for(waiter, timeout=options.timeout_s)
        except (asyncio.TimeoutError, TimeoutError):
            raise LocationError(LocationErrorCode.TIMEOUT) from None
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
            self._maybe_stop_reader()

    def _on_first_watch(self) -> None:
        self._cancel_start()
        self._start_task = asyncio.get_running_loop().create_task(self._start_for_watch())

    def _on_last_watch_cleared(self) -> None:
        self._maybe_stop_reader()

    async def close(self) -> None:
        self._cancel_start()
        connecting = self._connecting
        if connecting is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await connecting
        self._cancel_reader()
        for task in list(self._stopping):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.transport.disconnect()

    # ------------------------------------------------------------------
    # Reader

    def transport_error(self) -> str:
        return getattr(self.transport, "last_error", None) or ""

    async def _start_for_watch(self) -> None:
        if not self.supported:
            self._deliver_error(LocationError(LocationErrorCode.UNSUPPORTED))
            return
        if not await self._ensure_reader():
            self._deliver_error(
                LocationError(LocationErrorCode.POSITION_UNAVAILABLE, self.transport_error() or None)
            )

    async def _ensure_reader(self) -> bool:
        """Start the reader once; concurrent callers share one connect attempt."""
        if self.is_reading:
            return True
        if self._connecting is None:
            self._connecting = asyncio.get_running_loop().create_task(self._connect_reader())
        return await asyncio.shield(self._connecting)

    async def _connect_reader(self) -> bool:
        try:
            if not await self.transport.connect():
                logger.warning("Receiver transport unavailable: %s", self.transport_error() or "connect failed")
                return False
            if not (self._waiters or self._watches):
                logger.debug("Consumers left while connecting; closing receiver")
                await self.transport.disconnect()
                return False
            self._reader_task = asyncio.get_running_loop().create_task(self._read_loop())
            return True
        finally:
            self._connecting = None

    def _maybe_stop_reader(self) -> None:
        if self._waiters or self._watches:
            return
        logger.debug("No consumers left; stopping NMEA reader")
        self._cancel_start()
        self._cancel_reader()

    def _cancel_start(self) -> None:
        task, self._start_task = self._start_task, None
        self._retire(task)

    def _cancel_reader(self) -> None:
        task, self._reader_task = self._reader_task, None
        self._retire(task)

    def _retire(self, task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done():
            task.cancel()
            self._stopping.add(task)
            task.add_done_callback(self._stopping.discard)

    async def _read_loop(self) -> None:
        try:
            while True:
                line = await self.transport.read_line(timeout=self.read_timeout)
                if line is None:
                    if not self.transport.is_connected:
                        self._fail_consumers()
                        return
                    continue
                if line.startswith("$"):
                    self.handle_sentence(line)
        finally:
            await self.transport.disconnect()

    def _fail_consumers(self) -> None:
        error = LocationError(LocationErrorCode.POSITION_UNAVAILABLE, self.transport_error() or None)
        logger.warning("Receiver stream lost: %s", error.message)
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        self._deliver_error(error)


__all__ = ["LineTransport", "NMEALocationHost", "validate_checksum"]
