"""Serial UART line transport for NMEA receivers.

Wraps ``serial_asyncio.open_serial_connection`` so the NMEA host can read
sentences without blocking the event loop.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

from eventmap.core.logging_utils import get_module_logger
from ..constants import DEFAULT_BAUD_RATE

logger = get_module_logger(__name__)

# pyserial-asyncio is only needed when a receiver is attached
try:
    import serial  # type: ignore
    import serial_asyncio  # type: ignore
    SERIAL_AVAILABLE = True
except ImportError as exc:
    serial = None  # type: ignore
    serial_asyncio = None  # type: ignore
    SERIAL_AVAILABLE = False
    SERIAL_IMPORT_ERROR = exc
else:
    SERIAL_IMPORT_ERROR = None


class SerialLineTransport:
    """Line-oriented reader over a serial port.

    Example:
        transport = SerialLineTransport("/dev/ttyUSB0", 9600)
        if await transport.connect():
            line = await transport.read_line(timeout=1.0)
    """

    def __init__(self, port: str, baudrate: int = DEFAULT_BAUD_RATE):
        self.port = port
        self.baudrate = baudrate
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._last_error: Optional[str] = None

    @property
    def available(self) -> bool:
        return SERIAL_AVAILABLE

    @property
    def is_connected(self) -> bool:
        return self._reader is not None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    async def connect(self) -> bool:
        """Open the port. Returns False (and records ``last_error``) on failure."""
        if not SERIAL_AVAILABLE:
            self._last_error = f"Serial module not available: {SERIAL_IMPORT_ERROR}"
            logger.error(self._last_error)
            return False

        if self.is_connected:
            return True

        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self.port,
                baudrate=self.baudrate,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            kind = "serial_exception" if serial and isinstance(exc, serial.SerialException) else "serial_error"
            self._last_error = str(exc)
            logger.warning("%s opening %s at %d baud: %s", kind, self.port, self.baudrate, exc)
            self._reader = None
            self._writer = None
            return False

        self._last_error = None
        logger.info("Connected to receiver on %s at %d baud", self.port, self.baudrate)
        return True

    async def disconnect(self) -> None:
        writer = self._writer
        self._writer = None
        self._reader = None
        if writer is None:
            return

        with contextlib.suppress(Exception):
            writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
        except asyncio.TimeoutError:
            logger.debug("Timeout waiting for serial close on %s", self.port)
        except Exception:
            logger.debug("Error closing serial on %s", self.port)

        logger.info("Disconnected from receiver on %s", self.port)

    async def read_line(self, timeout: float = 1.0) -> Optional[str]:
        """Read one decoded line; ``None`` on timeout, error or EOF."""
        if self._reader is None:
            return None

        try:
            line = await asyncio.wait_for(self._reader.readline(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._last_error = str(exc)
            logger.warning("Read error on %s: %s", self.port, exc)
            return None

        if not line:
            self._last_error = "Stream ended (EOF)"
            logger.warning("Serial stream ended on %s (EOF)", self.port)
            self._reader = None
            return None

        decoded = line.decode("ascii", errors="ignore").strip()
        return decoded or None


__all__ = ["SERIAL_AVAILABLE", "SerialLineTransport"]
