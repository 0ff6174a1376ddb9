"""User location acquisition and host adapters."""

from .hosts import BaseLocationHost, StaticLocationHost, UnsupportedLocationHost
from .nmea import NMEALocationHost
from .provider import LocationProvider
from .serial_transport import SERIAL_AVAILABLE, SerialLineTransport
from .types import LocationError, LocationErrorCode, PositionOptions

__all__ = [
    "BaseLocationHost",
    "LocationError",
    "LocationErrorCode",
    "LocationProvider",
    "NMEALocationHost",
    "PositionOptions",
    "SERIAL_AVAILABLE",
    "SerialLineTransport",
    "StaticLocationHost",
    "UnsupportedLocationHost",
]
