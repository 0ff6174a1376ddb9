"""Location acquisition options and error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..constants import DEFAULT_ENABLE_HIGH_ACCURACY, DEFAULT_MAXIMUM_AGE_MS, DEFAULT_TIMEOUT_MS


class LocationErrorCode(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    UNSUPPORTED = "UNSUPPORTED"
    STORAGE_PARSE_ERROR = "STORAGE_PARSE_ERROR"


DEFAULT_ERROR_MESSAGES = {
    LocationErrorCode.PERMISSION_DENIED: "Location permission denied",
    LocationErrorCode.POSITION_UNAVAILABLE: "Location information is unavailable",
    LocationErrorCode.TIMEOUT: "Timed out while acquiring location",
    LocationErrorCode.UNSUPPORTED: "Location services are not supported on this host",
    LocationErrorCode.STORAGE_PARSE_ERROR: "Stored location was corrupt and has been discarded",
}


class LocationError(Exception):
    """Classified failure raised by location hosts."""

    def __init__(self, code: LocationErrorCode, message: Optional[str] = None) -> None:
        self.code = LocationErrorCode(code)
        self.message = message or DEFAULT_ERROR_MESSAGES[self.code]
        super().__init__(f"{self.code.value}: {self.message}")


@dataclass(frozen=True, slots=True)
class PositionOptions:
    """Acquisition tuning passed to hosts."""

    enable_high_accuracy: bool = DEFAULT_ENABLE_HIGH_ACCURACY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    maximum_age_ms: int = DEFAULT_MAXIMUM_AGE_MS

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


__all__ = [
    "DEFAULT_ERROR_MESSAGES",
    "LocationError",
    "LocationErrorCode",
    "PositionOptions",
]
