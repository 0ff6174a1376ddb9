"""Typed configuration for the map service."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from eventmap.core.logging_config import parse_level
from eventmap.core.paths import USER_STORAGE_FILE
from eventmap.core.typed_config import (
    PreferenceSource,
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)
from .constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_CENTER,
    DEFAULT_CLUSTER_RADIUS_KM,
    DEFAULT_ENABLE_HIGH_ACCURACY,
    DEFAULT_MAXIMUM_AGE_MS,
    DEFAULT_NEARBY_RADIUS_KM,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_ZOOM,
    LOCATION_STORAGE_KEY,
    MAX_ZOOM_LEVEL,
    MIN_ZOOM_LEVEL,
    SELECT_ZOOM_LEVEL,
)
from .location.types import PositionOptions


@dataclass(slots=True)
class MapConfig:
    """Typed configuration for the map service."""

    # Camera
    initial_center_lat: float = DEFAULT_CENTER[0]
    initial_center_lng: float = DEFAULT_CENTER[1]
    initial_zoom: int = DEFAULT_ZOOM
    min_zoom: int = MIN_ZOOM_LEVEL
    max_zoom: int = MAX_ZOOM_LEVEL
    select_zoom: int = SELECT_ZOOM_LEVEL
    follow_location: bool = True

    # Clustering / lookups
    enable_clustering: bool = True
    cluster_radius_km: float = DEFAULT_CLUSTER_RADIUS_KM
    nearby_radius_km: float = DEFAULT_NEARBY_RADIUS_KM

    # Location acquisition
    enable_high_accuracy: bool = DEFAULT_ENABLE_HIGH_ACCURACY
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    maximum_age_ms: int = DEFAULT_MAXIMUM_AGE_MS
    storage_path: Path = field(default_factory=lambda: USER_STORAGE_FILE)
    storage_key: str = LOCATION_STORAGE_KEY

    # NMEA receiver (empty port means no receiver)
    serial_port: str = ""
    baud_rate: int = DEFAULT_BAUD_RATE

    # API / service
    api_host: str = "127.0.0.1"
    api_port: int = 8090
    localhost_only: bool = True
    log_level: str = "info"

    @classmethod
    def from_preferences(cls, prefs: PreferenceSource, args: Any = None) -> "MapConfig":
        """Build config from preferences with optional CLI overrides."""
        defaults = cls()

        config = cls(
            # Camera
            initial_center_lat=get_pref_float(prefs, "initial_center_lat", defaults.initial_center_lat),
            initial_center_lng=get_pref_float(prefs, "initial_center_lng", defaults.initial_center_lng),
            initial_zoom=get_pref_int(prefs, "initial_zoom", defaults.initial_zoom),
            min_zoom=get_pref_int(prefs, "min_zoom", defaults.min_zoom),
            max_zoom=get_pref_int(prefs, "max_zoom", defaults.max_zoom),
            select_zoom=get_pref_int(prefs, "select_zoom", defaults.select_zoom),
            follow_location=get_pref_bool(prefs, "follow_location", defaults.follow_location),
            # Clustering / lookups
            enable_clustering=get_pref_bool(prefs, "enable_clustering", defaults.enable_clustering),
            cluster_radius_km=get_pref_float(prefs, "cluster_radius_km", defaults.cluster_radius_km),
            nearby_radius_km=get_pref_float(prefs, "nearby_radius_km", defaults.nearby_radius_km),
            # Location acquisition
            enable_high_accuracy=get_pref_bool(prefs, "enable_high_accuracy", defaults.enable_high_accuracy),
            timeout_ms=get_pref_int(prefs, "timeout_ms", defaults.timeout_ms),
            maximum_age_ms=get_pref_int(prefs, "maximum_age_ms", defaults.maximum_age_ms),
            storage_path=get_pref_path(prefs, "storage_path", defaults.storage_path),
            storage_key=get_pref_str(prefs, "storage_key", defaults.storage_key),
            # NMEA receiver
            serial_port=get_pref_str(prefs, "serial_port", defaults.serial_port),
            baud_rate=get_pref_int(prefs, "baud_rate", defaults.baud_rate),
            # API / service
            api_host=get_pref_str(prefs, "api_host", defaults.api_host),
            api_port=get_pref_int(prefs, "api_port", defaults.api_port),
            localhost_only=get_pref_bool(prefs, "localhost_only", defaults.localhost_only),
            log_level=get_pref_str(prefs, "log_level", defaults.log_level),
        )

        if args is not None:
            config = config._apply_args_override(args)

        return config

    def _apply_args_override(self, args: Any) -> "MapConfig":
        """Apply CLI argument overrides to config values."""
        values = asdict(self)

        arg_mappings = {
            "host": "api_host",
            "port": "api_port",
            "log_level": "log_level",
            "storage_path": "storage_path",
            "serial_port": "serial_port",
            "baud_rate": "baud_rate",
        }

        for arg_name, config_key in arg_mappings.items():
            if hasattr(args, arg_name):
                val = getattr(args, arg_name)
                if val is not None:
                    values[config_key] = val

        values["storage_path"] = Path(values["storage_path"])
        return MapConfig(**values)

    @property
    def initial_center(self) -> tuple[float, float]:
        return (self.initial_center_lat, self.initial_center_lng)

    def position_options(self) -> PositionOptions:
        return PositionOptions(
            enable_high_accuracy=self.enable_high_accuracy,
            timeout_ms=self.timeout_ms,
            maximum_age_ms=self.maximum_age_ms,
        )

    def validate(self) -> None:
        """Raise ValueError when the values could not start a map controller."""
        problems = []
        if self.min_zoom > self.max_zoom:
            problems.append(f"min_zoom ({self.min_zoom}) must not exceed max_zoom ({self.max_zoom})")
        if not -90.0 <= self.initial_center_lat <= 90.0:
            problems.append(f"initial_center_lat must be within [-90, 90], got {self.initial_center_lat}")
        if not -180.0 <= self.initial_center_lng <= 180.0:
            problems.append(f"initial_center_lng must be within [-180, 180], got {self.initial_center_lng}")
        for name in ("cluster_radius_km", "nearby_radius_km", "maximum_age_ms"):
            if getattr(self, name) < 0:
                problems.append(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in ("timeout_ms", "baud_rate"):
            if getattr(self, name) <= 0:
                problems.append(f"{name} must be > 0, got {getattr(self, name)}")
        if not 0 <= self.api_port <= 65535:
            problems.append(f"api_port must be within [0, 65535], got {self.api_port}")
        try:
            parse_level(self.log_level)
        except ValueError as exc:
            problems.append(str(exc))
        if problems:
            raise ValueError("; ".join(problems))

    def to_dict(self) -> dict[str, Any]:
        """Export config values as dictionary."""
        values = asdict(self)
        values["storage_path"] = str(self.storage_path)
        return values


__all__ = ["MapConfig"]
