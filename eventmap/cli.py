"""Command-line entry point: run the map service with its REST API."""

from __future__ import annotations

import argparse
import asyncio
import signal
from pathlib import Path
from typing import Optional, Tuple

from eventmap.core.api import APIServer
from eventmap.core.logging_config import configure_logging
from eventmap.core.logging_utils import get_module_logger
from eventmap.core.paths import CONFIG_PATH, SERVICE_LOG_FILE, ensure_directories
from eventmap.core.preferences import ServicePreferences
from eventmap.map.config import MapConfig
from eventmap.map.controller import MapController
from eventmap.map.location import (
    BaseLocationHost,
    NMEALocationHost,
    SerialLineTransport,
    StaticLocationHost,
    UnsupportedLocationHost,
)
from eventmap.map.models import Location

logger = get_module_logger("EventMap")


def parse_position(value: str) -> Tuple[float, float]:
    """Parse ``LAT,LNG`` into a coordinate pair."""
    try:
        lat_text, lng_text = value.split(",", 1)
        lat, lng = float(lat_text), float(lng_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {value!r}") from None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise argparse.ArgumentTypeError(f"coordinates out of range: {value!r}")
    return (lat, lng)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments. Unset options fall back to the config file."""
    parser = argparse.ArgumentParser(
        description="EventConnect map service - markers, clustering and user location over REST"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Path to the key = value config file (default: {CONFIG_PATH})",
    )
    parser.add_argument("--host", type=str, default=None, help="API bind address")
    parser.add_argument("--port", type=int, default=None, help="API port")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["debug", "info", "warning", "error", "critical"],
        default=None,
        help="Logging level",
    )
    parser.add_argument(
        "--storage-path",
        dest="storage_path",
        type=Path,
        default=None,
        help="JSON file used to persist the user location",
    )
    parser.add_argument(
        "--serial-port",
        dest="serial_port",
        type=str,
        default=None,
        help="Serial device of an NMEA receiver (e.g. /dev/ttyUSB0)",
    )
    parser.add_argument("--baud-rate", dest="baud_rate", type=int, default=None, help="Receiver baud rate")
    parser.add_argument(
        "--fixed-position",
        dest="fixed_position",
        type=parse_position,
        default=None,
        metavar="LAT,LNG",
        help="Report a fixed user position instead of reading a receiver",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep watching the location host after start-up",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose API error responses")
    return parser.parse_args(argv)


def build_host(config: MapConfig, fixed_position: Optional[Tuple[float, float]] = None) -> BaseLocationHost:
    if fixed_position is not None:
        lat, lng = fixed_position
        return StaticLocationHost(Location(latitude=lat, longitude=lng))
    if config.serial_port:
        return NMEALocationHost(SerialLineTransport(config.serial_port, config.baud_rate))
    return UnsupportedLocationHost()


async def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    prefs = ServicePreferences(args.config)
    config = MapConfig.from_preferences(prefs, args)
    config.validate()

    ensure_directories()
    configure_logging(config.log_level, log_file=SERVICE_LOG_FILE)
    logger.info("Config file: %s", args.config)
    logger.info("Storage file: %s", config.storage_path)

    host = build_host(config, args.fixed_position)
    controller = MapController.from_config(config, host=host)
    server = APIServer(
        controller,
        host=config.api_host,
        port=config.api_port,
        localhost_only=config.localhost_only,
        debug=args.debug,
        preferences=prefs,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass  # Windows doesn't support add_signal_handler

    try:
        await controller.start()
        if args.watch:
            controller.watch_position()
        await server.start()
        await stop_event.wait()
        logger.info("Shutdown requested")
    finally:
        await server.stop()
        await controller.close()
        if isinstance(host, NMEALocationHost):
            await host.close()
        logger.info("Map service stopped")


__all__ = ["build_host", "main", "parse_args", "parse_position"]
