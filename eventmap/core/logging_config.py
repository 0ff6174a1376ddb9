"""Process-wide logging setup for the map service."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 3
ACCESS_LOGGER = "aiohttp.access"

# Handlers installed by configure_logging; only these are replaced on reconfigure.
_installed: List[logging.Handler] = []


def parse_level(level: Union[int, str]) -> int:
    """Map ``"debug"``/``"INFO"``/``20`` to a numeric level."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r}")
    return value


def configure_logging(
    level: Union[int, str] = "info",
    log_file: Optional[Union[str, Path]] = None,
    *,
    console: bool = True,
) -> None:
    """Send service logs to stdout and, optionally, a rotating log file.

    Handlers added by anything else (an embedding app, pytest) are left in
    place. HTTP access lines only show up when running at DEBUG.
    """
    numeric_level = parse_level(level)
    root = logging.getLogger()

    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()

    if console:
        _installed.append(logging.StreamHandler(sys.stdout))
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _installed.append(
            RotatingFileHandler(
                log_path,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in _installed:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(numeric_level)
    access_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    logging.getLogger(ACCESS_LOGGER).setLevel(access_level)


__all__ = ["configure_logging", "parse_level", "LOG_FORMAT", "LOG_DATEFMT"]
