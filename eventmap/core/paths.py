"""Centralized path constants for the map service."""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = PACKAGE_ROOT.parent

# Default configuration shipped with the package
CONFIG_PATH = PACKAGE_ROOT / "config.txt"

# User-specific state (allows running from read-only project directories)
_USER_STATE_ENV = os.environ.get("EVENTMAP_STATE_DIR")
USER_STATE_DIR = Path(_USER_STATE_ENV).expanduser() if _USER_STATE_ENV else (Path.home() / ".eventmap")
USER_STORAGE_FILE = USER_STATE_DIR / "storage.json"
USER_LOGS_DIR = USER_STATE_DIR / "logs"
SERVICE_LOG_FILE = USER_LOGS_DIR / "eventmap.log"


def ensure_directories() -> None:
    """Create the user state directories if they don't exist."""

    USER_STATE_DIR.mkdir(parents=True, exist_ok=True)
    USER_LOGS_DIR.mkdir(parents=True, exist_ok=True)


__all__ = [
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
    "CONFIG_PATH",
    "USER_STATE_DIR",
    "USER_STORAGE_FILE",
    "USER_LOGS_DIR",
    "SERVICE_LOG_FILE",
    "ensure_directories",
]
