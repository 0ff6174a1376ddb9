"""Shared pytest configuration and fixtures for the map service test suite."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eventmap.core.storage import MemoryStorage  # noqa: E402
from eventmap.map.models import (  # noqa: E402
    EventPayload,
    Location,
    MapMarker,
    MarkerType,
    TribePayload,
    UserPayload,
    VenuePayload,
)

T = TypeVar("T")

MADRID = (40.4168, -3.7038)
BARCELONA = (41.3874, 2.1686)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring an attached NMEA receiver"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require an attached NMEA receiver",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Helpers
# =============================================================================

def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously for testing."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def make_marker(
    marker_id: str,
    position=(40.0, -3.0),
    marker_type: MarkerType = MarkerType.EVENT,
    **data: Any,
) -> MapMarker:
    """Build a marker with a payload matching ``marker_type``."""
    payload_cls = {
        MarkerType.EVENT: EventPayload,
        MarkerType.TRIBE: TribePayload,
        MarkerType.USER: UserPayload,
        MarkerType.VENUE: VenuePayload,
    }[MarkerType(marker_type)]
    return MapMarker(id=marker_id, position=position, type=marker_type, data=payload_cls(**data))


def make_location(lat: float, lng: float, timestamp: Optional[int] = 1_700_000_000_000) -> Location:
    return Location(latitude=lat, longitude=lng, accuracy=10.0, timestamp=timestamp)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()
