"""Pytest fixtures for API unit tests.

Endpoints are exercised against a real ``MapController`` wired to a scripted
location host and in-memory storage, so no receiver or disk is needed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest
from aiohttp import web

from eventmap.core.api.server import create_app
from eventmap.core.preferences import ServicePreferences
from eventmap.core.storage import MemoryStorage
from eventmap.map.controller import MapController
from eventmap.map.location.hosts import StaticLocationHost
from tests.conftest import MADRID, make_location


def marker_payload(marker_id: str, position=(40.42, -3.70), marker_type: str = "event", **data) -> dict:
    """JSON body for a marker as accepted by POST /api/v1/map/markers."""
    if not data:
        data = {"title": f"Marker {marker_id}"} if marker_type == "event" else {"name": f"Marker {marker_id}"}
    return {"id": marker_id, "position": list(position), "type": marker_type, "data": data}


def create_test_app(
    controller: Optional[MapController] = None,
    preferences: Optional[ServicePreferences] = None,
) -> web.Application:
    """Create a test aiohttp application with all routes registered."""
    if controller is None:
        controller = MapController(host=StaticLocationHost(make_location(*MADRID)), storage=MemoryStorage())
    return create_app(controller, preferences=preferences)


@pytest.fixture
def location_host() -> StaticLocationHost:
    """Scripted host that grants a Madrid fix."""
    return StaticLocationHost(make_location(*MADRID))


@pytest.fixture
def controller(location_host: StaticLocationHost) -> MapController:
    """Map controller backed by in-memory storage."""
    return MapController(host=location_host, storage=MemoryStorage())


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.txt"
    path.write_text("# test config\ncluster_radius_km = 2.0\n", encoding="utf-8")
    return path


@pytest.fixture
def preferences(config_file: Path) -> ServicePreferences:
    return ServicePreferences(config_file)
