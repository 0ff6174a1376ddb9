"""
API Routes - Route registration for the map REST API.
"""

from aiohttp import web

from .config import setup_config_routes
from .location import setup_location_routes
from .map import setup_map_routes
from .system import setup_system_routes


def setup_all_routes(app: web.Application) -> None:
    """Register all API routes with the application."""
    setup_system_routes(app)
    setup_map_routes(app)
    setup_location_routes(app)
    setup_config_routes(app)


__all__ = ["setup_all_routes"]
