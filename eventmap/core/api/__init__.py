"""REST API for the map service."""

from .server import APIServer, create_app

__all__ = ["APIServer", "create_app"]
