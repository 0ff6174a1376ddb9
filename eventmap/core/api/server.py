"""
API Server - aiohttp-based REST server exposing a MapController.
"""

from typing import Optional

from aiohttp import web

from eventmap.core.logging_utils import get_module_logger
from eventmap.core.preferences import ServicePreferences
from eventmap.map.controller import MapController

from .middleware import (
    error_handling_middleware,
    localhost_only_middleware,
    request_logging_middleware,
    set_debug_mode,
)
from .routes import setup_all_routes


logger = get_module_logger("APIServer")


def create_app(
    controller: MapController,
    *,
    preferences: Optional[ServicePreferences] = None,
    localhost_only: bool = True,
) -> web.Application:
    """Create and configure the aiohttp application."""
    # localhost check -> request logging -> error handling
    middlewares = [request_logging_middleware, error_handling_middleware]
    if localhost_only:
        middlewares.insert(0, localhost_only_middleware)

    app = web.Application(middlewares=middlewares)
    app["controller"] = controller
    app["preferences"] = preferences
    setup_all_routes(app)
    return app


class APIServer:
    """
    REST API server for one map controller.

    Runs on the caller's asyncio loop; ``start`` returns once the socket
    is bound.
    """

    def __init__(
        self,
        controller: MapController,
        host: str = "127.0.0.1",
        port: int = 8090,
        localhost_only: bool = True,
        debug: bool = False,
        preferences: Optional[ServicePreferences] = None,
    ):
        self.controller = controller
        self.host = host
        self.port = port
        self.localhost_only = localhost_only
        self.debug = debug
        self.preferences = preferences

        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._running = False

        set_debug_mode(debug)

    async def start(self) -> None:
        """Start the API server (non-blocking)."""
        if self._running:
            logger.warning("API server already running")
            return

        self._app = create_app(
            self.controller,
            preferences=self.preferences,
            localhost_only=self.localhost_only,
        )
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        logger.info("API server started on http://%s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop the API server gracefully."""
        if not self._running:
            return

        logger.info("Stopping API server...")

        if self._site:
            await self._site.stop()
            self._site = None

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        self._app = None
        self._running = False

        logger.info("API server stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"
