"""
System Routes - Health endpoint.
"""

from aiohttp import web

from eventmap import __version__


def setup_system_routes(app: web.Application) -> None:
    """Register system routes."""
    app.router.add_get("/api/v1/health", health_handler)


async def health_handler(request: web.Request) -> web.Response:
    """GET /api/v1/health - Health check."""
    return web.json_response({"status": "healthy", "version": __version__})
