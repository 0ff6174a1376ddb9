"""
Location Routes - User location state, refresh and manual overrides.
"""

from aiohttp import web

from eventmap.map.controller import MapController
from eventmap.map.models import Location

from ..middleware import parse_json_body


def setup_location_routes(app: web.Application) -> None:
    """Register location routes."""
    app.router.add_get("/api/v1/location", location_handler)
    app.router.add_put("/api/v1/location", update_location_handler)
    app.router.add_delete("/api/v1/location", clear_location_handler)
    app.router.add_post("/api/v1/location/refresh", refresh_location_handler)


async def location_handler(request: web.Request) -> web.Response:
    """GET /api/v1/location - Current location and error state."""
    controller: MapController = request.app["controller"]
    return web.json_response(controller.location_provider.to_dict())


async def refresh_location_handler(request: web.Request) -> web.Response:
    """POST /api/v1/location/refresh - Fetch a fresh fix from the host.

    Failures are reported in the ``error`` field, not as HTTP errors.
    """
    controller: MapController = request.app["controller"]
    await controller.get_current_position()
    return web.json_response(controller.location_provider.to_dict())


async def update_location_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/location - Manually set the user location.

    Example body:
        {"latitude": 40.4168, "longitude": -3.7038, "accuracy": 25}
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    try:
        location = Location.from_dict(body)
    except TypeError as e:
        raise ValueError(str(e)) from None
    controller.update_location(location)
    return web.json_response(controller.location_provider.to_dict())


async def clear_location_handler(request: web.Request) -> web.Response:
    """DELETE /api/v1/location - Forget the stored location."""
    controller: MapController = request.app["controller"]
    controller.clear_location()
    return web.json_response(controller.location_provider.to_dict())
