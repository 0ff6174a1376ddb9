"""Configuration Routes - Read and update the service config file."""

from dataclasses import fields

from aiohttp import web

from eventmap.core.preferences import ServicePreferences
from eventmap.map.config import MapConfig

from ..middleware import create_error_response, parse_json_body

CONFIG_KEYS = frozenset(f.name for f in fields(MapConfig))


def setup_config_routes(app: web.Application) -> None:
    """Register configuration routes."""
    app.router.add_get("/api/v1/config", get_config_handler)
    app.router.add_put("/api/v1/config", update_config_handler)


def _preferences(request: web.Request):
    return request.app.get("preferences")


def _is_config_value(value) -> bool:
    return isinstance(value, (str, int, float, bool))


async def get_config_handler(request: web.Request) -> web.Response:
    """GET /api/v1/config - Effective configuration and config file path."""
    prefs: ServicePreferences = _preferences(request)
    if prefs is None:
        return create_error_response("CONFIG_NOT_AVAILABLE", "No configuration file is attached", status=404)
    config = MapConfig.from_preferences(prefs)
    return web.json_response({
        "config": config.to_dict(),
        "path": str(prefs.config_path) if prefs.config_path else None,
    })


async def update_config_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/config - Persist configuration keys.

    Changes are written to the config file and take effect on restart.

    Example body:
        {"cluster_radius_km": 2.5, "enable_clustering": false}
    """
    prefs: ServicePreferences = _preferences(request)
    if prefs is None:
        return create_error_response("CONFIG_NOT_AVAILABLE", "No configuration file is attached", status=404)
    body, err = await parse_json_body(request)
    if err:
        return err

    unknown = sorted(set(body) - CONFIG_KEYS)
    if unknown:
        return create_error_response(
            "UNKNOWN_CONFIG_KEYS",
            f"Unknown configuration keys: {', '.join(unknown)}",
            status=400,
        )

    unreadable = sorted(key for key, value in body.items() if not _is_config_value(value))
    if unreadable:
        return create_error_response(
            "VALIDATION_ERROR",
            f"Configuration values must be scalars: {', '.join(unreadable)}",
            status=400,
        )
    try:
        MapConfig.from_preferences({**prefs.snapshot(), **body}).validate()
    except ValueError as exc:
        return create_error_response("VALIDATION_ERROR", str(exc), status=400)

    success = await prefs.write_async(body)
    if not success:
        return create_error_response("CONFIG_WRITE_FAILED", "Failed to write configuration file", status=500)
    return web.json_response({"success": True, "updated": sorted(body)})
