"""
Map Routes - Viewport, marker, selection and clustering endpoints.
"""

from typing import Any, Optional

from aiohttp import web

from eventmap.map.controller import MapController
from eventmap.map.geo import format_distance
from eventmap.map.models import LatLng, MapBounds, MapMarker, coerce_latlng
from eventmap.map.spatial_filter import filter_by_bounds, search

from ..middleware import create_error_response, parse_json_body

TRUE_VALUES = {"1", "true", "yes", "on"}


def setup_map_routes(app: web.Application) -> None:
    """Register map routes."""
    app.router.add_get("/api/v1/map/state", state_handler)

    # Camera
    app.router.add_get("/api/v1/map/viewport", viewport_handler)
    app.router.add_put("/api/v1/map/viewport/center", set_center_handler)
    app.router.add_put("/api/v1/map/viewport/zoom", set_zoom_handler)
    app.router.add_put("/api/v1/map/viewport/bounds", fit_bounds_handler)
    app.router.add_post("/api/v1/map/viewport/fly", fly_to_handler)

    # Markers
    app.router.add_get("/api/v1/map/markers", list_markers_handler)
    app.router.add_post("/api/v1/map/markers", add_marker_handler)
    app.router.add_delete("/api/v1/map/markers", clear_markers_handler)
    app.router.add_get("/api/v1/map/markers/{id}", get_marker_handler)
    app.router.add_delete("/api/v1/map/markers/{id}", remove_marker_handler)
    app.router.add_put("/api/v1/map/selection", select_marker_handler)

    # Derived views
    app.router.add_get("/api/v1/map/clusters", clusters_handler)
    app.router.add_get("/api/v1/map/nearby", nearby_handler)
    app.router.add_get("/api/v1/map/bounds", map_bounds_handler)


# =============================================================================
# Helpers
# =============================================================================


def _center_from(value: Any) -> LatLng:
    try:
        return coerce_latlng(value)
    except TypeError as e:
        raise ValueError(f"Invalid center {value!r}: {e}") from None


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{name}' must be a number") from None


def _query_float(request: web.Request, name: str) -> Optional[float]:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return None
    return _number(raw, name)


def _marker_from(value: Any) -> MapMarker:
    if not isinstance(value, dict):
        raise ValueError(f"Marker must be an object, got {type(value).__name__}")
    try:
        return MapMarker.from_dict(value)
    except TypeError as e:
        raise ValueError(f"Invalid marker {value.get('id')!r}: {e}") from None


def _viewport_payload(controller: MapController) -> dict:
    payload = controller.viewport.to_dict()
    payload["can_zoom_in"] = controller.viewport_manager.can_zoom_in()
    payload["can_zoom_out"] = controller.viewport_manager.can_zoom_out()
    return payload


# =============================================================================
# Handlers
# =============================================================================


async def state_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/state - Full controller snapshot."""
    controller: MapController = request.app["controller"]
    return web.json_response(controller.snapshot())


async def viewport_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/viewport - Current camera."""
    controller: MapController = request.app["controller"]
    return web.json_response(_viewport_payload(controller))


async def set_center_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/map/viewport/center - Move the camera.

    Example body:
        {"center": [40.4168, -3.7038]}
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    controller.set_center(_center_from(body["center"]))
    return web.json_response(_viewport_payload(controller))


async def set_zoom_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/map/viewport/zoom - Set (clamped) zoom.

    Body is either {"zoom": 14} or {"delta": -1}.
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    if "delta" in body:
        controller.adjust_zoom(_number(body["delta"], "delta"))
    else:
        controller.set_zoom(_number(body["zoom"], "zoom"))
    return web.json_response(_viewport_payload(controller))


async def fit_bounds_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/map/viewport/bounds - Store visible bounds.

    Example body:
        {"north": 40.5, "south": 40.3, "east": -3.6, "west": -3.8}
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    bounds = MapBounds(
        north=_number(body["north"], "north"),
        south=_number(body["south"], "south"),
        east=_number(body["east"], "east"),
        west=_number(body["west"], "west"),
    )
    controller.fit_bounds(bounds)
    return web.json_response(_viewport_payload(controller))


async def fly_to_handler(request: web.Request) -> web.Response:
    """POST /api/v1/map/viewport/fly - Move center and optionally zoom together."""
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    zoom = body.get("zoom")
    controller.fly_to(
        _center_from(body["center"]),
        _number(zoom, "zoom") if zoom is not None else None,
    )
    return web.json_response(_viewport_payload(controller))


async def list_markers_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/markers - List markers.

    Query params (combinable):
        type: event | tribe | user | venue
        q: case-insensitive text search
        in_viewport: true to keep only markers inside the viewport bounds
    """
    controller: MapController = request.app["controller"]
    marker_type = request.query.get("type")
    markers = controller.get_markers_by_type(marker_type) if marker_type else list(controller.markers)
    if request.query.get("in_viewport", "").lower() in TRUE_VALUES:
        markers = filter_by_bounds(markers, controller.viewport.bounds)
    query = request.query.get("q")
    if query:
        markers = search(markers, query)
    return web.json_response({
        "markers": [m.to_dict() for m in markers],
        "count": len(markers),
    })


async def add_marker_handler(request: web.Request) -> web.Response:
    """POST /api/v1/map/markers - Add or replace markers.

    Body is a single marker object or {"markers": [...]} for bulk upserts.
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err

    if "markers" in body:
        items = body["markers"]
        if not isinstance(items, list):
            return create_error_response("INVALID_BODY", "'markers' must be a list", status=400)
        markers = [_marker_from(item) for item in items]
        count = controller.add_markers(markers)
        return web.json_response({"success": True, "count": count}, status=201)

    marker = _marker_from(body)
    controller.add_marker(marker)
    return web.json_response({"success": True, "marker": marker.to_dict()}, status=201)


async def clear_markers_handler(request: web.Request) -> web.Response:
    """DELETE /api/v1/map/markers - Remove every marker."""
    controller: MapController = request.app["controller"]
    controller.clear_markers()
    return web.json_response({"success": True})


async def get_marker_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/markers/{id} - One marker."""
    controller: MapController = request.app["controller"]
    marker_id = request.match_info["id"]
    marker = controller.get_marker(marker_id)
    if marker is None:
        return create_error_response("MARKER_NOT_FOUND", f"Marker '{marker_id}' not found", status=404)
    return web.json_response({"marker": marker.to_dict()})


async def remove_marker_handler(request: web.Request) -> web.Response:
    """DELETE /api/v1/map/markers/{id} - Remove one marker."""
    controller: MapController = request.app["controller"]
    marker_id = request.match_info["id"]
    if not controller.remove_marker(marker_id):
        return create_error_response("MARKER_NOT_FOUND", f"Marker '{marker_id}' not found", status=404)
    return web.json_response({"success": True, "id": marker_id})


async def select_marker_handler(request: web.Request) -> web.Response:
    """PUT /api/v1/map/selection - Select a marker by id, or clear with null.

    Example body:
        {"id": "e1"}
    """
    controller: MapController = request.app["controller"]
    body, err = await parse_json_body(request)
    if err:
        return err
    marker_id = body["id"]
    if marker_id is not None:
        marker_id = str(marker_id)
        if marker_id not in controller.marker_store:
            return create_error_response("MARKER_NOT_FOUND", f"Marker '{marker_id}' not found", status=404)
    controller.select_marker(marker_id)
    selected = controller.selected_marker
    return web.json_response({
        "selected_marker": selected.to_dict() if selected else None,
        "viewport": _viewport_payload(controller),
    })


async def clusters_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/clusters - Cluster current markers (?radius_km=)."""
    controller: MapController = request.app["controller"]
    clusters = controller.get_clustered_markers(_query_float(request, "radius_km"))
    return web.json_response({
        "clusters": [c.to_dict() for c in clusters],
        "count": len(clusters),
    })


async def nearby_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/nearby - Markers near the user location (?radius_km=)."""
    controller: MapController = request.app["controller"]
    hits = controller.get_nearby_markers(_query_float(request, "radius_km"))
    location = controller.location
    return web.json_response({
        "location": location.to_dict() if location else None,
        "markers": [
            {
                "marker": marker.to_dict(),
                "distance_km": km,
                "distance": format_distance(km),
            }
            for marker, km in hits
        ],
        "count": len(hits),
    })


async def map_bounds_handler(request: web.Request) -> web.Response:
    """GET /api/v1/map/bounds - Tight bounds around all markers."""
    controller: MapController = request.app["controller"]
    bounds = controller.get_map_bounds()
    return web.json_response({"bounds": bounds.to_dict() if bounds else None})
