"""Unit tests for MapController wiring."""

import json

import pytest

from eventmap.core.storage import JsonFileStorage, MemoryStorage
from eventmap.map.config import MapConfig
from eventmap.map.controller import MapController
from eventmap.map.location.hosts import StaticLocationHost, UnsupportedLocationHost
from eventmap.map.location.types import LocationErrorCode
from eventmap.map.models import MapBounds, MarkerType
from tests.conftest import MADRID, make_location, make_marker, run_async

MADRID_FIX = make_location(*MADRID)


class TestStartup:

    def test_start_centers_on_user_location(self):
        controller = MapController(host=StaticLocationHost(MADRID_FIX))

        run_async(controller.start())

        assert controller.location == MADRID_FIX
        assert controller.viewport.center == MADRID
        assert controller.error is None
        assert controller.is_loading is False

    def test_follow_location_disabled_keeps_camera(self):
        config = MapConfig(follow_location=False)
        controller = MapController(config, host=StaticLocationHost(MADRID_FIX))

        run_async(controller.start())

        assert controller.location == MADRID_FIX
        assert controller.viewport.center == config.initial_center

    def test_initial_camera_from_config(self):
        config = MapConfig(initial_center_lat=10.0, initial_center_lng=20.0, initial_zoom=7)
        controller = MapController(config)
        assert controller.viewport.center == (10.0, 20.0)
        assert controller.viewport.zoom == 7

    def test_unsupported_host_reports_error(self):
        controller = MapController(host=UnsupportedLocationHost())
        run_async(controller.start())
        assert controller.location is None
        assert controller.error is LocationErrorCode.UNSUPPORTED
        assert controller.error_message

    def test_from_config_persists_to_storage_path(self, tmp_path):
        config = MapConfig(storage_path=tmp_path / "state" / "user.json")
        controller = MapController.from_config(config, host=StaticLocationHost(MADRID_FIX))
        assert isinstance(controller.location_provider.storage, JsonFileStorage)

        async def scenario():
            await controller.start()
            await controller.close()

        run_async(scenario())

        saved = json.loads(config.storage_path.read_text(encoding="utf-8"))
        assert json.loads(saved[config.storage_key]) == MADRID_FIX.to_dict()

        reopened = MapController.from_config(config, host=UnsupportedLocationHost())
        run_async(reopened.start())
        assert reopened.location == MADRID_FIX
        assert reopened.error is None

    def test_controllers_are_independent(self):
        first = MapController(host=StaticLocationHost(MADRID_FIX), storage=MemoryStorage())
        second = MapController(host=UnsupportedLocationHost(), storage=MemoryStorage())
        first.add_marker(make_marker("e1"))
        run_async(first.start())

        assert second.markers == ()
        assert second.location is None
        assert second.viewport.center != first.viewport.center


class TestSelection:

    def test_select_flies_to_marker(self):
        controller = MapController()
        controller.add_marker(make_marker("e1", (40.42, -3.70), title="Jazz"))

        selected = controller.select_marker("e1")

        assert selected.id == "e1"
        assert controller.selected_marker == selected
        assert controller.viewport.center == (40.42, -3.70)
        assert controller.viewport.zoom >= 15

    def test_select_keeps_higher_zoom(self):
        controller = MapController()
        controller.set_zoom(17)
        controller.add_marker(make_marker("e1", (40.42, -3.70)))
        controller.select_marker("e1")
        assert controller.viewport.zoom == 17

    def test_select_unknown_is_noop(self):
        controller = MapController()
        before = controller.viewport
        assert controller.select_marker("missing") is None
        assert controller.viewport == before

    def test_removing_selected_clears_selection(self):
        controller = MapController()
        controller.add_marker(make_marker("e1"))
        controller.select_marker("e1")
        assert controller.remove_marker("e1") is True
        assert controller.selected_marker is None


class TestQueries:

    @pytest.fixture
    def controller(self):
        controller = MapController()
        controller.add_markers([
            make_marker("near", (40.4200, -3.7000), title="Jazz"),
            make_marker("mid", (40.4500, -3.7000), marker_type=MarkerType.VENUE, name="Blue Room"),
            make_marker("far", (41.3874, 2.1686), title="Beach party"),
        ])
        return controller

    def test_nearby_sorted_by_distance(self, controller):
        controller.update_location(make_location(*MADRID))
        hits = controller.get_nearby_markers()
        assert [m.id for m, _ in hits] == ["near", "mid"]
        assert hits[0][1] <= hits[1][1]

    def test_nearby_custom_radius(self, controller):
        controller.update_location(make_location(*MADRID))
        assert [m.id for m, _ in controller.get_nearby_markers(1.0)] == ["near"]
        assert len(controller.get_nearby_markers(1000.0)) == 3

    def test_nearby_without_location_is_empty(self, controller):
        assert controller.get_nearby_markers() == []

    def test_markers_in_viewport(self, controller):
        assert len(controller.get_markers_in_viewport()) == 3
        controller.fit_bounds(MapBounds(north=41.0, south=40.0, east=-3.0, west=-4.0))
        assert [m.id for m in controller.get_markers_in_viewport()] == ["near", "mid"]

    def test_search_and_type_filter(self, controller):
        assert [m.id for m in controller.search_markers("blue")] == ["mid"]
        assert [m.id for m in controller.get_markers_by_type("venue")] == ["mid"]

    def test_map_bounds(self, controller):
        bounds = controller.get_map_bounds()
        assert bounds.north == pytest.approx(41.3874)
        assert bounds.west == pytest.approx(-3.7)

    def test_clusters_use_configured_radius(self, controller):
        assert len(controller.get_clustered_markers()) == 3
        assert len(controller.get_clustered_markers(cluster_radius_km=5.0)) == 2


class TestObservation:

    def test_listener_sees_each_change(self):
        controller = MapController()
        seen = []
        remove = controller.add_listener(lambda c: seen.append(c.viewport.zoom))

        controller.set_zoom(14)
        controller.add_marker(make_marker("e1"))
        remove()
        controller.set_zoom(10)

        assert seen == [14, 14]

    def test_location_update_recenters_once(self):
        controller = MapController()
        centers = []
        controller.add_listener(lambda c: centers.append(c.viewport.center))
        controller.update_location(make_location(*MADRID))
        assert centers == [MADRID]

    def test_snapshot_is_json_serializable(self):
        controller = MapController(host=StaticLocationHost(MADRID_FIX))
        controller.add_marker(make_marker("e1", title="Jazz"))
        controller.select_marker("e1")
        run_async(controller.start())

        state = json.loads(json.dumps(controller.snapshot()))

        assert state["selected_marker_id"] == "e1"
        assert state["markers"][0]["id"] == "e1"
        assert state["location"]["location"]["latitude"] == pytest.approx(MADRID[0])
        assert state["clustering"] == {"enabled": True, "cluster_radius_km": 1.0}
        assert state["follow_location"] is True

    def test_clear_location_keeps_camera(self):
        controller = MapController()
        controller.update_location(make_location(*MADRID))
        controller.clear_location()
        assert controller.location is None
        assert controller.viewport.center == MADRID


class TestWatching:

    def test_watch_follows_pushed_fixes(self):
        host = StaticLocationHost()
        controller = MapController(host=host)
        stop = controller.watch_position()

        host.push(make_location(40.0, -3.0))
        host.push(make_location(41.0, -4.0))
        assert controller.viewport.center == (41.0, -4.0)

        stop()
        host.push(make_location(0.0, 0.0))
        assert controller.location.position == (41.0, -4.0)

    def test_subscribe_passthrough(self):
        host = StaticLocationHost()
        controller = MapController(host=host)
        received = []
        unsubscribe = controller.subscribe(received.append)
        host.push(MADRID_FIX)
        unsubscribe()
        assert received == [MADRID_FIX]
        assert host.active_watches == 0
