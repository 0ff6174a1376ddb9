"""Unit tests for ViewportManager."""

import pytest

from eventmap.map.models import MapBounds, MapViewport
from eventmap.map.viewport import ViewportManager


@pytest.fixture
def viewport():
    return ViewportManager((19.4326, -99.1332), 12)


class TestZoomClamping:
    """Zoom values are clamped into [min_zoom, max_zoom], never rejected."""

    def test_defaults(self, viewport):
        assert viewport.center == (19.4326, -99.1332)
        assert viewport.zoom == 12
        assert viewport.bounds is None

    @pytest.mark.parametrize("requested, expected", [(25, 18), (0, 3), (-4, 3), (12.6, 13), (18, 18)])
    def test_set_zoom_clamps(self, viewport, requested, expected):
        viewport.set_zoom(requested)
        assert viewport.zoom == expected

    def test_initial_zoom_is_clamped(self):
        assert ViewportManager((0, 0), 40).zoom == 18

    def test_custom_range(self):
        vm = ViewportManager((0, 0), 10, min_zoom=5, max_zoom=8)
        assert vm.zoom == 8
        vm.set_zoom(1)
        assert vm.zoom == 5

    def test_min_greater_than_max_rejected(self):
        with pytest.raises(ValueError):
            ViewportManager((0, 0), 10, min_zoom=12, max_zoom=4)

    def test_adjust_zoom(self, viewport):
        assert viewport.adjust_zoom(2) == 14
        assert viewport.adjust_zoom(10) == 18
        assert not viewport.can_zoom_in()
        assert viewport.can_zoom_out()
        viewport.set_zoom(3)
        assert not viewport.can_zoom_out()


class TestCameraOperations:

    def test_set_center_keeps_zoom(self, viewport):
        viewport.set_center((40.0, -3.0))
        assert viewport.center == (40.0, -3.0)
        assert viewport.zoom == 12

    def test_fit_bounds_stored_verbatim(self, viewport):
        bounds = MapBounds(north=41.0, south=40.0, east=-3.0, west=-4.0)
        viewport.fit_bounds(bounds)
        assert viewport.bounds is bounds
        assert viewport.center == (19.4326, -99.1332)

    def test_fly_to_without_zoom_keeps_zoom(self, viewport):
        viewport.fly_to((1.0, 2.0))
        assert viewport.center == (1.0, 2.0)
        assert viewport.zoom == 12

    def test_fly_to_clamps_zoom(self, viewport):
        viewport.fly_to((1.0, 2.0), 99)
        assert viewport.zoom == 18

    def test_set_viewport_clamps_zoom(self, viewport):
        viewport.set_viewport(MapViewport(center=(5.0, 6.0), zoom=1))
        assert viewport.viewport == MapViewport(center=(5.0, 6.0), zoom=3)

    def test_snapshots_are_replaced(self, viewport):
        before = viewport.viewport
        viewport.set_zoom(14)
        assert before.zoom == 12
        assert viewport.viewport is not before


class TestListeners:

    def test_one_snapshot_per_operation(self, viewport):
        published = []
        viewport.add_listener(published.append)

        viewport.fly_to((1.0, 2.0), 15)
        viewport.set_zoom(99)
        viewport.fit_bounds(MapBounds(1, 0, 1, 0))

        assert len(published) == 3
        assert published[0].center == (1.0, 2.0) and published[0].zoom == 15
        assert published[1].zoom == 18
        assert published[2].bounds == MapBounds(1, 0, 1, 0)

    def test_remove_listener(self, viewport):
        published = []
        remove = viewport.add_listener(published.append)
        remove()
        viewport.set_zoom(5)
        assert published == []

    def test_failing_listener_does_not_block_update(self, viewport):
        def boom(_):
            raise RuntimeError("listener failure")

        viewport.add_listener(boom)
        viewport.set_zoom(5)
        assert viewport.zoom == 5
