"""Unit tests for map data types."""

import math

import pytest

from eventmap.map.models import (
    EventPayload,
    Location,
    MapBounds,
    MapMarker,
    MapViewport,
    MarkerCluster,
    MarkerType,
    TribePayload,
    UserPayload,
    coerce_latlng,
)
from tests.conftest import make_marker


class TestCoerceLatLng:

    def test_pair_and_mapping(self):
        assert coerce_latlng([40, "-3.5"]) == (40.0, -3.5)
        assert coerce_latlng({"latitude": 1, "longitude": 2}) == (1.0, 2.0)

    @pytest.mark.parametrize("value", [[math.nan, 0.0], [0.0, math.inf]])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError):
            coerce_latlng(value)


class TestLocation:

    def test_from_dict_coerces_types(self):
        location = Location.from_dict({"latitude": "40.5", "longitude": -3, "timestamp": 1000.0})
        assert location.latitude == 40.5
        assert location.longitude == -3.0
        assert location.accuracy is None
        assert location.timestamp == 1000

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(TypeError):
            Location.from_dict([40.0, -3.0])

    def test_from_dict_missing_longitude(self):
        with pytest.raises(KeyError):
            Location.from_dict({"latitude": 40.0})

    def test_from_dict_rejects_non_finite(self):
        with pytest.raises(ValueError):
            Location.from_dict({"latitude": math.nan, "longitude": 0.0})

    def test_age(self):
        location = Location(1.0, 2.0, timestamp=1_000)
        assert location.age_ms(1_500) == 500
        assert location.age_ms(500) == 0
        assert Location(1.0, 2.0).age_ms(1_500) is None

    def test_to_dict_round_trip(self):
        location = Location(40.0, -3.0, accuracy=12.5, timestamp=42)
        assert Location.from_dict(location.to_dict()) == location


class TestMapBounds:

    def test_contains_is_inclusive(self):
        bounds = MapBounds(north=41.0, south=40.0, east=-3.0, west=-4.0)
        assert bounds.contains((41.0, -3.0))
        assert bounds.contains((40.0, -4.0))
        assert not bounds.contains((41.0001, -3.5))

    def test_inverted_longitudes_match_nothing(self):
        """west > east is not treated as crossing the antimeridian."""
        bounds = MapBounds(north=10.0, south=-10.0, east=-170.0, west=170.0)
        assert not bounds.contains((0.0, 175.0))
        assert not bounds.contains((0.0, -175.0))


class TestMapViewport:

    def test_from_dict_rounds_zoom(self):
        viewport = MapViewport.from_dict({"center": [1, 2], "zoom": 12.6})
        assert viewport.center == (1.0, 2.0)
        assert viewport.zoom == 13
        assert viewport.bounds is None


class TestMapMarker:
    """Marker validation and serialization."""

    def test_type_is_coerced_from_string(self):
        marker = MapMarker(id="t1", position=[40, -3], type="tribe", data=TribePayload(name="Runners"))
        assert marker.type is MarkerType.TRIBE
        assert marker.position == (40.0, -3.0)

    def test_payload_must_match_type(self):
        with pytest.raises(ValueError):
            MapMarker(id="x", position=(0, 0), type=MarkerType.EVENT, data=UserPayload(name="Ana"))

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            MapMarker(id="", position=(0, 0), type=MarkerType.EVENT, data=EventPayload())

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            MapMarker.from_dict({"id": "x", "position": [0, 0], "type": "festival"})

    def test_from_dict_builds_payload_and_popup(self):
        marker = MapMarker.from_dict({
            "id": "e1",
            "position": [40.42, -3.70],
            "type": "event",
            "data": {"title": "Jazz Night", "tags": ["music", "live"], "unknown": 1},
            "popup": {"title": "Jazz Night", "content": "Tonight"},
        })
        assert marker.data == EventPayload(title="Jazz Night", tags=("music", "live"))
        assert marker.popup.title == "Jazz Night"
        assert marker.to_dict()["data"]["tags"] == ["music", "live"]

    def test_search_text_covers_tags(self):
        marker = make_marker("e1", title="Jazz Night", category="music", tags=("vinyl",))
        assert "vinyl" in marker.data.search_text()
        assert "music" in marker.data.search_text()


class TestMarkerCluster:

    def test_requires_a_marker(self):
        with pytest.raises(ValueError):
            MarkerCluster(())

    def test_seed_and_center(self):
        a = make_marker("a", (40.0, -3.0))
        b = make_marker("b", (42.0, -5.0))
        cluster = MarkerCluster((a, b))
        assert cluster.seed is a
        assert len(cluster) == 2
        assert cluster.center == pytest.approx((41.0, -4.0))
        assert [m.id for m in cluster] == ["a", "b"]
        assert cluster.to_dict()["size"] == 2
