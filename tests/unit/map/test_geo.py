"""Unit tests for great-circle distance helpers."""

import pytest

from eventmap.map.geo import distance, format_distance, is_within_radius
from tests.conftest import BARCELONA, MADRID, make_location, make_marker


class TestDistance:
    """Haversine distance on a 6371 km sphere."""

    def test_madrid_to_barcelona(self):
        """Known city pair lands within a few km of the reference value."""
        assert distance(MADRID, BARCELONA) == pytest.approx(504.6, abs=5.0)

    def test_identical_points_are_zero(self):
        assert distance(MADRID, MADRID) == 0.0

    def test_symmetric(self):
        assert distance(MADRID, BARCELONA) == pytest.approx(distance(BARCELONA, MADRID))

    def test_one_degree_of_latitude(self):
        assert distance((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111.195, abs=0.01)

    def test_antipodal_points(self):
        """Half the circumference, no math domain error."""
        assert distance((0.0, 0.0), (0.0, 180.0)) == pytest.approx(20015.09, abs=0.1)

    def test_across_antimeridian(self):
        """Points either side of 180 degrees are close, not half a world apart."""
        assert distance((0.0, 179.9), (0.0, -179.9)) == pytest.approx(22.24, abs=0.05)

    def test_accepts_locations_and_markers(self):
        location = make_location(*MADRID)
        marker = make_marker("b", BARCELONA)
        assert distance(location, marker) == pytest.approx(distance(MADRID, BARCELONA))

    def test_non_negative(self):
        assert distance((-33.9, 151.2), (51.5, -0.12)) > 0


class TestIsWithinRadius:

    def test_inclusive_boundary(self):
        km = distance(MADRID, BARCELONA)
        assert is_within_radius(MADRID, BARCELONA, km)
        assert not is_within_radius(MADRID, BARCELONA, km - 0.001)


class TestFormatDistance:
    """Human-readable distance strings."""

    def test_metres_below_one_km(self):
        assert format_distance(0.5) == "500m"
        assert format_distance(0.0) == "0m"

    def test_one_decimal_below_ten_km(self):
        assert format_distance(2.34) == "2.3km"
        assert format_distance(1.0) == "1.0km"

    def test_whole_km_from_ten(self):
        assert format_distance(12.6) == "13km"
        assert format_distance(10.0) == "10km"
