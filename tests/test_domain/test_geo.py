"""
Tests for great-circle distance and bounding boxes
"""
import pytest

from event_locator.domain.geo import (
    KM_TO_MILES,
    bounding_box,
    distance_between,
    km_to_miles,
    validate_coordinates,
)

POINTS = [
    (40.78, -73.97),
    (34.0522, -118.2437),
    (51.5074, -0.1278),
    (-33.8688, 151.2093),
    (0.0, 179.99),
    (0.0, -179.99),
    (89.99, 0.0),
]


class TestDistance:
    def test_same_point_is_zero(self):
        assert distance_between(40.78, -73.97, 40.78, -73.97) == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize("a", POINTS)
    @pytest.mark.parametrize("b", POINTS)
    def test_symmetric(self, a, b):
        assert distance_between(*a, *b) == pytest.approx(distance_between(*b, *a))

    def test_new_york_to_los_angeles(self):
        km = distance_between(40.7128, -74.0060, 34.0522, -118.2437)
        assert km == pytest.approx(3936, rel=0.01)

    def test_across_antimeridian_is_short(self):
        assert distance_between(0.0, 179.99, 0.0, -179.99) == pytest.approx(2.224, abs=0.01)

    def test_miles(self):
        assert km_to_miles(10) == pytest.approx(10 * KM_TO_MILES)


class TestValidateCoordinates:
    @pytest.mark.parametrize("lat,lon", [(0, 0), (90, 180), (-90, -180), (40.78, -73.97)])
    def test_valid(self, lat, lon):
        assert validate_coordinates(lat, lon)

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (-91, 0), (0, 180.5), (0, -181)])
    def test_invalid(self, lat, lon):
        assert not validate_coordinates(lat, lon)


class TestBoundingBox:
    def test_contains_circle_edge(self):
        box = bounding_box(40.78, -73.97, 10)
        (lo, hi), = box.lon_ranges
        assert box.min_lat < 40.78 < box.max_lat
        assert lo < -73.97 < hi
        # a point ~10 km due north sits inside the box
        assert box.max_lat >= 40.78 + 10 / 111.2 - 0.01

    def test_antimeridian_splits_longitudes(self):
        box = bounding_box(0.0, 179.99, 5)
        assert len(box.lon_ranges) == 2
        assert any(lo <= -179.99 <= hi for lo, hi in box.lon_ranges)
        assert any(lo <= 179.99 <= hi for lo, hi in box.lon_ranges)

    def test_near_pole_covers_all_longitudes(self):
        box = bounding_box(89.99, 0.0, 5)
        assert box.covers_all_longitudes
        assert box.max_lat == 90.0

    def test_huge_radius_covers_globe(self):
        box = bounding_box(10.0, 10.0, 30000)
        assert box.covers_all_longitudes
        assert box.min_lat == -90.0
