"""Tests for haversine distance and meter rounding."""

import math

import pytest

from proxyfail.common.constants import GeoConstants
from proxyfail.geo import distance_meters, round_meters
from tests.fixtures.sessions import CLASSROOM_LAT, CLASSROOM_LON, north_of


class TestDistanceMeters:
    """Test great-circle distance."""

    @pytest.mark.parametrize("lat,lon", [
        (CLASSROOM_LAT, CLASSROOM_LON),
        (0.0, 0.0),
        (-89.9, 179.9),
        (51.5074, -0.1278),
    ])
    def test_identical_points_are_zero(self, lat, lon):
        """Same point twice gives exactly zero."""
        assert distance_meters(lat, lon, lat, lon) == 0.0

    def test_symmetric(self):
        a = (19.0760, 72.8777)
        b = (28.6139, 77.2090)
        assert distance_meters(*a, *b) == pytest.approx(distance_meters(*b, *a))

    def test_known_offset_due_north(self):
        """200 m due north measures as 200 m."""
        lat2 = north_of(CLASSROOM_LAT, 200)
        d = distance_meters(CLASSROOM_LAT, CLASSROOM_LON, lat2, CLASSROOM_LON)
        assert d == pytest.approx(200.0, abs=0.01)

    def test_antipodal_points_are_finite(self):
        """Antipodes give half the circumference, never NaN."""
        d = distance_meters(0.0, 0.0, 0.0, 180.0)
        assert not math.isnan(d)
        assert d == pytest.approx(math.pi * GeoConstants.EARTH_RADIUS_METERS)

    def test_nearly_antipodal_points_are_finite(self):
        d = distance_meters(45.0, 10.0, -45.0, -170.0)
        assert math.isfinite(d)
        assert d > 0

    def test_non_negative(self):
        assert distance_meters(10.0, 10.0, -10.0, -10.0) > 0


class TestRoundMeters:
    """Test half-up rounding of distances."""

    @pytest.mark.parametrize("raw,expected", [
        (0.0, 0),
        (0.49, 0),
        (0.5, 1),
        (49.5, 50),
        (50.49, 50),
        (199.99, 200),
        (2.5, 3),
    ])
    def test_half_up(self, raw, expected):
        assert round_meters(raw) == expected
