import math

import pytest

from timekeeping.geofence.evaluator import evaluate, haversine_distance
from timekeeping.geofence.model import GeofenceBoundary

OFFICE = GeofenceBoundary(organization_id=1, lat=0.0, lng=0.0, radius_meters=200)


def test_point_inside_radius():
    assert evaluate(OFFICE, 0, 0.0015) is True


def test_point_outside_radius():
    assert evaluate(OFFICE, 0, 0.003) is False


def test_center_is_inside():
    assert evaluate(OFFICE, "0", "0") is True


def test_missing_or_inactive_boundary_is_unknown():
    inactive = GeofenceBoundary(organization_id=1, lat=0.0, lng=0.0, radius_meters=200, is_active=False)

    assert evaluate(None, 0, 0) is None
    assert evaluate(inactive, 0, 0) is None


@pytest.mark.parametrize(
    "lat,lng",
    [(None, 0), (0, None), ("", ""), ("abc", 0), (0, float("nan")), (float("inf"), 0), (True, 0)],
)
def test_missing_or_malformed_point_is_unknown(lat, lng):
    assert evaluate(OFFICE, lat, lng) is None


def test_haversine_one_degree_on_equator():
    expected = 6_371_000 * math.pi / 180
    assert haversine_distance(0, 0, 0, 1) == pytest.approx(expected, rel=1e-9)
    assert haversine_distance(10.5, 106.7, 10.5, 106.7) == 0
