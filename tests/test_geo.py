import math

import pytest

from poipilot.core.geo import GeoPoint, as_geo_point, distance_km, haversine_m, is_valid_point


POINTS = [
    GeoPoint(lat=0.0, lon=0.0),
    GeoPoint(lat=10.0, lon=10.0),
    GeoPoint(lat=-33.8688, lon=151.2093),
    GeoPoint(lat=51.5074, lon=-0.1278),
    GeoPoint(lat=89.9, lon=179.9),
    GeoPoint(lat=-89.9, lon=-179.9),
]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric_and_non_negative(a, b):
    d_ab = distance_km(a, b)
    d_ba = distance_km(b, a)
    assert d_ab >= 0
    assert d_ab == pytest.approx(d_ba, abs=1e-9)


@pytest.mark.parametrize("a", POINTS)
def test_distance_to_self_is_zero(a):
    assert distance_km(a, a) == 0


def test_one_degree_of_longitude_at_equator():
    d = distance_km(GeoPoint(0, 0), GeoPoint(0, 1))
    assert d == pytest.approx(2 * math.pi * 6371 / 360, rel=1e-9)


def test_antipodal_points_do_not_blow_up():
    d = distance_km(GeoPoint(0, 0), GeoPoint(0, 180))
    assert d == pytest.approx(math.pi * 6371, rel=1e-9)


def test_haversine_m_is_km_times_1000():
    a, b = GeoPoint(10, 10), GeoPoint(10, 10.0005)
    assert haversine_m(a, b) == pytest.approx(distance_km(a, b) * 1000)


def test_is_valid_point_rejects_non_finite_and_non_numeric():
    assert is_valid_point(1, 2.5)
    assert not is_valid_point(float("nan"), 0)
    assert not is_valid_point(0, float("inf"))
    assert not is_valid_point("1", 2)
    assert not is_valid_point(None, 2)
    assert not is_valid_point(True, 2)


def test_as_geo_point_accepts_mappings_and_objects():
    assert as_geo_point({"lat": 1, "lon": 2}) == GeoPoint(1.0, 2.0)
    assert as_geo_point(GeoPoint(3, 4)) == GeoPoint(3, 4)
    assert as_geo_point({"lat": "1", "lon": 2}) is None
    assert as_geo_point(None) is None
