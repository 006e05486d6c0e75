import math

import pytest

from geo_utils import bearing_deg, bounds, haversine_m, heading_at, is_latlon
from fakes import SCENARIO


def _angle_diff(a: float, b: float) -> float:
    return (a - b) % 360.0


def test_cardinal_bearings():
    assert bearing_deg((0.0, 0.0), (1.0, 0.0)) == pytest.approx(0.0)
    assert bearing_deg((0.0, 0.0), (0.0, 1.0)) == pytest.approx(90.0)
    assert bearing_deg((1.0, 0.0), (0.0, 0.0)) == pytest.approx(180.0)
    assert bearing_deg((0.0, 1.0), (0.0, 0.0)) == pytest.approx(270.0)


def test_bearing_same_point_is_zero():
    assert bearing_deg((31.63, 74.87), (31.63, 74.87)) == 0.0


def test_bearing_range():
    pts = [(-45.0, -170.0), (60.0, 179.5), (0.0, 0.0), (89.0, 10.0), (-10.0, 100.0)]
    for a in pts:
        for b in pts:
            h = bearing_deg(a, b)
            assert 0.0 <= h < 360.0


def test_reverse_bearing_on_meridian_and_equator():
    assert _angle_diff(bearing_deg((10.0, 5.0), (20.0, 5.0)), bearing_deg((20.0, 5.0), (10.0, 5.0))) \
        == pytest.approx(180.0)
    assert _angle_diff(bearing_deg((0.0, 5.0), (0.0, 9.0)), bearing_deg((0.0, 9.0), (0.0, 5.0))) \
        == pytest.approx(180.0)


def test_reverse_bearing_short_hop():
    # meridian convergence is negligible over a few hundred metres
    p, q = tuple(SCENARIO[0]), tuple(SCENARIO[1])
    assert _angle_diff(bearing_deg(p, q), bearing_deg(q, p)) == pytest.approx(180.0, abs=0.01)


def test_scenario_heading():
    p, q = tuple(SCENARIO[0]), tuple(SCENARIO[1])
    h = bearing_deg(p, q)
    # north-east, stretched towards east by cos(lat)
    assert 40.0 < h < 41.0
    expected = math.degrees(math.atan2(
        math.sin(math.radians(0.01)) * math.cos(math.radians(31.64)),
        math.cos(math.radians(31.63)) * math.sin(math.radians(31.64))
        - math.sin(math.radians(31.63)) * math.cos(math.radians(31.64)) * math.cos(math.radians(0.01)),
    ))
    assert h == pytest.approx(expected)


def test_heading_at_last_point_is_zero():
    pts = [tuple(p) for p in SCENARIO]
    assert heading_at(pts, 2) == 0.0
    assert heading_at(pts, 0) == bearing_deg(pts[0], pts[1])
    assert heading_at([(1.0, 1.0)], 0) == 0.0


def test_haversine():
    assert haversine_m((0.0, 0.0), (0.0, 0.0)) == 0.0
    # one degree of latitude is about 111 km
    assert haversine_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111195, rel=1e-3)


def test_bounds():
    assert bounds([(1.0, 5.0), (-2.0, 7.0), (0.5, 6.0)]) == ((-2.0, 5.0), (1.0, 7.0))
    with pytest.raises(ValueError):
        bounds([])


def test_is_latlon():
    assert is_latlon((1, 2))
    assert is_latlon([1.5, "2.5"])
    assert not is_latlon((1,))
    assert not is_latlon((1, 2, 3))
    assert not is_latlon(None)
    assert not is_latlon((float("nan"), 1.0))
    assert not is_latlon(("a", "b"))
    assert not is_latlon("12")
