"""Geo Verifier — tests for haversine distance and radius containment.

Tests cover:
    - Identical points are 0 m apart and inside any positive radius
    - One degree of latitude is ~111.2 km (within 0.5%)
    - Boundary: distance == radius counts as inside
    - Non-positive radius raises ValueError
    - Distance is symmetric
"""

import pytest

from attendance.core.geo import Coordinate, haversine_meters, verify


def test_identical_points_are_zero_meters_apart():
    p = Coordinate(-23.5505, -46.6333)
    assert haversine_meters(p, p) == 0.0
    verdict = verify(p, p, 1.0)
    assert verdict.within_radius is True
    assert verdict.rounded_distance == 0


def test_one_degree_of_latitude_is_about_111_km():
    d = haversine_meters(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
    assert d == pytest.approx(111_195, rel=0.005)


def test_distance_is_symmetric():
    a = Coordinate(48.8566, 2.3522)
    b = Coordinate(51.5074, -0.1278)
    assert haversine_meters(a, b) == pytest.approx(haversine_meters(b, a))


def test_paris_to_london_is_about_344_km():
    d = haversine_meters(Coordinate(48.8566, 2.3522), Coordinate(51.5074, -0.1278))
    assert d == pytest.approx(343_500, rel=0.01)


def test_point_exactly_on_radius_is_inside():
    origin = Coordinate(10.0, 10.0)
    target = Coordinate(10.001, 10.0)
    distance = haversine_meters(origin, target)
    assert verify(origin, target, distance).within_radius is True


def test_point_beyond_radius_is_outside():
    verdict = verify(Coordinate(-23.5600, -46.6333), Coordinate(-23.5505, -46.6333), 100.0)
    assert verdict.within_radius is False
    assert 1_000 < verdict.distance_meters < 1_100


def test_antipodal_points_do_not_raise():
    d = haversine_meters(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
    assert d == pytest.approx(20_015_087, rel=0.001)


@pytest.mark.parametrize("radius", [0, -5.0])
def test_non_positive_radius_raises(radius):
    p = Coordinate(0.0, 0.0)
    with pytest.raises(ValueError):
        verify(p, p, radius)
