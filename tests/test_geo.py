import math

import pytest

from routing.geo import Coordinate, InvalidCoordinate, coordinate_or_none, distance_km
from routing.geofence import geofence_candidates


@pytest.fixture
def restaurant():
    # Hyderabad city center
    return Coordinate.parse(17.3850, 78.4867)


def test_distance_is_zero_for_the_same_point(restaurant):
    assert distance_km(restaurant, restaurant) == 0.0


def test_distance_is_symmetric(restaurant):
    other = Coordinate.parse(17.4000, 78.5100)
    assert distance_km(restaurant, other) == distance_km(other, restaurant)


def test_distance_matches_known_values(restaurant):
    # one degree of latitude along a meridian
    assert distance_km(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0)) == pytest.approx(111.195, abs=0.01)
    # ~3 km across town
    assert distance_km(restaurant, Coordinate(17.4000, 78.5100)) == pytest.approx(2.98, abs=0.02)


def test_distance_handles_antipodes_without_nan():
    d = distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
    assert not math.isnan(d)
    assert d == pytest.approx(math.pi * 6371.0, rel=1e-9)


@pytest.mark.parametrize("lat,lng", [
    (95, 78.0),
    (-90.5, 0),
    (17.0, 181),
    (None, 78.0),
    (17.0, None),
    ("north", 78.0),
    (float("nan"), 78.0),
    (17.0, float("inf")),
    (True, 78.0),
])
def test_parse_rejects_invalid_coordinates(lat, lng):
    with pytest.raises(InvalidCoordinate):
        Coordinate.parse(lat, lng)


def test_parse_accepts_boundaries_and_numeric_strings():
    assert Coordinate.parse(90, -180).to_tuple() == (90.0, -180.0)
    assert Coordinate.parse("17.385", "78.4867") == Coordinate(17.385, 78.4867)


def test_invalid_coordinate_is_a_value_error():
    # callers that only know ValueError still catch it
    with pytest.raises(ValueError):
        Coordinate.parse(95, 0)


def test_coordinate_or_none_treats_missing_as_absent():
    assert coordinate_or_none(None, None) is None
    assert coordinate_or_none(95, 0) is None
    assert coordinate_or_none(17.385, 78.4867) == Coordinate(17.385, 78.4867)


def test_geofence_keeps_boundary_and_input_order(restaurant):
    class Point:
        def __init__(self, name, location):
            self.name = name
            self.location = location

    near = Point("near", Coordinate(17.3860, 78.4870))
    far = Point("far", Coordinate(20.0, 80.0))
    across_town = Point("across_town", Coordinate(17.4000, 78.5100))

    radius = distance_km(restaurant, across_town.location)
    hits = geofence_candidates(restaurant, [across_town, far, near], max_radius_km=radius)

    # exactly on the radius still counts
    assert [hit.agent.name for hit in hits] == ["across_town", "near"]
    assert hits[0].pickup_distance_km == pytest.approx(radius)


def test_geofence_with_no_agents(restaurant):
    assert geofence_candidates(restaurant, [], max_radius_km=10.0) == []
