import math

import pytest

from navigation.guidance.errors import EmptyInputError
from navigation.guidance.geo_utils import (
    bounding_box,
    calculate_bearing,
    cardinal_direction,
    format_distance,
    format_duration,
    haversine_distance,
)
from navigation.guidance.models import Coord

SAMPLE_POINTS = [
    Coord(0.0, 0.0),
    Coord(39.92409, 32.845382),
    Coord(-33.8688, 151.2093),
    Coord(51.5074, -0.1278),
    Coord(89.9, 179.9),
    Coord(-45.0, -120.0),
]


@pytest.mark.parametrize("a", SAMPLE_POINTS)
@pytest.mark.parametrize("b", SAMPLE_POINTS)
def test_distance_is_symmetric(a, b):
    assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a))


@pytest.mark.parametrize("a", SAMPLE_POINTS)
def test_distance_to_self_is_zero(a):
    assert haversine_distance(a, a) == 0.0


def test_distance_at_equator():
    # 0.009° of longitude at the equator is just over a kilometre
    d = haversine_distance(Coord(0, 0), Coord(0, 0.009))
    assert d == pytest.approx(1000.8, abs=1.0)


def test_distance_known_city_pair():
    london, paris = Coord(51.5074, -0.1278), Coord(48.8566, 2.3522)
    assert haversine_distance(london, paris) == pytest.approx(343_500, rel=0.01)


@pytest.mark.parametrize("target, expected", [
    (Coord(1, 0), 0.0),
    (Coord(0, 1), 90.0),
    (Coord(-1, 0), 180.0),
    (Coord(0, -1), 270.0),
])
def test_bearing_cardinal_axes(target, expected):
    assert calculate_bearing(Coord(0, 0), target) == pytest.approx(expected)


@pytest.mark.parametrize("a", SAMPLE_POINTS)
@pytest.mark.parametrize("b", SAMPLE_POINTS)
def test_bearing_is_normalised(a, b):
    bearing = calculate_bearing(a, b)
    assert 0.0 <= bearing < 360.0


def test_bearing_west_of_north_is_positive():
    # atan2 gives about -45° here; it must come back as ~315°
    assert calculate_bearing(Coord(0, 0), Coord(1, -1)) == pytest.approx(315.0, abs=0.1)


@pytest.mark.parametrize("bearing, expected", [
    (0, "north"),
    (22, "north"),
    (23, "northeast"),
    (45, "northeast"),
    (90, "east"),
    (135, "southeast"),
    (180, "south"),
    (225, "southwest"),
    (270, "west"),
    (315, "northwest"),
    (340, "north"),
    (359.9, "north"),
])
def test_cardinal_direction_sectors(bearing, expected):
    assert cardinal_direction(bearing) == expected


@pytest.mark.parametrize("bearing", [0, 10.5, 44, 91, 200, 300.25, 359])
def test_cardinal_direction_is_periodic(bearing):
    assert cardinal_direction(bearing) == cardinal_direction(bearing + 360)
    assert cardinal_direction(bearing) == cardinal_direction(bearing - 360)


def test_bounding_box():
    box = bounding_box([Coord(1, 5), Coord(-2, 3), Coord(0.5, 7)])
    assert box.southwest == Coord(-2, 3)
    assert box.northeast == Coord(1, 7)


def test_bounding_box_single_point():
    box = bounding_box(iter([Coord(4, 4)]))
    assert box.southwest == box.northeast == Coord(4, 4)


def test_bounding_box_rejects_empty_input():
    with pytest.raises(EmptyInputError):
        bounding_box([])


@pytest.mark.parametrize("meters, expected", [
    (0, "0 m"),
    (849.6, "850 m"),
    (1000, "1.0 km"),
    (1234, "1.2 km"),
])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


@pytest.mark.parametrize("seconds, expected", [
    (10, "1 min"),
    (714, "12 mins"),
    (3600, "1 hour"),
    (3900, "1 hour 5 mins"),
    (7260, "2 hours 1 min"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_coord_validity():
    assert Coord(10, 20).is_valid()
    assert not Coord(math.nan, 0).is_valid()
    assert not Coord(0, math.inf).is_valid()
    assert not Coord(91, 0).is_valid()
    assert not Coord(0, -181).is_valid()
