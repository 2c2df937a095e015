import pytest

from godar import geo


@pytest.mark.parametrize(
    "lat, lon",
    [(0.0, 0.0), (51.5074, -0.1278), (-33.8688, 151.2093), (89.9, 179.9)],
)
def test_distance_to_self_is_zero(lat, lon):
    assert geo.distance(lat, lon, lat, lon) == 0


def test_distance_is_symmetric():
    a = (40.7128, -74.0060)
    b = (34.0522, -118.2437)

    assert geo.distance(*a, *b) == pytest.approx(geo.distance(*b, *a))


def test_distance_london_to_paris():
    assert geo.distance(51.5074, 0.1278, 48.8566, 2.3522) == pytest.approx(334.6, abs=0.5)


def test_distance_pole_to_pole():
    assert geo.distance(90, 0, -90, 0) == pytest.approx(20015, abs=10)


def test_distance_across_antimeridian_is_short():
    # 0.2 degrees of longitude at the equator
    assert geo.distance(0.0, 179.9, 0.0, -179.9) == pytest.approx(22.24, abs=0.1)


@pytest.mark.parametrize(
    "lat2, lon2, expected",
    [(1, 0, 0.0), (0, 1, 90.0), (-1, 0, 180.0), (0, -1, 270.0)],
)
def test_bearing_cardinal_points(lat2, lon2, expected):
    assert geo.bearing(0, 0, lat2, lon2) == pytest.approx(expected, abs=1)


def test_bearing_is_within_range():
    for lat2, lon2 in [(10, -10), (-10, -10), (-10, 10), (0.0001, -0.0000001)]:
        value = geo.bearing(0, 0, lat2, lon2)
        assert 0 <= value < 360


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "N"),
        (359.9, "N"),
        (11.25, "N"),
        (22.5, "NNE"),
        (45, "NE"),
        (90, "E"),
        (180, "S"),
        (270, "W"),
        (405, "NE"),
        (-45, "NW"),
        (720, "N"),
    ],
)
def test_bearing_to_compass_direction(value, expected):
    assert geo.bearing_to_compass_direction(value) == expected


def test_coordinate_validation():
    assert geo.is_valid_latitude(90)
    assert geo.is_valid_latitude(-90)
    assert not geo.is_valid_latitude(90.1)
    assert geo.is_valid_longitude(-180)
    assert not geo.is_valid_longitude(180.5)
    assert geo.is_valid_coordinate(51.5, -0.12)
    assert not geo.is_valid_coordinate(91, 0)
    assert not geo.is_valid_coordinate(0, -181)
