"""Great-circle helpers for observer-relative aircraft geometry."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE",
    "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW",
    "W", "WNW", "NW", "NNW",
)
_SECTOR_DEG = 360.0 / len(COMPASS_POINTS)


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in kilometres between two points.

    Point 1 is normally the observer and point 2 the aircraft.
    """

    la1 = math.radians(lat1)
    la2 = math.radians(lat2)
    dlat = la2 - la1
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat / 2) ** 2 + math.cos(la1) * math.cos(la2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the initial bearing from point 1 to point 2 in degrees, [0, 360)."""

    la1 = math.radians(lat1)
    la2 = math.radians(lat2)
    dlon = math.radians(lon2 - lon1)

    y = math.sin(dlon) * math.cos(la2)
    x = math.cos(la1) * math.sin(la2) - math.sin(la1) * math.cos(la2) * math.cos(dlon)

    result = math.degrees(math.atan2(y, x))
    if result < 0:
        result += 360
    # -1e-15 + 360 rounds to 360.0
    if result >= 360:
        result -= 360
    return result


def bearing_to_compass_direction(value: float) -> str:
    """Map a bearing in degrees onto one of the 16 compass points."""

    normalized = math.fmod(value, 360)
    if normalized < 0:
        normalized += 360

    index = int(round(normalized / _SECTOR_DEG)) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]


def is_valid_latitude(lat: float) -> bool:
    return -90 <= lat <= 90


def is_valid_longitude(lon: float) -> bool:
    return -180 <= lon <= 180


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return is_valid_latitude(lat) and is_valid_longitude(lon)


__all__ = [
    "COMPASS_POINTS",
    "EARTH_RADIUS_KM",
    "bearing",
    "bearing_to_compass_direction",
    "distance",
    "is_valid_coordinate",
    "is_valid_latitude",
    "is_valid_longitude",
]
