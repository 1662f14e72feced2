"""Great-circle distance and degree/meter conversions."""

from __future__ import annotations

import math

from pygeofire._constants import EARTH_E2, EARTH_EQUATORIAL_RADIUS_M, EARTH_RADIUS_KM, EPSILON
from pygeofire.geo.validation import Location, validate_location


def distance(location1: Location, location2: Location) -> float:
    """Haversine distance between two locations, in kilometers."""
    lat1, lng1 = validate_location(location1)
    lat2, lng2 = validate_location(location2)

    lat_delta = math.radians(lat2 - lat1)
    lng_delta = math.radians(lng2 - lng1)
    a = math.sin(lat_delta / 2) ** 2 + (
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(lng_delta / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def meters_to_longitude_degrees(meters: float, latitude: float) -> float:
    """Convert a distance in meters to degrees of longitude at *latitude*.

    The result is capped at 360.  At the poles any positive distance spans
    every longitude.
    """
    radians = math.radians(latitude)
    num = math.cos(radians) * EARTH_EQUATORIAL_RADIUS_M * math.pi / 180
    denom = 1 / math.sqrt(1 - EARTH_E2 * math.sin(radians) * math.sin(radians))
    delta_deg = num * denom
    if delta_deg < EPSILON:
        return 360.0 if meters > 0 else 0.0
    return min(360.0, meters / delta_deg)


def wrap_longitude(longitude: float) -> float:
    """Wrap *longitude* into ``[-180, 180]``."""
    if -180 <= longitude <= 180:
        return longitude
    adjusted = longitude + 180
    if adjusted > 0:
        return math.fmod(adjusted, 360) - 180
    return 180 - math.fmod(-adjusted, 360)
