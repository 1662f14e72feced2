"""Geohash encoding and circular-region decomposition into prefix ranges.

A geohash interleaves longitude and latitude bits (longitude first) and
encodes them five bits per character.  Nearby locations share prefixes, so a
disc can be covered by a handful of lexicographic ``[start, end]`` ranges
over the geohashes of stored records.
"""

from __future__ import annotations

import math

from pygeofire._constants import (
    BASE32,
    BITS_PER_CHAR,
    EARTH_MERIDIONAL_CIRCUMFERENCE_M,
    GEOHASH_PRECISION,
    MAX_GEOHASH_PRECISION,
    MAXIMUM_BITS_PRECISION,
    METERS_PER_DEGREE_LATITUDE,
    RANGE_END_SENTINEL,
)
from pygeofire.exceptions import GeoFireValidationError
from pygeofire.geo.distance import meters_to_longitude_degrees, wrap_longitude
from pygeofire.geo.validation import Location, validate_geohash, validate_location


def _validate_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise GeoFireValidationError(f"precision must be an integer, got {precision!r}")
    if not 0 < precision <= MAX_GEOHASH_PRECISION:
        raise GeoFireValidationError(f"precision must be between 1 and {MAX_GEOHASH_PRECISION}, got {precision}")
    return precision


def encode_geohash(location: Location, precision: int = GEOHASH_PRECISION) -> str:
    """Encode *location* as a geohash of *precision* characters."""
    latitude, longitude = validate_location(location)
    _validate_precision(precision)

    lat_range = [-90.0, 90.0]
    lng_range = [-180.0, 180.0]
    chars: list[str] = []
    value = 0
    bits = 0
    even = True
    while len(chars) < precision:
        coordinate, bounds = (longitude, lng_range) if even else (latitude, lat_range)
        mid = (bounds[0] + bounds[1]) / 2
        if coordinate > mid:
            value = (value << 1) + 1
            bounds[0] = mid
        else:
            value <<= 1
            bounds[1] = mid
        even = not even
        if bits < BITS_PER_CHAR - 1:
            bits += 1
        else:
            chars.append(BASE32[value])
            bits = 0
            value = 0
    return "".join(chars)


def decode_geohash(geohash: str) -> Location:
    """Return the center of the cell described by *geohash*."""
    validate_geohash(geohash)
    lat_range = [-90.0, 90.0]
    lng_range = [-180.0, 180.0]
    even = True
    for ch in geohash:
        value = BASE32.index(ch)
        for shift in range(BITS_PER_CHAR - 1, -1, -1):
            bounds = lng_range if even else lat_range
            mid = (bounds[0] + bounds[1]) / 2
            if (value >> shift) & 1:
                bounds[0] = mid
            else:
                bounds[1] = mid
            even = not even
    return (lat_range[0] + lat_range[1]) / 2, (lng_range[0] + lng_range[1]) / 2


def _longitude_bits_for_resolution(resolution: float, latitude: float) -> float:
    degrees = meters_to_longitude_degrees(resolution, latitude)
    return max(1.0, math.log2(360 / degrees)) if abs(degrees) > 0.000001 else 1.0


def _latitude_bits_for_resolution(resolution: float) -> float:
    return min(math.log2(EARTH_MERIDIONAL_CIRCUMFERENCE_M / 2 / resolution), MAXIMUM_BITS_PRECISION)


def bounding_box_bits(location: Location, size: float) -> int:
    """Number of geohash bits needed so one cell spans a box of *size* meters."""
    latitude = location[0]
    lat_delta = size / METERS_PER_DEGREE_LATITUDE
    latitude_north = min(90.0, latitude + lat_delta)
    latitude_south = max(-90.0, latitude - lat_delta)
    bits_lat = math.floor(_latitude_bits_for_resolution(size)) * 2
    bits_lng_north = math.floor(_longitude_bits_for_resolution(size, latitude_north)) * 2 - 1
    bits_lng_south = math.floor(_longitude_bits_for_resolution(size, latitude_south)) * 2 - 1
    return min(bits_lat, bits_lng_north, bits_lng_south, MAXIMUM_BITS_PRECISION)


def bounding_box_coordinates(center: Location, radius: float) -> list[Location]:
    """Nine points spanning the bounding box of a disc of *radius* meters."""
    latitude, longitude = center
    lat_degrees = radius / METERS_PER_DEGREE_LATITUDE
    latitude_north = min(90.0, latitude + lat_degrees)
    latitude_south = max(-90.0, latitude - lat_degrees)
    lng_degrees = max(
        meters_to_longitude_degrees(radius, latitude_north),
        meters_to_longitude_degrees(radius, latitude_south),
    )
    west = wrap_longitude(longitude - lng_degrees)
    east = wrap_longitude(longitude + lng_degrees)
    return [
        (latitude, longitude),
        (latitude, west),
        (latitude, east),
        (latitude_north, longitude),
        (latitude_north, west),
        (latitude_north, east),
        (latitude_south, longitude),
        (latitude_south, west),
        (latitude_south, east),
    ]


def geohash_query(geohash: str, bits: int) -> tuple[str, str]:
    """Range of geohashes sharing the first *bits* bits of *geohash*."""
    validate_geohash(geohash)
    precision = math.ceil(bits / BITS_PER_CHAR)
    if len(geohash) < precision:
        return geohash, geohash + RANGE_END_SENTINEL

    geohash = geohash[:precision]
    base = geohash[:-1]
    last_value = BASE32.index(geohash[-1])
    significant_bits = bits - len(base) * BITS_PER_CHAR
    unused_bits = BITS_PER_CHAR - significant_bits
    # drop the unused low bits of the last character
    start_value = (last_value >> unused_bits) << unused_bits
    end_value = start_value + (1 << unused_bits)
    if end_value > len(BASE32) - 1:
        return base + BASE32[start_value], base + RANGE_END_SENTINEL
    return base + BASE32[start_value], base + BASE32[end_value]


def geohash_queries(center: Location, radius: float) -> list[tuple[str, str]]:
    """Cover a disc of *radius* meters around *center* with geohash ranges.

    The result may contain ranges that overlap; exact duplicates are removed.
    """
    center = validate_location(center)
    query_bits = max(1, bounding_box_bits(center, radius))
    precision = math.ceil(query_bits / BITS_PER_CHAR)
    queries: list[tuple[str, str]] = []
    for coordinate in bounding_box_coordinates(center, radius):
        query = geohash_query(encode_geohash(coordinate, precision), query_bits)
        if query not in queries:
            queries.append(query)
    return queries
