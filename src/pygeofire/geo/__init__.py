"""Pure geo utilities: geohashes, distances, validation."""

from pygeofire.geo.distance import distance, meters_to_longitude_degrees, wrap_longitude
from pygeofire.geo.geohash import (
    bounding_box_bits,
    bounding_box_coordinates,
    decode_geohash,
    encode_geohash,
    geohash_queries,
    geohash_query,
)
from pygeofire.geo.validation import Location, validate_geohash, validate_key, validate_location

__all__ = [
    "Location",
    "bounding_box_bits",
    "bounding_box_coordinates",
    "decode_geohash",
    "distance",
    "encode_geohash",
    "geohash_queries",
    "geohash_query",
    "meters_to_longitude_degrees",
    "validate_geohash",
    "validate_key",
    "validate_location",
    "wrap_longitude",
]
