"""Validation of keys, locations and geohashes.

Every function raises :class:`~pygeofire.exceptions.GeoFireValidationError`
on bad input and returns the normalized value otherwise.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from pygeofire._constants import BASE32, INVALID_KEY_CHARACTERS, MAX_KEY_LENGTH
from pygeofire.exceptions import GeoFireValidationError

Location = tuple[float, float]
"""A ``(latitude, longitude)`` pair in degrees."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_key(key: Any) -> str:
    """Validate a location key."""
    if not isinstance(key, str):
        raise GeoFireValidationError(f"key must be a string, got {type(key).__name__}")
    if not key:
        raise GeoFireValidationError("key cannot be the empty string")
    if len(key) > MAX_KEY_LENGTH:
        raise GeoFireValidationError(f"key is too long to be stored (max {MAX_KEY_LENGTH} characters)")
    bad = sorted({ch for ch in key if ch in INVALID_KEY_CHARACTERS or ord(ch) < 32 or ord(ch) == 127})
    if bad:
        raise GeoFireValidationError(f"key {key!r} contains invalid characters: {bad!r}")
    return key


def validate_location(location: Any) -> Location:
    """Validate a ``[latitude, longitude]`` pair and return it as a float tuple."""
    if isinstance(location, (str, bytes)) or not isinstance(location, Sequence):
        raise GeoFireValidationError(f"location must be a [latitude, longitude] pair, got {location!r}")
    if len(location) != 2:
        raise GeoFireValidationError(f"location must have exactly 2 entries, got {len(location)}")

    latitude, longitude = location
    if not _is_number(latitude) or math.isnan(latitude):
        raise GeoFireValidationError(f"latitude must be a number, got {latitude!r}")
    if not -90 <= latitude <= 90:
        raise GeoFireValidationError(f"latitude must be within the range [-90, 90], got {latitude}")
    if not _is_number(longitude) or math.isnan(longitude):
        raise GeoFireValidationError(f"longitude must be a number, got {longitude!r}")
    if not -180 <= longitude <= 180:
        raise GeoFireValidationError(f"longitude must be within the range [-180, 180], got {longitude}")
    return float(latitude), float(longitude)


def validate_geohash(geohash: Any) -> str:
    """Validate a geohash string."""
    if not isinstance(geohash, str):
        raise GeoFireValidationError(f"geohash must be a string, got {type(geohash).__name__}")
    if not geohash:
        raise GeoFireValidationError("geohash cannot be the empty string")
    for ch in geohash:
        if ch not in BASE32:
            raise GeoFireValidationError(f"geohash {geohash!r} contains invalid character {ch!r}")
    return geohash
