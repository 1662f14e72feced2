from __future__ import annotations

import math

import pytest

from pygeofire.exceptions import GeoFireValidationError
from pygeofire.geo import validate_geohash, validate_key, validate_location


@pytest.mark.parametrize("key", ["a", "bus-12", "key with spaces", "ünïcødé", "k" * 755])
def test_valid_keys(key: str) -> None:
    assert validate_key(key) == key


@pytest.mark.parametrize(
    "key",
    ["", "a.b", "a#b", "a$b", "a]b", "a[b", "a/b", "tab\there", "del\x7f", "k" * 756, 12, None],
)
def test_invalid_keys(key: object) -> None:
    with pytest.raises(GeoFireValidationError):
        validate_key(key)


def test_validation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        validate_key("")


@pytest.mark.parametrize("location", [(0, 0), [90, 180], (-90, -180), (37.7853074, -122.4054274), [1, 2.5]])
def test_valid_locations(location: object) -> None:
    lat, lng = validate_location(location)
    assert isinstance(lat, float)
    assert isinstance(lng, float)


@pytest.mark.parametrize(
    "location",
    [
        (91, 0),
        (-91, 0),
        (0, 181),
        (0, -181),
        ("a", 0),
        (0, "b"),
        (True, 0),
        (math.nan, 0),
        (0, math.nan),
        (0,),
        (0, 0, 0),
        "0,0",
        None,
        {"lat": 0, "lng": 0},
    ],
)
def test_invalid_locations(location: object) -> None:
    with pytest.raises(GeoFireValidationError):
        validate_location(location)


def test_geohash_validation() -> None:
    assert validate_geohash("9q8yywe56g") == "9q8yywe56g"
    for bad in ("", "9q8a", "9Q8", 5):
        with pytest.raises(GeoFireValidationError):
            validate_geohash(bad)
