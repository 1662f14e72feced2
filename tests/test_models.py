from __future__ import annotations

import math

import pytest

from pygeofire.exceptions import GeoFireValidationError
from pygeofire.models import ChildEvent, ChildEventKind, GeoFireRecord, QueryCriteria, QueryEvent


def test_record_from_location_produces_stored_format() -> None:
    record = GeoFireRecord.from_location((37.7853074, -122.4054274))
    assert record.to_value() == {
        ".priority": "9q8yywe56g",
        "g": "9q8yywe56g",
        "l": [37.7853074, -122.4054274],
    }


def test_record_decode_ignores_unknown_fields() -> None:
    record = GeoFireRecord.decode({".priority": "7zzzzzzzzz", "g": "7zzzzzzzzz", "l": [0, 0], "extra": 1})
    assert record.geohash == "7zzzzzzzzz"
    assert record.location == (0.0, 0.0)


def test_record_without_geohash_encodes_one_when_stored() -> None:
    record = GeoFireRecord.decode({"l": [0, 0]})
    assert record.geohash is None
    assert record.to_value()["g"] == "7zzzzzzzzz"


@pytest.mark.parametrize(
    "value",
    [
        None,
        "7zzzzzzzzz",
        {"g": "7zzzzzzzzz"},
        {"g": "7zzzzzzzzz", "l": [91, 0]},
        {"g": "7zzzzzzzzz", "l": "0,0"},
        {"g": "bad!", "l": [0, 0]},
    ],
)
def test_record_decode_rejects_malformed_values(value: object) -> None:
    with pytest.raises(GeoFireValidationError):
        GeoFireRecord.decode(value)


def test_record_decode_error_message_has_no_pydantic_prefix() -> None:
    with pytest.raises(GeoFireValidationError) as excinfo:
        GeoFireRecord.decode({"l": [91, 0]})
    assert "Value error" not in str(excinfo.value)
    assert "latitude" in str(excinfo.value)


def test_criteria_accepts_partial_updates() -> None:
    assert QueryCriteria.parse(radius=5).center is None
    assert QueryCriteria.parse(center=[1, 2]).center == (1.0, 2.0)


@pytest.mark.parametrize(
    ("center", "radius"),
    [
        (None, None),
        ((91, 0), 1),
        ((0, 0), 0),
        ((0, 0), -1),
        ((0, 0), True),
        ((0, 0), "10"),
        ((0, 0), math.inf),
        ((0, 0), math.nan),
    ],
)
def test_criteria_rejects_invalid_values(center: object, radius: object) -> None:
    with pytest.raises(GeoFireValidationError):
        QueryCriteria.parse(center=center, radius=radius)


def test_criteria_for_new_query_requires_both_values() -> None:
    with pytest.raises(GeoFireValidationError):
        QueryCriteria.parse(radius=5, require_both=True)
    criteria = QueryCriteria.parse(center=(0, 0), radius=5, require_both=True)
    assert criteria.radius == 5.0


def test_child_event_requires_a_key() -> None:
    with pytest.raises(ValueError):
        ChildEvent(kind=ChildEventKind.ADDED, key="", value=None)


def test_child_event_kind_from_string() -> None:
    event = ChildEvent(kind="removed", key="a")
    assert event.kind is ChildEventKind.REMOVED
    assert event.value is None


def test_query_event_values() -> None:
    assert [event.value for event in QueryEvent] == ["key_entered", "key_exited", "key_moved"]
