from __future__ import annotations

import pytest

from pygeofire.exceptions import GeoFireInternalError
from pygeofire.geo import geohash_queries
from pygeofire.query.ranges import GeohashRange, desired_ranges, diff_ranges


def test_range_string_form_round_trips() -> None:
    geohash_range = GeohashRange("9q8", "9q9")
    assert str(geohash_range) == "9q8:9q9"
    assert GeohashRange.parse(str(geohash_range)) == geohash_range


@pytest.mark.parametrize("value", ["9q8", "9q8:9q9:9qb", ""])
def test_parse_rejects_malformed_ranges(value: str) -> None:
    with pytest.raises(GeoFireInternalError):
        GeohashRange.parse(value)


def test_ranges_are_hashable_and_ordered() -> None:
    a = GeohashRange("60", "6h")
    b = GeohashRange("64", "65")
    assert len({a, GeohashRange("60", "6h"), b}) == 2
    assert sorted([b, a]) == [a, b]


def test_covers_is_inclusive() -> None:
    geohash_range = GeohashRange("64h", "64~")
    assert geohash_range.covers("64h")
    assert geohash_range.covers("64zzzzzzzz")
    assert not geohash_range.covers("64gzzzzzzz")
    assert not geohash_range.covers("65")


def test_desired_ranges_match_decomposition_in_meters() -> None:
    center = (37.7853074, -122.4054274)
    expected = {GeohashRange(start, end) for start, end in geohash_queries(center, 2500)}
    assert desired_ranges(center, 2.5) == expected


def test_diff_ranges_partitions_desired_and_current() -> None:
    a, b, c = GeohashRange("0", "1"), GeohashRange("1", "2"), GeohashRange("2", "3")
    diff = diff_ranges({a, b}, {b, c})
    assert diff.to_open == {a}
    assert diff.keep == {b}
    assert diff.stale == {c}


def test_diff_of_identical_sets_opens_nothing() -> None:
    desired = desired_ranges((0, 0), 10)
    diff = diff_ranges(desired, set(desired))
    assert diff.to_open == frozenset()
    assert diff.stale == frozenset()
    assert diff.keep == desired
