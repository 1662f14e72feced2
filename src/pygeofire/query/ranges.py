"""Range-set reconciliation.

Decides which geohash prefix ranges a query needs for its current center and
radius, and diffs that set against the ranges it already subscribes to.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pygeofire.exceptions import GeoFireInternalError
from pygeofire.geo.geohash import geohash_queries
from pygeofire.geo.validation import Location

_SEPARATOR = ":"


@dataclass(frozen=True, order=True, slots=True)
class GeohashRange:
    """Inclusive lexicographic range ``[start, end]`` over stored geohashes."""

    start: str
    end: str

    def __str__(self) -> str:
        return f"{self.start}{_SEPARATOR}{self.end}"

    @classmethod
    def parse(cls, value: str) -> GeohashRange:
        """Parse the ``"start:end"`` form produced by ``str()``.

        The engine itself keys subscriptions by value and never parses range
        strings; this reads back ranges from log output and diagnostics.
        """
        parts = value.split(_SEPARATOR)
        if len(parts) != 2:
            raise GeoFireInternalError(f"Invalid internal state! Not a valid geohash range: {value!r}")
        return cls(parts[0], parts[1])

    def covers(self, geohash: str) -> bool:
        return self.start <= geohash <= self.end


@dataclass(frozen=True, slots=True)
class RangeDiff:
    """Outcome of comparing desired ranges with the current subscriptions."""

    to_open: frozenset[GeohashRange]
    keep: frozenset[GeohashRange]
    stale: frozenset[GeohashRange]


def desired_ranges(center: Location, radius_km: float) -> frozenset[GeohashRange]:
    """Ranges covering the disc of *radius_km* kilometers around *center*."""
    return frozenset(GeohashRange(start, end) for start, end in geohash_queries(center, radius_km * 1000))


def diff_ranges(desired: Iterable[GeohashRange], current: Iterable[GeohashRange]) -> RangeDiff:
    desired_set = frozenset(desired)
    current_set = frozenset(current)
    return RangeDiff(
        to_open=desired_set - current_set,
        keep=desired_set & current_set,
        stale=current_set - desired_set,
    )
