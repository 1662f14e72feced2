"""Per-key location tracking and membership transitions.

The tracker holds one :class:`LocationRecord` for every key seen through any
range subscription, including keys outside the query circle, so that a later
update can be classified as entered, moved or exited.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from pygeofire.exceptions import GeoFireInternalError
from pygeofire.geo.distance import distance
from pygeofire.geo.geohash import encode_geohash
from pygeofire.geo.validation import Location
from pygeofire.models.events import KeyTransition, QueryEvent

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocationRecord:
    key: str
    location: Location
    distance: float
    in_query: bool
    geohash: str


class LocationTracker:
    """Location records of one query, evaluated against its center and radius."""

    def __init__(self, center: Location, radius: float, *, geohash_precision: int) -> None:
        self._center = center
        self._radius = radius
        self._precision = geohash_precision
        self._records: dict[str, LocationRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> LocationRecord | None:
        return self._records.get(key)

    def set_criteria(self, center: Location, radius: float) -> None:
        self._center = center
        self._radius = radius

    def observe(self, key: str, location: Location) -> KeyTransition | None:
        """Record a new location for *key* and classify the change."""
        previous = self._records.get(key)
        was_in_query = previous.in_query if previous is not None else False
        old_location = previous.location if previous is not None else None

        distance_km = distance(location, self._center)
        in_query = distance_km <= self._radius
        self._records[key] = LocationRecord(
            key=key,
            location=location,
            distance=distance_km,
            in_query=in_query,
            geohash=encode_geohash(location, self._precision),
        )

        if in_query and not was_in_query:
            return KeyTransition(QueryEvent.KEY_ENTERED, key, location, distance_km)
        if in_query and old_location is not None and old_location != location:
            return KeyTransition(QueryEvent.KEY_MOVED, key, location, distance_km)
        if was_in_query and not in_query:
            return KeyTransition(QueryEvent.KEY_EXITED, key, location, distance_km)
        return None

    def remove(self, key: str, current_location: Location | None = None) -> KeyTransition | None:
        """Forget *key*, returning an exit transition if it was inside the query.

        *current_location* is where the key lives now, if it still exists
        outside every subscribed range.
        """
        record = self._records.pop(key, None)
        if record is None or not record.in_query:
            return None
        distance_km = distance(current_location, self._center) if current_location is not None else None
        return KeyTransition(QueryEvent.KEY_EXITED, key, current_location, distance_km)

    def recompute(self) -> list[KeyTransition]:
        """Re-evaluate every record against the current center and radius."""
        transitions: list[KeyTransition] = []
        for record in self._records.values():
            was_in_query = record.in_query
            record.distance = distance(record.location, self._center)
            record.in_query = record.distance <= self._radius
            if was_in_query and not record.in_query:
                transitions.append(KeyTransition(QueryEvent.KEY_EXITED, record.key, record.location, record.distance))
            elif not was_in_query and record.in_query:
                transitions.append(KeyTransition(QueryEvent.KEY_ENTERED, record.key, record.location, record.distance))
        return transitions

    def in_query(self) -> list[KeyTransition]:
        """Entered transitions for every key currently inside the query."""
        return [
            KeyTransition(QueryEvent.KEY_ENTERED, record.key, record.location, record.distance)
            for record in self._records.values()
            if record.in_query
        ]

    def purge(self, covers: Callable[[str], bool]) -> list[str]:
        """Delete every record whose geohash no subscribed range covers.

        Raises :class:`GeoFireInternalError` if such a record is still inside
        the query; it must have exited before its ranges were dropped.
        """
        purged: list[str] = []
        for key, record in list(self._records.items()):
            if covers(record.geohash):
                continue
            if record.in_query:
                raise GeoFireInternalError(
                    f"Internal state error, trying to remove location {key!r} that is still in query"
                )
            del self._records[key]
            purged.append(key)
        if purged:
            _logger.debug("Purged %d uncovered location(s)", len(purged))
        return purged

    def clear(self) -> None:
        self._records.clear()
