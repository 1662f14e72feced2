"""High-level entry point: write, read and query keyed locations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pygeofire.config import GeoQueryConfig
from pygeofire.exceptions import GeoFireCallbackError, GeoFireValidationError
from pygeofire.geo.distance import distance
from pygeofire.geo.validation import Location, validate_key
from pygeofire.models.record import GeoFireRecord
from pygeofire.query.geoquery import GeoQuery
from pygeofire.store.base import GeoStore

_logger = logging.getLogger(__name__)

_MISSING: Any = object()


class GeoFire:
    """Keyed locations in a :class:`~pygeofire.store.base.GeoStore`.

    Usage::

        geofire = GeoFire(InMemoryStore())
        await geofire.set("bus-12", (52.37, 4.90))
        async with geofire.query(center=(52.36, 4.88), radius=3) as query:
            query.on("key_entered", on_entered)
            ...
    """

    distance = staticmethod(distance)

    def __init__(self, store: GeoStore, *, config: GeoQueryConfig | None = None) -> None:
        self._store = store
        self._config = config or GeoQueryConfig()

    @property
    def store(self) -> GeoStore:
        return self._store

    async def set(
        self,
        key_or_locations: str | Mapping[str, Location | None],
        location: Location | None = _MISSING,
    ) -> None:
        """Write one ``key, location`` pair or a mapping of them.

        Existing keys are overwritten; a ``None`` location removes the key.
        """
        if isinstance(key_or_locations, str):
            if location is _MISSING:
                raise GeoFireValidationError("a location (or None) is required when setting a single key")
            locations: dict[str, Location | None] = {key_or_locations: location}
        elif isinstance(key_or_locations, Mapping):
            if location is not _MISSING:
                raise GeoFireValidationError("the location argument must not be used when passing a mapping to set()")
            locations = dict(key_or_locations)
        else:
            raise GeoFireValidationError("key_or_locations must be a string or a mapping of key - location pairs")

        changes: dict[str, dict[str, Any] | None] = {}
        for key, value in locations.items():
            validate_key(key)
            if value is None:
                changes[key] = None
            else:
                changes[key] = GeoFireRecord.from_location(value, self._config.geohash_precision).to_value()

        _logger.debug("Writing %d location(s)", len(changes))
        await self._store.update(changes)

    async def get(self, key: str) -> Location | None:
        """Location stored under *key*, or ``None`` if there is none."""
        validate_key(key)
        value = await self._store.get(key)
        if value is None:
            return None
        return GeoFireRecord.decode(value).location

    async def remove(self, key: str) -> None:
        """Delete *key*; removing a missing key is not an error."""
        await self.set(key, None)

    def query(
        self,
        *,
        center: Location,
        radius: float,
        on_callback_error: Callable[[GeoFireCallbackError], None] | None = None,
    ) -> GeoQuery:
        """Start a live query for keys within *radius* kilometers of *center*."""
        return GeoQuery(
            self._store,
            center=center,
            radius=radius,
            config=self._config,
            on_callback_error=on_callback_error,
        )
