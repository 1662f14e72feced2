"""Live circular geo query.

A :class:`GeoQuery` subscribes to the geohash ranges covering its circle,
tracks every key those subscriptions report and fires ``key_entered``,
``key_exited`` and ``key_moved`` callbacks as keys cross the circle's edge
or move inside it::

    query = geofire.query(center=(52.37, 4.90), radius=5)
    query.on("key_entered", lambda key, location, distance: print(key, distance))
    await query.ready()
    ...
    query.update_criteria(radius=10)
    ...
    query.cancel()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pygeofire.config import GeoQueryConfig
from pygeofire.exceptions import (
    GeoFireCallbackError,
    GeoFireError,
    GeoFireInternalError,
    GeoFireQueryClosedError,
    GeoFireValidationError,
)
from pygeofire.geo.geohash import encode_geohash
from pygeofire.geo.validation import Location
from pygeofire.models.criteria import QueryCriteria
from pygeofire.models.events import ChildEvent, ChildEventKind, KeyTransition, QueryEvent
from pygeofire.models.record import GeoFireRecord
from pygeofire.query.dispatcher import CallbackRegistration, EventDispatcher, KeyCallback
from pygeofire.query.ranges import GeohashRange, desired_ranges
from pygeofire.query.subscriptions import SubscriptionManager
from pygeofire.query.tracker import LocationTracker

if TYPE_CHECKING:
    from pygeofire.store.base import GeoStore

_logger = logging.getLogger(__name__)


class QueryState(StrEnum):
    INITIALIZING = "initializing"
    LIVE = "live"
    CANCELLED = "cancelled"
    FAILED = "failed"


class GeoQuery:
    """Keys within *radius* kilometers of *center*, kept up to date.

    Must be created while an event loop is running; all work happens on that
    loop.  Use ``async with`` (or call :meth:`cancel`) to release the store
    subscriptions when done.

    Parameters
    ----------
    store : GeoStore
        Backing store holding the locations.
    center : tuple of float
        ``(latitude, longitude)`` of the query center.
    radius : float
        Radius in kilometers; must be positive.
    config : GeoQueryConfig or None
        Engine tuning; defaults to :class:`GeoQueryConfig`.
    on_callback_error : callable or None
        Receives a :class:`GeoFireCallbackError` whenever a registered
        callback raises.  Failures are always logged.
    """

    def __init__(
        self,
        store: GeoStore,
        *,
        center: Location,
        radius: float,
        config: GeoQueryConfig | None = None,
        on_callback_error: Callable[[GeoFireCallbackError], None] | None = None,
    ) -> None:
        criteria = QueryCriteria.parse(center=center, radius=radius, require_both=True)
        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise GeoFireError("GeoQuery must be created from a running event loop") from exc

        assert criteria.center is not None and criteria.radius is not None  # noqa: S101
        self._center: Location = criteria.center
        self._radius: float = criteria.radius
        self._config = config or GeoQueryConfig()
        self._state = QueryState.INITIALIZING
        self._fatal_error: GeoFireInternalError | None = None
        self._on_callback_error = on_callback_error

        self._tracker = LocationTracker(self._center, self._radius, geohash_precision=self._config.geohash_precision)
        self._dispatcher = EventDispatcher(on_failure=self._report_callback_failure)
        self._subscriptions = SubscriptionManager(
            store,
            listener=self._on_child_event,
            tracker=self._tracker,
            config=self._config,
            on_fatal=self._fail,
        )
        self._subscriptions.start()
        self._listen_for_new_geohashes()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GeoQuery:
        await self.ready()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def active_ranges(self) -> list[GeohashRange]:
        """Ranges currently subscribed and required by the criteria."""
        return self._subscriptions.active_ranges

    def center(self) -> Location:
        """The ``(latitude, longitude)`` center of this query."""
        return self._center

    def radius(self) -> float:
        """The radius of this query, in kilometers."""
        return self._radius

    def update_criteria(self, *, center: Location | None = None, radius: float | None = None) -> None:
        """Move and/or resize the query.

        Omitted values keep their current setting.  Every tracked key is
        re-evaluated (firing entered/exited) before range subscriptions are
        adjusted to the new circle.
        """
        self._ensure_open()
        criteria = QueryCriteria.parse(center=center, radius=radius)
        if criteria.center is not None:
            self._center = criteria.center
        if criteria.radius is not None:
            self._radius = criteria.radius
        _logger.debug("Query criteria updated center=%s radius=%s", self._center, self._radius)

        self._tracker.set_criteria(self._center, self._radius)
        for transition in self._tracker.recompute():
            self._fire(transition)
        self._listen_for_new_geohashes()

    def on(self, event_type: QueryEvent | str, callback: KeyCallback) -> CallbackRegistration:
        """Attach *callback* to ``key_entered``, ``key_exited`` or ``key_moved``.

        Callbacks receive ``(key, location, distance)`` with the distance in
        kilometers.  For ``key_exited`` of a key deleted from the store both
        location and distance are ``None``.  A new ``key_entered`` callback is
        immediately called for every key already inside the query.
        """
        self._ensure_open()
        try:
            event = QueryEvent(event_type)
        except ValueError:
            raise GeoFireValidationError(
                f'event type must be "key_entered", "key_exited", or "key_moved", got {event_type!r}'
            ) from None
        if not callable(callback):
            raise GeoFireValidationError("callback must be callable")

        replay = self._tracker.in_query() if event is QueryEvent.KEY_ENTERED else ()
        return self._dispatcher.register(event, callback, replay)

    async def ready(self) -> None:
        """Wait until every pending range subscription is open.

        Raises the first :class:`~pygeofire.exceptions.GeoFireSubscriptionError`
        since the previous call, including subscriptions the store dropped.
        Failed ranges are requested again on the next criteria update or
        background sweep.
        """
        self._ensure_open()
        await self._subscriptions.wait_opened()
        self._ensure_open()
        if self._state is QueryState.INITIALIZING:
            self._state = QueryState.LIVE

    def cancel(self) -> None:
        """Stop the query for good: drop every subscription, location and callback."""
        if self._state in (QueryState.CANCELLED, QueryState.FAILED):
            return
        self._state = QueryState.CANCELLED
        self._teardown()
        _logger.debug("Query cancelled")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._state is QueryState.CANCELLED:
            raise GeoFireQueryClosedError("query has been cancelled")
        if self._state is QueryState.FAILED:
            raise GeoFireQueryClosedError(f"query failed: {self._fatal_error}") from self._fatal_error

    def _teardown(self) -> None:
        self._dispatcher.clear()
        self._subscriptions.close()
        self._tracker.clear()

    def _fail(self, error: GeoFireInternalError) -> None:
        self._fatal_error = error
        self._state = QueryState.FAILED
        self._teardown()

    def _listen_for_new_geohashes(self) -> None:
        self._subscriptions.reconcile(desired_ranges(self._center, self._radius))

    def _fire(self, transition: KeyTransition | None) -> None:
        if transition is None:
            return
        _logger.debug(
            "%s key=%s location=%s distance=%s",
            transition.event,
            transition.key,
            transition.location,
            transition.distance,
        )
        self._dispatcher.fire(transition)

    def _report_callback_failure(self, failure: GeoFireCallbackError) -> None:
        _logger.warning("%s", failure, exc_info=failure.__cause__)
        if self._on_callback_error is None:
            return
        try:
            self._on_callback_error(failure)
        except Exception:
            _logger.debug("on_callback_error hook failed", exc_info=True)

    def _decode_location(self, event: ChildEvent) -> Location | None:
        try:
            return GeoFireRecord.decode(event.value).location
        except GeoFireValidationError as exc:
            _logger.warning("Ignoring malformed record for key=%s: %s", event.key, exc)
            return None

    def _on_child_event(self, event: ChildEvent) -> None:
        if self._state in (QueryState.CANCELLED, QueryState.FAILED):
            return

        if event.kind is ChildEventKind.REMOVED:
            self._on_child_removed(event)
            return

        location = self._decode_location(event)
        if location is not None:
            self._fire(self._tracker.observe(event.key, location))

    def _on_child_removed(self, event: ChildEvent) -> None:
        if event.key not in self._tracker:
            return
        location = self._decode_location(event) if event.value is not None else None
        if location is not None:
            geohash = encode_geohash(location, self._config.geohash_precision)
            if self._subscriptions.covers(geohash):
                # Moved into another subscribed range; that range reports the update.
                _logger.debug("Key %s left a range but is still covered", event.key)
                return
        self._fire(self._tracker.remove(event.key, location))
