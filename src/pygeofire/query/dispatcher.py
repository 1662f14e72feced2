"""Callback registries and event fan-out."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pygeofire.exceptions import GeoFireCallbackError
from pygeofire.geo.validation import Location
from pygeofire.models.events import KeyTransition, QueryEvent

_logger = logging.getLogger(__name__)

KeyCallback = Callable[[str, Location | None, float | None], Any]
"""``callback(key, location, distance)``; location and distance may be ``None`` on exit."""


@dataclass(frozen=True, slots=True)
class CallbackRegistration:
    """Handle returned by ``on()``; ``cancel()`` removes that one callback."""

    event: QueryEvent
    registration_id: int
    _unregister: Callable[[int], None] = field(repr=False, compare=False)

    def cancel(self) -> None:
        self._unregister(self.registration_id)


class EventDispatcher:
    """Ordered callbacks per :class:`QueryEvent`.

    A callback that raises does not stop the callbacks after it.  Each
    failure is wrapped in :class:`GeoFireCallbackError`, passed to
    *on_failure* and returned from :meth:`fire`.
    """

    def __init__(self, *, on_failure: Callable[[GeoFireCallbackError], None] | None = None) -> None:
        self._callbacks: dict[QueryEvent, dict[int, KeyCallback]] = {event: {} for event in QueryEvent}
        self._ids = itertools.count(1)
        self._on_failure = on_failure

    def count(self, event: QueryEvent) -> int:
        return len(self._callbacks[event])

    def register(
        self,
        event: QueryEvent,
        callback: KeyCallback,
        replay: Iterable[KeyTransition] = (),
    ) -> CallbackRegistration:
        """Add *callback* for *event* after replaying *replay* to it."""
        registration_id = next(self._ids)
        self._callbacks[event][registration_id] = callback
        for transition in replay:
            self._invoke(callback, transition)
        return CallbackRegistration(event, registration_id, self.unregister)

    def unregister(self, registration_id: int) -> None:
        for callbacks in self._callbacks.values():
            if callbacks.pop(registration_id, None) is not None:
                return

    def fire(self, transition: KeyTransition) -> list[GeoFireCallbackError]:
        """Invoke every callback registered for the transition's event, in order."""
        failures: list[GeoFireCallbackError] = []
        for callback in list(self._callbacks[transition.event].values()):
            failure = self._invoke(callback, transition)
            if failure is not None:
                failures.append(failure)
        return failures

    def clear(self) -> None:
        for callbacks in self._callbacks.values():
            callbacks.clear()

    def _invoke(self, callback: KeyCallback, transition: KeyTransition) -> GeoFireCallbackError | None:
        try:
            callback(transition.key, transition.location, transition.distance)
        except Exception as exc:
            failure = GeoFireCallbackError(
                f"{transition.event} callback failed for key {transition.key!r}: {exc}",
                event=transition.event.value,
                key=transition.key,
            )
            failure.__cause__ = exc
            if self._on_failure is not None:
                self._on_failure(failure)
            else:
                _logger.warning("%s", failure, exc_info=exc)
            return failure
        return None
