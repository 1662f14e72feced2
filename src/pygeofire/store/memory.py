"""In-memory backing store.

Keeps every record in a dict and evaluates range subscriptions locally.
Notifications are queued on the running event loop with ``call_soon`` so
they reach listeners one at a time and in write order, the same way a
network store's notifications would.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pygeofire.models.events import ChildEvent, ChildEventKind
from pygeofire.store.base import ChildListener, LostListener

if TYPE_CHECKING:
    from pygeofire.query.ranges import GeohashRange

_logger = logging.getLogger(__name__)


def _geohash_of(value: dict[str, Any] | None) -> str | None:
    if not isinstance(value, dict):
        return None
    geohash = value.get("g")
    return geohash if isinstance(geohash, str) else None


def _in_range(value: dict[str, Any] | None, geohash_range: GeohashRange) -> bool:
    geohash = _geohash_of(value)
    return geohash is not None and geohash_range.covers(geohash)


@dataclass(slots=True)
class _Subscription:
    handle: int
    geohash_range: GeohashRange
    listener: ChildListener


class InMemoryStore:
    """Reference :class:`~pygeofire.store.base.GeoStore` living in process memory."""

    def __init__(self) -> None:
        self._children: dict[str, dict[str, Any]] = {}
        self._subscriptions: dict[int, _Subscription] = {}
        self._handles = itertools.count(1)
        self._pending = 0

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribed_ranges(self) -> list[GeohashRange]:
        """Ranges with a live subscription, one entry per subscription."""
        return sorted(sub.geohash_range for sub in self._subscriptions.values())

    async def subscribe(
        self,
        geohash_range: GeohashRange,
        listener: ChildListener,
        *,
        on_lost: LostListener | None = None,
    ) -> int:
        # in-process subscriptions only end through unsubscribe(), so on_lost is never called
        handle = next(self._handles)
        subscription = _Subscription(handle, geohash_range, listener)
        self._subscriptions[handle] = subscription
        _logger.debug("Subscription %d opened for range %s", handle, geohash_range)

        initial = sorted(
            ((key, value) for key, value in self._children.items() if _in_range(value, geohash_range)),
            key=lambda item: (_geohash_of(item[1]) or "", item[0]),
        )
        for key, value in initial:
            self._deliver(subscription, ChildEvent(kind=ChildEventKind.ADDED, key=key, value=copy.deepcopy(value)))
        return handle

    def unsubscribe(self, handle: Any) -> None:
        if self._subscriptions.pop(handle, None) is None:
            raise KeyError(f"unknown subscription handle {handle!r}")
        _logger.debug("Subscription %d closed", handle)

    async def update(self, changes: Mapping[str, dict[str, Any] | None]) -> None:
        for key, value in changes.items():
            previous = self._children.get(key)
            if value is None:
                self._children.pop(key, None)
            else:
                self._children[key] = copy.deepcopy(value)
            self._notify(key, previous, self._children.get(key))

    async def get(self, key: str) -> dict[str, Any] | None:
        return copy.deepcopy(self._children.get(key))

    async def flush(self) -> None:
        """Wait until every queued notification has reached its listener."""
        while self._pending:
            await asyncio.sleep(0)

    def _notify(self, key: str, previous: dict[str, Any] | None, current: dict[str, Any] | None) -> None:
        for subscription in list(self._subscriptions.values()):
            was_in = _in_range(previous, subscription.geohash_range)
            is_in = _in_range(current, subscription.geohash_range)
            if is_in and not was_in:
                kind = ChildEventKind.ADDED
            elif is_in and was_in:
                if current == previous:
                    continue
                kind = ChildEventKind.CHANGED
            elif was_in:
                # The key left this range; report where it lives now, if anywhere.
                kind = ChildEventKind.REMOVED
            else:
                continue
            self._deliver(subscription, ChildEvent(kind=kind, key=key, value=copy.deepcopy(current)))

    def _deliver(self, subscription: _Subscription, event: ChildEvent) -> None:
        self._pending += 1
        asyncio.get_running_loop().call_soon(self._run, subscription.handle, event)

    def _run(self, handle: int, event: ChildEvent) -> None:
        self._pending -= 1
        subscription = self._subscriptions.get(handle)
        if subscription is None:
            return
        subscription.listener(event)
