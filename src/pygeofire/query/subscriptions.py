"""Range subscription lifecycle.

Owns the mapping from :class:`GeohashRange` to its live store subscription.
Ranges a query no longer needs are only marked inactive; they are torn down
by a later cleanup pass because a query drifting near a range boundary tends
to need them again shortly after.  Cleanup runs when too many ranges pile up
(debounced, at most one pending) and on a periodic background sweep.
Ranges that fail to open, or whose subscription the store drops, stay
in the coverage set and are opened again by the next reconciliation or
sweep.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pygeofire.config import GeoQueryConfig
from pygeofire.exceptions import GeoFireInternalError, GeoFireSubscriptionError
from pygeofire.query.ranges import GeohashRange, RangeDiff, diff_ranges
from pygeofire.query.tracker import LocationTracker

if TYPE_CHECKING:
    from pygeofire.store.base import ChildListener, GeoStore

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RangeSubscription:
    geohash_range: GeohashRange
    handle: Any
    active: bool = True


class SubscriptionManager:
    """Opens, retains and cleans up the range subscriptions of one query."""

    def __init__(
        self,
        store: GeoStore,
        *,
        listener: ChildListener,
        tracker: LocationTracker,
        config: GeoQueryConfig,
        on_fatal: Callable[[GeoFireInternalError], None],
    ) -> None:
        self._loop = asyncio.get_running_loop()
        self._store = store
        self._listener = listener
        self._tracker = tracker
        self._config = config
        self._on_fatal = on_fatal
        self._subscriptions: dict[GeohashRange, RangeSubscription] = {}
        self._opening: dict[GeohashRange, asyncio.Task[None]] = {}
        self._desired: frozenset[GeohashRange] = frozenset()
        self._failed: set[GeohashRange] = set()
        self._failures: list[GeoFireSubscriptionError] = []
        self._cleanup_task: asyncio.Task[None] | None = None
        self._sweep_task: asyncio.Task[None] | None = None
        self._closed = False

    def __len__(self) -> int:
        return len(self._subscriptions)

    def get(self, geohash_range: GeohashRange) -> RangeSubscription | None:
        return self._subscriptions.get(geohash_range)

    @property
    def active_ranges(self) -> list[GeohashRange]:
        return sorted(r for r, sub in self._subscriptions.items() if sub.active)

    @property
    def opening_ranges(self) -> list[GeohashRange]:
        return sorted(self._opening)

    @property
    def failed_ranges(self) -> list[GeohashRange]:
        """Desired ranges whose open failed or whose subscription was lost."""
        return sorted(self._failed)

    @property
    def cleanup_scheduled(self) -> bool:
        return self._cleanup_task is not None

    def covers(self, geohash: str) -> bool:
        """Whether any tracked, opening or failed-but-desired range covers *geohash*.

        A failed range keeps covering its locations until it is opened again.
        """
        ranges = itertools.chain(self._subscriptions, self._opening, self._failed)
        return any(r.covers(geohash) for r in ranges)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = self._loop.create_task(self._sweep(), name="geofire-sweep")

    def reconcile(self, desired: frozenset[GeohashRange]) -> RangeDiff:
        """Adjust subscriptions towards *desired*, opening new ranges in the background."""
        self._desired = desired
        self._failed &= desired
        diff = diff_ranges(desired, self._subscriptions.keys())
        for geohash_range in diff.keep:
            self._subscriptions[geohash_range].active = True
        for geohash_range in diff.stale:
            self._subscriptions[geohash_range].active = False

        if self._cleanup_task is None and len(self._subscriptions) > self._config.cleanup_threshold:
            self.schedule_cleanup()

        for geohash_range in sorted(diff.to_open):
            self._start_open(geohash_range)

        _logger.debug(
            "Reconciled ranges: open=%d keep=%d stale=%d",
            len(diff.to_open),
            len(diff.keep),
            len(diff.stale),
        )
        return diff

    def _start_open(self, geohash_range: GeohashRange) -> None:
        if geohash_range in self._opening:
            return
        self._failed.discard(geohash_range)
        self._opening[geohash_range] = self._loop.create_task(
            self._open(geohash_range),
            name=f"geofire-open-{geohash_range}",
        )

    def retry_failed(self) -> None:
        """Open again every desired range whose open failed or whose subscription was lost."""
        for geohash_range in sorted(self._failed):
            if geohash_range not in self._subscriptions:
                self._start_open(geohash_range)

    async def _open(self, geohash_range: GeohashRange) -> None:
        try:
            handle = await self._store.subscribe(
                geohash_range,
                self._listener,
                on_lost=functools.partial(self._subscription_lost, geohash_range),
            )
        except GeoFireSubscriptionError as exc:
            self._record_failure(geohash_range, exc)
            return
        except Exception as exc:
            failure = GeoFireSubscriptionError(
                f"Subscribing to range {geohash_range} failed: {exc}",
                store_range=geohash_range,
            )
            failure.__cause__ = exc
            self._record_failure(geohash_range, failure)
            return
        finally:
            self._opening.pop(geohash_range, None)

        if self._closed or geohash_range in self._subscriptions:
            self._close_handle(geohash_range, handle)
            return
        self._subscriptions[geohash_range] = RangeSubscription(
            geohash_range,
            handle,
            active=geohash_range in self._desired,
        )
        _logger.debug("Subscribed to range %s", geohash_range)

    def _record_failure(self, geohash_range: GeohashRange, failure: GeoFireSubscriptionError) -> None:
        _logger.warning("%s", failure)
        if self._closed:
            return
        if geohash_range in self._desired:
            self._failed.add(geohash_range)
        self._failures.append(failure)

    def _subscription_lost(self, geohash_range: GeohashRange, failure: GeoFireSubscriptionError) -> None:
        subscription = None if self._closed else self._subscriptions.pop(geohash_range, None)
        if subscription is None:
            return
        if not subscription.active:
            _logger.debug("Inactive range %s ended: %s", geohash_range, failure)
            return
        self._record_failure(geohash_range, failure)

    async def wait_opened(self) -> None:
        """Wait for every in-flight open; re-raise the first failure since the last call."""
        while self._opening:
            await asyncio.wait(list(self._opening.values()))
        if self._failures:
            failure = self._failures[0]
            self._failures.clear()
            raise failure

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def schedule_cleanup(self) -> None:
        if self._cleanup_task is not None or self._closed:
            return
        self._cleanup_task = self._loop.create_task(self._delayed_cleanup(), name="geofire-cleanup")

    async def _delayed_cleanup(self) -> None:
        await asyncio.sleep(self._config.cleanup_delay)
        self._run_cleanup()

    async def _sweep(self) -> None:
        while not self._closed:
            await asyncio.sleep(self._config.sweep_interval)
            self.retry_failed()
            if self._cleanup_task is None:
                self._run_cleanup()

    def _run_cleanup(self) -> None:
        try:
            self.cleanup()
        except GeoFireInternalError as exc:
            _logger.error("Query state is inconsistent, giving up: %s", exc)
            self._on_fatal(exc)

    def cleanup(self) -> list[str]:
        """Tear down inactive ranges and purge locations nothing covers anymore.

        Returns the purged keys.  Raises :class:`GeoFireInternalError` if a
        location still inside the query would have to be purged.
        """
        task = self._cleanup_task
        self._cleanup_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        for geohash_range, subscription in list(self._subscriptions.items()):
            if not subscription.active:
                self._close_handle(geohash_range, subscription.handle)
                del self._subscriptions[geohash_range]

        purged = self._tracker.purge(self.covers)
        _logger.debug("Cleanup done: ranges=%d purged=%d", len(self._subscriptions), len(purged))
        return purged

    def _close_handle(self, geohash_range: GeohashRange, handle: Any) -> None:
        try:
            self._store.unsubscribe(handle)
        except Exception:
            _logger.debug("Closing range subscription %s failed", geohash_range, exc_info=True)

    def close(self) -> None:
        """Stop timers and in-flight opens and tear down every subscription."""
        self._closed = True
        current = asyncio.current_task()
        for task in (self._cleanup_task, self._sweep_task, *self._opening.values()):
            if task is not None and task is not current:
                task.cancel()
        self._cleanup_task = None
        self._sweep_task = None
        self._opening.clear()

        for geohash_range, subscription in self._subscriptions.items():
            self._close_handle(geohash_range, subscription.handle)
        self._subscriptions.clear()
        self._failures.clear()
        self._failed.clear()
