"""Backing store interface consumed by geo queries.

Having a protocol here makes it easy to pass test doubles while keeping the
production implementations (:class:`~pygeofire.store.memory.InMemoryStore`,
:class:`~pygeofire.store.firebase.FirebaseStore`) concrete.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from pygeofire.exceptions import GeoFireSubscriptionError
from pygeofire.models.events import ChildEvent

if TYPE_CHECKING:
    from pygeofire.query.ranges import GeohashRange

ChildListener = Callable[[ChildEvent], None]
LostListener = Callable[[GeoFireSubscriptionError], None]
"""Called once when a subscription ends without being unsubscribed."""


class GeoStore(Protocol):
    """Keyed location records ordered by geohash, with range subscriptions.

    Listeners must be invoked on the event loop that opened the
    subscription, one notification at a time.
    """

    async def subscribe(
        self,
        geohash_range: GeohashRange,
        listener: ChildListener,
        *,
        on_lost: LostListener | None = None,
    ) -> Any:
        """Start delivering added/changed/removed notifications for *geohash_range*.

        Returns an opaque handle for :meth:`unsubscribe`.  Children already
        inside the range are delivered as ``added``.  If the store ends the
        subscription on its own (connection dropped, access revoked) it calls
        *on_lost* once and delivers nothing further.
        """
        ...

    def unsubscribe(self, handle: Any) -> None:
        """Stop a subscription.  Best-effort; may raise, callers ignore failures."""
        ...

    async def update(self, changes: Mapping[str, dict[str, Any] | None]) -> None:
        """Write records; a ``None`` value deletes the key."""
        ...

    async def get(self, key: str) -> dict[str, Any] | None:
        ...
