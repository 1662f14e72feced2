"""Custom exception hierarchy for pygeofire."""

from __future__ import annotations

from typing import Any


class GeoFireError(Exception):
    """Base exception for all pygeofire errors."""


class GeoFireConfigError(GeoFireError):
    """Invalid or missing configuration."""


class GeoFireValidationError(GeoFireError, ValueError):
    """Malformed key, location, query criteria, event type or callback.

    Always raised synchronously to the caller that supplied the bad value.
    """


class GeoFireInternalError(GeoFireError):
    """An internal invariant was broken.

    Raised when a location still flagged as inside the query is about to be
    purged, or when an internally stored range cannot be parsed.  This
    signals a logic defect and is never retried.
    """


class GeoFireQueryClosedError(GeoFireError):
    """Operation attempted on a query that was cancelled or has failed."""


class GeoFireSubscriptionError(GeoFireError):
    """Opening a range subscription against the backing store failed."""

    def __init__(self, message: str, *, store_range: Any = None) -> None:
        self.store_range = store_range
        super().__init__(message)


class GeoFireTransportError(GeoFireError):
    """HTTP-level failure talking to the backing store."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class GeoFireCallbackError(GeoFireError):
    """A registered event callback raised.

    The original exception is available as ``__cause__``.  Callback
    failures never abort the remaining callbacks of the same event.
    """

    def __init__(self, message: str, *, event: str, key: str) -> None:
        self.event = event
        self.key = key
        super().__init__(message)
