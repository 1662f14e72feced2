"""Backing stores for locations and range subscriptions."""

from pygeofire.store.base import ChildListener, GeoStore, LostListener
from pygeofire.store.firebase import FirebaseStore, RangeStream
from pygeofire.store.memory import InMemoryStore

__all__ = [
    "ChildListener",
    "FirebaseStore",
    "GeoStore",
    "InMemoryStore",
    "LostListener",
    "RangeStream",
]
