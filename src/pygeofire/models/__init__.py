"""Pydantic models for records, criteria and events."""

from pygeofire.models.criteria import QueryCriteria
from pygeofire.models.events import ChildEvent, ChildEventKind, KeyTransition, QueryEvent
from pygeofire.models.record import GeoFireRecord

__all__ = [
    "ChildEvent",
    "ChildEventKind",
    "GeoFireRecord",
    "KeyTransition",
    "QueryCriteria",
    "QueryEvent",
]
