"""Event vocabulary: query events fired to callbacks and store notifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from pygeofire.geo.validation import Location
from pygeofire.models._base import GeoBaseModel


class QueryEvent(StrEnum):
    KEY_ENTERED = "key_entered"
    KEY_EXITED = "key_exited"
    KEY_MOVED = "key_moved"


class ChildEventKind(StrEnum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class ChildEvent(GeoBaseModel):
    """A notification from a range subscription.

    For ``added`` and ``changed`` the value is the stored record.  For
    ``removed`` it is the key's *current* value in the store, or ``None``
    when the key was deleted outright; a non-``None`` value means the key
    left this range but still exists elsewhere.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ChildEventKind
    key: str = Field(..., description="Child key")
    value: dict[str, Any] | None = None

    @field_validator("key")
    @classmethod
    def _non_empty_key(cls, value: str) -> str:
        if not value:
            raise ValueError("key must be non-empty")
        return value


@dataclass(frozen=True, slots=True)
class KeyTransition:
    """A query event to fire for one key.

    ``location`` and ``distance`` are both ``None`` when the key was deleted
    from the store.
    """

    event: QueryEvent
    key: str
    location: Location | None
    distance: float | None
