"""Server-sent-event parsing and range snapshot diffing for streamed queries.

A Firebase REST stream reports ``put`` and ``patch`` messages carrying a
path and the data written there.  :class:`RangeSnapshot` applies them to the
children currently inside the streamed range and turns the difference into
added/changed/removed child changes.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from pygeofire.models.events import ChildEventKind


@dataclass(frozen=True, slots=True)
class SseMessage:
    event: str
    data: str


class SseParser:
    """Incremental ``text/event-stream`` parser fed one line at a time."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed_line(self, line: str) -> SseMessage | None:
        """Consume one line; returns a message when a blank line completes it."""
        line = line.rstrip("\r\n")
        if not line:
            if not self._event and not self._data:
                return None
            message = SseMessage(self._event or "message", "\n".join(self._data))
            self._event = ""
            self._data = []
            return message
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None


@dataclass(frozen=True, slots=True)
class ChildChange:
    kind: ChildEventKind
    key: str
    value: Any


def _segments(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def _write_nested(current: Any, path: list[str], value: Any) -> Any:
    root: dict[str, Any] = copy.deepcopy(current) if isinstance(current, dict) else {}
    node = root
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    if value is None:
        node.pop(path[-1], None)
    else:
        node[path[-1]] = value
    return root


def _classify(key: str, before: Any, after: Any) -> ChildChange | None:
    if before is None and after is None:
        return None
    if before is None:
        return ChildChange(ChildEventKind.ADDED, key, after)
    if after is None:
        return ChildChange(ChildEventKind.REMOVED, key, None)
    if before == after:
        return None
    return ChildChange(ChildEventKind.CHANGED, key, after)


class RangeSnapshot:
    """Children currently inside one streamed range, keyed by child key."""

    def __init__(self) -> None:
        self._children: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._children)

    def __contains__(self, key: object) -> bool:
        return key in self._children

    def get(self, key: str) -> Any:
        return self._children.get(key)

    def put(self, path: str, data: Any) -> list[ChildChange]:
        """Apply a ``put``: *data* replaces whatever lives at *path*."""
        return self._mutate([(_segments(path), data)])

    def patch(self, path: str, data: Any) -> list[ChildChange]:
        """Apply a ``patch``: every key of *data* is a path below *path*."""
        if not isinstance(data, dict):
            return []
        base = _segments(path)
        return self._mutate([(base + _segments(sub_path), value) for sub_path, value in data.items()])

    def _mutate(self, writes: list[tuple[list[str], Any]]) -> list[ChildChange]:
        before = dict(self._children)
        touched: list[str] = []

        def touch(key: str) -> None:
            if key not in touched:
                touched.append(key)

        for segments, value in writes:
            if not segments:
                for key in self._children:
                    touch(key)
                self._children = dict(value) if isinstance(value, dict) else {}
                for key in self._children:
                    touch(key)
                continue

            key, rest = segments[0], segments[1:]
            touch(key)
            child = _write_nested(self._children.get(key), rest, value) if rest else value
            if child is None or child == {}:
                self._children.pop(key, None)
            else:
                self._children[key] = child

        changes: list[ChildChange] = []
        for key in touched:
            change = _classify(key, before.get(key), self._children.get(key))
            if change is not None:
                changes.append(change)
        return changes
