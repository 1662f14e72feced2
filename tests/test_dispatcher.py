from __future__ import annotations

from typing import Any

import pytest

from pygeofire.exceptions import GeoFireCallbackError
from pygeofire.models import KeyTransition, QueryEvent
from pygeofire.query.dispatcher import EventDispatcher


def _entered(key: str) -> KeyTransition:
    return KeyTransition(QueryEvent.KEY_ENTERED, key, (0.0, 0.0), 0.0)


def test_callbacks_fire_in_registration_order() -> None:
    dispatcher = EventDispatcher()
    calls: list[str] = []
    dispatcher.register(QueryEvent.KEY_ENTERED, lambda key, *_: calls.append(f"first:{key}"))
    dispatcher.register(QueryEvent.KEY_ENTERED, lambda key, *_: calls.append(f"second:{key}"))
    dispatcher.register(QueryEvent.KEY_EXITED, lambda key, *_: calls.append(f"exited:{key}"))

    dispatcher.fire(_entered("a"))
    assert calls == ["first:a", "second:a"]


def test_cancel_removes_only_that_callback() -> None:
    dispatcher = EventDispatcher()
    calls: list[str] = []
    first = dispatcher.register(QueryEvent.KEY_ENTERED, lambda key, *_: calls.append("first"))
    dispatcher.register(QueryEvent.KEY_ENTERED, lambda key, *_: calls.append("second"))

    first.cancel()
    first.cancel()
    dispatcher.fire(_entered("a"))
    assert calls == ["second"]
    assert dispatcher.count(QueryEvent.KEY_ENTERED) == 1


def test_replay_runs_before_register_returns() -> None:
    dispatcher = EventDispatcher()
    seen: list[tuple[str, Any, Any]] = []
    registration = dispatcher.register(
        QueryEvent.KEY_ENTERED,
        lambda key, location, dist: seen.append((key, location, dist)),
        replay=[_entered("a"), _entered("b")],
    )
    assert [key for key, _, _ in seen] == ["a", "b"]
    assert registration.event is QueryEvent.KEY_ENTERED


def test_failing_callback_does_not_stop_others() -> None:
    reported: list[GeoFireCallbackError] = []
    dispatcher = EventDispatcher(on_failure=reported.append)
    calls: list[str] = []

    def boom(key: str, *_: Any) -> None:
        raise RuntimeError("boom")

    dispatcher.register(QueryEvent.KEY_ENTERED, boom)
    dispatcher.register(QueryEvent.KEY_ENTERED, lambda key, *_: calls.append(key))

    failures = dispatcher.fire(_entered("a"))
    assert calls == ["a"]
    assert len(failures) == 1
    assert reported == failures
    assert failures[0].event == "key_entered"
    assert failures[0].key == "a"
    assert isinstance(failures[0].__cause__, RuntimeError)


def test_callback_unregistering_itself_during_fire() -> None:
    dispatcher = EventDispatcher()
    calls: list[str] = []
    registrations = []

    def once(key: str, *_: Any) -> None:
        calls.append("once")
        registrations[0].cancel()

    registrations.append(dispatcher.register(QueryEvent.KEY_MOVED, once))
    dispatcher.register(QueryEvent.KEY_MOVED, lambda key, *_: calls.append("always"))

    moved = KeyTransition(QueryEvent.KEY_MOVED, "a", (0.0, 0.0), 0.0)
    dispatcher.fire(moved)
    dispatcher.fire(moved)
    assert calls == ["once", "always", "always"]


def test_clear_drops_everything() -> None:
    dispatcher = EventDispatcher()
    dispatcher.register(QueryEvent.KEY_ENTERED, lambda *_: None)
    dispatcher.register(QueryEvent.KEY_EXITED, lambda *_: None)
    dispatcher.clear()
    assert dispatcher.count(QueryEvent.KEY_ENTERED) == 0
    assert dispatcher.count(QueryEvent.KEY_EXITED) == 0


@pytest.mark.parametrize("event", list(QueryEvent))
def test_fire_without_callbacks_is_a_noop(event: QueryEvent) -> None:
    dispatcher = EventDispatcher()
    assert dispatcher.fire(KeyTransition(event, "a", None, None)) == []
