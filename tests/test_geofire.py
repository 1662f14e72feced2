from __future__ import annotations

import pytest

from pygeofire import GeoFire, GeoFireValidationError, InMemoryStore


@pytest.mark.asyncio
async def test_set_get_remove() -> None:
    store = InMemoryStore()
    geofire = GeoFire(store)

    await geofire.set("loc1", (0, 0))
    await geofire.set("loc2", [50, 50])
    assert await geofire.get("loc1") == (0.0, 0.0)
    assert await geofire.get("loc2") == (50.0, 50.0)
    assert await store.get("loc1") == {".priority": "7zzzzzzzzz", "g": "7zzzzzzzzz", "l": [0.0, 0.0]}

    await geofire.remove("loc1")
    await geofire.remove("never-there")
    assert await geofire.get("loc1") is None


@pytest.mark.asyncio
async def test_set_with_mapping_writes_and_deletes() -> None:
    geofire = GeoFire(InMemoryStore())
    await geofire.set({"a": (1, 1), "b": (2, 2)})
    await geofire.set({"a": None, "b": (3, 3), "c": (4, 4)})

    assert await geofire.get("a") is None
    assert await geofire.get("b") == (3.0, 3.0)
    assert await geofire.get("c") == (4.0, 4.0)


@pytest.mark.asyncio
async def test_invalid_writes_are_rejected_before_touching_the_store() -> None:
    store = InMemoryStore()
    geofire = GeoFire(store)

    with pytest.raises(GeoFireValidationError):
        await geofire.set("bad.key", (0, 0))
    with pytest.raises(GeoFireValidationError):
        await geofire.set({"ok": (0, 0), "bad": (91, 0)})
    with pytest.raises(GeoFireValidationError):
        await geofire.set("missing-location")  # type: ignore[call-arg]
    with pytest.raises(GeoFireValidationError):
        await geofire.set({"a": (0, 0)}, (1, 1))
    with pytest.raises(GeoFireValidationError):
        await geofire.set(42, (0, 0))  # type: ignore[arg-type]
    with pytest.raises(GeoFireValidationError):
        await geofire.get("")

    assert await store.get("ok") is None


@pytest.mark.asyncio
async def test_get_rejects_malformed_stored_value() -> None:
    store = InMemoryStore()
    await store.update({"weird": {"g": "7zzzzzzzzz", "l": [0]}})
    with pytest.raises(GeoFireValidationError):
        await GeoFire(store).get("weird")


def test_distance_helper() -> None:
    assert GeoFire.distance((-90, -180), (90, 180)) == pytest.approx(20015, abs=0.5)
