"""Tests for the in-memory backing store."""

import pytest

from beacon.errors import StoreError
from beacon.store import InMemoryStore


@pytest.mark.asyncio
async def test_strings_and_bulk_get():
    store = InMemoryStore()
    await store.set("a", "1")
    await store.set("b", "2")

    assert await store.get("a") == "1"
    assert await store.mget(["a", "missing", "b"]) == ["1", None, "2"]
    assert await store.delete("a", "missing") == 1
    assert await store.get("a") is None


@pytest.mark.asyncio
async def test_sorted_set_range_queries():
    store = InMemoryStore()
    assert await store.zadd("z", {"a": 3, "b": 1, "c": 2}) == 3
    assert await store.zadd("z", {"a": 5}) == 0

    assert await store.zrangebyscore("z", 0, 10) == ["b", "c", "a"]
    assert await store.zrangebyscore("z", 0, 2) == ["b", "c"]
    assert await store.zrangebyscore("z", 0, 10, limit=1) == ["b"]
    assert await store.zscore("z", "a") == 5.0
    assert await store.zscore("z", "missing") is None
    assert await store.zrem("z", "a", "missing") == 1


@pytest.mark.asyncio
async def test_pop_range_by_score_removes_exactly_the_selection():
    store = InMemoryStore()
    await store.zadd("z", {"a": 1, "b": 2, "c": 3, "d": 10})

    assert await store.pop_range_by_score("z", 5, 2) == ["a", "b"]
    assert await store.zrangebyscore("z", float("-inf"), float("inf")) == ["c", "d"]
    assert await store.pop_range_by_score("z", 5, 2) == ["c"]
    assert await store.pop_range_by_score("z", 5, 2) == []


@pytest.mark.asyncio
async def test_scan_prefix_covers_both_key_types():
    store = InMemoryStore()
    await store.set("/svc/1/h/1", "{}")
    await store.zadd("/svc-index", {"x": 1})
    await store.set("other", "x")

    assert sorted(await store.scan_prefix("/svc")) == ["/svc-index", "/svc/1/h/1"]
    assert await store.scan_prefix("/nope") == []


@pytest.mark.asyncio
async def test_wrong_type_commands_fail():
    store = InMemoryStore()
    await store.set("s", "x")
    await store.zadd("z", {"a": 1})

    with pytest.raises(StoreError):
        await store.zadd("s", {"a": 1})
    with pytest.raises(StoreError):
        await store.get("z")
    assert await store.mget(["z"]) == [None]


@pytest.mark.asyncio
async def test_set_indexed_writes_value_and_index_entry():
    store = InMemoryStore()

    await store.set_indexed("k", "v", "idx", 1500)
    await store.set_indexed("k", "v2", "idx", 2500)

    assert await store.get("k") == "v2"
    assert await store.zscore("idx", "k") == 2500.0
    assert await store.zrangebyscore("idx", 0, 10_000) == ["k"]


@pytest.mark.asyncio
async def test_set_indexed_writes_nothing_when_index_is_wrong_type():
    store = InMemoryStore()
    await store.set("idx", "string")

    with pytest.raises(StoreError):
        await store.set_indexed("k", "v", "idx", 1)
    assert await store.get("k") is None
    assert await store.scan_prefix("k") == []


@pytest.mark.asyncio
async def test_set_indexed_surfaces_any_error_before_writing(monkeypatch):
    store = InMemoryStore()

    def broken_zadd(name, mapping):
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "_zadd", broken_zadd)
    with pytest.raises(RuntimeError):
        await store.set_indexed("k", "v", "idx", 1)
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_delete_indexed_removes_both_and_tolerates_unknown_ids():
    store = InMemoryStore()
    await store.set_indexed("k", "v", "idx", 1)

    assert await store.delete_indexed("k", "idx") == 1
    assert await store.get("k") is None
    assert await store.zscore("idx", "k") is None
    assert await store.delete_indexed("k", "idx") == 0
    assert await store.delete_indexed("ghost", "missing-idx") == 0


@pytest.mark.asyncio
async def test_flushdb_and_context_manager():
    async with InMemoryStore() as store:
        await store.set("a", "1")
        await store.zadd("z", {"a": 1})
        await store.flushdb()
        assert await store.scan_prefix("") == []
