#!/usr/bin/env python3
"""
Tests for the Redis-backed session store.
"""
import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from models.data_models import ASSISTANT, USER, ChatTurn, Source
from models.errors import StoreError
from services.session_store import SessionStore
from fakes import make_redis


def _store(ttl=3600, timeout=1, connected=True):
    redis = make_redis(connected=connected)
    return SessionStore(redis, ttl=ttl, timeout=timeout, key_prefix="session"), redis


def test_create_session_returns_distinct_uuids():
    ids = {SessionStore.create_session() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(i) == 36 for i in ids)


def test_history_key_format():
    store, _ = _store()
    assert store.history_key("abc") == "session:abc:history"


@pytest.mark.asyncio
async def test_unknown_session_reads_empty():
    store, _ = _store()
    assert await store.read("never-seen") == []


@pytest.mark.asyncio
async def test_append_then_read_preserves_order():
    store, _ = _store()
    await store.append("s1", ChatTurn.user("What happened today?"))
    await store.append("s1", ChatTurn.assistant("Markets rallied.", [Source("Markets", "https://example.com/m")]))

    history = await store.read("s1")

    assert [t.role for t in history] == [USER, ASSISTANT]
    assert history[0].content == "What happened today?"
    assert history[0].sources is None
    assert history[1].sources == [Source("Markets", "https://example.com/m")]


@pytest.mark.asyncio
async def test_stored_entries_are_json_turns():
    store, redis = _store()
    await store.append("s1", ChatTurn(role=USER, content="hi", timestamp=123))

    raw = await redis.lrange("session:s1:history", 0, -1)
    assert len(raw) == 1
    assert json.loads(raw[0]) == {"role": "user", "content": "hi", "timestamp": 123}


@pytest.mark.asyncio
async def test_sessions_are_isolated():
    store, _ = _store()
    await store.append("a", ChatTurn.user("first"))
    await store.append("b", ChatTurn.user("second"))

    assert [t.content for t in await store.read("a")] == ["first"]
    assert [t.content for t in await store.read("b")] == ["second"]


@pytest.mark.asyncio
async def test_append_sets_ttl():
    store, redis = _store(ttl=3600)
    await store.append("s1", ChatTurn.user("hi"))
    assert await redis.ttl("session:s1:history") == 3600


@pytest.mark.asyncio
async def test_session_expires_after_ttl_without_appends():
    store, redis = _store(ttl=1)
    await store.append("s1", ChatTurn.user("hi"))
    assert await redis.ttl("session:s1:history") == 1

    await asyncio.sleep(2.1)

    assert await store.read("s1") == []


@pytest.mark.asyncio
async def test_append_refreshes_ttl():
    store, _ = _store(ttl=2)
    await store.append("s1", ChatTurn.user("first"))

    await asyncio.sleep(1.2)
    await store.append("s1", ChatTurn.user("second"))
    await asyncio.sleep(1.2)

    # Past the TTL of the first turn but not of the last append
    assert [t.content for t in await store.read("s1")] == ["first", "second"]



@pytest.mark.asyncio
async def test_clear_reports_whether_anything_was_deleted():
    store, _ = _store()
    await store.append("s1", ChatTurn.user("hi"))

    assert await store.clear("s1") is True
    assert await store.read("s1") == []
    assert await store.clear("s1") is False


@pytest.mark.asyncio
async def test_redis_failure_raises_store_error():
    store, _ = _store(connected=False)

    with pytest.raises(StoreError):
        await store.append("s1", ChatTurn.user("hi"))
    with pytest.raises(StoreError):
        await store.read("s1")
    with pytest.raises(StoreError):
        await store.clear("s1")


@pytest.mark.asyncio
async def test_dropped_connection_on_read_raises_store_error():
    store, redis = _store()
    await store.append("s1", ChatTurn.user("hi"))

    with patch.object(redis, "lrange", AsyncMock(side_effect=RedisConnectionError("Connection reset"))):
        with pytest.raises(StoreError, match="read failed"):
            await store.read("s1")


@pytest.mark.asyncio
async def test_read_timeout_raises_store_error():
    store, redis = _store(timeout=0.05)

    async def _hang(*args):
        await asyncio.sleep(3600)

    with patch.object(redis, "lrange", _hang):
        with pytest.raises(StoreError, match="timed out"):
            await store.read("s1")


@pytest.mark.asyncio
async def test_corrupt_entry_raises_store_error():
    store, redis = _store()
    await redis.rpush("session:s1:history", "not json")

    with pytest.raises(StoreError):
        await store.read("s1")


@pytest.mark.asyncio
@pytest.mark.parametrize("entry", [json.dumps([1, 2]), json.dumps("hi"), json.dumps({"role": "assistant", "content": "x", "sources": [1]})])
async def test_non_object_entry_raises_store_error(entry):
    store, redis = _store()
    await redis.rpush("session:s1:history", entry)

    with pytest.raises(StoreError, match="corrupt"):
        await store.read("s1")


@pytest.mark.asyncio
async def test_concurrent_appends_keep_every_turn():
    store, _ = _store()
    await asyncio.gather(*(store.append("s1", ChatTurn.user(f"q{i}")) for i in range(10)))

    history = await store.read("s1")
    assert sorted(t.content for t in history) == sorted(f"q{i}" for i in range(10))


@pytest.mark.asyncio
async def test_ping_and_close():
    store, redis = _store()
    assert await store.ping() is True

    down, _ = _store(connected=False)
    assert await down.ping() is False

    with patch.object(redis, "aclose", AsyncMock()) as aclose:
        await store.close()
    aclose.assert_awaited_once()

