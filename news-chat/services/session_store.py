#!/usr/bin/env python3
"""
Redis-backed session history.

Each session is one Redis list, ``<prefix>:<session_id>:history``, holding
JSON-encoded chat turns oldest first. Appends push and refresh the key TTL in
one MULTI/EXEC so a turn never lands without its expiry. Expiry itself is left
to Redis.
"""
import asyncio
import uuid
from typing import List

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import (
    REDIS_DB,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
    REDIS_TIMEOUT,
    SESSION_KEY_PREFIX,
    SESSION_TTL,
)
from models.data_models import ChatTurn
from models.errors import StoreError
from utils.logging_config import setup_logging

log = setup_logging("session_store.log")


class SessionStore:
    """Append-only, TTL-bound log of chat turns keyed by session id."""

    def __init__(
        self,
        client: aioredis.Redis,
        ttl: int = SESSION_TTL,
        timeout: float = REDIS_TIMEOUT,
        key_prefix: str = SESSION_KEY_PREFIX,
    ):
        self.client = client
        self.ttl = ttl
        self.timeout = timeout
        self.key_prefix = key_prefix

    def history_key(self, session_id: str) -> str:
        return f"{self.key_prefix}:{session_id}:history"

    @staticmethod
    def create_session() -> str:
        """Mint a new session id. Nothing is written until the first append."""
        return str(uuid.uuid4())

    async def _call(self, op: str, session_id: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            log.error(f"⏱️ Redis {op} timed out after {self.timeout}s for session {session_id}")
            raise StoreError(f"Session store {op} timed out") from e
        except RedisError as e:
            log.error(f"💥 Redis {op} failed for session {session_id}: {e}")
            raise StoreError(f"Session store {op} failed") from e

    async def append(self, session_id: str, turn: ChatTurn) -> None:
        """Append a turn and push the session expiry out by the full TTL."""
        key = self.history_key(session_id)

        async def _push():
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.rpush(key, turn.to_json())
                pipe.expire(key, self.ttl)
                return await pipe.execute()

        await self._call("append", session_id, _push())
        log.debug(f"📝 Appended {turn.role} turn to {key}")

    async def read(self, session_id: str) -> List[ChatTurn]:
        """Return every turn oldest first; unknown or expired sessions are empty."""
        key = self.history_key(session_id)
        raw = await self._call("read", session_id, self.client.lrange(key, 0, -1))
        try:
            return [ChatTurn.from_json(item) for item in raw]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.error(f"💥 Corrupt history entry in {key}: {e}")
            raise StoreError("Session history is corrupt") from e

    async def clear(self, session_id: str) -> bool:
        """Delete the session; True when there was something to delete."""
        deleted = await self._call("clear", session_id, self.client.delete(self.history_key(session_id)))
        return bool(deleted)

    async def ping(self) -> bool:
        try:
            return bool(await asyncio.wait_for(self.client.ping(), timeout=self.timeout))
        except (asyncio.TimeoutError, RedisError) as e:
            log.warning(f"⚠️ Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


def get_redis_client() -> aioredis.Redis:
    """Get an async Redis client with its own connection pool."""
    return aioredis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        decode_responses=True,
        socket_timeout=REDIS_TIMEOUT,
        socket_connect_timeout=REDIS_TIMEOUT,
        health_check_interval=30,
    )
