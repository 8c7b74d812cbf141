"""
Redis-backed session store.

Sessions are JSON strings under `jobmatch:session:<id>` with an absolute
expiry. Patches run as WATCH/MULTI/EXEC transactions with KEEPTTL, so a
concurrent writer makes the patch retry instead of half-applying it.
"""

import logging
import time
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import WatchError

from jobmatch.models import Session
from jobmatch.storage.base import SessionStore, merge_session

logger = logging.getLogger(__name__)

KEY_PREFIX = "jobmatch:session:"
MAX_PATCH_RETRIES = 5


class RedisSessionStore(SessionStore):
    """Durable store shared by every process instance."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int):
        super().__init__(ttl_seconds)
        self._redis = client

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisSessionStore":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client, ttl_seconds)

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def put(self, session_id: str, session: Session) -> None:
        remaining = max(1, int(self.expires_at(session) - time.time()))
        await self._redis.set(self._key(session_id), session.model_dump_json(), ex=remaining)

    async def get(self, session_id: str) -> Session | None:
        raw = await self._redis.get(self._key(session_id))
        if raw is None:
            return None
        return Session.model_validate_json(raw)

    async def patch(self, session_id: str, updates: dict[str, Any]) -> Session | None:
        key = self._key(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, MAX_PATCH_RETRIES + 1):
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        return None
                    merged = merge_session(Session.model_validate_json(raw), updates)
                    pipe.multi()
                    pipe.set(key, merged.model_dump_json(), keepttl=True)
                    await pipe.execute()
                    return merged
                except WatchError:
                    logger.info(f"[{session_id}] Concurrent write during patch, retry {attempt}")
                    continue
                finally:
                    await pipe.reset()
        raise RuntimeError(f"Could not patch session {session_id}: too much contention")

    async def delete(self, session_id: str) -> bool:
        return bool(await self._redis.delete(self._key(session_id)))

    async def close(self) -> None:
        await self._redis.aclose()
