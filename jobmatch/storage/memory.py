"""
In-memory session store.

Bounded TLRU cache: each entry expires at created_at + TTL, so patching a
session does not extend its life. Values are kept serialized so callers never
share mutable objects with the store, the same as with a remote store.
"""

import time
from typing import Any, Callable

from cachetools import TLRUCache

from jobmatch.models import Session
from jobmatch.storage.base import SessionStore, merge_session


def _time_to_use(_key: str, value: tuple[float, str], _now: float) -> float:
    return value[0]


class InMemorySessionStore(SessionStore):
    """Process-local store for tests and single-instance development."""

    def __init__(
        self,
        ttl_seconds: int,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.time,
    ):
        super().__init__(ttl_seconds)
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)

    async def put(self, session_id: str, session: Session) -> None:
        self._cache[session_id] = (self.expires_at(session), session.model_dump_json())

    async def get(self, session_id: str) -> Session | None:
        entry = self._cache.get(session_id)
        if entry is None:
            return None
        return Session.model_validate_json(entry[1])

    async def patch(self, session_id: str, updates: dict[str, Any]) -> Session | None:
        entry = self._cache.get(session_id)
        if entry is None:
            return None
        merged = merge_session(Session.model_validate_json(entry[1]), updates)
        # keep the original expiry
        self._cache[session_id] = (entry[0], merged.model_dump_json())
        return merged

    async def delete(self, session_id: str) -> bool:
        return self._cache.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._cache)
