"""Session storage package."""

import logging

from jobmatch.config import Settings
from jobmatch.storage.base import SessionStore, merge_session
from jobmatch.storage.memory import InMemorySessionStore
from jobmatch.storage.redis_store import RedisSessionStore

logger = logging.getLogger(__name__)


def create_session_store(settings: Settings) -> SessionStore:
    """Redis when REDIS_URL is set, otherwise a process-local store."""
    if settings.redis_url:
        return RedisSessionStore.from_url(settings.redis_url, settings.session_ttl_seconds)
    logger.warning("REDIS_URL not set, using in-memory sessions (lost on restart)")
    return InMemorySessionStore(settings.session_ttl_seconds, maxsize=settings.memory_store_maxsize)


__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "RedisSessionStore",
    "create_session_store",
    "merge_session",
]
