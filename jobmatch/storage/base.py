"""Session store interface."""

from abc import ABC, abstractmethod
from typing import Any

from jobmatch.models import Session, SessionStatus, check_transition, utcnow


def merge_session(current: Session, updates: dict[str, Any]) -> Session:
    """
    Build the merged record for a patch without touching the original.

    Raises (pydantic ValidationError or InvalidTransition) before anything is
    written, so a failed patch leaves the stored record as it was.
    """
    if "id" in updates and updates["id"] != current.id:
        raise ValueError("Session id cannot be changed")
    if "status" in updates:
        check_transition(current.status, SessionStatus(updates["status"]))

    data = current.model_dump()
    data.update(updates)
    data["updated_at"] = updates.get("updated_at") or utcnow()
    return Session.model_validate(data)


class SessionStore(ABC):
    """
    Async key/value store for sessions.

    Records expire a fixed TTL after `created_at`; patches do not extend the
    expiry. No locking: callers handle idempotency themselves.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def put(self, session_id: str, session: Session) -> None:
        """Insert or replace a session."""

    @abstractmethod
    async def get(self, session_id: str) -> Session | None:
        """Return the session, or None if absent or expired."""

    @abstractmethod
    async def patch(self, session_id: str, updates: dict[str, Any]) -> Session | None:
        """Merge updates into an existing session. None if the key is absent."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove a session. True if it existed."""

    async def close(self) -> None:
        """Release connections. No-op by default."""

    def expires_at(self, session: Session) -> float:
        """Absolute expiry (epoch seconds) for a session."""
        return session.created_at.timestamp() + self.ttl_seconds
