from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog
from redis.asyncio import Redis

from clipbridge.core.modules.session.models import Session

logger = structlog.get_logger(__name__)

MEMORY_URL_SCHEME = "memory://"


def session_key(code: str) -> str:
    return f"device:{code}"


class SessionStore(ABC):
    """Key-value store of sessions with TTL-based expiry.

    The only source of truth for session data. Expired entries are
    indistinguishable from entries that never existed.
    """

    @abstractmethod
    async def exists(self, code: str) -> bool: ...

    @abstractmethod
    async def get(self, code: str) -> Session | None: ...

    @abstractmethod
    async def put(self, session: Session, ttl_seconds: int) -> None:
        """Upsert the session and restart its expiry countdown."""

    @abstractmethod
    async def create(self, session: Session, ttl_seconds: int) -> bool:
        """Store the session only if its code is free. Returns False on collision."""

    async def close(self) -> None:
        """Release backend resources."""


class RedisSessionStore(SessionStore):
    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisSessionStore:
        return cls(Redis.from_url(url, decode_responses=True))

    async def exists(self, code: str) -> bool:
        return bool(await self._client.exists(session_key(code)))

    async def get(self, code: str) -> Session | None:
        raw = await self._client.get(session_key(code))
        if raw is None:
            return None
        return Session.from_store(raw)

    async def put(self, session: Session, ttl_seconds: int) -> None:
        await self._client.set(session_key(session.code), session.to_store(), ex=ttl_seconds)

    async def create(self, session: Session, ttl_seconds: int) -> bool:
        created = await self._client.set(session_key(session.code), session.to_store(), ex=ttl_seconds, nx=True)
        return bool(created)

    async def close(self) -> None:
        await self._client.aclose()


class MemorySessionStore(SessionStore):
    """In-process store for development and tests.

    Each entry carries a deadline on the injected monotonic clock and is
    dropped lazily once the deadline has passed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def _live(self, code: str) -> str | None:
        entry = self._entries.get(code)
        if entry is None:
            return None
        raw, deadline = entry
        if self._clock() >= deadline:
            del self._entries[code]
            return None
        return raw

    async def exists(self, code: str) -> bool:
        return self._live(code) is not None

    async def get(self, code: str) -> Session | None:
        raw = self._live(code)
        if raw is None:
            return None
        return Session.from_store(raw)

    async def put(self, session: Session, ttl_seconds: int) -> None:
        self._entries[session.code] = (session.to_store(), self._clock() + ttl_seconds)

    async def create(self, session: Session, ttl_seconds: int) -> bool:
        if self._live(session.code) is not None:
            return False
        await self.put(session, ttl_seconds)
        return True


def create_store(url: str) -> SessionStore:
    """Build the store backend for a connection URL."""
    if url.startswith(MEMORY_URL_SCHEME):
        logger.warning("memory_store_in_use", detail="sessions are lost on restart")
        return MemorySessionStore()
    return RedisSessionStore.from_url(url)
