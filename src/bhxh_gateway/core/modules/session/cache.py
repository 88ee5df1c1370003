"""Session cache backends: process memory or Redis."""

import time
from abc import ABC, abstractmethod

import structlog
from redis.asyncio import Redis

from bhxh_gateway.config import Config
from bhxh_gateway.core.modules.session.models import Session

logger = structlog.get_logger(__name__)


class SessionCache(ABC):
    """Key-addressable, TTL-bounded store for portal sessions."""

    @abstractmethod
    async def get(self, key: str) -> Session | None:
        """Return the cached session, or None when absent or expired in the store."""

    @abstractmethod
    async def put(self, key: str, session: Session, ttl: int) -> None:
        """Store ``session`` for ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Evict the session stored under ``key``."""

    @abstractmethod
    async def clear(self) -> None:
        """Evict every cached session."""

    async def close(self) -> None:
        """Release backend resources."""


class MemorySessionCache(SessionCache):
    """In-process cache; entries are dropped lazily once their TTL passes."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Session, float]] = {}

    async def get(self, key: str) -> Session | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        session, deadline = entry
        if time.monotonic() >= deadline:
            del self._entries[key]
            return None
        return session

    async def put(self, key: str, session: Session, ttl: int) -> None:
        self._entries[key] = (session, time.monotonic() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()


class RedisSessionCache(SessionCache):
    """Redis-backed cache shared by every worker process."""

    def __init__(self, client: Redis, key_prefix: str) -> None:
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str) -> "RedisSessionCache":
        return cls(Redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Session | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return Session.model_validate_json(raw)

    async def put(self, key: str, session: Session, ttl: int) -> None:
        await self._client.set(self._key(key), session.model_dump_json(by_alias=True), ex=ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def clear(self) -> None:
        keys = [key async for key in self._client.scan_iter(match=f"{self._key_prefix}*")]
        if keys:
            await self._client.delete(*keys)

    async def close(self) -> None:
        await self._client.aclose()


def create_session_cache(config: Config) -> SessionCache:
    """Build the cache backend selected by configuration."""
    if config.redis_url:
        logger.info("session_cache_backend", backend="redis", key_prefix=config.redis_key_prefix)
        return RedisSessionCache.from_url(config.redis_url, config.redis_key_prefix)
    logger.info("session_cache_backend", backend="memory")
    return MemorySessionCache()
