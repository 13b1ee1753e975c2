"""
Response cache stores.

A cache store maps fingerprint keys (see fingerprint.py) to CacheEntry
objects carrying a ResponseEnvelope and its expiry time. The cache is an
accelerator only: every backend failure is raised as CacheUnavailable so
the engine can fall back to the upstream path.

Two backends:
- In-memory dict (default, for dev/testing)
- Redis (for production across service restarts)
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError

from chat_core.llm_adapter.errors import CacheUnavailable, InvalidInput, StoreClosed
from chat_core.llm_adapter.models import CacheEntry, ResponseEnvelope

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 2.0
DEFAULT_OP_TIMEOUT = 0.25

_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


class CacheStore(ABC):
    """Contract shared by all cache backends."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosed(f"{type(self).__name__} is closed")

    def _make_entry(self, envelope: ResponseEnvelope, ttl_seconds: int) -> CacheEntry:
        if ttl_seconds <= 0:
            raise InvalidInput("ttl_seconds must be positive")
        return CacheEntry(envelope=envelope, expires_at=self._clock() + ttl_seconds)

    async def connect(self) -> None:
        """Verify the backend is reachable. Raises CacheUnavailable."""
        self._ensure_open()

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for key, or None when absent or expired."""

    @abstractmethod
    async def put(self, key: str, envelope: ResponseEnvelope, ttl_seconds: int) -> None:
        """Store envelope under key, replacing whatever was there."""

    @abstractmethod
    async def clear(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns the number removed."""

    async def close(self) -> None:
        self._closed = True


class MemoryCacheStore(CacheStore):
    """
    Process-local store. Expired entries are purged on read of their key and
    swept from the whole dict on every write, so unread keys do not pile up.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        super().__init__(clock)
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> CacheEntry | None:
        self._ensure_open()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    async def put(self, key: str, envelope: ResponseEnvelope, ttl_seconds: int) -> None:
        self._ensure_open()
        entry = self._make_entry(envelope, ttl_seconds)
        self._prune_expired()
        self._entries[key] = entry

    async def clear(self, prefix: str) -> int:
        self._ensure_open()
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    async def close(self) -> None:
        self._entries.clear()
        await super().close()

    def __len__(self) -> int:
        return len(self._entries)

    def _prune_expired(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Pruned %d expired cache entries", len(expired))


class RedisCacheStore(CacheStore):
    """
    Redis-backed store using SET ... EX for expiry.

    ``get`` is on the request's critical path, so every operation is bounded
    by ``op_timeout``; the initial ``connect`` is bounded by
    ``connect_timeout``.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: Any = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        op_timeout: float = DEFAULT_OP_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(clock)
        if client is None:
            if not redis_url:
                raise ValueError("redis_url is required when no client is given")
            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=connect_timeout,
                socket_timeout=op_timeout,
            )
        self._redis = client
        self._connect_timeout = connect_timeout
        self._op_timeout = op_timeout

    async def _call(self, op: str, awaitable: Any, timeout: float) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise CacheUnavailable(f"redis {op} timed out after {timeout}s") from exc
        except (RedisError, OSError) as exc:
            raise CacheUnavailable(f"redis {op} failed: {exc}") from exc

    async def connect(self) -> None:
        self._ensure_open()
        await self._call("ping", self._redis.ping(), self._connect_timeout)
        logger.info("Redis response cache connected")

    async def get(self, key: str) -> CacheEntry | None:
        self._ensure_open()
        raw = await self._call("get", self._redis.get(key), self._op_timeout)
        if raw is None:
            return None
        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable cache entry %s", key[:24])
            return None
        if entry.is_expired(self._clock()):
            return None
        return entry

    async def put(self, key: str, envelope: ResponseEnvelope, ttl_seconds: int) -> None:
        self._ensure_open()
        entry = self._make_entry(envelope, ttl_seconds)
        await self._call(
            "set",
            self._redis.set(key, entry.model_dump_json(), ex=int(ttl_seconds)),
            self._op_timeout,
        )

    async def clear(self, prefix: str) -> int:
        self._ensure_open()
        pattern = _GLOB_SPECIALS.sub(r"\\\1", prefix) + "*"

        async def _scan_and_delete() -> int:
            removed = 0
            async for key in self._redis.scan_iter(match=pattern):
                removed += await self._redis.delete(key)
            return removed

        # SCAN walks the whole keyspace, so it gets the connect budget.
        removed = await self._call("clear", _scan_and_delete(), self._connect_timeout)
        logger.info("Cleared %d cached responses", removed)
        return removed

    async def close(self) -> None:
        if self._closed:
            return
        await super().close()
        try:
            await self._redis.aclose()
        except (RedisError, OSError):
            logger.warning("Error while closing Redis connection", exc_info=True)
