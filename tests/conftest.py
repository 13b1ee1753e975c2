"""Shared test fixtures and fakes."""

from __future__ import annotations

import asyncio
import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chat_core.llm_adapter import (
    CostOptimizedEngine,
    EngineConfig,
    MemoryCacheStore,
    MockProvider,
)


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Minimal stand-in for redis.asyncio.Redis covering what the cache uses."""

    def __init__(self, down: bool = False, hang: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.down = down
        self.hang = hang
        self.closed = False

    async def _check(self) -> None:
        if self.hang:
            await asyncio.sleep(5)
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def ping(self) -> bool:
        await self._check()
        return True

    async def get(self, key: str) -> str | None:
        await self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        await self._check()
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def scan_iter(self, match: str | None = None):
        await self._check()
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def delete(self, *keys: str) -> int:
        await self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def engine(provider: MockProvider, memory_cache: MemoryCacheStore) -> CostOptimizedEngine:
    return CostOptimizedEngine(provider=provider, cache=memory_cache, config=EngineConfig())
