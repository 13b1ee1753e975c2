"""
Cost-optimized request engine.

Orchestrates one chat request end to end:

    resolve model (override or complexity router)
      -> response cache lookup (hit: return, no upstream call)
      -> upstream chat completion
      -> cost accounting
      -> best-effort cache write
      -> ResponseEnvelope

The engine owns its RunningStats and cache handle; construct one per
process and pass it to every caller. All state is mutated on the event
loop, so no locking is needed.

Known gap: two identical requests in flight at the same time both miss the
cache and both reach upstream. Only requests issued after the first write
lands are served from cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from chat_core.llm_adapter.base import LLMProvider
from chat_core.llm_adapter.cache import CacheStore
from chat_core.llm_adapter.errors import CacheUnavailable, InvalidInput, StoreClosed, UpstreamError
from chat_core.llm_adapter.fingerprint import DEFAULT_NAMESPACE, fingerprint, message_payloads
from chat_core.llm_adapter.models import (
    CacheEntry,
    ChatMessage,
    ChatOptions,
    ResponseEnvelope,
    Role,
    UpstreamReply,
)
from chat_core.llm_adapter.pricing import (
    DEFAULT_CATALOG,
    ModelCatalog,
    ModelProfile,
    RunningStats,
    StatsSnapshot,
    calculate_cost,
    format_cost,
)
from chat_core.llm_adapter.router import ComplexityRouter
from chat_core.observability import metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """
    enable_cache:             use the response cache at all
    cache_ttl_seconds:        lifetime of a cached envelope
    auto_route:               classify requests; when off, the large tier is used
    cache_namespace:          key prefix, also the scope of clear_cache()
    background_cache_writes:  write cache entries from a detached task
    """

    enable_cache: bool = True
    cache_ttl_seconds: int = 3600
    auto_route: bool = True
    cache_namespace: str = DEFAULT_NAMESPACE
    background_cache_writes: bool = False


class CostOptimizedEngine:

    def __init__(
        self,
        provider: LLMProvider,
        cache: CacheStore | None = None,
        catalog: ModelCatalog = DEFAULT_CATALOG,
        router: ComplexityRouter | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._catalog = catalog
        self._router = router or ComplexityRouter(catalog)
        self._config = config or EngineConfig()
        self._cache_enabled = self._config.enable_cache and cache is not None
        self._stats = RunningStats()
        self._pending_writes: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def start(self) -> None:
        """Probe the cache backend; disable caching if it is unreachable."""
        if not self._cache_enabled:
            logger.info("Response cache disabled")
            return
        try:
            await self._cache.connect()
        except (CacheUnavailable, StoreClosed) as exc:
            logger.warning("Response cache unavailable, caching disabled: %s", exc)
            self._cache_enabled = False

    async def __aenter__(self) -> CostOptimizedEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def chat(
        self,
        messages: Sequence[ChatMessage | Mapping[str, Any]],
        options: ChatOptions | None = None,
    ) -> ResponseEnvelope:
        if self._closed:
            raise StoreClosed("engine is closed")
        options = options or ChatOptions()

        payloads = message_payloads(messages)
        if not payloads:
            raise InvalidInput("messages cannot be empty")

        profile = self._resolve_model(payloads, options)

        cache_key: str | None = None
        if options.use_cache and self._cache_enabled:
            cache_key = fingerprint(
                payloads,
                profile.identifier,
                options.temperature,
                options.max_tokens,
                namespace=self._config.cache_namespace,
            )
            entry = await self._cache_get(cache_key)
            if entry is not None:
                self._stats.record_hit(entry.envelope)
                metrics.llm_cache_hits.inc()
                logger.debug("LLM cache HIT for key %s", cache_key[:24])
                return entry.envelope.as_replay()
            logger.debug("LLM cache MISS for key %s", cache_key[:24])

        self._stats.record_upstream()
        metrics.llm_requests.labels(model=profile.identifier).inc()
        try:
            reply = await self._provider.complete(
                profile.identifier,
                payloads,
                options.temperature,
                options.max_tokens,
            )
        except UpstreamError as exc:
            metrics.llm_upstream_errors.labels(model=profile.identifier).inc()
            logger.warning("Upstream call to %s failed: %s", profile.identifier, exc)
            raise

        envelope = self._account(profile, reply)

        if cache_key is not None:
            if self._config.background_cache_writes:
                task = asyncio.create_task(self._cache_put(cache_key, envelope))
                self._pending_writes.add(task)
                task.add_done_callback(self._pending_writes.discard)
            else:
                await self._cache_put(cache_key, envelope)

        return envelope

    async def ask(self, question: str, options: ChatOptions | None = None) -> str:
        """Single-turn convenience wrapper around chat()."""
        envelope = await self.chat([ChatMessage(role=Role.USER, content=question)], options)
        return envelope.content

    def get_stats(self) -> StatsSnapshot:
        return self._stats.snapshot()

    def reset_stats(self) -> None:
        self._stats.reset()

    async def clear_cache(self) -> int:
        """Drop every cached response in this engine's namespace."""
        if not self._cache_enabled:
            return 0
        try:
            return await self._cache.clear(f"{self._config.cache_namespace}:")
        except CacheUnavailable as exc:
            metrics.llm_cache_errors.labels(operation="clear").inc()
            logger.warning("Cache clear skipped: %s", exc)
            return 0

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
        if self._cache is not None:
            await self._cache.close()
        await self._provider.close()
        logger.info(
            "Engine closed: %d upstream calls, %d cache hits, total cost %s",
            self._stats.requests_to_upstream,
            self._stats.cache_hits,
            format_cost(self._stats.total_cost),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_model(self, payloads: list[dict[str, str]], options: ChatOptions) -> ModelProfile:
        if options.model:
            return self._catalog.get(options.model)
        if not self._config.auto_route:
            return self._catalog.large

        tier = self._router.classify(payloads)
        self._stats.record_route(tier)
        metrics.llm_routed.labels(tier=tier.value).inc()
        return self._catalog.for_tier(tier)

    def _account(self, profile: ModelProfile, reply: UpstreamReply) -> ResponseEnvelope:
        input_tokens, output_tokens = reply.prompt_tokens, reply.completion_tokens
        cost = calculate_cost(profile, input_tokens, output_tokens)
        envelope = ResponseEnvelope(
            content=reply.content,
            model_used=profile.identifier,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=reply.total_tokens,
            cost=cost,
            served_from_cache=False,
        )
        self._stats.record_usage(envelope)
        metrics.llm_tokens.labels(model=profile.identifier, direction="input").inc(input_tokens)
        metrics.llm_tokens.labels(model=profile.identifier, direction="output").inc(output_tokens)
        metrics.llm_cost.labels(model=profile.identifier).inc(float(cost))
        logger.info(
            "Upstream call model=%s tokens_in=%d tokens_out=%d cost=%s",
            profile.identifier,
            input_tokens,
            output_tokens,
            format_cost(cost),
        )
        return envelope

    async def _cache_get(self, key: str) -> CacheEntry | None:
        try:
            return await self._cache.get(key)
        except (CacheUnavailable, StoreClosed) as exc:
            metrics.llm_cache_errors.labels(operation="get").inc()
            logger.warning("Cache read skipped: %s", exc)
        except Exception:
            metrics.llm_cache_errors.labels(operation="get").inc()
            logger.exception("Unexpected cache read failure for key %s", key[:24])
        return None

    async def _cache_put(self, key: str, envelope: ResponseEnvelope) -> None:
        try:
            await self._cache.put(key, envelope, self._config.cache_ttl_seconds)
        except (CacheUnavailable, StoreClosed) as exc:
            metrics.llm_cache_errors.labels(operation="put").inc()
            logger.warning("Cache write skipped: %s", exc)
        except Exception:
            metrics.llm_cache_errors.labels(operation="put").inc()
            logger.exception("Unexpected cache write failure for key %s", key[:24])
