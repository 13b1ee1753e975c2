"""
Provider and engine factory -- single entry point for the service.

Supported providers:

  mock        Built-in deterministic mock, no API key needed (default)
  mistral     Mistral La Plateforme  -- needs LLM_API_KEY or MISTRAL_API_KEY
  openai      OpenAI API             -- needs LLM_API_KEY
  local       Any OpenAI-compatible local server
              e.g. Ollama / LM Studio (no key required)

The response cache is Redis when a URL is given, otherwise an in-memory
dict that lives as long as the process.
"""

from __future__ import annotations

import logging

from chat_core.llm_adapter.base import LLMProvider
from chat_core.llm_adapter.cache import (
    DEFAULT_CONNECT_TIMEOUT,
    CacheStore,
    MemoryCacheStore,
    RedisCacheStore,
)
from chat_core.llm_adapter.engine import CostOptimizedEngine, EngineConfig
from chat_core.llm_adapter.mock_provider import MockProvider
from chat_core.llm_adapter.openai_provider import (
    BASE_URLS,
    DEFAULT_REQUEST_TIMEOUT,
    OpenAICompatibleProvider,
)

logger = logging.getLogger(__name__)

PROVIDERS = ("mock", *BASE_URLS)


def build_provider(
    name: str = "mock",
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> LLMProvider:
    name = name.lower()
    if name == "mock":
        return MockProvider()
    if name in BASE_URLS:
        return OpenAICompatibleProvider(
            api_key=api_key,
            base_url=base_url,
            provider_name=name,
            timeout=timeout,
        )
    raise ValueError(
        f"Unknown LLM provider '{name}'. Available: {', '.join(PROVIDERS)}"
    )


def build_cache(
    redis_url: str | None = None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> CacheStore:
    if redis_url:
        return RedisCacheStore(redis_url, connect_timeout=connect_timeout)
    return MemoryCacheStore()


def build_engine(
    provider_name: str = "mock",
    api_key: str | None = None,
    base_url: str | None = None,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    redis_url: str | None = None,
    config: EngineConfig | None = None,
) -> CostOptimizedEngine:
    """Wire a provider and cache into an engine. Call start() before use."""
    config = config or EngineConfig()
    provider = build_provider(provider_name, api_key, base_url, request_timeout)
    cache = build_cache(redis_url) if config.enable_cache else None

    logger.info(
        "LLM engine initialized: provider=%s cache=%s ttl=%ds auto_route=%s",
        provider_name,
        "disabled" if cache is None else type(cache).__name__,
        config.cache_ttl_seconds,
        config.auto_route,
    )
    return CostOptimizedEngine(provider=provider, cache=cache, config=config)
