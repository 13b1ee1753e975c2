from chat_core.llm_adapter.base import LLMProvider
from chat_core.llm_adapter.cache import CacheStore, MemoryCacheStore, RedisCacheStore
from chat_core.llm_adapter.engine import CostOptimizedEngine, EngineConfig
from chat_core.llm_adapter.errors import (
    CacheUnavailable,
    InvalidInput,
    LLMAdapterError,
    StoreClosed,
    UpstreamError,
    UpstreamMalformed,
)
from chat_core.llm_adapter.factory import build_cache, build_engine, build_provider
from chat_core.llm_adapter.fingerprint import fingerprint
from chat_core.llm_adapter.mock_provider import MockProvider
from chat_core.llm_adapter.openai_provider import OpenAICompatibleProvider
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
    Tier,
    calculate_cost,
    format_cost,
)
from chat_core.llm_adapter.router import ComplexityRouter

__all__ = [
    "LLMProvider",
    "MockProvider",
    "OpenAICompatibleProvider",
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
    "CostOptimizedEngine",
    "EngineConfig",
    "ComplexityRouter",
    "CacheEntry",
    "ChatMessage",
    "ChatOptions",
    "ResponseEnvelope",
    "Role",
    "UpstreamReply",
    "DEFAULT_CATALOG",
    "ModelCatalog",
    "ModelProfile",
    "RunningStats",
    "StatsSnapshot",
    "Tier",
    "calculate_cost",
    "format_cost",
    "fingerprint",
    "build_cache",
    "build_engine",
    "build_provider",
    "LLMAdapterError",
    "InvalidInput",
    "StoreClosed",
    "CacheUnavailable",
    "UpstreamError",
    "UpstreamMalformed",
]
