from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from chat_core.llm_adapter.engine import EngineConfig

DEFAULT_SYSTEM_PROMPT = """You are a helpful AI assistant for an online community.

STRICT RULES:
1. ENGLISH ONLY - Always respond in English, regardless of the user's language
2. NO PERSONAL INFORMATION - Never share or ask for private keys, seed phrases, passwords, personal addresses, or sensitive data
3. SCAM PROTECTION - Warn users about suspicious links, phishing attempts, or scam requests. Never provide links to unofficial sites.
4. PROFESSIONAL & HELPFUL - Be friendly, informative, and supportive

If someone asks you to share private information or suspicious links, politely decline and warn them about security risks."""

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_optional_int(environ: Mapping[str, str], name: str) -> int | None:
    raw = environ.get(name, "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class ChatServiceConfig:
    llm_provider: str
    llm_api_key: str
    llm_base_url: str | None
    request_timeout: float
    redis_url: str | None
    enable_cache: bool
    cache_ttl_seconds: int
    auto_route: bool
    max_history_turns: int
    rate_limit_ms: int
    max_tracked_users: int | None
    system_prompt: str
    log_level: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ChatServiceConfig:
        env = os.environ if environ is None else environ
        return cls(
            llm_provider=env.get("LLM_PROVIDER", "mock").lower(),
            llm_api_key=env.get("LLM_API_KEY", "") or env.get("MISTRAL_API_KEY", ""),
            llm_base_url=env.get("LLM_BASE_URL") or None,
            request_timeout=float(env.get("LLM_REQUEST_TIMEOUT", "60")),
            redis_url=env.get("REDIS_URL") or None,
            enable_cache=_env_bool(env, "ENABLE_CACHE", True),
            cache_ttl_seconds=int(env.get("CACHE_TTL_SECONDS", "3600")),
            auto_route=_env_bool(env, "AUTO_ROUTE", True),
            max_history_turns=int(env.get("MAX_HISTORY_TURNS", "10")),
            rate_limit_ms=int(env.get("RATE_LIMIT_MS", "2000")),
            max_tracked_users=_env_optional_int(env, "MAX_TRACKED_USERS"),
            system_prompt=env.get("SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
            log_level=env.get("LOG_LEVEL", "INFO"),
        )

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            enable_cache=self.enable_cache,
            cache_ttl_seconds=self.cache_ttl_seconds,
            auto_route=self.auto_route,
        )
