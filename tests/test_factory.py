"""Tests for provider, cache and engine wiring."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from chat_core.llm_adapter import (
    EngineConfig,
    MemoryCacheStore,
    MockProvider,
    OpenAICompatibleProvider,
    RedisCacheStore,
    build_cache,
    build_engine,
    build_provider,
)
from chat_core.logging.logger import JSONFormatter


class TestFactory:
    def test_default_provider_is_mock(self):
        assert isinstance(build_provider(), MockProvider)

    def test_mistral_provider(self):
        provider = build_provider("Mistral", api_key="key")
        assert isinstance(provider, OpenAICompatibleProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            build_provider("acme")

    def test_cache_selection(self):
        assert isinstance(build_cache(None), MemoryCacheStore)
        assert isinstance(build_cache("redis://localhost:6379/0"), RedisCacheStore)

    def test_disabled_cache_builds_no_store(self):
        engine = build_engine(config=EngineConfig(enable_cache=False))
        assert engine.cache_enabled is False


class TestJSONFormatter:
    def test_entry_fields(self):
        record = logging.LogRecord(
            "chat_core.test", logging.WARNING, __file__, 1, "cache %s", ("down",), None
        )
        record._extra = {"operation": "get"}
        entry = json.loads(JSONFormatter("chat_service").format(record))

        assert entry["level"] == "WARNING"
        assert entry["service"] == "chat_service"
        assert entry["logger"] == "chat_core.test"
        assert entry["message"] == "cache down"
        assert entry["where"] == "test_factory:1"
        assert entry["extra"] == {"operation": "get"}
        assert "error" not in entry

    def test_exception_is_structured(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            "chat_core.test", logging.ERROR, __file__, 7, "failed", (), exc_info
        )
        entry = json.loads(JSONFormatter("chat_service").format(record))

        assert entry["error"]["type"] == "RuntimeError"
        assert "boom" in entry["error"]["traceback"]
