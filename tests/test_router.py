"""Tests for complexity classification and tier routing."""

from __future__ import annotations

import pytest

from chat_core.llm_adapter.models import ChatMessage, Role
from chat_core.llm_adapter.pricing import MISTRAL_LARGE, MISTRAL_SMALL, Tier
from chat_core.llm_adapter.router import ComplexityRouter, last_user_message


def _user(text: str) -> list[dict[str, str]]:
    return [{"role": "user", "content": text}]


@pytest.fixture
def router() -> ComplexityRouter:
    return ComplexityRouter()


class TestLengthThreshold:
    def test_300_chars_is_small(self, router):
        assert router.classify(_user("a" * 300)) is Tier.SMALL

    def test_301_chars_is_large(self, router):
        assert router.classify(_user("a" * 301)) is Tier.LARGE


class TestKeywords:
    @pytest.mark.parametrize(
        "text",
        [
            "Can you analyze this?",
            "Please EXPLAIN IN DETAIL how it works",
            "What architecture should I use?",
            "help me debug my bot",
            "Which algorithm is fastest?",
            "compare these two options",
            "give me a comprehensive overview",
        ],
    )
    def test_keyword_routes_large(self, router, text):
        assert router.classify(_user(text)) is Tier.LARGE

    def test_casual_message_routes_small(self, router):
        assert router.classify(_user("Hey, what's up?")) is Tier.SMALL


class TestCodeDetection:
    @pytest.mark.parametrize(
        "text",
        [
            "```print(1)```",
            "def foo(): pass",
            "import os please",
            "class Foo extends Bar",
            "function go() {}",
        ],
    )
    def test_code_routes_large(self, router, text):
        assert router.classify(_user(text)) is Tier.LARGE

    def test_code_pattern_is_case_sensitive(self, router):
        assert router.reasons("Def Leppard rocks") == []


class TestMessageSelection:
    def test_only_latest_user_message_counts(self, router):
        messages = [
            {"role": "user", "content": "analyze the architecture"},
            {"role": "assistant", "content": "Sure."},
            {"role": "user", "content": "thanks!"},
        ]
        assert router.classify(messages) is Tier.SMALL

    def test_trailing_assistant_message_is_ignored(self, router):
        messages = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "a" * 1000},
        ]
        assert router.classify(messages) is Tier.SMALL

    def test_system_prompt_is_ignored(self, router):
        messages = [
            {"role": "system", "content": "Debug everything. " * 50},
            {"role": "user", "content": "hello"},
        ]
        assert router.classify(messages) is Tier.SMALL

    def test_no_user_message_defaults_small(self, router):
        assert router.classify([{"role": "system", "content": "debug"}]) is Tier.SMALL
        assert router.classify([]) is Tier.SMALL

    def test_last_user_message_accepts_chat_messages(self):
        messages = [ChatMessage(role=Role.USER, content="one"),
                    ChatMessage(role=Role.ASSISTANT, content="two")]
        assert last_user_message(messages) == "one"


class TestRoute:
    def test_route_returns_profiles(self, router):
        assert router.route(_user("hi")) == MISTRAL_SMALL
        assert router.route(_user("debug this")) == MISTRAL_LARGE

    def test_reasons_lists_every_rule(self, router):
        text = "analyze " + "x" * 300 + " def f"
        assert router.reasons(text) == ["length", "keyword", "code"]

    def test_custom_keywords_and_threshold(self):
        router = ComplexityRouter(keywords=("Quantum",), length_threshold=10)
        assert router.classify(_user("quantum stuff")) is Tier.LARGE
        assert router.classify(_user("short")) is Tier.SMALL
        assert router.classify(_user("analyze")) is Tier.SMALL
