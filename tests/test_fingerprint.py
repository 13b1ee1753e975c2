"""Tests for request fingerprinting."""

from __future__ import annotations

import pytest

from chat_core.llm_adapter.errors import InvalidInput
from chat_core.llm_adapter.fingerprint import canonical_payload, fingerprint
from chat_core.llm_adapter.models import ChatMessage, Role

MESSAGES = [
    {"role": "system", "content": "You are helpful."},
    {"role": "user", "content": "Hey, what's up?"},
]


class TestFingerprintDeterminism:
    def test_same_input_same_key(self):
        k1 = fingerprint(MESSAGES, "mistral-small-latest", 0.7, 1000)
        k2 = fingerprint(MESSAGES, "mistral-small-latest", 0.7, 1000)
        assert k1 == k2

    def test_key_shape(self):
        key = fingerprint(MESSAGES, "mistral-small-latest", 0.7, 1000)
        namespace, digest = key.split(":")
        assert namespace == "llm_cache"
        assert len(digest) == 64
        int(digest, 16)

    def test_custom_namespace(self):
        key = fingerprint(MESSAGES, "m", 0.7, 1000, namespace="mistral")
        assert key.startswith("mistral:")

    def test_chat_message_and_dict_forms_match(self):
        typed = [ChatMessage(role=Role.SYSTEM, content="You are helpful."),
                 ChatMessage(role=Role.USER, content="Hey, what's up?")]
        assert fingerprint(typed, "m", 0.7, 1000) == fingerprint(MESSAGES, "m", 0.7, 1000)


class TestFingerprintSensitivity:
    def test_temperature_change(self):
        assert fingerprint(MESSAGES, "m", 0.7, 1000) != fingerprint(MESSAGES, "m", 0.71, 1000)

    def test_model_change(self):
        assert fingerprint(MESSAGES, "small", 0.7, 1000) != fingerprint(MESSAGES, "large", 0.7, 1000)

    def test_max_tokens_change(self):
        assert fingerprint(MESSAGES, "m", 0.7, 1000) != fingerprint(MESSAGES, "m", 0.7, 999)

    def test_message_order_matters(self):
        swapped = list(reversed(MESSAGES))
        assert fingerprint(MESSAGES, "m", 0.7, 1000) != fingerprint(swapped, "m", 0.7, 1000)

    def test_whitespace_is_not_normalized(self):
        padded = [MESSAGES[0], {"role": "user", "content": "Hey, what's up? "}]
        assert fingerprint(MESSAGES, "m", 0.7, 1000) != fingerprint(padded, "m", 0.7, 1000)

    def test_role_change(self):
        other = [MESSAGES[0], {"role": "assistant", "content": "Hey, what's up?"}]
        assert fingerprint(MESSAGES, "m", 0.7, 1000) != fingerprint(other, "m", 0.7, 1000)


class TestFingerprintInvalidInput:
    def test_unknown_role(self):
        with pytest.raises(InvalidInput):
            fingerprint([{"role": "robot", "content": "hi"}], "m", 0.7, 1000)

    def test_non_string_content(self):
        with pytest.raises(InvalidInput):
            fingerprint([{"role": "user", "content": 42}], "m", 0.7, 1000)

    def test_message_not_a_mapping(self):
        with pytest.raises(InvalidInput):
            fingerprint(["hello"], "m", 0.7, 1000)

    def test_messages_as_plain_string(self):
        with pytest.raises(InvalidInput):
            fingerprint("hello", "m", 0.7, 1000)

    def test_nan_temperature(self):
        with pytest.raises(InvalidInput):
            fingerprint(MESSAGES, "m", float("nan"), 1000)

    def test_empty_model(self):
        with pytest.raises(InvalidInput):
            fingerprint(MESSAGES, "", 0.7, 1000)

    def test_non_integer_max_tokens(self):
        with pytest.raises(InvalidInput):
            fingerprint(MESSAGES, "m", 0.7, "1000")


def test_canonical_payload_preserves_unicode_text():
    raw = canonical_payload([{"role": "user", "content": "café ☕"}], "m", 0.7, 10)
    assert "café ☕" in raw
