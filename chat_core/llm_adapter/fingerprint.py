"""
Content-addressed cache keys for chat requests.

The key covers the exact message sequence plus the sampling parameters.
No normalization is applied: two prompts that differ only in whitespace
produce different keys and therefore different cache entries.
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

from chat_core.llm_adapter.errors import InvalidInput
from chat_core.llm_adapter.models import ChatMessage, Role

DEFAULT_NAMESPACE = "llm_cache"

_ROLES = {r.value for r in Role}


def message_payload(message: ChatMessage | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(message, ChatMessage):
        return message.as_payload()
    if not isinstance(message, Mapping):
        raise InvalidInput(f"message must be a mapping, got {type(message).__name__}")

    role = message.get("role")
    content = message.get("content")
    if isinstance(role, Role):
        role = role.value
    if role not in _ROLES:
        raise InvalidInput(f"unknown message role: {role!r}")
    if not isinstance(content, str):
        raise InvalidInput("message content must be a string")
    return {"role": role, "content": content}


def message_payloads(
    messages: Iterable[ChatMessage | Mapping[str, Any]],
) -> list[dict[str, str]]:
    """Validate messages and convert them to the wire shape, order preserved."""
    if isinstance(messages, (str, bytes, Mapping)):
        raise InvalidInput("messages must be a sequence of chat messages")
    try:
        return [message_payload(m) for m in messages]
    except TypeError as exc:
        raise InvalidInput(f"messages must be iterable: {exc}") from exc


def canonical_payload(
    messages: Iterable[ChatMessage | Mapping[str, Any]],
    model: str,
    temperature: float,
    max_tokens: int,
) -> str:
    """Serialize the request tuple to the exact text that gets hashed."""
    if not isinstance(model, str) or not model:
        raise InvalidInput("model must be a non-empty string")
    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        raise InvalidInput("temperature must be a number")
    if not math.isfinite(temperature):
        raise InvalidInput("temperature must be finite")
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int):
        raise InvalidInput("max_tokens must be an integer")

    try:
        return json.dumps(
            {
                "messages": message_payloads(messages),
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"request cannot be serialized: {exc}") from exc


def fingerprint(
    messages: Iterable[ChatMessage | Mapping[str, Any]],
    model: str,
    temperature: float,
    max_tokens: int,
    namespace: str = DEFAULT_NAMESPACE,
) -> str:
    """Return ``"<namespace>:<sha256 hex>"`` for the request tuple."""
    raw = canonical_payload(messages, model, temperature, max_tokens)
    return f"{namespace}:{hashlib.sha256(raw.encode('utf-8')).hexdigest()}"
