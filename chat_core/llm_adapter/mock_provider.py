"""
Deterministic mock LLM provider for testing and development.

Always returns the same output for the same request, making the whole
routing and caching path reproducible without network calls.
"""

from __future__ import annotations

import asyncio
import hashlib
import json

from chat_core.llm_adapter.base import LLMProvider
from chat_core.llm_adapter.errors import UpstreamError
from chat_core.llm_adapter.models import UpstreamReply

_MOCK_PREFIX = "[MOCK] "


class MockProvider(LLMProvider):
    """
    Args:
        latency: seconds to sleep per call, standing in for the network hop.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self.call_count = 0
        self.calls: list[dict] = []
        self._failures: list[UpstreamError] = []

    def fail_next(self, error: UpstreamError | None = None) -> None:
        """Make the next complete() call raise error."""
        self._failures.append(error or UpstreamError("mock upstream failure", status=500))

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamReply:
        self.call_count += 1
        self.calls.append(
            {
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        await asyncio.sleep(self.latency)
        if self._failures:
            raise self._failures.pop(0)

        request_hash = hashlib.sha256(
            json.dumps(messages, sort_keys=True).encode()
        ).hexdigest()
        content = f"{_MOCK_PREFIX}Deterministic response for request hash {request_hash[:12]}."

        prompt_tokens = sum(len(m["content"].split()) for m in messages)
        completion_tokens = min(len(content.split()), max_tokens)

        return UpstreamReply(
            content=content,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
