"""
OpenAI-compatible upstream provider.

Works with any API that speaks the OpenAI Chat Completions protocol:
  - Mistral     (base_url=https://api.mistral.ai/v1)              -- default
  - OpenAI      (base_url=https://api.openai.com/v1)
  - Local       (Ollama / LM Studio / vLLM, no key required)

Retries are disabled at the client level: a failed call fails the whole
chat() invocation exactly once.
"""

from __future__ import annotations

from typing import Any

from openai import (
    APIConnectionError,
    APIResponseValidationError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
)
from pydantic import ValidationError

from chat_core.llm_adapter.base import LLMProvider
from chat_core.llm_adapter.errors import UpstreamError, UpstreamMalformed
from chat_core.llm_adapter.models import UpstreamReply

BASE_URLS: dict[str, str] = {
    "mistral": "https://api.mistral.ai/v1",
    "openai": "https://api.openai.com/v1",
    "local": "http://localhost:11434/v1",
}

DEFAULT_REQUEST_TIMEOUT = 60.0


class OpenAICompatibleProvider(LLMProvider):
    """
    Chat Completions adapter built on ``openai.AsyncOpenAI``.

    Args:
        api_key:        Bearer token. Optional only for provider_name="local".
        base_url:       Override for the provider's default endpoint.
        provider_name:  Key into BASE_URLS.
        timeout:        Per-request timeout in seconds.
        client:         Pre-built client (tests inject a fake here).
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        provider_name: str = "mistral",
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Any = None,
    ) -> None:
        self._provider_name = provider_name

        if client is None:
            # Local servers often don't require a key; the SDK still wants one.
            if not api_key and provider_name == "local":
                api_key = "local-placeholder-key"
            elif not api_key:
                raise ValueError(
                    f"An API key is required for provider '{provider_name}'. "
                    "Set LLM_API_KEY (or MISTRAL_API_KEY) in your environment."
                )
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or BASE_URLS.get(provider_name, BASE_URLS["mistral"]),
                timeout=timeout,
                max_retries=0,
            )
        self._client = client

    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamReply:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIStatusError as exc:
            raise UpstreamError(f"API error: {exc.message}", status=exc.status_code) from exc
        except APITimeoutError as exc:
            raise UpstreamError(f"upstream request timed out: {exc}") from exc
        except APIConnectionError as exc:
            raise UpstreamError(f"upstream connection failed: {exc}") from exc
        except APIResponseValidationError as exc:
            raise UpstreamMalformed(
                f"unparsable upstream reply: {exc.message}", status=exc.status_code
            ) from exc

        return _extract_reply(response, requested_model=model)

    async def close(self) -> None:
        await self._client.close()


def _extract_reply(response: Any, requested_model: str) -> UpstreamReply:
    """Pull text and token usage out of an OpenAI-style completion object."""
    try:
        choice = response.choices[0]
        content = choice.message.content
        usage = response.usage
    except (AttributeError, IndexError, TypeError) as exc:
        raise UpstreamMalformed(f"reply has no usable choices: {exc}") from exc

    if content is None:
        raise UpstreamMalformed("reply message has no text content")
    if usage is None:
        raise UpstreamMalformed("reply is missing token usage")

    prompt_tokens = getattr(usage, "prompt_tokens", None)
    completion_tokens = getattr(usage, "completion_tokens", None)
    if prompt_tokens is None or completion_tokens is None:
        raise UpstreamMalformed("reply usage is missing token counts")
    total_tokens = getattr(usage, "total_tokens", None)
    if total_tokens is None:
        total_tokens = prompt_tokens + completion_tokens

    try:
        return UpstreamReply(
            content=content,
            model=getattr(response, "model", None) or requested_model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
        )
    except ValidationError as exc:
        raise UpstreamMalformed(f"reply fields are invalid: {exc}") from exc
