"""Abstract base class that all upstream LLM providers must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

from chat_core.llm_adapter.models import UpstreamReply


class LLMProvider(ABC):
    """
    Contract for upstream chat-completion providers.

    Every implementation MUST:
    - Send the full message list unchanged (system preamble included)
    - Return a fully populated UpstreamReply including token counts
    - Raise UpstreamError / UpstreamMalformed instead of library exceptions
    - Never retry on its own
    """

    @abstractmethod
    async def complete(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamReply:
        """Run one chat completion."""

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
