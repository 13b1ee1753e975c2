"""Exception taxonomy for the request engine and its collaborators."""

from __future__ import annotations


class LLMAdapterError(Exception):
    """Base class for every error raised by chat_core.llm_adapter."""


class InvalidInput(LLMAdapterError):
    """The request shape is malformed and cannot be fingerprinted or sent."""


class StoreClosed(LLMAdapterError):
    """A cache store operation was attempted after close()."""


class CacheUnavailable(LLMAdapterError):
    """
    The cache backend could not be reached or timed out.

    Soft failure: the engine logs it and continues without the cache.
    """


class UpstreamError(LLMAdapterError):
    """The upstream LLM call failed (non-2xx status, transport error, timeout)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class UpstreamMalformed(UpstreamError):
    """The upstream replied but the body could not be parsed into a reply."""
