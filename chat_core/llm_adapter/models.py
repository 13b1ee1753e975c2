"""Data models for the LLM adapter layer."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of a conversation. Position in the list is turn order."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def as_payload(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ChatOptions(BaseModel):
    """Per-call overrides for CostOptimizedEngine.chat.

    Leaving ``model`` unset lets the complexity router pick the tier.
    """

    model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    use_cache: bool = True


class UpstreamReply(BaseModel):
    content: str
    model: str
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class ResponseEnvelope(BaseModel):
    """
    Unified result returned to callers and persisted in the response cache.

    The cached copy is never mutated; replays are produced with
    ``as_replay()`` which flips ``served_from_cache``.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    model_used: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: Decimal = Decimal("0")
    served_from_cache: bool = False

    def as_replay(self) -> ResponseEnvelope:
        return self.model_copy(update={"served_from_cache": True})


class CacheEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    envelope: ResponseEnvelope
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
