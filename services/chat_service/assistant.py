"""
Transport-neutral chat assistant.

Glues the rate limiter, per-user conversation buffer and request engine
into the flow a chat front end needs for one incoming message:

    strip mentions -> rate limit -> record user turn
      -> engine.chat(system prompt + history) -> record assistant turn

Engine failures never escape: the user gets an apology instead.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel

from chat_core.conversation import ConversationBuffer, RateLimiter
from chat_core.llm_adapter import (
    ChatMessage,
    CostOptimizedEngine,
    LLMAdapterError,
    ResponseEnvelope,
    Role,
    StatsSnapshot,
    format_cost,
)

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"<@!?\d+>")
APOLOGY = "Sorry, I encountered an error. Please try again in a moment."


class ReplyStatus(str, Enum):
    ANSWERED = "answered"
    RATE_LIMITED = "rate_limited"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class AssistantReply:
    status: ReplyStatus
    text: str = ""
    envelope: ResponseEnvelope | None = None


class AssistantStats(BaseModel):
    messages_received: int
    messages_responded: int
    total_cost: str
    uptime: str
    engine: StatsSnapshot


@dataclass
class _Counters:
    messages_received: int = 0
    messages_responded: int = 0
    total_cost: Decimal = field(default_factory=Decimal)


def _format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


class ChatAssistant:

    def __init__(
        self,
        engine: CostOptimizedEngine,
        buffer: ConversationBuffer,
        limiter: RateLimiter,
        system_prompt: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine
        self._buffer = buffer
        self._limiter = limiter
        self._system_prompt = ChatMessage(role=Role.SYSTEM, content=system_prompt)
        self._clock = clock
        self._started_at = clock()
        self._counters = _Counters()

    @property
    def engine(self) -> CostOptimizedEngine:
        return self._engine

    async def handle_message(self, user_id: str, content: str) -> AssistantReply:
        text = MENTION_PATTERN.sub("", content).strip()
        if not text:
            return AssistantReply(status=ReplyStatus.EMPTY)

        self._counters.messages_received += 1
        if not self._limiter.can_proceed(user_id):
            logger.info("Rate limited user %s", user_id)
            return AssistantReply(status=ReplyStatus.RATE_LIMITED)

        self._buffer.append(user_id, Role.USER, text)
        messages = [self._system_prompt, *self._buffer.get(user_id)]

        try:
            envelope = await self._engine.chat(messages)
        except LLMAdapterError as exc:
            logger.error("Error handling message from %s: %s", user_id, exc)
            return AssistantReply(status=ReplyStatus.FAILED, text=APOLOGY)
        except Exception:
            logger.exception("Unexpected error handling message from %s", user_id)
            return AssistantReply(status=ReplyStatus.FAILED, text=APOLOGY)

        self._buffer.append(user_id, Role.ASSISTANT, envelope.content)
        self._counters.messages_responded += 1
        if not envelope.served_from_cache:
            self._counters.total_cost += envelope.cost

        logger.info(
            "Replied to %s model=%s cost=%s cached=%s",
            user_id,
            envelope.model_used,
            format_cost(envelope.cost),
            envelope.served_from_cache,
        )
        return AssistantReply(status=ReplyStatus.ANSWERED, text=envelope.content, envelope=envelope)

    def history(self, user_id: str) -> list[ChatMessage]:
        return self._buffer.get(user_id)

    def reset_conversation(self, user_id: str) -> None:
        self._buffer.reset(user_id)

    def stats(self) -> AssistantStats:
        return AssistantStats(
            messages_received=self._counters.messages_received,
            messages_responded=self._counters.messages_responded,
            total_cost=format_cost(self._counters.total_cost, places=4),
            uptime=_format_uptime(self._clock() - self._started_at),
            engine=self._engine.get_stats(),
        )
