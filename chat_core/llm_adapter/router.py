"""
Complexity-based model routing.

Only the most recent user message is inspected. A message is "complex" when
it is long, mentions an analytical keyword, or looks like it contains code;
complex messages go to the large tier, everything else to the small one.

The router never touches usage counters. CostOptimizedEngine calls
classify() and records the returned tier itself, so the classifier stays pure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from chat_core.llm_adapter.models import ChatMessage, Role
from chat_core.llm_adapter.pricing import DEFAULT_CATALOG, ModelCatalog, ModelProfile, Tier

logger = logging.getLogger(__name__)

LENGTH_THRESHOLD = 300

COMPLEX_KEYWORDS: tuple[str, ...] = (
    "analyze",
    "explain in detail",
    "complex",
    "architecture",
    "debug",
    "code",
    "algorithm",
    "technical",
    "deep dive",
    "compare",
    "evaluate",
    "comprehensive",
)

CODE_PATTERN = re.compile(r"```|function |class |import |def ")


def last_user_message(messages: Sequence[ChatMessage | Mapping[str, Any]]) -> str | None:
    for message in reversed(messages):
        if isinstance(message, ChatMessage):
            role, content = message.role, message.content
        else:
            role, content = message.get("role"), message.get("content")
        if role == Role.USER and isinstance(content, str):
            return content
    return None


class ComplexityRouter:

    def __init__(
        self,
        catalog: ModelCatalog = DEFAULT_CATALOG,
        keywords: Sequence[str] = COMPLEX_KEYWORDS,
        length_threshold: int = LENGTH_THRESHOLD,
        code_pattern: re.Pattern[str] = CODE_PATTERN,
    ) -> None:
        self._catalog = catalog
        self._keywords = tuple(k.lower() for k in keywords)
        self._length_threshold = length_threshold
        self._code_pattern = code_pattern

    def reasons(self, text: str) -> list[str]:
        """Names of the complexity rules that fire for text."""
        fired: list[str] = []
        if len(text) > self._length_threshold:
            fired.append("length")
        lowered = text.lower()
        if any(kw in lowered for kw in self._keywords):
            fired.append("keyword")
        if self._code_pattern.search(text):
            fired.append("code")
        return fired

    def classify(self, messages: Sequence[ChatMessage | Mapping[str, Any]]) -> Tier:
        text = last_user_message(messages)
        if text is None:
            return Tier.SMALL
        fired = self.reasons(text)
        tier = Tier.LARGE if fired else Tier.SMALL
        logger.debug("Routed to %s tier (rules=%s, chars=%d)", tier.value, fired, len(text))
        return tier

    def route(self, messages: Sequence[ChatMessage | Mapping[str, Any]]) -> ModelProfile:
        return self._catalog.for_tier(self.classify(messages))
