"""
Per-user bounded conversation history.

Each user keeps at most ``2 * max_turns`` messages. When the cap is
exceeded the oldest messages are evicted first, and any assistant turn left
at the head without its user prompt goes with them, so a history always
starts with a user turn.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from chat_core.conversation.sanitize import sanitize
from chat_core.llm_adapter.models import ChatMessage, Role

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 10


class ConversationBuffer:
    """
    Args:
        max_turns:  user/assistant exchanges kept per user.
        max_users:  None keeps every user forever. An integer caps the number
                    of tracked users, dropping the least recently active one.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS, max_users: int | None = None) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be >= 1")
        if max_users is not None and max_users < 1:
            raise ValueError("max_users must be >= 1")
        self._max_messages = max_turns * 2
        self._max_users = max_users
        self._histories: OrderedDict[str, list[ChatMessage]] = OrderedDict()

    @property
    def max_messages(self) -> int:
        return self._max_messages

    def append(self, user_id: str, role: Role | str, content: str) -> ChatMessage:
        message = ChatMessage(role=Role(role), content=sanitize(content))
        history = self._touch(user_id)
        history.append(message)
        self._trim(history)
        return message

    def get(self, user_id: str) -> list[ChatMessage]:
        history = self._histories.get(user_id)
        if history is None:
            return []
        self._histories.move_to_end(user_id)
        return list(history)

    def reset(self, user_id: str) -> None:
        self._histories.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._histories)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._histories

    def _touch(self, user_id: str) -> list[ChatMessage]:
        history = self._histories.get(user_id)
        if history is None:
            history = self._histories[user_id] = []
            if self._max_users is not None and len(self._histories) > self._max_users:
                evicted, _ = self._histories.popitem(last=False)
                logger.debug("Evicted conversation of inactive user %s", evicted)
        else:
            self._histories.move_to_end(user_id)
        return history

    def _trim(self, history: list[ChatMessage]) -> None:
        overflow = len(history) - self._max_messages
        if overflow <= 0:
            return
        del history[:overflow]
        while history and history[0].role is not Role.USER:
            del history[0]
