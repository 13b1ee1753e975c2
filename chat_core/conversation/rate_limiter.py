"""Per-user cooldown between admitted requests."""

from __future__ import annotations

import time
from collections.abc import Callable

DEFAULT_COOLDOWN_MS = 2000


class RateLimiter:
    """
    Last-timestamp check, not a token bucket: a call inside the cooldown
    window is rejected outright and does not move the window.
    """

    def __init__(
        self,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms cannot be negative")
        self._cooldown = cooldown_ms / 1000
        self._clock = clock
        self._last_admitted: dict[str, float] = {}

    def can_proceed(self, user_id: str) -> bool:
        now = self._clock()
        last = self._last_admitted.get(user_id)
        if last is not None and now - last < self._cooldown:
            return False
        self._last_admitted[user_id] = now
        return True

    def reset(self, user_id: str) -> None:
        self._last_admitted.pop(user_id, None)
