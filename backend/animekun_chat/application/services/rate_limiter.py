"""Fixed-window rate limiter per user identifier.

Each user gets one counter per window, keyed
``<prefix>:<user_id>:<window_index>`` with ``window_index = floor(now / window)``.
The store's atomic increment is the only synchronization, so any number of
API processes can share it. What happens when the store is not configured,
or fails, is a policy choice: ``allow`` (fail open) or ``deny`` (fail closed).
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from animekun_chat.application.interfaces import RateLimitStore
from animekun_chat.config import LimiterPolicy
from animekun_chat.domain.entities import RateLimitResult

logger = logging.getLogger(__name__)


class RateLimiter:
    """Checks and counts one request against the caller's quota."""

    def __init__(
        self,
        store: RateLimitStore | None,
        *,
        max_requests: int,
        window_seconds: int,
        prefix: str = "anime-ai-chat",
        on_unavailable: LimiterPolicy = "allow",
        on_error: LimiterPolicy = "allow",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self._store = store
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._prefix = prefix
        self._on_unavailable = on_unavailable
        self._on_error = on_error
        self._clock = clock

        if store is None:
            logger.warning(
                "Rate limiting disabled: no store configured (policy=%s)", on_unavailable
            )
        else:
            logger.info(
                "Rate limiting initialised: %d requests per %ds per user",
                max_requests, window_seconds,
            )

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def _window(self) -> tuple[int, datetime]:
        window_index = int(self._clock() // self._window_seconds)
        reset = datetime.fromtimestamp(
            (window_index + 1) * self._window_seconds, tz=timezone.utc
        )
        return window_index, reset

    def key_for(self, user_id: str, window_index: int) -> str:
        return f"{self._prefix}:{user_id}:{window_index}"

    async def check(self, user_id: str) -> RateLimitResult:
        window_index, reset = self._window()

        if self._store is None:
            if self._on_unavailable == "deny":
                return RateLimitResult(False, self._max_requests, 0, reset, "Rate limiter unavailable")
            return RateLimitResult(True, None, None, reset)

        key = self.key_for(user_id, window_index)
        try:
            count = await self._store.increment(key, self._window_seconds)
        except Exception as exc:
            if self._on_error == "deny":
                logger.error("Rate limit check failed (fail-closed) for %s: %s", user_id, exc)
                return RateLimitResult(False, self._max_requests, 0, reset, "Rate limit check failed")
            logger.warning("Rate limit check failed for %s: %s, allowing request", user_id, exc)
            return RateLimitResult(True, -1, -1, reset, "Rate limit check failed")

        remaining = max(self._max_requests - count, 0)
        allowed = count <= self._max_requests
        if not allowed:
            logger.warning(
                "Rate limit exceeded for %s (%d/%d in %ds)",
                user_id, count, self._max_requests, self._window_seconds,
            )
        return RateLimitResult(allowed, self._max_requests, remaining, reset)
