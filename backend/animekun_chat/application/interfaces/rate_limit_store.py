"""Port for the external key-value store backing the rate limiter."""

from abc import ABC, abstractmethod


class RateLimitStore(ABC):
    """Atomic counter storage shared by every API process."""

    @abstractmethod
    async def increment(self, key: str, expire_seconds: int) -> int:
        """Atomically increment ``key`` and return the new count.

        The key must expire ``expire_seconds`` after its first increment.
        """
        ...
