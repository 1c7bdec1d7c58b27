"""Rate-limit store infrastructure package."""

from .redis_rate_limit_store import RedisRateLimitStore

__all__ = ["RedisRateLimitStore"]
