"""Rate-limit decision for a single inbound chat request."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class RateLimitResult:
    """Outcome of a fixed-window check.

    ``limit`` and ``remaining`` are ``None`` when the quota is unbounded
    (limiter not configured and allowed to fail open).
    """

    success: bool
    limit: int | None
    remaining: int | None
    reset: datetime
    error: str | None = None

    def to_headers(self) -> dict[str, str]:
        """Render the ``X-RateLimit-*`` response headers."""
        return {
            "X-RateLimit-Limit": _header_value(self.limit),
            "X-RateLimit-Remaining": _header_value(self.remaining),
            "X-RateLimit-Reset": self.reset.isoformat(),
        }


def _header_value(value: int | None) -> str:
    return "Infinity" if value is None else str(value)
