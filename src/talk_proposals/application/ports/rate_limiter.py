"""
Rate Limiter Port

Fixed-window request counters. A window is identified by the key and
its start time; every hit increments the counter of the current window.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitStatus:
    """
    Counter state right after a hit.

    Attributes:
        limit: Allowed hits per window
        hits: Hits counted in the current window (this one included)
        reset_after: Seconds until the current window ends
    """

    limit: int
    hits: int
    reset_after: int

    @property
    def allowed(self) -> bool:
        return self.hits <= self.limit

    @property
    def remaining(self) -> int:
        return max(self.limit - self.hits, 0)


class RateLimiterProtocol(Protocol):
    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitStatus:
        """Count one hit for key and report whether it stays within limit."""
        ...
