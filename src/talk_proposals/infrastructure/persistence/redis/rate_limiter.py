"""
Redis Rate Limiter

Fixed-window counters: one key per (scope key, window start), bumped
with INCR and expiring together with its window.

Key format:
    {namespace}:ratelimit:{key}:{window start (unix seconds)}

Error Handling:
    - RedisError is logged as a warning and the hit is let through
      (same fall-through policy as RedisCache)
"""

import logging
import time

from redis import Redis
from redis.exceptions import RedisError

from talk_proposals.application.ports.rate_limiter import RateLimitStatus

logger = logging.getLogger(__name__)


class RedisRateLimiter:
    """
    Examples:
        >>> limiter = RedisRateLimiter(get_redis_client(db=2, verify=False))
        >>> limiter.hit("user:7:proposals", limit=10, window_seconds=3600).remaining
        9
    """

    def __init__(self, redis: Redis, namespace: str = "talk_proposals") -> None:
        self.redis = redis
        self.namespace = namespace

    def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitStatus:
        now = int(time.time())
        window_start = now - now % window_seconds
        reset_after = window_start + window_seconds - now
        name = f"{self.namespace}:ratelimit:{key}:{window_start}"

        try:
            pipe = self.redis.pipeline()
            pipe.incr(name)
            pipe.expire(name, window_seconds)
            hits, _ = pipe.execute()
        except RedisError as e:
            logger.warning(f"Redis error in rate limiter for {key}, letting request through: {e}")
            return RateLimitStatus(limit=limit, hits=0, reset_after=reset_after)

        if hits > limit:
            logger.info(f"Rate limit hit for {key}: {hits}/{limit} in {window_seconds}s window")
        return RateLimitStatus(limit=limit, hits=int(hits), reset_after=reset_after)
