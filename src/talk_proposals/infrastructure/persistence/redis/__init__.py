"""
Redis Persistence Module

Redis-backed infrastructure: connection pools, the read cache and the
request rate limiter.

Exports:
    - get_redis_client: Pooled Redis client (one pool per database)
    - health_check: PING-based health check
    - close_connections: Close every pool (shutdown)
    - RedisCache: JSON read cache with TTL and prefix invalidation
    - RedisRateLimiter: Fixed-window request counters
"""

from .cache import RedisCache
from .connection import close_connections, get_redis_client, health_check
from .rate_limiter import RedisRateLimiter

__all__ = [
    "RedisCache",
    "RedisRateLimiter",
    "close_connections",
    "get_redis_client",
    "health_check",
]
