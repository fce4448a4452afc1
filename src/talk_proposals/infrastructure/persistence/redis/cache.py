"""
Redis Read Cache

JSON values stored with SETEX in a dedicated Redis database
(REDIS_CACHE_DB). Used by the cache invalidation layer for the tag
and top-rated listings.

Error Handling:
    - Every RedisError is logged as a warning and swallowed
    - get() then reports a miss, so callers fall through to the database
    - A failed forget() can leave a stale entry until its TTL expires
"""

import json
import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from .connection import health_check

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Cache adapter over a Redis client.

    Examples:
        >>> cache = RedisCache(get_redis_client(db=2, verify=False))
        >>> cache.set("tags:all", [{"id": 1, "name": "python"}], ttl=3600)
        >>> cache.get("tags:all")
        [{'id': 1, 'name': 'python'}]
        >>> cache.forget_prefix("proposals:top_rated:")
        2
    """

    def __init__(self, redis: Redis, namespace: str = "talk_proposals") -> None:
        self.redis = redis
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def get(self, key: str) -> Any | None:
        try:
            data = self.redis.get(self._key(key))
            if data is None:
                return None
            return json.loads(data)
        except RedisError as e:
            logger.warning(f"Redis error in cache get for {key}: {e}")
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupted cache entry {key}, ignoring: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.redis.setex(self._key(key), ttl, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning(f"Redis error in cache set for {key}: {e}")

    def forget(self, key: str) -> None:
        try:
            self.redis.delete(self._key(key))
        except RedisError as e:
            logger.warning(f"Redis error in cache forget for {key}: {e}")

    def forget_prefix(self, prefix: str) -> int:
        try:
            keys = list(self.redis.scan_iter(match=f"{self._key(prefix)}*", count=100))
            if not keys:
                return 0
            pipe = self.redis.pipeline()
            for key in keys:
                pipe.delete(key)
            pipe.execute()
            return len(keys)
        except RedisError as e:
            logger.warning(f"Redis error in cache forget_prefix for {prefix}: {e}")
            return 0

    def ping(self) -> bool:
        return health_check(self.redis)
