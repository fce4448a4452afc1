"""
Redis Connection Pool Management.

Provides one shared connection pool per Redis database with health checks
and retry logic. The cache (REDIS_CACHE_DB) and the search index
(REDIS_SEARCH_DB) each get their own pool.

Responsibility:
    - Manage Redis connection pools (max 10 connections each)
    - Health check with PING
    - Retry logic with exponential backoff
    - Thread-safe singleton per (host, port, db)

Business Rules:
    - Max connections: 10 (configurable via REDIS_MAX_CONNECTIONS)
    - Connection timeout: 5s (configurable via REDIS_TIMEOUT)
    - Retry attempts: 3 (configurable via REDIS_RETRY_ATTEMPTS)
    - Exponential backoff: 1s, 2s, 4s (base=1s, multiplier=2)
    - Decode responses: True (return strings not bytes)

Error Handling:
    - ConnectionError / TimeoutError: Log and retry with exponential backoff
    - RedisError: Raised after all retries exhausted
    - Health check failure: Return False (don't raise exception)

Examples:
    >>> client = get_redis_client(db=2)
    >>> client.setex("key", 60, "value")
    >>>
    >>> # Build a client without contacting Redis (callers tolerate outages)
    >>> client = get_redis_client(db=3, verify=False)
    >>>
    >>> close_connections()
"""

import logging
import os
import threading
import time
from typing import Optional

from redis import ConnectionPool, Redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

logger = logging.getLogger(__name__)

# Singleton connection pools keyed by (host, port, db)
_redis_pools: dict[tuple[str, int, int], ConnectionPool] = {}
_pool_lock = threading.Lock()


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: int = 0,
    max_connections: Optional[int] = None,
    timeout: Optional[int] = None,
    verify: bool = True,
) -> Redis:
    """
    Get Redis client backed by a shared connection pool.

    Args:
        host: Redis hostname (default from env: REDIS_HOST or "localhost")
        port: Redis port (default from env: REDIS_PORT or 6379)
        db: Redis database number (default 0)
        max_connections: Max pool size (default from env: REDIS_MAX_CONNECTIONS or 10)
        timeout: Connection timeout in seconds (default from env: REDIS_TIMEOUT or 5)
        verify: PING the server (with retries) before returning the client

    Returns:
        Redis client instance with connection pool

    Raises:
        RedisError: If verify is True and connection fails after all retries
    """
    redis_host = host or os.getenv("REDIS_HOST", "localhost")
    redis_port = port or int(os.getenv("REDIS_PORT", "6379"))
    max_conn = max_connections or int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
    conn_timeout = timeout or int(os.getenv("REDIS_TIMEOUT", "5"))
    key = (redis_host, redis_port, db)

    pool = _redis_pools.get(key)
    if pool is None:
        with _pool_lock:
            # Double-check locking pattern
            pool = _redis_pools.get(key)
            if pool is None:
                logger.info(
                    f"Creating Redis connection pool: "
                    f"host={redis_host}, port={redis_port}, db={db}, "
                    f"max_connections={max_conn}, timeout={conn_timeout}s"
                )
                pool = ConnectionPool(
                    host=redis_host,
                    port=redis_port,
                    db=db,
                    max_connections=max_conn,
                    socket_timeout=conn_timeout,
                    socket_connect_timeout=conn_timeout,
                    socket_keepalive=True,
                    decode_responses=True,
                )
                _redis_pools[key] = pool

    client = Redis(connection_pool=pool)
    if not verify:
        return client

    retry_attempts = int(os.getenv("REDIS_RETRY_ATTEMPTS", "3"))
    backoff_base = 1
    last_error: Optional[Exception] = None

    for attempt in range(retry_attempts):
        try:
            client.ping()
            logger.debug(f"Redis connection established (attempt {attempt + 1})")
            return client

        except (ConnectionError, TimeoutError) as e:
            last_error = e
            if attempt < retry_attempts - 1:
                delay = backoff_base * (2**attempt)
                logger.warning(
                    f"Redis connection failed (attempt {attempt + 1}/{retry_attempts}): {e}. "
                    f"Retrying in {delay}s..."
                )
                time.sleep(delay)
            else:
                logger.error(
                    f"Redis connection failed after {retry_attempts} attempts: {e}"
                )

    raise RedisError(
        f"Failed to connect to Redis after {retry_attempts} attempts. "
        f"Last error: {last_error}"
    )


def health_check(client: Optional[Redis] = None) -> bool:
    """
    Check Redis health with PING test.

    Returns:
        True if Redis is healthy (PING successful), False otherwise
    """
    try:
        client = client or get_redis_client(verify=False)
        if client.ping():
            logger.debug("Redis health check: OK")
            return True
        logger.warning("Redis health check: PING returned False")
        return False

    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False

    except Exception as e:
        logger.error(f"Unexpected error in Redis health check: {e}")
        return False


def close_connections() -> None:
    """
    Close every Redis connection pool and reset the singletons.

    Safe to call multiple times (idempotent).
    """
    with _pool_lock:
        if not _redis_pools:
            logger.debug("Redis connection pools already closed or not initialized")
            return

        logger.info(f"Closing {len(_redis_pools)} Redis connection pool(s)")
        for key, pool in list(_redis_pools.items()):
            try:
                pool.disconnect()
            except Exception as e:
                logger.error(f"Error closing Redis connection pool {key}: {e}")
        _redis_pools.clear()
        logger.info("Redis connection pools closed")
