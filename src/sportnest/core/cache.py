"""Valkey/Redis connection management with async client."""

from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from sportnest.core.config import settings
from sportnest.core.logging import get_logger
from sportnest.core.tracing import trace_cache

logger = get_logger(__name__)


class CacheErrorMessage:
    """Standardized cache error messages."""

    CREATE_CLIENT_FAILED = "Failed to create Valkey client"
    GET_CACHE_FAILED = "Failed to get cache connection"
    CLOSE_CACHE_FAILED = "Failed to close cache connections"


def create_client() -> Redis:
    """Create async Redis client with connection pooling.

    Returns:
        Redis: Configured async Redis client, or an in-process FakeRedis when
        no Valkey URL is configured (local development and tests)

    Connection Pool Configuration (real Redis only):
        - max_connections: Maximum connections in the pool (default: 20)
        - decode_responses: Whether to decode responses (True for string)
        - socket_connect_timeout: Timeout for socket connection (default: 5s)
        - socket_keepalive: Enable TCP keepalive (True)
        - health_check_interval: Health check interval (30s)

    Raises:
        ValueError: If Valkey URL is invalid
    """
    if not settings.valkey_url:
        from fakeredis import FakeAsyncRedis

        logger.info("Creating FakeRedis client, no Valkey URL configured")
        return FakeAsyncRedis(decode_responses=True)  # type: ignore[return-value]

    try:
        logger.info(
            "Creating async Valkey client",
            url=settings.valkey_url.split("@")[1] if "@" in settings.valkey_url else "***",
            max_connections=20,
        )

        client: Redis = redis.from_url(  # type: ignore[no-untyped-call]
            settings.valkey_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=20,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

        return client
    except ValueError as e:
        logger.error("Failed to create Valkey client due to configuration error", error=str(e))
        raise ValueError(CacheErrorMessage.CREATE_CLIENT_FAILED) from e


# Create client instance
cache_client: Any = create_client()


async def get_cache() -> Any:
    """FastAPI dependency for cache access.

    Returns:
        Redis: Cache client for route handlers

    Raises:
        RuntimeError: If cache client cannot be accessed
    """
    try:
        await cache_client.ping()
        return cache_client
    except RedisError as e:
        logger.error("Cache connection error occurred", error=str(e))
        raise RuntimeError(CacheErrorMessage.GET_CACHE_FAILED) from e


@trace_cache("get")
async def cache_get(client: Any, key: str) -> Optional[str]:
    """Read a cached value; a cache outage reads as a miss."""
    try:
        value: Optional[str] = await client.get(key)
    except RedisError as e:
        logger.warning("Cache read failed", key=key, error=str(e))
        return None

    logger.debug("Cache lookup", key=key, hit=value is not None)
    return value


@trace_cache("set")
async def cache_set(client: Any, key: str, value: str, ttl_seconds: int) -> bool:
    """Store a value with a TTL; returns False when the cache is unavailable."""
    try:
        await client.set(key, value, ex=ttl_seconds)
    except RedisError as e:
        logger.warning("Cache write failed", key=key, error=str(e))
        return False

    logger.debug("Cache stored", key=key, ttl_seconds=ttl_seconds)
    return True


@trace_cache()
async def check_cache_connection() -> bool:
    """Check if cache connection is available.

    Used for health checks and diagnostics.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        await cache_client.ping()
        logger.debug("Cache connection check passed")
        return True
    except RedisError as e:
        logger.error("Cache connection check failed", error=str(e))
        return False


@trace_cache()
async def close_cache() -> None:
    """Close all cache connections.

    Should be called during application shutdown.

    Raises:
        RuntimeError: If graceful shutdown fails
    """
    try:
        logger.info("Closing cache connections")
        await cache_client.aclose()
        if hasattr(cache_client, "connection_pool"):
            await cache_client.connection_pool.disconnect()
    except RedisError as e:
        logger.error("Error closing cache connections", error=str(e))
        raise RuntimeError(CacheErrorMessage.CLOSE_CACHE_FAILED) from e
