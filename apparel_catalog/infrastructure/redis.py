"""Redis connection management.

A single async client is shared by the listing cache and the audit
publisher. The client is created lazily; when no URL is configured both
consumers run in disabled mode.
"""

import redis.asyncio as redis
import structlog

from apparel_catalog.infrastructure.config import settings

logger = structlog.get_logger()

_client: redis.Redis | None = None


def create_redis_client(url: str | None = None) -> redis.Redis | None:
    """Create an async Redis client with short, bounded timeouts.

    Args:
        url: Redis URL. Defaults to the configured URL.

    Returns:
        Redis client, or None if Redis is not configured.
    """
    redis_url = settings.redis_url if url is None else url
    if not redis_url:
        logger.warning("REDIS_URL not set, listing cache and audit queue disabled")
        return None

    return redis.from_url(
        redis_url,
        decode_responses=False,
        socket_connect_timeout=settings.cache_timeout_seconds,
        socket_timeout=settings.cache_timeout_seconds,
        retry_on_timeout=False,
    )


def get_redis_client() -> redis.Redis | None:
    """Get the shared Redis client, creating it on first use."""
    global _client
    if _client is None:
        _client = create_redis_client()
    return _client


async def close_redis_client() -> None:
    """Close the shared Redis client if one was created."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
