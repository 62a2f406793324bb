"""Listing cache.

Cache-aside storage for ungrouped listing pages, backed by Redis.
The cache is advisory: every Redis failure is logged and treated as
a miss (reads) or a no-op (writes and invalidation).
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from apparel_catalog.domain.exceptions import UpstreamUnavailableError
from apparel_catalog.infrastructure.config import settings

logger = structlog.get_logger()

KEY_PREFIX = "list"

# Errors that mean "the cache is unavailable", never "the request is bad"
CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


@dataclass(frozen=True)
class ListingKeyParams:
    """The dimensions a listing cache key is built from.

    Size and type are canonical reference names, so differently cased
    inputs share one entry.
    """

    page: int
    limit: int
    size: str | None = None
    type: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None


def _format_price(value: Decimal) -> str:
    # Fixed-point without context rounding: 1000, 1000.00 and 1E+3 are all "1000"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def build_listing_key(params: ListingKeyParams) -> str:
    """Build the deterministic cache key for a listing request.

    Grammar:
        list:[size:<v>:][type:<v>:][minPrice:<v>:][maxPrice:<v>:]page:<n>:limit:<n>

    Absent dimensions are omitted; the order is fixed.
    """
    parts = [KEY_PREFIX]
    if params.size is not None:
        parts.append(f"size:{params.size}")
    if params.type is not None:
        parts.append(f"type:{params.type}")
    if params.min_price is not None:
        parts.append(f"minPrice:{_format_price(params.min_price)}")
    if params.max_price is not None:
        parts.append(f"maxPrice:{_format_price(params.max_price)}")
    parts.append(f"page:{params.page}")
    parts.append(f"limit:{params.limit}")
    return ":".join(parts)


class ListingCache:
    """Cache-aside store for listing pages.

    Args:
        client: Async Redis client, or None to run disabled.
        ttl_seconds: Default entry lifetime.
        timeout_seconds: Upper bound on any single cache call.
    """

    def __init__(
        self,
        client: redis.Redis | None,
        ttl_seconds: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds or settings.cache_ttl_seconds
        self.timeout_seconds = timeout_seconds or settings.cache_timeout_seconds

    @property
    def enabled(self) -> bool:
        """Whether a backing Redis client is configured."""
        return self.client is not None

    async def get(self, key: str) -> bytes | None:
        """Get a cached payload.

        Returns:
            Cached bytes, or None on miss or cache failure.
        """
        if self.client is None:
            return None
        try:
            return await self._call(self.client.get(key))
        except UpstreamUnavailableError as e:
            logger.warning("Listing cache read failed", key=key, error=e.message)
            return None

    async def set(self, key: str, payload: bytes, ttl: int | None = None) -> None:
        """Store a payload with a TTL. Failures are logged and ignored."""
        if self.client is None:
            return
        try:
            await self._call(self.client.set(key, payload, ex=ttl or self.ttl_seconds))
        except UpstreamUnavailableError as e:
            logger.warning("Listing cache write failed", key=key, error=e.message)

    async def invalidate_all(self) -> int:
        """Delete every listing entry.

        A single write can move a variant in or out of arbitrarily many
        filter combinations, so all listing keys are dropped.

        Returns:
            Number of deleted keys (0 when the cache is unavailable).
        """
        if self.client is None:
            return 0
        try:
            return await self._call(self._delete_matching(f"{KEY_PREFIX}:*"))
        except UpstreamUnavailableError as e:
            logger.warning("Listing cache invalidation failed", error=e.message)
            return 0

    async def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        batch: list[bytes] = []
        async for key in self.client.scan_iter(match=pattern, count=500):
            batch.append(key)
            if len(batch) >= 500:
                deleted += await self.client.delete(*batch)
                batch = []
        if batch:
            deleted += await self.client.delete(*batch)
        return deleted

    async def _call(self, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except CACHE_ERRORS as e:
            raise UpstreamUnavailableError("cache", str(e) or type(e).__name__) from e
