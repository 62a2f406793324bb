"""Shared fixtures.

Store tests run against an in-memory SQLite database through aiosqlite.
Redis is replaced by an in-process async double that implements the
handful of commands the listing cache and audit publisher use.
"""

import fnmatch
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from apparel_catalog.catalog.cache import ListingCache
from apparel_catalog.catalog.models import DesignType, SizeReference  # noqa: F401
from apparel_catalog.catalog.references import ReferenceResolver
from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.catalog.service import CatalogService
from apparel_catalog.infrastructure.audit import AuditPublisher
from apparel_catalog.infrastructure.database import (
    build_engine,
    build_session_factory,
    create_tables,
)

SIZES = [("M", "Medium", 0), ("L", "Large", 1), ("XL", "Extra Large", 2), ("XXL", "Double Extra Large", 3)]
DESIGN_TYPES = ["Casual", "Formal", "Wedding", "Sports", "Vintage"]


# ============================================================================
# Redis Double
# ============================================================================


class InMemoryRedis:
    """Async stand-in for redis.asyncio.Redis (string and list commands)."""

    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.ttls: dict[str, int | None] = {}
        self.lists: dict[str, list[Any]] = {}

    async def get(self, key: str) -> bytes | None:
        return self.store.get(key)

    async def set(self, key: str, value: bytes, ex: int | None = None) -> bool:
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()
        self.ttls[key] = ex
        return True

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key.encode()

    async def delete(self, *keys: Any) -> int:
        deleted = 0
        for key in keys:
            name = key.decode() if isinstance(key, bytes) else key
            if self.store.pop(name, None) is not None:
                deleted += 1
            self.ttls.pop(name, None)
        return deleted

    async def rpush(self, key: str, *values: Any) -> int:
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        items = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        self.lists[key] = items[start:stop]
        return True

    async def aclose(self) -> None:
        pass


class FailingRedis:
    """Redis double whose every command fails as if the server were down."""

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self, *args: Any, **kwargs: Any) -> Any:
        self.calls += 1
        raise RedisConnectionError("Connection refused")

    get = set = delete = rpush = ltrim = _fail

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        self.calls += 1
        raise RedisConnectionError("Connection refused")
        yield  # pragma: no cover

    async def aclose(self) -> None:
        pass


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with the catalog schema and reference data."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    async with build_session_factory(engine)() as session:
        repository = CatalogRepository(session)
        for name, display_name, sort_order in SIZES:
            await repository.upsert_size(name, display_name, sort_order)
        for name in DESIGN_TYPES:
            await repository.upsert_design_type(name)
        await session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for the duration of one test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def repository(session) -> CatalogRepository:
    """Catalog repository on the test session."""
    return CatalogRepository(session)


@pytest.fixture
def references(session_factory) -> ReferenceResolver:
    """Reference resolver over the seeded lookup tables."""
    return ReferenceResolver(session_factory)


# ============================================================================
# Cache / Audit Fixtures
# ============================================================================


@pytest.fixture
def redis_client() -> InMemoryRedis:
    """In-process Redis double."""
    return InMemoryRedis()


@pytest.fixture
def failing_redis() -> FailingRedis:
    """Redis double that is always down."""
    return FailingRedis()


@pytest.fixture
def cache(redis_client) -> ListingCache:
    """Listing cache over the Redis double."""
    return ListingCache(redis_client, ttl_seconds=300, timeout_seconds=1.0)


@pytest.fixture
def audit(redis_client) -> AuditPublisher:
    """Audit publisher over the Redis double."""
    return AuditPublisher(redis_client, queue_key="catalog:audit", max_length=100)


@pytest.fixture
def service(session, references, cache, audit) -> CatalogService:
    """Catalog service wired to the test database and Redis double."""
    return CatalogService(session, references, cache, audit)
