"""Shared fixtures for API tests."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from apparel_catalog.catalog.references import ReferenceResolver
from apparel_catalog.infrastructure.database import get_session
from apparel_catalog.main import app


@pytest.fixture
async def api_client(
    session_factory, cache, audit
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create an async client against the app, wired to the test database."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.state.references = ReferenceResolver(session_factory)
    app.state.cache = cache
    app.state.audit = audit

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await audit.drain()
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> dict[str, str]:
    """Headers of an authenticated seller."""
    return {"X-Owner-Id": "seller-1"}


@pytest.fixture
def other_owner_headers() -> dict[str, str]:
    """Headers of a different seller."""
    return {"X-Owner-Id": "seller-2"}
