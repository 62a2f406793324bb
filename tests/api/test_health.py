"""Tests for health check endpoints."""

import httpx
import pytest
from fastapi.testclient import TestClient

from apparel_catalog.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


def test_health_check(client: TestClient) -> None:
    """Test health endpoint returns healthy status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "apparel-catalog"
    assert "version" in data


@pytest.mark.asyncio
async def test_readiness_check(api_client: httpx.AsyncClient) -> None:
    """Test readiness endpoint returns ready when the database answers."""
    response = await api_client.get("/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"
