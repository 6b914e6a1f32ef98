"""Tests for the health and readiness endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from seedkeep.infrastructure.api.app import create_app
from seedkeep.infrastructure.persistence.store import InventoryStore


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready(client):
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


@pytest.mark.asyncio
async def test_not_ready_when_store_closed():
    app = create_app(store=InventoryStore("sqlite+aiosqlite:///:memory:"))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/ready")
    assert response.status_code == 503
