"""Tests for the health endpoint."""
import pytest
from httpx import AsyncClient, ASGITransport

from app.main import app


@pytest.mark.asyncio
async def test_health_returns_200():
    """GET /health should return HTTP 200 with status ok."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_request_id_is_echoed():
    """A caller-supplied X-Request-ID comes back unchanged; otherwise one is minted."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        echoed = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        minted = await client.get("/health")
    assert echoed.headers["X-Request-ID"] == "abc-123"
    assert minted.headers["X-Request-ID"]
