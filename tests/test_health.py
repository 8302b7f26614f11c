"""Banner and health endpoint tests."""

import pytest

from contactbook import __version__


@pytest.mark.asyncio
async def test_banner(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["version"] == __version__
    assert body["data"]["endpoints"]["contacts"] == "/contacts"


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status, version and DB state."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "healthy"
    data = body["data"]
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["version"] == __version__
    assert data["authenticated"] is False
