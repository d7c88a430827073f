"""Tests for health endpoint."""

import pytest

from httpx import ASGITransport, AsyncClient


@pytest.mark.anyio
async def test_health_endpoint():
    """Test that health endpoint returns ok status."""
    from reelswipe.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
