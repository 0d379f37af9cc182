"""
Tests for the FastAPI application health and environment probes.
"""

import pytest
from unittest.mock import patch, AsyncMock
from httpx import AsyncClient, ASGITransport


@pytest.mark.anyio
async def test_health_endpoint_healthy():
    """Health endpoint should return healthy when DB is connected."""
    with patch("ledger.main.check_db_connection", new_callable=AsyncMock, return_value=True):
        from ledger.main import app
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/health")
            assert response.status_code == 200
            data = response.json()
            assert data["status"] == "healthy"
            assert data["database"] == "connected"
            assert data["service"] == "Publication Ledger"


@pytest.mark.anyio
async def test_health_endpoint_degraded():
    """Health endpoint should return degraded when DB is disconnected."""
    with patch("ledger.main.check_db_connection", new_callable=AsyncMock, return_value=False):
        from ledger.main import app
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/health")
            assert response.status_code == 200
            data = response.json()
            assert data["status"] == "degraded"
            assert data["database"] == "disconnected"


@pytest.mark.anyio
async def test_check_db_connection_against_real_engine(engine):
    from ledger.database import check_db_connection
    assert await check_db_connection(engine) is True
    assert await check_db_connection(None) is False


@pytest.mark.anyio
async def test_environment_probe_never_leaks_secrets(services):
    probe = services.facade.environment_probe()
    assert probe["has_database_url"] is True
    assert probe["has_api_key"] is False
    assert probe["database_url_prefix"].endswith("...")
    assert len(probe["database_url_prefix"]) == 23
