"""Tests for health check endpoint."""

import pytest
from httpx import AsyncClient


class TestHealthCheck:
    """Tests for /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_response_structure(self, client: AsyncClient):
        """Test health response has correct structure."""
        response = await client.get("/health")
        data = response.json()

        assert "status" in data
        assert "timestamp" in data
        assert "uptime_seconds" in data
        assert data["version"] == "0.1.0"
        assert set(data["checks"]) == {"database", "redis"}

    @pytest.mark.asyncio
    async def test_healthy_without_redis(self, client: AsyncClient):
        """Redis is optional: not configuring it does not degrade health."""
        response = await client.get("/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == {"status": "healthy"}
        assert data["checks"]["redis"] == {"status": "disabled"}

    @pytest.mark.asyncio
    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
