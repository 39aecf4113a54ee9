"""Integration tests for /health, /healthz and /metrics endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from resume_backend.app.api.routes.health import check_db
from resume_backend.app.config import Settings
from resume_backend.app.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("resume_backend.app.api.routes.health.check_db")
    def test_healthz_returns_200_when_db_ok(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        mock_check_db.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "components": {"db": "ok"}}

    @patch("resume_backend.app.api.routes.health.check_db")
    def test_healthz_returns_503_when_db_fails(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "error: OperationalError")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "error: OperationalError"

    @pytest.mark.asyncio
    async def test_check_db_against_sqlite(self) -> None:
        settings = Settings(database_url="sqlite+aiosqlite:///:memory:")

        assert await check_db(settings) == (True, "ok")

    @pytest.mark.asyncio
    async def test_check_db_reports_placeholder_url(self) -> None:
        settings = Settings(database_url="")

        ok, status = await check_db(settings)

        assert ok is False
        assert status == "error: ValueError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    def test_metrics_lists_composition_counters(self, client: TestClient) -> None:
        response = client.get("/metrics")

        body = response.text
        assert "composition_operations_total" in body
        assert "composition_latency_ms" in body

