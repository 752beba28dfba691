"""Tests for health check endpoint."""

from unittest.mock import MagicMock, patch

from django.test import Client


def _settings(gemini: bool, rye: bool) -> MagicMock:
    settings = MagicMock()
    settings.gemini.is_configured = gemini
    settings.rye.is_configured = rye
    return settings


class TestHealthCheck:
    """Tests for the health check endpoint."""

    def test_health_check_returns_200_when_configured(self, test_client: Client) -> None:
        """Health check should return 200 when Gemini and Rye are configured."""
        with patch("core.health.get_settings", return_value=_settings(True, True)):
            response = test_client.get("/health/")

        assert response.status_code == 200
        assert response["Content-Type"] == "application/json"
        assert response.json()["status"] == "healthy"

    def test_health_check_lists_services(self, test_client: Client) -> None:
        """Health check response should report each external service."""
        with patch("core.health.get_settings", return_value=_settings(True, True)):
            data = test_client.get("/health/").json()

        assert set(data["checks"]) == {"gemini", "rye"}

    def test_health_check_returns_503_when_rye_missing(self, test_client: Client) -> None:
        """Health check should return 503 when a service has no credentials."""
        with patch("core.health.get_settings", return_value=_settings(True, False)):
            response = test_client.get("/health/")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["rye"] == {"status": "unhealthy", "error": "not configured"}
        assert data["checks"]["gemini"]["status"] == "healthy"
