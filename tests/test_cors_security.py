"""Tests for CORS configuration and security headers."""

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestCORSConfiguration:
    """Test CORS configuration adheres to security requirements."""

    def test_cors_preflight_request(self, client):
        """Test CORS preflight request for the streaming chat endpoint."""
        response = client.options(
            "/api/v1/chat",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_cors_simple_request_allowed_origin(self, client):
        response = client.get(
            "/api/v1/health",
            headers={"Origin": "http://127.0.0.1:3000"},
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "http://127.0.0.1:3000"
        assert "X-Correlation-ID" in response.headers["Access-Control-Expose-Headers"]

    def test_cors_request_from_disallowed_origin(self, client):
        """Test CORS does not echo disallowed origins."""
        response = client.get(
            "/api/v1/health",
            headers={"Origin": "http://malicious-site.com"},
        )

        assert response.status_code == 200
        assert (
            response.headers.get("Access-Control-Allow-Origin")
            != "http://malicious-site.com"
        )


class TestCORSConfigValidation:
    """Test CORS configuration validation logic."""

    def test_cors_credentials_with_wildcard_prevented(self):
        with pytest.raises(ValueError, match="CORS configuration error"):
            Settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=True)

    def test_cors_wildcard_allowed_without_credentials(self):
        settings = Settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=False)
        assert settings.CORS_ORIGINS == ["*"]

    def test_cors_origins_csv_parsing(self):
        settings = Settings(
            CORS_ORIGINS="http://localhost:3000,https://app.example.com, http://127.0.0.1:3000",
        )

        assert settings.CORS_ORIGINS == [
            "http://localhost:3000",
            "https://app.example.com",
            "http://127.0.0.1:3000",
        ]

    def test_cors_origins_json_parsing(self):
        settings = Settings(
            CORS_ORIGINS='["http://localhost:3000", "https://app.example.com"]',
        )

        assert settings.CORS_ORIGINS == ["http://localhost:3000", "https://app.example.com"]

    def test_cors_origins_invalid_json(self):
        with pytest.raises(ValueError, match="CSV list or JSON array"):
            Settings(CORS_ORIGINS="[not json")
