"""Test cases for FastAPI application."""

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_check_returns_ok(self, client: TestClient):
        """Test that health endpoint returns healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data


class TestRouting:
    """Test router registration."""

    def test_signature_routes_registered(self, app):
        """Test both v1 routers are mounted under the API prefix."""
        paths = {route.path for route in app.routes}

        assert "/api/v1/signatures/{entity_type}/{entity_id}/sign" in paths
        assert "/api/v1/approval-configurations/templates/grouped" in paths

    def test_routes_require_authentication(self, client: TestClient):
        """Test signature routes refuse anonymous requests."""
        response = client.get("/api/v1/signatures/requirement/1")

        assert response.status_code == 401


class TestCORSConfiguration:
    """Test CORS middleware configuration."""

    def test_cors_headers_present(self, client: TestClient):
        """Test that CORS preflight is answered for allowed origins."""
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
