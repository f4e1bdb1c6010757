"""Tests for health endpoints."""

from fastapi.testclient import TestClient

from burstlet import __version__


def test_health_endpoint(test_client: TestClient) -> None:
    """Test the basic health endpoint."""
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["mode"] == "full"
    assert data["version"] == __version__
    assert data["frontend_url"] == "Not configured"
    assert data["uptime"] >= 0
    assert set(data["services"]) == {
        "database",
        "redis",
        "supabase",
        "openai",
        "hailuoai",
        "minimax",
        "stripe",
    }
    assert data["services"]["openai"] is False
    assert data["services"]["database"] is True


def test_liveness_endpoint(test_client: TestClient) -> None:
    """Test the liveness probe endpoint."""
    response = test_client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_readiness_reports_database(test_client: TestClient) -> None:
    response = test_client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["database"] is True
    # No Redis configured in tests
    assert data["redis"] is False
    assert data["ready"] is False


def test_root_endpoint(test_client: TestClient) -> None:
    """Test the root endpoint."""
    response = test_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Burstlet API"
    assert data["status"] == "operational"
    assert data["endpoints"]["health"] == "/health"
    assert data["endpoints"]["docs"] == "/docs"


def test_cors_preflight_echoes_allowed_origin(test_client: TestClient) -> None:
    response = test_client.options(
        "/api/v1/generation/video",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_unknown_route_is_404(test_client: TestClient) -> None:
    response = test_client.get("/api/v1/nope")
    assert response.status_code == 404
