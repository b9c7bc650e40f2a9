"""Tests for health endpoints."""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient


def test_health_endpoint(test_client: TestClient) -> None:
    """Test the basic health endpoint."""
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"] == {"directory": False, "storage": False, "notifier": False}


def test_liveness_endpoint(test_client: TestClient) -> None:
    """Test the liveness probe endpoint."""
    response = test_client.get("/health/live")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "alive"


def test_readiness_endpoint(api_client: TestClient) -> None:
    """Readiness reports each dependency."""
    fake_redis = MagicMock()
    with patch("redis.from_url", return_value=fake_redis):
        response = api_client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["database"] is True
    assert data["redis"] is True
    assert data["directory"]["success"] is True
    assert data["storage"] is True
    assert data["ready"] is True


def test_readiness_redis_down(api_client: TestClient) -> None:
    """An unreachable Redis makes the service not ready."""
    with patch("redis.from_url", side_effect=ConnectionError("refused")):
        response = api_client.get("/health/ready")

    data = response.json()
    assert data["redis"] is False
    assert data["ready"] is False


def test_root_endpoint(test_client: TestClient) -> None:
    """Test the root endpoint."""
    response = test_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "version" in data
    assert "docs" in data
