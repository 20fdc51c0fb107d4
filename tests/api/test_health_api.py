"""Tests for liveness and readiness probes."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytestmark = pytest.mark.unit


def test_health(api_client):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_while_draining(api_app, api_client):
    api_app.state.shutting_down = True

    response = api_client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "shutting_down"


def test_ready_degraded_without_database(api_client):
    with (
        patch("lotevivo.db.base.get_session_factory", side_effect=RuntimeError("Database not initialized")),
        patch("lotevivo.api.routes.health.get_settings") as mock_settings,
    ):
        mock_settings.return_value.lot_lock_enabled = False
        response = api_client.get("/api/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "checks": {"database": False}}


def test_ready_with_database_and_redis(api_client):
    session = AsyncMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    factory = MagicMock(return_value=session)
    redis_client = AsyncMock()

    with (
        patch("lotevivo.db.base.get_session_factory", return_value=factory),
        patch("lotevivo.db.redis.get_redis", return_value=redis_client),
        patch("lotevivo.api.routes.health.get_settings") as mock_settings,
    ):
        mock_settings.return_value.lot_lock_enabled = True
        response = api_client.get("/api/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"database": True, "redis": True}
    redis_client.ping.assert_awaited_once()
