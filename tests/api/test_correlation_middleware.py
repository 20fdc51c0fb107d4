"""Tests for X-Request-ID propagation and error bodies on the real app.

The lifespan is not entered (no ``with TestClient``), so no database or
Redis is needed.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from lotevivo.main import app

pytestmark = pytest.mark.unit


def test_response_includes_generated_request_id():
    response = TestClient(app).get("/api/health")

    request_id = response.headers["x-request-id"]
    assert uuid.UUID(request_id).hex == request_id


def test_client_request_id_echoed():
    response = TestClient(app).get("/api/health", headers={"X-Request-ID": "kanban-click-42"})

    assert response.headers["x-request-id"] == "kanban-click-42"


def test_oversized_request_id_replaced():
    response = TestClient(app).get("/api/health", headers={"X-Request-ID": "x" * 200})

    assert response.headers["x-request-id"] != "x" * 200


def test_unauthenticated_error_has_debug_id():
    response = TestClient(app).get("/api/production/kanban", params={"chain": "poultry"})

    assert response.status_code == 401
    body = response.json()
    assert body["detail"] == "Missing authorization header"
    uuid.UUID(body["debug_id"])


def test_distinct_requests_get_distinct_ids():
    client = TestClient(app)
    first = client.get("/api/health").headers["x-request-id"]
    second = client.get("/api/health").headers["x-request-id"]

    assert first != second
