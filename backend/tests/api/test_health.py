"""Health check tests for the API."""

from fastapi.testclient import TestClient


def test_health(client: TestClient):
    response = client.get("/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["qti_default_version"] == "2.1"
    assert data["rule_version"] == "1.0"


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/v1/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated(client: TestClient):
    response = client.get("/v1/health")
    assert response.headers.get("X-Request-ID")


def test_root(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "QTI Bridge API"


def test_malformed_request_id_is_replaced(client: TestClient):
    response = client.get("/v1/health", headers={"X-Request-ID": "bad id <script>"})

    request_id = response.headers["X-Request-ID"]
    assert request_id != "bad id <script>"
    assert len(request_id) == 36
