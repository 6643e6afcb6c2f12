# tests/test_health.py

from __future__ import annotations

from fastapi.testclient import TestClient

from product_api.main import create_app


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200

    data = r.json()
    assert data["status"] == "ok"
    assert data["service"] == "product-api"
    assert data["version"] == "0.1.0"
    assert data["env"] == "test"


def test_ready_ok_when_database_reachable(client):
    r = client.get("/health/ready")

    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok"}


def test_ready_503_when_database_unreachable(settings, broken_store):
    with TestClient(create_app(settings=settings, store=broken_store)) as c:
        r = c.get("/health/ready")

    assert r.status_code == 503
    assert r.json()["database"] == "unreachable"


def test_health_stays_up_when_database_unreachable(settings, broken_store):
    with TestClient(create_app(settings=settings, store=broken_store)) as c:
        assert c.get("/health").status_code == 200


def test_openapi_exposes_product_routes(client):
    paths = client.get("/openapi.json").json()["paths"]

    assert "/products" in paths
    assert "/products/{product_id}" in paths
