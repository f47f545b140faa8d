from __future__ import annotations

from fastapi.testclient import TestClient

from app.db.session import dispose_engine
from app.main import app


def teardown_module() -> None:  # pragma: no cover - test cleanup
    dispose_engine()


def test_health_endpoint_reports_model() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["model"]


def test_database_health_endpoint_success() -> None:
    client = TestClient(app)
    response = client.get("/healthz/database")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "dialect": "sqlite"}


def test_database_health_endpoint_failure(monkeypatch) -> None:
    client = TestClient(app)

    def raise_runtime_error():
        raise RuntimeError("missing database url")

    monkeypatch.setattr("app.main.get_engine", raise_runtime_error)
    response = client.get("/healthz/database")
    assert response.status_code == 503
    assert response.json()["detail"] == "missing database url"
