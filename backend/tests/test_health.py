from __future__ import annotations

from military_assets.config import settings


def test_health_reports_database_status(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["database"] == "ok"
    assert payload["timestamp"]


def test_root_points_at_docs(client) -> None:
    assert client.get("/").json()["docs"] == "/docs"


def test_openapi_title_comes_from_settings(client) -> None:
    assert client.get("/openapi.json").json()["info"]["title"] == settings.APP_NAME
