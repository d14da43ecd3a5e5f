"""Tests for the analytics report HTTP endpoint."""

import time

import pytest
from fastapi.testclient import TestClient

from coogmusic.api import app as app_module
from coogmusic.api.routes import reports
from coogmusic.services.analytics import ReportConfig, ReportEngine
from coogmusic.tests.fakes import FailingRepository, InMemoryRepository


class SlowRepository(InMemoryRepository):
    def find_users(self, user_types, statuses):
        time.sleep(0.5)
        return super().find_users(user_types, statuses)


@pytest.fixture
def client_for(monkeypatch):
    engines = []

    def build(repository, config: ReportConfig) -> TestClient:
        engine = ReportEngine(repository, config)
        engines.append(engine)
        monkeypatch.setattr(reports, "get_report_engine", lambda: engine)
        return TestClient(app_module.app)

    yield build
    for engine in engines:
        engine.close()


def test_aggregate_report_with_camel_case_fields(client_for, catalog, config):
    client = client_for(catalog, config)
    response = client.post(
        "/api/analytics/report",
        json={
            "startDate": "2024-01-01",
            "endDate": "2024-12-31",
            "mode": "aggregate",
            "includeListeners": True,
            "includeArtists": True,
            "includePlaylistStats": True,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["kind"] == "aggregate"
    assert body["playlist_activity"]["status"] == "populated"
    assert body["album_activity"]["status"] == "disabled"


def test_snake_case_fields_are_accepted(client_for, catalog, config):
    client = client_for(catalog, config)
    response = client.post(
        "/api/analytics/report",
        json={"start_date": "2024-01-01", "end_date": "2024-12-31", "mode": "individual", "username": "alice"},
    )
    assert response.status_code == 200
    assert response.json()["kind"] == "individual_listener"


def test_validation_errors_are_bad_requests(client_for, catalog, config):
    client = client_for(catalog, config)
    response = client.post(
        "/api/analytics/report",
        json={"startDate": "2024-02-01", "endDate": "2024-01-01", "includeListeners": True},
    )
    assert response.status_code == 400

    response = client.post("/api/analytics/report", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
    assert response.status_code == 400
    assert "user type" in response.json()["detail"]


def test_unknown_user_is_not_found(client_for, catalog, config):
    client = client_for(catalog, config)
    response = client.post(
        "/api/analytics/report",
        json={"startDate": "2024-01-01", "endDate": "2024-12-31", "mode": "individual", "username": "ghost_user"},
    )
    assert response.status_code == 404
    assert "ghost_user" in response.json()["detail"]


def test_storage_failure_is_server_error(client_for, config):
    client = client_for(FailingRepository("find_users"), config)
    response = client.post(
        "/api/analytics/report",
        json={"startDate": "2024-01-01", "endDate": "2024-12-31", "includeListeners": True},
    )
    assert response.status_code == 500


def test_deadline_exceeded(client_for):
    client = client_for(SlowRepository(), ReportConfig(timeout_seconds=0.05))
    response = client.post(
        "/api/analytics/report",
        json={"startDate": "2024-01-01", "endDate": "2024-12-31", "includeListeners": True},
    )
    assert response.status_code == 504


def test_health_without_database(monkeypatch):
    monkeypatch.delenv("COOGMUSIC_DATABASE_URL", raising=False)
    response = TestClient(app_module.app).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
