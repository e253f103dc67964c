from __future__ import annotations

from fastapi.testclient import TestClient

from gcp_adapter import monolith_service


def test_monolith_exposes_all_routes():
    paths = {getattr(route, "path", None) for route in monolith_service.app.routes}
    for path in (
        "/health",
        "/uploads",
        "/users/me",
        "/finalize",
        "/process-video",
        "/videos",
        "/videos/{video_id}",
    ):
        assert path in paths


def test_monolith_health():
    resp = TestClient(monolith_service.app).get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "streamshare-monolith"
