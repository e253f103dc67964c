from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gcp_adapter import finalize_service
from streamshare_core.ingestion.finalize import FinalizeListener


@pytest.fixture
def client(monkeypatch, document_store, publisher):
    monkeypatch.setattr(
        finalize_service,
        "_listener",
        lambda: FinalizeListener(
            document_store=document_store,
            publisher=publisher,
            raw_bucket="test-raw",
            videos_collection="videos",
            staging_collection="upload-metadata",
            topic="projects/streamshare-test/topics/video-uploaded",
        ),
    )
    return TestClient(finalize_service.app)


def _cloudevent(bucket="test-raw", name="u1/171-abc123.mp4"):
    return {
        "specversion": "1.0",
        "id": "evt-1",
        "type": "google.cloud.storage.object.v1.finalized",
        "data": {"bucket": bucket, "name": name, "size": "42"},
    }


def test_finalize_creates_record(client, document_store, publisher):
    resp = client.post("/finalize", json=_cloudevent())
    assert resp.status_code == 200
    assert resp.json() == {"status": "created", "video_id": "171-abc123"}
    assert document_store.docs("videos")["171-abc123"]["file_size"] == 42
    assert publisher.messages[0]["attributes"] == {"video_id": "171-abc123"}


def test_finalize_ignores_other_bucket(client, document_store, publisher):
    resp = client.post("/finalize", json=_cloudevent(bucket="somewhere-else"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "ignored"
    assert document_store.calls == []
    assert publisher.messages == []


def test_finalize_acknowledges_failures(client, publisher):
    publisher.fail = RuntimeError("pubsub down")
    resp = client.post("/finalize", json=_cloudevent())
    assert resp.status_code == 200
    assert resp.json()["status"] == "failed"


def test_finalize_ignores_invalid_json(client):
    resp = client.post(
        "/finalize",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "ignored"


def test_finalize_ignores_event_without_bucket(client):
    resp = client.post("/finalize", json={"specversion": "1.0", "data": {"name": "x"}})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ignored"


def test_finalize_misconfiguration_is_acknowledged(monkeypatch):
    def broken():
        raise ValueError("Missing required env vars: RAW_BUCKET")

    monkeypatch.setattr(finalize_service, "_listener", broken)
    resp = TestClient(finalize_service.app).post("/finalize", json=_cloudevent())
    assert resp.status_code == 200
    assert resp.json()["status"] == "failed"
