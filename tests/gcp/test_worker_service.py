from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from gcp_adapter import worker_service
from streamshare_core.transcode.types import TranscodeResult
from streamshare_core.transcode.worker import TranscodeWorker


class _Transcoder:
    def __init__(self, fail_profile: str | None = None, permanent: bool = False):
        self.fail_profile = fail_profile
        self.permanent = permanent
        self.calls = 0

    def transcode(self, input_path, output_path, profile):
        self.calls += 1
        if profile.name == self.fail_profile:
            return TranscodeResult.failure(
                f"ffmpeg {profile.name} failed: boom", permanent=self.permanent
            )
        Path(output_path).write_bytes(b"out")
        return TranscodeResult.success()


def _envelope(payload) -> dict:
    data = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    return {
        "message": {"data": data, "messageId": "m-1", "attributes": {}},
        "subscription": "projects/streamshare-test/subscriptions/worker",
    }


_EVENT = {
    "videoId": "abc123",
    "sourceObjectPath": "u1/abc123.mp4",
    "bucketName": "test-raw",
    "ownerId": "u1",
    "title": "abc123",
}


@pytest.fixture
def transcoder():
    return _Transcoder()


@pytest.fixture
def client(monkeypatch, tmp_path, document_store, object_store, transcoder):
    document_store.docs("videos")["abc123"] = {
        "id": "abc123",
        "owner_id": "u1",
        "status": "processing",
        "outputs": [],
    }
    object_store.objects[("test-raw", "u1/abc123.mp4")] = b"raw"
    monkeypatch.setattr(
        worker_service,
        "_worker",
        lambda: TranscodeWorker(
            document_store=document_store,
            object_store=object_store,
            transcoder=transcoder,
            videos_collection="videos",
            processed_bucket="test-processed",
            max_raw_bytes=1024,
            scratch_dir=str(tmp_path),
            probe=lambda _path: None,
        ),
    )
    return TestClient(worker_service.app)


def test_process_video_success(client, document_store):
    resp = client.post("/process-video", json=_envelope(_EVENT))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "processed"
    assert [o["profile_name"] for o in body["outputs"]] == ["360p", "720p"]
    assert document_store.docs("videos")["abc123"]["status"] == "processed"


def test_process_video_redelivery_is_skipped(client):
    client.post("/process-video", json=_envelope(_EVENT))
    resp = client.post("/process-video", json=_envelope(_EVENT))
    assert resp.status_code == 200
    assert resp.json()["status"] == "skipped"


def test_process_video_failure_returns_500(client, transcoder, document_store):
    transcoder.fail_profile = "720p"
    resp = client.post("/process-video", json=_envelope(_EVENT))
    assert resp.status_code == 500
    assert "720p" in resp.json()["detail"]
    record = document_store.docs("videos")["abc123"]
    assert record["status"] == "error"
    assert record["outputs"] == []


@pytest.mark.parametrize(
    "body",
    [
        {"message": {"data": "not base64!"}},
        {"nope": True},
        _envelope({"videoId": "abc123"}),
        _envelope(["not", "an", "object"]),
        {"message": {"data": base64.b64encode(b"{broken").decode("ascii")}},
    ],
)
def test_process_video_rejects_bad_messages(client, body, document_store):
    resp = client.post("/process-video", json=body)
    assert resp.status_code == 400
    assert document_store.docs("videos")["abc123"]["status"] == "processing"


def test_permanent_failure_is_acknowledged(client, transcoder, document_store):
    transcoder.fail_profile = "360p"
    transcoder.permanent = True

    resp = client.post("/process-video", json=_envelope(_EVENT))

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["status"] == "error"
    assert "360p" in body["error_message"]
    assert body["outputs"] == []
    record = document_store.docs("videos")["abc123"]
    assert record["status"] == "error"
    assert record["outputs"] == []
    assert transcoder.calls == 1


def test_retryable_failure_still_returns_500(client, transcoder):
    transcoder.fail_profile = "360p"
    codes = [
        client.post("/process-video", json=_envelope(_EVENT)).status_code
        for _ in range(2)
    ]
    assert codes == [500, 500]
    assert transcoder.calls == 2
