from __future__ import annotations

import os
from functools import lru_cache, partial
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from google.cloud import firestore
from google.cloud import storage
from pydantic import BaseModel, Field

from gcp_adapter.firestore_store import FirestoreDocumentStore
from gcp_adapter.gcs_object_store import GcsObjectStore
from gcp_adapter.queue_pubsub import parse_pubsub_push
from streamshare_core.config import get_config
from streamshare_core.errors import PermanentError
from streamshare_core.logging import configure_logging, get_logger
from streamshare_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    build_health_response,
)
from streamshare_core.transcode.ffmpeg import FfmpegTranscoder, probe_duration_seconds
from streamshare_core.transcode.worker import TranscodeWorker
from streamshare_core.videos.types import STATUS_ERROR, IngestionEvent

SERVICE_NAME = "streamshare-video-processor"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("STREAMSHARE_VERSION"),
)
logger = get_logger(__name__)

app = FastAPI()
add_correlation_id_middleware(app)


class RenditionResponse(BaseModel):
    profile_name: str
    location_url: str
    output_file_name: str


class ProcessVideoResponse(BaseModel):
    success: bool
    status: str
    video_id: str
    outputs: list[RenditionResponse] = Field(default_factory=list)
    error_message: str | None = None


@lru_cache(maxsize=1)
def _firestore_client() -> firestore.Client:
    return firestore.Client(project=get_config().project_id)


@lru_cache(maxsize=1)
def _storage_client() -> storage.Client:
    return storage.Client(project=get_config().project_id)


def _worker() -> TranscodeWorker:
    config = get_config()
    return TranscodeWorker(
        document_store=FirestoreDocumentStore(_firestore_client()),
        object_store=GcsObjectStore(_storage_client(), public_url=config.public_url),
        transcoder=FfmpegTranscoder(timeout_seconds=config.ffmpeg_timeout_seconds),
        videos_collection=config.videos_collection,
        processed_bucket=config.processed_bucket,
        max_raw_bytes=config.max_raw_bytes,
        scratch_dir=config.scratch_dir,
        probe=partial(
            probe_duration_seconds,
            timeout_seconds=config.ffmpeg_timeout_seconds,
        ),
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)


@app.post("/process-video", response_model=ProcessVideoResponse)
def process_video(
    request: Request,
    body: Any = Body(default=None),
) -> ProcessVideoResponse:
    try:
        message = parse_pubsub_push(body)
        event = IngestionEvent.from_payload(message.json())
    except (ValueError, PermanentError) as exc:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors too.
        logger.warning(
            "Rejected ingestion message",
            extra={
                "correlation_id": request.state.correlation_id,
                "error_message": str(exc),
            },
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info(
        "Received ingestion event",
        extra={
            "video_id": event.video_id,
            "bucket": event.bucket_name,
            "object_path": event.source_object_path,
            "message_id": message.message_id,
            "correlation_id": request.state.correlation_id,
        },
    )
    try:
        worker = _worker()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    try:
        result = worker.process(event)
    except PermanentError as exc:
        # Permanent failures are acknowledged; only retryable ones return 500.
        logger.warning(
            "Video processing failed permanently",
            extra={
                "video_id": event.video_id,
                "correlation_id": request.state.correlation_id,
                "error_code": "PERMANENT",
                "error_message": str(exc),
            },
        )
        return ProcessVideoResponse(
            success=False,
            status=STATUS_ERROR,
            video_id=event.video_id,
            error_message=str(exc),
        )
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ProcessVideoResponse(
        success=True,
        status=result.status,
        video_id=result.video_id,
        outputs=[RenditionResponse(**ref.to_dict()) for ref in result.outputs],
    )
