from __future__ import annotations

import json
import os
from functools import lru_cache

from fastapi import FastAPI, Request
from google.cloud import firestore
from pydantic import BaseModel

from gcp_adapter.eventarc import coerce_cloudevent, parse_cloudevent
from gcp_adapter.firestore_store import FirestoreDocumentStore
from gcp_adapter.queue_pubsub import PubSubPublisher
from streamshare_core.config import get_config
from streamshare_core.errors import ValidationError
from streamshare_core.ingestion.finalize import (
    OUTCOME_FAILED,
    OUTCOME_IGNORED,
    FinalizeListener,
)
from streamshare_core.logging import configure_logging, get_logger
from streamshare_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    build_health_response,
)

SERVICE_NAME = "streamshare-finalize"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("STREAMSHARE_VERSION"),
)
logger = get_logger(__name__)

app = FastAPI()
add_correlation_id_middleware(app)


class FinalizeResponse(BaseModel):
    status: str
    video_id: str | None = None


@lru_cache(maxsize=1)
def _firestore_client() -> firestore.Client:
    return firestore.Client(project=get_config().project_id)


@lru_cache(maxsize=1)
def _publisher() -> PubSubPublisher:
    return PubSubPublisher()


def _listener() -> FinalizeListener:
    config = get_config()
    return FinalizeListener(
        document_store=FirestoreDocumentStore(_firestore_client()),
        publisher=_publisher(),
        raw_bucket=config.raw_bucket,
        videos_collection=config.videos_collection,
        staging_collection=config.staging_collection,
        topic=config.topic_path(),
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)


@app.post("/finalize", response_model=FinalizeResponse)
async def finalize(request: Request) -> FinalizeResponse:
    # Always acknowledge: the trigger's own redelivery policy must not be
    # driven by failures here.
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning(
            "Ignoring finalize request with invalid JSON",
            extra={"correlation_id": request.state.correlation_id},
        )
        return FinalizeResponse(status=OUTCOME_IGNORED)

    try:
        event = parse_cloudevent(coerce_cloudevent(body, request.headers.get))
    except ValidationError as exc:
        logger.warning(
            "Ignoring malformed finalize event",
            extra={
                "correlation_id": request.state.correlation_id,
                "error_message": str(exc),
            },
        )
        return FinalizeResponse(status=OUTCOME_IGNORED)

    try:
        listener = _listener()
    except ValueError as exc:
        logger.error(
            "Finalize listener misconfigured",
            extra={"error_message": str(exc)},
        )
        return FinalizeResponse(status=OUTCOME_FAILED)

    outcome = listener.handle(event)
    return FinalizeResponse(status=outcome.status, video_id=outcome.video_id)
