from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from google.cloud import firestore

from gcp_adapter.auth import optional_caller
from gcp_adapter.firestore_store import FirestoreDocumentStore
from streamshare_core.auth.types import CallerIdentity
from streamshare_core.config import get_config
from streamshare_core.errors import StreamshareError
from streamshare_core.logging import configure_logging, get_logger
from streamshare_core.query.videos import VideoQuery
from streamshare_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    apply_cors_middleware,
    build_health_response,
    http_error,
)

SERVICE_NAME = "streamshare-query"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("STREAMSHARE_VERSION"),
)
logger = get_logger(__name__)

app = FastAPI()
add_correlation_id_middleware(app)
apply_cors_middleware(app)


@lru_cache(maxsize=1)
def _firestore_client() -> firestore.Client:
    return firestore.Client(project=get_config().project_id)


def _video_query() -> VideoQuery:
    return VideoQuery(
        document_store=FirestoreDocumentStore(_firestore_client()),
        videos_collection=get_config().videos_collection,
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)


@app.get("/videos")
def list_videos(
    mine: bool = False,
    caller: CallerIdentity | None = Depends(optional_caller),
) -> list[dict[str, Any]]:
    if mine and caller is None:
        raise HTTPException(status_code=401, detail="User must be authenticated")
    try:
        query = _video_query()
    except Exception as exc:
        logger.error("Error fetching videos", extra={"error_message": str(exc)})
        return []
    return query.list_videos(caller.uid if caller else None, owner_only=mine)


@app.get("/videos/{video_id}")
def get_video(
    video_id: str,
    caller: CallerIdentity | None = Depends(optional_caller),
) -> dict[str, Any]:
    try:
        query = _video_query()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        return query.get_video(video_id, caller.uid if caller else None)
    except StreamshareError as exc:
        raise http_error(exc) from exc
