from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from google.cloud import firestore
from google.cloud import storage
from pydantic import BaseModel, Field

from gcp_adapter.auth import optional_caller
from gcp_adapter.firestore_store import FirestoreDocumentStore
from gcp_adapter.gcs_object_store import GcsObjectStore
from streamshare_core.auth.types import CallerIdentity
from streamshare_core.config import get_config
from streamshare_core.errors import StreamshareError
from streamshare_core.ingestion.intake import UploadIntake, UploadRequest
from streamshare_core.logging import configure_logging, get_logger
from streamshare_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    apply_cors_middleware,
    build_health_response,
    http_error,
)
from streamshare_core.users import UserProfiles

SERVICE_NAME = "streamshare-upload"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("STREAMSHARE_VERSION"),
)
logger = get_logger(__name__)

app = FastAPI()
add_correlation_id_middleware(app)
apply_cors_middleware(app)


class UploadUrlRequest(BaseModel):
    model_config = {"populate_by_name": True}

    file_name: str | None = Field(default=None, alias="fileName")
    content_type: str | None = Field(default=None, alias="contentType")
    metadata: dict[str, Any] | None = None


class UploadUrlResponse(BaseModel):
    upload_url: str
    file_path: str
    expires_at: str


class UserProfileResponse(BaseModel):
    success: bool
    uid: str
    message: str


@lru_cache(maxsize=1)
def _firestore_client() -> firestore.Client:
    return firestore.Client(project=get_config().project_id)


@lru_cache(maxsize=1)
def _storage_client() -> storage.Client:
    return storage.Client(project=get_config().project_id)


def _intake() -> UploadIntake:
    config = get_config()
    return UploadIntake(
        object_store=GcsObjectStore(_storage_client(), public_url=config.public_url),
        document_store=FirestoreDocumentStore(_firestore_client()),
        raw_bucket=config.raw_bucket,
        staging_collection=config.staging_collection,
    )


def _profiles() -> UserProfiles:
    return UserProfiles(
        document_store=FirestoreDocumentStore(_firestore_client()),
        users_collection=get_config().users_collection,
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)


@app.post("/uploads", response_model=UploadUrlResponse)
def create_upload_url(
    payload: UploadUrlRequest,
    caller: CallerIdentity | None = Depends(optional_caller),
) -> UploadUrlResponse:
    try:
        intake = _intake()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        grant = intake.issue_upload_url(
            UploadRequest(
                file_name=payload.file_name,
                content_type=payload.content_type,
                metadata=payload.metadata,
            ),
            caller,
        )
    except StreamshareError as exc:
        raise http_error(exc) from exc
    return UploadUrlResponse(
        upload_url=grant.upload_url,
        file_path=grant.object_path,
        expires_at=grant.expires_at.isoformat(),
    )


@app.post("/users/me", response_model=UserProfileResponse)
def create_user_profile(
    caller: CallerIdentity | None = Depends(optional_caller),
) -> UserProfileResponse:
    try:
        profiles = _profiles()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    try:
        doc = profiles.ensure_profile(caller)
    except StreamshareError as exc:
        raise http_error(exc) from exc
    return UserProfileResponse(
        success=True,
        uid=str(doc["uid"]),
        message="User document created",
    )
