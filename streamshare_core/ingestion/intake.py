from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable

from streamshare_core.auth.types import CallerIdentity
from streamshare_core.errors import AuthError, InternalError, ValidationError
from streamshare_core.logging import get_logger
from streamshare_core.storage.paths import build_object_path, staging_doc_id
from streamshare_core.stores.interfaces import DocumentStore, ObjectStore
from streamshare_core.videos.types import VISIBILITIES

UPLOAD_URL_TTL = timedelta(minutes=15)

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadRequest:
    file_name: str | None
    content_type: str | None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class UploadGrant:
    upload_url: str
    object_path: str
    expires_at: datetime


def _now_ms() -> int:
    return int(time.time() * 1000)


class UploadIntake:
    """Issues single-object write capabilities for raw uploads."""

    def __init__(
        self,
        *,
        object_store: ObjectStore,
        document_store: DocumentStore,
        raw_bucket: str,
        staging_collection: str,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self.object_store = object_store
        self.document_store = document_store
        self.raw_bucket = raw_bucket
        self.staging_collection = staging_collection
        self._clock_ms = clock_ms

    def issue_upload_url(
        self,
        request: UploadRequest,
        caller: CallerIdentity | None,
    ) -> UploadGrant:
        if caller is None:
            raise AuthError("User must be authenticated")
        file_name = (request.file_name or "").strip()
        content_type = (request.content_type or "").strip()
        if not file_name or not content_type:
            raise ValidationError("fileName and contentType are required")
        issued_ms = self._clock_ms()
        issued_at = datetime.fromtimestamp(issued_ms / 1000.0, tz=timezone.utc)
        staged = None
        if request.metadata is not None:
            staged = _staging_fields(request.metadata, caller, issued_at)

        object_path = build_object_path(caller.uid, file_name, issued_ms)
        try:
            upload_url = self.object_store.mint_write_capability(
                self.raw_bucket,
                object_path,
                content_type,
                UPLOAD_URL_TTL,
            )
        except Exception as exc:
            logger.error(
                "Failed to mint upload URL",
                extra={
                    "owner_id": caller.uid,
                    "object_path": object_path,
                    "error_message": str(exc),
                },
            )
            raise InternalError(f"Failed to generate upload URL: {exc}") from exc

        if staged is not None:
            self._stage_metadata(object_path, staged)

        expires_at = issued_at + UPLOAD_URL_TTL
        logger.info(
            "Issued upload URL",
            extra={"owner_id": caller.uid, "object_path": object_path},
        )
        return UploadGrant(
            upload_url=upload_url,
            object_path=object_path,
            expires_at=expires_at,
        )

    def _stage_metadata(self, object_path: str, staged: dict[str, Any]) -> None:
        try:
            self.document_store.upsert(
                self.staging_collection,
                staging_doc_id(object_path),
                {**staged, "object_path": object_path},
            )
        except Exception as exc:
            # The URL is already minted; the upload proceeds with defaults.
            logger.warning(
                "Failed to stage upload metadata",
                extra={"object_path": object_path, "error_message": str(exc)},
            )


def _staging_fields(
    metadata: dict[str, Any],
    caller: CallerIdentity,
    issued_at: datetime,
) -> dict[str, Any]:
    visibility = metadata.get("visibility")
    if visibility is not None and str(visibility).lower() not in VISIBILITIES:
        allowed = ", ".join(VISIBILITIES)
        raise ValidationError(f"visibility must be one of: {allowed}")
    fields: dict[str, Any] = {
        "title": _optional_str(metadata.get("title")),
        "description": _optional_str(metadata.get("description")),
        "visibility": str(visibility).lower() if visibility is not None else None,
        "tags": _tag_list(metadata.get("tags")),
        "original_file_name": _optional_str(
            metadata.get("original_file_name") or metadata.get("originalFileName")
        ),
        "file_size": _optional_int(metadata.get("file_size") or metadata.get("fileSize")),
        "owner_id": caller.uid,
        "owner_email": caller.email,
        "owner_name": caller.display_name or caller.email,
        "owner_avatar": caller.photo_url or "",
        "created_at": issued_at,
    }
    return fields


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _tag_list(value: Any) -> list[str]:
    if value is None:
        return []
    items: Iterable[Any]
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ValidationError("tags must be a list of strings")
    cleaned = [str(item).strip() for item in items if str(item).strip()]
    return list(dict.fromkeys(cleaned))
