from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from streamshare_core.errors import PermanentError

STATUS_PROCESSING = "processing"
STATUS_PROCESSED = "processed"
STATUS_ERROR = "error"

VISIBILITY_PUBLIC = "public"
VISIBILITY_UNLISTED = "unlisted"
VISIBILITY_PRIVATE = "private"
VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_UNLISTED, VISIBILITY_PRIVATE)


@dataclass(frozen=True)
class RenditionRef:
    profile_name: str
    location_url: str
    output_file_name: str

    def to_dict(self) -> dict[str, str]:
        return {
            "profile_name": self.profile_name,
            "location_url": self.location_url,
            "output_file_name": self.output_file_name,
        }


@dataclass(frozen=True)
class UploadMetadata:
    """Caller-supplied fields staged before the object exists."""

    title: str | None = None
    description: str | None = None
    visibility: str | None = None
    tags: tuple[str, ...] = ()
    original_file_name: str | None = None
    file_size: int | None = None
    owner_name: str | None = None
    owner_avatar: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UploadMetadata":
        tags = data.get("tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        elif not isinstance(tags, (list, tuple)):
            tags = ()
        file_size = data.get("file_size")
        return cls(
            title=_coerce_str(data.get("title")),
            description=_coerce_str(data.get("description")),
            visibility=_coerce_visibility(data.get("visibility")),
            tags=tuple(str(tag) for tag in tags),
            original_file_name=_coerce_str(data.get("original_file_name")),
            file_size=int(file_size) if isinstance(file_size, (int, float)) else None,
            owner_name=_coerce_str(data.get("owner_name")),
            owner_avatar=_coerce_str(data.get("owner_avatar")),
        )


@dataclass(frozen=True)
class VideoRecord:
    id: str
    owner_id: str
    source_object_path: str
    file_name: str
    title: str
    created_at: datetime
    status: str = STATUS_PROCESSING
    description: str = ""
    visibility: str = VISIBILITY_PUBLIC
    tags: tuple[str, ...] = ()
    owner_name: str = "Unknown User"
    owner_avatar: str = ""
    original_file_name: str = ""
    file_size: int = 0
    outputs: tuple[RenditionRef, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "status": self.status,
            "source_object_path": self.source_object_path,
            "file_name": self.file_name,
            "title": self.title,
            "description": self.description,
            "visibility": self.visibility,
            "tags": list(self.tags),
            "owner_name": self.owner_name,
            "owner_avatar": self.owner_avatar,
            "original_file_name": self.original_file_name or self.file_name,
            "file_size": self.file_size,
            "views": 0,
            "likes": 0,
            "thumbnail_url": "",
            "duration_seconds": 0,
            "outputs": [ref.to_dict() for ref in self.outputs],
            "created_at": self.created_at,
            "updated_at": self.created_at,
        }


@dataclass(frozen=True)
class IngestionEvent:
    video_id: str
    source_object_path: str
    bucket_name: str
    owner_id: str | None = None
    title: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "IngestionEvent":
        if not isinstance(payload, Mapping):
            raise PermanentError("Ingestion event payload must be a JSON object")
        video_id = _coerce_str(payload.get("videoId"))
        source_object_path = _coerce_str(payload.get("sourceObjectPath"))
        bucket_name = _coerce_str(payload.get("bucketName"))
        if not video_id or not source_object_path or not bucket_name:
            raise PermanentError(
                "Ingestion event missing videoId, sourceObjectPath, or bucketName"
            )
        return cls(
            video_id=video_id,
            source_object_path=source_object_path,
            bucket_name=bucket_name,
            owner_id=_coerce_str(payload.get("ownerId")),
            title=_coerce_str(payload.get("title")),
        )

    def to_payload(self) -> dict[str, str | None]:
        return {
            "videoId": self.video_id,
            "sourceObjectPath": self.source_object_path,
            "bucketName": self.bucket_name,
            "ownerId": self.owner_id,
            "title": self.title,
        }


def is_visible_to(record: Mapping[str, Any], caller_uid: str | None) -> bool:
    if caller_uid and record.get("owner_id") == caller_uid:
        return True
    return record.get("visibility", VISIBILITY_PUBLIC) == VISIBILITY_PUBLIC


def _coerce_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_visibility(value: Any) -> str | None:
    text = _coerce_str(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered not in VISIBILITIES:
        return None
    return lowered
