from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from streamshare_core.ingestion.storage_event import StorageEvent
from streamshare_core.logging import get_logger
from streamshare_core.storage.paths import (
    ObjectPathParts,
    normalize_bucket_name,
    parse_object_path,
    staging_doc_id,
    strip_extension,
)
from streamshare_core.stores.interfaces import DocumentStore, EventPublisher
from streamshare_core.videos.types import (
    STATUS_PROCESSING,
    VISIBILITY_PUBLIC,
    IngestionEvent,
    UploadMetadata,
    VideoRecord,
)

logger = get_logger(__name__)

OUTCOME_IGNORED = "ignored"
OUTCOME_CREATED = "created"
OUTCOME_FAILED = "failed"


@dataclass(frozen=True)
class FinalizeOutcome:
    status: str
    video_id: str | None = None
    message_id: str | None = None
    error_message: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FinalizeListener:
    """Turns a completed raw upload into a video record plus one ingestion event.

    Failures are logged and reported through the returned outcome; nothing is
    raised back to the storage trigger.
    """

    def __init__(
        self,
        *,
        document_store: DocumentStore,
        publisher: EventPublisher,
        raw_bucket: str,
        videos_collection: str,
        staging_collection: str,
        topic: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.document_store = document_store
        self.publisher = publisher
        self.raw_bucket = normalize_bucket_name(raw_bucket)
        self.videos_collection = videos_collection
        self.staging_collection = staging_collection
        self.topic = topic
        self._clock = clock

    def handle(self, event: StorageEvent) -> FinalizeOutcome:
        if not event.name:
            logger.info(
                "No object path on finalize event",
                extra={"bucket": event.bucket},
            )
            return FinalizeOutcome(status=OUTCOME_IGNORED)
        if normalize_bucket_name(event.bucket) != self.raw_bucket:
            logger.info(
                "Ignoring finalize event outside raw bucket",
                extra={"bucket": event.bucket, "object_path": event.name},
            )
            return FinalizeOutcome(status=OUTCOME_IGNORED)

        logger.info(
            "Processing video upload",
            extra={"bucket": event.bucket, "object_path": event.name},
        )
        video_id: str | None = None
        try:
            parts = parse_object_path(event.name)
            video_id = parts.video_id
            existing = self.document_store.get(self.videos_collection, video_id)
            if existing is not None and _is_duplicate(existing, event.name):
                logger.info(
                    "Video record already exists, ignoring duplicate finalize",
                    extra={
                        "video_id": video_id,
                        "object_path": event.name,
                        "status": existing.get("status"),
                    },
                )
                return FinalizeOutcome(status=OUTCOME_IGNORED, video_id=video_id)
            staged = self._consume_staging(event.name)
            record = self._build_record(event, parts, staged)
            doc = record.to_dict()
            if existing and existing.get("created_at") is not None:
                doc["created_at"] = existing["created_at"]
            self.document_store.upsert(self.videos_collection, record.id, doc)
            logger.info(
                "Created video record",
                extra={"video_id": record.id, "owner_id": record.owner_id},
            )
            ingestion = IngestionEvent(
                video_id=record.id,
                source_object_path=event.name,
                bucket_name=event.bucket,
                owner_id=record.owner_id,
                title=record.title,
            )
            message_id = self.publisher.publish_json(
                topic=self.topic,
                payload=ingestion.to_payload(),
                attributes={"video_id": record.id},
            )
            logger.info(
                "Published ingestion event",
                extra={"video_id": record.id, "message_id": message_id},
            )
            return FinalizeOutcome(
                status=OUTCOME_CREATED,
                video_id=record.id,
                message_id=message_id,
            )
        except Exception as exc:
            logger.exception(
                "Error processing video upload",
                extra={
                    "object_path": event.name,
                    "video_id": video_id,
                    "error_message": str(exc),
                },
            )
            return FinalizeOutcome(
                status=OUTCOME_FAILED,
                video_id=video_id,
                error_message=str(exc),
            )

    def _consume_staging(self, object_path: str) -> UploadMetadata | None:
        doc_id = staging_doc_id(object_path)
        try:
            data = self.document_store.get(self.staging_collection, doc_id)
        except Exception as exc:
            logger.warning(
                "Metadata lookup failed, using defaults",
                extra={"object_path": object_path, "error_message": str(exc)},
            )
            return None
        if data is None:
            return None
        try:
            self.document_store.delete(self.staging_collection, doc_id)
        except Exception as exc:
            logger.warning(
                "Failed to delete staged metadata",
                extra={"object_path": object_path, "error_message": str(exc)},
            )
        return UploadMetadata.from_dict(data)

    def _build_record(
        self,
        event: StorageEvent,
        parts: ObjectPathParts,
        staged: UploadMetadata | None,
    ) -> VideoRecord:
        meta = staged or UploadMetadata()
        file_name = parts.file_name
        return VideoRecord(
            id=parts.video_id,
            owner_id=parts.owner_id,
            source_object_path=event.name,
            file_name=file_name,
            title=meta.title or strip_extension(file_name),
            created_at=self._clock(),
            description=meta.description or "",
            visibility=meta.visibility or VISIBILITY_PUBLIC,
            tags=meta.tags,
            owner_name=meta.owner_name or "Unknown User",
            owner_avatar=meta.owner_avatar or "",
            original_file_name=meta.original_file_name or file_name,
            file_size=meta.file_size or event.size or 0,
        )


def _is_duplicate(existing: dict[str, Any], object_path: str) -> bool:
    # A record that has left processing, or was created from this same object,
    # must not be reset by a redelivered finalize event.
    if existing.get("status", STATUS_PROCESSING) != STATUS_PROCESSING:
        return True
    return existing.get("source_object_path") == object_path
