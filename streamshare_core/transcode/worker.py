from __future__ import annotations

import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

from streamshare_core.errors import PermanentError, RecoverableError
from streamshare_core.ingestion.download import cleanup_tmp
from streamshare_core.logging import get_logger
from streamshare_core.storage.paths import rendition_file_name
from streamshare_core.stores.interfaces import DocumentStore, ObjectStore
from streamshare_core.transcode.ffmpeg import probe_duration_seconds
from streamshare_core.transcode.profiles import DEFAULT_PROFILES, RenditionProfile
from streamshare_core.transcode.types import Transcoder
from streamshare_core.videos.types import (
    STATUS_ERROR,
    STATUS_PROCESSED,
    IngestionEvent,
    RenditionRef,
)

logger = get_logger(__name__)

RESULT_PROCESSED = "processed"
RESULT_SKIPPED = "skipped"

_OUTPUT_CONTENT_TYPE = "video/mp4"


@dataclass(frozen=True)
class WorkerResult:
    status: str
    video_id: str
    outputs: tuple[RenditionRef, ...] = ()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TranscodeWorker:
    """Processes one ingestion event into the fixed list of renditions.

    The video record is written once per invocation: either ``processed``
    with the complete outputs list, or ``error`` with the failure message.
    Outputs are named after the video id and profile, so a redelivered event
    overwrites the same objects rather than adding new ones.
    """

    def __init__(
        self,
        *,
        document_store: DocumentStore,
        object_store: ObjectStore,
        transcoder: Transcoder,
        videos_collection: str,
        processed_bucket: str,
        max_raw_bytes: int,
        scratch_dir: str | None = None,
        profiles: Sequence[RenditionProfile] = DEFAULT_PROFILES,
        probe: Callable[[str], float | None] = probe_duration_seconds,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.document_store = document_store
        self.object_store = object_store
        self.transcoder = transcoder
        self.videos_collection = videos_collection
        self.processed_bucket = processed_bucket
        self.max_raw_bytes = max_raw_bytes
        self.scratch_dir = scratch_dir
        self.profiles = tuple(profiles)
        self._probe = probe
        self._clock = clock

    def process(self, event: IngestionEvent) -> WorkerResult:
        if self._already_processed(event.video_id):
            logger.info(
                "Video already processed, skipping",
                extra={"video_id": event.video_id, "status": RESULT_SKIPPED},
            )
            return WorkerResult(status=RESULT_SKIPPED, video_id=event.video_id)

        started = time.monotonic()
        scratch = tempfile.mkdtemp(prefix="streamshare-", dir=self.scratch_dir)
        try:
            try:
                outputs, duration = self._transcode_all(event, scratch)
                self._record_success(event.video_id, outputs, duration)
            except Exception as exc:
                self._record_failure(event.video_id, exc)
                raise
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

        logger.info(
            "Video processing completed",
            extra={
                "video_id": event.video_id,
                "status": RESULT_PROCESSED,
                "outputs_count": len(outputs),
                "duration_ms": round((time.monotonic() - started) * 1000.0, 2),
            },
        )
        return WorkerResult(
            status=RESULT_PROCESSED,
            video_id=event.video_id,
            outputs=outputs,
        )

    def _transcode_all(
        self,
        event: IngestionEvent,
        scratch: str,
    ) -> tuple[tuple[RenditionRef, ...], float | None]:
        input_path = os.path.join(scratch, "input")
        size = self.object_store.fetch(
            event.bucket_name,
            event.source_object_path,
            input_path,
            max_bytes=self.max_raw_bytes,
        )
        logger.info(
            "Video downloaded",
            extra={
                "video_id": event.video_id,
                "bucket": event.bucket_name,
                "object_path": event.source_object_path,
                "bytes_downloaded": size,
            },
        )
        duration = self._probe(input_path)

        outputs: list[RenditionRef] = []
        for profile in self.profiles:
            output_name = rendition_file_name(event.video_id, profile.name)
            output_path = os.path.join(scratch, output_name)
            logger.info(
                "Processing rendition",
                extra={"video_id": event.video_id, "profile": profile.name},
            )
            result = self.transcoder.transcode(input_path, output_path, profile)
            if not result.ok:
                message = result.error or f"Transcode failed for {profile.name}"
                if result.permanent:
                    raise PermanentError(message)
                raise RecoverableError(message)
            try:
                url = self.object_store.store(
                    self.processed_bucket,
                    output_name,
                    output_path,
                    content_type=_OUTPUT_CONTENT_TYPE,
                )
            finally:
                cleanup_tmp(output_path)
            outputs.append(
                RenditionRef(
                    profile_name=profile.name,
                    location_url=url,
                    output_file_name=output_name,
                )
            )
            logger.info(
                "Uploaded rendition",
                extra={"video_id": event.video_id, "profile": profile.name},
            )
        return tuple(outputs), duration

    def _already_processed(self, video_id: str) -> bool:
        try:
            record = self.document_store.get(self.videos_collection, video_id)
        except Exception as exc:
            logger.warning(
                "Video record lookup failed, processing anyway",
                extra={"video_id": video_id, "error_message": str(exc)},
            )
            return False
        if not record:
            return False
        return record.get("status") == STATUS_PROCESSED and bool(record.get("outputs"))

    def _record_success(
        self,
        video_id: str,
        outputs: tuple[RenditionRef, ...],
        duration: float | None,
    ) -> None:
        now = self._clock()
        fields: dict[str, object] = {
            "status": STATUS_PROCESSED,
            "outputs": [ref.to_dict() for ref in outputs],
            "processed_at": now,
            "updated_at": now,
        }
        if duration is not None:
            fields["duration_seconds"] = duration
        self.document_store.update(
            self.videos_collection,
            video_id,
            fields,
            delete_fields=("error_message",),
        )

    def _record_failure(self, video_id: str, exc: Exception) -> None:
        logger.error(
            "Error processing video",
            extra={"video_id": video_id, "error_message": str(exc)},
        )
        try:
            if self._already_processed(video_id):
                # A concurrent delivery finished first; keep its result.
                return
            self.document_store.update(
                self.videos_collection,
                video_id,
                {
                    "status": STATUS_ERROR,
                    "error_message": str(exc),
                    "outputs": [],
                    "updated_at": self._clock(),
                },
            )
        except Exception as update_exc:
            logger.error(
                "Error updating video record with error status",
                extra={"video_id": video_id, "error_message": str(update_exc)},
            )
