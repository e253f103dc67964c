from __future__ import annotations

from typing import Any

from streamshare_core.errors import InternalError, NotFoundError, ValidationError
from streamshare_core.logging import get_logger
from streamshare_core.stores.interfaces import DocumentStore, Filter
from streamshare_core.videos.types import VISIBILITY_PRIVATE, is_visible_to

LIST_PAGE_SIZE = 50

logger = get_logger(__name__)


class VideoQuery:
    def __init__(self, *, document_store: DocumentStore, videos_collection: str) -> None:
        self.document_store = document_store
        self.videos_collection = videos_collection

    def list_videos(
        self,
        caller_uid: str | None = None,
        *,
        owner_only: bool = False,
    ) -> list[dict[str, Any]]:
        """Newest-first page of records the caller may see.

        Backing-store errors degrade to an empty list so the browse page
        keeps rendering.
        """
        if owner_only and not caller_uid:
            return []
        filters: list[Filter] = []
        if owner_only:
            filters.append(("owner_id", "==", caller_uid))
        try:
            docs = self.document_store.query(
                self.videos_collection,
                filters=filters,
                order_by="created_at",
                descending=True,
                limit=LIST_PAGE_SIZE,
            )
        except Exception as exc:
            logger.error(
                "Error fetching videos",
                extra={"owner_id": caller_uid, "error_message": str(exc)},
            )
            return []
        return [doc for doc in docs if is_visible_to(doc, caller_uid)]

    def get_video(
        self,
        video_id: str | None,
        caller_uid: str | None = None,
    ) -> dict[str, Any]:
        if not video_id:
            raise ValidationError("videoId is required")
        try:
            doc = self.document_store.get(self.videos_collection, video_id)
        except Exception as exc:
            logger.error(
                "Error fetching video",
                extra={"video_id": video_id, "error_message": str(exc)},
            )
            raise InternalError("Failed to fetch video") from exc
        if doc is None or not _readable_by(doc, caller_uid):
            raise NotFoundError("Video not found")
        return {**doc, "id": doc.get("id") or video_id}


def _readable_by(doc: dict[str, Any], caller_uid: str | None) -> bool:
    # Unlisted records are reachable by direct id; private ones only by the owner.
    if doc.get("visibility") != VISIBILITY_PRIVATE:
        return True
    return bool(caller_uid) and doc.get("owner_id") == caller_uid
