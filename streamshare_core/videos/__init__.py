from streamshare_core.videos.types import (
    STATUS_ERROR,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    VISIBILITIES,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    VISIBILITY_UNLISTED,
    IngestionEvent,
    RenditionRef,
    UploadMetadata,
    VideoRecord,
    is_visible_to,
)

__all__ = [
    "IngestionEvent",
    "RenditionRef",
    "STATUS_ERROR",
    "STATUS_PROCESSED",
    "STATUS_PROCESSING",
    "UploadMetadata",
    "VISIBILITIES",
    "VISIBILITY_PRIVATE",
    "VISIBILITY_PUBLIC",
    "VISIBILITY_UNLISTED",
    "VideoRecord",
    "is_visible_to",
]
