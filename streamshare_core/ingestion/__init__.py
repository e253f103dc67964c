from streamshare_core.ingestion.finalize import FinalizeListener, FinalizeOutcome
from streamshare_core.ingestion.intake import (
    UPLOAD_URL_TTL,
    UploadGrant,
    UploadIntake,
    UploadRequest,
)
from streamshare_core.ingestion.storage_event import StorageEvent, parse_cloudevent

__all__ = [
    "FinalizeListener",
    "FinalizeOutcome",
    "StorageEvent",
    "UPLOAD_URL_TTL",
    "UploadGrant",
    "UploadIntake",
    "UploadRequest",
    "parse_cloudevent",
]
