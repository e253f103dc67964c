from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from streamshare_core.auth.types import CallerIdentity
from streamshare_core.errors import AuthError, InternalError
from streamshare_core.logging import get_logger
from streamshare_core.stores.interfaces import DocumentStore

logger = get_logger(__name__)


class UserProfiles:
    def __init__(self, *, document_store: DocumentStore, users_collection: str) -> None:
        self.document_store = document_store
        self.users_collection = users_collection

    def ensure_profile(self, caller: CallerIdentity | None) -> dict[str, Any]:
        if caller is None:
            raise AuthError("User must be authenticated")
        doc = {
            "uid": caller.uid,
            "email": caller.email or "",
            "display_name": caller.display_name or "",
            "photo_url": caller.photo_url or "",
            "created_at": datetime.now(timezone.utc),
        }
        try:
            self.document_store.upsert(self.users_collection, caller.uid, doc)
        except Exception as exc:
            logger.error(
                "Error creating user document",
                extra={"owner_id": caller.uid, "error_message": str(exc)},
            )
            raise InternalError("Failed to create user document") from exc
        return doc
