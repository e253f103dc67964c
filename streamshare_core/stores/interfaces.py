from __future__ import annotations

from datetime import timedelta
from typing import Any, Iterable, Mapping, Protocol, Sequence

# (field, op, value) as accepted by Firestore's where().
Filter = tuple[str, str, Any]


class DocumentStore(Protocol):
    def upsert(
        self,
        collection: str,
        doc_id: str,
        doc: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        ...

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
        *,
        delete_fields: Iterable[str] = (),
    ) -> None:
        ...

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        ...


class ObjectStore(Protocol):
    def mint_write_capability(
        self,
        bucket: str,
        path: str,
        content_type: str,
        ttl: timedelta,
    ) -> str:
        ...

    def fetch(
        self,
        bucket: str,
        path: str,
        dest_path: str,
        *,
        max_bytes: int,
    ) -> int:
        ...

    def store(
        self,
        bucket: str,
        path: str,
        local_path: str,
        *,
        content_type: str,
    ) -> str:
        ...


class EventPublisher(Protocol):
    def publish_json(
        self,
        *,
        topic: str,
        payload: dict[str, Any],
        attributes: Mapping[str, str] | None = None,
    ) -> str:
        ...
