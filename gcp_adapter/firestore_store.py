from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from google.cloud import firestore

from streamshare_core.stores.interfaces import DocumentStore, Filter


class FirestoreDocumentStore(DocumentStore):
    def __init__(
        self,
        client: firestore.Client | None = None,
        *,
        project_id: str | None = None,
    ) -> None:
        self._client = client or firestore.Client(project=project_id)

    def _doc(self, collection: str, doc_id: str):
        return self._client.collection(collection).document(doc_id)

    def upsert(
        self,
        collection: str,
        doc_id: str,
        doc: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        self._doc(collection, doc_id).set(dict(doc), merge=merge)

    def update(
        self,
        collection: str,
        doc_id: str,
        fields: Mapping[str, Any],
        *,
        delete_fields: Iterable[str] = (),
    ) -> None:
        payload = dict(fields)
        for name in delete_fields:
            payload[name] = firestore.DELETE_FIELD
        self._doc(collection, doc_id).update(payload)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        snapshot = self._doc(collection, doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def delete(self, collection: str, doc_id: str) -> None:
        self._doc(collection, doc_id).delete()

    def query(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = self._client.collection(collection)
        for field, op, value in filters:
            query = query.where(field, op, value)
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        results: list[dict[str, Any]] = []
        for snapshot in query.stream():
            data = snapshot.to_dict() or {}
            if "id" not in data:
                data["id"] = snapshot.id
            results.append(data)
        return results
