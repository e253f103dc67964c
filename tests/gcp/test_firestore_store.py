from __future__ import annotations

from gcp_adapter import firestore_store
from gcp_adapter.firestore_store import FirestoreDocumentStore


class _FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class _FakeDocRef:
    def __init__(self, store, collection, doc_id):
        self.store = store
        self.collection = collection
        self.doc_id = doc_id

    def set(self, data, merge=False):
        self.store.calls.append(("set", self.collection, self.doc_id, data, merge))

    def update(self, data):
        self.store.calls.append(("update", self.collection, self.doc_id, data))

    def get(self):
        data = self.store.docs.get((self.collection, self.doc_id))
        return _FakeSnapshot(self.doc_id, data)

    def delete(self):
        self.store.calls.append(("delete", self.collection, self.doc_id))


class _FakeQuery:
    def __init__(self, store, collection):
        self.store = store
        self.collection_name = collection
        self.ops = []

    def document(self, doc_id):
        return _FakeDocRef(self.store, self.collection_name, doc_id)

    def where(self, field, op, value):
        self.ops.append(("where", field, op, value))
        return self

    def order_by(self, field, direction=None):
        self.ops.append(("order_by", field, direction))
        return self

    def limit(self, count):
        self.ops.append(("limit", count))
        return self

    def stream(self):
        self.store.queries.append(list(self.ops))
        return [
            _FakeSnapshot(doc_id, data)
            for (collection, doc_id), data in self.store.docs.items()
            if collection == self.collection_name
        ]


class _FakeClient:
    def __init__(self):
        self.docs = {}
        self.calls = []
        self.queries = []

    def collection(self, name):
        return _FakeQuery(self, name)


def test_upsert_and_update_with_field_deletes():
    client = _FakeClient()
    store = FirestoreDocumentStore(client)

    store.upsert("videos", "abc", {"status": "processing"})
    store.update(
        "videos",
        "abc",
        {"status": "processed"},
        delete_fields=("error_message",),
    )

    assert client.calls[0] == ("set", "videos", "abc", {"status": "processing"}, False)
    _op, _collection, _doc_id, payload = client.calls[1]
    assert payload["status"] == "processed"
    assert payload["error_message"] is firestore_store.firestore.DELETE_FIELD


def test_get_missing_returns_none():
    client = _FakeClient()
    client.docs[("videos", "abc")] = {"title": "Clip"}
    store = FirestoreDocumentStore(client)

    assert store.get("videos", "abc") == {"title": "Clip"}
    assert store.get("videos", "missing") is None


def test_query_applies_filters_order_and_limit():
    client = _FakeClient()
    client.docs[("videos", "abc")] = {"owner_id": "u1"}
    client.docs[("videos", "def")] = {"id": "def", "owner_id": "u1"}
    store = FirestoreDocumentStore(client)

    results = store.query(
        "videos",
        filters=[("owner_id", "==", "u1")],
        order_by="created_at",
        descending=True,
        limit=50,
    )

    assert [doc["id"] for doc in results] == ["abc", "def"]
    assert client.queries[0] == [
        ("where", "owner_id", "==", "u1"),
        ("order_by", "created_at", firestore_store.firestore.Query.DESCENDING),
        ("limit", 50),
    ]


def test_delete():
    client = _FakeClient()
    FirestoreDocumentStore(client).delete("upload-metadata", "u1__clip.mp4")
    assert client.calls == [("delete", "upload-metadata", "u1__clip.mp4")]
