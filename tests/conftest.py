import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest

from streamshare_core.config import get_config


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    def set_default(name: str, value: str) -> None:
        if not os.getenv(name):
            monkeypatch.setenv(name, value)

    set_default("RAW_BUCKET", "test-raw")
    set_default("PROCESSED_BUCKET", "test-processed")
    set_default("ENV", "test")
    set_default("LOG_LEVEL", "INFO")
    set_default("GOOGLE_CLOUD_PROJECT", "streamshare-test")
    set_default("AUTH_JWT_HS256_SECRET", "test-secret")
    set_default("AUTH_ISSUER", "https://securetoken.google.com/streamshare-test")
    set_default("AUTH_AUDIENCE", "streamshare-test")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def _make_jwt(
    *,
    secret: str,
    issuer: str,
    audience: str,
    subject: str = "u1",
    email: str | None = "u1@example.com",
    name: str | None = "User One",
    picture: str | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    claims: dict[str, object] = {
        "sub": subject,
        "iss": issuer,
        "aud": audience,
        "exp": int((now + timedelta(minutes=5)).timestamp()),
        "iat": int(now.timestamp()),
    }
    if email is not None:
        claims["email"] = email
    if name is not None:
        claims["name"] = name
    if picture is not None:
        claims["picture"] = picture
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def jwt_factory():
    def _factory(**kwargs) -> str:
        secret = os.getenv("AUTH_JWT_HS256_SECRET", "test-secret")
        issuer = os.getenv("AUTH_ISSUER", "")
        audience = os.getenv("AUTH_AUDIENCE", "")
        return _make_jwt(secret=secret, issuer=issuer, audience=audience, **kwargs)

    return _factory


@pytest.fixture
def auth_headers(jwt_factory):
    def _headers(subject: str = "u1", **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {jwt_factory(subject=subject, **kwargs)}"}

    return _headers


class FakeDocumentStore:
    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict]] = {}
        self.fail_on: dict[object, Exception] = {}
        self.calls: list[tuple[str, str, str | None]] = []

    def _check(self, op: str, collection: str) -> None:
        exc = self.fail_on.get((op, collection)) or self.fail_on.get(op)
        if exc is not None:
            raise exc

    def docs(self, collection: str) -> dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def upsert(self, collection, doc_id, doc, *, merge=False):
        self._check("upsert", collection)
        self.calls.append(("upsert", collection, doc_id))
        docs = self.docs(collection)
        if merge and doc_id in docs:
            docs[doc_id].update(doc)
        else:
            docs[doc_id] = dict(doc)

    def update(self, collection, doc_id, fields, *, delete_fields=()):
        self._check("update", collection)
        self.calls.append(("update", collection, doc_id))
        docs = self.docs(collection)
        if doc_id not in docs:
            raise KeyError(f"No document to update: {doc_id}")
        docs[doc_id].update(fields)
        for name in delete_fields:
            docs[doc_id].pop(name, None)

    def get(self, collection, doc_id):
        self._check("get", collection)
        self.calls.append(("get", collection, doc_id))
        doc = self.docs(collection).get(doc_id)
        return dict(doc) if doc is not None else None

    def delete(self, collection, doc_id):
        self._check("delete", collection)
        self.calls.append(("delete", collection, doc_id))
        self.docs(collection).pop(doc_id, None)

    def query(
        self,
        collection,
        *,
        filters=(),
        order_by=None,
        descending=False,
        limit=None,
    ):
        self._check("query", collection)
        self.calls.append(("query", collection, None))
        results = [dict(doc) for doc in self.docs(collection).values()]
        for field, op, value in filters:
            assert op == "=="
            results = [doc for doc in results if doc.get(field) == value]
        if order_by:
            results.sort(key=lambda doc: doc.get(order_by), reverse=descending)
        if limit is not None:
            results = results[:limit]
        return results


class FakeObjectStore:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.minted: list[dict[str, object]] = []
        self.stored: list[tuple[str, str, str]] = []
        self.fail_mint: Exception | None = None

    def mint_write_capability(self, bucket, path, content_type, ttl):
        if self.fail_mint is not None:
            raise self.fail_mint
        self.minted.append(
            {"bucket": bucket, "path": path, "content_type": content_type, "ttl": ttl}
        )
        return f"https://signed.example/{bucket}/{path}?X-Goog-Expires={int(ttl.total_seconds())}"

    def fetch(self, bucket, path, dest_path, *, max_bytes):
        data = self.objects.get((bucket, path))
        if data is None:
            raise FileNotFoundError(f"{bucket}/{path}")
        Path(dest_path).write_bytes(data)
        return len(data)

    def store(self, bucket, path, local_path, *, content_type):
        self.objects[(bucket, path)] = Path(local_path).read_bytes()
        self.stored.append((bucket, path, content_type))
        return f"https://storage.googleapis.com/{bucket}/{path}"


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[dict[str, object]] = []
        self.fail: Exception | None = None

    def publish_json(self, *, topic, payload, attributes=None):
        if self.fail is not None:
            raise self.fail
        self.messages.append(
            {"topic": topic, "payload": payload, "attributes": dict(attributes or {})}
        )
        return f"msg-{len(self.messages)}"


@pytest.fixture
def document_store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()
