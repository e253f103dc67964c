from __future__ import annotations

import os
from datetime import timedelta
from typing import Callable

import google.auth
from google.auth import iam
from google.auth.transport.requests import Request
from google.cloud import storage
from google.oauth2 import service_account

from streamshare_core.errors import RecoverableError
from streamshare_core.ingestion.download import download_to_path
from streamshare_core.storage.paths import gs_uri, normalize_bucket_name
from streamshare_core.stores.interfaces import ObjectStore


def signing_credentials():
    """Credentials able to sign v4 URLs, falling back to the IAM signBlob API."""
    creds, _ = google.auth.default()
    scopes = [
        "https://www.googleapis.com/auth/devstorage.read_write",
        "https://www.googleapis.com/auth/iam",
    ]
    if hasattr(creds, "with_scopes"):
        creds = creds.with_scopes(scopes)
    if hasattr(creds, "sign_bytes"):
        return creds
    request = Request()
    env_service_account = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    service_account_email = env_service_account or getattr(
        creds, "service_account_email", None
    )
    if service_account_email == "default" and env_service_account:
        service_account_email = env_service_account
    if not service_account_email:
        raise RecoverableError(
            "Service account email is required to sign URLs via IAM."
        )
    signer = iam.Signer(request, creds, service_account_email)
    return service_account.Credentials(
        signer=signer,
        service_account_email=service_account_email,
        token_uri="https://oauth2.googleapis.com/token",
    )


class GcsObjectStore(ObjectStore):
    def __init__(
        self,
        client: storage.Client | None = None,
        *,
        public_url: Callable[[str, str], str] | None = None,
        credentials_factory: Callable[[], object] = signing_credentials,
    ) -> None:
        self._client = client or storage.Client()
        self._public_url = public_url or _default_public_url
        self._credentials_factory = credentials_factory
        self._signing_credentials = None

    def _credentials(self):
        if self._signing_credentials is None:
            self._signing_credentials = self._credentials_factory()
        return self._signing_credentials

    def mint_write_capability(
        self,
        bucket: str,
        path: str,
        content_type: str,
        ttl: timedelta,
    ) -> str:
        blob = self._client.bucket(normalize_bucket_name(bucket)).blob(path)
        return blob.generate_signed_url(
            version="v4",
            expiration=ttl,
            method="PUT",
            content_type=content_type,
            credentials=self._credentials(),
        )

    def fetch(
        self,
        bucket: str,
        path: str,
        dest_path: str,
        *,
        max_bytes: int,
    ) -> int:
        return download_to_path(gs_uri(bucket, path), dest_path, max_bytes)

    def store(
        self,
        bucket: str,
        path: str,
        local_path: str,
        *,
        content_type: str,
    ) -> str:
        bucket_name = normalize_bucket_name(bucket)
        blob = self._client.bucket(bucket_name).blob(path)
        blob.upload_from_filename(local_path, content_type=content_type)
        return self._public_url(bucket_name, path)


def _default_public_url(bucket: str, name: str) -> str:
    return f"https://storage.googleapis.com/{bucket}/{name}"
