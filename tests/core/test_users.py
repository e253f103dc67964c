import pytest

from streamshare_core.auth.types import CallerIdentity
from streamshare_core.errors import AuthError, InternalError
from streamshare_core.users import UserProfiles


def _profiles(document_store):
    return UserProfiles(document_store=document_store, users_collection="users")


def test_ensure_profile_writes_document(document_store):
    caller = CallerIdentity(uid="u1", email="u1@example.com", display_name="User One")
    doc = _profiles(document_store).ensure_profile(caller)
    stored = document_store.docs("users")["u1"]
    assert stored == doc
    assert stored["display_name"] == "User One"
    assert stored["photo_url"] == ""


def test_ensure_profile_requires_caller(document_store):
    with pytest.raises(AuthError):
        _profiles(document_store).ensure_profile(None)


def test_ensure_profile_write_failure(document_store):
    document_store.fail_on["upsert"] = RuntimeError("denied")
    with pytest.raises(InternalError):
        _profiles(document_store).ensure_profile(CallerIdentity(uid="u1"))
