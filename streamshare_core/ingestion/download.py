from __future__ import annotations

import os
from typing import Any

import fsspec

from streamshare_core.errors import PermanentError, RecoverableError

_CHUNK_BYTES = 8 * 1024 * 1024


def _info_for_uri(fs: fsspec.AbstractFileSystem, path: str) -> dict[str, Any]:
    try:
        return fs.info(path)
    except FileNotFoundError as exc:
        raise PermanentError(f"Object not found: {path}") from exc
    except Exception as exc:
        raise RecoverableError(f"Failed to stat {path}: {exc}") from exc


def download_to_path(uri: str, dest_path: str, max_bytes: int) -> int:
    """Stream ``uri`` into ``dest_path`` and return the byte count.

    The destination is removed if the copy fails part-way.
    """
    fs, path = fsspec.core.url_to_fs(uri)
    info = _info_for_uri(fs, path)
    size_hint = info.get("size") or info.get("Size")
    if size_hint is not None and size_hint > max_bytes:
        raise PermanentError(f"Object too large: {size_hint} bytes")

    try:
        size = 0
        with fs.open(path, "rb") as reader, open(dest_path, "wb") as writer:
            while True:
                chunk = reader.read(_CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise PermanentError("Download exceeded MAX_RAW_BYTES")
                writer.write(chunk)
    except Exception as exc:
        cleanup_tmp(dest_path)
        if isinstance(exc, PermanentError):
            raise
        raise RecoverableError(f"Failed downloading {uri}: {exc}") from exc
    return size


def cleanup_tmp(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        return
