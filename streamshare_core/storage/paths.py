from __future__ import annotations

from dataclasses import dataclass

from streamshare_core.errors import ValidationError

_STAGING_SEPARATOR = "__"


def _strip_slashes(value: str) -> str:
    return value.strip("/")


def normalize_bucket_name(bucket: str) -> str:
    if bucket.startswith("gs://"):
        return bucket[len("gs://") :].rstrip("/")
    return _strip_slashes(bucket)


def gs_uri(bucket: str, name: str) -> str:
    return f"gs://{normalize_bucket_name(bucket)}/{name.lstrip('/')}"


def build_object_path(owner_id: str, file_name: str, timestamp_ms: int) -> str:
    safe_name = file_name.replace("/", "_").replace("\\", "_").strip()
    return f"{owner_id}/{timestamp_ms}-{safe_name}"


def staging_doc_id(object_path: str) -> str:
    return object_path.replace("/", _STAGING_SEPARATOR)


def strip_extension(file_name: str) -> str:
    if "." not in file_name.lstrip("."):
        return file_name
    stem, _ext = file_name.rsplit(".", 1)
    return stem


def rendition_file_name(video_id: str, profile_name: str) -> str:
    return f"{video_id}_{profile_name}.mp4"


@dataclass(frozen=True)
class ObjectPathParts:
    owner_id: str
    file_name: str
    video_id: str


def parse_object_path(object_path: str) -> ObjectPathParts:
    parts = object_path.split("/")
    owner_id = parts[0]
    file_name = parts[-1]
    video_id = file_name.split(".")[0]
    if not owner_id or not file_name or not video_id:
        raise ValidationError(f"Cannot derive video identifiers from {object_path!r}")
    return ObjectPathParts(owner_id=owner_id, file_name=file_name, video_id=video_id)
