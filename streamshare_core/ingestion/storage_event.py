from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from streamshare_core.errors import ValidationError


@dataclass(frozen=True)
class StorageEvent:
    bucket: str
    name: str
    generation: str | None
    content_type: str | None
    size: int | None


def _coerce_int(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def parse_cloudevent(payload: dict[str, Any]) -> StorageEvent:
    """Read the object-finalized fields out of a CloudEvent envelope.

    An empty object name is returned as-is; the finalize listener treats it
    as a no-op rather than a malformed event.
    """
    data = payload.get("data")
    if not isinstance(data, dict):
        raise ValidationError("CloudEvent data is required")

    bucket = data.get("bucket")
    if not bucket:
        raise ValidationError("CloudEvent data missing bucket")

    generation = data.get("generation")
    return StorageEvent(
        bucket=str(bucket),
        name=str(data.get("name") or ""),
        generation=str(generation) if generation is not None else None,
        content_type=data.get("contentType"),
        size=_coerce_int(data.get("size")),
    )
