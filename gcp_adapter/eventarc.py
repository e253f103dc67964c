from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Callable

from streamshare_core.ingestion.storage_event import StorageEvent, parse_cloudevent

__all__ = ["StorageEvent", "coerce_cloudevent", "parse_cloudevent"]


def coerce_cloudevent(
    body: Any,
    header: Callable[[str], str | None],
) -> dict[str, Any]:
    """Normalize structured, binary-mode, and GCS-notification deliveries."""
    if isinstance(body, dict) and "specversion" in body:
        return body

    def _decode_json_payload(raw: Any) -> dict[str, Any] | None:
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str):
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                try:
                    decoded = base64.b64decode(raw.encode("utf-8"))
                except (ValueError, binascii.Error):
                    return None
                try:
                    return json.loads(decoded.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    return None
        return None

    data: dict[str, Any] | None = None
    if isinstance(body, dict):
        message = body.get("message") if isinstance(body.get("message"), dict) else None
        if message and "data" in message:
            data = _decode_json_payload(message.get("data"))
        else:
            data = body
    else:
        data = _decode_json_payload(body)

    if isinstance(data, dict) and "specversion" in data and "data" in data:
        return data

    return {
        "id": header("ce-id"),
        "type": header("ce-type"),
        "source": header("ce-source"),
        "specversion": header("ce-specversion") or "1.0",
        "time": header("ce-time"),
        "subject": header("ce-subject"),
        "data": data,
    }
