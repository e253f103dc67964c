from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Mapping

from google.cloud import pubsub_v1

from streamshare_core.stores.interfaces import EventPublisher


@dataclass(frozen=True)
class PubSubPushMessage:
    data: bytes
    attributes: dict[str, str]
    message_id: str | None = None
    subscription: str | None = None

    def json(self) -> Any:
        return json.loads(self.data.decode("utf-8"))


class PubSubPublisher(EventPublisher):
    def __init__(self, client: pubsub_v1.PublisherClient | None = None) -> None:
        self.client = client or pubsub_v1.PublisherClient()

    def publish(
        self,
        *,
        topic: str,
        data: bytes,
        attributes: Mapping[str, str] | None = None,
    ) -> str:
        future = self.client.publish(topic, data, **dict(attributes or {}))
        return future.result(timeout=30)

    def publish_json(
        self,
        *,
        topic: str,
        payload: dict[str, Any],
        attributes: Mapping[str, str] | None = None,
    ) -> str:
        data = json.dumps(payload, ensure_ascii=True).encode("utf-8")
        return self.publish(topic=topic, data=data, attributes=attributes)


def parse_pubsub_push(body: Any) -> PubSubPushMessage:
    if not isinstance(body, dict):
        raise ValueError("Invalid Pub/Sub push payload: body must be object")
    message = body.get("message")
    if not isinstance(message, dict):
        raise ValueError("Invalid Pub/Sub push payload: missing message")

    raw_data = message.get("data", "")
    if not isinstance(raw_data, str):
        raise ValueError("Invalid Pub/Sub push payload: data must be base64 string")
    try:
        decoded = base64.b64decode(raw_data, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("Invalid Pub/Sub push payload: data not base64") from exc

    attributes = message.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise ValueError("Invalid Pub/Sub push payload: attributes must be object")

    return PubSubPushMessage(
        data=decoded,
        attributes={str(k): str(v) for k, v in attributes.items()},
        message_id=message.get("messageId") or message.get("message_id"),
        subscription=body.get("subscription"),
    )
