import json
import logging

from streamshare_core.logging import BaseFieldFilter, JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="streamshare.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Processing rendition",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_fields():
    record = _record(video_id="abc123", profile="720p", unrelated="dropped")
    BaseFieldFilter(service="streamshare-video-processor", env="test", version="1.0").filter(
        record
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Processing rendition"
    assert payload["level"] == "INFO"
    assert payload["service"] == "streamshare-video-processor"
    assert payload["env"] == "test"
    assert payload["video_id"] == "abc123"
    assert payload["profile"] == "720p"
    assert "unrelated" not in payload


def test_filter_keeps_explicit_service():
    record = _record(service="override")
    BaseFieldFilter(service="default", env=None, version=None).filter(record)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["service"] == "override"
    assert "env" not in payload
