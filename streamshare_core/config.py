import os
from dataclasses import dataclass
from functools import lru_cache

from streamshare_core.storage.paths import normalize_bucket_name

_DEFAULT_MAX_RAW_BYTES = 2 * 1024 * 1024 * 1024


@dataclass(frozen=True)
class Config:
    raw_bucket: str
    processed_bucket: str
    env: str
    log_level: str
    project_id: str | None
    videos_collection: str
    staging_collection: str
    users_collection: str
    ingest_topic: str
    max_raw_bytes: int
    scratch_dir: str | None
    public_storage_base_url: str
    ffmpeg_timeout_seconds: int

    def topic_path(self) -> str:
        if self.ingest_topic.startswith("projects/"):
            return self.ingest_topic
        if not self.project_id:
            raise ValueError(
                "GOOGLE_CLOUD_PROJECT is required when INGEST_TOPIC is a short name"
            )
        return f"projects/{self.project_id}/topics/{self.ingest_topic}"

    def public_url(self, bucket: str, name: str) -> str:
        base = self.public_storage_base_url.rstrip("/")
        return f"{base}/{normalize_bucket_name(bucket)}/{name.lstrip('/')}"

    @classmethod
    def from_env(cls) -> "Config":
        missing: list[str] = []

        def require(name: str) -> str:
            value = os.getenv(name)
            if value is None or value == "":
                missing.append(name)
                return ""
            return value

        raw_bucket = normalize_bucket_name(require("RAW_BUCKET"))
        processed_bucket = normalize_bucket_name(require("PROCESSED_BUCKET"))
        env = require("ENV")
        log_level = require("LOG_LEVEL")
        project_id = os.getenv("GOOGLE_CLOUD_PROJECT") or None
        videos_collection = os.getenv("VIDEOS_COLLECTION", "videos")
        staging_collection = os.getenv("STAGING_COLLECTION", "upload-metadata")
        users_collection = os.getenv("USERS_COLLECTION", "users")
        ingest_topic = os.getenv("INGEST_TOPIC", "video-uploaded").strip()
        max_raw_bytes = _parse_int(
            "MAX_RAW_BYTES",
            os.getenv("MAX_RAW_BYTES", str(_DEFAULT_MAX_RAW_BYTES)),
        )
        scratch_dir = os.getenv("SCRATCH_DIR") or None
        public_storage_base_url = os.getenv(
            "PUBLIC_STORAGE_BASE_URL",
            "https://storage.googleapis.com",
        )
        ffmpeg_timeout_seconds = _parse_int(
            "FFMPEG_TIMEOUT_SECONDS",
            os.getenv("FFMPEG_TIMEOUT_SECONDS", "0"),
        )

        if missing:
            missing_str = ", ".join(missing)
            raise ValueError(f"Missing required env vars: {missing_str}")
        if max_raw_bytes <= 0:
            raise ValueError("MAX_RAW_BYTES must be positive")

        return cls(
            raw_bucket=raw_bucket,
            processed_bucket=processed_bucket,
            env=env,
            log_level=log_level,
            project_id=project_id,
            videos_collection=videos_collection,
            staging_collection=staging_collection,
            users_collection=users_collection,
            ingest_topic=ingest_topic,
            max_raw_bytes=max_raw_bytes,
            scratch_dir=scratch_dir,
            public_storage_base_url=public_storage_base_url,
            ffmpeg_timeout_seconds=ffmpeg_timeout_seconds,
        )


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config.from_env()
