from __future__ import annotations

import json
import shutil
import subprocess
import time

from streamshare_core.logging import get_logger
from streamshare_core.transcode.profiles import RenditionProfile
from streamshare_core.transcode.types import TranscodeResult

logger = get_logger(__name__)

_CORRUPT_MARKERS = (
    "invalid data found when processing input",
    "moov atom not found",
    "output file does not contain any stream",
    "could not find codec parameters",
    "invalid argument",
    "unknown format",
)


def _media_failure(step: str, stderr: str) -> TranscodeResult:
    message = stderr.strip() or "Unknown media error"
    lowered = message.lower()
    permanent = any(marker in lowered for marker in _CORRUPT_MARKERS)
    return TranscodeResult.failure(f"{step} failed: {message}", permanent=permanent)


def build_ffmpeg_command(
    input_path: str,
    output_path: str,
    profile: RenditionProfile,
    *,
    binary: str = "ffmpeg",
) -> list[str]:
    return [
        binary,
        "-y",
        "-i",
        input_path,
        "-vf",
        f"scale={profile.frame_scale}",
        "-c:v",
        profile.video_codec,
        "-preset",
        profile.speed_preset,
        "-c:a",
        profile.audio_codec,
        "-b:a",
        profile.audio_bitrate,
        output_path,
    ]


class FfmpegTranscoder:
    def __init__(self, *, binary: str = "ffmpeg", timeout_seconds: int = 0) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    def transcode(
        self,
        input_path: str,
        output_path: str,
        profile: RenditionProfile,
    ) -> TranscodeResult:
        if shutil.which(self.binary) is None:
            return TranscodeResult.failure(f"Missing required binary: {self.binary}")
        cmd = build_ffmpeg_command(
            input_path,
            output_path,
            profile,
            binary=self.binary,
        )
        logger.debug(
            "FFmpeg command: %s",
            " ".join(cmd),
            extra={"profile": profile.name},
        )
        started = time.monotonic()
        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout_seconds or None,
            )
        except subprocess.CalledProcessError as exc:
            return _media_failure(
                f"ffmpeg {profile.name}",
                exc.stderr or exc.stdout or str(exc),
            )
        except subprocess.TimeoutExpired:
            return TranscodeResult.failure(
                f"ffmpeg {profile.name} timed out after {self.timeout_seconds}s"
            )
        logger.info(
            "Finished transcode",
            extra={
                "profile": profile.name,
                "duration_ms": round((time.monotonic() - started) * 1000.0, 2),
            },
        )
        return TranscodeResult.success()


def probe_duration_seconds(
    path: str,
    *,
    binary: str = "ffprobe",
    timeout_seconds: int = 0,
) -> float | None:
    """Best-effort container duration; ``None`` when ffprobe is unavailable or fails."""
    if shutil.which(binary) is None:
        return None
    cmd = [
        binary,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        path,
    ]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout_seconds or None,
        )
        payload = json.loads(result.stdout or "{}")
    except (
        subprocess.CalledProcessError,
        subprocess.TimeoutExpired,
        json.JSONDecodeError,
    ) as exc:
        logger.warning("ffprobe failed", extra={"error_message": str(exc)})
        return None
    raw = (payload.get("format") or {}).get("duration")
    try:
        return float(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None
