from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RenditionProfile:
    name: str
    width: int
    height: int
    video_codec: str = "libx264"
    speed_preset: str = "fast"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"

    @property
    def frame_scale(self) -> str:
        return f"{self.width}:{self.height}"


# Order matters: profiles run sequentially and the first failure stops the rest.
DEFAULT_PROFILES: tuple[RenditionProfile, ...] = (
    RenditionProfile(name="360p", width=640, height=360),
    RenditionProfile(name="720p", width=1280, height=720),
)
