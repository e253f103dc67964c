from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from streamshare_core.transcode.profiles import RenditionProfile


@dataclass(frozen=True)
class TranscodeResult:
    ok: bool
    error: str | None = None
    permanent: bool = False

    @classmethod
    def success(cls) -> "TranscodeResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str, *, permanent: bool = False) -> "TranscodeResult":
        return cls(ok=False, error=error, permanent=permanent)


class Transcoder(Protocol):
    def transcode(
        self,
        input_path: str,
        output_path: str,
        profile: RenditionProfile,
    ) -> TranscodeResult:
        ...
