from streamshare_core.transcode.ffmpeg import FfmpegTranscoder, build_ffmpeg_command
from streamshare_core.transcode.profiles import DEFAULT_PROFILES, RenditionProfile
from streamshare_core.transcode.types import TranscodeResult, Transcoder
from streamshare_core.transcode.worker import TranscodeWorker, WorkerResult

__all__ = [
    "DEFAULT_PROFILES",
    "FfmpegTranscoder",
    "RenditionProfile",
    "TranscodeResult",
    "TranscodeWorker",
    "Transcoder",
    "WorkerResult",
    "build_ffmpeg_command",
]
