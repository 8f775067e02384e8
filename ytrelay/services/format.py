import re
from typing import Dict, List, Optional, Sequence, Tuple
from ytrelay.models.internal import RawFormat
from ytrelay.models.request import BEST_FORMAT, MP3_FORMAT
from ytrelay.models.response import PresentedFormat

MAX_PRESENTED_FORMATS = 8
AUDIO_ONLY = "audio only"

MP3_CHOICE = PresentedFormat(
    format_id=MP3_FORMAT,
    ext=MP3_FORMAT,
    resolution=AUDIO_ONLY,
    quality="MP3 audio",
)

_LEADING_DIGITS = re.compile(r'\s*(\d+)')


def resolution_rank(resolution: Optional[str]) -> int:
    """Integer prefix of a resolution ("1920x1080" -> 1920), 0 when there is none"""
    match = _LEADING_DIGITS.match(resolution or "")
    return int(match.group(1)) if match else 0


class FormatSelector:
    """Turn yt-dlp's raw format list into the choices offered to the user"""

    @staticmethod
    def is_video(f: RawFormat) -> bool:
        return bool(f.vcodec) and f.vcodec != "none" and f.resolution != AUDIO_ONLY

    @staticmethod
    def present(raw_formats: Sequence[RawFormat]) -> List[PresentedFormat]:
        seen: Dict[Tuple[Optional[str], Optional[str]], PresentedFormat] = {}
        for f in raw_formats:
            if not FormatSelector.is_video(f):
                continue
            key = (f.resolution, f.ext)
            if key in seen:
                continue
            quality = f.format_note or (f"{f.height}p" if f.height else None)
            seen[key] = PresentedFormat(
                format_id=f.format_id,
                ext=f.ext,
                resolution=f.resolution,
                quality=quality,
            )

        # sorted() is stable, so equal resolutions keep first-seen order
        ordered = sorted(seen.values(), key=lambda p: resolution_rank(p.resolution), reverse=True)
        return [MP3_CHOICE.model_copy()] + ordered[:MAX_PRESENTED_FORMATS]


class FormatDecision:
    """Map a requested format id to yt-dlp flags and response metadata"""

    @staticmethod
    def is_audio(format_id: str) -> bool:
        return format_id == MP3_FORMAT

    @staticmethod
    def download_args(format_id: str) -> List[str]:
        if FormatDecision.is_audio(format_id):
            return ['-x', '--audio-format', 'mp3', '--audio-quality', '0']
        if format_id == BEST_FORMAT:
            return ['-f', 'bestvideo+bestaudio/best']
        return ['-f', f"{format_id}+bestaudio/best"]

    @staticmethod
    def extension(format_id: str) -> str:
        return 'mp3' if FormatDecision.is_audio(format_id) else 'mp4'

    @staticmethod
    def media_type(format_id: str) -> str:
        return 'audio/mpeg' if FormatDecision.is_audio(format_id) else 'video/mp4'

    @staticmethod
    def content_length(raw_formats: Sequence[RawFormat], format_id: str) -> Optional[int]:
        """
        Size reported for the matching raw format, if any.
        Only a hint: merging or audio extraction changes the real size.
        """
        for f in raw_formats:
            if f.format_id == format_id:
                return f.filesize or f.filesize_approx
        return None
