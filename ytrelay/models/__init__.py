from .internal import MediaInfo, RawFormat
from .request import DownloadRequest
from .response import PresentedFormat, VideoInfo

__all__ = ["DownloadRequest", "MediaInfo", "PresentedFormat", "RawFormat", "VideoInfo"]
