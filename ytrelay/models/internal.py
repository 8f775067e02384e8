from pydantic import BaseModel, ConfigDict
from typing import List, Optional

class RawFormat(BaseModel):
    """One encoding of a media item as reported by yt-dlp"""
    model_config = ConfigDict(extra="ignore")

    format_id: str
    ext: Optional[str] = None
    resolution: Optional[str] = None
    format_note: Optional[str] = None
    height: Optional[int] = None
    vcodec: Optional[str] = None
    filesize: Optional[int] = None
    filesize_approx: Optional[int] = None

class MediaInfo(BaseModel):
    """Subset of the yt-dlp metadata dump used by the endpoints"""
    model_config = ConfigDict(extra="ignore")

    title: str = "Unknown"
    thumbnail: Optional[str] = None
    uploader: Optional[str] = None
    duration_string: Optional[str] = None
    formats: List[RawFormat] = []
