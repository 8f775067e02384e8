from typing import List, Optional

from pydantic import BaseModel


class PresentedFormat(BaseModel):
    """User-facing format choice"""
    format_id: str
    ext: Optional[str] = None
    resolution: Optional[str] = None
    quality: Optional[str] = None


class VideoInfo(BaseModel):
    """Video information response"""
    title: str
    thumbnail: Optional[str] = None
    uploader: Optional[str] = None
    duration: Optional[str] = None
    formats: List[PresentedFormat] = []
