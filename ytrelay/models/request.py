from pydantic import BaseModel, Field

BEST_FORMAT = "best"
MP3_FORMAT = "mp3"

class DownloadRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Media URL")
    format: str = Field(BEST_FORMAT, description="Format id, 'mp3' or 'best'")
