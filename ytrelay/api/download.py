from typing import Optional
from fastapi import APIRouter, Request, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from ytrelay.api.deps import get_downloader
from ytrelay.models.request import BEST_FORMAT, DownloadRequest
from ytrelay.services.stream import StreamService
from ytrelay.services.ytdlp import Downloader
from ytrelay.core.logging import log_info, log_error
from ytrelay.utils.locale import get_locale, safe_url_for_log
from ytrelay.i18n import i18n
import functools

router = APIRouter()

class ClosingStreamingResponse(StreamingResponse):
    """
    StreamingResponse that always closes its body iterator, so the yt-dlp
    child behind it is killed as soon as the response ends, even when the
    client disconnects while a chunk is being sent.
    """

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.body_iterator.aclose()

@router.get("/download")
async def download_video(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL"),
    format: str = Query(BEST_FORMAT, description="Format id, 'mp3' or 'best'"),
    downloader: Downloader = Depends(get_downloader)
):
    """Stream a download straight from yt-dlp's stdout"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    if not url:
        raise HTTPException(status_code=400, detail=_("error.missing_url"))

    download = DownloadRequest(url=url, format=format or BEST_FORMAT)
    safe_url = safe_url_for_log(download.url)
    log_info(request, _("log.starting_stream", url=safe_url, format=download.format))

    try:
        generator, headers, media_type = await StreamService.stream(downloader, download)
    except Exception as e:
        log_error(request, f"Download error for {safe_url}: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.download_failed"))

    return ClosingStreamingResponse(generator, media_type=media_type, headers=headers)
