from typing import Optional
from fastapi import APIRouter, Request, Depends, HTTPException, Query
from ytrelay.api.deps import get_downloader
from ytrelay.models.response import VideoInfo
from ytrelay.services.info import VideoInfoService
from ytrelay.services.ytdlp import Downloader
from ytrelay.core.logging import log_info, log_error
from ytrelay.utils.locale import get_locale, safe_url_for_log
from ytrelay.i18n import i18n
import functools

router = APIRouter()

@router.get("/info", response_model=VideoInfo)
async def get_video_info(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL"),
    downloader: Downloader = Depends(get_downloader)
):
    """Get title, thumbnail, uploader, duration and the offered formats"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    if not url:
        raise HTTPException(status_code=400, detail=_("error.missing_url"))

    safe_url = safe_url_for_log(url)
    log_info(request, _("log.fetching_info", url=safe_url))

    try:
        video_info = await VideoInfoService.fetch(downloader, url)
    except Exception as e:
        log_error(request, f"Video info error for {safe_url}: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.fetch_info_failed"))

    log_info(request, _("log.info_retrieved", title=video_info.title))
    return video_info
