import json
import logging
from ytrelay.models.response import VideoInfo
from ytrelay.services.format import FormatSelector
from ytrelay.services.ytdlp import Downloader
from ytrelay.infra.redis import get_redis
from ytrelay.utils.hash import cache_key

logger = logging.getLogger(__name__)

INFO_CACHE_TTL = 300

class VideoInfoService:
    """Video info fetching service"""

    @staticmethod
    async def fetch(downloader: Downloader, url: str) -> VideoInfo:
        """
        Fetch metadata and reduce the format list to user-facing choices.
        Responses are cached in Redis when it is available; cache errors
        never fail the request.
        """
        key = cache_key("info", url)
        redis = get_redis()

        if redis:
            try:
                cached = await redis.get(key)
                if cached:
                    return VideoInfo(**json.loads(cached))
            except Exception as e:
                logger.warning(f"Info cache read failed: {e}")

        media = await downloader.fetch_info(url)

        video_info = VideoInfo(
            title=media.title,
            thumbnail=media.thumbnail,
            uploader=media.uploader,
            duration=media.duration_string,
            formats=FormatSelector.present(media.formats),
        )

        if redis:
            try:
                await redis.setex(key, INFO_CACHE_TTL, video_info.model_dump_json())
            except Exception as e:
                logger.warning(f"Info cache write failed: {e}")

        return video_info
