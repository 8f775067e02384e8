import asyncio
import logging
from typing import AsyncIterator, Dict, Tuple
from ytrelay.models.request import DownloadRequest
from ytrelay.services.format import FormatDecision
from ytrelay.services.ytdlp import Downloader, DownloaderError, MediaStream
from ytrelay.utils.filename import content_disposition, safe_filename
from ytrelay.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)

class StreamService:
    """Negotiate a download and pipe yt-dlp's stdout to the client"""

    @staticmethod
    async def stream(
        downloader: Downloader,
        download: DownloadRequest
    ) -> Tuple[AsyncIterator[bytes], Dict[str, str], str]:
        """
        Returns (generator, headers, media_type).

        The first chunk is read before returning so a yt-dlp failure that
        happens before any output still becomes a DownloaderError (and a 500)
        rather than an empty 200.
        """
        media = await downloader.fetch_info(download.url)

        ext = FormatDecision.extension(download.format)
        filename = safe_filename(media.title, ext)
        headers = {
            'Content-Disposition': content_disposition(filename),
            'X-Content-Type-Options': 'nosniff',
            'Cache-Control': 'no-cache',
        }

        content_length = FormatDecision.content_length(media.formats, download.format)
        if content_length:
            headers['Content-Length'] = str(content_length)

        stream = await downloader.open_stream(download.url, FormatDecision.download_args(download.format))

        try:
            first_chunk = await stream.read()
            if not first_chunk:
                returncode = await stream.wait()
                if returncode != 0:
                    raise DownloaderError(f"yt-dlp exited with {returncode}: {stream.error_summary}")
        except BaseException:
            await stream.aclose()
            raise

        safe_url = safe_url_for_log(download.url)
        return StreamService._pipe(stream, first_chunk, safe_url), headers, FormatDecision.media_type(download.format)

    @staticmethod
    async def _pipe(stream: MediaStream, first_chunk: bytes, safe_url: str) -> AsyncIterator[bytes]:
        """
        Yield stdout chunks as they arrive. Headers are already on the wire,
        so a failure here only ends the body. The child is killed on every
        exit path, including client disconnects (task cancellation).
        """
        sent = 0
        try:
            chunk = first_chunk
            while chunk:
                sent += len(chunk)
                yield chunk
                chunk = await stream.read()

            returncode = await stream.wait()
            if returncode != 0:
                logger.error(f"yt-dlp failed mid-stream for {safe_url} after {sent} bytes: {stream.error_summary}")
            else:
                logger.info(f"Stream finished for {safe_url}: {sent} bytes")
        except asyncio.CancelledError:
            logger.info(f"Client disconnected from {safe_url} after {sent} bytes")
            raise
        except Exception as e:
            logger.error(f"Stream error for {safe_url} after {sent} bytes: {e}")
        finally:
            await stream.aclose()
