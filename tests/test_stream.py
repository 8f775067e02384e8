import pytest
from ytrelay.models.request import DownloadRequest
from ytrelay.services.stream import StreamService
from ytrelay.services.ytdlp import DownloaderError

from conftest import FakeDownloader


@pytest.mark.asyncio
async def test_abandoned_stream_closes_the_child():
    downloader = FakeDownloader(chunks=(b"a", b"b", b"c"))
    generator, headers, media_type = await StreamService.stream(
        downloader, DownloadRequest(url="https://video.example/x")
    )
    assert await generator.__anext__() == b"a"
    # What the server does when the client goes away mid-body
    await generator.aclose()
    assert downloader.streams[0].closed


@pytest.mark.asyncio
async def test_failure_before_first_chunk_raises_and_closes():
    downloader = FakeDownloader(chunks=(), returncode=1)
    with pytest.raises(DownloaderError, match="boom"):
        await StreamService.stream(downloader, DownloadRequest(url="https://video.example/x"))
    assert downloader.streams[0].closed


@pytest.mark.asyncio
async def test_headers_for_mp3():
    downloader = FakeDownloader()
    generator, headers, media_type = await StreamService.stream(
        downloader, DownloadRequest(url="https://video.example/x", format="mp3")
    )
    assert media_type == "audio/mpeg"
    assert headers["Content-Disposition"].startswith('attachment; filename="Foo Bar - Baz.mp3"')
    assert "Content-Length" not in headers
    assert b"".join([chunk async for chunk in generator]) == b"media-bytes"
