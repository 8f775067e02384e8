from typing import List, NamedTuple, Protocol
from collections import deque
from contextlib import suppress
import asyncio
import json
import logging
from pydantic import ValidationError
from ytrelay.config.settings import YtDlpConfig
from ytrelay.models.internal import MediaInfo

logger = logging.getLogger(__name__)

STDERR_MAX_LINES = 50

class DownloaderError(Exception):
    """yt-dlp could not fetch metadata or produce a stream"""

class CompletedProcess(NamedTuple):
    """Subprocess result"""
    returncode: int
    stdout: bytes
    stderr: bytes

class SubprocessExecutor:
    """Execute subprocess with consistent error handling"""

    @staticmethod
    async def run(cmd: List[str], timeout: float) -> CompletedProcess:
        """
        Run subprocess with timeout and proper cleanup.
        The child is killed and reaped on timeout or any other error.
        """
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )
            return CompletedProcess(
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr
            )
        except BaseException:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    @staticmethod
    def common_args(settings: YtDlpConfig) -> List[str]:
        args = ['--user-agent', settings.user_agent]
        if not settings.check_certificates:
            args.append('--no-check-certificates')
        return args

    @staticmethod
    def build_info_command(settings: YtDlpConfig, url: str) -> List[str]:
        """Build command for fetching video info"""
        return [
            settings.binary,
            '--dump-single-json',
            '--no-playlist',
            '--no-warnings',
            *YTDLPCommandBuilder.common_args(settings),
            url,
        ]

    @staticmethod
    def build_stream_command(settings: YtDlpConfig, url: str, format_args: List[str]) -> List[str]:
        """Build command for streaming a download to stdout"""
        return [
            settings.binary,
            url,
            '-o', '-',
            '--no-playlist',
            *YTDLPCommandBuilder.common_args(settings),
            '--concurrent-fragments', str(settings.concurrent_fragments),
            '--buffer-size', settings.buffer_size,
            # stdout carries the media bytes, keep everything else off it
            '--no-progress',
            '--quiet',
            *format_args,
        ]

class MediaStream(Protocol):
    async def read(self) -> bytes: ...
    async def wait(self) -> int: ...
    async def aclose(self) -> None: ...
    @property
    def error_summary(self) -> str: ...

class Downloader(Protocol):
    async def fetch_info(self, url: str) -> MediaInfo: ...
    async def open_stream(self, url: str, format_args: List[str]) -> MediaStream: ...

class DownloadStream:
    """
    A running yt-dlp process whose stdout is the media body.
    The stream owns the process: aclose() kills and reaps it.
    """

    def __init__(self, process: asyncio.subprocess.Process, chunk_size: int):
        self.process = process
        self.chunk_size = chunk_size
        self.stderr_lines = deque(maxlen=STDERR_MAX_LINES)
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    async def _drain_stderr(self):
        """Drain stderr so a chatty child never blocks on a full pipe"""
        while True:
            line = await self.process.stderr.readline()
            if not line:
                break
            self.stderr_lines.append(line.decode(errors="replace").strip())

    @property
    def error_summary(self) -> str:
        return '\n'.join(self.stderr_lines)[:500]

    async def read(self) -> bytes:
        return await self.process.stdout.read(self.chunk_size)

    async def wait(self) -> int:
        returncode = await self.process.wait()
        # Let stderr finish so error_summary is complete. asyncio.wait never
        # swallows a cancellation aimed at the caller.
        await asyncio.wait([self._stderr_task])
        return returncode

    async def aclose(self) -> None:
        if self.process.returncode is None:
            with suppress(ProcessLookupError):
                self.process.kill()
            await self.process.wait()
        self._stderr_task.cancel()
        await asyncio.wait([self._stderr_task])

class YtDlpClient:
    """Handle on the yt-dlp executable, constructed once and injected into the app"""

    def __init__(self, settings: YtDlpConfig):
        self.settings = settings

    async def fetch_info(self, url: str) -> MediaInfo:
        cmd = YTDLPCommandBuilder.build_info_command(self.settings, url)
        try:
            result = await SubprocessExecutor.run(cmd, timeout=self.settings.info_timeout)
        except asyncio.TimeoutError:
            raise DownloaderError(f"yt-dlp timed out after {self.settings.info_timeout}s")
        except OSError as e:
            raise DownloaderError(f"Could not start {self.settings.binary}: {e}")

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors="replace").strip()
            raise DownloaderError(f"yt-dlp exited with {result.returncode}: {error_msg[:500]}")

        try:
            return MediaInfo.model_validate(json.loads(result.stdout.decode(errors="replace")))
        except (json.JSONDecodeError, ValidationError) as e:
            raise DownloaderError(f"Failed to parse yt-dlp output: {e}")

    async def open_stream(self, url: str, format_args: List[str]) -> DownloadStream:
        cmd = YTDLPCommandBuilder.build_stream_command(self.settings, url, format_args)
        logger.debug("Spawning %s with %s", self.settings.binary, " ".join(format_args))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            raise DownloaderError(f"Could not start {self.settings.binary}: {e}")
        return DownloadStream(process, self.settings.chunk_size)

