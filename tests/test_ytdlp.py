import asyncio
import json
import stat
import sys

import pytest
from ytrelay.config.settings import YtDlpConfig
from ytrelay.services.ytdlp import DownloadStream, DownloaderError, YTDLPCommandBuilder, YtDlpClient


def test_info_command_has_fixed_agent_and_no_cert_check():
    settings = YtDlpConfig(user_agent="UA/1.0")
    cmd = YTDLPCommandBuilder.build_info_command(settings, "https://video.example/x")
    assert cmd[0] == "yt-dlp"
    assert "--dump-single-json" in cmd
    assert cmd[cmd.index("--user-agent") + 1] == "UA/1.0"
    assert "--no-check-certificates" in cmd
    assert cmd[-1] == "https://video.example/x"


def test_stream_command_writes_to_stdout_with_hints():
    cmd = YTDLPCommandBuilder.build_stream_command(YtDlpConfig(), "https://video.example/x", ["-f", "18+bestaudio/best"])
    assert cmd[cmd.index("-o") + 1] == "-"
    assert cmd[cmd.index("--concurrent-fragments") + 1] == "5"
    assert cmd[cmd.index("--buffer-size") + 1] == "16K"
    assert "--no-check-certificates" in cmd
    assert cmd[-2:] == ["-f", "18+bestaudio/best"]


def test_certificate_checks_can_be_enabled():
    cmd = YTDLPCommandBuilder.build_info_command(YtDlpConfig(check_certificates=True), "u")
    assert "--no-check-certificates" not in cmd


def fake_binary(tmp_path, body):
    script = tmp_path / "fake-yt-dlp"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


@pytest.mark.asyncio
async def test_fetch_info_parses_dump(tmp_path):
    payload = json.dumps({"title": "T", "duration_string": "1:00", "formats": [{"format_id": "18", "vcodec": "avc1"}]})
    client = YtDlpClient(YtDlpConfig(binary=fake_binary(tmp_path, f"cat <<'EOF'\n{payload}\nEOF\n")))
    info = await client.fetch_info("https://video.example/x")
    assert info.title == "T"
    assert info.formats[0].format_id == "18"


@pytest.mark.asyncio
async def test_fetch_info_nonzero_exit_raises(tmp_path):
    client = YtDlpClient(YtDlpConfig(binary=fake_binary(tmp_path, "echo 'ERROR: Unsupported URL' >&2\nexit 1\n")))
    with pytest.raises(DownloaderError, match="Unsupported URL"):
        await client.fetch_info("https://video.example/x")


@pytest.mark.asyncio
async def test_fetch_info_bad_json_raises(tmp_path):
    client = YtDlpClient(YtDlpConfig(binary=fake_binary(tmp_path, "echo not-json\n")))
    with pytest.raises(DownloaderError):
        await client.fetch_info("https://video.example/x")


@pytest.mark.asyncio
async def test_fetch_info_missing_binary_raises(tmp_path):
    client = YtDlpClient(YtDlpConfig(binary=str(tmp_path / "does-not-exist")))
    with pytest.raises(DownloaderError):
        await client.fetch_info("https://video.example/x")


@pytest.mark.asyncio
async def test_fetch_info_timeout_raises(tmp_path):
    client = YtDlpClient(YtDlpConfig(binary=fake_binary(tmp_path, "exec sleep 30\n"), info_timeout=0.2))
    with pytest.raises(DownloaderError, match="timed out"):
        await client.fetch_info("https://video.example/x")


@pytest.mark.asyncio
async def test_download_stream_aclose_kills_child():
    process = await asyncio.create_subprocess_exec(
        sys.executable, "-c",
        "import sys, time; sys.stdout.write('x' * 10); sys.stdout.flush(); time.sleep(30)",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stream = DownloadStream(process, chunk_size=1024)
    assert await stream.read() == b"x" * 10
    await stream.aclose()
    assert process.returncode is not None


@pytest.mark.asyncio
async def test_download_stream_collects_stderr():
    process = await asyncio.create_subprocess_exec(
        sys.executable, "-c",
        "import sys; sys.stderr.write('ERROR: gone\\n'); sys.exit(2)",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stream = DownloadStream(process, chunk_size=1024)
    assert await stream.read() == b""
    assert await stream.wait() == 2
    assert "ERROR: gone" in stream.error_summary
    await stream.aclose()


@pytest.mark.asyncio
async def test_cancelled_wait_propagates_to_caller():
    # A grandchild keeps stderr open after the child itself has exited
    process = await asyncio.create_subprocess_exec(
        sys.executable, "-c",
        "import subprocess, sys; subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(3)'])",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stream = DownloadStream(process, chunk_size=1024)
    await asyncio.wait_for(process.wait(), 10)

    waiter = asyncio.create_task(stream.wait())
    await asyncio.sleep(0.1)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter
    await stream.aclose()
