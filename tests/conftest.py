import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from ytrelay.config.settings import Config
from ytrelay.core.state import state
from ytrelay.main import create_app
from ytrelay.models.internal import MediaInfo

SAMPLE_INFO = {
    "title": "Foo: Bar - Baz!",
    "thumbnail": "https://img.example/thumb.jpg",
    "uploader": "Uploader",
    "duration_string": "3:32",
    "formats": [
        {"format_id": "140", "ext": "m4a", "resolution": "audio only", "vcodec": "none", "filesize": 3000},
        {"format_id": "18", "ext": "mp4", "resolution": "640x360", "format_note": "360p", "height": 360,
         "vcodec": "avc1", "filesize": 5},
        {"format_id": "137", "ext": "mp4", "resolution": "1920x1080", "height": 1080, "vcodec": "avc1",
         "filesize_approx": 7},
    ],
}


class FakeStream:
    def __init__(self, chunks, returncode=0, stderr="ERROR: boom"):
        self.chunks = list(chunks)
        self.returncode = returncode
        self.stderr = stderr
        self.closed = False

    async def read(self):
        return self.chunks.pop(0) if self.chunks else b""

    async def wait(self):
        return self.returncode

    async def aclose(self):
        self.closed = True

    @property
    def error_summary(self):
        return self.stderr


class FakeDownloader:
    """Stands in for YtDlpClient; records every call"""

    def __init__(self, info=None, chunks=(b"media-bytes",), returncode=0, info_error=None):
        self.info = info if info is not None else SAMPLE_INFO
        self.chunks = chunks
        self.returncode = returncode
        self.info_error = info_error
        self.info_calls = []
        self.stream_calls = []
        self.streams = []

    async def fetch_info(self, url):
        self.info_calls.append(url)
        if self.info_error:
            raise self.info_error
        return MediaInfo.model_validate(self.info)

    async def open_stream(self, url, format_args):
        self.stream_calls.append((url, format_args))
        stream = FakeStream(self.chunks, self.returncode)
        self.streams.append(stream)
        return stream


@pytest.fixture
def config(tmp_path):
    return Config(
        logging={"enable_rich": False},
        server={"static_dir": str(tmp_path)},
    )


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def app(config, downloader):
    return create_app(config=config, downloader=downloader)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis covering eval/get/setex"""

    def __init__(self, ttl=42):
        self.ttl = ttl
        self.counters = {}
        self.store = {}
        self.eval_calls = []

    async def eval(self, script, numkeys, key, window):
        self.eval_calls.append((key, window))
        self.counters[key] = self.counters.get(key, 0) + 1
        return [self.counters[key], self.ttl]

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def ping(self):
        return True


class FailingRedis:
    """Every call fails as if the server went away"""

    async def eval(self, *args):
        raise ConnectionError("redis down")

    async def get(self, key):
        raise ConnectionError("redis down")

    async def setex(self, key, ttl, value):
        raise ConnectionError("redis down")

    async def ping(self):
        raise ConnectionError("redis down")


@pytest.fixture
def fake_redis():
    redis = FakeRedis()
    state.redis = redis
    yield redis
    state.redis = None


@pytest.fixture
def failing_redis():
    redis = FailingRedis()
    state.redis = redis
    yield redis
    state.redis = None
