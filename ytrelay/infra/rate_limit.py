import asyncio
import functools
import logging
import math
import time
from typing import Callable, Dict, NamedTuple, Tuple
from fastapi import HTTPException, Request
from ytrelay.config.settings import RateLimitConfig
from ytrelay.infra.redis import get_redis
from ytrelay.utils.locale import get_locale
from ytrelay.i18n import i18n

logger = logging.getLogger(__name__)

class WindowState(NamedTuple):
    count: int
    reset_in: int

class FixedWindowRateLimiter:
    """
    Fixed-window limiter keyed by client address.
    Counts live in Redis when connected, otherwise in a lock-guarded dict.
    """

    lua_script = """
    local key = KEYS[1]
    local window = tonumber(ARGV[1])

    local current = redis.call('INCR', key)
    if current == 1 then
        redis.call('EXPIRE', key, window)
    end

    local ttl = redis.call('TTL', key)
    return {current, ttl}
    """

    def __init__(self, settings: RateLimitConfig, clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> WindowState:
        """Count one request for key and report the window it landed in"""
        redis = get_redis()
        if redis:
            try:
                count, ttl = await redis.eval(self.lua_script, 1, f"rate:{key}", self.settings.window_seconds)
                return WindowState(int(count), max(int(ttl), 0))
            except Exception as e:
                logger.warning(f"Redis rate limit failed, using in-memory counters: {e}")
        return await self._hit_local(key)

    async def _hit_local(self, key: str) -> WindowState:
        window = self.settings.window_seconds
        async with self._lock:
            now = self.clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= window:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            if len(self._windows) > 10000:
                self._evict_expired(now)
        return WindowState(count, max(math.ceil(started + window - now), 0))

    def _evict_expired(self, now: float) -> None:
        window = self.settings.window_seconds
        for key in [k for k, (started, _) in self._windows.items() if now - started >= window]:
            del self._windows[key]

    async def __call__(self, request: Request):
        if not self.settings.enabled:
            return True

        client_ip = request.client.host if request.client else "unknown"
        current = await self.hit(client_ip)

        if current.count > self.settings.max_requests:
            locale = get_locale(request.headers.get("accept-language"))
            _ = functools.partial(i18n.get, locale=locale)
            logger.warning(f"Rate limit exceeded for {client_ip} ({current.count} requests)")
            raise HTTPException(
                status_code=429,
                detail={"error": _("error.rate_limit"), "retry_after": current.reset_in},
                headers={
                    "RateLimit-Limit": str(self.settings.max_requests),
                    "RateLimit-Remaining": "0",
                    "RateLimit-Reset": str(current.reset_in),
                    "Retry-After": str(current.reset_in),
                }
            )

        return True
