"""Redis-backed throttling of the authentication endpoints."""

from __future__ import annotations

import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol, runtime_checkable

from redis.asyncio import Redis
from starlette.requests import Request

from core import decode_access_token, decode_refresh_token, settings

ACCESS_COOKIE_NAME = "accessToken"
REFRESH_COOKIE_NAME = "refreshToken"
AUTH_PATH_PREFIX = "/api/v1/auth"
KEY_PREFIX = "auth-throttle"


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


@dataclass(frozen=True)
class Window:
    """One fixed counting window for a client."""

    index: int
    seconds_left: int


def _token_subject(request: Request) -> str | None:
    decoders = (
        (ACCESS_COOKIE_NAME, decode_access_token),
        (REFRESH_COOKIE_NAME, decode_refresh_token),
    )
    for cookie_name, decode in decoders:
        token = request.cookies.get(cookie_name)
        if not token:
            continue
        try:
            subject = decode(token).get("sub")
        except ValueError:
            continue
        if isinstance(subject, str) and subject.strip():
            return subject.strip()
    return None


def default_client_identifier(request: Request) -> str:
    """Key a request by its signed-in user, else by the peer address."""
    subject = _token_subject(request)
    if subject is not None:
        return f"user:{subject}"
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


class RateLimiter:
    """Fixed-window counter kept in Redis, one key per client and window."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = KEY_PREFIX,
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return self.limit > 0 and self.window_seconds > 0

    def current_window(self, now: float | None = None) -> Window:
        moment = int(now if now is not None else time.time())
        index, elapsed = divmod(moment, self.window_seconds)
        return Window(index=index, seconds_left=self.window_seconds - elapsed)

    async def hit(self, key: str) -> int:
        """Count one request for ``key`` in the current window and return the total."""
        window = self.current_window()
        redis_key = f"{self.prefix}:{key}:{window.index}"
        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count

    async def allow(self, key: str) -> bool:
        if not self.enabled:
            return True
        return await self.hit(key) <= self.limit


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    return Redis.from_url(settings.redis_url, decode_responses=False)


_active_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter, building it from settings on first use."""
    global _active_limiter
    if _active_limiter is None:
        _active_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _active_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    global _active_limiter
    _active_limiter = limiter


def is_auth_path(path: str) -> bool:
    return path == AUTH_PATH_PREFIX or path.startswith(f"{AUTH_PATH_PREFIX}/")


__all__ = [
    "RateLimiter",
    "default_client_identifier",
    "get_rate_limiter",
    "get_redis_client",
    "is_auth_path",
    "set_rate_limiter",
]
