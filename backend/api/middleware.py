"""HTTP middleware for the authentication endpoints."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from services.rate_limiter import RateLimiter, default_client_identifier, is_auth_path

from .schemas import error_body

logger = logging.getLogger(__name__)


def _throttle_response(
    status_code: int,
    message: str,
    code: str,
    retry_after: int | None = None,
) -> JSONResponse:
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    return JSONResponse(
        error_body(status_code, message, code),
        status_code=status_code,
        headers=headers,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Throttle requests to the authentication endpoints per client."""

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        client_identifier: Callable[[Request], str] | None = None,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.client_identifier = client_identifier or default_client_identifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        if not is_auth_path(request.url.path):
            return await call_next(request)

        limiter = self.limiter_factory()
        client_key = self.client_identifier(request) or "anonymous"
        try:
            allowed = await limiter.allow(client_key)
        except Exception:
            # Auth endpoints fail closed while the counter store is down.
            logger.exception("Rate limiter unavailable")
            return _throttle_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "Service unavailable",
                "SERVICE_UNAVAILABLE",
            )

        if not allowed:
            logger.info("Throttled auth request", extra={"client": client_key})
            return _throttle_response(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Too many requests",
                "RATE_LIMITED",
                retry_after=limiter.current_window().seconds_left,
            )
        return await call_next(request)


__all__ = ["RateLimitMiddleware"]
