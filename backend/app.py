"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from api.exception_handlers import setup_exception_handlers
from api.middleware import RateLimitMiddleware
from api.v1 import api_router
from core import settings
from core.logging import configure_logging
from services import get_rate_limiter


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title=f"{settings.app_name} API")
    application.add_middleware(RateLimitMiddleware, limiter_factory=get_rate_limiter)
    setup_exception_handlers(application)
    application.include_router(api_router)

    @application.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application
