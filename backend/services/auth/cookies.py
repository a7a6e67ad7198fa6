"""HTTP cookie helpers for auth token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Response

from core import settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"


def cookies_secure() -> bool:
    return (
        settings.app_env.strip().lower() not in {"local", "test"}
        and not settings.allow_insecure_http_cookies
    )


def _max_age(minutes: int) -> int:
    return int(timedelta(minutes=minutes).total_seconds())


def set_token_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    secure = cookies_secure()
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        httponly=True,
        secure=secure,
        samesite=COOKIE_SAMESITE,
        max_age=_max_age(settings.access_token_expire_minutes),
        path=COOKIE_PATH,
    )
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=secure,
        samesite=COOKIE_SAMESITE,
        max_age=_max_age(settings.refresh_token_expire_minutes),
        path=COOKIE_PATH,
    )


def clear_token_cookies(response: Response) -> None:
    secure = cookies_secure()
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key,
            path=COOKIE_PATH,
            secure=secure,
            httponly=True,
            samesite=COOKIE_SAMESITE,
        )
