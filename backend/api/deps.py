"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core import decode_access_token
from db.session import get_session
from models import User
from services.auth import ACCESS_COOKIE, get_user_by_id
from services.errors import UnauthorizedError


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _extract_access_token(request: Request) -> str | None:
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token

    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = value.strip()
    return token or None


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the access cookie or bearer header."""
    token = _extract_access_token(request)
    if token is None:
        raise UnauthorizedError("Unauthorized request")

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise UnauthorizedError("Invalid access token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise UnauthorizedError("Invalid access token")

    user = await get_user_by_id(session, subject)
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user
