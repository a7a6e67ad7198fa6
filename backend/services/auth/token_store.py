"""Session-slot and reset-slot persistence rules.

Each user has exactly one live refresh token. Only its SHA-256 digest is
stored; writing a new one ends the previous session.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql import ColumnElement

from core import generate_reset_token, settings
from models import User
from services.errors import InvalidTokenError


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def store_session_token(user: User, refresh_token: str) -> None:
    """Overwrite the session slot, ending any earlier session."""
    user.refresh_token_hash = hash_token(refresh_token)


def session_token_matches(user: User, refresh_token: str) -> bool:
    return user.refresh_token_hash is not None and user.refresh_token_hash == hash_token(
        refresh_token
    )


async def rotate_session_token(
    session: AsyncSession,
    user: User,
    *,
    presented_token: str,
    new_token: str,
) -> None:
    """Swap the session slot from ``presented_token`` to ``new_token`` atomically.

    The UPDATE only matches while the slot still holds the presented token, so
    of two concurrent rotations with the same token at most one succeeds.
    """
    new_hash = hash_token(new_token)
    result = await session.execute(
        update(User)
        .where(
            _eq(User.id, user.id),
            _eq(User.refresh_token_hash, hash_token(presented_token)),
        )
        .values(refresh_token_hash=new_hash)
        .execution_options(synchronize_session=False)
    )
    if cast(Any, result).rowcount != 1:
        raise InvalidTokenError("Refresh token has been revoked")
    set_committed_value(user, "refresh_token_hash", new_hash)


async def clear_session_token(session: AsyncSession, user: User) -> None:
    await session.execute(
        update(User)
        .where(_eq(User.id, user.id))
        .values(refresh_token_hash=None)
        .execution_options(synchronize_session=False)
    )
    set_committed_value(user, "refresh_token_hash", None)


def store_reset_token(user: User, *, now: datetime | None = None) -> str:
    """Write a fresh reset token into the reset slot and return it.

    Any earlier unconsumed token is overwritten.
    """
    token = generate_reset_token()
    issued_at = now or datetime.now(timezone.utc)
    user.password_reset_token_hash = hash_token(token)
    user.password_reset_expires_at = issued_at + timedelta(
        minutes=settings.password_reset_token_expire_minutes
    )
    return token


async def find_user_by_reset_token(session: AsyncSession, token: str) -> User | None:
    if not token:
        return None
    result = await session.execute(
        select(User).where(_eq(User.password_reset_token_hash, hash_token(token))).limit(1)
    )
    return result.scalar_one_or_none()


def reset_token_expired(user: User, *, now: datetime | None = None) -> bool:
    expires_at = user.password_reset_expires_at
    if expires_at is None:
        return True
    current = now or datetime.now(timezone.utc)
    return current >= ensure_aware(expires_at)


def clear_reset_token(user: User) -> None:
    user.password_reset_token_hash = None
    user.password_reset_expires_at = None


__all__ = [
    "hash_token",
    "ensure_aware",
    "store_session_token",
    "session_token_matches",
    "rotate_session_token",
    "clear_session_token",
    "store_reset_token",
    "find_user_by_reset_token",
    "reset_token_expired",
    "clear_reset_token",
]
