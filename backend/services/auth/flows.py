"""Login, logout, refresh and password recovery flows.

Each flow validates its input, reads and writes the user's session or reset
slot, and commits. Failures are raised as ``services.errors`` exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password, needs_rehash, settings, verify_password
from models import User
from services.email import EmailSender, send_quietly
from services.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    SamePasswordError,
    TokenExpiredError,
    UnauthorizedError,
)
from services.validators import (
    compare_fields,
    min_length,
    not_empty,
    validate_email,
    validate_new_password,
)

from .identity_resolution import find_user_by_email, get_user_by_id
from .token_store import (
    clear_reset_token,
    clear_session_token,
    find_user_by_reset_token,
    reset_token_expired,
    rotate_session_token,
    session_token_matches,
    store_reset_token,
)
from .tokens import TokenPair, issue_token_pair, sign_token_pair, verify_refresh_token

logger = logging.getLogger(__name__)


async def login(
    session: AsyncSession,
    *,
    email: str | None,
    password: str | None,
) -> tuple[User, TokenPair]:
    not_empty([email, password])
    normalized_email = validate_email(email)
    password = password or ""
    min_length(password, settings.password_min_length, "Password")

    user = await find_user_by_email(session, normalized_email)
    if user is None or not verify_password(password, user.password_hash):
        # Unknown accounts and wrong passwords are reported identically.
        logger.info("Rejected login attempt", extra={"email": normalized_email})
        raise InvalidCredentialsError()

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)

    tokens = issue_token_pair(user)
    await session.commit()
    await session.refresh(user)
    return user, tokens


async def logout(session: AsyncSession, user: User) -> None:
    await clear_session_token(session, user)
    await session.commit()


async def refresh(session: AsyncSession, presented_token: str | None) -> TokenPair:
    if not presented_token:
        raise UnauthorizedError("Unauthorized request")

    user_id = verify_refresh_token(presented_token)
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise InvalidTokenError("Invalid refresh token")

    if not session_token_matches(user, presented_token):
        logger.warning(
            "Refresh token does not match the active session",
            extra={"user_id": user_id},
        )
        raise InvalidTokenError("Refresh token has been revoked")

    tokens = sign_token_pair(user_id)
    try:
        await rotate_session_token(
            session,
            user,
            presented_token=presented_token,
            new_token=tokens.refresh_token,
        )
    except InvalidTokenError:
        await session.rollback()
        logger.warning("Concurrent refresh lost the session slot", extra={"user_id": user_id})
        raise
    await session.commit()
    return tokens


async def forgot_password(
    session: AsyncSession,
    *,
    email: str | None,
    mailer: EmailSender,
) -> None:
    normalized_email = validate_email(email)
    user = await find_user_by_email(session, normalized_email)
    if user is None:
        raise NotFoundError("User does not exist")

    token = store_reset_token(user)
    await session.commit()

    await send_quietly(
        "password reset",
        mailer.send_password_reset(user.email, user.full_name, token),
    )


async def reset_password(
    session: AsyncSession,
    *,
    token: str | None,
    password: str | None,
    password2: str | None,
    now: datetime | None = None,
) -> None:
    user = await find_user_by_reset_token(session, token or "")
    if user is None:
        raise InvalidTokenError("Invalid token")
    if reset_token_expired(user, now=now or datetime.now(timezone.utc)):
        raise TokenExpiredError("Password reset token has expired")

    new_password = validate_new_password(password, password2)
    user.password_hash = hash_password(new_password)
    clear_reset_token(user)
    await session.commit()
    logger.info("Password reset completed", extra={"user_id": user.id})


async def change_password(
    session: AsyncSession,
    user: User,
    *,
    old_password: str | None,
    password: str | None,
    password2: str | None,
) -> None:
    not_empty([old_password, password, password2])
    old_password = old_password or ""
    password = password or ""
    min_length(password, settings.password_min_length, "Password")
    if old_password == password:
        raise SamePasswordError()
    compare_fields(password, password2 or "", "Password does not match")

    if not verify_password(old_password, user.password_hash):
        raise InvalidCredentialsError("Old password is incorrect")

    user.password_hash = hash_password(password)
    await session.commit()


__all__ = [
    "login",
    "logout",
    "refresh",
    "forgot_password",
    "reset_password",
    "change_password",
]
