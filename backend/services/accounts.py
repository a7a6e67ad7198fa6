"""Account registration, federation and profile management."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from uuid import uuid4

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core import hash_password, settings
from db.errors import is_unique_violation, violated_column
from models import User

from .auth.identity_resolution import (
    email_taken,
    find_user_by_email,
    find_user_by_google_id,
    get_user_by_id,
    phone_taken,
)
from .auth.tokens import TokenPair, issue_token_pair
from .email import EmailSender, send_quietly
from .errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .google_oauth import GoogleOAuthClient
from .images import UploadTooLargeError, process_image_bytes, read_upload_file
from .storage import delete_object, upload_object
from .validators import (
    not_empty,
    validate_email,
    validate_new_password,
    validate_object_id,
    validate_phone,
)

logger = logging.getLogger(__name__)

AVATAR_KEY_PREFIX = "avatars/"
UPLOAD_TOO_LARGE_STATUS = 413
CONFLICT_MESSAGES = {
    "email": "Email already exists",
    "phone": "Phone number already exists",
    "google_id": "Google account already linked",
}


@dataclass(frozen=True)
class ProfileUpdate:
    full_name: str | None
    email: str | None
    phone: str | None
    gender: str | None
    birth_date: date | None
    pronoun: str | None = None


def _conflict_from_integrity_error(exc: IntegrityError, default: str) -> ConflictError | None:
    if not is_unique_violation(exc):
        return None
    column = violated_column(exc, tuple(CONFLICT_MESSAGES))
    return ConflictError(CONFLICT_MESSAGES.get(column or "", default))


async def _commit(session: AsyncSession, *, conflict_message: str) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        conflict = _conflict_from_integrity_error(exc, conflict_message)
        if conflict is not None:
            raise conflict from exc
        raise


async def register(
    session: AsyncSession,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    password2: str | None,
    mailer: EmailSender,
) -> tuple[User, TokenPair]:
    not_empty([name, email, password, password2])
    normalized_email = validate_email(email)
    new_password = validate_new_password(password, password2)

    if await email_taken(session, normalized_email):
        raise ConflictError("User already exists")

    user = User(
        full_name=(name or "").strip(),
        email=normalized_email,
        password_hash=hash_password(new_password),
        subscribed=True,
    )
    session.add(user)
    tokens = issue_token_pair(user)
    await _commit(session, conflict_message="User already exists")
    await session.refresh(user)

    await send_quietly("welcome", mailer.send_welcome(user.email, user.full_name))
    logger.info("Registered account", extra={"user_id": user.id})
    return user, tokens


async def google_login(
    session: AsyncSession,
    *,
    code: str | None,
    oauth_client: GoogleOAuthClient,
    mailer: EmailSender,
) -> tuple[User, TokenPair, bool]:
    """Sign in with a Google authorization code, creating the account if needed.

    Returns the user, a fresh token pair and whether the account was created.
    """
    if not code or not code.strip():
        raise ValidationError("Code not provided")

    identity = await oauth_client.authenticate(code.strip())
    normalized_email = identity.email.strip().lower()

    user = await find_user_by_google_id(session, identity.subject)
    if user is None:
        user = await find_user_by_email(session, normalized_email)
        if user is not None:
            # Only a verified Google address may claim an existing account.
            if user.google_id is not None or not identity.email_verified:
                raise ConflictError("An account with this email already exists")
            user.google_id = identity.subject

    created = user is None
    if user is None:
        user = User(
            google_id=identity.subject,
            email=normalized_email,
            full_name=identity.name,
            avatar=identity.picture,
            subscribed=True,
        )
        session.add(user)

    tokens = issue_token_pair(user)
    await _commit(session, conflict_message="User already exists")
    await session.refresh(user)

    if created:
        await send_quietly("welcome", mailer.send_welcome(user.email, user.full_name))
    return user, tokens, created


async def update_profile(
    session: AsyncSession,
    user: User,
    changes: ProfileUpdate,
) -> User:
    not_empty([changes.full_name, changes.email, changes.phone, changes.gender, changes.birth_date])
    email = validate_email(changes.email)
    phone = validate_phone(changes.phone)

    if email != user.email and await email_taken(session, email, exclude_user_id=user.id):
        raise ConflictError(CONFLICT_MESSAGES["email"])
    if phone != user.phone and await phone_taken(session, phone, exclude_user_id=user.id):
        raise ConflictError(CONFLICT_MESSAGES["phone"])

    user.full_name = (changes.full_name or "").strip()
    user.email = email
    user.phone = phone
    user.gender = (changes.gender or "").strip()
    user.birth_date = changes.birth_date
    pronoun = (changes.pronoun or "").strip()
    user.pronoun = pronoun or None

    await _commit(session, conflict_message="Email already exists")
    await session.refresh(user)
    return user


def _owned_avatar_key(avatar: str | None) -> str | None:
    if avatar and avatar.startswith(AVATAR_KEY_PREFIX):
        return avatar
    return None


async def _discard_avatar_object(object_key: str | None, reason: str) -> None:
    if object_key is None:
        return
    try:
        await asyncio.to_thread(delete_object, object_key)
    except Exception as cleanup_error:
        logger.warning(
            "Failed to cleanup avatar object %s",
            reason,
            extra={"avatar_key": object_key},
            exc_info=cleanup_error,
        )


async def set_avatar(session: AsyncSession, user: User, upload: UploadFile | None) -> User:
    if upload is None:
        raise ValidationError("Please upload an image")

    try:
        data = await read_upload_file(upload, settings.upload_max_bytes)
        processed_bytes, content_type = await asyncio.to_thread(process_image_bytes, data)
    except UploadTooLargeError as exc:
        raise ValidationError(str(exc), status_code=UPLOAD_TOO_LARGE_STATUS) from exc
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    previous_key = _owned_avatar_key(user.avatar)
    object_key = f"{AVATAR_KEY_PREFIX}{uuid4().hex}.jpg"
    try:
        await asyncio.to_thread(upload_object, object_key, processed_bytes, content_type)
    except Exception as exc:
        logger.error(
            "Failed to upload avatar object",
            extra={"avatar_key": object_key},
            exc_info=exc,
        )
        raise UpstreamError("Unable to store avatar image") from exc

    user.avatar = object_key
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        await _discard_avatar_object(object_key, "after avatar commit failure")
        raise

    await session.refresh(user)
    await _discard_avatar_object(previous_key, "replaced by a new avatar")
    return user


async def remove_avatar(session: AsyncSession, user: User) -> User:
    previous_key = _owned_avatar_key(user.avatar)
    user.avatar = None
    await session.commit()
    await session.refresh(user)
    await _discard_avatar_object(previous_key, "after avatar removal")
    return user


async def unsubscribe(
    session: AsyncSession,
    *,
    user_id: str,
    email: str | None,
) -> User:
    normalized_id = validate_object_id(user_id)
    normalized_email = validate_email(email)

    user = await get_user_by_id(session, normalized_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.email != normalized_email:
        raise ForbiddenError("Invalid email")

    user.subscribed = False
    await session.commit()
    await session.refresh(user)
    return user


__all__ = [
    "ProfileUpdate",
    "register",
    "google_login",
    "update_profile",
    "set_avatar",
    "remove_avatar",
    "unsubscribe",
]
