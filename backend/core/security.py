"""Password hashing and signed-token primitives."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Literal
from uuid import uuid4

import bcrypt
import jwt

from .config import settings

TokenType = Literal["access", "refresh"]
# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72
RESET_TOKEN_ALPHABET = string.ascii_letters + string.digits


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_rehash(password_hash: str | None) -> bool:
    """Return True when the stored hash uses a different bcrypt cost."""
    if not password_hash:
        return False
    parts = password_hash.split("$")
    try:
        return int(parts[2]) != settings.bcrypt_rounds
    except (IndexError, ValueError):
        return True


def _secret_for(token_type: TokenType) -> str:
    if token_type == "access":
        return settings.access_token_secret
    return settings.refresh_token_secret


def _create_token(subject: str, token_type: TokenType, ttl: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + ttl,
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=settings.jwt_algorithm)


def create_access_token(subject: str) -> str:
    return _create_token(
        subject,
        "access",
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(subject: str) -> str:
    return _create_token(
        subject,
        "refresh",
        timedelta(minutes=settings.refresh_token_expire_minutes),
    )


def _decode_token(token: str, token_type: TokenType) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Token has expired") from exc
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid token") from exc

    if payload.get("type") != token_type:
        raise ValueError("Unexpected token type")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify an access token and return its claims.

    Raises ``ValueError`` for bad signatures, expiry or a wrong token type.
    """
    return _decode_token(token, "access")


def decode_refresh_token(token: str) -> dict[str, Any]:
    return _decode_token(token, "refresh")


def generate_reset_token(length: int | None = None) -> str:
    """Return a random opaque password-reset token."""
    size = length or settings.password_reset_token_length
    return "".join(secrets.choice(RESET_TOKEN_ALPHABET) for _ in range(size))


__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
    "generate_reset_token",
]
