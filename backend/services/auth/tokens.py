"""Access/refresh token issuance and verification."""

from __future__ import annotations

from dataclasses import dataclass

from core import create_access_token, create_refresh_token, decode_refresh_token
from models import User
from services.errors import InvalidTokenError

from .token_store import store_session_token


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def sign_token_pair(user_id: str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


def issue_token_pair(user: User) -> TokenPair:
    """Sign a new token pair for ``user`` and claim the session slot with it.

    The caller commits; until then the previous session is still live.
    """
    pair = sign_token_pair(str(user.id))
    store_session_token(user, pair.refresh_token)
    return pair


def verify_refresh_token(token: str) -> str:
    """Return the user id embedded in a valid refresh token."""
    try:
        payload = decode_refresh_token(token)
    except ValueError as exc:
        raise InvalidTokenError(str(exc) or "Invalid refresh token") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise InvalidTokenError("Invalid refresh token")
    return subject.strip()


__all__ = ["TokenPair", "sign_token_pair", "issue_token_pair", "verify_refresh_token"]
