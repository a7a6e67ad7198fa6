"""Authentication domain services."""

from .cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_token_cookies,
    set_token_cookies,
)
from .identity_resolution import (
    email_taken,
    find_user_by_email,
    find_user_by_google_id,
    get_user_by_id,
    normalize_email,
    phone_taken,
)
from .token_store import (
    clear_reset_token,
    clear_session_token,
    ensure_aware,
    find_user_by_reset_token,
    hash_token,
    reset_token_expired,
    rotate_session_token,
    session_token_matches,
    store_reset_token,
    store_session_token,
)
from .tokens import TokenPair, issue_token_pair, sign_token_pair, verify_refresh_token

__all__ = [
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
    "clear_token_cookies",
    "set_token_cookies",
    "normalize_email",
    "get_user_by_id",
    "find_user_by_email",
    "find_user_by_google_id",
    "email_taken",
    "phone_taken",
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
    "TokenPair",
    "sign_token_pair",
    "issue_token_pair",
    "verify_refresh_token",
]
