"""Google authorization-code exchange and ID token verification."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from core import Settings, settings as default_settings

from .errors import UpstreamError

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = frozenset({"accounts.google.com", "https://accounts.google.com"})


@dataclass(frozen=True)
class GoogleIdentity:
    subject: str
    email: str
    name: str | None = None
    picture: str | None = None
    email_verified: bool = False


class GoogleOAuthClient:
    """Thin async wrapper over Google's token endpoint and google-auth."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    async def exchange_code(self, code: str) -> dict[str, Any]:
        data = {
            "code": code,
            "client_id": self._settings.google_client_id,
            "client_secret": self._settings.google_client_secret,
            "redirect_uri": self._settings.google_redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with httpx.AsyncClient(timeout=self._settings.google_timeout_seconds) as client:
                response = await client.post(self._settings.google_token_url, data=data)
        except httpx.HTTPError as exc:
            logger.warning("Google token exchange failed: %s", exc)
            raise UpstreamError("Unable to reach Google") from exc

        if response.status_code != 200:
            logger.warning(
                "Google token exchange rejected",
                extra={"status_code": response.status_code},
            )
            raise UpstreamError("Google rejected the authorization code")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Google token endpoint returned a non-JSON body")
            raise UpstreamError("Invalid response from Google") from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Invalid response from Google")
        return payload

    def _verify(self, token: str) -> dict[str, Any]:
        return id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            self._settings.google_client_id,
        )

    async def verify_identity_token(self, token: str) -> GoogleIdentity:
        try:
            claims = await asyncio.to_thread(self._verify, token)
        except (ValueError, GoogleAuthError) as exc:
            logger.warning("Google ID token verification failed: %s", exc)
            raise UpstreamError("Invalid Google identity token") from exc

        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise UpstreamError("Invalid Google identity token")
        subject = claims.get("sub")
        email = claims.get("email")
        if not subject or not email:
            raise UpstreamError("Google identity is missing an email address")

        return GoogleIdentity(
            subject=str(subject),
            email=str(email),
            name=claims.get("name"),
            picture=claims.get("picture"),
            email_verified=bool(claims.get("email_verified", False)),
        )

    async def authenticate(self, code: str) -> GoogleIdentity:
        tokens = await self.exchange_code(code)
        raw_id_token = tokens.get("id_token")
        if not raw_id_token:
            raise UpstreamError("Google did not return an identity token")
        return await self.verify_identity_token(raw_id_token)


def get_google_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


__all__ = ["GoogleIdentity", "GoogleOAuthClient", "get_google_oauth_client"]
