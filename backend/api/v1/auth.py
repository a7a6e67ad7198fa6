"""Authentication endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from api.schemas import (
    ApiResponse,
    AuthData,
    ChangePasswordRequest,
    EmptyData,
    ForgotPasswordRequest,
    GoogleAuthRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokensData,
    UserPublic,
    envelope,
)
from models import User
from services import accounts
from services.auth import REFRESH_COOKIE, clear_token_cookies, flows, set_token_cookies
from services.email import EmailSender, get_email_sender
from services.google_oauth import GoogleOAuthClient, get_google_oauth_client

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[AuthData],
)
async def register(
    payload: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
) -> Any:
    user, tokens = await accounts.register(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        password2=payload.password2,
        mailer=mailer,
    )
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    data = AuthData(
        user=UserPublic.model_validate(user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return envelope(status.HTTP_201_CREATED, data, "User created successfully!")


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> Any:
    user, tokens = await flows.login(session, email=payload.email, password=payload.password)
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    data = AuthData(
        user=UserPublic.model_validate(user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
    return envelope(status.HTTP_200_OK, data, "User logged in successfully!")


@router.post("/logout", response_model=ApiResponse[EmptyData])
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Any:
    await flows.logout(session, current_user)
    clear_token_cookies(response)
    return envelope(status.HTTP_200_OK, EmptyData(), "User logged out!")


@router.post("/refresh", response_model=ApiResponse[TokensData])
async def refresh_tokens(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_db),
) -> Any:
    presented = request.cookies.get(REFRESH_COOKIE) or (
        payload.refresh_token if payload is not None else None
    )
    tokens = await flows.refresh(session, presented)
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    return envelope(status.HTTP_200_OK, TokensData.from_pair(tokens), "Access token refreshed!")


@router.post("/forgot-password", response_model=ApiResponse[EmptyData])
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_db),
    mailer: EmailSender = Depends(get_email_sender),
) -> Any:
    await flows.forgot_password(session, email=payload.email, mailer=mailer)
    return envelope(
        status.HTTP_200_OK,
        EmptyData(),
        "Password reset link sent to your email",
    )


@router.post("/reset-password", response_model=ApiResponse[EmptyData])
async def reset_password(
    payload: ResetPasswordRequest,
    token: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db),
) -> Any:
    await flows.reset_password(
        session,
        token=token,
        password=payload.password,
        password2=payload.password2,
    )
    return envelope(status.HTTP_200_OK, EmptyData(), "Password updated successfully!")


@router.post("/change-password", response_model=ApiResponse[EmptyData])
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Any:
    await flows.change_password(
        session,
        current_user,
        old_password=payload.old_password,
        password=payload.password,
        password2=payload.password2,
    )
    return envelope(status.HTTP_200_OK, EmptyData(), "Password updated successfully!")


@router.post("/google", response_model=ApiResponse[AuthData])
async def google_authentication(
    payload: GoogleAuthRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    oauth_client: GoogleOAuthClient = Depends(get_google_oauth_client),
    mailer: EmailSender = Depends(get_email_sender),
) -> Any:
    user, tokens, created = await accounts.google_login(
        session,
        code=payload.code,
        oauth_client=oauth_client,
        mailer=mailer,
    )
    status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    response.status_code = status_code
    set_token_cookies(response, tokens.access_token, tokens.refresh_token)
    data = AuthData(
        user=UserPublic.model_validate(user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        is_new_user=created,
    )
    message = "User created successfully!" if created else "User logged in successfully!"
    return envelope(status_code, data, message)
