"""User profile endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from api.schemas import (
    ApiResponse,
    UnsubscribeRequest,
    UpdateProfileRequest,
    UserPublic,
    envelope,
)
from models import User
from services import accounts
from services.accounts import ProfileUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ApiResponse[UserPublic])
async def get_me(current_user: User = Depends(get_current_user)) -> Any:
    return envelope(
        status.HTTP_200_OK,
        UserPublic.model_validate(current_user),
        "Fetched user profile successfully!",
    )


@router.patch("/me", response_model=ApiResponse[UserPublic])
async def update_me(
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Any:
    """Replace the authenticated user's profile fields."""
    user = await accounts.update_profile(
        session,
        current_user,
        ProfileUpdate(
            full_name=payload.full_name,
            email=payload.email,
            phone=payload.phone,
            gender=payload.gender,
            birth_date=payload.birth_date,
            pronoun=payload.pronoun,
        ),
    )
    return envelope(status.HTTP_200_OK, UserPublic.model_validate(user), "User updated successfully!")


@router.put("/me/avatar", response_model=ApiResponse[UserPublic])
async def update_avatar(
    avatar: UploadFile | None = File(default=None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Any:
    user = await accounts.set_avatar(session, current_user, avatar)
    return envelope(
        status.HTTP_200_OK,
        UserPublic.model_validate(user),
        "Avatar image uploaded successfully!",
    )


@router.delete("/me/avatar", response_model=ApiResponse[UserPublic])
async def remove_avatar(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> Any:
    user = await accounts.remove_avatar(session, current_user)
    return envelope(status.HTTP_200_OK, UserPublic.model_validate(user), "Avatar removed successfully!")


@router.post("/{user_id}/unsubscribe", response_model=ApiResponse[UserPublic])
async def unsubscribe(
    user_id: str,
    payload: UnsubscribeRequest,
    session: AsyncSession = Depends(get_db),
) -> Any:
    """Opt an account out of emails. Reached from the link in outgoing mail."""
    user = await accounts.unsubscribe(session, user_id=user_id, email=payload.email)
    return envelope(
        status.HTTP_200_OK,
        UserPublic.model_validate(user),
        "User unsubscribed successfully!",
    )
