"""Request bodies, read projections and the response envelope."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from services.auth import TokenPair

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    """Uniform success envelope: ``{statusCode, data, message, success}``."""

    status_code: int
    data: DataT
    message: str
    success: bool = True


class ErrorResponse(CamelModel):
    status_code: int
    message: str
    success: bool = False
    code: str


def envelope(status_code: int, data: DataT, message: str) -> ApiResponse[DataT]:
    return ApiResponse(
        status_code=status_code,
        data=data,
        message=message,
        success=status_code < 400,
    )


class UserPublic(CamelModel):
    """Read projection of a user. Never carries credentials or token slots."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str
    email: str
    full_name: str | None = None
    avatar: str | None = None
    phone: str | None = None
    gender: str | None = None
    birth_date: date | None = None
    pronoun: str | None = None
    subscribed: bool = True
    google_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TokensData(CamelModel):
    access_token: str
    refresh_token: str

    @classmethod
    def from_pair(cls, pair: TokenPair) -> TokensData:
        return cls(access_token=pair.access_token, refresh_token=pair.refresh_token)


class AuthData(TokensData):
    user: UserPublic
    is_new_user: bool | None = None


class EmptyData(CamelModel):
    pass


# Request bodies keep every field optional so that missing values are
# reported by the field validators with the service's own messages.


class RegisterRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    password2: str | None = None


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(CamelModel):
    email: str | None = None


class ResetPasswordRequest(CamelModel):
    password: str | None = None
    password2: str | None = None


class ChangePasswordRequest(CamelModel):
    old_password: str | None = None
    password: str | None = None
    password2: str | None = None


class GoogleAuthRequest(CamelModel):
    code: str | None = None


class UpdateProfileRequest(CamelModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    gender: str | None = None
    birth_date: date | None = None
    pronoun: str | None = None


class UnsubscribeRequest(CamelModel):
    email: str | None = None


def error_body(status_code: int, message: str, code: str) -> dict[str, Any]:
    return ErrorResponse(status_code=status_code, message=message, code=code).model_dump(
        by_alias=True
    )
