"""Identity normalization and account lookup helpers."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ne(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column != value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def get_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    return await session.get(User, user_id)


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    result = await session.execute(
        select(User).where(_eq(lowered_email_column, normalize_email(email))).limit(1)
    )
    return result.scalar_one_or_none()


async def find_user_by_google_id(session: AsyncSession, google_id: str) -> User | None:
    result = await session.execute(select(User).where(_eq(User.google_id, google_id)).limit(1))
    return result.scalar_one_or_none()


async def _value_taken(
    session: AsyncSession,
    column: Any,
    value: str,
    *,
    exclude_user_id: str | None,
) -> bool:
    stmt = select(User.id).where(_eq(column, value))
    if exclude_user_id is not None:
        stmt = stmt.where(_ne(User.id, exclude_user_id))
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def email_taken(
    session: AsyncSession,
    email: str,
    *,
    exclude_user_id: str | None = None,
) -> bool:
    return await _value_taken(
        session,
        func.lower(cast(Any, User.email)),
        normalize_email(email),
        exclude_user_id=exclude_user_id,
    )


async def phone_taken(
    session: AsyncSession,
    phone: str,
    *,
    exclude_user_id: str | None = None,
) -> bool:
    return await _value_taken(
        session,
        User.phone,
        phone,
        exclude_user_id=exclude_user_id,
    )


__all__ = [
    "normalize_email",
    "get_user_by_id",
    "find_user_by_email",
    "find_user_by_google_id",
    "email_taken",
    "phone_taken",
]
