"""User account model."""

from __future__ import annotations

from datetime import date, datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, String, func, text
from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Registered account, including its session and password-reset slots."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    google_id: str | None = Field(
        default=None, sa_column=Column(String(255), unique=True, nullable=True)
    )
    phone: str | None = Field(
        default=None, sa_column=Column(String(20), unique=True, nullable=True)
    )
    # NULL for accounts created through Google sign-in.
    password_hash: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    # SHA-256 of the one refresh token that is currently valid.
    refresh_token_hash: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    password_reset_token_hash: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True, index=True)
    )
    password_reset_expires_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    full_name: str | None = Field(
        default=None, sa_column=Column(String(120), nullable=True)
    )
    avatar: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True)
    )
    gender: str | None = Field(
        default=None, sa_column=Column(String(32), nullable=True)
    )
    birth_date: date | None = Field(
        default=None, sa_column=Column(Date, nullable=True)
    )
    pronoun: str | None = Field(
        default=None, sa_column=Column(String(32), nullable=True)
    )
    subscribed: bool = Field(
        default=True,
        sa_column=Column(
            Boolean,
            nullable=False,
            server_default=text("true"),
        ),
    )
    created_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )
