"""Field checks applied to user input before any state change."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import cast
from uuid import UUID

from email_validator import EmailNotValidError
from email_validator import validate_email as _validate_email_address

from core import settings

from .errors import ValidationError

PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def not_empty(values: Iterable[object | None]) -> None:
    for value in values:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError("All fields are required")


def validate_email(email: str | None) -> str:
    """Return the normalized (trimmed, lower-cased) address or raise."""
    if email is None or not email.strip():
        raise ValidationError("Email not provided")
    try:
        _validate_email_address(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Invalid email") from exc
    return email.strip().lower()


def min_length(value: str, length: int, label: str) -> None:
    if len(value) < length:
        raise ValidationError(f"{label} must be at least {length} characters")


def compare_fields(first: str, second: str, message: str) -> None:
    if first != second:
        raise ValidationError(message)


def validate_phone(phone: str | None) -> str:
    normalized = PHONE_SEPARATORS.sub("", phone or "")
    if not PHONE_PATTERN.fullmatch(normalized):
        raise ValidationError("Invalid phone number")
    return normalized


def validate_object_id(value: str) -> str:
    try:
        return str(UUID(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid User Id") from exc


def validate_new_password(password: str | None, password2: str | None) -> str:
    not_empty([password, password2])
    new_password = cast(str, password)
    min_length(new_password, settings.password_min_length, "Password")
    compare_fields(new_password, cast(str, password2), "Password does not match")
    return new_password


__all__ = [
    "not_empty",
    "validate_email",
    "min_length",
    "compare_fields",
    "validate_phone",
    "validate_object_id",
    "validate_new_password",
]
