"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == "23505":
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def violated_column(error: IntegrityError, columns: tuple[str, ...]) -> str | None:
    """Best-effort guess of which of ``columns`` a unique violation refers to.

    PostgreSQL names the constraint (``users_phone_key``) while SQLite names
    the column (``users.phone``); both contain the column name.
    """
    message = str(getattr(error, "orig", None) or error).lower()
    for column in columns:
        if column in message:
            return column
    return None


__all__ = ["is_unique_violation", "violated_column"]
