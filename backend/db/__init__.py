"""Database helpers."""

from .errors import is_unique_violation, violated_column
from .session import async_engine, async_session_maker, get_session

__all__ = [
    "async_engine",
    "async_session_maker",
    "get_session",
    "is_unique_violation",
    "violated_column",
]
