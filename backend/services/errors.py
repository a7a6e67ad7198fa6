"""Error taxonomy raised by account and session services.

Every error carries the HTTP status and machine-readable code that the API
layer renders into the error envelope.
"""

from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for all expected failures of an account operation."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class SamePasswordError(ValidationError):
    code = "SAME_PASSWORD"
    default_message = "Old password cannot be same as new password"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class InvalidCredentialsError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class InvalidTokenError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class TokenExpiredError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "TOKEN_EXPIRED"
    default_message = "Token has expired"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Not found"


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Unauthorized request"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Forbidden"


class UpstreamError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "UPSTREAM_ERROR"
    default_message = "Upstream provider error"


__all__ = [
    "ServiceError",
    "ValidationError",
    "SamePasswordError",
    "ConflictError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "UpstreamError",
]
