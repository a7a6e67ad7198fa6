"""Business logic services."""

from .email import EmailSender, get_email_sender
from .errors import ServiceError
from .google_oauth import GoogleIdentity, GoogleOAuthClient, get_google_oauth_client
from .images import (
    JPEG_CONTENT_TYPE,
    MAX_IMAGE_DIMENSION,
    UploadTooLargeError,
    process_image_bytes,
    read_upload_file,
)
from .rate_limiter import (
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)
from .storage import (
    delete_object,
    ensure_bucket,
    get_minio_client,
    upload_object,
)

__all__ = [
    "EmailSender",
    "get_email_sender",
    "ServiceError",
    "GoogleIdentity",
    "GoogleOAuthClient",
    "get_google_oauth_client",
    "get_minio_client",
    "ensure_bucket",
    "delete_object",
    "upload_object",
    "process_image_bytes",
    "read_upload_file",
    "MAX_IMAGE_DIMENSION",
    "JPEG_CONTENT_TYPE",
    "UploadTooLargeError",
    "RateLimiter",
    "get_rate_limiter",
    "set_rate_limiter",
]
