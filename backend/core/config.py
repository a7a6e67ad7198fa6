"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the accounts service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Userbase"
    app_env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./userbase.db"

    # Access and refresh tokens are signed with distinct secrets.
    access_token_secret: str = "change-me-access"
    refresh_token_secret: str = "change-me-refresh"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_minutes: int = 60 * 24 * 7

    password_reset_token_expire_minutes: int = 15
    password_reset_token_length: int = 20
    password_min_length: int = 6
    bcrypt_rounds: int = 12

    allow_insecure_http_cookies: bool = False

    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "postmessage"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_timeout_seconds: float = 10.0

    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "no-reply@localhost"
    smtp_from_name: str = "Userbase"
    smtp_starttls: bool = True
    frontend_base_url: str = "http://localhost:5173"

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "userbase"
    minio_secure: bool = False
    upload_max_bytes: int = 5 * 1024 * 1024

    redis_url: str = "redis://localhost:6379/0"
    rate_limit_requests: int = 30
    rate_limit_window_seconds: int = 60


settings = Settings()

__all__ = ["Settings", "settings"]
