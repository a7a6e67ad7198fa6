"""Pytest fixtures for the userbase backend."""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SMTP_ENABLED", "false")

from collections.abc import AsyncIterator, Iterator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from api.deps import get_db  # noqa: E402
from app import create_app  # noqa: E402
from core.config import settings  # noqa: E402
from services import RateLimiter, set_rate_limiter  # noqa: E402
from services.email import get_email_sender  # noqa: E402
from services.google_oauth import GoogleIdentity, get_google_oauth_client  # noqa: E402
from services.errors import UpstreamError  # noqa: E402


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def session_maker(test_database_url: str) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Return a session factory bound to a per-test engine, on a clean database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield maker
    await engine.dispose()


class RecordingEmailSender:
    """Stands in for SMTP delivery and remembers what would have been sent."""

    def __init__(self) -> None:
        self.welcome: list[tuple[str, str | None]] = []
        self.password_resets: list[tuple[str, str | None, str]] = []
        self.fail = False

    async def send_welcome(self, to_email: str, name: str | None) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.welcome.append((to_email, name))

    async def send_password_reset(self, to_email: str, name: str | None, token: str) -> None:
        if self.fail:
            raise ConnectionError("smtp down")
        self.password_resets.append((to_email, name, token))


class FakeGoogleOAuthClient:
    """Resolves authorization codes to identities registered by the test."""

    def __init__(self) -> None:
        self.identities: dict[str, GoogleIdentity] = {}

    async def authenticate(self, code: str) -> GoogleIdentity:
        identity = self.identities.get(code)
        if identity is None:
            raise UpstreamError("Google rejected the authorization code")
        return identity


@pytest.fixture()
def mailer() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture()
def google_client() -> FakeGoogleOAuthClient:
    return FakeGoogleOAuthClient()


@pytest.fixture()
def app(session_maker, mailer, google_client) -> Iterator[FastAPI]:
    """Create the FastAPI app with test doubles for its collaborators."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_email_sender] = lambda: mailer
    application.dependency_overrides[get_google_oauth_client] = lambda: google_client
    yield application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


class _InMemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        value = self.data.get(key, 0) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl: int) -> None:  # pragma: no cover - noop
        return None


@pytest.fixture(autouse=True)
def _rate_limiter_stub() -> Iterator[None]:
    limiter = RateLimiter(_InMemoryRedis(), limit=1_000, window_seconds=60)
    set_rate_limiter(limiter)
    yield
    set_rate_limiter(None)
