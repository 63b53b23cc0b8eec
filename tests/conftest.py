"""Pytest configuration and fixtures."""

import os

# Settings are read at import time
os.environ["APP_ENV"] = "test"
os.environ["APP_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-sessions"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_URL"] = "http://localhost:8080"
os.environ["TMDB_API_KEY"] = "test-tmdb-key"
os.environ["TMDB_LANGUAGE"] = "en-US"
os.environ["ADMIN_EMAILS"] = '["admin@example.com"]'
os.environ.pop("REDIS_URL", None)

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import src.main as main_module  # noqa: E402
from src.auth.dependencies import get_current_user, get_optional_user  # noqa: E402
from src.auth.passwords import hash_password  # noqa: E402
from src.db.database import get_db  # noqa: E402
from src.main import app  # noqa: E402
from src.models.base import Base  # noqa: E402
from src.models.user import User  # noqa: E402
from src.utils.http_client import close_all_clients  # noqa: E402

# Test database URL (uses SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "secret-password"


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test (one shared connection)."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def _close_http_clients() -> AsyncGenerator[None, None]:
    # The pooled TMDB client must not outlive the test's event loop
    yield
    await close_all_clients()


async def _make_user(db: AsyncSession, email: str) -> User:
    user = User(email=email, password_hash=hash_password(TEST_PASSWORD))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user for authenticated tests."""
    return await _make_user(db_session, "test@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Create another test user for isolation tests."""
    return await _make_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """User listed in ADMIN_EMAILS."""
    return await _make_user(db_session, "admin@example.com")


def _override_db(db_session: AsyncSession) -> None:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db


def _override_user(db_session: AsyncSession, user: User) -> None:
    # Re-read per request: a rolled back request expires every loaded object
    user_id = user.id

    async def override_get_current_user() -> User:
        return await db_session.get(User, user_id)

    async def override_get_optional_user() -> User:
        return await db_session.get(User, user_id)

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_optional_user] = override_get_optional_user


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    session_maker: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an unauthenticated test client."""
    _override_db(db_session)
    # /health opens its own session
    monkeypatch.setattr(main_module, "async_session_maker", session_maker)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(
    db_session: AsyncSession, test_user: User
) -> AsyncGenerator[AsyncClient, None]:
    """Create an authenticated test client with a test user."""
    _override_db(db_session)
    _override_user(db_session, test_user)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(
    db_session: AsyncSession, admin_user: User
) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated as an administrator."""
    _override_db(db_session)
    _override_user(db_session, admin_user)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
