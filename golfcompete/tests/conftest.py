"""
Shared pytest configuration for backend tests.

Runs against an in-memory SQLite database (aiosqlite) unless
TEST_DATABASE_URL points at another backend.

SAFETY: a non-SQLite TEST_DATABASE_URL is REFUSED unless the database name
contains the substring "test", so a misconfigured environment can never
drop tables in a development or production database.
"""

import os

# Must be set before the app (and its rate limiter) is imported
os.environ["ENV"] = "test"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_EMAIL", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from golfcompete.api.main import app  # noqa: E402
from golfcompete.database.db import Base, get_db_session  # noqa: E402
from golfcompete.services import auth_service, user_service  # noqa: E402


def _resolve_test_database_url() -> str:
    """Build the test database URL with safety checks.

    Raises ``RuntimeError`` if a non-SQLite URL does not point to a database
    whose name contains "test".
    """
    url = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    if url.startswith("sqlite"):
        return url

    # ── Safety gate: database name MUST contain "test" ──────────────────
    db_name = url.rsplit("/", 1)[-1].split("?")[0]  # strip query params
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"\n{'=' * 70}\n"
            f"  SAFETY: Refusing to run tests against database '{db_name}'.\n"
            f"  The database name must contain 'test' to prevent accidental\n"
            f"  data loss in development or production databases.\n\n"
            f"  Fix: set TEST_DATABASE_URL to a test database, e.g.:\n"
            f"    export TEST_DATABASE_URL=postgresql+asyncpg://.../{db_name}_test\n"
            f"{'=' * 70}"
        )
    return url


# Validated at import time so pytest fails immediately with a clear message
TEST_DATABASE_URL = _resolve_test_database_url()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh schema per test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest_asyncio.fixture
async def api_client(session_maker):
    """HTTP client for the app with get_db_session bound to the test database."""

    async def override_get_db_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)


@pytest_asyncio.fixture
async def user_factory(db_session):
    """Create users directly in the test database."""
    counter = {"n": 0}

    async def create(email=None, is_admin=False, password="secret123", **kwargs):
        counter["n"] += 1
        email = email or f"golfer{counter['n']}@example.com"
        return await user_service.create_user(
            db_session,
            email=email,
            password_hash=auth_service.hash_password(password) if password else None,
            is_admin=is_admin,
            **kwargs,
        )

    return create


@pytest.fixture
def auth_headers():
    """Build a Bearer header carrying a real access token for a user."""

    def build(user: dict) -> dict:
        token = auth_service.create_access_token({"user_id": user["id"], "email": user["email"]})
        return {"Authorization": f"Bearer {token}"}

    return build
