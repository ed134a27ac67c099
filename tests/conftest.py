"""
Test fixtures for the Bank Cards test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - cardholder / other_cardholder / admin: users created through user_service
  - cardholder_headers / other_cardholder_headers / admin_headers: Bearer
    headers obtained through the real /auth/login endpoint
  - issued_cards: two cards issued to `cardholder`

Key design decisions:
  - Required settings are placed in the environment before anything from
    bankcards is imported, because the settings singleton and the field
    cipher are built at import time.
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - We override FastAPI's get_db dependency to inject our test engine,
    so the application code works exactly as it does in production.
  - Fixtures that write through db_session commit before returning, so the
    HTTP client (a different session on the same engine) sees the rows.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault(
    "CARD_ENCRYPTION_KEY",
    "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f",
)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402

import bankcards.models  # noqa: E402,F401
from bankcards.database import Base, get_db  # noqa: E402
from bankcards.main import app  # noqa: E402
from bankcards.models.user import UserRole  # noqa: E402
from bankcards.models.card import Card  # noqa: E402
from bankcards.services import card_service, user_service  # noqa: E402


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

CARDHOLDER_PASSWORD = "IvanPass123!"
OTHER_PASSWORD = "MariaPass456!"
ADMIN_PASSWORD = "AdminPass789!"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def cardholder(db_session):
    """An active USER with no cards yet."""
    user = await user_service.create_user(
        db_session,
        username="ivan",
        password=CARDHOLDER_PASSWORD,
        first_name="Ivan",
        last_name="Petrov",
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_cardholder(db_session):
    """A second USER for cross-user authorization tests."""
    user = await user_service.create_user(
        db_session,
        username="maria",
        password=OTHER_PASSWORD,
        first_name="Maria",
        last_name="Sidorova",
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def admin(db_session):
    """
    An ADMIN user.

    Admins are provisioned directly (there is no signup endpoint), the same
    way the seed command does it.
    """
    user = await user_service.create_user(
        db_session,
        username="admin",
        password=ADMIN_PASSWORD,
        first_name="Admin",
        last_name="User",
        role=UserRole.ADMIN,
    )
    await db_session.commit()
    return user


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def issued_cards(db_session, cardholder):
    """Two ACTIVE cards owned by `cardholder`, each with the opening balance."""
    first = await card_service.issue_card(db_session, cardholder.id)
    second = await card_service.issue_card(db_session, cardholder.id)
    await db_session.commit()
    return first, second


async def reload_card(db_session, card_id):
    """Read a card back from the database, overwriting the session's cached copy."""
    result = await db_session.execute(
        select(Card)
        .where(Card.id == card_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Authentication headers
# ---------------------------------------------------------------------------

async def login_headers(client, username: str, password: str) -> dict:
    """Log in through the API and return an Authorization header."""
    response = await client.post(
        "/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200, f"Login failed: {response.text}"
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def cardholder_headers(client, cardholder):
    return await login_headers(client, "ivan", CARDHOLDER_PASSWORD)


@pytest_asyncio.fixture
async def other_cardholder_headers(client, other_cardholder):
    return await login_headers(client, "maria", OTHER_PASSWORD)


@pytest_asyncio.fixture
async def admin_headers(client, admin):
    return await login_headers(client, "admin", ADMIN_PASSWORD)
