"""
Test fixtures for the Bank Cards API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (no Authorization header)
  - user / other_user: Registered USER accounts (id, username, auth headers)
  - admin: A registered user promoted to ADMIN
  - issue_card: Factory that issues a card through the admin endpoint

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database — no state leaks between tests.
  - We override FastAPI's get_db dependency to inject our test session,
    so the application code works exactly as it does in production.
  - Users are created through the real /auth/register endpoint. Each one
    carries its own headers dict, so one client can act as several users
    in the same test by passing headers per request.
  - The admin is created by registering normally and then inserting an
    ADMIN role row directly — admins are provisioned by an operator, not
    by self-service.
"""

import os

# Required settings must exist before app.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CARD_ENCRYPTION_SECRET", "test-card-encryption-secret")
os.environ.setdefault("CARD_ENCRYPTION_SALT", "test-card-encryption-salt")

import uuid
from dataclasses import dataclass

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.database import Base, get_db
from app.main import app
from app.models.user import RoleName, UserRole
from app.security import decode_access_token


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@dataclass
class RegisteredUser:
    id: uuid.UUID
    username: str
    password: str
    headers: dict


async def register_user(client: AsyncClient, username: str, password: str) -> RegisteredUser:
    """Register through the API and return the new user's id and auth headers."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"username": username, "password": password},
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    token = response.json()["token"]
    user_id = uuid.UUID(decode_access_token(token)["sub"])
    return RegisteredUser(
        id=user_id,
        username=username,
        password=password,
        headers={"Authorization": f"Bearer {token}"},
    )


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
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """

    async def override_get_db():
        async with session_factory() as session:
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


@pytest_asyncio.fixture
async def make_user(client):
    """Factory fixture: register extra users inside a test."""

    async def _make(username: str, password: str = "some-password") -> RegisteredUser:
        return await register_user(client, username, password)

    return _make


@pytest_asyncio.fixture
async def user(client):
    """A registered card holder with the USER role."""
    return await register_user(client, "alice", "alice-pass-123")


@pytest_asyncio.fixture
async def other_user(client):
    """A second USER for cross-user authorization tests."""
    return await register_user(client, "bob", "bob-pass-456")


@pytest_asyncio.fixture
async def admin(client, session_factory):
    """
    A registered user promoted to ADMIN.

    Roles are read from the database on every request, so the token
    issued at registration is already an admin token after the insert.
    """
    registered = await register_user(client, "root-admin", "admin-pass-789")
    async with session_factory() as session:
        session.add(UserRole(user_id=registered.id, role=RoleName.ADMIN))
        await session.commit()
    return registered


@pytest_asyncio.fixture
async def issue_card(client, admin):
    """
    Factory fixture: issue a card for an owner via POST /cards.

    Usage:
        card = await issue_card(user.id, "100.00")
    """
    counter = {"n": 0}

    async def _issue(
        owner_id: uuid.UUID,
        balance: str = "0.00",
        card_number: str | None = None,
        expiry_date: str = "2030-12-31",
    ) -> dict:
        counter["n"] += 1
        number = card_number or f"4000{counter['n']:012d}"
        response = await client.post(
            "/api/v1/cards",
            json={
                "card_number": number,
                "owner_id": str(owner_id),
                "expiry_date": expiry_date,
                "initial_balance": balance,
            },
            headers=admin.headers,
        )
        assert response.status_code == 201, f"Card issue failed: {response.text}"
        return response.json()

    return _issue
