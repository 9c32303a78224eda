"""Test fixtures — a fresh in-memory database per test.

1. Each test gets its own aiosqlite engine (StaticPool: one shared
   connection, so the in-memory database lives as long as the engine).
2. The schema is created from the models, then dropped with the engine.
3. The app's get_db dependency and the identity middleware both draw
   sessions from the per-test factory.

Services commit for real; isolation comes from throwing the whole
database away. Tests open short-lived sessions through `session_factory`
and close them before the next HTTP call.
"""

import os

os.environ.setdefault("VOLUNFLOW_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VOLUNFLOW_BCRYPT_ROUNDS", "4")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from volunflow.auth.cookies import ACCESS_COOKIE, REFRESH_COOKIE
from volunflow.db.engine import get_db
from volunflow.db.models import Base
from volunflow.main import app

PASSWORD = "Passw0rd!"


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for service-level tests that do not go through HTTP."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app, auth pipeline included."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.session_factory = None


# ─── Helpers ────────────────────────────────────────────


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def use_cookies(client: AsyncClient, access: str | None = None, refresh: str | None = None):
    """Replace the client's cookie jar with exactly these session cookies."""
    client.cookies.clear()
    if access is not None:
        client.cookies.set(ACCESS_COOKIE, access)
    if refresh is not None:
        client.cookies.set(REFRESH_COOKIE, refresh)


async def register(client: AsyncClient, email: str | None = None, name: str = "Ann", password: str = PASSWORD):
    """Register a user; returns (user json, access token, refresh token)."""
    client.cookies.clear()
    r = await client.post(
        "/api/v1/auth/register",
        json={"email": email or unique_email(), "name": name, "password": password},
    )
    assert r.status_code == 201, r.text
    return r.json(), r.cookies[ACCESS_COOKIE], r.cookies[REFRESH_COOKIE]
