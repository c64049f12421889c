"""Test fixtures: an in-memory database per test, real middleware chain.

Each test gets a fresh sqlite+aiosqlite engine (StaticPool, so every
session sees the same in-memory database) with the schema created from
the ORM models. The app's session factory is swapped on app.state, which
redirects both get_db and the Basic-auth middleware.

Unlike route tests that mock the current user, these run the whole
security chain: registering, logging in and carrying real tokens.
"""

import base64
import os

# Fast bcrypt and a long signing key before bankgate.config is imported
os.environ.setdefault("BANKGATE_BCRYPT_ROUNDS", "4")
os.environ.setdefault(
    "BANKGATE_JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256-signing"
)

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bankgate.config import Settings
from bankgate.db.models import Base
from bankgate.main import app, create_app

USER_PASSWORD = "user_password_123"
ADMIN_PASSWORD = "admin_password_123"


def basic_auth(username: str, password: str) -> dict:
    """Authorization header for HTTP Basic credentials."""
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


@pytest_asyncio.fixture()
async def session_factory():
    """Per-test in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client for the default (JWT mode) app."""
    original = app.state.session_factory
    app.state.session_factory = session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.session_factory = original


@pytest_asyncio.fixture()
async def basic_client(session_factory):
    """HTTP client for an app built with jwt_enabled=False (Basic on every request)."""
    basic_app = create_app(Settings(jwt_enabled=False))
    basic_app.state.session_factory = session_factory

    transport = ASGITransport(app=basic_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _register(client: AsyncClient, email: str, password: str, role: str) -> dict:
    r = await client.post(
        "/register",
        json={
            "name": f"{role.title()} Customer",
            "email": email,
            "mobile_number": "5551234567",
            "password": password,
            "role": role,
        },
    )
    assert r.status_code == 201, r.text
    return {"email": email, "password": password}


@pytest_asyncio.fixture()
async def user(client):
    """A registered customer holding ROLE_USER."""
    return await _register(client, "happy@example.com", USER_PASSWORD, "USER")


@pytest_asyncio.fixture()
async def admin(client):
    """A registered customer holding ROLE_ADMIN only."""
    return await _register(client, "boss@example.com", ADMIN_PASSWORD, "ADMIN")


@pytest_asyncio.fixture()
async def user_token(client, user):
    """JWT issued to the ROLE_USER customer by a Basic login on /user."""
    r = await client.get("/user", headers=basic_auth(user["email"], user["password"]))
    assert r.status_code == 200, r.text
    return r.headers["Authorization"]


@pytest_asyncio.fixture()
async def admin_token(client, admin):
    """JWT issued to the ROLE_ADMIN customer."""
    r = await client.get("/user", headers=basic_auth(admin["email"], admin["password"]))
    assert r.status_code == 200, r.text
    return r.headers["Authorization"]
