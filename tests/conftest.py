"""Test fixtures — a fresh in-memory database per test.

Learn: Each test gets its own SQLite engine (StaticPool keeps the single
in-memory connection alive), with the schema created from the ORM
models. The app's get_db dependency is overridden to hand out sessions
from that engine, one per request, just like production.

bcrypt runs at its minimum cost here; set before contactbook.config is
imported so the settings singleton picks it up.
"""

import os

os.environ.setdefault("CONTACTBOOK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("CONTACTBOOK_ENVIRONMENT", "development")

import uuid  # noqa: E402
from typing import Optional  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from contactbook.db.engine import get_db  # noqa: E402
from contactbook.db.models import Base  # noqa: E402
from contactbook.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "secret_pw_123"


@pytest_asyncio.fixture()
async def session_factory():
    """Per-test engine + schema; yields a session factory bound to it."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Direct DB access for service-level tests and test setup."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client running the real app (real auth gate) on the test DB."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Helpers ─────────────────────────────────────────────


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: AsyncClient, email: Optional[str] = None, password: str = PASSWORD) -> dict:
    """Register an account through the API; returns {account, token}."""
    r = await client.post(
        "/auth/register",
        json={"email": email or unique_email(), "password": password},
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest_asyncio.fixture()
async def alice(client):
    return await register(client, unique_email("alice"))


@pytest_asyncio.fixture()
async def bob(client):
    return await register(client, unique_email("bob"))
