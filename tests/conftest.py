"""
Test configuration and shared fixtures.
Every test gets its own in-memory SQLite database; each request runs in its
own session, committed or rolled back exactly like app.db.session.get_db.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.config import settings
from app.core.limiter import limiter
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import get_db, request_session
from app.main import app
from app.models.user import User
from tests.helpers import register

# ── Test database ─────────────────────────────────────────────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

limiter.enabled = False


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests correctly."""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    _enable_sqlite_savepoints(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(autouse=True)
def upload_dir(tmp_path: Any, monkeypatch: pytest.MonkeyPatch) -> Any:
    """Store uploads in a per-test temporary directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client bound to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with request_session(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Helper fixtures ───────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> dict[str, Any]:
    return await register(client, "Alice Example", "alice@example.com")


@pytest_asyncio.fixture
async def bob(client: AsyncClient) -> dict[str, Any]:
    return await register(client, "Bob Example", "bob@example.com")


@pytest_asyncio.fixture
async def admin(
    client: AsyncClient, session_factory: async_sessionmaker[AsyncSession]
) -> dict[str, Any]:
    """Create an admin directly in the database and log in."""
    async with session_factory() as session:
        session.add(
            User(
                name="Admin User",
                email="admin@example.com",
                hashed_password=hash_password("AdminPass1"),
                role="admin",
                is_verified=True,
            )
        )
        await session.commit()

    response = await client.post(
        "/api/auth/login",
        json={"email": "admin@example.com", "password": "AdminPass1"},
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    return {"user": data["user"], "headers": {"Authorization": f"Bearer {data['token']}"}}
