"""
Async SQLAlchemy engine and session factory.
Provides get_db dependency for FastAPI route injection.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

# ── Engine ────────────────────────────────────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.is_development,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
)

# ── Session factory ───────────────────────────────────────────────────────────
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# ── Transaction hooks ─────────────────────────────────────────────────────────
# Callbacks kept in session.info and run once the request transaction ends.
# They cover work outside the database, such as stored files, that must follow
# the outcome of the commit.
_ON_COMMIT = "on_commit"
_ON_ROLLBACK = "on_rollback"


def on_commit(session: AsyncSession, callback: Callable[[], Any]) -> None:
    """Run callback after the request transaction commits."""
    session.info.setdefault(_ON_COMMIT, []).append(callback)


def on_rollback(session: AsyncSession, callback: Callable[[], Any]) -> None:
    """Run callback if the request transaction is rolled back."""
    session.info.setdefault(_ON_ROLLBACK, []).append(callback)


def _run_hooks(session: AsyncSession, key: str) -> None:
    hooks = {name: session.info.pop(name, []) for name in (_ON_COMMIT, _ON_ROLLBACK)}
    for callback in hooks[key]:
        try:
            callback()
        except Exception:
            logger.exception("Transaction %s hook failed", key)


@asynccontextmanager
async def request_session(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Open a session for one request.
    Commits when the body succeeds, rolls back when it raises, then runs the
    matching transaction hooks.
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            _run_hooks(session, _ON_ROLLBACK)
            raise
        _run_hooks(session, _ON_COMMIT)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.
    Commits when the request succeeds, rolls back when it raises.
    """
    async with request_session(AsyncSessionLocal) as session:
        yield session
