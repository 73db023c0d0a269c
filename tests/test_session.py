"""
Request session tests: commit/rollback and the transaction hooks that keep
stored files in step with the database.
"""
from __future__ import annotations

from functools import partial

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import on_commit, on_rollback, request_session
from app.models.user import User

pytestmark = pytest.mark.asyncio


def _user(email: str) -> User:
    return User(name="Hook User", email=email, hashed_password="not-a-real-hash")


async def test_commit_hooks_run_after_commit(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    calls: list[str] = []
    async with request_session(session_factory) as session:
        session.add(_user("hooks@example.com"))
        on_commit(session, partial(calls.append, "commit"))
        on_rollback(session, partial(calls.append, "rollback"))

    assert calls == ["commit"]
    async with session_factory() as session:
        saved = await session.scalar(select(User).where(User.email == "hooks@example.com"))
    assert saved is not None


async def test_rollback_hooks_run_when_request_fails(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    calls: list[str] = []
    with pytest.raises(RuntimeError):
        async with request_session(session_factory) as session:
            on_commit(session, partial(calls.append, "commit"))
            on_rollback(session, partial(calls.append, "rollback"))
            raise RuntimeError("handler failed")

    assert calls == ["rollback"]


async def test_rollback_hooks_run_when_commit_fails(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory() as session:
        session.add(_user("taken@example.com"))
        await session.commit()

    calls: list[str] = []
    with pytest.raises(IntegrityError):
        async with request_session(session_factory) as session:
            session.add(_user("taken@example.com"))
            on_commit(session, partial(calls.append, "commit"))
            on_rollback(session, partial(calls.append, "rollback"))

    assert calls == ["rollback"]


async def test_failing_hook_is_logged(
    session_factory: async_sessionmaker[AsyncSession],
    caplog: pytest.LogCaptureFixture,
) -> None:
    calls: list[str] = []

    def broken() -> None:
        raise OSError("disk gone")

    async with request_session(session_factory) as session:
        on_commit(session, broken)
        on_commit(session, partial(calls.append, "after"))

    assert calls == ["after"]
    assert "hook failed" in caplog.text
