"""
User CRUD operations.
Extends CRUDBase with lookups, login bookkeeping, statistics counters and
admin listings.
"""
from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.crud.base import CRUDBase
from app.db.types import utcnow
from app.models.user import User

STATISTIC_FIELDS = ("tasks_created", "tasks_completed", "total_time_spent")


class CRUDUser(CRUDBase[User]):

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        """Look up any user, active or not."""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_active_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(
            select(User).where(User.email == email.lower(), User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def get_active(self, db: AsyncSession, user_id: uuid.UUID) -> User | None:
        result = await db.execute(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        *,
        name: str,
        email: str,
        hashed_password: str,
        role: str = "user",
    ) -> User:
        user = User(
            name=name,
            email=email.lower(),
            hashed_password=hashed_password,
            role=role,
        )
        db.add(user)
        await db.flush()
        return user

    # ── Login bookkeeping ─────────────────────────────────────────────────────

    async def register_failed_login(self, db: AsyncSession, *, user: User) -> User:
        """
        Count a failed attempt. Reaching MAX_LOGIN_ATTEMPTS locks the account
        for LOCK_TIME_MINUTES. Callers reject locked accounts first, so a
        lock_until still set here has expired and the count starts over.
        """
        if user.lock_until is not None:
            user.login_attempts = 0
            user.lock_until = None

        user.login_attempts += 1
        if user.login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
            user.lock_until = utcnow() + timedelta(minutes=settings.LOCK_TIME_MINUTES)
        db.add(user)
        await db.flush()
        return user

    async def register_successful_login(self, db: AsyncSession, *, user: User) -> User:
        user.login_attempts = 0
        user.lock_until = None
        user.last_login = utcnow()
        db.add(user)
        await db.flush()
        return user

    # ── Statistics ────────────────────────────────────────────────────────────

    async def increment_statistics(
        self, db: AsyncSession, *, user_id: uuid.UUID, **increments: int
    ) -> None:
        """Atomically add to one or more statistics counters."""
        values: dict[str, Any] = {}
        for field, amount in increments.items():
            if field not in STATISTIC_FIELDS:
                raise ValueError(f"Unknown statistic: {field}")
            values[field] = getattr(User, field) + amount
        if not values:
            return
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )

    # ── Admin ─────────────────────────────────────────────────────────────────

    async def list_users(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> tuple[list[User], int]:
        query = select(User)
        count_query = select(func.count()).select_from(User)

        if not include_inactive:
            query = query.where(User.is_active.is_(True))
            count_query = count_query.where(User.is_active.is_(True))

        total_result = await db.execute(count_query)
        total = total_result.scalar_one()

        result = await db.execute(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        users = list(result.scalars().all())
        return users, total

    async def population_counts(self, db: AsyncSession) -> dict[str, Any]:
        result = await db.execute(
            select(
                func.count(User.id),
                func.coalesce(func.sum(case((User.is_active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(case((User.is_verified.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(case((User.role == "admin", 1), else_=0)), 0),
                func.coalesce(func.avg(User.tasks_created), 0),
            )
        )
        total, active, verified, admins, avg_created = result.one()
        return {
            "total_users": int(total),
            "active_users": int(active),
            "verified_users": int(verified),
            "admins": int(admins),
            "average_tasks_created": round(float(avg_created), 2),
        }


crud_user = CRUDUser(User)
