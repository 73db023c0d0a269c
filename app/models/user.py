"""
User ORM model.
Stores authentication credentials, login bookkeeping, preferences, profile
data and per-user task statistics.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow

USER_ROLES = ("user", "manager", "admin")


def default_preferences() -> dict[str, Any]:
    return {
        "notifications": {"email": True, "push": True, "sms": False},
        "theme": "light",
        "language": "en",
        "timezone": "UTC",
    }


def default_profile() -> dict[str, Any]:
    return {
        "bio": "",
        "phone": None,
        "location": {"city": None, "country": None, "timezone": None},
        "social_links": {"website": None, "github": None, "linkedin": None, "twitter": None},
    }


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(
        Enum(*USER_ROLES, name="user_role_enum"),
        nullable=False,
        default="user",
        server_default="user",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    login_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    lock_until: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=default_preferences
    )
    profile: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=default_profile
    )
    tasks_created: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    tasks_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    total_time_spent: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    created_tasks: Mapped[list["Task"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        foreign_keys="Task.created_by_id",
        back_populates="creator",
        passive_deletes=True,
    )
    assigned_tasks: Mapped[list["Task"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        foreign_keys="Task.assigned_to_id",
        back_populates="assignee",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_is_active", "is_active"),
        Index("ix_users_created_at", "created_at"),
    )

    @property
    def is_locked(self) -> bool:
        return self.lock_until is not None and self.lock_until > utcnow()

    @property
    def statistics(self) -> dict[str, int]:
        return {
            "tasks_created": self.tasks_created,
            "tasks_completed": self.tasks_completed,
            "total_time_spent": self.total_time_spent,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
