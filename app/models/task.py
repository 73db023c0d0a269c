"""
Task ORM model.
Central entity of TaskFlow Pro. Carries status/priority enums, JSON tags,
hour estimates, reminder dates, free-form custom fields, soft-archival and the child collections (comments, time logs,
attachments). Derived fields (is_overdue, progress, time_spent,
days_until_due) are computed on read.
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Float, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import UTCDateTime, UTCDateTimeList, utcnow

TASK_STATUSES = ("pending", "in-progress", "completed", "cancelled", "on-hold")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")

# Statuses for which an elapsed due date means the task is overdue.
OVERDUE_STATUSES = ("pending", "in-progress", "on-hold")

# Progress shown when there is no usable hour estimate.
STATUS_PROGRESS = {
    "pending": 0,
    "in-progress": 50,
    "on-hold": 25,
    "completed": 100,
    "cancelled": 0,
}


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=""
    )
    status: Mapped[str] = mapped_column(
        Enum(*TASK_STATUSES, name="task_status_enum"),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    priority: Mapped[str] = mapped_column(
        Enum(*TASK_PRIORITIES, name="task_priority_enum"),
        nullable=False,
        default="medium",
        server_default="medium",
    )
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_to_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    estimated_hours: Mapped[float] = mapped_column(
        Float, nullable=False, default=0, server_default="0"
    )
    actual_hours: Mapped[float] = mapped_column(
        Float, nullable=False, default=0, server_default="0"
    )
    reminders: Mapped[list[datetime]] = mapped_column(
        UTCDateTimeList, nullable=False, default=list
    )
    custom_fields: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    is_archived: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    archived_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
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
    creator: Mapped["User"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[created_by_id],
        back_populates="created_tasks",
    )
    assignee: Mapped["User | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[assigned_to_id],
        back_populates="assigned_tasks",
    )
    comments: Mapped[list["Comment"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Comment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )
    time_logs: Mapped[list["TimeLog"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "TimeLog",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TimeLog.start_time",
    )
    attachments: Mapped[list["Attachment"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Attachment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Attachment.uploaded_at",
    )

    __table_args__ = (
        Index("ix_tasks_created_by_id_status", "created_by_id", "status"),
        Index("ix_tasks_assigned_to_id_status", "assigned_to_id", "status"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_priority", "priority"),
        Index("ix_tasks_is_archived", "is_archived"),
        Index("ix_tasks_created_at", "created_at"),
        Index("ix_tasks_status_priority_due_date", "status", "priority", "due_date"),
    )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def sync_lifecycle_timestamps(self) -> None:
        """
        Keep completed_at set iff status is completed, and archived_at set
        iff the task is archived. Called after every write to the task.
        """
        now = utcnow()
        if self.status == "completed":
            if self.completed_at is None:
                self.completed_at = now
        else:
            self.completed_at = None

        if self.is_archived:
            if self.archived_at is None:
                self.archived_at = now
        else:
            self.archived_at = None

    def is_visible_to(self, user_id: uuid.UUID) -> bool:
        return self.created_by_id == user_id or self.assigned_to_id == user_id

    # ── Derived fields ────────────────────────────────────────────────────────

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status not in OVERDUE_STATUSES:
            return False
        return utcnow() > self.due_date

    @property
    def time_spent(self) -> int:
        """Total logged minutes."""
        return sum(log.duration for log in self.time_logs)

    @property
    def progress(self) -> int:
        if self.status == "completed":
            return 100
        if self.status == "cancelled":
            return 0
        if self.estimated_hours > 0 and self.actual_hours > 0:
            ratio = self.actual_hours / self.estimated_hours * 100
            # Half-up rounding.
            return min(math.floor(ratio + 0.5), 100)
        return STATUS_PROGRESS.get(self.status, 0)

    @property
    def days_until_due(self) -> int | None:
        if self.due_date is None:
            return None
        seconds = (self.due_date - utcnow()).total_seconds()
        return math.ceil(seconds / 86400)

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r} status={self.status}>"
