"""
Task Pydantic schemas.
Includes create/update/read variants plus the filter schema for the list
endpoint.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator

from app.db.types import as_utc, utcnow
from app.schemas.attachment import AttachmentRead
from app.schemas.comment import CommentRead
from app.schemas.pagination import Pagination
from app.schemas.time_log import TimeLogRead
from app.schemas.user import UserSummary

TaskStatus = Literal["pending", "in-progress", "completed", "cancelled", "on-hold"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]
Tag = Annotated[
    str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1, max_length=20)
]
Hours = Annotated[float, Field(ge=0, le=1000)]


def _future_reminders(reminders: list[datetime] | None) -> list[datetime] | None:
    if reminders is None:
        return reminders
    now = utcnow()
    normalized = [as_utc(reminder) for reminder in reminders]
    if any(reminder <= now for reminder in normalized):
        raise ValueError("Reminder must be in the future")
    return normalized


# ── Create ────────────────────────────────────────────────────────────────────

class TaskCreate(BaseModel):
    title: Title
    description: Description = ""
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    assigned_to_id: uuid.UUID | None = None
    tags: list[Tag] = Field(default_factory=list, max_length=20)
    estimated_hours: Hours = 0
    actual_hours: Hours = 0
    reminders: list[datetime] = Field(default_factory=list, max_length=20)
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        v = as_utc(v)
        if v <= utcnow():
            raise ValueError("Due date must be in the future")
        return v

    @field_validator("reminders")
    @classmethod
    def reminders_in_future(cls, v: list[datetime] | None) -> list[datetime] | None:
        return _future_reminders(v)


# ── Update ────────────────────────────────────────────────────────────────────

class TaskUpdate(BaseModel):
    title: Title | None = None
    description: Description | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    assigned_to_id: uuid.UUID | None = None
    tags: list[Tag] | None = Field(default=None, max_length=20)
    estimated_hours: Hours | None = None
    actual_hours: Hours | None = None
    reminders: list[datetime] | None = Field(default=None, max_length=20)
    custom_fields: dict[str, Any] | None = None
    is_archived: bool | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else v

    @field_validator("reminders")
    @classmethod
    def reminders_in_future(cls, v: list[datetime] | None) -> list[datetime] | None:
        return _future_reminders(v)


# ── Read ──────────────────────────────────────────────────────────────────────

class TaskRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    status: str
    priority: str
    due_date: datetime | None
    created_by_id: uuid.UUID
    assigned_to_id: uuid.UUID | None
    creator: UserSummary | None = None
    assignee: UserSummary | None = None
    tags: list[str]
    estimated_hours: float
    actual_hours: float
    reminders: list[datetime]
    custom_fields: dict[str, Any]
    completed_at: datetime | None
    is_archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime
    comments: list[CommentRead] = []
    time_logs: list[TimeLogRead] = []
    attachments: list[AttachmentRead] = []

    # Derived
    is_overdue: bool
    progress: int
    time_spent: int
    days_until_due: int | None

    model_config = {"from_attributes": True}


# ── Filter ────────────────────────────────────────────────────────────────────

class TaskFilter(BaseModel):
    """Query parameters for the task list endpoint."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    search: str | None = Field(default=None, max_length=200)
    include_archived: bool = False
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


# ── Response payloads ─────────────────────────────────────────────────────────

class TaskData(BaseModel):
    task: TaskRead


class TaskListData(BaseModel):
    tasks: list[TaskRead]
    pagination: Pagination
