"""
Task CRUD operations.
Extends CRUDBase with visibility-scoped listing, eager loading of the child
collections and the aggregate queries behind the statistics endpoints.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.db.types import utcnow
from app.models.comment import Comment
from app.models.task import OVERDUE_STATUSES, Task
from app.schemas.task import TaskFilter

_TASK_LOAD_OPTIONS = (
    selectinload(Task.creator),
    selectinload(Task.assignee),
    selectinload(Task.comments).selectinload(Comment.user),
    selectinload(Task.time_logs),
    selectinload(Task.attachments),
)


def _visible_to(user_id: uuid.UUID) -> Any:
    return or_(Task.created_by_id == user_id, Task.assigned_to_id == user_id)


class CRUDTask(CRUDBase[Task]):

    async def get_with_relations(
        self, db: AsyncSession, task_id: uuid.UUID
    ) -> Task | None:
        """
        Fetch a task with users and child collections eagerly loaded.
        populate_existing refreshes an instance already in the identity map,
        so this is also how callers reload a task after writing to it.
        """
        result = await db.execute(
            select(Task)
            .options(*_TASK_LOAD_OPTIONS)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_task(
        self,
        db: AsyncSession,
        *,
        obj_in: dict[str, Any],
        created_by_id: uuid.UUID,
    ) -> Task:
        task = Task(**obj_in, created_by_id=created_by_id)
        task.sync_lifecycle_timestamps()
        db.add(task)
        await db.flush()
        return task

    async def list_for_user(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        filters: TaskFilter,
    ) -> tuple[list[Task], int]:
        """Return (tasks, total) visible to user_id, newest first."""
        conditions = [_visible_to(user_id)]

        if not filters.include_archived:
            conditions.append(Task.is_archived.is_(False))
        if filters.status is not None:
            conditions.append(Task.status == filters.status)
        if filters.priority is not None:
            conditions.append(Task.priority == filters.priority)
        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(Task.title.ilike(search_term), Task.description.ilike(search_term))
            )

        where = and_(*conditions)
        total_result = await db.execute(select(func.count()).select_from(Task).where(where))
        total = total_result.scalar_one()

        skip = (filters.page - 1) * filters.limit
        result = await db.execute(
            select(Task)
            .options(*_TASK_LOAD_OPTIONS)
            .where(where)
            .order_by(Task.created_at.desc())
            .offset(skip)
            .limit(filters.limit)
        )
        return list(result.scalars().all()), total

    async def apply_update(
        self, db: AsyncSession, *, task: Task, obj_in: dict[str, Any]
    ) -> Task:
        """Apply a partial update and re-derive the lifecycle timestamps."""
        for field, value in obj_in.items():
            setattr(task, field, value)
        task.sync_lifecycle_timestamps()
        db.add(task)
        await db.flush()
        return task

    async def set_archived(self, db: AsyncSession, *, task: Task, archived: bool) -> Task:
        task.is_archived = archived
        task.sync_lifecycle_timestamps()
        db.add(task)
        await db.flush()
        return task

    # ── Aggregates ────────────────────────────────────────────────────────────

    def _stats_scope(self, stmt: Select[Any], user_id: uuid.UUID) -> Select[Any]:
        return stmt.where(_visible_to(user_id), Task.is_archived.is_(False))

    async def count_by_status(self, db: AsyncSession, *, user_id: uuid.UUID) -> dict[str, int]:
        result = await db.execute(
            self._stats_scope(
                select(Task.status, func.count(Task.id)), user_id
            ).group_by(Task.status)
        )
        return {row[0]: row[1] for row in result.all()}

    async def count_by_priority(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> dict[str, int]:
        result = await db.execute(
            self._stats_scope(
                select(Task.priority, func.count(Task.id)), user_id
            ).group_by(Task.priority)
        )
        return {row[0]: row[1] for row in result.all()}

    async def totals(self, db: AsyncSession, *, user_id: uuid.UUID) -> dict[str, float]:
        """Overdue count and hour sums over the user's non-archived tasks."""
        overdue = case(
            (
                and_(
                    Task.due_date.is_not(None),
                    Task.due_date < utcnow(),
                    Task.status.in_(OVERDUE_STATUSES),
                ),
                1,
            ),
            else_=0,
        )
        result = await db.execute(
            self._stats_scope(
                select(
                    func.coalesce(func.sum(overdue), 0),
                    func.coalesce(func.sum(Task.estimated_hours), 0),
                    func.coalesce(func.sum(Task.actual_hours), 0),
                ),
                user_id,
            )
        )
        overdue_count, estimated, actual = result.one()
        return {
            "overdue": int(overdue_count),
            "total_estimated_hours": float(estimated),
            "total_actual_hours": float(actual),
        }


crud_task = CRUDTask(Task)
