"""
Task business logic service.
Enforces the creator/assignee access rule, keeps lifecycle timestamps in
sync, manages the child collections and bumps user statistics best-effort.
"""
from __future__ import annotations

import logging
import uuid
from functools import partial

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.crud.attachment import crud_attachment
from app.crud.comment import crud_comment
from app.crud.task import crud_task
from app.crud.time_log import crud_time_log
from app.crud.user import crud_user
from app.db.session import on_commit, on_rollback
from app.models.attachment import Attachment
from app.models.comment import Comment
from app.models.task import Task
from app.models.time_log import TimeLog
from app.models.user import User
from app.schemas.task import TaskCreate, TaskFilter, TaskUpdate
from app.schemas.time_log import TimeLogCreate
from app.services.upload_service import delete_stored_file, save_upload

logger = logging.getLogger(__name__)

# Columns that may be cleared to NULL through an update.
NULLABLE_UPDATE_FIELDS = {"due_date", "assigned_to_id"}


def parse_id(raw_id: str, resource: str) -> uuid.UUID:
    """Malformed identifiers are reported as missing resources."""
    try:
        return uuid.UUID(raw_id)
    except ValueError:
        raise NotFoundError(resource, raw_id)


class TaskService:

    # ── Tasks ─────────────────────────────────────────────────────────────────

    async def list_tasks(
        self,
        db: AsyncSession,
        *,
        filters: TaskFilter,
        current_user: User,
    ) -> tuple[list[Task], int]:
        return await crud_task.list_for_user(db, user_id=current_user.id, filters=filters)

    async def get_task(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        current_user: User,
    ) -> Task:
        """Fetch a task the current user created or is assigned to."""
        task = await crud_task.get_with_relations(db, parse_id(task_id, "Task"))
        if task is None:
            raise NotFoundError("Task", task_id)
        if not task.is_visible_to(current_user.id):
            raise ForbiddenError("Not authorized to access this task")
        return task

    async def create_task(
        self,
        db: AsyncSession,
        *,
        task_in: TaskCreate,
        current_user: User,
    ) -> Task:
        if task_in.assigned_to_id is not None:
            await self._ensure_active_assignee(db, task_in.assigned_to_id)

        task = await crud_task.create_task(
            db, obj_in=task_in.model_dump(), created_by_id=current_user.id
        )
        logger.info("User %s created task %s", current_user.id, task.id)

        increments = {"tasks_created": 1}
        if task.status == "completed":
            increments["tasks_completed"] = 1
        await self._bump_statistics(db, current_user.id, **increments)

        return await self._reload(db, task.id)

    async def update_task(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        task_in: TaskUpdate,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)

        update_data = {
            field: value
            for field, value in task_in.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_UPDATE_FIELDS
        }
        if update_data.get("assigned_to_id") is not None:
            await self._ensure_active_assignee(db, update_data["assigned_to_id"])

        was_completed = task.status == "completed"
        await crud_task.apply_update(db, task=task, obj_in=update_data)

        if task.status == "completed" and not was_completed:
            await self._bump_statistics(db, task.created_by_id, tasks_completed=1)

        return await self._reload(db, task.id)

    async def set_archived(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        archived: bool,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        await crud_task.set_archived(db, task=task, archived=archived)
        return await self._reload(db, task.id)

    async def delete_task(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        current_user: User,
    ) -> None:
        """
        Hard delete. Only the creator may delete. Stored files are removed
        once the deletion has been committed.
        """
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        if task.created_by_id != current_user.id:
            raise ForbiddenError("Not authorized to delete this task")

        paths = [attachment.path for attachment in task.attachments]
        await crud_task.remove(db, db_obj=task)
        for path in paths:
            on_commit(db, partial(delete_stored_file, path))
        logger.info("User %s deleted task %s", current_user.id, task_id)

    # ── Comments ──────────────────────────────────────────────────────────────

    async def add_comment(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        content: str,
        current_user: User,
    ) -> Comment:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        return await crud_comment.create_comment(
            db, content=content, task_id=task.id, user=current_user
        )

    async def update_comment(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        comment_id: str,
        content: str,
        current_user: User,
    ) -> Comment:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        comment = await self._get_comment(db, task, comment_id)
        if comment.user_id != current_user.id:
            raise ForbiddenError("Not authorized to edit this comment")
        return await crud_comment.edit(db, comment=comment, content=content)

    async def delete_comment(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        comment_id: str,
        current_user: User,
    ) -> None:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        comment = await self._get_comment(db, task, comment_id)
        if current_user.id not in (comment.user_id, task.created_by_id):
            raise ForbiddenError("Not authorized to delete this comment")
        await crud_comment.remove(db, db_obj=comment)

    # ── Time logs ─────────────────────────────────────────────────────────────

    async def add_time_log(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        log_in: TimeLogCreate,
        current_user: User,
    ) -> tuple[TimeLog, Task]:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        time_log = await crud_time_log.create_time_log(
            db,
            task_id=task.id,
            logged_by_id=current_user.id,
            start_time=log_in.start_time,
            end_time=log_in.end_time,
            duration=log_in.duration_minutes,
            description=log_in.description,
        )
        await self._recompute_actual_hours(db, task)
        await self._bump_statistics(
            db, current_user.id, total_time_spent=time_log.duration
        )
        return time_log, await self._reload(db, task.id)

    async def delete_time_log(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        time_log_id: str,
        current_user: User,
    ) -> Task:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        time_log = await crud_time_log.get_for_task(
            db, task_id=task.id, time_log_id=parse_id(time_log_id, "Time log")
        )
        if time_log is None:
            raise NotFoundError("Time log", time_log_id)
        if current_user.id not in (time_log.logged_by_id, task.created_by_id):
            raise ForbiddenError("Not authorized to delete this time log")

        # delete-orphan cascade deletes the row on flush.
        task.time_logs.remove(time_log)
        await db.flush()
        await self._recompute_actual_hours(db, task)
        return await self._reload(db, task.id)

    # ── Attachments ───────────────────────────────────────────────────────────

    async def add_attachments(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        files: list[UploadFile],
        current_user: User,
    ) -> list[Attachment]:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        attachments = []
        for file in files:
            stored = await save_upload(file)
            on_rollback(db, partial(delete_stored_file, stored.path))
            attachments.append(
                await crud_attachment.create_attachment(
                    db,
                    filename=stored.filename,
                    original_name=stored.original_name,
                    path=stored.path,
                    size=stored.size,
                    mimetype=stored.mimetype,
                    task_id=task.id,
                    uploaded_by_id=current_user.id,
                )
            )
        return attachments

    async def list_attachments(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        current_user: User,
    ) -> list[Attachment]:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        return await crud_attachment.list_by_task(db, task_id=task.id)

    async def delete_attachment(
        self,
        db: AsyncSession,
        *,
        task_id: str,
        attachment_id: str,
        current_user: User,
    ) -> None:
        task = await self.get_task(db, task_id=task_id, current_user=current_user)
        attachment = await crud_attachment.get_for_task(
            db, task_id=task.id, attachment_id=parse_id(attachment_id, "Attachment")
        )
        if attachment is None:
            raise NotFoundError("Attachment", attachment_id)
        if current_user.id not in (attachment.uploaded_by_id, task.created_by_id):
            raise ForbiddenError("Not authorized to delete this attachment")

        await crud_attachment.remove(db, db_obj=attachment)
        on_commit(db, partial(delete_stored_file, attachment.path))

    # ── Private helpers ───────────────────────────────────────────────────────

    async def _reload(self, db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await crud_task.get_with_relations(db, task_id)
        if task is None:
            raise NotFoundError("Task", str(task_id))
        return task

    async def _ensure_active_assignee(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        if await crud_user.get_active(db, user_id) is None:
            raise ValidationError("Assigned user must be an active user")

    async def _get_comment(self, db: AsyncSession, task: Task, comment_id: str) -> Comment:
        comment = await crud_comment.get_for_task(
            db, task_id=task.id, comment_id=parse_id(comment_id, "Comment")
        )
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def _recompute_actual_hours(self, db: AsyncSession, task: Task) -> None:
        minutes = await crud_time_log.total_minutes(db, task_id=task.id)
        await crud_task.update(db, db_obj=task, obj_in={"actual_hours": minutes / 60})

    async def _bump_statistics(
        self, db: AsyncSession, user_id: uuid.UUID, **increments: int
    ) -> None:
        """Counter updates are best-effort: failures are logged, never raised."""
        try:
            async with db.begin_nested():
                await crud_user.increment_statistics(db, user_id=user_id, **increments)
        except SQLAlchemyError:
            logger.exception("Failed to update statistics for user %s", user_id)


task_service = TaskService()
