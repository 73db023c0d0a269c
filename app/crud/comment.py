"""
Comment CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.crud.base import CRUDBase
from app.models.comment import Comment
from app.models.user import User


class CRUDComment(CRUDBase[Comment]):

    async def create_comment(
        self,
        db: AsyncSession,
        *,
        content: str,
        task_id: uuid.UUID,
        user: User,
    ) -> Comment:
        comment = Comment(content=content, task_id=task_id, user_id=user.id, user=user)
        db.add(comment)
        await db.flush()
        return comment

    async def get_for_task(
        self, db: AsyncSession, *, task_id: uuid.UUID, comment_id: uuid.UUID
    ) -> Comment | None:
        result = await db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.id == comment_id, Comment.task_id == task_id)
        )
        return result.scalar_one_or_none()

    async def edit(self, db: AsyncSession, *, comment: Comment, content: str) -> Comment:
        comment.content = content
        comment.is_edited = True
        db.add(comment)
        await db.flush()
        return comment


crud_comment = CRUDComment(Comment)
