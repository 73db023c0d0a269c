"""
Attachment CRUD operations.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.attachment import Attachment


class CRUDAttachment(CRUDBase[Attachment]):

    async def create_attachment(
        self,
        db: AsyncSession,
        *,
        filename: str,
        original_name: str,
        path: str,
        size: int,
        mimetype: str,
        task_id: uuid.UUID,
        uploaded_by_id: uuid.UUID,
    ) -> Attachment:
        attachment = Attachment(
            filename=filename,
            original_name=original_name,
            path=path,
            size=size,
            mimetype=mimetype,
            task_id=task_id,
            uploaded_by_id=uploaded_by_id,
        )
        db.add(attachment)
        await db.flush()
        return attachment

    async def get_for_task(
        self, db: AsyncSession, *, task_id: uuid.UUID, attachment_id: uuid.UUID
    ) -> Attachment | None:
        result = await db.execute(
            select(Attachment).where(
                Attachment.id == attachment_id, Attachment.task_id == task_id
            )
        )
        return result.scalar_one_or_none()

    async def list_by_task(
        self, db: AsyncSession, *, task_id: uuid.UUID
    ) -> list[Attachment]:
        result = await db.execute(
            select(Attachment)
            .where(Attachment.task_id == task_id)
            .order_by(Attachment.uploaded_at.asc())
        )
        return list(result.scalars().all())


crud_attachment = CRUDAttachment(Attachment)
