"""
TimeLog CRUD operations.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.time_log import TimeLog


class CRUDTimeLog(CRUDBase[TimeLog]):

    async def create_time_log(
        self,
        db: AsyncSession,
        *,
        task_id: uuid.UUID,
        logged_by_id: uuid.UUID,
        start_time: datetime,
        end_time: datetime,
        duration: int,
        description: str | None = None,
    ) -> TimeLog:
        time_log = TimeLog(
            task_id=task_id,
            logged_by_id=logged_by_id,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            description=description,
        )
        db.add(time_log)
        await db.flush()
        return time_log

    async def get_for_task(
        self, db: AsyncSession, *, task_id: uuid.UUID, time_log_id: uuid.UUID
    ) -> TimeLog | None:
        result = await db.execute(
            select(TimeLog).where(TimeLog.id == time_log_id, TimeLog.task_id == task_id)
        )
        return result.scalar_one_or_none()

    async def total_minutes(self, db: AsyncSession, *, task_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.coalesce(func.sum(TimeLog.duration), 0)).where(
                TimeLog.task_id == task_id
            )
        )
        return int(result.scalar_one())


crud_time_log = CRUDTimeLog(TimeLog)
