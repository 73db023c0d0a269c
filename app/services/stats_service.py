"""
Task statistics.
Aggregates run in the database; build_overview turns the raw counts into
the rates reported by the API. Division by zero yields 0.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.task import crud_task
from app.crud.user import crud_user
from app.models.task import TASK_PRIORITIES, TASK_STATUSES
from app.models.user import User
from app.schemas.stats import PersonalStatsData, TaskStats
from app.schemas.user import PopulationStats, Statistics


def _percentage(part: float, whole: float) -> float:
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def build_overview(
    status_counts: dict[str, int],
    priority_counts: dict[str, int],
    overdue: int = 0,
    total_estimated_hours: float = 0,
    total_actual_hours: float = 0,
) -> TaskStats:
    status_breakdown = {status: status_counts.get(status, 0) for status in TASK_STATUSES}
    priority_breakdown = {
        priority: priority_counts.get(priority, 0) for priority in TASK_PRIORITIES
    }
    total = sum(status_breakdown.values())
    completed = status_breakdown["completed"]
    return TaskStats(
        total=total,
        status_breakdown=status_breakdown,
        priority_breakdown=priority_breakdown,
        completed=completed,
        overdue=overdue,
        completion_rate=_percentage(completed, total),
        total_estimated_hours=round(total_estimated_hours, 2),
        total_actual_hours=round(total_actual_hours, 2),
        efficiency=_percentage(total_actual_hours, total_estimated_hours),
    )


class StatsService:

    async def task_overview(self, db: AsyncSession, *, user_id: uuid.UUID) -> TaskStats:
        """Statistics over the non-archived tasks the user created or is assigned to."""
        status_counts = await crud_task.count_by_status(db, user_id=user_id)
        priority_counts = await crud_task.count_by_priority(db, user_id=user_id)
        totals = await crud_task.totals(db, user_id=user_id)
        return build_overview(status_counts, priority_counts, **totals)

    async def personal(self, db: AsyncSession, *, user: User) -> PersonalStatsData:
        return PersonalStatsData(
            statistics=Statistics.model_validate(user.statistics),
            tasks=await self.task_overview(db, user_id=user.id),
        )

    async def population(self, db: AsyncSession) -> PopulationStats:
        return PopulationStats(**await crud_user.population_counts(db))


stats_service = StatsService()
