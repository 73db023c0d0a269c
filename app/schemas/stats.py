"""
Statistics Pydantic schemas.
"""
from __future__ import annotations

from pydantic import BaseModel

from app.schemas.user import Statistics


class TaskStats(BaseModel):
    total: int
    status_breakdown: dict[str, int]
    priority_breakdown: dict[str, int]
    completed: int
    overdue: int
    completion_rate: float
    total_estimated_hours: float
    total_actual_hours: float
    efficiency: float


class TaskStatsData(BaseModel):
    stats: TaskStats


class PersonalStatsData(BaseModel):
    statistics: Statistics
    tasks: TaskStats
