"""
TimeLog Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.db.types import as_utc


class TimeLogCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    description: str | None = Field(default=None, max_length=200)

    @model_validator(mode="after")
    def check_interval(self) -> "TimeLogCreate":
        self.start_time = as_utc(self.start_time)
        self.end_time = as_utc(self.end_time)
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.duration_minutes < 1:
            raise ValueError("Duration must be at least 1 minute")
        return self

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


class TimeLogRead(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    duration: int
    description: str | None
    logged_by_id: uuid.UUID
    logged_at: datetime

    model_config = {"from_attributes": True}


class TimeLogData(BaseModel):
    time_log: TimeLogRead
    actual_hours: float
