"""
Time log routes nested under tasks.
/api/tasks/{task_id}/time-logs
"""
from __future__ import annotations

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.response import APIResponse
from app.schemas.task import TaskData, TaskRead
from app.schemas.time_log import TimeLogCreate, TimeLogData, TimeLogRead
from app.services.task_service import task_service

router = APIRouter(tags=["Time logs"])


@router.post(
    "/tasks/{task_id}/time-logs",
    response_model=APIResponse[TimeLogData],
    status_code=status.HTTP_201_CREATED,
    summary="Log time against a task",
)
async def add_time_log(
    task_id: str,
    body: TimeLogCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TimeLogData]:
    time_log, task = await task_service.add_time_log(
        db, task_id=task_id, log_in=body, current_user=current_user
    )
    return APIResponse(
        message="Time logged successfully",
        data=TimeLogData(
            time_log=TimeLogRead.model_validate(time_log),
            actual_hours=task.actual_hours,
        ),
    )


@router.delete(
    "/tasks/{task_id}/time-logs/{time_log_id}",
    response_model=APIResponse[TaskData],
    summary="Delete a time log (logger or task creator)",
)
async def delete_time_log(
    task_id: str,
    time_log_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.delete_time_log(
        db, task_id=task_id, time_log_id=time_log_id, current_user=current_user
    )
    return APIResponse(
        message="Time log deleted successfully",
        data=TaskData(task=TaskRead.model_validate(task)),
    )
