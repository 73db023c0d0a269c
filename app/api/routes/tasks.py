"""
Task routes.
CRUD, archival, filtering with pagination, and per-user statistics.
"""
from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import CurrentUser, DBSession
from app.models.task import Task
from app.schemas.pagination import Pagination
from app.schemas.response import APIResponse, MessageResponse
from app.schemas.stats import TaskStatsData
from app.schemas.task import (
    TaskCreate,
    TaskData,
    TaskFilter,
    TaskListData,
    TaskPriority,
    TaskRead,
    TaskStatus,
    TaskUpdate,
)
from app.services.stats_service import stats_service
from app.services.task_service import task_service

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _task_filter_params(
    status: TaskStatus | Literal["all"] | None = Query(default=None),
    priority: TaskPriority | Literal["all"] | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    include_archived: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> TaskFilter:
    return TaskFilter(
        status=None if status == "all" else status,
        priority=None if priority == "all" else priority,
        search=search or None,
        include_archived=include_archived,
        page=page,
        limit=limit,
    )


def _task_response(task: Task, message: str | None = None) -> APIResponse[TaskData]:
    return APIResponse(message=message, data=TaskData(task=TaskRead.model_validate(task)))


@router.get(
    "",
    response_model=APIResponse[TaskListData],
    summary="List tasks the current user created or is assigned to",
)
async def list_tasks(
    current_user: CurrentUser,
    db: DBSession,
    filters: Annotated[TaskFilter, Depends(_task_filter_params)],
) -> APIResponse[TaskListData]:
    tasks, total = await task_service.list_tasks(
        db, filters=filters, current_user=current_user
    )
    return APIResponse(
        data=TaskListData(
            tasks=[TaskRead.model_validate(t) for t in tasks],
            pagination=Pagination(current_page=filters.page, limit=filters.limit, total=total),
        )
    )


@router.post(
    "",
    response_model=APIResponse[TaskData],
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    task_in: TaskCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.create_task(db, task_in=task_in, current_user=current_user)
    return _task_response(task, "Task created successfully")


# Registered before /{task_id} so "stats" is not taken for an id.
@router.get(
    "/stats/overview",
    response_model=APIResponse[TaskStatsData],
    summary="Statistics over the current user's tasks",
)
async def task_stats(
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskStatsData]:
    stats = await stats_service.task_overview(db, user_id=current_user.id)
    return APIResponse(data=TaskStatsData(stats=stats))


@router.get("/{task_id}", response_model=APIResponse[TaskData], summary="Get a task")
async def get_task(
    task_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.get_task(db, task_id=task_id, current_user=current_user)
    return _task_response(task)


@router.put("/{task_id}", response_model=APIResponse[TaskData], summary="Update a task")
async def update_task(
    task_id: str,
    task_in: TaskUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.update_task(
        db, task_id=task_id, task_in=task_in, current_user=current_user
    )
    return _task_response(task, "Task updated successfully")


@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete a task (creator only)",
)
async def delete_task(
    task_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await task_service.delete_task(db, task_id=task_id, current_user=current_user)
    return MessageResponse(message="Task deleted successfully")


@router.patch(
    "/{task_id}/archive",
    response_model=APIResponse[TaskData],
    summary="Archive a task",
)
async def archive_task(
    task_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.set_archived(
        db, task_id=task_id, archived=True, current_user=current_user
    )
    return _task_response(task, "Task archived successfully")


@router.patch(
    "/{task_id}/unarchive",
    response_model=APIResponse[TaskData],
    summary="Restore an archived task",
)
async def unarchive_task(
    task_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[TaskData]:
    task = await task_service.set_archived(
        db, task_id=task_id, archived=False, current_user=current_user
    )
    return _task_response(task, "Task unarchived successfully")
