"""
Comment routes nested under tasks.
/api/tasks/{task_id}/comments
"""
from __future__ import annotations

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.comment import CommentCreate, CommentData, CommentRead, CommentUpdate
from app.schemas.response import APIResponse, MessageResponse
from app.services.task_service import task_service

router = APIRouter(tags=["Comments"])


@router.post(
    "/tasks/{task_id}/comments",
    response_model=APIResponse[CommentData],
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment to a task",
)
async def add_comment(
    task_id: str,
    body: CommentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[CommentData]:
    comment = await task_service.add_comment(
        db, task_id=task_id, content=body.content, current_user=current_user
    )
    return APIResponse(
        message="Comment added successfully",
        data=CommentData(comment=CommentRead.model_validate(comment)),
    )


@router.put(
    "/tasks/{task_id}/comments/{comment_id}",
    response_model=APIResponse[CommentData],
    summary="Edit a comment (author only)",
)
async def update_comment(
    task_id: str,
    comment_id: str,
    body: CommentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[CommentData]:
    comment = await task_service.update_comment(
        db,
        task_id=task_id,
        comment_id=comment_id,
        content=body.content,
        current_user=current_user,
    )
    return APIResponse(
        message="Comment updated successfully",
        data=CommentData(comment=CommentRead.model_validate(comment)),
    )


@router.delete(
    "/tasks/{task_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete a comment (author or task creator)",
)
async def delete_comment(
    task_id: str,
    comment_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await task_service.delete_comment(
        db, task_id=task_id, comment_id=comment_id, current_user=current_user
    )
    return MessageResponse(message="Comment deleted successfully")
