"""
Attachment routes nested under tasks.
/api/tasks/{task_id}/attachments
Uploads are multipart/form-data with one or more parts named "files".
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, UploadFile, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.attachment import AttachmentListData, AttachmentRead
from app.schemas.response import APIResponse, MessageResponse
from app.services.task_service import task_service
from app.services.upload_service import validate_uploads

router = APIRouter(tags=["Attachments"])


@router.get(
    "/tasks/{task_id}/attachments",
    response_model=APIResponse[AttachmentListData],
    summary="List attachments for a task",
)
async def list_attachments(
    task_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[AttachmentListData]:
    attachments = await task_service.list_attachments(
        db, task_id=task_id, current_user=current_user
    )
    return APIResponse(
        data=AttachmentListData(
            attachments=[AttachmentRead.model_validate(a) for a in attachments]
        )
    )


@router.post(
    "/tasks/{task_id}/attachments",
    response_model=APIResponse[AttachmentListData],
    status_code=status.HTTP_201_CREATED,
    summary="Upload file attachments to a task",
)
async def upload_attachments(
    task_id: str,
    current_user: CurrentUser,
    files: Annotated[list[UploadFile], Depends(validate_uploads)],
    db: DBSession,
) -> APIResponse[AttachmentListData]:
    attachments = await task_service.add_attachments(
        db, task_id=task_id, files=files, current_user=current_user
    )
    return APIResponse(
        message="Files uploaded successfully",
        data=AttachmentListData(
            attachments=[AttachmentRead.model_validate(a) for a in attachments]
        ),
    )


@router.delete(
    "/tasks/{task_id}/attachments/{attachment_id}",
    response_model=MessageResponse,
    summary="Delete an attachment (uploader or task creator)",
)
async def delete_attachment(
    task_id: str,
    attachment_id: str,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await task_service.delete_attachment(
        db, task_id=task_id, attachment_id=attachment_id, current_user=current_user
    )
    return MessageResponse(message="Attachment deleted successfully")
