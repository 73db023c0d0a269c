"""
Attachment Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class AttachmentRead(BaseModel):
    id: uuid.UUID
    filename: str
    original_name: str
    path: str
    size: int
    mimetype: str
    task_id: uuid.UUID
    uploaded_by_id: uuid.UUID
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class AttachmentListData(BaseModel):
    attachments: list[AttachmentRead]
