"""
Comment Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, StringConstraints

from app.schemas.user import UserSummary

Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]


class CommentCreate(BaseModel):
    content: Content


class CommentUpdate(BaseModel):
    content: Content


class CommentRead(BaseModel):
    id: uuid.UUID
    content: str
    task_id: uuid.UUID
    user_id: uuid.UUID
    user: UserSummary | None = None
    is_edited: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CommentData(BaseModel):
    comment: CommentRead
