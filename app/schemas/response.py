"""
Generic success envelope: {"success": true, "message": ..., "data": ...}.
Errors use the matching {"success": false, ...} shape built in
app.core.exceptions.
"""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T


class MessageResponse(BaseModel):
    success: bool = True
    message: str
