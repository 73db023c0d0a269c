"""
Aggregates all API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from app.api.routes import attachments, auth, comments, health, tasks, time_logs, users

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(tasks.router)
api_router.include_router(comments.router)
api_router.include_router(time_logs.router)
api_router.include_router(attachments.router)
api_router.include_router(users.router)
