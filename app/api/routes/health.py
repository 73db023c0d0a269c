"""
Service banner and health check.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.dependencies import DBSession, OptionalUser
from app.db.types import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", summary="Service and database status")
async def health_check(db: DBSession) -> dict[str, Any]:
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "disconnected"
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "database": database,
    }


@router.get("/", summary="Service banner")
async def root(current_user: OptionalUser) -> dict[str, Any]:
    banner: dict[str, Any] = {
        "success": True,
        "message": f"Welcome to the {settings.APP_NAME} API",
        "version": settings.APP_VERSION,
    }
    if current_user is not None:
        banner["user"] = {"id": str(current_user.id), "name": current_user.name}
    return banner
