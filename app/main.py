"""
TaskFlow Pro: FastAPI application entrypoint.
Configures logging, lifespan, CORS, rate limiting, the request size cap,
exception handlers, and routers.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.middleware import SlowAPIMiddleware
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.api.routes.router import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.limiter import limiter
from app.core.logging import setup_logging
from app.db.session import engine

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Runs startup logic before yield and teardown logic after.
    """
    logger.info(
        "Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)
    await engine.dispose()

# ── Request size cap ──────────────────────────────────────────────────────────
def _payload_too_large_message() -> str:
    return f"Request body too large. Maximum is {settings.MAX_REQUEST_SIZE_MB}MB."


class RequestSizeLimitMiddleware:
    """
    Reject bodies larger than MAX_REQUEST_SIZE_MB.
    A declared Content-Length is checked before routing. A body without one
    (chunked transfer encoding) is counted while it streams in and fails with
    413 once it passes the limit. Multipart uploads carry their own per-file
    and file-count limits.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if headers.get("content-type", "").startswith("multipart/form-data"):
            await self.app(scope, receive, send)
            return

        limit = settings.max_request_size_bytes
        content_length = headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            logger.warning(
                "%s %s rejected: body of %s bytes exceeds limit",
                scope["method"],
                scope["path"],
                content_length,
            )
            response = JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "message": _payload_too_large_message(),
                    "error": "PayloadTooLarge",
                },
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(
                        "%s %s rejected: streamed body exceeds limit",
                        scope["method"],
                        scope["path"],
                    )
                    raise HTTPException(
                        status_code=413, detail=_payload_too_large_message()
                    )
            return message

        await self.app(scope, limited_receive, send)


# ── Application factory ───────────────────────────────────────────────────────
def create_application() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Task management REST API with JWT auth, comments, time tracking, "
            "file attachments and per-user statistics."
        ),
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Rate limiting middleware ───────────────────────────────────────────────
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # ── Request size cap ──────────────────────────────────────────────────────
    app.add_middleware(RequestSizeLimitMiddleware)

    # ── Custom exception handlers ─────────────────────────────────────────────
    register_exception_handlers(app)

    # ── API routers ───────────────────────────────────────────────────────────
    app.include_router(api_router, prefix=settings.API_PREFIX)

    return app


app = create_application()
