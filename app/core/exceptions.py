"""
Custom exceptions and the global exception translator for TaskFlow Pro.
Every error leaves the API in the same envelope:
{"success": false, "message": ..., "error": ...} plus optional "details"
and, in development only, "stack".
"""
from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


# ── Custom exception classes ──────────────────────────────────────────────────

class AppException(Exception):
    """Base exception for all TaskFlow domain errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        error: str | None = None,
        details: list[str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.error = error or "AppError"
        self.details = details
        super().__init__(message)


class ValidationError(AppException):
    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            error="ValidationError",
            details=details,
        )


class AuthenticationError(AppException):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            error="AuthenticationError",
        )


class InvalidTokenError(AuthenticationError):
    def __init__(self, message: str = "Invalid authentication token") -> None:
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    def __init__(self, message: str = "Authentication token has expired") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class AccountLockedError(AppException):
    def __init__(
        self,
        message: str = "Account is temporarily locked due to too many failed login attempts",
    ) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            error="AccountLocked",
        )


class ForbiddenError(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            error="Forbidden",
        )


class NotFoundError(AppException):
    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message=message,
            error="NotFoundError",
        )


class DuplicateFieldError(AppException):
    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=f"{field} '{value}' is already taken. Please use a different {field}.",
            error="DuplicateFieldError",
        )


class FileUploadError(AppException):
    def __init__(self, message: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=message,
            error="FileUploadError",
        )


class FileSizeError(AppException):
    def __init__(self, max_mb: int) -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            message=f"File too large. Please upload a file smaller than {max_mb}MB.",
            error="FileSizeError",
        )


# ── Exception handlers ────────────────────────────────────────────────────────

def _error_response(
    request: Request,
    exc: Exception,
    status_code: int,
    message: str,
    error: str,
    details: list[str] | None = None,
) -> JSONResponse:
    user_id = getattr(request.state, "user_id", None) or "anonymous"
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "%s %s -> %s %s (user=%s): %s",
        request.method,
        request.url.path,
        status_code,
        error,
        user_id,
        exc,
    )

    content: dict[str, Any] = {
        "success": False,
        "message": message,
        "error": error,
    }
    if details:
        content["details"] = details
    if settings.is_development:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return _error_response(
        request, exc, exc.status_code, exc.message, exc.error, exc.details
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = []
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" location segment.
        loc = [str(part) for part in error["loc"][1:]] or [str(error["loc"][0])]
        details.append(f"{'.'.join(loc)}: {error['msg']}")
    return _error_response(
        request,
        exc,
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        "ValidationError",
        details,
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    if "unique" in str(exc.orig).lower():
        return _error_response(
            request,
            exc,
            status.HTTP_400_BAD_REQUEST,
            "A record with the same unique value already exists",
            "DuplicateFieldError",
        )
    return _error_response(
        request,
        exc,
        status.HTTP_400_BAD_REQUEST,
        "The request violates a data constraint",
        "ValidationError",
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _error_response(
            request, exc, exc.status_code, f"Not found - {request.url.path}", "NotFoundError"
        )
    if exc.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE:
        return _error_response(
            request, exc, exc.status_code, str(exc.detail), "PayloadTooLarge"
        )
    return _error_response(
        request, exc, exc.status_code, str(exc.detail), "HTTPError"
    )


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    return _error_response(
        request,
        exc,
        status.HTTP_429_TOO_MANY_REQUESTS,
        f"Too many requests, please try again later ({exc.detail})",
        "RateLimitError",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    message = str(exc) if settings.is_development else "Server Error"
    return _error_response(
        request,
        exc,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        "InternalServerError",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI application."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
