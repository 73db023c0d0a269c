"""
FastAPI dependency injection functions.
Provides get_db, get_current_user, get_optional_user and require_admin.
"""
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, ForbiddenError, InvalidTokenError
from app.core.security import decode_access_token
from app.crud.user import crud_user
from app.db.session import get_db
from app.models.user import User

# Re-export get_db so routes can import from one place
__all__ = [
    "get_db",
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "DBSession",
    "CurrentUser",
    "OptionalUser",
    "AdminUser",
]

bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenError("Malformed token: missing subject")
    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise InvalidTokenError("Malformed token: invalid subject format")

    user = await crud_user.get(db, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    return user


async def get_current_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User:
    """
    Extract and validate the JWT access token from the Authorization header.
    Returns the authenticated User model.
    """
    if credentials is None:
        raise AuthenticationError("Not authorized, no token provided")

    user = await _resolve_user(db, credentials.credentials)
    request.state.user_id = str(user.id)
    return user


async def get_optional_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User | None:
    """Like get_current_user, but yields None instead of rejecting the request."""
    if credentials is None:
        return None
    try:
        user = await _resolve_user(db, credentials.credentials)
    except AuthenticationError:
        return None
    request.state.user_id = str(user.id)
    return user


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency that requires the current user to have the 'admin' role."""
    if current_user.role != "admin":
        raise ForbiddenError("Admin privileges required")
    return current_user


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(require_admin)]
