"""
Authentication routes.
POST /auth/register, /auth/login, GET /auth/me, PUT /auth/change-password
"""
from __future__ import annotations

from fastapi import APIRouter, Request, status

from app.core.config import settings
from app.core.dependencies import CurrentUser, DBSession
from app.core.limiter import limiter
from app.schemas.response import APIResponse, MessageResponse
from app.schemas.user import AuthData, LoginRequest, PasswordChange, UserData, UserRead, UserRegister
from app.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=APIResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    user_in: UserRegister,
    db: DBSession,
) -> APIResponse[AuthData]:
    data = await auth_service.register(db, user_in=user_in)
    return APIResponse(message="User registered successfully", data=data)


@router.post(
    "/login",
    response_model=APIResponse[AuthData],
    summary="Authenticate and receive a bearer token",
)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: DBSession,
) -> APIResponse[AuthData]:
    data = await auth_service.login(
        db, email=credentials.email, password=credentials.password
    )
    return APIResponse(message="Login successful", data=data)


@router.get("/me", response_model=APIResponse[UserData], summary="Get the current user")
async def me(current_user: CurrentUser) -> APIResponse[UserData]:
    return APIResponse(data=UserData(user=UserRead.model_validate(current_user)))


@router.put(
    "/change-password",
    response_model=MessageResponse,
    summary="Change the current user's password",
)
async def change_password(
    body: PasswordChange,
    current_user: CurrentUser,
    db: DBSession,
) -> MessageResponse:
    await auth_service.change_password(db, user=current_user, payload=body)
    return MessageResponse(message="Password changed successfully")
