"""
Authentication service.
Handles registration, login with lockout bookkeeping, and password changes.
Business logic lives here; routes only call these methods.
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AccountLockedError,
    DuplicateFieldError,
    InvalidCredentialsError,
    ValidationError,
)
from app.core.security import create_access_token, hash_password, verify_password
from app.crud.user import crud_user
from app.models.user import User
from app.schemas.user import AuthData, PasswordChange, UserRead, UserRegister

logger = logging.getLogger(__name__)


def build_auth_data(user: User) -> AuthData:
    return AuthData(
        token=create_access_token(str(user.id), user.role),
        expires_in=settings.access_token_expire_seconds,
        user=UserRead.model_validate(user),
    )


class AuthService:

    async def register(self, db: AsyncSession, *, user_in: UserRegister) -> AuthData:
        """
        Register a new user and issue a token.
        The email must be unused by any user, active or deactivated.
        """
        if await crud_user.get_by_email(db, user_in.email) is not None:
            raise DuplicateFieldError("email", user_in.email)

        user = await crud_user.create_user(
            db,
            name=user_in.name,
            email=user_in.email,
            hashed_password=hash_password(user_in.password),
        )
        logger.info("Registered user %s", user.id)
        return build_auth_data(user)

    async def login(self, db: AsyncSession, *, email: str, password: str) -> AuthData:
        """
        Verify credentials and issue a token.
        A wrong password counts towards the lockout; the counter is committed
        before the request fails so the rollback in get_db cannot undo it.
        """
        user = await crud_user.get_active_by_email(db, email)
        if user is None:
            logger.warning("Login failed for unknown email %s", email)
            raise InvalidCredentialsError()

        if user.is_locked:
            logger.warning("Login rejected for locked user %s", user.id)
            raise AccountLockedError()

        if not verify_password(password, user.hashed_password):
            await crud_user.register_failed_login(db, user=user)
            await db.commit()
            if user.is_locked:
                logger.warning(
                    "User %s locked after %s failed login attempts",
                    user.id,
                    user.login_attempts,
                )
            else:
                logger.warning(
                    "Failed login for user %s (attempt %s)", user.id, user.login_attempts
                )
            raise InvalidCredentialsError()

        await crud_user.register_successful_login(db, user=user)
        logger.info("User %s logged in", user.id)
        return build_auth_data(user)

    async def change_password(
        self, db: AsyncSession, *, user: User, payload: PasswordChange
    ) -> None:
        if not verify_password(payload.current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")
        if payload.new_password == payload.current_password:
            raise ValidationError("New password must be different from the current password")

        await crud_user.update(
            db, db_obj=user, obj_in={"hashed_password": hash_password(payload.new_password)}
        )
        logger.info("User %s changed password", user.id)


auth_service = AuthService()
