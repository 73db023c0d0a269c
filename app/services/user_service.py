"""
User profile and administration service.
Preferences and profile are JSON documents; updates are merged into the
stored document rather than replacing it.
"""
from __future__ import annotations

import copy
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.crud.user import crud_user
from app.models.user import User
from app.schemas.user import PreferencesUpdate, ProfileUpdate

logger = logging.getLogger(__name__)


def merge_document(stored: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge changes into a copy of stored."""
    merged = copy.deepcopy(stored)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_document(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_user_id(raw_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw_id)
    except ValueError:
        raise NotFoundError("User", raw_id)


class UserService:

    async def update_profile(
        self, db: AsyncSession, *, user: User, profile_in: ProfileUpdate
    ) -> User:
        changes = profile_in.model_dump(exclude_unset=True)
        update_data: dict[str, Any] = {}
        if changes.get("name") is not None:
            update_data["name"] = changes["name"]
        if "avatar" in changes:
            update_data["avatar"] = changes["avatar"]
        if changes.get("profile"):
            update_data["profile"] = merge_document(user.profile, changes["profile"])
        return await crud_user.update(db, db_obj=user, obj_in=update_data)

    async def update_preferences(
        self, db: AsyncSession, *, user: User, preferences_in: PreferencesUpdate
    ) -> User:
        changes = preferences_in.model_dump(exclude_unset=True, exclude_none=True)
        return await crud_user.update(
            db,
            db_obj=user,
            obj_in={"preferences": merge_document(user.preferences, changes)},
        )

    # ── Admin ─────────────────────────────────────────────────────────────────

    async def get_user(self, db: AsyncSession, *, user_id: str) -> User:
        user = await crud_user.get(db, _parse_user_id(user_id))
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def set_role(
        self, db: AsyncSession, *, user_id: str, role: str, admin: User
    ) -> User:
        user = await self.get_user(db, user_id=user_id)
        updated = await crud_user.update(db, db_obj=user, obj_in={"role": role})
        logger.info("Admin %s set role of user %s to %s", admin.id, user.id, role)
        return updated

    async def set_active(
        self, db: AsyncSession, *, user_id: str, active: bool, admin: User
    ) -> User:
        user = await self.get_user(db, user_id=user_id)
        if not active and user.id == admin.id:
            raise ValidationError("You cannot deactivate your own account")
        updated = await crud_user.update(db, db_obj=user, obj_in={"is_active": active})
        logger.info(
            "Admin %s %s user %s",
            admin.id,
            "activated" if active else "deactivated",
            user.id,
        )
        return updated


user_service = UserService()
