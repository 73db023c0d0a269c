"""
User routes.
Profile and preferences for the current user, personal statistics, and
admin-only user management.
"""
from __future__ import annotations

from fastapi import APIRouter, Query

from app.core.dependencies import AdminUser, CurrentUser, DBSession
from app.crud.user import crud_user
from app.models.user import User
from app.schemas.pagination import Pagination
from app.schemas.response import APIResponse
from app.schemas.stats import PersonalStatsData
from app.schemas.user import (
    PopulationStats,
    PreferencesUpdate,
    ProfileUpdate,
    RoleUpdate,
    UserData,
    UserListData,
    UserRead,
)
from app.services.stats_service import stats_service
from app.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


def _user_response(user: User, message: str | None = None) -> APIResponse[UserData]:
    return APIResponse(message=message, data=UserData(user=UserRead.model_validate(user)))


# ── Current user ──────────────────────────────────────────────────────────────

@router.get("/profile", response_model=APIResponse[UserData], summary="Get own profile")
async def get_profile(current_user: CurrentUser) -> APIResponse[UserData]:
    return _user_response(current_user)


@router.put("/profile", response_model=APIResponse[UserData], summary="Update own profile")
async def update_profile(
    body: ProfileUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[UserData]:
    user = await user_service.update_profile(db, user=current_user, profile_in=body)
    return _user_response(user, "Profile updated successfully")


@router.put(
    "/preferences",
    response_model=APIResponse[UserData],
    summary="Update own preferences",
)
async def update_preferences(
    body: PreferencesUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[UserData]:
    user = await user_service.update_preferences(db, user=current_user, preferences_in=body)
    return _user_response(user, "Preferences updated successfully")


@router.get(
    "/stats/personal",
    response_model=APIResponse[PersonalStatsData],
    summary="Own statistics counters and task overview",
)
async def personal_stats(
    current_user: CurrentUser,
    db: DBSession,
) -> APIResponse[PersonalStatsData]:
    return APIResponse(data=await stats_service.personal(db, user=current_user))


# ── Admin ─────────────────────────────────────────────────────────────────────

@router.get(
    "/stats/overview",
    response_model=APIResponse[PopulationStats],
    summary="User population statistics (admin only)",
)
async def population_stats(
    _admin: AdminUser,
    db: DBSession,
) -> APIResponse[PopulationStats]:
    return APIResponse(data=await stats_service.population(db))


@router.get(
    "",
    response_model=APIResponse[UserListData],
    summary="List users (admin only)",
)
async def list_users(
    _admin: AdminUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    include_inactive: bool = Query(default=False),
) -> APIResponse[UserListData]:
    users, total = await crud_user.list_users(
        db, skip=(page - 1) * limit, limit=limit, include_inactive=include_inactive
    )
    return APIResponse(
        data=UserListData(
            users=[UserRead.model_validate(u) for u in users],
            pagination=Pagination(current_page=page, limit=limit, total=total),
        )
    )


@router.get("/{user_id}", response_model=APIResponse[UserData], summary="Get a user (admin only)")
async def get_user(
    user_id: str,
    _admin: AdminUser,
    db: DBSession,
) -> APIResponse[UserData]:
    return _user_response(await user_service.get_user(db, user_id=user_id))


@router.put(
    "/{user_id}/role",
    response_model=APIResponse[UserData],
    summary="Change a user's role (admin only)",
)
async def update_role(
    user_id: str,
    body: RoleUpdate,
    admin: AdminUser,
    db: DBSession,
) -> APIResponse[UserData]:
    user = await user_service.set_role(db, user_id=user_id, role=body.role, admin=admin)
    return _user_response(user, "User role updated successfully")


@router.patch(
    "/{user_id}/deactivate",
    response_model=APIResponse[UserData],
    summary="Deactivate a user (admin only)",
)
async def deactivate_user(
    user_id: str,
    admin: AdminUser,
    db: DBSession,
) -> APIResponse[UserData]:
    user = await user_service.set_active(db, user_id=user_id, active=False, admin=admin)
    return _user_response(user, "User deactivated successfully")


@router.patch(
    "/{user_id}/activate",
    response_model=APIResponse[UserData],
    summary="Reactivate a user (admin only)",
)
async def activate_user(
    user_id: str,
    admin: AdminUser,
    db: DBSession,
) -> APIResponse[UserData]:
    user = await user_service.set_active(db, user_id=user_id, active=True, admin=admin)
    return _user_response(user, "User activated successfully")
