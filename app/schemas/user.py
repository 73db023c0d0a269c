"""
User Pydantic schemas.
Covers registration, login, profile/preference reads and updates, admin
updates and the token payload returned by the auth endpoints.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from app.core.security import validate_password_strength
from app.schemas.pagination import Pagination

UserRole = Literal["user", "manager", "admin"]
Theme = Literal["light", "dark", "auto"]

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
AvatarUrl = Annotated[
    str,
    StringConstraints(
        max_length=500, pattern=r"^https?://.*\.(?:png|jpg|jpeg|gif|webp)$"
    ),
]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\+?[\d\s\-()]{10,}$")]


# ── Nested documents ──────────────────────────────────────────────────────────

class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    sms: bool = False


class Preferences(BaseModel):
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    theme: Theme = "light"
    language: str = "en"
    timezone: str = "UTC"


class Location(BaseModel):
    city: str | None = None
    country: str | None = None
    timezone: str | None = None


class SocialLinks(BaseModel):
    website: str | None = None
    github: str | None = None
    linkedin: str | None = None
    twitter: str | None = None


class Profile(BaseModel):
    bio: str = Field(default="", max_length=500)
    phone: Phone | None = None
    location: Location = Field(default_factory=Location)
    social_links: SocialLinks = Field(default_factory=SocialLinks)


class Statistics(BaseModel):
    tasks_created: int = 0
    tasks_completed: int = 0
    total_time_spent: int = 0


# ── Create / login ────────────────────────────────────────────────────────────

class UserRegister(BaseModel):
    name: Name
    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_strength(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return validate_password_strength(v)


# ── Update ────────────────────────────────────────────────────────────────────

class NotificationPreferencesUpdate(BaseModel):
    email: bool | None = None
    push: bool | None = None
    sms: bool | None = None


class PreferencesUpdate(BaseModel):
    notifications: NotificationPreferencesUpdate | None = None
    theme: Theme | None = None
    language: str | None = Field(default=None, min_length=2, max_length=10)
    timezone: str | None = Field(default=None, max_length=64)


class ProfileDetailsUpdate(BaseModel):
    bio: str | None = Field(default=None, max_length=500)
    phone: Phone | None = None
    location: Location | None = None
    social_links: SocialLinks | None = None


class ProfileUpdate(BaseModel):
    name: Name | None = None
    avatar: AvatarUrl | None = None
    profile: ProfileDetailsUpdate | None = None


class RoleUpdate(BaseModel):
    role: UserRole


# ── Read ──────────────────────────────────────────────────────────────────────

class UserRead(BaseModel):
    """Public profile. Never carries the password hash or lockout state."""

    id: uuid.UUID
    name: str
    email: EmailStr
    avatar: str | None
    role: str
    is_active: bool
    is_verified: bool
    preferences: Preferences
    profile: Profile
    statistics: Statistics
    last_login: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Minimal user reference embedded in task, comment and list responses."""

    id: uuid.UUID
    name: str
    email: str
    avatar: str | None = None

    model_config = {"from_attributes": True}


# ── Response payloads ─────────────────────────────────────────────────────────

class AuthData(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


class UserData(BaseModel):
    user: UserRead


class UserListData(BaseModel):
    users: list[UserRead]
    pagination: Pagination


class PopulationStats(BaseModel):
    total_users: int
    active_users: int
    verified_users: int
    admins: int
    average_tasks_created: float

