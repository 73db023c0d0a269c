"""
Security utilities: JWT creation/verification and password hashing.
Passwords are hashed with bcrypt via passlib. Tokens use python-jose.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, TokenExpiredError

# ── Password hashing ──────────────────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(plain_password: str) -> str:
    """Return bcrypt hash of the given plain-text password."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if plain_password matches the stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ── JWT helpers ───────────────────────────────────────────────────────────────

def create_access_token(
    user_id: str,
    role: str,
    expire_delta: timedelta | None = None,
) -> str:
    """Create a signed, time-limited bearer token for the given user."""
    now = datetime.now(timezone.utc)
    if expire_delta is None:
        expire_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "type": "access",
        "role": role,
        "iat": now,
        "exp": now + expire_delta,
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token.
    Raises TokenExpiredError past expiry and InvalidTokenError for anything
    else (bad signature, malformed token, wrong token type).
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()
    if payload.get("type") != "access":
        raise InvalidTokenError("Invalid token type")
    return payload


# ── Password policy ───────────────────────────────────────────────────────────

def validate_password_strength(password: str) -> str:
    """
    Enforce password policy:
    - Minimum PASSWORD_MIN_LENGTH characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    Returns the password unchanged if valid, raises ValueError otherwise.
    """
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"
        )
    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one number")
    return password
