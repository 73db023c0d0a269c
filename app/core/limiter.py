"""
Shared slowapi limiter.
Applies RATE_LIMIT_DEFAULT to every route through SlowAPIMiddleware;
individual routes may add stricter limits with @limiter.limit(...).
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)
