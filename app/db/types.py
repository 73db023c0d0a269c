"""
Portable column types shared by the ORM models.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator[datetime]):
    """
    Timezone-aware DateTime that always round-trips as UTC.
    SQLite drops tzinfo on storage; values read back are re-tagged as UTC
    so comparisons against utcnow() never mix naive and aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)


class UTCDateTimeList(TypeDecorator[list[datetime]]):
    """JSON array of UTC datetimes, stored as ISO-8601 strings."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: list[datetime] | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        return [as_utc(item).isoformat() for item in value]

    def process_result_value(self, value: Any, dialect: Dialect) -> list[datetime] | None:
        if value is None:
            return None
        return [as_utc(datetime.fromisoformat(item)) for item in value]
