"""
Attachment ORM model.
Metadata for a file uploaded to a task; the bytes live under UPLOAD_DIR.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    path: Mapped[str] = mapped_column(String(2000), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mimetype: Mapped[str] = mapped_column(String(200), nullable=False)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    uploaded_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    task: Mapped["Task"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        back_populates="attachments",
    )
    uploader: Mapped["User"] = relationship("User")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        Index("ix_attachments_task_id", "task_id"),
        Index("ix_attachments_uploaded_at", "uploaded_at"),
    )

    def __repr__(self) -> str:
        return f"<Attachment id={self.id} filename={self.filename!r}>"
