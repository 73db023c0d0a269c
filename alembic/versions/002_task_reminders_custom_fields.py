"""002_task_reminders_custom_fields

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 12:00:00.000000

Adds reminder dates and free-form custom fields to tasks.
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.add_column(
        "tasks",
        sa.Column("reminders", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
    )
    op.add_column(
        "tasks",
        sa.Column("custom_fields", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
    )


def downgrade() -> None:
    op.drop_column("tasks", "custom_fields")
    op.drop_column("tasks", "reminders")
