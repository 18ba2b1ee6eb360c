"""Create emails, entries and activities tables

Revision ID: 001
Revises: None
Create Date: 2024-06-03 00:00:00.000000+00:00

What:  Initial schema for both services.
       - emails:     captured sign-ups, unique on the normalized address
       - entries:    journal notes, soft-deleted through `status`
       - activities: append-only audit trail, weak reference to entries

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "emails",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("ip_address", sa.String(15), nullable=False),
        sa.Column("location", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_emails_email"),
    )

    op.create_table(
        "entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "date",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("pin_color", sa.String(16), server_default=sa.text("'green'"), nullable=False),
        sa.Column("status", sa.String(16), server_default=sa.text("'Active'"), nullable=False),
        sa.CheckConstraint(
            "pin_color IN ('yellow', 'red', 'green', 'orange')",
            name="ck_entries_pin_color",
        ),
        sa.CheckConstraint("status IN ('Active', 'Deleted')", name="ck_entries_status"),
        sa.PrimaryKeyConstraint("id"),
    )
    # Board listing, update/delete lookups and the weekly report all filter on status
    op.create_index("idx_entries_status_date", "entries", ["status", "date"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(16), nullable=False),
        sa.Column("entry_id", sa.Uuid(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "action IN ('create', 'update', 'delete', 'download')",
            name="ck_activities_action",
        ),
        sa.ForeignKeyConstraint(["entry_id"], ["entries.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_activities_entry_id", "activities", ["entry_id"])


def downgrade() -> None:
    op.drop_index("idx_activities_entry_id", table_name="activities")
    op.drop_table("activities")
    op.drop_index("idx_entries_status_date", table_name="entries")
    op.drop_table("entries")
    op.drop_table("emails")
