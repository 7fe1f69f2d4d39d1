"""create planner tables

Revision ID: 3c1f7a9e2b40
Revises:
Create Date: 2025-09-02 00:00:00
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f7a9e2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "days",
        sa.Column("date_key", sa.String(length=10), primary_key=True),
        sa.Column("items", sa.JSON(), nullable=False),
    )
    op.create_table(
        "day_configs",
        sa.Column("date_key", sa.String(length=10), primary_key=True),
        sa.Column("config", sa.JSON(), nullable=False),
    )
    op.create_table(
        "planner_meta",
        sa.Column("key", sa.String(length=50), primary_key=True),
        sa.Column("value", sa.JSON()),
    )
    op.create_table(
        "shared_links",
        sa.Column("date_key", sa.String(length=10), primary_key=True),
        sa.Column("share_id", sa.String(length=64), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("fingerprint", sa.String(length=64)),
    )
    op.create_table(
        "share_entries",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_share_entries_expires_at", "share_entries", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_share_entries_expires_at", table_name="share_entries")
    op.drop_table("share_entries")
    op.drop_table("shared_links")
    op.drop_table("planner_meta")
    op.drop_table("day_configs")
    op.drop_table("days")
