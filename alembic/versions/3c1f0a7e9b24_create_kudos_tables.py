"""Create users, kudos, kudos_rate and enabled_channels tables

Revision ID: 3c1f0a7e9b24
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1f0a7e9b24"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("platform_handle", sa.String(64), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "kudos",
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("recipient_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("emoji", sa.String(100), primary_key=True),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.CheckConstraint("count >= 0", name="ck_kudos_count_non_negative"),
    )
    op.create_index("ix_kudos_recipient", "kudos", ["recipient_id"])
    op.create_index("ix_kudos_emoji", "kudos", ["emoji"])

    op.create_table(
        "kudos_rate",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("day", sa.Date(), primary_key=True),
        sa.Column("count", sa.Integer(), nullable=False),
    )

    op.create_table(
        "enabled_channels",
        sa.Column("channel_id", sa.String(64), primary_key=True),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("enabled_channels")
    op.drop_table("kudos_rate")
    op.drop_index("ix_kudos_emoji", table_name="kudos")
    op.drop_index("ix_kudos_recipient", table_name="kudos")
    op.drop_table("kudos")
    op.drop_table("users")
