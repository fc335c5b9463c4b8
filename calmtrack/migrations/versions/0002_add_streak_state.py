"""add streak_state table

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

Single-row table (CHECK id = 1) holding the streak state.
weekly_calendar is JSON text. Additive only: readings is left untouched.
"""
from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    if inspector.has_table("streak_state"):
        return

    op.create_table(
        "streak_state",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_check_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("best_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_calm_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weekly_calendar", sa.Text(), nullable=False, server_default="{}"),
        sa.CheckConstraint("id = 1", name="ck_streak_state_singleton"),
    )


def downgrade() -> None:
    op.drop_table("streak_state")
