"""add readings table

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Append-only log of stress readings. `timestamp` carries a non-unique index
because it is the ordering key for the trend chart.
Skips creation when the table already exists so an upgrade never touches
existing rows.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    if inspector.has_table("readings"):
        return

    op.create_table(
        "readings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("time", sa.String(32), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False, comment="epoch milliseconds"),
        sa.Column("stress", sa.Integer(), nullable=False),
        sa.Column("label", sa.String(16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.CheckConstraint("stress IN (1, 2, 3)", name="ck_readings_stress"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_readings_timestamp", "readings", ["timestamp"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_readings_timestamp", table_name="readings")
    op.drop_table("readings")
