"""Calendar events table for the database-backed event store.

Revision ID: 001_calendar_events
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_calendar_events"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "calendar_events",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("summary", sa.String(), nullable=False, server_default=""),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("start_utc", sa.DateTime(), nullable=True),
        sa.Column("end_utc", sa.DateTime(), nullable=True),
        sa.Column("all_day_date", sa.Date(), nullable=True),
        sa.Column("color_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_calendar_events_start_utc"), "calendar_events", ["start_utc"], unique=False)
    op.create_index(op.f("ix_calendar_events_all_day_date"), "calendar_events", ["all_day_date"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_calendar_events_all_day_date"), table_name="calendar_events")
    op.drop_index(op.f("ix_calendar_events_start_utc"), table_name="calendar_events")
    op.drop_table("calendar_events")
