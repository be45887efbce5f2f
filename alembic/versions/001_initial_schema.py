"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tasks table
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "priority",
            sa.Enum("core", "important", "optional", name="priority"),
            nullable=False,
        ),
        sa.Column(
            "quota_type",
            sa.Enum("daily", "weekly", "days_per_week", name="quotatype"),
            nullable=False,
        ),
        sa.Column("task_type", sa.Enum("time", "habit", name="tasktype"), nullable=False),
        sa.Column("daily_quota_minutes", sa.Integer(), nullable=True),
        sa.Column("weekly_quota_minutes", sa.Integer(), nullable=True),
        sa.Column("weekly_days_target", sa.SmallInteger(), nullable=True),
        sa.Column("habit_quota_count", sa.Integer(), nullable=True),
        sa.Column("habit_unit", sa.String(30), nullable=True),
        sa.Column("allow_carryover", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("priority_rank", sa.Integer(), nullable=True),
        sa.Column("comparison_count", sa.SmallInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_priority_rank", "tasks", ["priority_rank"])

    # Log entries table
    op.create_table(
        "log_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "source",
            sa.Enum("quick_add", "timer", "pomodoro", "manual", name="logsource"),
            nullable=False,
        ),
        sa.Column("note", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_log_entries_task_date", "log_entries", ["task_id", "date"])

    # Streak states table
    op.create_table(
        "streak_states",
        sa.Column("task_id", sa.Integer(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_completed_date", sa.Date(), nullable=True),
        sa.Column("freezes_available", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("freeze_used_dates", sa.JSON(), nullable=False),
        sa.Column("streak_start_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("task_id"),
    )


def downgrade() -> None:
    op.drop_table("streak_states")
    op.drop_index("ix_log_entries_task_date", table_name="log_entries")
    op.drop_table("log_entries")
    op.drop_index("ix_tasks_priority_rank", table_name="tasks")
    op.drop_table("tasks")
