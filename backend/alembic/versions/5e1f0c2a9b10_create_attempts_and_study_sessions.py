"""create attempts and study_sessions tables

Revision ID: 5e1f0c2a9b10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "5e1f0c2a9b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "study_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("domain", sa.String(20), nullable=False),
        sa.Column("section_filter", sa.Text(), nullable=True),
        sa.Column("item_ids_json", sa.JSON(), nullable=False),
        sa.Column("quota_json", sa.JSON(), nullable=False),
        sa.Column("target_size", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_study_sessions_created_at", "study_sessions", ["created_at"])

    op.create_table(
        "attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.String(50), nullable=False),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("study_sessions.id"), nullable=True),
        sa.Column("selected_answer", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_attempts_item_id", "attempts", ["item_id"])
    op.create_index("ix_attempts_session_id", "attempts", ["session_id"])
    op.create_index("ix_attempts_created_at", "attempts", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_attempts_created_at", table_name="attempts")
    op.drop_index("ix_attempts_session_id", table_name="attempts")
    op.drop_index("ix_attempts_item_id", table_name="attempts")
    op.drop_table("attempts")
    op.drop_index("ix_study_sessions_created_at", table_name="study_sessions")
    op.drop_table("study_sessions")
