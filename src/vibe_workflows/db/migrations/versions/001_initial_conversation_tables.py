"""Initial conversation tables.

Revision ID: 001_initial
Revises:
Create Date: 2025-06-02
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create initial conversation tables."""
    # Create conversation_states table
    op.create_table(
        "conversation_states",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False, autoincrement=True),
        sa.Column("conversation_id", sa.String(length=255), nullable=False),
        sa.Column("project_path", sa.Text(), nullable=False),
        sa.Column("git_branch", sa.String(length=255), nullable=False),
        sa.Column("current_phase", sa.String(length=255), nullable=False),
        sa.Column("plan_file_path", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_conversation_states_conversation_id",
        "conversation_states",
        ["conversation_id"],
        unique=True,
    )
    op.create_index(
        "ix_conversation_states_project_branch",
        "conversation_states",
        ["project_path", "git_branch"],
    )

    # Create interaction_logs table
    op.create_table(
        "interaction_logs",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False, autoincrement=True),
        sa.Column("conversation_id", sa.String(length=255), nullable=False),
        sa.Column("tool_name", sa.String(length=255), nullable=False),
        sa.Column("input_params", sa.JSON(), nullable=False),
        sa.Column("response_data", sa.JSON(), nullable=False),
        sa.Column("current_phase", sa.String(length=255), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_interaction_logs_conversation_id",
        "interaction_logs",
        ["conversation_id"],
    )
    op.create_index(
        "ix_interaction_logs_timestamp",
        "interaction_logs",
        ["timestamp"],
    )


def downgrade() -> None:
    """Drop conversation tables."""
    op.drop_table("interaction_logs")
    op.drop_table("conversation_states")
