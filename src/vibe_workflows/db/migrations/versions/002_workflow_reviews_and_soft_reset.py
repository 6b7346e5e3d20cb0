"""Workflow binding, commit and review settings, soft reset of logs.

Revision ID: 002_workflow_reviews_and_soft_reset
Revises: 001_initial
Create Date: 2025-08-14
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_workflow_reviews_and_soft_reset"
down_revision: str | None = "001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add the columns introduced after the first release."""
    op.add_column(
        "conversation_states",
        sa.Column("workflow_name", sa.String(length=255), nullable=False, server_default="waterfall"),
    )
    op.add_column(
        "conversation_states",
        sa.Column("git_commit_config", sa.JSON(), nullable=True),
    )
    op.add_column(
        "conversation_states",
        sa.Column(
            "require_reviews_before_phase_transition",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
    )
    op.add_column(
        "interaction_logs",
        sa.Column("is_reset", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.add_column(
        "interaction_logs",
        sa.Column("reset_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    """Drop the columns added by this revision."""
    with op.batch_alter_table("interaction_logs") as batch_op:
        batch_op.drop_column("reset_at")
        batch_op.drop_column("is_reset")
    with op.batch_alter_table("conversation_states") as batch_op:
        batch_op.drop_column("require_reviews_before_phase_transition")
        batch_op.drop_column("git_commit_config")
        batch_op.drop_column("workflow_name")
