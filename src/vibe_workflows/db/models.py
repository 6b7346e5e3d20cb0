"""SQLAlchemy models for conversation persistence.

This module defines the database models for persisting conversation state:
- ConversationStateModel: One row per conversation (project path + branch)
- InteractionLogModel: Append-only audit log of tool calls, soft-deletable
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from advanced_alchemy.base import BigIntAuditBase
from advanced_alchemy.types import DateTimeUTC
from sqlalchemy import JSON, Index, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from vibe_workflows.core.types import DEFAULT_WORKFLOW

__all__ = [
    "ConversationStateModel",
    "InteractionLogModel",
]


# Cross-database JSON type: uses JSONB for PostgreSQL, JSON for others (SQLite, MySQL, etc.)
JSONType = JSON().with_variant(JSONB, "postgresql")


class ConversationStateModel(BigIntAuditBase):
    """Persisted conversation record.

    Attributes:
        conversation_id: Identifier derived from project path and branch.
        project_path: Absolute path of the project.
        git_branch: Branch the conversation belongs to.
        current_phase: Active phase of the bound workflow.
        plan_file_path: Absolute path of the plan file.
        workflow_name: Name of the bound workflow.
        git_commit_config: Serialized commit configuration.
        require_reviews_before_phase_transition: Whether reviewed transitions
            need a performed review.
    """

    __tablename__ = "conversation_states"
    __table_args__ = (Index("ix_conversation_states_project_branch", "project_path", "git_branch"),)

    conversation_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    project_path: Mapped[str] = mapped_column(Text)
    git_branch: Mapped[str] = mapped_column(String(255))
    current_phase: Mapped[str] = mapped_column(String(255))
    plan_file_path: Mapped[str] = mapped_column(Text)

    # Added after the first schema version, see db/schema.py
    workflow_name: Mapped[str] = mapped_column(String(255), default=DEFAULT_WORKFLOW, server_default=DEFAULT_WORKFLOW)
    git_commit_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    require_reviews_before_phase_transition: Mapped[bool] = mapped_column(default=False, server_default=false())


class InteractionLogModel(BigIntAuditBase):
    """Audit record of a single tool call.

    Attributes:
        conversation_id: Conversation the call belonged to.
        tool_name: Name of the tool that was called.
        input_params: Arguments of the call.
        response_data: Response returned to the caller.
        current_phase: Phase after the call.
        timestamp: When the call completed.
        is_reset: Soft-delete marker set by a reset.
        reset_at: When the entry was soft-deleted.
    """

    __tablename__ = "interaction_logs"
    __table_args__ = (
        Index("ix_interaction_logs_conversation_id", "conversation_id"),
        Index("ix_interaction_logs_timestamp", "timestamp"),
    )

    conversation_id: Mapped[str] = mapped_column(String(255))
    tool_name: Mapped[str] = mapped_column(String(255))
    input_params: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    response_data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    current_phase: Mapped[str] = mapped_column(String(255))
    timestamp: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True))

    # Added after the first schema version, see db/schema.py
    is_reset: Mapped[bool] = mapped_column(default=False, server_default=false())
    reset_at: Mapped[datetime | None] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
