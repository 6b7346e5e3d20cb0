"""Conversation data models.

These plain dataclasses are what the conversation manager and tool service work
with. The persistence layer maps them to and from SQLAlchemy rows in
:mod:`vibe_workflows.db.store`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from vibe_workflows.core.types import CommitBehaviour, JSONObject

__all__ = [
    "ConversationContext",
    "ConversationState",
    "GitCommitConfig",
    "InteractionLogEntry",
    "ResetResult",
    "utcnow",
]


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GitCommitConfig:
    """When the agent should be asked to commit its work.

    Built once when development starts and carried unchanged on the
    conversation state.

    Attributes:
        enabled: Whether commit hints are produced at all.
        commit_on_step: Ask for a commit after every ``whats_next`` step.
        commit_on_phase: Ask for a commit on every phase transition.
        commit_on_complete: Ask for a single commit at the end.
        initial_message: Prefix for generated commit messages.
        start_commit_hash: HEAD when development started, if known.
    """

    enabled: bool = False
    commit_on_step: bool = False
    commit_on_phase: bool = False
    commit_on_complete: bool = False
    initial_message: str = "Development session"
    start_commit_hash: str | None = None

    @classmethod
    def from_behaviour(
        cls,
        behaviour: CommitBehaviour | str,
        *,
        initial_message: str = "Development session",
        start_commit_hash: str | None = None,
    ) -> GitCommitConfig:
        """Build the configuration for a commit behaviour.

        Args:
            behaviour: One of ``step``, ``phase``, ``end`` or ``none``.
            initial_message: Prefix for generated commit messages.
            start_commit_hash: HEAD when development started.

        Returns:
            The commit configuration.

        Raises:
            ValueError: If ``behaviour`` is not a known commit behaviour.

        Example:
            >>> GitCommitConfig.from_behaviour("phase").commit_on_phase
            True
        """
        behaviour = CommitBehaviour(behaviour)
        return cls(
            enabled=behaviour is not CommitBehaviour.NONE,
            commit_on_step=behaviour is CommitBehaviour.STEP,
            commit_on_phase=behaviour is CommitBehaviour.PHASE,
            commit_on_complete=behaviour is CommitBehaviour.END,
            initial_message=initial_message,
            start_commit_hash=start_commit_hash,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GitCommitConfig | None:
        """Rebuild a configuration from its stored JSON form."""
        if not data:
            return None
        known = {key: data[key] for key in cls.__dataclass_fields__ if key in data}
        return cls(**known)

    def to_dict(self) -> JSONObject:
        """Serialize the configuration for storage."""
        return asdict(self)


@dataclass
class ConversationState:
    """Durable record of one conversation.

    Attributes:
        conversation_id: Identifier derived from project path and branch.
        project_path: Absolute path of the project.
        git_branch: Branch the conversation belongs to.
        current_phase: Active state of the bound workflow.
        plan_file_path: Absolute path of the plan file.
        workflow_name: Name the workflow is resolved by on every call.
        git_commit_config: Commit behaviour chosen at start, if any.
        require_reviews_before_phase_transition: Whether reviewed transitions
            need a performed review.
        created_at: When the conversation was started.
        updated_at: When the record was last changed.
    """

    conversation_id: str
    project_path: str
    git_branch: str
    current_phase: str
    plan_file_path: str
    workflow_name: str
    git_commit_config: GitCommitConfig | None = None
    require_reviews_before_phase_transition: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ConversationContext:
    """Read view of a conversation handed to tool handlers.

    Attributes:
        conversation_id: Identifier derived from project path and branch.
        project_path: Absolute path of the project.
        git_branch: Branch the conversation belongs to.
        current_phase: Active state of the bound workflow.
        plan_file_path: Absolute path of the plan file.
        workflow_name: Name of the bound workflow.
        git_commit_config: Commit behaviour chosen at start, if any.
        require_reviews_before_phase_transition: Whether reviewed transitions
            need a performed review.
    """

    conversation_id: str
    project_path: str
    git_branch: str
    current_phase: str
    plan_file_path: str
    workflow_name: str
    git_commit_config: GitCommitConfig | None = None
    require_reviews_before_phase_transition: bool = False

    @classmethod
    def from_state(cls, state: ConversationState) -> ConversationContext:
        """Build the read view of a persisted conversation."""
        return cls(
            conversation_id=state.conversation_id,
            project_path=state.project_path,
            git_branch=state.git_branch,
            current_phase=state.current_phase,
            plan_file_path=state.plan_file_path,
            workflow_name=state.workflow_name,
            git_commit_config=state.git_commit_config,
            require_reviews_before_phase_transition=state.require_reviews_before_phase_transition,
        )


@dataclass
class InteractionLogEntry:
    """One audited tool call.

    Attributes:
        conversation_id: Conversation the call belonged to.
        tool_name: Name of the tool that was called.
        input_params: Arguments of the call.
        response_data: Response returned to the caller.
        current_phase: Phase after the call.
        timestamp: When the call completed.
        is_reset: Whether the entry was soft-deleted by a reset.
        reset_at: When the entry was soft-deleted.
        id: Store-assigned identifier, None until persisted.
    """

    conversation_id: str
    tool_name: str
    input_params: JSONObject
    response_data: JSONObject
    current_phase: str
    timestamp: datetime = field(default_factory=utcnow)
    is_reset: bool = False
    reset_at: datetime | None = None
    id: int | None = None


@dataclass(frozen=True)
class ResetResult:
    """Outcome of a confirmed reset.

    Attributes:
        success: Always True; failures raise instead.
        reset_items: Categories that were reset, in order.
        conversation_id: The conversation that was reset.
        message: Human-readable summary.
    """

    success: bool
    reset_items: list[str]
    conversation_id: str
    message: str
