"""Data Transfer Objects for the tool API.

Request bodies of the ``POST /tools/<tool>`` endpoints. Field names match the
keyword arguments of :class:`~vibe_workflows.engine.tools.ToolService`.
"""

from __future__ import annotations

from dataclasses import dataclass

from vibe_workflows.core.types import DEFAULT_WORKFLOW, CommitBehaviour, ReviewState

__all__ = [
    "ConductReviewDTO",
    "ListWorkflowsDTO",
    "MessageDTO",
    "ProceedToPhaseDTO",
    "ResetDevelopmentDTO",
    "ResumeWorkflowDTO",
    "StartDevelopmentDTO",
    "WhatsNextDTO",
]


@dataclass
class StartDevelopmentDTO:
    """DTO for starting development.

    Attributes:
        workflow: Name of the workflow to follow.
        require_reviews: Require performed reviews before reviewed transitions.
        commit_behaviour: When to ask for git commits.
    """

    workflow: str = DEFAULT_WORKFLOW
    require_reviews: bool = False
    commit_behaviour: CommitBehaviour | None = None


@dataclass
class MessageDTO:
    """One recent message of the conversation."""

    role: str
    content: str


@dataclass
class WhatsNextDTO:
    """DTO for asking what to do next.

    Attributes:
        context: What the agent is currently doing.
        user_input: The user's latest message.
        conversation_summary: Summary of the conversation so far.
        recent_messages: Recent messages of the conversation.
    """

    context: str | None = None
    user_input: str | None = None
    conversation_summary: str | None = None
    recent_messages: list[MessageDTO] | None = None


@dataclass
class ProceedToPhaseDTO:
    """DTO for moving to another phase.

    Attributes:
        target_phase: The phase to move to.
        review_state: Review status of the transition.
        reason: Why the agent is moving on.
    """

    target_phase: str
    review_state: ReviewState
    reason: str | None = None


@dataclass
class ConductReviewDTO:
    """DTO for requesting review instructions."""

    target_phase: str


@dataclass
class ResumeWorkflowDTO:
    """DTO for resuming a workflow."""

    include_system_prompt: bool = True


@dataclass
class ResetDevelopmentDTO:
    """DTO for resetting development.

    Attributes:
        confirm: Must be true for the reset to happen.
        reason: Why the conversation is reset.
    """

    confirm: bool = False
    reason: str | None = None


@dataclass
class ListWorkflowsDTO:
    """DTO for listing workflows."""

    include_unloaded: bool = False
