"""Core workflow types: definitions, the document loader and conversation models."""

from __future__ import annotations

from vibe_workflows.core.definition import (
    ReviewPerspective,
    StateDefinition,
    TransitionDefinition,
    WorkflowDefinition,
    WorkflowMetadata,
)
from vibe_workflows.core.loader import load_workflow, load_workflow_file, parse_workflow, validate_document
from vibe_workflows.core.models import (
    ConversationContext,
    ConversationState,
    GitCommitConfig,
    InteractionLogEntry,
    ResetResult,
)
from vibe_workflows.core.types import CommitBehaviour, ResetItem, ReviewState, WorkflowDomain

__all__ = [
    "CommitBehaviour",
    "ConversationContext",
    "ConversationState",
    "GitCommitConfig",
    "InteractionLogEntry",
    "ResetItem",
    "ResetResult",
    "ReviewPerspective",
    "ReviewState",
    "StateDefinition",
    "TransitionDefinition",
    "WorkflowDefinition",
    "WorkflowDomain",
    "WorkflowMetadata",
    "load_workflow",
    "load_workflow_file",
    "parse_workflow",
    "validate_document",
]
