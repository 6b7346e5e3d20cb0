"""Workflow resolution, transitions, conversations and the tool service."""

from __future__ import annotations

from vibe_workflows.engine.catalog import WorkflowCatalog, WorkflowInfo
from vibe_workflows.engine.conversation import ConversationManager, derive_conversation_id
from vibe_workflows.engine.tools import ToolService
from vibe_workflows.engine.transitions import TransitionEngine, TransitionResult

__all__ = [
    "ConversationManager",
    "ToolService",
    "TransitionEngine",
    "TransitionResult",
    "WorkflowCatalog",
    "WorkflowInfo",
    "derive_conversation_id",
]
