"""Vibe Workflows - workflow-guided development conversations.

This package tracks, per project branch, which phase of a declared workflow an
AI coding agent is in, and tells the agent what to do next.

Key Features:
    - Declarative YAML workflow definitions with structural validation
    - Built-in and project-specific workflows, filtered by domain
    - Conversation state keyed by project path and git branch, kept in SQLite
    - Modeled and direct phase transitions with review gates
    - A Litestar plugin exposing the tools over HTTP

Example:
    >>> from vibe_workflows import ToolService
    >>> from vibe_workflows.config import load_settings
    >>>
    >>> service = ToolService.from_settings(load_settings())
    >>> await service.start_development("epcc")
    >>> await service.whats_next(context="Gathering requirements")
"""

from __future__ import annotations

from vibe_workflows.__metadata__ import __project__, __version__
from vibe_workflows.core.definition import (
    ReviewPerspective,
    StateDefinition,
    TransitionDefinition,
    WorkflowDefinition,
)
from vibe_workflows.core.loader import load_workflow
from vibe_workflows.engine.catalog import WorkflowCatalog
from vibe_workflows.engine.conversation import ConversationManager, derive_conversation_id
from vibe_workflows.engine.tools import ToolService
from vibe_workflows.engine.transitions import TransitionEngine, TransitionResult
from vibe_workflows.exceptions import (
    ConfigurationError,
    ConversationNotFoundError,
    NotFoundError,
    PersistenceError,
    PreconditionError,
    ResetError,
    WorkflowNotFoundError,
    WorkflowsError,
    WorkflowValidationError,
)
from vibe_workflows.plugin import VibePlugin, VibePluginConfig

__all__ = (
    "ConfigurationError",
    "ConversationManager",
    "ConversationNotFoundError",
    "NotFoundError",
    "PersistenceError",
    "PreconditionError",
    "ResetError",
    "ReviewPerspective",
    "StateDefinition",
    "ToolService",
    "TransitionDefinition",
    "TransitionEngine",
    "TransitionResult",
    "VibePlugin",
    "VibePluginConfig",
    "WorkflowCatalog",
    "WorkflowDefinition",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
    "WorkflowsError",
    "__project__",
    "__version__",
    "derive_conversation_id",
    "load_workflow",
)
