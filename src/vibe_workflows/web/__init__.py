"""REST API for the workflow tools."""

from __future__ import annotations

from vibe_workflows.web.controllers import ConversationController, ToolController, WorkflowController
from vibe_workflows.web.exceptions import exception_handlers, workflows_error_handler

__all__ = [
    "ConversationController",
    "ToolController",
    "WorkflowController",
    "exception_handlers",
    "workflows_error_handler",
]
