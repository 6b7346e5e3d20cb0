"""REST API controllers for the workflow tools.

This module provides three controller classes:
- ToolController: one ``POST`` endpoint per tool
- WorkflowController: discovery of the workflows available to the project
- ConversationController: the stored state of the current conversation
"""

from __future__ import annotations

from typing import Any, ClassVar

from litestar import Controller, get, post
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK

from vibe_workflows.engine.tools import ToolService  # noqa: TC001 - needed for DI
from vibe_workflows.web.dto import (  # noqa: TC001 - needed for request parsing
    ConductReviewDTO,
    ListWorkflowsDTO,
    ProceedToPhaseDTO,
    ResetDevelopmentDTO,
    ResumeWorkflowDTO,
    StartDevelopmentDTO,
    WhatsNextDTO,
)

__all__ = ["ConversationController", "ToolController", "WorkflowController"]


class ToolController(Controller):
    """API controller for the workflow tools.

    Every tool is a ``POST`` taking its arguments as a JSON body and returning
    the tool response unchanged.

    Tags: Tools
    """

    path = "/tools"
    tags: ClassVar[list[str]] = ["Tools"]

    @post("/start_development", status_code=HTTP_200_OK)
    async def start_development(self, data: StartDevelopmentDTO, tool_service: ToolService) -> dict[str, Any]:
        """Start development with a workflow.

        Args:
            data: Workflow name, review and commit options.
            tool_service: Injected tool service.

        Returns:
            Initial phase, instructions, plan file path, conversation id and
            the workflow definition.
        """
        return await tool_service.start_development(
            workflow=data.workflow,
            require_reviews=data.require_reviews,
            commit_behaviour=data.commit_behaviour,
        )

    @post("/whats_next", status_code=HTTP_200_OK)
    async def whats_next(self, data: WhatsNextDTO, tool_service: ToolService) -> dict[str, Any]:
        """Get instructions for the current phase."""
        return await tool_service.whats_next(
            context=data.context,
            user_input=data.user_input,
            conversation_summary=data.conversation_summary,
            recent_messages=[{"role": m.role, "content": m.content} for m in data.recent_messages or []],
        )

    @post("/proceed_to_phase", status_code=HTTP_200_OK)
    async def proceed_to_phase(self, data: ProceedToPhaseDTO, tool_service: ToolService) -> dict[str, Any]:
        """Move to another phase.

        Args:
            data: Target phase, review state and reason.
            tool_service: Injected tool service.

        Returns:
            The new phase, its instructions and the transition reason.
        """
        return await tool_service.proceed_to_phase(
            target_phase=data.target_phase,
            review_state=data.review_state,
            reason=data.reason,
        )

    @post("/conduct_review", status_code=HTTP_200_OK)
    async def conduct_review(self, data: ConductReviewDTO, tool_service: ToolService) -> dict[str, Any]:
        """Get review instructions for a transition."""
        return await tool_service.conduct_review(target_phase=data.target_phase)

    @post("/resume_workflow", status_code=HTTP_200_OK)
    async def resume_workflow(self, data: ResumeWorkflowDTO, tool_service: ToolService) -> dict[str, Any]:
        """Get a snapshot of the conversation for resuming work."""
        return await tool_service.resume_workflow(include_system_prompt=data.include_system_prompt)

    @post("/reset_development", status_code=HTTP_200_OK)
    async def reset_development(self, data: ResetDevelopmentDTO, tool_service: ToolService) -> dict[str, Any]:
        """Reset the conversation.

        Args:
            data: Confirmation flag and reason.
            tool_service: Injected tool service.

        Returns:
            The reset outcome.
        """
        return await tool_service.reset_development(confirm=data.confirm, reason=data.reason)

    @post("/list_workflows", status_code=HTTP_200_OK)
    async def list_workflows(self, data: ListWorkflowsDTO, tool_service: ToolService) -> dict[str, Any]:
        """List the workflows available to the project."""
        return await tool_service.list_workflows(include_unloaded=data.include_unloaded)


class WorkflowController(Controller):
    """API controller for workflow discovery.

    Tags: Workflows
    """

    path = "/workflows"
    tags: ClassVar[list[str]] = ["Workflows"]

    @get("/")
    async def list_workflows(
        self,
        tool_service: ToolService,
        include_unloaded: bool = Parameter(
            default=False,
            description="Include built-in workflows outside the configured domains",
        ),
    ) -> dict[str, Any]:
        """List the workflows available to the project.

        Args:
            tool_service: Injected tool service.
            include_unloaded: Whether to skip domain filtering.

        Returns:
            Workflow summaries and the domains applied.
        """
        return await tool_service.list_workflows(include_unloaded=include_unloaded)

    @get("/{name:str}")
    async def get_workflow(self, name: str, tool_service: ToolService) -> dict[str, Any]:
        """Get the full definition of a workflow.

        Args:
            name: The workflow name.
            tool_service: Injected tool service.

        Returns:
            The workflow definition in document form.
        """
        return await tool_service.get_workflow(name)


class ConversationController(Controller):
    """API controller for the current conversation.

    Tags: Conversation
    """

    path = "/conversation"
    tags: ClassVar[list[str]] = ["Conversation"]

    @get("/")
    async def get_conversation(self, tool_service: ToolService) -> dict[str, Any]:
        """Get the stored state of the current conversation."""
        return await tool_service.get_conversation_state()
