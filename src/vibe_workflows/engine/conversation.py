"""Conversation identity and lifecycle.

A conversation is identified by the project path and the git branch. The
identifier is derived, never stored elsewhere, so a restarted process finds the
same conversation again without being handed any id.

Lifecycle of a conversation record::

    absent --create_context--> active --update_state--> active --reset--> absent

Interaction log entries have their own lifecycle (active -> reset) and are
never deleted.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from vibe_workflows.core.models import (
    ConversationContext,
    ConversationState,
    InteractionLogEntry,
    ResetResult,
    utcnow,
)
from vibe_workflows.core.types import ResetItem
from vibe_workflows.exceptions import (
    ConversationNotFoundError,
    PersistenceError,
    ProtectedFieldError,
    ResetError,
    ResetNotConfirmedError,
)
from vibe_workflows.git import detect_branch

if TYPE_CHECKING:
    from vibe_workflows.core.types import JSONObject
    from vibe_workflows.db.store import ConversationStore
    from vibe_workflows.engine.catalog import WorkflowCatalog
    from vibe_workflows.plans import PlanFileManager

__all__ = [
    "UPDATABLE_FIELDS",
    "ConversationManager",
    "clean_branch_name",
    "derive_conversation_id",
    "plan_file_path_for",
]

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "current_phase",
        "plan_file_path",
        "workflow_name",
        "git_commit_config",
        "require_reviews_before_phase_transition",
    }
)
"""Fields ``update_state`` may change. Identity fields are fixed at creation."""

_MAIN_BRANCHES = frozenset({"main", "master"})


def clean_branch_name(branch: str) -> str:
    """Reduce a branch name to ``[a-zA-Z0-9-]`` for use in ids and file names.

    Example:
        >>> clean_branch_name("feature/login_form")
        'feature-login-form'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9-]", "-", branch)
    cleaned = re.sub(r"-+", "-", cleaned).strip("-")
    return cleaned or "branch"


def derive_conversation_id(project_path: str, branch: str) -> str:
    """Derive the conversation identifier of a project branch.

    The id is readable (project name and branch) and carries a digest of the
    exact inputs, so branches that clean to the same text still get distinct ids.

    Args:
        project_path: Absolute path of the project.
        branch: The branch name.

    Returns:
        The conversation identifier.

    Example:
        >>> derive_conversation_id("/work/shop", "feature/cart")
        'shop-feature-cart-3f1d0c9a2b7e'
    """
    project_name = Path(project_path).name or "project"
    digest = hashlib.sha256(f"{project_path}:{branch}".encode()).hexdigest()[:12]
    return f"{project_name}-{clean_branch_name(branch)}-{digest}"


def plan_file_path_for(project_path: Path | str, branch: str) -> str:
    """Absolute path of the plan file for a branch.

    Main branches share ``.vibe/development-plan.md``; every other branch gets
    its own file.
    """
    vibe_dir = Path(project_path) / ".vibe"
    if branch in _MAIN_BRANCHES:
        return str((vibe_dir / "development-plan.md").resolve())
    return str((vibe_dir / f"development-plan-{clean_branch_name(branch)}.md").resolve())


class ConversationManager:
    """Creates, reads, updates and resets the conversation of a project.

    Attributes:
        project_path: Absolute path of the project served.
        store: Persistence for conversations and logs.
        catalog: Workflow catalog resolving workflow names.
        plans: Plan file collaborator.
    """

    def __init__(
        self,
        project_path: Path | str,
        store: ConversationStore,
        catalog: WorkflowCatalog,
        plans: PlanFileManager,
    ) -> None:
        """Initialize the manager.

        Args:
            project_path: Root of the project.
            store: Persistence for conversations and logs.
            catalog: Workflow catalog resolving workflow names.
            plans: Plan file collaborator.
        """
        self.project_path = str(Path(project_path).resolve())
        self.store = store
        self.catalog = catalog
        self.plans = plans

    async def identify(self) -> tuple[str, str]:
        """Detect the branch and derive the conversation id.

        Returns:
            Tuple of (conversation_id, git_branch).
        """
        branch = await detect_branch(self.project_path)
        return derive_conversation_id(self.project_path, branch), branch

    async def create_context(self, workflow_name: str) -> ConversationContext:
        """Return the conversation of the current branch, creating it if absent.

        An existing conversation is returned unchanged, whatever its phase or
        workflow.

        Args:
            workflow_name: Workflow for a new conversation.

        Returns:
            The conversation context.

        Raises:
            WorkflowNotFoundError: If a new conversation is needed and the
                workflow does not resolve.
            PersistenceError: If the store fails.
        """
        conversation_id, branch = await self.identify()
        existing = await self.store.get(conversation_id)
        if existing is not None:
            logger.debug("conversation.exists", extra={"conversation_id": conversation_id})
            return ConversationContext.from_state(existing)

        workflow = self.catalog.resolve(self.project_path, workflow_name)
        now = utcnow()
        state = ConversationState(
            conversation_id=conversation_id,
            project_path=self.project_path,
            git_branch=branch,
            current_phase=workflow.initial_state,
            plan_file_path=plan_file_path_for(self.project_path, branch),
            workflow_name=workflow_name,
            created_at=now,
            updated_at=now,
        )
        await self.store.put(state)
        logger.info(
            "conversation.created",
            extra={"conversation_id": conversation_id, "branch": branch, "workflow": workflow_name},
        )
        return ConversationContext.from_state(state)

    async def get_context(self) -> ConversationContext:
        """Return the conversation of the current branch.

        Returns:
            The conversation context.

        Raises:
            ConversationNotFoundError: If no conversation was started.
            PersistenceError: If the store fails.
        """
        conversation_id, branch = await self.identify()
        state = await self.store.get(conversation_id)
        if state is None:
            raise ConversationNotFoundError(self.project_path, branch)
        return ConversationContext.from_state(state)

    async def update_state(self, conversation_id: str, /, **changes: Any) -> ConversationState:
        """Apply changes to a conversation and stamp ``updated_at``.

        Args:
            conversation_id: The conversation identifier.
            **changes: New values for fields in :data:`UPDATABLE_FIELDS`.

        Returns:
            The updated conversation.

        Raises:
            ProtectedFieldError: If a change targets any other field.
            ConversationNotFoundError: If the conversation does not exist.
            PhaseNotFoundError: If the new phase is not a state of the workflow.
            PersistenceError: If the store fails.
        """
        rejected = set(changes) - UPDATABLE_FIELDS
        if rejected:
            raise ProtectedFieldError(rejected)

        state = await self.store.get(conversation_id)
        if state is None:
            raise ConversationNotFoundError(self.project_path)

        updated = replace(state, **changes, updated_at=utcnow())
        if "current_phase" in changes or "workflow_name" in changes:
            workflow = self.catalog.resolve(updated.project_path, updated.workflow_name)
            workflow.get_state(updated.current_phase)

        await self.store.put(updated)
        logger.debug(
            "conversation.updated",
            extra={"conversation_id": conversation_id, "fields": sorted(changes)},
        )
        return updated

    async def log_interaction(
        self,
        conversation_id: str,
        tool_name: str,
        input_params: JSONObject,
        response_data: JSONObject,
        current_phase: str,
    ) -> InteractionLogEntry:
        """Append an audit record for a tool call.

        Raises:
            PersistenceError: If the store fails.
        """
        return await self.store.append_log(
            InteractionLogEntry(
                conversation_id=conversation_id,
                tool_name=tool_name,
                input_params=input_params,
                response_data=response_data,
                current_phase=current_phase,
            )
        )

    async def reset(self, confirm: bool, reason: str | None = None) -> ResetResult:
        """Reset the conversation of the current branch.

        Active logs are soft-deleted, the conversation record is deleted and the
        plan file is removed. Afterwards the record and the plan file must both
        be gone.

        Args:
            confirm: Must be True; anything else refuses the reset.
            reason: Optional reason, included in the result message.

        Returns:
            The reset outcome.

        Raises:
            ResetNotConfirmedError: If ``confirm`` is not True.
            ConversationNotFoundError: If there is nothing to reset.
            ResetError: If a step or the final verification fails.
        """
        if confirm is not True:
            raise ResetNotConfirmedError

        context = await self.get_context()
        conversation_id = context.conversation_id
        reset_items: list[str] = []
        logger.info("conversation.reset_started", extra={"conversation_id": conversation_id, "reason": reason})

        try:
            await self.store.soft_delete_logs(conversation_id, reason)
        except PersistenceError as e:
            raise ResetError(ResetItem.INTERACTION_LOGS, e) from e
        reset_items.append(ResetItem.INTERACTION_LOGS)

        try:
            await self.store.delete(conversation_id)
        except PersistenceError as e:
            raise ResetError(ResetItem.CONVERSATION_STATE, e) from e
        reset_items.append(ResetItem.CONVERSATION_STATE)

        try:
            self.plans.delete(context.plan_file_path)
        except OSError as e:
            raise ResetError(ResetItem.PLAN_FILE, e) from e
        reset_items.append(ResetItem.PLAN_FILE)

        try:
            remaining = await self.store.get(conversation_id)
        except PersistenceError as e:
            raise ResetError("verification", e) from e
        if remaining is not None:
            raise ResetError("verification", "conversation state still exists")
        if self.plans.info_for(context.plan_file_path).exists:
            raise ResetError("verification", "plan file still exists")

        message = f"Successfully reset conversation {conversation_id}. Reset items: {', '.join(reset_items)}"
        if reason:
            message += f". Reason: {reason}"
        logger.info("conversation.reset_completed", extra={"conversation_id": conversation_id, "items": reset_items})
        return ResetResult(
            success=True,
            reset_items=[str(item) for item in reset_items],
            conversation_id=conversation_id,
            message=message,
        )
