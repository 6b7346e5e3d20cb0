"""Tool service: the operations an agent calls.

Every tool follows the same flow: resolve the conversation, resolve its
workflow through the catalog, let the transition engine compute the outcome,
persist the new phase and append an audit record. Responses are plain dicts
with snake_case keys so they serialize unchanged over any transport.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from vibe_workflows.__metadata__ import __version__
from vibe_workflows.core.models import GitCommitConfig, utcnow
from vibe_workflows.core.types import CommitBehaviour, ReviewState
from vibe_workflows.db.store import ConversationStore
from vibe_workflows.engine.catalog import WorkflowCatalog
from vibe_workflows.engine.conversation import ConversationManager
from vibe_workflows.engine.prompts import (
    commit_hint,
    entrance_criteria_instructions,
    generate_system_prompt,
    review_instructions,
)
from vibe_workflows.engine.transitions import TransitionEngine
from vibe_workflows.exceptions import (
    DevelopmentAlreadyStartedError,
    InvalidArgumentError,
    NoReviewPerspectivesError,
    ReviewRequiredError,
)
from vibe_workflows.git import current_commit_hash, ensure_vibe_gitignore, is_git_repository
from vibe_workflows.plans import PlanFileManager

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vibe_workflows.config import VibeSettings
    from vibe_workflows.core.definition import WorkflowDefinition
    from vibe_workflows.core.models import ConversationContext
    from vibe_workflows.core.types import JSONObject
    from vibe_workflows.plans import PlanAnalysis

__all__ = ["ToolService"]

logger = logging.getLogger(__name__)

EnumT = TypeVar("EnumT", bound=Enum)


class ToolService:
    """Implements the workflow tools for one project.

    Attributes:
        project_path: Absolute path of the project served.
        store: Persistence for conversations and logs.
        catalog: Workflow catalog.
        plans: Plan file collaborator.
        transitions: Transition engine.
        conversations: Conversation manager built from the above.
    """

    def __init__(
        self,
        project_path: Path | str,
        store: ConversationStore,
        catalog: WorkflowCatalog | None = None,
        plans: PlanFileManager | None = None,
        transitions: TransitionEngine | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            project_path: Root of the project.
            store: Persistence for conversations and logs.
            catalog: Workflow catalog. Defaults to built-ins of the ``code`` domain.
            plans: Plan file collaborator.
            transitions: Transition engine.
        """
        self.project_path = str(Path(project_path).resolve())
        self.store = store
        self.catalog = catalog or WorkflowCatalog()
        self.plans = plans or PlanFileManager()
        self.transitions = transitions or TransitionEngine()
        self.conversations = ConversationManager(self.project_path, store, self.catalog, self.plans)

    @classmethod
    def from_settings(cls, settings: VibeSettings) -> ToolService:
        """Build a service backed by the SQLite database the settings point to."""
        return cls(
            project_path=settings.project_path,
            store=ConversationStore.for_path(settings.resolved_database_path()),
            catalog=WorkflowCatalog(domains=settings.workflow_domains),
        )

    async def startup(self) -> None:
        """Open and migrate the database."""
        await self.store.initialize()

    async def shutdown(self) -> None:
        """Release the database."""
        await self.store.close()

    async def start_development(
        self,
        workflow: str,
        require_reviews: bool = False,
        commit_behaviour: CommitBehaviour | str | None = None,
    ) -> JSONObject:
        """Start development with a workflow, or return to its initial phase.

        Args:
            workflow: Name of the workflow to follow.
            require_reviews: Require a performed review for transitions that
                declare review perspectives.
            commit_behaviour: When to ask for commits. Defaults to ``end`` in
                git repositories and ``none`` elsewhere.

        Returns:
            ``phase``, ``instructions``, ``plan_file_path``, ``conversation_id``
            and the ``workflow`` definition.

        Raises:
            WorkflowNotFoundError: If the workflow does not resolve.
            InvalidArgumentError: If ``commit_behaviour`` is not a known behaviour.
            DevelopmentAlreadyStartedError: If the conversation is past the
                initial phase.
        """
        definition = self.catalog.resolve(self.project_path, workflow)
        commit_config = await self._commit_config(commit_behaviour)

        context = await self.conversations.create_context(workflow)
        if context.current_phase != definition.initial_state:
            raise DevelopmentAlreadyStartedError(context.current_phase, definition.initial_state)

        result = self.transitions.explicit(
            definition, context.current_phase, definition.initial_state, "Development initialization"
        )
        await self.conversations.update_state(
            context.conversation_id,
            current_phase=result.new_phase,
            workflow_name=workflow,
            git_commit_config=commit_config,
            require_reviews_before_phase_transition=require_reviews,
        )
        self.plans.ensure(context.plan_file_path, context.project_path, context.git_branch, definition)
        ensure_vibe_gitignore(self.project_path)

        response: JSONObject = {
            "phase": result.new_phase,
            "instructions": entrance_criteria_instructions(context.plan_file_path),
            "plan_file_path": context.plan_file_path,
            "conversation_id": context.conversation_id,
            "workflow": definition.to_dict(),
        }
        logger.info(
            "tool.development_started",
            extra={"conversation_id": context.conversation_id, "workflow": workflow, "phase": result.new_phase},
        )
        await self.conversations.log_interaction(
            context.conversation_id,
            "start_development",
            {
                "workflow": workflow,
                "require_reviews": require_reviews,
                "commit_behaviour": str(commit_behaviour) if commit_behaviour else None,
            },
            response,
            result.new_phase,
        )
        return response

    async def whats_next(
        self,
        context: str | None = None,
        user_input: str | None = None,
        conversation_summary: str | None = None,
        recent_messages: Sequence[dict[str, str]] | None = None,
    ) -> JSONObject:
        """Return the instructions for continuing work in the current phase.

        The conversation signals are recorded for audit; choosing when to move
        on is left to the agent through :meth:`proceed_to_phase`.

        Args:
            context: What the agent is currently doing.
            user_input: The user's latest message.
            conversation_summary: Summary of the conversation so far.
            recent_messages: Recent ``{"role", "content"}`` messages.

        Returns:
            ``phase``, ``instructions``, ``plan_file_path``,
            ``is_modeled_transition`` and ``conversation_id``.

        Raises:
            ConversationNotFoundError: If development was not started.
        """
        conversation = await self.conversations.get_context()
        definition = self._workflow_for(conversation)
        result = self.transitions.continue_in(definition, conversation.current_phase)

        instructions = result.instructions
        commit_config = conversation.git_commit_config
        if commit_config and commit_config.enabled and commit_config.commit_on_step:
            instructions += commit_hint(context or "Step completion", "step")

        response: JSONObject = {
            "phase": result.new_phase,
            "instructions": instructions,
            "plan_file_path": conversation.plan_file_path,
            "is_modeled_transition": result.is_modeled,
            "conversation_id": conversation.conversation_id,
        }
        await self.conversations.log_interaction(
            conversation.conversation_id,
            "whats_next",
            {
                "context": context,
                "user_input": user_input,
                "conversation_summary": conversation_summary,
                "recent_messages": [dict(message) for message in recent_messages or ()],
            },
            response,
            result.new_phase,
        )
        return response

    async def proceed_to_phase(
        self,
        target_phase: str,
        review_state: ReviewState | str,
        reason: str | None = None,
    ) -> JSONObject:
        """Move the conversation to ``target_phase``.

        Args:
            target_phase: The phase to move to.
            review_state: Review status of the transition.
            reason: Why the agent is moving on.

        Returns:
            ``phase``, ``instructions``, ``plan_file_path``,
            ``transition_reason``, ``is_modeled_transition`` and
            ``conversation_id``.

        Raises:
            ConversationNotFoundError: If development was not started.
            PhaseNotFoundError: If the target is not a phase of the workflow.
            InvalidArgumentError: If ``review_state`` is not a known review state.
            ReviewRequiredError: If reviews are required and the transition's
                review was not performed.
        """
        review_state = _enum_argument(ReviewState, "review_state", review_state)
        conversation = await self.conversations.get_context()
        definition = self._workflow_for(conversation)
        current_phase = conversation.current_phase
        definition.get_state(target_phase)

        if conversation.require_reviews_before_phase_transition:
            transition = definition.find_transition(current_phase, target_phase)
            if transition is not None and transition.requires_review and review_state is not ReviewState.PERFORMED:
                raise ReviewRequiredError(target_phase, review_state)

        result = self.transitions.explicit(definition, current_phase, target_phase, reason)
        await self.conversations.update_state(conversation.conversation_id, current_phase=result.new_phase)
        self.plans.ensure(conversation.plan_file_path, conversation.project_path, conversation.git_branch, definition)
        logger.info(
            "tool.phase_transition",
            extra={
                "conversation_id": conversation.conversation_id,
                "from_phase": current_phase,
                "to_phase": result.new_phase,
                "modeled": result.is_modeled,
            },
        )

        instructions = result.instructions
        commit_config = conversation.git_commit_config
        if commit_config and commit_config.enabled and commit_config.commit_on_phase:
            instructions += commit_hint(f"Phase transition: {current_phase} → {target_phase}", "phase transition")

        response: JSONObject = {
            "phase": result.new_phase,
            "instructions": instructions,
            "plan_file_path": conversation.plan_file_path,
            "transition_reason": result.transition_reason,
            "is_modeled_transition": result.is_modeled,
            "conversation_id": conversation.conversation_id,
        }
        await self.conversations.log_interaction(
            conversation.conversation_id,
            "proceed_to_phase",
            {"target_phase": target_phase, "review_state": str(review_state), "reason": reason},
            response,
            result.new_phase,
        )
        return response

    async def conduct_review(self, target_phase: str) -> JSONObject:
        """Return review instructions for the transition to ``target_phase``.

        Raises:
            ConversationNotFoundError: If development was not started.
            PhaseNotFoundError: If the target is not a phase of the workflow.
            NoReviewPerspectivesError: If the transition declares no reviews.
        """
        conversation = await self.conversations.get_context()
        definition = self._workflow_for(conversation)
        definition.get_state(target_phase)

        transition = definition.find_transition(conversation.current_phase, target_phase)
        if transition is None or not transition.requires_review:
            raise NoReviewPerspectivesError(conversation.current_phase, target_phase)

        perspectives = transition.review_perspectives
        return {
            "instructions": review_instructions(conversation.current_phase, target_phase, perspectives),
            "perspectives": [{"name": p.perspective, "prompt": p.prompt} for p in perspectives],
        }

    async def resume_workflow(self, include_system_prompt: bool = True) -> JSONObject:
        """Snapshot of the conversation for picking work back up. Changes nothing.

        Args:
            include_system_prompt: Include the system prompt in the response.

        Returns:
            ``workflow_status``, ``plan_status``, ``system_prompt``,
            ``recommendations``, ``generated_at`` and ``tool_version``.

        Raises:
            ConversationNotFoundError: If development was not started.
        """
        conversation = await self.conversations.get_context()
        definition = self._workflow_for(conversation)
        plan_info = self.plans.info_for(conversation.plan_file_path)
        analysis = self.plans.analyze(plan_info.content) if plan_info.exists and plan_info.content else None

        return {
            "workflow_status": {
                "conversation_id": conversation.conversation_id,
                "current_phase": conversation.current_phase,
                "project_path": conversation.project_path,
                "git_branch": conversation.git_branch,
                "state_machine": {
                    "name": definition.name,
                    "description": definition.description,
                    "initial_state": definition.initial_state,
                    "phases": definition.phases,
                    "phase_descriptions": {name: state.description for name, state in definition.states.items()},
                },
            },
            "plan_status": {
                "exists": plan_info.exists,
                "path": conversation.plan_file_path,
                "analysis": _analysis_summary(analysis) if analysis else None,
            },
            "system_prompt": generate_system_prompt(definition) if include_system_prompt else None,
            "recommendations": _recommendations(definition, conversation.current_phase, analysis),
            "generated_at": utcnow().isoformat(),
            "tool_version": __version__,
        }

    async def reset_development(self, confirm: bool, reason: str | None = None) -> JSONObject:
        """Reset the conversation of the current branch.

        Raises:
            ResetNotConfirmedError: If ``confirm`` is not True.
            ConversationNotFoundError: If there is nothing to reset.
            ResetError: If a reset step fails.
        """
        return asdict(await self.conversations.reset(confirm, reason))

    async def list_workflows(self, include_unloaded: bool = False) -> JSONObject:
        """List the workflows available to the project.

        Args:
            include_unloaded: Include built-ins outside the configured domains.

        Returns:
            ``workflows`` and the domains they were ``filtered_by_domains``
            (empty when unfiltered).
        """
        infos = self.catalog.list_workflows(self.project_path, include_unloaded=include_unloaded)
        return {
            "workflows": [{**asdict(info), "domain": info.domain} for info in infos],
            "filtered_by_domains": [] if include_unloaded else list(self.catalog.domains),
        }

    async def get_workflow(self, name: str) -> JSONObject:
        """Return the full definition of a workflow.

        Raises:
            WorkflowNotFoundError: If the workflow does not resolve.
        """
        return self.catalog.resolve(self.project_path, name).to_dict()

    async def get_conversation_state(self) -> JSONObject:
        """Return the stored state of the current conversation.

        Raises:
            ConversationNotFoundError: If development was not started.
        """
        return asdict(await self.conversations.get_context())

    def _workflow_for(self, conversation: ConversationContext) -> WorkflowDefinition:
        return self.catalog.resolve(conversation.project_path, conversation.workflow_name)

    async def _commit_config(self, commit_behaviour: CommitBehaviour | str | None) -> GitCommitConfig:
        in_git = is_git_repository(self.project_path)
        if commit_behaviour is None:
            behaviour = CommitBehaviour.END if in_git else CommitBehaviour.NONE
        else:
            behaviour = _enum_argument(CommitBehaviour, "commit_behaviour", commit_behaviour)
        if not in_git and behaviour is not CommitBehaviour.NONE:
            logger.warning(
                "tool.commit_behaviour_ignored",
                extra={"project_path": self.project_path, "commit_behaviour": str(behaviour)},
            )
            behaviour = CommitBehaviour.NONE
        return GitCommitConfig.from_behaviour(
            behaviour,
            start_commit_hash=await current_commit_hash(self.project_path) if in_git else None,
        )


def _enum_argument(enum_type: type[EnumT], argument: str, value: EnumT | str) -> EnumT:
    try:
        return enum_type(value)
    except ValueError as e:
        raise InvalidArgumentError(argument, value, [member.value for member in enum_type]) from e


def _analysis_summary(analysis: PlanAnalysis) -> dict[str, Any]:
    return {
        "tasks_completed": len(analysis.completed_tasks),
        "tasks_total": len(analysis.active_tasks) + len(analysis.completed_tasks),
        "key_decisions": analysis.recent_decisions,
        "active_tasks": analysis.active_tasks,
        "completed_tasks": analysis.completed_tasks,
    }


def _recommendations(definition: WorkflowDefinition, phase: str, analysis: PlanAnalysis | None) -> dict[str, Any]:
    actions = ["Call whats_next() to get current phase-specific guidance"]
    issues: list[str] = []

    state = definition.states.get(phase)
    if state is None:
        guidance = f"Current phase: {phase}"
        actions.append("Continue working in current phase")
    else:
        guidance = f"Current phase: {state.description}"
        targets = [t.to for t in state.transitions if t.to != phase]
        if targets:
            actions.append("From here, you can transition to:")
            actions += [f"• {target}: {definition.states[target].description}" for target in dict.fromkeys(targets)]
            actions.append("Use proceed_to_phase() tool when ready to transition")
        else:
            actions.append("Continue working in current phase")
        actions.append(f"Focus on: {state.description}")

    if analysis is not None:
        if analysis.active_tasks:
            actions.append(f"Continue working on active tasks: {', '.join(analysis.active_tasks[:2])}")
        elif analysis.completed_tasks:
            issues.append("No active tasks found - may be ready to transition to next phase")

    return {"immediate_actions": actions, "phase_guidance": guidance, "potential_issues": issues}
