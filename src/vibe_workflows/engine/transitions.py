"""Transition engine.

Resolves which instructions apply when a conversation moves between phases or
keeps working in its current phase. Resolution is a pure function of the
workflow graph and the requested move; persisting the outcome is the caller's
job.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vibe_workflows.core.definition import (
        ReviewPerspective,
        StateDefinition,
        TransitionDefinition,
        WorkflowDefinition,
    )

__all__ = ["ADDITIONAL_CONTEXT_HEADING", "TransitionEngine", "TransitionResult", "compose_instructions"]

ADDITIONAL_CONTEXT_HEADING = "**Additional Context:**"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of resolving a transition.

    Attributes:
        new_phase: Phase the conversation is in after the transition.
        instructions: Instruction text for the agent.
        transition_reason: Why the transition happens.
        is_modeled: Whether a declared transition was followed.
        review_perspectives: Reviews declared by the followed transition.
    """

    new_phase: str
    instructions: str
    transition_reason: str
    is_modeled: bool
    review_perspectives: tuple[ReviewPerspective, ...] = ()


def compose_instructions(target: StateDefinition, transition: TransitionDefinition) -> str:
    """Build the instruction text for following ``transition`` into ``target``.

    The transition's own instructions replace the target's defaults; additional
    instructions are appended after a separating heading.

    Args:
        target: The state being entered.
        transition: The transition being followed.

    Returns:
        The composed instruction text.

    Example:
        >>> compose_instructions(design, transition)
        'Design the solution.\\n\\n**Additional Context:**\\nReuse the existing API.'
    """
    text = transition.instructions or target.default_instructions
    if transition.additional_instructions:
        text = f"{text}\n\n{ADDITIONAL_CONTEXT_HEADING}\n{transition.additional_instructions}"
    return text


class TransitionEngine:
    """Resolves instructions for explicit and continued transitions.

    The engine holds no state; one instance can serve every conversation.
    """

    def resolve(
        self,
        workflow: WorkflowDefinition,
        from_state: str,
        to_state: str,
        trigger: str | None = None,
    ) -> TransitionResult:
        """Resolve a move from ``from_state`` to ``to_state``.

        A declared transition is followed when one exists (matching ``trigger``
        when given). Otherwise the move is treated as a direct jump, which is
        never an error in itself. Moving a state to itself continues work in
        that state.

        Args:
            workflow: The conversation's workflow.
            from_state: The current phase.
            to_state: The requested phase.
            trigger: Optional trigger narrowing which transition is followed.

        Returns:
            The resolved transition.

        Raises:
            PhaseNotFoundError: If ``to_state`` is not a state of the workflow.
        """
        target = workflow.get_state(to_state)
        transition = workflow.find_transition(from_state, to_state, trigger)

        if transition is not None:
            return TransitionResult(
                new_phase=to_state,
                instructions=compose_instructions(target, transition),
                transition_reason=transition.transition_reason,
                is_modeled=True,
                review_perspectives=transition.review_perspectives,
            )

        if from_state == to_state:
            reason = f"Continue working in {to_state} phase"
        else:
            reason = f"Direct transition to {to_state} phase"
        return TransitionResult(
            new_phase=to_state,
            instructions=target.default_instructions,
            transition_reason=reason,
            is_modeled=False,
        )

    def continue_in(self, workflow: WorkflowDefinition, state: str) -> TransitionResult:
        """Resolve the instructions for continuing work in ``state``.

        Args:
            workflow: The conversation's workflow.
            state: The current phase.

        Returns:
            The resolved self-transition.

        Raises:
            PhaseNotFoundError: If ``state`` is not a state of the workflow.
        """
        return self.resolve(workflow, state, state)

    def explicit(
        self,
        workflow: WorkflowDefinition,
        from_state: str,
        to_state: str,
        reason: str | None = None,
    ) -> TransitionResult:
        """Resolve a transition requested by the agent.

        Args:
            workflow: The conversation's workflow.
            from_state: The current phase.
            to_state: The requested phase.
            reason: Caller-supplied reason, replacing the resolved one when set.

        Returns:
            The resolved transition.

        Raises:
            PhaseNotFoundError: If ``to_state`` is not a state of the workflow.
        """
        result = self.resolve(workflow, from_state, to_state)
        if reason:
            result = replace(result, transition_reason=reason)
        return result
