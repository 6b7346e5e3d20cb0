"""Workflow definition value types.

A workflow is a graph of phases (states) connected by transitions. Instances of
these classes are only produced by :mod:`vibe_workflows.core.loader`, which
guarantees that every transition target exists and every state is reachable
from the initial state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from vibe_workflows.exceptions import PhaseNotFoundError

__all__ = [
    "ReviewPerspective",
    "StateDefinition",
    "TransitionDefinition",
    "WorkflowDefinition",
    "WorkflowMetadata",
]


@dataclass(frozen=True)
class ReviewPerspective:
    """A named review prompt gating a transition.

    Attributes:
        perspective: Who reviews (e.g. ``architect``, ``security_expert``).
        prompt: What the reviewer should check.
    """

    perspective: str
    prompt: str


@dataclass(frozen=True)
class TransitionDefinition:
    """A move from one phase to another.

    Attributes:
        trigger: Identifier of the event causing the transition.
        to: Name of the target state.
        transition_reason: Human-readable rationale reported to the agent.
        instructions: Replaces the target state's default instructions when set.
        additional_instructions: Appended to whichever instructions are chosen.
        review_perspectives: Reviews required before the transition, if any.

    Example:
        >>> transition = TransitionDefinition(
        ...     trigger="requirements_complete",
        ...     to="design",
        ...     transition_reason="Requirements are clear",
        ... )
    """

    trigger: str
    to: str
    transition_reason: str
    instructions: str | None = None
    additional_instructions: str | None = None
    review_perspectives: tuple[ReviewPerspective, ...] = ()

    @property
    def requires_review(self) -> bool:
        """Whether the transition declares review perspectives."""
        return bool(self.review_perspectives)


@dataclass(frozen=True)
class StateDefinition:
    """A phase of a workflow.

    Attributes:
        description: What the phase is about.
        default_instructions: Instructions used whenever the phase is entered
            without a more specific transition instruction.
        transitions: Outgoing transitions, in declaration order.
    """

    description: str
    default_instructions: str
    transitions: tuple[TransitionDefinition, ...] = ()

    def transitions_to(self, target: str) -> list[TransitionDefinition]:
        """Return the outgoing transitions that end in ``target``, in order."""
        return [transition for transition in self.transitions if transition.to == target]


@dataclass(frozen=True)
class WorkflowMetadata:
    """Descriptive metadata used for discovery and filtering.

    Attributes:
        domain: Coarse category (``code``, ``architecture``, ``office``).
        complexity: Free-form complexity hint (``low``, ``medium``, ``high``).
        best_for: Situations the workflow suits.
        use_cases: Example use cases.
        examples: Example requests.
    """

    domain: str | None = None
    complexity: str | None = None
    best_for: tuple[str, ...] = ()
    use_cases: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize the metadata to a JSON-compatible dict."""
        return {
            "domain": self.domain,
            "complexity": self.complexity,
            "best_for": list(self.best_for),
            "use_cases": list(self.use_cases),
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class WorkflowDefinition:
    """Complete, validated workflow graph.

    Attributes:
        name: Name declared by the workflow document.
        description: Human-readable description of the workflow's purpose.
        initial_state: State a new conversation starts in.
        states: Mapping of state names to their definitions.
        metadata: Optional discovery metadata.

    Example:
        >>> definition = load_workflow(Path("waterfall.yaml"))
        >>> definition.initial_state
        'requirements'
        >>> definition.get_state("design").description
        'Design the technical solution'
    """

    name: str
    description: str
    initial_state: str
    states: Mapping[str, StateDefinition]
    metadata: WorkflowMetadata | None = field(default=None)

    @property
    def phases(self) -> list[str]:
        """State names in declaration order."""
        return list(self.states)

    @property
    def domain(self) -> str | None:
        """Domain from the metadata, if declared."""
        return self.metadata.domain if self.metadata else None

    def has_state(self, name: str) -> bool:
        """Return whether ``name`` is a state of this workflow."""
        return name in self.states

    def get_state(self, name: str) -> StateDefinition:
        """Retrieve a state by name.

        Args:
            name: The state name.

        Returns:
            The state definition.

        Raises:
            PhaseNotFoundError: If the workflow has no such state.
        """
        try:
            return self.states[name]
        except KeyError as e:
            raise PhaseNotFoundError(name, self.name) from e

    def find_transition(
        self,
        from_state: str,
        to_state: str,
        trigger: str | None = None,
    ) -> TransitionDefinition | None:
        """Find the declared transition between two states.

        Transitions are searched in declaration order, so when several share a
        target the first one wins unless ``trigger`` narrows the match.

        Args:
            from_state: Name of the source state.
            to_state: Name of the target state.
            trigger: Optional trigger the transition must carry.

        Returns:
            The matching transition, or None when the move is not modeled.
        """
        state = self.states.get(from_state)
        if state is None:
            return None
        for transition in state.transitions_to(to_state):
            if trigger is None or transition.trigger == trigger:
                return transition
        return None

    def reachable_states(self) -> set[str]:
        """Walk the graph from the initial state.

        Returns:
            Names of every state reachable from ``initial_state``.
        """
        reachable = {self.initial_state}
        pending = [self.initial_state]
        while pending:
            state = self.states.get(pending.pop())
            if state is None:
                continue
            for transition in state.transitions:
                if transition.to not in reachable:
                    reachable.add(transition.to)
                    pending.append(transition.to)
        return reachable

    def to_dict(self) -> dict[str, Any]:
        """Serialize the workflow to a JSON-compatible dict.

        Returns:
            Dict with the same shape as the YAML document format.
        """
        return {
            "name": self.name,
            "description": self.description,
            "initial_state": self.initial_state,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "states": {
                name: {
                    "description": state.description,
                    "default_instructions": state.default_instructions,
                    "transitions": [
                        {
                            "trigger": transition.trigger,
                            "to": transition.to,
                            "instructions": transition.instructions,
                            "additional_instructions": transition.additional_instructions,
                            "transition_reason": transition.transition_reason,
                            "review_perspectives": [
                                {"perspective": review.perspective, "prompt": review.prompt}
                                for review in transition.review_perspectives
                            ],
                        }
                        for transition in state.transitions
                    ],
                }
                for name, state in self.states.items()
            },
        }
