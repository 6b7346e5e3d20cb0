"""Tests for the transition engine."""

from __future__ import annotations

import pytest

from vibe_workflows.engine.transitions import ADDITIONAL_CONTEXT_HEADING, TransitionEngine
from vibe_workflows.exceptions import NotFoundError, PhaseNotFoundError


@pytest.fixture
def workflow(scenario_workflow):
    """Load the scenario workflow."""
    return scenario_workflow


@pytest.fixture
def engine() -> TransitionEngine:
    """Create a transition engine."""
    return TransitionEngine()


@pytest.mark.unit
class TestModeledTransitions:
    """Tests for transitions declared in the workflow."""

    def test_declared_edge_uses_target_defaults(self, workflow, engine: TransitionEngine) -> None:
        """A declared edge without instructions yields the target's default instructions."""
        result = engine.resolve(workflow, "requirements", "design")

        assert result.is_modeled
        assert result.new_phase == "design"
        assert result.instructions == workflow.get_state("design").default_instructions
        assert result.transition_reason == "Requirements are complete"

    def test_transition_instructions_replace_defaults(self, workflow, engine: TransitionEngine) -> None:
        """Instructions on the transition replace the target defaults."""
        result = engine.resolve(workflow, "implementation", "testing")

        assert result.instructions.startswith("Write tests for the new code.")
        assert workflow.get_state("testing").default_instructions not in result.instructions

    def test_additional_instructions_follow_base(self, workflow, engine: TransitionEngine) -> None:
        """Additional instructions are appended after the chosen instructions."""
        result = engine.resolve(workflow, "implementation", "testing")

        base = result.instructions.index("Write tests for the new code.")
        heading = result.instructions.index(ADDITIONAL_CONTEXT_HEADING)
        extra = result.instructions.index("Cover the error paths as well.")
        assert base < heading < extra

    def test_review_perspectives_are_reported(self, workflow, engine: TransitionEngine) -> None:
        """Perspectives of the followed transition are part of the result."""
        result = engine.resolve(workflow, "design", "implementation")

        assert [p.perspective for p in result.review_perspectives] == ["architect", "security_expert"]

    def test_trigger_must_match_when_given(self, workflow, engine: TransitionEngine) -> None:
        """A trigger that does not match turns the move into a direct jump."""
        assert engine.resolve(workflow, "requirements", "design", trigger="req_done").is_modeled
        assert not engine.resolve(workflow, "requirements", "design", trigger="other").is_modeled


@pytest.mark.unit
class TestUnmodeledTransitions:
    """Tests for direct jumps."""

    def test_direct_jump(self, workflow, engine: TransitionEngine) -> None:
        """A jump without an edge falls back to the target defaults."""
        result = engine.resolve(workflow, "requirements", "testing")

        assert not result.is_modeled
        assert result.instructions == workflow.get_state("testing").default_instructions
        assert result.transition_reason == "Direct transition to testing phase"
        assert result.review_perspectives == ()

    def test_unknown_target(self, workflow, engine: TransitionEngine) -> None:
        """Only an unknown target is an error."""
        with pytest.raises(PhaseNotFoundError) as exc_info:
            engine.resolve(workflow, "requirements", "deployment")

        assert isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.phase == "deployment"


@pytest.mark.unit
class TestContinuation:
    """Tests for continuing work in the current phase."""

    def test_declared_self_transition(self, workflow, engine: TransitionEngine) -> None:
        """A self-transition is followed like any declared edge."""
        result = engine.continue_in(workflow, "implementation")

        assert result.is_modeled
        assert result.new_phase == "implementation"
        assert result.instructions == (
            f"Implement the design.\n\n{ADDITIONAL_CONTEXT_HEADING}\nFinish the open tasks first."
        )

    def test_without_self_transition(self, workflow, engine: TransitionEngine) -> None:
        """Without a self-transition the state's defaults are used."""
        result = engine.continue_in(workflow, "requirements")

        assert not result.is_modeled
        assert result.instructions == workflow.get_state("requirements").default_instructions
        assert result.transition_reason == "Continue working in requirements phase"


@pytest.mark.unit
class TestExplicitTransitions:
    """Tests for transitions requested by the agent."""

    def test_reason_overrides_resolved_reason(self, workflow, engine: TransitionEngine) -> None:
        """A caller reason replaces the declared one."""
        result = engine.explicit(workflow, "requirements", "design", reason="User approved the scope")

        assert result.is_modeled
        assert result.transition_reason == "User approved the scope"

    def test_without_reason(self, workflow, engine: TransitionEngine) -> None:
        """Without a reason the declared one is kept."""
        assert engine.explicit(workflow, "requirements", "design").transition_reason == "Requirements are complete"
