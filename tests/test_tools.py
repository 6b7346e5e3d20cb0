"""Tests for the tool service, driven through complete development scenarios."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from vibe_workflows.__metadata__ import __version__
from vibe_workflows.core.types import ReviewState
from vibe_workflows.engine.tools import ToolService
from vibe_workflows.exceptions import (
    ConversationNotFoundError,
    DevelopmentAlreadyStartedError,
    InvalidArgumentError,
    NoReviewPerspectivesError,
    PhaseNotFoundError,
    PreconditionError,
    ResetNotConfirmedError,
    ReviewRequiredError,
    WorkflowNotFoundError,
)

HEAD = "0123456789abcdef0123456789abcdef01234567"


async def _tool_names(service: ToolService) -> list[str]:
    conversation_id, _ = await service.conversations.identify()
    return [entry.tool_name for entry in await service.store.list_active_logs(conversation_id)]


@pytest.mark.unit
class TestStartDevelopment:
    """Tests for starting development."""

    async def test_start(self, tool_service: ToolService) -> None:
        """Starting puts the conversation in the initial phase and creates the plan file."""
        response = await tool_service.start_development("scenario")

        assert response["phase"] == "requirements"
        assert response["plan_file_path"] in response["instructions"]
        assert "entrance criteria" in response["instructions"]
        assert response["workflow"]["name"] == "scenario"
        assert response["workflow"]["initial_state"] == "requirements"

        plan = Path(response["plan_file_path"]).read_text(encoding="utf-8")
        assert plan.startswith("# Development Plan: shop (default branch)")
        assert "## Implementation" in plan
        assert await _tool_names(tool_service) == ["start_development"]

    async def test_stored_state(self, tool_service: ToolService) -> None:
        """The conversation records the workflow and options chosen."""
        await tool_service.start_development("scenario", require_reviews=True)

        state = await tool_service.get_conversation_state()

        assert state["workflow_name"] == "scenario"
        assert state["require_reviews_before_phase_transition"] is True
        assert state["git_commit_config"]["enabled"] is False

    async def test_start_again_in_initial_phase(self, tool_service: ToolService) -> None:
        """Starting again before moving on is allowed."""
        first = await tool_service.start_development("scenario")
        second = await tool_service.start_development("scenario")

        assert second["conversation_id"] == first["conversation_id"]
        assert await _tool_names(tool_service) == ["start_development", "start_development"]

    async def test_already_started(self, tool_service: ToolService) -> None:
        """Starting after leaving the initial phase is refused."""
        await tool_service.start_development("scenario")
        await tool_service.proceed_to_phase("design", "not-required")

        with pytest.raises(DevelopmentAlreadyStartedError) as exc_info:
            await tool_service.start_development("scenario")

        assert exc_info.value.current_phase == "design"
        assert "whats_next()" in str(exc_info.value)

    async def test_unknown_workflow(self, tool_service: ToolService) -> None:
        """Unknown workflows are rejected before anything is stored."""
        with pytest.raises(WorkflowNotFoundError):
            await tool_service.start_development("kanban")

        with pytest.raises(ConversationNotFoundError):
            await tool_service.get_conversation_state()

    async def test_builtin_workflow(self, tool_service: ToolService) -> None:
        """Built-in workflows can be started by name."""
        response = await tool_service.start_development("epcc")

        assert response["phase"] == "explore"

    async def test_commit_behaviour_ignored_outside_git(self, tool_service: ToolService) -> None:
        """Projects without git never get commit hints."""
        await tool_service.start_development("scenario", commit_behaviour="step")

        state = await tool_service.get_conversation_state()
        response = await tool_service.whats_next(context="Wrote the parser")

        assert state["git_commit_config"]["enabled"] is False
        assert "Git Commit Required" not in response["instructions"]
        assert not Path(tool_service.project_path, ".vibe", ".gitignore").exists()


@pytest.mark.unit
class TestWhatsNextAndProceed:
    """Tests for moving through the workflow."""

    async def test_requires_started_development(self, tool_service: ToolService) -> None:
        """Tools other than start_development need a conversation."""
        with pytest.raises(ConversationNotFoundError):
            await tool_service.whats_next()
        with pytest.raises(ConversationNotFoundError):
            await tool_service.proceed_to_phase("design", "not-required")

    async def test_whats_next_without_self_transition(self, tool_service: ToolService) -> None:
        """Without a self-transition the phase defaults are returned."""
        await tool_service.start_development("scenario")

        response = await tool_service.whats_next(
            context="Gathering requirements",
            user_input="I want a shopping cart",
            recent_messages=[{"role": "user", "content": "I want a shopping cart"}],
        )

        assert response["phase"] == "requirements"
        assert response["instructions"] == "Ask the user what they want to build."
        assert response["is_modeled_transition"] is False

    async def test_scenario(self, tool_service: ToolService) -> None:
        """Walk the scenario workflow from requirements to testing."""
        await tool_service.start_development("scenario")

        design = await tool_service.proceed_to_phase("design", "not-required")
        assert design["phase"] == "design"
        assert design["is_modeled_transition"] is True
        assert design["transition_reason"] == "Requirements are complete"
        assert design["instructions"] == "Design the technical solution."

        implementation = await tool_service.proceed_to_phase(
            "implementation", "not-required", reason="Design approved"
        )
        assert implementation["transition_reason"] == "Design approved"

        step = await tool_service.whats_next(context="Coding the cart")
        assert step["is_modeled_transition"] is True
        assert step["instructions"].startswith("Implement the design.")
        assert step["instructions"].endswith("Finish the open tasks first.")

        testing = await tool_service.proceed_to_phase("testing", "not-required")
        assert testing["instructions"].startswith("Write tests for the new code.")
        assert "Cover the error paths as well." in testing["instructions"]

        assert await _tool_names(tool_service) == [
            "start_development",
            "proceed_to_phase",
            "proceed_to_phase",
            "whats_next",
            "proceed_to_phase",
        ]

    async def test_direct_jump(self, tool_service: ToolService) -> None:
        """Phases without a declared transition can still be entered."""
        await tool_service.start_development("scenario")

        response = await tool_service.proceed_to_phase("testing", "not-required")

        assert response["is_modeled_transition"] is False
        assert response["transition_reason"] == "Direct transition to testing phase"
        assert response["instructions"] == "Run and extend the test suite."

    async def test_unknown_phase(self, tool_service: ToolService) -> None:
        """Unknown phases are rejected and the phase is unchanged."""
        await tool_service.start_development("scenario")

        with pytest.raises(PhaseNotFoundError):
            await tool_service.proceed_to_phase("deployment", "not-required")

        assert (await tool_service.get_conversation_state())["current_phase"] == "requirements"

    async def test_concurrent_transitions_last_write_wins(self, tool_service: ToolService) -> None:
        """Racing transitions both succeed and the stored phase is one of the targets."""
        await tool_service.start_development("scenario")

        design, testing = await asyncio.gather(
            tool_service.proceed_to_phase("design", "not-required"),
            tool_service.proceed_to_phase("testing", "not-required"),
        )

        assert (design["phase"], testing["phase"]) == ("design", "testing")
        stored = await tool_service.get_conversation_state()
        assert stored["current_phase"] in {"design", "testing"}

    async def test_invalid_review_state(self, tool_service: ToolService) -> None:
        """Unknown review states are rejected with the allowed values."""
        await tool_service.start_development("scenario")

        with pytest.raises(InvalidArgumentError) as exc_info:
            await tool_service.proceed_to_phase("design", review_state="bogus")

        assert isinstance(exc_info.value, PreconditionError)
        assert exc_info.value.argument == "review_state"
        assert exc_info.value.allowed == ["not-required", "pending", "performed"]
        assert (await tool_service.get_conversation_state())["current_phase"] == "requirements"

    async def test_invalid_commit_behaviour(self, tool_service: ToolService) -> None:
        """Unknown commit behaviours are rejected before anything is stored."""
        with pytest.raises(InvalidArgumentError, match="Allowed values: step, phase, end, none"):
            await tool_service.start_development("scenario", commit_behaviour="sometimes")

        with pytest.raises(ConversationNotFoundError):
            await tool_service.get_conversation_state()


@pytest.mark.unit
class TestReviews:
    """Tests for review-gated transitions."""

    async def _at_design(self, service: ToolService, require_reviews: bool) -> None:
        await service.start_development("scenario", require_reviews=require_reviews)
        await service.proceed_to_phase("design", "not-required")

    async def test_reviews_not_required(self, tool_service: ToolService) -> None:
        """Without required reviews the declared perspectives do not block."""
        await self._at_design(tool_service, require_reviews=False)

        response = await tool_service.proceed_to_phase("implementation", "not-required")

        assert response["phase"] == "implementation"

    @pytest.mark.parametrize("review_state", [ReviewState.NOT_REQUIRED, ReviewState.PENDING])
    async def test_review_missing(self, tool_service: ToolService, review_state: ReviewState) -> None:
        """Required reviews block until performed."""
        await self._at_design(tool_service, require_reviews=True)

        with pytest.raises(ReviewRequiredError) as exc_info:
            await tool_service.proceed_to_phase("implementation", review_state=review_state)

        assert exc_info.value.target_phase == "implementation"
        assert (await tool_service.get_conversation_state())["current_phase"] == "design"

    async def test_pending_message_points_to_review_tool(self, tool_service: ToolService) -> None:
        """A pending review is told to use conduct_review."""
        await self._at_design(tool_service, require_reviews=True)

        with pytest.raises(ReviewRequiredError, match="conduct_review"):
            await tool_service.proceed_to_phase("implementation", review_state="pending")

    async def test_review_performed(self, tool_service: ToolService) -> None:
        """A performed review lets the transition through."""
        await self._at_design(tool_service, require_reviews=True)

        response = await tool_service.proceed_to_phase("implementation", review_state="performed")

        assert response["phase"] == "implementation"

    async def test_transitions_without_perspectives_pass(self, tool_service: ToolService) -> None:
        """Only transitions that declare perspectives are gated."""
        await tool_service.start_development("scenario", require_reviews=True)

        response = await tool_service.proceed_to_phase("design", "not-required")

        assert response["phase"] == "design"

    async def test_conduct_review(self, tool_service: ToolService) -> None:
        """Review instructions list every declared perspective."""
        await self._at_design(tool_service, require_reviews=True)

        response = await tool_service.conduct_review("implementation")

        assert [p["name"] for p in response["perspectives"]] == ["architect", "security_expert"]
        assert "**1. ARCHITECT PERSPECTIVE:**" in response["instructions"]
        assert "**2. SECURITY_EXPERT PERSPECTIVE:**" in response["instructions"]
        assert "before proceeding to implementation" in response["instructions"]

    async def test_conduct_review_without_perspectives(self, tool_service: ToolService) -> None:
        """Transitions without perspectives cannot be reviewed."""
        await tool_service.start_development("scenario")

        with pytest.raises(NoReviewPerspectivesError):
            await tool_service.conduct_review("design")

    async def test_conduct_review_unknown_phase(self, tool_service: ToolService) -> None:
        """Unknown targets are reported as such."""
        await tool_service.start_development("scenario")

        with pytest.raises(PhaseNotFoundError):
            await tool_service.conduct_review("deployment")


@pytest.mark.unit
class TestCommitHints:
    """Tests for git commit instructions."""

    async def test_default_in_git_is_end(self, git_project: Path, tool_service: ToolService) -> None:
        """Git projects commit once at the end unless told otherwise."""
        response = await tool_service.start_development("scenario")

        state = await tool_service.get_conversation_state()
        assert state["git_branch"] == "feature/cart"
        assert state["git_commit_config"]["commit_on_complete"] is True
        assert state["git_commit_config"]["start_commit_hash"] == HEAD
        assert response["plan_file_path"].endswith("development-plan-feature-cart.md")

    async def test_step_commits(self, git_project: Path, tool_service: ToolService) -> None:
        """Step commits are requested on every whats_next call."""
        await tool_service.start_development("scenario", commit_behaviour="step")

        response = await tool_service.whats_next(context="Wrote the parser")

        assert response["instructions"].endswith(
            '**Git Commit Required**: Create a commit for this step using:\n```bash\n'
            'git add . && git commit -m "Wrote the parser"\n```'
        )

    async def test_phase_commits(self, git_project: Path, tool_service: ToolService) -> None:
        """Phase commits are requested on transitions only."""
        await tool_service.start_development("scenario", commit_behaviour="phase")

        step = await tool_service.whats_next()
        transition = await tool_service.proceed_to_phase("design", "not-required")

        assert "Git Commit Required" not in step["instructions"]
        assert "Create a commit for this phase transition" in transition["instructions"]
        assert "Phase transition: requirements → design" in transition["instructions"]

    async def test_gitignore(self, git_project: Path, tool_service: ToolService) -> None:
        """Starting in a git repository keeps the database out of git."""
        await tool_service.start_development("scenario", commit_behaviour="none")

        gitignore = (git_project / ".vibe" / ".gitignore").read_text(encoding="utf-8")
        assert "*.sqlite" in gitignore
        assert "conversation-state.sqlite" in gitignore


@pytest.mark.unit
class TestResumeWorkflow:
    """Tests for resuming a conversation."""

    async def test_resume(self, tool_service: ToolService) -> None:
        """The snapshot describes the conversation, workflow and plan."""
        start = await tool_service.start_development("scenario")
        Path(start["plan_file_path"]).write_text(
            "# Plan\n\n## Requirements\n### Tasks\n- [ ] Ask about payment\n- [ ] Ask about shipping\n\n"
            "### Completed\n- [x] Created development plan file\n\n## Key Decisions\n- Use Stripe\n",
            encoding="utf-8",
        )

        response = await tool_service.resume_workflow()

        status = response["workflow_status"]
        assert status["current_phase"] == "requirements"
        assert status["state_machine"]["phases"] == ["requirements", "design", "implementation", "testing"]
        assert status["state_machine"]["phase_descriptions"]["design"] == "Design the solution"

        plan = response["plan_status"]
        assert plan["exists"] is True
        assert plan["analysis"]["tasks_total"] == 3
        assert plan["analysis"]["tasks_completed"] == 1
        assert plan["analysis"]["key_decisions"] == ["Use Stripe"]

        actions = response["recommendations"]["immediate_actions"]
        assert actions[0].startswith("Call whats_next()")
        assert "• design: Design the solution" in actions
        assert "Continue working on active tasks: Ask about payment, Ask about shipping" in actions

        assert "## Development Workflow: scenario" in response["system_prompt"]
        assert response["tool_version"] == __version__

    async def test_resume_changes_nothing(self, tool_service: ToolService) -> None:
        """Resuming is read-only."""
        await tool_service.start_development("scenario")
        before = await tool_service.get_conversation_state()

        response = await tool_service.resume_workflow(include_system_prompt=False)

        assert response["system_prompt"] is None
        assert await tool_service.get_conversation_state() == before
        assert await _tool_names(tool_service) == ["start_development"]

    async def test_resume_without_plan_file(self, tool_service: ToolService) -> None:
        """A deleted plan file is reported as missing."""
        start = await tool_service.start_development("scenario")
        Path(start["plan_file_path"]).unlink()

        plan = (await tool_service.resume_workflow())["plan_status"]

        assert plan == {"exists": False, "path": start["plan_file_path"], "analysis": None}


@pytest.mark.unit
class TestResetDevelopment:
    """Tests for resetting through the tool service."""

    async def test_reset_requires_confirmation(self, tool_service: ToolService) -> None:
        """Unconfirmed resets are refused."""
        await tool_service.start_development("scenario")

        with pytest.raises(ResetNotConfirmedError):
            await tool_service.reset_development(confirm=False)

        assert (await tool_service.get_conversation_state())["current_phase"] == "requirements"

    async def test_reset_and_restart(self, tool_service: ToolService) -> None:
        """After a reset development starts over."""
        await tool_service.start_development("scenario")
        await tool_service.proceed_to_phase("design", "not-required")

        result = await tool_service.reset_development(confirm=True, reason="new requirements")

        assert result["success"] is True
        assert result["reset_items"] == ["interaction_logs", "conversation_state", "plan_file"]
        assert result["message"].endswith("Reason: new requirements")
        with pytest.raises(ConversationNotFoundError):
            await tool_service.whats_next()

        restarted = await tool_service.start_development("scenario")
        assert restarted["phase"] == "requirements"
        assert await _tool_names(tool_service) == ["start_development"]


@pytest.mark.unit
class TestDiscovery:
    """Tests for workflow discovery tools."""

    async def test_list_workflows(self, tool_service: ToolService) -> None:
        """Listing applies the configured domains."""
        response = await tool_service.list_workflows()

        names = [workflow["name"] for workflow in response["workflows"]]
        assert "scenario" in names
        assert "waterfall" in names
        assert "posts" not in names
        assert response["filtered_by_domains"] == ["code"]
        waterfall = next(w for w in response["workflows"] if w["name"] == "waterfall")
        assert waterfall["domain"] == "code"
        assert waterfall["source"] == "builtin"

    async def test_list_all_workflows(self, tool_service: ToolService) -> None:
        """``include_unloaded`` lists every domain."""
        response = await tool_service.list_workflows(include_unloaded=True)

        assert "posts" in [workflow["name"] for workflow in response["workflows"]]
        assert response["filtered_by_domains"] == []

    async def test_get_workflow(self, tool_service: ToolService) -> None:
        """Workflow definitions are returned in document form."""
        workflow = await tool_service.get_workflow("scenario")

        assert workflow["initial_state"] == "requirements"
        assert set(workflow["states"]) == {"requirements", "design", "implementation", "testing"}

    async def test_get_unknown_workflow(self, tool_service: ToolService) -> None:
        """Unknown names raise."""
        with pytest.raises(WorkflowNotFoundError):
            await tool_service.get_workflow("kanban")


@pytest.mark.integration
class TestSettings:
    """Tests for building the service from settings."""

    async def test_from_settings(self, scenario_project: Path, tmp_path: Path) -> None:
        """The service uses the database and domains from the settings."""
        from vibe_workflows.config import VibeSettings

        settings = VibeSettings(
            project_path=scenario_project,
            workflow_domains=["office"],
            database_path=tmp_path / "settings.sqlite",
        )
        service = ToolService.from_settings(settings)
        await service.startup()
        try:
            await service.start_development("posts")
            names = [w["name"] for w in (await service.list_workflows())["workflows"]]
        finally:
            await service.shutdown()

        assert (tmp_path / "settings.sqlite").exists()
        assert "posts" in names
        assert "waterfall" not in names
