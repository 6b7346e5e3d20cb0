"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from vibe_workflows.exceptions import (
    ConfigurationError,
    ConversationNotFoundError,
    DevelopmentAlreadyStartedError,
    NoReviewPerspectivesError,
    NotFoundError,
    PersistenceError,
    PhaseNotFoundError,
    PreconditionError,
    ProjectConfigError,
    ProtectedFieldError,
    ResetError,
    ResetNotConfirmedError,
    ReviewRequiredError,
    WorkflowNotFoundError,
    WorkflowsError,
    WorkflowValidationError,
)


@pytest.mark.unit
class TestHierarchy:
    """Tests for the error families."""

    @pytest.mark.parametrize(
        ("error", "family"),
        [
            (WorkflowValidationError(["x"]), ConfigurationError),
            (ProjectConfigError("/p/.vibe/config.yaml", "bad"), ConfigurationError),
            (ConversationNotFoundError(), NotFoundError),
            (WorkflowNotFoundError("x"), NotFoundError),
            (PhaseNotFoundError("x", "wf"), NotFoundError),
            (DevelopmentAlreadyStartedError("design", "requirements"), PreconditionError),
            (ReviewRequiredError("design", "pending"), PreconditionError),
            (NoReviewPerspectivesError("a", "b"), PreconditionError),
            (ResetNotConfirmedError(), PreconditionError),
            (ProtectedFieldError(["git_branch"]), PreconditionError),
            (PersistenceError("get"), WorkflowsError),
            (ResetError("plan_file"), WorkflowsError),
        ],
    )
    def test_families(self, error: WorkflowsError, family: type[WorkflowsError]) -> None:
        """Every error belongs to its family and to the base class."""
        assert isinstance(error, family)
        assert isinstance(error, WorkflowsError)


@pytest.mark.unit
class TestMessages:
    """Tests for error messages and attributes."""

    def test_validation_error(self) -> None:
        """Validation errors join every problem."""
        error = WorkflowValidationError(["first", "second"], source="wf.yaml")

        assert error.errors == ["first", "second"]
        assert str(error) == "Workflow validation failed for 'wf.yaml': first; second"

    def test_conversation_not_found(self) -> None:
        """The message names the project and branch and how to start."""
        error = ConversationNotFoundError("/work/shop", "main")

        assert str(error) == (
            "No development conversation exists for this project ('/work/shop', branch 'main'). "
            "Use the start_development tool first to initialize development with a workflow."
        )
        assert str(ConversationNotFoundError()).startswith("No development conversation exists for this project.")

    def test_workflow_not_found_lists_alternatives(self) -> None:
        """Available workflows are listed sorted."""
        error = WorkflowNotFoundError("kanban", ["waterfall", "epcc"])

        assert error.available == ["epcc", "waterfall"]
        assert str(error) == "Workflow 'kanban' not found. Available workflows: epcc, waterfall"

    def test_review_required(self) -> None:
        """The message depends on the review state given."""
        assert "conduct_review" in str(ReviewRequiredError("design", "pending"))
        assert "review_state is 'not-required'" in str(ReviewRequiredError("design", "not-required"))

    def test_persistence_error_keeps_cause(self) -> None:
        """The underlying error is kept and shown."""
        cause = OSError("disk full")
        error = PersistenceError("put", cause)

        assert error.cause is cause
        assert str(error) == "Persistence operation 'put' failed: disk full"

    def test_reset_error(self) -> None:
        """Reset errors name the failing step."""
        error = ResetError("verification", "plan file still exists")

        assert error.step == "verification"
        assert str(error) == "Reset failed at step 'verification': plan file still exists"
