"""Exception hierarchy for vibe-workflows.

Errors fall into four families that callers handle differently:

- :class:`ConfigurationError`: a workflow document or project configuration is
  malformed. The workflow catalog recovers from these by falling back to a
  built-in workflow.
- :class:`NotFoundError`: a conversation, workflow or phase does not exist.
- :class:`PreconditionError`: the call is legal in general but not in the
  current state (development already started, review pending, reset not
  confirmed).
- :class:`PersistenceError`: the conversation store could not be read or
  written. Always fatal to the current call.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

__all__ = (
    "ConfigurationError",
    "ConversationNotFoundError",
    "DevelopmentAlreadyStartedError",
    "InvalidArgumentError",
    "NoReviewPerspectivesError",
    "NotFoundError",
    "PersistenceError",
    "PhaseNotFoundError",
    "PreconditionError",
    "ProjectConfigError",
    "ProtectedFieldError",
    "ResetError",
    "ResetNotConfirmedError",
    "ReviewRequiredError",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
    "WorkflowsError",
)


class WorkflowsError(Exception):
    """Base exception for all vibe-workflows errors.

    All exceptions raised by vibe-workflows inherit from this class, so callers
    can catch every workflow-related error with a single except clause.
    """


class ConfigurationError(WorkflowsError):
    """Base exception for malformed workflow documents and project configuration."""


class WorkflowValidationError(ConfigurationError):
    """Raised when a workflow document fails structural validation.

    Attributes:
        errors: List of validation error messages, in the order they were found.
        source: Where the document came from (a file path), if known.
    """

    def __init__(self, errors: Sequence[str], source: str | None = None) -> None:
        """Initialize the exception with validation errors.

        Args:
            errors: List of validation error messages.
            source: Where the document came from, if known.
        """
        self.errors = list(errors)
        self.source = source
        msg = "Workflow validation failed"
        if source:
            msg += f" for '{source}'"
        super().__init__(f"{msg}: {'; '.join(self.errors)}")


class ProjectConfigError(ConfigurationError):
    """Raised when ``.vibe/config.yaml`` is unreadable or inconsistent.

    Attributes:
        path: Path of the offending configuration file.
        reason: What is wrong with it.
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize the exception with configuration details.

        Args:
            path: Path of the configuration file.
            reason: Description of the problem.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid project configuration '{path}': {reason}")


class NotFoundError(WorkflowsError):
    """Base exception for lookups of things that do not exist."""


class ConversationNotFoundError(NotFoundError):
    """Raised when no conversation exists for the current project and branch.

    Attributes:
        project_path: The project that was looked up.
        git_branch: The branch that was looked up.
    """

    def __init__(self, project_path: str | None = None, git_branch: str | None = None) -> None:
        """Initialize the exception with the identity that was looked up.

        Args:
            project_path: The project that was looked up.
            git_branch: The branch that was looked up.
        """
        self.project_path = project_path
        self.git_branch = git_branch
        msg = "No development conversation exists for this project"
        if project_path:
            msg += f" ('{project_path}'"
            msg += f", branch '{git_branch}')" if git_branch else ")"
        super().__init__(
            f"{msg}. Use the start_development tool first to initialize development with a workflow."
        )


class WorkflowNotFoundError(NotFoundError):
    """Raised when a workflow name cannot be resolved.

    Attributes:
        name: The workflow name that was requested.
        available: Workflow names that would have resolved.
    """

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        """Initialize the exception with workflow details.

        Args:
            name: The workflow name that was requested.
            available: Workflow names that would have resolved.
        """
        self.name = name
        self.available = sorted(available)
        msg = f"Workflow '{name}' not found"
        if self.available:
            msg += f". Available workflows: {', '.join(self.available)}"
        super().__init__(msg)


class PhaseNotFoundError(NotFoundError):
    """Raised when a phase is not a state of the workflow it is used with.

    Attributes:
        phase: The phase that was requested.
        workflow_name: The workflow that was searched.
    """

    def __init__(self, phase: str, workflow_name: str) -> None:
        """Initialize the exception with phase details.

        Args:
            phase: The phase that was requested.
            workflow_name: The workflow that was searched.
        """
        self.phase = phase
        self.workflow_name = workflow_name
        super().__init__(f"Phase '{phase}' not found in workflow '{workflow_name}'")


class PreconditionError(WorkflowsError):
    """Base exception for calls that are not allowed in the current state."""


class DevelopmentAlreadyStartedError(PreconditionError):
    """Raised when ``start_development`` is called for a conversation already under way.

    Attributes:
        current_phase: Phase the conversation is in.
        initial_state: Initial phase of the workflow.
    """

    def __init__(self, current_phase: str, initial_state: str) -> None:
        """Initialize the exception with phase details.

        Args:
            current_phase: Phase the conversation is in.
            initial_state: Initial phase of the workflow.
        """
        self.current_phase = current_phase
        self.initial_state = initial_state
        super().__init__(
            f"Development already started. Current phase is '{current_phase}', "
            f"not initial state '{initial_state}'. Use whats_next() to continue development."
        )


class ReviewRequiredError(PreconditionError):
    """Raised when a reviewed transition is requested without a performed review.

    Attributes:
        target_phase: The phase the caller tried to enter.
        review_state: The review state supplied by the caller.
    """

    def __init__(self, target_phase: str, review_state: str) -> None:
        """Initialize the exception with review details.

        Args:
            target_phase: The phase the caller tried to enter.
            review_state: The review state supplied by the caller.
        """
        self.target_phase = target_phase
        self.review_state = review_state
        if review_state == "pending":
            msg = (
                f"Review is required before proceeding to {target_phase}. "
                "Please use the conduct_review tool first."
            )
        else:
            msg = (
                f"This transition requires review, but review_state is '{review_state}'. "
                "Use 'pending' or 'performed'."
            )
        super().__init__(msg)


class NoReviewPerspectivesError(PreconditionError):
    """Raised when a review is requested for a transition that declares no perspectives.

    Attributes:
        from_phase: The current phase.
        to_phase: The requested target phase.
    """

    def __init__(self, from_phase: str, to_phase: str) -> None:
        """Initialize the exception with transition details.

        Args:
            from_phase: The current phase.
            to_phase: The requested target phase.
        """
        self.from_phase = from_phase
        self.to_phase = to_phase
        super().__init__(f"No review perspectives defined for transition from {from_phase} to {to_phase}")


class InvalidArgumentError(PreconditionError):
    """Raised when a tool argument is not one of its allowed values.

    Attributes:
        argument: Name of the argument.
        value: The rejected value.
        allowed: The accepted values.
    """

    def __init__(self, argument: str, value: object, allowed: Iterable[str]) -> None:
        """Initialize the exception with the rejected argument.

        Args:
            argument: Name of the argument.
            value: The rejected value.
            allowed: The accepted values.
        """
        self.argument = argument
        self.value = value
        self.allowed = list(allowed)
        super().__init__(f"Invalid {argument} '{value}'. Allowed values: {', '.join(self.allowed)}")


class ResetNotConfirmedError(PreconditionError):
    """Raised when a reset is requested without explicit confirmation."""

    def __init__(self) -> None:
        """Initialize the exception."""
        super().__init__("Reset operation requires explicit confirmation. Set confirm parameter to true.")


class ProtectedFieldError(PreconditionError):
    """Raised when an update touches fields that may not change after creation.

    Attributes:
        fields: The rejected field names.
    """

    def __init__(self, fields: Iterable[str]) -> None:
        """Initialize the exception with the rejected fields.

        Args:
            fields: The rejected field names.
        """
        self.fields = sorted(fields)
        super().__init__(f"Conversation fields cannot be updated: {', '.join(self.fields)}")


class PersistenceError(WorkflowsError):
    """Raised when the conversation store cannot be read or written.

    The failed call must be re-issued by the caller; nothing is retried.

    Attributes:
        operation: The store operation that failed.
        cause: The underlying exception, if any.
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        """Initialize the exception with operation details.

        Args:
            operation: The store operation that failed.
            cause: The underlying exception, if any.
        """
        self.operation = operation
        self.cause = cause
        msg = f"Persistence operation '{operation}' failed"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)


class ResetError(WorkflowsError):
    """Raised when a confirmed reset fails part way or fails verification.

    Attributes:
        step: The reset step that failed.
        cause: The underlying exception, if any.
    """

    def __init__(self, step: str, cause: Exception | str | None = None) -> None:
        """Initialize the exception with the failing step.

        Args:
            step: The reset step that failed.
            cause: The underlying exception or a description of the failure.
        """
        self.step = step
        self.cause = cause
        msg = f"Reset failed at step '{step}'"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)
