"""Shared test fixtures for vibe-workflows test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from vibe_workflows.db.store import ConversationStore
    from vibe_workflows.engine.catalog import WorkflowCatalog
    from vibe_workflows.engine.conversation import ConversationManager
    from vibe_workflows.engine.tools import ToolService


SCENARIO_WORKFLOW = """
name: scenario
description: Workflow used by the scenario tests
initial_state: requirements
states:
  requirements:
    description: Gather requirements
    default_instructions: Ask the user what they want to build.
    transitions:
      - trigger: req_done
        to: design
        transition_reason: Requirements are complete
  design:
    description: Design the solution
    default_instructions: Design the technical solution.
    transitions:
      - trigger: design_done
        to: implementation
        transition_reason: Design is complete
        review_perspectives:
          - perspective: architect
            prompt: Is the design consistent with the existing architecture?
          - perspective: security_expert
            prompt: Does the design introduce security risks?
  implementation:
    description: Implement the solution
    default_instructions: Implement the design.
    transitions:
      - trigger: keep_coding
        to: implementation
        transition_reason: More implementation work is needed
        additional_instructions: Finish the open tasks first.
      - trigger: impl_done
        to: testing
        transition_reason: Implementation is complete
        instructions: Write tests for the new code.
        additional_instructions: Cover the error paths as well.
  testing:
    description: Test the solution
    default_instructions: Run and extend the test suite.
    transitions:
      - trigger: tests_done
        to: requirements
        transition_reason: Testing is complete
"""


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create an empty project directory.

    Returns:
        Resolved path of the project
    """
    project = tmp_path / "shop"
    project.mkdir()
    return project.resolve()


@pytest.fixture
def scenario_project(project_dir: Path) -> Path:
    """Project directory providing the ``scenario`` workflow.

    Args:
        project_dir: Empty project directory

    Returns:
        Path of the project
    """
    workflows = project_dir / ".vibe" / "workflows"
    workflows.mkdir(parents=True)
    (workflows / "scenario.yaml").write_text(SCENARIO_WORKFLOW, encoding="utf-8")
    return project_dir


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    """Path of a throwaway SQLite database."""
    return tmp_path / "state" / "conversation-state.sqlite"


@pytest.fixture
async def store(database_path: Path) -> AsyncIterator[ConversationStore]:
    """Create an initialized store backed by an SQLite file.

    Args:
        database_path: Database file location

    Yields:
        ConversationStore instance
    """
    from vibe_workflows.db.store import ConversationStore

    conversation_store = ConversationStore.for_path(database_path)
    await conversation_store.initialize()
    yield conversation_store
    await conversation_store.close()


@pytest.fixture
def catalog() -> WorkflowCatalog:
    """Create a catalog over the built-in workflows of the ``code`` domain."""
    from vibe_workflows.engine.catalog import WorkflowCatalog

    return WorkflowCatalog()


@pytest.fixture
def manager(scenario_project: Path, store: ConversationStore, catalog: WorkflowCatalog) -> ConversationManager:
    """Create a conversation manager for the scenario project.

    Args:
        scenario_project: Project providing the scenario workflow
        store: Conversation store
        catalog: Workflow catalog

    Returns:
        ConversationManager instance
    """
    from vibe_workflows.engine.conversation import ConversationManager
    from vibe_workflows.plans import PlanFileManager

    return ConversationManager(scenario_project, store, catalog, PlanFileManager())


@pytest.fixture
def tool_service(scenario_project: Path, store: ConversationStore, catalog: WorkflowCatalog) -> ToolService:
    """Create a tool service for the scenario project.

    Args:
        scenario_project: Project providing the scenario workflow
        store: Conversation store
        catalog: Workflow catalog

    Returns:
        ToolService instance
    """
    from vibe_workflows.engine.tools import ToolService

    return ToolService(scenario_project, store, catalog)


@pytest.fixture
def on_branch(monkeypatch: pytest.MonkeyPatch):
    """Pretend the project is checked out on a given branch.

    Returns:
        Function taking the branch name
    """

    def _checkout(branch: str) -> None:
        async def _detect(_project_path: object) -> str:
            return branch

        monkeypatch.setattr("vibe_workflows.engine.conversation.detect_branch", _detect)

    return _checkout


@pytest.fixture
def git_project(scenario_project: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Turn the scenario project into a git repository without running git.

    Returns:
        Path of the project
    """
    (scenario_project / ".git").mkdir()

    async def _detect(_project_path: object) -> str:
        return "feature/cart"

    async def _head(_project_path: object) -> str:
        return "0123456789abcdef0123456789abcdef01234567"

    monkeypatch.setattr("vibe_workflows.engine.conversation.detect_branch", _detect)
    monkeypatch.setattr("vibe_workflows.engine.tools.current_commit_hash", _head)
    return scenario_project


@pytest.fixture
def scenario_workflow():
    """Load the scenario workflow document.

    Returns:
        WorkflowDefinition instance
    """
    from vibe_workflows.core.loader import load_workflow

    return load_workflow(SCENARIO_WORKFLOW)
