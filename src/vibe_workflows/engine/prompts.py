"""Prompt text handed to the agent alongside tool responses."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vibe_workflows.plans import capitalize_phase

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vibe_workflows.core.definition import ReviewPerspective, WorkflowDefinition

__all__ = [
    "commit_hint",
    "entrance_criteria_instructions",
    "generate_system_prompt",
    "review_instructions",
]

logger = logging.getLogger(__name__)


def generate_system_prompt(workflow: WorkflowDefinition) -> str:
    """Build the system prompt explaining how to drive the workflow tools.

    Args:
        workflow: Workflow of the conversation; its phases are listed.

    Returns:
        Markdown system prompt.
    """
    phases = "\n".join(
        f"- **{capitalize_phase(name)}** (`{name}`): {state.description}" for name, state in workflow.states.items()
    )
    prompt = f"""You are an AI assistant that helps users develop software features.
You do this by following a structured development process guided by the workflow tools.

IMPORTANT: Use the workflow tools after each user message!

Use start_development() to start a new development.

## Core Workflow

Each tool call returns a JSON response with an "instructions" field. Follow these instructions immediately.

1. **Call whats_next() after each user interaction** to get phase-specific instructions
2. **Follow the instructions** exactly
3. **Update the plan file** as directed to maintain project memory
4. **Mark completed tasks** with [x] when instructed
5. **Provide conversation context** in each whats_next() call

## Development Workflow: {workflow.name}

{workflow.description}

{phases}

## Phase Transitions

Transition to the next phase when the tasks of the current phase are complete and the entrance
criteria of the next phase are met. Check the plan file for the "Phase Entrance Criteria" section
and ask the user whether they agree that the current phase is complete.

```
proceed_to_phase({{
  target_phase: "target_phase_name",
  reason: "Why you're transitioning"
}})
```

## Plan File Management

- Add new tasks as they are identified
- Mark tasks complete [x] when finished
- Document important decisions in the Key Decisions section
- Keep the structure clean and readable
"""
    logger.debug("prompt.system_generated", extra={"workflow": workflow.name, "length": len(prompt)})
    return prompt


def entrance_criteria_instructions(plan_file_path: str) -> str:
    """Instructions appended when development starts."""
    return (
        f"Look at the plan file ({plan_file_path}). Define entrance criteria for each phase of the workflow "
        "except the initial phase. Those criteria shall be based on the contents of the previous phase.\n"
        "Example:\n"
        "```\n"
        "## Design\n\n"
        "### Phase Entrance Criteria:\n"
        "- [ ] The requirements have been thoroughly defined.\n"
        "- [ ] Alternatives have been evaluated and are documented.\n"
        "```\n\n"
        "IMPORTANT: Once you added reasonable entrance criteria, call the whats_next() tool to get guided "
        "instructions for the current phase."
    )


def commit_hint(message: str, scope: str) -> str:
    """Markdown block asking the agent to commit its work.

    Args:
        message: Commit message to suggest.
        scope: What the commit covers, e.g. ``step`` or ``phase transition``.

    Returns:
        The hint, starting with a blank line.

    Example:
        >>> commit_hint("Step completion", "step")
        '\\n\\n**Git Commit Required**: Create a commit for this step using: ...'
    """
    return (
        f"\n\n**Git Commit Required**: Create a commit for this {scope} using:\n"
        f'```bash\ngit add . && git commit -m "{message}"\n```'
    )


def review_instructions(from_phase: str, to_phase: str, perspectives: Sequence[ReviewPerspective]) -> str:
    """Instructions for reviewing a phase from each declared perspective."""
    sections = "".join(
        f"**{index}. {perspective.perspective.upper()} PERSPECTIVE:**\n{perspective.prompt}\n\n"
        for index, perspective in enumerate(perspectives, start=1)
    )
    return (
        f"Conduct a review of the {from_phase} phase before proceeding to {to_phase}.\n\n"
        f"First, identify the artifacts and decisions from the {from_phase} phase by:\n"
        "1. Reviewing the plan file to see completed tasks and key decisions\n"
        "2. Using git status/diff to see what files were changed (if in a git repository)\n"
        "3. Analyzing recent conversation history for important decisions\n\n"
        "Then, for each perspective below, analyze these artifacts and provide feedback:\n\n"
        f"{sections}"
        "After completing all perspective reviews, summarize your findings and ask the user if they're ready "
        f"to proceed to the {to_phase} phase."
    )
