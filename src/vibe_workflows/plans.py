"""Plan file management.

The plan file is a markdown document the agent keeps up to date with tasks and
decisions. This module only creates the initial template, reports on the file
and deletes it during a reset; its content belongs to the agent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vibe_workflows.core.definition import WorkflowDefinition

__all__ = ["PlanAnalysis", "PlanFileInfo", "PlanFileManager", "capitalize_phase"]

logger = logging.getLogger(__name__)


def capitalize_phase(phase: str) -> str:
    """Turn ``phase_name`` into ``Phase Name``."""
    return " ".join(word[:1].upper() + word[1:] for word in phase.split("_"))


@dataclass(frozen=True)
class PlanFileInfo:
    """State of a plan file on disk.

    Attributes:
        path: Path of the plan file.
        exists: Whether the file exists.
        content: File content when it exists.
    """

    path: str
    exists: bool
    content: str | None = None


@dataclass
class PlanAnalysis:
    """Tasks and decisions extracted from a plan file.

    Attributes:
        active_tasks: Open ``- [ ]`` items in task sections.
        completed_tasks: Checked ``- [x]`` items in task sections.
        recent_decisions: Bullet points in decision sections.
    """

    active_tasks: list[str] = field(default_factory=list)
    completed_tasks: list[str] = field(default_factory=list)
    recent_decisions: list[str] = field(default_factory=list)


class PlanFileManager:
    """Creates, inspects and deletes plan files."""

    def ensure(
        self,
        path: Path | str,
        project_path: Path | str,
        branch: str,
        workflow: WorkflowDefinition | None = None,
    ) -> bool:
        """Create the plan file from the template if it does not exist.

        Args:
            path: Path of the plan file.
            project_path: Root of the project, used for the title.
            branch: Branch name, used for the title.
            workflow: Workflow whose phases become sections of the template.

        Returns:
            True if the file was created.
        """
        plan_path = Path(path)
        if plan_path.exists():
            return False
        plan_path.parent.mkdir(parents=True, exist_ok=True)
        plan_path.write_text(self.render_template(Path(project_path).name, branch, workflow), encoding="utf-8")
        logger.info("plan.created", extra={"path": str(plan_path), "branch": branch})
        return True

    def delete(self, path: Path | str) -> bool:
        """Delete a plan file. A missing file counts as deleted.

        Args:
            path: Path of the plan file.

        Returns:
            True if a file was removed, False if there was none.
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            logger.debug("plan.delete_missing", extra={"path": str(path)})
            return False
        logger.info("plan.deleted", extra={"path": str(path)})
        return True

    def info_for(self, path: Path | str) -> PlanFileInfo:
        """Report whether a plan file exists and return its content."""
        plan_path = Path(path)
        try:
            content = plan_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PlanFileInfo(path=str(plan_path), exists=False)
        return PlanFileInfo(path=str(plan_path), exists=True, content=content)

    def analyze(self, content: str) -> PlanAnalysis:
        """Extract tasks and decisions from plan content.

        Tasks are read from sections whose heading mentions tasks or todos;
        decisions from sections whose heading mentions decisions.

        Args:
            content: Markdown content of the plan file.

        Returns:
            The extracted tasks and decisions.
        """
        analysis = PlanAnalysis()
        section = ""
        for line in content.splitlines():
            stripped = line.strip()
            if stripped.startswith("##"):
                section = stripped.lower()
                continue
            in_tasks = "task" in section or "todo" in section or "completed" in section
            if in_tasks and stripped.lower().startswith("- [x]"):
                analysis.completed_tasks.append(stripped[5:].strip())
            elif in_tasks and stripped.startswith("- [ ]"):
                analysis.active_tasks.append(stripped[5:].strip())
            elif "decision" in section and stripped.startswith("- "):
                analysis.recent_decisions.append(stripped[2:].strip())
        return analysis

    def render_template(self, project_name: str, branch: str, workflow: WorkflowDefinition | None = None) -> str:
        """Render the initial plan file.

        Args:
            project_name: Name of the project.
            branch: Branch name.
            workflow: Workflow whose phases become sections.

        Returns:
            Markdown content.
        """
        lines = [
            f"# Development Plan: {project_name} ({branch} branch)",
            "",
            f"*Generated on {date.today().isoformat()}*",
        ]
        if workflow is not None:
            lines.append(f"*Workflow: {workflow.name}*")
        lines += [
            "",
            "## Goal",
            "*Define what you're building or fixing - this will be updated as requirements are gathered*",
            "",
        ]
        if workflow is not None:
            for phase in workflow.phases:
                lines += [f"## {capitalize_phase(phase)}", "### Tasks"]
                if phase == workflow.initial_state:
                    lines += [
                        "- [ ] *Tasks will be added as they are identified*",
                        "",
                        "### Completed",
                        "- [x] Created development plan file",
                    ]
                else:
                    lines += ["- [ ] *To be added when this phase becomes active*", "", "### Completed", "*None yet*"]
                lines.append("")
        lines += [
            "## Key Decisions",
            "*Important decisions will be documented here as they are made*",
            "",
            "## Notes",
            "*Additional context and observations*",
            "",
            "---",
            "*This plan is maintained by the LLM. Tool responses provide guidance on which section to focus on "
            "and what tasks to work on.*",
            "",
        ]
        return "\n".join(lines)
