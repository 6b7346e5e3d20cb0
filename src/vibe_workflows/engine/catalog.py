"""Workflow catalog for discovering and resolving workflow definitions.

The catalog knows three sources of workflows:

- built-in workflows shipped in ``vibe_workflows/resources/workflows``, named by
  file stem and tagged with a domain;
- project workflows in ``<project>/.vibe/workflows/*.yaml``, named by the
  ``name`` field of the document;
- the single-file custom workflow ``<project>/.vibe/workflow.yaml`` (or
  ``.yml``), available under the name ``custom``.

Project workflows shadow built-ins of the same name. A project may further
restrict the catalog with ``enabled_workflows`` in ``.vibe/config.yaml``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import TYPE_CHECKING, Any

from vibe_workflows.config import DEFAULT_DOMAINS, VIBE_DIR, load_project_config
from vibe_workflows.core.loader import WORKFLOW_SUFFIXES, load_workflow_file
from vibe_workflows.core.types import DEFAULT_WORKFLOW
from vibe_workflows.exceptions import (
    ConfigurationError,
    ProjectConfigError,
    WorkflowNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vibe_workflows.core.definition import WorkflowDefinition

__all__ = ["CUSTOM_WORKFLOW", "WorkflowCatalog", "WorkflowInfo", "builtin_workflows_dir"]

logger = logging.getLogger(__name__)

CUSTOM_WORKFLOW = "custom"
"""Name under which ``.vibe/workflow.yaml`` is offered."""

_CUSTOM_FILES = ("workflow.yaml", "workflow.yml")
_PROJECT_WORKFLOWS_DIR = "workflows"


def builtin_workflows_dir() -> Path:
    """Directory holding the built-in workflow documents."""
    return Path(str(files("vibe_workflows").joinpath("resources", "workflows")))


@dataclass(frozen=True)
class WorkflowInfo:
    """Summary of a workflow for discovery listings.

    Attributes:
        name: Name the workflow is resolved by.
        display_name: Name declared inside the document.
        description: Human-readable description.
        initial_state: Starting phase.
        phases: Phase names in declaration order.
        source: ``builtin`` or ``project``.
        metadata: Discovery metadata, if declared.
    """

    name: str
    display_name: str
    description: str
    initial_state: str
    phases: list[str]
    source: str
    metadata: dict[str, Any] | None = None

    @property
    def domain(self) -> str | None:
        """Domain from the metadata, if declared."""
        return (self.metadata or {}).get("domain")


@dataclass
class _CacheEntry:
    stamp: int
    definition: WorkflowDefinition


@dataclass
class _Candidate:
    name: str
    path: Path
    source: str
    definition: WorkflowDefinition | None = field(default=None)


class WorkflowCatalog:
    """Discovers and resolves workflow definitions for projects.

    Resolved definitions are immutable and cached per ``(project_path, name)``.
    A cache entry is reloaded when the modification stamp of its file changes,
    so editing a workflow file takes effect on the next call.

    Attributes:
        domains: Domains used to filter built-in workflow discovery.
        builtin_dir: Directory holding the built-in workflow documents.
    """

    def __init__(
        self,
        domains: Iterable[str] | None = None,
        builtin_dir: Path | None = None,
        default_workflow: str = DEFAULT_WORKFLOW,
    ) -> None:
        """Initialize the catalog.

        Args:
            domains: Domains used to filter built-in discovery. Defaults to ``code``.
            builtin_dir: Override for the built-in workflow directory.
            default_workflow: Built-in workflow used as the fallback for invalid
                project workflows.
        """
        self.domains = list(domains) if domains is not None else list(DEFAULT_DOMAINS)
        self.builtin_dir = builtin_dir or builtin_workflows_dir()
        self.default_workflow = default_workflow
        self._cache: dict[tuple[str, str], _CacheEntry] = {}

    def resolve(self, project_path: Path | str, workflow_name: str) -> WorkflowDefinition:
        """Resolve a workflow name for a project.

        Project workflows are tried first, then built-ins. If a project file
        with the requested name exists but is invalid, the error is logged and
        the built-in of the same name is used, or the default built-in when no
        built-in has that name. Domain filtering never applies here.

        Args:
            project_path: Root of the project.
            workflow_name: Name of the workflow.

        Returns:
            The workflow definition.

        Raises:
            WorkflowNotFoundError: If no source provides the name, or the project
                allow-list excludes it.
            ProjectConfigError: If the project configuration is invalid.

        Example:
            >>> catalog = WorkflowCatalog()
            >>> catalog.resolve("/work/app", "waterfall").initial_state
            'requirements'
        """
        project = Path(project_path)
        enabled = self._enabled_workflows(project)
        if enabled is not None and workflow_name not in enabled:
            raise WorkflowNotFoundError(workflow_name, enabled)

        project_candidate = self._project_candidates(project).get(workflow_name)
        if project_candidate is not None:
            try:
                return self._load_cached(project, project_candidate)
            except ConfigurationError as e:
                fallback = workflow_name if workflow_name in self._builtin_paths() else self.default_workflow
                logger.warning(
                    "catalog.invalid_project_workflow",
                    extra={
                        "workflow": workflow_name,
                        "path": str(project_candidate.path),
                        "fallback": fallback,
                        "error": str(e),
                    },
                )
                return self._resolve_builtin(project, fallback)

        if workflow_name in self._builtin_paths():
            return self._resolve_builtin(project, workflow_name)

        raise WorkflowNotFoundError(workflow_name, self.available_names(project))

    def is_available(self, project_path: Path | str, workflow_name: str) -> bool:
        """Return whether ``workflow_name`` resolves for the project."""
        try:
            self.resolve(project_path, workflow_name)
        except WorkflowNotFoundError:
            return False
        return True

    def available_names(self, project_path: Path | str) -> list[str]:
        """Names of every workflow the project can resolve, ignoring domains."""
        return [info.name for info in self.list_workflows(project_path, include_unloaded=True)]

    def list_workflows(self, project_path: Path | str, *, include_unloaded: bool = False) -> list[WorkflowInfo]:
        """List the workflows offered to a project.

        Built-ins are filtered by domain unless ``include_unloaded`` is set;
        built-ins without a domain are always listed. Project workflows are
        always listed. The project allow-list, when present, applies last.

        Args:
            project_path: Root of the project.
            include_unloaded: Include built-ins outside the configured domains.

        Returns:
            Workflow summaries sorted by name.

        Raises:
            ProjectConfigError: If the allow-list names workflows that do not exist.
        """
        project = Path(project_path)
        infos: dict[str, WorkflowInfo] = {}

        for name, path in self._builtin_paths().items():
            try:
                definition = self._load_cached(project, _Candidate(name=name, path=path, source="builtin"))
            except ConfigurationError as e:
                logger.error("catalog.invalid_builtin_workflow", extra={"workflow": name, "error": str(e)})
                continue
            if not include_unloaded and definition.domain and definition.domain not in self.domains:
                continue
            infos[name] = _info(name, definition, "builtin")

        for name, candidate in self._project_candidates(project).items():
            try:
                definition = self._load_cached(project, candidate)
            except ConfigurationError as e:
                logger.warning(
                    "catalog.invalid_project_workflow",
                    extra={"workflow": name, "path": str(candidate.path), "error": str(e)},
                )
                continue
            infos[name] = _info(name, definition, "project")

        enabled = self._enabled_workflows(project)
        if enabled is not None:
            unknown = [name for name in enabled if name not in infos and not self._exists_anywhere(project, name)]
            if unknown:
                raise ProjectConfigError(
                    str(project / VIBE_DIR / "config.yaml"),
                    f"enabled_workflows references unknown workflows: {', '.join(unknown)}",
                )
            infos = {name: info for name, info in infos.items() if name in enabled}

        return [infos[name] for name in sorted(infos)]

    def invalidate(self, project_path: Path | str | None = None) -> None:
        """Drop cached definitions.

        Args:
            project_path: Only drop entries for this project. Drops everything
                when omitted.
        """
        if project_path is None:
            self._cache.clear()
            return
        key = str(Path(project_path))
        for cache_key in [k for k in self._cache if k[0] == key]:
            del self._cache[cache_key]

    def _resolve_builtin(self, project: Path, name: str) -> WorkflowDefinition:
        path = self._builtin_paths().get(name)
        if path is None:
            raise WorkflowNotFoundError(name, self.available_names(project))
        return self._load_cached(project, _Candidate(name=name, path=path, source="builtin"))

    def _load_cached(self, project: Path, candidate: _Candidate) -> WorkflowDefinition:
        key = (str(project), f"{candidate.source}:{candidate.name}")
        stamp = candidate.path.stat().st_mtime_ns
        entry = self._cache.get(key)
        if entry is not None and entry.stamp == stamp:
            return entry.definition
        definition = candidate.definition or load_workflow_file(candidate.path)
        self._cache[key] = _CacheEntry(stamp=stamp, definition=definition)
        logger.debug(
            "catalog.workflow_loaded",
            extra={"workflow": candidate.name, "source": candidate.source, "path": str(candidate.path)},
        )
        return definition

    def _builtin_paths(self) -> dict[str, Path]:
        if not self.builtin_dir.is_dir():
            return {}
        return {
            path.stem: path
            for path in sorted(self.builtin_dir.iterdir())
            if path.is_file() and path.suffix in WORKFLOW_SUFFIXES
        }

    def _project_candidates(self, project: Path) -> dict[str, _Candidate]:
        candidates: dict[str, _Candidate] = {}

        workflows_dir = project / VIBE_DIR / _PROJECT_WORKFLOWS_DIR
        if workflows_dir.is_dir():
            for path in sorted(workflows_dir.iterdir()):
                if not path.is_file() or path.suffix not in WORKFLOW_SUFFIXES:
                    continue
                try:
                    definition = self._load_cached(project, _Candidate(name=path.name, path=path, source="file"))
                except ConfigurationError as e:
                    logger.warning("catalog.invalid_project_workflow", extra={"path": str(path), "error": str(e)})
                    continue
                candidates[definition.name] = _Candidate(
                    name=definition.name, path=path, source="project", definition=definition
                )

        for filename in _CUSTOM_FILES:
            path = project / VIBE_DIR / filename
            if path.is_file():
                candidates[CUSTOM_WORKFLOW] = _Candidate(name=CUSTOM_WORKFLOW, path=path, source="project")
                break

        return candidates

    def _enabled_workflows(self, project: Path) -> list[str] | None:
        config = load_project_config(project)
        return config.enabled_workflows if config else None

    def _exists_anywhere(self, project: Path, name: str) -> bool:
        return name in self._builtin_paths() or name in self._project_candidates(project)


def _info(name: str, definition: WorkflowDefinition, source: str) -> WorkflowInfo:
    return WorkflowInfo(
        name=name,
        display_name=definition.name,
        description=definition.description,
        initial_state=definition.initial_state,
        phases=definition.phases,
        source=source,
        metadata=definition.metadata.to_dict() if definition.metadata else None,
    )
