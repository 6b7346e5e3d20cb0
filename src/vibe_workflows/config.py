"""Settings and project configuration.

Two layers of configuration exist:

- :class:`VibeSettings` configures the process: which project it serves, which
  workflow domains are discovered, where the database lives. Loaded from an
  optional YAML file named by ``VIBE_CONFIG`` and overridden by ``VIBE_*``
  environment variables.
- :class:`ProjectConfig` lives in the project at ``.vibe/config.yaml`` and lets
  a project restrict the workflows it offers.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vibe_workflows.core.types import WorkflowDomain
from vibe_workflows.exceptions import ProjectConfigError

__all__ = [
    "DEFAULT_DOMAINS",
    "PROJECT_CONFIG_FILE",
    "VIBE_DIR",
    "ProjectConfig",
    "VibeSettings",
    "load_project_config",
    "load_settings",
    "parse_domains",
]

logger = logging.getLogger(__name__)

VIBE_DIR = ".vibe"
"""Per-project directory holding configuration, database and plan files."""

PROJECT_CONFIG_FILE = "config.yaml"

DEFAULT_DOMAINS: tuple[str, ...] = (WorkflowDomain.CODE.value,)


def parse_domains(raw: str | None) -> list[str]:
    """Parse a comma separated list of workflow domains.

    Unknown domains are dropped with a warning. If nothing valid remains the
    default domain list is returned.

    Args:
        raw: Value such as ``"code,office"``.

    Returns:
        The valid domains, in the given order.
    """
    if not raw:
        return list(DEFAULT_DOMAINS)
    valid = {domain.value for domain in WorkflowDomain}
    domains: list[str] = []
    for item in (part.strip().lower() for part in raw.split(",")):
        if not item:
            continue
        if item not in valid:
            logger.warning("config.invalid_domain", extra={"domain": item, "valid": sorted(valid)})
            continue
        if item not in domains:
            domains.append(item)
    return domains or list(DEFAULT_DOMAINS)


class VibeSettings(BaseModel):
    """Process-level settings."""

    project_path: Path = Field(default_factory=Path.cwd)
    workflow_domains: list[str] = Field(default_factory=lambda: list(DEFAULT_DOMAINS))
    database_path: Path | None = None
    log_level: str = "INFO"

    @field_validator("workflow_domains", mode="before")
    @classmethod
    def _split_domains(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_domains(value)
        return value

    @property
    def vibe_dir(self) -> Path:
        """The project's ``.vibe`` directory."""
        return self.project_path / VIBE_DIR

    def resolved_database_path(self) -> Path:
        """Database file, defaulting to ``.vibe/conversation-state.sqlite``."""
        return self.database_path or self.vibe_dir / "conversation-state.sqlite"


def load_settings(path: str | None = None) -> VibeSettings:
    """Load settings from YAML and the environment.

    Args:
        path: Optional path to a YAML settings file. Falls back to the
            ``VIBE_CONFIG`` environment variable. A missing file is not an error.

    Returns:
        The loaded settings.
    """
    config_path = path or os.getenv("VIBE_CONFIG")
    data: dict[str, object] = {}
    if config_path and os.path.exists(config_path):
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    env_project = os.getenv("VIBE_PROJECT_PATH")
    if env_project:
        data["project_path"] = env_project
    env_domains = os.getenv("VIBE_WORKFLOW_DOMAINS")
    if env_domains is not None:
        data["workflow_domains"] = parse_domains(env_domains)
    env_database = os.getenv("VIBE_DATABASE_PATH")
    if env_database:
        data["database_path"] = env_database
    env_level = os.getenv("VIBE_LOG_LEVEL")
    if env_level:
        data["log_level"] = env_level.upper()

    settings = VibeSettings(**data)
    settings.project_path = settings.project_path.expanduser().resolve()
    return settings


class ProjectConfig(BaseModel):
    """Contents of ``.vibe/config.yaml``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled_workflows: list[str] | None = None

    @field_validator("enabled_workflows")
    @classmethod
    def _check_enabled(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        if not value:
            msg = "enabled_workflows must be a non-empty list"
            raise ValueError(msg)
        if any(not name.strip() for name in value):
            msg = "enabled_workflows entries must be non-empty strings"
            raise ValueError(msg)
        return [name.strip() for name in value]


def load_project_config(project_path: Path) -> ProjectConfig | None:
    """Load the project's ``.vibe/config.yaml``.

    Args:
        project_path: Root of the project.

    Returns:
        The project configuration, or None when the project has no config file.

    Raises:
        ProjectConfigError: If the file exists but is not valid.
    """
    config_path = project_path / VIBE_DIR / PROJECT_CONFIG_FILE
    if not config_path.is_file():
        return None
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ProjectConfigError(str(config_path), str(e)) from e
    if data is None:
        return ProjectConfig()
    if not isinstance(data, dict):
        raise ProjectConfigError(str(config_path), "configuration must be a mapping")
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ProjectConfigError(str(config_path), str(e)) from e
