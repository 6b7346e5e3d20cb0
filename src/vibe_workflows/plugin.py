"""Litestar plugin exposing the workflow tools over HTTP.

This module provides the VibePlugin, which wires a
:class:`~vibe_workflows.engine.tools.ToolService` into a Litestar application.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar import Router
from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from vibe_workflows.config import load_settings
from vibe_workflows.engine.tools import ToolService
from vibe_workflows.web.controllers import ConversationController, ToolController, WorkflowController
from vibe_workflows.web.exceptions import exception_handlers

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from vibe_workflows.config import VibeSettings

__all__ = ["VibePlugin", "VibePluginConfig"]


@dataclass
class VibePluginConfig:
    """Configuration for the VibePlugin.

    Attributes:
        tool_service: Optional pre-configured ToolService. If not provided, one
            is built from ``settings``.
        settings: Settings used to build the ToolService. Loaded from YAML and
            the environment when not provided.
        dependency_key: The key used for dependency injection of the
            ToolService. Defaults to "tool_service".
        api_path_prefix: URL path prefix for all endpoints. Defaults to "/vibe".
        api_guards: List of Litestar guards to apply to all endpoints.
        api_tags: OpenAPI tags to apply to all endpoints.
        include_api_in_schema: Whether to include the endpoints in the OpenAPI
            schema. Defaults to True.
    """

    tool_service: ToolService | None = None
    settings: VibeSettings | None = None
    dependency_key: str = "tool_service"
    api_path_prefix: str = "/vibe"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["Vibe Workflows"])
    include_api_in_schema: bool = True


class VibePlugin(InitPluginProtocol):
    """Litestar plugin serving the workflow tools.

    Example:
        Basic usage::

            from litestar import Litestar
            from vibe_workflows import VibePlugin, VibePluginConfig
            from vibe_workflows.config import VibeSettings

            app = Litestar(
                plugins=[VibePlugin(VibePluginConfig(settings=VibeSettings(project_path="/work/app")))]
            )

        Calling a tool::

            POST /vibe/tools/start_development {"workflow": "epcc"}
    """

    __slots__ = ("_config", "_tool_service")

    def __init__(self, config: VibePluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or VibePluginConfig()
        self._tool_service: ToolService | None = None

    @property
    def tool_service(self) -> ToolService:
        """Get the tool service.

        Returns:
            The ToolService instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._tool_service is None:
            msg = "VibePlugin has not been initialized. Access tool_service after app startup."
            raise RuntimeError(msg)
        return self._tool_service

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Register the tool service, the API router and the error handlers.

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        self._tool_service = self._config.tool_service or ToolService.from_settings(
            self._config.settings or load_settings()
        )
        service = self._tool_service

        def provide_tool_service() -> ToolService:
            return service

        app_config.dependencies[self._config.dependency_key] = Provide(provide_tool_service, sync_to_thread=False)
        app_config.on_startup.append(service.startup)
        app_config.on_shutdown.append(service.shutdown)

        app_config.route_handlers.append(
            Router(
                path=self._config.api_path_prefix,
                route_handlers=[ToolController, WorkflowController, ConversationController],
                guards=self._config.api_guards,
                tags=self._config.api_tags,
                include_in_schema=self._config.include_api_in_schema,
            )
        )
        app_config.exception_handlers.update(exception_handlers())
        return app_config
