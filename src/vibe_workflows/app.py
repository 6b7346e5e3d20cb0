"""Application factory.

Run with::

    VIBE_PROJECT_PATH=/work/app litestar --app vibe_workflows.app:create_app run
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Litestar
from litestar.logging.config import LoggingConfig
from litestar.openapi.config import OpenAPIConfig

from vibe_workflows.__metadata__ import __version__
from vibe_workflows.config import load_settings
from vibe_workflows.plugin import VibePlugin, VibePluginConfig

if TYPE_CHECKING:
    from vibe_workflows.config import VibeSettings

__all__ = ["create_app"]


def create_app(settings: VibeSettings | None = None) -> Litestar:
    """Create the Litestar application serving one project.

    Args:
        settings: Settings to use. Loaded from YAML and the environment when
            omitted.

    Returns:
        The application.
    """
    settings = settings or load_settings()
    return Litestar(
        route_handlers=[],
        plugins=[VibePlugin(VibePluginConfig(settings=settings))],
        logging_config=LoggingConfig(
            root={"level": settings.log_level, "handlers": ["queue_listener"]},
            log_exceptions="always",
        ),
        openapi_config=OpenAPIConfig(title="Vibe Workflows", version=__version__),
    )
