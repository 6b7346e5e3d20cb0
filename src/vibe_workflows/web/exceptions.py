"""Exception handling for the tool API.

Maps the error taxonomy of :mod:`vibe_workflows.exceptions` to HTTP responses
with a ``{"error": <kind>, "message": <text>}`` body.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from vibe_workflows.exceptions import (
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    PreconditionError,
    ResetError,
    WorkflowsError,
)

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request
    from litestar.types import ExceptionHandlersMap

__all__ = ["exception_handlers", "workflows_error_handler"]

logger = logging.getLogger(__name__)

_ERROR_KINDS: tuple[tuple[type[WorkflowsError], str, int], ...] = (
    (NotFoundError, "not_found", HTTP_404_NOT_FOUND),
    (PreconditionError, "precondition_failed", HTTP_409_CONFLICT),
    (ConfigurationError, "configuration_error", HTTP_422_UNPROCESSABLE_ENTITY),
    (PersistenceError, "persistence_error", HTTP_500_INTERNAL_SERVER_ERROR),
    (ResetError, "reset_failed", HTTP_500_INTERNAL_SERVER_ERROR),
)


def workflows_error_handler(_request: Request, exc: WorkflowsError) -> Response:
    """Exception handler for every :class:`WorkflowsError`.

    Args:
        _request: The Litestar request object.
        exc: The raised error.

    Returns:
        JSON response with the error kind and message.
    """
    kind, status_code = "workflows_error", HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, error_kind, error_status in _ERROR_KINDS:
        if isinstance(exc, error_type):
            kind, status_code = error_kind, error_status
            break

    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("web.request_failed", extra={"error": kind, "detail": str(exc)})
    else:
        logger.debug("web.request_rejected", extra={"error": kind, "detail": str(exc)})

    return Response(
        content={"error": kind, "message": str(exc)},
        status_code=status_code,
        media_type="application/json",
    )


def exception_handlers() -> ExceptionHandlersMap:
    """Handlers to register on an application or router."""
    return {WorkflowsError: workflows_error_handler}  # type: ignore[dict-item]
