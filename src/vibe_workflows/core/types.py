"""Core type definitions for vibe-workflows.

This module defines the closed enumerations shared by the tool service, the
conversation manager and the persistence layer.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, TypeAlias

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        def __str__(self) -> str:
            return str(self.value)


__all__ = [
    "DEFAULT_WORKFLOW",
    "CommitBehaviour",
    "JSONObject",
    "ResetItem",
    "ReviewState",
    "WorkflowDomain",
]

DEFAULT_WORKFLOW = "waterfall"
"""Built-in workflow used when nothing else resolves."""


class ReviewState(StrEnum):
    """Review status reported by the caller of ``proceed_to_phase``.

    Attributes:
        NOT_REQUIRED: The caller believes the transition needs no review.
        PENDING: A review is needed but has not been carried out.
        PERFORMED: The review declared by the transition has been carried out.
    """

    NOT_REQUIRED = "not-required"
    PENDING = "pending"
    PERFORMED = "performed"


class CommitBehaviour(StrEnum):
    """When the agent is asked to create git commits.

    Attributes:
        STEP: After every ``whats_next`` step.
        PHASE: On every phase transition.
        END: Once, when development is complete.
        NONE: Never.
    """

    STEP = "step"
    PHASE = "phase"
    END = "end"
    NONE = "none"


class WorkflowDomain(StrEnum):
    """Coarse grouping of built-in workflows used to filter discovery.

    Attributes:
        CODE: Software development workflows.
        ARCHITECTURE: Architecture analysis and documentation workflows.
        OFFICE: Writing and presentation workflows.
    """

    CODE = "code"
    ARCHITECTURE = "architecture"
    OFFICE = "office"


class ResetItem(StrEnum):
    """Categories of data removed by a confirmed reset, in reset order."""

    INTERACTION_LOGS = "interaction_logs"
    CONVERSATION_STATE = "conversation_state"
    PLAN_FILE = "plan_file"


JSONObject: TypeAlias = dict[str, Any]
"""Type alias for JSON-serializable request and response payloads."""
