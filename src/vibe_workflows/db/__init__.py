"""Database persistence for conversations and interaction logs.

SQLAlchemy models and repositories on top of Advanced Alchemy, the additive
schema migration run on startup, and the async store used by the engine.
"""

from __future__ import annotations

from vibe_workflows.db.models import ConversationStateModel, InteractionLogModel
from vibe_workflows.db.repositories import ConversationStateRepository, InteractionLogRepository
from vibe_workflows.db.schema import ensure_schema_current
from vibe_workflows.db.store import ConversationStore

__all__ = [
    "ConversationStateModel",
    "ConversationStateRepository",
    "ConversationStore",
    "InteractionLogModel",
    "InteractionLogRepository",
    "ensure_schema_current",
]
