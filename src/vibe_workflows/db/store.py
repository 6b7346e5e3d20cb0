"""Conversation store.

The store is the only component that talks to the database. It maps the
dataclasses of :mod:`vibe_workflows.core.models` to SQLAlchemy rows, opens one
session per operation and commits it before returning, so every call mutates
at most one conversation row plus at most one log row atomically.

Any database failure surfaces as
:class:`~vibe_workflows.exceptions.PersistenceError`. Nothing is retried: a
write of unknown outcome must be re-issued by the caller.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from advanced_alchemy.exceptions import RepositoryError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vibe_workflows.core.models import ConversationState, GitCommitConfig, InteractionLogEntry, utcnow
from vibe_workflows.db.models import ConversationStateModel, InteractionLogModel
from vibe_workflows.db.repositories import ConversationStateRepository, InteractionLogRepository
from vibe_workflows.db.schema import ensure_schema_current
from vibe_workflows.exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

__all__ = ["ConversationStore"]

logger = logging.getLogger(__name__)


class ConversationStore:
    """Async persistence for conversations and their interaction logs.

    Attributes:
        engine: The SQLAlchemy async engine.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the store.

        Args:
            engine: SQLAlchemy async engine. The store does not own engines it is
                given; use :meth:`for_path` for a store that disposes its engine
                on :meth:`close`.
        """
        self.engine = engine
        self._session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        self._initialized = False
        self._owns_engine = False

    @classmethod
    def for_path(cls, database_path: Path) -> ConversationStore:
        """Create a store backed by an SQLite file.

        The parent directory is created if needed.

        Args:
            database_path: Path of the SQLite database file.

        Returns:
            A store owning its engine.
        """
        database_path.parent.mkdir(parents=True, exist_ok=True)
        store = cls(create_async_engine(f"sqlite+aiosqlite:///{database_path}"))
        store._owns_engine = True
        return store

    async def initialize(self) -> None:
        """Create or migrate the schema. Safe to call repeatedly.

        Raises:
            PersistenceError: If the database cannot be opened or migrated.
        """
        if self._initialized:
            return
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(ensure_schema_current)
        except SQLAlchemyError as e:
            raise PersistenceError("initialize", e) from e
        self._initialized = True
        logger.debug("store.initialized", extra={"url": str(self.engine.url)})

    async def close(self) -> None:
        """Dispose the engine if the store created it."""
        if self._owns_engine:
            await self.engine.dispose()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        await self.initialize()
        async with self._session_maker() as session:
            try:
                yield session
                await session.commit()
            except (SQLAlchemyError, RepositoryError) as e:
                await session.rollback()
                logger.error("store.operation_failed", extra={"operation": operation, "error": str(e)})
                raise PersistenceError(operation, e) from e

    # Conversation records

    async def get(self, conversation_id: str) -> ConversationState | None:
        """Load a conversation.

        Args:
            conversation_id: The conversation identifier.

        Returns:
            The conversation, or None if absent.
        """
        async with self._session("get") as session:
            model = await ConversationStateRepository(session=session).get_by_conversation_id(conversation_id)
            return _to_state(model) if model else None

    async def put(self, state: ConversationState) -> None:
        """Insert or replace a conversation in one statement.

        Args:
            state: The conversation to store.
        """
        async with self._session("put") as session:
            await ConversationStateRepository(session=session).upsert_by_conversation_id(
                state.conversation_id, _state_columns(state)
            )

    async def delete(self, conversation_id: str) -> bool:
        """Hard delete a conversation record. Logs are left untouched.

        Args:
            conversation_id: The conversation identifier.

        Returns:
            True if a record was deleted.
        """
        async with self._session("delete") as session:
            return await ConversationStateRepository(session=session).delete_by_conversation_id(conversation_id)

    async def find_by_project_and_branch(self, project_path: str, git_branch: str) -> ConversationState | None:
        """Find the conversation of a project branch.

        Args:
            project_path: Absolute path of the project.
            git_branch: The branch name.

        Returns:
            The conversation, or None if absent.
        """
        async with self._session("find_by_project_and_branch") as session:
            model = await ConversationStateRepository(session=session).find_by_project_and_branch(
                project_path, git_branch
            )
            return _to_state(model) if model else None

    # Interaction logs

    async def append_log(self, entry: InteractionLogEntry) -> InteractionLogEntry:
        """Append an interaction log entry.

        Args:
            entry: The entry to store.

        Returns:
            The stored entry with its assigned ``id``.
        """
        async with self._session("append_log") as session:
            model = await InteractionLogRepository(session=session).add(
                InteractionLogModel(
                    conversation_id=entry.conversation_id,
                    tool_name=entry.tool_name,
                    input_params=entry.input_params,
                    response_data=entry.response_data,
                    current_phase=entry.current_phase,
                    timestamp=entry.timestamp,
                    is_reset=entry.is_reset,
                    reset_at=entry.reset_at,
                )
            )
            return _to_entry(model)

    async def list_active_logs(self, conversation_id: str) -> list[InteractionLogEntry]:
        """List the entries not soft-deleted by a reset, oldest first."""
        async with self._session("list_active_logs") as session:
            models = await InteractionLogRepository(session=session).list_for_conversation(conversation_id)
            return [_to_entry(model) for model in models]

    async def list_all_logs(self, conversation_id: str) -> list[InteractionLogEntry]:
        """List every entry including soft-deleted ones, oldest first."""
        async with self._session("list_all_logs") as session:
            models = await InteractionLogRepository(session=session).list_for_conversation(
                conversation_id, include_reset=True
            )
            return [_to_entry(model) for model in models]

    async def soft_delete_logs(self, conversation_id: str, reason: str | None = None) -> int:
        """Mark every active entry of a conversation as reset.

        Args:
            conversation_id: The conversation identifier.
            reason: Why the logs are reset, recorded in the application log.

        Returns:
            Number of entries marked.
        """
        async with self._session("soft_delete_logs") as session:
            count = await InteractionLogRepository(session=session).mark_reset(conversation_id, utcnow())
        logger.info(
            "store.logs_soft_deleted",
            extra={"conversation_id": conversation_id, "count": count, "reason": reason},
        )
        return count


def _state_columns(state: ConversationState) -> dict[str, object]:
    return {
        "project_path": state.project_path,
        "git_branch": state.git_branch,
        "current_phase": state.current_phase,
        "plan_file_path": state.plan_file_path,
        "workflow_name": state.workflow_name,
        "git_commit_config": state.git_commit_config.to_dict() if state.git_commit_config else None,
        "require_reviews_before_phase_transition": state.require_reviews_before_phase_transition,
        "created_at": state.created_at,
        "updated_at": state.updated_at,
    }


def _to_state(model: ConversationStateModel) -> ConversationState:
    return ConversationState(
        conversation_id=model.conversation_id,
        project_path=model.project_path,
        git_branch=model.git_branch,
        current_phase=model.current_phase,
        plan_file_path=model.plan_file_path,
        workflow_name=model.workflow_name,
        git_commit_config=GitCommitConfig.from_dict(model.git_commit_config),
        require_reviews_before_phase_transition=bool(model.require_reviews_before_phase_transition),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_entry(model: InteractionLogModel) -> InteractionLogEntry:
    return InteractionLogEntry(
        id=model.id,
        conversation_id=model.conversation_id,
        tool_name=model.tool_name,
        input_params=dict(model.input_params or {}),
        response_data=dict(model.response_data or {}),
        current_phase=model.current_phase,
        timestamp=model.timestamp,
        is_reset=bool(model.is_reset),
        reset_at=model.reset_at,
    )
