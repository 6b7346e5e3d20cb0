"""Repository implementations for conversation persistence.

This module provides async repositories for CRUD operations on conversation
models using advanced-alchemy's repository pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from advanced_alchemy.repository import SQLAlchemyAsyncRepository
from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from vibe_workflows.db.models import ConversationStateModel, InteractionLogModel

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

__all__ = [
    "ConversationStateRepository",
    "InteractionLogRepository",
]

_UPSERT_DIALECTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


class ConversationStateRepository(SQLAlchemyAsyncRepository[ConversationStateModel]):
    """Repository for conversation records.

    Conversations are addressed by their derived ``conversation_id`` rather than
    the surrogate primary key.
    """

    model_type = ConversationStateModel

    async def get_by_conversation_id(self, conversation_id: str) -> ConversationStateModel | None:
        """Get a conversation by its derived identifier.

        Args:
            conversation_id: The conversation identifier.

        Returns:
            The conversation or None if not found.
        """
        stmt = select(ConversationStateModel).where(ConversationStateModel.conversation_id == conversation_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_project_and_branch(
        self,
        project_path: str,
        git_branch: str,
    ) -> ConversationStateModel | None:
        """Find the conversation of a project branch.

        Args:
            project_path: Absolute path of the project.
            git_branch: The branch name.

        Returns:
            The conversation or None if not found.
        """
        stmt = (
            select(ConversationStateModel)
            .where(
                ConversationStateModel.project_path == project_path,
                ConversationStateModel.git_branch == git_branch,
            )
            .order_by(ConversationStateModel.updated_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_by_conversation_id(self, conversation_id: str, values: dict[str, Any]) -> None:
        """Insert a conversation or replace the row with the same identifier.

        Runs as a single ``INSERT ... ON CONFLICT DO UPDATE`` statement on
        SQLite and PostgreSQL. Other dialects fall back to a read followed by
        an add or an update inside the current session.

        Args:
            conversation_id: The conversation identifier.
            values: Column values for every non-identity column.
        """
        dialect = self.session.bind.dialect.name if self.session.bind is not None else ""
        if dialect in _UPSERT_DIALECTS:
            stmt = _UPSERT_DIALECTS[dialect](ConversationStateModel).values(conversation_id=conversation_id, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["conversation_id"], set_=values)
            await self.session.execute(stmt)
            return
        model = await self.get_by_conversation_id(conversation_id)
        if model is None:
            await self.add(ConversationStateModel(conversation_id=conversation_id, **values))
            return
        for key, value in values.items():
            setattr(model, key, value)
        await self.session.flush()

    async def delete_by_conversation_id(self, conversation_id: str) -> bool:
        """Hard delete a conversation record.

        Args:
            conversation_id: The conversation identifier.

        Returns:
            True if a record was deleted.
        """
        model = await self.get_by_conversation_id(conversation_id)
        if model is None:
            return False
        await self.session.delete(model)
        await self.session.flush()
        return True


class InteractionLogRepository(SQLAlchemyAsyncRepository[InteractionLogModel]):
    """Repository for the interaction audit log.

    Rows are never deleted; a reset marks them with ``is_reset``.
    """

    model_type = InteractionLogModel

    async def list_for_conversation(
        self,
        conversation_id: str,
        *,
        include_reset: bool = False,
    ) -> Sequence[InteractionLogModel]:
        """List the log entries of a conversation, oldest first.

        Args:
            conversation_id: The conversation identifier.
            include_reset: Include entries soft-deleted by a reset.

        Returns:
            Log entries ordered by timestamp.
        """
        stmt = select(InteractionLogModel).where(InteractionLogModel.conversation_id == conversation_id)
        if not include_reset:
            stmt = stmt.where(
                or_(
                    InteractionLogModel.is_reset == False,  # noqa: E712
                    InteractionLogModel.is_reset.is_(None),
                )
            )
        stmt = stmt.order_by(InteractionLogModel.timestamp, InteractionLogModel.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def mark_reset(self, conversation_id: str, reset_at: datetime) -> int:
        """Soft delete every active entry of a conversation.

        Args:
            conversation_id: The conversation identifier.
            reset_at: Timestamp stamped on the affected entries.

        Returns:
            Number of entries marked.
        """
        stmt = (
            update(InteractionLogModel)
            .where(
                InteractionLogModel.conversation_id == conversation_id,
                or_(
                    InteractionLogModel.is_reset == False,  # noqa: E712
                    InteractionLogModel.is_reset.is_(None),
                ),
            )
            .values(is_reset=True, reset_at=reset_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
