"""Additive schema migration for the conversation database.

Conversation records must stay readable indefinitely, so databases written by
older versions are brought up to date in place when the store is opened:

- missing tables are created;
- missing columns are added with ``ALTER TABLE ... ADD COLUMN``.

Nothing is ever dropped or renamed here. Every change is logged, and every
function is idempotent. Failures are raised as
:class:`~vibe_workflows.exceptions.PersistenceError`.

The functions take a synchronous :class:`~sqlalchemy.engine.Connection` and are
meant to be called through ``AsyncConnection.run_sync``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from vibe_workflows.db.models import ConversationStateModel, InteractionLogModel
from vibe_workflows.exceptions import PersistenceError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

__all__ = ["ADDITIVE_COLUMNS", "ensure_schema_current"]

logger = logging.getLogger(__name__)

ADDITIVE_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("interaction_logs", "is_reset", "BOOLEAN NOT NULL DEFAULT 0"),
    ("interaction_logs", "reset_at", "DATETIME"),
    ("conversation_states", "workflow_name", "VARCHAR(255) NOT NULL DEFAULT 'waterfall'"),
    ("conversation_states", "git_commit_config", "JSON"),
    ("conversation_states", "require_reviews_before_phase_transition", "BOOLEAN NOT NULL DEFAULT 0"),
)
"""Columns introduced after the first schema version: (table, column, DDL)."""

_TABLES = (ConversationStateModel.__table__, InteractionLogModel.__table__)


def _existing_columns(connection: Connection, table_name: str) -> set[str]:
    inspector = inspect(connection)
    if not inspector.has_table(table_name):
        return set()
    return {column["name"] for column in inspector.get_columns(table_name)}


def _ensure_tables(connection: Connection) -> list[str]:
    inspector = inspect(connection)
    created = []
    for table in _TABLES:
        if inspector.has_table(table.name):
            continue
        logger.info("db.migration.create_table", extra={"table_name": table.name})
        table.create(connection)
        created.append(table.name)
    return created


def _ensure_column(connection: Connection, table_name: str, column_name: str, column_def: str) -> bool:
    if column_name in _existing_columns(connection, table_name):
        return False
    logger.info("db.migration.add_column", extra={"table_name": table_name, "column_name": column_name})
    connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_def}"))
    return True


def ensure_schema_current(connection: Connection) -> list[str]:
    """Bring the database schema up to date without touching existing data.

    Args:
        connection: Open synchronous connection inside a transaction.

    Returns:
        Descriptions of the changes made, empty when the schema was current.

    Raises:
        PersistenceError: If inspecting or altering the schema fails.

    Example:
        >>> async with engine.begin() as conn:
        ...     changes = await conn.run_sync(ensure_schema_current)
    """
    try:
        changes = [f"created table {name}" for name in _ensure_tables(connection)]
        for table_name, column_name, column_def in ADDITIVE_COLUMNS:
            if _ensure_column(connection, table_name, column_name, column_def):
                changes.append(f"added column {table_name}.{column_name}")
    except SQLAlchemyError as e:
        logger.exception("db.migration.failed")
        raise PersistenceError("schema migration", e) from e

    if changes:
        logger.info("db.migration.complete", extra={"changes": changes})
    return changes
