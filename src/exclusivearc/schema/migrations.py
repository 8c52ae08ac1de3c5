"""Applying compiled constraint statements from a migration.

The host owns the transaction: pass a Connection that is already inside
``engine.begin()`` (or the migration runner's connection). Each statement is
executed in order; the first failure is logged and re-raised so the host
transaction aborts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import Engine, inspect, text

from exclusivearc.ddl.compiler import compile_add, compile_remove

if TYPE_CHECKING:
    from sqlalchemy import MetaData
    from sqlalchemy.engine import Connection

    from exclusivearc.core.types import DDLStatement, PolymorphicMapping
    from exclusivearc.runtime.interfaces import SchemaExecutor

logger = logging.getLogger(__name__)


class ConnectionExecutor:
    """SchemaExecutor backed by a SQLAlchemy connection.

    Statements go through ``exec_driver_sql`` so trigger bodies are passed to
    the driver verbatim, without bind-parameter parsing.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def execute(self, statement: DDLStatement) -> None:
        self._connection.exec_driver_sql(statement.sql)


def apply_statements(executor: SchemaExecutor, statements: Iterable[DDLStatement]) -> list[str]:
    """Execute statements in order.

    Returns:
        Names of the applied statements, in order
    """
    applied = []
    for statement in statements:
        logger.info(f"Applying {statement.kind} {statement.name} on {statement.table}")
        try:
            executor.execute(statement)
        except Exception as e:
            logger.error(f"Statement {statement.kind} {statement.name} failed: {e}")
            raise
        applied.append(statement.name)
    return applied


def upgrade(
    connection: Connection, mapping: PolymorphicMapping, metadata: MetaData | None = None
) -> list[str]:
    """Create the constraints for a mapping on the connection's database."""
    statements = compile_add(mapping, connection, metadata)
    logger.info(f"Adding exclusive arc {mapping.owner_table}.{mapping.role}")
    return apply_statements(ConnectionExecutor(connection), statements)


def downgrade(
    connection: Connection, mapping: PolymorphicMapping, metadata: MetaData | None = None
) -> list[str]:
    """Drop the constraints created by upgrade() for the same mapping."""
    statements = compile_remove(mapping, connection, metadata)
    logger.info(f"Removing exclusive arc {mapping.owner_table}.{mapping.role}")
    return apply_statements(ConnectionExecutor(connection), statements)


def trigger_names(bind: Engine | Connection, table_name: str) -> list[str]:
    """List user trigger names on a table (sorted)."""
    if bind.dialect.name == "postgresql":
        query = text(
            """
            SELECT t.tgname FROM pg_trigger t
            JOIN pg_class c ON c.oid = t.tgrelid
            WHERE c.relname = :table AND NOT t.tgisinternal
            """
        )
    else:
        query = text("SELECT name FROM sqlite_master WHERE type = 'trigger' AND tbl_name = :table")

    def _fetch(conn: Connection) -> list[str]:
        return sorted(row[0] for row in conn.execute(query, {"table": table_name}))

    if isinstance(bind, Engine):
        with bind.connect() as conn:
            return _fetch(conn)
    return _fetch(bind)


def index_exists(bind: Engine | Connection, table_name: str, index_name: str) -> bool:
    """Check if an index exists on a table."""
    inspector = inspect(bind)
    if table_name not in inspector.get_table_names():
        return False
    return index_name in [idx["name"] for idx in inspector.get_indexes(table_name)]


def foreign_key_names(bind: Engine | Connection, table_name: str) -> list[str]:
    """List named foreign key constraints on a table (sorted)."""
    inspector = inspect(bind)
    return sorted(fk["name"] for fk in inspector.get_foreign_keys(table_name) if fk.get("name"))
