"""DDL compiler for exclusive polymorphic relations.

Turns a PolymorphicMapping into ordered add/remove statements:
- one foreign key and one index per relation, in declaration order
- one exclusivity trigger covering the whole relation set

Removal is computed from the mapping alone, with the same naming rules, so it
drops exactly what the add statements created, in reverse dependency order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, ForeignKeyConstraint, Index, MetaData, Table, UniqueConstraint
from sqlalchemy.dialects import postgresql, registry, sqlite
from sqlalchemy.engine import Connection, Dialect, Engine
from sqlalchemy.exc import NoSuchModuleError
from sqlalchemy.schema import AddConstraint, CreateIndex, DropConstraint, DropIndex

from exclusivearc.core.naming import foreign_key_name, index_name
from exclusivearc.core.types import (
    CompiledConstraintSet,
    DDLKind,
    DDLStatement,
    OnDeleteActionType,
    PolymorphicMapping,
    Relation,
)
from exclusivearc.ddl.triggers import (
    TriggerRenderer,
    exclusivity_program,
    get_renderer,
    reference_program,
    referenced_program,
)
from exclusivearc.exceptions import UnsupportedMappingError

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ClauseElement

logger = logging.getLogger(__name__)

DialectLike = str | Dialect | Engine | Connection

_BUILTIN_DIALECTS = {
    "postgresql": postgresql.dialect,
    "postgres": postgresql.dialect,
    "sqlite": sqlite.dialect,
}

_ON_DELETE_SQL = {
    OnDeleteActionType.CASCADE: "CASCADE",
    OnDeleteActionType.RESTRICT: "RESTRICT",
    OnDeleteActionType.NO_ACTION: None,
}


def resolve_dialect(dialect: DialectLike, owner_table: str = "<unknown>") -> Dialect:
    """Resolve a dialect name, Dialect, Engine or Connection into a Dialect.

    Raises:
        UnsupportedMappingError: If the name is not a known SQLAlchemy dialect
    """
    if isinstance(dialect, Dialect):
        return dialect
    if isinstance(dialect, Engine | Connection):
        return dialect.dialect
    name = str(dialect).lower()
    if name in _BUILTIN_DIALECTS:
        return _BUILTIN_DIALECTS[name]()
    try:
        return registry.load(name)()
    except NoSuchModuleError as exc:
        raise UnsupportedMappingError(owner_table, "unknown SQL dialect", dialect=name) from exc


@dataclass(frozen=True)
class _RelationObjects:
    relation: Relation
    foreign_key: ForeignKeyConstraint
    index: Index | None


def _index_exists(table: Table | None, column: str) -> bool:
    """Whether an index whose leading column is ``column`` is already declared."""
    if table is None or column not in table.c:
        return False
    declared = table.c[column]
    if declared.index or declared.unique or declared.primary_key:
        return True
    for index in table.indexes:
        columns = list(index.columns)
        if columns and columns[0].name == column:
            return True
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            columns = list(constraint.columns)
            if columns and columns[0].name == column:
                return True
    return False


def _is_unique(table: Table, column: str) -> bool:
    declared = table.c[column]
    if declared.unique or [c.name for c in table.primary_key.columns] == [column]:
        return True
    for index in table.indexes:
        if index.unique and [c.name for c in index.columns] == [column]:
            return True
    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint) and [c.name for c in constraint.columns] == [
            column
        ]:
            return True
    return False


def _check_supported(
    mapping: PolymorphicMapping, dialect: Dialect, metadata: MetaData | None
) -> TriggerRenderer:
    renderer = get_renderer(dialect)
    if renderer is None:
        raise UnsupportedMappingError(
            mapping.owner_table,
            "no exclusivity trigger renderer for this dialect (supported: postgresql, sqlite)",
            dialect=dialect.name,
        )
    for relation in mapping.relations:
        if relation.on_delete == OnDeleteActionType.SET_NULL:
            raise UnsupportedMappingError(
                mapping.owner_table,
                f"'{relation.column}' uses ON DELETE SET NULL, which always leaves no active "
                "relation; use CASCADE, RESTRICT or NO_ACTION",
                dialect=dialect.name,
            )
        if metadata is None:
            continue
        remote = metadata.tables.get(relation.referenced_table)
        if remote is None:
            continue
        if relation.referenced_column not in remote.c:
            raise UnsupportedMappingError(
                mapping.owner_table,
                f"'{relation.referenced_table}.{relation.referenced_column}' does not exist",
                dialect=dialect.name,
            )
        if not _is_unique(remote, relation.referenced_column):
            raise UnsupportedMappingError(
                mapping.owner_table,
                f"'{relation.referenced_table}.{relation.referenced_column}' is neither a "
                "primary key nor unique, so it cannot be the target of a foreign key",
                dialect=dialect.name,
            )
    return renderer


def _stub_table(metadata: MetaData, name: str, *columns: str) -> Table:
    table = metadata.tables.get(name)
    if table is None:
        table = Table(name, metadata)
    for column in columns:
        if column not in table.c:
            table.append_column(Column(column))
    return table


def _build_objects(
    mapping: PolymorphicMapping, declared: MetaData | None
) -> tuple[Table, list[_RelationObjects]]:
    """Build throwaway SQLAlchemy schema objects mirroring the mapping."""
    metadata = MetaData()
    owner = Table(mapping.owner_table, metadata, Column(mapping.primary_key, primary_key=True))
    declared_owner = declared.tables.get(mapping.owner_table) if declared is not None else None
    objects = []
    for relation in mapping.relations:
        _stub_table(metadata, mapping.owner_table, relation.column)
        remote = _stub_table(metadata, relation.referenced_table, relation.referenced_column)
        foreign_key = ForeignKeyConstraint(
            [relation.column],
            [remote.c[relation.referenced_column]],
            name=foreign_key_name(
                mapping.owner_table, relation.column, mapping.options.foreign_key_name_prefix
            ),
            ondelete=_ON_DELETE_SQL[relation.on_delete],
        )
        owner.append_constraint(foreign_key)
        index = None
        if not _index_exists(declared_owner, relation.column):
            index = Index(
                index_name(mapping.owner_table, relation.column, mapping.options.index_name_prefix),
                owner.c[relation.column],
            )
        objects.append(_RelationObjects(relation=relation, foreign_key=foreign_key, index=index))
    return owner, objects


def _render(element: ClauseElement, dialect: Dialect) -> str:
    return str(element.compile(dialect=dialect)).strip()


def _foreign_key_statements(
    mapping: PolymorphicMapping,
    objects: _RelationObjects,
    dialect: Dialect,
    renderer: TriggerRenderer,
    *,
    drop: bool,
) -> list[DDLStatement]:
    name = str(objects.foreign_key.name)
    if dialect.name == "sqlite":
        # SQLite cannot ALTER TABLE ... ADD CONSTRAINT; emulate both sides with triggers
        owner_side = reference_program(mapping.owner_table, objects.relation, name)
        referenced_side = referenced_program(mapping.owner_table, objects.relation, name)
        if drop:
            return renderer.drop(referenced_side) + renderer.drop(owner_side)
        return renderer.create(owner_side) + renderer.create(referenced_side)
    element: Any = (
        DropConstraint(objects.foreign_key, if_exists=True)
        if drop
        else AddConstraint(objects.foreign_key)
    )
    return [
        DDLStatement(
            kind=DDLKind.FOREIGN_KEY,
            name=name,
            table=mapping.owner_table,
            sql=_render(element, dialect),
        )
    ]


def _index_statement(
    mapping: PolymorphicMapping, index: Index, dialect: Dialect, *, drop: bool
) -> DDLStatement:
    element: Any = DropIndex(index, if_exists=True) if drop else CreateIndex(index)
    return DDLStatement(
        kind=DDLKind.INDEX,
        name=str(index.name),
        table=mapping.owner_table,
        sql=_render(element, dialect),
    )


def compile_add(
    mapping: PolymorphicMapping,
    dialect: DialectLike = "postgresql",
    metadata: MetaData | None = None,
) -> list[DDLStatement]:
    """Compile the statements that materialize a mapping's constraints.

    Args:
        mapping: The polymorphic mapping
        dialect: Target dialect (name, Dialect, Engine or Connection)
        metadata: Optional declared schema; used to skip indexes that already
            exist on the owner table and to verify referenced columns

    Returns:
        Ordered statements: per relation a foreign key then an index, then
        the exclusivity trigger objects

    Raises:
        UnsupportedMappingError: If the constraints cannot be expressed
    """
    resolved = resolve_dialect(dialect, mapping.owner_table)
    renderer = _check_supported(mapping, resolved, metadata)
    _, objects = _build_objects(mapping, metadata)

    statements: list[DDLStatement] = []
    for item in objects:
        statements.extend(_foreign_key_statements(mapping, item, resolved, renderer, drop=False))
        if item.index is not None:
            statements.append(_index_statement(mapping, item.index, resolved, drop=False))
    statements.extend(renderer.create(exclusivity_program(mapping)))

    logger.debug(
        f"Compiled {len(statements)} add statements for {mapping.owner_table}.{mapping.role} "
        f"({resolved.name})"
    )
    return statements


def compile_remove(
    mapping: PolymorphicMapping,
    dialect: DialectLike = "postgresql",
    metadata: MetaData | None = None,
) -> list[DDLStatement]:
    """Compile the exact inverse of compile_add for the same arguments.

    Order: exclusivity trigger objects, then foreign keys, then indexes, each
    group in reverse declaration order. Drops are guarded with IF EXISTS.

    Raises:
        UnsupportedMappingError: If the constraints cannot be expressed
    """
    resolved = resolve_dialect(dialect, mapping.owner_table)
    renderer = _check_supported(mapping, resolved, metadata)
    _, objects = _build_objects(mapping, metadata)

    statements: list[DDLStatement] = list(renderer.drop(exclusivity_program(mapping)))
    for item in reversed(objects):
        statements.extend(_foreign_key_statements(mapping, item, resolved, renderer, drop=True))
    for item in reversed(objects):
        if item.index is not None:
            statements.append(_index_statement(mapping, item.index, resolved, drop=True))

    logger.debug(
        f"Compiled {len(statements)} remove statements for {mapping.owner_table}.{mapping.role} "
        f"({resolved.name})"
    )
    return statements


def compile_constraints(
    mapping: PolymorphicMapping,
    dialect: DialectLike = "postgresql",
    metadata: MetaData | None = None,
) -> CompiledConstraintSet:
    """Compile both directions for a mapping."""
    resolved = resolve_dialect(dialect, mapping.owner_table)
    return CompiledConstraintSet(
        dialect=resolved.name,
        add_statements=compile_add(mapping, resolved, metadata),
        remove_statements=compile_remove(mapping, resolved, metadata),
    )
