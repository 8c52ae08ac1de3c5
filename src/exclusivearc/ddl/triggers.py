"""Exclusivity trigger generation.

Checks are described by a small dialect-neutral intermediate form (count of
non-null columns, active-value uniqueness, reference existence) and turned
into procedural SQL by a renderer per target dialect. All checks run on the
final row image, before the write, for inserts and updates alike.

Where a dialect cannot add a foreign key to an existing table, the key is
emulated by a reference check on the owner table plus a referenced-row guard
on the target table that applies the declared on_delete action.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exclusivearc.core.naming import exclusivity_name, truncate_name
from exclusivearc.core.types import (
    DDLKind,
    DDLStatement,
    OnDeleteActionType,
    PolymorphicMapping,
    Relation,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect


@dataclass(frozen=True)
class ExclusivityCheck:
    """Abort unless exactly one of ``columns`` is non-null."""

    columns: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class ActiveValueUniqueCheck:
    """Abort if another row already holds the value of the active column."""

    primary_key: str
    columns: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class ReferenceCheck:
    """Abort if a non-null column has no matching row in the referenced table."""

    column: str
    referenced_table: str
    referenced_column: str
    message: str


@dataclass(frozen=True)
class ReferencedRowCheck:
    """Guard a referenced row that owner rows still point at.

    Deleting it either cascades to the owner rows or aborts; changing its key
    always aborts.
    """

    owner_table: str
    column: str
    referenced_column: str
    cascade: bool
    message: str


Check = ExclusivityCheck | ActiveValueUniqueCheck | ReferenceCheck | ReferencedRowCheck


@dataclass(frozen=True)
class TriggerProgram:
    """A named before-write procedure on one table, made of ordered checks."""

    name: str
    table: str
    kind: DDLKind = DDLKind.TRIGGER
    checks: tuple[Check, ...] = field(default_factory=tuple)


def exclusivity_program(mapping: PolymorphicMapping) -> TriggerProgram:
    """Build the single exclusivity program covering a mapping's relation set."""
    columns = tuple(mapping.columns)
    column_list = ", ".join(columns)
    checks: list[Check] = [
        ExclusivityCheck(
            columns=columns,
            message=(
                f"exclusive arc violation on {mapping.owner_table}.{mapping.role}, "
                f"exactly one of ({column_list}) must be non-null"
            ),
        )
    ]
    if mapping.options.unique_across_columns:
        checks.append(
            ActiveValueUniqueCheck(
                primary_key=mapping.primary_key,
                columns=columns,
                message=(
                    f"exclusive arc violation on {mapping.owner_table}.{mapping.role}, "
                    f"another row already references the same target via ({column_list})"
                ),
            )
        )
    return TriggerProgram(
        name=exclusivity_name(mapping.owner_table, mapping.role),
        table=mapping.owner_table,
        checks=tuple(checks),
    )


def reference_program(table: str, relation: Relation, name: str) -> TriggerProgram:
    """Build a referencing-side foreign key emulation for engines without ALTER ... ADD FK."""
    check = ReferenceCheck(
        column=relation.column,
        referenced_table=relation.referenced_table,
        referenced_column=relation.referenced_column,
        message=(
            f"foreign key violation on {table}.{relation.column}, no matching row in "
            f"{relation.referenced_table}.{relation.referenced_column}"
        ),
    )
    return TriggerProgram(name=name, table=table, kind=DDLKind.FOREIGN_KEY, checks=(check,))


def referenced_program(table: str, relation: Relation, name: str) -> TriggerProgram:
    """Build the referenced-side half of a foreign key emulation, honouring on_delete."""
    check = ReferencedRowCheck(
        owner_table=table,
        column=relation.column,
        referenced_column=relation.referenced_column,
        cascade=relation.on_delete == OnDeleteActionType.CASCADE,
        message=(
            f"foreign key violation on {table}.{relation.column}, "
            f"{relation.referenced_table}.{relation.referenced_column} is still referenced"
        ),
    )
    return TriggerProgram(
        name=name, table=relation.referenced_table, kind=DDLKind.FOREIGN_KEY, checks=(check,)
    )


class TriggerRenderer(ABC):
    """Renders trigger programs into dialect-specific DDL."""

    dialect_name: str = ""

    def __init__(self, dialect: Dialect) -> None:
        self._preparer = dialect.identifier_preparer

    def quote(self, identifier: str) -> str:
        """Quote an identifier for the target dialect."""
        return self._preparer.quote_identifier(identifier)

    @staticmethod
    def literal(text: str) -> str:
        """Render a SQL string literal."""
        return "'" + text.replace("'", "''") + "'"

    def new(self, column: str) -> str:
        return f"NEW.{self.quote(column)}"

    def non_null_count(self, columns: tuple[str, ...]) -> str:
        terms = [f"CASE WHEN {self.new(c)} IS NULL THEN 0 ELSE 1 END" for c in columns]
        return "(" + " + ".join(terms) + ")"

    def other_row_holds(self, table: str, primary_key: str, column: str, distinct_op: str) -> str:
        qt, qc, qpk = self.quote(table), self.quote(column), self.quote(primary_key)
        return (
            f"{self.new(column)} IS NOT NULL AND EXISTS ("
            f"SELECT 1 FROM {qt} WHERE {qt}.{qc} = {self.new(column)} "
            f"AND {qt}.{qpk} {distinct_op} {self.new(primary_key)})"
        )

    def target_missing(self, check: ReferenceCheck) -> str:
        ref, refcol = self.quote(check.referenced_table), self.quote(check.referenced_column)
        return (
            f"{self.new(check.column)} IS NOT NULL AND NOT EXISTS ("
            f"SELECT 1 FROM {ref} WHERE {ref}.{refcol} = {self.new(check.column)})"
        )

    @abstractmethod
    def create(self, program: TriggerProgram) -> list[DDLStatement]:
        """Statements creating the program, in execution order."""

    @abstractmethod
    def drop(self, program: TriggerProgram) -> list[DDLStatement]:
        """Statements dropping the program, in execution order."""


class PostgreSQLTriggerRenderer(TriggerRenderer):
    """PL/pgSQL function plus one BEFORE INSERT OR UPDATE row trigger."""

    dialect_name = "postgresql"

    def _raise(self, errcode: str, message: str) -> str:
        # USING MESSAGE avoids '%' placeholders in the format string
        return (
            f"RAISE EXCEPTION USING ERRCODE = {self.literal(errcode)}, "
            f"MESSAGE = {self.literal(message)};"
        )

    def _body(self, program: TriggerProgram) -> list[str]:
        lines: list[str] = []
        for check in program.checks:
            if isinstance(check, ExclusivityCheck):
                lines.append(f"    IF {self.non_null_count(check.columns)} <> 1 THEN")
                lines.append(f"        {self._raise('check_violation', check.message)}")
                lines.append("    END IF;")
            elif isinstance(check, ActiveValueUniqueCheck):
                for column in check.columns:
                    condition = self.other_row_holds(
                        program.table, check.primary_key, column, "IS DISTINCT FROM"
                    )
                    lines.append(f"    IF {condition} THEN")
                    lines.append(f"        {self._raise('unique_violation', check.message)}")
                    lines.append("    END IF;")
            elif isinstance(check, ReferenceCheck):
                lines.append(f"    IF {self.target_missing(check)} THEN")
                lines.append(f"        {self._raise('foreign_key_violation', check.message)}")
                lines.append("    END IF;")
            else:
                # Native foreign keys cover the referenced side here
                raise TypeError(f"{type(check).__name__} is not rendered for PostgreSQL")
        return lines

    def create(self, program: TriggerProgram) -> list[DDLStatement]:
        function = self.quote(program.name)
        body = "\n".join(self._body(program))
        function_sql = (
            f"CREATE FUNCTION {function}() RETURNS trigger AS $$\n"
            f"BEGIN\n{body}\n    RETURN NEW;\nEND;\n$$ LANGUAGE plpgsql"
        )
        trigger_sql = (
            f"CREATE TRIGGER {self.quote(program.name)} "
            f"BEFORE INSERT OR UPDATE ON {self.quote(program.table)} "
            f"FOR EACH ROW EXECUTE FUNCTION {function}()"
        )
        return [
            DDLStatement(
                kind=DDLKind.FUNCTION, name=program.name, table=program.table, sql=function_sql
            ),
            DDLStatement(kind=program.kind, name=program.name, table=program.table, sql=trigger_sql),
        ]

    def drop(self, program: TriggerProgram) -> list[DDLStatement]:
        return [
            DDLStatement(
                kind=program.kind,
                name=program.name,
                table=program.table,
                sql=(
                    f"DROP TRIGGER IF EXISTS {self.quote(program.name)} "
                    f"ON {self.quote(program.table)}"
                ),
            ),
            DDLStatement(
                kind=DDLKind.FUNCTION,
                name=program.name,
                table=program.table,
                sql=f"DROP FUNCTION IF EXISTS {self.quote(program.name)}()",
            ),
        ]


class SQLiteTriggerRenderer(TriggerRenderer):
    """Row checks as separate BEFORE INSERT and BEFORE UPDATE triggers using
    RAISE(ABORT); referenced-row guards as DELETE and key UPDATE triggers on
    the referenced table."""

    dialect_name = "sqlite"
    events = (("insert", "INSERT"), ("update", "UPDATE"))
    referenced_events = ("delete", "rekey")

    def trigger_name(self, program: TriggerProgram, suffix: str) -> str:
        return truncate_name(f"{program.name}_{suffix}")

    @staticmethod
    def _guards_referenced_row(program: TriggerProgram) -> bool:
        return any(isinstance(check, ReferencedRowCheck) for check in program.checks)

    def _abort(self, message: str, condition: str) -> str:
        return f"    SELECT RAISE(ABORT, {self.literal(message)}) WHERE {condition};"

    def _body(self, program: TriggerProgram) -> list[str]:
        lines: list[str] = []
        for check in program.checks:
            if isinstance(check, ExclusivityCheck):
                conditions = [f"{self.non_null_count(check.columns)} <> 1"]
            elif isinstance(check, ActiveValueUniqueCheck):
                conditions = [
                    self.other_row_holds(program.table, check.primary_key, column, "IS NOT")
                    for column in check.columns
                ]
            elif isinstance(check, ReferenceCheck):
                conditions = [self.target_missing(check)]
            else:
                raise TypeError(f"{type(check).__name__} is not a row check")
            lines.extend(self._abort(check.message, condition) for condition in conditions)
        return lines

    def _referenced_definitions(self, program: TriggerProgram) -> list[tuple[str, str]]:
        (check,) = program.checks
        table = self.quote(program.table)
        owner, column = self.quote(check.owner_table), self.quote(check.column)
        key = self.quote(check.referenced_column)
        matches = f"{owner}.{column} = OLD.{key}"
        abort = self._abort(check.message, f"EXISTS (SELECT 1 FROM {owner} WHERE {matches})")
        if check.cascade:
            on_delete = (
                f"AFTER DELETE ON {table}\nFOR EACH ROW\nBEGIN\n"
                f"    DELETE FROM {owner} WHERE {matches};\nEND"
            )
        else:
            on_delete = f"BEFORE DELETE ON {table}\nFOR EACH ROW\nBEGIN\n{abort}\nEND"
        on_rekey = (
            f"BEFORE UPDATE OF {key} ON {table}\n"
            f"FOR EACH ROW WHEN NEW.{key} IS NOT OLD.{key}\nBEGIN\n{abort}\nEND"
        )
        return list(zip(self.referenced_events, (on_delete, on_rekey), strict=True))

    def _definitions(self, program: TriggerProgram) -> list[tuple[str, str]]:
        if self._guards_referenced_row(program):
            return self._referenced_definitions(program)
        body = "\n".join(self._body(program))
        table = self.quote(program.table)
        return [
            (suffix, f"BEFORE {event} ON {table}\nFOR EACH ROW\nBEGIN\n{body}\nEND")
            for suffix, event in self.events
        ]

    def create(self, program: TriggerProgram) -> list[DDLStatement]:
        statements = []
        for suffix, definition in self._definitions(program):
            name = self.trigger_name(program, suffix)
            statements.append(
                DDLStatement(
                    kind=program.kind,
                    name=name,
                    table=program.table,
                    sql=f"CREATE TRIGGER {self.quote(name)} {definition}",
                )
            )
        return statements

    def drop(self, program: TriggerProgram) -> list[DDLStatement]:
        if self._guards_referenced_row(program):
            suffixes = list(self.referenced_events)
        else:
            suffixes = [suffix for suffix, _ in self.events]
        statements = []
        for suffix in reversed(suffixes):
            name = self.trigger_name(program, suffix)
            statements.append(
                DDLStatement(
                    kind=program.kind,
                    name=name,
                    table=program.table,
                    sql=f"DROP TRIGGER IF EXISTS {self.quote(name)}",
                )
            )
        return statements


RENDERERS: dict[str, type[TriggerRenderer]] = {
    PostgreSQLTriggerRenderer.dialect_name: PostgreSQLTriggerRenderer,
    SQLiteTriggerRenderer.dialect_name: SQLiteTriggerRenderer,
}


def get_renderer(dialect: Dialect) -> TriggerRenderer | None:
    """Return the trigger renderer for a dialect, or None if it has none."""
    renderer_cls = RENDERERS.get(dialect.name)
    return renderer_cls(dialect) if renderer_cls else None
