"""Core types for exclusivearc.

Declarations (mappings) and compiler output are immutable pydantic models,
JSON-serializable so they can be loaded from files and printed by the CLI.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from exclusivearc.core.naming import singularize
from exclusivearc.exceptions import InvalidMappingError


class OnDeleteActionType(StrEnum):
    """Referential actions when a referenced row is deleted."""

    CASCADE = "CASCADE"  # Delete the owning row as well
    RESTRICT = "RESTRICT"  # Prevent deletion while referenced
    NO_ACTION = "NO_ACTION"  # Database default
    SET_NULL = "SET_NULL"  # Never valid for an exclusive arc, rejected at compile time

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid on_delete action values."""
        return [a.value for a in cls]


class DDLKind(StrEnum):
    """Kinds of database objects the compiler creates or drops."""

    FOREIGN_KEY = "foreign_key"
    INDEX = "index"
    FUNCTION = "function"
    TRIGGER = "trigger"


class Relation(BaseModel):
    """One candidate target of a polymorphic relation."""

    column: str = Field(..., description="Nullable FK column on the owner table")
    referenced_table: str = Field(..., description="Table the column points at")
    referenced_column: str = Field(default="id", description="Referenced (unique) column")
    name: str | None = Field(
        default=None, description="Short relation name (defaults to singular table name)"
    )
    on_delete: OnDeleteActionType = Field(
        default=OnDeleteActionType.NO_ACTION, description="Action when the target is deleted"
    )

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def short_name(self) -> str:
        """Human-facing relation name, e.g. 'employee' for 'employees'."""
        return self.name or singularize(self.referenced_table)


class MappingOptions(BaseModel):
    """Options controlling generated object names and extra enforcement."""

    unique_across_columns: bool = Field(
        default=False, description="Reject two rows pointing at the same active target"
    )
    index_name_prefix: str | None = None
    foreign_key_name_prefix: str | None = None

    model_config = {"frozen": True, "extra": "forbid"}


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _format_pydantic_error(error: Any) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else str(error["msg"])


def _relation_names(relations: tuple[Relation, ...]) -> list[str]:
    """Short names in order; unnamed relations sharing a target table fall back
    to their column name without the ``_id`` suffix (author_id -> author)."""
    derived = [relation.short_name for relation in relations]
    names = []
    for relation, name in zip(relations, derived, strict=True):
        if not relation.name and derived.count(name) > 1:
            name = relation.column.removesuffix("_id")
        names.append(name)
    return names


class PolymorphicMapping(BaseModel):
    """Declaration of an exclusive polymorphic relation.

    The owner table carries one nullable foreign key column per relation and
    exactly one of them must be non-null for every persisted row. Relation
    order is declaration order; it drives helper lists and generated DDL
    order, never resolution precedence.

    Example:
        mapping = PolymorphicMapping.from_declaration(
            "assignments",
            "assignee",
            {"employee_id": "employees.id", "product_id": "products.id"},
        )
    """

    owner_table: str
    role: str
    relations: tuple[Relation, ...]
    options: MappingOptions = Field(default_factory=MappingOptions)
    primary_key: str = "id"

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode="wrap")
    @classmethod
    def _as_invalid_mapping(cls, data: Any, handler: Any) -> PolymorphicMapping:
        # Covers __init__, model_validate and model_validate_json alike
        try:
            return handler(data)
        except PydanticValidationError as exc:
            owner = data.get("owner_table") if isinstance(data, dict) else None
            raise InvalidMappingError(
                owner if isinstance(owner, str) else None,
                [_format_pydantic_error(err) for err in exc.errors()],
            ) from exc

    @model_validator(mode="after")
    def _check_shape(self) -> PolymorphicMapping:
        problems = self._shape_problems()
        if problems:
            raise InvalidMappingError(self.owner_table, problems)
        return self

    def _shape_problems(self) -> list[str]:
        problems: list[str] = []
        if _blank(self.owner_table):
            problems.append("owner_table must not be blank")
        if _blank(self.role):
            problems.append("role must not be blank")
        if _blank(self.primary_key):
            problems.append("primary_key must not be blank")

        if len(self.relations) < 2:
            problems.append(
                f"at least 2 relations are required, got {len(self.relations)}"
            )
            if self.options.unique_across_columns:
                problems.append("unique_across_columns needs at least 2 relations")

        seen_columns: set[str] = set()
        seen_names: set[str] = set()
        names = _relation_names(self.relations)
        for position, relation in enumerate(self.relations):
            label = f"relations[{position}]"
            if _blank(relation.column):
                problems.append(f"{label}.column must not be blank")
            if _blank(relation.referenced_table):
                problems.append(f"{label}.referenced_table must not be blank")
            if _blank(relation.referenced_column):
                problems.append(f"{label}.referenced_column must not be blank")
            if relation.name is not None and _blank(relation.name):
                problems.append(f"{label}.name must not be blank when given")

            if relation.column in seen_columns:
                problems.append(f"duplicate column '{relation.column}'")
            seen_columns.add(relation.column)

            name = names[position]
            if not _blank(name):
                if name in seen_names:
                    problems.append(
                        f"duplicate relation name '{name}'; "
                        "set an explicit name on one of the relations"
                    )
                seen_names.add(name)

            if relation.column == self.primary_key:
                problems.append(
                    f"column '{relation.column}' is the primary key of '{self.owner_table}'"
                )
        return problems

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PolymorphicMapping:
        """Build a mapping from a JSON-style dict, always raising InvalidMappingError."""
        if not isinstance(data, dict):
            raise InvalidMappingError(None, ["mapping document must be a JSON object"])
        return cls(**data)

    @classmethod
    def from_declaration(
        cls,
        owner_table: str,
        role: str,
        targets: dict[str, str],
        *,
        primary_key: str = "id",
        names: dict[str, str] | None = None,
        **options: Any,
    ) -> PolymorphicMapping:
        """Build a mapping from the compact {column: "table[.column]"} form.

        Args:
            owner_table: Table bearing the exclusive columns
            role: Polymorphic role name (e.g. "assignee")
            targets: Ordered {column: "referenced_table.referenced_column"};
                the referenced column defaults to "id"
            primary_key: Owner table primary key column
            names: Optional {column: relation name} overriding derived names
            **options: MappingOptions fields

        Returns:
            The validated mapping
        """
        relations = []
        for column, target in targets.items():
            table, _, referenced_column = str(target).partition(".")
            relations.append(
                {
                    "column": column,
                    "referenced_table": table,
                    "referenced_column": referenced_column or "id",
                    "name": (names or {}).get(column),
                }
            )
        return cls(
            owner_table=owner_table,
            role=role,
            relations=relations,
            options=options,
            primary_key=primary_key,
        )

    @property
    def columns(self) -> list[str]:
        """Declared foreign key column names in declaration order."""
        return [relation.column for relation in self.relations]

    @property
    def relation_names(self) -> list[str]:
        """Short relation names in declaration order."""
        return _relation_names(self.relations)

    def relation_for(self, column: str) -> Relation:
        """Return the relation declared for a column.

        Raises:
            KeyError: If the column is not part of this mapping
        """
        for relation in self.relations:
            if relation.column == column:
                return relation
        raise KeyError(column)


class DDLStatement(BaseModel):
    """A single schema statement produced by the compiler."""

    kind: DDLKind
    name: str
    table: str
    sql: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return self.sql


class CompiledConstraintSet(BaseModel):
    """Add statements and their exact structural inverse for one mapping."""

    dialect: str
    add_statements: list[DDLStatement] = Field(default_factory=list)
    remove_statements: list[DDLStatement] = Field(default_factory=list)
