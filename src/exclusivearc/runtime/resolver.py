"""Active-key resolution.

The active key is derived from current column values on every call and never
cached, since any assignment to a relation column changes it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from exclusivearc.runtime.interfaces import AttributeReader

if TYPE_CHECKING:
    from exclusivearc.core.types import PolymorphicMapping


class ActiveKeyKind(StrEnum):
    """Possible states of an exclusive arc on one entity."""

    UNSET = "unset"  # No relation column set
    RESOLVED = "resolved"  # Exactly one set
    CONFLICT = "conflict"  # Two or more set


@dataclass(frozen=True)
class ActiveKeyState:
    """Result of resolving an entity's relation columns."""

    kind: ActiveKeyKind
    column: str | None = None
    columns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def unset(cls) -> ActiveKeyState:
        return cls(kind=ActiveKeyKind.UNSET)

    @classmethod
    def resolved(cls, column: str) -> ActiveKeyState:
        return cls(kind=ActiveKeyKind.RESOLVED, column=column, columns=frozenset({column}))

    @classmethod
    def conflict(cls, columns: set[str] | frozenset[str]) -> ActiveKeyState:
        return cls(kind=ActiveKeyKind.CONFLICT, columns=frozenset(columns))

    @property
    def is_unset(self) -> bool:
        return self.kind == ActiveKeyKind.UNSET

    @property
    def is_resolved(self) -> bool:
        return self.kind == ActiveKeyKind.RESOLVED

    @property
    def is_conflict(self) -> bool:
        return self.kind == ActiveKeyKind.CONFLICT

    def to_dict(self) -> dict[str, Any]:
        """Return state as JSON-serializable dict."""
        return {"kind": str(self.kind), "column": self.column, "columns": sorted(self.columns)}


def resolve(mapping: PolymorphicMapping, values: Mapping[str, Any] | None) -> ActiveKeyState:
    """Compute the active key state from a snapshot of column values.

    Total over its input: columns missing from ``values`` count as null,
    undeclared keys are ignored and a non-mapping snapshot is treated as empty.

    Args:
        mapping: The polymorphic mapping declaring the relation columns
        values: {column: value-or-None}

    Returns:
        Unset, Resolved(column) or Conflict(columns)
    """
    snapshot = values if isinstance(values, Mapping) else {}
    present = [column for column in mapping.columns if snapshot.get(column) is not None]
    if not present:
        return ActiveKeyState.unset()
    if len(present) == 1:
        return ActiveKeyState.resolved(present[0])
    return ActiveKeyState.conflict(set(present))


def read_values(mapping: PolymorphicMapping, reader: AttributeReader) -> dict[str, Any]:
    """Snapshot the declared relation columns through an attribute reader."""
    return {column: reader.current_value(column) for column in mapping.columns}
