"""Core components for exclusivearc."""

from exclusivearc.core.types import (
    CompiledConstraintSet,
    DDLKind,
    DDLStatement,
    MappingOptions,
    OnDeleteActionType,
    PolymorphicMapping,
    Relation,
)

__all__ = [
    "PolymorphicMapping",
    "Relation",
    "MappingOptions",
    "OnDeleteActionType",
    "DDLKind",
    "DDLStatement",
    "CompiledConstraintSet",
]
