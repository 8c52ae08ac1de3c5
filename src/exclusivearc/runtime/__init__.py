"""Runtime resolution, access and validation of exclusive arcs."""

from exclusivearc.runtime.accessor import ExclusiveAssociation
from exclusivearc.runtime.interfaces import (
    AttributeReader,
    EntityStore,
    MappingReader,
    ObjectReader,
    SchemaExecutor,
    ValidationSink,
    as_reader,
)
from exclusivearc.runtime.resolver import ActiveKeyKind, ActiveKeyState, read_values, resolve
from exclusivearc.runtime.validator import ExclusivityValidator, ValidationResult

__all__ = [
    "ActiveKeyKind",
    "ActiveKeyState",
    "resolve",
    "read_values",
    "ExclusiveAssociation",
    "ExclusivityValidator",
    "ValidationResult",
    "AttributeReader",
    "EntityStore",
    "SchemaExecutor",
    "ValidationSink",
    "MappingReader",
    "ObjectReader",
    "as_reader",
]
