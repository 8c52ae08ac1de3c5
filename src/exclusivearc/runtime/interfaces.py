"""Collaborator interfaces consumed by the runtime components.

Hosts plug in their own persistence by implementing these protocols; the
adapters below cover plain dicts and plain objects.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from exclusivearc.core.types import DDLStatement


@runtime_checkable
class AttributeReader(Protocol):
    """Reads the current (possibly unsaved) value of an entity column."""

    def current_value(self, column: str) -> Any: ...


@runtime_checkable
class EntityStore(Protocol):
    """Loads a referenced entity by primary key; returns None when not found."""

    def fetch_by_id(self, table: str, id: Any) -> Any | None: ...


@runtime_checkable
class SchemaExecutor(Protocol):
    """Executes one DDL statement inside a transaction owned by the host."""

    def execute(self, statement: DDLStatement) -> None: ...


@runtime_checkable
class ValidationSink(Protocol):
    """Records a validation failure against a name (the polymorphic role)."""

    def add_error(self, name: str, message: str) -> None: ...


class MappingReader:
    """AttributeReader over a dict-like snapshot; missing keys read as None."""

    def __init__(self, values: Mapping[str, Any] | None) -> None:
        self._values = values if isinstance(values, Mapping) else {}

    def current_value(self, column: str) -> Any:
        return self._values.get(column)


class ObjectReader:
    """AttributeReader over any object's attributes; missing attributes read as None."""

    def __init__(self, entity: Any) -> None:
        self._entity = entity

    def current_value(self, column: str) -> Any:
        return getattr(self._entity, column, None)


def as_reader(source: Any) -> AttributeReader:
    """Adapt a dict, an AttributeReader or an entity object into an AttributeReader."""
    if source is None or isinstance(source, Mapping):
        return MappingReader(source)
    if isinstance(source, AttributeReader):
        return source
    return ObjectReader(source)
