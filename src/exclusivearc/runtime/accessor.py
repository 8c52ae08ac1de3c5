"""Read-only access to the active side of an exclusive arc on one entity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from exclusivearc.exceptions import DanglingReferenceError, ExclusiveArcError
from exclusivearc.runtime.interfaces import as_reader
from exclusivearc.runtime.resolver import ActiveKeyState, read_values, resolve

if TYPE_CHECKING:
    from exclusivearc.core.types import PolymorphicMapping, Relation
    from exclusivearc.runtime.interfaces import AttributeReader, EntityStore

logger = logging.getLogger(__name__)


class ExclusiveAssociation:
    """Projects an entity's relation columns through its mapping.

    Every call re-reads current attribute values; nothing is cached, so the
    accessor can be kept on an instance across mutations.

    Example:
        assoc = ExclusiveAssociation(mapping, assignment, store)
        assoc.active_key()               # "employee_id"
        assoc.active_query_condition()   # {"employee_id": 1}
        assoc.active_association()       # <Employee 1>
    """

    def __init__(
        self,
        mapping: PolymorphicMapping,
        source: AttributeReader | Any,
        store: EntityStore | None = None,
    ) -> None:
        """Initialize the accessor.

        Args:
            mapping: The polymorphic mapping
            source: Entity, dict snapshot or AttributeReader
            store: Entity store used by active_association()
        """
        self.mapping = mapping
        self._reader = as_reader(source)
        self._store = store

    def values(self) -> dict[str, Any]:
        return read_values(self.mapping, self._reader)

    def state(self) -> ActiveKeyState:
        """Resolve the current active key state."""
        return resolve(self.mapping, self.values())

    def active_key(self) -> str | None:
        """Column name of the active relation, or None if unset or conflicting."""
        return self.state().column

    def active_relation(self) -> Relation | None:
        key = self.active_key()
        return self.mapping.relation_for(key) if key is not None else None

    def active_query_condition(self) -> dict[str, Any]:
        """Single-entry filter {active_column: value}, or {} when not resolved."""
        values = self.values()
        state = resolve(self.mapping, values)
        if state.column is None:
            return {}
        return {state.column: values[state.column]}

    def active_association(self) -> Any | None:
        """Fetch the entity the active key points at.

        Returns:
            The referenced entity, or None when the arc is unset or conflicting

        Raises:
            DanglingReferenceError: If the store cannot find the referenced row
            ExclusiveArcError: If no entity store was provided
        """
        values = self.values()
        state = resolve(self.mapping, values)
        if state.column is None:
            return None
        if self._store is None:
            raise ExclusiveArcError(
                f"No entity store bound for '{self.mapping.owner_table}.{self.mapping.role}'; "
                "pass store= to load the active association.",
                {"owner_table": self.mapping.owner_table, "role": self.mapping.role},
            )

        relation = self.mapping.relation_for(state.column)
        value = values[state.column]
        entity = self._store.fetch_by_id(relation.referenced_table, value)
        if entity is None:
            logger.error(
                f"Dangling reference {self.mapping.owner_table}.{relation.column}={value!r} "
                f"-> {relation.referenced_table}.{relation.referenced_column}"
            )
            raise DanglingReferenceError(
                self.mapping.owner_table, relation.column, relation.referenced_table, value
            )
        return entity

    def declared_keys(self) -> list[str]:
        """Declared foreign key columns in declaration order."""
        return self.mapping.columns

    def declared_relation_names(self) -> list[str]:
        """Short relation names in declaration order, followed by the role name."""
        return [*self.mapping.relation_names, self.mapping.role]
