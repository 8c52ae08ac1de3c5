"""Explicit registration of exclusive arcs per entity type.

An entity type holds its mappings here; accessors and validators are bound
per instance on demand instead of being mixed into the class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from exclusivearc.exceptions import ExclusiveArcError, InvalidMappingError
from exclusivearc.runtime.accessor import ExclusiveAssociation
from exclusivearc.runtime.validator import ExclusivityValidator, ValidationResult

if TYPE_CHECKING:
    from exclusivearc.core.types import PolymorphicMapping
    from exclusivearc.runtime.interfaces import EntityStore


class ArcRegistry:
    """Maps entity classes to their polymorphic mappings (keyed by role)."""

    def __init__(self) -> None:
        self._arcs: dict[type, dict[str, PolymorphicMapping]] = {}

    def register(self, entity_type: type, mapping: PolymorphicMapping) -> PolymorphicMapping:
        """Register a mapping for an entity class.

        Raises:
            InvalidMappingError: If the class already has an arc with this role
        """
        arcs = self._arcs.setdefault(entity_type, {})
        if mapping.role in arcs:
            raise InvalidMappingError(
                mapping.owner_table,
                [f"role '{mapping.role}' is already registered on {entity_type.__name__}"],
            )
        arcs[mapping.role] = mapping
        return mapping

    def mappings_for(self, entity: Any) -> list[PolymorphicMapping]:
        """All mappings registered for an instance's class or its bases."""
        entity_type = entity if isinstance(entity, type) else type(entity)
        found: dict[str, PolymorphicMapping] = {}
        for klass in entity_type.__mro__:
            for role, mapping in self._arcs.get(klass, {}).items():
                found.setdefault(role, mapping)
        return list(found.values())

    def is_registered(self, entity: Any) -> bool:
        return bool(self.mappings_for(entity))

    def mapping_for(self, entity: Any, role: str | None = None) -> PolymorphicMapping:
        """Return one mapping; ``role`` may be omitted when the type has a single arc."""
        mappings = self.mappings_for(entity)
        name = type(entity).__name__ if not isinstance(entity, type) else entity.__name__
        if role is None:
            if len(mappings) != 1:
                roles = ", ".join(m.role for m in mappings) or "none"
                raise ExclusiveArcError(
                    f"{name} has {len(mappings)} exclusive arcs; pass role= (registered: {roles})",
                    {"entity_type": name, "roles": [m.role for m in mappings]},
                )
            return mappings[0]
        for mapping in mappings:
            if mapping.role == role:
                return mapping
        raise ExclusiveArcError(
            f"No exclusive arc '{role}' registered on {name}",
            {"entity_type": name, "role": role},
        )

    def association(
        self, entity: Any, role: str | None = None, store: EntityStore | None = None
    ) -> ExclusiveAssociation:
        """Bind an accessor to an entity instance."""
        return ExclusiveAssociation(self.mapping_for(entity, role), entity, store)

    def validate(self, entity: Any) -> ValidationResult:
        """Validate every arc registered for the entity's type."""
        result = ValidationResult(valid=True)
        for mapping in self.mappings_for(entity):
            result = result.merge(ExclusivityValidator(mapping).validate(entity))
        return result
