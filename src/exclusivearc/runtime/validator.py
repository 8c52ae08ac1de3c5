"""Application-level exclusivity validation.

A courtesy check run before writes for better error messages; the generated
database trigger stays the authoritative enforcement.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from exclusivearc.exceptions import ValidationError
from exclusivearc.runtime.interfaces import as_reader
from exclusivearc.runtime.resolver import ActiveKeyState, read_values, resolve

if TYPE_CHECKING:
    from exclusivearc.core.types import PolymorphicMapping
    from exclusivearc.runtime.interfaces import ValidationSink


@dataclass
class ValidationResult:
    """Outcome of validating one or more exclusive arcs on an entity."""

    valid: bool
    """Whether every arc has exactly one relation set."""

    state: ActiveKeyState | None = None
    """Resolved state (single-arc validation only)."""

    errors: dict[str, list[str]] = field(default_factory=dict)
    """Messages keyed by polymorphic role name."""

    def merge(self, other: ValidationResult) -> ValidationResult:
        errors = {name: list(messages) for name, messages in self.errors.items()}
        for name, messages in other.errors.items():
            errors.setdefault(name, []).extend(messages)
        return ValidationResult(valid=self.valid and other.valid, errors=errors)

    def raise_for_errors(self) -> None:
        """Raise ValidationError if the result is not valid."""
        if self.valid:
            return
        field_errors = {name: "; ".join(messages) for name, messages in self.errors.items()}
        raise ValidationError(
            "Exclusive relation validation failed: " + "; ".join(field_errors.values()),
            field_errors,
        )


class ExclusivityValidator:
    """Validates that exactly one relation of a mapping is present."""

    def __init__(self, mapping: PolymorphicMapping) -> None:
        self.mapping = mapping

    def message_for(self, state: ActiveKeyState) -> str:
        names = ", ".join(self.mapping.relation_names)
        message = f"exactly one of {names} must be present for {self.mapping.role}"
        if state.is_conflict:
            set_columns = ", ".join(c for c in self.mapping.columns if c in state.columns)
            message += f" (got {set_columns})"
        return message

    def validate(self, source: Mapping[str, Any] | Any) -> ValidationResult:
        """Validate a value snapshot, an entity or an AttributeReader.

        Returns:
            A valid result when resolved, otherwise one error on the role name
        """
        state = resolve(self.mapping, read_values(self.mapping, as_reader(source)))
        if state.is_resolved:
            return ValidationResult(valid=True, state=state)
        return ValidationResult(
            valid=False,
            state=state,
            errors={self.mapping.role: [self.message_for(state)]},
        )

    def validate_into(self, source: Mapping[str, Any] | Any, sink: ValidationSink) -> ValidationResult:
        """Validate and record any failure into a host validation sink."""
        result = self.validate(source)
        for name, messages in result.errors.items():
            for message in messages:
                sink.add_error(name, message)
        return result
