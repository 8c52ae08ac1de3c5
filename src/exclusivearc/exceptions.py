"""Custom exceptions for exclusivearc.

Errors carry actionable messages plus a machine-readable context:
- Construction/compilation errors fail fast and name the offending declaration
- Runtime resolution never raises for unset or conflicting states
"""

from __future__ import annotations

from typing import Any


class ExclusiveArcError(Exception):
    """Base exception for all exclusivearc errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class InvalidMappingError(ExclusiveArcError):
    """A polymorphic mapping declaration is malformed."""

    def __init__(self, owner_table: str | None, problems: list[str]) -> None:
        where = f"'{owner_table}'" if owner_table else "<unknown table>"
        message = f"Invalid polymorphic mapping on {where}: {'; '.join(problems)}"
        super().__init__(message, {"owner_table": owner_table, "problems": problems})
        self.owner_table = owner_table
        self.problems = problems


class UnsupportedMappingError(ExclusiveArcError):
    """The mapping cannot be expressed on the target storage engine."""

    def __init__(self, owner_table: str, reason: str, dialect: str | None = None) -> None:
        suffix = f" (dialect: {dialect})" if dialect else ""
        message = f"Cannot compile constraints for '{owner_table}'{suffix}: {reason}"
        super().__init__(
            message, {"owner_table": owner_table, "reason": reason, "dialect": dialect}
        )
        self.owner_table = owner_table
        self.reason = reason
        self.dialect = dialect


class DanglingReferenceError(ExclusiveArcError):
    """The active foreign key points at a row that no longer exists."""

    def __init__(self, owner_table: str, column: str, referenced_table: str, value: Any) -> None:
        message = (
            f"'{owner_table}.{column}' = {value!r} references a missing row in "
            f"'{referenced_table}'. The foreign key constraint was bypassed; "
            f"check for raw deletes on '{referenced_table}'."
        )
        super().__init__(
            message,
            {
                "owner_table": owner_table,
                "column": column,
                "referenced_table": referenced_table,
                "value": value,
            },
        )
        self.owner_table = owner_table
        self.column = column
        self.referenced_table = referenced_table
        self.value = value


class ValidationError(ExclusiveArcError):
    """Application-level exclusivity validation failed."""

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message, {"field_errors": field_errors or {}})
        self.field_errors = field_errors or {}


class ExclusivityViolationError(ExclusiveArcError):
    """The database rejected a write through the generated exclusivity trigger."""

    def __init__(self, owner_table: str, role: str, original: BaseException) -> None:
        message = (
            f"Write to '{owner_table}' rejected: exactly one '{role}' relation must be set. "
            f"Database said: {original}"
        )
        super().__init__(message, {"owner_table": owner_table, "role": role})
        self.owner_table = owner_table
        self.role = role
        self.original = original
