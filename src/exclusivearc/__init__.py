"""exclusivearc - exactly-one-of-N polymorphic foreign keys.

Instead of a loosely typed ``type`` + ``id`` pair, a table carries one
nullable foreign key column per possible target (``employee_id``,
``product_id``, ...). exclusivearc guarantees that exactly one of them is set:
at the database layer through generated foreign keys, indexes and an
exclusivity trigger, and at the application layer through an active-key
resolver, an association accessor and a validator.

Example:
    from exclusivearc import PolymorphicMapping, compile_add, ExclusiveAssociation

    mapping = PolymorphicMapping.from_declaration(
        "assignments",
        "assignee",
        {"employee_id": "employees.id", "product_id": "products.id"},
    )

    # Migration time: DDL for the host migration runner to execute
    for statement in compile_add(mapping, "postgresql"):
        print(statement.sql)

    # Runtime: which relation is active on an instance
    assoc = ExclusiveAssociation(mapping, {"employee_id": 1, "product_id": None})
    assoc.active_key()               # "employee_id"
    assoc.active_query_condition()   # {"employee_id": 1}
"""

from exclusivearc.core.types import (
    CompiledConstraintSet,
    DDLKind,
    DDLStatement,
    MappingOptions,
    OnDeleteActionType,
    PolymorphicMapping,
    Relation,
)
from exclusivearc.ddl import compile_add, compile_constraints, compile_remove
from exclusivearc.exceptions import (
    DanglingReferenceError,
    ExclusiveArcError,
    ExclusivityViolationError,
    InvalidMappingError,
    UnsupportedMappingError,
    ValidationError,
)
from exclusivearc.registry import ArcRegistry
from exclusivearc.runtime import (
    ActiveKeyKind,
    ActiveKeyState,
    AttributeReader,
    EntityStore,
    ExclusiveAssociation,
    ExclusivityValidator,
    SchemaExecutor,
    ValidationResult,
    ValidationSink,
    resolve,
)

__version__ = "0.1.0"

__all__ = [
    # Declarations
    "PolymorphicMapping",
    "Relation",
    "MappingOptions",
    "OnDeleteActionType",
    # DDL
    "DDLKind",
    "DDLStatement",
    "CompiledConstraintSet",
    "compile_add",
    "compile_remove",
    "compile_constraints",
    # Runtime
    "ActiveKeyKind",
    "ActiveKeyState",
    "resolve",
    "ExclusiveAssociation",
    "ExclusivityValidator",
    "ValidationResult",
    "ArcRegistry",
    # Collaborator interfaces
    "AttributeReader",
    "EntityStore",
    "SchemaExecutor",
    "ValidationSink",
    # Exceptions
    "ExclusiveArcError",
    "InvalidMappingError",
    "UnsupportedMappingError",
    "DanglingReferenceError",
    "ValidationError",
    "ExclusivityViolationError",
]
