"""DDL generation for exclusive arcs.

- compiler: foreign keys, indexes and the exclusivity trigger, add and remove
- triggers: dialect-neutral checks and their PostgreSQL/SQLite renderers
"""

from exclusivearc.ddl.compiler import (
    compile_add,
    compile_constraints,
    compile_remove,
    resolve_dialect,
)
from exclusivearc.ddl.triggers import (
    PostgreSQLTriggerRenderer,
    SQLiteTriggerRenderer,
    TriggerRenderer,
    exclusivity_program,
    get_renderer,
)

__all__ = [
    "compile_add",
    "compile_remove",
    "compile_constraints",
    "resolve_dialect",
    "TriggerRenderer",
    "PostgreSQLTriggerRenderer",
    "SQLiteTriggerRenderer",
    "exclusivity_program",
    "get_renderer",
]
