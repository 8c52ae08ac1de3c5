"""Applying compiled constraints to a live database."""

from exclusivearc.schema.migrations import (
    ConnectionExecutor,
    apply_statements,
    downgrade,
    upgrade,
)

__all__ = ["ConnectionExecutor", "apply_statements", "upgrade", "downgrade"]
