"""SQLAlchemy ORM integration.

- ORMEntityStore loads referenced entities through a Session
- install_flush_validation runs exclusivity validation before each flush
- translate_violations turns trigger rejections into ExclusivityViolationError
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError

from exclusivearc.exceptions import ExclusiveArcError, ExclusivityViolationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from exclusivearc.core.types import PolymorphicMapping
    from exclusivearc.registry import ArcRegistry

logger = logging.getLogger(__name__)

# Marker present in every message raised by the generated exclusivity triggers
VIOLATION_MARKER = "exclusive arc violation"


class ORMEntityStore:
    """EntityStore resolving table names to mapped classes explicitly.

    Args:
        session: Session used for lookups (identity map first, then SELECT)
        models: {table_name: mapped class}
    """

    def __init__(self, session: Session, models: Mapping[str, type]) -> None:
        self._session = session
        self._models = dict(models)

    def fetch_by_id(self, table: str, id: Any) -> Any | None:
        model = self._models.get(table)
        if model is None:
            raise ExclusiveArcError(
                f"No mapped class registered for table '{table}'. "
                f"Registered tables: {', '.join(sorted(self._models)) or 'none'}",
                {"table": table, "registered_tables": sorted(self._models)},
            )
        return self._session.get(model, id)


def install_flush_validation(target: Any, registry: ArcRegistry) -> None:
    """Validate registered entities before every flush on ``target``.

    Args:
        target: Session class, sessionmaker or Session instance
        registry: Registry holding the entity mappings

    Raises (at flush time):
        ValidationError: If a new or dirty entity violates an exclusive arc
    """

    def _before_flush(session: Session, flush_context: Any, instances: Any) -> None:
        for entity in [*session.new, *session.dirty]:
            if not registry.is_registered(entity):
                continue
            result = registry.validate(entity)
            if not result.valid:
                logger.info(f"Blocking flush of {type(entity).__name__}: {result.errors}")
                result.raise_for_errors()

    event.listen(target, "before_flush", _before_flush)


def is_exclusivity_violation(error: BaseException) -> bool:
    """Whether a database error was raised by a generated exclusivity trigger."""
    original = getattr(error, "orig", None)
    return VIOLATION_MARKER in str(error) or (
        original is not None and VIOLATION_MARKER in str(original)
    )


@contextmanager
def translate_violations(mapping: PolymorphicMapping) -> Iterator[None]:
    """Re-raise trigger rejections for ``mapping`` as ExclusivityViolationError."""
    try:
        yield
    except DBAPIError as exc:
        if is_exclusivity_violation(exc):
            raise ExclusivityViolationError(mapping.owner_table, mapping.role, exc) from exc
        raise
