"""CLI context management for database connections and shared state."""

import os
from dataclasses import dataclass, field

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

DEFAULT_DIALECT = "postgresql"


def get_database_url(url: str | None) -> str | None:
    """Resolve database URL from CLI arg or environment variable.

    Priority:
    1. Explicit URL argument
    2. EXCLUSIVEARC_URL environment variable
    """
    if url:
        return url
    return os.getenv("EXCLUSIVEARC_URL") or None


def get_dialect_name(dialect: str | None, database_url: str | None) -> str:
    """Resolve the target dialect for compiled DDL.

    Priority:
    1. Explicit --dialect argument
    2. EXCLUSIVEARC_DIALECT environment variable
    3. Backend of the database URL (e.g. "sqlite" for sqlite:///app.db)
    4. Default: postgresql
    """
    if dialect:
        return dialect
    if env_dialect := os.getenv("EXCLUSIVEARC_DIALECT"):
        return env_dialect
    if database_url:
        return make_url(database_url).get_backend_name()
    return DEFAULT_DIALECT


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages engine lifecycle and output preferences.
    """

    database_url: str | None
    dialect: str
    json_output: bool
    echo: bool = False
    _engine: Engine | None = field(default=None, init=False, repr=False)

    def get_engine(self) -> Engine:
        """Get or create the engine (lazy initialization).

        Raises:
            ValueError: If no database URL was configured
        """
        if self.database_url is None:
            raise ValueError(
                "No database URL configured. Pass --database or set EXCLUSIVEARC_URL."
            )
        if self._engine is None:
            self._engine = create_engine(self.database_url, echo=self.echo)
        return self._engine

    def close(self) -> None:
        """Dispose the engine if open."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
