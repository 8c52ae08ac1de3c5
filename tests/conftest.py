"""Shared test fixtures for exclusivearc."""

import os
from collections.abc import Generator
from typing import Any

import pytest
from sqlalchemy import Column, Engine, Integer, MetaData, String, Table, create_engine

from exclusivearc import PolymorphicMapping


def _psycopg_available() -> bool:
    """Check if psycopg is installed."""
    try:
        import psycopg  # noqa: F401

        return True
    except ImportError:
        return False


def _postgresql_connectable(url: str) -> bool:
    """Check if we can connect to PostgreSQL."""
    if not _psycopg_available():
        return False
    try:
        engine = create_engine(url)
        with engine.connect():
            pass
        engine.dispose()
        return True
    except Exception:
        return False


def build_metadata() -> MetaData:
    """employees/products targets plus an assignments owner table without constraints."""
    metadata = MetaData()
    Table(
        "employees",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(100)),
    )
    Table(
        "products",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("sku", String(50)),
    )
    Table(
        "assignments",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("employee_id", Integer, nullable=True),
        Column("product_id", Integer, nullable=True),
        Column("note", String(200)),
    )
    return metadata


class FakeStore:
    """In-memory EntityStore keyed by (table, id)."""

    def __init__(self, rows: dict[tuple[str, Any], Any] | None = None) -> None:
        self.rows = rows or {}
        self.calls: list[tuple[str, Any]] = []

    def fetch_by_id(self, table: str, id: Any) -> Any | None:
        self.calls.append((table, id))
        return self.rows.get((table, id))


class ListSink:
    """ValidationSink collecting (name, message) pairs."""

    def __init__(self) -> None:
        self.errors: list[tuple[str, str]] = []

    def add_error(self, name: str, message: str) -> None:
        self.errors.append((name, message))


@pytest.fixture
def example_mapping() -> PolymorphicMapping:
    """assignments.assignee -> employees.id | products.id"""
    return PolymorphicMapping.from_declaration(
        "assignments",
        "assignee",
        {"employee_id": "employees.id", "product_id": "products.id"},
    )


@pytest.fixture
def unique_mapping() -> PolymorphicMapping:
    """Same as example_mapping, with uniqueness of the active target enforced."""
    return PolymorphicMapping.from_declaration(
        "assignments",
        "assignee",
        {"employee_id": "employees.id", "product_id": "products.id"},
        unique_across_columns=True,
    )


@pytest.fixture
def fake_store() -> FakeStore:
    """Store holding employee 1 and product 2."""
    return FakeStore(
        {
            ("employees", 1): {"id": 1, "name": "Ada"},
            ("products", 2): {"id": 2, "sku": "GADGET"},
        }
    )


@pytest.fixture
def list_sink() -> ListSink:
    return ListSink()


@pytest.fixture
def schema_metadata() -> MetaData:
    return build_metadata()


def _seed(engine: Engine, metadata: MetaData) -> None:
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(
            metadata.tables["employees"].insert(),
            [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}],
        )
        conn.execute(
            metadata.tables["products"].insert(),
            [{"id": 1, "sku": "WIDGET"}, {"id": 2, "sku": "GADGET"}],
        )


@pytest.fixture
def sqlite_engine(schema_metadata: MetaData) -> Generator[Engine, None, None]:
    """In-memory SQLite with seeded employees (1, 2) and products (1, 2)."""
    engine = create_engine("sqlite:///:memory:")
    _seed(engine, schema_metadata)
    yield engine
    engine.dispose()


@pytest.fixture
def postgresql_url() -> str:
    """Get PostgreSQL URL from environment or use default."""
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        url = "postgresql+psycopg://localhost/exclusivearc_test"

    if not _psycopg_available():
        pytest.skip("psycopg not installed")

    if not _postgresql_connectable(url):
        pytest.skip(f"Cannot connect to PostgreSQL at {url}")

    return url


def _drop_postgresql_tables(engine: Engine) -> None:
    with engine.begin() as conn:
        for table in ("assignments", "employees", "products"):
            conn.exec_driver_sql(f'DROP TABLE IF EXISTS "{table}" CASCADE')
        conn.exec_driver_sql("DROP FUNCTION IF EXISTS exclusive_assignments_assignee() CASCADE")


@pytest.fixture
def pg_engine(postgresql_url: str, schema_metadata: MetaData) -> Generator[Engine, None, None]:
    """PostgreSQL engine with seeded tables, dropped afterwards."""
    engine = create_engine(postgresql_url)
    _drop_postgresql_tables(engine)
    _seed(engine, schema_metadata)
    yield engine
    _drop_postgresql_tables(engine)
    engine.dispose()

