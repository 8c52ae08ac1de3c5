"""Integration tests against PostgreSQL.

Skipped unless psycopg is installed and TEST_DATABASE_URL (or the default
local database) is reachable.
"""

import pytest
from sqlalchemy import Engine, MetaData, update
from sqlalchemy.exc import DBAPIError

from exclusivearc import ExclusivityViolationError, PolymorphicMapping
from exclusivearc.integrations.orm import translate_violations
from exclusivearc.schema.migrations import (
    downgrade,
    foreign_key_names,
    index_exists,
    trigger_names,
    upgrade,
)


def _insert(engine: Engine, metadata: MetaData, **values) -> int:
    with engine.begin() as conn:
        result = conn.execute(metadata.tables["assignments"].insert().values(**values))
        return result.inserted_primary_key[0]


class TestPostgreSQL:
    def test_round_trip(
        self, pg_engine: Engine, schema_metadata: MetaData, example_mapping: PolymorphicMapping
    ) -> None:
        with pg_engine.begin() as conn:
            upgrade(conn, example_mapping, schema_metadata)

        assert trigger_names(pg_engine, "assignments") == ["exclusive_assignments_assignee"]
        assert foreign_key_names(pg_engine, "assignments") == [
            "fk_assignments_employee_id",
            "fk_assignments_product_id",
        ]
        assert index_exists(pg_engine, "assignments", "ix_assignments_product_id")

        with pg_engine.begin() as conn:
            downgrade(conn, example_mapping, schema_metadata)

        assert trigger_names(pg_engine, "assignments") == []
        assert foreign_key_names(pg_engine, "assignments") == []
        assert not index_exists(pg_engine, "assignments", "ix_assignments_product_id")

    def test_enforcement(
        self, pg_engine: Engine, schema_metadata: MetaData, example_mapping: PolymorphicMapping
    ) -> None:
        with pg_engine.begin() as conn:
            upgrade(conn, example_mapping, schema_metadata)

        row_id = _insert(pg_engine, schema_metadata, employee_id=1)

        with pytest.raises(DBAPIError, match="exclusive arc violation"):
            _insert(pg_engine, schema_metadata)
        with pytest.raises(DBAPIError, match="foreign key"):
            _insert(pg_engine, schema_metadata, product_id=99)

        assignments = schema_metadata.tables["assignments"]
        with pytest.raises(ExclusivityViolationError):
            with translate_violations(example_mapping), pg_engine.begin() as conn:
                conn.execute(
                    update(assignments).where(assignments.c.id == row_id).values(product_id=2)
                )

    def test_upgrade_is_atomic(
        self, pg_engine: Engine, schema_metadata: MetaData, example_mapping: PolymorphicMapping
    ) -> None:
        """Test a failure part-way through leaves no objects behind."""
        _insert(pg_engine, schema_metadata, employee_id=99)  # no constraints yet

        with pytest.raises(DBAPIError):
            with pg_engine.begin() as conn:
                upgrade(conn, example_mapping, schema_metadata)

        assert trigger_names(pg_engine, "assignments") == []
        assert foreign_key_names(pg_engine, "assignments") == []
