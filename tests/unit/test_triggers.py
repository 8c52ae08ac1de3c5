"""Tests for trigger programs and their renderers."""

import pytest
from sqlalchemy.dialects import mysql, postgresql, sqlite

from exclusivearc import DDLKind, PolymorphicMapping, Relation
from exclusivearc.ddl.triggers import (
    ActiveValueUniqueCheck,
    ExclusivityCheck,
    PostgreSQLTriggerRenderer,
    ReferenceCheck,
    ReferencedRowCheck,
    SQLiteTriggerRenderer,
    exclusivity_program,
    get_renderer,
    reference_program,
    referenced_program,
)


class TestPrograms:
    """Test the dialect-neutral check programs."""

    def test_exclusivity_program(self, example_mapping: PolymorphicMapping) -> None:
        program = exclusivity_program(example_mapping)
        assert program.name == "exclusive_assignments_assignee"
        assert program.table == "assignments"
        assert program.kind == DDLKind.TRIGGER
        assert len(program.checks) == 1
        check = program.checks[0]
        assert isinstance(check, ExclusivityCheck)
        assert check.columns == ("employee_id", "product_id")
        assert check.message.startswith("exclusive arc violation on assignments.assignee")

    def test_unique_program_adds_check(self, unique_mapping: PolymorphicMapping) -> None:
        program = exclusivity_program(unique_mapping)
        assert [type(c) for c in program.checks] == [ExclusivityCheck, ActiveValueUniqueCheck]
        assert program.checks[1].primary_key == "id"

    def test_messages_are_driver_safe(self, unique_mapping: PolymorphicMapping) -> None:
        """Test messages carry no bind-parameter or format characters."""
        for check in exclusivity_program(unique_mapping).checks:
            assert ":" not in check.message
            assert "%" not in check.message

    def test_reference_program(self) -> None:
        relation = Relation(column="employee_id", referenced_table="employees")
        program = reference_program("assignments", relation, "fk_assignments_employee_id")
        assert program.kind == DDLKind.FOREIGN_KEY
        (check,) = program.checks
        assert isinstance(check, ReferenceCheck)
        assert check.referenced_column == "id"
        assert "foreign key violation" in check.message


class TestRenderers:
    def test_get_renderer(self) -> None:
        assert isinstance(get_renderer(postgresql.dialect()), PostgreSQLTriggerRenderer)
        assert isinstance(get_renderer(sqlite.dialect()), SQLiteTriggerRenderer)
        assert get_renderer(mysql.dialect()) is None

    def test_literal_escapes_quotes(self) -> None:
        assert PostgreSQLTriggerRenderer.literal("it's") == "'it''s'"

    def test_non_null_count(self) -> None:
        renderer = SQLiteTriggerRenderer(sqlite.dialect())
        expression = renderer.non_null_count(("a", "b"))
        assert expression == (
            '(CASE WHEN NEW."a" IS NULL THEN 0 ELSE 1 END + '
            'CASE WHEN NEW."b" IS NULL THEN 0 ELSE 1 END)'
        )

    def test_postgresql_uses_message_option(self, example_mapping: PolymorphicMapping) -> None:
        """Test the raise statement does not use a format string."""
        renderer = PostgreSQLTriggerRenderer(postgresql.dialect())
        function, trigger = renderer.create(exclusivity_program(example_mapping))
        assert function.kind == DDLKind.FUNCTION
        assert trigger.kind == DDLKind.TRIGGER
        assert "RAISE EXCEPTION USING ERRCODE = 'check_violation', MESSAGE = '" in function.sql
        assert "RETURN NEW;" in function.sql
        assert 'EXECUTE FUNCTION "exclusive_assignments_assignee"()' in trigger.sql

    def test_postgresql_reference_check(self) -> None:
        renderer = PostgreSQLTriggerRenderer(postgresql.dialect())
        relation = Relation(column="product_id", referenced_table="products")
        function, _ = renderer.create(reference_program("assignments", relation, "fk_x"))
        assert "foreign_key_violation" in function.sql
        assert 'NOT EXISTS (SELECT 1 FROM "products" WHERE "products"."id" = NEW."product_id")' in (
            function.sql
        )

    def test_sqlite_unique_check_per_column(self, unique_mapping: PolymorphicMapping) -> None:
        renderer = SQLiteTriggerRenderer(sqlite.dialect())
        insert_trigger, _ = renderer.create(exclusivity_program(unique_mapping))
        assert insert_trigger.sql.count("RAISE(ABORT") == 3
        assert '"assignments"."id" IS NOT NEW."id"' in insert_trigger.sql

    def test_sqlite_drop_reverses_create(self, example_mapping: PolymorphicMapping) -> None:
        renderer = SQLiteTriggerRenderer(sqlite.dialect())
        program = exclusivity_program(example_mapping)
        created = [s.name for s in renderer.create(program)]
        dropped = [s.name for s in renderer.drop(program)]
        assert dropped == list(reversed(created))


class TestReferencedRowGuard:
    """Test the referenced-side half of an emulated foreign key."""

    def test_program_targets_referenced_table(self) -> None:
        relation = Relation(column="employee_id", referenced_table="employees", on_delete="CASCADE")
        program = referenced_program("assignments", relation, "fk_assignments_employee_id")
        assert program.table == "employees"
        assert program.kind == DDLKind.FOREIGN_KEY
        (check,) = program.checks
        assert isinstance(check, ReferencedRowCheck)
        assert check.owner_table == "assignments"
        assert check.cascade
        assert ":" not in check.message

    @pytest.mark.parametrize("on_delete", ["RESTRICT", "NO_ACTION"])
    def test_non_cascading_actions_abort(self, on_delete: str) -> None:
        relation = Relation(column="product_id", referenced_table="products", on_delete=on_delete)
        program = referenced_program("assignments", relation, "fk_assignments_product_id")
        assert not program.checks[0].cascade

        renderer = SQLiteTriggerRenderer(sqlite.dialect())
        delete_guard, rekey_guard = renderer.create(program)
        assert delete_guard.sql.startswith(
            'CREATE TRIGGER "fk_assignments_product_id_delete" BEFORE DELETE ON "products"'
        )
        assert "RAISE(ABORT" in rekey_guard.sql
        assert [s.name for s in renderer.drop(program)] == [
            "fk_assignments_product_id_rekey",
            "fk_assignments_product_id_delete",
        ]

    def test_postgresql_leaves_it_to_native_keys(self) -> None:
        relation = Relation(column="employee_id", referenced_table="employees")
        program = referenced_program("assignments", relation, "fk_assignments_employee_id")
        with pytest.raises(TypeError, match="ReferencedRowCheck"):
            PostgreSQLTriggerRenderer(postgresql.dialect()).create(program)
