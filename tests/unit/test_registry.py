"""Tests for ArcRegistry."""

import pytest

import exclusivearc
from exclusivearc import ArcRegistry, ExclusiveArcError, InvalidMappingError, PolymorphicMapping


class Assignment:
    def __init__(self, employee_id=None, product_id=None, reviewer_id=None, team_id=None):
        self.employee_id = employee_id
        self.product_id = product_id
        self.reviewer_id = reviewer_id
        self.team_id = team_id


class PinnedAssignment(Assignment):
    pass


@pytest.fixture
def reviewer_mapping() -> PolymorphicMapping:
    return PolymorphicMapping.from_declaration(
        "assignments", "reviewer", {"reviewer_id": "employees", "team_id": "teams"}
    )


@pytest.fixture
def registry(example_mapping: PolymorphicMapping) -> ArcRegistry:
    registry = ArcRegistry()
    registry.register(Assignment, example_mapping)
    return registry


class TestRegistration:
    def test_register_and_lookup(self, registry: ArcRegistry, example_mapping) -> None:
        assert registry.is_registered(Assignment)
        assert registry.is_registered(Assignment())
        assert registry.mapping_for(Assignment()) is example_mapping
        assert not registry.is_registered(object())

    def test_duplicate_role_rejected(self, registry: ArcRegistry, example_mapping) -> None:
        with pytest.raises(InvalidMappingError, match="already registered"):
            registry.register(Assignment, example_mapping)

    def test_subclasses_inherit(self, registry: ArcRegistry, example_mapping) -> None:
        assert registry.mappings_for(PinnedAssignment()) == [example_mapping]

    def test_multiple_arcs_need_role(self, registry: ArcRegistry, reviewer_mapping) -> None:
        registry.register(Assignment, reviewer_mapping)
        with pytest.raises(ExclusiveArcError, match="pass role="):
            registry.mapping_for(Assignment())
        assert registry.mapping_for(Assignment(), "reviewer") is reviewer_mapping

    def test_unknown_role(self, registry: ArcRegistry) -> None:
        with pytest.raises(ExclusiveArcError, match="No exclusive arc 'owner'"):
            registry.mapping_for(Assignment(), "owner")

    def test_unregistered_type(self) -> None:
        with pytest.raises(ExclusiveArcError, match="0 exclusive arcs"):
            ArcRegistry().mapping_for(Assignment())

    def test_registries_are_independent(self, registry: ArcRegistry) -> None:
        """Test registrations live on the instance, with no shared module state."""
        assert not ArcRegistry().is_registered(Assignment)
        assert not hasattr(exclusivearc, "default_registry")


class TestBinding:
    def test_association(self, registry: ArcRegistry, fake_store) -> None:
        assoc = registry.association(Assignment(employee_id=1), store=fake_store)
        assert assoc.active_key() == "employee_id"
        assert assoc.active_association() == {"id": 1, "name": "Ada"}

    def test_validate_all_arcs(self, registry: ArcRegistry, reviewer_mapping) -> None:
        registry.register(Assignment, reviewer_mapping)
        result = registry.validate(Assignment(employee_id=1))
        assert not result.valid
        assert list(result.errors) == ["reviewer"]

        assert registry.validate(Assignment(employee_id=1, team_id=4)).valid
