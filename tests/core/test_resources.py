"""
Tests for the resource graph.

Tests cover:
- Resource and group declaration
- Capacity invariants for superset/subset trees
- Expansion of supersets and groups into concrete resources
- Contention between references (shares_units)
"""

import networkx as nx
import pytest

from schedmodel.core.errors import (
    CapacityOverflowError,
    DefinitionError,
    DuplicateIdError,
    InvalidCapacityError,
    InvalidGroupError,
    ModelFrozenError,
    UnknownResourceError,
)
from schedmodel.core.resources import ExecutionResource, ResourceGraph, ResourceGroup


@pytest.fixture
def pipes():
    """ALU split into even/odd halves, plus DP and LS."""
    graph = ResourceGraph()
    graph.define_resource("ALU", 4)
    graph.define_resource("ALUE", 2, superset="ALU")
    graph.define_resource("ALUO", 2, superset="ALU")
    graph.define_resource("DP", 4)
    graph.define_resource("LS", 4, buffer_size=32)
    return graph


class TestDefineResource:
    """Tests for define_resource"""

    def test_returns_resource(self):
        graph = ResourceGraph()
        alu = graph.define_resource("ALU", 4)
        assert alu == ExecutionResource(id="ALU", capacity=4)
        assert not alu.is_subset
        assert graph.capacity("ALU") == 4

    def test_buffer_size(self, pipes):
        assert pipes.get("LS").buffer_size == 32
        assert pipes.get("ALU").buffer_size is None

    def test_zero_capacity_rejected(self):
        graph = ResourceGraph()
        with pytest.raises(InvalidCapacityError):
            graph.define_resource("ALU", 0)

    def test_negative_capacity_rejected(self):
        graph = ResourceGraph()
        with pytest.raises(InvalidCapacityError):
            graph.define_resource("ALU", -2)

    def test_negative_buffer_rejected(self):
        graph = ResourceGraph()
        with pytest.raises(InvalidCapacityError):
            graph.define_resource("BR", 1, buffer_size=-1)

    def test_duplicate_id(self, pipes):
        with pytest.raises(DuplicateIdError):
            pipes.define_resource("ALU", 2)

    def test_duplicate_of_group_id(self, pipes):
        pipes.define_group("ANY", ["ALU", "DP"])
        with pytest.raises(DuplicateIdError):
            pipes.define_resource("ANY", 1)

    def test_unknown_superset(self):
        graph = ResourceGraph()
        with pytest.raises(UnknownResourceError):
            graph.define_resource("ALUE", 2, superset="ALU")

    def test_definition_errors_are_value_errors(self):
        graph = ResourceGraph()
        with pytest.raises(ValueError):
            graph.define_resource("ALU", 0)
        with pytest.raises(DefinitionError):
            graph.define_resource("ALU", 0)


class TestCapacityInvariants:
    """Superset/subset capacity rules"""

    def test_subset_larger_than_superset(self):
        graph = ResourceGraph()
        graph.define_resource("DP", 2)
        with pytest.raises(CapacityOverflowError):
            graph.define_resource("DPE", 3, superset="DP")

    def test_third_subset_overflows(self, pipes):
        """Capacity 4 split 2 + 2: a third subset of 1 does not fit."""
        with pytest.raises(CapacityOverflowError):
            pipes.define_resource("ALUX", 1, superset="ALU")

    def test_partial_split_allowed(self):
        graph = ResourceGraph()
        graph.define_resource("EXEC", 4)
        graph.define_resource("EXECE", 2, superset="EXEC")
        graph.define_resource("EXECX", 1, superset="EXEC")
        assert graph.residual_capacity("EXEC") == 1

    def test_invariants_hold_for_all_resources(self, pipes):
        for resource in pipes.resources:
            subsets = pipes.subsets_of(resource.id)
            assert sum(pipes.capacity(s) for s in subsets) <= resource.capacity
            if resource.superset:
                assert resource.capacity <= pipes.capacity(resource.superset)

    def test_failed_definition_leaves_graph_unchanged(self, pipes):
        before = len(pipes)
        with pytest.raises(CapacityOverflowError):
            pipes.define_resource("ALUX", 1, superset="ALU")
        assert len(pipes) == before
        assert "ALUX" not in pipes


class TestTreeQueries:
    """Superset/subset navigation"""

    def test_subsets_of(self, pipes):
        assert pipes.subsets_of("ALU") == ["ALUE", "ALUO"]
        assert pipes.subsets_of("DP") == []

    def test_superset_of(self, pipes):
        assert pipes.superset_of("ALUE") == "ALU"
        assert pipes.superset_of("ALU") is None

    def test_supersets_chain(self):
        graph = ResourceGraph()
        graph.define_resource("CORE", 8)
        graph.define_resource("SLICE", 4, superset="CORE")
        graph.define_resource("HALF", 2, superset="SLICE")
        assert graph.supersets("HALF") == ("SLICE", "CORE")
        assert graph.supersets("CORE") == ()

    def test_residual_capacity(self, pipes):
        assert pipes.residual_capacity("ALU") == 0
        assert pipes.residual_capacity("DP") == 4

    def test_backed_by_networkx(self, pipes):
        g = pipes.graph
        assert isinstance(g, nx.DiGraph)
        assert g.edges["ALU", "ALUE"]["kind"] == "contains"
        assert nx.is_forest(g)


class TestGroups:
    """Tests for define_group"""

    def test_define_group(self, pipes):
        group = pipes.define_group("ANY_PIPE", ["ALU", "DP"])
        assert group == ResourceGroup(id="ANY_PIPE", members=("ALU", "DP"))
        assert pipes.is_group("ANY_PIPE")
        assert pipes.capacity("ANY_PIPE") == 8

    def test_empty_group(self, pipes):
        with pytest.raises(InvalidGroupError):
            pipes.define_group("NONE", [])

    def test_nested_group_rejected(self, pipes):
        pipes.define_group("A", ["ALU", "DP"])
        with pytest.raises(InvalidGroupError):
            pipes.define_group("B", ["A", "LS"])

    def test_repeated_member_rejected(self, pipes):
        with pytest.raises(InvalidGroupError):
            pipes.define_group("TWICE", ["DP", "DP"])

    def test_unknown_member(self, pipes):
        with pytest.raises(UnknownResourceError):
            pipes.define_group("G", ["ALU", "FPU"])

    def test_group_has_no_superset(self, pipes):
        pipes.define_group("G", ["ALUE", "DP"])
        assert pipes.superset_of("G") is None


class TestExpand:
    """Expansion into concrete resources"""

    def test_atomic_resource(self, pipes):
        assert pipes.expand("DP") == frozenset({"DP"})

    def test_subset(self, pipes):
        assert pipes.expand("ALUE") == frozenset({"ALUE"})

    def test_fully_split_superset(self, pipes):
        """Requesting the superset makes both subsets eligible."""
        assert pipes.expand("ALU") == frozenset({"ALUE", "ALUO"})

    def test_partially_split_superset_keeps_itself(self):
        graph = ResourceGraph()
        graph.define_resource("EXEC", 4)
        graph.define_resource("EXECE", 2, superset="EXEC")
        assert graph.expand("EXEC") == frozenset({"EXEC", "EXECE"})

    def test_group(self, pipes):
        pipes.define_group("ANY", ["ALU", "LS"])
        assert pipes.expand("ANY") == frozenset({"ALUE", "ALUO", "LS"})

    def test_unknown(self, pipes):
        with pytest.raises(UnknownResourceError):
            pipes.expand("FPU")


class TestSharesUnits:
    """Static contention facts"""

    def test_same_resource(self, pipes):
        assert pipes.shares_units("DP", "DP")

    def test_siblings_do_not_contend(self, pipes):
        assert not pipes.shares_units("ALUE", "ALUO")

    def test_superset_and_subset_contend(self, pipes):
        assert pipes.shares_units("ALU", "ALUE")

    def test_residual_superset_contends_with_subset(self):
        graph = ResourceGraph()
        graph.define_resource("EXEC", 4)
        graph.define_resource("EXECE", 2, superset="EXEC")
        assert graph.shares_units("EXEC", "EXECE")

    def test_unrelated(self, pipes):
        assert not pipes.shares_units("DP", "LS")


class TestFreeze:
    """Frozen graphs reject definitions"""

    def test_freeze(self, pipes):
        pipes.freeze()
        assert pipes.frozen
        with pytest.raises(ModelFrozenError):
            pipes.define_resource("CY", 1)
        with pytest.raises(ModelFrozenError):
            pipes.define_group("G", ["DP"])
        assert nx.is_frozen(pipes.graph)

    def test_queries_after_freeze(self, pipes):
        pipes.freeze()
        assert pipes.expand("ALU") == frozenset({"ALUE", "ALUO"})
        assert pipes.subsets_of("ALU") == ["ALUE", "ALUO"]
