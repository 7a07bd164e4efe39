"""Tests for the structural consistency checks shared by the handlers."""

from __future__ import annotations

import pytest

from deepthinking.modes.consistency import (
    SINGLE_WORLD_WARNING,
    UNIVERSAL_ACCESSIBILITY_WARNING,
    accessibility_closure,
    classify_nodes,
    constraint_density,
    dangling_event_refs,
    duplicate_ids,
    entry_nodes,
    exit_nodes,
    find_cycles,
    frame_property_gaps,
    graph_density,
    has_universal_accessibility,
    is_over_constrained,
    is_under_constrained,
    missing_accessibility_pairs,
    modal_consistency_warnings,
    proof_gaps,
    temporal_contradictions,
    undeclared_world_refs,
)

# =============================================================================
# Modal
# =============================================================================


class TestAccessibility:
    """Tests for the possible-worlds accessibility checks."""

    def test_closure_adds_reflexive_and_reverse_edges(self) -> None:
        closure = accessibility_closure(["w1", "w2"], [("w1", "w2")])
        assert closure["w1"] == {"w1", "w2"}
        assert closure["w2"] == {"w1", "w2"}

    def test_closure_is_not_transitive(self) -> None:
        worlds = ["w1", "w2", "w3"]
        missing = missing_accessibility_pairs(worlds, [("w1", "w2"), ("w2", "w3")])
        assert ("w1", "w3") in missing
        assert ("w3", "w1") in missing
        assert len(missing) == 2

    def test_universal_with_chained_pairs(self) -> None:
        worlds = ["w1", "w2", "w3"]
        relations = [("w1", "w2"), ("w2", "w3"), ("w1", "w3")]
        assert has_universal_accessibility(worlds, relations)

    def test_undeclared_refs_in_first_seen_order(self) -> None:
        refs = undeclared_world_refs(["w1"], [("w1", "w9"), ("w8", "w9")])
        assert refs == ["w9", "w8"]

    def test_s5_partial_relations_warn(self) -> None:
        warnings = modal_consistency_warnings(["w1", "w2", "w3"], [("w1", "w2")], "S5")
        assert warnings == [UNIVERSAL_ACCESSIBILITY_WARNING]

    def test_s5_full_closure_is_clean(self) -> None:
        relations = [("w1", "w2"), ("w2", "w3"), ("w1", "w3")]
        assert modal_consistency_warnings(["w1", "w2", "w3"], relations, "S5") == []

    def test_non_s5_systems_skip_universal_check(self) -> None:
        assert modal_consistency_warnings(["w1", "w2"], [], "K") == []

    def test_single_world(self) -> None:
        assert modal_consistency_warnings(["w0"], [], "S5") == [SINGLE_WORLD_WARNING]

    def test_frame_gaps_inspect_declared_relations(self) -> None:
        worlds = ["w1", "w2"]
        assert frame_property_gaps(worlds, [("w1", "w2")], "T") == ["reflexive"]
        reflexive = [("w1", "w1"), ("w2", "w2"), ("w1", "w2")]
        assert frame_property_gaps(worlds, reflexive, "B") == ["symmetric"]
        assert frame_property_gaps(worlds, [("w1", "w2")], "D") == ["serial"]
        assert frame_property_gaps(worlds, [], "K") == []


# =============================================================================
# Temporal
# =============================================================================


class TestTemporal:
    """Tests for temporal reference and ordering checks."""

    def test_dangling_refs_cover_relations_and_constraints(self) -> None:
        dangling = dangling_event_refs(["e1", "e2"], [("e1", "e3")], [("e4", "e2")])
        assert [(d.field, d.index, d.ref) for d in dangling] == [("relations", 0, "e3"), ("constraints", 0, "e4")]

    def test_dangling_refs_without_events(self) -> None:
        assert len(dangling_event_refs([], [("a", "b")])) == 2

    def test_precedes_both_ways(self) -> None:
        found = temporal_contradictions([("a", "b", "precedes"), ("b", "a", "precedes")])
        assert found == ["a precedes b and b precedes a"]

    def test_before_and_after_contradict(self) -> None:
        assert temporal_contradictions([("a", "b", "before"), ("a", "b", "after")])

    def test_consistent_ordering(self) -> None:
        assert temporal_contradictions([("a", "b", "before"), ("b", "a", "after")]) == []
        assert temporal_contradictions([("a", "b", "overlaps"), ("b", "a", "overlaps")]) == []

    def test_density(self) -> None:
        assert constraint_density(1, 3) == 0.0
        assert constraint_density(4, 3) == pytest.approx(0.5)

    def test_under_and_over_constrained(self) -> None:
        assert is_under_constrained(5, 2)
        assert not is_under_constrained(5, 3)
        assert not is_under_constrained(2, 0)
        assert is_over_constrained(2, 2)
        assert not is_over_constrained(3, 3)


# =============================================================================
# Graphs
# =============================================================================


class TestGraphs:
    """Tests for cycle detection and graph summaries."""

    def test_finds_cycle(self) -> None:
        cycles = find_cycles(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
        assert cycles == [["a", "b", "c", "a"]]

    def test_self_loop(self) -> None:
        assert find_cycles(["a"], [("a", "a")]) == [["a", "a"]]

    def test_acyclic(self) -> None:
        assert find_cycles(["a", "b", "c"], [("a", "b"), ("a", "c"), ("b", "c")]) == []

    def test_entry_and_exit(self) -> None:
        edges = [("a", "b"), ("b", "c")]
        assert entry_nodes(["a", "b", "c"], edges) == ["a"]
        assert exit_nodes(["a", "b", "c"], edges) == ["c"]

    def test_density(self) -> None:
        assert graph_density(3, 3) == pytest.approx(0.5)
        assert graph_density(1, 0) == 0.0

    def test_duplicates(self) -> None:
        assert duplicate_ids(["a", "b", "a", "a", "c", "b"]) == ["a", "b"]

    def test_classify_uses_declared_type_only(self) -> None:
        roles = classify_nodes([("x", "cause"), ("y", None), ("z", "mediator"), ("w", "effect")])
        assert roles.causes == ["x"]
        assert roles.mediators == ["z"]
        assert roles.effects == ["w"]
        assert roles.unclassified == ["y"]


class TestProofGaps:
    """Tests for proof completeness checks."""

    def test_induction_needs_both_parts(self) -> None:
        gaps = proof_gaps("induction", None, None, None)
        assert len(gaps) == 2

    def test_low_completeness(self) -> None:
        assert proof_gaps("direct", None, None, 0.3) == ["Proof is less than 50% complete"]

    def test_complete_proof(self) -> None:
        assert proof_gaps("induction", "n=0", "n -> n+1", 0.9) == []
