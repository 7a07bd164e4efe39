"""Property-based tests for validation and scoring invariants.

Uses hypothesis to generate inputs and check invariants that hold across
every mode and every value.
"""

from __future__ import annotations

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from deepthinking.modes.consistency import accessibility_closure, find_cycles
from deepthinking.modes.handlers.engineering import index_of_coincidence
from deepthinking.modes.registry import ThoughtFactory, create_default_registry
from deepthinking.modes.scoring import (
    EvidenceConclusion,
    accumulate_decibans,
    balance_ratio,
    decibans_to_probability,
    evidence_conclusion,
    plausibility_score,
)
from deepthinking.modes.types import ErrorCode, ThinkingMode
from deepthinking.utils.schema import as_unit

# =============================================================================
# Strategy Definitions
# =============================================================================

mode_strategy = st.sampled_from([m.value for m in ThinkingMode])

text_strategy = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N", "P", "S"), whitelist_characters=" "),
    min_size=1,
    max_size=200,
).filter(lambda x: x.strip())

finite_floats = st.floats(allow_nan=False, allow_infinity=False)

unit_floats = st.floats(min_value=0.0, max_value=1.0)

world_ids = st.lists(st.sampled_from(["w1", "w2", "w3", "w4"]), min_size=1, max_size=4, unique=True)

FACTORY = ThoughtFactory(create_default_registry(), default_mode="hybrid")


def _input(mode: str, thought: str, number: int, total: int) -> dict:
    return {"mode": mode, "thought": thought, "thoughtNumber": number, "totalThoughts": total}


# =============================================================================
# Property Tests: Common Validation
# =============================================================================


class TestValidationProperties:
    """Invariants of the shared structural checks."""

    @given(mode=mode_strategy, thought=text_strategy, total=st.integers(1, 50), extra=st.integers(1, 50))
    @settings(max_examples=60, suppress_health_check=[HealthCheck.too_slow])
    def test_number_beyond_total_always_fails(self, mode: str, thought: str, total: int, extra: int) -> None:
        result = FACTORY.validate(_input(mode, thought, total + extra, total))
        assert result.error_codes == [ErrorCode.INVALID_THOUGHT_NUMBER.value]

    @given(mode=mode_strategy, blank=st.sampled_from(["", " ", "\t", "\n  "]))
    def test_blank_thought_always_fails(self, mode: str, blank: str) -> None:
        result = FACTORY.validate(_input(mode, blank, 1, 1))
        assert result.error_codes == [ErrorCode.EMPTY_THOUGHT.value]

    @given(mode=mode_strategy, thought=text_strategy, total=st.integers(1, 50), data=st.data())
    @settings(max_examples=60, suppress_health_check=[HealthCheck.too_slow])
    def test_valid_structure_builds_a_thought(self, mode: str, thought: str, total: int, data) -> None:
        number = data.draw(st.integers(1, total))
        raw = _input(mode, thought, number, total)
        assert FACTORY.validate(raw).valid
        created = FACTORY.create_thought(raw, "s")
        assert created.content == thought
        assert created.mode.value == mode

    @given(mode=mode_strategy)
    def test_resolve_ignores_case_and_separators(self, mode: str) -> None:
        assert ThinkingMode.resolve(f" {mode.upper()} ") is ThinkingMode(mode)


# =============================================================================
# Property Tests: Scoring
# =============================================================================


class TestScoringProperties:
    """Invariants of the numeric helpers."""

    @given(value=finite_floats)
    def test_as_unit_is_bounded(self, value: float) -> None:
        assert 0.0 <= as_unit(value) <= 1.0

    @given(strengths=st.integers(0, 1000), weaknesses=st.integers(0, 1000))
    def test_balance_is_bounded(self, strengths: int, weaknesses: int) -> None:
        assert 0.0 <= balance_ratio(strengths, weaknesses) <= 1.0

    @given(
        decibans=st.floats(min_value=-5000, max_value=5000, allow_nan=False),
        prior=st.floats(min_value=0.01, max_value=0.99),
    )
    def test_probability_is_bounded(self, decibans: float, prior: float) -> None:
        assert 0.0 <= decibans_to_probability(decibans, prior) <= 1.0

    @given(coverage=unit_floats, low=unit_floats, high=unit_floats)
    def test_plausibility_never_rises_with_complexity(self, coverage: float, low: float, high: float) -> None:
        low, high = sorted((low, high))
        assert plausibility_score(coverage, low) >= plausibility_score(coverage, high)

    @given(complexity=unit_floats, low=unit_floats, high=unit_floats)
    def test_plausibility_never_falls_with_coverage(self, complexity: float, low: float, high: float) -> None:
        low, high = sorted((low, high))
        assert plausibility_score(low, complexity) <= plausibility_score(high, complexity)

    @given(values=st.lists(st.floats(min_value=-100, max_value=100, allow_nan=False), max_size=20))
    def test_conclusion_matches_thresholds(self, values: list[float]) -> None:
        total = accumulate_decibans(values)
        conclusion = evidence_conclusion(total)
        if total >= 20:
            assert conclusion is EvidenceConclusion.CONFIRMED
        elif total <= -20:
            assert conclusion is EvidenceConclusion.REFUTED
        else:
            assert conclusion is EvidenceConclusion.INCONCLUSIVE

    @given(text=st.text(max_size=300))
    def test_index_of_coincidence_is_bounded(self, text: str) -> None:
        assert 0.0 <= index_of_coincidence(text) <= 1.0


# =============================================================================
# Property Tests: Consistency
# =============================================================================


class TestConsistencyProperties:
    """Invariants of the graph and accessibility checks."""

    @given(worlds=world_ids, data=st.data())
    def test_closure_is_reflexive_and_symmetric(self, worlds: list[str], data) -> None:
        pairs = data.draw(st.lists(st.tuples(st.sampled_from(worlds), st.sampled_from(worlds)), max_size=8))
        closure = accessibility_closure(worlds, pairs)
        for world in worlds:
            assert world in closure[world]
        for source, target in pairs:
            assert target in closure[source]
            assert source in closure[target]

    @given(nodes=world_ids, data=st.data())
    def test_cycles_are_closed_walks(self, nodes: list[str], data) -> None:
        edges = data.draw(st.lists(st.tuples(st.sampled_from(nodes), st.sampled_from(nodes)), max_size=8))
        edge_set = set(edges)
        for cycle in find_cycles(nodes, edges):
            assert cycle[0] == cycle[-1]
            assert all((a, b) in edge_set for a, b in zip(cycle, cycle[1:]))
