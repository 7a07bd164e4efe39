"""Tests for meta-reasoning, recursive, modal and stochastic modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.advanced import (
    AccessibilityRelation,
    AlternativeStrategy,
    StateTransition,
    StrategyEvaluation,
    accessible_worlds,
    chain_period,
    distribution_moments,
    evaluate_operator,
    is_irreducible,
    parent_cycles,
    quality_metrics,
    recommend_strategy,
    stationary_distribution,
    subproblem_depths,
)
from deepthinking.modes.types import ThinkingMode

# =============================================================================
# Modal
# =============================================================================


def _two_worlds(**fields):
    return {
        "worlds": [
            {"id": "w1", "propositions": {"p": True, "q": True}, "isActual": True},
            {"id": "w2", "propositions": {"p": False, "q": True}},
        ],
        "accessibilityRelations": [{"fromWorld": "w1", "toWorld": "w2"}],
        **fields,
    }


class TestModalHelpers:
    """Tests for one-step accessibility and operator evaluation."""

    def test_reflexive_systems_include_origin(self) -> None:
        relations = [AccessibilityRelation("w1", "w2")]
        assert accessible_worlds("w1", relations, "S5") == ["w1", "w2"]
        assert accessible_worlds("w1", relations, "K") == ["w2"]

    def test_operators(self) -> None:
        assert evaluate_operator("necessary", [True, True]) is True
        assert evaluate_operator("necessary", [True, False]) is False
        assert evaluate_operator("necessary", [True, None]) is None
        assert evaluate_operator("possible", [False, True]) is True
        assert evaluate_operator("possible", [False, None]) is None
        assert evaluate_operator("impossible", [False, False]) is True
        assert evaluate_operator("contingent", [True]) is None


class TestModalHandler:
    """Tests for modal validation, construction and feedback."""

    def test_unknown_world_reference_warns(self, factory, make_input) -> None:
        raw = make_input(
            "modal",
            worlds=[{"id": "w1"}],
            accessibilityRelations=[{"fromWorld": "w1", "toWorld": "w9"}],
        )
        result = factory.validate(raw)
        assert result.valid
        assert "Relation references unknown world: w9" in result.warning_messages

    def test_s5_without_relations_warns(self, factory, make_input) -> None:
        raw = make_input("modal", modalLogicType="S5", worlds=[{"id": "w1"}, {"id": "w2"}])
        result = factory.validate(raw)
        assert result.valid
        assert "S5 logic requires universal accessibility" in result.warning_messages

    def test_defaults_to_single_actual_world(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("modal"), "s1")
        assert [w.id for w in thought.worlds] == ["w0"]
        assert thought.worlds[0].is_actual
        assert thought.actual_world == "w0"
        assert thought.logic_system == "K"
        assert thought.modal_domain == "alethic"

    def test_proposition_evaluated_at_actual_world(self, factory, make_input) -> None:
        raw = make_input(
            "modal",
            **_two_worlds(
                modalLogicType="S5",
                propositions=[
                    {"content": "p", "operator": "necessary"},
                    {"content": "q", "operator": "necessary"},
                ],
            ),
        )
        thought = factory.create_thought(raw, "s1")
        p, q = thought.propositions
        assert p.worlds_true == ["w1"]
        assert p.worlds_false == ["w2"]
        assert p.holds_at_actual is False
        assert q.holds_at_actual is True

        enhancements = factory.get_enhancements(thought)
        assert '"p" is not necessary at world w1' in enhancements.warnings
        assert enhancements.metrics["world_count"] == 2
        assert "Properties: reflexive, symmetric, transitive" in enhancements.suggestions

    def test_partial_s5_frame_warns_in_enhancements(self, factory, make_input) -> None:
        raw = make_input(
            "modal",
            modalLogicType="S5",
            worlds=[{"id": "w1"}, {"id": "w2"}, {"id": "w3"}],
            accessibilityRelations=[{"fromWorld": "w1", "toWorld": "w2"}],
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s1"))
        assert any("universal accessibility" in w for w in enhancements.warnings)

    def test_epistemic_domain_reading(self, factory, make_input) -> None:
        raw = make_input("modal", modalDomain="epistemic")
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s1"))
        assert any(s.startswith("Epistemic:") for s in enhancements.suggestions)
        assert "Knowledge States" in enhancements.mental_models


# =============================================================================
# Stochastic
# =============================================================================


def _transitions(*edges: tuple[str, str, float]) -> list[StateTransition]:
    return [StateTransition(a, b, p) for a, b, p in edges]


class TestMarkovHelpers:
    """Tests for chain structure analysis."""

    def test_irreducible(self) -> None:
        assert is_irreducible(["a", "b"], _transitions(("a", "b", 1.0), ("b", "a", 1.0)))
        assert not is_irreducible(["a", "b"], _transitions(("a", "b", 1.0), ("b", "b", 1.0)))

    def test_period(self) -> None:
        assert chain_period(["a", "b"], _transitions(("a", "b", 1.0), ("b", "a", 1.0))) == 2
        assert chain_period(["a", "b"], _transitions(("a", "a", 0.5), ("a", "b", 0.5), ("b", "a", 1.0))) == 1

    def test_stationary_distribution(self) -> None:
        transitions = _transitions(("a", "a", 0.5), ("a", "b", 0.5), ("b", "a", 1.0))
        pi = stationary_distribution(["a", "b"], transitions)
        assert pi is not None
        assert pi["a"] == pytest.approx(2 / 3)
        assert pi["b"] == pytest.approx(1 / 3)

    def test_stationary_requires_outgoing_mass(self) -> None:
        assert stationary_distribution(["a", "b"], _transitions(("a", "b", 1.0))) is None

    @pytest.mark.parametrize(
        ("distribution", "params", "moments"),
        [
            ("binomial", {"n": 10, "p": 0.5}, (5.0, 2.5)),
            ("uniform", {"a": 0, "b": 6}, (3.0, 3.0)),
            ("poisson", {"lambda": 4}, (4, 4)),
            ("cauchy", {}, (None, None)),
        ],
    )
    def test_moments(self, distribution: str, params: dict, moments: tuple) -> None:
        assert distribution_moments(distribution, params) == moments


class TestStochasticHandler:
    """Tests for stochastic validation and chain construction."""

    def test_transition_sum_warning(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            markovChain={
                "states": [{"id": "A"}, {"id": "B"}],
                "transitions": [{"fromState": "A", "toState": "B", "probability": 0.5}],
            },
        )
        result = factory.validate(raw)
        assert result.valid
        assert 'Transition probabilities from state "A" sum to 0.500, should be 1.0' in result.warning_messages

    def test_low_iterations_and_bad_parameters(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            simulations=[{"iterations": 50, "mean": 1.0, "variance": 0.1}],
            randomVariables=[{"name": "X", "distribution": "uniform", "parameters": {"a": 3, "b": 1}}],
        )
        result = factory.validate(raw)
        assert "Low iteration count (50)" in result.warning_messages
        assert "Uniform distribution requires a < b" in result.warning_messages

    def test_unknown_state_reference(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            markovChain={
                "states": [{"id": "A"}],
                "transitions": [{"fromState": "A", "toState": "Z", "probability": 1.0}],
            },
        )
        assert "Transition references unknown state: Z" in factory.validate(raw).warning_messages

    def test_ergodic_chain_gets_stationary_distribution(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            thoughtType="steady_state_analysis",
            markovChain={
                "states": [{"id": "A"}, {"id": "B"}],
                "transitions": [
                    {"fromState": "A", "toState": "A", "probability": 0.5},
                    {"fromState": "A", "toState": "B", "probability": 0.5},
                    {"fromState": "B", "toState": "A", "probability": 1.0},
                ],
            },
        )
        thought = factory.create_thought(raw, "s1")
        chain = thought.markov_chain
        assert chain.is_irreducible and chain.is_ergodic
        assert chain.stationary_distribution["A"] == pytest.approx(2 / 3)
        enhancements = factory.get_enhancements(thought)
        assert "Chain is ergodic - unique stationary distribution exists" in enhancements.suggestions

    def test_periodic_chain(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            markovChain={
                "states": [{"id": "A"}, {"id": "B"}],
                "transitions": [
                    {"fromState": "A", "toState": "B", "probability": 1.0},
                    {"fromState": "B", "toState": "A", "probability": 1.0},
                ],
            },
        )
        thought = factory.create_thought(raw, "s1")
        assert thought.markov_chain.period == 2
        assert thought.markov_chain.stationary_distribution is None
        enhancements = factory.get_enhancements(thought)
        assert "Chain is periodic (period=2) - no limiting distribution" in enhancements.warnings

    def test_absorbing_state_from_self_loop(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            markovChain={
                "states": [{"id": "A"}, {"id": "B"}],
                "transitions": [
                    {"fromState": "A", "toState": "B", "probability": 1.0},
                    {"fromState": "B", "toState": "B", "probability": 1.0},
                ],
            },
        )
        thought = factory.create_thought(raw, "s1")
        assert [s.is_absorbing for s in thought.markov_chain.states] == [False, True]
        assert not thought.markov_chain.is_irreducible
        assert "Chain is reducible - multiple stationary distributions possible" in (
            factory.get_enhancements(thought).warnings
        )

    def test_probabilities_clamped(self, factory, make_input) -> None:
        raw = make_input(
            "stochastic",
            markovChain={"states": [{"id": "A"}], "transitions": [{"fromState": "A", "toState": "A", "probability": 3}]},
        )
        assert factory.create_thought(raw, "s1").markov_chain.transitions[0].probability == 1.0


# =============================================================================
# Recursive
# =============================================================================


class TestRecursiveHelpers:
    """Tests for subproblem tree analysis."""

    def test_depths_follow_parents(self) -> None:
        subproblems = [{"id": "root"}, {"id": "a", "parentId": "root"}, {"id": "b", "parentId": "a"}]
        assert subproblem_depths(subproblems) == {"root": 0, "a": 1, "b": 2}

    def test_explicit_depth_wins(self) -> None:
        assert subproblem_depths([{"id": "x", "depth": 4}]) == {"x": 4}

    def test_cycles(self) -> None:
        subproblems = [{"id": "a", "parentId": "b"}, {"id": "b", "parentId": "a"}, {"id": "c"}]
        assert parent_cycles(subproblems) == ["a", "b"]


class TestRecursiveHandler:
    """Tests for recursive validation and depth derivation."""

    def test_structural_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "recursive",
            thoughtType="problem_decomposition",
            currentDepth=12,
            maxDepth=10,
            divisionFactor=1,
        )
        messages = factory.validate(raw).warning_messages
        assert "Current depth (12) exceeds max depth (10)" in messages
        assert "Problem decomposition without subproblems" in messages
        assert "Division factor (1) should be >= 2" in messages

    def test_combination_without_base_cases(self, factory, make_input) -> None:
        raw = make_input("recursive", thoughtType="solution_combination")
        assert "Solution combination without base cases" in factory.validate(raw).warning_messages

    def test_subproblem_reference_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "recursive",
            subproblems=[
                {"id": "a", "parentId": "b"},
                {"id": "b", "parentId": "a"},
                {"id": "c", "parentId": "zz"},
                {"id": "c"},
            ],
        )
        messages = factory.validate(raw).warning_messages
        assert "Duplicate subproblem id: c" in messages
        assert "Subproblem references unknown parent: zz" in messages
        assert "Subproblem a is its own ancestor" in messages

    def test_depth_and_base_case_derivation(self, factory, make_input) -> None:
        raw = make_input(
            "recursive",
            subproblems=[{"id": "root"}, {"id": "left", "parentId": "root"}, {"id": "right", "parentId": "root"}],
            baseCases=[{"condition": "n <= 1", "result": "n", "verified": True}],
        )
        thought = factory.create_thought(raw, "s1")
        assert thought.current_depth == 2
        assert thought.max_depth == 10
        assert thought.base_case_reached

    def test_memoization_hint(self, factory, make_input) -> None:
        raw = make_input("recursive", strategy="dynamic_programming", subproblems=[{"id": "a"}])
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s1"))
        assert "Consider memoization to avoid redundant computation" in enhancements.suggestions


# =============================================================================
# Meta-reasoning
# =============================================================================


class TestStrategyRecommendation:
    """Tests for the CONTINUE/SWITCH/REFINE decision."""

    def test_effective_strategy_continues(self) -> None:
        decision = recommend_strategy(StrategyEvaluation(effectiveness=0.9, efficiency=0.8), [])
        assert decision.action == "CONTINUE"
        assert decision.confidence == 0.9

    def test_switch_needs_margin(self) -> None:
        evaluation = StrategyEvaluation(effectiveness=0.4, efficiency=0.3)
        strong = AlternativeStrategy(mode="bayesian", recommendation_score=0.8)
        decision = recommend_strategy(evaluation, [strong])
        assert decision.action == "SWITCH"
        assert decision.target_mode == "bayesian"

        close = AlternativeStrategy(mode="bayesian", recommendation_score=0.5)
        assert recommend_strategy(evaluation, [close]).action == "REFINE"

    def test_middling_strategy_continues(self) -> None:
        decision = recommend_strategy(StrategyEvaluation(effectiveness=0.6, efficiency=0.3), [])
        assert decision.action == "CONTINUE"
        assert decision.confidence == 0.5

    def test_quality_overall_defaults_to_core_average(self) -> None:
        metrics = quality_metrics({"logicalConsistency": 1.0, "evidenceQuality": 0.6, "completeness": 0.2})
        assert metrics.overall_quality == pytest.approx((1.0 + 0.6 + 0.2 + 0.7) / 4)


class TestMetaReasoningHandler:
    """Tests for meta-reasoning validation and feedback."""

    def test_missing_strategy_and_empty_switch(self, factory, make_input) -> None:
        raw = make_input("metareasoning", recommendation={"action": "SWITCH"})
        messages = factory.validate(raw).warning_messages
        assert "No current strategy specified" in messages
        assert "SWITCH recommended but no alternatives provided" in messages

    def test_generated_recommendation(self, factory, make_input) -> None:
        raw = make_input(
            "metareasoning",
            number=2,
            total=3,
            currentStrategy={"mode": "sequential", "approach": "linear"},
            strategyEvaluation={"effectiveness": 0.3, "efficiency": 0.3},
            alternativeStrategies=[{"mode": "causal", "recommendationScore": 0.9}],
            qualityMetrics={"logicalConsistency": 0.4, "completeness": 0.3},
        )
        thought = factory.create_thought(raw, "s1")
        assert thought.recommendation.action == "SWITCH"
        assert thought.recommendation.target_mode == "causal"
        assert thought.resource_allocation.thoughts_remaining == 1

        enhancements = factory.get_enhancements(thought)
        assert "Low effectiveness - consider switching strategies" in enhancements.warnings
        assert "Few thoughts remaining - focus on conclusions" in enhancements.warnings
        assert "Low logical consistency - review reasoning chain" in enhancements.warnings
        assert "Low completeness - ensure all aspects are addressed" in enhancements.warnings
        assert "Switch to: causal" in enhancements.suggestions
        assert ThinkingMode.CAUSAL in enhancements.related_modes
