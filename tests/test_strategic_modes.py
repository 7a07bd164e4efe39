"""Tests for the game theory, optimization and constraint modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.strategic import binary_arcs, normalize_csp_constraint, solution_status


def _matrix(entries: dict[tuple[str, str], tuple[float, float]]) -> dict:
    return {
        "players": ["p1", "p2"],
        "dimensions": [2, 2],
        "payoffs": [{"strategyProfile": list(k), "payoffs": list(v)} for k, v in entries.items()],
    }


PRISONERS_DILEMMA = _matrix(
    {
        ("C", "C"): (-1, -1),
        ("C", "D"): (-3, 0),
        ("D", "C"): (0, -3),
        ("D", "D"): (-2, -2),
    }
)
MATCHING_PENNIES = _matrix(
    {
        ("H", "H"): (1, -1),
        ("H", "T"): (-1, 1),
        ("T", "H"): (-1, 1),
        ("T", "T"): (1, -1),
    }
)


class TestGameTheoryValidation:
    """Tests for game definition warnings."""

    def test_empty_game(self, factory, make_input) -> None:
        result = factory.validate(make_input("gametheory"))
        assert result.valid
        assert "No game definition provided" in result.warning_messages
        assert "No players or payoff matrix provided" in result.warning_messages

    def test_unknown_game_type(self, factory, make_input) -> None:
        raw = make_input("gametheory", game={"name": "Cards", "type": "poker"}, payoffMatrix=PRISONERS_DILEMMA)
        assert "Unknown game type: poker" in factory.validate(raw).warning_messages

    def test_player_and_strategy_refs(self, factory, make_input) -> None:
        raw = make_input(
            "gametheory",
            game={"name": "G"},
            players=[{"id": "p1", "availableStrategies": ["s1", "s9"]}, {"id": "p1"}],
            strategies=[
                {"id": "s1", "playerId": "p1", "isPure": False, "probability": 0.3},
                {"id": "s2", "playerId": "p1", "isPure": False, "probability": 0.3},
                {"id": "s3", "playerId": "ghost"},
            ],
        )
        messages = factory.validate(raw).warning_messages
        assert "Duplicate player id: p1" in messages
        assert "Player p1 references non-existent strategy: s9" in messages
        assert "Strategy references non-existent player: ghost" in messages
        assert "Mixed strategy probabilities for player p1 sum to 0.600" in messages

    def test_matrix_shape(self, factory, make_input) -> None:
        matrix = dict(PRISONERS_DILEMMA, payoffs=PRISONERS_DILEMMA["payoffs"][:3])
        messages = factory.validate(make_input("gametheory", game={"name": "G"}, payoffMatrix=matrix)).warning_messages
        assert "Payoff matrix has 3 entries, expected 4" in messages

        matrix = dict(PRISONERS_DILEMMA, dimensions=[4])
        messages = factory.validate(make_input("gametheory", game={"name": "G"}, payoffMatrix=matrix)).warning_messages
        assert "Payoff matrix has 2 players but 1 dimensions" in messages

    def test_short_payoff_vector(self, factory, make_input) -> None:
        matrix = {"players": ["p1", "p2"], "payoffs": [{"strategyProfile": ["a", "b"], "payoffs": [1]}]}
        messages = factory.validate(make_input("gametheory", game={"name": "G"}, payoffMatrix=matrix)).warning_messages
        assert "Payoff vector length does not match player count" in messages


class TestGameTheoryAnalysis:
    """Tests for equilibrium and dominance analysis on created thoughts."""

    def test_prisoners_dilemma(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("gametheory", payoffMatrix=PRISONERS_DILEMMA), "s")
        assert thought.thought_type == "game_definition"
        assert [e.strategy_profile for e in thought.nash_equilibria] == [["D", "D"]]
        assert {(d.player_id, d.strategy_id, d.type) for d in thought.dominant_strategies} == {
            ("p1", "D", "strictly_dominant"),
            ("p2", "D", "strictly_dominant"),
        }
        assert thought.minimax_analysis is None

        enhancements = factory.get_enhancements(thought)
        assert "Equilibrium (D, D) is not Pareto optimal" in enhancements.warnings
        assert "2 dominant strategies identified" in enhancements.suggestions
        assert enhancements.metrics["nash_equilibria_count"] == 1

    def test_matching_pennies(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("gametheory", payoffMatrix=MATCHING_PENNIES), "s")
        assert thought.nash_equilibria == []
        assert thought.minimax_analysis is not None
        assert not thought.minimax_analysis.has_saddle_point

        enhancements = factory.get_enhancements(thought)
        assert "No pure-strategy equilibrium - look for mixed strategies" in enhancements.suggestions
        assert "Zero-sum game - minimax strategies coincide with equilibria" in enhancements.suggestions
        assert enhancements.metrics["zero_sum"] == 1

    def test_saddle_point(self, factory, make_input) -> None:
        matrix = _matrix(
            {
                ("a", "x"): (3, -3),
                ("a", "y"): (5, -5),
                ("b", "x"): (1, -1),
                ("b", "y"): (4, -4),
            }
        )
        thought = factory.create_thought(make_input("gametheory", payoffMatrix=matrix), "s")
        assert [e.strategy_profile for e in thought.nash_equilibria] == [["a", "x"]]
        enhancements = factory.get_enhancements(thought)
        assert "Saddle point at (a, x) with value 3" in enhancements.suggestions
        assert enhancements.metrics["maximin_value"] == 3

    def test_cooperative_game(self, factory, make_input) -> None:
        raw = make_input(
            "gametheory",
            game={"name": "Split", "type": "cooperative"},
            players=[{"id": "a"}, {"id": "b"}],
            cooperativeGame={
                "characteristicFunction": [
                    {"coalition": ["a"], "value": 1},
                    {"coalition": ["b"], "value": 2},
                    {"coalition": ["a", "b"], "value": 6},
                ]
            },
        )
        thought = factory.create_thought(raw, "s")
        assert thought.cooperative_game is not None
        assert thought.cooperative_game.players == ["a", "b"]
        enhancements = factory.get_enhancements(thought)
        assert "Grand coalition (a, b) is worth 6" in enhancements.suggestions
        assert "Shapley Value" in enhancements.mental_models

    def test_empty_game_asks_for_structure(self, factory, make_input) -> None:
        enhancements = factory.get_enhancements(factory.create_thought(make_input("gametheory"), "s"))
        assert "Define the players and a payoff matrix" in enhancements.suggestions


class TestOptimization:
    """Tests for optimization problem checks."""

    def test_formulation_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "optimization",
            problem={"name": "Mix", "type": "quadratic"},
            constraints=[{"name": "budget"}],
            objectives=[{"name": "cost", "formula": "c*x", "weight": 0.2}, {"name": "risk", "weight": 0.3}],
            solution={"type": "feasible", "quality": 1.2},
        )
        messages = factory.validate(raw).warning_messages
        assert "Unknown problem type: quadratic" in messages
        assert "Constraint lacks formula" in messages
        assert "Objective lacks formula" in messages
        assert "Objective weights sum to 0.50, should be 1.0" in messages
        assert "Solution quality (1.2) must be between 0 and 1" in messages
        assert "No decision variables defined" not in messages

    def test_search_without_structure(self, factory, make_input) -> None:
        messages = factory.validate(make_input("optimization", thoughtType="solution_search")).warning_messages
        assert "No decision variables defined" in messages
        assert "Solution search without objectives" in messages

    def test_create_normalizes(self, factory, make_input) -> None:
        raw = make_input(
            "optimization",
            problem={"type": "multi_objective"},
            variables=[{"name": "x", "domain": {"upperBound": 10}}],
            constraints=[{"formula": "x <= 5"}, {"formula": "x >= 1", "type": "soft"}],
            objectives=[{"formula": "x", "type": "maximize"}, {"formula": "x^2"}],
            solution={"type": "bogus", "quality": 0.8},
        )
        thought = factory.create_thought(raw, "s")
        assert thought.variables[0].lower_bound == 0.0
        assert thought.variables[0].upper_bound == 10
        assert [c.type for c in thought.constraints] == ["hard", "soft"]
        assert thought.solution is not None
        assert thought.solution.type == "feasible"
        assert all(s.satisfied for s in thought.solution.constraint_satisfaction)
        assert len(thought.solution.constraint_satisfaction) == 2

        enhancements = factory.get_enhancements(thought)
        assert "Problem type: multi_objective" in enhancements.suggestions
        assert "Constraints: 1 hard, 1 soft" in enhancements.suggestions
        assert "Objectives: 1 maximize, 1 minimize" in enhancements.suggestions
        assert "Multi-objective problem without weights - consider Pareto analysis" in enhancements.suggestions

    def test_infeasible_and_fragile(self, factory, make_input) -> None:
        raw = make_input(
            "optimization",
            solution={
                "type": "infeasible",
                "constraintSatisfaction": [{"constraintId": "c1", "satisfied": False}],
            },
            analysis={"robustness": 0.3},
        )
        warnings = factory.get_enhancements(factory.create_thought(raw, "s")).warnings
        assert "Solution is infeasible - check constraint compatibility" in warnings
        assert "Solution violates 1 constraint(s)" in warnings
        assert "Low solution robustness - small changes may significantly affect results" in warnings


class TestConstraint:
    """Tests for constraint satisfaction problems."""

    def test_validation(self, factory, make_input) -> None:
        raw = make_input(
            "constraint",
            variables=[{"id": "x", "domain": [1, 2, 3]}, {"id": "y", "domain": []}],
            constraints=[
                {"variables": ["x", "z"], "expression": "x != z"},
                {"variables": ["x"], "type": "ternary"},
            ],
            currentAssignments={"x": 5},
        )
        messages = factory.validate(raw).warning_messages
        assert 'Variable "y" has empty domain' in messages
        assert "Constraint references unknown variable: z" in messages
        assert "Unknown constraint type: ternary" in messages
        assert "Constraint lacks expression" in messages
        assert "Assigned value 5 not in domain" in messages

    def test_kind_inferred_from_arity(self) -> None:
        assert normalize_csp_constraint({"variables": ["x"]}, "c1").type == "unary"
        assert normalize_csp_constraint({"variables": ["x", "y"]}, "c2").type == "binary"
        assert normalize_csp_constraint({"variables": ["x", "y", "z"]}, "c3").type == "n_ary"
        assert normalize_csp_constraint({"variables": ["x"], "type": "global"}, "c4").type == "global"

    def test_binary_arcs_both_directions(self) -> None:
        arcs = binary_arcs([normalize_csp_constraint({"variables": ["x", "y"]}, "c1")])
        assert [(a.from_var, a.to_var) for a in arcs] == [("x", "y"), ("y", "x")]

    def test_infeasible_problem(self, factory, make_input) -> None:
        raw = make_input(
            "constraint",
            variables=[{"id": "x", "domain": [1, 2]}, {"id": "y", "domain": []}],
            constraints=[{"variables": ["x", "y"], "expression": "x < y"}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.solution_status == "infeasible"
        assert not thought.is_arc_consistent
        assert len(thought.arcs) == 2
        enhancements = factory.get_enhancements(thought)
        assert "1 variable(s) have empty domains - problem is infeasible" in enhancements.warnings
        assert "Problem is not arc-consistent - consider propagation" in enhancements.warnings
        assert enhancements.metrics["avg_domain_size"] == pytest.approx(1.0)

    def test_found_solution_and_backtracking(self, factory, make_input) -> None:
        raw = make_input(
            "constraint",
            thoughtType="backtracking",
            variables=[{"id": "x", "domain": [1, 2]}, {"id": "y", "domain": [1, 2]}],
            constraints=[{"variables": ["x", "y"], "expression": "x != y", "satisfied": True}],
            currentAssignments={"x": 1, "y": 2},
            assignmentHistory=[
                {"variableId": "x", "value": 2, "backtracked": True},
                {"variableId": "x", "value": 1, "backtracked": True},
            ],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.solution_status == "found"
        assert thought.search_step == 2
        assert thought.backtracks == 2
        enhancements = factory.get_enhancements(thought)
        assert "Status: found" in enhancements.suggestions
        assert "High backtrack rate - consider better variable/value ordering" in enhancements.warnings
        assert enhancements.metrics["search_progress"] == 1.0

    def test_status_without_variables_is_searching(self) -> None:
        assert solution_status([], [], {}) == "searching"
