"""Strategic and decision modes: game theory, optimization and constraint satisfaction."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.games import (
    DominantStrategy,
    MinimaxResult,
    NashEquilibrium,
    PayoffEntry,
    PayoffMatrix,
    dominant_strategies,
    is_pareto_optimal,
    is_zero_sum,
    minimax,
    pure_nash_equilibria,
    strategies_in_matrix,
)
from deepthinking.modes.consistency import duplicate_ids
from deepthinking.modes.types import (
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationResult,
)
from deepthinking.utils.schema import (
    as_bool,
    as_dict,
    as_float,
    as_int,
    as_list,
    as_records,
    as_str,
    as_str_list,
    as_unit,
    is_number,
    pick,
)

# =============================================================================
# Game theory
# =============================================================================

GAMETHEORY_TYPES = (
    "game_definition",
    "strategy_analysis",
    "equilibrium_finding",
    "payoff_computation",
    "dominance_analysis",
    "minimax_analysis",
    "cooperative_analysis",
    "coalition_formation",
    "shapley_value",
    "core_analysis",
)
GAME_TYPES = ("normal_form", "extensive_form", "cooperative", "non_cooperative", "zero_sum", "repeated")
PROBABILITY_TOLERANCE = 0.001


@dataclass(frozen=True)
class GameDefinition:
    id: str
    name: str
    type: str = "normal_form"
    description: str = ""
    num_players: int = 0


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    available_strategies: list[str] = field(default_factory=list)
    is_rational: bool = True


@dataclass(frozen=True)
class Strategy:
    id: str
    player_id: str
    name: str = ""
    is_pure: bool = True
    probability: float | None = None


@dataclass(frozen=True)
class CoalitionValue:
    coalition: list[str]
    value: float


@dataclass(frozen=True)
class CooperativeGame:
    players: list[str] = field(default_factory=list)
    characteristic_function: list[CoalitionValue] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class GameTheoryThought(Thought):
    thought_type: str = "game_definition"
    game: GameDefinition | None = None
    players: list[Player] = field(default_factory=list)
    strategies: list[Strategy] = field(default_factory=list)
    payoff_matrix: PayoffMatrix | None = None
    nash_equilibria: list[NashEquilibrium] = field(default_factory=list)
    dominant_strategies: list[DominantStrategy] = field(default_factory=list)
    minimax_analysis: MinimaxResult | None = None
    cooperative_game: CooperativeGame | None = None
    game_tree: dict[str, Any] | None = None


def normalize_payoff_matrix(raw: Any) -> PayoffMatrix | None:
    if not isinstance(raw, dict):
        return None
    entries = []
    for entry in as_records(pick(raw, "payoffs")):
        payoffs = [as_float(p, 0.0) or 0.0 for p in as_list(pick(entry, "payoffs"))]
        entries.append(PayoffEntry(as_str_list(pick(entry, "strategy_profile")), payoffs))
    return PayoffMatrix(
        players=as_str_list(pick(raw, "players")),
        dimensions=[d for d in (as_int(x) for x in as_list(pick(raw, "dimensions"))) if d is not None],
        payoffs=entries,
    )


def normalize_cooperative_game(raw: Any, players: list[Player]) -> CooperativeGame | None:
    if not isinstance(raw, dict):
        return None
    members = as_str_list(pick(raw, "players")) or [p.id for p in players]
    values = [
        CoalitionValue(as_str_list(pick(c, "coalition")), as_float(pick(c, "value"), 0.0) or 0.0)
        for c in as_records(pick(raw, "characteristic_function"))
    ]
    return CooperativeGame(players=members, characteristic_function=values)


def _player_strategies(players: list[Player], strategies: list[Strategy], matrix: PayoffMatrix) -> dict[str, list[str]]:
    options: dict[str, list[str]] = {p.id: list(p.available_strategies) for p in players}
    for strategy in strategies:
        options.setdefault(strategy.player_id, [])
        if strategy.id not in options[strategy.player_id]:
            options[strategy.player_id].append(strategy.id)
    for player, used in strategies_in_matrix(matrix).items():
        known = options.setdefault(player, [])
        known.extend(s for s in used if s not in known)
    return options


class GameTheoryHandler(ModeHandler):
    """Strategic interaction between rational players."""

    mode = ThinkingMode.GAMETHEORY
    mode_name = "Game Theory"
    description = "Players, strategies, payoff matrices, equilibria and cooperative solutions"
    thought_types = GAMETHEORY_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        game = data.get("game")
        if isinstance(game, dict):
            findings.known_value("game.type", pick(game, "type"), GAME_TYPES, "game type")
        else:
            findings.warn("game", "No game definition provided", "Describe the game being analyzed")

        players = as_records(data.get("players"))
        strategies = as_records(data.get("strategies"))
        player_ids = [as_str(pick(p, "id")) for p in players]
        strategy_ids = [as_str(pick(s, "id")) for s in strategies]
        for player_id in duplicate_ids(player_ids):
            findings.warn("players", f"Duplicate player id: {player_id}")
        for strategy_id in duplicate_ids(strategy_ids):
            findings.warn("strategies", f"Duplicate strategy id: {strategy_id}")

        owners = {as_str(pick(s, "player_id")) for s in strategies}
        for i, player in enumerate(players):
            available = as_str_list(pick(player, "available_strategies"))
            if not available and player_ids[i] not in owners:
                findings.warn(f"players[{i}]", f"Player {player_ids[i]} has no strategies")
            if strategies:
                for ref in available:
                    if ref not in strategy_ids:
                        findings.warn(
                            f"players[{i}].availableStrategies",
                            f"Player {player_ids[i]} references non-existent strategy: {ref}",
                        )

        mixed_totals: dict[str, float] = {}
        for i, strategy in enumerate(strategies):
            owner = as_str(pick(strategy, "player_id"))
            if players and owner not in player_ids:
                findings.warn(f"strategies[{i}].playerId", f"Strategy references non-existent player: {owner}")
            if pick(strategy, "is_pure") is False:
                probability = pick(strategy, "probability")
                findings.unit_interval(f"strategies[{i}].probability", probability, "Mixed strategy probability")
                if is_number(probability):
                    mixed_totals[owner] = mixed_totals.get(owner, 0.0) + probability
        for owner, total in mixed_totals.items():
            if abs(total - 1) > PROBABILITY_TOLERANCE:
                findings.warn(
                    "strategies",
                    f"Mixed strategy probabilities for player {owner} sum to {total:.3f}",
                    "Probabilities of a mixed strategy must sum to 1",
                )

        matrix = data.get("payoff_matrix")
        if isinstance(matrix, dict):
            self._validate_matrix(findings, matrix)
        elif not players:
            findings.warn(
                "players",
                "No players or payoff matrix provided",
                "Define the players and their payoffs",
            )
        return findings.result()

    @staticmethod
    def _validate_matrix(findings: Findings, matrix: dict[str, Any]) -> None:
        players = as_list(pick(matrix, "players"))
        dimensions = [as_int(d) for d in as_list(pick(matrix, "dimensions"))]
        entries = as_records(pick(matrix, "payoffs"))
        if dimensions and len(players) != len(dimensions):
            findings.warn(
                "payoffMatrix.dimensions",
                f"Payoff matrix has {len(players)} players but {len(dimensions)} dimensions",
            )
        if dimensions and all(d is not None and d > 0 for d in dimensions):
            expected = math.prod(d for d in dimensions if d is not None)
            if len(entries) != expected:
                findings.warn(
                    "payoffMatrix.payoffs",
                    f"Payoff matrix has {len(entries)} entries, expected {expected}",
                    "Provide one entry per strategy profile",
                )
        for i, entry in enumerate(entries):
            if len(as_list(pick(entry, "strategy_profile"))) != len(players):
                findings.warn(
                    f"payoffMatrix.payoffs[{i}].strategyProfile",
                    "Strategy profile length does not match player count",
                )
            if len(as_list(pick(entry, "payoffs"))) != len(players):
                findings.warn(f"payoffMatrix.payoffs[{i}].payoffs", "Payoff vector length does not match player count")

    def create_thought(self, data: ThinkingInput, session_id: str) -> GameTheoryThought:
        raw_game = data.get("game")
        game = None
        if isinstance(raw_game, dict):
            game_type = pick(raw_game, "type")
            game = GameDefinition(
                id=as_str(pick(raw_game, "id")) or self.ids("game"),
                name=as_str(pick(raw_game, "name")),
                type=game_type if game_type in GAME_TYPES else "normal_form",
                description=as_str(pick(raw_game, "description")),
                num_players=as_int(pick(raw_game, "num_players"), 0) or 0,
            )
        players = [
            Player(
                id=as_str(pick(p, "id")) or self.ids("player"),
                name=as_str(pick(p, "name")),
                available_strategies=as_str_list(pick(p, "available_strategies")),
                is_rational=bool(as_bool(pick(p, "is_rational"), True)),
            )
            for p in as_records(data.get("players"))
        ]
        strategies = [
            Strategy(
                id=as_str(pick(s, "id")) or self.ids("strategy"),
                player_id=as_str(pick(s, "player_id")),
                name=as_str(pick(s, "name")),
                is_pure=bool(as_bool(pick(s, "is_pure"), True)),
                probability=as_unit(pick(s, "probability")) if pick(s, "probability") is not None else None,
            )
            for s in as_records(data.get("strategies"))
        ]
        matrix = normalize_payoff_matrix(data.get("payoff_matrix"))
        equilibria: list[NashEquilibrium] = []
        dominant: list[DominantStrategy] = []
        analysis = None
        if matrix is not None:
            equilibria = pure_nash_equilibria(matrix, self.ids)
            dominant = dominant_strategies(matrix, _player_strategies(players, strategies, matrix))
            if is_zero_sum(matrix):
                analysis = minimax(matrix)
        tree = data.get("game_tree")
        return GameTheoryThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "game_definition"),
            game=game,
            players=players,
            strategies=strategies,
            payoff_matrix=matrix,
            nash_equilibria=equilibria,
            dominant_strategies=dominant,
            minimax_analysis=analysis,
            cooperative_game=normalize_cooperative_game(data.get("cooperative_game"), players),
            game_tree=as_dict(tree) if isinstance(tree, dict) else None,
        )

    def get_enhancements(self, thought: GameTheoryThought) -> ModeEnhancements:
        matrix = thought.payoff_matrix
        equilibria = thought.nash_equilibria
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.OPTIMIZATION, ThinkingMode.COUNTERFACTUAL],
            mental_models=["Nash Equilibrium", "Dominant Strategy", "Best Response", "Minimax Theorem"],
            guiding_questions=[
                "What does each player know about the others' payoffs?",
                "Would any player benefit from changing strategy unilaterally?",
                "Is the game played once or repeated?",
            ],
            metrics={
                "player_count": len(thought.players),
                "strategy_count": len(thought.strategies),
                "nash_equilibria_count": len(equilibria),
                "dominant_strategy_count": len(thought.dominant_strategies),
            },
        )
        if matrix is not None:
            enhancements.metrics["payoff_entries"] = len(matrix.payoffs)
            if is_zero_sum(matrix):
                enhancements.metrics["zero_sum"] = 1
                enhancements.suggestions.append("Zero-sum game - minimax strategies coincide with equilibria")
            if thought.minimax_analysis is not None:
                result = thought.minimax_analysis
                enhancements.metrics["maximin_value"] = result.maximin_value
                enhancements.metrics["minimax_value"] = result.minimax_value
                if result.has_saddle_point:
                    enhancements.suggestions.append(
                        f"Saddle point at ({result.maximin_strategy}, {result.minimax_strategy}) "
                        f"with value {result.maximin_value:g}"
                    )
            if len(equilibria) > 1:
                enhancements.suggestions.append(
                    f"{len(equilibria)} equilibria found - consider focal points or refinements"
                )
            elif not equilibria and len(matrix.players) == 2 and matrix.payoffs:
                enhancements.suggestions.append("No pure-strategy equilibrium - look for mixed strategies")
            for equilibrium in equilibria:
                if not is_pareto_optimal(equilibrium.payoffs, matrix):
                    enhancements.warnings.append(
                        f"Equilibrium ({', '.join(equilibrium.strategy_profile)}) is not Pareto optimal"
                    )
        elif not thought.players:
            enhancements.suggestions.append("Define the players and a payoff matrix")
        if thought.dominant_strategies:
            enhancements.suggestions.append(
                f"{len(thought.dominant_strategies)} dominant strateg"
                f"{'y' if len(thought.dominant_strategies) == 1 else 'ies'} identified"
            )

        cooperative = thought.cooperative_game
        if cooperative is not None or (thought.game and thought.game.type == "cooperative"):
            enhancements.mental_models.extend(["Shapley Value", "The Core", "Coalition Formation"])
        if cooperative is not None and cooperative.characteristic_function:
            grand = max(cooperative.characteristic_function, key=lambda v: len(v.coalition))
            members = ", ".join(grand.coalition)
            enhancements.suggestions.append(f"Grand coalition ({members}) is worth {grand.value:g}")
        if thought.game_tree is not None or (thought.game and thought.game.type == "extensive_form"):
            enhancements.mental_models.extend(["Backward Induction", "Subgame Perfection"])
        return enhancements


# =============================================================================
# Optimization
# =============================================================================

OPTIMIZATION_TYPES = (
    "problem_formulation",
    "variable_definition",
    "constraint_identification",
    "objective_setting",
    "solution_search",
    "sensitivity_analysis",
)
PROBLEM_TYPES = (
    "linear",
    "nonlinear",
    "integer",
    "mixed_integer",
    "constraint_satisfaction",
    "multi_objective",
)
SOLUTION_TYPES = ("optimal", "feasible", "infeasible", "unbounded", "approximate")

_OPTIMIZATION_QUESTIONS = {
    "problem_formulation": [
        "What are we trying to optimize?",
        "What constraints must be satisfied?",
        "Is this a single or multi-objective problem?",
    ],
    "variable_definition": [
        "Are all decision variables identified?",
        "What are the variable domains?",
        "Are there any implicit variables?",
    ],
    "constraint_identification": [
        "Are all constraints identified?",
        "Which constraints are hard vs soft?",
        "Are the constraints consistent?",
    ],
    "objective_setting": [
        "Is the objective function well-defined?",
        "Are there conflicting objectives?",
        "How will trade-offs be handled?",
    ],
    "solution_search": [
        "Is the solution feasible?",
        "Is the solution optimal or approximate?",
        "What method was used to find it?",
    ],
    "sensitivity_analysis": [
        "How robust is the solution?",
        "Which constraints are binding?",
        "What are the shadow prices?",
    ],
}


@dataclass(frozen=True)
class OptimizationProblem:
    id: str
    name: str = ""
    description: str = ""
    type: str = "linear"
    approach: str | None = None
    complexity: str | None = None


@dataclass(frozen=True)
class DecisionVariable:
    id: str
    name: str = ""
    type: str = "continuous"
    lower_bound: float | None = 0.0
    upper_bound: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class OptimizationConstraint:
    id: str
    name: str = ""
    type: str = "hard"
    formula: str = ""
    variables: list[str] = field(default_factory=list)
    penalty: float | None = None


@dataclass(frozen=True)
class Objective:
    id: str
    name: str = ""
    type: str = "minimize"
    formula: str = ""
    variables: list[str] = field(default_factory=list)
    weight: float | None = None


@dataclass(frozen=True)
class ConstraintSatisfaction:
    constraint_id: str
    satisfied: bool = True
    violation: float | None = None


@dataclass(frozen=True)
class Solution:
    id: str
    type: str = "feasible"
    variable_values: dict[str, Any] = field(default_factory=dict)
    objective_values: dict[str, Any] = field(default_factory=dict)
    constraint_satisfaction: list[ConstraintSatisfaction] = field(default_factory=list)
    quality: float = 0.5
    method: str | None = None
    guarantees: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SensitivityReport:
    id: str
    robustness: float = 0.5
    critical_constraints: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class OptimizationThought(Thought):
    thought_type: str = "problem_formulation"
    problem: OptimizationProblem | None = None
    variables: list[DecisionVariable] = field(default_factory=list)
    constraints: list[OptimizationConstraint] = field(default_factory=list)
    objectives: list[Objective] = field(default_factory=list)
    solution: Solution | None = None
    analysis: SensitivityReport | None = None


def _optimization_constraints(data: ThinkingInput) -> list[dict[str, Any]]:
    return as_records(data.get("optimization_constraints", data.get("constraints")))


class OptimizationHandler(ModeHandler):
    """Objective functions, constraints and solution quality."""

    mode = ThinkingMode.OPTIMIZATION
    mode_name = "Optimization Analysis"
    description = "Constraint optimization, objective functions, and solution search"
    thought_types = OPTIMIZATION_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("problem.type", pick(data.get("problem"), "type"), PROBLEM_TYPES, "problem type")
        findings.known_value("solution.type", pick(data.get("solution"), "type"), SOLUTION_TYPES, "solution type")
        for i, constraint in enumerate(_optimization_constraints(data)):
            if not pick(constraint, "formula"):
                findings.warn(
                    f"constraints[{i}].formula",
                    "Constraint lacks formula",
                    "Specify the mathematical constraint expression",
                )
        objectives = as_records(data.get("objectives"))
        total_weight = 0.0
        for i, objective in enumerate(objectives):
            if not pick(objective, "formula"):
                findings.warn(f"objectives[{i}].formula", "Objective lacks formula", "Specify the objective function")
            total_weight += as_float(pick(objective, "weight"), 0.0) or 0.0
        if len(objectives) > 1 and total_weight > 0 and abs(total_weight - 1) > 0.01:
            findings.warn(
                "objectives",
                f"Objective weights sum to {total_weight:.2f}, should be 1.0",
                "Normalize weights for multi-objective optimization",
            )
        findings.unit_interval("solution.quality", pick(data.get("solution"), "quality"), "Solution quality")
        findings.unit_interval("analysis.robustness", pick(data.get("analysis"), "robustness"), "Robustness")
        thought_type = self.resolve_thought_type(data, "problem_formulation")
        if not data.has("variables") and thought_type != "problem_formulation":
            findings.warn("variables", "No decision variables defined", "Define the variables to be optimized")
        if not objectives and thought_type == "solution_search":
            findings.warn("objectives", "Solution search without objectives", "Define objective functions to optimize")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> OptimizationThought:
        raw_problem = data.get("problem")
        problem = None
        if isinstance(raw_problem, dict):
            problem_type = pick(raw_problem, "type")
            problem = OptimizationProblem(
                id=as_str(pick(raw_problem, "id")) or self.ids("problem"),
                name=as_str(pick(raw_problem, "name")),
                description=as_str(pick(raw_problem, "description")),
                type=problem_type if problem_type in PROBLEM_TYPES else "linear",
                approach=as_str(pick(raw_problem, "approach")) or None,
                complexity=as_str(pick(raw_problem, "complexity")) or None,
            )
        variables = []
        for v in as_records(data.get("variables")):
            domain = as_dict(pick(v, "domain"))
            variables.append(
                DecisionVariable(
                    id=as_str(pick(v, "id")) or self.ids("var"),
                    name=as_str(pick(v, "name")),
                    type=as_str(pick(v, "type"), "continuous") or "continuous",
                    lower_bound=as_float(pick(domain, "lower_bound"), 0.0),
                    upper_bound=as_float(pick(domain, "upper_bound")),
                    unit=as_str(pick(v, "unit")) or None,
                )
            )
        constraints = [
            OptimizationConstraint(
                id=as_str(pick(c, "id")) or self.ids("constraint"),
                name=as_str(pick(c, "name")),
                type="soft" if pick(c, "type") == "soft" else "hard",
                formula=as_str(pick(c, "formula")),
                variables=as_str_list(pick(c, "variables")),
                penalty=as_float(pick(c, "penalty")),
            )
            for c in _optimization_constraints(data)
        ]
        objectives = [
            Objective(
                id=as_str(pick(o, "id")) or self.ids("objective"),
                name=as_str(pick(o, "name")),
                type="maximize" if pick(o, "type") == "maximize" else "minimize",
                formula=as_str(pick(o, "formula")),
                variables=as_str_list(pick(o, "variables")),
                weight=as_float(pick(o, "weight")),
            )
            for o in as_records(data.get("objectives"))
        ]
        raw_solution = data.get("solution")
        solution = None
        if isinstance(raw_solution, dict):
            satisfaction = [
                ConstraintSatisfaction(
                    constraint_id=as_str(pick(s, "constraint_id")),
                    satisfied=bool(as_bool(pick(s, "satisfied"), True)),
                    violation=as_float(pick(s, "violation")),
                )
                for s in as_records(pick(raw_solution, "constraint_satisfaction"))
            ] or [ConstraintSatisfaction(constraint_id=c.id) for c in constraints]
            solution_type = pick(raw_solution, "type")
            solution = Solution(
                id=as_str(pick(raw_solution, "id")) or self.ids("solution"),
                type=solution_type if solution_type in SOLUTION_TYPES else "feasible",
                variable_values=as_dict(pick(raw_solution, "variable_values")),
                objective_values=as_dict(pick(raw_solution, "objective_values")),
                constraint_satisfaction=satisfaction,
                quality=as_unit(pick(raw_solution, "quality")),
                method=as_str(pick(raw_solution, "method")) or None,
                guarantees=as_str_list(pick(raw_solution, "guarantees")),
            )
        raw_analysis = data.get("analysis")
        analysis = None
        if isinstance(raw_analysis, dict):
            analysis = SensitivityReport(
                id=as_str(pick(raw_analysis, "id")) or self.ids("analysis"),
                robustness=as_unit(pick(raw_analysis, "robustness")),
                critical_constraints=as_str_list(pick(raw_analysis, "critical_constraints")),
                recommendations=as_str_list(pick(raw_analysis, "recommendations")),
            )
        return OptimizationThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_formulation"),
            problem=problem,
            variables=variables,
            constraints=constraints,
            objectives=objectives,
            solution=solution,
            analysis=analysis,
        )

    def get_enhancements(self, thought: OptimizationThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.MATHEMATICS, ThinkingMode.ALGORITHMIC, ThinkingMode.ENGINEERING],
            mental_models=[
                "Linear Programming",
                "Constraint Satisfaction",
                "Pareto Optimality",
                "Sensitivity Analysis",
                "Lagrangian Relaxation",
            ],
            guiding_questions=list(_OPTIMIZATION_QUESTIONS.get(thought.thought_type, [])),
            metrics={
                "variable_count": len(thought.variables),
                "constraint_count": len(thought.constraints),
                "objective_count": len(thought.objectives),
            },
        )
        if thought.problem is not None:
            enhancements.suggestions.append(f"Problem type: {thought.problem.type}")
            if thought.problem.complexity:
                enhancements.metrics["complexity"] = thought.problem.complexity
        if thought.variables:
            types = sorted({v.type for v in thought.variables})
            enhancements.suggestions.append(f"Variable types: {', '.join(types)}")
        if thought.constraints:
            hard = sum(1 for c in thought.constraints if c.type == "hard")
            enhancements.suggestions.append(f"Constraints: {hard} hard, {len(thought.constraints) - hard} soft")
        if thought.objectives:
            maximize = sum(1 for o in thought.objectives if o.type == "maximize")
            enhancements.suggestions.append(
                f"Objectives: {maximize} maximize, {len(thought.objectives) - maximize} minimize"
            )

        solution = thought.solution
        if solution is not None:
            enhancements.metrics["solution_quality"] = solution.quality
            if solution.type == "infeasible":
                enhancements.warnings.append("Solution is infeasible - check constraint compatibility")
            elif solution.type == "unbounded":
                enhancements.warnings.append("Problem is unbounded - add missing constraints")
            violated = [s.constraint_id for s in solution.constraint_satisfaction if not s.satisfied]
            if violated:
                enhancements.warnings.append(f"Solution violates {len(violated)} constraint(s)")
            if solution.guarantees:
                enhancements.suggestions.append(f"Guarantees: {', '.join(solution.guarantees)}")
        if thought.analysis is not None:
            enhancements.metrics["robustness"] = thought.analysis.robustness
            enhancements.metrics["critical_constraint_count"] = len(thought.analysis.critical_constraints)
            if thought.analysis.robustness < 0.5:
                enhancements.warnings.append(
                    "Low solution robustness - small changes may significantly affect results"
                )
        if (
            thought.problem is not None
            and thought.problem.type == "multi_objective"
            and not any(o.weight is not None for o in thought.objectives)
        ):
            enhancements.suggestions.append("Multi-objective problem without weights - consider Pareto analysis")
        return enhancements


# =============================================================================
# Constraint satisfaction
# =============================================================================

CONSTRAINT_TYPES = (
    "problem_formulation",
    "variable_definition",
    "constraint_definition",
    "domain_reduction",
    "arc_consistency",
    "propagation",
    "solution_search",
    "backtracking",
    "feasibility_check",
)
CSP_CONSTRAINT_KINDS = ("unary", "binary", "n_ary", "global")
CSP_PRIORITIES = ("required", "soft", "preference")
SOLUTION_STATUSES = ("searching", "found", "infeasible", "timeout")

_CSP_QUESTIONS = {
    "problem_formulation": [
        "What are the decision variables?",
        "What constraints must be satisfied?",
        "Are there any global constraints?",
    ],
    "variable_definition": [
        "What is the domain of each variable?",
        "Are domains finite and discrete?",
        "Can domains be reduced initially?",
    ],
    "constraint_definition": [
        "Are all constraints necessary?",
        "Are there redundant constraints?",
        "Can constraints be tightened?",
    ],
    "domain_reduction": [
        "Which values can be pruned?",
        "Are there singleton domains?",
        "Has propagation been exhausted?",
    ],
    "arc_consistency": [
        "Are all arcs consistent?",
        "Which arcs need revision?",
        "Has a fixpoint been reached?",
    ],
    "propagation": [
        "What can be inferred from current assignments?",
        "Are there forced assignments?",
        "Can we detect early failure?",
    ],
    "solution_search": [
        "Which variable should be assigned next?",
        "What value should be tried first?",
        "Is the current partial solution extensible?",
    ],
    "backtracking": [
        "Why did the current assignment fail?",
        "What is the most recent decision point?",
        "Can we learn from this failure (nogood)?",
    ],
    "feasibility_check": [
        "Is the problem satisfiable?",
        "Are there inconsistent constraints?",
        "What is the minimal unsatisfiable subset?",
    ],
}


@dataclass(frozen=True)
class CSPVariable:
    id: str
    name: str = ""
    domain: list[Any] = field(default_factory=list)
    current_value: Any = None
    domain_reduced: bool = False


@dataclass(frozen=True)
class CSPConstraint:
    id: str
    name: str = ""
    type: str = "binary"
    variables: list[str] = field(default_factory=list)
    expression: str = ""
    satisfied: bool | None = None
    priority: str = "required"


@dataclass(frozen=True)
class Arc:
    from_var: str
    to_var: str
    constraint_id: str


@dataclass(frozen=True)
class Assignment:
    variable_id: str
    value: Any
    step: int = 0
    backtracked: bool = False


@dataclass(frozen=True, kw_only=True)
class ConstraintThought(Thought):
    thought_type: str = "problem_formulation"
    variables: list[CSPVariable] = field(default_factory=list)
    constraints: list[CSPConstraint] = field(default_factory=list)
    current_assignments: dict[str, Any] = field(default_factory=dict)
    assignment_history: list[Assignment] = field(default_factory=list)
    search_step: int = 0
    backtracks: int = 0
    arcs: list[Arc] = field(default_factory=list)
    is_arc_consistent: bool = True
    solution_status: str = "searching"
    solution_count: int = 0


def _variable_key(record: dict[str, Any]) -> str:
    return as_str(pick(record, "id")) or as_str(pick(record, "name"))


def normalize_csp_constraint(raw: dict[str, Any], constraint_id: str) -> CSPConstraint:
    """Infer the constraint kind from its arity when none is declared."""
    variables = as_str_list(pick(raw, "variables"))
    kind = pick(raw, "type")
    if kind is None and variables:
        kind = {1: "unary", 2: "binary"}.get(len(variables), "n_ary")
    priority = pick(raw, "priority")
    return CSPConstraint(
        id=constraint_id,
        name=as_str(pick(raw, "name")),
        type=kind if kind in CSP_CONSTRAINT_KINDS else "binary",
        variables=variables,
        expression=as_str(pick(raw, "expression")),
        satisfied=as_bool(pick(raw, "satisfied")),
        priority=priority if priority in CSP_PRIORITIES else "required",
    )


def binary_arcs(constraints: list[CSPConstraint]) -> list[Arc]:
    """Both directed arcs of every binary constraint."""
    arcs = []
    for constraint in constraints:
        if constraint.type == "binary" and len(constraint.variables) == 2:
            first, second = constraint.variables
            arcs.append(Arc(first, second, constraint.id))
            arcs.append(Arc(second, first, constraint.id))
    return arcs


def arc_consistent(variables: list[CSPVariable], constraints: list[CSPConstraint]) -> bool:
    """No empty domain and no required constraint known to be violated."""
    if any(not v.domain for v in variables):
        return False
    return not any(c.satisfied is False and c.priority == "required" for c in constraints)


def solution_status(
    variables: list[CSPVariable], constraints: list[CSPConstraint], assignments: dict[str, Any]
) -> str:
    if any(not v.domain for v in variables):
        return "infeasible"
    assigned = all(v.id in assignments or v.name in assignments for v in variables)
    required_ok = all(c.satisfied is not False for c in constraints if c.priority == "required")
    if variables and assigned and required_ok:
        return "found"
    return "searching"


class ConstraintHandler(ModeHandler):
    """Constraint satisfaction problems."""

    mode = ThinkingMode.CONSTRAINT
    mode_name = "Constraint Reasoning"
    description = "Constraint satisfaction, domain reduction, propagation, and feasibility analysis"
    thought_types = CONSTRAINT_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        variables = as_records(data.get("variables"))
        for i, variable in enumerate(variables):
            if not as_list(pick(variable, "domain")):
                findings.warn(
                    f"variables[{i}].domain",
                    f'Variable "{_variable_key(variable)}" has empty domain',
                    "Empty domains indicate infeasibility",
                )
        known = {_variable_key(v) for v in variables}
        for i, constraint in enumerate(as_records(data.get("constraints", data.get("csp_constraints")))):
            for ref in as_str_list(pick(constraint, "variables")):
                if ref not in known:
                    findings.warn(
                        f"constraints[{i}].variables",
                        f"Constraint references unknown variable: {ref}",
                        "Ensure all constraint variables are defined",
                    )
            findings.known_value(
                f"constraints[{i}].type", pick(constraint, "type"), CSP_CONSTRAINT_KINDS, "constraint type"
            )
            findings.known_value(f"constraints[{i}].priority", pick(constraint, "priority"), CSP_PRIORITIES, "priority")
            if not pick(constraint, "expression"):
                findings.warn(
                    f"constraints[{i}].expression", "Constraint lacks expression", "Define the constraint condition"
                )
        domains = {_variable_key(v): as_list(pick(v, "domain")) for v in variables}
        for name, value in as_dict(data.get("current_assignments")).items():
            domain = domains.get(name)
            if domain and value not in domain:
                findings.warn(
                    f"currentAssignments[{name}]",
                    f"Assigned value {value} not in domain",
                    "Assignment violates domain constraint",
                )
        findings.known_value("solutionStatus", data.get("solution_status"), SOLUTION_STATUSES, "solution status")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ConstraintThought:
        variables = [
            CSPVariable(
                id=_variable_key(v) or self.ids("var"),
                name=as_str(pick(v, "name")),
                domain=as_list(pick(v, "domain")),
                current_value=pick(v, "current_value"),
                domain_reduced=bool(as_bool(pick(v, "domain_reduced"), False)),
            )
            for v in as_records(data.get("variables"))
        ]
        constraints = [
            normalize_csp_constraint(c, as_str(pick(c, "id")) or self.ids("constraint"))
            for c in as_records(data.get("constraints", data.get("csp_constraints")))
        ]
        raw_arcs = data.get("arcs")
        if isinstance(raw_arcs, list):
            arcs = [
                Arc(as_str(pick(a, "from")), as_str(pick(a, "to")), as_str(pick(a, "constraint_id")))
                for a in as_records(raw_arcs)
            ]
        else:
            arcs = binary_arcs(constraints)
        assignments = as_dict(data.get("current_assignments"))
        history = [
            Assignment(
                variable_id=as_str(pick(a, "variable_id")),
                value=pick(a, "value"),
                step=as_int(pick(a, "step"), 0) or 0,
                backtracked=bool(as_bool(pick(a, "backtracked"), False)),
            )
            for a in as_records(data.get("assignment_history"))
        ]
        status = data.get("solution_status")
        if status not in SOLUTION_STATUSES:
            status = solution_status(variables, constraints, assignments)
        consistent = as_bool(data.get("is_arc_consistent"))
        return ConstraintThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_formulation"),
            variables=variables,
            constraints=constraints,
            current_assignments=assignments,
            assignment_history=history,
            search_step=max(0, as_int(data.get("search_step"), len(history)) or 0),
            backtracks=max(0, as_int(data.get("backtracks"), sum(1 for a in history if a.backtracked)) or 0),
            arcs=arcs,
            is_arc_consistent=arc_consistent(variables, constraints) if consistent is None else consistent,
            solution_status=status,
            solution_count=max(0, as_int(data.get("solution_count"), 0) or 0),
        )

    def get_enhancements(self, thought: ConstraintThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.OPTIMIZATION, ThinkingMode.ALGORITHMIC, ThinkingMode.FORMALLOGIC],
            mental_models=[
                "Constraint Propagation",
                "Arc Consistency",
                "Backtracking Search",
                "Domain Reduction",
                "Conflict-Directed Backjumping",
            ],
            guiding_questions=list(_CSP_QUESTIONS.get(thought.thought_type, [])),
            metrics={
                "variable_count": len(thought.variables),
                "constraint_count": len(thought.constraints),
                "assigned_count": len(thought.current_assignments),
                "backtrack_count": thought.backtracks,
                "search_step": thought.search_step,
                "solution_count": thought.solution_count,
                "arc_count": len(thought.arcs),
            },
            suggestions=[f"Status: {thought.solution_status}"],
        )
        if thought.is_arc_consistent:
            enhancements.suggestions.append("Problem is arc-consistent")
        else:
            enhancements.warnings.append("Problem is not arc-consistent - consider propagation")

        if thought.variables:
            average = sum(len(v.domain) for v in thought.variables) / len(thought.variables)
            enhancements.metrics["avg_domain_size"] = average
            progress = len(thought.current_assignments) / len(thought.variables)
            enhancements.metrics["search_progress"] = min(1.0, progress)
        if thought.thought_type == "constraint_definition":
            required = sum(1 for c in thought.constraints if c.priority == "required")
            enhancements.suggestions.append(
                f"Constraints: {required} required, {len(thought.constraints) - required} soft"
            )
        elif thought.thought_type == "domain_reduction":
            reduced = sum(1 for v in thought.variables if v.domain_reduced)
            enhancements.suggestions.append(f"Variables with reduced domains: {reduced}")
        elif thought.thought_type == "solution_search":
            enhancements.mental_models.extend(
                ["MRV (Minimum Remaining Values)", "Degree Heuristic", "LCV (Least Constraining Value)"]
            )

        empty = [v for v in thought.variables if not v.domain]
        if empty:
            enhancements.warnings.append(f"{len(empty)} variable(s) have empty domains - problem is infeasible")
        if thought.search_step > 0 and thought.backtracks / thought.search_step > 0.5:
            enhancements.warnings.append("High backtrack rate - consider better variable/value ordering")
        return enhancements
