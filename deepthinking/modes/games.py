"""Normal-form game analysis.

Payoff matrices are lists of entries pairing a strategy profile (one
strategy id per player, in ``PayoffMatrix.players`` order) with a payoff
vector. Equilibrium and dominance search work on the entries present; a
missing profile is simply not considered.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from deepthinking.utils.ids import IdGenerator

ZERO_SUM_TOLERANCE = 0.001


@dataclass(frozen=True)
class PayoffEntry:
    strategy_profile: list[str]
    payoffs: list[float]


@dataclass(frozen=True)
class PayoffMatrix:
    players: list[str] = field(default_factory=list)
    dimensions: list[int] = field(default_factory=list)
    payoffs: list[PayoffEntry] = field(default_factory=list)

    def well_formed(self) -> bool:
        """Every entry has one strategy and one payoff per player."""
        n = len(self.players)
        return all(len(e.strategy_profile) == n and len(e.payoffs) == n for e in self.payoffs)


@dataclass(frozen=True)
class NashEquilibrium:
    id: str
    strategy_profile: list[str]
    payoffs: list[float]
    type: str = "pure"
    is_strict: bool = False
    stability: float = 0.5


@dataclass(frozen=True)
class DominantStrategy:
    player_id: str
    strategy_id: str
    type: str
    dominates_strategies: list[str]
    justification: str = ""


def _deviations(entry: PayoffEntry, matrix: PayoffMatrix, player: int) -> list[PayoffEntry]:
    """Entries where only ``player`` plays differently from ``entry``."""
    return [
        other
        for other in matrix.payoffs
        if other.strategy_profile[player] != entry.strategy_profile[player]
        and all(
            other.strategy_profile[i] == entry.strategy_profile[i]
            for i in range(len(matrix.players))
            if i != player
        )
    ]


def is_nash_equilibrium(entry: PayoffEntry, matrix: PayoffMatrix) -> bool:
    """No player gains strictly by deviating alone."""
    return all(
        other.payoffs[p] <= entry.payoffs[p]
        for p in range(len(matrix.players))
        for other in _deviations(entry, matrix, p)
    )


def is_strict_equilibrium(entry: PayoffEntry, matrix: PayoffMatrix) -> bool:
    """Every unilateral deviation loses strictly."""
    return all(
        other.payoffs[p] < entry.payoffs[p]
        for p in range(len(matrix.players))
        for other in _deviations(entry, matrix, p)
    )


def equilibrium_stability(entry: PayoffEntry, matrix: PayoffMatrix) -> float:
    """0.5 plus a tenth of the average deviation penalty, clamped to [0, 1]."""
    penalties = [
        entry.payoffs[p] - other.payoffs[p]
        for p in range(len(matrix.players))
        for other in _deviations(entry, matrix, p)
    ]
    average = sum(penalties) / len(penalties) if penalties else 0.0
    return max(0.0, min(1.0, 0.5 + average / 10))


def pure_nash_equilibria(matrix: PayoffMatrix, ids: IdGenerator) -> list[NashEquilibrium]:
    """Best-response enumeration over the entries of a two-player matrix.

    Args:
        matrix: Payoff matrix; anything but a well-formed two-player matrix
            yields no equilibria.
        ids: Id generator called as ``ids("eq")``.

    Returns:
        Pure equilibria in matrix order.

    """
    if len(matrix.players) != 2 or not matrix.well_formed():
        return []
    return [
        NashEquilibrium(
            id=ids("eq"),
            strategy_profile=list(entry.strategy_profile),
            payoffs=list(entry.payoffs),
            is_strict=is_strict_equilibrium(entry, matrix),
            stability=equilibrium_stability(entry, matrix),
        )
        for entry in matrix.payoffs
        if is_nash_equilibrium(entry, matrix)
    ]


def _payoffs_by_opponents(matrix: PayoffMatrix, player: int, strategy: str) -> dict[tuple[str, ...], float]:
    return {
        tuple(s for i, s in enumerate(entry.strategy_profile) if i != player): entry.payoffs[player]
        for entry in matrix.payoffs
        if entry.strategy_profile[player] == strategy
    }


def dominated_by(matrix: PayoffMatrix, player: int, strategy: str, others: Sequence[str]) -> list[str]:
    """Strategies in ``others`` that ``strategy`` beats against every shared opponent profile."""
    mine = _payoffs_by_opponents(matrix, player, strategy)
    if not mine:
        return []
    beaten = []
    for other in others:
        if other == strategy:
            continue
        theirs = _payoffs_by_opponents(matrix, player, other)
        shared = mine.keys() & theirs.keys()
        if not shared:
            continue
        if all(mine[key] > theirs[key] for key in shared):
            beaten.append(other)
    return beaten


def dominant_strategies(
    matrix: PayoffMatrix, strategies_by_player: Mapping[str, Sequence[str]]
) -> list[DominantStrategy]:
    """Strategies that strictly beat at least one alternative, for two-player games.

    A strategy that beats every alternative of its player is strictly
    dominant; one that beats only some is reported as weakly dominant.
    """
    if len(matrix.players) != 2 or not matrix.well_formed():
        return []
    found = []
    for player_index, player_id in enumerate(matrix.players):
        options = list(strategies_by_player.get(player_id, ()))
        for strategy in options:
            beaten = dominated_by(matrix, player_index, strategy, options)
            if beaten:
                found.append(
                    DominantStrategy(
                        player_id=player_id,
                        strategy_id=strategy,
                        type="strictly_dominant" if len(beaten) == len(options) - 1 else "weakly_dominant",
                        dominates_strategies=beaten,
                        justification=f"Strategy {strategy} dominates: {', '.join(beaten)}",
                    )
                )
    return found


def strategies_in_matrix(matrix: PayoffMatrix) -> dict[str, list[str]]:
    """Strategy ids each player uses in the matrix, in first-seen order."""
    found: dict[str, list[str]] = {player: [] for player in matrix.players}
    for entry in matrix.payoffs:
        for player, strategy in zip(matrix.players, entry.strategy_profile, strict=False):
            if strategy not in found[player]:
                found[player].append(strategy)
    return found


def is_zero_sum(matrix: PayoffMatrix) -> bool:
    """Two players whose payoffs cancel in every entry."""
    if len(matrix.players) != 2 or not matrix.payoffs:
        return False
    return all(abs(sum(entry.payoffs)) <= ZERO_SUM_TOLERANCE for entry in matrix.payoffs)


def is_pareto_optimal(payoffs: Sequence[float], matrix: PayoffMatrix) -> bool:
    """No entry is at least as good for everyone and strictly better for someone."""
    for entry in matrix.payoffs:
        if len(entry.payoffs) != len(payoffs):
            continue
        if all(a >= b for a, b in zip(entry.payoffs, payoffs, strict=True)) and any(
            a > b for a, b in zip(entry.payoffs, payoffs, strict=True)
        ):
            return False
    return True


@dataclass(frozen=True)
class MinimaxResult:
    maximin_value: float
    minimax_value: float
    maximin_strategy: str
    minimax_strategy: str

    @property
    def has_saddle_point(self) -> bool:
        return math.isclose(self.maximin_value, self.minimax_value)


def minimax(matrix: PayoffMatrix) -> MinimaxResult | None:
    """Pure-strategy security levels from the first player's payoffs.

    Returns:
        Row player's maximin and column player's minimax, or None when the
        matrix is not a well-formed two-player matrix.

    """
    if len(matrix.players) != 2 or not matrix.payoffs or not matrix.well_formed():
        return None
    rows: dict[str, list[float]] = {}
    columns: dict[str, list[float]] = {}
    for entry in matrix.payoffs:
        row, column = entry.strategy_profile
        rows.setdefault(row, []).append(entry.payoffs[0])
        columns.setdefault(column, []).append(entry.payoffs[0])
    maximin_strategy = max(rows, key=lambda r: min(rows[r]))
    minimax_strategy = min(columns, key=lambda c: max(columns[c]))
    return MinimaxResult(
        maximin_value=min(rows[maximin_strategy]),
        minimax_value=max(columns[minimax_strategy]),
        maximin_strategy=maximin_strategy,
        minimax_strategy=minimax_strategy,
    )
