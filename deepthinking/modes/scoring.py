"""Scoring functions for evidence and hypothesis evaluation.

Pure functions, no handler state:
- Critique balance ratio
- Abductive coverage, complexity and Occam-penalized plausibility
- Deciban (log-odds) conversion and evidence-chain accumulation
- Sequential Bayesian updating and Bayes factor interpretation
- Dempster-Shafer belief, plausibility and rule of combination
- Hybrid multi-mode convergence and overall confidence
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

# =============================================================================
# Balance
# =============================================================================


def balance_ratio(strengths: int, weaknesses: int) -> float:
    """Share of strengths among all critique points.

    Args:
        strengths: Number of strength points.
        weaknesses: Number of weakness/concern points.

    Returns:
        strengths / (strengths + weaknesses), or 0.5 when both are zero.

    """
    total = strengths + weaknesses
    if total == 0:
        return 0.5
    return strengths / total


# =============================================================================
# Abductive scoring
# =============================================================================


class Scored(Protocol):
    score: float


ScoredT = TypeVar("ScoredT", bound=Scored)


def explanation_coverage(explanation: str, observations: Sequence[str]) -> float:
    """Fraction of observations lexically covered by an explanation.

    An observation counts as covered when any of its whitespace-separated
    tokens longer than three characters occurs in the lowercased explanation.

    Returns:
        Coverage in [0, 1]; 0 when there are no observations.

    """
    if not observations:
        return 0.0
    text = explanation.lower()
    covered = sum(
        1
        for description in observations
        if any(len(token) > 3 and token in text for token in description.lower().split())
    )
    return covered / len(observations)


def explanation_complexity(explanation: str, assumption_count: int) -> float:
    """Occam complexity: min(words/100 + 0.1 * assumptions, 1)."""
    word_count = len(explanation.split())
    return min(word_count / 100 + 0.1 * assumption_count, 1.0)


def plausibility_score(coverage: float, complexity: float) -> float:
    """Combine coverage with a complexity penalty: coverage * (1 - complexity / 2)."""
    return coverage * (1 - complexity / 2)


def score_hypothesis(explanation: str, assumption_count: int, observations: Sequence[str]) -> float:
    """Score one hypothesis against a set of observation descriptions."""
    return plausibility_score(
        explanation_coverage(explanation, observations),
        explanation_complexity(explanation, assumption_count),
    )


def select_best_explanation(hypotheses: Iterable[ScoredT]) -> ScoredT | None:
    """Pick the highest-scoring hypothesis.

    Ties go to the first hypothesis encountered.

    Returns:
        The best hypothesis, or None for an empty input.

    """
    best: ScoredT | None = None
    for hypothesis in hypotheses:
        if best is None or hypothesis.score > best.score:
            best = hypothesis
    return best


# =============================================================================
# Decibans
# =============================================================================


MAX_DECIBANS = 3000.0


class EvidenceConclusion(str, Enum):
    """Verdict of an accumulated evidence chain."""

    CONFIRMED = "confirmed"
    REFUTED = "refuted"
    INCONCLUSIVE = "inconclusive"


def to_decibans(likelihood_ratio: float) -> float:
    """Convert a likelihood ratio to decibans: 10 * log10(lr).

    Raises:
        ValueError: If the ratio is not positive.

    """
    if likelihood_ratio <= 0:
        raise ValueError(f"Likelihood ratio must be positive, got {likelihood_ratio}")
    return 10 * math.log10(likelihood_ratio)


def from_decibans(decibans: float) -> float:
    """Convert decibans back to a likelihood ratio: 10 ** (d / 10).

    Saturates to ``math.inf`` instead of overflowing.
    """
    if decibans > MAX_DECIBANS:
        return math.inf
    return 10 ** (decibans / 10)


def decibans_to_probability(decibans: float, prior: float = 0.5) -> float:
    """Posterior probability after applying ``decibans`` of evidence to ``prior``.

    Works in odds space: posterior_odds = prior_odds * 10 ** (d / 10).
    """
    if prior <= 0:
        return 0.0
    if prior >= 1:
        return 1.0
    log_odds = math.log10(prior / (1 - prior)) + decibans / 10
    if log_odds > MAX_DECIBANS / 10:
        return 1.0
    if log_odds < -MAX_DECIBANS / 10:
        return 0.0
    posterior_odds = 10**log_odds
    return posterior_odds / (1 + posterior_odds)


def accumulate_decibans(values: Iterable[float]) -> float:
    """Total evidential weight; plain summation of deciban values."""
    return sum(values, 0.0)


def evidence_conclusion(
    total_decibans: float,
    confirmation_threshold: float = 20.0,
    refutation_threshold: float = -20.0,
) -> EvidenceConclusion:
    """Classify an accumulated total against the two thresholds."""
    if total_decibans >= confirmation_threshold:
        return EvidenceConclusion.CONFIRMED
    if total_decibans <= refutation_threshold:
        return EvidenceConclusion.REFUTED
    return EvidenceConclusion.INCONCLUSIVE


# =============================================================================
# Bayesian updating
# =============================================================================


def bayes_update(prior: float, p_e_given_h: float, p_e_given_not_h: float) -> float:
    """One application of Bayes' theorem.

    P(H|E) = P(E|H)P(H) / [P(E|H)P(H) + P(E|~H)(1 - P(H))]. When P(E) is zero
    the prior is returned unchanged.
    """
    p_e = p_e_given_h * prior + p_e_given_not_h * (1 - prior)
    if p_e <= 0:
        return prior
    return p_e_given_h * prior / p_e


def sequential_posterior(prior: float, likelihood_pairs: Iterable[tuple[float, float]]) -> float:
    """Apply ``bayes_update`` for each (P(E|H), P(E|~H)) pair in order, clamped to [0, 1]."""
    posterior = prior
    for p_h, p_not_h in likelihood_pairs:
        posterior = bayes_update(posterior, p_h, p_not_h)
    return max(0.0, min(1.0, posterior))


def bayes_factor(likelihood_pairs: Iterable[tuple[float, float]]) -> float | None:
    """Product of P(E|H)/P(E|~H); pairs with P(E|~H) = 0 are skipped.

    Returns:
        The factor, or None when there is no evidence.

    """
    pairs = list(likelihood_pairs)
    if not pairs:
        return None
    factor = 1.0
    for p_h, p_not_h in pairs:
        if p_not_h > 0:
            factor *= p_h / p_not_h
    return factor


def bayes_factor_strength(factor: float) -> str:
    """Kass & Raftery style interpretation of a Bayes factor."""
    if factor < 1:
        if factor < 0.1:
            return "Strong evidence against"
        if factor < 0.33:
            return "Moderate evidence against"
        return "Weak evidence against"
    if factor > 10:
        return "Strong evidence for"
    if factor > 3:
        return "Moderate evidence for"
    return "Weak evidence for"


def posterior_confidence(likelihood_pairs: Sequence[tuple[float, float]]) -> float:
    """Heuristic confidence in a computed posterior.

    More evidence raises confidence with diminishing returns; extreme
    likelihood ratios (> 100 or < 0.01) count for less.
    """
    if not likelihood_pairs:
        return 0.5
    contribution = min(0.4, len(likelihood_pairs) * 0.1)
    quality = 0.0
    for p_h, p_not_h in likelihood_pairs:
        ratio = p_h / (p_not_h or 0.01)
        quality += 0.05 if ratio > 100 or ratio < 0.01 else 0.1
    return min(0.95, 0.5 + contribution + quality / len(likelihood_pairs))


# =============================================================================
# Dempster-Shafer
# =============================================================================

MassFunction = dict[frozenset[str], float]


def mass_total(masses: MassFunction) -> float:
    return sum(masses.values(), 0.0)


def belief(masses: MassFunction, hypothesis: frozenset[str]) -> float:
    """Bel(A): total mass of focal sets contained in A."""
    return sum((m for focal, m in masses.items() if focal and focal <= hypothesis), 0.0)


def plausibility(masses: MassFunction, hypothesis: frozenset[str]) -> float:
    """Pl(A): total mass of focal sets intersecting A."""
    return sum((m for focal, m in masses.items() if focal & hypothesis), 0.0)


@dataclass(frozen=True)
class Combination:
    """Result of Dempster's rule of combination."""

    masses: MassFunction
    conflict: float


def combine_dempster(first: MassFunction, second: MassFunction) -> Combination:
    """Combine two mass functions with Dempster's rule.

    Total conflict (K = 1) leaves the combination undefined; an empty mass
    function is returned with conflict 1.
    """
    combined: MassFunction = {}
    conflict = 0.0
    for a, m_a in first.items():
        for b, m_b in second.items():
            intersection = a & b
            if intersection:
                combined[intersection] = combined.get(intersection, 0.0) + m_a * m_b
            else:
                conflict += m_a * m_b
    if conflict >= 1.0:
        return Combination(masses={}, conflict=1.0)
    normalizer = 1.0 - conflict
    return Combination(
        masses={focal: m / normalizer for focal, m in combined.items()},
        conflict=conflict,
    )


# =============================================================================
# Hybrid convergence
# =============================================================================


class Contribution(Protocol):
    confidence: float
    agreement_with_others: float


@dataclass(frozen=True)
class Convergence:
    """Agreement state across the active modes of a hybrid thought."""

    achieved: bool
    target_confidence: float
    current_confidence: float
    modes_agreeing: int
    total_modes: int
    convergence_score: float


def convergence_status(
    contributions: Sequence[Contribution],
    target_confidence: float = 0.97,
    *,
    current_confidence: float | None = None,
    modes_agreeing: int | None = None,
    convergence_score: float | None = None,
) -> Convergence:
    """Measure how strongly the modes of a hybrid thought agree.

    Explicit keyword values override the computed ones.
    """
    n = len(contributions)
    avg_agreement = sum(c.agreement_with_others for c in contributions) / n if n else 0.0
    agreeing = sum(1 for c in contributions if c.agreement_with_others > 0.7)
    confidence_from_agreement = min(avg_agreement * 0.5 + (agreeing / n if n else 0.0) * 0.5, 1.0)
    avg_confidence = sum(c.confidence for c in contributions) / n if n else 0.0

    current = current_confidence
    if current is None:
        current = min(confidence_from_agreement * 0.6 + avg_confidence * 0.4, 1.0)

    return Convergence(
        achieved=current >= target_confidence,
        target_confidence=target_confidence,
        current_confidence=current,
        modes_agreeing=agreeing if modes_agreeing is None else modes_agreeing,
        total_modes=n,
        convergence_score=avg_agreement if convergence_score is None else convergence_score,
    )


def contribution_weight(contribution: Contribution) -> float:
    return 0.5 + contribution.agreement_with_others * 0.5


def overall_confidence(contributions: Sequence[Contribution], convergence: Convergence) -> float:
    """Agreement-weighted mean confidence plus convergence and multi-mode bonuses, capped at 1."""
    weight_total = sum(contribution_weight(c) for c in contributions)
    if weight_total > 0:
        base = sum(c.confidence * contribution_weight(c) for c in contributions) / weight_total
    else:
        base = 0.5
    convergence_boost = convergence.convergence_score * 0.2
    mode_bonus = min(0.1, (len(contributions) - 1) * 0.03)
    return min(1.0, base + convergence_boost + mode_bonus)
