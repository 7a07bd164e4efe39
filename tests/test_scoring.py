"""Tests for evidence and hypothesis scoring functions."""

from __future__ import annotations

import math
from dataclasses import dataclass

import pytest

from deepthinking.modes.scoring import (
    MAX_DECIBANS,
    EvidenceConclusion,
    accumulate_decibans,
    balance_ratio,
    bayes_factor,
    bayes_factor_strength,
    bayes_update,
    belief,
    combine_dempster,
    convergence_status,
    decibans_to_probability,
    evidence_conclusion,
    explanation_complexity,
    explanation_coverage,
    from_decibans,
    overall_confidence,
    plausibility,
    posterior_confidence,
    score_hypothesis,
    select_best_explanation,
    sequential_posterior,
    to_decibans,
)


@dataclass
class _Scored:
    name: str
    score: float


@dataclass
class _Contribution:
    confidence: float
    agreement_with_others: float


class TestBalance:
    """Tests for critique balance."""

    def test_balanced_when_empty(self) -> None:
        assert balance_ratio(0, 0) == 0.5

    def test_ratio(self) -> None:
        assert balance_ratio(3, 1) == 0.75
        assert balance_ratio(0, 5) == 0.0
        assert balance_ratio(0, 4) == 0.0


class TestAbductiveScoring:
    """Tests for coverage, complexity and best-explanation selection."""

    def test_coverage_counts_long_tokens(self) -> None:
        observations = ["The grass is wet", "Sky is cloudy", "It is"]
        coverage = explanation_coverage("Rain fell overnight so the grass got wet and cloudy", observations)
        # "grass" and "cloudy" match; "It is" has no token longer than three characters
        assert coverage == pytest.approx(2 / 3)

    def test_coverage_without_observations(self) -> None:
        assert explanation_coverage("anything", []) == 0.0

    def test_complexity_caps_at_one(self) -> None:
        assert explanation_complexity("word " * 50, 10) == 1.0
        assert explanation_complexity("one two three", 1) == pytest.approx(0.13)

    def test_score_penalizes_complexity(self) -> None:
        observations = ["grass wet"]
        simple = score_hypothesis("grass is wet from rain", 0, observations)
        complex_ = score_hypothesis("grass is wet from rain", 5, observations)
        assert simple > complex_

    def test_best_explanation_first_on_tie(self) -> None:
        a, b, c = _Scored("a", 0.4), _Scored("b", 0.7), _Scored("c", 0.7)
        assert select_best_explanation([a, b, c]) is b
        assert select_best_explanation([]) is None

    def test_best_explanation_is_highest_score(self) -> None:
        hypotheses = [_Scored("h1", 0.2), _Scored("h2", 0.9), _Scored("h3", 0.5)]
        best = select_best_explanation(hypotheses)
        assert best is not None
        assert best.score == 0.9
        assert best.name == "h2"


class TestDecibans:
    """Tests for deciban conversion and evidence chains."""

    def test_round_trip_values(self) -> None:
        assert to_decibans(10) == pytest.approx(10.0)
        assert to_decibans(1) == 0.0
        assert from_decibans(20) == pytest.approx(100.0)

    def test_non_positive_ratio_raises(self) -> None:
        with pytest.raises(ValueError):
            to_decibans(0)
        with pytest.raises(ValueError):
            to_decibans(-2)

    def test_saturation(self) -> None:
        assert from_decibans(MAX_DECIBANS + 1) == math.inf
        assert decibans_to_probability(10_000) == 1.0
        assert decibans_to_probability(-10_000) == 0.0

    def test_probability_from_even_prior(self) -> None:
        assert decibans_to_probability(0) == pytest.approx(0.5)
        assert decibans_to_probability(10) == pytest.approx(10 / 11)

    def test_conclusions(self) -> None:
        assert evidence_conclusion(accumulate_decibans([5, 8, 10])) is EvidenceConclusion.CONFIRMED
        assert evidence_conclusion(accumulate_decibans([-5, -7])) is EvidenceConclusion.INCONCLUSIVE
        assert evidence_conclusion(-20) is EvidenceConclusion.REFUTED
        assert evidence_conclusion(20) is EvidenceConclusion.CONFIRMED

    def test_custom_thresholds(self) -> None:
        assert evidence_conclusion(12, confirmation_threshold=10) is EvidenceConclusion.CONFIRMED


class TestBayes:
    """Tests for sequential Bayesian updating."""

    def test_single_update(self) -> None:
        assert bayes_update(0.5, 0.8, 0.2) == pytest.approx(0.8)

    def test_zero_evidence_probability_keeps_prior(self) -> None:
        assert bayes_update(0.3, 0.0, 0.0) == 0.3

    def test_sequential_update(self) -> None:
        posterior = sequential_posterior(0.5, [(0.8, 0.2), (0.8, 0.2)])
        assert posterior == pytest.approx(16 / 17)

    def test_bayes_factor_skips_zero_denominator(self) -> None:
        assert bayes_factor([(0.8, 0.2), (0.5, 0.0)]) == pytest.approx(4.0)
        assert bayes_factor([]) is None

    @pytest.mark.parametrize(
        ("factor", "label"),
        [
            (20, "Strong evidence for"),
            (5, "Moderate evidence for"),
            (2, "Weak evidence for"),
            (0.5, "Weak evidence against"),
            (0.2, "Moderate evidence against"),
            (0.05, "Strong evidence against"),
        ],
    )
    def test_strength_labels(self, factor: float, label: str) -> None:
        assert bayes_factor_strength(factor) == label

    def test_posterior_confidence_bounds(self) -> None:
        assert posterior_confidence([]) == 0.5
        assert posterior_confidence([(0.9, 0.1)] * 10) <= 0.95


class TestDempsterShafer:
    """Tests for belief functions."""

    def test_belief_and_plausibility(self) -> None:
        a, b = frozenset({"a"}), frozenset({"b"})
        masses = {a: 0.6, a | b: 0.4}
        assert belief(masses, a) == pytest.approx(0.6)
        assert plausibility(masses, a) == pytest.approx(1.0)
        assert belief(masses, b) == 0.0
        assert plausibility(masses, b) == pytest.approx(0.4)

    def test_combination_normalizes_conflict(self) -> None:
        a, b = frozenset({"a"}), frozenset({"b"})
        result = combine_dempster({a: 0.8, a | b: 0.2}, {b: 0.5, a | b: 0.5})
        assert result.conflict == pytest.approx(0.4)
        assert sum(result.masses.values()) == pytest.approx(1.0)
        assert result.masses[a] == pytest.approx(0.4 / 0.6)

    def test_total_conflict(self) -> None:
        result = combine_dempster({frozenset({"a"}): 1.0}, {frozenset({"b"}): 1.0})
        assert result.conflict == 1.0
        assert result.masses == {}


class TestConvergence:
    """Tests for hybrid multi-mode convergence."""

    def test_agreeing_modes_converge(self) -> None:
        contributions = [_Contribution(0.95, 1.0), _Contribution(0.95, 1.0)]
        status = convergence_status(contributions, 0.9)
        assert status.modes_agreeing == 2
        assert status.achieved

    def test_empty_contributions(self) -> None:
        status = convergence_status([])
        assert status.total_modes == 0
        assert not status.achieved

    def test_explicit_override(self) -> None:
        status = convergence_status([_Contribution(0.2, 0.1)], current_confidence=0.99)
        assert status.achieved

    def test_overall_confidence_capped(self) -> None:
        contributions = [_Contribution(1.0, 1.0)] * 4
        status = convergence_status(contributions)
        assert overall_confidence(contributions, status) == 1.0
