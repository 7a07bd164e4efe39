"""Tests for rule-based mode recommendations."""

from __future__ import annotations

from deepthinking.modes.recommend import (
    ProblemCharacteristics,
    infer_characteristics,
    normalize_characteristics,
    recommend_modes,
)
from deepthinking.modes.types import ThinkingMode


class TestCharacteristics:
    """Tests for building problem characteristics."""

    def test_normalize_defaults(self) -> None:
        characteristics = normalize_characteristics({})
        assert characteristics == ProblemCharacteristics()

    def test_normalize_accepts_camel_case_and_bad_levels(self) -> None:
        characteristics = normalize_characteristics(
            {"domain": "physics", "complexity": "HIGH", "uncertainty": "extreme", "timeDependent": True}
        )
        assert characteristics.domain == "physics"
        assert characteristics.complexity == "high"
        assert characteristics.uncertainty == "medium"
        assert characteristics.time_dependent

    def test_infer_from_keywords(self) -> None:
        characteristics = infer_characteristics("Prove the sequence converges for every player", 8)
        assert characteristics.requires_proof
        assert characteristics.time_dependent
        assert characteristics.multi_agent
        assert characteristics.complexity == "high"

    def test_philosophical_domain(self) -> None:
        assert ProblemCharacteristics(domain="Philosophy of mind").philosophical


class TestRecommendModes:
    """Tests for mode ranking."""

    def test_fallback_is_sequential(self) -> None:
        quiet = ProblemCharacteristics(requires_explanation=False, has_alternatives=False)
        recommendations = recommend_modes(quiet)
        assert [r.mode for r in recommendations] == [ThinkingMode.SEQUENTIAL]
        assert recommendations[0].score == 0.70

    def test_proof_problem_ranks_mathematics_first(self) -> None:
        recommendations = recommend_modes(ProblemCharacteristics(requires_proof=True))
        assert recommendations[0].mode is ThinkingMode.MATHEMATICS
        modes = {r.mode for r in recommendations}
        assert ThinkingMode.DEDUCTIVE in modes
        assert ThinkingMode.FORMALLOGIC in modes

    def test_sorted_descending(self) -> None:
        recommendations = recommend_modes(
            ProblemCharacteristics(complexity="high", time_dependent=True, multi_agent=True)
        )
        scores = [r.score for r in recommendations]
        assert scores == sorted(scores, reverse=True)
        assert recommendations[0].mode is ThinkingMode.HYBRID

    def test_security_domain(self) -> None:
        modes = [r.mode for r in recommend_modes(ProblemCharacteristics(domain="cryptography"))]
        assert ThinkingMode.CRYPTANALYTIC in modes
