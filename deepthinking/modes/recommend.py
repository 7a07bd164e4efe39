"""Rule-based mode recommendations from problem characteristics.

Hybrid thoughts that do not name their active modes take the top
recommendations produced here. Rules are evaluated independently; the
result is sorted by score with sequential as the fallback.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from deepthinking.modes.types import ThinkingMode
from deepthinking.utils.schema import as_bool, as_str, pick

LEVELS = ("low", "medium", "high")
PHILOSOPHICAL_DOMAINS = ("metaphysics", "theology", "philosophy", "epistemology", "ethics")


@dataclass(frozen=True)
class ProblemCharacteristics:
    """Coarse description of a problem used to pick reasoning modes."""

    domain: str = "general"
    complexity: str = "medium"
    uncertainty: str = "medium"
    time_dependent: bool = False
    multi_agent: bool = False
    requires_proof: bool = False
    requires_quantification: bool = False
    has_incomplete_info: bool = False
    requires_explanation: bool = True
    has_alternatives: bool = True

    @property
    def philosophical(self) -> bool:
        domain = self.domain.lower()
        return any(d in domain for d in PHILOSOPHICAL_DOMAINS)

    @property
    def high_complexity(self) -> bool:
        return self.complexity == "high"

    @property
    def high_uncertainty(self) -> bool:
        return self.uncertainty == "high"


@dataclass(frozen=True)
class ModeRecommendation:
    mode: ThinkingMode
    score: float
    reasoning: str


def _level(value: Any) -> str:
    text = as_str(value, "medium").lower()
    return text if text in LEVELS else "medium"


def normalize_characteristics(raw: Mapping[str, Any]) -> ProblemCharacteristics:
    """Build characteristics from a caller-supplied record, defaulting each field."""
    return ProblemCharacteristics(
        domain=as_str(pick(raw, "domain"), "general") or "general",
        complexity=_level(pick(raw, "complexity")),
        uncertainty=_level(pick(raw, "uncertainty")),
        time_dependent=bool(as_bool(pick(raw, "time_dependent"), False)),
        multi_agent=bool(as_bool(pick(raw, "multi_agent"), False)),
        requires_proof=bool(as_bool(pick(raw, "requires_proof"), False)),
        requires_quantification=bool(as_bool(pick(raw, "requires_quantification"), False)),
        has_incomplete_info=bool(as_bool(pick(raw, "has_incomplete_info"), False)),
        requires_explanation=bool(as_bool(pick(raw, "requires_explanation"), True)),
        has_alternatives=bool(as_bool(pick(raw, "has_alternatives"), True)),
    )


def infer_characteristics(content: str, total_thoughts: int) -> ProblemCharacteristics:
    """Guess characteristics from keywords in the thought text."""
    text = content.lower()
    return ProblemCharacteristics(
        complexity="high" if total_thoughts > 5 else "medium",
        time_dependent="time" in text or "sequence" in text,
        multi_agent="agent" in text or "player" in text,
        requires_proof="proof" in text or "prove" in text,
        requires_quantification="number" in text or "calculate" in text,
        has_incomplete_info="unknown" in text or "unclear" in text,
    )


Rule = tuple[ThinkingMode, Callable[[ProblemCharacteristics], float | None], str]


def _when(
    condition: Callable[[ProblemCharacteristics], bool], score: float
) -> Callable[[ProblemCharacteristics], float | None]:
    return lambda c: score if condition(c) else None


RULES: tuple[Rule, ...] = (
    (
        ThinkingMode.HYBRID,
        _when(
            lambda c: c.high_complexity
            and (c.requires_explanation or c.has_alternatives or c.philosophical),
            0.92,
        ),
        "Complex problem benefits from multi-modal synthesis",
    ),
    (
        ThinkingMode.INDUCTIVE,
        lambda c: (0.85 if c.philosophical else 0.80)
        if not c.requires_proof
        and (c.requires_quantification or c.has_incomplete_info or c.philosophical)
        else None,
        "Pattern recognition and generalization from observations",
    ),
    (
        ThinkingMode.DEDUCTIVE,
        lambda c: (0.90 if c.requires_proof else 0.75)
        if c.requires_proof or c.philosophical
        else None,
        "Conclusions must follow necessarily from premises",
    ),
    (
        ThinkingMode.ABDUCTIVE,
        lambda c: (0.90 if c.philosophical else 0.87)
        if c.requires_explanation or c.philosophical
        else None,
        "Inference to the best explanation",
    ),
    (
        ThinkingMode.METAREASONING,
        lambda c: (0.88 if c.high_complexity else 0.82)
        if c.high_complexity or (c.has_alternatives and c.high_uncertainty)
        else None,
        "Monitor and adapt the reasoning strategy itself",
    ),
    (ThinkingMode.TEMPORAL, _when(lambda c: c.time_dependent, 0.90), "Events unfold over time"),
    (ThinkingMode.GAMETHEORY, _when(lambda c: c.multi_agent, 0.85), "Several strategic agents interact"),
    (
        ThinkingMode.EVIDENTIAL,
        _when(lambda c: c.has_incomplete_info and c.high_uncertainty and not c.philosophical, 0.82),
        "Incomplete, uncertain evidence must be combined",
    ),
    (
        ThinkingMode.CAUSAL,
        _when(lambda c: c.time_dependent and c.requires_explanation, 0.86),
        "Cause-and-effect structure needs explaining",
    ),
    (
        ThinkingMode.BAYESIAN,
        _when(lambda c: c.requires_quantification and c.uncertainty != "low", 0.84),
        "Beliefs should be updated quantitatively",
    ),
    (ThinkingMode.COUNTERFACTUAL, _when(lambda c: c.has_alternatives, 0.82), "Alternative scenarios matter"),
    (
        ThinkingMode.ANALOGICAL,
        _when(lambda c: c.high_complexity and c.requires_explanation, 0.80),
        "Knowledge may transfer from a familiar domain",
    ),
    (ThinkingMode.MATHEMATICS, _when(lambda c: c.requires_proof, 0.95), "A formal proof is required"),
    (
        ThinkingMode.PHYSICS,
        _when(lambda c: c.domain in ("physics", "engineering"), 0.90),
        "Physical modeling applies",
    ),
    (
        ThinkingMode.SHANNON,
        _when(lambda c: c.high_complexity and c.requires_proof, 0.88),
        "Systematic decomposition from model to proof",
    ),
    (
        ThinkingMode.ENGINEERING,
        lambda c: (0.92 if c.domain == "engineering" else 0.85)
        if c.domain in ("engineering", "software", "systems")
        or (c.requires_quantification and not c.requires_proof)
        else None,
        "Requirements, trade-offs and failure modes",
    ),
    (
        ThinkingMode.COMPUTABILITY,
        _when(
            lambda c: c.domain in ("computer science", "computation")
            or (c.requires_proof and "algorithm" in c.domain),
            0.88,
        ),
        "Decidability and complexity questions",
    ),
    (
        ThinkingMode.CRYPTANALYTIC,
        _when(lambda c: c.domain in ("security", "cryptography") or "crypto" in c.domain, 0.90),
        "Cryptographic or security analysis",
    ),
    (
        ThinkingMode.RECURSIVE,
        _when(lambda c: c.high_complexity and (c.has_alternatives or c.requires_explanation), 0.82),
        "Problem decomposes into similar subproblems",
    ),
    (
        ThinkingMode.MODAL,
        _when(lambda c: c.has_alternatives and c.high_uncertainty, 0.80),
        "Possibility and necessity across scenarios",
    ),
    (
        ThinkingMode.STOCHASTIC,
        _when(lambda c: c.high_uncertainty and c.requires_quantification, 0.84),
        "Random processes drive outcomes",
    ),
    (
        ThinkingMode.CONSTRAINT,
        _when(lambda c: c.has_alternatives and c.requires_quantification, 0.83),
        "Choices are bounded by constraints",
    ),
    (
        ThinkingMode.OPTIMIZATION,
        _when(lambda c: c.requires_quantification and c.has_alternatives, 0.86),
        "An objective should be optimized",
    ),
    (
        ThinkingMode.FIRSTPRINCIPLES,
        lambda c: (0.88 if c.philosophical else 0.82)
        if c.philosophical or (c.high_complexity and c.requires_explanation)
        else None,
        "Reason up from fundamental truths",
    ),
    (
        ThinkingMode.SYSTEMSTHINKING,
        _when(lambda c: c.high_complexity and (c.time_dependent or c.multi_agent), 0.85),
        "Interconnected components with feedback",
    ),
    (
        ThinkingMode.SCIENTIFICMETHOD,
        _when(
            lambda c: c.has_incomplete_info and (c.requires_explanation or c.requires_quantification),
            0.84,
        ),
        "Hypotheses should be tested empirically",
    ),
    (
        ThinkingMode.FORMALLOGIC,
        _when(lambda c: c.requires_proof and not c.requires_quantification, 0.87),
        "Rigorous symbolic logic",
    ),
)


def recommend_modes(characteristics: ProblemCharacteristics) -> list[ModeRecommendation]:
    """Score every applicable mode, best first.

    Returns:
        Recommendations sorted by descending score (stable for ties); a single
        sequential recommendation when no rule applies.

    """
    recommendations = []
    for mode, rule, reasoning in RULES:
        score = rule(characteristics)
        if score is not None:
            recommendations.append(ModeRecommendation(mode, score, reasoning))
    if not recommendations:
        recommendations.append(
            ModeRecommendation(ThinkingMode.SEQUENTIAL, 0.70, "General-purpose iterative reasoning")
        )
    return sorted(recommendations, key=lambda r: r.score, reverse=True)
