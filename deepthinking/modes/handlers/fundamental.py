"""Fundamental inference modes: inductive, deductive and abductive."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.scoring import score_hypothesis, select_best_explanation
from deepthinking.modes.types import (
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationResult,
)
from deepthinking.utils.ids import IdGenerator
from deepthinking.utils.schema import (
    as_bool,
    as_float,
    as_int,
    as_list,
    as_str,
    as_str_list,
    as_unit,
    pick,
)

# =============================================================================
# Inductive
# =============================================================================

INDUCTIVE_TYPES = (
    "observation",
    "pattern_identification",
    "generalization",
    "counterexample_analysis",
    "confidence_assessment",
    "refinement",
)


@dataclass(frozen=True, kw_only=True)
class InductiveThought(Thought):
    thought_type: str = "observation"
    observations: list[str] = field(default_factory=list)
    pattern: str | None = None
    generalization: str = ""
    confidence: float = 0.3
    counterexamples: list[str] = field(default_factory=list)
    sample_size: int | None = None


def inductive_confidence(observation_count: int, counterexample_count: int) -> float:
    """Confidence implied by the evidence counts when the caller gives none."""
    if observation_count == 0:
        return 0.3
    base = min(0.9, 0.4 + observation_count * 0.05) - counterexample_count * 0.15
    return max(0.1, min(0.95, base))


class InductiveHandler(ModeHandler):
    """Reasoning from specific observations to general principles."""

    mode = ThinkingMode.INDUCTIVE
    mode_name = "Inductive Reasoning"
    description = "Reasoning from specific observations to general principles with confidence tracking"
    thought_types = INDUCTIVE_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        confidence = data.get("confidence")
        findings.unit_interval("confidence", confidence, "Confidence")

        observations = as_list(data.get("observations"))
        if not observations:
            findings.warn(
                "observations",
                "No observations provided for inductive reasoning",
                "Add specific observations to form the basis of generalization",
            )
            if data.get("generalization"):
                findings.warn(
                    "generalization",
                    "Generalization stated without supporting observations",
                    "Ensure observations support the generalization",
                )
        elif len(observations) < 3:
            findings.warn(
                "observations",
                f"Only {len(observations)} observation(s) provided",
                "More observations typically lead to stronger generalizations",
            )

        sample_size = as_int(data.get("sample_size"))
        if sample_size is not None and data.has("observations") and sample_size != len(observations):
            findings.warn(
                "sampleSize",
                f"Sample size ({sample_size}) differs from observation count ({len(observations)})",
                "Ensure sample size accurately reflects your observations",
            )
        if (as_float(confidence) or 0.0) > 0.8 and as_list(data.get("counterexamples")):
            findings.warn(
                "confidence",
                "High confidence despite known counterexamples",
                "Consider whether counterexamples require adjusting confidence",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> InductiveThought:
        observations = as_str_list(data.get("observations"))
        counterexamples = as_str_list(data.get("counterexamples"))
        confidence = as_float(data.get("confidence"))
        return InductiveThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "observation"),
            observations=observations,
            pattern=as_str(data.get("pattern")) or None,
            generalization=as_str(data.get("generalization")),
            confidence=as_unit(confidence)
            if confidence is not None
            else inductive_confidence(len(observations), len(counterexamples)),
            counterexamples=counterexamples,
            sample_size=as_int(data.get("sample_size")),
        )

    def get_enhancements(self, thought: InductiveThought) -> ModeEnhancements:
        observation_count = len(thought.observations)
        counter_count = len(thought.counterexamples)
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.DEDUCTIVE, ThinkingMode.ABDUCTIVE, ThinkingMode.SCIENTIFICMETHOD],
            mental_models=[
                "Pattern Recognition",
                "Enumeration Induction",
                "Statistical Generalization",
                "Analogical Reasoning",
                "Mill's Methods",
            ],
            metrics={
                "observation_count": observation_count,
                "confidence": thought.confidence,
                "counterexample_count": counter_count,
            },
        )
        if observation_count == 0:
            enhancements.suggestions.append("Start by collecting specific observations or examples")
            enhancements.guiding_questions.append("What specific instances or cases have you observed?")
        elif observation_count < 5:
            enhancements.suggestions.append(
                "Consider gathering more observations to strengthen the induction"
            )
            enhancements.guiding_questions.append(
                "Are there other examples that could confirm or challenge the pattern?"
            )
        if observation_count >= 3 and not thought.pattern:
            enhancements.suggestions.append("Look for common features or relationships among observations")
            enhancements.guiding_questions.append("What do all these observations have in common?")
        if thought.pattern and not thought.generalization:
            enhancements.suggestions.append("Formulate a general principle from the identified pattern")
            enhancements.guiding_questions.append(
                "What general rule or principle does this pattern suggest?"
            )

        if counter_count:
            enhancements.warnings.append(
                f"{counter_count} counterexample(s) exist - consider refining the generalization"
            )
            enhancements.guiding_questions.append(
                "Can the generalization be modified to account for counterexamples?"
            )
            suggested = max(0.3, thought.confidence - counter_count * 0.1)
            if thought.confidence > suggested + 0.2:
                enhancements.warnings.append(
                    f"Consider lowering confidence given counterexamples (suggested: {suggested:.2f})"
                )

        if thought.confidence > 0.9 and observation_count < 10:
            enhancements.warnings.append(
                "Very high confidence with limited sample size - consider more evidence"
            )
        elif thought.confidence < 0.3 and observation_count > 10 and counter_count == 0:
            enhancements.suggestions.append(
                "Low confidence despite good sample size and no counterexamples - "
                "pattern may be stronger than assessed"
            )
        if thought.sample_size:
            enhancements.metrics["sample_size"] = thought.sample_size
            if thought.sample_size >= 30:
                enhancements.suggestions.append(
                    "Sample size sufficient for statistical analysis - consider calculating significance"
                )
        if thought.generalization and thought.confidence > 0.7:
            enhancements.suggestions.append("Consider testing this generalization deductively on new cases")
        return enhancements


# =============================================================================
# Deductive
# =============================================================================

DEDUCTIVE_TYPES = (
    "premise_statement",
    "inference",
    "conclusion",
    "validity_check",
    "soundness_check",
    "fallacy_identification",
)
LOGIC_FORMS = (
    "modus_ponens",
    "modus_tollens",
    "hypothetical_syllogism",
    "disjunctive_syllogism",
    "constructive_dilemma",
    "destructive_dilemma",
    "universal_instantiation",
    "existential_generalization",
    "categorical_syllogism",
    "reductio_ad_absurdum",
    "proof_by_contradiction",
    "proof_by_cases",
    "conditional_proof",
)
FORM_STRUCTURES = {
    "modus_ponens": "Structure: P → Q, P, therefore Q",
    "modus_tollens": "Structure: P → Q, ¬Q, therefore ¬P",
    "hypothetical_syllogism": "Structure: P → Q, Q → R, therefore P → R",
    "disjunctive_syllogism": "Structure: P ∨ Q, ¬P, therefore Q",
    "reductio_ad_absurdum": "Assume the negation, derive a contradiction",
}


def normalize_logic_form(value: Any) -> str | None:
    """Lowercase a logic form name and join its words with underscores."""
    text = as_str(value).strip()
    return "_".join(text.lower().split()) or None


@dataclass(frozen=True, kw_only=True)
class DeductiveThought(Thought):
    thought_type: str = "premise_statement"
    premises: list[str] = field(default_factory=list)
    conclusion: str = ""
    logic_form: str | None = None
    validity_check: bool = False
    soundness_check: bool | None = None


def assess_validity(premises: list[str], conclusion: str, logic_form: str | None) -> bool:
    """An argument counts as valid when it has premises, a conclusion and a recognized form."""
    return bool(premises) and bool(conclusion) and logic_form in LOGIC_FORMS


class DeductiveHandler(ModeHandler):
    """Reasoning from general principles to specific conclusions."""

    mode = ThinkingMode.DEDUCTIVE
    mode_name = "Deductive Reasoning"
    description = "Reasoning from general principles to specific conclusions with validity checking"
    thought_types = DEDUCTIVE_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)

        premises = as_list(data.get("premises"))
        if not premises:
            findings.warn(
                "premises",
                "No premises provided for deductive reasoning",
                "State the general principles from which to derive the conclusion",
            )
        elif len(premises) == 1:
            findings.warn(
                "premises",
                "Only one premise provided",
                "Most deductive arguments require at least two premises",
            )
        conclusion = as_str(data.get("conclusion")).strip()
        if not conclusion:
            findings.warn(
                "conclusion",
                "No conclusion specified",
                "State the specific conclusion derived from the premises",
            )

        raw_form = data.get("logic_form")
        form = normalize_logic_form(raw_form)
        if form is not None and form not in LOGIC_FORMS:
            findings.warn(
                "logicForm",
                f"Unknown logical form: {raw_form}",
                f"Common forms: {', '.join(LOGIC_FORMS[:5])}, ...",
            )
        if form is None and len(premises) >= 2 and conclusion:
            findings.warn(
                "logicForm",
                "No logical form specified",
                "Identify the logical form to verify validity",
            )
        if data.get("validity_check") is True and data.get("soundness_check") is None:
            findings.warn(
                "soundnessCheck",
                "Validity checked but soundness not assessed",
                "Valid arguments need true premises to be sound",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> DeductiveThought:
        premises = as_str_list(data.get("premises"))
        conclusion = as_str(data.get("conclusion"))
        logic_form = normalize_logic_form(data.get("logic_form"))
        validity = as_bool(data.get("validity_check"))
        if validity is None:
            validity = assess_validity(premises, conclusion, logic_form)
        return DeductiveThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "premise_statement"),
            premises=premises,
            conclusion=conclusion,
            logic_form=logic_form,
            validity_check=validity,
            soundness_check=as_bool(data.get("soundness_check")),
        )

    def get_enhancements(self, thought: DeductiveThought) -> ModeEnhancements:
        premise_count = len(thought.premises)
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.INDUCTIVE, ThinkingMode.FORMALLOGIC, ThinkingMode.MATHEMATICS],
            mental_models=[
                "Syllogistic Logic",
                "Propositional Logic",
                "Predicate Logic",
                "Formal Proof",
                "Logical Implication",
            ],
            metrics={
                "premise_count": premise_count,
                "is_valid": 1 if thought.validity_check else 0,
                "is_sound": 1 if thought.soundness_check else 0,
            },
        )
        if premise_count == 0:
            enhancements.suggestions.append("State the general principles or axioms from which to reason")
            enhancements.guiding_questions.append(
                "What general truths or established facts can serve as premises?"
            )
        elif premise_count == 1:
            enhancements.suggestions.append("Consider whether a second premise is needed for the inference")
            enhancements.guiding_questions.append(
                "What additional premise connects this to the conclusion?"
            )
        if not thought.conclusion and premise_count >= 2:
            enhancements.suggestions.append("Derive the conclusion that logically follows from the premises")
            enhancements.guiding_questions.append("What necessarily follows from these premises?")

        if thought.logic_form:
            enhancements.metrics["logic_form"] = thought.logic_form
            enhancements.suggestions.append(f"Using {thought.logic_form} argument form")
            if thought.logic_form in FORM_STRUCTURES:
                enhancements.suggestions.append(FORM_STRUCTURES[thought.logic_form])

        if thought.validity_check:
            enhancements.suggestions.append("Argument is logically valid - conclusion follows from premises")
            if thought.soundness_check:
                enhancements.suggestions.append(
                    "Argument is sound - premises are true and conclusion follows"
                )
            elif thought.soundness_check is False:
                enhancements.warnings.append(
                    "Argument is valid but NOT sound - one or more premises may be false"
                )
                enhancements.guiding_questions.append("Which premise(s) might be false or questionable?")
            else:
                enhancements.guiding_questions.append("Are all the premises actually true?")
        else:
            enhancements.warnings.append("Argument is NOT valid - conclusion does not follow from premises")
            enhancements.guiding_questions.extend(
                [
                    "What hidden premise would make this argument valid?",
                    "Is there a logical fallacy in the reasoning?",
                ]
            )
            if premise_count >= 2 and thought.conclusion:
                enhancements.suggestions.append(
                    "Check for common fallacies: affirming the consequent, denying the antecedent"
                )
        return enhancements


# =============================================================================
# Abductive
# =============================================================================

ABDUCTIVE_TYPES = (
    "observation",
    "hypothesis_generation",
    "hypothesis_evaluation",
    "evidence_assessment",
    "best_explanation",
)
EVIDENCE_TYPES = ("supporting", "contradicting", "neutral")


@dataclass(frozen=True)
class Observation:
    id: str
    description: str
    confidence: float = 1.0
    timestamp: str | None = None


@dataclass(frozen=True)
class Hypothesis:
    id: str
    explanation: str
    assumptions: list[str] = field(default_factory=list)
    predictions: list[str] = field(default_factory=list)
    score: float = 0.5


@dataclass(frozen=True)
class HypothesisEvidence:
    hypothesis_id: str
    type: str = "neutral"
    description: str = ""
    strength: float = 0.5


@dataclass(frozen=True)
class EvaluationCriteria:
    parsimony: float = 0.5
    explanatory_power: float = 0.5
    plausibility: float = 0.5
    testability: bool = True


@dataclass(frozen=True, kw_only=True)
class AbductiveThought(Thought):
    thought_type: str = "observation"
    observations: list[Observation] = field(default_factory=list)
    hypotheses: list[Hypothesis] = field(default_factory=list)
    current_hypothesis: Hypothesis | None = None
    evaluation_criteria: EvaluationCriteria = field(default_factory=EvaluationCriteria)
    evidence: list[HypothesisEvidence] = field(default_factory=list)
    best_explanation: Hypothesis | None = None


def normalize_observations(raw: Any, ids: IdGenerator) -> list[Observation]:
    """Accept bare strings or records; every observation gets an id."""
    observations = []
    for item in as_list(raw):
        if isinstance(item, str):
            observations.append(Observation(id=ids("obs"), description=item))
        elif isinstance(item, dict):
            observations.append(
                Observation(
                    id=as_str(pick(item, "id")) or ids("obs"),
                    description=as_str(pick(item, "description")) or as_str(pick(item, "content")),
                    confidence=as_unit(pick(item, "confidence"), 1.0),
                    timestamp=as_str(pick(item, "timestamp")) or None,
                )
            )
    return observations


def normalize_hypothesis(raw: dict[str, Any], ids: IdGenerator, default_score: float) -> Hypothesis:
    score = pick(raw, "score", pick(raw, "plausibility"))
    return Hypothesis(
        id=as_str(pick(raw, "id")) or ids("hyp"),
        explanation=as_str(pick(raw, "explanation")) or as_str(pick(raw, "description")),
        assumptions=as_str_list(pick(raw, "assumptions")),
        predictions=as_str_list(pick(raw, "predictions")),
        score=as_unit(score, default_score),
    )


def rescore(hypotheses: list[Hypothesis], observations: list[Observation]) -> list[Hypothesis]:
    """Replace caller scores with coverage and Occam-penalized plausibility."""
    descriptions = [o.description for o in observations]
    return [
        Hypothesis(
            id=h.id,
            explanation=h.explanation,
            assumptions=h.assumptions,
            predictions=h.predictions,
            score=score_hypothesis(h.explanation, len(h.assumptions), descriptions),
        )
        for h in hypotheses
    ]


def normalize_criteria(raw: Any) -> EvaluationCriteria:
    if not isinstance(raw, dict):
        return EvaluationCriteria()
    return EvaluationCriteria(
        parsimony=as_unit(pick(raw, "parsimony")),
        explanatory_power=as_unit(pick(raw, "explanatory_power")),
        plausibility=as_unit(pick(raw, "plausibility")),
        testability=bool(as_bool(pick(raw, "testability"), True)),
    )


class AbductiveHandler(ModeHandler):
    """Inference to the best explanation."""

    mode = ThinkingMode.ABDUCTIVE
    mode_name = "Abductive Reasoning"
    description = "Inference to best explanation with hypothesis evaluation and evidence coverage"
    thought_types = ABDUCTIVE_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if not as_list(data.get("observations")):
            findings.warn(
                "observations",
                "No observations provided",
                "Add observations to ground hypothesis generation",
            )
        hypotheses = as_list(data.get("hypotheses"))
        missing = [
            h for h in hypotheses
            if not isinstance(h, dict) or not as_str(pick(h, "explanation") or pick(h, "description")).strip()
        ]
        if missing:
            findings.warn(
                "hypotheses",
                f"{len(missing)} hypothesis/hypotheses lack explanations",
                "Provide clear explanations for each hypothesis",
            )
        if len(hypotheses) == 1:
            findings.warn(
                "hypotheses",
                "Only one hypothesis provided",
                "Consider alternative explanations for robust abductive reasoning",
            )
        for i, h in enumerate(hypotheses):
            if isinstance(h, dict):
                findings.unit_interval(f"hypotheses[{i}].score", pick(h, "score"), "Hypothesis score")
        for i, e in enumerate(as_list(data.get("evidence"))):
            if isinstance(e, dict):
                findings.known_value(f"evidence[{i}].type", pick(e, "type"), EVIDENCE_TYPES, "evidence type")
                findings.unit_interval(f"evidence[{i}].strength", pick(e, "strength"), "Evidence strength")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> AbductiveThought:
        default_score = self.settings.default_hypothesis_score
        observations = normalize_observations(data.get("observations"), self.ids)
        hypotheses = [
            normalize_hypothesis(h, self.ids, default_score)
            for h in as_list(data.get("hypotheses"))
            if isinstance(h, dict)
        ]
        if observations and hypotheses:
            hypotheses = rescore(hypotheses, observations)

        raw_best = data.get("best_explanation")
        if isinstance(raw_best, dict):
            best = normalize_hypothesis(raw_best, self.ids, default_score)
        else:
            best = select_best_explanation(hypotheses)

        evidence = [
            HypothesisEvidence(
                hypothesis_id=as_str(pick(e, "hypothesis_id")) or as_str(pick(e, "hypothesis")),
                type=as_str(pick(e, "type")) if pick(e, "type") in EVIDENCE_TYPES else "neutral",
                description=as_str(pick(e, "description")) or as_str(pick(e, "content")),
                strength=as_unit(pick(e, "strength")),
            )
            for e in as_list(data.get("evidence"))
            if isinstance(e, dict)
        ]
        return AbductiveThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "observation"),
            observations=observations,
            hypotheses=hypotheses,
            current_hypothesis=hypotheses[0] if hypotheses else None,
            evaluation_criteria=normalize_criteria(data.get("evaluation_criteria")),
            evidence=evidence,
            best_explanation=best,
        )

    def get_enhancements(self, thought: AbductiveThought) -> ModeEnhancements:
        hypotheses = thought.hypotheses
        average = sum(h.score for h in hypotheses) / len(hypotheses) if hypotheses else 0.0
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.INDUCTIVE, ThinkingMode.BAYESIAN, ThinkingMode.CAUSAL],
            mental_models=[
                "Occam's Razor - prefer simpler explanations",
                "Inference to Best Explanation (IBE)",
                "Peirce's abductive logic",
                "Consilience of inductions",
            ],
            guiding_questions=[
                "Which hypothesis best explains ALL observations?",
                "Are there observations that rule out any hypothesis?",
                "What additional evidence would differentiate the hypotheses?",
                "Is the simplest explanation sufficient, or is complexity warranted?",
                "Could multiple hypotheses be combined into a unified explanation?",
            ],
            metrics={
                "hypothesis_count": len(hypotheses),
                "observation_count": len(thought.observations),
                "evidence_count": len(thought.evidence),
                "avg_score": average,
                "parsimony": thought.evaluation_criteria.parsimony,
                "explanatory_power": thought.evaluation_criteria.explanatory_power,
            },
        )
        if thought.best_explanation is not None:
            enhancements.metrics["best_score"] = thought.best_explanation.score
        if len(hypotheses) < 2:
            enhancements.suggestions.append("Generate alternative hypotheses to compare explanatory power")
        if len(thought.observations) < 3:
            enhancements.suggestions.append("Gather more observations to differentiate between hypotheses")
        if not thought.evidence:
            enhancements.suggestions.append("Collect evidence to support or refute hypotheses")
        if hypotheses and thought.observations and max(h.score for h in hypotheses) == 0:
            enhancements.warnings.append("No hypothesis covers any observation")
        return enhancements
