"""Engineering and computing modes.

Systems engineering artefacts (requirements, trade studies, FMEA, design
decisions), computability theory, Turing-style cryptanalysis with deciban
evidence accounting, and algorithm design and analysis.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import duplicate_ids
from deepthinking.modes.scoring import (
    EvidenceConclusion,
    accumulate_decibans,
    decibans_to_probability,
    evidence_conclusion,
    from_decibans,
    to_decibans,
)
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

HIGH_UNCERTAINTY = 0.7

# =============================================================================
# Engineering
# =============================================================================

ENGINEERING_TYPES = (
    "requirements_analysis",
    "trade_study",
    "fmea_analysis",
    "design_decision",
    "risk_assessment",
    "traceability",
    "verification",
)
ENGINEERING_ANALYSES = ("requirements", "trade-study", "fmea", "design-decision", "comprehensive")
REQUIREMENT_PRIORITIES = ("must", "should", "could", "wont")
REQUIREMENT_STATUSES = ("draft", "approved", "implemented", "verified", "rejected")
VERIFICATION_METHODS = ("inspection", "analysis", "demonstration", "test")
DECISION_STATUSES = ("proposed", "accepted", "deprecated", "superseded")
RPN_THRESHOLD = 100
WEIGHT_TOLERANCE = 0.01

_ANALYSIS_THOUGHT_TYPES = {
    "requirements": "requirements_analysis",
    "trade-study": "trade_study",
    "fmea": "fmea_analysis",
    "design-decision": "design_decision",
}


@dataclass(frozen=True)
class Requirement:
    id: str
    title: str
    description: str = ""
    source: str = "derived"
    priority: str = "should"
    status: str = "draft"
    verification_method: str | None = None
    traces_to: list[str] = field(default_factory=list)
    satisfied_by: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RequirementsCoverage:
    total: int
    verified: int
    traced_to_source: int
    allocated_to_design: int


@dataclass(frozen=True)
class TradeAlternative:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class TradeCriterion:
    id: str
    name: str
    weight: float


@dataclass(frozen=True)
class TradeScore:
    alternative_id: str
    criteria_id: str
    score: float
    weighted_score: float
    rationale: str = ""


@dataclass(frozen=True)
class TradeStudy:
    title: str
    objective: str = ""
    alternatives: list[TradeAlternative] = field(default_factory=list)
    criteria: list[TradeCriterion] = field(default_factory=list)
    scores: list[TradeScore] = field(default_factory=list)
    totals: dict[str, float] = field(default_factory=dict)
    recommendation: str | None = None
    justification: str = ""


@dataclass(frozen=True)
class FailureMode:
    id: str
    component: str
    failure_mode: str
    severity: int
    occurrence: int
    detection: int
    rpn: int
    cause: str = ""
    effect: str = ""
    mitigation: str | None = None


@dataclass(frozen=True)
class FMEASummary:
    total_modes: int
    critical_modes: int
    average_rpn: float
    max_rpn: int


@dataclass(frozen=True)
class FMEA:
    title: str
    system: str = ""
    failure_modes: list[FailureMode] = field(default_factory=list)
    rpn_threshold: int = RPN_THRESHOLD
    summary: FMEASummary | None = None


@dataclass(frozen=True)
class DesignDecision:
    id: str
    title: str
    context: str = ""
    decision: str = ""
    status: str = "proposed"
    alternatives: list[str] = field(default_factory=list)
    consequences: list[str] = field(default_factory=list)
    rationale: str = ""


@dataclass(frozen=True, kw_only=True)
class EngineeringThought(Thought):
    thought_type: str = "requirements_analysis"
    analysis_type: str = "comprehensive"
    design_challenge: str = ""
    requirements: list[Requirement] = field(default_factory=list)
    requirements_coverage: RequirementsCoverage | None = None
    trade_study: TradeStudy | None = None
    fmea: FMEA | None = None
    design_decisions: list[DesignDecision] = field(default_factory=list)
    assessment_confidence: float | None = None
    key_risks: list[str] = field(default_factory=list)
    uncertainty: float = 0.5
    key_insight: str | None = None


def rating(value: Any) -> int:
    """FMEA severity / occurrence / detection rating clamped to 1-10."""
    number = as_int(value, 1) or 1
    return max(1, min(10, number))


def requirements_coverage(requirements: list[Requirement]) -> RequirementsCoverage:
    return RequirementsCoverage(
        total=len(requirements),
        verified=sum(1 for r in requirements if r.status == "verified"),
        traced_to_source=sum(1 for r in requirements if r.traces_to),
        allocated_to_design=sum(1 for r in requirements if r.satisfied_by),
    )


def fmea_summary(modes: list[FailureMode], threshold: int) -> FMEASummary:
    rpns = [m.rpn for m in modes]
    return FMEASummary(
        total_modes=len(modes),
        critical_modes=sum(1 for r in rpns if r > threshold),
        average_rpn=sum(rpns) / len(rpns) if rpns else 0.0,
        max_rpn=max(rpns, default=0),
    )


def normalize_trade_study(raw: dict[str, Any], ids: IdGenerator) -> TradeStudy:
    criteria = [
        TradeCriterion(
            id=as_str(pick(c, "id")) or ids("crit"),
            name=as_str(pick(c, "name")),
            weight=as_float(pick(c, "weight"), 0.0) or 0.0,
        )
        for c in as_records(pick(raw, "criteria"))
    ]
    weights = {c.id: c.weight for c in criteria}
    scores = []
    for s in as_records(pick(raw, "scores")):
        criterion = as_str(pick(s, "criteria_id"))
        score = as_float(pick(s, "score"), 0.0) or 0.0
        scores.append(
            TradeScore(
                alternative_id=as_str(pick(s, "alternative_id")),
                criteria_id=criterion,
                score=score,
                weighted_score=score * weights.get(criterion, 0.0),
                rationale=as_str(pick(s, "rationale")),
            )
        )
    alternatives = [
        TradeAlternative(
            id=as_str(pick(a, "id")) or ids("alt"),
            name=as_str(pick(a, "name")),
            description=as_str(pick(a, "description")),
        )
        for a in as_records(pick(raw, "alternatives"))
    ]
    totals = {a.id: 0.0 for a in alternatives}
    for score in scores:
        totals[score.alternative_id] = totals.get(score.alternative_id, 0.0) + score.weighted_score
    recommendation = as_str(pick(raw, "recommendation")) or None
    if recommendation is None and scores:
        recommendation = max(totals, key=lambda a: totals[a])
    return TradeStudy(
        title=as_str(pick(raw, "title")),
        objective=as_str(pick(raw, "objective")),
        alternatives=alternatives,
        criteria=criteria,
        scores=scores,
        totals=totals,
        recommendation=recommendation,
        justification=as_str(pick(raw, "justification")),
    )


def normalize_fmea(raw: dict[str, Any], ids: IdGenerator) -> FMEA:
    threshold = as_int(pick(raw, "rpn_threshold"), RPN_THRESHOLD) or RPN_THRESHOLD
    modes = []
    for m in as_records(pick(raw, "failure_modes")):
        severity = rating(pick(m, "severity"))
        occurrence = rating(pick(m, "occurrence"))
        detection = rating(pick(m, "detection"))
        modes.append(
            FailureMode(
                id=as_str(pick(m, "id")) or ids("fm"),
                component=as_str(pick(m, "component")),
                failure_mode=as_str(pick(m, "failure_mode")),
                severity=severity,
                occurrence=occurrence,
                detection=detection,
                rpn=severity * occurrence * detection,
                cause=as_str(pick(m, "cause")),
                effect=as_str(pick(m, "effect")),
                mitigation=as_str(pick(m, "mitigation")) or None,
            )
        )
    return FMEA(
        title=as_str(pick(raw, "title")),
        system=as_str(pick(raw, "system")),
        failure_modes=modes,
        rpn_threshold=threshold,
        summary=fmea_summary(modes, threshold),
    )


class EngineeringHandler(ModeHandler):
    """Requirements, trade studies, failure analysis and architecture decisions."""

    mode = ThinkingMode.ENGINEERING
    mode_name = "Engineering Analysis"
    description = "Requirements traceability, trade studies, FMEA and design decision records"
    thought_types = ENGINEERING_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("analysisType", data.get("analysis_type"), ENGINEERING_ANALYSES, "analysis type")
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")
        findings.unit_interval("assessmentConfidence", data.get("assessment_confidence"), "Assessment confidence")
        if not as_str(data.get("design_challenge")):
            findings.warn(
                "designChallenge",
                "No design challenge specified",
                "State the engineering problem being addressed",
            )

        requirements = as_records(data.get("requirements"))
        for req_id in duplicate_ids(as_str(pick(r, "id")) for r in requirements if pick(r, "id")):
            findings.warn("requirements", f"Duplicate requirement id: {req_id}")
        for i, req in enumerate(requirements):
            if not as_str(pick(req, "title")):
                findings.warn(f"requirements[{i}].title", "Requirement has no title")
            findings.known_value(
                f"requirements[{i}].priority", pick(req, "priority"), REQUIREMENT_PRIORITIES, "priority"
            )
            findings.known_value(
                f"requirements[{i}].verificationMethod",
                pick(req, "verification_method"),
                VERIFICATION_METHODS,
                "verification method",
            )

        study = data.get("trade_study")
        if isinstance(study, dict):
            self._validate_trade_study(findings, study)
        fmea = data.get("fmea")
        if isinstance(fmea, dict):
            self._validate_fmea(findings, fmea)
        for i, decision in enumerate(as_records(data.get("design_decisions"))):
            findings.known_value(
                f"designDecisions[{i}].status", pick(decision, "status"), DECISION_STATUSES, "decision status"
            )
            if not as_str(pick(decision, "decision")):
                findings.warn(f"designDecisions[{i}].decision", "Design decision does not state what was decided")

        if not any(data.has(name) for name in ("requirements", "trade_study", "fmea", "design_decisions")):
            findings.warn(
                "analysis",
                "No structured analysis provided",
                "Add requirements, a trade study, an FMEA or design decisions",
            )
        return findings.result()

    @staticmethod
    def _validate_trade_study(findings: Findings, study: dict[str, Any]) -> None:
        criteria = as_records(pick(study, "criteria"))
        weights = [pick(c, "weight") for c in criteria]
        if criteria and all(is_number(w) for w in weights):
            total = sum(weights)
            if abs(total - 1) > WEIGHT_TOLERANCE:
                findings.warn(
                    "tradeStudy.criteria",
                    f"Criteria weights sum to {total:.2f}, should be 1.0",
                    "Normalize the criteria weights",
                )
        alternatives = as_records(pick(study, "alternatives"))
        scored = {
            (as_str(pick(s, "alternative_id")), as_str(pick(s, "criteria_id")))
            for s in as_records(pick(study, "scores"))
        }
        missing = sum(
            1
            for a in alternatives
            for c in criteria
            if (as_str(pick(a, "id")), as_str(pick(c, "id"))) not in scored
        )
        if missing:
            findings.warn(
                "tradeStudy.scores",
                f"{missing} score(s) missing",
                "Score every alternative against every criterion",
            )

    @staticmethod
    def _validate_fmea(findings: Findings, fmea: dict[str, Any]) -> None:
        threshold = as_int(pick(fmea, "rpn_threshold"), RPN_THRESHOLD) or RPN_THRESHOLD
        for i, mode in enumerate(as_records(pick(fmea, "failure_modes"))):
            for name in ("severity", "occurrence", "detection"):
                value = pick(mode, name)
                if value is not None and (not is_number(value) or not 1 <= value <= 10):
                    findings.warn(
                        f"fmea.failureModes[{i}].{name}",
                        f"{name.capitalize()} rating ({value}) should be between 1 and 10",
                    )
            rpn = rating(pick(mode, "severity")) * rating(pick(mode, "occurrence")) * rating(pick(mode, "detection"))
            if rpn > threshold and not as_str(pick(mode, "mitigation")):
                findings.warn(
                    f"fmea.failureModes[{i}].mitigation",
                    f"High-RPN failure mode ({rpn}) has no mitigation",
                    "Define a mitigation for failure modes above the RPN threshold",
                )

    def create_thought(self, data: ThinkingInput, session_id: str) -> EngineeringThought:
        analysis = as_str(data.get("analysis_type"))
        if analysis not in ENGINEERING_ANALYSES:
            analysis = "comprehensive"
        requirements = [
            Requirement(
                id=as_str(pick(r, "id")) or self.ids("REQ"),
                title=as_str(pick(r, "title")),
                description=as_str(pick(r, "description")),
                source=as_str(pick(r, "source"), "derived") or "derived",
                priority=pick(r, "priority") if pick(r, "priority") in REQUIREMENT_PRIORITIES else "should",
                status=pick(r, "status") if pick(r, "status") in REQUIREMENT_STATUSES else "draft",
                verification_method=as_str(pick(r, "verification_method")) or None,
                traces_to=as_str_list(pick(r, "traces_to")),
                satisfied_by=as_str_list(pick(r, "satisfied_by")),
            )
            for r in as_records(data.get("requirements"))
        ]
        study = data.get("trade_study")
        fmea = data.get("fmea")
        decisions = [
            DesignDecision(
                id=as_str(pick(d, "id")) or self.ids("ADR"),
                title=as_str(pick(d, "title")),
                context=as_str(pick(d, "context")),
                decision=as_str(pick(d, "decision")),
                status=pick(d, "status") if pick(d, "status") in DECISION_STATUSES else "proposed",
                alternatives=as_str_list(pick(d, "alternatives")),
                consequences=as_str_list(pick(d, "consequences")),
                rationale=as_str(pick(d, "rationale")),
            )
            for d in as_records(data.get("design_decisions"))
        ]
        confidence = data.get("assessment_confidence")
        return EngineeringThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(
                data, _ANALYSIS_THOUGHT_TYPES.get(analysis, "requirements_analysis")
            ),
            analysis_type=analysis,
            design_challenge=as_str(data.get("design_challenge")),
            requirements=requirements,
            requirements_coverage=requirements_coverage(requirements) if requirements else None,
            trade_study=normalize_trade_study(study, self.ids) if isinstance(study, dict) else None,
            fmea=normalize_fmea(fmea, self.ids) if isinstance(fmea, dict) else None,
            design_decisions=decisions,
            assessment_confidence=as_unit(confidence) if confidence is not None else None,
            key_risks=as_str_list(data.get("key_risks")),
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
            key_insight=as_str(data.get("key_insight")) or None,
        )

    def get_enhancements(self, thought: EngineeringThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.ALGORITHMIC, ThinkingMode.SYSTEMSTHINKING, ThinkingMode.OPTIMIZATION],
            mental_models=[
                "Systems Engineering V-Model",
                "Trade Study Matrix",
                "FMEA Risk Priority",
                "Architecture Decision Records",
                "Requirements Traceability",
            ],
            metrics={
                "requirement_count": len(thought.requirements),
                "design_decision_count": len(thought.design_decisions),
                "uncertainty": thought.uncertainty,
            },
        )
        coverage = thought.requirements_coverage
        if coverage is not None:
            enhancements.guiding_questions.extend(
                [
                    "Is every requirement traced to a stakeholder need?",
                    "How will each requirement be verified?",
                    "Are any requirements in conflict?",
                ]
            )
            enhancements.metrics["requirements_verified"] = coverage.verified
            enhancements.metrics["requirements_traced"] = coverage.traced_to_source
            enhancements.metrics["requirements_allocated"] = coverage.allocated_to_design
            untraced = coverage.total - coverage.traced_to_source
            if untraced:
                enhancements.warnings.append(f"{untraced} requirement(s) not traced to a source")
            must_unverified = [
                r.id for r in thought.requirements if r.priority == "must" and not r.verification_method
            ]
            if must_unverified:
                enhancements.suggestions.append(
                    f"Assign verification methods to must-have requirements: {', '.join(must_unverified)}"
                )

        study = thought.trade_study
        if study is not None:
            enhancements.guiding_questions.extend(
                [
                    "Are the criteria weights agreed with stakeholders?",
                    "How sensitive is the ranking to the weights?",
                ]
            )
            enhancements.metrics["alternative_count"] = len(study.alternatives)
            enhancements.metrics["criteria_count"] = len(study.criteria)
            if study.recommendation:
                enhancements.suggestions.append(f"Recommended alternative: {study.recommendation}")
            ranked = sorted(study.totals.values(), reverse=True)
            if len(ranked) > 1 and math.isclose(ranked[0], ranked[1], abs_tol=WEIGHT_TOLERANCE):
                enhancements.warnings.append("Top alternatives are tied - run a sensitivity analysis")

        fmea = thought.fmea
        if fmea is not None and fmea.summary is not None:
            summary = fmea.summary
            enhancements.guiding_questions.extend(
                [
                    "Which failure modes have the highest severity regardless of RPN?",
                    "Are detection controls adequate?",
                ]
            )
            enhancements.metrics["failure_mode_count"] = summary.total_modes
            enhancements.metrics["critical_failure_modes"] = summary.critical_modes
            enhancements.metrics["average_rpn"] = round(summary.average_rpn, 2)
            enhancements.metrics["max_rpn"] = summary.max_rpn
            if summary.critical_modes:
                enhancements.warnings.append(
                    f"{summary.critical_modes} failure mode(s) exceed RPN threshold {fmea.rpn_threshold}"
                )

        pending = [d.id for d in thought.design_decisions if d.status == "proposed"]
        if pending:
            enhancements.suggestions.append(f"Decisions awaiting acceptance: {', '.join(pending)}")
        if thought.assessment_confidence is not None:
            enhancements.metrics["assessment_confidence"] = thought.assessment_confidence
            if thought.assessment_confidence < 0.6:
                enhancements.warnings.append("Low assessment confidence - gather more data before committing")
        for risk in thought.key_risks:
            enhancements.warnings.append(f"Key risk: {risk}")
        if thought.key_insight:
            enhancements.suggestions.append(f"Key insight: {thought.key_insight}")
        return enhancements


# =============================================================================
# Computability
# =============================================================================

COMPUTABILITY_TYPES = (
    "machine_definition",
    "computation_trace",
    "decidability_proof",
    "reduction_construction",
    "complexity_analysis",
    "oracle_reasoning",
    "diagonalization",
)
MACHINE_TYPES = ("deterministic", "nondeterministic", "multi_tape", "oracle")
DECIDABILITY_CONCLUSIONS = ("decidable", "undecidable", "semi_decidable", "unknown")
DECIDABILITY_METHODS = ("direct_machine", "reduction", "diagonalization", "rice_theorem")
REDUCTION_TYPES = ("many_one", "turing", "polynomial_time", "log_space")
TAPE_MOVES = ("L", "R", "S")


@dataclass(frozen=True)
class Transition:
    from_state: str
    read_symbol: str
    to_state: str
    write_symbol: str
    direction: str = "R"


@dataclass(frozen=True)
class TuringMachine:
    id: str
    name: str
    states: list[str] = field(default_factory=list)
    input_alphabet: list[str] = field(default_factory=lambda: ["0", "1"])
    tape_alphabet: list[str] = field(default_factory=lambda: ["0", "1", "_"])
    blank_symbol: str = "_"
    transitions: list[Transition] = field(default_factory=list)
    initial_state: str = "q0"
    accept_states: list[str] = field(default_factory=list)
    reject_states: list[str] = field(default_factory=list)
    type: str = "deterministic"
    description: str = ""


@dataclass(frozen=True)
class ComputationTrace:
    input: str
    total_steps: int
    space_used: int
    result: str = "unknown"


@dataclass(frozen=True)
class DecidabilityProof:
    id: str
    problem: str
    conclusion: str = "unknown"
    method: str = "direct_machine"
    known_undecidable_problem: str | None = None
    reduction: str | None = None
    proof_steps: list[str] = field(default_factory=list)
    key_insights: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Reduction:
    id: str
    from_problem: str
    to_problem: str
    type: str = "many_one"
    description: str = ""
    forward_direction: str = ""
    backward_direction: str = ""
    reduction_complexity: str | None = None


@dataclass(frozen=True)
class Diagonalization:
    id: str
    enumeration: str = ""
    diagonal_construction: str = ""
    contradiction: str = ""
    pattern: str = "custom"


@dataclass(frozen=True, kw_only=True)
class ComputabilityThought(Thought):
    thought_type: str = "machine_definition"
    machines: list[TuringMachine] = field(default_factory=list)
    current_machine: TuringMachine | None = None
    computation_trace: ComputationTrace | None = None
    decidability_proof: DecidabilityProof | None = None
    reductions: list[Reduction] = field(default_factory=list)
    reduction_chain: list[str] = field(default_factory=list)
    diagonalization: Diagonalization | None = None
    complexity_class: str | None = None
    oracle: str | None = None
    classic_problems: list[str] = field(default_factory=list)
    uncertainty: float = 0.5
    key_insight: str | None = None


def machine_defects(machine: dict[str, Any]) -> list[str]:
    """Structural problems of a machine description.

    Transitions and initial / halting states must name declared states,
    accept and reject sets must be disjoint, and a deterministic machine
    may not have two transitions for the same (state, symbol) pair.
    """
    states = set(as_str_list(pick(machine, "states")))
    transitions = as_records(pick(machine, "transitions"))
    defects = []
    if states:
        initial = as_str(pick(machine, "initial_state"))
        if initial and initial not in states:
            defects.append(f"Initial state {initial} is not a declared state")
        for name in ("accept_states", "reject_states"):
            for state in as_str_list(pick(machine, name)):
                if state not in states:
                    defects.append(f"Halting state {state} is not a declared state")
        for t in transitions:
            for endpoint in (as_str(pick(t, "from_state")), as_str(pick(t, "to_state"))):
                if endpoint and endpoint not in states:
                    defects.append(f"Transition references undeclared state: {endpoint}")
    overlap = set(as_str_list(pick(machine, "accept_states"))) & set(as_str_list(pick(machine, "reject_states")))
    for state in sorted(overlap):
        defects.append(f"State {state} is both accepting and rejecting")
    if as_str(pick(machine, "type"), "deterministic") == "deterministic":
        keys = Counter((as_str(pick(t, "from_state")), as_str(pick(t, "read_symbol"))) for t in transitions)
        for (state, symbol), count in keys.items():
            if count > 1:
                defects.append(f"Deterministic machine has {count} transitions from ({state}, {symbol})")
    return defects


def normalize_machine(raw: dict[str, Any], ids: IdGenerator) -> TuringMachine:
    states = as_str_list(pick(raw, "states"))
    machine_type = pick(raw, "type")
    return TuringMachine(
        id=as_str(pick(raw, "id")) or ids("tm"),
        name=as_str(pick(raw, "name")) or "Unnamed Machine",
        states=states,
        input_alphabet=as_str_list(pick(raw, "input_alphabet")) or ["0", "1"],
        tape_alphabet=as_str_list(pick(raw, "tape_alphabet")) or ["0", "1", "_"],
        blank_symbol=as_str(pick(raw, "blank_symbol")) or "_",
        transitions=[
            Transition(
                from_state=as_str(pick(t, "from_state")),
                read_symbol=as_str(pick(t, "read_symbol")),
                to_state=as_str(pick(t, "to_state")),
                write_symbol=as_str(pick(t, "write_symbol")),
                direction=pick(t, "direction") if pick(t, "direction") in TAPE_MOVES else "R",
            )
            for t in as_records(pick(raw, "transitions"))
        ],
        initial_state=as_str(pick(raw, "initial_state")) or (states[0] if states else "q0"),
        accept_states=as_str_list(pick(raw, "accept_states")),
        reject_states=as_str_list(pick(raw, "reject_states")),
        type=machine_type if machine_type in MACHINE_TYPES else "deterministic",
        description=as_str(pick(raw, "description")),
    )


_COMPUTABILITY_QUESTIONS = {
    "machine_definition": [
        "Is the transition function fully specified?",
        "Are accept and reject states properly defined?",
        "What language does this machine recognize?",
    ],
    "computation_trace": [
        "Does the computation terminate?",
        "How many steps are required?",
        "What is the space usage?",
    ],
    "decidability_proof": [
        "What is the proof method?",
        "Is the reduction valid?",
        "Are all cases covered?",
    ],
    "reduction_construction": [
        "Is the reduction computable?",
        "Does it preserve membership?",
        "What is the reduction complexity?",
    ],
    "complexity_analysis": [
        "What complexity class does this belong to?",
        "Is it complete for its class?",
        "Are there known lower bounds?",
    ],
    "oracle_reasoning": [
        "What oracle is being used?",
        "Does the result relativize?",
        "What are the implications for P vs NP?",
    ],
    "diagonalization": [
        "What is being enumerated?",
        "How is the diagonal element constructed?",
        "What contradiction arises?",
    ],
}


class ComputabilityHandler(ModeHandler):
    """Turing machines, decidability and reductions."""

    mode = ThinkingMode.COMPUTABILITY
    mode_name = "Computability Theory"
    description = "Turing machine analysis, decidability proofs and reductions"
    thought_types = COMPUTABILITY_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        machines = as_records(data.get("machines"))
        for i, machine in enumerate(machines):
            prefix = f"machines[{i}]"
            findings.known_value(f"{prefix}.type", pick(machine, "type"), MACHINE_TYPES, "machine type")
            if not as_str_list(pick(machine, "states")):
                findings.warn(f"{prefix}.states", "No states defined", "A Turing machine requires at least one state")
            if not as_records(pick(machine, "transitions")):
                findings.warn(f"{prefix}.transitions", "No transitions defined", "Define the transition function")
            if not as_str_list(pick(machine, "accept_states")):
                findings.warn(f"{prefix}.acceptStates", "No accept states defined", "Define at least one accept state")
            for defect in machine_defects(machine):
                findings.warn(prefix, defect)
        if data.thought_type == "machine_definition" and not machines:
            findings.warn(
                "machines",
                "Machine definition thought without machines specified",
                "Include a Turing machine specification",
            )

        proof = data.get("decidability_proof")
        if isinstance(proof, dict):
            findings.known_value(
                "decidabilityProof.conclusion", pick(proof, "conclusion"), DECIDABILITY_CONCLUSIONS, "conclusion"
            )
            findings.known_value(
                "decidabilityProof.method", pick(proof, "method"), DECIDABILITY_METHODS, "proof method"
            )
            if not as_str(pick(proof, "problem")):
                findings.warn(
                    "decidabilityProof.problem",
                    "No problem specified",
                    "Identify the decision problem being analyzed",
                )
            if not as_str_list(pick(proof, "proof_steps")):
                findings.warn("decidabilityProof.proofSteps", "No proof steps provided", "Document the proof steps")
            if (
                pick(proof, "method") == "reduction"
                and not pick(proof, "reduction")
                and not pick(proof, "known_undecidable_problem")
            ):
                findings.warn(
                    "decidabilityProof",
                    "Reduction proof without reduction details",
                    "Specify the reduction and the known undecidable problem",
                )

        for i, reduction in enumerate(as_records(data.get("reductions"))):
            findings.known_value(f"reductions[{i}].type", pick(reduction, "type"), REDUCTION_TYPES, "reduction type")
            if not pick(reduction, "from_problem") or not pick(reduction, "to_problem"):
                findings.warn(
                    f"reductions[{i}]",
                    "Reduction missing source or target problem",
                    "Specify both fromProblem and toProblem",
                )
            if not pick(reduction, "forward_direction") and not pick(reduction, "correctness_proof"):
                findings.warn(
                    f"reductions[{i}].correctnessProof",
                    "No correctness proof provided",
                    "Prove both directions of the reduction",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ComputabilityThought:
        machines = [normalize_machine(m, self.ids) for m in as_records(data.get("machines"))]
        trace = data.get("computation_trace")
        proof = data.get("decidability_proof")
        diagonal = data.get("diagonalization")
        reductions = []
        for r in as_records(data.get("reductions")):
            correctness = as_dict(pick(r, "correctness_proof"))
            reduction_type = pick(r, "type")
            reductions.append(
                Reduction(
                    id=as_str(pick(r, "id")) or self.ids("red"),
                    from_problem=as_str(pick(r, "from_problem")),
                    to_problem=as_str(pick(r, "to_problem")),
                    type=reduction_type if reduction_type in REDUCTION_TYPES else "many_one",
                    description=as_str(pick(r, "description")),
                    forward_direction=as_str(pick(r, "forward_direction") or pick(correctness, "forward_direction")),
                    backward_direction=as_str(pick(r, "backward_direction") or pick(correctness, "backward_direction")),
                    reduction_complexity=as_str(pick(r, "reduction_complexity")) or None,
                )
            )
        chain = as_str_list(data.get("reduction_chain"))
        if not chain and reductions:
            chain = [reductions[0].from_problem] + [r.to_problem for r in reductions]
        complexity = data.get("complexity_analysis")
        return ComputabilityThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "machine_definition"),
            machines=machines,
            current_machine=machines[0] if machines else None,
            computation_trace=(
                ComputationTrace(
                    input=as_str(pick(trace, "input")),
                    total_steps=as_int(pick(trace, "total_steps"), 0) or 0,
                    space_used=as_int(pick(trace, "space_used"), 0) or 0,
                    result=as_str(pick(trace, "result"), "unknown") or "unknown",
                )
                if isinstance(trace, dict)
                else None
            ),
            decidability_proof=(
                DecidabilityProof(
                    id=as_str(pick(proof, "id")) or self.ids("proof"),
                    problem=as_str(pick(proof, "problem")),
                    conclusion=(
                        pick(proof, "conclusion")
                        if pick(proof, "conclusion") in DECIDABILITY_CONCLUSIONS
                        else "unknown"
                    ),
                    method=pick(proof, "method") if pick(proof, "method") in DECIDABILITY_METHODS else "direct_machine",
                    known_undecidable_problem=as_str(pick(proof, "known_undecidable_problem")) or None,
                    reduction=as_str(pick(proof, "reduction")) or None,
                    proof_steps=as_str_list(pick(proof, "proof_steps")),
                    key_insights=as_str_list(pick(proof, "key_insights")),
                )
                if isinstance(proof, dict)
                else None
            ),
            reductions=reductions,
            reduction_chain=chain,
            diagonalization=(
                Diagonalization(
                    id=as_str(pick(diagonal, "id")) or self.ids("diag"),
                    enumeration=as_str(pick(diagonal, "enumeration")),
                    diagonal_construction=as_str(pick(diagonal, "diagonal_construction")),
                    contradiction=as_str(pick(diagonal, "contradiction")),
                    pattern=as_str(pick(diagonal, "pattern"), "custom") or "custom",
                )
                if isinstance(diagonal, dict)
                else None
            ),
            complexity_class=(
                as_str(pick(complexity, "complexity_class")) or None
                if isinstance(complexity, dict)
                else as_str(complexity) or None
            ),
            oracle=as_str(data.get("oracle")) or None,
            classic_problems=as_str_list(data.get("classic_problems")),
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
            key_insight=as_str(data.get("key_insight")) or None,
        )

    def get_enhancements(self, thought: ComputabilityThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.MATHEMATICS, ThinkingMode.ALGORITHMIC, ThinkingMode.FORMALLOGIC],
            mental_models=[
                "Turing Machine Model",
                "Church-Turing Thesis",
                "Halting Problem",
                "Diagonalization",
                "Reduction Technique",
                "Rice's Theorem",
            ],
            guiding_questions=list(_COMPUTABILITY_QUESTIONS.get(thought.thought_type, [])),
            metrics={
                "machine_count": len(thought.machines),
                "reduction_count": len(thought.reductions),
                "uncertainty": thought.uncertainty,
            },
        )
        machine = thought.current_machine
        if machine is not None:
            enhancements.metrics["state_count"] = len(machine.states)
            enhancements.metrics["transition_count"] = len(machine.transitions)
            enhancements.suggestions.append(f"Machine type: {machine.type}")
        if thought.computation_trace is not None:
            trace = thought.computation_trace
            enhancements.metrics["total_steps"] = trace.total_steps
            enhancements.metrics["space_used"] = trace.space_used
            enhancements.suggestions.append(f"Result: {trace.result}")
        if thought.decidability_proof is not None:
            proof = thought.decidability_proof
            enhancements.suggestions.append(f"Conclusion: {proof.conclusion}")
            enhancements.suggestions.append(f"Method: {proof.method}")
            if proof.method == "rice_theorem":
                enhancements.guiding_questions.append("Is the property semantic and non-trivial?")
        for reduction in thought.reductions[:1]:
            enhancements.suggestions.append(f"Reduction type: {reduction.type}")
            enhancements.suggestions.append(f"{reduction.from_problem} ≤ {reduction.to_problem}")
        if len(thought.reduction_chain) > 2:
            enhancements.suggestions.append(f"Reduction chain: {' ≤ '.join(thought.reduction_chain)}")
        if thought.complexity_class:
            enhancements.metrics["complexity_class"] = thought.complexity_class
        if thought.thought_type == "oracle_reasoning":
            enhancements.suggestions.append("Consider Baker-Gill-Solovay relativization barriers")
        if thought.diagonalization is not None:
            enhancements.suggestions.append(f"Pattern: {thought.diagonalization.pattern}")
        if thought.classic_problems:
            enhancements.suggestions.append(f"References: {', '.join(thought.classic_problems)}")
        if thought.key_insight:
            enhancements.suggestions.append(f"Key insight: {thought.key_insight}")
        if thought.uncertainty > HIGH_UNCERTAINTY:
            enhancements.warnings.append("High uncertainty - verify proof steps carefully")
        return enhancements


# =============================================================================
# Cryptanalytic
# =============================================================================

CRYPTANALYTIC_TYPES = (
    "hypothesis_formation",
    "evidence_accumulation",
    "frequency_analysis",
    "key_elimination",
    "banburismus",
    "crib_analysis",
    "isomorphism_detection",
)
CIPHER_TYPES = (
    "substitution_simple",
    "substitution_polyalphabetic",
    "substitution_polygraphic",
    "transposition",
    "rotor",
    "stream",
    "block",
    "unknown",
)
EVIDENCE_SOURCES = ("frequency", "pattern", "crib", "statistical", "structural")
HYPOTHESIS_STATUSES = ("active", "confirmed", "refuted", "superseded")
LANGUAGE_IC = {
    "english": 0.0667,
    "german": 0.0762,
    "french": 0.0778,
    "spanish": 0.0775,
    "italian": 0.0738,
    "random": 0.0385,
}

_LETTERS = re.compile(r"[^A-Z]")


def index_of_coincidence(text: str) -> float:
    """Probability that two letters drawn from ``text`` match; 0 below two letters."""
    letters = _LETTERS.sub("", text.upper())
    n = len(letters)
    if n <= 1:
        return 0.0
    return sum(c * (c - 1) for c in Counter(letters).values()) / (n * (n - 1))


def closest_language(ic: float) -> str:
    return min(LANGUAGE_IC, key=lambda lang: abs(LANGUAGE_IC[lang] - ic))


@dataclass(frozen=True)
class DecibanEvidence:
    observation: str
    decibans: float
    likelihood_ratio: float
    source: str = "statistical"
    confidence: float = 1.0
    explanation: str = ""


@dataclass(frozen=True)
class CryptographicHypothesis:
    id: str
    description: str
    cipher_type: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    prior_probability: float = 0.5
    posterior_probability: float = 0.5
    deciban_score: float = 0.0
    evidence: list[DecibanEvidence] = field(default_factory=list)
    status: str = "active"


@dataclass(frozen=True)
class EvidenceChain:
    hypothesis: str
    observations: list[DecibanEvidence]
    total_decibans: float
    odds_ratio: float
    conclusion: EvidenceConclusion
    confirmation_threshold: float
    refutation_threshold: float


@dataclass(frozen=True)
class KeySpaceAnalysis:
    total_keys: float
    eliminated_keys: float
    remaining_keys: float
    reduction_factor: float
    elimination_methods: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FrequencyAnalysis:
    index_of_coincidence: float
    chi_squared: float | None = None
    degrees_of_freedom: int | None = None
    closest_language: str | None = None


@dataclass(frozen=True)
class BanburismusResult:
    offset: int
    coincidences: int
    expected_coincidences: float
    deciban_score: float
    is_significant: bool


@dataclass(frozen=True)
class CribPlacement:
    crib: str
    position: int
    contradictions: list[str] = field(default_factory=list)

    @property
    def is_viable(self) -> bool:
        return not self.contradictions


@dataclass(frozen=True)
class IsomorphismPattern:
    pattern: str
    positions: list[int]
    deciban_contribution: float = 0.0
    suggestion: str = ""


@dataclass(frozen=True, kw_only=True)
class CryptanalyticThought(Thought):
    thought_type: str = "hypothesis_formation"
    ciphertext: str | None = None
    plaintext: str | None = None
    cipher_type: str | None = None
    hypotheses: list[CryptographicHypothesis] = field(default_factory=list)
    current_hypothesis: CryptographicHypothesis | None = None
    evidence_chains: list[EvidenceChain] = field(default_factory=list)
    key_space_analysis: KeySpaceAnalysis | None = None
    frequency_analysis: FrequencyAnalysis | None = None
    banburismus_analysis: list[BanburismusResult] = field(default_factory=list)
    crib_analysis: list[CribPlacement] = field(default_factory=list)
    patterns: list[IsomorphismPattern] = field(default_factory=list)
    uncertainty: float = 0.5
    key_insight: str | None = None


def evidence_weight(record: dict[str, Any]) -> tuple[float, float]:
    """Deciban weight and likelihood ratio of one observation.

    Whichever of ``decibans`` / ``likelihoodRatio`` is given determines the
    other; a non-positive likelihood ratio carries no weight.
    """
    decibans = as_float(pick(record, "decibans"))
    ratio = as_float(pick(record, "likelihood_ratio"))
    if decibans is not None:
        return decibans, ratio if ratio is not None and ratio > 0 else from_decibans(decibans)
    if ratio is not None and ratio > 0:
        return to_decibans(ratio), ratio
    return 0.0, 1.0


def normalize_evidence(record: dict[str, Any]) -> DecibanEvidence:
    decibans, ratio = evidence_weight(record)
    source = pick(record, "source")
    return DecibanEvidence(
        observation=as_str(pick(record, "observation")),
        decibans=decibans,
        likelihood_ratio=ratio,
        source=source if source in EVIDENCE_SOURCES else "statistical",
        confidence=as_unit(pick(record, "confidence"), 1.0),
        explanation=as_str(pick(record, "explanation")),
    )


def _significant_offset(result: dict[str, Any]) -> bool:
    flag = as_bool(pick(result, "is_significant"))
    if flag is not None:
        return flag
    return (as_float(pick(result, "deciban_score"), 0.0) or 0.0) > 0


class CryptanalyticHandler(ModeHandler):
    """Hypothesis testing with Turing's deciban accounting."""

    mode = ThinkingMode.CRYPTANALYTIC
    mode_name = "Cryptanalytic Reasoning"
    description = "Deciban evidence accumulation, frequency analysis and key-space elimination"
    thought_types = CRYPTANALYTIC_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("cipherType", data.get("cipher_type"), CIPHER_TYPES, "cipher type")
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        for i, hypothesis in enumerate(as_records(data.get("hypotheses"))):
            if not as_str(pick(hypothesis, "description")):
                findings.warn(f"hypotheses[{i}].description", "Hypothesis lacks a description")
            findings.unit_interval(
                f"hypotheses[{i}].priorProbability", pick(hypothesis, "prior_probability"), "Prior probability"
            )
            findings.known_value(
                f"hypotheses[{i}].cipherType", pick(hypothesis, "cipher_type"), CIPHER_TYPES, "cipher type"
            )
            self._validate_evidence(findings, f"hypotheses[{i}].evidence", pick(hypothesis, "evidence"))

        for i, chain in enumerate(as_records(data.get("evidence_chains"))):
            if not as_str(pick(chain, "hypothesis")):
                findings.warn(f"evidenceChains[{i}].hypothesis", "Evidence chain does not name its hypothesis")
            observations = pick(chain, "observations")
            if not as_records(observations):
                findings.warn(f"evidenceChains[{i}].observations", "Evidence chain has no observations")
            self._validate_evidence(findings, f"evidenceChains[{i}].observations", observations)

        if data.thought_type not in (None, "hypothesis_formation") and not as_str(data.get("ciphertext")):
            findings.warn("ciphertext", "No ciphertext provided", "Include the ciphertext under analysis")
        return findings.result()

    @staticmethod
    def _validate_evidence(findings: Findings, prefix: str, raw: Any) -> None:
        for j, record in enumerate(as_records(raw)):
            ratio = pick(record, "likelihood_ratio")
            if ratio is not None and (not is_number(ratio) or ratio <= 0):
                findings.warn(
                    f"{prefix}[{j}].likelihoodRatio",
                    f"Likelihood ratio ({ratio}) must be positive",
                    "Observations with a non-positive ratio carry no weight",
                )
            if ratio is None and pick(record, "decibans") is None:
                findings.warn(f"{prefix}[{j}]", "Observation has neither decibans nor a likelihood ratio")
            findings.known_value(f"{prefix}[{j}].source", pick(record, "source"), EVIDENCE_SOURCES, "evidence source")

    def _hypothesis(self, raw: dict[str, Any]) -> CryptographicHypothesis:
        evidence = [normalize_evidence(e) for e in as_records(pick(raw, "evidence"))]
        prior = as_unit(pick(raw, "prior_probability"), 0.5)
        score = as_float(pick(raw, "deciban_score"))
        if score is None:
            score = accumulate_decibans(e.decibans for e in evidence)
        status = pick(raw, "status")
        if status not in HYPOTHESIS_STATUSES:
            verdict = evidence_conclusion(
                score, self.settings.confirmation_threshold, self.settings.refutation_threshold
            )
            status = "active" if verdict is EvidenceConclusion.INCONCLUSIVE else verdict.value
        cipher = pick(raw, "cipher_type")
        return CryptographicHypothesis(
            id=as_str(pick(raw, "id")) or self.ids("hyp"),
            description=as_str(pick(raw, "description")),
            cipher_type=cipher if cipher in CIPHER_TYPES else None,
            parameters=as_dict(pick(raw, "parameters")),
            prior_probability=prior,
            posterior_probability=decibans_to_probability(score, prior),
            deciban_score=score,
            evidence=evidence,
            status=status,
        )

    def _chain(self, raw: dict[str, Any]) -> EvidenceChain:
        observations = [normalize_evidence(o) for o in as_records(pick(raw, "observations"))]
        total = accumulate_decibans(o.decibans for o in observations)
        confirm = as_float(pick(raw, "confirmation_threshold"), self.settings.confirmation_threshold)
        refute = as_float(pick(raw, "refutation_threshold"), self.settings.refutation_threshold)
        return EvidenceChain(
            hypothesis=as_str(pick(raw, "hypothesis")),
            observations=observations,
            total_decibans=total,
            odds_ratio=from_decibans(total),
            conclusion=evidence_conclusion(total, confirm, refute),
            confirmation_threshold=confirm,
            refutation_threshold=refute,
        )

    def create_thought(self, data: ThinkingInput, session_id: str) -> CryptanalyticThought:
        hypotheses = [self._hypothesis(h) for h in as_records(data.get("hypotheses"))]
        current = data.get("current_hypothesis")
        ciphertext = as_str(data.get("ciphertext")) or None
        cipher = data.get("cipher_type")
        return CryptanalyticThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "hypothesis_formation"),
            ciphertext=ciphertext,
            plaintext=as_str(data.get("plaintext")) or None,
            cipher_type=cipher if cipher in CIPHER_TYPES else None,
            hypotheses=hypotheses,
            current_hypothesis=(
                self._hypothesis(current) if isinstance(current, dict) else (hypotheses[0] if hypotheses else None)
            ),
            evidence_chains=[self._chain(c) for c in as_records(data.get("evidence_chains"))],
            key_space_analysis=self._key_space(data.get("key_space_analysis")),
            frequency_analysis=self._frequencies(data.get("frequency_analysis"), ciphertext),
            banburismus_analysis=[
                BanburismusResult(
                    offset=as_int(pick(b, "offset"), 0) or 0,
                    coincidences=as_int(pick(b, "coincidences"), 0) or 0,
                    expected_coincidences=as_float(pick(b, "expected_coincidences"), 0.0) or 0.0,
                    deciban_score=as_float(pick(b, "deciban_score"), 0.0) or 0.0,
                    is_significant=_significant_offset(b),
                )
                for b in as_records(data.get("banburismus_analysis"))
            ],
            crib_analysis=[
                CribPlacement(
                    crib=as_str(pick(c, "crib")),
                    position=as_int(pick(c, "position"), 0) or 0,
                    contradictions=as_str_list(pick(c, "contradictions")),
                )
                for c in as_records(data.get("crib_analysis"))
            ],
            patterns=[
                IsomorphismPattern(
                    pattern=as_str(pick(p, "pattern")),
                    positions=[i for i in (as_int(x) for x in as_list(pick(p, "positions"))) if i is not None],
                    deciban_contribution=as_float(pick(p, "deciban_contribution"), 0.0) or 0.0,
                    suggestion=as_str(pick(p, "suggestion")),
                )
                for p in as_records(data.get("patterns"))
            ],
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
            key_insight=as_str(data.get("key_insight")) or None,
        )

    @staticmethod
    def _key_space(raw: Any) -> KeySpaceAnalysis | None:
        if not isinstance(raw, dict):
            return None
        total = as_float(pick(raw, "total_keys"), 0.0) or 0.0
        eliminated = as_float(pick(raw, "eliminated_keys"), 0.0) or 0.0
        remaining = as_float(pick(raw, "remaining_keys"))
        if remaining is None:
            remaining = max(total - eliminated, 0.0)
        factor = as_float(pick(raw, "reduction_factor"))
        if factor is None:
            factor = total / remaining if remaining > 0 else 1.0
        methods = [as_str(pick(m, "method")) for m in as_records(pick(raw, "elimination_methods"))]
        return KeySpaceAnalysis(
            total_keys=total,
            eliminated_keys=eliminated,
            remaining_keys=remaining,
            reduction_factor=factor,
            elimination_methods=methods or as_str_list(pick(raw, "elimination_methods")),
        )

    @staticmethod
    def _frequencies(raw: Any, ciphertext: str | None) -> FrequencyAnalysis | None:
        if not isinstance(raw, dict):
            return None
        ic = as_float(pick(raw, "index_of_coincidence"))
        if ic is None:
            ic = index_of_coincidence(ciphertext or "")
        return FrequencyAnalysis(
            index_of_coincidence=ic,
            chi_squared=as_float(pick(raw, "chi_squared")),
            degrees_of_freedom=as_int(pick(raw, "degrees_of_freedom")),
            closest_language=closest_language(ic) if ic > 0 else None,
        )

    def get_enhancements(self, thought: CryptanalyticThought) -> ModeEnhancements:
        confirm = self.settings.confirmation_threshold
        refute = self.settings.refutation_threshold
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.BAYESIAN, ThinkingMode.EVIDENTIAL, ThinkingMode.INDUCTIVE],
            mental_models=[
                "Turing's Deciban System",
                "Bayesian Hypothesis Testing",
                "Index of Coincidence",
                "Banburismus",
                "Frequency Analysis",
                "Known-Plaintext Attack",
            ],
            metrics={
                "hypothesis_count": len(thought.hypotheses),
                "evidence_chain_count": len(thought.evidence_chains),
                "uncertainty": thought.uncertainty,
            },
        )
        kind = thought.thought_type
        if kind == "hypothesis_formation":
            enhancements.guiding_questions.extend(
                [
                    "What cipher system is most likely?",
                    "What are the prior probabilities for each hypothesis?",
                    "What evidence would confirm or refute each hypothesis?",
                ]
            )
        elif kind == "evidence_accumulation":
            enhancements.guiding_questions.extend(
                [
                    "What is the likelihood ratio for this evidence?",
                    "How many decibans does this evidence contribute?",
                    "Have we reached the confirmation threshold?",
                ]
            )
        elif kind == "frequency_analysis":
            enhancements.guiding_questions.extend(
                [
                    "Does the frequency distribution match any known language?",
                    "What is the index of coincidence?",
                    "Are there significant deviations from expected frequencies?",
                ]
            )
        elif kind == "key_elimination":
            enhancements.guiding_questions.extend(
                [
                    "What portion of the key space has been eliminated?",
                    "What methods were used for elimination?",
                    "How many candidate keys remain?",
                ]
            )
        elif kind == "banburismus":
            enhancements.guiding_questions.extend(
                [
                    "Are there significant coincidences at any offset?",
                    "What does this suggest about the wheel order?",
                    "Can we chain multiple Banburismus results?",
                ]
            )
        elif kind == "crib_analysis":
            enhancements.guiding_questions.extend(
                [
                    "Is the crib position viable?",
                    "Are there any contradictions?",
                    "What constraints does this crib impose?",
                ]
            )
        elif kind == "isomorphism_detection":
            enhancements.guiding_questions.extend(
                [
                    "What patterns have been detected?",
                    "Do patterns suggest repeated words?",
                    "What deciban contribution do patterns provide?",
                ]
            )

        for chain in thought.evidence_chains:
            enhancements.metrics[f"{chain.hypothesis or 'chain'}_decibans"] = chain.total_decibans
            if chain.conclusion is not EvidenceConclusion.INCONCLUSIVE:
                enhancements.suggestions.append(
                    f'Hypothesis "{chain.hypothesis}": {chain.conclusion.value} ({chain.total_decibans:.1f} db)'
                )
        if thought.frequency_analysis is not None:
            frequencies = thought.frequency_analysis
            enhancements.metrics["index_of_coincidence"] = round(frequencies.index_of_coincidence, 4)
            if frequencies.chi_squared is not None:
                enhancements.metrics["chi_squared"] = frequencies.chi_squared
            if frequencies.closest_language:
                enhancements.suggestions.append(
                    f"Index of coincidence closest to {frequencies.closest_language} "
                    f"({LANGUAGE_IC[frequencies.closest_language]})"
                )
        if thought.key_space_analysis is not None:
            factor = thought.key_space_analysis.reduction_factor
            enhancements.metrics["reduction_factor"] = factor
            enhancements.suggestions.append(f"Key space reduced by factor of {factor:.2f}")
        if thought.banburismus_analysis:
            significant = [b for b in thought.banburismus_analysis if b.is_significant]
            enhancements.metrics["significant_offsets"] = len(significant)
            for result in significant:
                enhancements.suggestions.append(
                    f"Significant at offset {result.offset}: {result.deciban_score:.1f} db"
                )
        if thought.crib_analysis:
            enhancements.metrics["viable_positions"] = sum(1 for c in thought.crib_analysis if c.is_viable)
        if thought.patterns:
            enhancements.metrics["pattern_count"] = len(thought.patterns)

        current = thought.current_hypothesis
        if current is not None:
            enhancements.metrics["current_deciban_score"] = current.deciban_score
            enhancements.metrics["posterior_probability"] = round(current.posterior_probability, 4)
            verdict = evidence_conclusion(current.deciban_score, confirm, refute)
            if verdict is EvidenceConclusion.CONFIRMED:
                enhancements.suggestions.append(
                    f'✓ Hypothesis "{current.description}" CONFIRMED ({current.deciban_score:.1f} db)'
                )
            elif verdict is EvidenceConclusion.REFUTED:
                enhancements.warnings.append(
                    f'✗ Hypothesis "{current.description}" REFUTED ({current.deciban_score:.1f} db)'
                )
            else:
                enhancements.suggestions.append(
                    f'Hypothesis "{current.description}": {current.deciban_score:.1f} db '
                    f"(inconclusive, need ±{confirm:g} db)"
                )
        if thought.cipher_type:
            enhancements.suggestions.append(f"Cipher type: {thought.cipher_type}")
        if thought.key_insight:
            enhancements.suggestions.append(f"Key insight: {thought.key_insight}")
        if thought.uncertainty > HIGH_UNCERTAINTY:
            enhancements.warnings.append("High uncertainty - gather more evidence")
        return enhancements


# =============================================================================
# Algorithmic
# =============================================================================

ALGORITHMIC_TYPES = (
    "algorithm_definition",
    "complexity_analysis",
    "recurrence_solving",
    "correctness_proof",
    "invariant_identification",
    "divide_and_conquer",
    "dynamic_programming",
    "greedy_choice",
    "backtracking",
    "branch_and_bound",
    "randomized_analysis",
    "amortized_analysis",
    "data_structure_design",
    "data_structure_analysis",
    "augmentation",
    "graph_traversal",
    "shortest_path",
    "minimum_spanning_tree",
    "network_flow",
    "matching",
    "string_matching",
    "computational_geometry",
    "number_theoretic",
    "approximation",
    "online_algorithm",
    "parallel_algorithm",
)
DESIGN_PATTERNS = (
    "brute_force",
    "divide_and_conquer",
    "dynamic_programming",
    "greedy",
    "backtracking",
    "branch_and_bound",
    "randomized",
    "approximation",
    "online",
    "parallel",
    "incremental",
    "prune_and_search",
)
CORRECTNESS_METHODS = ("loop_invariant", "induction", "contradiction", "exchange_argument", "direct")
AMORTIZED_METHODS = ("aggregate", "accounting", "potential")
GRAPH_TYPES = ("directed", "undirected", "mixed")
_GRAPH_THOUGHTS = frozenset({"graph_traversal", "shortest_path", "minimum_spanning_tree", "network_flow", "matching"})

_POLYNOMIAL = re.compile(r"^\s*(?:n(?:\s*\^\s*(\d+(?:\.\d+)?))?|1)\s*$")


@dataclass(frozen=True)
class TimeComplexity:
    best_case: str = "Ω(1)"
    average_case: str = "O(n)"
    worst_case: str = "O(n)"
    amortized: str | None = None


@dataclass(frozen=True)
class SpaceComplexity:
    auxiliary: str = "O(1)"
    total: str = "O(n)"
    in_place: bool = False


@dataclass(frozen=True)
class MasterTheorem:
    """Recurrence ``T(n) = a T(n/b) + f(n)`` with ``f(n) = Θ(n^k)``."""

    a: float
    b: float
    k: float

    @property
    def critical_exponent(self) -> float:
        return math.log(self.a, self.b)

    @property
    def case(self) -> int:
        c = self.critical_exponent
        if math.isclose(self.k, c, abs_tol=1e-9):
            return 2
        return 1 if self.k < c else 3

    @property
    def solution(self) -> str:
        exponent = self.critical_exponent if self.case != 3 else self.k
        power = "1" if math.isclose(exponent, 0, abs_tol=1e-9) else f"n^{exponent:g}"
        if power == "n^1":
            power = "n"
        if self.case == 2:
            return "Θ(log n)" if power == "1" else f"Θ({power} log n)"
        return f"Θ({power})"


@dataclass(frozen=True)
class Recurrence:
    formula: str
    base_case: str = ""
    solution_method: str = "master_theorem"
    solution: str = ""
    master_theorem: MasterTheorem | None = None


@dataclass(frozen=True)
class TerminationArgument:
    decreasing_quantity: str = ""
    lower_bound: str = ""
    proof: str = ""


@dataclass(frozen=True)
class CorrectnessProof:
    id: str
    method: str = "loop_invariant"
    preconditions: list[str] = field(default_factory=list)
    postconditions: list[str] = field(default_factory=list)
    invariants: list[str] = field(default_factory=list)
    termination: TerminationArgument = field(default_factory=TerminationArgument)
    proof_steps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DPFormulation:
    id: str
    problem: str = ""
    optimal_substructure: str = ""
    state_space: str = ""
    recurrence: str = ""
    base_cases: list[str] = field(default_factory=list)
    direction: str = "bottom_up"
    total_complexity: str = ""


@dataclass(frozen=True)
class GreedyProof:
    id: str
    problem: str = ""
    greedy_choice: str = ""
    optimal_substructure: str = ""
    exchange_argument: str | None = None


@dataclass(frozen=True)
class GraphContext:
    graph_type: str = "directed"
    weighted: bool = False
    properties: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class AmortizedAnalysis:
    method: str = "aggregate"
    operation: str = ""
    result: str = ""


@dataclass(frozen=True, kw_only=True)
class AlgorithmicThought(Thought):
    thought_type: str = "algorithm_definition"
    algorithm: str | None = None
    design_pattern: str | None = None
    clrs_category: str | None = None
    clrs_algorithm: str | None = None
    time_complexity: TimeComplexity | None = None
    space_complexity: SpaceComplexity | None = None
    recurrence: Recurrence | None = None
    correctness_proof: CorrectnessProof | None = None
    loop_invariants: list[str] = field(default_factory=list)
    dp_formulation: DPFormulation | None = None
    greedy_proof: GreedyProof | None = None
    graph_context: GraphContext | None = None
    amortized_analysis: AmortizedAnalysis | None = None
    alternatives: list[str] = field(default_factory=list)
    pseudocode: str | None = None
    dependencies: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    uncertainty: float = 0.5
    key_insight: str | None = None


def polynomial_exponent(term: Any) -> float | None:
    """Exponent ``k`` of a driving term written as ``1``, ``n`` or ``n^k``."""
    if is_number(term):
        return float(term)
    match = _POLYNOMIAL.match(as_str(term))
    if match is None:
        return None
    if match.group(0).strip() == "1":
        return 0.0
    return float(match.group(1)) if match.group(1) else 1.0


def master_theorem(raw: Any) -> MasterTheorem | None:
    """Build a master-theorem instance; None unless a >= 1, b > 1 and f is polynomial."""
    if not isinstance(raw, dict):
        return None
    a = as_float(pick(raw, "a"))
    b = as_float(pick(raw, "b"))
    k = polynomial_exponent(pick(raw, "f"))
    if a is None or b is None or k is None or a < 1 or b <= 1:
        return None
    return MasterTheorem(a=a, b=b, k=k)


def _loop_invariant_text(raw: Any) -> str:
    if isinstance(raw, dict):
        return as_str(pick(raw, "description"))
    return as_str(raw)


class AlgorithmicHandler(ModeHandler):
    """Algorithm design, complexity and correctness."""

    mode = ThinkingMode.ALGORITHMIC
    mode_name = "Algorithmic Analysis"
    description = "Algorithm design, complexity analysis and correctness proofs"
    thought_types = ALGORITHMIC_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("designPattern", data.get("design_pattern"), DESIGN_PATTERNS, "design pattern")
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        dp = data.get("dp_formulation")
        if isinstance(dp, dict):
            definition = as_dict(pick(dp, "recursive_definition"))
            if not (pick(dp, "recurrence") or pick(definition, "recurrence")):
                findings.warn(
                    "dpFormulation.recurrence",
                    "DP formulation without recurrence relation",
                    "Specify the recurrence that defines the optimal value",
                )
            if not (as_list(pick(dp, "base_cases")) or as_list(pick(definition, "base_cases"))):
                findings.warn(
                    "dpFormulation.baseCases", "No base cases specified", "Define base cases for the recurrence"
                )
            characterization = as_dict(pick(dp, "characterization"))
            if not (pick(dp, "optimal_substructure") or pick(characterization, "optimal_substructure")):
                findings.warn(
                    "dpFormulation.optimalSubstructure",
                    "Optimal substructure not characterized",
                    "Show that an optimal solution contains optimal subproblem solutions",
                )
        elif data.thought_type == "dynamic_programming":
            findings.warn("dpFormulation", "DP thought without formulation", "Include the four-step DP formulation")

        proof = data.get("correctness_proof")
        if isinstance(proof, dict):
            self._validate_proof(findings, proof)
        if data.thought_type == "algorithm_definition" and not data.has("time_complexity"):
            findings.warn(
                "timeComplexity",
                "Algorithm definition without complexity analysis",
                "Include time complexity for a complete specification",
            )

        recurrence = data.get("recurrence")
        if isinstance(recurrence, dict):
            raw_master = pick(recurrence, "master_theorem")
            theorem = master_theorem(raw_master)
            claimed = as_int(pick(as_dict(raw_master), "case"))
            if theorem is not None and claimed is not None and claimed != theorem.case:
                findings.warn(
                    "recurrence.masterTheorem.case",
                    f"Master theorem case {claimed} claimed but case {theorem.case} applies",
                    f"Expected solution {theorem.solution}",
                )
        graph = data.get("graph_context")
        if isinstance(graph, dict):
            findings.known_value("graphContext.graphType", pick(graph, "graph_type"), GRAPH_TYPES, "graph type")
        amortized = data.get("amortized_analysis")
        if isinstance(amortized, dict):
            findings.known_value(
                "amortizedAnalysis.method", pick(amortized, "method"), AMORTIZED_METHODS, "amortized method"
            )
        return findings.result()

    @staticmethod
    def _validate_proof(findings: Findings, proof: dict[str, Any]) -> None:
        findings.known_value("correctnessProof.method", pick(proof, "method"), CORRECTNESS_METHODS, "proof method")
        if not as_str_list(pick(proof, "preconditions")):
            findings.warn(
                "correctnessProof.preconditions",
                "No preconditions specified",
                "Define what the algorithm expects as input",
            )
        if not as_str_list(pick(proof, "postconditions")):
            findings.warn(
                "correctnessProof.postconditions",
                "No postconditions specified",
                "Define what the algorithm guarantees as output",
            )
        if not pick(as_dict(pick(proof, "termination_argument")), "decreasing_quantity"):
            findings.warn(
                "correctnessProof.terminationArgument",
                "No termination argument",
                "Prove that the algorithm terminates",
            )
        if pick(proof, "method", "loop_invariant") == "loop_invariant" and not as_list(pick(proof, "invariants")):
            findings.warn(
                "correctnessProof.invariants",
                "Loop invariant method without invariants",
                "Define the loop invariant(s)",
            )

    def create_thought(self, data: ThinkingInput, session_id: str) -> AlgorithmicThought:
        pattern = data.get("design_pattern")
        comparison = as_dict(data.get("comparison"))
        return AlgorithmicThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "algorithm_definition"),
            algorithm=as_str(data.get("algorithm")) or None,
            design_pattern=pattern if pattern in DESIGN_PATTERNS else None,
            clrs_category=as_str(data.get("clrs_category")) or None,
            clrs_algorithm=as_str(data.get("clrs_algorithm")) or None,
            time_complexity=self._time(data.get("time_complexity")),
            space_complexity=self._space(data.get("space_complexity")),
            recurrence=self._recurrence(data.get("recurrence")),
            correctness_proof=self._proof(data.get("correctness_proof")),
            loop_invariants=[_loop_invariant_text(i) for i in as_list(data.get("loop_invariants"))],
            dp_formulation=self._dp(data.get("dp_formulation")),
            greedy_proof=self._greedy(data.get("greedy_proof")),
            graph_context=self._graph(data.get("graph_context")),
            amortized_analysis=self._amortized(data.get("amortized_analysis")),
            alternatives=as_str_list(pick(comparison, "algorithms")),
            pseudocode=as_str(data.get("pseudocode")) or None,
            dependencies=as_str_list(data.get("dependencies")),
            assumptions=as_str_list(data.get("assumptions")),
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
            key_insight=as_str(data.get("key_insight")) or None,
        )

    @staticmethod
    def _time(raw: Any) -> TimeComplexity | None:
        if not isinstance(raw, dict):
            return None
        worst = as_str(pick(raw, "worst_case")) or "O(n)"
        return TimeComplexity(
            best_case=as_str(pick(raw, "best_case")) or "Ω(1)",
            average_case=as_str(pick(raw, "average_case")) or worst,
            worst_case=worst,
            amortized=as_str(pick(raw, "amortized")) or None,
        )

    @staticmethod
    def _space(raw: Any) -> SpaceComplexity | None:
        if not isinstance(raw, dict):
            return None
        auxiliary = as_str(pick(raw, "auxiliary")) or "O(1)"
        return SpaceComplexity(
            auxiliary=auxiliary,
            total=as_str(pick(raw, "total")) or auxiliary,
            in_place=bool(as_bool(pick(raw, "in_place"), False)),
        )

    @staticmethod
    def _recurrence(raw: Any) -> Recurrence | None:
        if not isinstance(raw, dict):
            return None
        theorem = master_theorem(pick(raw, "master_theorem"))
        solution = as_str(pick(raw, "solution")) or (theorem.solution if theorem else "")
        return Recurrence(
            formula=as_str(pick(raw, "formula")),
            base_case=as_str(pick(raw, "base_case")),
            solution_method=as_str(pick(raw, "solution_method")) or "master_theorem",
            solution=solution,
            master_theorem=theorem,
        )

    def _proof(self, raw: Any) -> CorrectnessProof | None:
        if not isinstance(raw, dict):
            return None
        termination = as_dict(pick(raw, "termination_argument"))
        method = pick(raw, "method")
        return CorrectnessProof(
            id=as_str(pick(raw, "id")) or self.ids("proof"),
            method=method if method in CORRECTNESS_METHODS else "loop_invariant",
            preconditions=as_str_list(pick(raw, "preconditions")),
            postconditions=as_str_list(pick(raw, "postconditions")),
            invariants=[_loop_invariant_text(i) for i in as_list(pick(raw, "invariants"))],
            termination=TerminationArgument(
                decreasing_quantity=as_str(pick(termination, "decreasing_quantity")),
                lower_bound=as_str(pick(termination, "lower_bound")),
                proof=as_str(pick(termination, "proof")),
            ),
            proof_steps=as_str_list(pick(raw, "proof_steps")),
        )

    def _dp(self, raw: Any) -> DPFormulation | None:
        if not isinstance(raw, dict):
            return None
        definition = as_dict(pick(raw, "recursive_definition"))
        characterization = as_dict(pick(raw, "characterization"))
        order = as_dict(pick(raw, "computation_order"))
        complexity = pick(raw, "complexity")
        return DPFormulation(
            id=as_str(pick(raw, "id")) or self.ids("dp"),
            problem=as_str(pick(raw, "problem")),
            optimal_substructure=as_str(
                pick(raw, "optimal_substructure") or pick(characterization, "optimal_substructure")
            ),
            state_space=as_str(pick(raw, "state_space") or pick(definition, "state_space")),
            recurrence=as_str(pick(raw, "recurrence") or pick(definition, "recurrence")),
            base_cases=as_str_list(pick(raw, "base_cases") or pick(definition, "base_cases")),
            direction=as_str(pick(raw, "direction") or pick(order, "direction")) or "bottom_up",
            total_complexity=as_str(pick(complexity, "total") if isinstance(complexity, dict) else complexity),
        )

    def _greedy(self, raw: Any) -> GreedyProof | None:
        if not isinstance(raw, dict):
            return None
        choice = pick(raw, "greedy_choice")
        substructure = pick(raw, "optimal_substructure")
        return GreedyProof(
            id=as_str(pick(raw, "id")) or self.ids("greedy"),
            problem=as_str(pick(raw, "problem")),
            greedy_choice=as_str(pick(choice, "description") if isinstance(choice, dict) else choice),
            optimal_substructure=as_str(
                pick(substructure, "description") if isinstance(substructure, dict) else substructure
            ),
            exchange_argument=as_str(pick(raw, "exchange_argument")) or None,
        )

    @staticmethod
    def _graph(raw: Any) -> GraphContext | None:
        if not isinstance(raw, dict):
            return None
        graph_type = pick(raw, "graph_type")
        return GraphContext(
            graph_type=graph_type if graph_type in GRAPH_TYPES else "directed",
            weighted=bool(as_bool(pick(raw, "weighted"), False)),
            properties={k: bool(v) for k, v in as_dict(pick(raw, "properties")).items()},
        )

    @staticmethod
    def _amortized(raw: Any) -> AmortizedAnalysis | None:
        if not isinstance(raw, dict):
            return None
        method = pick(raw, "method")
        return AmortizedAnalysis(
            method=method if method in AMORTIZED_METHODS else "aggregate",
            operation=as_str(pick(raw, "operation")),
            result=as_str(pick(raw, "result")),
        )

    def get_enhancements(self, thought: AlgorithmicThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.MATHEMATICS, ThinkingMode.COMPUTABILITY, ThinkingMode.OPTIMIZATION],
            mental_models=[
                "Divide and Conquer",
                "Dynamic Programming",
                "Greedy Choice Property",
                "Master Theorem",
                "Loop Invariants",
                "Amortized Analysis",
            ],
            metrics={
                "dependency_count": len(thought.dependencies),
                "assumption_count": len(thought.assumptions),
                "uncertainty": thought.uncertainty,
            },
        )
        kind = thought.thought_type
        if kind == "algorithm_definition":
            enhancements.guiding_questions.extend(
                [
                    "What is the input/output specification?",
                    "What design pattern does this follow?",
                    "Is the algorithm correct for all valid inputs?",
                ]
            )
        elif kind == "complexity_analysis":
            enhancements.guiding_questions.extend(
                [
                    "What is the dominant operation?",
                    "Can we apply the Master Theorem?",
                    "Is the analysis tight (Θ) or just an upper bound (O)?",
                ]
            )
        elif kind == "recurrence_solving":
            enhancements.guiding_questions.extend(
                [
                    "Which method applies: Master Theorem, substitution, or recursion tree?",
                    "What is the recurrence relation?",
                    "Is the solution tight?",
                ]
            )
        elif kind == "correctness_proof":
            enhancements.guiding_questions.extend(
                [
                    "What are the preconditions and postconditions?",
                    "What is the loop invariant?",
                    "Why does the algorithm terminate?",
                ]
            )
        elif kind == "invariant_identification":
            enhancements.guiding_questions.extend(
                [
                    "Does the invariant hold at initialization?",
                    "Is it maintained through each iteration?",
                    "What does the invariant imply at termination?",
                ]
            )
        elif kind == "divide_and_conquer":
            enhancements.guiding_questions.extend(
                ["How is the problem divided?", "What are the subproblems?", "How are solutions combined?"]
            )
            enhancements.suggestions.append("Apply recurrence analysis using the Master Theorem")
        elif kind == "dynamic_programming":
            enhancements.guiding_questions.extend(
                [
                    "What is the optimal substructure?",
                    "Are there overlapping subproblems?",
                    "What is the recurrence relation?",
                ]
            )
        elif kind == "greedy_choice":
            enhancements.guiding_questions.extend(
                ["What is the greedy choice?", "Why is the greedy choice safe?", "Is there optimal substructure?"]
            )
        elif kind == "amortized_analysis":
            enhancements.guiding_questions.extend(
                [
                    "Which method: aggregate, accounting, or potential?",
                    "What is the amortized cost per operation?",
                    "Is the credit or potential always non-negative?",
                ]
            )

        if thought.time_complexity is not None:
            enhancements.metrics["worst_case"] = thought.time_complexity.worst_case
            enhancements.suggestions.append(f"Time: {thought.time_complexity.worst_case}")
        if thought.space_complexity is not None:
            enhancements.metrics["space_complexity"] = thought.space_complexity.auxiliary
        recurrence = thought.recurrence
        if recurrence is not None:
            enhancements.suggestions.append(f"Recurrence: {recurrence.formula}")
            if recurrence.solution:
                enhancements.suggestions.append(f"Solution: {recurrence.solution}")
            if recurrence.master_theorem is not None:
                enhancements.metrics["master_theorem_case"] = recurrence.master_theorem.case
        if thought.correctness_proof is not None:
            enhancements.suggestions.append(f"Proof method: {thought.correctness_proof.method}")
        if thought.loop_invariants:
            enhancements.metrics["invariant_count"] = len(thought.loop_invariants)
        if thought.dp_formulation is not None:
            dp = thought.dp_formulation
            if dp.state_space:
                enhancements.suggestions.append(f"State space: {dp.state_space}")
            if dp.total_complexity:
                enhancements.suggestions.append(f"Complexity: {dp.total_complexity}")
        if thought.greedy_proof is not None and thought.greedy_proof.greedy_choice:
            enhancements.suggestions.append("Greedy choice property stated")
            if not thought.greedy_proof.exchange_argument:
                enhancements.guiding_questions.append("Can an exchange argument show the greedy choice is safe?")
        if thought.amortized_analysis is not None:
            amortized = thought.amortized_analysis
            enhancements.suggestions.append(f"Method: {amortized.method}")
            if amortized.result:
                enhancements.suggestions.append(f"Amortized cost: {amortized.result}")
        if thought.graph_context is not None and (kind in _GRAPH_THOUGHTS or thought.graph_context.weighted):
            graph = thought.graph_context
            enhancements.metrics["graph_type"] = graph.graph_type
            enhancements.metrics["weighted"] = 1 if graph.weighted else 0
            enhancements.suggestions.append(
                f"Graph: {graph.graph_type}, {'weighted' if graph.weighted else 'unweighted'}"
            )
        if thought.design_pattern:
            enhancements.metrics["design_pattern"] = thought.design_pattern
            enhancements.suggestions.append(f"Design pattern: {thought.design_pattern}")
        if thought.clrs_algorithm:
            enhancements.suggestions.append(f"CLRS algorithm: {thought.clrs_algorithm}")
        if thought.clrs_category:
            enhancements.metrics["clrs_category"] = thought.clrs_category
        if thought.alternatives:
            enhancements.metrics["alternative_count"] = len(thought.alternatives)
        if thought.key_insight:
            enhancements.suggestions.append(f"Key insight: {thought.key_insight}")
        if thought.uncertainty > HIGH_UNCERTAINTY:
            enhancements.warnings.append("High uncertainty - verify analysis carefully")
        return enhancements
