"""Advanced modes: meta-reasoning, recursion, modal logic and stochastic processes."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import (
    FRAME_PROPERTIES,
    LOGIC_SYSTEMS,
    MODAL_DOMAINS,
    duplicate_ids,
    frame_property_gaps,
    modal_consistency_warnings,
    undeclared_world_refs,
)
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
# Meta-reasoning
# =============================================================================

METAREASONING_TYPES = (
    "strategy_evaluation",
    "mode_switch",
    "resource_allocation",
    "quality_assessment",
    "progress_monitoring",
    "strategy_recommendation",
)
META_ACTIONS = ("CONTINUE", "SWITCH", "REFINE", "COMBINE")
EFFORT_LEVELS = ("low", "medium", "high")
SCORE_FIELDS = ("effectiveness", "efficiency", "confidence", "quality_score")
QUALITY_DEFAULTS = {
    "logical_consistency": 0.7,
    "evidence_quality": 0.6,
    "completeness": 0.5,
    "originality": 0.5,
    "clarity": 0.7,
}
SWITCH_MARGIN = 0.2


@dataclass(frozen=True)
class CurrentStrategy:
    mode: str
    approach: str = "default"
    thoughts_spent: int = 0
    progress_indicators: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StrategyEvaluation:
    effectiveness: float = 0.5
    efficiency: float = 0.5
    confidence: float = 0.5
    progress_rate: float = 0.0
    quality_score: float = 0.5
    issues: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AlternativeStrategy:
    mode: str
    reasoning: str = ""
    expected_benefit: str = ""
    switching_cost: float = 0.3
    recommendation_score: float = 0.5


@dataclass(frozen=True)
class StrategyRecommendation:
    action: str
    justification: str
    confidence: float
    expected_improvement: str = ""
    target_mode: str | None = None


@dataclass(frozen=True)
class ResourceAllocation:
    thoughts_remaining: int
    time_spent: float = 0.0
    complexity_level: str = "medium"
    urgency: str = "medium"
    recommendation: str = "Maintain balanced effort allocation"


@dataclass(frozen=True)
class QualityMetrics:
    logical_consistency: float
    evidence_quality: float
    completeness: float
    originality: float
    clarity: float
    overall_quality: float


@dataclass(frozen=True)
class SessionContext:
    total_thoughts: int = 0
    modes_used: list[str] = field(default_factory=list)
    mode_switches: int = 0
    problem_type: str = "unknown"


@dataclass(frozen=True, kw_only=True)
class MetaReasoningThought(Thought):
    thought_type: str = "strategy_evaluation"
    current_strategy: CurrentStrategy
    strategy_evaluation: StrategyEvaluation
    alternative_strategies: list[AlternativeStrategy] = field(default_factory=list)
    recommendation: StrategyRecommendation
    resource_allocation: ResourceAllocation
    quality_metrics: QualityMetrics
    session_context: SessionContext = field(default_factory=SessionContext)


def _mode_tag(value: Any, default: str = ThinkingMode.SEQUENTIAL.value) -> str:
    mode = ThinkingMode.resolve(as_str(value)) if as_str(value) else None
    return mode.value if mode is not None else default


def recommend_strategy(
    evaluation: StrategyEvaluation, alternatives: list[AlternativeStrategy]
) -> StrategyRecommendation:
    """Pick CONTINUE, SWITCH or REFINE from the evaluation scores.

    An effective and efficient strategy continues. Otherwise the best
    alternative wins if it beats current effectiveness by ``SWITCH_MARGIN``;
    a weak strategy with no better alternative is refined.
    """
    if evaluation.effectiveness > 0.7 and evaluation.efficiency > 0.5:
        return StrategyRecommendation(
            action="CONTINUE",
            justification="Current strategy is effective and efficient",
            confidence=evaluation.effectiveness,
            expected_improvement="Maintain current progress",
        )
    best = max(alternatives, key=lambda a: a.recommendation_score, default=None)
    if best is not None and best.recommendation_score > evaluation.effectiveness + SWITCH_MARGIN:
        return StrategyRecommendation(
            action="SWITCH",
            justification=f"{best.mode} offers higher expected benefit",
            confidence=best.recommendation_score,
            expected_improvement=best.expected_benefit,
            target_mode=best.mode,
        )
    if evaluation.effectiveness < 0.5:
        return StrategyRecommendation(
            action="REFINE",
            justification="Current strategy needs adjustment",
            confidence=0.6,
            expected_improvement="Address identified issues",
        )
    return StrategyRecommendation(
        action="CONTINUE",
        justification="No clear reason to change strategy",
        confidence=0.5,
        expected_improvement="Gradual progress expected",
    )


def quality_metrics(raw: dict[str, Any]) -> QualityMetrics:
    scores = {name: as_unit(pick(raw, name), default) for name, default in QUALITY_DEFAULTS.items()}
    core = ("logical_consistency", "evidence_quality", "completeness", "clarity")
    overall = as_unit(pick(raw, "overall_quality"), sum(scores[name] for name in core) / len(core))
    return QualityMetrics(**scores, overall_quality=overall)


class MetaReasoningHandler(ModeHandler):
    """Reasoning about the reasoning process itself."""

    mode = ThinkingMode.METAREASONING
    mode_name = "Meta-Reasoning"
    description = "Strategy monitoring, quality assessment and mode switching"
    thought_types = METAREASONING_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if not data.has("current_strategy"):
            findings.warn(
                "currentStrategy",
                "No current strategy specified",
                "Describe the current reasoning strategy being evaluated",
            )
        evaluation = as_dict(data.get("strategy_evaluation"))
        for name in SCORE_FIELDS:
            findings.unit_interval(f"strategyEvaluation.{name}", pick(evaluation, name), name)
        quality = as_dict(data.get("quality_metrics"))
        for name in (*QUALITY_DEFAULTS, "overall_quality"):
            findings.unit_interval(f"qualityMetrics.{name}", pick(quality, name), name)

        recommendation = as_dict(data.get("recommendation"))
        action = pick(recommendation, "action")
        findings.known_value("recommendation.action", action, META_ACTIONS, "action")
        alternatives = as_records(data.get("alternative_strategies"))
        if action == "SWITCH" and not alternatives:
            findings.warn(
                "alternativeStrategies",
                "SWITCH recommended but no alternatives provided",
                "Include alternative strategies to switch to",
            )
        target = pick(recommendation, "target_mode")
        if target is not None and ThinkingMode.resolve(as_str(target)) is None:
            findings.warn("recommendation.targetMode", f"Unknown target mode: {target}")
        for i, alternative in enumerate(alternatives):
            findings.unit_interval(f"alternativeStrategies[{i}].switchingCost", pick(alternative, "switching_cost"))
            findings.unit_interval(
                f"alternativeStrategies[{i}].recommendationScore", pick(alternative, "recommendation_score")
            )
        allocation = as_dict(data.get("resource_allocation"))
        findings.known_value(
            "resourceAllocation.complexityLevel",
            pick(allocation, "complexity_level"),
            EFFORT_LEVELS,
            "complexity level",
        )
        findings.known_value("resourceAllocation.urgency", pick(allocation, "urgency"), EFFORT_LEVELS, "urgency")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> MetaReasoningThought:
        strategy = as_dict(data.get("current_strategy"))
        raw_evaluation = as_dict(data.get("strategy_evaluation"))
        evaluation = StrategyEvaluation(
            effectiveness=as_unit(pick(raw_evaluation, "effectiveness")),
            efficiency=as_unit(pick(raw_evaluation, "efficiency")),
            confidence=as_unit(pick(raw_evaluation, "confidence")),
            progress_rate=as_float(pick(raw_evaluation, "progress_rate"), 0.0) or 0.0,
            quality_score=as_unit(pick(raw_evaluation, "quality_score")),
            issues=as_str_list(pick(raw_evaluation, "issues")),
            strengths=as_str_list(pick(raw_evaluation, "strengths")),
        )
        alternatives = [
            AlternativeStrategy(
                mode=_mode_tag(pick(a, "mode")),
                reasoning=as_str(pick(a, "reasoning")),
                expected_benefit=as_str(pick(a, "expected_benefit")),
                switching_cost=as_unit(pick(a, "switching_cost"), 0.3),
                recommendation_score=as_unit(pick(a, "recommendation_score")),
            )
            for a in as_records(data.get("alternative_strategies"))
        ]
        raw_recommendation = data.get("recommendation")
        if isinstance(raw_recommendation, dict):
            action = pick(raw_recommendation, "action")
            target = pick(raw_recommendation, "target_mode")
            recommendation = StrategyRecommendation(
                action=action if action in META_ACTIONS else "CONTINUE",
                justification=as_str(pick(raw_recommendation, "justification")),
                confidence=as_unit(pick(raw_recommendation, "confidence")),
                expected_improvement=as_str(pick(raw_recommendation, "expected_improvement")),
                target_mode=_mode_tag(target) if target is not None else None,
            )
        else:
            recommendation = recommend_strategy(evaluation, alternatives)
        allocation = as_dict(data.get("resource_allocation"))
        remaining = as_int(pick(allocation, "thoughts_remaining"))
        context = as_dict(data.get("session_context"))
        return MetaReasoningThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "strategy_evaluation"),
            current_strategy=CurrentStrategy(
                mode=_mode_tag(pick(strategy, "mode")),
                approach=as_str(pick(strategy, "approach")) or "default",
                thoughts_spent=as_int(pick(strategy, "thoughts_spent"), 0) or 0,
                progress_indicators=as_str_list(pick(strategy, "progress_indicators")),
            ),
            strategy_evaluation=evaluation,
            alternative_strategies=alternatives,
            recommendation=recommendation,
            resource_allocation=ResourceAllocation(
                thoughts_remaining=remaining if remaining is not None else data.total_thoughts - data.thought_number,
                time_spent=as_float(pick(allocation, "time_spent"), 0.0) or 0.0,
                complexity_level=(
                    pick(allocation, "complexity_level")
                    if pick(allocation, "complexity_level") in EFFORT_LEVELS
                    else "medium"
                ),
                urgency=pick(allocation, "urgency") if pick(allocation, "urgency") in EFFORT_LEVELS else "medium",
                recommendation=(
                    as_str(pick(allocation, "recommendation")) or "Maintain balanced effort allocation"
                ),
            ),
            quality_metrics=quality_metrics(as_dict(data.get("quality_metrics"))),
            session_context=SessionContext(
                total_thoughts=as_int(pick(context, "total_thoughts"), 0) or 0,
                modes_used=[_mode_tag(m) for m in as_str_list(pick(context, "modes_used"))],
                mode_switches=as_int(pick(context, "mode_switches"), 0) or 0,
                problem_type=as_str(pick(context, "problem_type")) or "unknown",
            ),
        )

    def get_enhancements(self, thought: MetaReasoningThought) -> ModeEnhancements:
        evaluation = thought.strategy_evaluation
        recommendation = thought.recommendation
        allocation = thought.resource_allocation
        quality = thought.quality_metrics
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.HYBRID, ThinkingMode.SEQUENTIAL],
            mental_models=[
                "Metacognition",
                "Strategy Selection",
                "Resource Allocation",
                "Progress Monitoring",
                "Cognitive Load Management",
            ],
            guiding_questions=[
                "Is the current strategy making progress toward the goal?",
                "Would a different reasoning mode be more effective here?",
                "Are we allocating cognitive effort optimally?",
                "What are the key insights so far?",
                "What remains to be addressed?",
            ],
            metrics={
                "effectiveness": evaluation.effectiveness,
                "efficiency": evaluation.efficiency,
                "confidence": evaluation.confidence,
                "quality_score": evaluation.quality_score,
                "alternative_count": len(thought.alternative_strategies),
                "thoughts_spent": thought.current_strategy.thoughts_spent,
                "thoughts_remaining": allocation.thoughts_remaining,
                "complexity_level": allocation.complexity_level,
                "urgency": allocation.urgency,
                "overall_quality": round(quality.overall_quality, 3),
            },
        )
        current = thought.current_strategy
        enhancements.suggestions.append(f"Current strategy: {current.mode} ({current.approach})")
        if evaluation.effectiveness < 0.4:
            enhancements.warnings.append("Low effectiveness - consider switching strategies")
        elif evaluation.effectiveness > 0.8:
            enhancements.suggestions.append("✓ Current strategy is highly effective")
        if evaluation.efficiency < 0.4:
            enhancements.warnings.append("Low efficiency - consider more direct approaches")
        if evaluation.issues:
            enhancements.warnings.append(f"Issues identified: {', '.join(evaluation.issues[:2])}")
        if evaluation.strengths:
            enhancements.suggestions.append(f"Strengths: {', '.join(evaluation.strengths[:2])}")

        enhancements.suggestions.append(
            f"Recommendation: {recommendation.action} (confidence: {recommendation.confidence:.0%})"
        )
        if recommendation.action == "SWITCH" and recommendation.target_mode:
            enhancements.suggestions.append(f"Switch to: {recommendation.target_mode}")
            target = ThinkingMode.resolve(recommendation.target_mode)
            if target is not None and target not in enhancements.related_modes:
                enhancements.related_modes.append(target)
        if thought.alternative_strategies:
            best = max(thought.alternative_strategies, key=lambda a: a.recommendation_score)
            enhancements.suggestions.append(f"Best alternative: {best.mode} (score: {best.recommendation_score:.0%})")

        if allocation.thoughts_remaining < 3:
            enhancements.warnings.append("Few thoughts remaining - focus on conclusions")
        if quality.logical_consistency < 0.6:
            enhancements.warnings.append("Low logical consistency - review reasoning chain")
        if quality.completeness < 0.5:
            enhancements.warnings.append("Low completeness - ensure all aspects are addressed")
        if thought.session_context.mode_switches > 3:
            enhancements.warnings.append(
                f"{thought.session_context.mode_switches} mode switches this session - settle on a strategy"
            )
        return enhancements


# =============================================================================
# Recursive
# =============================================================================

RECURSIVE_TYPES = (
    "problem_decomposition",
    "base_case_identification",
    "recursive_step",
    "subproblem_solution",
    "solution_combination",
    "termination_analysis",
)
DECOMPOSITION_STRATEGIES = (
    "divide_and_conquer",
    "decrease_and_conquer",
    "transform_and_conquer",
    "dynamic_programming",
)
SUBPROBLEM_STATUSES = ("pending", "in_progress", "solved", "failed")
DEFAULT_MAX_DEPTH = 10


@dataclass(frozen=True)
class Subproblem:
    id: str
    name: str = ""
    description: str = ""
    size: str = "unknown"
    depth: int = 0
    parent_id: str | None = None
    status: str = "pending"
    result: str | None = None


@dataclass(frozen=True)
class BaseCase:
    id: str
    condition: str = ""
    result: str = ""
    verified: bool = False


@dataclass(frozen=True)
class RecurrenceRelation:
    formula: str
    base_case: str = ""
    closed_form: str | None = None
    complexity: str | None = None


@dataclass(frozen=True, kw_only=True)
class RecursiveThought(Thought):
    thought_type: str = "problem_decomposition"
    strategy: str = "divide_and_conquer"
    subproblems: list[Subproblem] = field(default_factory=list)
    base_cases: list[BaseCase] = field(default_factory=list)
    base_case_reached: bool = False
    current_depth: int = 0
    max_depth: int = DEFAULT_MAX_DEPTH
    recurrence: RecurrenceRelation | None = None
    division_factor: float | None = None
    memoized: bool = False


def subproblem_depths(subproblems: list[dict[str, Any]]) -> dict[str, int]:
    """Depth of each subproblem derived from its parent chain.

    Explicit ``depth`` values win; a parent cycle or dangling parent stops
    the walk at the last known node.
    """
    parents = {as_str(pick(s, "id")): as_str(pick(s, "parent_id")) for s in subproblems if pick(s, "id")}
    explicit = {as_str(pick(s, "id")): as_int(pick(s, "depth")) for s in subproblems if pick(s, "id")}
    depths: dict[str, int] = {}
    for node in parents:
        if explicit.get(node) is not None:
            depths[node] = explicit[node]
            continue
        depth = 0
        seen = {node}
        parent = parents.get(node)
        while parent and parent in parents and parent not in seen:
            seen.add(parent)
            depth += 1
            parent = parents[parent]
        depths[node] = depth
    return depths


def parent_cycles(subproblems: list[dict[str, Any]]) -> list[str]:
    """Subproblem ids whose parent chain loops back on itself."""
    parents = {as_str(pick(s, "id")): as_str(pick(s, "parent_id")) for s in subproblems if pick(s, "id")}
    looping = []
    for node in parents:
        seen = {node}
        parent = parents.get(node)
        while parent and parent in parents:
            if parent in seen:
                looping.append(node)
                break
            seen.add(parent)
            parent = parents[parent]
    return looping


class RecursiveHandler(ModeHandler):
    """Problem decomposition and recursive solution construction."""

    mode = ThinkingMode.RECURSIVE
    mode_name = "Recursive Reasoning"
    description = "Problem decomposition, base case identification and recursive solution construction"
    thought_types = RECURSIVE_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("strategy", data.get("strategy"), DECOMPOSITION_STRATEGIES, "strategy")
        current = data.get("current_depth")
        maximum = data.get("max_depth")
        if is_number(current) and is_number(maximum) and current > maximum:
            findings.warn(
                "currentDepth",
                f"Current depth ({current}) exceeds max depth ({maximum})",
                "Recursion may be too deep - check for infinite recursion",
            )
        base_cases = as_records(data.get("base_cases"))
        subproblems = as_records(data.get("subproblems"))
        if data.thought_type == "solution_combination" and not base_cases:
            findings.warn(
                "baseCases",
                "Solution combination without base cases",
                "Define base cases for proper recursion termination",
            )
        if data.thought_type == "problem_decomposition" and not subproblems:
            findings.warn(
                "subproblems",
                "Problem decomposition without subproblems",
                "Identify subproblems for a divide-and-conquer approach",
            )
        factor = data.get("division_factor")
        if factor is not None and (not is_number(factor) or factor < 2):
            findings.warn(
                "divisionFactor",
                f"Division factor ({factor}) should be >= 2",
                "Typical values are 2 (binary) or 3 (ternary)",
            )

        ids = [as_str(pick(s, "id")) for s in subproblems if pick(s, "id")]
        for dup in duplicate_ids(ids):
            findings.warn("subproblems", f"Duplicate subproblem id: {dup}")
        for i, sub in enumerate(subproblems):
            parent = as_str(pick(sub, "parent_id"))
            if parent and parent not in ids:
                findings.warn(f"subproblems[{i}].parentId", f"Subproblem references unknown parent: {parent}")
            findings.known_value(f"subproblems[{i}].status", pick(sub, "status"), SUBPROBLEM_STATUSES, "status")
        for node in parent_cycles(subproblems):
            findings.warn("subproblems", f"Subproblem {node} is its own ancestor", "Parent links must form a tree")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> RecursiveThought:
        raw_subproblems = as_records(data.get("subproblems"))
        depths = subproblem_depths(raw_subproblems)
        subproblems = []
        for s in raw_subproblems:
            sub_id = as_str(pick(s, "id")) or self.ids("sub")
            status = pick(s, "status")
            subproblems.append(
                Subproblem(
                    id=sub_id,
                    name=as_str(pick(s, "name")),
                    description=as_str(pick(s, "description")),
                    size=as_str(pick(s, "size")) or "unknown",
                    depth=depths.get(sub_id, as_int(pick(s, "depth"), 0) or 0),
                    parent_id=as_str(pick(s, "parent_id")) or None,
                    status=status if status in SUBPROBLEM_STATUSES else "pending",
                    result=as_str(pick(s, "result")) or None,
                )
            )
        base_cases = [
            BaseCase(
                id=as_str(pick(b, "id")) or self.ids("base"),
                condition=as_str(pick(b, "condition")),
                result=as_str(pick(b, "result")),
                verified=bool(as_bool(pick(b, "verified"), False)),
            )
            for b in as_records(data.get("base_cases"))
        ]
        current = as_int(data.get("current_depth"))
        if current is None:
            current = max((s.depth for s in subproblems), default=-1) + 1
        maximum = as_int(data.get("max_depth"))
        if maximum is None:
            maximum = max(DEFAULT_MAX_DEPTH, current + 5)
        reached = as_bool(data.get("base_case_reached"))
        recurrence = data.get("recurrence")
        strategy = data.get("strategy")
        return RecursiveThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_decomposition"),
            strategy=strategy if strategy in DECOMPOSITION_STRATEGIES else "divide_and_conquer",
            subproblems=subproblems,
            base_cases=base_cases,
            base_case_reached=reached if reached is not None else any(b.verified for b in base_cases),
            current_depth=current,
            max_depth=maximum,
            recurrence=(
                RecurrenceRelation(
                    formula=as_str(pick(recurrence, "formula")),
                    base_case=as_str(pick(recurrence, "base_case")),
                    closed_form=as_str(pick(recurrence, "closed_form")) or None,
                    complexity=as_str(pick(recurrence, "complexity")) or None,
                )
                if isinstance(recurrence, dict)
                else None
            ),
            division_factor=as_float(data.get("division_factor")),
            memoized=bool(as_bool(data.get("memoized"), False)),
        )

    def get_enhancements(self, thought: RecursiveThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.ALGORITHMIC, ThinkingMode.MATHEMATICS, ThinkingMode.OPTIMIZATION],
            mental_models=[
                "Divide and Conquer",
                "Mathematical Induction",
                "Tree Traversal",
                "Master Theorem",
                "Recursive Problem Structure",
            ],
            metrics={
                "current_depth": thought.current_depth,
                "max_depth": thought.max_depth,
                "subproblem_count": len(thought.subproblems),
                "base_case_count": len(thought.base_cases),
                "base_case_reached": 1 if thought.base_case_reached else 0,
            },
        )
        enhancements.suggestions.append(f"Strategy: {thought.strategy.replace('_', ' ')}")
        kind = thought.thought_type
        if kind == "problem_decomposition":
            enhancements.guiding_questions.extend(
                [
                    "Can this problem be divided into smaller similar problems?",
                    "What is the relationship between subproblems?",
                    "Is there overlap between subproblems (memoization opportunity)?",
                ]
            )
            if thought.subproblems:
                solved = sum(1 for s in thought.subproblems if s.status == "solved")
                pending = sum(1 for s in thought.subproblems if s.status == "pending")
                enhancements.suggestions.append(f"Subproblems: {solved} solved, {pending} pending")
        elif kind == "base_case_identification":
            enhancements.guiding_questions.extend(
                [
                    "What are the smallest or simplest instances of the problem?",
                    "Can all base cases be solved directly?",
                    "Do base cases cover all termination conditions?",
                ]
            )
            if thought.base_cases:
                verified = sum(1 for b in thought.base_cases if b.verified)
                enhancements.suggestions.append(f"Base cases: {verified}/{len(thought.base_cases)} verified")
        elif kind == "recursive_step":
            enhancements.guiding_questions.extend(
                [
                    "How do we reduce the problem to smaller instances?",
                    "Is progress guaranteed toward a base case?",
                    "What is the recurrence relation?",
                ]
            )
        elif kind == "subproblem_solution":
            enhancements.guiding_questions.extend(
                [
                    "Does the subproblem solution satisfy requirements?",
                    "Can this solution be reused (memoization)?",
                    "What is the time and space cost of this solution?",
                ]
            )
        elif kind == "solution_combination":
            enhancements.guiding_questions.extend(
                [
                    "How are subproblem solutions combined?",
                    "Is the combination step efficient?",
                    "Does the combined solution maintain correctness?",
                ]
            )
            if thought.division_factor:
                enhancements.suggestions.append(f"Division factor: {thought.division_factor:g}")
        elif kind == "termination_analysis":
            enhancements.guiding_questions.extend(
                [
                    "Is termination guaranteed for all inputs?",
                    "What is the maximum recursion depth?",
                    "Are there potential stack overflow risks?",
                ]
            )

        if thought.recurrence is not None:
            enhancements.suggestions.append(f"Recurrence: {thought.recurrence.formula}")
            if thought.recurrence.closed_form:
                enhancements.suggestions.append(f"Closed form: {thought.recurrence.closed_form}")
            if thought.recurrence.complexity:
                enhancements.suggestions.append(f"Time complexity: {thought.recurrence.complexity}")
        if thought.current_depth > thought.max_depth * 0.8:
            enhancements.warnings.append(
                f"High recursion depth ({thought.current_depth}/{thought.max_depth}) - nearing limit"
            )
        if not thought.base_case_reached and thought.current_depth > 0 and not thought.base_cases:
            enhancements.warnings.append("No base cases defined - ensure a termination condition exists")
        failed = [s.id for s in thought.subproblems if s.status == "failed"]
        if failed:
            enhancements.warnings.append(f"Failed subproblems: {', '.join(failed)}")
        if thought.strategy == "dynamic_programming" and not thought.memoized:
            enhancements.suggestions.append("Consider memoization to avoid redundant computation")
        return enhancements


# =============================================================================
# Modal
# =============================================================================

MODAL_TYPES = (
    "world_definition",
    "proposition_analysis",
    "accessibility_analysis",
    "necessity_proof",
    "possibility_proof",
    "modal_inference",
    "countermodel",
)
MODAL_OPERATORS = ("necessary", "possible", "contingent", "impossible")
S5_NO_RELATIONS_WARNING = "S5 logic requires universal accessibility"
REFLEXIVE_SYSTEMS = frozenset(s for s, props in FRAME_PROPERTIES.items() if "reflexive" in props)

_DOMAIN_READINGS = {
    "alethic": ("Alethic: □p = necessarily p, ◇p = possibly p", ()),
    "epistemic": (
        "Epistemic: □p = agent knows p, ◇p = p is compatible with knowledge",
        ("Knowledge States", "Belief Revision"),
    ),
    "deontic": ("Deontic: □p = p is obligatory, ◇p = p is permissible", ("Moral Obligations", "Permission Logic")),
    "temporal": ("Temporal: □p = always p, ◇p = eventually p", ("Temporal Ordering", "Future Possibilities")),
}

_MODAL_QUESTIONS = {
    "world_definition": [
        "What propositions are true in each world?",
        "Which world represents the actual state of affairs?",
        "How are the worlds related (accessibility)?",
    ],
    "proposition_analysis": [
        "Is the proposition necessarily true (true in all accessible worlds)?",
        "Is the proposition possibly true (true in some accessible world)?",
        "Is the proposition contingent (could be true or false)?",
    ],
    "accessibility_analysis": [
        "Is the accessibility relation reflexive (every world accesses itself)?",
        "Is the relation symmetric (if w1 accesses w2, does w2 access w1)?",
        "Is the relation transitive (if w1→w2→w3, does w1→w3)?",
    ],
    "necessity_proof": [
        "Is the proposition true in ALL accessible worlds?",
        "Are there any counterexample worlds?",
        "Does necessity hold under the current logic system?",
    ],
    "possibility_proof": [
        "Is the proposition true in AT LEAST ONE accessible world?",
        "Can we construct a world where it holds?",
        "What makes this possibility genuine vs. merely apparent?",
    ],
    "modal_inference": [
        "Is the inference valid in the current modal logic?",
        "Does the rule preserve truth across all frames?",
        "Are there countermodels to this inference?",
    ],
    "countermodel": [
        "What world or truth-value assignment falsifies the claim?",
        "Are the accessibility relations satisfied?",
        "Is this a minimal countermodel?",
    ],
}


@dataclass(frozen=True)
class World:
    id: str
    name: str = ""
    propositions: dict[str, bool] = field(default_factory=dict)
    is_actual: bool = False
    description: str = ""


@dataclass(frozen=True)
class AccessibilityRelation:
    from_world: str
    to_world: str
    type: str = "reflexive"


@dataclass(frozen=True)
class ModalProposition:
    id: str
    content: str
    operator: str = "contingent"
    worlds_true: list[str] = field(default_factory=list)
    worlds_false: list[str] = field(default_factory=list)
    holds_at_actual: bool | None = None


@dataclass(frozen=True)
class ModalInference:
    id: str
    premises: list[str] = field(default_factory=list)
    conclusion: str = ""
    rule: str = ""
    valid: bool = False
    justification: str = ""


@dataclass(frozen=True, kw_only=True)
class ModalThought(Thought):
    thought_type: str = "proposition_analysis"
    logic_system: str = "K"
    modal_domain: str = "alethic"
    worlds: list[World] = field(default_factory=list)
    actual_world: str = ""
    propositions: list[ModalProposition] = field(default_factory=list)
    accessibility_relations: list[AccessibilityRelation] = field(default_factory=list)
    inferences: list[ModalInference] = field(default_factory=list)


def accessible_worlds(world: str, relations: list[AccessibilityRelation], logic_system: str) -> list[str]:
    """Worlds reachable in one step from ``world`` as declared.

    Systems whose frames are reflexive add ``world`` itself.
    """
    found = [world] if logic_system in REFLEXIVE_SYSTEMS else []
    for relation in relations:
        if relation.from_world == world and relation.to_world not in found:
            found.append(relation.to_world)
    return found


def evaluate_operator(operator: str, values: list[bool | None]) -> bool | None:
    """Truth of a modal operator over the values of the accessible worlds.

    None when some accessible world leaves the proposition unassigned and
    the known values do not settle it.
    """
    known = [v for v in values if v is not None]
    unknown = len(known) < len(values)
    if operator == "necessary":
        if not all(known):
            return False
        return None if unknown else True
    if operator == "possible":
        if any(known):
            return True
        return None if unknown else False
    if operator == "impossible":
        if any(known):
            return False
        return None if unknown else True
    return None


class ModalHandler(ModeHandler):
    """Necessity and possibility over Kripke frames."""

    mode = ThinkingMode.MODAL
    mode_name = "Modal Reasoning"
    description = "Necessity, possibility and possible-worlds semantics"
    thought_types = MODAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        logic_system = data.get("modal_logic_type", data.get("logic_system"))
        findings.known_value("modalLogicType", logic_system, LOGIC_SYSTEMS, "logic system")
        findings.known_value("modalDomain", data.get("modal_domain"), MODAL_DOMAINS, "modal domain")

        worlds = as_records(data.get("worlds"))
        if data.thought_type in ("necessity_proof", "possibility_proof") and not worlds:
            findings.warn("worlds", "Modal proof without defined worlds", "Define possible worlds for modal evaluation")
        world_ids = [as_str(pick(w, "id")) for w in worlds if pick(w, "id")]
        for dup in duplicate_ids(world_ids):
            findings.warn("worlds", f"Duplicate world id: {dup}")
        relations = [
            (as_str(pick(r, "from_world")), as_str(pick(r, "to_world")))
            for r in as_records(data.get("accessibility_relations"))
        ]
        declared = [(a, b) for a, b in relations if a and b]
        for ref in undeclared_world_refs(world_ids, declared):
            findings.warn(
                "accessibilityRelations",
                f"Relation references unknown world: {ref}",
                "Ensure all relation endpoints reference defined worlds",
            )
        if logic_system == "S5" and len(worlds) > 1 and not relations:
            findings.warn(
                "accessibilityRelations",
                S5_NO_RELATIONS_WARNING,
                "All worlds should be mutually accessible in S5",
            )
        for i, prop in enumerate(as_records(data.get("propositions"))):
            findings.known_value(f"propositions[{i}].operator", pick(prop, "operator"), MODAL_OPERATORS, "operator")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ModalThought:
        worlds = [
            World(
                id=as_str(pick(w, "id")) or self.ids("world"),
                name=as_str(pick(w, "name")),
                propositions={k: v for k, v in as_dict(pick(w, "propositions")).items() if isinstance(v, bool)},
                is_actual=bool(as_bool(pick(w, "is_actual"), False)),
                description=as_str(pick(w, "description")),
            )
            for w in as_records(data.get("worlds"))
        ]
        if not worlds:
            worlds = [World(id="w0", name="w0", is_actual=True, description="Actual world")]
        actual = as_str(data.get("actual_world")) or next((w.id for w in worlds if w.is_actual), worlds[0].id)
        logic_system = data.get("modal_logic_type", data.get("logic_system"))
        logic_system = logic_system if logic_system in LOGIC_SYSTEMS else "K"
        domain = data.get("modal_domain")
        relations = [
            AccessibilityRelation(
                from_world=as_str(pick(r, "from_world")),
                to_world=as_str(pick(r, "to_world")),
                type=as_str(pick(r, "type")) or "reflexive",
            )
            for r in as_records(data.get("accessibility_relations"))
        ]
        reachable = accessible_worlds(actual, relations, logic_system)
        by_id = {w.id: w for w in worlds}
        propositions = []
        for p in as_records(data.get("propositions")):
            content = as_str(pick(p, "content"))
            operator = pick(p, "operator") if pick(p, "operator") in MODAL_OPERATORS else "contingent"
            worlds_true = [w.id for w in worlds if w.propositions.get(content) is True]
            worlds_false = [w.id for w in worlds if w.propositions.get(content) is False]
            values = [by_id[w].propositions.get(content) if w in by_id else None for w in reachable]
            propositions.append(
                ModalProposition(
                    id=as_str(pick(p, "id")) or self.ids("prop"),
                    content=content,
                    operator=operator,
                    worlds_true=as_str_list(pick(p, "worlds_true")) or worlds_true,
                    worlds_false=as_str_list(pick(p, "worlds_false")) or worlds_false,
                    holds_at_actual=evaluate_operator(operator, values) if reachable else None,
                )
            )
        return ModalThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "proposition_analysis"),
            logic_system=logic_system,
            modal_domain=domain if domain in MODAL_DOMAINS else "alethic",
            worlds=worlds,
            actual_world=actual,
            propositions=propositions,
            accessibility_relations=relations,
            inferences=[
                ModalInference(
                    id=as_str(pick(i, "id")) or self.ids("inf"),
                    premises=as_str_list(pick(i, "premises")),
                    conclusion=as_str(pick(i, "conclusion")),
                    rule=as_str(pick(i, "rule")),
                    valid=bool(as_bool(pick(i, "valid"), False)),
                    justification=as_str(pick(i, "justification")),
                )
                for i in as_records(data.get("inferences"))
            ],
        )

    def get_enhancements(self, thought: ModalThought) -> ModeEnhancements:
        world_ids = [w.id for w in thought.worlds]
        edges = [(r.from_world, r.to_world) for r in thought.accessibility_relations]
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.FORMALLOGIC, ThinkingMode.COUNTERFACTUAL, ThinkingMode.DEDUCTIVE],
            mental_models=[
                "Possible Worlds Semantics",
                "Kripke Frames",
                "Necessity vs Possibility",
                "Accessibility Relations",
                "Modal Validity",
            ],
            guiding_questions=list(_MODAL_QUESTIONS.get(thought.thought_type, [])),
            metrics={
                "world_count": len(thought.worlds),
                "proposition_count": len(thought.propositions),
                "relation_count": len(thought.accessibility_relations),
                "inference_count": len(thought.inferences),
            },
        )
        enhancements.suggestions.append(f"Logic system: {thought.logic_system} ({thought.modal_domain})")
        properties = FRAME_PROPERTIES.get(thought.logic_system, ())
        if properties:
            enhancements.suggestions.append(f"Properties: {', '.join(properties)}")
        elif thought.logic_system == "K":
            enhancements.suggestions.append("Properties: basic modal logic")

        if thought.thought_type == "world_definition":
            enhancements.suggestions.append(f"Defined {len(thought.worlds)} possible world(s)")
        elif thought.thought_type == "proposition_analysis":
            necessary = sum(1 for p in thought.propositions if p.operator == "necessary")
            possible = sum(1 for p in thought.propositions if p.operator == "possible")
            enhancements.suggestions.append(f"Propositions: {necessary} necessary, {possible} possible")
        elif thought.thought_type == "modal_inference" and thought.inferences:
            valid = sum(1 for i in thought.inferences if i.valid)
            enhancements.suggestions.append(f"Inferences: {valid}/{len(thought.inferences)} valid")
        elif thought.thought_type == "accessibility_analysis" and edges:
            gaps = frame_property_gaps(world_ids, edges, thought.logic_system)
            if gaps:
                enhancements.suggestions.append(
                    f"Declared relations are not {', '.join(gaps)} as {thought.logic_system} requires"
                )

        reading, models = _DOMAIN_READINGS[thought.modal_domain]
        enhancements.suggestions.append(reading)
        enhancements.mental_models.extend(models)

        for proposition in thought.propositions:
            if proposition.holds_at_actual is False and proposition.operator in ("necessary", "possible"):
                enhancements.warnings.append(
                    f'"{proposition.content}" is not {proposition.operator} at world {thought.actual_world}'
                )
        enhancements.warnings.extend(modal_consistency_warnings(world_ids, edges, thought.logic_system))
        return enhancements


# =============================================================================
# Stochastic
# =============================================================================

STOCHASTIC_TYPES = (
    "process_definition",
    "transition_analysis",
    "steady_state_analysis",
    "random_variable_definition",
    "monte_carlo_simulation",
    "convergence_analysis",
    "hitting_time_analysis",
)
PROCESS_TYPES = ("discrete_time", "continuous_time", "random_walk", "birth_death", "queueing")
PROBABILITY_SUM_TOLERANCE = 0.01
MIN_SIMULATION_ITERATIONS = 100
STATIONARY_ITERATIONS = 1000
STATIONARY_TOLERANCE = 1e-10


@dataclass(frozen=True)
class StochasticState:
    id: str
    name: str = ""
    is_absorbing: bool = False
    probability: float | None = None


@dataclass(frozen=True)
class StateTransition:
    from_state: str
    to_state: str
    probability: float
    condition: str | None = None


@dataclass(frozen=True)
class MarkovChain:
    id: str
    name: str = ""
    states: list[StochasticState] = field(default_factory=list)
    transitions: list[StateTransition] = field(default_factory=list)
    initial_distribution: dict[str, float] = field(default_factory=dict)
    is_irreducible: bool = True
    period: int = 1
    is_ergodic: bool = True
    stationary_distribution: dict[str, float] | None = None


@dataclass(frozen=True)
class RandomVariable:
    id: str
    name: str
    distribution: str = "uniform"
    parameters: dict[str, float] = field(default_factory=dict)
    expected_value: float | None = None
    variance: float | None = None


@dataclass(frozen=True)
class SimulationResult:
    id: str
    iterations: int
    mean: float
    variance: float
    confidence_interval: tuple[float, float] | None = None


@dataclass(frozen=True, kw_only=True)
class StochasticThought(Thought):
    thought_type: str = "process_definition"
    process_type: str = "discrete_time"
    markov_chain: MarkovChain | None = None
    random_variables: list[RandomVariable] = field(default_factory=list)
    simulations: list[SimulationResult] = field(default_factory=list)
    current_state: str | None = None
    step_count: int = 0
    convergence_rate: float | None = None


def _successors(states: list[str], transitions: list[StateTransition]) -> dict[str, set[str]]:
    adjacency: dict[str, set[str]] = {s: set() for s in states}
    for t in transitions:
        if t.probability > 0 and t.from_state in adjacency and t.to_state in adjacency:
            adjacency[t.from_state].add(t.to_state)
    return adjacency


def _reachable(start: str, adjacency: dict[str, set[str]]) -> dict[str, int]:
    """BFS levels of every state reachable from ``start``."""
    levels = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt in adjacency[current]:
            if nxt not in levels:
                levels[nxt] = levels[current] + 1
                queue.append(nxt)
    return levels


def is_irreducible(states: list[str], transitions: list[StateTransition]) -> bool:
    """Every state reaches every other through positive-probability transitions."""
    if len(states) <= 1:
        return True
    adjacency = _successors(states, transitions)
    return all(len(_reachable(s, adjacency)) == len(states) for s in states)


def chain_period(states: list[str], transitions: list[StateTransition]) -> int:
    """Period of an irreducible chain: gcd of level differences across edges."""
    if not states:
        return 1
    adjacency = _successors(states, transitions)
    levels = _reachable(states[0], adjacency)
    period = 0
    for source, targets in adjacency.items():
        if source not in levels:
            continue
        for target in targets:
            if target in levels:
                period = math.gcd(period, abs(levels[source] + 1 - levels[target]))
    return period or 1


def stationary_distribution(
    states: list[str], transitions: list[StateTransition], initial: dict[str, float] | None = None
) -> dict[str, float] | None:
    """Power iteration toward the stationary distribution.

    Returns None when the iteration does not converge or some state has no
    outgoing probability mass.
    """
    if not states:
        return None
    matrix: dict[str, dict[str, float]] = {s: {} for s in states}
    for t in transitions:
        if t.from_state in matrix and t.to_state in matrix:
            matrix[t.from_state][t.to_state] = matrix[t.from_state].get(t.to_state, 0.0) + t.probability
    if any(sum(row.values()) <= 0 for row in matrix.values()):
        return None
    for row in matrix.values():
        total = sum(row.values())
        for target in row:
            row[target] /= total
    weights = {s: max(0.0, (initial or {}).get(s, 0.0)) for s in states}
    total = sum(weights.values())
    distribution = {s: w / total for s, w in weights.items()} if total > 0 else {s: 1 / len(states) for s in states}
    for _ in range(STATIONARY_ITERATIONS):
        updated = {s: 0.0 for s in states}
        for source, row in matrix.items():
            for target, p in row.items():
                updated[target] += distribution[source] * p
        delta = max(abs(updated[s] - distribution[s]) for s in states)
        distribution = updated
        if delta < STATIONARY_TOLERANCE:
            return distribution
    return None


def distribution_issues(distribution: str, params: dict[str, float]) -> list[str]:
    issues = []
    if distribution in ("normal", "gaussian"):
        if params.get("variance", 0) < 0:
            issues.append("Normal distribution variance must be non-negative")
    elif distribution == "exponential":
        if "lambda" in params and params["lambda"] <= 0:
            issues.append("Exponential distribution lambda must be positive")
    elif distribution == "poisson":
        if params.get("lambda", 0) < 0:
            issues.append("Poisson distribution lambda must be non-negative")
    elif distribution == "uniform":
        if "a" in params and "b" in params and params["a"] >= params["b"]:
            issues.append("Uniform distribution requires a < b")
    elif distribution == "binomial":
        if params.get("n", 0) < 0:
            issues.append("Binomial n must be non-negative")
        if not 0 <= params.get("p", 0.5) <= 1:
            issues.append("Binomial p must be in [0, 1]")
    return issues


def distribution_moments(distribution: str, params: dict[str, float]) -> tuple[float | None, float | None]:
    """Mean and variance of a named distribution from its parameters."""
    if distribution in ("normal", "gaussian"):
        return params.get("mu", params.get("mean", 0.0)), params.get("variance", params.get("sigma2", 1.0))
    if distribution == "exponential":
        rate = params.get("lambda", params.get("rate", 1.0)) or 1.0
        return 1 / rate, 1 / rate**2
    if distribution == "poisson":
        rate = params.get("lambda", 1.0)
        return rate, rate
    if distribution == "uniform":
        a = params.get("a", params.get("min", 0.0))
        b = params.get("b", params.get("max", 1.0))
        return (a + b) / 2, (b - a) ** 2 / 12
    if distribution == "binomial":
        n = params.get("n", 1.0)
        p = params.get("p", 0.5)
        return n * p, n * p * (1 - p)
    return None, None


def _numeric_params(raw: Any) -> dict[str, float]:
    return {k: float(v) for k, v in as_dict(raw).items() if is_number(v)}


class StochasticHandler(ModeHandler):
    """Markov chains, random variables and Monte Carlo estimates."""

    mode = ThinkingMode.STOCHASTIC
    mode_name = "Stochastic Reasoning"
    description = "Markov chains, random processes, probabilistic state transitions and Monte Carlo methods"
    thought_types = STOCHASTIC_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value("processType", data.get("process_type"), PROCESS_TYPES, "process type")

        chain = as_dict(data.get("markov_chain"))
        state_ids = [as_str(pick(s, "id")) for s in as_records(pick(chain, "states")) if pick(s, "id")]
        sums: dict[str, float] = {}
        for i, t in enumerate(as_records(pick(chain, "transitions"))):
            source = as_str(pick(t, "from_state"))
            probability = pick(t, "probability")
            findings.unit_interval(f"markovChain.transitions[{i}].probability", probability, "Transition probability")
            sums[source] = sums.get(source, 0.0) + (probability if is_number(probability) else 0.0)
            if state_ids:
                for ref in (source, as_str(pick(t, "to_state"))):
                    if ref not in state_ids:
                        findings.warn(f"markovChain.transitions[{i}]", f"Transition references unknown state: {ref}")
        for state, total in sums.items():
            if abs(total - 1) > PROBABILITY_SUM_TOLERANCE:
                findings.warn(
                    f"markovChain.transitions[{state}]",
                    f'Transition probabilities from state "{state}" sum to {total:.3f}, should be 1.0',
                    "Ensure outgoing transition probabilities sum to 1",
                )
        initial = pick(chain, "initial_distribution")
        if isinstance(initial, dict) and initial:
            total = sum(v for v in initial.values() if is_number(v))
            if abs(total - 1) > PROBABILITY_SUM_TOLERANCE:
                findings.warn(
                    "markovChain.initialDistribution",
                    f"Initial distribution sums to {total:.3f}, should be 1.0",
                    "Normalize initial state probabilities",
                )

        for i, variable in enumerate(as_records(data.get("random_variables"))):
            params = _numeric_params(pick(variable, "parameters"))
            for issue in distribution_issues(as_str(pick(variable, "distribution")), params):
                findings.warn(f"randomVariables[{i}].parameters", issue)
        for i, result in enumerate(as_records(data.get("simulations", data.get("simulation_results")))):
            iterations = pick(result, "iterations")
            if is_number(iterations) and iterations < MIN_SIMULATION_ITERATIONS:
                findings.warn(
                    f"simulationResults[{i}].iterations",
                    f"Low iteration count ({iterations})",
                    "Use at least 1000 iterations for reliable Monte Carlo estimates",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> StochasticThought:
        process = data.get("process_type")
        variables = []
        for v in as_records(data.get("random_variables")):
            distribution = as_str(pick(v, "distribution")) or "uniform"
            params = _numeric_params(pick(v, "parameters"))
            mean, variance = distribution_moments(distribution, params)
            variables.append(
                RandomVariable(
                    id=as_str(pick(v, "id")) or self.ids("rv"),
                    name=as_str(pick(v, "name")),
                    distribution=distribution,
                    parameters=params,
                    expected_value=as_float(pick(v, "expected_value"), mean),
                    variance=as_float(pick(v, "variance"), variance),
                )
            )
        simulations = []
        for s in as_records(data.get("simulations", data.get("simulation_results"))):
            interval = [x for x in as_list(pick(s, "confidence_interval")) if is_number(x)]
            simulations.append(
                SimulationResult(
                    id=as_str(pick(s, "id")) or self.ids("sim"),
                    iterations=as_int(pick(s, "iterations"), 0) or 0,
                    mean=as_float(pick(s, "mean"), 0.0) or 0.0,
                    variance=as_float(pick(s, "variance"), 0.0) or 0.0,
                    confidence_interval=(float(interval[0]), float(interval[1])) if len(interval) == 2 else None,
                )
            )
        return StochasticThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "process_definition"),
            process_type=process if process in PROCESS_TYPES else "discrete_time",
            markov_chain=self._chain(data.get("markov_chain")),
            random_variables=variables,
            simulations=simulations,
            current_state=as_str(data.get("current_state")) or None,
            step_count=as_int(data.get("step_count"), 0) or 0,
            convergence_rate=as_float(data.get("convergence_rate")),
        )

    def _chain(self, raw: Any) -> MarkovChain | None:
        if not isinstance(raw, dict):
            return None
        transitions = [
            StateTransition(
                from_state=as_str(pick(t, "from_state")),
                to_state=as_str(pick(t, "to_state")),
                probability=as_unit(pick(t, "probability"), 0.0),
                condition=as_str(pick(t, "condition")) or None,
            )
            for t in as_records(pick(raw, "transitions"))
        ]
        self_loops = {t.from_state for t in transitions if t.from_state == t.to_state and t.probability >= 1.0}
        states = []
        for s in as_records(pick(raw, "states")):
            state_id = as_str(pick(s, "id")) or self.ids("state")
            probability = pick(s, "probability")
            states.append(
                StochasticState(
                    id=state_id,
                    name=as_str(pick(s, "name")),
                    is_absorbing=bool(as_bool(pick(s, "is_absorbing"), state_id in self_loops)),
                    probability=as_unit(probability) if probability is not None else None,
                )
            )
        state_ids = [s.id for s in states]
        initial = {k: float(v) for k, v in as_dict(pick(raw, "initial_distribution")).items() if is_number(v)}
        irreducible = as_bool(pick(raw, "is_irreducible"))
        if irreducible is None:
            irreducible = is_irreducible(state_ids, transitions)
        period = as_int(pick(raw, "period"))
        if period is None:
            period = chain_period(state_ids, transitions) if irreducible else 1
        ergodic = as_bool(pick(raw, "is_ergodic"))
        if ergodic is None:
            ergodic = irreducible and period == 1
        return MarkovChain(
            id=as_str(pick(raw, "id")) or self.ids("chain"),
            name=as_str(pick(raw, "name")),
            states=states,
            transitions=transitions,
            initial_distribution=initial,
            is_irreducible=irreducible,
            period=period,
            is_ergodic=ergodic,
            stationary_distribution=stationary_distribution(state_ids, transitions, initial) if ergodic else None,
        )

    def get_enhancements(self, thought: StochasticThought) -> ModeEnhancements:
        chain = thought.markov_chain
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.BAYESIAN, ThinkingMode.OPTIMIZATION, ThinkingMode.TEMPORAL],
            mental_models=[
                "Markov Property",
                "Law of Large Numbers",
                "Central Limit Theorem",
                "Ergodic Theory",
                "Queuing Theory",
            ],
            metrics={
                "state_count": len(chain.states) if chain else 0,
                "transition_count": len(chain.transitions) if chain else 0,
                "random_variable_count": len(thought.random_variables),
                "step_count": thought.step_count,
            },
        )
        enhancements.suggestions.append(f"Process type: {thought.process_type.replace('_', ' ')}")
        kind = thought.thought_type
        if kind == "process_definition":
            enhancements.guiding_questions.extend(
                [
                    "What are the states of the process?",
                    "Are transitions time-homogeneous?",
                    "Does the process satisfy the Markov property?",
                ]
            )
            if chain is not None:
                enhancements.suggestions.append(f"States: {len(chain.states)}, Transitions: {len(chain.transitions)}")
        elif kind == "transition_analysis":
            enhancements.guiding_questions.extend(
                [
                    "What is the probability of transitioning from state A to state B?",
                    "Are there absorbing states?",
                    "What is the expected number of steps to reach a target state?",
                ]
            )
        elif kind == "steady_state_analysis":
            enhancements.guiding_questions.extend(
                [
                    "Does a stationary distribution exist?",
                    "Is the chain irreducible and aperiodic?",
                    "What are the long-run probabilities?",
                ]
            )
        elif kind == "random_variable_definition":
            enhancements.guiding_questions.extend(
                [
                    "What is the expected value of the random variable?",
                    "What is the variance?",
                    "Are there any constraints on the variable?",
                ]
            )
            for variable in thought.random_variables:
                if variable.expected_value is not None:
                    variance = f"{variable.variance:.4f}" if variable.variance is not None else "unknown"
                    enhancements.suggestions.append(
                        f"{variable.name}: E[X] = {variable.expected_value:.4f}, Var[X] = {variance}"
                    )
        elif kind == "monte_carlo_simulation":
            enhancements.guiding_questions.extend(
                [
                    "How many iterations are sufficient?",
                    "What is the confidence interval?",
                    "Has the simulation converged?",
                ]
            )
            for result in thought.simulations:
                enhancements.suggestions.append(
                    f"Simulation (n={result.iterations}): mean={result.mean:.4f}, var={result.variance:.4f}"
                )
                if result.confidence_interval is not None:
                    low, high = result.confidence_interval
                    enhancements.suggestions.append(f"95% CI: [{low:.4f}, {high:.4f}]")
        elif kind == "convergence_analysis":
            enhancements.guiding_questions.extend(
                [
                    "At what rate does the process converge?",
                    "Is convergence guaranteed?",
                    "What is the mixing time?",
                ]
            )
            if thought.convergence_rate is not None:
                enhancements.suggestions.append(f"Convergence rate: {thought.convergence_rate:.4f}")
            if thought.step_count < 10:
                enhancements.warnings.append("Low step count - convergence analysis may be unreliable")
        elif kind == "hitting_time_analysis":
            enhancements.guiding_questions.extend(
                [
                    "What is the expected time to reach a target state?",
                    "What is the probability of reaching the target before returning to start?",
                    "Are there multiple paths to consider?",
                ]
            )

        if chain is not None:
            absorbing = [s.id for s in chain.states if s.is_absorbing]
            if absorbing:
                enhancements.metrics["absorbing_states"] = len(absorbing)
                enhancements.suggestions.append(f"Absorbing states: {', '.join(absorbing)}")
            if chain.is_ergodic:
                enhancements.suggestions.append("Chain is ergodic - unique stationary distribution exists")
            elif not chain.is_irreducible:
                enhancements.warnings.append("Chain is reducible - multiple stationary distributions possible")
            if chain.period > 1:
                enhancements.warnings.append(f"Chain is periodic (period={chain.period}) - no limiting distribution")
            if chain.stationary_distribution is not None:
                pi = ", ".join(f"{s}={p:.3f}" for s, p in chain.stationary_distribution.items())
                enhancements.suggestions.append(f"Stationary distribution: {pi}")

        if thought.process_type == "queueing":
            enhancements.mental_models.extend(["Little's Law", "M/M/1 Queue", "Birth-Death Process"])
            enhancements.suggestions.append("Consider arrival rate λ and service rate μ")
        elif thought.process_type == "random_walk":
            enhancements.mental_models.extend(["Gambler's Ruin", "Recurrence", "Transience"])
        elif thought.process_type == "birth_death":
            enhancements.mental_models.extend(["Population Dynamics", "Balance Equations"])
        return enhancements
