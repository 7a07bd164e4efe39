"""Core modes: sequential, shannon, mathematics, physics and hybrid."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import PROOF_TYPES, proof_gaps
from deepthinking.modes.recommend import (
    ModeRecommendation,
    ProblemCharacteristics,
    infer_characteristics,
    normalize_characteristics,
    recommend_modes,
)
from deepthinking.modes.scoring import Convergence, convergence_status, overall_confidence
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
    pick,
)

# =============================================================================
# Sequential
# =============================================================================

SEQUENTIAL_TYPES = ("initial", "continuation", "revision", "branch", "conclusion")


@dataclass(frozen=True, kw_only=True)
class SequentialThought(Thought):
    thought_type: str = "continuation"
    revision_reason: str | None = None
    dependencies: list[str] = field(default_factory=list)
    build_upon: list[str] = field(default_factory=list)
    branch_from: str | None = None
    branch_id: str | None = None
    branch_from_thought: int | None = None
    needs_more_thoughts: bool = True


class SequentialHandler(ModeHandler):
    """Iterative step-by-step reasoning with revisions and branches."""

    mode = ThinkingMode.SEQUENTIAL
    mode_name = "Sequential Thinking"
    description = "Iterative refinement with revision and branching"
    thought_types = SEQUENTIAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if data.is_revision and not data.revises_thought:
            findings.warn(
                "revisesThought",
                "Revision marked but no thought ID specified to revise",
                "Specify which thought this revises using revisesThought",
            )
        if data.revises_thought and not data.is_revision:
            findings.warn(
                "isRevision",
                "revisesThought specified but isRevision is not set",
                "Set isRevision when revising a previous thought",
            )
        if data.has("branch_from") and not data.has("branch_id"):
            findings.warn(
                "branchId",
                "Branching from a thought but no branch ID specified",
                "Provide a branchId to identify this reasoning branch",
            )
        if data.is_revision and not data.has("revision_reason"):
            findings.warn(
                "revisionReason",
                "Revision without a stated reason",
                "Explain why this revision is being made",
            )
        return findings.result()

    def _infer_type(self, data: ThinkingInput) -> str:
        if data.is_revision:
            return "revision"
        if data.has("branch_id") or data.has("branch_from"):
            return "branch"
        if not data.next_thought_needed:
            return "conclusion"
        if data.thought_number == 1:
            return "initial"
        return "continuation"

    def create_thought(self, data: ThinkingInput, session_id: str) -> SequentialThought:
        branch_from = data.get("branch_from")
        branch_id = data.get("branch_id")
        return SequentialThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, self._infer_type(data)),
            revision_reason=as_str(data.get("revision_reason")) or None,
            dependencies=as_str_list(data.get("dependencies")),
            build_upon=as_str_list(data.get("build_upon")),
            branch_from=as_str(branch_from) or None,
            branch_id=as_str(branch_id) or None,
            branch_from_thought=as_int(data.get("branch_from_thought")),
            needs_more_thoughts=bool(as_bool(data.get("needs_more_thoughts"), data.next_thought_needed)),
        )

    def get_enhancements(self, thought: SequentialThought) -> ModeEnhancements:
        progress = thought.thought_number / thought.total_thoughts
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.HYBRID, ThinkingMode.SHANNON, ThinkingMode.METAREASONING],
            mental_models=["Iterative Refinement", "Step-by-Step Analysis", "Progressive Elaboration"],
            metrics={
                "thought_number": thought.thought_number,
                "total_thoughts": thought.total_thoughts,
                "progress": progress,
            },
        )
        if progress < 0.3:
            enhancements.guiding_questions.append("What are the key elements to explore in this problem?")
            enhancements.suggestions.append(
                "Focus on understanding the problem space before diving into solutions"
            )
        elif progress < 0.7:
            enhancements.guiding_questions.append("Are there alternative approaches worth considering?")
            if not thought.branch_id:
                enhancements.suggestions.append(
                    "Consider branching to explore alternative reasoning paths"
                )
        else:
            enhancements.guiding_questions.append(
                "What conclusions can be drawn from the reasoning so far?"
            )
            enhancements.suggestions.append("Start synthesizing findings into actionable conclusions")

        if thought.is_revision:
            enhancements.metrics["is_revision"] = 1
            if not thought.revision_reason:
                enhancements.warnings.append(
                    "This revision lacks a documented reason - consider adding one"
                )
        if thought.branch_id:
            enhancements.metrics["has_branch"] = 1
            enhancements.suggestions.append(f"Currently on branch: {thought.branch_id}")
        if thought.dependencies:
            enhancements.metrics["dependency_count"] = len(thought.dependencies)
        return enhancements


# =============================================================================
# Shannon
# =============================================================================

SHANNON_STAGES = ("problem_definition", "constraints", "model", "proof", "implementation")
SHANNON_TYPES = (
    "problem_definition",
    "constraint_identification",
    "model_construction",
    "proof_development",
    "implementation_planning",
    "recheck",
    "refinement",
)

_STAGE_GUIDANCE: dict[str, tuple[tuple[str, ...], str]] = {
    "problem_definition": (
        (
            "What is the essential problem we are trying to solve?",
            "What would a solution look like?",
            "What are the inputs and outputs?",
        ),
        "Focus on clearly stating what success looks like before moving to constraints",
    ),
    "constraints": (
        (
            "What are the hard constraints that cannot be violated?",
            "What are the soft constraints we should optimize for?",
            "Are there any hidden constraints we might be missing?",
        ),
        "Document all constraints explicitly - implicit constraints often cause problems later",
    ),
    "model": (
        (
            "Does the model capture all essential aspects of the problem?",
            "Is the model simple enough to reason about formally?",
            "What assumptions does the model make?",
        ),
        "Consider creating multiple models and comparing their trade-offs",
    ),
    "proof": (
        (
            "What property are we trying to prove?",
            "What technique is most appropriate for this proof?",
            "Are there edge cases we need to handle?",
        ),
        "Start with the simplest case and build up to the general proof",
    ),
    "implementation": (
        (
            "How does the implementation map to the formal model?",
            "What practical constraints affect the implementation?",
            "How will we verify the implementation matches the proof?",
        ),
        "Create a clear mapping between model elements and implementation components",
    ),
}

_STAGE_RELATED: dict[str, list[ThinkingMode]] = {
    "proof": [ThinkingMode.MATHEMATICS, ThinkingMode.FORMALLOGIC, ThinkingMode.DEDUCTIVE],
    "implementation": [ThinkingMode.ENGINEERING, ThinkingMode.ALGORITHMIC],
}

_CONFIDENCE_FACTORS = ("data_quality", "methodology_robustness", "assumption_validity")


@dataclass(frozen=True)
class ConfidenceFactors:
    data_quality: float
    methodology_robustness: float
    assumption_validity: float

    @property
    def average(self) -> float:
        return (self.data_quality + self.methodology_robustness + self.assumption_validity) / 3


@dataclass(frozen=True)
class RecheckStep:
    step_to_recheck: str
    reason: str
    new_information: str | None = None


@dataclass(frozen=True, kw_only=True)
class ShannonThought(Thought):
    thought_type: str = "problem_definition"
    stage: str = "problem_definition"
    uncertainty: float = 0.5
    dependencies: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    recheck_step: RecheckStep | None = None
    confidence_factors: ConfidenceFactors | None = None
    alternative_approaches: list[str] = field(default_factory=list)
    known_limitations: list[str] = field(default_factory=list)


def resolve_stage(value: Any) -> str:
    stage = as_str(value).lower()
    return stage if stage in SHANNON_STAGES else "problem_definition"


def normalize_confidence_factors(data: ThinkingInput, uncertainty: float) -> ConfidenceFactors | None:
    """Use caller-supplied factors, else derive them from assumptions and dependencies."""
    raw = data.get("confidence_factors")
    if isinstance(raw, dict):
        return ConfidenceFactors(*(as_unit(pick(raw, name)) for name in _CONFIDENCE_FACTORS))
    if not data.has("assumptions") and not data.has("dependencies"):
        return None
    assumptions = as_list(data.get("assumptions"))
    dependencies = as_list(data.get("dependencies"))
    return ConfidenceFactors(
        data_quality=max(0.3, 1 - uncertainty),
        methodology_robustness=min(0.9, 0.5 + len(dependencies) * 0.1),
        assumption_validity=0.7 if assumptions else 0.5,
    )


class ShannonHandler(ModeHandler):
    """Claude Shannon's five-stage problem-solving methodology."""

    mode = ThinkingMode.SHANNON
    mode_name = "Shannon Problem-Solving"
    description = "Five-stage systematic problem solving from definition to implementation"
    thought_types = SHANNON_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        stage = data.get("stage")
        if stage is None:
            findings.warn(
                "stage",
                "No stage specified - defaulting to problem_definition",
                "Specify a stage to track methodology progression",
            )
        else:
            findings.known_value("stage", stage, SHANNON_STAGES, "Shannon stage")
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        factors = data.get("confidence_factors")
        if isinstance(factors, dict):
            for name in _CONFIDENCE_FACTORS:
                findings.unit_interval(f"confidenceFactors.{name}", pick(factors, name), name)

        if not as_list(data.get("assumptions")) and stage in ("problem_definition", "constraints"):
            findings.warn(
                "assumptions",
                "No assumptions stated in early stage",
                "Document assumptions early to improve clarity and validation",
            )
        recheck = data.get("recheck_step")
        if recheck is not None and not (
            pick(recheck, "step_to_recheck") and pick(recheck, "reason")
        ):
            findings.warn(
                "recheckStep",
                "Recheck step missing required fields",
                "Include stepToRecheck and reason for proper tracking",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ShannonThought:
        stage = resolve_stage(data.get("stage"))
        uncertainty = as_unit(data.get("uncertainty"), self.settings.default_uncertainty)
        recheck = as_dict(data.get("recheck_step"))
        return ShannonThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_definition"),
            stage=stage,
            uncertainty=uncertainty,
            dependencies=as_str_list(data.get("dependencies")),
            assumptions=as_str_list(data.get("assumptions")),
            recheck_step=RecheckStep(
                step_to_recheck=as_str(pick(recheck, "step_to_recheck")),
                reason=as_str(pick(recheck, "reason")),
                new_information=as_str(pick(recheck, "new_information")) or None,
            )
            if recheck
            else None,
            confidence_factors=normalize_confidence_factors(data, uncertainty),
            alternative_approaches=as_str_list(data.get("alternative_approaches")),
            known_limitations=as_str_list(data.get("known_limitations")),
        )

    def get_enhancements(self, thought: ShannonThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=list(
                _STAGE_RELATED.get(
                    thought.stage,
                    [ThinkingMode.SEQUENTIAL, ThinkingMode.MATHEMATICS, ThinkingMode.ENGINEERING],
                )
            ),
            mental_models=[
                "Shannon's Problem-Solving",
                "Systematic Decomposition",
                "Constraint-Based Design",
                "Proof-First Development",
            ],
            metrics={
                "stage_index": SHANNON_STAGES.index(thought.stage) if thought.stage in SHANNON_STAGES else 0,
                "uncertainty": thought.uncertainty,
                "dependency_count": len(thought.dependencies),
                "assumption_count": len(thought.assumptions),
            },
        )
        questions, suggestion = _STAGE_GUIDANCE.get(thought.stage, ((), ""))
        enhancements.guiding_questions.extend(questions)
        if suggestion:
            enhancements.suggestions.append(suggestion)

        if thought.uncertainty > 0.7:
            enhancements.warnings.append(
                "High uncertainty detected - consider revisiting assumptions or gathering more information"
            )
        elif thought.uncertainty < 0.2:
            enhancements.suggestions.append(
                "Low uncertainty suggests good progress - consider moving to the next stage"
            )

        factors = thought.confidence_factors
        if factors is not None:
            enhancements.metrics.update(
                data_quality=factors.data_quality,
                methodology_robustness=factors.methodology_robustness,
                assumption_validity=factors.assumption_validity,
                overall_confidence=factors.average,
            )
            if factors.assumption_validity < 0.5:
                enhancements.warnings.append(
                    "Low assumption validity - validate assumptions before proceeding"
                )

        if thought.alternative_approaches:
            enhancements.metrics["alternative_count"] = len(thought.alternative_approaches)
        elif thought.stage != "implementation":
            enhancements.suggestions.append("Consider documenting alternative approaches for comparison")
        return enhancements


# =============================================================================
# Mathematics
# =============================================================================

MATHEMATICS_TYPES = (
    "axiom_definition",
    "theorem_statement",
    "proof_construction",
    "lemma_derivation",
    "corollary",
    "counterexample",
    "algebraic_manipulation",
    "symbolic_computation",
    "numerical_analysis",
    "proof_decomposition",
    "dependency_analysis",
    "consistency_check",
    "gap_identification",
    "assumption_trace",
)

_MATH_GUIDANCE: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "axiom_definition": (
        (
            "Is this axiom consistent with existing axioms?",
            "Is this axiom independent from other axioms?",
        ),
        (),
    ),
    "theorem_statement": (
        (
            "What is the simplest case of this theorem?",
            "Are there known counterexamples to consider?",
        ),
        ("State the theorem precisely with all quantifiers explicit",),
    ),
    "proof_construction": (("What is the key insight that makes this proof work?",), ()),
    "lemma_derivation": (
        ("Is this lemma necessary, or can it be simplified?",),
        ("Ensure the lemma is general enough to be reusable",),
    ),
    "counterexample": (
        (
            "Does this counterexample apply to the general case?",
            "What conditions would make the original statement true?",
        ),
        (),
    ),
    "proof_decomposition": ((), ("Break the proof into atomic, independently verifiable steps",)),
    "consistency_check": (
        ("Are there any hidden assumptions?", "Do all definitions agree with standard usage?"),
        (),
    ),
    "gap_identification": ((), ("Document each gap with its severity and suggested fix",)),
}


@dataclass(frozen=True)
class MathematicalModel:
    latex: str = ""
    symbolic: str = ""
    ascii: str | None = None
    invariants: list[str] = field(default_factory=list)
    symmetries: list[str] = field(default_factory=list)
    complexity: str | None = None
    validated: bool = False
    validation_method: str | None = None


@dataclass(frozen=True)
class ProofStrategy:
    type: str
    steps: list[str] = field(default_factory=list)
    base_case: str | None = None
    inductive_step: str | None = None
    completeness: float = 0.0


@dataclass(frozen=True, kw_only=True)
class MathematicsThought(Thought):
    thought_type: str = "axiom_definition"
    mathematical_model: MathematicalModel | None = None
    proof_strategy: ProofStrategy | None = None
    dependencies: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    uncertainty: float = 0.5
    theorems: list[dict[str, Any]] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    consistency_report: dict[str, Any] | None = None
    gap_analysis: dict[str, Any] | None = None


def normalize_model(raw: Any) -> MathematicalModel | None:
    if not isinstance(raw, dict):
        return None
    return MathematicalModel(
        latex=as_str(pick(raw, "latex")),
        symbolic=as_str(pick(raw, "symbolic")),
        ascii=as_str(pick(raw, "ascii")) or None,
        invariants=as_str_list(pick(raw, "invariants")),
        symmetries=as_str_list(pick(raw, "symmetries")),
        complexity=as_str(pick(raw, "complexity")) or None,
        validated=bool(as_bool(pick(raw, "validated"), False)),
        validation_method=as_str(pick(raw, "validation_method")) or None,
    )


def normalize_proof_strategy(raw: Any) -> ProofStrategy | None:
    """Normalize a proof strategy; unknown types fall back to ``direct``."""
    if not isinstance(raw, dict) or not pick(raw, "type"):
        return None
    proof_type = as_str(pick(raw, "type"))
    return ProofStrategy(
        type=proof_type if proof_type in PROOF_TYPES else "direct",
        steps=as_str_list(pick(raw, "steps")),
        base_case=as_str(pick(raw, "base_case")) or None,
        inductive_step=as_str(pick(raw, "inductive_step")) or None,
        completeness=as_unit(pick(raw, "completeness"), 0.0),
    )


class MathematicsHandler(ModeHandler):
    """Formal proofs, theorems and symbolic computation."""

    mode = ThinkingMode.MATHEMATICS
    mode_name = "Mathematical Reasoning"
    description = "Formal mathematical proofs, theorems, and symbolic computation"
    thought_types = MATHEMATICS_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        model = data.get("mathematical_model")
        if isinstance(model, dict) and not (pick(model, "latex") or pick(model, "symbolic")):
            findings.warn(
                "mathematicalModel",
                "Model has no LaTeX or symbolic representation",
                "Provide at least one formal representation",
            )

        strategy = data.get("proof_strategy")
        if isinstance(strategy, dict):
            proof_type = pick(strategy, "type")
            findings.known_value("proofStrategy.type", proof_type, PROOF_TYPES, "proof type")
            completeness = pick(strategy, "completeness")
            findings.unit_interval("proofStrategy.completeness", completeness, "Completeness")
            for gap in proof_gaps(
                proof_type,
                pick(strategy, "base_case"),
                pick(strategy, "inductive_step"),
                as_float(completeness),
            ):
                findings.warn("proofStrategy", gap)

        if data.thought_type == "theorem_statement" and not as_list(data.get("assumptions")):
            findings.warn(
                "assumptions",
                "Theorem stated without explicit assumptions",
                "Document assumptions to ensure the theorem is well-defined",
            )
        if data.thought_type == "proof_construction" and strategy is None:
            findings.warn(
                "proofStrategy",
                "Proof construction without explicit strategy",
                "Specify the proof approach (direct, contradiction, induction, etc.)",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> MathematicsThought:
        consistency = data.get("consistency_report")
        gaps = data.get("gap_analysis")
        return MathematicsThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "axiom_definition"),
            mathematical_model=normalize_model(data.get("mathematical_model")),
            proof_strategy=normalize_proof_strategy(data.get("proof_strategy")),
            dependencies=as_str_list(data.get("dependencies")),
            assumptions=as_str_list(data.get("assumptions")),
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
            theorems=as_records(data.get("theorems")),
            references=as_str_list(data.get("references")),
            consistency_report=as_dict(consistency) if isinstance(consistency, dict) else None,
            gap_analysis=as_dict(gaps) if isinstance(gaps, dict) else None,
        )

    def get_enhancements(self, thought: MathematicsThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.PHYSICS, ThinkingMode.FORMALLOGIC, ThinkingMode.DEDUCTIVE],
            mental_models=[
                "Axiomatic Reasoning",
                "Proof by Induction",
                "Proof by Contradiction",
                "Constructive Proof",
                "Symbolic Manipulation",
            ],
            metrics={
                "dependency_count": len(thought.dependencies),
                "assumption_count": len(thought.assumptions),
                "uncertainty": thought.uncertainty,
            },
        )
        questions, suggestions = _MATH_GUIDANCE.get(thought.thought_type, ((), ()))
        enhancements.guiding_questions.extend(questions)
        enhancements.suggestions.extend(suggestions)
        if thought.thought_type == "proof_decomposition":
            enhancements.related_modes = [ThinkingMode.ALGORITHMIC, ThinkingMode.FORMALLOGIC]

        model = thought.mathematical_model
        if model is not None:
            enhancements.metrics["has_model"] = 1
            if model.validated:
                enhancements.metrics["model_validated"] = 1
            else:
                enhancements.suggestions.append("Consider validating the mathematical model")

        strategy = thought.proof_strategy
        if strategy is not None:
            enhancements.metrics["proof_type"] = strategy.type
            enhancements.metrics["proof_completeness"] = strategy.completeness
            if thought.thought_type == "proof_construction":
                enhancements.suggestions.append(f"Using {strategy.type} proof strategy")
            enhancements.warnings.extend(
                proof_gaps(strategy.type, strategy.base_case, strategy.inductive_step, strategy.completeness)
            )

        report = thought.consistency_report
        if report is not None:
            if pick(report, "is_consistent") is False:
                issues = as_list(pick(report, "inconsistencies"))
                enhancements.warnings.append(f"Inconsistency detected: {len(issues)} issue(s)")
            score = as_float(pick(report, "overall_score"))
            if score is not None:
                enhancements.metrics["consistency_score"] = score

        if thought.gap_analysis is not None:
            gap_count = len(as_list(pick(thought.gap_analysis, "gaps")))
            enhancements.metrics["gap_count"] = gap_count
            if gap_count:
                enhancements.warnings.append(f"{gap_count} gap(s) identified in reasoning")
        return enhancements


# =============================================================================
# Physics
# =============================================================================

PHYSICS_TYPES = (
    "symmetry_analysis",
    "gauge_theory",
    "field_equations",
    "lagrangian",
    "hamiltonian",
    "conservation_law",
    "dimensional_analysis",
    "tensor_formulation",
    "differential_geometry",
)
TENSOR_TRANSFORMATIONS = ("covariant", "contravariant", "mixed")
_TENSOR_THOUGHT_TYPES = ("tensor_formulation", "gauge_theory", "differential_geometry")

_PHYSICS_GUIDANCE: dict[str, tuple[tuple[str, ...], str | None]] = {
    "symmetry_analysis": (
        (
            "What symmetries are present in the system?",
            "What conservation laws follow from these symmetries (Noether)?",
        ),
        "Apply Noether's theorem to derive conservation laws from symmetries",
    ),
    "gauge_theory": (
        ("What is the gauge group?", "What are the gauge fields and their transformations?"),
        None,
    ),
    "field_equations": (
        ("What are the sources in these field equations?", "Are the equations linear or nonlinear?"),
        None,
    ),
    "lagrangian": (
        ("What are the generalized coordinates?", "Are there any constraints on the system?"),
        "Derive equations of motion using Euler-Lagrange equations",
    ),
    "hamiltonian": (
        (
            "What are the canonical coordinates and momenta?",
            "Is the Hamiltonian time-independent (energy conserved)?",
        ),
        None,
    ),
    "conservation_law": (
        ("What quantity is conserved?", "What symmetry gives rise to this conservation law?"),
        "Express the conservation law in both differential and integral forms",
    ),
    "dimensional_analysis": (
        ("What are the fundamental dimensions involved?", "Are all terms dimensionally consistent?"),
        "Use the Buckingham Pi theorem for non-dimensionalization",
    ),
    "tensor_formulation": (
        (
            "What is the tensor rank and index structure?",
            "Is the tensor covariant under the required transformations?",
        ),
        None,
    ),
    "differential_geometry": (
        ("What is the manifold structure?", "What are the relevant curvature invariants?"),
        None,
    ),
}


@dataclass(frozen=True)
class TensorProperties:
    rank: tuple[int, int] = (0, 0)
    components: str = ""
    latex: str = ""
    symmetries: list[str] = field(default_factory=list)
    invariants: list[str] = field(default_factory=list)
    transformation: str = "mixed"
    index_structure: str | None = None
    coordinate_system: str | None = None


@dataclass(frozen=True)
class PhysicalInterpretation:
    quantity: str = ""
    units: str = ""
    conservation_laws: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)
    observables: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FieldTheoryContext:
    fields: list[str] = field(default_factory=list)
    interactions: list[str] = field(default_factory=list)
    symmetry_group: str | None = None


@dataclass(frozen=True, kw_only=True)
class PhysicsThought(Thought):
    thought_type: str = "symmetry_analysis"
    tensor_properties: TensorProperties | None = None
    physical_interpretation: PhysicalInterpretation | None = None
    field_theory_context: FieldTheoryContext | None = None
    dependencies: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    uncertainty: float = 0.5


def _tensor_rank(value: Any) -> tuple[int, int] | None:
    items = as_list(value)
    if len(items) != 2:
        return None
    upper, lower = as_int(items[0]), as_int(items[1])
    if upper is None or lower is None:
        return None
    return upper, lower


def normalize_tensor(raw: Any) -> TensorProperties | None:
    if not isinstance(raw, dict):
        return None
    rank = _tensor_rank(pick(raw, "rank")) or (0, 0)
    transformation = as_str(pick(raw, "transformation"))
    return TensorProperties(
        rank=(max(rank[0], 0), max(rank[1], 0)),
        components=as_str(pick(raw, "components")),
        latex=as_str(pick(raw, "latex")),
        symmetries=as_str_list(pick(raw, "symmetries")),
        invariants=as_str_list(pick(raw, "invariants")),
        transformation=transformation if transformation in TENSOR_TRANSFORMATIONS else "mixed",
        index_structure=as_str(pick(raw, "index_structure")) or None,
        coordinate_system=as_str(pick(raw, "coordinate_system")) or None,
    )


def normalize_interpretation(raw: Any) -> PhysicalInterpretation | None:
    if not isinstance(raw, dict):
        return None
    return PhysicalInterpretation(
        quantity=as_str(pick(raw, "quantity")),
        units=as_str(pick(raw, "units")),
        conservation_laws=as_str_list(pick(raw, "conservation_laws")),
        constraints=as_str_list(pick(raw, "constraints")),
        observables=as_str_list(pick(raw, "observables")),
    )


def normalize_field_theory(raw: Any) -> FieldTheoryContext | None:
    if not isinstance(raw, dict):
        return None
    return FieldTheoryContext(
        fields=as_str_list(pick(raw, "fields")),
        interactions=as_str_list(pick(raw, "interactions")),
        symmetry_group=as_str(pick(raw, "symmetry_group")) or None,
    )


class PhysicsHandler(ModeHandler):
    """Physical modeling with tensors, conservation laws and field theory."""

    mode = ThinkingMode.PHYSICS
    mode_name = "Physics Modeling"
    description = "Physical modeling with tensor mathematics, conservation laws, and field theory"
    thought_types = PHYSICS_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.unit_interval("uncertainty", data.get("uncertainty"), "Uncertainty")

        tensor = data.get("tensor_properties")
        if isinstance(tensor, dict):
            rank = _tensor_rank(pick(tensor, "rank"))
            if rank is None:
                findings.warn(
                    "tensorProperties.rank",
                    "Tensor rank must be a pair [contravariant, covariant]",
                    "Provide rank as two non-negative integers",
                )
            elif rank[0] < 0 or rank[1] < 0:
                findings.warn("tensorProperties.rank", "Tensor rank indices must be non-negative")
            findings.known_value(
                "tensorProperties.transformation",
                pick(tensor, "transformation"),
                TENSOR_TRANSFORMATIONS,
                "transformation type",
            )
            if not pick(tensor, "latex"):
                findings.warn(
                    "tensorProperties.latex",
                    "No LaTeX representation provided",
                    "Add LaTeX for clear mathematical presentation",
                )
        elif data.thought_type in _TENSOR_THOUGHT_TYPES:
            findings.warn(
                "tensorProperties",
                f"{data.thought_type} typically involves tensor mathematics",
                "Consider adding tensorProperties for formal representation",
            )

        interpretation = data.get("physical_interpretation")
        if isinstance(interpretation, dict):
            if not pick(interpretation, "quantity"):
                findings.warn(
                    "physicalInterpretation.quantity",
                    "No physical quantity specified",
                    "Identify what physical quantity this represents",
                )
            if not pick(interpretation, "units"):
                findings.warn(
                    "physicalInterpretation.units",
                    "No units specified",
                    "Specify units for dimensional consistency",
                )
            if not as_list(pick(interpretation, "conservation_laws")):
                findings.warn(
                    "physicalInterpretation.conservationLaws",
                    "No conservation laws specified",
                    "Document relevant conservation laws (energy, momentum, charge, etc.)",
                )

        context = data.get("field_theory_context")
        if isinstance(context, dict):
            if not as_list(pick(context, "fields")):
                findings.warn(
                    "fieldTheoryContext.fields", "No fields specified", "List the fields involved"
                )
            if not pick(context, "symmetry_group"):
                findings.warn(
                    "fieldTheoryContext.symmetryGroup",
                    "No symmetry group specified",
                    "Identify the symmetry group (e.g., U(1), SU(2))",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> PhysicsThought:
        return PhysicsThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "symmetry_analysis"),
            tensor_properties=normalize_tensor(data.get("tensor_properties")),
            physical_interpretation=normalize_interpretation(data.get("physical_interpretation")),
            field_theory_context=normalize_field_theory(data.get("field_theory_context")),
            dependencies=as_str_list(data.get("dependencies")),
            assumptions=as_str_list(data.get("assumptions")),
            uncertainty=as_unit(data.get("uncertainty"), self.settings.default_uncertainty),
        )

    def get_enhancements(self, thought: PhysicsThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.MATHEMATICS, ThinkingMode.ENGINEERING, ThinkingMode.SYSTEMSTHINKING],
            mental_models=[
                "Tensor Analysis",
                "Conservation Principles",
                "Symmetry and Invariance",
                "Dimensional Analysis",
                "Lagrangian Mechanics",
            ],
            metrics={
                "dependency_count": len(thought.dependencies),
                "assumption_count": len(thought.assumptions),
                "uncertainty": thought.uncertainty,
            },
        )
        questions, suggestion = _PHYSICS_GUIDANCE.get(thought.thought_type, ((), None))
        enhancements.guiding_questions.extend(questions)
        if suggestion:
            enhancements.suggestions.append(suggestion)
        if thought.thought_type == "gauge_theory":
            enhancements.related_modes = [ThinkingMode.MATHEMATICS, ThinkingMode.FORMALLOGIC]
        elif thought.thought_type == "differential_geometry":
            enhancements.related_modes = [ThinkingMode.MATHEMATICS]

        tensor = thought.tensor_properties
        if tensor is not None:
            enhancements.metrics.update(
                tensor_rank=sum(tensor.rank),
                symmetry_count=len(tensor.symmetries),
                invariant_count=len(tensor.invariants),
            )
            if tensor.symmetries:
                noun = "symmetries" if len(tensor.symmetries) > 1 else "symmetry"
                enhancements.suggestions.append(
                    f"Tensor has {len(tensor.symmetries)} {noun}: {', '.join(tensor.symmetries[:3])}"
                )

        interpretation = thought.physical_interpretation
        if interpretation is not None:
            enhancements.metrics["conservation_law_count"] = len(interpretation.conservation_laws)
            if interpretation.conservation_laws:
                enhancements.suggestions.append(
                    f"Conservation laws: {', '.join(interpretation.conservation_laws)}"
                )
            if interpretation.constraints:
                enhancements.metrics["constraint_count"] = len(interpretation.constraints)

        context = thought.field_theory_context
        if context is not None:
            enhancements.metrics["field_count"] = len(context.fields)
            enhancements.metrics["interaction_count"] = len(context.interactions)
            if context.symmetry_group:
                enhancements.suggestions.append(f"Symmetry group: {context.symmetry_group}")

        if thought.uncertainty > 0.7:
            enhancements.warnings.append(
                "High uncertainty - consider reviewing assumptions or adding constraints"
            )
        return enhancements


# =============================================================================
# Hybrid
# =============================================================================

HYBRID_TYPES = (
    "mode_selection",
    "parallel_analysis",
    "sequential_analysis",
    "convergence_check",
    "synthesis",
    "confidence_assessment",
    "mode_switching",
)
SYNTHESIS_STRATEGIES = ("parallel", "sequential", "weighted")

_HYBRID_QUESTIONS: dict[str, tuple[str, ...]] = {
    "mode_selection": (
        "Which modes are most relevant for this problem?",
        "Are there complementary reasoning approaches to combine?",
        "What are the problem characteristics?",
    ),
    "parallel_analysis": (
        "What does each mode contribute?",
        "Are there conflicting conclusions?",
        "Which mode has the strongest evidence?",
    ),
    "sequential_analysis": (
        "What order should modes be applied?",
        "How does each mode build on previous insights?",
        "Are there dependencies between modes?",
    ),
    "convergence_check": (
        "Do multiple modes reach the same conclusion?",
        "Where do the modes disagree?",
        "What would increase confidence?",
    ),
    "synthesis": (
        "How can insights be combined?",
        "What is the synthesized conclusion?",
        "Does the synthesis preserve key insights from each mode?",
    ),
    "confidence_assessment": (
        "What is the overall confidence level?",
        "Which mode contributes most to confidence?",
        "Are there gaps that reduce confidence?",
    ),
    "mode_switching": (
        "Should we add or remove a mode?",
        "Is the current combination optimal?",
        "What would improve the analysis?",
    ),
}

_STRATEGY_MODELS = {
    "parallel": ("Independence", "Ensemble Methods"),
    "sequential": ("Bayesian Updating", "Evidence Chain"),
    "weighted": ("Expert Aggregation", "Delphi Method"),
}


@dataclass(frozen=True)
class ModeContribution:
    mode: ThinkingMode
    confidence: float = 0.5
    insights: list[str] = field(default_factory=list)
    evidence: list[str] = field(default_factory=list)
    agreement_with_others: float = 0.5

    @property
    def weighted_score(self) -> float:
        return self.confidence * (0.5 + self.agreement_with_others * 0.5)


@dataclass(frozen=True, kw_only=True)
class HybridThought(Thought):
    thought_type: str = "mode_selection"
    primary_mode: ThinkingMode = ThinkingMode.SEQUENTIAL
    secondary_features: list[str] = field(default_factory=list)
    switch_reason: str | None = None
    uncertainty: float = 0.5
    active_modes: list[ThinkingMode] = field(default_factory=list)
    mode_contributions: list[ModeContribution] = field(default_factory=list)
    convergence_status: Convergence | None = None
    problem_characteristics: ProblemCharacteristics | None = None
    selected_recommendations: list[ModeRecommendation] = field(default_factory=list)
    synthesis_strategy: str = "parallel"
    overall_confidence: float = 0.5


def resolve_sub_mode(value: Any) -> ThinkingMode:
    """Resolve a sub-mode tag; unknown tags fall back to sequential."""
    return ThinkingMode.resolve(as_str(value)) or ThinkingMode.SEQUENTIAL


def normalize_contribution(raw: dict[str, Any]) -> ModeContribution:
    return ModeContribution(
        mode=resolve_sub_mode(pick(raw, "mode", "sequential")),
        confidence=as_unit(pick(raw, "confidence")),
        insights=as_str_list(pick(raw, "insights")),
        evidence=as_str_list(pick(raw, "evidence")),
        agreement_with_others=as_unit(pick(raw, "agreement_with_others")),
    )


def primary_mode(contributions: list[ModeContribution], active: list[ThinkingMode]) -> ThinkingMode:
    """Mode with the highest agreement-weighted confidence; first wins ties."""
    if not contributions:
        return active[0] if active else ThinkingMode.SEQUENTIAL
    best = contributions[0]
    for contribution in contributions[1:]:
        if contribution.weighted_score > best.weighted_score:
            best = contribution
    return best.mode


class HybridHandler(ModeHandler):
    """Multi-modal synthesis over several reasoning modes.

    Sub-modes are recorded as data; the handler never invokes other handlers.
    """

    mode = ThinkingMode.HYBRID
    mode_name = "Hybrid Multi-Modal Reasoning"
    description = "Combines the top recommended modes through multi-modal synthesis"
    thought_types = HYBRID_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        findings.known_value(
            "synthesisStrategy", data.get("synthesis_strategy"), SYNTHESIS_STRATEGIES, "strategy"
        )

        if data.has("active_modes"):
            active = as_list(data.get("active_modes"))
            if len(active) < 2:
                findings.warn(
                    "activeModes",
                    "Hybrid mode typically uses 2+ modes",
                    "Add more modes for multi-modal synthesis",
                )
            elif len(active) > 5:
                findings.warn(
                    "activeModes",
                    f"Many active modes ({len(active)})",
                    "Consider focusing on 3-4 most relevant modes",
                )
            for tag in active:
                if ThinkingMode.resolve(as_str(tag)) is None:
                    findings.warn("activeModes", f"Unknown mode: {tag}", "Unknown modes count as sequential")

        for i, raw in enumerate(as_records(data.get("mode_contributions"))):
            findings.unit_interval(f"modeContributions[{i}].confidence", pick(raw, "confidence"), "Confidence")
            findings.unit_interval(
                f"modeContributions[{i}].agreementWithOthers",
                pick(raw, "agreement_with_others"),
                "Agreement",
            )

        status = as_dict(data.get("convergence_status"))
        current = as_float(pick(status, "current_confidence"))
        agreeing = as_int(pick(status, "modes_agreeing"))
        if (
            current is not None
            and agreeing is not None
            and current < self.settings.hybrid_target_confidence
            and agreeing < 2
        ):
            findings.warn(
                "convergenceStatus",
                "Low convergence - modes are not agreeing",
                "Review insights from each mode for consistency",
            )
        findings.unit_interval("overallConfidence", data.get("overall_confidence"), "Overall confidence")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> HybridThought:
        raw_characteristics = data.get("problem_characteristics")
        if isinstance(raw_characteristics, dict):
            characteristics = normalize_characteristics(raw_characteristics)
        else:
            characteristics = infer_characteristics(data.thought, data.total_thoughts)
        top = recommend_modes(characteristics)[:3]

        if data.has("active_modes"):
            active = [resolve_sub_mode(tag) for tag in as_list(data.get("active_modes"))]
        else:
            active = [r.mode for r in top]

        raw_contributions = as_records(data.get("mode_contributions"))
        if raw_contributions:
            contributions = [normalize_contribution(c) for c in raw_contributions]
        else:
            contributions = [ModeContribution(mode=m) for m in active]

        explicit = as_dict(data.get("convergence_status"))
        convergence = convergence_status(
            contributions,
            self.settings.hybrid_target_confidence,
            current_confidence=as_float(pick(explicit, "current_confidence")),
            modes_agreeing=as_int(pick(explicit, "modes_agreeing")),
            convergence_score=as_float(pick(explicit, "convergence_score")),
        )
        explicit_overall = as_float(data.get("overall_confidence"))
        if explicit_overall is None:
            overall = overall_confidence(contributions, convergence)
        else:
            overall = as_unit(explicit_overall)

        primary = primary_mode(contributions, active)
        secondary = as_str_list(data.get("secondary_features")) or [
            f"{m.value} reasoning" for m in active if m != primary
        ]
        strategy = as_str(data.get("synthesis_strategy"))
        return HybridThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "mode_selection"),
            primary_mode=primary,
            secondary_features=secondary,
            switch_reason=as_str(data.get("switch_reason")) or None,
            uncertainty=as_unit(data.get("uncertainty"), 1 - overall),
            active_modes=active,
            mode_contributions=contributions,
            convergence_status=convergence,
            problem_characteristics=characteristics,
            selected_recommendations=top,
            synthesis_strategy=strategy if strategy in SYNTHESIS_STRATEGIES else "parallel",
            overall_confidence=overall,
        )

    def get_enhancements(self, thought: HybridThought) -> ModeEnhancements:
        target = self.settings.hybrid_target_confidence
        convergence = thought.convergence_status or convergence_status(
            thought.mode_contributions, target
        )
        enhancements = ModeEnhancements(
            related_modes=[m for m in thought.active_modes if m != ThinkingMode.HYBRID],
            mental_models=[
                "Convergent Validation",
                "Multi-Modal Synthesis",
                "Triangulation",
                "Complementary Reasoning",
                "Confidence Aggregation",
                *_STRATEGY_MODELS.get(thought.synthesis_strategy, ()),
            ],
            metrics={
                "active_mode_count": len(thought.active_modes),
                "overall_confidence": thought.overall_confidence,
                "target_confidence": target,
                "convergence_score": convergence.convergence_score,
                "modes_agreeing": convergence.modes_agreeing,
            },
        )
        enhancements.suggestions.append(
            f"Active modes: {', '.join(m.value for m in thought.active_modes)}"
        )
        enhancements.suggestions.append(f"Strategy: {thought.synthesis_strategy}")
        enhancements.suggestions.append(
            f"Confidence: {thought.overall_confidence * 100:.1f}% / {target * 100:.0f}% target"
        )
        agreement = f"({convergence.modes_agreeing}/{convergence.total_modes} modes agree)"
        if convergence.achieved:
            enhancements.suggestions.append(f"Convergence achieved {agreement}")
        else:
            enhancements.warnings.append(f"Convergence not yet achieved {agreement}")

        for contribution in thought.mode_contributions:
            percent = f"{contribution.confidence * 100:.0f}%"
            if contribution.confidence > 0.7:
                enhancements.suggestions.append(f"{contribution.mode.value}: high confidence ({percent})")
            elif contribution.confidence < 0.4:
                enhancements.warnings.append(f"{contribution.mode.value}: low confidence ({percent})")

        enhancements.guiding_questions.extend(_HYBRID_QUESTIONS.get(thought.thought_type, ()))
        if thought.thought_type == "mode_selection":
            for rec in thought.selected_recommendations[:3]:
                enhancements.suggestions.append(
                    f"Recommended: {rec.mode.value} (score: {rec.score * 100:.0f}%)"
                )

        if thought.overall_confidence < target:
            gap = target - thought.overall_confidence
            if gap > 0.2:
                enhancements.suggestions.append("Consider adding another complementary mode")
            elif gap > 0.1:
                enhancements.suggestions.append("Focus on resolving mode disagreements")
            else:
                enhancements.suggestions.append("Strengthen evidence in highest-contributing mode")
        return enhancements
