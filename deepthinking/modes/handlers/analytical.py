"""Analytical modes: analogical, first principles, systems thinking,
scientific method and formal logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import duplicate_ids, find_cycles
from deepthinking.modes.types import (
    ErrorCode,
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
    clamp_unit,
    is_number,
    pick,
)

# =============================================================================
# Analogical
# =============================================================================

ANALOGICAL_TYPES = ("domain_definition", "mapping", "inference", "evaluation")
LOW_MAPPING_CONFIDENCE = 0.5


@dataclass(frozen=True)
class Entity:
    id: str
    name: str
    type: str = "unknown"
    description: str = ""


@dataclass(frozen=True)
class DomainRelation:
    id: str
    type: str
    from_entity: str = ""
    to_entity: str = ""


@dataclass(frozen=True)
class Domain:
    id: str
    name: str = ""
    description: str = ""
    entities: list[Entity] = field(default_factory=list)
    relations: list[DomainRelation] = field(default_factory=list)


@dataclass(frozen=True)
class EntityMapping:
    source_entity_id: str
    target_entity_id: str
    justification: str = ""
    confidence: float = 0.5


@dataclass(frozen=True)
class Insight:
    description: str
    source_evidence: str = ""
    target_application: str = ""
    novelty: float = 0.5


@dataclass(frozen=True)
class AnalogicalInference:
    source_pattern: str
    target_prediction: str = ""
    confidence: float = 0.5
    needs_verification: bool = False


@dataclass(frozen=True, kw_only=True)
class AnalogicalThought(Thought):
    thought_type: str = "mapping"
    source_domain: Domain
    target_domain: Domain
    mapping: list[EntityMapping] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)
    inferences: list[AnalogicalInference] = field(default_factory=list)
    limitations: list[str] = field(default_factory=list)
    analogy_strength: float = 0.0


def normalize_domain(raw: Any, side: str) -> Domain:
    """Domains accept bare-string entities and relations; ids default by position."""
    record = as_dict(raw)
    entities = []
    for i, item in enumerate(as_list(pick(record, "entities") or pick(record, "elements"))):
        if isinstance(item, str):
            entities.append(Entity(id=f"entity-{i}", name=item))
        elif isinstance(item, dict):
            entities.append(
                Entity(
                    id=as_str(pick(item, "id")) or f"entity-{i}",
                    name=as_str(pick(item, "name")),
                    type=as_str(pick(item, "type"), "unknown"),
                    description=as_str(pick(item, "description")),
                )
            )
    relations = []
    for i, item in enumerate(as_list(pick(record, "relations"))):
        if isinstance(item, str):
            relations.append(DomainRelation(id=f"relation-{i}", type=item))
        elif isinstance(item, dict):
            relations.append(
                DomainRelation(
                    id=as_str(pick(item, "id")) or f"relation-{i}",
                    type=as_str(pick(item, "type"), "related"),
                    from_entity=as_str(pick(item, "from")),
                    to_entity=as_str(pick(item, "to")),
                )
            )
    return Domain(
        id=as_str(pick(record, "id")) or f"{side}-domain",
        name=as_str(pick(record, "name")) or as_str(pick(record, "domain")),
        description=as_str(pick(record, "description")),
        entities=entities,
        relations=relations,
    )


def _raw_mappings(data: ThinkingInput) -> list[dict[str, Any]]:
    return as_records(data.get("mapping") or data.get("mappings"))


def average_confidence(mappings: list[EntityMapping]) -> float:
    return sum(m.confidence for m in mappings) / len(mappings) if mappings else 0.0


def analogy_strength(source: Domain, target: Domain, mappings: list[EntityMapping]) -> float:
    """Entity coverage times mean mapping confidence, boosted by a fifth and capped at 1."""
    if not mappings:
        return 0.0
    coverage = len(mappings) / max(len(source.entities) or 1, len(target.entities) or 1)
    return min(1.0, coverage * average_confidence(mappings) * 1.2)


def unmapped_entities(domain: Domain, mapped_ids: set[str]) -> list[str]:
    return [e.name for e in domain.entities if e.id not in mapped_ids]


class AnalogicalHandler(ModeHandler):
    """Cross-domain reasoning through structural mapping."""

    mode = ThinkingMode.ANALOGICAL
    mode_name = "Analogical Reasoning"
    description = "Cross-domain reasoning through structural mapping and analogy transfer"
    thought_types = ANALOGICAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        domains = (("Source", "source_domain", "source_analogy"), ("Target", "target_domain", "target_analogy"))
        for name, key, alias in domains:
            domain = as_dict(data.get(key) or data.get(alias))
            if not pick(domain, "name") and not pick(domain, "domain"):
                findings.warn(
                    "sourceDomain" if name == "Source" else "targetDomain",
                    f"{name} domain not fully specified",
                    f"Define the {name.lower()} domain with name, entities, and relations",
                )
        mappings = _raw_mappings(data)
        if not mappings:
            findings.warn(
                "mapping", "No explicit mappings provided", "Specify mappings between source and target entities"
            )
        for i, m in enumerate(mappings):
            findings.unit_interval(f"mapping[{i}].confidence", pick(m, "confidence"), "Mapping confidence")
        weak = [m for m in mappings if (as_float(pick(m, "confidence")) or 0.0) < LOW_MAPPING_CONFIDENCE]
        if weak:
            findings.warn(
                "mapping",
                f"{len(weak)} mapping(s) have low confidence",
                "Review and strengthen weak mappings or acknowledge limitations",
            )
        findings.unit_interval("analogyStrength", data.get("analogy_strength"), "Analogy strength")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> AnalogicalThought:
        source = normalize_domain(data.get("source_domain") or data.get("source_analogy"), "source")
        target = normalize_domain(data.get("target_domain") or data.get("target_analogy"), "target")
        mappings = [
            EntityMapping(
                source_entity_id=as_str(pick(m, "source_entity_id")) or as_str(pick(m, "source")),
                target_entity_id=as_str(pick(m, "target_entity_id")) or as_str(pick(m, "target")),
                justification=as_str(pick(m, "justification")),
                confidence=as_unit(pick(m, "confidence")),
            )
            for m in _raw_mappings(data)
        ]
        insights = []
        for item in as_list(data.get("insights") or data.get("inferred_properties")):
            if isinstance(item, str):
                insights.append(Insight(description=item))
            elif isinstance(item, dict):
                insights.append(
                    Insight(
                        description=as_str(pick(item, "description")),
                        source_evidence=as_str(pick(item, "source_evidence")),
                        target_application=as_str(pick(item, "target_application")),
                        novelty=as_unit(pick(item, "novelty")),
                    )
                )
        inferences = [
            AnalogicalInference(
                source_pattern=as_str(pick(i, "source_pattern")) or as_str(pick(i, "description")),
                target_prediction=as_str(pick(i, "target_prediction")) or as_str(pick(i, "based_on")),
                confidence=as_unit(pick(i, "confidence")),
                needs_verification=bool(as_bool(pick(i, "needs_verification"), bool(pick(i, "testability")))),
            )
            for i in as_records(data.get("inferences"))
        ]
        limitations = as_str_list(data.get("limitations"))
        if not data.has("limitations"):
            if any(m.confidence < LOW_MAPPING_CONFIDENCE for m in mappings):
                limitations.append("Some mappings have low confidence")
            if not mappings:
                limitations.append("No mappings defined - analogy is undefined")
        strength = data.get("analogy_strength")
        return AnalogicalThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "mapping"),
            source_domain=source,
            target_domain=target,
            mapping=mappings,
            insights=insights,
            inferences=inferences,
            limitations=limitations,
            analogy_strength=as_unit(strength) if is_number(strength) else analogy_strength(source, target, mappings),
        )

    def get_enhancements(self, thought: AnalogicalThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.ABDUCTIVE, ThinkingMode.INDUCTIVE, ThinkingMode.CAUSAL],
            mental_models=[
                "Structure Mapping Theory (Gentner)",
                "Analogical Transfer",
                "Surface vs. Structural Similarity",
                "Negative Transfer Awareness",
                "Multi-constraint Theory",
            ],
            guiding_questions=[
                "What structural relations are preserved across domains?",
                "Are there systematic mappings or just surface similarities?",
                "What aspects of the source domain DON'T transfer?",
                "What new inferences can be drawn from the analogy?",
                "Are there competing analogies that might be more appropriate?",
            ],
            metrics={
                "mapping_count": len(thought.mapping),
                "avg_confidence": average_confidence(thought.mapping),
                "source_entity_count": len(thought.source_domain.entities),
                "target_entity_count": len(thought.target_domain.entities),
                "insight_count": len(thought.insights),
                "inference_count": len(thought.inferences),
                "analogy_strength": thought.analogy_strength,
            },
        )
        if thought.source_domain.entities and thought.target_domain.entities:
            unmapped_source = unmapped_entities(thought.source_domain, {m.source_entity_id for m in thought.mapping})
            unmapped_target = unmapped_entities(thought.target_domain, {m.target_entity_id for m in thought.mapping})
            if unmapped_source:
                enhancements.suggestions.append(f"Consider mapping source entities: {', '.join(unmapped_source[:3])}")
            if unmapped_target:
                enhancements.suggestions.append(f"Target entities without mappings: {', '.join(unmapped_target[:3])}")
        if thought.analogy_strength < 0.5:
            enhancements.warnings.append("Low analogy strength - potential for negative transfer")
        return enhancements


# =============================================================================
# First principles
# =============================================================================

FIRSTPRINCIPLES_TYPES = ("question", "principle_identification", "derivation", "conclusion")
PRINCIPLE_TYPES = ("axiom", "definition", "observation", "logical_inference", "assumption")


@dataclass(frozen=True)
class Principle:
    id: str
    type: str
    statement: str
    justification: str = ""
    depends_on: list[str] = field(default_factory=list)
    confidence: float = 1.0


@dataclass(frozen=True)
class DerivationStep:
    step_number: int
    principle: str
    inference: str
    logical_form: str | None = None
    confidence: float = 1.0


@dataclass(frozen=True)
class FirstPrinciplesConclusion:
    statement: str = ""
    derivation_chain: list[int] = field(default_factory=list)
    certainty: float = 0.0
    limitations: list[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class FirstPrinciplesThought(Thought):
    thought_type: str = "principle_identification"
    question: str = ""
    principles: list[Principle] = field(default_factory=list)
    derivation_steps: list[DerivationStep] = field(default_factory=list)
    conclusion: FirstPrinciplesConclusion = field(default_factory=FirstPrinciplesConclusion)
    alternative_interpretations: list[str] = field(default_factory=list)


def derivation_certainty(steps: list[DerivationStep], principles: list[Principle]) -> float:
    """Weakest link: the lowest confidence among the steps and the principles they use."""
    by_id = {p.id: p for p in principles}
    values = [s.confidence for s in steps]
    values.extend(by_id[s.principle].confidence for s in steps if s.principle in by_id)
    return min(values) if values else 0.0


class FirstPrinciplesHandler(ModeHandler):
    """Derivation from fundamental principles."""

    mode = ThinkingMode.FIRSTPRINCIPLES
    mode_name = "First Principles"
    description = "Reasoning from fundamental truths through explicit derivation steps"
    thought_types = FIRSTPRINCIPLES_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if not as_str(data.get("question")).strip():
            findings.warn("question", "No question stated", "State the question to reason about from first principles")

        principles = as_records(data.get("principles"))
        ids = [as_str(pick(p, "id")) for p in principles]
        for dupe in duplicate_ids(ids):
            findings.warn("principles", f"Duplicate principle id: {dupe}")
        known = set(ids)
        dependencies = []
        for i, principle in enumerate(principles):
            findings.known_value(f"principles[{i}].type", pick(principle, "type"), PRINCIPLE_TYPES, "principle type")
            findings.unit_interval(f"principles[{i}].confidence", pick(principle, "confidence"))
            for dep in as_str_list(pick(principle, "depends_on")):
                if dep not in known:
                    findings.warn(f"principles[{i}].dependsOn", f"Principle depends on unknown principle: {dep}")
                dependencies.append((ids[i], dep))
        for cycle in find_cycles(ids, dependencies):
            findings.warn("principles", f"Circular principle dependency: {' -> '.join(cycle)}")
        assumptions = sum(1 for p in principles if pick(p, "type") == "assumption")
        if principles and assumptions == len(principles):
            findings.warn(
                "principles",
                "All principles are assumptions",
                "Ground the derivation in axioms, definitions or observations",
            )

        for i, step in enumerate(as_records(data.get("derivation_steps"))):
            ref = as_str(pick(step, "principle"))
            if ref and ref not in known:
                findings.warn(f"derivationSteps[{i}].principle", f"Derivation step uses unknown principle: {ref}")
            findings.unit_interval(f"derivationSteps[{i}].confidence", pick(step, "confidence"))

        conclusion = as_dict(data.get("conclusion"))
        findings.unit_interval("conclusion.certainty", pick(conclusion, "certainty"), "Conclusion certainty")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> FirstPrinciplesThought:
        principles = [
            Principle(
                id=as_str(pick(p, "id")) or self.ids("principle"),
                type=as_str(pick(p, "type"), "assumption"),
                statement=as_str(pick(p, "statement")),
                justification=as_str(pick(p, "justification")),
                depends_on=as_str_list(pick(p, "depends_on")),
                confidence=as_unit(pick(p, "confidence"), 1.0),
            )
            for p in as_records(data.get("principles"))
        ]
        steps = [
            DerivationStep(
                step_number=as_int(pick(s, "step_number"), i + 1) or i + 1,
                principle=as_str(pick(s, "principle")),
                inference=as_str(pick(s, "inference")),
                logical_form=as_str(pick(s, "logical_form")) or None,
                confidence=as_unit(pick(s, "confidence"), 1.0),
            )
            for i, s in enumerate(as_records(data.get("derivation_steps")))
        ]
        raw = as_dict(data.get("conclusion"))
        certainty = pick(raw, "certainty")
        conclusion = FirstPrinciplesConclusion(
            statement=as_str(pick(raw, "statement")) or (as_str(data.get("conclusion")) if not raw else ""),
            derivation_chain=[n for n in (as_int(v) for v in as_list(pick(raw, "derivation_chain"))) if n is not None]
            or [s.step_number for s in steps],
            certainty=as_unit(certainty) if is_number(certainty) else derivation_certainty(steps, principles),
            limitations=as_str_list(pick(raw, "limitations")),
        )
        return FirstPrinciplesThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "principle_identification"),
            question=as_str(data.get("question")),
            principles=principles,
            derivation_steps=steps,
            conclusion=conclusion,
            alternative_interpretations=as_str_list(data.get("alternative_interpretations")),
        )

    def get_enhancements(self, thought: FirstPrinciplesThought) -> ModeEnhancements:
        by_type = {kind: sum(1 for p in thought.principles if p.type == kind) for kind in PRINCIPLE_TYPES}
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.DEDUCTIVE, ThinkingMode.ANALOGICAL, ThinkingMode.MATHEMATICS],
            mental_models=[
                "Reductionism",
                "Axiomatic Method",
                "Socratic Decomposition",
                "Assumption Surfacing",
            ],
            guiding_questions=[
                "What do we know to be fundamentally true here?",
                "Which of these principles is actually an assumption?",
                "Does each derivation step follow from the principles it uses?",
            ],
            metrics={
                "principle_count": len(thought.principles),
                "derivation_step_count": len(thought.derivation_steps),
                "axiom_count": by_type["axiom"],
                "assumption_count": by_type["assumption"],
                "certainty": thought.conclusion.certainty,
            },
        )
        if not thought.principles:
            enhancements.suggestions.append("Identify the fundamental principles that bear on the question")
        elif not thought.derivation_steps:
            enhancements.suggestions.append("Derive conclusions step by step from the stated principles")
        if thought.derivation_steps and not thought.conclusion.statement:
            enhancements.suggestions.append("State the conclusion the derivation reaches")
        if by_type["assumption"]:
            enhancements.warnings.append(
                f"{by_type['assumption']} principle(s) are assumptions - conclusions inherit their uncertainty"
            )
        if thought.conclusion.statement and not thought.alternative_interpretations:
            enhancements.suggestions.append("Consider alternative interpretations of the conclusion")
        return enhancements


# =============================================================================
# Systems thinking
# =============================================================================

SYSTEMSTHINKING_TYPES = (
    "system_definition",
    "component_analysis",
    "feedback_identification",
    "leverage_analysis",
    "behavior_prediction",
)
LOOP_TYPES = ("reinforcing", "balancing")


@dataclass(frozen=True)
class Archetype:
    name: str
    warning_signs: tuple[str, ...]
    reinforcing: int
    balancing: int
    has_delay: bool


ARCHETYPES = (
    Archetype(
        "Fixes that Fail",
        (
            "Quick fixes that keep recurring",
            "Side effects appearing after solution",
            "Escalating interventions required",
        ),
        1, 1, True,
    ),
    Archetype(
        "Shifting the Burden",
        ("Increasing dependence on quick fixes", "Atrophying fundamental capabilities",
         "Growing gap between symptoms and root causes"),
        1, 2, True,
    ),
    Archetype(
        "Limits to Growth",
        ("Initial rapid growth", "Gradual slowdown despite continued effort", "Diminishing returns on investment"),
        1, 1, False,
    ),
    Archetype(
        "Success to the Successful",
        ("Winner-take-all dynamics", "Declining diversity of options", "Concentration of resources"),
        2, 0, False,
    ),
    Archetype(
        "Tragedy of the Commons",
        ("Declining shared resource", "Increasing individual consumption",
         "Rational individual behavior leading to collective harm"),
        1, 1, True,
    ),
    Archetype(
        "Escalation",
        ("Competitive actions and reactions", "Each side feeling justified", "Escalating intensity over time"),
        2, 0, False,
    ),
    Archetype(
        "Growth and Underinvestment",
        ("Quality declining with growth", "Deferred investment in capacity", "Performance standards lowered"),
        1, 2, True,
    ),
    Archetype(
        "Eroding Goals",
        ("Gradual lowering of standards", "Rationalization of declining performance",
         "Short-term pressure driving decisions"),
        1, 1, False,
    ),
)


@dataclass(frozen=True)
class SystemComponent:
    id: str
    name: str
    type: str = "variable"
    influenced_by: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedbackLoop:
    id: str
    type: str
    components: list[str] = field(default_factory=list)
    strength: float = 0.5
    delay: float = 0.0


@dataclass(frozen=True)
class LeveragePoint:
    location: str
    description: str = ""
    effectiveness: float = 0.5
    difficulty: float = 0.5


@dataclass(frozen=True)
class DetectedArchetype:
    name: str
    confidence: float
    warning_signs: list[str]


@dataclass(frozen=True, kw_only=True)
class SystemsThinkingThought(Thought):
    thought_type: str = "system_definition"
    system: dict[str, Any] | None = None
    components: list[SystemComponent] = field(default_factory=list)
    feedback_loops: list[FeedbackLoop] = field(default_factory=list)
    leverage_points: list[LeveragePoint] = field(default_factory=list)
    behaviors: list[Any] = field(default_factory=list)


def _signature_score(actual: int, expected: int) -> float:
    if actual == expected:
        return 0.4
    return 0.2 if abs(actual - expected) == 1 else 0.0


def detect_archetypes(loops: list[FeedbackLoop]) -> list[DetectedArchetype]:
    """Archetypes whose loop signature matches at 0.4 or better, strongest three first."""
    reinforcing = sum(1 for loop in loops if loop.type == "reinforcing")
    balancing = sum(1 for loop in loops if loop.type == "balancing")
    delayed = any(loop.delay > 0 for loop in loops)
    detected = []
    for archetype in ARCHETYPES:
        confidence = _signature_score(reinforcing, archetype.reinforcing)
        confidence += _signature_score(balancing, archetype.balancing)
        if delayed == archetype.has_delay:
            confidence += 0.2
        if confidence >= 0.4:
            detected.append(DetectedArchetype(archetype.name, min(confidence, 1.0), list(archetype.warning_signs)))
    detected.sort(key=lambda d: d.confidence, reverse=True)
    return detected[:3]


class SystemsThinkingHandler(ModeHandler):
    """Feedback loops, leverage points and archetype detection."""

    mode = ThinkingMode.SYSTEMSTHINKING
    mode_name = "Systems Thinking"
    description = "Systems analysis with archetype detection, feedback loops, and leverage point identification"
    thought_types = SYSTEMSTHINKING_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        components = as_records(data.get("components"))
        component_ids = {as_str(pick(c, "id")) for c in components} - {""}

        for i, component in enumerate(components):
            if not as_str(pick(component, "id")).strip():
                findings.warn(
                    f"components[{i}].id", "Component has no ID", "Add an ID to reference this component in loops"
                )
            if not as_str(pick(component, "name")).strip():
                findings.warn(f"components[{i}].name", "Component has no name", "Add a descriptive name")
            for ref in as_str_list(pick(component, "influenced_by")):
                if ref not in component_ids:
                    findings.error(
                        f"components[{i}].influencedBy",
                        f"References non-existent component: {ref}",
                        ErrorCode.INVALID_NODE_REF,
                    )

        for i, loop in enumerate(as_records(data.get("feedback_loops"))):
            if not as_str(pick(loop, "id")).strip():
                findings.warn(f"feedbackLoops[{i}].id", "Feedback loop has no ID", "Add an ID to track this loop")
            findings.known_value(f"feedbackLoops[{i}].type", pick(loop, "type"), LOOP_TYPES, "loop type")
            members = as_str_list(pick(loop, "components"))
            if not members:
                findings.warn(
                    f"feedbackLoops[{i}].components",
                    "Feedback loop has no components",
                    "Add components that form the feedback loop",
                )
            elif len(members) < 2:
                findings.warn(
                    f"feedbackLoops[{i}].components",
                    "Feedback loop has fewer than 2 components",
                    "A feedback loop needs at least 2 components to form a cycle",
                )
            for ref in members:
                if ref not in component_ids:
                    findings.error(
                        f"feedbackLoops[{i}].components",
                        f"Loop references non-existent component: {ref}",
                        ErrorCode.INVALID_NODE_REF,
                    )
            findings.unit_interval(f"feedbackLoops[{i}].strength", pick(loop, "strength"), "Loop strength")

        for i, point in enumerate(as_records(data.get("leverage_points"))):
            location = as_str(pick(point, "location")).strip()
            if not location:
                findings.warn(
                    f"leveragePoints[{i}].location",
                    "Leverage point has no location",
                    "Specify which component or loop this leverage point targets",
                )
            elif location not in component_ids:
                findings.warn(
                    f"leveragePoints[{i}].location",
                    f'Leverage point location "{location}" not found in components',
                    "Ensure the location references an existing component or loop",
                )
            findings.unit_interval(f"leveragePoints[{i}].effectiveness", pick(point, "effectiveness"), "Effectiveness")
            findings.unit_interval(f"leveragePoints[{i}].difficulty", pick(point, "difficulty"), "Difficulty")

        system = as_dict(data.get("system"))
        if system:
            if not as_str(pick(system, "boundary")).strip():
                findings.warn(
                    "system.boundary", "System has no boundary defined", "Define what is inside and outside the system"
                )
            if not as_str(pick(system, "purpose")).strip():
                findings.warn(
                    "system.purpose", "System has no purpose defined", "Define what the system is designed to achieve"
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> SystemsThinkingThought:
        return SystemsThinkingThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "system_definition"),
            system=as_dict(data.get("system")) or None,
            components=[
                SystemComponent(
                    id=as_str(pick(c, "id")) or self.ids("comp"),
                    name=as_str(pick(c, "name")),
                    type=as_str(pick(c, "type"), "variable"),
                    influenced_by=as_str_list(pick(c, "influenced_by")),
                )
                for c in as_records(data.get("components"))
            ],
            feedback_loops=[
                FeedbackLoop(
                    id=as_str(pick(loop, "id")) or self.ids("loop"),
                    type=as_str(pick(loop, "type"), "reinforcing"),
                    components=as_str_list(pick(loop, "components")),
                    strength=as_unit(pick(loop, "strength")),
                    delay=max(0.0, as_float(pick(loop, "delay"), 0.0) or 0.0),
                )
                for loop in as_records(data.get("feedback_loops"))
            ],
            leverage_points=[
                LeveragePoint(
                    location=as_str(pick(p, "location")),
                    description=as_str(pick(p, "description")),
                    effectiveness=as_unit(pick(p, "effectiveness")),
                    difficulty=as_unit(pick(p, "difficulty")),
                )
                for p in as_records(data.get("leverage_points"))
            ],
            behaviors=as_list(data.get("behaviors")),
        )

    def get_enhancements(self, thought: SystemsThinkingThought) -> ModeEnhancements:
        loops = thought.feedback_loops
        reinforcing = sum(1 for loop in loops if loop.type == "reinforcing")
        balancing = sum(1 for loop in loops if loop.type == "balancing")
        component_count = len(thought.components)
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.CAUSAL, ThinkingMode.OPTIMIZATION, ThinkingMode.SCIENTIFICMETHOD],
            mental_models=["Feedback Loops", "Stock and Flow", "Systems Archetypes", "Leverage Points", "Emergence"],
            metrics={
                "component_count": component_count,
                "feedback_loop_count": len(loops),
                "reinforcing_loops": reinforcing,
                "balancing_loops": balancing,
                "leverage_point_count": len(thought.leverage_points),
                "behavior_count": len(thought.behaviors),
            },
        )
        archetypes = detect_archetypes(loops) if loops else []
        if archetypes:
            enhancements.metrics["top_archetype"] = archetypes[0].name
        for archetype in archetypes:
            if archetype.confidence > 0.5:
                enhancements.suggestions.append(
                    f'Potential "{archetype.name}" archetype detected. Watch for: {archetype.warning_signs[0]}'
                )
        if component_count == 0:
            enhancements.suggestions.append("Define system components (stocks, flows, variables) to model the system")
        if component_count >= 2 and not loops:
            enhancements.suggestions.append("Identify feedback loops connecting your components")
        if reinforcing and not balancing:
            enhancements.warnings.append(
                "Only reinforcing loops detected. System may be unstable without balancing feedback."
            )
        if len(loops) >= 2 and not thought.leverage_points:
            enhancements.suggestions.append("Identify leverage points where small changes could have large effects")
        if thought.system is not None:
            enhancements.guiding_questions.append("What is the system optimizing for? Is that the intended goal?")
        if loops:
            enhancements.guiding_questions.append("Which feedback loop is currently dominant in the system behavior?")
        if any(loop.delay > 0 for loop in loops):
            enhancements.guiding_questions.append("How do delays in feedback affect system predictability?")
        if component_count >= 3 and not thought.behaviors:
            enhancements.guiding_questions.append(
                "What emergent behaviors arise from the interaction of these components?"
            )
        return enhancements


# =============================================================================
# Scientific method
# =============================================================================

SCIENTIFIC_TYPES = (
    "question_formulation",
    "hypothesis_generation",
    "experiment_design",
    "data_collection",
    "analysis",
    "conclusion",
)
MIN_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class ScientificHypothesis:
    id: str
    statement: str
    testable: bool = False
    falsifiable: bool = False
    null_hypothesis: str | None = None


@dataclass(frozen=True)
class Experiment:
    design: str = ""
    controls: list[str] = field(default_factory=list)
    sample_size: int | None = None
    variables: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class ScientificMethodThought(Thought):
    thought_type: str = "question_formulation"
    research_question: str | None = None
    scientific_hypotheses: list[ScientificHypothesis] = field(default_factory=list)
    experiment: Experiment | None = None
    data: Any = None
    analysis: Any = None
    conclusion: Any = None

    @property
    def stage_reached(self) -> str:
        """Furthest stage with content, in method order."""
        stages = (
            ("conclusion", self.conclusion),
            ("analysis", self.analysis),
            ("data_collection", self.data),
            ("experiment_design", self.experiment),
            ("hypothesis_generation", self.scientific_hypotheses),
            ("question_formulation", self.research_question),
        )
        return next((name for name, value in stages if value), "none")


def _short(statement: str) -> str:
    return f"{statement[:30]}..."


class ScientificMethodHandler(ModeHandler):
    """Hypothesis testing with experimental design checks."""

    mode = ThinkingMode.SCIENTIFICMETHOD
    mode_name = "Scientific Method"
    description = "Hypothesis testing with experimental design and falsifiability analysis"
    thought_types = SCIENTIFIC_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if not data.get("research_question"):
            findings.warn("researchQuestion", "No research question defined", "Formulate a clear research question")
        hypotheses = as_records(data.get("scientific_hypotheses"))
        if not hypotheses:
            findings.warn(
                "scientificHypotheses",
                "No hypotheses defined",
                "Formulate testable hypotheses based on your research question",
            )
        for hypothesis in hypotheses:
            label = _short(as_str(pick(hypothesis, "statement")))
            if not as_bool(pick(hypothesis, "testable")):
                findings.warn(
                    "scientificHypotheses",
                    f'Hypothesis "{label}" may not be testable',
                    "Ensure hypotheses are empirically testable",
                )
            if not as_bool(pick(hypothesis, "falsifiable")):
                findings.warn(
                    "scientificHypotheses",
                    f'Hypothesis "{label}" may not be falsifiable',
                    "Ensure hypotheses can be proven false",
                )
        experiment = as_dict(data.get("experiment"))
        if experiment:
            if not as_list(pick(experiment, "controls")):
                findings.warn(
                    "experiment.controls",
                    "No control conditions specified",
                    "Define control conditions for valid comparison",
                )
            if (as_int(pick(experiment, "sample_size")) or 0) < MIN_SAMPLE_SIZE:
                findings.warn(
                    "experiment.sampleSize",
                    "Sample size may be insufficient",
                    "Consider power analysis for adequate sample size",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ScientificMethodThought:
        raw_experiment = as_dict(data.get("experiment"))
        experiment = (
            Experiment(
                design=as_str(pick(raw_experiment, "design")),
                controls=as_str_list(pick(raw_experiment, "controls")),
                sample_size=as_int(pick(raw_experiment, "sample_size")),
                variables=as_dict(pick(raw_experiment, "variables")),
            )
            if raw_experiment
            else None
        )
        return ScientificMethodThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "question_formulation"),
            research_question=as_str(data.get("research_question")) or None,
            scientific_hypotheses=[
                ScientificHypothesis(
                    id=as_str(pick(h, "id")) or self.ids("hyp"),
                    statement=as_str(pick(h, "statement")),
                    testable=bool(as_bool(pick(h, "testable"), False)),
                    falsifiable=bool(as_bool(pick(h, "falsifiable"), False)),
                    null_hypothesis=as_str(pick(h, "null_hypothesis")) or None,
                )
                for h in as_records(data.get("scientific_hypotheses"))
            ],
            experiment=experiment,
            data=data.get("data"),
            analysis=data.get("analysis"),
            conclusion=data.get("conclusion"),
        )

    def get_enhancements(self, thought: ScientificMethodThought) -> ModeEnhancements:
        hypotheses = thought.scientific_hypotheses
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.ABDUCTIVE, ThinkingMode.INDUCTIVE, ThinkingMode.BAYESIAN],
            mental_models=[
                "Popperian Falsificationism",
                "Hypothetico-Deductive Method",
                "Control Variables",
                "Reproducibility",
                "Statistical Significance",
                "Null Hypothesis Testing",
            ],
            guiding_questions=[
                "What would falsify this hypothesis?",
                "Are there confounding variables to control for?",
                "Is the experiment reproducible by others?",
                "What is the null hypothesis?",
                "How large a sample size is needed for significance?",
                "Are there alternative hypotheses that explain the same observations?",
            ],
            metrics={
                "hypothesis_count": len(hypotheses),
                "has_research_question": 1 if thought.research_question else 0,
                "has_experiment": 1 if thought.experiment is not None else 0,
                "has_data": 1 if thought.data else 0,
                "has_analysis": 1 if thought.analysis else 0,
                "has_conclusion": 1 if thought.conclusion else 0,
                "stage_reached": thought.stage_reached,
            },
        )
        if not thought.research_question:
            enhancements.suggestions.append("Start by formulating a clear research question")
        elif not hypotheses:
            enhancements.suggestions.append("Derive specific, testable hypotheses from your research question")
        elif thought.experiment is None:
            enhancements.suggestions.append("Design an experiment to test your hypotheses")
        elif not thought.data:
            enhancements.suggestions.append("Collect data according to your experimental design")
        elif not thought.analysis:
            enhancements.suggestions.append("Analyze data using appropriate statistical methods")
        elif not thought.conclusion:
            enhancements.suggestions.append("Draw conclusions based on your analysis results")
        return enhancements


# =============================================================================
# Formal logic
# =============================================================================

FORMALLOGIC_TYPES = (
    "proposition_definition",
    "inference_derivation",
    "proof_construction",
    "satisfiability_check",
    "validity_verification",
)
PROPOSITION_TYPES = ("atomic", "compound")
PROOF_TECHNIQUES = ("direct", "contradiction", "contrapositive", "cases", "induction", "natural_deduction")
MAX_TRUTH_TABLE_VARIABLES = 10


@dataclass(frozen=True)
class Proposition:
    id: str
    symbol: str
    statement: str = ""
    type: str = "atomic"
    truth_value: bool | None = None


@dataclass(frozen=True)
class LogicalInference:
    id: str
    rule: str
    premises: list[str] = field(default_factory=list)
    conclusion: str = ""
    valid: bool = False


@dataclass(frozen=True)
class ProofStep:
    step_number: int
    statement: str
    justification: str = ""
    rule: str | None = None
    references_steps: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class LogicalProof:
    theorem: str
    technique: str = "direct"
    steps: list[ProofStep] = field(default_factory=list)
    conclusion: str = ""
    valid: bool = False
    completeness: float = 0.0


@dataclass(frozen=True)
class TruthTable:
    variables: list[str]
    rows: list[dict[str, bool]] = field(default_factory=list)
    is_tautology: bool = False
    is_contradiction: bool = False

    @property
    def is_contingent(self) -> bool:
        return not self.is_tautology and not self.is_contradiction


@dataclass(frozen=True, kw_only=True)
class FormalLogicThought(Thought):
    thought_type: str = "proposition_definition"
    propositions: list[Proposition] = field(default_factory=list)
    logical_inferences: list[LogicalInference] = field(default_factory=list)
    proof: LogicalProof | None = None
    truth_table: TruthTable | None = None
    satisfiability: dict[str, Any] | None = None


def _step_refs(record: dict[str, Any]) -> list[int]:
    return [n for n in (as_int(r) for r in as_list(pick(record, "references_steps"))) if n is not None]


def forward_step_references(steps: list[ProofStep]) -> list[tuple[int, int]]:
    """(step, reference) pairs where a step cites itself or a later step."""
    return [(s.step_number, ref) for s in steps for ref in s.references_steps if ref >= s.step_number]


def truth_table_assignments(variables: list[str]) -> list[dict[str, bool]]:
    """Every assignment of the variables, all-true first."""
    if len(variables) > MAX_TRUTH_TABLE_VARIABLES:
        return []
    return [dict(zip(variables, values, strict=True)) for values in product((True, False), repeat=len(variables))]


def normalize_truth_table(raw: dict[str, Any]) -> TruthTable:
    """Rows are kept as given; with no rows, every assignment is listed and
    the tautology/contradiction flags are taken from the caller."""
    variables = as_str_list(pick(raw, "variables"))
    rows = []
    results = []
    for row in as_records(pick(raw, "rows")):
        assignment = as_dict(pick(row, "assignment")) or {k: v for k, v in row.items() if k in variables}
        rows.append({str(k): bool(v) for k, v in assignment.items()})
        result = as_bool(pick(row, "result"))
        if result is not None:
            results.append(result)
    if not rows:
        rows = truth_table_assignments(variables)
    if results and len(results) == len(rows):
        tautology, contradiction = all(results), not any(results)
    else:
        tautology = bool(as_bool(pick(raw, "is_tautology"), False))
        contradiction = bool(as_bool(pick(raw, "is_contradiction"), False))
    return TruthTable(variables=variables, rows=rows, is_tautology=tautology, is_contradiction=contradiction)


class FormalLogicHandler(ModeHandler):
    """Propositional logic: propositions, inference rules, proofs and truth tables."""

    mode = ThinkingMode.FORMALLOGIC
    mode_name = "Formal Logic"
    description = "Propositional and predicate logic with proof checking and truth tables"
    thought_types = FORMALLOGIC_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        propositions = as_records(data.get("propositions"))
        ids = [as_str(pick(p, "id")) for p in propositions]
        symbols = [as_str(pick(p, "symbol")) for p in propositions]
        for dupe in duplicate_ids(symbols):
            findings.warn("propositions", f"Duplicate proposition symbol: {dupe}")
        for i, proposition in enumerate(propositions):
            findings.known_value(
                f"propositions[{i}].type", pick(proposition, "type"), PROPOSITION_TYPES, "proposition type"
            )
        known = set(ids) | set(symbols)
        for i, inference in enumerate(as_records(data.get("logical_inferences"))):
            for ref in as_str_list(pick(inference, "premises")):
                if ref not in known:
                    findings.warn(
                        f"logicalInferences[{i}].premises", f"Inference references unknown proposition: {ref}"
                    )
            if not as_str(pick(inference, "rule")).strip():
                findings.warn(
                    f"logicalInferences[{i}].rule", "Inference has no rule", "Name the rule of inference applied"
                )

        proof = as_dict(data.get("proof"))
        if proof:
            findings.known_value("proof.technique", pick(proof, "technique"), PROOF_TECHNIQUES, "proof technique")
            findings.unit_interval("proof.completeness", pick(proof, "completeness"), "Proof completeness")
            steps = [
                ProofStep(
                    step_number=as_int(pick(s, "step_number"), i + 1) or i + 1,
                    statement=as_str(pick(s, "statement")),
                    references_steps=_step_refs(s),
                )
                for i, s in enumerate(as_records(pick(proof, "steps")))
            ]
            for step, ref in forward_step_references(steps):
                findings.warn("proof.steps", f"Step {step} references step {ref}, which does not precede it")
            if not steps:
                findings.warn("proof.steps", "Proof has no steps", "Add the steps that establish the theorem")

        table = as_dict(data.get("truth_table"))
        if table:
            if as_bool(pick(table, "is_tautology")) and as_bool(pick(table, "is_contradiction")):
                findings.warn("truthTable", "Formula cannot be both a tautology and a contradiction")
            if len(as_list(pick(table, "variables"))) > MAX_TRUTH_TABLE_VARIABLES:
                findings.warn(
                    "truthTable.variables",
                    f"More than {MAX_TRUTH_TABLE_VARIABLES} variables; truth table is too large to enumerate",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> FormalLogicThought:
        propositions = [
            Proposition(
                id=as_str(pick(p, "id")) or self.ids("prop"),
                symbol=as_str(pick(p, "symbol")),
                statement=as_str(pick(p, "statement")),
                type=as_str(pick(p, "type"), "atomic"),
                truth_value=as_bool(pick(p, "truth_value")),
            )
            for p in as_records(data.get("propositions"))
        ]
        inferences = [
            LogicalInference(
                id=as_str(pick(i, "id")) or self.ids("inf"),
                rule=as_str(pick(i, "rule")),
                premises=as_str_list(pick(i, "premises")),
                conclusion=as_str(pick(i, "conclusion")),
                valid=bool(as_bool(pick(i, "valid"), False)),
            )
            for i in as_records(data.get("logical_inferences"))
        ]
        raw_proof = as_dict(data.get("proof"))
        proof = None
        if raw_proof:
            steps = [
                ProofStep(
                    step_number=as_int(pick(s, "step_number"), i + 1) or i + 1,
                    statement=as_str(pick(s, "statement")),
                    justification=as_str(pick(s, "justification")),
                    rule=as_str(pick(s, "rule")) or None,
                    references_steps=_step_refs(s),
                )
                for i, s in enumerate(as_records(pick(raw_proof, "steps")))
            ]
            proof = LogicalProof(
                theorem=as_str(pick(raw_proof, "theorem")),
                technique=as_str(pick(raw_proof, "technique"), "direct"),
                steps=steps,
                conclusion=as_str(pick(raw_proof, "conclusion")),
                valid=bool(as_bool(pick(raw_proof, "valid"), False)),
                completeness=clamp_unit(as_float(pick(raw_proof, "completeness"), 0.0) or 0.0),
            )
        raw_table = as_dict(data.get("truth_table"))
        return FormalLogicThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "proposition_definition"),
            propositions=propositions,
            logical_inferences=inferences,
            proof=proof,
            truth_table=normalize_truth_table(raw_table) if raw_table else None,
            satisfiability=as_dict(data.get("satisfiability")) or None,
        )

    def get_enhancements(self, thought: FormalLogicThought) -> ModeEnhancements:
        proof = thought.proof
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.DEDUCTIVE, ThinkingMode.MATHEMATICS, ThinkingMode.MODAL],
            mental_models=["Natural Deduction", "Truth Tables", "Propositional Calculus", "Soundness and Completeness"],
            guiding_questions=[
                "Does each step follow by a named rule from earlier steps?",
                "Is the formula satisfiable, valid, or neither?",
            ],
            metrics={
                "proposition_count": len(thought.propositions),
                "inference_count": len(thought.logical_inferences),
                "valid_inference_count": sum(1 for i in thought.logical_inferences if i.valid),
                "proof_step_count": len(proof.steps) if proof is not None else 0,
                "proof_completeness": proof.completeness if proof is not None else 0.0,
            },
        )
        if thought.truth_table is not None:
            table = thought.truth_table
            enhancements.metrics["truth_table_rows"] = len(table.rows)
            enhancements.metrics["classification"] = (
                "tautology" if table.is_tautology else "contradiction" if table.is_contradiction else "contingent"
            )
        if not thought.propositions:
            enhancements.suggestions.append("Define the atomic propositions and their symbols")
        if thought.logical_inferences and not any(i.valid for i in thought.logical_inferences):
            enhancements.warnings.append("No inference has been marked valid")
        if proof is not None:
            if proof.completeness < 0.5:
                enhancements.warnings.append("Proof is less than half complete")
            if forward_step_references(proof.steps):
                enhancements.warnings.append("Proof steps reference steps that do not precede them")
            if not proof.valid and proof.completeness >= 1.0:
                enhancements.suggestions.append("Proof is complete - verify each step to mark it valid")
        return enhancements
