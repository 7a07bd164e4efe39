"""Causal and probabilistic modes.

Causal graphs, temporal event networks, Bayesian updating, Dempster-Shafer
evidence combination and counterfactual scenarios. Cross-references in
causal edges, interventions and temporal relations must resolve; everything
else is reported as a warning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import (
    CAUSAL_NODE_TYPES,
    MECHANISM_TYPES,
    TEMPORAL_RELATION_TYPES,
    classify_nodes,
    constraint_density,
    dangling_event_refs,
    duplicate_ids,
    entry_nodes,
    exit_nodes,
    find_cycles,
    graph_density,
    is_over_constrained,
    is_under_constrained,
    temporal_contradictions,
)
from deepthinking.modes.scoring import (
    MassFunction,
    bayes_factor,
    bayes_factor_strength,
    belief,
    combine_dempster,
    mass_total,
    plausibility,
    posterior_confidence,
    sequential_posterior,
)
from deepthinking.modes.types import (
    ErrorCode,
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
    as_list,
    as_records,
    as_signed_unit,
    as_str,
    as_str_list,
    as_unit,
    is_number,
    pick,
)

# =============================================================================
# Causal
# =============================================================================

CAUSAL_TYPES = (
    "problem_definition",
    "causal_graph_construction",
    "intervention_analysis",
    "counterfactual_analysis",
    "confounder_identification",
    "mechanism_discovery",
)


@dataclass(frozen=True)
class CausalNode:
    id: str
    name: str
    type: str | None = None
    description: str = ""


@dataclass(frozen=True)
class CausalEdge:
    from_node: str
    to_node: str
    strength: float = 0.5
    confidence: float = 0.5


@dataclass(frozen=True)
class CausalGraph:
    nodes: list[CausalNode] = field(default_factory=list)
    edges: list[CausalEdge] = field(default_factory=list)

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    @property
    def edge_pairs(self) -> list[tuple[str, str]]:
        return [(e.from_node, e.to_node) for e in self.edges]


@dataclass(frozen=True)
class Mechanism:
    from_node: str
    to_node: str
    type: str = "direct"
    description: str = ""


@dataclass(frozen=True)
class Confounder:
    node_id: str
    affects: list[str] = field(default_factory=list)
    description: str = ""


@dataclass(frozen=True)
class ExpectedEffect:
    node_id: str
    expected_change: str = ""
    confidence: float = 0.5


@dataclass(frozen=True)
class Intervention:
    node_id: str
    action: str = ""
    expected_effects: list[ExpectedEffect] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class CausalThought(Thought):
    thought_type: str = "problem_definition"
    causal_graph: CausalGraph = field(default_factory=CausalGraph)
    mechanisms: list[Mechanism] = field(default_factory=list)
    confounders: list[Confounder] = field(default_factory=list)
    interventions: list[Intervention] = field(default_factory=list)


def _endpoints(record: dict[str, Any], source: str, target: str) -> tuple[str, str]:
    """Read an edge's endpoints under their long or short key names."""
    return (
        as_str(pick(record, source, pick(record, "from", pick(record, "source")))),
        as_str(pick(record, target, pick(record, "to", pick(record, "target")))),
    )


def _raw_graph(data: ThinkingInput) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    graph = as_dict(data.get("causal_graph"))
    nodes = pick(graph, "nodes", data.get("nodes"))
    edges = pick(graph, "edges", data.get("edges"))
    return as_records(nodes), as_records(edges)


def normalize_causal_graph(nodes: list[dict[str, Any]], edges: list[dict[str, Any]]) -> CausalGraph:
    """Build a graph; unknown node types are kept as unclassified."""
    return CausalGraph(
        nodes=[
            CausalNode(
                id=as_str(pick(n, "id")),
                name=as_str(pick(n, "name")) or as_str(pick(n, "id")),
                type=as_str(pick(n, "type")) if pick(n, "type") in CAUSAL_NODE_TYPES else None,
                description=as_str(pick(n, "description")),
            )
            for n in nodes
        ],
        edges=[
            CausalEdge(
                *_endpoints(e, "from_node", "to_node"),
                strength=as_signed_unit(pick(e, "strength"), 0.5),
                confidence=as_unit(pick(e, "confidence")),
            )
            for e in edges
        ],
    )


def normalize_interventions(raw: Any) -> list[Intervention]:
    interventions = []
    for item in as_records(raw):
        effects = [
            ExpectedEffect(
                node_id=as_str(pick(effect, "node_id")),
                expected_change=as_str(pick(effect, "expected_change")),
                confidence=as_unit(pick(effect, "confidence")),
            )
            for effect in as_records(pick(item, "expected_effects"))
        ]
        interventions.append(
            Intervention(
                node_id=as_str(pick(item, "node_id")),
                action=as_str(pick(item, "action")),
                expected_effects=effects,
            )
        )
    return interventions


class CausalHandler(ModeHandler):
    """Cause-and-effect graphs with mediator and confounder roles."""

    mode = ThinkingMode.CAUSAL
    mode_name = "Causal Analysis"
    description = "Causal graphs, interventions and confounder identification"
    thought_types = CAUSAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        nodes, edges = _raw_graph(data)
        node_ids = [as_str(pick(n, "id")) for n in nodes]
        known = set(node_ids)

        for node_id in duplicate_ids(node_ids):
            findings.warn("causalGraph.nodes", f"Duplicate node id: {node_id}", "Give every node a unique id")
        for i, node in enumerate(nodes):
            findings.known_value(f"causalGraph.nodes[{i}].type", pick(node, "type"), CAUSAL_NODE_TYPES, "node type")

        pairs = []
        for i, edge in enumerate(edges):
            source, target = _endpoints(edge, "from_node", "to_node")
            if source not in known:
                findings.error(
                    f"causalGraph.edges[{i}]",
                    f"Edge references non-existent source node: {source}",
                    ErrorCode.INVALID_NODE_REF,
                )
            if target not in known:
                findings.error(
                    f"causalGraph.edges[{i}]",
                    f"Edge references non-existent target node: {target}",
                    ErrorCode.INVALID_NODE_REF,
                )
            findings.signed_unit_interval(f"causalGraph.edges[{i}].strength", pick(edge, "strength"), "Edge strength")
            findings.unit_interval(f"causalGraph.edges[{i}].confidence", pick(edge, "confidence"), "Edge confidence")
            pairs.append((source, target))

        self_loops = [s for s, t in pairs if s == t]
        if self_loops:
            findings.warn(
                "causalGraph.edges",
                f"{len(self_loops)} self-loop(s) detected: {', '.join(self_loops)}",
                "A variable rarely causes itself directly; model feedback through other nodes",
            )
        cycles = [c for c in find_cycles(node_ids, pairs) if len(c) > 2]
        if cycles:
            listed = "; ".join(" -> ".join(c) for c in cycles)
            findings.warn(
                "causalGraph",
                f"Detected {len(cycles)} cycle(s) in causal graph: {listed}",
                "Causal DAGs should be acyclic; consider time-indexed variables for feedback",
            )

        for i, intervention in enumerate(as_records(data.get("interventions"))):
            node_id = as_str(pick(intervention, "node_id"))
            if node_id not in known:
                findings.error(
                    f"interventions[{i}].nodeId",
                    f"Intervention targets non-existent node: {node_id}",
                    ErrorCode.INVALID_NODE_REF,
                )
            for j, effect in enumerate(as_records(pick(intervention, "expected_effects"))):
                effect_node = as_str(pick(effect, "node_id"))
                if effect_node not in known:
                    findings.error(
                        f"interventions[{i}].expectedEffects[{j}]",
                        f"Expected effect references non-existent node: {effect_node}",
                        ErrorCode.INVALID_NODE_REF,
                    )

        for i, mechanism in enumerate(as_records(data.get("mechanisms"))):
            findings.known_value(f"mechanisms[{i}].type", pick(mechanism, "type"), MECHANISM_TYPES, "mechanism type")
            for ref in _endpoints(mechanism, "from_node", "to_node"):
                if ref and ref not in known:
                    findings.warn(f"mechanisms[{i}]", f"Mechanism references unknown node: {ref}")
        confounders = as_records(data.get("confounders"))
        for i, confounder in enumerate(confounders):
            for ref in [as_str(pick(confounder, "node_id")), *as_str_list(pick(confounder, "affects"))]:
                if ref and ref not in known:
                    findings.warn(f"confounders[{i}]", f"Confounder references unknown node: {ref}")
        declared_confounders = [n for n in nodes if pick(n, "type") == "confounder"]
        if len(nodes) >= 3 and not confounders and not declared_confounders:
            findings.warn(
                "confounders",
                "No confounders specified in the causal model",
                "Consider variables that influence both cause and effect",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> CausalThought:
        nodes, edges = _raw_graph(data)
        return CausalThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_definition"),
            causal_graph=normalize_causal_graph(nodes, edges),
            mechanisms=[
                Mechanism(
                    *_endpoints(m, "from_node", "to_node"),
                    type=as_str(pick(m, "type")) if pick(m, "type") in MECHANISM_TYPES else "direct",
                    description=as_str(pick(m, "description")),
                )
                for m in as_records(data.get("mechanisms"))
            ],
            confounders=[
                Confounder(
                    node_id=as_str(pick(c, "node_id")),
                    affects=as_str_list(pick(c, "affects")),
                    description=as_str(pick(c, "description")),
                )
                for c in as_records(data.get("confounders"))
            ],
            interventions=normalize_interventions(data.get("interventions")),
        )

    def get_enhancements(self, thought: CausalThought) -> ModeEnhancements:
        graph = thought.causal_graph
        node_ids = graph.node_ids
        pairs = graph.edge_pairs
        names = {n.id: n.name or n.id for n in graph.nodes}
        roles = classify_nodes((n.id, n.type) for n in graph.nodes)
        cycles = [c for c in find_cycles(node_ids, pairs) if len(c) > 2]
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.BAYESIAN, ThinkingMode.COUNTERFACTUAL],
            mental_models=["Causal Diagrams", "Do-Calculus", "Structural Equation Models"],
            metrics={
                "node_count": len(graph.nodes),
                "edge_count": len(graph.edges),
                "density": graph_density(len(graph.nodes), len(graph.edges)),
                "cause_count": len(roles.causes),
                "effect_count": len(roles.effects),
                "mediator_count": len(roles.mediators),
                "confounder_count": len(roles.confounders) + len(thought.confounders),
                "cycle_count": len(cycles),
                "intervention_count": len(thought.interventions),
            },
        )
        if graph.nodes and not graph.edges:
            enhancements.suggestions.append("Add edges to describe how the variables influence each other")
        elif len(graph.edges) > 2 * len(graph.nodes):
            enhancements.suggestions.append(
                "Graph is dense - check whether every edge reflects a direct causal effect"
            )
        if roles.mediators:
            mediators = ", ".join(names.get(m, m) for m in roles.mediators)
            enhancements.suggestions.append(f"Mediators: {mediators}")
        if roles.confounders:
            confounders = ", ".join(names.get(c, c) for c in roles.confounders)
            enhancements.suggestions.append(f"Confounders to control for: {confounders}")
        if cycles:
            enhancements.warnings.append(f"Causal graph contains {len(cycles)} cycle(s)")

        if pairs:
            for node in entry_nodes(node_ids, pairs)[:3]:
                enhancements.guiding_questions.append(
                    f"What drives {names.get(node, node)}, or is it truly exogenous?"
                )
            for node in exit_nodes(node_ids, pairs)[:3]:
                enhancements.guiding_questions.append(
                    f"Does {names.get(node, node)} have downstream consequences not yet modeled?"
                )
        if not thought.interventions:
            enhancements.guiding_questions.append("What would happen if you intervened on a key cause?")
        if not thought.confounders and not roles.confounders:
            enhancements.guiding_questions.append("Which unobserved variables could affect both cause and effect?")
        return enhancements


# =============================================================================
# Temporal
# =============================================================================

TEMPORAL_TYPES = (
    "event_definition",
    "interval_analysis",
    "temporal_constraint",
    "sequence_construction",
    "causality_timeline",
)
EVENT_TYPES = ("instant", "interval")
CONSTRAINT_TYPES = ("before", "after", "during", "overlaps", "equals", "meets")


@dataclass(frozen=True)
class TemporalEvent:
    id: str
    name: str
    timestamp: float = 0.0
    duration: float | None = None
    type: str = "instant"
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TemporalRelation:
    id: str
    from_event: str
    to_event: str
    relation_type: str
    strength: float = 1.0
    delay: float | None = None


@dataclass(frozen=True)
class TemporalConstraint:
    id: str
    type: str
    subject: str
    object: str
    confidence: float = 1.0


@dataclass(frozen=True)
class TemporalInterval:
    id: str
    name: str
    start: float
    end: float
    contains: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Timeline:
    id: str
    name: str
    time_unit: str = "seconds"
    events: list[str] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None


@dataclass(frozen=True, kw_only=True)
class TemporalThought(Thought):
    thought_type: str = "event_definition"
    timeline: Timeline | None = None
    events: list[TemporalEvent] = field(default_factory=list)
    intervals: list[TemporalInterval] = field(default_factory=list)
    constraints: list[TemporalConstraint] = field(default_factory=list)
    relations: list[TemporalRelation] = field(default_factory=list)


def _relation_endpoints(record: dict[str, Any]) -> tuple[str, str, str]:
    source, target = _endpoints(record, "from_event", "to_event")
    relation_type = as_str(pick(record, "relation_type", pick(record, "type")))
    return source, target, relation_type


def normalize_events(raw: Any, ids: IdGenerator) -> list[TemporalEvent]:
    events = []
    for item in as_records(raw):
        duration = as_float(pick(item, "duration"))
        event_type = pick(item, "type")
        if event_type not in EVENT_TYPES:
            event_type = "interval" if duration else "instant"
        events.append(
            TemporalEvent(
                id=as_str(pick(item, "id")) or ids("event"),
                name=as_str(pick(item, "name")),
                timestamp=as_float(pick(item, "timestamp"), 0.0) or 0.0,
                duration=duration,
                type=event_type,
                properties=as_dict(pick(item, "properties")),
            )
        )
    return events


def normalize_timeline(raw: Any, ids: IdGenerator) -> Timeline | None:
    if not isinstance(raw, dict):
        return None
    return Timeline(
        id=as_str(pick(raw, "id")) or ids("timeline"),
        name=as_str(pick(raw, "name")),
        time_unit=as_str(pick(raw, "time_unit"), "seconds") or "seconds",
        events=as_str_list(pick(raw, "events")),
        start_time=as_float(pick(raw, "start_time")),
        end_time=as_float(pick(raw, "end_time")),
    )


class TemporalHandler(ModeHandler):
    """Events, intervals and Allen relations on a timeline."""

    mode = ThinkingMode.TEMPORAL
    mode_name = "Temporal Reasoning"
    description = "Timelines, Allen interval relations and temporal constraint checking"
    thought_types = TEMPORAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        events = as_records(data.get("events"))
        relations = as_records(data.get("relations"))
        constraints = as_records(data.get("constraints"))
        event_ids = [as_str(pick(e, "id")) for e in events]

        triples = [_relation_endpoints(r) for r in relations]
        pairs = [(as_str(pick(c, "subject")), as_str(pick(c, "object"))) for c in constraints]
        for ref in dangling_event_refs(event_ids, [(s, t) for s, t, _ in triples], pairs):
            noun = "Relation" if ref.field == "relations" else "Constraint"
            findings.error(
                f"{ref.field}[{ref.index}]",
                f"{noun} references unknown event: {ref.ref}",
                ErrorCode.INVALID_EVENT_REF,
            )
        for inconsistency in temporal_contradictions(triples):
            findings.warn(
                "relations",
                f"Potential temporal inconsistency: {inconsistency}",
                "Review temporal constraints for contradictions",
            )

        for event_id in duplicate_ids(e for e in event_ids if e):
            findings.warn("events", f"Duplicate event id: {event_id}", "Give every event a unique id")
        for i, event in enumerate(events):
            findings.known_value(f"events[{i}].type", pick(event, "type"), EVENT_TYPES, "event type")
            if pick(event, "type") == "interval" and pick(event, "duration") is None:
                findings.warn(
                    f"events[{i}].duration",
                    f"Interval event {as_str(pick(event, 'id'))} has no duration",
                    "Give interval events a duration",
                )
        for i, (_, _, relation_type) in enumerate(triples):
            findings.known_value(
                f"relations[{i}].relationType", relation_type or None, TEMPORAL_RELATION_TYPES, "temporal relation"
            )
            findings.unit_interval(f"relations[{i}].strength", pick(relations[i], "strength"), "Relation strength")
        for i, constraint in enumerate(constraints):
            findings.unit_interval(
                f"constraints[{i}].confidence", pick(constraint, "confidence"), "Constraint confidence"
            )
        for i, interval in enumerate(as_records(data.get("intervals"))):
            start, end = as_float(pick(interval, "start")), as_float(pick(interval, "end"))
            if start is not None and end is not None and end < start:
                findings.warn(f"intervals[{i}]", f"Interval ends before it starts ({start} > {end})")

        if not events:
            findings.warn("events", "No events defined", "Add events to construct a timeline")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> TemporalThought:
        relations = []
        for item in as_records(data.get("relations")):
            source, target, relation_type = _relation_endpoints(item)
            relations.append(
                TemporalRelation(
                    id=as_str(pick(item, "id")) or self.ids("rel"),
                    from_event=source,
                    to_event=target,
                    relation_type=relation_type or "before",
                    strength=as_unit(pick(item, "strength"), 1.0),
                    delay=as_float(pick(item, "delay")),
                )
            )
        return TemporalThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "event_definition"),
            timeline=normalize_timeline(data.get("timeline"), self.ids),
            events=normalize_events(data.get("events"), self.ids),
            intervals=[
                TemporalInterval(
                    id=as_str(pick(i, "id")) or self.ids("interval"),
                    name=as_str(pick(i, "name")),
                    start=as_float(pick(i, "start"), 0.0) or 0.0,
                    end=as_float(pick(i, "end"), 0.0) or 0.0,
                    contains=as_str_list(pick(i, "contains")),
                )
                for i in as_records(data.get("intervals"))
            ],
            constraints=[
                TemporalConstraint(
                    id=as_str(pick(c, "id")) or self.ids("constraint"),
                    type=as_str(pick(c, "type"), "before") or "before",
                    subject=as_str(pick(c, "subject")),
                    object=as_str(pick(c, "object")),
                    confidence=as_unit(pick(c, "confidence"), 1.0),
                )
                for c in as_records(data.get("constraints"))
            ],
            relations=relations,
        )

    def get_enhancements(self, thought: TemporalThought) -> ModeEnhancements:
        n_events = len(thought.events)
        n_relations = len(thought.relations)
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.CAUSAL, ThinkingMode.SEQUENTIAL, ThinkingMode.COUNTERFACTUAL],
            mental_models=[
                "Allen's Interval Algebra",
                "Timeline Visualization",
                "Temporal Constraint Propagation",
                "Event Calculus",
                "Point vs. Interval Semantics",
            ],
            guiding_questions=[
                "Which events must occur before others?",
                "Are there events that can overlap or must be disjoint?",
                "What are the duration constraints on intervals?",
                "Are there causal dependencies implied by the temporal order?",
                "What happens if the timeline constraints are violated?",
            ],
            metrics={
                "event_count": n_events,
                "relation_count": n_relations,
                "constraint_count": len(thought.constraints),
                "instant_events": sum(1 for e in thought.events if e.type == "instant"),
                "interval_events": sum(1 for e in thought.events if e.type == "interval"),
                "constraint_density": constraint_density(n_events, n_relations),
            },
        )
        if n_events > 1 and n_relations == 0:
            enhancements.suggestions.append("Define temporal relations between events")
        if is_under_constrained(n_events, n_relations, self.settings.under_constrained_ratio):
            enhancements.suggestions.append(
                "Timeline may be under-constrained - consider adding more relations"
            )
        if is_over_constrained(n_events, n_relations):
            enhancements.warnings.append(
                "More relations than event pairs - check for redundant or conflicting relations"
            )
        triples = [(r.from_event, r.to_event, r.relation_type) for r in thought.relations]
        for inconsistency in temporal_contradictions(triples):
            enhancements.warnings.append(f"Potential temporal inconsistency: {inconsistency}")
        return enhancements


# =============================================================================
# Bayesian
# =============================================================================

BAYESIAN_TYPES = (
    "prior_elicitation",
    "likelihood_assessment",
    "posterior_update",
    "evidence_evaluation",
    "sensitivity_analysis",
    "hypothesis_comparison",
)


@dataclass(frozen=True)
class BayesianHypothesis:
    id: str
    statement: str
    alternatives: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PriorProbability:
    probability: float = 0.5
    justification: str = "Default prior"


@dataclass(frozen=True)
class Likelihood:
    probability: float = 0.5
    description: str = "Default likelihood"


@dataclass(frozen=True)
class BayesianEvidence:
    id: str
    description: str
    likelihood_given_hypothesis: float = 0.5
    likelihood_given_not_hypothesis: float = 0.5

    @property
    def pair(self) -> tuple[float, float]:
        return self.likelihood_given_hypothesis, self.likelihood_given_not_hypothesis


@dataclass(frozen=True)
class PosteriorProbability:
    probability: float
    calculation: str
    confidence: float


@dataclass(frozen=True)
class Sensitivity:
    prior_range: tuple[float, float]
    posterior_range: tuple[float, float]


@dataclass(frozen=True, kw_only=True)
class BayesianThought(Thought):
    thought_type: str = "posterior_update"
    hypothesis: BayesianHypothesis
    prior: PriorProbability = field(default_factory=PriorProbability)
    likelihood: Likelihood = field(default_factory=Likelihood)
    evidence: list[BayesianEvidence] = field(default_factory=list)
    posterior: PosteriorProbability
    bayes_factor: float | None = None
    sensitivity: Sensitivity | None = None


def _probability_findings(findings: Findings, field_name: str, value: Any) -> None:
    if value is None:
        return
    if not is_number(value) or not 0.0 <= value <= 1.0:
        findings.unit_interval(field_name, value)
    elif value in (0, 1):
        findings.warn(
            field_name,
            f"Extreme probability value ({value}) leaves no room for updating",
            "Consider using values slightly away from 0 and 1 (e.g., 0.01 or 0.99)",
        )


def compute_posterior(
    prior: PriorProbability, likelihood: Likelihood, evidence: list[BayesianEvidence]
) -> PosteriorProbability:
    """Update the prior through each evidence item, or once with the bare likelihood."""
    if evidence:
        pairs = [e.pair for e in evidence]
        calculation = f"Updated through {len(evidence)} evidence items using Bayes theorem"
    else:
        pairs = [(likelihood.probability, 1 - likelihood.probability)]
        calculation = "P(H|E) = P(E|H)P(H) / [P(E|H)P(H) + P(E|~H)P(~H)]"
    return PosteriorProbability(
        probability=sequential_posterior(prior.probability, pairs),
        calculation=calculation,
        confidence=posterior_confidence([e.pair for e in evidence]),
    )


def _sensitivity(raw: Any) -> Sensitivity | None:
    if not isinstance(raw, dict):
        return None

    def _range(value: Any) -> tuple[float, float]:
        items = [as_unit(v, 0.0) for v in as_list(value)[:2]]
        return (items[0], items[-1]) if items else (0.0, 1.0)

    return Sensitivity(
        prior_range=_range(pick(raw, "prior_range")),
        posterior_range=_range(pick(raw, "posterior_range")),
    )


class BayesianHandler(ModeHandler):
    """Probabilistic belief updating with Bayes' theorem."""

    mode = ThinkingMode.BAYESIAN
    mode_name = "Bayesian Reasoning"
    description = "Sequential belief updating from priors, likelihoods and evidence"
    thought_types = BAYESIAN_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        prior = data.get("prior_probability")
        _probability_findings(findings, "priorProbability", prior)
        _probability_findings(findings, "likelihood", data.get("likelihood"))
        _probability_findings(findings, "posteriorProbability", data.get("posterior_probability"))

        evidence = as_list(data.get("evidence"))
        for i, item in enumerate(evidence):
            prefix = f"evidence[{i}]"
            if not isinstance(item, dict):
                findings.warn(prefix, "Evidence item is not an object")
                continue
            if not pick(item, "id") or not pick(item, "description"):
                findings.warn(
                    prefix,
                    "Evidence item missing id or description",
                    "Add descriptive id and description for better tracking",
                )
            p_h = pick(item, "likelihood_given_hypothesis")
            p_not_h = pick(item, "likelihood_given_not_hypothesis")
            findings.unit_interval(f"{prefix}.likelihoodGivenHypothesis", p_h, "Likelihood given hypothesis")
            findings.unit_interval(
                f"{prefix}.likelihoodGivenNotHypothesis", p_not_h, "Likelihood given not hypothesis"
            )
            if is_number(p_h) and is_number(p_not_h) and abs(p_h - p_not_h) < 0.1:
                findings.warn(
                    prefix,
                    f"Evidence has low diagnostic value (P(E|H)={p_h}, P(E|~H)={p_not_h})",
                    "Evidence is more useful when likelihood ratios differ significantly",
                )

        alternatives = as_list(pick(data.get("hypothesis"), "alternatives"))
        if is_number(prior) and prior > 0.9 and len(alternatives) > 2:
            findings.warn(
                "priorProbability",
                f"High prior probability ({prior}) with {len(alternatives)} alternatives",
                "Consider whether prior properly reflects uncertainty across alternatives",
            )
        if not evidence:
            findings.warn(
                "evidence",
                "No evidence provided for Bayesian update",
                "Add evidence with likelihood ratios to update the posterior",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> BayesianThought:
        raw_hypothesis = as_dict(data.get("hypothesis"))
        hypothesis = BayesianHypothesis(
            id=as_str(pick(raw_hypothesis, "id")) or self.ids("hyp"),
            statement=as_str(pick(raw_hypothesis, "statement")) or data.thought,
            alternatives=as_str_list(pick(raw_hypothesis, "alternatives")),
        )
        prior = PriorProbability(
            probability=as_unit(data.get("prior_probability")),
            justification=as_str(data.get("prior_justification")) or "Default prior",
        )
        likelihood = Likelihood(
            probability=as_unit(data.get("likelihood")),
            description=as_str(data.get("likelihood_description")) or "Default likelihood",
        )
        evidence = [
            BayesianEvidence(
                id=as_str(pick(e, "id")) or self.ids("ev"),
                description=as_str(pick(e, "description")),
                likelihood_given_hypothesis=as_unit(pick(e, "likelihood_given_hypothesis")),
                likelihood_given_not_hypothesis=as_unit(pick(e, "likelihood_given_not_hypothesis")),
            )
            for e in as_records(data.get("evidence"))
        ]
        if data.has("posterior_probability"):
            posterior = PosteriorProbability(
                probability=as_unit(data.get("posterior_probability")),
                calculation="Provided directly",
                confidence=as_unit(data.get("posterior_confidence"), 0.8),
            )
        else:
            posterior = compute_posterior(prior, likelihood, evidence)
        return BayesianThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "posterior_update"),
            hypothesis=hypothesis,
            prior=prior,
            likelihood=likelihood,
            evidence=evidence,
            posterior=posterior,
            bayes_factor=bayes_factor(e.pair for e in evidence),
            sensitivity=_sensitivity(data.get("sensitivity")),
        )

    def get_enhancements(self, thought: BayesianThought) -> ModeEnhancements:
        posterior = thought.posterior.probability
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.CAUSAL, ThinkingMode.EVIDENTIAL],
            mental_models=["Bayes Theorem", "Prior Updating", "Likelihood Ratio", "Base Rate Fallacy"],
            metrics={
                "prior_probability": thought.prior.probability,
                "likelihood_probability": thought.likelihood.probability,
                "posterior_probability": posterior,
                "posterior_confidence": thought.posterior.confidence,
                "evidence_count": len(thought.evidence),
            },
        )
        if thought.bayes_factor is not None:
            enhancements.metrics["bayes_factor"] = thought.bayes_factor
            strength = bayes_factor_strength(thought.bayes_factor)
            enhancements.suggestions.append(
                f"Bayes factor ({thought.bayes_factor:.2f}) indicates: {strength} the hypothesis"
            )
        shift = abs(posterior - thought.prior.probability)
        if shift < 0.05:
            enhancements.warnings.append(
                "Small prior-to-posterior shift. Consider seeking more diagnostic evidence."
            )
        elif shift > 0.4:
            enhancements.warnings.append(
                "Large belief update. Verify evidence quality and likelihood estimates."
            )
        if posterior > 0.9:
            enhancements.guiding_questions.append(
                "What evidence could potentially disconfirm this high-confidence belief?"
            )
        elif posterior < 0.1:
            enhancements.guiding_questions.append("What new evidence would be needed to revive this hypothesis?")
        else:
            enhancements.guiding_questions.append(
                "What additional evidence could help resolve the remaining uncertainty?"
            )
        if thought.sensitivity is None:
            enhancements.guiding_questions.append(
                "How sensitive is the posterior to changes in the prior probability?"
            )
        return enhancements


# =============================================================================
# Evidential (Dempster-Shafer)
# =============================================================================

EVIDENTIAL_TYPES = (
    "hypothesis_definition",
    "evidence_collection",
    "belief_assignment",
    "evidence_combination",
    "decision_analysis",
)
MASS_TOLERANCE = 0.001


@dataclass(frozen=True)
class EvidentialHypothesis:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class EvidenceItem:
    id: str
    description: str
    source: str = ""
    reliability: float | None = None
    supports: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MassAssignment:
    hypothesis_set: list[str]
    mass: float


@dataclass(frozen=True)
class BeliefFunction:
    id: str
    source: str = ""
    mass_assignments: list[MassAssignment] = field(default_factory=list)
    conflict: float | None = None

    def masses(self) -> MassFunction:
        combined: MassFunction = {}
        for assignment in self.mass_assignments:
            focal = frozenset(assignment.hypothesis_set)
            combined[focal] = combined.get(focal, 0.0) + assignment.mass
        return combined


@dataclass(frozen=True)
class BeliefInterval:
    hypothesis_set: list[str]
    belief: float
    plausibility: float

    @property
    def uncertainty(self) -> float:
        return self.plausibility - self.belief


@dataclass(frozen=True)
class Decision:
    id: str
    name: str
    selected_hypothesis: str | None = None
    rationale: str = ""


@dataclass(frozen=True, kw_only=True)
class EvidentialThought(Thought):
    thought_type: str = "hypothesis_definition"
    frame_of_discernment: list[str] = field(default_factory=list)
    hypotheses: list[EvidentialHypothesis] = field(default_factory=list)
    evidence: list[EvidenceItem] = field(default_factory=list)
    belief_functions: list[BeliefFunction] = field(default_factory=list)
    combined_belief: BeliefFunction | None = None
    plausibility: list[BeliefInterval] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)


def _mass_set(record: dict[str, Any]) -> list[str]:
    return as_str_list(pick(record, "hypothesis_set", pick(record, "hypotheses")))


def normalize_belief_function(raw: dict[str, Any], ids: IdGenerator) -> BeliefFunction:
    return BeliefFunction(
        id=as_str(pick(raw, "id")) or ids("bf"),
        source=as_str(pick(raw, "source")),
        mass_assignments=[
            MassAssignment(hypothesis_set=_mass_set(m), mass=as_unit(pick(m, "mass"), 0.0))
            for m in as_records(pick(raw, "mass_assignments"))
        ],
        conflict=as_float(pick(raw, "conflict")),
    )


def combine_belief_functions(functions: list[BeliefFunction], ids: IdGenerator) -> BeliefFunction | None:
    """Fold Dempster's rule over the functions; None under total conflict or with fewer than two."""
    if len(functions) < 2:
        return None
    masses = functions[0].masses()
    conflict = 0.0
    for function in functions[1:]:
        combination = combine_dempster(masses, function.masses())
        if not combination.masses:
            return None
        masses = combination.masses
        conflict = 1 - (1 - conflict) * (1 - combination.conflict)
    return BeliefFunction(
        id=ids("bf"),
        source="combined",
        mass_assignments=[
            MassAssignment(hypothesis_set=sorted(focal), mass=mass)
            for focal, mass in sorted(masses.items(), key=lambda item: sorted(item[0]))
        ],
        conflict=conflict,
    )


def belief_intervals(frame: list[str], function: BeliefFunction) -> list[BeliefInterval]:
    """[Bel, Pls] for every singleton of the frame."""
    masses = function.masses()
    return [
        BeliefInterval(
            hypothesis_set=[element],
            belief=belief(masses, frozenset({element})),
            plausibility=plausibility(masses, frozenset({element})),
        )
        for element in frame
    ]


class EvidentialHandler(ModeHandler):
    """Dempster-Shafer belief functions."""

    mode = ThinkingMode.EVIDENTIAL
    mode_name = "Evidential Reasoning"
    description = "Dempster-Shafer belief functions with uncertainty quantification"
    thought_types = EVIDENTIAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        frame = as_str_list(data.get("frame_of_discernment"))
        for i, function in enumerate(as_records(data.get("belief_functions"))):
            assignments = as_records(pick(function, "mass_assignments"))
            for j, assignment in enumerate(assignments):
                findings.unit_interval(
                    f"beliefFunctions[{i}].massAssignments[{j}].mass", pick(assignment, "mass"), "Mass"
                )
                outside = [h for h in _mass_set(assignment) if frame and h not in frame]
                if outside:
                    findings.warn(
                        f"beliefFunctions[{i}].massAssignments[{j}]",
                        f"Mass assigned to hypotheses outside the frame: {', '.join(outside)}",
                    )
            if assignments:
                total = sum(as_float(pick(a, "mass"), 0.0) or 0.0 for a in assignments)
                if abs(total - 1) > MASS_TOLERANCE:
                    findings.warn(
                        f"beliefFunctions[{i}]",
                        f"Mass function must sum to 1 (currently {total:.3f})",
                        "Normalize the mass assignments",
                    )
        if not frame:
            findings.warn(
                "frameOfDiscernment",
                "Frame of discernment is empty",
                "Define the possible hypotheses in the frame",
            )
        evidence = as_records(data.get("evidence"))
        unrated = [e for e in evidence if pick(e, "reliability") is None]
        if unrated:
            findings.warn(
                "evidence",
                f"{len(unrated)} evidence items lack reliability scores",
                "Assign reliability scores for proper belief combination",
            )
        for i, item in enumerate(evidence):
            findings.unit_interval(f"evidence[{i}].reliability", pick(item, "reliability"), "Reliability")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> EvidentialThought:
        frame = as_str_list(data.get("frame_of_discernment"))
        functions = [normalize_belief_function(f, self.ids) for f in as_records(data.get("belief_functions"))]
        raw_combined = data.get("combined_belief")
        if isinstance(raw_combined, dict):
            combined = normalize_belief_function(raw_combined, self.ids)
        else:
            combined = combine_belief_functions(functions, self.ids)

        reference = combined or (functions[0] if len(functions) == 1 else None)
        intervals = belief_intervals(frame, reference) if reference is not None else []
        return EvidentialThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "hypothesis_definition"),
            frame_of_discernment=frame,
            hypotheses=[
                EvidentialHypothesis(
                    id=as_str(pick(h, "id")) or self.ids("hyp"),
                    name=as_str(pick(h, "name")),
                    description=as_str(pick(h, "description")),
                )
                for h in as_records(data.get("hypotheses"))
            ],
            evidence=[
                EvidenceItem(
                    id=as_str(pick(e, "id")) or self.ids("ev"),
                    description=as_str(pick(e, "description")),
                    source=as_str(pick(e, "source")),
                    reliability=as_unit(pick(e, "reliability")) if pick(e, "reliability") is not None else None,
                    supports=as_str_list(pick(e, "supports")),
                )
                for e in as_records(data.get("evidence"))
            ],
            belief_functions=functions,
            combined_belief=combined,
            plausibility=intervals,
            decisions=[
                Decision(
                    id=as_str(pick(d, "id")) or self.ids("decision"),
                    name=as_str(pick(d, "name")),
                    selected_hypothesis=as_str(pick(d, "selected_hypothesis")) or None,
                    rationale=as_str(pick(d, "rationale")),
                )
                for d in as_records(data.get("decisions"))
            ],
        )

    def get_enhancements(self, thought: EvidentialThought) -> ModeEnhancements:
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.BAYESIAN, ThinkingMode.ABDUCTIVE],
            mental_models=[
                "Dempster-Shafer Theory",
                "Belief vs. Plausibility",
                "Mass Function Assignment",
                "Evidence Combination",
                "Uncertainty Intervals [Bel, Pls]",
            ],
            guiding_questions=[
                "What evidence supports each hypothesis?",
                "How reliable is each piece of evidence?",
                "Can evidence from different sources be combined using Dempster's rule?",
                "What is the uncertainty interval [Bel(H), Pls(H)] for each hypothesis?",
                "Is the conflict between evidence sources acceptable?",
            ],
            metrics={
                "frame_size": len(thought.frame_of_discernment),
                "hypothesis_count": len(thought.hypotheses),
                "evidence_count": len(thought.evidence),
                "belief_function_count": len(thought.belief_functions),
                "has_combined_belief": 1 if thought.combined_belief else 0,
            },
        )
        if not thought.hypotheses:
            enhancements.suggestions.append("Define hypotheses in the frame of discernment")
        if not thought.evidence:
            enhancements.suggestions.append("Collect evidence supporting or contradicting hypotheses")
        elif not thought.belief_functions:
            enhancements.suggestions.append("Assign belief functions based on evidence")
        if len(thought.belief_functions) > 1 and thought.combined_belief is None:
            enhancements.suggestions.append("Combine belief functions using Dempster's rule")

        for function in thought.belief_functions:
            total = mass_total(function.masses())
            if function.mass_assignments and abs(total - 1) > MASS_TOLERANCE:
                enhancements.warnings.append(f"Belief function {function.id} masses sum to {total:.3f}")
        combined = thought.combined_belief
        if combined is not None and combined.conflict is not None:
            enhancements.metrics["conflict"] = combined.conflict
            if combined.conflict > 0.5:
                enhancements.warnings.append(
                    f"High conflict between evidence sources (K={combined.conflict:.2f}) - "
                    "combined beliefs may be unreliable"
                )
        if thought.plausibility:
            widest = max(thought.plausibility, key=lambda i: i.uncertainty)
            enhancements.metrics["max_uncertainty"] = widest.uncertainty
            strongest = max(thought.plausibility, key=lambda i: i.belief)
            enhancements.suggestions.append(
                f"Strongest support: {', '.join(strongest.hypothesis_set)} "
                f"[Bel={strongest.belief:.2f}, Pls={strongest.plausibility:.2f}]"
            )
        return enhancements


# =============================================================================
# Counterfactual
# =============================================================================

COUNTERFACTUAL_TYPES = (
    "problem_definition",
    "scenario_construction",
    "divergence_analysis",
    "outcome_comparison",
    "intervention_identification",
    "causal_chain_analysis",
)


@dataclass(frozen=True)
class Condition:
    factor: str
    value: str = ""
    is_intervention: bool = False


@dataclass(frozen=True)
class Outcome:
    description: str
    impact: str = "neutral"
    magnitude: float = 0.5


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    description: str = ""
    conditions: list[Condition] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)
    likelihood: float | None = None


@dataclass(frozen=True)
class Comparison:
    differences: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    lessons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class InterventionPoint:
    description: str
    timing: str = ""
    feasibility: float = 0.5
    expected_impact: float = 0.5


@dataclass(frozen=True)
class CausalChain:
    id: str
    events: list[str] = field(default_factory=list)
    branching_point: str = ""


@dataclass(frozen=True, kw_only=True)
class CounterfactualThought(Thought):
    thought_type: str = "problem_definition"
    actual: Scenario
    counterfactuals: list[Scenario] = field(default_factory=list)
    comparison: Comparison = field(default_factory=Comparison)
    intervention_point: InterventionPoint | None = None
    causal_chains: list[CausalChain] = field(default_factory=list)


def _conditions(raw: Any) -> list[Condition]:
    return [
        Condition(
            factor=as_str(pick(c, "factor")),
            value=as_str(pick(c, "value")),
            is_intervention=bool(as_bool(pick(c, "is_intervention"), False)),
        )
        for c in as_records(raw)
    ]


def _outcomes(raw: Any) -> list[Outcome]:
    outcomes = []
    for item in as_list(raw):
        if isinstance(item, str):
            outcomes.append(Outcome(description=item))
        elif isinstance(item, dict):
            outcomes.append(
                Outcome(
                    description=as_str(pick(item, "description")),
                    impact=as_str(pick(item, "impact"), "neutral") or "neutral",
                    magnitude=as_unit(pick(item, "magnitude")),
                )
            )
    return outcomes


def normalize_scenario(raw: dict[str, Any], ids: IdGenerator, default_name: str = "") -> Scenario:
    likelihood = pick(raw, "likelihood")
    return Scenario(
        id=as_str(pick(raw, "id")) or ids("scenario"),
        name=as_str(pick(raw, "name")) or default_name,
        description=as_str(pick(raw, "description")),
        conditions=_conditions(pick(raw, "conditions")),
        outcomes=_outcomes(pick(raw, "outcomes")),
        likelihood=as_unit(likelihood) if likelihood is not None else None,
    )


def _scenario_findings(findings: Findings, prefix: str, scenario: dict[str, Any]) -> None:
    if not as_str(pick(scenario, "name")).strip():
        findings.warn(f"{prefix}.name", "Scenario has no name", "Name each scenario for comparison")
    for i, condition in enumerate(as_records(pick(scenario, "conditions"))):
        if not as_str(pick(condition, "factor")).strip():
            findings.warn(f"{prefix}.conditions[{i}]", "Condition is missing a factor")
    for i, outcome in enumerate(as_records(pick(scenario, "outcomes"))):
        findings.unit_interval(f"{prefix}.outcomes[{i}].magnitude", pick(outcome, "magnitude"), "Outcome magnitude")
    findings.unit_interval(f"{prefix}.likelihood", pick(scenario, "likelihood"), "Scenario likelihood")


class CounterfactualHandler(ModeHandler):
    """What-if analysis against an actual scenario."""

    mode = ThinkingMode.COUNTERFACTUAL
    mode_name = "Counterfactual Reasoning"
    description = "Alternative scenarios, divergence points and intervention analysis"
    thought_types = COUNTERFACTUAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        actual = data.get("actual")
        if isinstance(actual, dict):
            _scenario_findings(findings, "actual", actual)
        counterfactuals = as_records(data.get("counterfactuals"))
        for i, scenario in enumerate(counterfactuals):
            _scenario_findings(findings, f"counterfactuals[{i}]", scenario)
        if not counterfactuals:
            findings.warn(
                "counterfactuals",
                "No counterfactual scenarios provided",
                "Construct at least one alternative scenario",
            )
        else:
            flagged = any(
                as_bool(pick(c, "is_intervention"))
                for s in counterfactuals
                for c in as_records(pick(s, "conditions"))
            )
            if not flagged:
                findings.warn(
                    "counterfactuals",
                    "No condition is marked as an intervention",
                    "Mark the conditions that differ from the actual scenario with isIntervention",
                )

        point = data.get("intervention_point")
        if isinstance(point, dict):
            if not as_str(pick(point, "description")).strip():
                findings.warn("interventionPoint.description", "Intervention point has no description")
            if not as_str(pick(point, "timing")).strip():
                findings.warn("interventionPoint.timing", "Intervention point has no timing")
            findings.unit_interval("interventionPoint.feasibility", pick(point, "feasibility"), "Feasibility")
            findings.unit_interval(
                "interventionPoint.expectedImpact", pick(point, "expected_impact"), "Expected impact"
            )

        for i, chain in enumerate(as_records(data.get("causal_chains"))):
            if not pick(chain, "id"):
                findings.warn(f"causalChains[{i}].id", "Causal chain has no id")
            if len(as_list(pick(chain, "events"))) < 2:
                findings.warn(
                    f"causalChains[{i}].events",
                    "Causal chain needs at least two events",
                    "Describe how one event leads to the next",
                )
            if not pick(chain, "branching_point"):
                findings.warn(f"causalChains[{i}].branchingPoint", "Causal chain has no branching point")

        comparison = data.get("comparison")
        if isinstance(comparison, dict) and not as_list(pick(comparison, "differences")):
            findings.warn(
                "comparison.differences",
                "Comparison lists no differences",
                "State how the outcomes differ between scenarios",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> CounterfactualThought:
        raw_actual = data.get("actual")
        if isinstance(raw_actual, dict):
            actual = normalize_scenario(raw_actual, self.ids, "Actual Scenario")
        else:
            actual = Scenario(
                id=self.ids("scenario"),
                name="Actual Scenario",
                conditions=_conditions(data.get("actual_conditions")),
                outcomes=_outcomes(data.get("actual_outcomes")),
            )
        comparison = as_dict(data.get("comparison"))
        point = data.get("intervention_point")
        return CounterfactualThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "problem_definition"),
            actual=actual,
            counterfactuals=[
                normalize_scenario(s, self.ids, f"Counterfactual {i + 1}")
                for i, s in enumerate(as_records(data.get("counterfactuals")))
            ],
            comparison=Comparison(
                differences=as_str_list(pick(comparison, "differences")),
                insights=as_str_list(pick(comparison, "insights")),
                lessons=as_str_list(pick(comparison, "lessons")),
            ),
            intervention_point=InterventionPoint(
                description=as_str(pick(point, "description")),
                timing=as_str(pick(point, "timing")),
                feasibility=as_unit(pick(point, "feasibility")),
                expected_impact=as_unit(pick(point, "expected_impact")),
            )
            if isinstance(point, dict)
            else None,
            causal_chains=[
                CausalChain(
                    id=as_str(pick(c, "id")) or self.ids("chain"),
                    events=as_str_list(pick(c, "events")),
                    branching_point=as_str(pick(c, "branching_point")),
                )
                for c in as_records(data.get("causal_chains"))
            ],
        )

    def get_enhancements(self, thought: CounterfactualThought) -> ModeEnhancements:
        interventions = sum(
            1 for s in thought.counterfactuals for c in s.conditions if c.is_intervention
        )
        comparison = thought.comparison
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.CAUSAL, ThinkingMode.BAYESIAN, ThinkingMode.TEMPORAL],
            mental_models=["Possible Worlds", "Nearest World Semantics", "Intervention Calculus"],
            metrics={
                "actual_conditions": len(thought.actual.conditions),
                "counterfactual_count": len(thought.counterfactuals),
                "total_interventions": interventions,
                "comparison_depth": len(comparison.differences) + len(comparison.insights) + len(comparison.lessons),
            },
        )
        if not thought.actual.conditions:
            enhancements.suggestions.append("Describe the conditions of the actual scenario")
        if not thought.counterfactuals:
            enhancements.suggestions.append("Construct alternative scenarios that vary one key condition")
            enhancements.guiding_questions.append("What single change would most alter the outcome?")
        elif not comparison.differences:
            enhancements.suggestions.append("Compare outcomes between the actual and counterfactual scenarios")
        if thought.counterfactuals and interventions == 0:
            enhancements.guiding_questions.append("Which conditions are under someone's control?")
        if thought.intervention_point is None:
            enhancements.guiding_questions.append("At what point could the outcome have been changed?")
        elif thought.intervention_point.feasibility < 0.3:
            enhancements.warnings.append("Intervention point has low feasibility")
        if comparison.lessons:
            enhancements.suggestions.append("Apply the lessons learned to future decisions")
        else:
            enhancements.guiding_questions.append("What lessons does the comparison teach?")
        enhancements.guiding_questions.append("Is the counterfactual world the nearest plausible alternative?")
        return enhancements
