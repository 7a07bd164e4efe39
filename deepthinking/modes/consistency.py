"""Consistency checkers for structured modes.

Graph-level semantic checks that go beyond field validation:
- Modal: accessibility closure and frame-property checks per logic system
- Temporal: dangling event references, direct ordering contradictions,
  constraint density
- Causal: node classification by declared role, dangling edges, cycles,
  entry/exit nodes
- Mathematics: proof completeness and companion-field checks

All functions take plain ids and tuples so they can be reused on raw input
during validation and on normalized thoughts during enhancement.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

# =============================================================================
# Modal
# =============================================================================

LOGIC_SYSTEMS = ("K", "T", "S4", "S5", "D", "B", "custom")
MODAL_DOMAINS = ("alethic", "epistemic", "deontic", "temporal")

# Frame conditions characterizing each normal modal logic
FRAME_PROPERTIES: dict[str, tuple[str, ...]] = {
    "K": (),
    "T": ("reflexive",),
    "S4": ("reflexive", "transitive"),
    "S5": ("reflexive", "symmetric", "transitive"),
    "D": ("serial",),
    "B": ("reflexive", "symmetric"),
    "custom": (),
}

UNIVERSAL_ACCESSIBILITY_WARNING = "S5 requires universal accessibility - not all worlds are connected"
SINGLE_WORLD_WARNING = "Only one world defined - modal distinctions may collapse"


def accessibility_closure(
    world_ids: Iterable[str], relations: Iterable[tuple[str, str]]
) -> dict[str, set[str]]:
    """Adjacency map with reflexive self-loops, declared edges and their reverses.

    Symmetry is assumed for the S5 check only; the returned map is not stored
    on the thought.
    """
    adjacency: dict[str, set[str]] = defaultdict(set)
    for world in world_ids:
        adjacency[world].add(world)
    for source, target in relations:
        adjacency[source].add(target)
        adjacency[target].add(source)
    return adjacency


def missing_accessibility_pairs(
    world_ids: Sequence[str], relations: Iterable[tuple[str, str]]
) -> list[tuple[str, str]]:
    """Ordered world pairs absent from ``accessibility_closure``."""
    closure = accessibility_closure(world_ids, relations)
    return [(a, b) for a in world_ids for b in world_ids if b not in closure[a]]


def has_universal_accessibility(
    world_ids: Sequence[str], relations: Iterable[tuple[str, str]]
) -> bool:
    """True when every ordered pair of worlds is covered by the closure."""
    return not missing_accessibility_pairs(world_ids, relations)


def undeclared_world_refs(
    world_ids: Iterable[str], relations: Iterable[tuple[str, str]]
) -> list[str]:
    """Relation endpoints that name no declared world, in first-seen order."""
    known = set(world_ids)
    missing: list[str] = []
    for source, target in relations:
        for ref in (source, target):
            if ref not in known and ref not in missing:
                missing.append(ref)
    return missing


def frame_property_gaps(
    world_ids: Sequence[str], relations: Sequence[tuple[str, str]], logic_system: str
) -> list[str]:
    """Frame properties the declared relations fail to satisfy for ``logic_system``.

    Unlike the S5 closure check this inspects the relations exactly as declared.
    """
    edges = set(relations)
    gaps: list[str] = []
    for prop in FRAME_PROPERTIES.get(logic_system, ()):
        if prop == "reflexive":
            ok = all((w, w) in edges for w in world_ids)
        elif prop == "symmetric":
            ok = all((b, a) in edges for a, b in edges)
        elif prop == "transitive":
            successors: dict[str, set[str]] = defaultdict(set)
            for a, b in edges:
                successors[a].add(b)
            ok = all((a, c) in edges for a, b in edges for c in successors[b])
        elif prop == "serial":
            sources = {a for a, _ in edges}
            ok = all(w in sources for w in world_ids)
        else:
            ok = True
        if not ok:
            gaps.append(prop)
    return gaps


def modal_consistency_warnings(
    world_ids: Sequence[str], relations: Sequence[tuple[str, str]], logic_system: str
) -> list[str]:
    """Warnings about the possible-worlds model as a whole."""
    warnings: list[str] = []
    if len(world_ids) == 1:
        warnings.append(SINGLE_WORLD_WARNING)
    if (
        logic_system == "S5"
        and len(world_ids) > 1
        and not has_universal_accessibility(world_ids, relations)
    ):
        warnings.append(UNIVERSAL_ACCESSIBILITY_WARNING)
    return warnings


# =============================================================================
# Temporal
# =============================================================================

ALLEN_RELATIONS = (
    "before",
    "after",
    "meets",
    "met_by",
    "overlaps",
    "overlapped_by",
    "starts",
    "started_by",
    "during",
    "contains",
    "finishes",
    "finished_by",
    "equals",
)
CAUSAL_TEMPORAL_RELATIONS = ("causes", "precedes")
TEMPORAL_RELATION_TYPES = ALLEN_RELATIONS + CAUSAL_TEMPORAL_RELATIONS

# Relations that fix "from" strictly before "to", and the inverse ones
FORWARD_ORDERING = frozenset({"before", "precedes", "causes", "meets"})
BACKWARD_ORDERING = frozenset({"after", "met_by"})


@dataclass(frozen=True)
class DanglingRef:
    """A relation or constraint endpoint naming no declared event."""

    field: str
    index: int
    ref: str


def dangling_event_refs(
    event_ids: Iterable[str],
    relations: Sequence[tuple[str, str]],
    constraints: Sequence[tuple[str, str]] = (),
) -> list[DanglingRef]:
    """Find relation (from, to) and constraint (subject, object) endpoints without an event."""
    known = set(event_ids)
    dangling: list[DanglingRef] = []
    for i, (source, target) in enumerate(relations):
        for ref in (source, target):
            if ref not in known:
                dangling.append(DanglingRef("relations", i, ref))
    for i, (subject, obj) in enumerate(constraints):
        for ref in (subject, obj):
            if ref not in known:
                dangling.append(DanglingRef("constraints", i, ref))
    return dangling


def ordering_edges(relations: Iterable[tuple[str, str, str]]) -> set[tuple[str, str]]:
    """(earlier, later) pairs implied by strict-ordering relations."""
    edges: set[tuple[str, str]] = set()
    for source, target, relation_type in relations:
        if relation_type in FORWARD_ORDERING:
            edges.add((source, target))
        elif relation_type in BACKWARD_ORDERING:
            edges.add((target, source))
    return edges


def temporal_contradictions(relations: Iterable[tuple[str, str, str]]) -> list[str]:
    """Describe direct two-node ordering contradictions.

    A pair is contradictory when the relations force A before B and B before A
    (for example "precedes" both ways, or "before" together with "after" on the
    same pair). Longer cycles are not detected.
    """
    edges = ordering_edges(relations)
    found: list[str] = []
    seen: set[frozenset[str]] = set()
    for earlier, later in sorted(edges):
        if (later, earlier) not in edges:
            continue
        key = frozenset((earlier, later))
        if key in seen:
            continue
        seen.add(key)
        if earlier == later:
            found.append(f"{earlier} precedes itself")
        else:
            found.append(f"{earlier} precedes {later} and {later} precedes {earlier}")
    return found


def constraint_density(event_count: int, relation_count: int) -> float:
    """|relations| / C(|events|, 2), or 0 with fewer than two events."""
    if event_count < 2:
        return 0.0
    return relation_count / (event_count * (event_count - 1) / 2)


def is_under_constrained(event_count: int, relation_count: int, ratio: float = 0.3) -> bool:
    """Fewer relations than ``ratio`` of all event pairs, with more than two events."""
    expected = event_count * (event_count - 1) / 2
    return event_count > 2 and relation_count < expected * ratio


def is_over_constrained(event_count: int, relation_count: int) -> bool:
    """More relations than distinct event pairs."""
    return event_count > 1 and constraint_density(event_count, relation_count) > 1.0


# =============================================================================
# Causal
# =============================================================================

CAUSAL_NODE_TYPES = ("cause", "effect", "mediator", "confounder")
MECHANISM_TYPES = ("direct", "indirect")


@dataclass
class CausalRoles:
    """Nodes grouped by their declared causal role."""

    causes: list[str] = field(default_factory=list)
    effects: list[str] = field(default_factory=list)
    mediators: list[str] = field(default_factory=list)
    confounders: list[str] = field(default_factory=list)
    unclassified: list[str] = field(default_factory=list)


def classify_nodes(nodes: Iterable[tuple[str, str | None]]) -> CausalRoles:
    """Group (node_id, declared_type) pairs by type; no structural inference."""
    roles = CausalRoles()
    buckets = {
        "cause": roles.causes,
        "effect": roles.effects,
        "mediator": roles.mediators,
        "confounder": roles.confounders,
    }
    for node_id, node_type in nodes:
        buckets.get(node_type or "", roles.unclassified).append(node_id)
    return roles


def duplicate_ids(ids: Iterable[str]) -> list[str]:
    """Ids occurring more than once, in first-seen order."""
    seen: set[str] = set()
    dupes: list[str] = []
    for node_id in ids:
        if node_id in seen and node_id not in dupes:
            dupes.append(node_id)
        seen.add(node_id)
    return dupes


def find_cycles(node_ids: Sequence[str], edges: Iterable[tuple[str, str]]) -> list[list[str]]:
    """Cycles found by depth-first search, each closed with its start node.

    Self-loops are reported as two-element cycles.
    """
    adjacency: dict[str, list[str]] = {node: [] for node in node_ids}
    for source, target in edges:
        if source in adjacency:
            adjacency[source].append(target)

    cycles: list[list[str]] = []
    visited: set[str] = set()

    for root in node_ids:
        if root in visited:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        stack: list[tuple[str, int]] = [(root, 0)]
        visited.add(root)
        path.append(root)
        on_path.add(root)
        while stack:
            node, next_index = stack[-1]
            neighbors = adjacency.get(node, [])
            if next_index < len(neighbors):
                stack[-1] = (node, next_index + 1)
                neighbor = neighbors[next_index]
                if neighbor in on_path:
                    cycles.append(path[path.index(neighbor):] + [neighbor])
                elif neighbor not in visited:
                    visited.add(neighbor)
                    path.append(neighbor)
                    on_path.add(neighbor)
                    stack.append((neighbor, 0))
            else:
                stack.pop()
                path.pop()
                on_path.discard(node)
    return cycles


def entry_nodes(node_ids: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[str]:
    """Nodes without incoming edges."""
    targets = {target for _, target in edges}
    return [node for node in node_ids if node not in targets]


def exit_nodes(node_ids: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[str]:
    """Nodes without outgoing edges."""
    sources = {source for source, _ in edges}
    return [node for node in node_ids if node not in sources]


def graph_density(node_count: int, edge_count: int) -> float:
    """Directed density e / (n(n-1)), 0 for fewer than two nodes."""
    if node_count < 2:
        return 0.0
    return edge_count / (node_count * (node_count - 1))


# =============================================================================
# Mathematics
# =============================================================================

PROOF_TYPES = ("direct", "contradiction", "induction", "construction", "contrapositive")


def proof_gaps(
    proof_type: str | None,
    base_case: str | None,
    inductive_step: str | None,
    completeness: float | None,
) -> list[str]:
    """Missing companion fields and low completeness for a proof strategy."""
    gaps: list[str] = []
    if proof_type == "induction":
        if not base_case:
            gaps.append("Induction proof is missing a base case")
        if not inductive_step:
            gaps.append("Induction proof is missing an inductive step")
    if completeness is not None and completeness < 0.5:
        gaps.append("Proof is less than 50% complete")
    return gaps
