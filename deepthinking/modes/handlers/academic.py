"""Academic and scholarly modes.

Literature synthesis, Toulmin argumentation, balanced critique, qualitative
analysis and historical reasoning. Historical causes and causal-chain links
must name declared events; every other finding is advisory.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.scoring import balance_ratio
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
# Synthesis
# =============================================================================

SYNTHESIS_TYPES = (
    "source_identification",
    "source_evaluation",
    "theme_extraction",
    "pattern_integration",
    "gap_identification",
    "synthesis_construction",
    "framework_development",
)
CONSENSUS_LEVELS = ("strong", "moderate", "weak", "contested")
QUALITY_FIELDS = ("methodological_rigor", "relevance", "recency", "author_credibility", "overall_quality")


@dataclass(frozen=True)
class SourceQuality:
    methodological_rigor: float = 0.5
    relevance: float = 0.5
    recency: float = 0.5
    author_credibility: float = 0.5
    overall_quality: float = 0.5


@dataclass(frozen=True)
class LiteratureSource:
    id: str
    title: str
    authors: list[str] = field(default_factory=list)
    year: int | None = None
    type: str = "empirical"
    quality: SourceQuality = field(default_factory=SourceQuality)


@dataclass(frozen=True)
class Theme:
    id: str
    name: str
    source_ids: list[str] = field(default_factory=list)
    strength: float = 0.5
    consensus: str = "moderate"
    description: str = ""


@dataclass(frozen=True)
class SourceContradiction:
    id: str
    description: str
    source_ids: list[str] = field(default_factory=list)
    resolution: str | None = None


@dataclass(frozen=True)
class LiteratureGap:
    id: str
    description: str
    related_themes: list[str] = field(default_factory=list)
    importance: str = "moderate"


@dataclass(frozen=True, kw_only=True)
class SynthesisThought(Thought):
    thought_type: str = "source_identification"
    sources: list[LiteratureSource] = field(default_factory=list)
    themes: list[Theme] = field(default_factory=list)
    contradictions: list[SourceContradiction] = field(default_factory=list)
    gaps: list[LiteratureGap] = field(default_factory=list)
    framework: dict[str, Any] | None = None
    conclusions: list[str] = field(default_factory=list)
    source_coverage: float = 0.0
    uncovered_sources: list[str] = field(default_factory=list)
    uncertainty: float = 0.5
    key_insight: str | None = None


def normalize_source(raw: dict[str, Any], ids: IdGenerator) -> LiteratureSource:
    quality = as_dict(pick(raw, "quality"))
    return LiteratureSource(
        id=as_str(pick(raw, "id")) or ids("src"),
        title=as_str(pick(raw, "title")),
        authors=as_str_list(pick(raw, "authors")),
        year=as_int(pick(raw, "year")),
        type=as_str(pick(raw, "type"), "empirical"),
        quality=SourceQuality(**{name: as_unit(pick(quality, name)) for name in QUALITY_FIELDS}),
    )


def normalize_theme(raw: dict[str, Any], ids: IdGenerator) -> Theme:
    consensus = as_str(pick(raw, "consensus"), "moderate")
    return Theme(
        id=as_str(pick(raw, "id")) or ids("theme"),
        name=as_str(pick(raw, "name")),
        source_ids=as_str_list(pick(raw, "source_ids")),
        strength=as_unit(pick(raw, "strength")),
        consensus=consensus if consensus in CONSENSUS_LEVELS else "moderate",
        description=as_str(pick(raw, "description")),
    )


def _contradiction_sources(raw: dict[str, Any]) -> list[str]:
    explicit = as_str_list(pick(raw, "source_ids"))
    if explicit:
        return explicit
    found: list[str] = []
    for side in ("position1", "position2"):
        found.extend(as_str_list(pick(as_dict(raw.get(side)), "source_ids")))
    return found


def contested_theme_contradictions(themes: list[Theme], ids: IdGenerator) -> list[SourceContradiction]:
    """Contested themes backed by at least two sources imply a disagreement."""
    return [
        SourceContradiction(
            id=ids("contra"),
            description=f"Potential contradiction in contested theme: {theme.name}",
            source_ids=list(theme.source_ids),
        )
        for theme in themes
        if theme.consensus == "contested" and len(theme.source_ids) >= 2
    ]


class SynthesisHandler(ModeHandler):
    """Literature review: sources, themes, contradictions and gaps."""

    mode = ThinkingMode.SYNTHESIS
    mode_name = "Literature Synthesis"
    description = "Literature review with source quality assessment, theme extraction and gap analysis"
    thought_types = SYNTHESIS_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)

        sources = as_records(data.get("sources"))
        seen: set[str] = set()
        for i, source in enumerate(sources):
            source_id = as_str(pick(source, "id"))
            if not source_id or not as_str(pick(source, "title")).strip():
                findings.warn(f"sources[{i}]", "Source is missing an id or title", "Identify every source")
            elif source_id in seen:
                findings.warn(f"sources[{i}].id", f"Duplicate source id: {source_id}")
            seen.add(source_id)
            quality = as_dict(pick(source, "quality"))
            for name in QUALITY_FIELDS:
                findings.unit_interval(f"sources[{i}].quality.{name}", pick(quality, name))
        if len(sources) == 1:
            findings.warn(
                "sources",
                "Synthesis based on a single source",
                "Synthesis requires integrating multiple sources",
            )

        theme_ids: set[str] = set()
        for i, theme in enumerate(as_records(data.get("themes"))):
            theme_ids.add(as_str(pick(theme, "id")))
            refs = as_str_list(pick(theme, "source_ids"))
            if not refs:
                findings.warn(
                    f"themes[{i}].sourceIds",
                    f"Theme '{as_str(pick(theme, 'name'))}' has no supporting sources",
                    "Link each theme to the sources that support it",
                )
            for ref in refs:
                if ref not in seen:
                    findings.warn(f"themes[{i}].sourceIds", f"Theme references unknown source: {ref}")
            findings.unit_interval(f"themes[{i}].strength", pick(theme, "strength"), "Theme strength")

        for i, gap in enumerate(as_records(data.get("gaps"))):
            for ref in as_str_list(pick(gap, "related_themes")):
                if ref not in theme_ids:
                    findings.warn(f"gaps[{i}].relatedThemes", f"Gap references unknown theme: {ref}")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> SynthesisThought:
        sources = [normalize_source(s, self.ids) for s in as_records(data.get("sources"))]
        themes = [normalize_theme(t, self.ids) for t in as_records(data.get("themes"))]
        contradictions = [
            SourceContradiction(
                id=as_str(pick(c, "id")) or self.ids("contra"),
                description=as_str(pick(c, "description")),
                source_ids=_contradiction_sources(c),
                resolution=as_str(pick(c, "resolution")) or None,
            )
            for c in as_records(data.get("contradictions"))
        ]
        if not contradictions:
            contradictions = contested_theme_contradictions(themes, self.ids)

        covered = {ref for theme in themes for ref in theme.source_ids}
        uncovered = [s.id for s in sources if s.id not in covered]
        framework = data.get("framework")
        return SynthesisThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "source_identification"),
            sources=sources,
            themes=themes,
            contradictions=contradictions,
            gaps=[
                LiteratureGap(
                    id=as_str(pick(g, "id")) or self.ids("gap"),
                    description=as_str(pick(g, "description")),
                    related_themes=as_str_list(pick(g, "related_themes")),
                    importance=as_str(pick(g, "importance"), "moderate"),
                )
                for g in as_records(data.get("gaps"))
            ],
            framework=framework if isinstance(framework, dict) else None,
            conclusions=as_str_list(data.get("conclusions")),
            source_coverage=(len(sources) - len(uncovered)) / len(sources) if sources else 0.0,
            uncovered_sources=uncovered,
            uncertainty=as_unit(data.get("uncertainty")),
            key_insight=as_str(data.get("key_insight")) or None,
        )

    def get_enhancements(self, thought: SynthesisThought) -> ModeEnhancements:
        sources = thought.sources
        average_quality = (
            sum(s.quality.overall_quality for s in sources) / len(sources) if sources else 0.0
        )
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.CRITIQUE, ThinkingMode.ARGUMENTATION, ThinkingMode.ANALYSIS],
            mental_models=[
                "Thematic Analysis",
                "Systematic Review",
                "Conceptual Framework",
                "Evidence Synthesis",
            ],
            metrics={
                "source_count": len(sources),
                "theme_count": len(thought.themes),
                "contradiction_count": len(thought.contradictions),
                "gap_count": len(thought.gaps),
                "source_coverage": thought.source_coverage,
                "avg_source_quality": average_quality,
            },
        )
        if len(sources) < 3:
            enhancements.suggestions.append("Identify additional sources to broaden the synthesis")
        if sources and not thought.themes:
            enhancements.suggestions.append("Extract recurring themes across the sources")
            enhancements.guiding_questions.append("What ideas recur across multiple sources?")
        if thought.uncovered_sources:
            enhancements.warnings.append(
                f"{len(thought.uncovered_sources)} source(s) not linked to any theme"
            )
        if thought.contradictions:
            enhancements.guiding_questions.append(
                "How can the contradictions between sources be explained or resolved?"
            )
        if thought.themes and not thought.gaps:
            enhancements.suggestions.append("Identify gaps the literature leaves unaddressed")
        if thought.themes and thought.framework is None:
            enhancements.suggestions.append("Develop a framework that integrates the themes")
        if sources and average_quality < 0.5:
            enhancements.warnings.append("Average source quality is low - weigh conclusions accordingly")
        enhancements.guiding_questions.append("What does the literature as a whole suggest?")
        return enhancements


# =============================================================================
# Argumentation
# =============================================================================

ARGUMENTATION_TYPES = (
    "claim_formulation",
    "grounds_identification",
    "warrant_construction",
    "backing_provision",
    "rebuttal_anticipation",
    "qualifier_specification",
    "argument_assembly",
    "dialectic_analysis",
)
CIRCULAR_PREFIX = 20


@dataclass(frozen=True)
class Claim:
    id: str
    statement: str
    type: str = "fact"


@dataclass(frozen=True)
class Grounds:
    id: str
    claim_id: str | None
    content: str
    reliability: float = 0.5
    relevance: float = 0.5


@dataclass(frozen=True)
class Warrant:
    id: str
    claim_id: str | None
    statement: str
    strength: float = 0.5
    backing_id: str | None = None


@dataclass(frozen=True)
class Rebuttal:
    id: str
    claim_id: str | None
    objection: str
    response: str | None = None

    @property
    def addressed(self) -> bool:
        return bool(self.response)


@dataclass(frozen=True)
class Fallacy:
    name: str
    category: str = "informal"
    severity: str = "moderate"
    description: str = ""


@dataclass(frozen=True)
class ToulminArgument:
    id: str
    claim_id: str | None
    grounds_ids: list[str] = field(default_factory=list)
    warrant_ids: list[str] = field(default_factory=list)
    backing_ids: list[str] = field(default_factory=list)
    rebuttal_ids: list[str] = field(default_factory=list)
    qualifier: str | None = None
    strength: float = 0.5


@dataclass(frozen=True)
class Dialectic:
    thesis: str | None = None
    antithesis: str | None = None
    synthesis: str | None = None
    synthesis_achieved: bool = False


@dataclass(frozen=True, kw_only=True)
class ArgumentationThought(Thought):
    thought_type: str = "claim_formulation"
    claims: list[Claim] = field(default_factory=list)
    grounds: list[Grounds] = field(default_factory=list)
    warrants: list[Warrant] = field(default_factory=list)
    backings: list[str] = field(default_factory=list)
    qualifiers: list[str] = field(default_factory=list)
    rebuttals: list[Rebuttal] = field(default_factory=list)
    arguments: list[ToulminArgument] = field(default_factory=list)
    dialectic: Dialectic | None = None
    fallacies: list[Fallacy] = field(default_factory=list)
    argument_strength: float = 0.5


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def toulmin_strength(
    argument: ToulminArgument,
    grounds: dict[str, Grounds],
    warrants: dict[str, Warrant],
    rebuttals: dict[str, Rebuttal],
) -> float:
    """Strength of one assembled argument from its grounds, warrants, backing and rebuttals."""
    own_grounds = [grounds[g] for g in argument.grounds_ids if g in grounds]
    own_warrants = [warrants[w] for w in argument.warrant_ids if w in warrants]
    own_rebuttals = [rebuttals[r] for r in argument.rebuttal_ids if r in rebuttals]
    score = 0.5
    if own_grounds:
        score += (_mean([g.reliability for g in own_grounds]) + _mean([g.relevance for g in own_grounds])) * 0.15
    if own_warrants:
        score += _mean([w.strength for w in own_warrants]) * 0.15
    if argument.backing_ids:
        score += 0.1
    if own_rebuttals:
        score += sum(r.addressed for r in own_rebuttals) / len(own_rebuttals) * 0.1
    return clamp_unit(score)


def overall_argument_strength(thought_parts: dict[str, Any]) -> float:
    """Mean assembled-argument strength, or a component-count estimate without arguments."""
    arguments: list[ToulminArgument] = thought_parts["arguments"]
    if arguments:
        return _mean([a.strength for a in arguments])
    score = 0.3
    score += 0.15 if thought_parts["grounds"] else 0.0
    score += 0.15 if thought_parts["warrants"] else 0.0
    score += 0.1 if thought_parts["backings"] else 0.0
    score += 0.1 if thought_parts["qualifiers"] else 0.0
    score += 0.1 if thought_parts["rebuttals"] else 0.0
    return min(1.0, score)


def circular_warrants(claims: list[Claim], warrants: list[Warrant]) -> list[Fallacy]:
    """Warrants that restate their claim's opening words."""
    found = []
    by_id = {c.id: c for c in claims}
    for warrant in warrants:
        claim = by_id.get(warrant.claim_id or "")
        if claim is None:
            continue
        prefix = claim.statement[:CIRCULAR_PREFIX].strip().lower()
        if prefix and prefix in warrant.statement.lower():
            found.append(
                Fallacy(
                    name="circular_reasoning",
                    category="informal",
                    severity="critical",
                    description=f"Warrant {warrant.id} restates claim {claim.id}",
                )
            )
    return found


class ArgumentationHandler(ModeHandler):
    """Toulmin-model argument construction and dialectic analysis."""

    mode = ThinkingMode.ARGUMENTATION
    mode_name = "Argumentation"
    description = "Toulmin-model argumentation with warrants, rebuttals, dialectic and fallacy checks"
    thought_types = ARGUMENTATION_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)

        claims = as_records(data.get("claims"))
        grounds = as_records(data.get("grounds"))
        warrants = as_records(data.get("warrants"))
        if not claims:
            findings.warn("claims", "No claims stated", "State the claim the argument supports")
        grounded = {as_str(pick(g, "claim_id")) for g in grounds}
        warranted = {as_str(pick(w, "claim_id")) for w in warrants}
        for claim in claims:
            claim_id = as_str(pick(claim, "id"))
            if claim_id and claim_id not in grounded:
                findings.warn("grounds", f"Claim {claim_id} has no supporting grounds")
        if grounds and not warrants:
            findings.warn(
                "warrants",
                "Grounds provided without warrants",
                "Explain how the grounds support the claim",
            )
        for i, g in enumerate(grounds):
            findings.unit_interval(f"grounds[{i}].reliability", pick(g, "reliability"))
            findings.unit_interval(f"grounds[{i}].relevance", pick(g, "relevance"))
        weak = 0
        for i, w in enumerate(warrants):
            strength = pick(w, "strength")
            findings.unit_interval(f"warrants[{i}].strength", strength, "Warrant strength")
            if is_number(strength) and strength < 0.5:
                weak += 1
        if warrants and weak > len(warrants) / 2:
            findings.warn(
                "warrants",
                "More than half of the warrants are weak",
                "Strengthen warrants with backing or reconsider the inference",
            )

        for i, argument in enumerate(as_records(data.get("arguments"))):
            if not pick(argument, "claim_id") and not pick(argument, "claim"):
                findings.warn(f"arguments[{i}]", "Argument has no claim")
            if not as_list(pick(argument, "grounds_ids")) and not as_list(pick(argument, "grounds")):
                findings.warn(f"arguments[{i}]", "Argument has no grounds")
            if not as_list(pick(argument, "warrant_ids")) and not as_list(pick(argument, "warrants")):
                findings.warn(f"arguments[{i}]", "Argument has no warrants")
        warrants_by_id = {as_str(pick(w, "id")): w for w in warrants}
        for i, argument in enumerate(as_records(data.get("arguments"))):
            if as_list(pick(argument, "backing_ids")):
                continue
            for warrant_id in as_str_list(pick(argument, "warrant_ids")):
                strength = pick(warrants_by_id.get(warrant_id, {}), "strength")
                if is_number(strength) and strength < 0.6:
                    findings.warn(
                        f"arguments[{i}]",
                        f"Weak warrant {warrant_id} has no backing",
                        "Provide backing for warrants below 0.6 strength",
                    )

        if claims and not as_list(data.get("rebuttals")):
            findings.warn(
                "rebuttals",
                "No rebuttals anticipated",
                "Consider counter-arguments to strengthen the position",
            )
        dialectic = as_dict(data.get("dialectic"))
        if dialectic:
            if not pick(dialectic, "thesis") or not pick(dialectic, "antithesis"):
                findings.warn("dialectic", "Dialectic requires both a thesis and an antithesis")
            if as_bool(pick(dialectic, "synthesis_achieved")) and not pick(dialectic, "synthesis"):
                findings.warn("dialectic.synthesis", "Synthesis marked achieved but not stated")
        for i, fallacy in enumerate(as_records(data.get("fallacies"))):
            if as_str(pick(fallacy, "severity")) == "critical":
                findings.warn(
                    f"fallacies[{i}]",
                    f"Critical fallacy identified: {as_str(pick(fallacy, 'name'))}",
                    "Address critical fallacies before relying on the argument",
                )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> ArgumentationThought:
        claims = [
            Claim(
                id=as_str(pick(c, "id")) or self.ids("claim"),
                statement=as_str(pick(c, "statement")) or as_str(pick(c, "content")),
                type=as_str(pick(c, "type"), "fact"),
            )
            for c in as_records(data.get("claims"))
        ]
        grounds = [
            Grounds(
                id=as_str(pick(g, "id")) or self.ids("grounds"),
                claim_id=as_str(pick(g, "claim_id")) or None,
                content=as_str(pick(g, "content")) or as_str(pick(g, "statement")),
                reliability=as_unit(pick(g, "reliability")),
                relevance=as_unit(pick(g, "relevance")),
            )
            for g in as_records(data.get("grounds"))
        ]
        warrants = [
            Warrant(
                id=as_str(pick(w, "id")) or self.ids("warrant"),
                claim_id=as_str(pick(w, "claim_id")) or None,
                statement=as_str(pick(w, "statement")) or as_str(pick(w, "content")),
                strength=as_unit(pick(w, "strength")),
                backing_id=as_str(pick(w, "backing_id")) or None,
            )
            for w in as_records(data.get("warrants"))
        ]
        rebuttals = [
            Rebuttal(
                id=as_str(pick(r, "id")) or self.ids("rebuttal"),
                claim_id=as_str(pick(r, "claim_id")) or None,
                objection=as_str(pick(r, "objection")) or as_str(pick(r, "content")),
                response=as_str(pick(r, "response")) or None,
            )
            for r in as_records(data.get("rebuttals"))
        ]
        grounds_by_id = {g.id: g for g in grounds}
        warrants_by_id = {w.id: w for w in warrants}
        rebuttals_by_id = {r.id: r for r in rebuttals}
        arguments = []
        for a in as_records(data.get("arguments")):
            argument = ToulminArgument(
                id=as_str(pick(a, "id")) or self.ids("arg"),
                claim_id=as_str(pick(a, "claim_id")) or None,
                grounds_ids=as_str_list(pick(a, "grounds_ids")),
                warrant_ids=as_str_list(pick(a, "warrant_ids")),
                backing_ids=as_str_list(pick(a, "backing_ids")),
                rebuttal_ids=as_str_list(pick(a, "rebuttal_ids")),
                qualifier=as_str(pick(a, "qualifier")) or None,
            )
            strength = toulmin_strength(argument, grounds_by_id, warrants_by_id, rebuttals_by_id)
            arguments.append(replace(argument, strength=strength))

        backings = as_str_list(data.get("backings"))
        qualifiers = as_str_list(data.get("qualifiers"))
        raw_dialectic = as_dict(data.get("dialectic"))
        dialectic = (
            Dialectic(
                thesis=as_str(pick(raw_dialectic, "thesis")) or None,
                antithesis=as_str(pick(raw_dialectic, "antithesis")) or None,
                synthesis=as_str(pick(raw_dialectic, "synthesis")) or None,
                synthesis_achieved=bool(as_bool(pick(raw_dialectic, "synthesis_achieved"), False)),
            )
            if raw_dialectic
            else None
        )
        fallacies = [
            Fallacy(
                name=as_str(pick(f, "name")),
                category=as_str(pick(f, "category"), "informal"),
                severity=as_str(pick(f, "severity"), "moderate"),
                description=as_str(pick(f, "description")),
            )
            for f in as_records(data.get("fallacies"))
        ]
        fallacies.extend(circular_warrants(claims, warrants))
        return ArgumentationThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "claim_formulation"),
            claims=claims,
            grounds=grounds,
            warrants=warrants,
            backings=backings,
            qualifiers=qualifiers,
            rebuttals=rebuttals,
            arguments=arguments,
            dialectic=dialectic,
            fallacies=fallacies,
            argument_strength=overall_argument_strength(
                {
                    "arguments": arguments,
                    "grounds": grounds,
                    "warrants": warrants,
                    "backings": backings,
                    "qualifiers": qualifiers,
                    "rebuttals": rebuttals,
                }
            ),
        )

    def get_enhancements(self, thought: ArgumentationThought) -> ModeEnhancements:
        claim_count = len(thought.claims)
        rebuttals = thought.rebuttals
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.FORMALLOGIC, ThinkingMode.DEDUCTIVE, ThinkingMode.CRITIQUE],
            mental_models=[
                "Toulmin Model",
                "Dialectic Method",
                "Rhetorical Triangle",
                "Logical Validity",
                "Counter-argument Analysis",
            ],
            metrics={
                "claim_count": claim_count,
                "grounds_count": len(thought.grounds),
                "warrants_count": len(thought.warrants),
                "rebuttal_count": len(rebuttals),
                "argument_count": len(thought.arguments),
                "fallacy_count": len(thought.fallacies),
                "argument_strength": thought.argument_strength,
                "grounds_to_claim_ratio": len(thought.grounds) / claim_count if claim_count else 0.0,
                "warrants_per_claim": len(thought.warrants) / claim_count if claim_count else 0.0,
                "rebuttal_coverage": sum(r.addressed for r in rebuttals) / len(rebuttals) if rebuttals else 0.0,
                "avg_grounds_reliability": _mean([g.reliability for g in thought.grounds]),
            },
        )
        if not thought.claims:
            enhancements.guiding_questions.append("What exactly are you trying to prove?")
        if thought.claims and not thought.grounds:
            enhancements.suggestions.append("Provide evidence or data supporting each claim")
            enhancements.guiding_questions.append("What facts support this claim?")
        if thought.grounds and not thought.warrants:
            enhancements.suggestions.append("Explain the reasoning that connects grounds to claims")
            enhancements.guiding_questions.append("Why do these grounds support the claim?")
        if thought.warrants and not thought.backings:
            enhancements.suggestions.append("Add backing to support the warrants")
        if thought.claims and not thought.qualifiers:
            enhancements.suggestions.append("Qualify the claim's scope or certainty where appropriate")
        unanswered = [r for r in rebuttals if not r.addressed]
        if unanswered:
            enhancements.warnings.append(f"{len(unanswered)} rebuttal(s) not yet addressed")
        for fallacy in thought.fallacies:
            if fallacy.severity == "critical":
                enhancements.warnings.append(f"Critical fallacy: {fallacy.name}")
        if thought.argument_strength < 0.5:
            enhancements.warnings.append("Overall argument is weak - strengthen grounds and warrants")
        if thought.dialectic is not None and not thought.dialectic.synthesis_achieved:
            enhancements.guiding_questions.append(
                "What synthesis could reconcile the thesis and antithesis?"
            )
        return enhancements


# =============================================================================
# Critique
# =============================================================================

CRITIQUE_TYPES = (
    "work_characterization",
    "methodology_evaluation",
    "argument_analysis",
    "evidence_assessment",
    "contribution_evaluation",
    "limitation_identification",
    "strength_recognition",
    "improvement_suggestion",
)
SOCRATIC_CATEGORIES: dict[str, list[str]] = {
    "clarification": [
        "What do you mean by...?",
        "Could you put that another way?",
        "What is your main point?",
        "Could you give me an example?",
        "Can you explain that term?",
    ],
    "assumptions": [
        "What are you assuming here?",
        "Is that always the case?",
        "Why would you assume that?",
        "What could we assume instead?",
        "What if the opposite were true?",
    ],
    "evidence": [
        "What evidence supports this?",
        "How do you know this is true?",
        "What would change your mind?",
        "Is there counter-evidence?",
        "How reliable is this source?",
    ],
    "perspectives": [
        "What would X say about this?",
        "How might others view this?",
        "What is an alternative interpretation?",
        "Who benefits from this view?",
        "What perspective is missing?",
    ],
    "implications": [
        "What follows from this?",
        "What are the consequences?",
        "How does this affect...?",
        "If this is true, what else must be true?",
        "What are the risks?",
    ],
    "meta": [
        "Why is this question important?",
        "What makes this hard to answer?",
        "What do we need to know to answer this?",
        "How can we find out?",
        "What assumptions underlie this question?",
    ],
}
SOCRATIC_FOCUS = {
    "work_characterization": ("clarification", "meta"),
    "methodology_evaluation": ("evidence", "assumptions"),
    "argument_analysis": ("assumptions", "implications"),
    "evidence_assessment": ("evidence", "perspectives"),
    "contribution_evaluation": ("implications", "perspectives"),
    "limitation_identification": ("assumptions", "evidence"),
    "strength_recognition": ("clarification", "implications"),
    "improvement_suggestion": ("perspectives", "meta"),
}
POINT_TYPES = ("strength", "weakness", "concern", "suggestion")
SEVERITIES = ("minor", "moderate", "major", "critical")
RECOMMENDATIONS = ("accept", "minor_revision", "major_revision", "reject")
RATING_PATHS = ("design", "sample", "analysis")


@dataclass(frozen=True)
class CritiquedWork:
    id: str
    title: str = "Untitled Work"
    authors: list[str] = field(default_factory=list)
    year: int | None = None
    type: str = "empirical_study"
    discipline: str = "Unknown"
    claimed_contribution: str = ""
    research_question: str | None = None


@dataclass(frozen=True)
class CritiquePoint:
    id: str
    type: str
    description: str = ""
    severity: str = "moderate"
    recommendation: str | None = None

    @property
    def is_weakness(self) -> bool:
        return self.type in ("weakness", "concern")


@dataclass(frozen=True)
class CritiqueVerdict:
    recommendation: str
    summary: str = ""
    confidence: float = 0.5


@dataclass(frozen=True, kw_only=True)
class CritiqueThought(Thought):
    thought_type: str = "work_characterization"
    work: CritiquedWork
    methodology_evaluation: dict[str, Any] | None = None
    argument_critique: dict[str, Any] | None = None
    critique_points: list[CritiquePoint] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    verdict: CritiqueVerdict | None = None
    strengths_identified: int = 0
    weaknesses_identified: int = 0
    balance_ratio: float = 0.5
    uncertainty: float = 0.5


def socratic_questions(thought_type: str) -> dict[str, list[str]]:
    """Question bank for the categories that suit ``thought_type``."""
    focus = SOCRATIC_FOCUS.get(thought_type, ("clarification", "evidence"))
    return {name: list(questions) for name, questions in SOCRATIC_CATEGORIES.items() if name in focus}


def normalize_work(raw: Any, ids: IdGenerator) -> CritiquedWork:
    record = as_dict(raw)
    if not record:
        return CritiquedWork(id=ids("work"))
    return CritiquedWork(
        id=as_str(pick(record, "id")) or ids("work"),
        title=as_str(pick(record, "title"), "Untitled Work"),
        authors=as_str_list(pick(record, "authors")),
        year=as_int(pick(record, "year")),
        type=as_str(pick(record, "type"), "empirical_study"),
        discipline=as_str(pick(record, "field"), "Unknown"),
        claimed_contribution=as_str(pick(record, "claimed_contribution")),
        research_question=as_str(pick(record, "research_question")) or None,
    )


class CritiqueHandler(ModeHandler):
    """Scholarly critique with Socratic questioning and balance checks."""

    mode = ThinkingMode.CRITIQUE
    mode_name = "Critical Analysis"
    description = "Scholarly critique with Socratic questioning, balanced evaluation, and methodology assessment"
    thought_types = CRITIQUE_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)

        work = as_dict(data.get("work"))
        if work:
            if not as_str(pick(work, "title")).strip():
                findings.warn("work.title", "Work has no title", "Add a title to identify the work being critiqued")
            if not as_list(pick(work, "authors")):
                findings.warn("work.authors", "No authors specified", "Add author information for proper attribution")
            if not as_str(pick(work, "claimed_contribution")).strip():
                findings.warn(
                    "work.claimedContribution",
                    "No claimed contribution specified",
                    "Identify what contribution the work claims to make",
                )

        methodology = as_dict(data.get("methodology_evaluation"))
        findings.unit_interval("methodologyEvaluation.overallRating", pick(methodology, "overall_rating"))
        for part in RATING_PATHS:
            findings.unit_interval(
                f"methodologyEvaluation.{part}.rating", pick(as_dict(methodology.get(part)), "rating")
            )

        argument = as_dict(data.get("argument_critique"))
        findings.unit_interval("argumentCritique.rating", pick(argument, "rating"), "Argument rating")
        structure = as_dict(pick(argument, "logical_structure"))
        findings.unit_interval(
            "argumentCritique.logicalStructure.overallCoherence",
            pick(structure, "overall_coherence"),
            "Coherence",
        )
        if as_bool(pick(structure, "circular_reasoning")):
            findings.warn(
                "argumentCritique.logicalStructure",
                "Circular reasoning detected in the argument",
                "This is a significant logical flaw that should be addressed",
            )

        points = as_records(data.get("critique_points"))
        for i, point in enumerate(points):
            if not as_str(pick(point, "description")).strip():
                findings.warn(
                    f"critiquePoints[{i}].description",
                    "Critique point has no description",
                    "Add a detailed description of the critique",
                )
            findings.known_value(f"critiquePoints[{i}].type", pick(point, "type"), POINT_TYPES, "critique point type")
            if pick(point, "type") in ("weakness", "concern") and not pick(point, "recommendation"):
                findings.warn(
                    f"critiquePoints[{i}].recommendation",
                    "Weakness has no recommendation for improvement",
                    "Consider adding a constructive suggestion",
                )
        if len(points) >= 3:
            strengths = sum(1 for p in points if pick(p, "type") == "strength")
            weaknesses = sum(1 for p in points if pick(p, "type") in ("weakness", "concern"))
            if strengths == 0:
                findings.warn(
                    "critiquePoints",
                    "No strengths identified in critique",
                    "A balanced critique should acknowledge strengths as well as weaknesses",
                )
            elif weaknesses == 0:
                findings.warn(
                    "critiquePoints",
                    "No weaknesses or concerns identified",
                    "A thorough critique should identify areas for improvement",
                )

        verdict = as_dict(data.get("verdict"))
        if verdict:
            findings.unit_interval("verdict.confidence", pick(verdict, "confidence"), "Verdict confidence")
            if not as_str(pick(verdict, "summary")).strip():
                findings.warn(
                    "verdict.summary", "Verdict has no summary", "Add a summary explaining the recommendation"
                )
            findings.known_value("verdict.recommendation", pick(verdict, "recommendation"), RECOMMENDATIONS)
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> CritiqueThought:
        points = [
            CritiquePoint(
                id=as_str(pick(p, "id")) or self.ids("point"),
                type=as_str(pick(p, "type"), "concern"),
                description=as_str(pick(p, "description")),
                severity=as_str(pick(p, "severity"), "moderate"),
                recommendation=as_str(pick(p, "recommendation")) or None,
            )
            for p in as_records(data.get("critique_points"))
        ]
        strengths = sum(1 for p in points if p.type == "strength")
        weaknesses = sum(1 for p in points if p.is_weakness)
        raw_verdict = as_dict(data.get("verdict"))
        verdict = (
            CritiqueVerdict(
                recommendation=as_str(pick(raw_verdict, "recommendation")),
                summary=as_str(pick(raw_verdict, "summary")),
                confidence=as_unit(pick(raw_verdict, "confidence")),
            )
            if raw_verdict
            else None
        )
        return CritiqueThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "work_characterization"),
            work=normalize_work(data.get("work"), self.ids),
            methodology_evaluation=as_dict(data.get("methodology_evaluation")) or None,
            argument_critique=as_dict(data.get("argument_critique")) or None,
            critique_points=points,
            improvements=as_str_list(data.get("improvements")),
            verdict=verdict,
            strengths_identified=strengths,
            weaknesses_identified=weaknesses,
            balance_ratio=balance_ratio(strengths, weaknesses),
            uncertainty=as_unit(data.get("uncertainty")),
        )

    def get_enhancements(self, thought: CritiqueThought) -> ModeEnhancements:
        questions = socratic_questions(thought.thought_type)
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.ARGUMENTATION, ThinkingMode.SYNTHESIS, ThinkingMode.ANALYSIS],
            mental_models=[
                "Socratic Questioning",
                "Peer Review Framework",
                "Toulmin Model",
                "Critical Thinking",
            ],
            guiding_questions=[category[0] for category in questions.values()],
            metrics={
                "strengths_identified": thought.strengths_identified,
                "weaknesses_identified": thought.weaknesses_identified,
                "balance_ratio": thought.balance_ratio,
                "critique_point_count": len(thought.critique_points),
                "improvement_count": len(thought.improvements),
                "has_verdict": 1 if thought.verdict is not None else 0,
            },
            socratic_questions=questions,
        )
        if thought.balance_ratio < 0.2:
            enhancements.warnings.append(
                "Critique appears heavily weighted toward weaknesses. Consider identifying strengths."
            )
        elif thought.balance_ratio > 0.8:
            enhancements.warnings.append(
                "Critique appears heavily weighted toward strengths. Consider identifying limitations."
            )

        work = thought.work
        if thought.methodology_evaluation is None and work.type == "empirical_study":
            enhancements.suggestions.append("Consider adding methodology evaluation for empirical work")
        if thought.argument_critique is None and work.type == "theoretical_paper":
            enhancements.suggestions.append("Consider adding argument structure analysis for theoretical work")
        if len(thought.critique_points) >= 5 and thought.verdict is None:
            enhancements.suggestions.append("Consider providing an overall verdict summarizing the critique")
        if thought.weaknesses_identified > 0 and not thought.improvements:
            enhancements.suggestions.append(
                "Consider adding constructive improvement suggestions for identified weaknesses"
            )
        if work.type == "empirical_study" and not work.research_question:
            enhancements.guiding_questions.append("What is the research question being addressed?")

        critical = sum(1 for p in thought.critique_points if p.severity == "critical")
        major = sum(1 for p in thought.critique_points if p.severity == "major")
        recommendation = thought.verdict.recommendation if thought.verdict is not None else None
        if critical and recommendation == "accept":
            enhancements.warnings.append("Accept recommendation despite critical issues. Verify this is intentional.")
        if not critical and not major and recommendation == "reject" and thought.critique_points:
            enhancements.warnings.append(
                "Reject recommendation with no critical/major issues. Consider revising verdict."
            )
        return enhancements


# =============================================================================
# Analysis
# =============================================================================

ANALYSIS_TYPES = (
    "data_familiarization",
    "initial_coding",
    "focused_coding",
    "theme_development",
    "theme_refinement",
    "theoretical_integration",
    "memo_writing",
    "saturation_assessment",
)
METHODOLOGY_GUIDANCE: dict[str, tuple[str, tuple[str, ...]]] = {
    "thematic_analysis": (
        "Braun & Clarke's reflexive thematic analysis",
        ("Data familiarization", "Initial coding", "Theme development", "Theme refinement", "Final analysis"),
    ),
    "grounded_theory": (
        "Glaser & Strauss, Charmaz grounded theory approach",
        ("Open coding", "Axial coding", "Selective coding", "Theoretical sampling", "Saturation"),
    ),
    "discourse_analysis": (
        "Foucauldian or Critical discourse analysis",
        ("Text selection", "Identify patterns", "Analyze power relations", "Interpret social functions"),
    ),
    "content_analysis": (
        "Qualitative content analysis",
        ("Define categories", "Create coding scheme", "Code systematically", "Analyze patterns"),
    ),
    "phenomenological": (
        "IPA or Descriptive phenomenological analysis",
        ("Bracket assumptions", "Describe experience", "Identify essences", "Synthesize meanings"),
    ),
    "narrative_analysis": (
        "Narrative inquiry approach",
        ("Collect stories", "Analyze structure", "Identify themes", "Interpret meanings"),
    ),
    "framework_analysis": (
        "Ritchie & Spencer framework analysis",
        ("Familiarization", "Framework identification", "Indexing", "Charting", "Interpretation"),
    ),
    "template_analysis": (
        "King's template analysis",
        ("Initial template", "Apply to data", "Modify template", "Final template"),
    ),
    "mixed_qualitative": (
        "Combined qualitative approaches",
        ("Justify combination", "Apply methods", "Integrate findings", "Ensure coherence"),
    ),
}
LOW_INTERCODER_RELIABILITY = 0.7


@dataclass(frozen=True)
class Code:
    id: str
    label: str
    definition: str = ""
    type: str = "descriptive"
    examples: list[str] = field(default_factory=list)
    frequency: int = 0
    parent_code_id: str | None = None


@dataclass(frozen=True)
class Codebook:
    id: str
    name: str = "Analysis Codebook"
    version: int = 1
    codes: list[Code] = field(default_factory=list)
    hierarchy: dict[str, list[str]] = field(default_factory=dict)
    intercoder_reliability: float | None = None


@dataclass(frozen=True)
class CodingProgress:
    segments_coded: int = 0
    total_segments: int = 0

    @property
    def percent_complete(self) -> float:
        return self.segments_coded / self.total_segments * 100 if self.total_segments else 0.0


@dataclass(frozen=True)
class QualitativeTheme:
    id: str
    name: str
    prevalence: float = 0.5
    code_ids: list[str] = field(default_factory=list)
    key_quotes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RigorAssessment:
    credibility: float = 0.5
    transferability: float = 0.4
    dependability: float = 0.4
    confirmability: float = 0.4
    reflexivity: bool = False
    saturation_achieved: bool = False
    new_codes_last_n: int = 0


@dataclass(frozen=True, kw_only=True)
class AnalysisThought(Thought):
    thought_type: str = "initial_coding"
    methodology: str = "thematic_analysis"
    data_sources: list[str] = field(default_factory=list)
    codebook: Codebook | None = None
    coding_progress: CodingProgress = field(default_factory=CodingProgress)
    themes: list[QualitativeTheme] = field(default_factory=list)
    memos: list[dict[str, Any]] = field(default_factory=list)
    rigor: RigorAssessment = field(default_factory=RigorAssessment)
    uncertainty: float = 0.5


def normalize_codebook(raw: Any, ids: IdGenerator) -> Codebook | None:
    record = as_dict(raw)
    if not record:
        return None
    hierarchy = as_dict(pick(as_dict(pick(record, "code_hierarchy")), "parent_child_map"))
    reliability = pick(record, "intercoder_reliability")
    return Codebook(
        id=as_str(pick(record, "id")) or ids("codebook"),
        name=as_str(pick(record, "name"), "Analysis Codebook"),
        version=as_int(pick(record, "version"), 1) or 1,
        codes=[
            Code(
                id=as_str(pick(c, "id")) or ids("code"),
                label=as_str(pick(c, "label")),
                definition=as_str(pick(c, "definition")),
                type=as_str(pick(c, "type"), "descriptive"),
                examples=as_str_list(pick(c, "examples")),
                frequency=as_int(pick(c, "frequency"), 0) or 0,
                parent_code_id=as_str(pick(c, "parent_code_id")) or None,
            )
            for c in as_records(pick(record, "codes"))
        ],
        hierarchy={str(k): as_str_list(v) for k, v in hierarchy.items()},
        intercoder_reliability=as_unit(reliability) if is_number(reliability) else None,
    )


def coding_progress(segments: Any, declared_total: Any) -> CodingProgress:
    """Count segments carrying at least one code."""
    records = as_records(segments)
    if not records:
        return CodingProgress(total_segments=as_int(declared_total, 0) or 0)
    coded = sum(1 for s in records if as_list(pick(s, "codes")))
    return CodingProgress(segments_coded=coded, total_segments=len(records))


def assess_rigor(
    codebook: Codebook | None, themes: list[QualitativeTheme], memos: list[dict[str, Any]]
) -> RigorAssessment:
    """Trustworthiness estimate from the analysis artefacts present."""
    multiple_coders = codebook is not None and codebook.intercoder_reliability is not None
    thick_description = any(len(t.key_quotes) > 2 for t in themes)
    reflexive = any(pick(m, "type") == "reflective_memo" for m in memos)
    return RigorAssessment(
        credibility=0.7 if multiple_coders else 0.5,
        transferability=0.7 if thick_description else 0.4,
        dependability=0.6 if memos else 0.4,
        confirmability=0.7 if reflexive else 0.4,
        reflexivity=reflexive,
    )


def normalize_rigor(raw: dict[str, Any]) -> RigorAssessment:
    def rating(name: str, default: float) -> float:
        part = pick(raw, name)
        value = pick(part, "rating") if isinstance(part, dict) else part
        return as_unit(value, default)

    saturation = as_dict(pick(raw, "saturation"))
    confirmability = as_dict(pick(raw, "confirmability"))
    return RigorAssessment(
        credibility=rating("credibility", 0.5),
        transferability=rating("transferability", 0.4),
        dependability=rating("dependability", 0.4),
        confirmability=rating("confirmability", 0.4),
        reflexivity=bool(as_bool(pick(confirmability, "reflexivity"), False)),
        saturation_achieved=bool(as_bool(pick(saturation, "achieved"), False)),
        new_codes_last_n=as_int(pick(saturation, "new_codes_last_n"), 0) or 0,
    )


class AnalysisHandler(ModeHandler):
    """Qualitative analysis with codebook checks and saturation tracking."""

    mode = ThinkingMode.ANALYSIS
    mode_name = "Qualitative Analysis"
    description = "Rigorous qualitative analysis with codebook validation and saturation assessment"
    thought_types = ANALYSIS_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        if not as_list(data.get("data_sources")):
            findings.warn(
                "dataSources",
                "No data sources specified",
                "Define the data sources for your qualitative analysis",
            )
        findings.known_value("methodology", data.get("methodology"), METHODOLOGY_GUIDANCE, "methodology")

        codebook = as_dict(data.get("codebook"))
        codes = as_records(pick(codebook, "codes"))
        undefined = [c for c in codes if not as_str(pick(c, "definition")).strip()]
        if undefined:
            findings.warn(
                "codebook.codes",
                f"{len(undefined)} codes lack definitions",
                "All codes should have clear definitions for consistency",
            )
        if codes and sum(1 for c in codes if not as_list(pick(c, "examples"))) > len(codes) * 0.5:
            findings.warn(
                "codebook.codes",
                "Many codes lack example quotes",
                "Add exemplar quotes to improve codebook reliability",
            )
        code_ids = {as_str(pick(c, "id")) for c in codes}
        hierarchy = as_dict(pick(as_dict(pick(codebook, "code_hierarchy")), "parent_child_map"))
        for parent, children in hierarchy.items():
            if parent not in code_ids:
                findings.warn("codebook.codeHierarchy", f"Parent code {parent} not found in codes")
            for child in as_str_list(children):
                if child not in code_ids:
                    findings.warn("codebook.codeHierarchy", f"Child code {child} not found in codes")
        if len(codes) > 5:
            reliability = as_float(pick(codebook, "intercoder_reliability"))
            if reliability is None:
                findings.warn(
                    "codebook.intercoderReliability",
                    "No inter-coder reliability reported",
                    "For rigor, consider having multiple coders and reporting agreement",
                )
            elif reliability < LOW_INTERCODER_RELIABILITY:
                findings.warn(
                    "codebook.intercoderReliability",
                    f"Inter-coder reliability is low ({reliability * 100:.1f}%)",
                    "Consider reconciling coding differences or refining code definitions",
                )

        themes = as_records(data.get("themes"))
        prevalences = [as_float(pick(t, "prevalence"), 0.5) or 0.0 for t in themes]
        if sum(1 for p in prevalences if p < 0.2) > sum(1 for p in prevalences if p > 0.7):
            findings.warn(
                "themes",
                "Many themes have low prevalence",
                "Consider whether sparse themes represent meaningful patterns or should be merged",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> AnalysisThought:
        codebook = normalize_codebook(data.get("codebook"), self.ids)
        themes = [
            QualitativeTheme(
                id=as_str(pick(t, "id")) or self.ids("theme"),
                name=as_str(pick(t, "name")),
                prevalence=as_unit(pick(t, "prevalence")),
                code_ids=as_str_list(pick(t, "code_ids")),
                key_quotes=as_str_list(pick(t, "key_quotes")),
            )
            for t in as_records(data.get("themes"))
        ]
        memos = as_records(data.get("memos"))
        raw_rigor = as_dict(data.get("rigor_assessment"))
        methodology = as_str(data.get("methodology"), "thematic_analysis")
        return AnalysisThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "initial_coding"),
            methodology=methodology,
            data_sources=as_str_list(data.get("data_sources")),
            codebook=codebook,
            coding_progress=coding_progress(data.get("data_segments"), data.get("total_segments")),
            themes=themes,
            memos=memos,
            rigor=normalize_rigor(raw_rigor) if raw_rigor else assess_rigor(codebook, themes, memos),
            uncertainty=as_unit(data.get("uncertainty")),
        )

    def get_enhancements(self, thought: AnalysisThought) -> ModeEnhancements:
        codebook = thought.codebook
        code_count = len(codebook.codes) if codebook is not None else 0
        themes = thought.themes
        progress = thought.coding_progress
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.SYNTHESIS, ThinkingMode.CRITIQUE, ThinkingMode.INDUCTIVE],
            mental_models=[
                "Qualitative Rigor (Guba & Lincoln)",
                "Theoretical Saturation",
                "Constant Comparative Method",
                "Thick Description",
                "Reflexivity",
            ],
            metrics={
                "code_count": code_count,
                "theme_count": len(themes),
                "data_source_count": len(thought.data_sources),
                "segments_coded": progress.segments_coded,
                "coding_progress": progress.segments_coded / progress.total_segments
                if progress.total_segments
                else 0.0,
                "intercoder_reliability": (codebook.intercoder_reliability or 0.0) if codebook is not None else 0.0,
                "avg_theme_prevalence": _mean([t.prevalence for t in themes]),
            },
        )
        guide = METHODOLOGY_GUIDANCE.get(thought.methodology)
        if guide is not None:
            description, steps = guide
            enhancements.suggestions.append(f"Using {description}")
            enhancements.guiding_questions.append(f"Have you completed: {' → '.join(steps)}?")

        kind = thought.thought_type
        if kind == "initial_coding" and code_count < 10:
            enhancements.suggestions.append("Continue generating initial codes - aim for breadth")
        if kind == "focused_coding" and code_count > 50:
            enhancements.suggestions.append("Consider consolidating codes into higher-level categories")
        if kind == "theme_development" and not themes:
            enhancements.suggestions.append("Group related codes into candidate themes")
        rigor = thought.rigor
        if kind == "saturation_assessment":
            if rigor.new_codes_last_n > 3:
                enhancements.suggestions.append("New codes still emerging - saturation not yet achieved")
            elif rigor.saturation_achieved:
                enhancements.suggestions.append("Theoretical saturation achieved - ready for final analysis")
        if rigor.credibility < 0.5:
            enhancements.warnings.append("Low credibility rating - consider member checking or triangulation")
        if not rigor.reflexivity:
            enhancements.suggestions.append("Document researcher reflexivity for confirmability")
        enhancements.guiding_questions.extend(
            [
                "Are the codes consistently applied across all data?",
                "Do the themes capture the full meaning of the data?",
                "What alternative interpretations have been considered?",
                "How does researcher positionality affect the analysis?",
            ]
        )
        return enhancements


# =============================================================================
# Historical
# =============================================================================

HISTORICAL_TYPES = (
    "event_analysis",
    "source_evaluation",
    "pattern_identification",
    "causal_chain",
    "periodization",
)
SIGNIFICANCE_LEVELS = ("minor", "moderate", "major", "transformative")
SOURCE_WEIGHTS = {"primary": 2.0, "secondary": 1.5}
HISTORICAL_QUESTIONS = {
    "event_analysis": [
        "What were the immediate causes of this event?",
        "What were the long-term consequences?",
        "Who were the key actors involved?",
        "How does this event fit into broader historical trends?",
        "What sources document this event?",
    ],
    "source_evaluation": [
        "Is this a primary or secondary source?",
        "What biases might the author have?",
        "Can this source be corroborated by others?",
        "What is the provenance of this source?",
        "What limitations does this source have?",
    ],
    "pattern_identification": [
        "What recurring patterns emerge across events?",
        "Are these patterns cyclical, linear, or dialectical?",
        "What exceptions exist to the identified patterns?",
        "How do structural factors influence these patterns?",
        "What contingent factors disrupted expected patterns?",
    ],
    "causal_chain": [
        "What evidence supports this causal link?",
        "Are there alternative explanations?",
        "What mechanisms connect cause to effect?",
        "What counterfactuals help test this causal claim?",
        "How confident are we in this causal chain?",
    ],
    "periodization": [
        "What characteristics define this period?",
        "What events mark the beginning and end?",
        "How does this periodization compare to others?",
        "What continuities span period boundaries?",
        "Is this periodization Eurocentric or universal?",
    ],
}
DEFAULT_HISTORICAL_QUESTIONS = [
    "What sources support this historical claim?",
    "What alternative interpretations exist?",
    "How does context shape our understanding?",
    "What biases might affect this analysis?",
    "What further evidence is needed?",
]


@dataclass(frozen=True)
class HistoricalEvent:
    id: str
    name: str
    date: str | dict[str, str] | None = None
    significance: str = "moderate"
    causes: list[str] = field(default_factory=list)
    effects: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    actors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HistoricalSource:
    id: str
    title: str
    type: str = "secondary"
    reliability: float = 0.5
    corroborated_by: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CausalLink:
    cause: str
    effect: str
    mechanism: str = ""
    confidence: float = 0.5


@dataclass(frozen=True)
class HistoricalCausalChain:
    id: str
    links: list[CausalLink] = field(default_factory=list)


@dataclass(frozen=True)
class HistoricalPattern:
    id: str
    name: str
    type: str
    instances: list[str] = field(default_factory=list)
    description: str = ""
    confidence: float = 0.5


@dataclass(frozen=True)
class TemporalSpan:
    start: str
    end: str


@dataclass(frozen=True, kw_only=True)
class HistoricalThought(Thought):
    thought_type: str = "event_analysis"
    events: list[HistoricalEvent] = field(default_factory=list)
    sources: list[HistoricalSource] = field(default_factory=list)
    periods: list[dict[str, Any]] = field(default_factory=list)
    causal_chains: list[HistoricalCausalChain] = field(default_factory=list)
    actors: list[dict[str, Any]] = field(default_factory=list)
    patterns: list[HistoricalPattern] = field(default_factory=list)
    interpretations: list[dict[str, Any]] = field(default_factory=list)
    historiographical_school: str | None = None
    methodology: str | None = None
    aggregate_reliability: float | None = None
    temporal_span: TemporalSpan | None = None


def _historical_events(data: ThinkingInput) -> list[dict[str, Any]]:
    return as_records(data.get("historical_events") or data.get("events"))


def _historical_sources(data: ThinkingInput) -> list[dict[str, Any]]:
    return as_records(data.get("historical_sources") or data.get("sources"))


def aggregate_reliability(sources: list[HistoricalSource]) -> float:
    """Type-weighted mean reliability plus a small corroboration bonus."""
    if not sources:
        return 0.0
    weights = [SOURCE_WEIGHTS.get(s.type, 1.0) for s in sources]
    weighted = sum(s.reliability * w for s, w in zip(sources, weights, strict=True)) / sum(weights)
    corroborated = sum(1 for s in sources if s.corroborated_by)
    return min(1.0, weighted + min(0.1, corroborated / len(sources) * 0.1))


def temporal_span(events: list[HistoricalEvent]) -> TemporalSpan | None:
    """Earliest and latest date strings, compared lexically."""
    dates: list[str] = []
    for event in events:
        if isinstance(event.date, str):
            dates.append(event.date)
        elif isinstance(event.date, dict):
            dates.extend(d for d in (event.date.get("start"), event.date.get("end")) if d)
    if not dates:
        return None
    dates.sort()
    return TemporalSpan(start=dates[0], end=dates[-1])


def detect_patterns(events: list[HistoricalEvent], ids: IdGenerator) -> list[HistoricalPattern]:
    """Structural patterns visible from significance and causal connectivity alone."""
    patterns = []
    transformative = [e.id for e in events if e.significance == "transformative"]
    if transformative and len(transformative) >= len(events) * 0.4:
        patterns.append(
            HistoricalPattern(
                id=ids("pattern"),
                name="Revolutionary Period",
                type="structural",
                instances=transformative,
                description="High concentration of transformative events indicates a period of significant change",
                confidence=0.7,
            )
        )
    connected = [e.id for e in events if len(e.causes) + len(e.effects) > 3]
    if len(connected) >= 2:
        patterns.append(
            HistoricalPattern(
                id=ids("pattern"),
                name="Causal Nexus",
                type="contingent",
                instances=connected,
                description="Events with multiple causal connections form a nexus of historical change",
                confidence=0.6,
            )
        )
    return patterns


class HistoricalHandler(ModeHandler):
    """Historical analysis over events, sources and causal chains."""

    mode = ThinkingMode.HISTORICAL
    mode_name = "Historical Reasoning"
    description = "Historical analysis with source evaluation, pattern recognition, and causal chain analysis"
    thought_types = HISTORICAL_TYPES

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.thought_type(self, data)
        events = _historical_events(data)
        sources = _historical_sources(data)
        event_ids = {as_str(pick(e, "id")) for e in events}
        source_ids = {as_str(pick(s, "id")) for s in sources}
        actor_ids = {as_str(pick(a, "id")) for a in as_records(data.get("actors"))}

        for event in events:
            event_id = as_str(pick(event, "id"))
            for cause in as_str_list(pick(event, "causes")):
                if cause not in event_ids:
                    findings.error(
                        "events", f"Event {event_id} references unknown cause: {cause}", ErrorCode.INVALID_EVENT_REF
                    )
            for ref in as_str_list(pick(event, "sources")):
                if ref not in source_ids:
                    findings.warn(
                        "events",
                        f"Event {event_id} references unknown source: {ref}",
                        "Add the source or remove the reference",
                    )
            for ref in as_str_list(pick(event, "actors")):
                if ref not in actor_ids:
                    findings.warn(
                        "events",
                        f"Event {event_id} references unknown actor: {ref}",
                        "Add the actor or remove the reference",
                    )
            findings.known_value("events.significance", pick(event, "significance"), SIGNIFICANCE_LEVELS)

        for chain in as_records(data.get("causal_chains")):
            chain_id = as_str(pick(chain, "id"))
            links = as_records(pick(chain, "links"))
            for i in range(len(links) - 1):
                if pick(links[i], "effect") != pick(links[i + 1], "cause"):
                    findings.warn(
                        "causalChains",
                        f"Chain {chain_id} has discontinuity between links {i} and {i + 1}",
                        "Ensure each link effect is the cause of the next link",
                    )
            for link in links:
                for role in ("cause", "effect"):
                    ref = as_str(pick(link, role))
                    if ref not in event_ids:
                        findings.error(
                            "causalChains",
                            f"Chain {chain_id} references unknown {role} event: {ref}",
                            ErrorCode.INVALID_EVENT_REF,
                        )

        if events and not sources:
            findings.warn(
                "sources",
                "No sources defined for historical analysis",
                "Add primary or secondary sources to support your analysis",
            )
        for i, source in enumerate(sources):
            findings.unit_interval(f"sources[{i}].reliability", pick(source, "reliability"), "Source reliability")
        low = [s for s in sources if is_number(pick(s, "reliability")) and pick(s, "reliability") < 0.5]
        if low:
            findings.warn(
                "sources",
                f"{len(low)} source(s) have low reliability (<0.5)",
                "Consider corroborating with additional sources",
            )
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> HistoricalThought:
        events = []
        for e in _historical_events(data):
            date = pick(e, "date")
            significance = as_str(pick(e, "significance"), "moderate")
            events.append(
                HistoricalEvent(
                    id=as_str(pick(e, "id")) or self.ids("event"),
                    name=as_str(pick(e, "name")),
                    date=date if isinstance(date, str | dict) else None,
                    significance=significance if significance in SIGNIFICANCE_LEVELS else "moderate",
                    causes=as_str_list(pick(e, "causes")),
                    effects=as_str_list(pick(e, "effects")),
                    sources=as_str_list(pick(e, "sources")),
                    actors=as_str_list(pick(e, "actors")),
                )
            )
        sources = [
            HistoricalSource(
                id=as_str(pick(s, "id")) or self.ids("source"),
                title=as_str(pick(s, "title")),
                type=as_str(pick(s, "type"), "secondary"),
                reliability=as_unit(pick(s, "reliability")),
                corroborated_by=as_str_list(pick(s, "corroborated_by")),
            )
            for s in _historical_sources(data)
        ]
        chains = [
            HistoricalCausalChain(
                id=as_str(pick(c, "id")) or self.ids("chain"),
                links=[
                    CausalLink(
                        cause=as_str(pick(link, "cause")),
                        effect=as_str(pick(link, "effect")),
                        mechanism=as_str(pick(link, "mechanism")),
                        confidence=as_unit(pick(link, "confidence")),
                    )
                    for link in as_records(pick(c, "links"))
                ],
            )
            for c in as_records(data.get("causal_chains"))
        ]
        patterns = [
            HistoricalPattern(
                id=as_str(pick(p, "id")) or self.ids("pattern"),
                name=as_str(pick(p, "name")),
                type=as_str(pick(p, "type"), "structural"),
                instances=as_str_list(pick(p, "instances")),
                description=as_str(pick(p, "description")),
                confidence=as_unit(pick(p, "confidence")),
            )
            for p in as_records(data.get("patterns"))
        ]
        if not patterns and len(events) >= 3:
            patterns = detect_patterns(events, self.ids)
        return HistoricalThought(
            **self.base_fields(data, session_id),
            thought_type=self.resolve_thought_type(data, "event_analysis"),
            events=events,
            sources=sources,
            periods=as_records(data.get("periods")),
            causal_chains=chains,
            actors=as_records(data.get("actors")),
            patterns=patterns,
            interpretations=as_records(data.get("interpretations")),
            historiographical_school=as_str(data.get("historiographical_school")) or None,
            methodology=as_str(data.get("methodology")) or None,
            aggregate_reliability=aggregate_reliability(sources) if sources else None,
            temporal_span=temporal_span(events),
        )

    def get_enhancements(self, thought: HistoricalThought) -> ModeEnhancements:
        events = thought.events
        sources = thought.sources
        primary = [s for s in sources if s.type == "primary"]
        enhancements = ModeEnhancements(
            related_modes=[ThinkingMode.TEMPORAL, ThinkingMode.CAUSAL, ThinkingMode.SYNTHESIS],
            mental_models=[
                "Source Criticism",
                "Historiographical Schools",
                "Causal Analysis",
                "Periodization",
                "Counterfactual History",
                "Longue Durée",
                "Microhistory",
            ],
            guiding_questions=list(HISTORICAL_QUESTIONS.get(thought.thought_type, DEFAULT_HISTORICAL_QUESTIONS)),
            metrics={
                "event_count": len(events),
                "source_count": len(sources),
                "period_count": len(thought.periods),
                "causal_chain_count": len(thought.causal_chains),
                "actor_count": len(thought.actors),
                "primary_source_ratio": len(primary) / len(sources) if sources else 0.0,
                "average_source_reliability": thought.aggregate_reliability or 0.0,
                "transformative_event_count": sum(1 for e in events if e.significance == "transformative"),
            },
        )
        if thought.temporal_span is not None:
            enhancements.metrics["span_start"] = thought.temporal_span.start
            enhancements.metrics["span_end"] = thought.temporal_span.end
        if not sources:
            enhancements.suggestions.append("Add historical sources to support your analysis")
        elif not primary:
            enhancements.suggestions.append("Consider adding primary sources for more direct evidence")
        if len(events) > 3 and not thought.causal_chains:
            enhancements.suggestions.append("Consider tracing causal chains between major events")
        if len(events) > 5 and not thought.periods:
            enhancements.suggestions.append("Consider organizing events into historical periods")
        if events and not thought.actors:
            enhancements.suggestions.append("Identify key historical actors involved in these events")
        uncorroborated = [s for s in primary if not s.corroborated_by]
        if uncorroborated:
            enhancements.suggestions.append(f"{len(uncorroborated)} primary source(s) lack corroboration")
        return enhancements
