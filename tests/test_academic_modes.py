"""Tests for the synthesis, argumentation, critique, analysis and historical modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.academic import (
    HistoricalEvent,
    HistoricalSource,
    aggregate_reliability,
    coding_progress,
    socratic_questions,
    temporal_span,
)
from deepthinking.modes.types import ErrorCode


class TestSynthesis:
    """Tests for literature synthesis."""

    def test_source_and_theme_refs(self, factory, make_input) -> None:
        raw = make_input(
            "synthesis",
            sources=[{"id": "s1", "title": "Study A", "quality": {"relevance": 1.3}}],
            themes=[{"id": "t1", "name": "Cost", "sourceIds": ["s1", "s7"]}, {"id": "t2", "name": "Speed"}],
            gaps=[{"description": "Long-term effects", "relatedThemes": ["t9"]}],
        )
        messages = factory.validate(raw).warning_messages
        assert "Synthesis based on a single source" in messages
        assert "Theme references unknown source: s7" in messages
        assert "Theme 'Speed' has no supporting sources" in messages
        assert "Gap references unknown theme: t9" in messages
        assert "sources[0].quality.relevance (1.3) must be between 0 and 1" in messages

    def test_duplicate_and_unnamed_sources(self, factory, make_input) -> None:
        raw = make_input("synthesis", sources=[{"id": "s1", "title": "A"}, {"id": "s1", "title": "B"}, {"id": "s2"}])
        messages = factory.validate(raw).warning_messages
        assert "Duplicate source id: s1" in messages
        assert "Source is missing an id or title" in messages

    def test_coverage_and_contested_themes(self, factory, make_input) -> None:
        raw = make_input(
            "synthesis",
            sources=[{"id": "s1", "title": "A"}, {"id": "s2", "title": "B"}, {"id": "s3", "title": "C"}],
            themes=[{"name": "Remote work", "sourceIds": ["s1", "s2"], "consensus": "contested"}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.source_coverage == pytest.approx(2 / 3)
        assert thought.uncovered_sources == ["s3"]
        assert [c.source_ids for c in thought.contradictions] == [["s1", "s2"]]
        assert thought.contradictions[0].description == "Potential contradiction in contested theme: Remote work"

        enhancements = factory.get_enhancements(thought)
        assert "1 source(s) not linked to any theme" in enhancements.warnings
        assert "Identify gaps the literature leaves unaddressed" in enhancements.suggestions
        assert "Develop a framework that integrates the themes" in enhancements.suggestions


class TestArgumentation:
    """Tests for Toulmin argument checks."""

    def test_structure_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "argumentation",
            claims=[{"id": "c1", "statement": "We should adopt remote work"}],
            grounds=[{"id": "g1", "claimId": "c2", "content": "Survey data"}],
        )
        messages = factory.validate(raw).warning_messages
        assert "Claim c1 has no supporting grounds" in messages
        assert "Grounds provided without warrants" in messages
        assert "No rebuttals anticipated" in messages

    def test_weak_warrants_and_arguments(self, factory, make_input) -> None:
        raw = make_input(
            "argumentation",
            claims=[{"id": "c1", "statement": "x"}],
            grounds=[{"id": "g1", "claimId": "c1"}],
            warrants=[{"id": "w1", "strength": 0.3}, {"id": "w2", "strength": 0.4}],
            rebuttals=[{"objection": "costs"}],
            arguments=[{"claimId": "c1", "groundsIds": ["g1"], "warrantIds": ["w1"]}, {}],
            dialectic={"thesis": "A", "synthesisAchieved": True},
        )
        messages = factory.validate(raw).warning_messages
        assert "More than half of the warrants are weak" in messages
        assert "Weak warrant w1 has no backing" in messages
        assert "Argument has no claim" in messages
        assert "Dialectic requires both a thesis and an antithesis" in messages
        assert "Synthesis marked achieved but not stated" in messages

    def test_assembled_argument_strength(self, factory, make_input) -> None:
        raw = make_input(
            "argumentation",
            claims=[{"id": "c1", "statement": "Remote work improves productivity"}],
            grounds=[{"id": "g1", "claimId": "c1", "reliability": 0.8, "relevance": 0.6}],
            warrants=[{"id": "w1", "claimId": "c1", "statement": "Focus time matters", "strength": 0.8}],
            rebuttals=[{"id": "r1", "objection": "Collaboration suffers", "response": "Async tools"}],
            arguments=[{"claimId": "c1", "groundsIds": ["g1"], "warrantIds": ["w1"], "rebuttalIds": ["r1"]}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.arguments[0].strength == pytest.approx(0.93)
        assert thought.argument_strength == pytest.approx(0.93)
        assert factory.get_enhancements(thought).metrics["rebuttal_coverage"] == 1.0

    def test_strength_without_arguments(self, factory, make_input) -> None:
        raw = make_input("argumentation", claims=[{"id": "c1"}], grounds=[{"claimId": "c1"}], warrants=[{"claimId": "c1"}])
        assert factory.create_thought(raw, "s").argument_strength == pytest.approx(0.6)

    def test_circular_warrant(self, factory, make_input) -> None:
        raw = make_input(
            "argumentation",
            claims=[{"id": "c1", "statement": "Remote work improves productivity"}],
            warrants=[{"id": "w1", "claimId": "c1", "statement": "Because remote work improves output"}],
            rebuttals=[{"objection": "Isolation"}],
        )
        thought = factory.create_thought(raw, "s")
        assert [f.name for f in thought.fallacies] == ["circular_reasoning"]
        warnings = factory.get_enhancements(thought).warnings
        assert "Critical fallacy: circular_reasoning" in warnings
        assert "1 rebuttal(s) not yet addressed" in warnings


class TestCritique:
    """Tests for scholarly critique."""

    def test_work_and_balance_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "critique",
            work={"title": " "},
            critiquePoints=[
                {"type": "weakness", "description": "Small sample"},
                {"type": "concern", "description": "No control group", "recommendation": "Add one"},
                {"type": "nitpick"},
            ],
            verdict={"recommendation": "maybe"},
        )
        messages = factory.validate(raw).warning_messages
        assert "Work has no title" in messages
        assert "No authors specified" in messages
        assert "No claimed contribution specified" in messages
        assert "Weakness has no recommendation for improvement" in messages
        assert "Critique point has no description" in messages
        assert "Unknown critique point type: nitpick" in messages
        assert "No strengths identified in critique" in messages
        assert "Verdict has no summary" in messages
        assert "Unknown verdict.recommendation: maybe" in messages

    def test_balance_and_verdict_enhancements(self, factory, make_input) -> None:
        raw = make_input(
            "critique",
            thoughtType="methodology_evaluation",
            work={"title": "Study", "field": "Economics"},
            critiquePoints=[
                {"type": "weakness", "severity": "critical"},
                {"type": "weakness"},
            ],
            verdict={"recommendation": "accept", "summary": "Fine"},
        )
        thought = factory.create_thought(raw, "s")
        assert thought.work.discipline == "Economics"
        assert thought.weaknesses_identified == 2
        assert thought.balance_ratio == 0.0

        enhancements = factory.get_enhancements(thought)
        assert "Critique appears heavily weighted toward weaknesses. Consider identifying strengths." in (
            enhancements.warnings
        )
        assert "Accept recommendation despite critical issues. Verify this is intentional." in enhancements.warnings
        assert "Consider adding methodology evaluation for empirical work" in enhancements.suggestions
        assert set(enhancements.socratic_questions) == {"evidence", "assumptions"}

    def test_default_socratic_focus(self) -> None:
        assert set(socratic_questions("unheard_of")) == {"clarification", "evidence"}


class TestAnalysis:
    """Tests for qualitative analysis."""

    CODES = [{"id": f"c{i}", "label": f"Code {i}"} for i in range(6)]

    def test_codebook_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "analysis",
            methodology="vibes",
            codebook={"codes": self.CODES, "codeHierarchy": {"parentChildMap": {"p": ["c1", "c9"]}}},
        )
        messages = factory.validate(raw).warning_messages
        assert "No data sources specified" in messages
        assert "Unknown methodology: vibes" in messages
        assert "6 codes lack definitions" in messages
        assert "Many codes lack example quotes" in messages
        assert "Parent code p not found in codes" in messages
        assert "Child code c9 not found in codes" in messages
        assert "No inter-coder reliability reported" in messages

    def test_low_reliability(self, factory, make_input) -> None:
        raw = make_input("analysis", dataSources=["interviews"], codebook={"codes": self.CODES, "intercoderReliability": 0.65})
        assert "Inter-coder reliability is low (65.0%)" in factory.validate(raw).warning_messages

    def test_progress_and_rigor(self, factory, make_input) -> None:
        raw = make_input(
            "analysis",
            dataSources=["interviews"],
            codebook={"codes": self.CODES[:2], "intercoderReliability": 0.85},
            dataSegments=[{"codes": ["c0"]}, {"codes": []}],
            memos=[{"type": "reflective_memo", "content": "My bias"}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.coding_progress.segments_coded == 1
        assert thought.coding_progress.percent_complete == 50.0
        assert thought.rigor.credibility == 0.7
        assert thought.rigor.reflexivity

        enhancements = factory.get_enhancements(thought)
        assert "Using Braun & Clarke's reflexive thematic analysis" in enhancements.suggestions
        assert "Continue generating initial codes - aim for breadth" in enhancements.suggestions
        assert enhancements.metrics["coding_progress"] == 0.5

    def test_declared_total_without_segments(self) -> None:
        progress = coding_progress(None, 12)
        assert progress.total_segments == 12
        assert progress.percent_complete == 0.0


class TestHistorical:
    """Tests for historical events, sources and chains."""

    def test_unknown_cause_is_fatal(self, factory, make_input) -> None:
        raw = make_input("historical", events=[{"id": "e1", "name": "Storming", "causes": ["e0"]}])
        result = factory.validate(raw)
        assert not result.valid
        assert result.error_codes == [ErrorCode.INVALID_EVENT_REF.value]
        assert result.errors[0].message == "Event e1 references unknown cause: e0"

    def test_chain_refs_and_discontinuity(self, factory, make_input) -> None:
        raw = make_input(
            "historical",
            events=[{"id": "a"}, {"id": "b"}, {"id": "c"}],
            causalChains=[{"id": "ch1", "links": [{"cause": "a", "effect": "b"}, {"cause": "c", "effect": "x"}]}],
        )
        result = factory.validate(raw)
        assert "Chain ch1 references unknown effect event: x" in [e.message for e in result.errors]
        assert "Chain ch1 has discontinuity between links 0 and 1" in result.warning_messages
        assert "No sources defined for historical analysis" in result.warning_messages

    def test_source_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "historical",
            events=[{"id": "e1", "sources": ["s9"], "actors": ["napoleon"], "significance": "epic"}],
            sources=[{"id": "s1", "reliability": 0.3}],
        )
        messages = factory.validate(raw).warning_messages
        assert "Event e1 references unknown source: s9" in messages
        assert "Event e1 references unknown actor: napoleon" in messages
        assert "Unknown events.significance: epic" in messages
        assert "1 source(s) have low reliability (<0.5)" in messages

    def test_reliability_span_and_patterns(self, factory, make_input) -> None:
        raw = make_input(
            "historical",
            events=[
                {"id": "e1", "date": "1789-07-14", "significance": "transformative"},
                {"id": "e2", "date": {"start": "1792"}, "significance": "transformative"},
                {"id": "e3", "date": "1799-11-09"},
            ],
            sources=[
                {"id": "s1", "type": "primary", "reliability": 0.9, "corroboratedBy": ["s2"]},
                {"id": "s2", "type": "secondary", "reliability": 0.6},
            ],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.aggregate_reliability == pytest.approx(2.7 / 3.5 + 0.05)
        assert thought.temporal_span is not None
        assert (thought.temporal_span.start, thought.temporal_span.end) == ("1789-07-14", "1799-11-09")
        assert [p.name for p in thought.patterns] == ["Revolutionary Period"]

        enhancements = factory.get_enhancements(thought)
        assert enhancements.metrics["primary_source_ratio"] == 0.5
        assert "Identify key historical actors involved in these events" in enhancements.suggestions

    def test_helpers(self) -> None:
        assert aggregate_reliability([]) == 0.0
        assert aggregate_reliability([HistoricalSource("s", "t", reliability=1.0, corroborated_by=["x"])]) == 1.0
        assert temporal_span([HistoricalEvent("e", "n")]) is None
