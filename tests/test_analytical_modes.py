"""Tests for the analogical, first principles, systems, scientific and formal logic modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.analytical import (
    FeedbackLoop,
    ProofStep,
    detect_archetypes,
    forward_step_references,
    normalize_truth_table,
    truth_table_assignments,
)
from deepthinking.modes.types import ErrorCode


class TestAnalogical:
    """Tests for cross-domain mappings."""

    def test_missing_domains_and_mappings(self, factory, make_input) -> None:
        messages = factory.validate(make_input("analogical")).warning_messages
        assert "Source domain not fully specified" in messages
        assert "Target domain not fully specified" in messages
        assert "No explicit mappings provided" in messages

    def test_low_confidence_mapping(self, factory, make_input) -> None:
        raw = make_input(
            "analogical",
            sourceDomain={"name": "Plumbing"},
            targetDomain={"name": "Circuits"},
            mapping=[{"source": "a", "target": "b", "confidence": 0.9}, {"source": "c", "target": "d", "confidence": 0.3}],
        )
        assert "1 mapping(s) have low confidence" in factory.validate(raw).warning_messages

    def test_strength_and_unmapped_entities(self, factory, make_input) -> None:
        raw = make_input(
            "analogical",
            sourceDomain={"name": "Plumbing", "entities": ["Pump", "Pipe"]},
            targetDomain={"name": "Circuits", "entities": ["Battery", "Wire"]},
            mapping=[{"sourceEntityId": "entity-0", "targetEntityId": "entity-0", "confidence": 0.8}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.source_domain.entities[1].name == "Pipe"
        assert thought.analogy_strength == pytest.approx(0.48)
        assert thought.limitations == []

        enhancements = factory.get_enhancements(thought)
        assert "Consider mapping source entities: Pipe" in enhancements.suggestions
        assert "Target entities without mappings: Wire" in enhancements.suggestions
        assert "Low analogy strength - potential for negative transfer" in enhancements.warnings

    def test_limitations_inferred(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("analogical"), "s")
        assert thought.limitations == ["No mappings defined - analogy is undefined"]
        assert thought.analogy_strength == 0.0


class TestFirstPrinciples:
    """Tests for principle dependencies and derivations."""

    def test_principle_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "firstprinciples",
            principles=[
                {"id": "a", "type": "assumption", "dependsOn": ["b"]},
                {"id": "b", "type": "assumption", "dependsOn": ["a", "z"]},
                {"id": "b", "type": "hunch"},
            ],
            derivationSteps=[{"principle": "q"}],
        )
        messages = factory.validate(raw).warning_messages
        assert "No question stated" in messages
        assert "Duplicate principle id: b" in messages
        assert "Principle depends on unknown principle: z" in messages
        assert "Unknown principle type: hunch" in messages
        assert "Derivation step uses unknown principle: q" in messages
        assert any(m.startswith("Circular principle dependency: ") for m in messages)

    def test_all_assumptions(self, factory, make_input) -> None:
        raw = make_input("firstprinciples", question="Why?", principles=[{"id": "a", "type": "assumption"}])
        assert "All principles are assumptions" in factory.validate(raw).warning_messages

    def test_certainty_is_weakest_link(self, factory, make_input) -> None:
        raw = make_input(
            "firstprinciples",
            question="Can rockets be cheaper?",
            principles=[
                {"id": "p1", "type": "observation", "confidence": 0.9},
                {"id": "p2", "type": "assumption", "confidence": 0.6},
            ],
            derivationSteps=[
                {"principle": "p1", "inference": "Materials are cheap", "confidence": 0.95},
                {"principle": "p2", "inference": "Reuse is feasible"},
            ],
            conclusion={"statement": "Yes"},
        )
        thought = factory.create_thought(raw, "s")
        assert thought.conclusion.certainty == pytest.approx(0.6)
        assert thought.conclusion.derivation_chain == [1, 2]

        enhancements = factory.get_enhancements(thought)
        assert "1 principle(s) are assumptions - conclusions inherit their uncertainty" in enhancements.warnings
        assert "Consider alternative interpretations of the conclusion" in enhancements.suggestions

    def test_plain_string_conclusion(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("firstprinciples", conclusion="It follows"), "s")
        assert thought.conclusion.statement == "It follows"
        assert thought.conclusion.certainty == 0.0


class TestSystemsThinking:
    """Tests for components, feedback loops and archetypes."""

    def test_unknown_influence_is_fatal(self, factory, make_input) -> None:
        raw = make_input("systemsthinking", components=[{"id": "a", "name": "A", "influencedBy": ["x"]}])
        result = factory.validate(raw)
        assert not result.valid
        assert result.error_codes == [ErrorCode.INVALID_NODE_REF.value]
        assert result.errors[0].message == "References non-existent component: x"

    def test_loop_refs_are_fatal(self, factory, make_input) -> None:
        raw = make_input(
            "systemsthinking",
            components=[{"id": "a", "name": "A"}],
            feedbackLoops=[{"id": "l1", "type": "spiral", "components": ["a", "ghost"]}],
        )
        result = factory.validate(raw)
        assert "Loop references non-existent component: ghost" in [e.message for e in result.errors]
        assert "Unknown loop type: spiral" in result.warning_messages

    def test_structure_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "systemsthinking",
            system={"name": "Market"},
            components=[{"id": "a"}, {"name": "Nameless"}],
            feedbackLoops=[{"components": ["a"]}, {"id": "l2", "components": []}],
            leveragePoints=[{"location": "b"}, {"effectiveness": 2}],
        )
        messages = factory.validate(raw).warning_messages
        assert "Component has no name" in messages
        assert "Component has no ID" in messages
        assert "Feedback loop has no ID" in messages
        assert "Feedback loop has fewer than 2 components" in messages
        assert "Feedback loop has no components" in messages
        assert 'Leverage point location "b" not found in components' in messages
        assert "Leverage point has no location" in messages
        assert "Effectiveness (2) must be between 0 and 1" in messages
        assert "System has no boundary defined" in messages
        assert "System has no purpose defined" in messages

    def test_archetypes_for_delayed_pair(self) -> None:
        loops = [FeedbackLoop("r", "reinforcing", delay=2), FeedbackLoop("b", "balancing")]
        names = [a.name for a in detect_archetypes(loops)]
        assert names == ["Fixes that Fail", "Tragedy of the Commons", "Shifting the Burden"]

    def test_reinforcing_only(self, factory, make_input) -> None:
        raw = make_input(
            "systemsthinking",
            components=[{"id": "a", "name": "A"}, {"id": "b", "name": "B"}],
            feedbackLoops=[
                {"id": "l1", "type": "reinforcing", "components": ["a", "b"]},
                {"id": "l2", "type": "reinforcing", "components": ["b", "a"]},
            ],
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert enhancements.metrics["top_archetype"] == "Success to the Successful"
        assert (
            "Only reinforcing loops detected. System may be unstable without balancing feedback."
            in enhancements.warnings
        )
        assert "Identify leverage points where small changes could have large effects" in enhancements.suggestions


class TestScientificMethod:
    """Tests for hypotheses and experimental design."""

    def test_hypothesis_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "scientificmethod",
            scientificHypotheses=[{"statement": "Caffeine improves recall", "testable": True}],
            experiment={"design": "RCT", "sampleSize": 8},
        )
        messages = factory.validate(raw).warning_messages
        assert "No research question defined" in messages
        assert 'Hypothesis "Caffeine improves recall..." may not be falsifiable' in messages
        assert 'Hypothesis "Caffeine improves recall..." may not be testable' not in messages
        assert "No control conditions specified" in messages
        assert "Sample size may be insufficient" in messages

    def test_stage_progression(self, factory, make_input) -> None:
        raw = make_input(
            "scientificmethod",
            researchQuestion="Does caffeine help?",
            scientificHypotheses=[{"statement": "Yes", "testable": True, "falsifiable": True}],
            experiment={"controls": ["placebo"], "sampleSize": 40},
        )
        thought = factory.create_thought(raw, "s")
        assert thought.stage_reached == "experiment_design"
        enhancements = factory.get_enhancements(thought)
        assert "Collect data according to your experimental design" in enhancements.suggestions
        assert enhancements.metrics["has_experiment"] == 1

    def test_empty_stage(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("scientificmethod"), "s")
        assert thought.stage_reached == "none"
        assert "Start by formulating a clear research question" in factory.get_enhancements(thought).suggestions


class TestFormalLogic:
    """Tests for propositions, proofs and truth tables."""

    def test_proposition_and_inference_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "formallogic",
            propositions=[{"id": "p", "symbol": "P"}, {"id": "q", "symbol": "P", "type": "modal"}],
            logicalInferences=[{"premises": ["P", "R"]}],
        )
        messages = factory.validate(raw).warning_messages
        assert "Duplicate proposition symbol: P" in messages
        assert "Unknown proposition type: modal" in messages
        assert "Inference references unknown proposition: R" in messages
        assert "Inference has no rule" in messages

    def test_proof_checks(self, factory, make_input) -> None:
        raw = make_input(
            "formallogic",
            proof={
                "theorem": "P -> P",
                "technique": "magic",
                "steps": [{"statement": "P", "referencesSteps": [2]}, {"statement": "P", "referencesSteps": [1]}],
            },
            truthTable={"variables": ["P"], "isTautology": True, "isContradiction": True},
        )
        messages = factory.validate(raw).warning_messages
        assert "Unknown proof technique: magic" in messages
        assert "Step 1 references step 2, which does not precede it" in messages
        assert "Formula cannot be both a tautology and a contradiction" in messages

    def test_empty_proof(self, factory, make_input) -> None:
        messages = factory.validate(make_input("formallogic", proof={"theorem": "T"})).warning_messages
        assert "Proof has no steps" in messages

    def test_forward_references(self) -> None:
        steps = [ProofStep(1, "a", references_steps=[1]), ProofStep(2, "b", references_steps=[1, 3])]
        assert forward_step_references(steps) == [(1, 1), (2, 3)]

    def test_truth_table_assignments(self) -> None:
        rows = truth_table_assignments(["P", "Q"])
        assert rows[0] == {"P": True, "Q": True}
        assert len(rows) == 4
        assert truth_table_assignments([f"v{i}" for i in range(11)]) == []

    def test_truth_table_classification_from_rows(self) -> None:
        table = normalize_truth_table(
            {"variables": ["P"], "rows": [{"P": True, "result": True}, {"P": False, "result": True}]}
        )
        assert table.is_tautology
        assert not table.is_contingent
        assert table.rows == [{"P": True}, {"P": False}]

    def test_enhancements(self, factory, make_input) -> None:
        raw = make_input(
            "formallogic",
            propositions=[{"symbol": "P"}, {"symbol": "Q"}],
            logicalInferences=[{"rule": "modus_ponens", "premises": ["P"]}],
            proof={"theorem": "Q", "steps": [{"statement": "P"}], "completeness": 0.3},
            truthTable={"variables": ["P", "Q"]},
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert enhancements.metrics["truth_table_rows"] == 4
        assert enhancements.metrics["classification"] == "contingent"
        assert "No inference has been marked valid" in enhancements.warnings
        assert "Proof is less than half complete" in enhancements.warnings
