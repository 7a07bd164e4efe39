"""Tests for the inductive, deductive and abductive modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.fundamental import assess_validity, inductive_confidence, normalize_logic_form


class TestInductive:
    """Tests for observation-driven generalization."""

    def test_missing_observations(self, factory, make_input) -> None:
        result = factory.validate(make_input("inductive", generalization="All swans are white"))
        assert result.valid
        assert "No observations provided for inductive reasoning" in result.warning_messages
        assert "Generalization stated without supporting observations" in result.warning_messages

    def test_sample_size_mismatch_and_counterexamples(self, factory, make_input) -> None:
        raw = make_input(
            "inductive",
            observations=["a", "b", "c"],
            sampleSize=5,
            confidence=0.9,
            counterexamples=["black swan"],
        )
        messages = factory.validate(raw).warning_messages
        assert "Sample size (5) differs from observation count (3)" in messages
        assert "High confidence despite known counterexamples" in messages

    def test_confidence_from_counts(self) -> None:
        assert inductive_confidence(0, 0) == 0.3
        assert inductive_confidence(4, 1) == pytest.approx(0.45)
        assert inductive_confidence(20, 0) == pytest.approx(0.9)
        assert inductive_confidence(1, 5) == 0.1

    def test_derived_confidence_used_when_absent(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("inductive", observations=["a", "b"]), "s")
        assert thought.confidence == pytest.approx(0.5)

    def test_counterexample_feedback(self, factory, make_input) -> None:
        raw = make_input("inductive", observations=["a"] * 4, counterexamples=["x", "y", "z"], confidence=0.95)
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert "3 counterexample(s) exist - consider refining the generalization" in enhancements.warnings
        assert "Consider lowering confidence given counterexamples (suggested: 0.65)" in enhancements.warnings
        assert "Very high confidence with limited sample size - consider more evidence" in enhancements.warnings


class TestDeductive:
    """Tests for premise, conclusion and form checks."""

    def test_structure_warnings(self, factory, make_input) -> None:
        messages = factory.validate(make_input("deductive", premises=["All men are mortal"])).warning_messages
        assert "Only one premise provided" in messages
        assert "No conclusion specified" in messages

    def test_form_normalization(self) -> None:
        assert normalize_logic_form("Modus Ponens") == "modus_ponens"
        assert normalize_logic_form("  ") is None

    def test_unknown_and_missing_form(self, factory, make_input) -> None:
        base = {"premises": ["P implies Q", "P"], "conclusion": "Q"}
        unknown = factory.validate(make_input("deductive", logicForm="wishful thinking", **base))
        assert "Unknown logical form: wishful thinking" in unknown.warning_messages
        missing = factory.validate(make_input("deductive", **base))
        assert "No logical form specified" in missing.warning_messages

    def test_validity_derived_from_form(self, factory, make_input) -> None:
        raw = make_input("deductive", premises=["P implies Q", "P"], conclusion="Q", logicForm="modus ponens")
        thought = factory.create_thought(raw, "s")
        assert thought.logic_form == "modus_ponens"
        assert thought.validity_check
        enhancements = factory.get_enhancements(thought)
        assert "Structure: P → Q, P, therefore Q" in enhancements.suggestions
        assert "Argument is logically valid - conclusion follows from premises" in enhancements.suggestions

    def test_valid_but_unsound(self, factory, make_input) -> None:
        raw = make_input(
            "deductive", premises=["a", "b"], conclusion="c", validityCheck=True, soundnessCheck=False
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert "Argument is valid but NOT sound - one or more premises may be false" in enhancements.warnings

    def test_validity_needs_all_parts(self) -> None:
        assert not assess_validity([], "c", "modus_ponens")
        assert not assess_validity(["a"], "", "modus_ponens")
        assert not assess_validity(["a"], "c", None)


class TestAbductive:
    """Tests for hypothesis scoring and best-explanation selection."""

    def test_hypothesis_warnings(self, factory, make_input) -> None:
        raw = make_input("abductive", hypotheses=[{"explanation": " "}])
        messages = factory.validate(raw).warning_messages
        assert "No observations provided" in messages
        assert "1 hypothesis/hypotheses lack explanations" in messages
        assert "Only one hypothesis provided" in messages

    def test_rescoring_and_best_explanation(self, factory, make_input) -> None:
        raw = make_input(
            "abductive",
            observations=["The grass is wet", {"description": "The sidewalk is wet"}],
            hypotheses=[
                {"id": "rain", "explanation": "Rain soaked the grass", "score": 0.99},
                {"id": "sprinkler", "explanation": "A sprinkler soaked the grass and the sidewalk"},
            ],
        )
        thought = factory.create_thought(raw, "s")
        rain, sprinkler = thought.hypotheses
        assert rain.score == pytest.approx(0.5 * (1 - 0.04 / 2))
        assert sprinkler.score == pytest.approx(1.0 * (1 - 0.08 / 2))
        assert thought.best_explanation.id == "sprinkler"
        assert len(thought.observations) == 2

    def test_scores_kept_without_observations(self, factory, make_input) -> None:
        raw = make_input("abductive", hypotheses=[{"explanation": "x", "score": 0.9}, {"explanation": "y"}])
        thought = factory.create_thought(raw, "s")
        assert [h.score for h in thought.hypotheses] == [0.9, 0.5]
        assert thought.best_explanation.explanation == "x"

    def test_uncovered_observations_warn(self, factory, make_input) -> None:
        raw = make_input(
            "abductive",
            observations=["Thunder rumbled"],
            hypotheses=[{"explanation": "aliens"}, {"explanation": "ghosts"}],
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert "No hypothesis covers any observation" in enhancements.warnings
