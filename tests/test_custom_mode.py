"""Tests for user-defined custom reasoning modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.custom import RuleError, evaluate_rule, value_type
from deepthinking.modes.types import ThinkingMode


class TestEvaluateRule:
    """Tests for the rule mini-language."""

    @pytest.mark.parametrize(
        ("rule", "value", "expected"),
        [
            ("required", "x", True),
            ("required", "", False),
            ("required", None, False),
            ("min:3", 5, True),
            ("min:3", 2, False),
            ("min:3", "5", False),
            ("max:10", 10, True),
            ("minLength:2", "ab", True),
            ("maxLength:2", "abc", False),
            ("pattern:^[A-Z]+$", "ABC", True),
            ("pattern:^[A-Z]+$", "abc", False),
            ("in:low,medium,high", "medium", True),
            ("in:low,medium,high", "extreme", False),
            ("positive", 1, True),
            ("negative", 1, False),
            ("integer", 4.0, True),
            ("integer", 4.5, False),
            ("someday", None, True),
        ],
    )
    def test_rules(self, rule: str, value, expected: bool) -> None:
        assert evaluate_rule(rule, value) is expected

    def test_malformed_number(self) -> None:
        with pytest.raises(RuleError, match="Expected a number"):
            evaluate_rule("min:ten", 5)

    @pytest.mark.parametrize(("rule", "value"), [("max:abc", "ab"), ("min:ten", None), ("minLength:x", 7), ("maxLength:", [1])])
    def test_malformed_argument_raises_for_any_value(self, rule: str, value) -> None:
        with pytest.raises(RuleError, match="Expected a number"):
            evaluate_rule(rule, value)

    def test_malformed_pattern(self) -> None:
        with pytest.raises(RuleError, match="Invalid pattern"):
            evaluate_rule("pattern:[unclosed", "x")

    def test_value_types(self) -> None:
        assert value_type(True) == "boolean"
        assert value_type(3.5) == "number"
        assert value_type([1]) == "array"
        assert value_type({"a": 1}) == "object"
        assert value_type("s") == "string"


class TestCustomValidation:
    """Tests for custom field, stage and rule checks."""

    def test_missing_name(self, factory, make_input) -> None:
        assert "No custom mode name provided" in factory.validate(make_input("custom")).warning_messages

    def test_any_thought_type_is_accepted(self, factory, make_input) -> None:
        raw = make_input("custom", customModeName="Postmortem", thoughtType="blameless_review")
        assert factory.validate(raw).warnings == []
        assert factory.create_thought(raw, "s").thought_type == "blameless_review"

    def test_field_checks(self, factory, make_input) -> None:
        raw = make_input(
            "custom",
            customModeName="Incident",
            customFields=[
                {"name": "severity", "type": "number", "value": "high"},
                {"name": "owner", "type": "string", "required": True},
                {"name": "blob", "type": "binary", "value": "x"},
            ],
        )
        messages = factory.validate(raw).warning_messages
        assert 'Field "severity" type mismatch: expected number, got string' in messages
        assert 'Required field "owner" has no value' in messages
        assert "Unknown field type: binary" in messages

    def test_stage_checks(self, factory, make_input) -> None:
        raw = make_input(
            "custom",
            customModeName="Incident",
            stages=[{"id": "triage", "name": "Triage"}, {"id": "triage", "name": "Again"}],
            currentStage="resolve",
        )
        messages = factory.validate(raw).warning_messages
        assert "Duplicate stage ID: triage" in messages
        assert 'Current stage "resolve" not found in stages' in messages

    def test_rules(self, factory, make_input) -> None:
        raw = make_input(
            "custom",
            customModeName="Incident",
            customFields=[{"name": "impact", "type": "number", "value": 0}, {"name": "code", "value": "ab"}],
            validationRules=[
                {"field": "impact", "rule": "positive", "message": "Impact must be positive"},
                {"field": "code", "rule": "minLength:3"},
                {"field": "code", "rule": "max:abc"},
                {"field": "code", "rule": "eventually"},
            ],
        )
        result = factory.validate(raw)
        assert result.valid
        messages = result.warning_messages
        assert "Impact must be positive" in messages
        assert "Validation failed: minLength:3" in messages
        assert any(m.startswith("Cannot evaluate rule 'max:abc': ") for m in messages)
        assert not any("eventually" in m for m in messages)

    def test_unknown_base_mode(self, factory, make_input) -> None:
        raw = make_input("custom", customModeName="Mix", basedOnModes=["deductive", "wizardry"])
        assert "Unknown mode: wizardry" in factory.validate(raw).warning_messages
        thought = factory.create_thought(raw, "s")
        assert thought.based_on_modes == [ThinkingMode.DEDUCTIVE, ThinkingMode.SEQUENTIAL]


class TestCustomEnhancements:
    """Tests for stage progress and field coverage."""

    def test_stage_progress(self, factory, make_input) -> None:
        raw = make_input(
            "custom",
            customModeName="Incident Review",
            customModeDescription="Blameless review",
            stages=[
                {"id": "s3", "name": "Actions", "order": 3},
                {"id": "s1", "name": "Timeline", "order": 1, "completed": True},
                {"id": "s2", "name": "Causes", "order": 2},
            ],
            currentStage="s1",
        )
        thought = factory.create_thought(raw, "s")
        assert [s.id for s in thought.stages] == ["s1", "s2", "s3"]

        enhancements = factory.get_enhancements(thought)
        assert "Custom mode: Incident Review" in enhancements.suggestions
        assert "Description: Blameless review" in enhancements.suggestions
        assert "Stage progress: 1/3 (33%)" in enhancements.suggestions
        assert "Current stage: Timeline" in enhancements.suggestions
        assert "Next stage: Causes" in enhancements.suggestions
        assert enhancements.metrics["completed_stages"] == 1

    def test_field_coverage(self, factory, make_input) -> None:
        raw = make_input(
            "custom",
            customModeName="Incident",
            customFields=[{"name": "owner", "required": True}, {"name": "impact", "value": 3}],
            basedOnModes=["causal"],
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert "Fields: 1/2 populated" in enhancements.suggestions
        assert "Missing required fields: owner" in enhancements.warnings
        assert "Based on: causal" in enhancements.suggestions
        assert enhancements.related_modes == [ThinkingMode.CAUSAL]
        assert "Mode Composition" in enhancements.mental_models

    def test_defaults(self, factory, make_input) -> None:
        thought = factory.create_thought(make_input("custom"), "s")
        assert thought.custom_mode_name == "Custom Mode"
        assert thought.thought_type == "custom_analysis"
        assert factory.get_enhancements(thought).related_modes == [ThinkingMode.SEQUENTIAL]
