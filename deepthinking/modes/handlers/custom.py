"""User-defined reasoning mode with declared fields, stages and rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from deepthinking.modes.base import Findings, ModeHandler, validate_common
from deepthinking.modes.consistency import duplicate_ids
from deepthinking.modes.types import (
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationResult,
)
from deepthinking.utils.schema import as_bool, as_dict, as_int, as_records, as_str, as_str_list, is_number, pick

FIELD_TYPES = ("string", "number", "boolean", "array", "object")
DEFAULT_THOUGHT_TYPE = "custom_analysis"


class RuleError(ValueError):
    """A validation rule that cannot be evaluated as written."""


@dataclass(frozen=True)
class CustomField:
    name: str
    type: str = "string"
    value: Any = None
    description: str = ""
    required: bool = False

    @property
    def populated(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class CustomStage:
    id: str
    name: str
    description: str = ""
    order: int = 0
    completed: bool = False


@dataclass(frozen=True)
class CustomRule:
    field: str
    rule: str
    message: str = "Validation failed"


@dataclass(frozen=True, kw_only=True)
class CustomThought(Thought):
    thought_type: str = DEFAULT_THOUGHT_TYPE
    custom_mode_name: str = "Custom Mode"
    custom_mode_description: str | None = None
    custom_fields: list[CustomField] = field(default_factory=list)
    stages: list[CustomStage] = field(default_factory=list)
    current_stage: str | None = None
    validation_rules: list[CustomRule] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    based_on_modes: list[ThinkingMode] = field(default_factory=list)


def value_type(value: Any) -> str:
    """Name of the declared field type ``value`` actually has."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _rule_number(text: str) -> float:
    try:
        return float(text)
    except ValueError as e:
        raise RuleError(f"Expected a number, got {text!r}") from e


def evaluate_rule(rule: str, value: Any) -> bool:
    """Check ``value`` against one rule.

    Supported rules: ``required``, ``min:N``, ``max:N``, ``minLength:N``,
    ``maxLength:N``, ``pattern:REGEX``, ``in:a,b,c``, ``positive``,
    ``negative`` and ``integer``. Unknown rules pass.

    Raises:
        RuleError: If the rule's argument is malformed.

    """
    if rule == "required":
        return value is not None and value != ""
    if rule.startswith("minLength:"):
        bound = _rule_number(rule[10:])
        return isinstance(value, str) and len(value) >= bound
    if rule.startswith("maxLength:"):
        bound = _rule_number(rule[10:])
        return isinstance(value, str) and len(value) <= bound
    if rule.startswith("min:"):
        bound = _rule_number(rule[4:])
        return is_number(value) and value >= bound
    if rule.startswith("max:"):
        bound = _rule_number(rule[4:])
        return is_number(value) and value <= bound
    if rule.startswith("pattern:"):
        try:
            pattern = re.compile(rule[8:])
        except re.error as e:
            raise RuleError(f"Invalid pattern: {e}") from e
        return isinstance(value, str) and pattern.search(value) is not None
    if rule.startswith("in:"):
        return str(value) in rule[3:].split(",")
    if rule == "positive":
        return is_number(value) and value > 0
    if rule == "negative":
        return is_number(value) and value < 0
    if rule == "integer":
        return is_number(value) and float(value).is_integer()
    return True


def _field_values(records: list[dict[str, Any]]) -> dict[str, Any]:
    return {as_str(pick(f, "name")): pick(f, "value") for f in records}


class CustomHandler(ModeHandler):
    """Caller-defined structure; accepts any thought type."""

    mode = ThinkingMode.CUSTOM
    mode_name = "Custom Reasoning"
    description = "User-defined reasoning patterns with flexible structure and custom validation"
    thought_types = (DEFAULT_THOUGHT_TYPE,)

    def supports_thought_type(self, thought_type: str) -> bool:
        return True

    def validate(self, data: ThinkingInput) -> ValidationResult:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        if not as_str(data.get("custom_mode_name")):
            findings.warn(
                "customModeName",
                "No custom mode name provided",
                "Define a name for your custom reasoning mode",
            )
        fields = as_records(data.get("custom_fields"))
        for i, record in enumerate(fields):
            name = as_str(pick(record, "name"))
            value = pick(record, "value")
            if as_bool(pick(record, "required")) and value is None:
                findings.warn(
                    f"customFields[{i}]",
                    f'Required field "{name}" has no value',
                    "Provide a value for required fields",
                )
            declared = pick(record, "type")
            if declared in FIELD_TYPES and declared != "object" and value is not None:
                actual = value_type(value)
                if actual != declared:
                    findings.warn(
                        f"customFields[{i}].value",
                        f'Field "{name}" type mismatch: expected {declared}, got {actual}',
                        "Ensure field value matches declared type",
                    )
            findings.known_value(f"customFields[{i}].type", declared, FIELD_TYPES, "field type")

        stages = as_records(data.get("stages"))
        stage_ids = [as_str(pick(s, "id")) for s in stages if pick(s, "id")]
        for dup in duplicate_ids(stage_ids):
            findings.warn("stages", f"Duplicate stage ID: {dup}", "Each stage should have a unique ID")
        current = data.get("current_stage")
        if stages and current is not None and current not in stage_ids:
            findings.warn(
                "currentStage",
                f'Current stage "{current}" not found in stages',
                "Set currentStage to a valid stage ID",
            )

        values = _field_values(fields)
        for i, rule in enumerate(as_records(data.get("validation_rules"))):
            target = as_str(pick(rule, "field"))
            text = as_str(pick(rule, "rule"))
            try:
                passed = evaluate_rule(text, values.get(target))
            except RuleError as e:
                findings.warn(f"validationRules[{i}].rule", f"Cannot evaluate rule '{text}': {e}")
                continue
            if not passed:
                findings.warn(
                    target or f"validationRules[{i}]",
                    as_str(pick(rule, "message")) or f"Validation failed: {text}",
                    "Check field value against rule",
                )
        for i, tag in enumerate(as_str_list(data.get("based_on_modes"))):
            if ThinkingMode.resolve(tag) is None:
                findings.warn(f"basedOnModes[{i}]", f"Unknown mode: {tag}", "Unknown modes fall back to sequential")
        return findings.result()

    def create_thought(self, data: ThinkingInput, session_id: str) -> CustomThought:
        custom_fields = []
        for record in as_records(data.get("custom_fields")):
            declared = pick(record, "type")
            custom_fields.append(
                CustomField(
                    name=as_str(pick(record, "name")) or "unnamed",
                    type=declared if declared in FIELD_TYPES else "string",
                    value=pick(record, "value"),
                    description=as_str(pick(record, "description")),
                    required=bool(as_bool(pick(record, "required"), False)),
                )
            )
        stages = [
            CustomStage(
                id=as_str(pick(s, "id")) or self.ids("stage"),
                name=as_str(pick(s, "name")) or f"Stage {i + 1}",
                description=as_str(pick(s, "description")),
                order=as_int(pick(s, "order"), i),
                completed=bool(as_bool(pick(s, "completed"), False)),
            )
            for i, s in enumerate(as_records(data.get("stages")))
        ]
        rules = [
            CustomRule(
                field=as_str(pick(r, "field")),
                rule=as_str(pick(r, "rule")),
                message=as_str(pick(r, "message")) or "Validation failed",
            )
            for r in as_records(data.get("validation_rules"))
        ]
        return CustomThought(
            **self.base_fields(data, session_id),
            thought_type=data.thought_type or DEFAULT_THOUGHT_TYPE,
            custom_mode_name=as_str(data.get("custom_mode_name")) or "Custom Mode",
            custom_mode_description=as_str(data.get("custom_mode_description")) or None,
            custom_fields=custom_fields,
            stages=sorted(stages, key=lambda s: s.order),
            current_stage=as_str(data.get("current_stage")) or None,
            validation_rules=rules,
            metadata=dict(as_dict(data.get("metadata"))),
            based_on_modes=[
                ThinkingMode.resolve(tag) or ThinkingMode.SEQUENTIAL for tag in as_str_list(data.get("based_on_modes"))
            ],
        )

    def get_enhancements(self, thought: CustomThought) -> ModeEnhancements:
        completed = [s for s in thought.stages if s.completed]
        enhancements = ModeEnhancements(
            related_modes=list(thought.based_on_modes) or [ThinkingMode.SEQUENTIAL],
            mental_models=["Domain-Specific Reasoning", "Custom Frameworks", "Flexible Analysis", "User-Defined Logic"],
            metrics={
                "field_count": len(thought.custom_fields),
                "stage_count": len(thought.stages),
                "completed_stages": len(completed),
                "metadata_keys": len(thought.metadata),
            },
        )
        enhancements.suggestions.append(f"Custom mode: {thought.custom_mode_name}")
        if thought.custom_mode_description:
            enhancements.suggestions.append(f"Description: {thought.custom_mode_description}")

        if thought.stages:
            total = len(thought.stages)
            enhancements.suggestions.append(
                f"Stage progress: {len(completed)}/{total} ({len(completed) / total * 100:.0f}%)"
            )
            current = next((s for s in thought.stages if s.id == thought.current_stage), None)
            if current is not None:
                enhancements.suggestions.append(f"Current stage: {current.name}")
                enhancements.guiding_questions.append(f'What is needed to complete "{current.name}"?')
            upcoming = next((s for s in thought.stages if not s.completed), None)
            if upcoming is not None and upcoming.id != thought.current_stage:
                enhancements.suggestions.append(f"Next stage: {upcoming.name}")

        if thought.custom_fields:
            populated = sum(1 for f in thought.custom_fields if f.populated)
            enhancements.suggestions.append(f"Fields: {populated}/{len(thought.custom_fields)} populated")
            missing = [f.name for f in thought.custom_fields if f.required and not f.populated]
            if missing:
                enhancements.warnings.append(f"Missing required fields: {', '.join(missing)}")

        enhancements.guiding_questions.extend(
            [
                "Are all necessary fields defined?",
                "Does the custom structure fit the problem?",
                "Would predefined modes work better?",
            ]
        )
        if thought.based_on_modes:
            enhancements.suggestions.append(f"Based on: {', '.join(m.value for m in thought.based_on_modes)}")
            enhancements.mental_models.append("Mode Composition")
        return enhancements
