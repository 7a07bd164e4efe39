"""Core types shared by every thinking mode.

Defines the mode enumeration, the structured input record, the canonical
Thought base class, validation results and enhancement feedback.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from deepthinking.utils.schema import (
    as_bool,
    as_int,
    as_str,
    camel_to_snake,
    pick,
    to_jsonable,
)


class ThinkingMode(str, Enum):
    """Reasoning disciplines, one handler each."""

    SEQUENTIAL = "sequential"
    SHANNON = "shannon"
    MATHEMATICS = "mathematics"
    PHYSICS = "physics"
    HYBRID = "hybrid"
    ENGINEERING = "engineering"
    COMPUTABILITY = "computability"
    CRYPTANALYTIC = "cryptanalytic"
    ALGORITHMIC = "algorithmic"
    METAREASONING = "metareasoning"
    RECURSIVE = "recursive"
    MODAL = "modal"
    STOCHASTIC = "stochastic"
    CONSTRAINT = "constraint"
    OPTIMIZATION = "optimization"
    INDUCTIVE = "inductive"
    DEDUCTIVE = "deductive"
    ABDUCTIVE = "abductive"
    CAUSAL = "causal"
    BAYESIAN = "bayesian"
    COUNTERFACTUAL = "counterfactual"
    TEMPORAL = "temporal"
    GAMETHEORY = "gametheory"
    EVIDENTIAL = "evidential"
    ANALOGICAL = "analogical"
    FIRSTPRINCIPLES = "firstprinciples"
    SYSTEMSTHINKING = "systemsthinking"
    SCIENTIFICMETHOD = "scientificmethod"
    FORMALLOGIC = "formallogic"
    SYNTHESIS = "synthesis"
    ARGUMENTATION = "argumentation"
    CRITIQUE = "critique"
    ANALYSIS = "analysis"
    HISTORICAL = "historical"
    CUSTOM = "custom"

    @classmethod
    def resolve(cls, tag: str) -> ThinkingMode | None:
        """Look up a mode by tag, ignoring case and separators."""
        key = tag.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        try:
            return cls(key)
        except ValueError:
            return None


class ErrorCode(str, Enum):
    """Stable codes attached to fatal validation errors."""

    EMPTY_THOUGHT = "EMPTY_THOUGHT"
    INVALID_THOUGHT_NUMBER = "INVALID_THOUGHT_NUMBER"
    INVALID_INPUT = "INVALID_INPUT"
    UNKNOWN_MODE = "UNKNOWN_MODE"
    INVALID_EVENT_REF = "INVALID_EVENT_REF"
    INVALID_NODE_REF = "INVALID_NODE_REF"
    INPUT_TOO_LARGE = "INPUT_TOO_LARGE"


# =============================================================================
# Validation
# =============================================================================


@dataclass(frozen=True)
class ValidationError:
    """A fatal problem that blocks thought construction."""

    field: str
    message: str
    code: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass(frozen=True)
class ValidationWarning:
    """An advisory finding; never blocks construction."""

    field: str
    message: str
    suggestion: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary."""
        return {"field": self.field, "message": self.message, "suggestion": self.suggestion}


@dataclass
class ValidationResult:
    """Outcome of validating one input record."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)

    @classmethod
    def success(cls, warnings: list[ValidationWarning] | None = None) -> ValidationResult:
        return cls(valid=True, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls,
        errors: list[ValidationError],
        warnings: list[ValidationWarning] | None = None,
    ) -> ValidationResult:
        return cls(valid=False, errors=list(errors), warnings=list(warnings or []))

    @classmethod
    def fatal(cls, field_name: str, message: str, code: ErrorCode | str) -> ValidationResult:
        """Build a failed result holding a single error."""
        code_value = code.value if isinstance(code, ErrorCode) else code
        return cls.failure([ValidationError(field_name, message, code_value)])

    @property
    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [w.message for w in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


# =============================================================================
# Enhancements
# =============================================================================


@dataclass
class ModeEnhancements:
    """Feedback derived from a constructed thought.

    Recomputed on every request and never stored on the thought.
    """

    suggestions: list[str] = field(default_factory=list)
    guiding_questions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    related_modes: list[ThinkingMode] = field(default_factory=list)
    mental_models: list[str] = field(default_factory=list)
    metrics: dict[str, float | int | str | None] = field(default_factory=dict)
    socratic_questions: dict[str, list[str]] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "suggestions": self.suggestions,
            "guiding_questions": self.guiding_questions,
            "warnings": self.warnings,
            "related_modes": [m.value for m in self.related_modes],
            "mental_models": self.mental_models,
            "metrics": self.metrics,
        }
        if self.socratic_questions is not None:
            data["socratic_questions"] = self.socratic_questions
        return data


# =============================================================================
# Thoughts
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class Thought:
    """Canonical record of one reasoning step.

    Mode handlers extend this with their own frozen subclasses.
    """

    id: str
    session_id: str
    thought_number: int
    total_thoughts: int
    content: str
    mode: ThinkingMode
    timestamp: datetime
    next_thought_needed: bool
    is_revision: bool | None = None
    revises_thought: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return to_jsonable(self)


# =============================================================================
# Input
# =============================================================================

_COMMON_FIELDS = frozenset(
    {
        "thought",
        "thought_number",
        "total_thoughts",
        "next_thought_needed",
        "mode",
        "is_revision",
        "revises_thought",
        "thought_type",
    }
)


@dataclass(frozen=True)
class ThinkingInput:
    """Structured input for one reasoning step.

    Common fields are typed attributes; everything mode-specific lives in
    ``fields`` under snake_case keys and is read through ``get``.
    """

    thought: str
    thought_number: int
    total_thoughts: int
    mode: str = ""
    next_thought_needed: bool = True
    is_revision: bool | None = None
    revises_thought: str | None = None
    thought_type: str | None = None
    fields: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        """Read a mode-specific field (snake_case or camelCase key)."""
        return pick(self.fields, name, default)

    def has(self, name: str) -> bool:
        """Return True if a mode-specific field is present and not None."""
        return self.get(name) is not None

    def with_mode(self, mode: str) -> ThinkingInput:
        """Return a copy bound to ``mode``."""
        return ThinkingInput(
            thought=self.thought,
            thought_number=self.thought_number,
            total_thoughts=self.total_thoughts,
            mode=mode,
            next_thought_needed=self.next_thought_needed,
            is_revision=self.is_revision,
            revises_thought=self.revises_thought,
            thought_type=self.thought_type,
            fields=self.fields,
        )


def parse_input(raw: Any) -> ThinkingInput | ValidationResult:
    """Validate the shape of a raw input record and build a ``ThinkingInput``.

    Only shape is checked here: content emptiness and numbering belong to the
    handlers' common validation.

    Args:
        raw: Mapping with camelCase or snake_case keys.

    Returns:
        A ``ThinkingInput``, or a failed ``ValidationResult`` with code
        ``INVALID_INPUT`` when a common field has the wrong type.

    """
    if isinstance(raw, ThinkingInput):
        return raw
    if not isinstance(raw, Mapping):
        return ValidationResult.fatal(
            "input", f"Expected an object, got {type(raw).__name__}", ErrorCode.INVALID_INPUT
        )

    record = {camel_to_snake(str(k)): v for k, v in raw.items()}
    errors: list[ValidationError] = []

    thought = record.get("thought")
    if thought is None:
        thought = ""
    elif not isinstance(thought, str):
        errors.append(
            ValidationError("thought", "Thought must be a string", ErrorCode.INVALID_INPUT.value)
        )

    numbers: dict[str, int] = {}
    for name in ("thought_number", "total_thoughts"):
        value = as_int(record.get(name))
        if value is None or value < 1:
            errors.append(
                ValidationError(
                    name,
                    f"{name} must be a positive integer, got {record.get(name)!r}",
                    ErrorCode.INVALID_INPUT.value,
                )
            )
        else:
            numbers[name] = value

    mode = record.get("mode")
    if mode is not None and not isinstance(mode, str):
        errors.append(ValidationError("mode", "Mode must be a string", ErrorCode.INVALID_INPUT.value))

    if errors:
        return ValidationResult.failure(errors)

    revises = record.get("revises_thought")
    thought_type = record.get("thought_type")
    return ThinkingInput(
        thought=thought,
        thought_number=numbers["thought_number"],
        total_thoughts=numbers["total_thoughts"],
        mode=mode or "",
        next_thought_needed=bool(as_bool(record.get("next_thought_needed"), True)),
        is_revision=as_bool(record.get("is_revision")),
        revises_thought=as_str(revises) if revises is not None else None,
        thought_type=as_str(thought_type) or None if thought_type is not None else None,
        fields={k: v for k, v in record.items() if k not in _COMMON_FIELDS},
    )
