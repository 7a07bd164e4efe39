"""Mode handler contract and shared validation helpers.

Every mode implements ``ModeHandler``. Validation building blocks are plain
functions and a small collector object that handlers compose, so no handler
depends on another handler's checks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, ClassVar

from deepthinking.config import EngineConfig, get_config
from deepthinking.modes.types import (
    ErrorCode,
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from deepthinking.utils.ids import IdGenerator, uuid_ids
from deepthinking.utils.schema import is_number


class ModeHandler(ABC):
    """Abstract base class for thinking-mode handlers."""

    mode: ClassVar[ThinkingMode]
    mode_name: ClassVar[str]
    description: ClassVar[str]
    thought_types: ClassVar[tuple[str, ...]] = ()

    def __init__(self, ids: IdGenerator | None = None, settings: EngineConfig | None = None) -> None:
        """Initialize handler.

        Args:
            ids: Id generator used for the thought and its sub-structures.
            settings: Engine thresholds and defaults (global config if omitted).

        """
        self.ids: IdGenerator = ids or uuid_ids
        self.settings = settings or get_config().engine

    @abstractmethod
    def validate(self, data: ThinkingInput) -> ValidationResult:
        """Validate input for this mode.

        Args:
            data: Parsed input record.

        Returns:
            ValidationResult; fatal problems set ``valid=False``.

        """
        ...

    @abstractmethod
    def create_thought(self, data: ThinkingInput, session_id: str) -> Thought:
        """Build a normalized thought from validated input.

        Args:
            data: Input that already passed ``validate``.
            session_id: Owning session id.

        Returns:
            Mode-specific Thought with every optional field defaulted.

        """
        ...

    @abstractmethod
    def get_enhancements(self, thought: Any) -> ModeEnhancements:
        """Derive suggestions, warnings and metrics from a thought.

        Args:
            thought: Thought produced by ``create_thought``.

        Returns:
            Fresh ModeEnhancements.

        """
        ...

    def supports_thought_type(self, thought_type: str) -> bool:
        """Check whether ``thought_type`` belongs to this mode."""
        return thought_type in self.thought_types

    def describe(self) -> dict[str, Any]:
        """Describe the handler for listings."""
        return {
            "mode": self.mode.value,
            "name": self.mode_name,
            "description": self.description,
            "thought_types": list(self.thought_types),
        }

    # Shared construction helpers

    def base_fields(self, data: ThinkingInput, session_id: str) -> dict[str, Any]:
        """Common Thought attributes for ``data``."""
        return {
            "id": self.ids(),
            "session_id": session_id,
            "thought_number": data.thought_number,
            "total_thoughts": data.total_thoughts,
            "content": data.thought,
            "mode": self.mode,
            "timestamp": datetime.now(UTC),
            "next_thought_needed": data.next_thought_needed,
            "is_revision": data.is_revision,
            "revises_thought": data.revises_thought,
        }

    def resolve_thought_type(self, data: ThinkingInput, default: str) -> str:
        """Return the input's thought type if this mode knows it, else ``default``."""
        if data.thought_type and self.supports_thought_type(data.thought_type):
            return data.thought_type
        return default


def validate_common(data: ThinkingInput) -> ValidationResult | None:
    """Run the structural checks shared by every mode.

    Returns:
        A failed result with exactly one error, or None when the input passes.

    """
    if not data.thought or not data.thought.strip():
        return ValidationResult.fatal("thought", "Thought content is required", ErrorCode.EMPTY_THOUGHT)
    if data.thought_number > data.total_thoughts:
        return ValidationResult.fatal(
            "thoughtNumber",
            f"Thought number ({data.thought_number}) exceeds total thoughts ({data.total_thoughts})",
            ErrorCode.INVALID_THOUGHT_NUMBER,
        )
    return None


class Findings:
    """Accumulates errors and warnings during mode-specific validation.

    Usage:
        if (failure := validate_common(data)) is not None:
            return failure
        findings = Findings()
        findings.unit_interval("confidence", data.get("confidence"))
        return findings.result()
    """

    def __init__(self) -> None:
        self.errors: list[ValidationError] = []
        self.warnings: list[ValidationWarning] = []

    def error(self, field_name: str, message: str, code: ErrorCode | str) -> None:
        code_value = code.value if isinstance(code, ErrorCode) else code
        self.errors.append(ValidationError(field_name, message, code_value))

    def warn(self, field_name: str, message: str, suggestion: str | None = None) -> None:
        self.warnings.append(ValidationWarning(field_name, message, suggestion))

    def unit_interval(self, field_name: str, value: Any, label: str | None = None) -> None:
        """Warn when a present value is not a number in [0, 1]."""
        if value is None:
            return
        if not is_number(value) or not 0.0 <= value <= 1.0:
            self.warn(
                field_name,
                f"{label or field_name} ({value}) must be between 0 and 1",
                "Use a value in the range [0, 1]",
            )

    def signed_unit_interval(self, field_name: str, value: Any, label: str | None = None) -> None:
        """Warn when a present value is not a number in [-1, 1]."""
        if value is None:
            return
        if not is_number(value) or not -1.0 <= value <= 1.0:
            self.warn(
                field_name,
                f"{label or field_name} ({value}) must be between -1 and 1",
                "Use a value in the range [-1, 1]",
            )

    def known_value(
        self, field_name: str, value: Any, allowed: Iterable[str], label: str | None = None
    ) -> None:
        """Warn when a present value is not one of ``allowed``."""
        if value is None:
            return
        options = list(allowed)
        if value not in options:
            self.warn(
                field_name,
                f"Unknown {label or field_name}: {value}",
                f"Valid values: {', '.join(options)}",
            )

    def thought_type(self, handler: ModeHandler, data: ThinkingInput) -> None:
        """Warn when the input's thought type is not supported by ``handler``."""
        if data.thought_type and not handler.supports_thought_type(data.thought_type):
            self.warn(
                "thoughtType",
                f"Unknown {handler.mode.value} thought type: {data.thought_type}",
                f"Valid types: {', '.join(handler.thought_types)}",
            )

    def result(self) -> ValidationResult:
        if self.errors:
            return ValidationResult.failure(self.errors, self.warnings)
        return ValidationResult.success(self.warnings)
