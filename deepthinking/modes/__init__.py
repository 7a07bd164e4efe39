"""Thinking modes: shared types, the handler contract and the registry."""

from .base import Findings, ModeHandler, validate_common
from .registry import ModeRegistry, ThoughtFactory, get_mode_registry, reset_mode_registry
from .types import (
    ErrorCode,
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    parse_input,
)

__all__ = [
    "ErrorCode",
    "Findings",
    "ModeEnhancements",
    "ModeHandler",
    "ModeRegistry",
    "ThinkingInput",
    "ThinkingMode",
    "Thought",
    "ThoughtFactory",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "get_mode_registry",
    "parse_input",
    "reset_mode_registry",
    "validate_common",
]
