"""Mode registry and thought factory.

The registry maps each thinking mode to exactly one handler. It is an
ordinary object: tests build their own, the server uses the process-wide
instance from ``get_mode_registry()``. ``ThoughtFactory`` is the single entry
point that resolves the mode of an input and delegates to its handler.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from deepthinking.config import EngineConfig, get_config
from deepthinking.modes.base import ModeHandler
from deepthinking.modes.types import (
    ErrorCode,
    ModeEnhancements,
    ThinkingInput,
    ThinkingMode,
    Thought,
    ValidationResult,
    parse_input,
)
from deepthinking.utils.errors import (
    HandlerRegistrationError,
    InvalidInputError,
    UnknownModeError,
)
from deepthinking.utils.ids import IdGenerator


class ModeRegistry:
    """Registry of mode handlers keyed by mode tag.

    Writers (register/unregister/reset) are serialized by a lock and swap in a
    fresh dict, so concurrent readers always see a consistent mapping.
    """

    def __init__(self, handlers: Iterable[ModeHandler] = ()) -> None:
        self._handlers: dict[ThinkingMode, ModeHandler] = {}
        self._lock = threading.Lock()
        for handler in handlers:
            self.register(handler)

    def register(self, handler: ModeHandler) -> None:
        """Bind ``handler.mode`` to ``handler``; an existing binding is replaced.

        Raises:
            HandlerRegistrationError: If ``handler`` is not a ModeHandler.

        """
        if not isinstance(handler, ModeHandler):
            raise HandlerRegistrationError(
                f"Expected a ModeHandler, got {type(handler).__name__}"
            )
        with self._lock:
            handlers = dict(self._handlers)
            if handler.mode in handlers:
                logger.debug(f"Replacing handler for mode '{handler.mode.value}'")
            handlers[handler.mode] = handler
            self._handlers = handlers

    def unregister(self, mode: ThinkingMode | str) -> bool:
        """Remove the binding for ``mode``.

        Returns:
            True if a handler was removed.

        """
        resolved = self.resolve(mode)
        with self._lock:
            if resolved is None or resolved not in self._handlers:
                return False
            handlers = dict(self._handlers)
            del handlers[resolved]
            self._handlers = handlers
            return True

    def reset(self) -> None:
        """Remove every binding."""
        with self._lock:
            self._handlers = {}

    @staticmethod
    def resolve(mode: ThinkingMode | str) -> ThinkingMode | None:
        if isinstance(mode, ThinkingMode):
            return mode
        return ThinkingMode.resolve(mode)

    def find(self, mode: ThinkingMode | str) -> ModeHandler | None:
        """Return the handler for ``mode`` or None."""
        resolved = self.resolve(mode)
        if resolved is None:
            return None
        return self._handlers.get(resolved)

    def get(self, mode: ThinkingMode | str) -> ModeHandler:
        """Return the handler for ``mode``.

        Raises:
            UnknownModeError: If the tag is unknown or has no handler.

        """
        handler = self.find(mode)
        if handler is None:
            tag = mode.value if isinstance(mode, ThinkingMode) else mode
            raise UnknownModeError(tag, [m.value for m in self.registered_modes()])
        return handler

    def has(self, mode: ThinkingMode | str) -> bool:
        return self.find(mode) is not None

    def registered_modes(self) -> list[ThinkingMode]:
        return list(self._handlers)

    def handlers(self) -> list[ModeHandler]:
        return list(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, mode: object) -> bool:
        return isinstance(mode, ThinkingMode | str) and self.has(mode)

    def stats(self) -> dict[str, Any]:
        """Registry statistics."""
        registered = self.registered_modes()
        return {
            "total_handlers": len(registered),
            "modes_with_handlers": [m.value for m in registered],
            "modes_without_handlers": [m.value for m in ThinkingMode if m not in registered],
        }

    def mode_status(self, mode: ThinkingMode | str) -> dict[str, Any]:
        """Describe whether ``mode`` is known and served.

        Raises:
            UnknownModeError: If the tag does not name a thinking mode.

        """
        resolved = self.resolve(mode)
        if resolved is None:
            raise UnknownModeError(str(mode), [m.value for m in self.registered_modes()])
        handler = self._handlers.get(resolved)
        status: dict[str, Any] = {
            "mode": resolved.value,
            "has_handler": handler is not None,
            "thought_types": list(handler.thought_types) if handler else [],
        }
        if handler is None:
            status["note"] = "No handler registered; inputs in this mode are rejected"
        else:
            status["name"] = handler.mode_name
            status["description"] = handler.description
        return status


def default_handlers(
    ids: IdGenerator | None = None, settings: EngineConfig | None = None
) -> list[ModeHandler]:
    """Instantiate one handler per thinking mode."""
    from deepthinking.modes.handlers import HANDLER_CLASSES

    return [cls(ids=ids, settings=settings) for cls in HANDLER_CLASSES]


def create_default_registry(
    ids: IdGenerator | None = None, settings: EngineConfig | None = None
) -> ModeRegistry:
    """Build a registry with every built-in handler registered."""
    registry = ModeRegistry(default_handlers(ids=ids, settings=settings))
    logger.debug(f"Registered {len(registry)} mode handlers")
    return registry


class ThoughtFactory:
    """Entry point: resolves an input's mode and delegates to its handler.

    Example:
        factory = ThoughtFactory(create_default_registry())
        result = factory.submit({"mode": "modal", "thought": "...",
                                 "thoughtNumber": 1, "totalThoughts": 3}, "session-1")

    """

    def __init__(
        self,
        registry: ModeRegistry | None = None,
        *,
        default_mode: ThinkingMode | str | None = None,
        max_thought_size: int | None = None,
    ) -> None:
        """Initialize factory.

        Args:
            registry: Registry to dispatch through (process-wide one if omitted).
            default_mode: Mode used when an input names none (config default).
            max_thought_size: Optional cap on thought content length.

        """
        self.registry = registry if registry is not None else get_mode_registry()
        self.default_mode = default_mode or get_config().engine.default_mode
        self.max_thought_size = max_thought_size

    def _mode_tag(self, data: ThinkingInput) -> str:
        if data.mode:
            return data.mode
        if isinstance(self.default_mode, ThinkingMode):
            return self.default_mode.value
        return self.default_mode

    def _dispatch(
        self, raw: ThinkingInput | Mapping[str, Any]
    ) -> tuple[ThinkingInput, ModeHandler] | ValidationResult:
        parsed = parse_input(raw)
        if isinstance(parsed, ValidationResult):
            return parsed
        tag = self._mode_tag(parsed)
        handler = self.registry.find(tag)
        if handler is None:
            available = ", ".join(m.value for m in self.registry.registered_modes())
            return ValidationResult.fatal(
                "mode", f"Unknown thinking mode: {tag!r}. Available: {available}", ErrorCode.UNKNOWN_MODE
            )
        return parsed.with_mode(handler.mode.value), handler

    def validate(self, raw: ThinkingInput | Mapping[str, Any]) -> ValidationResult:
        """Validate raw input with the handler of its mode.

        Returns:
            ValidationResult; an unresolvable mode yields code ``UNKNOWN_MODE``.

        """
        dispatched = self._dispatch(raw)
        if isinstance(dispatched, ValidationResult):
            return dispatched
        data, handler = dispatched
        if self.max_thought_size is not None and len(data.thought) > self.max_thought_size:
            return ValidationResult.fatal(
                "thought",
                f"Thought exceeds maximum size ({len(data.thought)} > {self.max_thought_size})",
                ErrorCode.INPUT_TOO_LARGE,
            )
        return handler.validate(data)

    def create_thought(self, raw: ThinkingInput | Mapping[str, Any], session_id: str) -> Thought:
        """Construct a thought from input that already passed ``validate``.

        Raises:
            UnknownModeError: If the mode cannot be resolved.
            InvalidInputError: If the input shape cannot be parsed.

        """
        parsed = parse_input(raw)
        if isinstance(parsed, ValidationResult):
            raise InvalidInputError("Input failed shape validation", parsed)
        handler = self.registry.get(self._mode_tag(parsed))
        return handler.create_thought(parsed.with_mode(handler.mode.value), session_id)

    def submit(
        self, raw: ThinkingInput | Mapping[str, Any], session_id: str
    ) -> Thought | ValidationResult:
        """Validate and, if valid, construct.

        Returns:
            The new Thought, or the failed ValidationResult.

        """
        result = self.validate(raw)
        if not result.valid:
            logger.debug(f"Rejected input: {result.error_codes}")
            return result
        return self.create_thought(raw, session_id)

    def get_enhancements(self, thought: Thought) -> ModeEnhancements:
        """Derive enhancements using the handler of ``thought.mode``."""
        return self.registry.get(thought.mode).get_enhancements(thought)


# =============================================================================
# Process-wide registry
# =============================================================================

_registry: ModeRegistry | None = None
_registry_lock = threading.Lock()


def get_mode_registry() -> ModeRegistry:
    """Get the process-wide registry, creating it with default handlers on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = create_default_registry()
    return _registry


def reset_mode_registry() -> None:
    """Tear down the process-wide registry (for testing)."""
    global _registry
    with _registry_lock:
        if _registry is not None:
            _registry.reset()
        _registry = None
