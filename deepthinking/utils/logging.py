"""Structured logging for the reasoning engine.

Built on loguru. Every record emitted inside ``StructuredLogger.context``
carries the session, mode, thought number and tool that produced it, so a
single session can be followed through validation, construction and
recording. Mode-specific structures (worlds, events, payoff matrices) are
compacted before they reach a log line.

Settings come from ``deepthinking.config.LoggingConfig``:
- LOG_LEVEL: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- LOG_FORMAT: ``text`` for development, ``json`` for production
- LOG_FILE: Optional path for a rotated JSON log
"""

from __future__ import annotations

import sys
from contextvars import ContextVar
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from deepthinking.config import LoggingConfig

if TYPE_CHECKING:
    from loguru import Record

    from deepthinking.modes.types import ValidationResult

_session_id: ContextVar[str | None] = ContextVar("session_id", default=None)
_mode: ContextVar[str | None] = ContextVar("mode", default=None)
_thought_number: ContextVar[int | None] = ContextVar("thought_number", default=None)
_tool_name: ContextVar[str | None] = ContextVar("tool_name", default=None)

MAX_VALUE_LENGTH = 120
MAX_COMPACT_DEPTH = 4


class LogFormat(str, Enum):
    """Supported log output formats."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def compact_value(value: Any, depth: int = 0) -> Any:
    """Shrink a value for logging.

    Long strings are cut to ``MAX_VALUE_LENGTH`` characters, lists of
    records become an item count, and nesting stops at ``MAX_COMPACT_DEPTH``.
    """
    if isinstance(value, str):
        return value if len(value) <= MAX_VALUE_LENGTH else f"{value[:MAX_VALUE_LENGTH]}... ({len(value)} chars)"
    if isinstance(value, dict):
        if depth >= MAX_COMPACT_DEPTH:
            return f"{{{len(value)} keys}}"
        return {str(k): compact_value(v, depth + 1) for k, v in value.items()}
    if isinstance(value, list | tuple):
        if any(isinstance(item, dict | list) for item in value):
            return f"[{len(value)} items]"
        return [compact_value(item, depth + 1) for item in value]
    return value


def compact_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Apply ``compact_value`` to every log extra."""
    return {key: compact_value(value) for key, value in fields.items()}


def context_prefix() -> str:
    """Bracketed context for text output, e.g. ``"[sess=1234abcd mode=modal #3] "``."""
    parts = []
    if session_id := _session_id.get():
        parts.append(f"sess={session_id[:8]}")
    if mode := _mode.get():
        parts.append(f"mode={mode}")
    if (number := _thought_number.get()) is not None:
        parts.append(f"#{number}")
    if tool_name := _tool_name.get():
        parts.append(f"tool={tool_name}")
    return f"[{' '.join(parts)}] " if parts else ""


def _inject_context(record: Record) -> None:
    record["extra"]["context"] = context_prefix()
    if session_id := _session_id.get():
        record["extra"].setdefault("session_id", session_id)
    if mode := _mode.get():
        record["extra"].setdefault("mode", mode)
    if (number := _thought_number.get()) is not None:
        record["extra"].setdefault("thought_number", number)
    if tool_name := _tool_name.get():
        record["extra"].setdefault("tool", tool_name)


class StructuredLogger:
    """Loguru wrapper with per-request reasoning context.

    Example:
        log = get_logger("deepthinking.server")
        with log.context(session_id="abc123", mode="modal", thought_number=2):
            log.validation(result)

    """

    def __init__(
        self,
        name: str,
        level: LogLevel | str = LogLevel.INFO,
        log_format: LogFormat | str = LogFormat.TEXT,
        log_file: str | Path | None = None,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (usually module name).
            level: Minimum log level.
            log_format: Output format (json or text).
            log_file: Optional file path for JSON log output.

        """
        self.name = name
        self.level = LogLevel(level.upper()) if isinstance(level, str) else level
        self.log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format
        self._configure_logger(log_file)

    def _configure_logger(self, log_file: str | Path | None = None) -> None:
        logger.remove()
        logger.configure(patcher=_inject_context)

        # stdio transport owns stdout
        if self.log_format == LogFormat.JSON:
            logger.add(sys.stderr, format="{message}", level=self.level.value, serialize=True)
        else:
            logger.add(
                sys.stderr,
                format=(
                    "<green>{time:HH:mm:ss.SSS}</green> | "
                    "<level>{level: <8}</level> | "
                    "<cyan>{name}</cyan> | "
                    "{extra[context]}<level>{message}</level>"
                ),
                level=self.level.value,
                colorize=True,
            )

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                log_path,
                format="{message}",
                level=self.level.value,
                serialize=True,
                rotation="50 MB",
                retention="7 days",
                compression="gz",
            )

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        getattr(logger.bind(**compact_fields(kwargs)).opt(depth=2), level)(message)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("error", message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at error level with the active traceback."""
        logger.bind(**compact_fields(kwargs)).opt(depth=1, exception=True).error(message)

    def validation(self, result: ValidationResult, **kwargs: Any) -> None:
        """Record the outcome of validating one reasoning step.

        Rejections log at info with their error codes; accepted steps log
        at debug with the warning count.
        """
        if not result.valid:
            self._log("info", "Thought rejected", codes=result.error_codes, **kwargs)
        else:
            self._log("debug", "Thought validated", warning_count=len(result.warnings), **kwargs)

    class _ContextManager:
        """Sets the reasoning context for the duration of a ``with`` block."""

        def __init__(
            self,
            session_id: str | None = None,
            mode: str | None = None,
            thought_number: int | None = None,
            tool_name: str | None = None,
        ) -> None:
            self.session_id = session_id
            self.mode = mode
            self.thought_number = thought_number
            self.tool_name = tool_name
            self._tokens: list[Any] = []

        def __enter__(self) -> StructuredLogger._ContextManager:
            if self.session_id:
                self._tokens.append(_session_id.set(self.session_id))
            if self.mode:
                self._tokens.append(_mode.set(self.mode))
            if self.thought_number is not None:
                self._tokens.append(_thought_number.set(self.thought_number))
            if self.tool_name:
                self._tokens.append(_tool_name.set(self.tool_name))
            return self

        def __exit__(self, *args: Any) -> None:
            for token in reversed(self._tokens):
                token.var.reset(token)

    def context(
        self,
        session_id: str | None = None,
        mode: str | None = None,
        thought_number: int | None = None,
        tool_name: str | None = None,
    ) -> _ContextManager:
        """Scope session, mode, thought number and tool onto every record logged inside."""
        return self._ContextManager(session_id, mode, thought_number, tool_name)


def get_session_id() -> str | None:
    return _session_id.get()


def get_mode() -> str | None:
    return _mode.get()


def get_thought_number() -> int | None:
    return _thought_number.get()


def get_logger(
    name: str,
    level: LogLevel | str | None = None,
    log_format: LogFormat | str | None = None,
) -> StructuredLogger:
    """Get a structured logger configured from ``LoggingConfig``.

    Args:
        name: Logger name (usually __name__).
        level: Overrides the configured level.
        log_format: Overrides the configured format.

    Returns:
        Configured StructuredLogger instance.

    """
    settings = LoggingConfig()
    return StructuredLogger(
        name=name,
        level=level or settings.level,
        log_format=log_format or settings.format,
        log_file=settings.file or None,
    )
