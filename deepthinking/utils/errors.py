"""Custom exceptions for DeepThinking MCP.

Expected validation failures are returned as ``ValidationResult`` data and
never raised. The exceptions below signal caller bugs (an unknown mode passed
straight to construction, unparsed input) or server-level failures.
"""

from __future__ import annotations

from typing import Any


class DeepThinkingException(Exception):
    """Base exception for DeepThinking MCP."""

    pass


class ConfigException(DeepThinkingException):
    """Raised during configuration issues."""

    pass


class UnknownModeError(DeepThinkingException):
    """Raised when a mode tag cannot be resolved to a registered handler."""

    code = "UNKNOWN_MODE"

    def __init__(self, mode: str, available: list[str] | None = None) -> None:
        """Initialize unknown mode error.

        Args:
            mode: The unresolvable mode tag.
            available: Modes that are currently registered.

        """
        self.mode = mode
        self.available = available or []
        super().__init__(f"Unknown thinking mode: {mode!r}")


class InvalidInputError(DeepThinkingException):
    """Raised when construction is attempted on input that failed validation.

    Carries the failing validation result so callers can still report it.
    """

    def __init__(self, message: str, result: Any = None) -> None:
        self.result = result
        super().__init__(message)


class HandlerRegistrationError(DeepThinkingException):
    """Raised when an object that is not a mode handler is registered."""

    pass


class SessionNotFoundError(DeepThinkingException):
    """Raised when a session ID is not found."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ToolExecutionError(Exception):
    """Raised when tool execution fails in MCP context.

    Provides structured error information that can be returned
    to the LLM client in a parseable format.
    """

    def __init__(
        self,
        tool_name: str,
        error_message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize tool execution error.

        Args:
            tool_name: Name of the tool that failed.
            error_message: Human-readable error message.
            details: Optional dictionary with additional error details.

        """
        self.tool_name = tool_name
        self.error_message = error_message
        self.details = details or {}
        super().__init__(f"Tool {tool_name} failed: {error_message}")

    def to_mcp_error(self) -> str:
        """Convert to MCP-compatible error format."""
        return f"[{self.tool_name}] {self.error_message}. Details: {self.details}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.

        """
        return {
            "error": True,
            "tool": self.tool_name,
            "message": self.error_message,
            "details": self.details,
        }
