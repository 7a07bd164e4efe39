"""Utility modules for DeepThinking MCP."""

from .errors import (
    ConfigException,
    DeepThinkingException,
    HandlerRegistrationError,
    InvalidInputError,
    SessionNotFoundError,
    ToolExecutionError,
    UnknownModeError,
)
from .ids import IdGenerator, SequentialIds, uuid_ids
from .session import InMemorySessionStore, SessionStore, ThinkingSession

__all__ = [
    "DeepThinkingException",
    "ConfigException",
    "UnknownModeError",
    "InvalidInputError",
    "HandlerRegistrationError",
    "SessionNotFoundError",
    "ToolExecutionError",
    "IdGenerator",
    "SequentialIds",
    "uuid_ids",
    "InMemorySessionStore",
    "SessionStore",
    "ThinkingSession",
]
