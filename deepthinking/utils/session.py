"""Session store for constructed thoughts.

The engine itself is stateless; a session store is the collaborator that keeps
the ordered thought sequence of each reasoning session. ``SessionStore`` is the
interface, ``InMemorySessionStore`` the thread-safe reference implementation
used by the MCP server.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from deepthinking.utils.errors import SessionNotFoundError

if TYPE_CHECKING:
    from deepthinking.modes.types import Thought


@dataclass
class ThinkingSession:
    """Ordered thoughts recorded under one session id."""

    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    thoughts: list[Thought] = field(default_factory=list)

    @property
    def mode_counts(self) -> dict[str, int]:
        """Number of thoughts recorded per mode."""
        return dict(Counter(t.mode.value for t in self.thoughts))

    def summary(self) -> dict[str, Any]:
        """Compact session description for status responses."""
        last = self.thoughts[-1] if self.thoughts else None
        return {
            "session_id": self.session_id,
            "thought_count": len(self.thoughts),
            "modes": self.mode_counts,
            "last_thought_number": last.thought_number if last else None,
            "total_thoughts": last.total_thoughts if last else None,
            "complete": bool(last) and not last.next_thought_needed,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@runtime_checkable
class SessionStore(Protocol):
    """Persists ordered thought sequences per session."""

    def append(self, session_id: str, thought: Thought) -> ThinkingSession: ...

    def get(self, session_id: str) -> ThinkingSession: ...

    def session_ids(self) -> list[str]: ...


class InMemorySessionStore:
    """Thread-safe in-memory session store.

    Provides:
    - Session storage guarded by an RLock
    - ``session()`` context manager for atomic per-session operations
    - Stale session cleanup for long-running servers
    """

    def __init__(self, max_thoughts_per_session: int | None = None) -> None:
        self._sessions: dict[str, ThinkingSession] = {}
        self._lock = threading.RLock()
        self.max_thoughts_per_session = max_thoughts_per_session

    def _get_session(self, session_id: str) -> ThinkingSession:
        """Get session by ID. Caller must hold the lock."""
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        return self._sessions[session_id]

    @contextmanager
    def session(self, session_id: str) -> Generator[ThinkingSession, None, None]:
        """Context manager for atomic session operations.

        Raises:
            SessionNotFoundError: If session doesn't exist.

        """
        with self._lock:
            yield self._get_session(session_id)

    def append(self, session_id: str, thought: Thought) -> ThinkingSession:
        """Record a thought, creating the session on first use.

        Args:
            session_id: Session identifier.
            thought: Constructed thought to append.

        Returns:
            The updated session.

        Raises:
            ValueError: If the session already holds the maximum number of thoughts.

        """
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = ThinkingSession(session_id=session_id)
                self._sessions[session_id] = state
            limit = self.max_thoughts_per_session
            if limit is not None and len(state.thoughts) >= limit:
                raise ValueError(f"Session {session_id} reached the limit of {limit} thoughts")
            state.thoughts.append(thought)
            state.updated_at = datetime.now(UTC)
            return state

    def get(self, session_id: str) -> ThinkingSession:
        """Get a session (thread-safe).

        Raises:
            SessionNotFoundError: If session doesn't exist.

        """
        with self._lock:
            return self._get_session(session_id)

    def session_exists(self, session_id: str) -> bool:
        """Check if session exists (thread-safe)."""
        with self._lock:
            return session_id in self._sessions

    def session_ids(self) -> list[str]:
        """List known session ids in insertion order."""
        with self._lock:
            return list(self._sessions)

    def session_count(self) -> int:
        """Get number of sessions (thread-safe)."""
        with self._lock:
            return len(self._sessions)

    def remove(self, session_id: str) -> ThinkingSession | None:
        """Remove a session, returning it if it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None)

    def cleanup_stale(self, max_age: timedelta, *, now: datetime | None = None) -> list[str]:
        """Remove sessions not updated within ``max_age``.

        Args:
            max_age: Maximum idle age.
            now: Reference time (defaults to the current UTC time).

        Returns:
            List of removed session IDs.

        """
        cutoff = (now or datetime.now(UTC)) - max_age
        with self._lock:
            stale_ids = [sid for sid, s in self._sessions.items() if s.updated_at < cutoff]
            for session_id in stale_ids:
                del self._sessions[session_id]
        return stale_ids
