"""Identifier generation for thoughts and their sub-structures.

Every id the engine mints goes through an ``IdGenerator`` so tests can swap
in ``SequentialIds`` and assert on exact values.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from typing import Protocol


class IdGenerator(Protocol):
    """Callable producing a fresh opaque identifier."""

    def __call__(self, prefix: str | None = None) -> str: ...


def uuid_ids(prefix: str | None = None) -> str:
    """Generate a random UUID4 identifier, optionally prefixed.

    Args:
        prefix: Optional prefix such as ``"event"``.

    Returns:
        ``"<prefix>-<uuid4>"`` or a bare uuid4 string.

    """
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value


class SequentialIds:
    """Deterministic id generator for tests.

    Produces ``"<prefix>-1"``, ``"<prefix>-2"``, ... from one shared counter.
    """

    def __init__(self, default_prefix: str = "id", start: int = 1) -> None:
        self.default_prefix = default_prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self, prefix: str | None = None) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{prefix or self.default_prefix}-{n}"
