"""pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from deepthinking.config import EngineConfig
from deepthinking.modes.registry import ThoughtFactory, create_default_registry, reset_mode_registry
from deepthinking.utils.ids import SequentialIds


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep engine settings independent of the developer's environment."""
    for key in (
        "DEFAULT_MODE",
        "DEFAULT_UNCERTAINTY",
        "DECIBAN_CONFIRMATION_THRESHOLD",
        "DECIBAN_REFUTATION_THRESHOLD",
        "DEFAULT_HYPOTHESIS_SCORE",
        "TEMPORAL_UNDER_CONSTRAINED_RATIO",
        "HYBRID_TARGET_CONFIDENCE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def ids() -> SequentialIds:
    """Deterministic id generator."""
    return SequentialIds()


@pytest.fixture
def settings() -> EngineConfig:
    """Engine settings with built-in defaults."""
    return EngineConfig()


@pytest.fixture
def factory(ids: SequentialIds, settings: EngineConfig) -> ThoughtFactory:
    """Factory over a fresh registry with every built-in handler."""
    return ThoughtFactory(create_default_registry(ids=ids, settings=settings), default_mode="hybrid")


@pytest.fixture
def make_input():
    """Build a raw input record for ``mode`` with mode-specific fields."""

    def _make(mode: str, thought: str = "Reasoning step", number: int = 1, total: int = 3, **fields: Any):
        record: dict[str, Any] = {
            "mode": mode,
            "thought": thought,
            "thoughtNumber": number,
            "totalThoughts": total,
            "nextThoughtNeeded": number < total,
        }
        record.update(fields)
        return record

    return _make


@pytest.fixture
def fresh_registry():
    """Reset the process-wide registry around a test."""
    reset_mode_registry()
    yield
    reset_mode_registry()
