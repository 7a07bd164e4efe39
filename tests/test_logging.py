"""Unit tests for deepthinking/utils/logging.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger

from deepthinking.modes.types import ErrorCode, ValidationResult, ValidationWarning
from deepthinking.utils.logging import (
    MAX_VALUE_LENGTH,
    LogFormat,
    LogLevel,
    StructuredLogger,
    compact_fields,
    compact_value,
    context_prefix,
    get_logger,
    get_mode,
    get_session_id,
    get_thought_number,
)


def _last_record(path: Path) -> dict:
    logger.complete()
    return json.loads(path.read_text().strip().splitlines()[-1])["record"]


class TestEnums:
    """Test LogFormat and LogLevel enums."""

    def test_formats(self) -> None:
        assert LogFormat.JSON.value == "json"
        assert LogFormat.TEXT.value == "text"

    def test_levels(self) -> None:
        assert [level.value for level in LogLevel] == ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TestCompaction:
    """Test shrinking of reasoning structures before logging."""

    def test_short_values_unchanged(self) -> None:
        assert compact_value("modal") == "modal"
        assert compact_value(3) == 3
        assert compact_value(["a", "b"]) == ["a", "b"]

    def test_long_string_truncated(self) -> None:
        text = "x" * (MAX_VALUE_LENGTH + 30)
        result = compact_value(text)
        assert result.startswith("x" * MAX_VALUE_LENGTH)
        assert result.endswith(f"... ({len(text)} chars)")

    def test_record_lists_become_counts(self) -> None:
        worlds = [{"id": "w1"}, {"id": "w2"}, {"id": "w3"}]
        assert compact_value(worlds) == "[3 items]"
        assert compact_value([[1, 0], [0, 1]]) == "[2 items]"

    def test_deep_nesting_stops(self) -> None:
        nested = {"a": {"b": {"c": {"d": {"e": 1}}}}}
        assert compact_value(nested) == {"a": {"b": {"c": {"d": "{1 keys}"}}}}

    def test_compact_fields(self) -> None:
        fields = compact_fields({"events": [{"id": "e1"}], "codes": ["EMPTY_THOUGHT"], "count": 2})
        assert fields == {"events": "[1 items]", "codes": ["EMPTY_THOUGHT"], "count": 2}


class TestContext:
    """Test scoped logging context."""

    def test_context_sets_and_resets(self) -> None:
        log = StructuredLogger("test")
        assert get_session_id() is None
        with log.context(session_id="abcdef123456", mode="modal", thought_number=3, tool_name="think"):
            assert get_session_id() == "abcdef123456"
            assert get_mode() == "modal"
            assert get_thought_number() == 3
            assert context_prefix() == "[sess=abcdef12 mode=modal #3 tool=think] "
        assert get_session_id() is None
        assert get_mode() is None
        assert get_thought_number() is None
        assert context_prefix() == ""

    def test_nested_context_restores_outer(self) -> None:
        log = StructuredLogger("test")
        with log.context(session_id="outer-session", mode="temporal"):
            with log.context(mode="causal"):
                assert get_mode() == "causal"
                assert get_session_id() == "outer-session"
            assert get_mode() == "temporal"

    def test_partial_prefix(self) -> None:
        log = StructuredLogger("test")
        with log.context(mode="bayesian"):
            assert context_prefix() == "[mode=bayesian] "


class TestStructuredLogger:
    """Test logger output."""

    def test_json_file_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "engine.log"
        log = StructuredLogger("test", level="DEBUG", log_format="json", log_file=log_file)
        with log.context(session_id="session-1", mode="temporal", thought_number=3):
            log.info("Thought recorded", events=[{"id": "e1"}, {"id": "e2"}])
        record = _last_record(log_file)
        assert record["message"] == "Thought recorded"
        assert record["extra"]["events"] == "[2 items]"
        assert record["extra"]["thought_number"] == 3
        assert record["extra"]["session_id"] == "session-1"
        assert record["extra"]["mode"] == "temporal"

    def test_validation_rejected(self, tmp_path: Path) -> None:
        log_file = tmp_path / "engine.log"
        log = StructuredLogger("test", level="DEBUG", log_format="json", log_file=log_file)
        log.validation(ValidationResult.fatal("thought", "Thought content cannot be empty", ErrorCode.EMPTY_THOUGHT))
        record = _last_record(log_file)
        assert record["message"] == "Thought rejected"
        assert record["level"]["name"] == "INFO"
        assert record["extra"]["codes"] == ["EMPTY_THOUGHT"]

    def test_validation_accepted(self, tmp_path: Path) -> None:
        log_file = tmp_path / "engine.log"
        log = StructuredLogger("test", level="DEBUG", log_format="json", log_file=log_file)
        log.validation(ValidationResult.success([ValidationWarning("worlds", "No worlds defined")]))
        record = _last_record(log_file)
        assert record["message"] == "Thought validated"
        assert record["level"]["name"] == "DEBUG"
        assert record["extra"]["warning_count"] == 1

    def test_level_filters_debug(self, tmp_path: Path) -> None:
        log_file = tmp_path / "engine.log"
        log = StructuredLogger("test", level="INFO", log_format="json", log_file=log_file)
        log.info("kept")
        log.debug("dropped")
        assert _last_record(log_file)["message"] == "kept"

    def test_get_logger_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        monkeypatch.delenv("LOG_FILE", raising=False)
        log = get_logger("test")
        assert log.level is LogLevel.DEBUG
        assert log.log_format is LogFormat.JSON

    def test_get_logger_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        monkeypatch.delenv("LOG_FILE", raising=False)
        log = get_logger("test", level="WARNING", log_format="text")
        assert log.level is LogLevel.WARNING
        assert log.log_format is LogFormat.TEXT

    def test_invalid_level_rejected(self) -> None:
        with pytest.raises(ValueError):
            StructuredLogger("test", level="LOUD")
