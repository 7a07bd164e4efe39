"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from deepthinking.config import (
    Config,
    EngineConfig,
    InputLimitsConfig,
    LoggingConfig,
    ServerConfig,
    _get_env,
    _get_env_bool,
    _get_env_float,
    _get_env_int,
    get_config,
    reload_config,
)
from deepthinking.utils.errors import ConfigException


class TestEnvHelpers:
    """Tests for environment variable helper functions."""

    def test_empty_string_is_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMPTY_VAR", "")
        assert _get_env("EMPTY_VAR", "default") == "default"

    def test_int_falls_back_on_garbage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INT_VAR", "many")
        assert _get_env_int("INT_VAR", 7) == 7
        monkeypatch.setenv("INT_VAR", "42")
        assert _get_env_int("INT_VAR", 7) == 42

    def test_float_falls_back_on_garbage(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLOAT_VAR", "high")
        assert _get_env_float("FLOAT_VAR", 0.5) == 0.5
        monkeypatch.setenv("FLOAT_VAR", "0.25")
        assert _get_env_float("FLOAT_VAR", 0.5) == 0.25

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("1", True), ("YES", True), ("no", False)])
    def test_bool(self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        monkeypatch.setenv("BOOL_VAR", raw)
        assert _get_env_bool("BOOL_VAR") is expected


class TestConfig:
    """Tests for configuration dataclasses."""

    def test_engine_defaults(self) -> None:
        engine = EngineConfig()
        assert engine.default_mode == "hybrid"
        assert engine.confirmation_threshold == 20.0
        assert engine.refutation_threshold == -20.0
        assert engine.default_uncertainty == 0.5
        assert engine.hybrid_target_confidence == 0.97

    def test_engine_rejects_inverted_thresholds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DECIBAN_CONFIRMATION_THRESHOLD", "-30")
        with pytest.raises(ConfigException, match="must exceed"):
            EngineConfig()

    def test_engine_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DECIBAN_CONFIRMATION_THRESHOLD", "30")
        monkeypatch.setenv("DEFAULT_MODE", "sequential")
        engine = EngineConfig()
        assert engine.confirmation_threshold == 30.0
        assert engine.default_mode == "sequential"

    def test_server_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SERVER_TRANSPORT", raising=False)
        assert ServerConfig().transport == "stdio"

    def test_logging_normalizes_case(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        monkeypatch.delenv("LOG_FILE", raising=False)
        settings = LoggingConfig()
        assert (settings.level, settings.format, settings.file) == ("DEBUG", "json", "")

    def test_input_limits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_THOUGHT_SIZE", "100")
        assert InputLimitsConfig().max_thought_size == 100

    def test_to_dict_sections(self) -> None:
        data = Config().to_dict()
        assert set(data) == {"server", "logging", "session", "input_limits", "engine"}

    def test_reload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HYBRID_TARGET_CONFIDENCE", "0.8")
        config = reload_config()
        assert config.engine.hybrid_target_confidence == 0.8
        assert get_config() is config
        monkeypatch.delenv("HYBRID_TARGET_CONFIDENCE")
        reload_config()
