"""DeepThinking MCP Configuration.

Centralized configuration management with environment variable support
and Docker secrets integration.

Usage:
    from deepthinking.config import get_config
    print(get_config().server.name)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from deepthinking.utils.errors import ConfigException


def _get_env(key: str, default: str = "") -> str:
    """Get environment variable, treating empty string as unset.

    Also checks Docker secrets path.
    """
    secrets_path = f"/run/secrets/{key.lower()}"
    if os.path.isfile(secrets_path):
        try:
            with Path(secrets_path).open() as f:
                value = f.read().strip()
                if value:
                    return value
        except OSError as e:
            logger.warning(f"Failed to read secret {secrets_path}: {e}")

    value = os.getenv(key, default)
    return value if value else default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value:
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Invalid integer for {key}: {value}, using default {default}")
    return default


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value:
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Invalid float for {key}: {value}, using default {default}")
    return default


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean."""
    value = _get_env(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes")


@dataclass(frozen=True)
class ServerConfig:
    """Server runtime configuration."""

    name: str = field(default_factory=lambda: _get_env("SERVER_NAME", "DeepThinking-MCP"))
    transport: str = field(default_factory=lambda: _get_env("SERVER_TRANSPORT", "stdio"))
    host: str = field(default_factory=lambda: _get_env("SERVER_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_env_int("SERVER_PORT", 8000))


@dataclass(frozen=True)
class LoggingConfig:
    """Log level, format and optional file sink."""

    level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO").upper())
    format: str = field(default_factory=lambda: _get_env("LOG_FORMAT", "text").lower())
    file: str = field(default_factory=lambda: _get_env("LOG_FILE"))


@dataclass(frozen=True)
class SessionConfig:
    """Session store configuration."""

    max_age_minutes: int = field(
        default_factory=lambda: _get_env_int("SESSION_MAX_AGE_MINUTES", 60)
    )
    max_thoughts_per_session: int = field(
        default_factory=lambda: _get_env_int("MAX_THOUGHTS_PER_SESSION", 1000)
    )
    record_thoughts: bool = field(
        default_factory=lambda: _get_env_bool("RECORD_THOUGHTS", True)
    )


@dataclass(frozen=True)
class InputLimitsConfig:
    """Input size limits (CWE-400 mitigation)."""

    max_thought_size: int = field(default_factory=lambda: _get_env_int("MAX_THOUGHT_SIZE", 20000))
    max_total_thoughts: int = field(
        default_factory=lambda: _get_env_int("MAX_TOTAL_THOUGHTS", 1000)
    )


@dataclass(frozen=True)
class EngineConfig:
    """Defaults and thresholds used by the mode handlers."""

    default_mode: str = field(default_factory=lambda: _get_env("DEFAULT_MODE", "hybrid"))
    default_uncertainty: float = field(
        default_factory=lambda: _get_env_float("DEFAULT_UNCERTAINTY", 0.5)
    )
    confirmation_threshold: float = field(
        default_factory=lambda: _get_env_float("DECIBAN_CONFIRMATION_THRESHOLD", 20.0)
    )
    refutation_threshold: float = field(
        default_factory=lambda: _get_env_float("DECIBAN_REFUTATION_THRESHOLD", -20.0)
    )
    default_hypothesis_score: float = field(
        default_factory=lambda: _get_env_float("DEFAULT_HYPOTHESIS_SCORE", 0.5)
    )
    under_constrained_ratio: float = field(
        default_factory=lambda: _get_env_float("TEMPORAL_UNDER_CONSTRAINED_RATIO", 0.3)
    )
    hybrid_target_confidence: float = field(
        default_factory=lambda: _get_env_float("HYBRID_TARGET_CONFIDENCE", 0.97)
    )

    def __post_init__(self) -> None:
        if self.confirmation_threshold <= self.refutation_threshold:
            raise ConfigException(
                f"Confirmation threshold ({self.confirmation_threshold}) must exceed "
                f"refutation threshold ({self.refutation_threshold})"
            )


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    input_limits: InputLimitsConfig = field(default_factory=InputLimitsConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary (for logging/debugging)."""
        return {
            "server": {
                "name": self.server.name,
                "transport": self.server.transport,
                "host": self.server.host,
                "port": self.server.port,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file": self.logging.file or None,
            },
            "session": {
                "max_age_minutes": self.session.max_age_minutes,
                "max_thoughts_per_session": self.session.max_thoughts_per_session,
                "record_thoughts": self.session.record_thoughts,
            },
            "input_limits": {
                "max_thought_size": self.input_limits.max_thought_size,
                "max_total_thoughts": self.input_limits.max_total_thoughts,
            },
            "engine": {
                "default_mode": self.engine.default_mode,
                "default_uncertainty": self.engine.default_uncertainty,
                "confirmation_threshold": self.engine.confirmation_threshold,
                "refutation_threshold": self.engine.refutation_threshold,
                "default_hypothesis_score": self.engine.default_hypothesis_score,
                "under_constrained_ratio": self.engine.under_constrained_ratio,
                "hybrid_target_confidence": self.engine.hybrid_target_confidence,
            },
        }


# Global config instance (lazy-loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration (for testing)."""
    global _config
    _config = Config()
    return _config
