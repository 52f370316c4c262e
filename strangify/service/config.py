# strangify/service/config.py

"""Application configuration using Pydantic Settings.

Manages environment variables, defaults, and validation rules.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from strangify.core.exceptions import ConfigurationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _default_workers() -> int:
    return max(1, min(8, os.cpu_count() or 1))


class Settings(BaseSettings):
    """Global application settings.

    Loads values from environment variables (prefix 'STRANGIFY_') or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="STRANGIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Rule set
    rules_path: Optional[Path] = Field(
        default=None,
        description="YAML rule set to load instead of the packaged default.",
    )

    # Watch loop
    quiescence_ms: int = Field(
        default=200,
        ge=0,
        description="Quiet period after the last change before a unit is transformed.",
    )

    max_workers: int = Field(
        default_factory=_default_workers,
        ge=1,
        description="Size of the transformation worker pool.",
    )

    reorder_window: int = Field(
        default=64,
        ge=1,
        description="Out-of-order units buffered per source before giving up on a gap.",
    )

    # Filesystem mode
    output_suffix: str = Field(
        default="_strange",
        description="Suffix added to the file stem of derived output files.",
    )

    include_globs: List[str] = Field(
        default_factory=lambda: ["*"],
        description="File name patterns picked up when the target is a directory.",
    )

    recursive: bool = Field(
        default=True, description="Descend into subdirectories of a directory target."
    )

    use_polling: bool = Field(
        default=False,
        description="Use the polling observer (network mounts, container volumes).",
    )

    poll_interval_ms: int = Field(
        default=500, ge=10, description="Polling observer interval."
    )

    retry_initial_ms: int = Field(
        default=500,
        ge=1,
        description="First delay before re-establishing a lost watch.",
    )

    retry_max_ms: int = Field(
        default=30_000, ge=1, description="Upper bound of the watch retry backoff."
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level.")

    log_format: str = Field(default="json", description="'json' or 'text'.")

    @field_validator("output_suffix")
    @classmethod
    def validate_output_suffix(cls, v: str) -> str:
        """Ensure the suffix cannot map an output file onto its input."""
        if not v.strip():
            raise ValueError("Output suffix cannot be empty")
        if "/" in v or os.sep in v:
            raise ValueError("Output suffix cannot contain path separators")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in ("json", "text"):
            raise ValueError(f"Unknown log format: {v}")
        return fmt

    @property
    def quiescence(self) -> float:
        return self.quiescence_ms / 1000.0

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def retry_initial(self) -> float:
        return self.retry_initial_ms / 1000.0

    @property
    def retry_max(self) -> float:
        return max(self.retry_max_ms, self.retry_initial_ms) / 1000.0


def load_settings(**overrides: Any) -> Settings:
    """Builds settings from the environment plus explicit overrides.

    Raises:
        ConfigurationError: If a value fails validation
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e

