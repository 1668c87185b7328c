"""Runtime settings for assessments.

Settings are resolved once per process, in increasing precedence:

1. Built-in defaults.
2. An optional YAML file.
3. ``TRUSTPROBE_*`` environment variables.
4. Explicit keyword overrides (the CLI passes its options here).

The resulting ``Settings`` object is immutable and passed explicitly to the
orchestrator; nothing reads configuration from ambient global state.

Example YAML::

    category_timeout: 3.0
    command_timeout_ms: 1500
    pacing_delay: 0
    concurrent_probes: true
    reference_date: 2025-06-01
    log_level: INFO
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from trustprobe.exceptions import ConfigurationError

ENV_PREFIX = "TRUSTPROBE_"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class SettingsFileSource(YamlConfigSettingsSource):
    """YAML settings source that reports unusable files as configuration errors."""

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        try:
            data = super()._read_file(file_path)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read settings file {file_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in settings file {file_path}: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Settings file {file_path} must contain a mapping")
        return dict(data)


class Settings(BaseSettings):
    """Immutable assessment settings.

    Attributes:
        category_timeout: Wall-clock budget in seconds for one category run.
        command_timeout_ms: Timeout for each subprocess a probe issues.
        pacing_delay: Seconds to pause between progress emissions. Only
            useful to make progressive updates visible in a live display.
        concurrent_probes: Run independent probes of a category concurrently.
        reference_date: Date used for patch-age rules. None means today.
        log_level: Name of the logging level for the CLI handler.
        config_file: YAML file the settings were read from, if any.
    """

    category_timeout: float = Field(default=5.0, gt=0, description="Seconds per category run")
    command_timeout_ms: int = Field(default=2000, gt=0, description="Per-subprocess timeout")
    pacing_delay: float = Field(default=0.0, ge=0, description="Pause between progress updates")
    concurrent_probes: bool = Field(default=True, description="Run independent probes concurrently")
    reference_date: Optional[date] = Field(default=None, description="Date for patch-age rules")
    log_level: str = Field(default="WARNING", description="CLI logging level")
    config_file: Optional[Path] = Field(default=None, description="Source YAML file")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        frozen=True,
        extra="forbid",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_file = getattr(init_settings, "init_kwargs", {}).get("config_file")
        return (
            init_settings,
            env_settings,
            SettingsFileSource(settings_cls, yaml_file=config_file),
        )

    def today(self) -> date:
        """Reference date for age-based rules."""
        return self.reference_date or date.today()

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def load_settings(path: Path | str | None = None, **overrides: Any) -> Settings:
    """Resolve settings from file, environment and explicit overrides.

    Args:
        path: Optional YAML settings file.
        **overrides: Field values that take precedence over everything
            else. ``None`` values are ignored.

    Returns:
        The resolved ``Settings``.

    Raises:
        ConfigurationError: If the file is missing or malformed, names an
            unknown key, or any value fails validation.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Cannot read settings file {path}: not a file")
        values["config_file"] = path
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc
