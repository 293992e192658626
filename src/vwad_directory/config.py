"""Configuration with 4-layer resolution: defaults -> YAML -> env -> CLI.

Uses pydantic-settings with YamlConfigSettingsSource for layered configuration.
Supports ``.env`` file loading, ``VWAD_`` prefixed env vars, and nested
delimiter ``__`` for overriding sub-model fields
(e.g. ``VWAD_CATALOG__SOURCE=https://example.org/collection.json``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Literal

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_STARS_BADGE_TEMPLATE = (
    "https://img.shields.io/badge/stars-{stars}-007ec6?style=flat"
)


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class CatalogSettings(BaseModel):
    """Where the catalog document lives and how hard to try fetching it."""

    source: str = Field(
        default="data/collection.json",
        description="Filesystem path or http(s) URL of the collection JSON.",
    )
    timeout: float = Field(
        default=10.0, gt=0.0, description="HTTP request timeout in seconds."
    )
    retries: int = Field(
        default=3, ge=1, le=10, description="Fetch attempts for URL sources."
    )


class SiteSettings(BaseModel):
    """Link and badge generation for rendered entries."""

    base_url: str = Field(
        default="",
        description="Prefix for directory and detail links (empty = relative).",
    )
    stars_badge_template: str = DEFAULT_STARS_BADGE_TEMPLATE

    @field_validator("stars_badge_template")
    @classmethod
    def _template_has_placeholder(cls, value: str) -> str:
        if "{stars}" not in value:
            msg = "stars_badge_template must contain a '{stars}' placeholder"
            raise ValueError(msg)
        return value


class APISettings(BaseModel):
    """FastAPI server settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Logging / observability configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json"] = "console"
    file: Path | None = None


# ---------------------------------------------------------------------------
# Main Settings (4-layer resolution)
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Top-level application settings.

    Resolution order (last wins):
        1. Field defaults (defined above)
        2. YAML config file (``config.yaml`` or ``--config`` path)
        3. Environment variables (prefixed ``VWAD_``)
        4. CLI overrides (applied programmatically after loading)
    """

    model_config = SettingsConfigDict(
        env_prefix="VWAD_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config.yaml",
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    _config_path_override: ClassVar[Path | None] = None

    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources as init (CLI) > env > dotenv > yaml > defaults."""
        yaml_file = cls._config_path_override or settings_cls.model_config.get(
            "yaml_file", "config.yaml"
        )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
        )

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> Settings:
        """Load settings with optional config path and CLI overrides.

        Args:
            config_path: Optional path to a YAML config file.
            **overrides: Key-value CLI overrides applied at highest priority.

        Returns:
            Fully-resolved Settings instance.

        Raises:
            ValidationError: If any setting value fails validation.
        """
        cls._config_path_override = config_path
        try:
            return cls(**overrides)
        finally:
            cls._config_path_override = None


def format_validation_error(exc: ValidationError) -> str:
    """Format a Pydantic ValidationError into a user-friendly message."""
    lines: list[str] = []
    for error in exc.errors():
        loc = " -> ".join(str(part) for part in error["loc"])
        msg = error["msg"]
        raw_input = error.get("input")
        if raw_input is not None:
            lines.append(f"  {loc}: {msg} (got {raw_input!r})")
        else:
            lines.append(f"  {loc}: {msg}")
    return "Configuration error:\n" + "\n".join(lines)
