"""
Step mapping configuration.

Provides Pydantic-validated matching options plus environment and YAML
loading for the glossary and LLKB locations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatchOptions(BaseModel):
    """Options controlling the step-mapping cascade."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    normalize_text: bool = Field(
        default=True,
        description="Apply glossary synonym normalization before matching",
    )
    use_llkb: bool = Field(
        default=True,
        description="Consult learned patterns after the core library",
    )
    llkb_min_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    llkb_min_similarity: float = Field(default=0.7, ge=0.0, le=1.0)
    use_fuzzy: bool = Field(
        default=True,
        description="Fall back to example-similarity matching",
    )
    min_fuzzy_similarity: float = Field(default=0.85, ge=0.0, le=1.0)
    use_fallback: bool = Field(
        default=False,
        description="Ask the injected fallback hook when everything else fails",
    )
    include_blocked: bool = Field(
        default=True,
        description="Keep blocked results when mapping many steps",
    )


class MappingConfig(BaseModel):
    """Complete step-mapping configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    glossary_file: Path | None = None
    llkb_root: Path = Path(".journeyqa/llkb")
    llkb_enabled: bool = True
    llkb_cache_ttl_seconds: float = Field(default=5.0, ge=0.0, le=3600.0)
    options: MatchOptions = Field(default_factory=MatchOptions)


class MappingSettings(BaseSettings):
    """
    Environment-based mapping settings.

    Loads configuration from environment variables with JOURNEYQA_MAPPING_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="JOURNEYQA_MAPPING_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    glossary_file: Path | None = None
    llkb_root: Path = Path(".journeyqa/llkb")
    llkb_enabled: bool = True
    llkb_min_confidence: float = 0.7
    min_fuzzy_similarity: float = 0.85
    use_fuzzy: bool = True


STANDARD_MAPPING_PATHS = (
    Path(".journeyqa/mapping.yaml"),
    Path(".journeyqa/mapping.yml"),
    Path("journeyqa-mapping.yaml"),
    Path("journeyqa-mapping.yml"),
)


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open() as f:
        return yaml.safe_load(f) or {}


def load_mapping_config(
    config_file: Path | str | None = None,
    env_override: bool = True,
) -> MappingConfig:
    """
    Load mapping configuration from file and/or environment.

    Priority (highest to lowest):
    1. Environment variables (if env_override=True)
    2. Config file (explicit, else first standard path found)
    3. Defaults

    Args:
        config_file: Optional path to YAML config file
        env_override: Whether environment variables override file config

    Returns:
        Complete MappingConfig instance
    """
    file_config: dict[str, Any] = {}
    if config_file:
        config_path = Path(config_file)
        if config_path.exists():
            file_config = _read_yaml(config_path)

    if not file_config:
        for path in STANDARD_MAPPING_PATHS:
            if path.exists():
                file_config = _read_yaml(path)
                break

    options: dict[str, Any] = dict(file_config.get("options") or {})
    data: dict[str, Any] = {k: v for k, v in file_config.items() if k != "options"}

    if env_override:
        settings = MappingSettings()
        for name in settings.model_fields_set:
            value = getattr(settings, name)
            if name in MappingConfig.model_fields:
                data[name] = value
            elif name in MatchOptions.model_fields:
                options[name] = value

    return MappingConfig(**data, options=MatchOptions(**options))
